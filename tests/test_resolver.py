"""Tests for resolving generic templates against parameter bindings."""
from __future__ import annotations

import base64

import pytest

from forecastlab_infra.template.errors import (
    ConstraintViolation,
    DependencyCycle,
    MissingRequiredParameter,
    ParameterValidationError,
    UnresolvedReference,
)
from forecastlab_infra.template.expressions import (
    NO_VALUE,
    AttributeRef,
    Base64,
    Condition,
    Equals,
    GetAtt,
    If,
    Not,
    Or,
    Ref,
)
from forecastlab_infra.template.parameters import ParameterSpec, ParameterType
from forecastlab_infra.template.resolver import evaluate_conditions, resolve
from forecastlab_infra.template.template import (
    OutputDeclaration,
    ResourceDeclaration,
    Rule,
    RuleAssertion,
    Template,
)

PARAMETERS = (
    ParameterSpec(name="Env", allowed_values=("dev", "prod")),
    ParameterSpec(name="Size", type=ParameterType.NUMBER, default=1, min_value=1, max_value=8),
    ParameterSpec(name="Label", default=""),
)


def _template(resources: tuple[ResourceDeclaration, ...], **extra: object) -> Template:
    return Template(
        parameters=PARAMETERS,
        conditions={
            "IsProd": Equals(Ref("Env"), "prod"),
            "HasLabel": Not(Equals(Ref("Label"), "")),
            "ProdOrLabelled": Or((Condition("IsProd"), Condition("HasLabel"))),
        },
        resources=resources,
        **extra,
    )


def test_conditions_evaluate_in_dependency_order() -> None:
    template = _template(())
    results = evaluate_conditions(template, {"Env": "dev", "Size": 1, "Label": "x"})
    assert results == {"IsProd": False, "HasLabel": True, "ProdOrLabelled": True}


def test_if_selects_branch_and_omits_no_value() -> None:
    resources = (
        ResourceDeclaration(
            name="Queue",
            type="AWS::SQS::Queue",
            properties={
                "Tier": If("IsProd", "high", "low"),
                "Label": If("HasLabel", Ref("Label"), NO_VALUE),
                "Tags": [If("IsProd", "prod", NO_VALUE), "always"],
            },
        ),
    )
    dev = resolve(_template(resources), {"Env": "dev"})
    assert dev.resource("Queue").properties == {"Tier": "low", "Tags": ["always"]}

    prod = resolve(_template(resources), {"Env": "prod", "Label": "blue"})
    assert prod.resource("Queue").properties == {
        "Tier": "high",
        "Label": "blue",
        "Tags": ["prod", "always"],
    }


def test_numbers_bind_from_strings() -> None:
    resources = (
        ResourceDeclaration(name="Queue", type="AWS::SQS::Queue", properties={"Size": Ref("Size")}),
    )
    resolved = resolve(_template(resources), {"Env": "dev", "Size": "4"})
    assert resolved.resource("Queue").properties["Size"] == 4


def test_all_binding_errors_reported_together() -> None:
    with pytest.raises(ParameterValidationError) as excinfo:
        resolve(_template(()), {"Size": 99, "Colour": "red"})
    error = excinfo.value
    assert excinfo.group_contains(MissingRequiredParameter)
    assert excinfo.group_contains(ConstraintViolation)
    assert excinfo.group_contains(UnresolvedReference)
    assert sorted(error.names) == ["Colour", "Env", "Size"]


def test_rule_assertion_failure_is_constraint_violation() -> None:
    rules = (
        Rule(
            name="ProdNeedsLabel",
            condition=Equals(Ref("Env"), "prod"),
            assertions=(
                RuleAssertion(test=Not(Equals(Ref("Label"), "")), description="Label required in prod."),
            ),
        ),
    )
    template = _template((), rules=rules)
    resolve(template, {"Env": "dev"})
    with pytest.raises(ParameterValidationError) as excinfo:
        resolve(template, {"Env": "prod"})
    (violation,) = excinfo.value.exceptions
    assert isinstance(violation, ConstraintViolation)
    assert violation.parameter == "ProdNeedsLabel"
    assert violation.reason == "Label required in prod."


def test_rule_skipped_when_its_parameters_failed() -> None:
    rules = (
        Rule(
            name="ProdNeedsLabel",
            condition=Equals(Ref("Env"), "prod"),
            assertions=(RuleAssertion(test=Equals(Ref("Label"), "x"), description="never"),),
        ),
    )
    with pytest.raises(ParameterValidationError) as excinfo:
        resolve(_template((), rules=rules), {"Env": "staging"})
    assert excinfo.value.names == ["Env"]


def test_resource_refs_become_attribute_placeholders_and_order_dependencies() -> None:
    resources = (
        ResourceDeclaration(
            name="Consumer",
            type="AWS::Lambda::Function",
            properties={"Role": GetAtt("Role", "Arn"), "Queue": Ref("Queue")},
        ),
        ResourceDeclaration(name="Queue", type="AWS::SQS::Queue", depends_on=("Role",)),
        ResourceDeclaration(name="Role", type="AWS::IAM::Role"),
    )
    resolved = resolve(_template(resources), {"Env": "dev"})
    names = [resource.name for resource in resolved.resources]
    assert names.index("Role") < names.index("Queue") < names.index("Consumer")
    consumer = resolved.resource("Consumer")
    assert consumer.properties == {
        "Role": AttributeRef("Role", "Arn"),
        "Queue": AttributeRef("Queue"),
    }
    assert consumer.depends_on == ("Queue", "Role")


def test_omitted_branch_creates_no_dependency() -> None:
    resources = (
        ResourceDeclaration(
            name="Consumer",
            type="AWS::Lambda::Function",
            properties={"Dlq": If("IsProd", Ref("Dlq"), NO_VALUE)},
        ),
        ResourceDeclaration(name="Dlq", type="AWS::SQS::Queue"),
    )
    resolved = resolve(_template(resources), {"Env": "dev"})
    assert resolved.resource("Consumer").depends_on == ()
    assert "Dlq" not in resolved.resource("Consumer").properties


def test_resource_cycle_is_detected() -> None:
    resources = (
        ResourceDeclaration(name="A", type="T", properties={"Peer": Ref("B")}),
        ResourceDeclaration(name="B", type="T", properties={"Peer": GetAtt("A", "Id")}),
    )
    with pytest.raises(DependencyCycle) as excinfo:
        resolve(_template(resources), {"Env": "dev"})
    assert set(excinfo.value.nodes) == {"A", "B"}


def test_conditional_resource_is_dropped() -> None:
    resources = (
        ResourceDeclaration(name="Alarm", type="AWS::CloudWatch::Alarm", condition="IsProd"),
    )
    outputs = (OutputDeclaration(name="AlarmName", value=Ref("Alarm"), condition="IsProd"),)
    resolved = resolve(_template(resources, outputs=outputs), {"Env": "dev"})
    assert resolved.resources == ()
    assert resolved.outputs == ()


def test_reference_to_dropped_resource_fails() -> None:
    resources = (
        ResourceDeclaration(name="Alarm", type="AWS::CloudWatch::Alarm", condition="IsProd"),
        ResourceDeclaration(name="Topic", type="AWS::SNS::Topic", properties={"Alarm": Ref("Alarm")}),
    )
    with pytest.raises(UnresolvedReference) as excinfo:
        resolve(_template(resources), {"Env": "dev"})
    assert excinfo.value.name == "Alarm"
    assert excinfo.value.referrer == "Resources.Topic"


def test_base64_encodes_resolved_string() -> None:
    resources = (
        ResourceDeclaration(name="Script", type="T", properties={"Body": Base64("echo hi\n")}),
    )
    resolved = resolve(_template(resources), {"Env": "dev"})
    body = resolved.resource("Script").properties["Body"]
    assert base64.b64decode(body).decode() == "echo hi\n"


def test_to_document_renders_placeholders() -> None:
    resources = (
        ResourceDeclaration(name="Role", type="AWS::IAM::Role"),
        ResourceDeclaration(name="Fn", type="AWS::Lambda::Function", properties={"Role": GetAtt("Role", "Arn")}),
    )
    outputs = (OutputDeclaration(name="RoleName", value=Ref("Role"), description="role"),)
    document = resolve(_template(resources, outputs=outputs), {"Env": "dev"}).to_document()
    assert document["Resources"]["Fn"] == {
        "Type": "AWS::Lambda::Function",
        "Properties": {"Role": {"Fn::GetAtt": ["Role", "Arn"]}},
        "DependsOn": ["Role"],
    }
    assert document["Outputs"] == {"RoleName": {"Value": {"Ref": "Role"}, "Description": "role"}}
    assert document["Conditions"]["IsProd"] is False
