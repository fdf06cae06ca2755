"""Resolve a template against parameter bindings into a concrete resource graph.

Resolution is a pure function of the template and the bindings: it binds and
validates parameters, evaluates conditions in dependency order, collapses
every conditional property, and orders resources by their dependencies. It
never creates anything; the result is handed to a provisioning engine.
"""

from __future__ import annotations

import base64
import graphlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from forecastlab_infra.template.errors import (
    ConstraintViolation,
    DependencyCycle,
    MissingRequiredParameter,
    ParameterValidationError,
    TemplateError,
    UnresolvedReference,
)
from forecastlab_infra.template.expressions import (
    BOOLEAN_EXPRESSIONS,
    NO_VALUE,
    And,
    AttributeRef,
    Base64,
    Condition,
    Equals,
    GetAtt,
    If,
    Not,
    Or,
    Ref,
    attribute_refs,
    ref_names,
    to_document,
)
from forecastlab_infra.template.parameters import ParameterValue
from forecastlab_infra.template.template import Rule, Template

logger: logging.Logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedResource:
    """A resource with every conditional property collapsed.

    ``depends_on`` lists the resources whose generated attributes (or explicit
    ordering) this resource needs before it can be created.
    """

    name: str
    type: str
    properties: dict[str, Any]
    depends_on: tuple[str, ...] = ()


@dataclass(frozen=True)
class ResolvedOutput:
    name: str
    value: Any
    description: str = ""


@dataclass(frozen=True)
class ResolvedStack:
    """The resolved resource graph, with resources in dependency order."""

    parameters: dict[str, ParameterValue]
    conditions: dict[str, bool]
    resources: tuple[ResolvedResource, ...]
    outputs: tuple[ResolvedOutput, ...] = field(default=())

    def resource(self, name: str) -> ResolvedResource:
        """Return the resolved resource called ``name``."""
        for resource in self.resources:
            if resource.name == name:
                return resource
        raise KeyError(name)

    def to_document(self) -> dict[str, Any]:
        """Render the graph as plain data with placeholders as Ref/GetAtt objects."""
        resources: dict[str, Any] = {}
        for resource in self.resources:
            entry: dict[str, Any] = {
                "Type": resource.type,
                "Properties": to_document(resource.properties),
            }
            if resource.depends_on:
                entry["DependsOn"] = list(resource.depends_on)
            resources[resource.name] = entry
        outputs: dict[str, Any] = {}
        for output in self.outputs:
            outputs[output.name] = {"Value": to_document(output.value)}
            if output.description:
                outputs[output.name]["Description"] = output.description
        return {
            "Parameters": dict(self.parameters),
            "Conditions": dict(self.conditions),
            "Resources": resources,
            "Outputs": outputs,
        }


def resolve(template: Template, bindings: Mapping[str, object]) -> ResolvedStack:
    """Resolve ``template`` against ``bindings``.

    Args:
        template: The declarative template.
        bindings: Supplied parameter values, by parameter name. Parameters
            left out take their declared default.

    Returns:
        The resolved resource graph.

    Raises:
        ParameterValidationError: grouping every missing, invalid or unknown
            parameter binding and every failed rule assertion.
        UnresolvedReference: if the template references an undeclared or
            excluded name.
        DependencyCycle: if conditions or resources depend on each other in
            a loop.
    """
    template.check()
    parameters = bind_parameters(template, bindings)
    conditions = evaluate_conditions(template, parameters)
    resources = _resolve_resources(template, parameters, conditions)
    included = {resource.name for resource in resources}

    outputs: list[ResolvedOutput] = []
    for output in template.outputs:
        if output.condition is not None and not conditions[output.condition]:
            continue
        collapser = _Collapser(parameters, conditions, included, f"Outputs.{output.name}")
        value = collapser.collapse(output.value)
        if value is not NO_VALUE:
            outputs.append(ResolvedOutput(output.name, value, output.description))

    logger.info(
        "template_resolved",
        extra={
            "resources": [resource.name for resource in resources],
            "conditions": conditions,
        },
    )
    return ResolvedStack(
        parameters=parameters,
        conditions=conditions,
        resources=tuple(resources),
        outputs=tuple(outputs),
    )


def bind_parameters(template: Template, bindings: Mapping[str, object]) -> dict[str, ParameterValue]:
    """Bind every declared parameter, collecting all errors before raising.

    Raises:
        ParameterValidationError: if any binding is missing, invalid or
            unknown, or a rule assertion fails.
    """
    errors: list[TemplateError] = []
    declared = template.parameter_names
    for name in sorted(set(bindings) - declared):
        errors.append(UnresolvedReference(name, "Parameters"))

    values: dict[str, ParameterValue] = {}
    for spec in template.parameters:
        if spec.name in bindings:
            raw = bindings[spec.name]
        elif spec.required:
            errors.append(MissingRequiredParameter(spec.name))
            continue
        else:
            raw = spec.default
        try:
            values[spec.name] = spec.bind(raw)
        except ConstraintViolation as exc:
            errors.append(exc)

    for rule in template.rules:
        if (ref_names(rule.condition) | _assertion_refs(rule)).issubset(values):
            errors.extend(_check_rule(rule, values))

    if errors:
        logger.warning(
            "parameter_validation_failed",
            extra={"errors": [str(error) for error in errors]},
        )
        raise ParameterValidationError(
            f"{len(errors)} parameter error(s) in template bindings", errors
        )
    return values


def evaluate_conditions(template: Template, parameters: Mapping[str, ParameterValue]) -> dict[str, bool]:
    """Evaluate every condition, each after the conditions it references."""
    results: dict[str, bool] = {}
    for name in template.condition_order():
        results[name] = evaluate(template.conditions[name], parameters, results, f"Conditions.{name}")
    return {name: results[name] for name in template.conditions}


def evaluate(
    expr: Any,
    parameters: Mapping[str, ParameterValue],
    conditions: Mapping[str, bool],
    referrer: str,
) -> bool:
    """Evaluate a boolean expression over bound parameters and earlier conditions."""
    result = _value_of(expr, parameters, conditions, referrer)
    if not isinstance(result, bool):
        raise TemplateError(f"{referrer}: {expr!r} does not evaluate to a boolean.")
    return result


def _value_of(
    expr: Any,
    parameters: Mapping[str, ParameterValue],
    conditions: Mapping[str, bool],
    referrer: str,
) -> Any:
    if isinstance(expr, Ref):
        if expr.name not in parameters:
            raise UnresolvedReference(expr.name, referrer)
        return parameters[expr.name]
    if isinstance(expr, Condition):
        if expr.name not in conditions:
            raise UnresolvedReference(expr.name, referrer)
        return conditions[expr.name]
    if isinstance(expr, Equals):
        return _value_of(expr.left, parameters, conditions, referrer) == _value_of(
            expr.right, parameters, conditions, referrer
        )
    if isinstance(expr, Not):
        return not evaluate(expr.condition, parameters, conditions, referrer)
    if isinstance(expr, And):
        return all(evaluate(c, parameters, conditions, referrer) for c in expr.conditions)
    if isinstance(expr, Or):
        return any(evaluate(c, parameters, conditions, referrer) for c in expr.conditions)
    return expr


def _assertion_refs(rule: Rule) -> set[str]:
    names: set[str] = set()
    for assertion in rule.assertions:
        names |= ref_names(assertion.test)
    return names


def _check_rule(rule: Rule, values: Mapping[str, ParameterValue]) -> list[ConstraintViolation]:
    referrer = f"Rules.{rule.name}"
    if rule.condition is not None and not evaluate(rule.condition, values, {}, referrer):
        return []
    violations: list[ConstraintViolation] = []
    for assertion in rule.assertions:
        if not evaluate(assertion.test, values, {}, referrer):
            supplied = {name: values[name] for name in sorted(ref_names(assertion.test))}
            violations.append(ConstraintViolation(rule.name, supplied, assertion.description))
    return violations


class _Collapser:
    """Collapses one declaration's expressions to concrete values."""

    def __init__(
        self,
        parameters: Mapping[str, ParameterValue],
        conditions: Mapping[str, bool],
        resources: set[str],
        referrer: str,
    ) -> None:
        self._parameters = parameters
        self._conditions = conditions
        self._resources = resources
        self._referrer = referrer

    def collapse(self, value: Any) -> Any:
        """Return ``value`` collapsed, or ``NO_VALUE`` if it must be omitted."""
        if isinstance(value, If):
            branch = value.if_true if self._conditions[value.condition] else value.if_false
            return self.collapse(branch)
        if isinstance(value, Ref):
            if value.name in self._parameters:
                return self._parameters[value.name]
            return self._resource_ref(value.name, None)
        if isinstance(value, GetAtt):
            return self._resource_ref(value.resource, value.attribute)
        if isinstance(value, Base64):
            text = self.collapse(value.value)
            if not isinstance(text, str):
                raise TemplateError(f"{self._referrer}: Base64 needs a string, got {text!r}.")
            return base64.b64encode(text.encode("utf-8")).decode("ascii")
        if isinstance(value, BOOLEAN_EXPRESSIONS):
            return evaluate(value, self._parameters, self._conditions, self._referrer)
        if isinstance(value, dict):
            collapsed = {key: self.collapse(item) for key, item in value.items()}
            return {key: item for key, item in collapsed.items() if item is not NO_VALUE}
        if isinstance(value, list | tuple):
            items = [self.collapse(item) for item in value]
            return [item for item in items if item is not NO_VALUE]
        return value

    def _resource_ref(self, name: str, attribute: str | None) -> AttributeRef:
        if name not in self._resources:
            raise UnresolvedReference(name, self._referrer)
        return AttributeRef(name, attribute)


def _resolve_resources(
    template: Template,
    parameters: Mapping[str, ParameterValue],
    conditions: Mapping[str, bool],
) -> list[ResolvedResource]:
    declarations = [
        declaration
        for declaration in template.resources
        if declaration.condition is None or conditions[declaration.condition]
    ]
    included = {declaration.name for declaration in declarations}

    resolved: dict[str, ResolvedResource] = {}
    graph: dict[str, set[str]] = {}
    for declaration in declarations:
        referrer = f"Resources.{declaration.name}"
        properties = _Collapser(parameters, conditions, included, referrer).collapse(
            declaration.properties
        )
        dependencies = {ref.resource for ref in attribute_refs(properties)}
        for name in declaration.depends_on:
            if name not in included:
                raise UnresolvedReference(name, referrer)
            dependencies.add(name)
        graph[declaration.name] = dependencies
        resolved[declaration.name] = ResolvedResource(
            name=declaration.name,
            type=declaration.type,
            properties=properties,
            depends_on=tuple(sorted(dependencies)),
        )

    try:
        order = list(graphlib.TopologicalSorter(graph).static_order())
    except graphlib.CycleError as exc:
        raise DependencyCycle(exc.args[1]) from exc
    return [resolved[name] for name in order]
