"""Unit tests for the AWS SageMaker notebook components using Pulumi mocks."""
from __future__ import annotations

import pulumi
import pytest
from pulumi.runtime import Mocks

from forecastlab_infra.template.errors import UnresolvedReference


class ForecastMocks(Mocks):
    def __init__(self) -> None:
        self.inputs: dict[str, dict[str, object]] = {}

    def new_resource(
        self, args: pulumi.runtime.MockResourceArgs
    ) -> tuple[str, dict[str, object]]:
        self.inputs[args.name] = dict(args.inputs)
        outputs = dict(args.inputs)
        outputs.setdefault("name", args.name)
        outputs.setdefault("arn", f"arn:aws:sagemaker:us-west-2:123456789012:{args.name}")
        if args.typ == "aws:sagemaker/notebookInstance:NotebookInstance":
            outputs.setdefault("url", f"{outputs['name']}.notebook.us-west-2.sagemaker.aws")
        return (f"{args.name}-id", outputs)

    def call(
        self, args: pulumi.runtime.MockCallArgs
    ) -> tuple[dict[str, object], list[tuple[str, str]]]:
        return ({}, [])


pulumi.runtime.set_mocks(ForecastMocks())

from forecastlab_infra.providers.aws.notebook import (  # noqa: E402
    AwsNotebook,
    AwsNotebookArgs,
    AwsNotebookLifecycle,
    AwsNotebookLifecycleArgs,
)

_ROLE_ARN = "arn:aws:iam::123456789012:role/forecast"


def test_notebook_args_from_properties_without_vpc() -> None:
    args = AwsNotebookArgs.from_properties(
        {
            "InstanceType": "ml.t2.medium",
            "NotebookInstanceName": "ForecastDemoLab",
            "RoleArn": _ROLE_ARN,
            "VolumeSizeInGB": 10,
        }
    )
    assert args.notebook_name == "ForecastDemoLab"
    assert args.volume_size == 10
    assert args.security_group_ids is None
    assert args.subnet_id is None


def test_lifecycle_args_take_first_script() -> None:
    args = AwsNotebookLifecycleArgs.from_properties({"OnStart": [{"Content": "IyEvYmluL2Jhc2g="}]})
    assert args.on_start == "IyEvYmluL2Jhc2g="
    assert args.on_create is None


@pulumi.runtime.test
def test_lifecycle_config_name_is_set() -> None:
    pulumi.runtime.set_mocks(ForecastMocks())
    lifecycle = AwsNotebookLifecycle("test-lc", AwsNotebookLifecycleArgs(on_start="ZWNobw=="))

    def check(name: str) -> None:
        assert name

    return lifecycle.attribute("NotebookInstanceLifecycleConfigName").apply(check)


@pulumi.runtime.test
def test_notebook_name_and_url() -> None:
    pulumi.runtime.set_mocks(ForecastMocks())
    notebook = AwsNotebook(
        "test-nb",
        AwsNotebookArgs(role_arn=_ROLE_ARN, instance_type="ml.t2.medium", notebook_name="ForecastDemoLab"),
    )
    assert notebook.outputs.url is not None

    def check(values: list[str]) -> None:
        name, url = values
        assert name == "ForecastDemoLab"
        assert url.startswith("ForecastDemoLab.")

    return pulumi.Output.all(notebook.outputs.notebook_name, notebook.outputs.url).apply(check)


@pulumi.runtime.test
def test_notebook_in_vpc() -> None:
    mocks = ForecastMocks()
    pulumi.runtime.set_mocks(mocks)
    notebook = AwsNotebook(
        "test-vpc",
        AwsNotebookArgs(
            role_arn=_ROLE_ARN,
            instance_type="ml.t2.medium",
            volume_size=50,
            security_group_ids=["sg-0123"],
            subnet_id="subnet-0456",
        ),
    )

    def check(_: str) -> None:
        inputs = mocks.inputs["test-vpc-instance"]
        assert inputs["securityGroups"] == ["sg-0123"]
        assert inputs["subnetId"] == "subnet-0456"
        assert inputs["volumeSize"] == 50

    return notebook.outputs.notebook_arn.apply(check)


@pulumi.runtime.test
def test_notebook_without_vpc_omits_network_inputs() -> None:
    mocks = ForecastMocks()
    pulumi.runtime.set_mocks(mocks)
    notebook = AwsNotebook(
        "test-novpc",
        AwsNotebookArgs(role_arn=_ROLE_ARN, instance_type="ml.t2.medium"),
    )

    with pytest.raises(UnresolvedReference):
        notebook.attribute("Url")

    def check(_: str) -> None:
        inputs = mocks.inputs["test-novpc-instance"]
        assert "securityGroups" not in inputs
        assert "subnetId" not in inputs

    return notebook.outputs.notebook_arn.apply(check)
