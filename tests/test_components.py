"""Verify that component Protocol interfaces are importable and well-typed."""
from __future__ import annotations

import pulumi

from forecastlab_infra.components.identity import ForecastRole, RoleOutputs
from forecastlab_infra.components.notebook import (
    ForecastNotebook,
    ForecastNotebookLifecycle,
    LifecycleOutputs,
    NotebookOutputs,
)
from forecastlab_infra.components.storage import ForecastStorage, StorageOutputs


def test_protocols_are_importable() -> None:
    assert ForecastStorage is not None
    assert ForecastRole is not None
    assert ForecastNotebook is not None
    assert ForecastNotebookLifecycle is not None


def test_storage_outputs_constructible() -> None:
    outputs = StorageOutputs(
        bucket_name=pulumi.Output.from_input("forecast-data"),
        bucket_arn=pulumi.Output.from_input("arn:aws:s3:::forecast-data"),
    )
    assert outputs is not None


def test_role_outputs_constructible() -> None:
    outputs = RoleOutputs(
        role_name=pulumi.Output.from_input("forecast-role"),
        role_arn=pulumi.Output.from_input("arn:aws:iam::123456789012:role/forecast-role"),
        role_id=pulumi.Output.from_input("AROAEXAMPLE"),
    )
    assert outputs is not None


def test_lifecycle_outputs_constructible() -> None:
    outputs = LifecycleOutputs(
        config_name=pulumi.Output.from_input("forecast-lifecycle"),
        config_arn=pulumi.Output.from_input("arn:aws:sagemaker:us-west-2:123456789012:lc"),
    )
    assert outputs is not None


def test_notebook_outputs_url_defaults_to_none() -> None:
    outputs = NotebookOutputs(
        notebook_name=pulumi.Output.from_input("ForecastDemoLab"),
        notebook_arn=pulumi.Output.from_input("arn:aws:sagemaker:us-west-2:123456789012:nb"),
    )
    assert outputs.url is None
