"""Pulumi stack entry point for the forecast demo environment."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any, Protocol

import pulumi
import structlog

from forecastlab_infra.config import StackConfig
from forecastlab_infra.forecast_demo import forecast_demo_template
from forecastlab_infra.providers.aws.iam import AwsRole, AwsRoleArgs
from forecastlab_infra.providers.aws.notebook import (
    AwsNotebook,
    AwsNotebookArgs,
    AwsNotebookLifecycle,
    AwsNotebookLifecycleArgs,
)
from forecastlab_infra.providers.aws.storage import AwsStorage, AwsStorageArgs
from forecastlab_infra.template.expressions import AttributeRef, substitute
from forecastlab_infra.template.resolver import ResolvedStack, resolve
from forecastlab_infra.template.template import Template

logger: logging.Logger = logging.getLogger(__name__)


class ProvisionedResource(Protocol):
    """A provider component that can answer ``Ref``/``GetAtt`` lookups."""

    def attribute(self, name: str | None) -> pulumi.Output[Any]: ...


Provisioner = Callable[[str, Mapping[str, Any]], ProvisionedResource]

_AWS_PROVISIONERS: dict[str, Provisioner] = {
    "AWS::S3::Bucket": lambda name, props: AwsStorage(
        name, AwsStorageArgs.from_properties(props)
    ),
    "AWS::IAM::Role": lambda name, props: AwsRole(name, AwsRoleArgs.from_properties(props)),
    "AWS::SageMaker::NotebookInstanceLifecycleConfig": lambda name, props: AwsNotebookLifecycle(
        name, AwsNotebookLifecycleArgs.from_properties(props)
    ),
    "AWS::SageMaker::NotebookInstance": lambda name, props: AwsNotebook(
        name, AwsNotebookArgs.from_properties(props)
    ),
}


class ForecastLabStack:
    """Resolves the demo template and hands the resolved graph to Pulumi."""

    def __init__(self, config: StackConfig, template: Template | None = None) -> None:
        """Initialise the stack with its configuration and template."""
        self._config: StackConfig = config
        self._template: Template = template or forecast_demo_template()

    def resolve(self) -> ResolvedStack:
        """Resolve the template against the configured parameter bindings."""
        return resolve(self._template, self._config.parameter_bindings())

    def provision(self) -> dict[str, pulumi.Output[Any]]:
        """Create Pulumi resources in dependency order and return the stack outputs."""
        resolved = self.resolve()
        components: dict[str, ProvisionedResource] = {}

        def lookup(ref: AttributeRef) -> pulumi.Output[Any]:
            return components[ref.resource].attribute(ref.attribute)

        for resource in resolved.resources:
            provisioner = _AWS_PROVISIONERS.get(resource.type)
            if provisioner is None:
                raise NotImplementedError(f"Resource type '{resource.type}' not yet implemented.")
            logger.debug(
                "provisioning_resource",
                extra={"resource": resource.name, "type": resource.type},
            )
            properties = substitute(resource.properties, lookup)
            components[resource.name] = provisioner(f"forecastlab-{resource.name}", properties)

        return {
            output.name: pulumi.Output.from_input(substitute(output.value, lookup))
            for output in resolved.outputs
        }

    def run(self) -> None:
        """Provision the full stack and export its outputs."""
        logger.info(
            "stack_run_started",
            extra={"bound_parameters": sorted(self._config.parameter_bindings())},
        )
        for name, value in self.provision().items():
            pulumi.export(name, value)


if __name__ == "__main__":
    structlog.configure(wrapper_class=structlog.make_filtering_bound_logger(logging.INFO))
    ForecastLabStack(config=StackConfig.load()).run()
