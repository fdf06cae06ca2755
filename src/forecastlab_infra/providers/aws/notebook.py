"""AWS SageMaker implementations of the notebook component interfaces."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pulumi
import pulumi_aws as aws

from forecastlab_infra.components.notebook import LifecycleOutputs, NotebookOutputs
from forecastlab_infra.template.errors import UnresolvedReference

logger: logging.Logger = logging.getLogger(__name__)


class AwsNotebookLifecycleArgs:
    """Arguments for the SageMaker notebook lifecycle configuration."""

    def __init__(
        self,
        on_start: str | None = None,
        on_create: str | None = None,
    ) -> None:
        """Initialise lifecycle arguments.

        Args:
            on_start: Base64-encoded script run each time the notebook starts.
            on_create: Base64-encoded script run once when the notebook is created.
        """
        self.on_start: str | None = on_start
        self.on_create: str | None = on_create

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> AwsNotebookLifecycleArgs:
        """Build arguments from resolved lifecycle configuration properties.

        SageMaker accepts a single script per hook, so only the first
        ``Content`` entry of ``OnStart``/``OnCreate`` is used.
        """
        on_start = properties.get("OnStart") or [{}]
        on_create = properties.get("OnCreate") or [{}]
        return cls(
            on_start=on_start[0].get("Content"),
            on_create=on_create[0].get("Content"),
        )


class AwsNotebookLifecycle(pulumi.ComponentResource):
    """SageMaker lifecycle configuration satisfying ``ForecastNotebookLifecycle``."""

    def __init__(
        self,
        name: str,
        args: AwsNotebookLifecycleArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("forecastlab:aws:NotebookLifecycle", name, {}, opts)

        logger.debug(
            "provisioning_aws_notebook_lifecycle",
            extra={"component": name, "on_start": args.on_start is not None},
        )

        config = aws.sagemaker.NotebookInstanceLifecycleConfiguration(
            f"{name}-lifecycle",
            aws.sagemaker.NotebookInstanceLifecycleConfigurationArgs(
                on_start=args.on_start,
                on_create=args.on_create,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self._name: str = name
        self._outputs: LifecycleOutputs = LifecycleOutputs(
            config_name=config.name,
            config_arn=config.arn,
        )
        self._attributes: dict[str | None, pulumi.Output[Any]] = {
            None: config.arn,
            "NotebookInstanceLifecycleConfigName": config.name,
        }
        self.register_outputs({"config_name": self._outputs.config_name})

    @property
    def outputs(self) -> LifecycleOutputs:
        """Return the resolved lifecycle configuration outputs."""
        return self._outputs

    def attribute(self, name: str | None) -> pulumi.Output[Any]:
        """Return the output behind a ``Ref`` (``None``) or ``GetAtt`` attribute name."""
        try:
            return self._attributes[name]
        except KeyError:
            raise UnresolvedReference(
                f"{self._name}.{name}", "AWS::SageMaker::NotebookInstanceLifecycleConfig"
            ) from None


class AwsNotebookArgs:
    """Arguments for the SageMaker notebook instance."""

    def __init__(
        self,
        role_arn: pulumi.Input[str],
        instance_type: str,
        notebook_name: pulumi.Input[str] | None = None,
        lifecycle_config_name: pulumi.Input[str] | None = None,
        volume_size: int | None = None,
        default_code_repository: str | None = None,
        security_group_ids: list[pulumi.Input[str]] | None = None,
        subnet_id: pulumi.Input[str] | None = None,
    ) -> None:
        self.role_arn: pulumi.Input[str] = role_arn
        self.instance_type: str = instance_type
        self.notebook_name: pulumi.Input[str] | None = notebook_name
        self.lifecycle_config_name: pulumi.Input[str] | None = lifecycle_config_name
        self.volume_size: int | None = volume_size
        self.default_code_repository: str | None = default_code_repository
        self.security_group_ids: list[pulumi.Input[str]] | None = security_group_ids
        self.subnet_id: pulumi.Input[str] | None = subnet_id

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> AwsNotebookArgs:
        """Build arguments from resolved ``AWS::SageMaker::NotebookInstance`` properties.

        Absent VPC properties stay ``None`` so the instance gets direct
        internet access instead of a VPC attachment.
        """
        volume_size = properties.get("VolumeSizeInGB")
        return cls(
            role_arn=properties["RoleArn"],
            instance_type=properties["InstanceType"],
            notebook_name=properties.get("NotebookInstanceName"),
            lifecycle_config_name=properties.get("LifecycleConfigName"),
            volume_size=int(volume_size) if volume_size is not None else None,
            default_code_repository=properties.get("DefaultCodeRepository"),
            security_group_ids=properties.get("SecurityGroupIds"),
            subnet_id=properties.get("SubnetId"),
        )


class AwsNotebook(pulumi.ComponentResource):
    """SageMaker notebook instance satisfying ``ForecastNotebook``.

    Attaches to the caller's VPC only when both a subnet and security groups
    are supplied in the arguments.
    """

    def __init__(
        self,
        name: str,
        args: AwsNotebookArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("forecastlab:aws:Notebook", name, {}, opts)

        logger.debug(
            "provisioning_aws_notebook",
            extra={
                "component": name,
                "instance_type": args.instance_type,
                "volume_size": args.volume_size,
                "vpc": args.subnet_id is not None,
            },
        )

        notebook = aws.sagemaker.NotebookInstance(
            f"{name}-instance",
            aws.sagemaker.NotebookInstanceArgs(
                name=args.notebook_name,
                role_arn=args.role_arn,
                instance_type=args.instance_type,
                lifecycle_config_name=args.lifecycle_config_name,
                volume_size=args.volume_size,
                default_code_repository=args.default_code_repository,
                security_groups=args.security_group_ids,
                subnet_id=args.subnet_id,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        self._name: str = name
        self._outputs: NotebookOutputs = NotebookOutputs(
            notebook_name=notebook.name,
            notebook_arn=notebook.arn,
            url=notebook.url,
        )
        self._attributes: dict[str | None, pulumi.Output[Any]] = {
            None: notebook.arn,
            "NotebookInstanceName": notebook.name,
        }
        self.register_outputs(
            {
                "notebook_name": self._outputs.notebook_name,
                "notebook_arn": self._outputs.notebook_arn,
            }
        )

    @property
    def outputs(self) -> NotebookOutputs:
        """Return the resolved notebook outputs."""
        return self._outputs

    def attribute(self, name: str | None) -> pulumi.Output[Any]:
        """Return the output behind a ``Ref`` (``None``) or ``GetAtt`` attribute name."""
        try:
            return self._attributes[name]
        except KeyError:
            raise UnresolvedReference(
                f"{self._name}.{name}", "AWS::SageMaker::NotebookInstance"
            ) from None
