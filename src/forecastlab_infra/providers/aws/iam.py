"""AWS IAM implementation of ForecastRole."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

import pulumi
import pulumi_aws as aws

from forecastlab_infra.components.identity import RoleOutputs
from forecastlab_infra.template.errors import UnresolvedReference

logger: logging.Logger = logging.getLogger(__name__)


class AwsRoleArgs:
    """Arguments for the IAM execution role component."""

    def __init__(
        self,
        assume_role_policy: Mapping[str, Any],
        path: str = "/",
        managed_policy_arns: list[str] | None = None,
    ) -> None:
        self.assume_role_policy: Mapping[str, Any] = assume_role_policy
        self.path: str = path
        self.managed_policy_arns: list[str] = managed_policy_arns or []

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> AwsRoleArgs:
        """Build arguments from resolved ``AWS::IAM::Role`` properties."""
        return cls(
            assume_role_policy=properties["AssumeRolePolicyDocument"],
            path=properties.get("Path", "/"),
            managed_policy_arns=list(properties.get("ManagedPolicyArns", [])),
        )


class AwsRole(pulumi.ComponentResource):
    """AWS IAM role satisfying ``ForecastRole``.

    Trust policy and managed policies come from the resolved template; each
    managed policy is attached with its own ``RolePolicyAttachment``.
    """

    def __init__(
        self,
        name: str,
        args: AwsRoleArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        super().__init__("forecastlab:aws:Role", name, {}, opts)

        logger.debug(
            "provisioning_aws_role",
            extra={"component": name, "managed_policies": len(args.managed_policy_arns)},
        )

        role = aws.iam.Role(
            f"{name}-role",
            aws.iam.RoleArgs(
                assume_role_policy=json.dumps(args.assume_role_policy),
                path=args.path,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        for policy_arn in args.managed_policy_arns:
            policy_name = policy_arn.rsplit("/", 1)[-1].lower()
            aws.iam.RolePolicyAttachment(
                f"{name}-{policy_name}",
                aws.iam.RolePolicyAttachmentArgs(
                    role=role.name,
                    policy_arn=policy_arn,
                ),
                opts=pulumi.ResourceOptions(parent=self),
            )

        self._name: str = name
        self._outputs: RoleOutputs = RoleOutputs(
            role_name=role.name,
            role_arn=role.arn,
            role_id=role.unique_id,
        )
        self._attributes: dict[str | None, pulumi.Output[Any]] = {
            None: role.name,
            "Arn": role.arn,
            "RoleId": role.unique_id,
        }
        self.register_outputs({
            "role_name": self._outputs.role_name,
            "role_arn": self._outputs.role_arn,
        })

    @property
    def outputs(self) -> RoleOutputs:
        """Return the resolved role outputs."""
        return self._outputs

    def attribute(self, name: str | None) -> pulumi.Output[Any]:
        """Return the output behind a ``Ref`` (``None``) or ``GetAtt`` attribute name."""
        try:
            return self._attributes[name]
        except KeyError:
            raise UnresolvedReference(f"{self._name}.{name}", "AWS::IAM::Role") from None
