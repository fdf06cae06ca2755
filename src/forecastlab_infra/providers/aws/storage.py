"""AWS S3 implementation of ForecastStorage."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

import pulumi
import pulumi_aws as aws

from forecastlab_infra.components.storage import StorageOutputs
from forecastlab_infra.template.errors import UnresolvedReference

logger: logging.Logger = logging.getLogger(__name__)


class AwsStorageArgs:
    """Arguments for the S3 storage component."""

    def __init__(
        self,
        bucket_name: pulumi.Input[str] | None = None,
        sse_algorithm: str | None = "AES256",
        public_access_block: Mapping[str, bool] | None = None,
    ) -> None:
        self.bucket_name: pulumi.Input[str] | None = bucket_name
        self.sse_algorithm: str | None = sse_algorithm
        self.public_access_block: Mapping[str, bool] | None = public_access_block

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> AwsStorageArgs:
        """Build arguments from resolved ``AWS::S3::Bucket`` properties.

        An absent ``BucketName`` leaves naming to the provider.
        """
        rules = properties.get("BucketEncryption", {}).get("ServerSideEncryptionConfiguration", [])
        sse_algorithm = rules[0]["ServerSideEncryptionByDefault"]["SSEAlgorithm"] if rules else None
        return cls(
            bucket_name=properties.get("BucketName"),
            sse_algorithm=sse_algorithm,
            public_access_block=properties.get("PublicAccessBlockConfiguration"),
        )


class AwsStorage(pulumi.ComponentResource):
    """AWS S3 implementation satisfying ``ForecastStorage``.

    Provisions an encrypted bucket for demo datasets and forecast exports,
    with public access blocked when requested.
    """

    def __init__(
        self,
        name: str,
        args: AwsStorageArgs,
        opts: pulumi.ResourceOptions | None = None,
    ) -> None:
        """Initialise and provision the AWS storage component.

        Args:
            name: Logical Pulumi resource name.
            args: Bucket settings taken from the resolved template.
            opts: Optional Pulumi resource options.
        """
        super().__init__("forecastlab:aws:Storage", name, {}, opts)

        logger.debug(
            "provisioning_aws_storage",
            extra={"component": name, "explicit_bucket_name": args.bucket_name is not None},
        )

        encryption = None
        if args.sse_algorithm is not None:
            encryption = aws.s3.BucketServerSideEncryptionConfigurationArgs(
                rule=aws.s3.BucketServerSideEncryptionConfigurationRuleArgs(
                    apply_server_side_encryption_by_default=aws.s3.BucketServerSideEncryptionConfigurationRuleApplyServerSideEncryptionByDefaultArgs(
                        sse_algorithm=args.sse_algorithm,
                    ),
                ),
            )

        bucket = aws.s3.Bucket(
            f"{name}-bucket",
            aws.s3.BucketArgs(
                bucket=args.bucket_name,
                force_destroy=False,
                server_side_encryption_configuration=encryption,
            ),
            opts=pulumi.ResourceOptions(parent=self),
        )

        if args.public_access_block is not None:
            block = args.public_access_block
            aws.s3.BucketPublicAccessBlock(
                f"{name}-public-access",
                aws.s3.BucketPublicAccessBlockArgs(
                    bucket=bucket.id,
                    block_public_acls=block.get("BlockPublicAcls", False),
                    ignore_public_acls=block.get("IgnorePublicAcls", False),
                    block_public_policy=block.get("BlockPublicPolicy", False),
                    restrict_public_buckets=block.get("RestrictPublicBuckets", False),
                ),
                opts=pulumi.ResourceOptions(parent=self),
            )

        self._name: str = name
        self._outputs: StorageOutputs = StorageOutputs(
            bucket_name=bucket.bucket,
            bucket_arn=bucket.arn,
        )
        self._attributes: dict[str | None, pulumi.Output[Any]] = {
            None: bucket.bucket,
            "Arn": bucket.arn,
            "DomainName": bucket.bucket_domain_name,
            "RegionalDomainName": bucket.bucket_regional_domain_name,
        }

        self.register_outputs(
            {
                "bucket_name": self._outputs.bucket_name,
                "bucket_arn": self._outputs.bucket_arn,
            }
        )

    @property
    def outputs(self) -> StorageOutputs:
        """Return the resolved storage outputs."""
        return self._outputs

    def attribute(self, name: str | None) -> pulumi.Output[Any]:
        """Return the output behind a ``Ref`` (``None``) or ``GetAtt`` attribute name."""
        try:
            return self._attributes[name]
        except KeyError:
            raise UnresolvedReference(f"{self._name}.{name}", "AWS::S3::Bucket") from None
