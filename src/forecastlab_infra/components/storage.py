"""Provider-agnostic object storage component interface."""

from __future__ import annotations

import logging
from typing import Protocol

import pulumi

logger: logging.Logger = logging.getLogger(__name__)


class StorageOutputs:
    """Resolved outputs from a provisioned object storage bucket."""

    def __init__(
        self,
        bucket_name: pulumi.Output[str],
        bucket_arn: pulumi.Output[str],
    ) -> None:
        """Initialise storage outputs.

        Args:
            bucket_name: Name of the bucket, explicit or assigned by the provider.
            bucket_arn: Provider-specific identifier of the bucket.
        """
        self.bucket_name: pulumi.Output[str] = bucket_name
        self.bucket_arn: pulumi.Output[str] = bucket_arn


class ForecastStorage(Protocol):
    """Provider-agnostic interface for the demo data bucket."""

    @property
    def outputs(self) -> StorageOutputs:
        """Return the resolved storage outputs."""
        ...
