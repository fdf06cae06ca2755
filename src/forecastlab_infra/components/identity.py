"""Provider-agnostic execution role component interface."""

from __future__ import annotations

import logging
from typing import Protocol

import pulumi

logger: logging.Logger = logging.getLogger(__name__)


class RoleOutputs:
    """Resolved outputs from a provisioned execution role."""

    def __init__(
        self,
        role_name: pulumi.Output[str],
        role_arn: pulumi.Output[str],
        role_id: pulumi.Output[str],
    ) -> None:
        self.role_name: pulumi.Output[str] = role_name
        self.role_arn: pulumi.Output[str] = role_arn
        self.role_id: pulumi.Output[str] = role_id


class ForecastRole(Protocol):
    """Provider-agnostic interface for the notebook execution role."""

    @property
    def outputs(self) -> RoleOutputs:
        """Return the resolved role outputs."""
        ...
