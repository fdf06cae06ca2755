"""Provider-agnostic hosted notebook component interfaces."""

from __future__ import annotations

import logging
from typing import Protocol

import pulumi

logger: logging.Logger = logging.getLogger(__name__)


class LifecycleOutputs:
    """Resolved outputs from a provisioned notebook lifecycle configuration."""

    def __init__(
        self,
        config_name: pulumi.Output[str],
        config_arn: pulumi.Output[str],
    ) -> None:
        self.config_name: pulumi.Output[str] = config_name
        self.config_arn: pulumi.Output[str] = config_arn


class NotebookOutputs:
    """Resolved outputs from a provisioned notebook instance."""

    def __init__(
        self,
        notebook_name: pulumi.Output[str],
        notebook_arn: pulumi.Output[str],
        url: pulumi.Output[str] | None = None,
    ) -> None:
        """Initialise notebook outputs.

        Args:
            notebook_name: Name of the notebook instance.
            notebook_arn: Provider-specific identifier of the instance.
            url: Address of the hosted notebook, once known.
        """
        self.notebook_name: pulumi.Output[str] = notebook_name
        self.notebook_arn: pulumi.Output[str] = notebook_arn
        self.url: pulumi.Output[str] | None = url


class ForecastNotebookLifecycle(Protocol):
    """Provider-agnostic interface for the notebook bootstrap configuration."""

    @property
    def outputs(self) -> LifecycleOutputs:
        """Return the resolved lifecycle configuration outputs."""
        ...


class ForecastNotebook(Protocol):
    """Provider-agnostic interface for the hosted notebook environment."""

    @property
    def outputs(self) -> NotebookOutputs:
        """Return the resolved notebook outputs."""
        ...
