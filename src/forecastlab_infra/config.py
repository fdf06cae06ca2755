"""Typed configuration loaded from environment variables at startup."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings, SettingsConfigDict

logger: logging.Logger = logging.getLogger(__name__)

# Settings field -> template parameter name.
_PARAMETER_NAMES: dict[str, str] = {
    "bucket_name": "BucketName",
    "notebook_name": "NotebookName",
    "volume_size": "VolumeSize",
    "use_vpc": "UseVPC",
    "security_group": "SecurityGroup",
    "private_subnet": "PrivateSubnet",
}


class StackConfig(BaseSettings):
    """Parameter bindings for the forecast demo stack.

    All values are sourced from environment variables at startup. A variable
    that is not set leaves the parameter unbound, so the template default
    applies; a variable set to the empty string binds an explicit blank.
    Range and pattern checks are left to template resolution so that every
    offending parameter is reported together.
    """

    model_config = SettingsConfigDict(
        env_prefix="FORECASTLAB_",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    bucket_name: str | None = None
    notebook_name: str | None = None
    volume_size: str | None = None
    use_vpc: str | None = None
    security_group: str | None = None
    private_subnet: str | None = None

    @classmethod
    def load(cls) -> StackConfig:
        """Load configuration from the environment.

        Logs the bound parameter names at DEBUG level.
        """
        config = cls()
        logger.debug(
            "stack_config_loaded",
            extra={"bound_parameters": sorted(config.parameter_bindings())},
        )
        return config

    def parameter_bindings(self) -> dict[str, str]:
        """Return template parameter bindings for every setting explicitly provided."""
        bindings: dict[str, str] = {}
        for field_name, parameter in _PARAMETER_NAMES.items():
            value = getattr(self, field_name)
            if field_name in self.model_fields_set and value is not None:
                bindings[parameter] = value
        return bindings
