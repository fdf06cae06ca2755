"""Typed input parameter declarations and their value constraints."""

from __future__ import annotations

import math
import re
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from forecastlab_infra.template.errors import ConstraintViolation

_NUMBER = re.compile(r"[+-]?(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)")

ParameterValue = str | int | float


class ParameterType(StrEnum):
    """Declared type of a template parameter."""

    STRING = "String"
    NUMBER = "Number"


class ParameterSpec(BaseModel):
    """A named, typed input to a provisioning run.

    A parameter without a ``default`` is required. Supplied values are
    checked against every declared constraint by :meth:`bind`.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    type: ParameterType = ParameterType.STRING
    default: ParameterValue | None = None
    description: str = ""
    allowed_values: tuple[ParameterValue, ...] | None = None
    allowed_pattern: str | None = None
    constraint_description: str | None = None
    min_value: int | float | None = None
    max_value: int | float | None = None
    integer: bool = False
    min_length: int | None = None
    max_length: int | None = None

    @property
    def required(self) -> bool:
        """Return ``True`` when the parameter has no default."""
        return self.default is None

    def bind(self, value: object) -> ParameterValue:
        """Validate ``value`` and return it converted to the declared type.

        The empty string is an explicit value like any other. The minimum
        length and the allowed pattern are only applied to non-empty strings.
        Numeric strings are plain decimals such as ``"20"`` or ``"-1.5"``.

        Raises:
            ConstraintViolation: if the value has the wrong type or fails a
                declared constraint.
        """
        if self.type == ParameterType.NUMBER:
            return self._bind_number(value)
        return self._bind_string(value)

    def _violation(self, value: object, reason: str) -> ConstraintViolation:
        if self.constraint_description:
            reason = f"{reason} ({self.constraint_description})"
        return ConstraintViolation(self.name, value, reason)

    def _bind_string(self, value: object) -> str:
        if not isinstance(value, str):
            raise self._violation(value, "expected a string")
        if self.allowed_values is not None and value not in self.allowed_values:
            allowed = ", ".join(repr(v) for v in self.allowed_values)
            raise self._violation(value, f"must be one of {allowed}")
        if value and self.min_length is not None and len(value) < self.min_length:
            raise self._violation(value, f"must be at least {self.min_length} characters")
        if self.max_length is not None and len(value) > self.max_length:
            raise self._violation(value, f"must be at most {self.max_length} characters")
        if value and self.allowed_pattern is not None:
            if re.fullmatch(self.allowed_pattern, value) is None:
                raise self._violation(value, f"must match pattern {self.allowed_pattern}")
        return value

    def _bind_number(self, value: object) -> int | float:
        number: int | float
        if isinstance(value, bool):
            raise self._violation(value, "expected a number")
        if isinstance(value, int | float):
            number = value
        elif isinstance(value, str):
            if _NUMBER.fullmatch(value) is None:
                raise self._violation(value, "expected a number")
            number = float(value) if "." in value else int(value)
        else:
            raise self._violation(value, "expected a number")

        if not math.isfinite(number):
            raise self._violation(value, "expected a finite number")
        if self.integer:
            if number != int(number):
                raise self._violation(value, "must be a whole number")
            number = int(number)
        if self.allowed_values is not None and number not in self.allowed_values:
            allowed = ", ".join(str(v) for v in self.allowed_values)
            raise self._violation(value, f"must be one of {allowed}")
        if self.min_value is not None and number < self.min_value:
            raise self._violation(value, f"must be at least {self.min_value}")
        if self.max_value is not None and number > self.max_value:
            raise self._violation(value, f"must be at most {self.max_value}")
        return number
