"""Errors raised while checking a template or resolving it against bindings."""

from __future__ import annotations

from collections.abc import Sequence


class TemplateError(Exception):
    """Base class for every template resolution failure."""


class MissingRequiredParameter(TemplateError):
    """A parameter without a default was not supplied."""

    def __init__(self, parameter: str) -> None:
        super().__init__(f"Parameter '{parameter}' has no default and was not supplied.")
        self.parameter: str = parameter


class ConstraintViolation(TemplateError):
    """A supplied value fails its type, pattern, range or allowed-value check."""

    def __init__(self, parameter: str, value: object, reason: str) -> None:
        super().__init__(f"Parameter '{parameter}' rejected value {value!r}: {reason}")
        self.parameter: str = parameter
        self.value: object = value
        self.reason: str = reason


class UnresolvedReference(TemplateError):
    """A reference names something that is not declared (or not available)."""

    def __init__(self, name: str, referrer: str) -> None:
        super().__init__(f"'{referrer}' references undeclared name '{name}'.")
        self.name: str = name
        self.referrer: str = referrer


class DuplicateName(TemplateError):
    """Two declarations share a name within one namespace."""

    def __init__(self, name: str, section: str) -> None:
        super().__init__(f"'{name}' is declared more than once in {section}.")
        self.name: str = name
        self.section: str = section


class DependencyCycle(TemplateError):
    """Conditions or resources depend on each other in a loop."""

    def __init__(self, nodes: Sequence[str]) -> None:
        super().__init__(f"Dependency cycle detected: {' -> '.join(nodes)}")
        self.nodes: tuple[str, ...] = tuple(nodes)


class ParameterValidationError(ExceptionGroup):
    """Every binding error found in one pass over the supplied parameters.

    Members are ``MissingRequiredParameter``, ``ConstraintViolation`` or
    ``UnresolvedReference`` instances, one per offending name.
    """

    def derive(self, excs: Sequence[Exception]) -> ParameterValidationError:
        return ParameterValidationError(self.message, excs)

    @property
    def names(self) -> list[str]:
        """Return the offending parameter or rule names, in report order."""
        names: list[str] = []
        for exc in self.exceptions:
            if isinstance(exc, MissingRequiredParameter | ConstraintViolation):
                names.append(exc.parameter)
            elif isinstance(exc, UnresolvedReference):
                names.append(exc.name)
        return names
