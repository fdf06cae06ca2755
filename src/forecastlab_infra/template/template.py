"""Declarative template model: parameters, conditions, rules, resources, outputs."""

from __future__ import annotations

import graphlib
import logging
from collections.abc import Iterable
from typing import Any

from pydantic import BaseModel, ConfigDict

from forecastlab_infra.template.errors import (
    DependencyCycle,
    DuplicateName,
    TemplateError,
    UnresolvedReference,
)
from forecastlab_infra.template.expressions import (
    BOOLEAN_EXPRESSIONS,
    Ref,
    condition_names,
    getatt_resources,
    ref_names,
    walk,
)
from forecastlab_infra.template.parameters import ParameterSpec

logger: logging.Logger = logging.getLogger(__name__)

_LITERALS = (str, int, float, bool)


class RuleAssertion(BaseModel):
    """A boolean test over parameters with the message shown when it fails."""

    model_config = ConfigDict(frozen=True)

    test: Any
    description: str


class Rule(BaseModel):
    """Cross-parameter checks applied while binding parameters.

    When ``condition`` is set, the assertions only apply if it evaluates true.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    condition: Any = None
    assertions: tuple[RuleAssertion, ...]


class ResourceDeclaration(BaseModel):
    """A named, typed record of properties for the provisioning engine."""

    model_config = ConfigDict(frozen=True)

    name: str
    type: str
    properties: dict[str, Any] = {}
    condition: str | None = None
    depends_on: tuple[str, ...] = ()


class OutputDeclaration(BaseModel):
    """A named value exposed once the run completes."""

    model_config = ConfigDict(frozen=True)

    name: str
    value: Any
    description: str = ""
    condition: str | None = None


class Template(BaseModel):
    """A complete declarative template.

    Call :meth:`check` to verify that every name used by an expression is
    declared before resolving the template against parameter bindings.
    """

    model_config = ConfigDict(frozen=True)

    description: str = ""
    parameters: tuple[ParameterSpec, ...] = ()
    conditions: dict[str, Any] = {}
    rules: tuple[Rule, ...] = ()
    resources: tuple[ResourceDeclaration, ...] = ()
    outputs: tuple[OutputDeclaration, ...] = ()

    @property
    def parameter_names(self) -> set[str]:
        return {p.name for p in self.parameters}

    @property
    def resource_names(self) -> set[str]:
        return {r.name for r in self.resources}

    def resource(self, name: str) -> ResourceDeclaration:
        """Return the resource declared as ``name``."""
        for declaration in self.resources:
            if declaration.name == name:
                return declaration
        raise UnresolvedReference(name, "Resources")

    def condition_order(self) -> list[str]:
        """Return condition names ordered so each follows the conditions it uses.

        Raises:
            DependencyCycle: if conditions reference each other in a loop.
        """
        deps = {name: condition_names(expr) for name, expr in self.conditions.items()}
        try:
            return list(graphlib.TopologicalSorter(deps).static_order())
        except graphlib.CycleError as exc:
            raise DependencyCycle(exc.args[1]) from exc

    def check(self) -> None:
        """Verify names are unique and every reference targets a declaration.

        Raises:
            DuplicateName: if a name is declared twice in one namespace.
            UnresolvedReference: if an expression names an undeclared
                parameter, condition or resource.
            DependencyCycle: if conditions reference each other in a loop.
            TemplateError: if a condition or rule uses an expression that is
                only valid inside resource properties.
        """
        _check_unique((p.name for p in self.parameters), "Parameters")
        _check_unique((r.name for r in self.resources), "Resources")
        _check_unique((o.name for o in self.outputs), "Outputs")
        _check_unique((r.name for r in self.rules), "Rules")
        for name in sorted(self.parameter_names & self.resource_names):
            raise DuplicateName(name, "Parameters and Resources")

        for name, expr in self.conditions.items():
            self._check_boolean(expr, f"Conditions.{name}", allow_conditions=True)
        self.condition_order()

        for rule in self.rules:
            referrer = f"Rules.{rule.name}"
            if rule.condition is not None:
                self._check_boolean(rule.condition, referrer, allow_conditions=False)
            for assertion in rule.assertions:
                self._check_boolean(assertion.test, referrer, allow_conditions=False)

        for declaration in self.resources:
            referrer = f"Resources.{declaration.name}"
            self._check_condition_name(declaration.condition, referrer)
            for dependency in declaration.depends_on:
                if dependency not in self.resource_names:
                    raise UnresolvedReference(dependency, referrer)
            self._check_value(declaration.properties, referrer)

        for output in self.outputs:
            referrer = f"Outputs.{output.name}"
            self._check_condition_name(output.condition, referrer)
            self._check_value(output.value, referrer)

        logger.debug(
            "template_checked",
            extra={
                "parameters": len(self.parameters),
                "conditions": len(self.conditions),
                "resources": len(self.resources),
            },
        )

    def _check_condition_name(self, name: str | None, referrer: str) -> None:
        if name is not None and name not in self.conditions:
            raise UnresolvedReference(name, referrer)

    def _check_boolean(self, expr: Any, referrer: str, *, allow_conditions: bool) -> None:
        for node in walk(expr):
            if isinstance(node, Ref):
                if node.name not in self.parameter_names:
                    raise UnresolvedReference(node.name, referrer)
            elif not isinstance(node, BOOLEAN_EXPRESSIONS + _LITERALS):
                raise TemplateError(f"{referrer}: {node!r} is not allowed in a condition.")
        names = condition_names(expr)
        if names and not allow_conditions:
            raise TemplateError(f"{referrer}: conditions cannot be referenced here.")
        for name in sorted(names):
            self._check_condition_name(name, referrer)

    def _check_value(self, value: Any, referrer: str) -> None:
        targets = self.parameter_names | self.resource_names
        for name in sorted(ref_names(value)):
            if name not in targets:
                raise UnresolvedReference(name, referrer)
        for name in sorted(getatt_resources(value)):
            if name not in self.resource_names:
                raise UnresolvedReference(name, referrer)
        for name in sorted(condition_names(value)):
            self._check_condition_name(name, referrer)


def _check_unique(names: Iterable[str], section: str) -> None:
    seen: set[str] = set()
    for name in names:
        if name in seen:
            raise DuplicateName(name, section)
        seen.add(name)
