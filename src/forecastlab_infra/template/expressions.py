"""Template expressions: references, conditions and conditional values.

Property values in a resource declaration are plain data (strings, numbers,
booleans, dicts, lists) that may embed the expression nodes defined here.
The resolver collapses them into concrete values, ``AttributeRef``
placeholders, or omits them entirely when they evaluate to ``NO_VALUE``.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator
from dataclasses import dataclass
from typing import Any, Final


class _NoValue:
    """Sentinel marking a property (or list item) that must be left out."""

    _instance: _NoValue | None = None

    def __new__(cls) -> _NoValue:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NO_VALUE"


NO_VALUE: Final[_NoValue] = _NoValue()


@dataclass(frozen=True)
class Ref:
    """Reference to a parameter's bound value or to a resource's primary identifier."""

    name: str


@dataclass(frozen=True)
class GetAtt:
    """Reference to a generated attribute of another resource."""

    resource: str
    attribute: str


@dataclass(frozen=True)
class Condition:
    """Reference to the boolean result of a named condition."""

    name: str


@dataclass(frozen=True)
class Equals:
    left: Any
    right: Any


@dataclass(frozen=True)
class Not:
    condition: Any


@dataclass(frozen=True)
class And:
    conditions: tuple[Any, ...]


@dataclass(frozen=True)
class Or:
    conditions: tuple[Any, ...]


@dataclass(frozen=True)
class If:
    """Pick ``if_true`` or ``if_false`` depending on a named condition.

    Either branch may be ``NO_VALUE`` to drop the enclosing property.
    """

    condition: str
    if_true: Any
    if_false: Any


@dataclass(frozen=True)
class Base64:
    value: Any


@dataclass(frozen=True)
class AttributeRef:
    """Placeholder for an attribute generated by the provisioning engine.

    ``attribute`` is ``None`` for a plain ``Ref`` to a resource, meaning the
    resource's primary identifier.
    """

    resource: str
    attribute: str | None = None

    def to_document(self) -> dict[str, Any]:
        if self.attribute is None:
            return {"Ref": self.resource}
        return {"Fn::GetAtt": [self.resource, self.attribute]}


BOOLEAN_EXPRESSIONS: Final = (Condition, Equals, Not, And, Or)


def children(node: Any) -> Iterator[Any]:
    """Yield the direct sub-values of a property value or expression node."""
    if isinstance(node, dict):
        yield from node.values()
    elif isinstance(node, list | tuple):
        yield from node
    elif isinstance(node, Equals):
        yield node.left
        yield node.right
    elif isinstance(node, Not):
        yield node.condition
    elif isinstance(node, And | Or):
        yield from node.conditions
    elif isinstance(node, If):
        yield node.if_true
        yield node.if_false
    elif isinstance(node, Base64):
        yield node.value


def walk(node: Any) -> Iterator[Any]:
    """Yield ``node`` and every value nested inside it, depth first."""
    yield node
    for child in children(node):
        yield from walk(child)


def condition_names(node: Any) -> set[str]:
    """Return the condition names used by ``Condition`` and ``If`` nodes within ``node``."""
    names: set[str] = set()
    for item in walk(node):
        if isinstance(item, Condition):
            names.add(item.name)
        elif isinstance(item, If):
            names.add(item.condition)
    return names


def ref_names(node: Any) -> set[str]:
    """Return the names targeted by ``Ref`` nodes within ``node``."""
    return {item.name for item in walk(node) if isinstance(item, Ref)}


def getatt_resources(node: Any) -> set[str]:
    """Return the resource names targeted by ``GetAtt`` nodes within ``node``."""
    return {item.resource for item in walk(node) if isinstance(item, GetAtt)}


def attribute_refs(node: Any) -> Iterator[AttributeRef]:
    """Yield every ``AttributeRef`` placeholder left in a resolved value."""
    for item in walk(node):
        if isinstance(item, AttributeRef):
            yield item


def substitute(node: Any, lookup: Callable[[AttributeRef], Any]) -> Any:
    """Replace ``AttributeRef`` placeholders in a resolved value using ``lookup(ref)``."""
    if isinstance(node, AttributeRef):
        return lookup(node)
    if isinstance(node, dict):
        return {key: substitute(value, lookup) for key, value in node.items()}
    if isinstance(node, list):
        return [substitute(value, lookup) for value in node]
    return node


def to_document(node: Any) -> Any:
    """Render a resolved value as plain JSON-ready data."""
    return substitute(node, lambda ref: ref.to_document())
