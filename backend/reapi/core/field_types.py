"""Field Type Tree — closed variants describing the shape of a field's value.

Invariants:
    - A node is exactly one of ScalarType, UnionType, ObjectType
    - Every node carries a Cardinality (single or array)
    - UnionType.allowed is never empty
    - ObjectType children are FieldDescriptors, so modifiers nest with the shape
    - Trees are finite and acyclic: they are authored, never inferred

Design Decisions:
    - Frozen dataclasses: schemas are immutable after registration
    - Hooks stored as a mapping keyed by HookKind, absent when not declared
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from reapi.core.domain_types import Cardinality, HookKind, ScalarKind


@dataclass(frozen=True)
class ScalarType:
    kind: ScalarKind
    cardinality: Cardinality = Cardinality.SINGLE


@dataclass(frozen=True)
class UnionType:
    allowed: frozenset[str]
    cardinality: Cardinality = Cardinality.SINGLE

    def __post_init__(self):
        if not self.allowed:
            raise ValueError("UnionType requires at least one allowed literal")


@dataclass(frozen=True)
class ObjectType:
    fields: Mapping[str, "FieldDescriptor"]
    cardinality: Cardinality = Cardinality.SINGLE

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


FieldType = Union[ScalarType, UnionType, ObjectType]

Hook = Callable[..., Any]


@dataclass(frozen=True)
class FieldDescriptor:
    """One field: its type tree, modifiers and optional lifecycle hooks."""
    type: FieldType
    required: bool = False
    unique: bool = False
    readonly: bool = False
    secret: bool = False
    hooks: Mapping[HookKind, Hook] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "hooks", MappingProxyType(dict(self.hooks)))

    def hook(self, kind: HookKind) -> Hook | None:
        return self.hooks.get(kind)


def single_form(field_type: FieldType) -> FieldType:
    """The same node with SINGLE cardinality, used to check array elements."""
    if isinstance(field_type, ScalarType):
        return ScalarType(field_type.kind)
    if isinstance(field_type, UnionType):
        return UnionType(field_type.allowed)
    return ObjectType(field_type.fields)


def nested_fields(field_type: FieldType) -> Mapping[str, FieldDescriptor] | None:
    """Children of an object node, None for leaves."""
    if isinstance(field_type, ObjectType):
        return field_type.fields
    return None


def object_values(value: Any, field_type: FieldType) -> list[dict]:
    """The mapping(s) held by an object-typed value.

    Single form yields the value itself, array form every element. Anything
    that is not a mapping is skipped; shape errors belong to the type validator.
    """
    if field_type.cardinality is Cardinality.ARRAY:
        items = value if isinstance(value, list) else []
    else:
        items = [value]
    return [item for item in items if isinstance(item, dict)]
