"""Field Policy — required, readonly and unknown-field passes over a payload.

Invariants:
    - Pure: no IO
    - A modifier set on a container applies to everything nested inside it;
      the propagated value travels as the explicit `override` argument
    - Nested objects are only descended into when the payload carries them
    - Array-of-object fields check every element
"""

from collections.abc import Mapping
from typing import Any

from reapi.core.field_types import FieldDescriptor, nested_fields, object_values


def has_required_fields(
    payload: Mapping[str, Any],
    fields: Mapping[str, FieldDescriptor],
    override: bool = False,
) -> bool:
    """False on the first required (or override-required) field that is missing."""
    for name, descriptor in fields.items():
        required = descriptor.required or override
        if name not in payload:
            if required:
                return False
            continue
        children = nested_fields(descriptor.type)
        if children is None:
            continue
        for value in object_values(payload[name], descriptor.type):
            if not has_required_fields(value, children, required):
                return False
    return True


def has_readonly_violation(
    payload: Mapping[str, Any],
    fields: Mapping[str, FieldDescriptor],
    override: bool = False,
) -> bool:
    """True if the payload touches any readonly field, directly or by nesting."""
    for name, value in payload.items():
        descriptor = fields.get(name)
        if descriptor is None:
            continue
        readonly = descriptor.readonly or override
        if readonly:
            return True
        children = nested_fields(descriptor.type)
        if children is None:
            continue
        for nested in object_values(value, descriptor.type):
            if has_readonly_violation(nested, children, readonly):
                return True
    return False


def find_unknown_fields(
    payload: Mapping[str, Any],
    fields: Mapping[str, FieldDescriptor],
    prefix: str = "",
) -> list[str]:
    """Dotted paths of payload keys the schema does not declare."""
    unknown = []
    for name, value in payload.items():
        descriptor = fields.get(name)
        if descriptor is None:
            unknown.append(f"{prefix}{name}")
            continue
        children = nested_fields(descriptor.type)
        if children is None:
            continue
        for nested in object_values(value, descriptor.type):
            unknown.extend(find_unknown_fields(nested, children, f"{prefix}{name}."))
    return unknown
