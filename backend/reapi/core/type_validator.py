"""Type Validator — checks a candidate value tree against a Field Type Tree.

Invariants:
    - Pure: no IO, returns a bool, short-circuits on the first mismatch
    - No coercion: "1" is not a number, 1 is not a string, True is not a number
    - Keys absent from the schema are ignored here (see field_policy)
    - Arrays validate every element against the single form of the node
"""

from collections.abc import Mapping
from typing import Any

from reapi.core.domain_types import Cardinality, ScalarKind
from reapi.core.field_types import (
    FieldDescriptor, FieldType, ObjectType, ScalarType, UnionType, single_form,
)


def validate_value(value: Any, field_type: FieldType) -> bool:
    """Whether `value` has the shape described by `field_type`."""
    if field_type.cardinality is Cardinality.ARRAY:
        if not isinstance(value, list):
            return False
        element_type = single_form(field_type)
        return all(validate_value(item, element_type) for item in value)

    if isinstance(field_type, ScalarType):
        return _matches_scalar(value, field_type.kind)
    if isinstance(field_type, UnionType):
        return isinstance(value, str) and value in field_type.allowed
    if isinstance(field_type, ObjectType):
        return isinstance(value, dict) and validate_document(value, field_type.fields)
    return False


def validate_document(
    payload: Mapping[str, Any], fields: Mapping[str, FieldDescriptor],
) -> bool:
    """Validate every payload key that the schema declares."""
    for name, value in payload.items():
        descriptor = fields.get(name)
        if descriptor is None:
            continue
        if not validate_value(value, descriptor.type):
            return False
    return True


def _matches_scalar(value: Any, kind: ScalarKind) -> bool:
    if kind is ScalarKind.STRING:
        return isinstance(value, str)
    return isinstance(value, (int, float)) and not isinstance(value, bool)
