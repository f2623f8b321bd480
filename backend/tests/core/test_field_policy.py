"""Field Policy — tests for required, readonly and unknown-field passes.

Tests cover:
    - Required fields at top level and inside nested objects
    - Required propagated from a required container
    - Readonly on a field or on any ancestor container
    - Unknown keys reported with dotted paths
"""

from reapi.core.domain_types import Cardinality, ScalarKind
from reapi.core.field_policy import (
    find_unknown_fields,
    has_readonly_violation,
    has_required_fields,
)
from reapi.core.field_types import FieldDescriptor, ObjectType, ScalarType


STRING = ScalarType(ScalarKind.STRING)


def _leaf(**modifiers):
    return FieldDescriptor(type=STRING, **modifiers)


def _object(fields, cardinality=Cardinality.SINGLE, **modifiers):
    return FieldDescriptor(type=ObjectType(fields, cardinality), **modifiers)


# ─── Required ────────────────────────────────────────────────────

def test_missing_required_top_level_field():
    fields = {"title": _leaf(required=True), "body": _leaf()}
    assert has_required_fields({"title": "a"}, fields)
    assert not has_required_fields({"body": "b"}, fields)


def test_missing_optional_container_is_fine():
    fields = {"meta": _object({"slug": _leaf(required=True)})}
    assert has_required_fields({}, fields)


def test_present_container_checks_nested_required():
    fields = {"meta": _object({"slug": _leaf(required=True), "note": _leaf()})}
    assert has_required_fields({"meta": {"slug": "x"}}, fields)
    assert not has_required_fields({"meta": {"note": "x"}}, fields)


def test_required_container_makes_children_required():
    fields = {"meta": _object({"slug": _leaf(), "note": _leaf()}, required=True)}
    assert has_required_fields({"meta": {"slug": "a", "note": "b"}}, fields)
    assert not has_required_fields({"meta": {"slug": "a"}}, fields)


def test_required_checks_every_array_element():
    fields = {"items": _object({"sku": _leaf(required=True)}, Cardinality.ARRAY)}
    assert has_required_fields({"items": [{"sku": "1"}, {"sku": "2"}]}, fields)
    assert not has_required_fields({"items": [{"sku": "1"}, {}]}, fields)


# ─── Readonly ────────────────────────────────────────────────────

def test_readonly_field_touched():
    fields = {"id": _leaf(readonly=True), "title": _leaf()}
    assert has_readonly_violation({"id": "x"}, fields)
    assert not has_readonly_violation({"title": "x"}, fields)


def test_readonly_container_blocks_nested_writes():
    fields = {"audit": _object({"by": _leaf()}, readonly=True)}
    assert has_readonly_violation({"audit": {"by": "u1"}}, fields)


def test_nested_readonly_leaf():
    fields = {"meta": _object({"locked": _leaf(readonly=True), "note": _leaf()})}
    assert has_readonly_violation({"meta": {"locked": "x"}}, fields)
    assert not has_readonly_violation({"meta": {"note": "x"}}, fields)


def test_unknown_keys_are_not_readonly():
    assert not has_readonly_violation({"nope": 1}, {"title": _leaf(readonly=True)})


# ─── Unknown fields ──────────────────────────────────────────────

def test_unknown_fields_reported_with_paths():
    fields = {
        "title": _leaf(),
        "meta": _object({"slug": _leaf()}),
        "items": _object({"sku": _leaf()}, Cardinality.ARRAY),
    }
    payload = {
        "title": "a",
        "extra": 1,
        "meta": {"slug": "s", "color": "red"},
        "items": [{"sku": "1"}, {"sku": "2", "qty": 3}],
    }
    assert find_unknown_fields(payload, fields) == ["extra", "meta.color", "items.qty"]


def test_known_payload_has_no_unknown_fields():
    assert find_unknown_fields({"title": "a"}, {"title": _leaf()}) == []
