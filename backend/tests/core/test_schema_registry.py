"""Collection Schemas — tests for description parsing and registration.

Tests cover:
    - id injection and rejection of explicit id fields
    - Users collection system fields and fixed access rules
    - Rejection of malformed descriptions (types, unions, access, names)
    - describe_collection output for the info endpoint
"""

import pytest

from reapi.core.access_expression import ComparisonRule, SentinelRule
from reapi.core.domain_types import AccessKind, Cardinality, HookKind, ScalarKind
from reapi.core.errors import SchemaDefinitionError
from reapi.core.field_types import ObjectType, ScalarType, UnionType
from reapi.core.schema import (
    SchemaRegistry,
    build_collection_schema,
    describe_collection,
)
from tests.fakes import FakeIdentityService


STRING = {"value_type": "string", "value_form": "single"}

OPEN_ACCESS = {
    "read": "@everyone", "edit": "@everyone", "delete": "@everyone",
    "info": "@everyone", "insert": "@everyone",
}


def _description(**fields):
    return {"name": "Notes", "fields": fields, "access": dict(OPEN_ACCESS)}


# ─── id injection ────────────────────────────────────────────────

def test_id_field_injected():
    schema = build_collection_schema(_description(title={"type": STRING}))
    id_field = schema.fields["id"]
    assert id_field.type == ScalarType(ScalarKind.STRING)
    assert id_field.unique and id_field.readonly
    assert not id_field.required


def test_explicit_id_field_rejected():
    with pytest.raises(SchemaDefinitionError):
        build_collection_schema(_description(id={"type": STRING}))


def test_users_explicit_id_rejected():
    registry = SchemaRegistry()
    with pytest.raises(SchemaDefinitionError):
        registry.register_user_collection(
            {"fields": {"id": {"type": STRING}}}, FakeIdentityService(),
        )


# ─── Field parsing ───────────────────────────────────────────────

def test_nested_union_and_array_fields_parse():
    schema = build_collection_schema(_description(
        status={"type": {"value_type": "union", "union_types": ["open", "done"]}},
        tags={"type": {"value_type": "string", "value_form": "array"}},
        meta={
            "type": {"value_type": {"slug": {"type": STRING, "required": True}}},
            "unique": True,
        },
    ))
    assert schema.fields["status"].type == UnionType(frozenset({"open", "done"}))
    assert schema.fields["tags"].type.cardinality is Cardinality.ARRAY
    meta = schema.fields["meta"]
    assert isinstance(meta.type, ObjectType)
    assert meta.unique
    assert meta.type.fields["slug"].required


def test_hooks_are_kept_by_kind():
    def stamp(value, user):
        return "x"

    schema = build_collection_schema(_description(
        owner={"type": STRING, "pre_insert": stamp},
    ))
    assert schema.fields["owner"].hook(HookKind.PRE_INSERT) is stamp
    assert schema.fields["owner"].hook(HookKind.PRE_READ) is None


@pytest.mark.parametrize("field", [
    {"type": {"value_type": "union"}},
    {"type": {"value_type": "union", "union_types": []}},
    {"type": {"value_type": "boolean"}},
    {"type": {"value_type": "string", "value_form": "many"}},
    {"type": {"value_type": "string", "extra": 1}},
    {"type": STRING, "indexed": True},
    {"type": STRING, "required": "yes"},
    {"type": STRING, "pre_read": "not callable"},
    {"required": True},
])
def test_malformed_fields_rejected(field):
    with pytest.raises(SchemaDefinitionError):
        build_collection_schema(_description(bad=field))


def test_nested_malformed_field_rejected():
    with pytest.raises(SchemaDefinitionError):
        build_collection_schema(_description(
            meta={"type": {"value_type": {"kind": {"type": {"value_type": "date"}}}}},
        ))


# ─── Access rules ────────────────────────────────────────────────

def test_access_rules_preparsed():
    description = _description(owner_id={"type": STRING})
    description["access"]["read"] = "$owner_id=&id"
    schema = build_collection_schema(description)
    assert isinstance(schema.rule(AccessKind.READ), ComparisonRule)
    assert isinstance(schema.rule(AccessKind.INFO), SentinelRule)


def test_missing_access_kind_rejected():
    description = _description()
    del description["access"]["info"]
    with pytest.raises(SchemaDefinitionError):
        build_collection_schema(description)


def test_malformed_access_expression_rejected_at_registration():
    description = _description()
    description["access"]["edit"] = "$owner_id"
    with pytest.raises(SchemaDefinitionError) as exc:
        build_collection_schema(description)
    assert exc.value.context.collection == "Notes"


# ─── Names & registry ────────────────────────────────────────────

def test_collection_name_must_end_with_s():
    description = _description()
    description["name"] = "Note"
    with pytest.raises(SchemaDefinitionError):
        build_collection_schema(description)


def test_register_collection_refuses_users_name():
    registry = SchemaRegistry()
    description = _description()
    description["name"] = "Users"
    with pytest.raises(SchemaDefinitionError):
        registry.register_collection(description)


def test_registry_without_users_fails():
    registry = SchemaRegistry()
    registry.register_collection(_description())
    with pytest.raises(SchemaDefinitionError):
        registry.users


def test_registry_lookup_and_removal():
    registry = SchemaRegistry()
    registry.register_collection(_description())
    assert "Notes" in registry
    assert registry.get("Notes").name == "Notes"
    registry.remove_collection("Notes")
    assert registry.get("Notes") is None
    assert len(registry) == 0


def test_user_collection_system_fields():
    registry = SchemaRegistry()
    schema = registry.register_user_collection(
        {"fields": {"nickname": {"type": STRING}}}, FakeIdentityService(),
    )
    assert schema.name == "Users"
    assert set(schema.fields) == {
        "nickname", "username", "password_hash", "token", "token_disallow", "id",
    }
    assert schema.fields["username"].unique and schema.fields["username"].required
    assert schema.fields["password_hash"].secret
    assert schema.fields["password_hash"].hook(HookKind.PRE_INSERT) is not None
    assert schema.fields["token"].readonly and schema.fields["token"].secret
    assert schema.rule(AccessKind.READ).expression == "$id=&id"
    assert schema.rule(AccessKind.INSERT).expression == "@everyone"
    assert registry.users is schema


async def test_user_password_hook_uses_identity_service():
    registry = SchemaRegistry()
    schema = registry.register_user_collection(None, FakeIdentityService())
    hook = schema.fields["password_hash"].hook(HookKind.PRE_EDIT)
    assert await hook("secret", None) == "hashed:secret"


# ─── describe_collection ─────────────────────────────────────────

def test_describe_collection_is_serializable_and_hookless():
    description = _description(
        status={
            "type": {"value_type": "union", "union_types": ["b", "a"], "value_form": "array"},
            "pre_read": lambda value: value,
        },
        meta={"type": {"value_type": {"slug": {"type": STRING}}}},
    )
    described = describe_collection(build_collection_schema(description))
    assert described["name"] == "Notes"
    assert described["fields"]["status"] == {
        "type": {"value_type": "union", "value_form": "array", "union_types": ["a", "b"]},
        "required": False, "unique": False, "readonly": False, "secret": False,
    }
    assert described["fields"]["meta"]["type"]["value_type"]["slug"]["type"] == STRING
    assert described["access"]["read"] == "@everyone"
