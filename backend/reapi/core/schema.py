"""Collection Schemas — turn authored descriptions into immutable, validated schemas.

Invariants:
    - Every registered schema has exactly one system-managed `id` field
    - A description that declares `id` itself is rejected
    - All five access kinds are present and pre-parsed into AccessRules
    - Unknown description keys, value types and forms are rejected here,
      so the validators never meet a shape they cannot match
    - The Users collection is only created by register_user_collection

Description format (plain dicts, hooks as callables):
    {
        "name": "Tasks",
        "fields": {
            "title": {"type": {"value_type": "string", "value_form": "single"},
                      "required": True},
            "status": {"type": {"value_type": "union",
                                "union_types": ["open", "done"]}},
            "meta": {"type": {"value_type": {"slug": {...}}}, "unique": True},
            "owner_id": {"type": {"value_type": "string"}, "readonly": True,
                         "pre_insert": lambda value, user: user["id"]},
        },
        "access": {"read": "$owner_id=&id", "edit": "$owner_id=&id",
                   "delete": "@noone", "info": "@everyone",
                   "insert": "@everyone-authenticated"},
    }
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Protocol

from reapi.core.access_expression import AccessRule, parse_access_expression
from reapi.core.domain_types import (
    AccessKind, Cardinality, HookKind, ScalarKind, USERS_COLLECTION,
)
from reapi.core.errors import SchemaDefinitionError
from reapi.core.field_types import (
    FieldDescriptor, FieldType, ObjectType, ScalarType, UnionType,
)


_FIELD_KEYS = {
    "type", "required", "unique", "readonly", "secret",
    *(kind.value for kind in HookKind),
}
_TYPE_KEYS = {"value_type", "value_form", "union_types"}
_COLLECTION_KEYS = {"name", "fields", "access"}

ID_FIELD = FieldDescriptor(
    type=ScalarType(ScalarKind.STRING), unique=True, readonly=True,
)

USERS_ACCESS = {
    AccessKind.READ.value: "$id=&id",
    AccessKind.DELETE.value: "$id=&id",
    AccessKind.EDIT.value: "$id=&id",
    AccessKind.INFO.value: "@everyone",
    AccessKind.INSERT.value: "@everyone",
}


class PasswordHasher(Protocol):
    async def hash_password(self, plaintext: str) -> str: ...


@dataclass(frozen=True)
class CollectionSchema:
    """Registered collection: shape, modifiers and pre-parsed access rules."""
    name: str
    fields: Mapping[str, FieldDescriptor]
    access: Mapping[AccessKind, AccessRule]

    def __post_init__(self):
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))
        object.__setattr__(self, "access", MappingProxyType(dict(self.access)))

    def rule(self, kind: AccessKind) -> AccessRule:
        return self.access[kind]


# ─── Description parsing ─────────────────────────────────────────

def parse_field_type(raw: Any, path: str) -> FieldType:
    if not isinstance(raw, dict):
        raise SchemaDefinitionError(f"Field '{path}': type must be a mapping")
    unknown = set(raw) - _TYPE_KEYS
    if unknown:
        raise SchemaDefinitionError(
            f"Field '{path}': unknown type keys {sorted(unknown)}",
        )
    try:
        cardinality = Cardinality(raw.get("value_form", Cardinality.SINGLE.value))
    except ValueError:
        raise SchemaDefinitionError(
            f"Field '{path}': value_form must be 'single' or 'array'",
        ) from None

    value_type = raw.get("value_type")
    if isinstance(value_type, dict):
        return ObjectType(parse_fields(value_type, f"{path}."), cardinality)
    if value_type == "union":
        union_types = raw.get("union_types")
        if not union_types or not all(isinstance(u, str) for u in union_types):
            raise SchemaDefinitionError(
                f"Field '{path}': union value_type requires non-empty string union_types",
            )
        return UnionType(frozenset(union_types), cardinality)
    try:
        return ScalarType(ScalarKind(value_type), cardinality)
    except ValueError:
        raise SchemaDefinitionError(
            f"Field '{path}': unknown value_type {value_type!r}",
        ) from None


def parse_field(raw: Any, path: str) -> FieldDescriptor:
    if isinstance(raw, FieldDescriptor):
        return raw
    if not isinstance(raw, dict) or "type" not in raw:
        raise SchemaDefinitionError(f"Field '{path}' must be a mapping with a type")
    unknown = set(raw) - _FIELD_KEYS
    if unknown:
        raise SchemaDefinitionError(f"Field '{path}': unknown keys {sorted(unknown)}")

    hooks = {}
    for kind in HookKind:
        hook = raw.get(kind.value)
        if hook is None:
            continue
        if not callable(hook):
            raise SchemaDefinitionError(f"Field '{path}': {kind.value} must be callable")
        hooks[kind] = hook

    modifiers = {}
    for key in ("required", "unique", "readonly", "secret"):
        value = raw.get(key, False)
        if not isinstance(value, bool):
            raise SchemaDefinitionError(f"Field '{path}': {key} must be a boolean")
        modifiers[key] = value

    return FieldDescriptor(
        type=parse_field_type(raw["type"], path), hooks=hooks, **modifiers,
    )


def parse_fields(raw: Any, prefix: str = "") -> dict[str, FieldDescriptor]:
    if not isinstance(raw, dict):
        raise SchemaDefinitionError(f"Fields of '{prefix or 'collection'}' must be a mapping")
    return {
        name: parse_field(field, f"{prefix}{name}") for name, field in raw.items()
    }


def parse_access(raw: Any, collection: str) -> dict[AccessKind, AccessRule]:
    if not isinstance(raw, dict):
        raise SchemaDefinitionError("access must be a mapping", collection)
    unknown = set(raw) - {kind.value for kind in AccessKind}
    if unknown:
        raise SchemaDefinitionError(f"Unknown access kinds {sorted(unknown)}", collection)
    rules = {}
    for kind in AccessKind:
        if kind.value not in raw:
            raise SchemaDefinitionError(f"Missing access rule for '{kind.value}'", collection)
        try:
            rules[kind] = parse_access_expression(raw[kind.value])
        except SchemaDefinitionError as e:
            raise SchemaDefinitionError(e.message, collection) from None
    return rules


def build_collection_schema(description: dict) -> CollectionSchema:
    """Validate a description and inject the system `id` field."""
    if not isinstance(description, dict):
        raise SchemaDefinitionError("Collection description must be a mapping")
    name = description.get("name")
    if not isinstance(name, str) or not name:
        raise SchemaDefinitionError("Collection description requires a name")
    unknown = set(description) - _COLLECTION_KEYS
    if unknown:
        raise SchemaDefinitionError(f"Unknown description keys {sorted(unknown)}", name)
    if not name.endswith("s"):
        raise SchemaDefinitionError("Collection names must end with an 's'.", name)

    raw_fields = description.get("fields", {})
    if isinstance(raw_fields, dict) and "id" in raw_fields:
        raise SchemaDefinitionError(
            "The id field is added to every collection automatically.", name,
        )
    try:
        fields = parse_fields(raw_fields)
    except SchemaDefinitionError as e:
        raise SchemaDefinitionError(e.message, name) from None
    fields["id"] = ID_FIELD
    return CollectionSchema(
        name=name, fields=fields, access=parse_access(description.get("access"), name),
    )


def build_user_schema(
    description: dict | None, password_hasher: PasswordHasher,
) -> CollectionSchema:
    """Users collection: custom fields merged with the system identity fields."""
    custom = dict((description or {}).get("fields", {}))
    if "id" in custom:
        raise SchemaDefinitionError(
            "The id field is added to every collection automatically.", USERS_COLLECTION,
        )

    async def hash_password(value, user=None):
        return await password_hasher.hash_password(value)

    string = {"value_type": "string", "value_form": "single"}
    custom.update({
        "username": {"type": string, "required": True, "unique": True},
        "password_hash": {
            "type": string, "required": True, "secret": True,
            "pre_insert": hash_password, "pre_edit": hash_password,
        },
        "token": {"type": string, "readonly": True, "secret": True},
        "token_disallow": {"type": string, "readonly": True, "secret": True},
    })
    return build_collection_schema({
        "name": USERS_COLLECTION, "fields": custom, "access": USERS_ACCESS,
    })


# ─── Registry ────────────────────────────────────────────────────

class SchemaRegistry:
    """Named collection schemas. Read-only once the app starts serving."""

    def __init__(self):
        self._schemas: dict[str, CollectionSchema] = {}

    def register_collection(self, description: dict) -> CollectionSchema:
        name = description.get("name") if isinstance(description, dict) else None
        if name == USERS_COLLECTION:
            raise SchemaDefinitionError(
                "Use register_user_collection for the Users collection.", name,
            )
        schema = build_collection_schema(description)
        self._schemas[schema.name] = schema
        return schema

    def register_user_collection(
        self, description: dict | None, password_hasher: PasswordHasher,
    ) -> CollectionSchema:
        schema = build_user_schema(description, password_hasher)
        self._schemas[schema.name] = schema
        return schema

    def remove_collection(self, name: str) -> None:
        self._schemas.pop(name, None)

    def get(self, name: str) -> CollectionSchema | None:
        return self._schemas.get(name)

    @property
    def users(self) -> CollectionSchema:
        schema = self._schemas.get(USERS_COLLECTION)
        if schema is None:
            raise SchemaDefinitionError(
                "Databases without users are not supported. "
                "Did you forget to call register_user_collection?",
            )
        return schema

    def __contains__(self, name: object) -> bool:
        return name in self._schemas

    def __iter__(self) -> Iterator[CollectionSchema]:
        return iter(list(self._schemas.values()))

    def __len__(self) -> int:
        return len(self._schemas)


# ─── Description rendering (info endpoint) ───────────────────────

def describe_field_type(field_type: FieldType) -> dict:
    if isinstance(field_type, ObjectType):
        value_type: Any = {
            name: describe_field(desc) for name, desc in field_type.fields.items()
        }
    elif isinstance(field_type, UnionType):
        value_type = "union"
    else:
        value_type = field_type.kind.value
    described = {"value_type": value_type, "value_form": field_type.cardinality.value}
    if isinstance(field_type, UnionType):
        described["union_types"] = sorted(field_type.allowed)
    return described


def describe_field(descriptor: FieldDescriptor) -> dict:
    return {
        "type": describe_field_type(descriptor.type),
        "required": descriptor.required,
        "unique": descriptor.unique,
        "readonly": descriptor.readonly,
        "secret": descriptor.secret,
    }


def describe_collection(schema: CollectionSchema) -> dict:
    """JSON-serializable description. Hooks are omitted."""
    return {
        "name": schema.name,
        "fields": {name: describe_field(desc) for name, desc in schema.fields.items()},
        "access": {kind.value: rule.expression for kind, rule in schema.access.items()},
    }
