"""Type Definitions — tests for the TypeScript declarations served at /types.

Tests cover:
    - Singular type names and optional markers
    - pre_insert hooks make a field non-optional
    - Unions, arrays and nested objects
"""

from reapi.core.schema import SchemaRegistry
from reapi.core.type_definitions import render_type_definitions
from tests.fakes import FakeIdentityService


ACCESS = {
    "read": "@everyone", "edit": "@everyone", "delete": "@everyone",
    "info": "@everyone", "insert": "@everyone",
}


def _registry():
    registry = SchemaRegistry()
    registry.register_collection({
        "name": "Tasks",
        "fields": {
            "title": {"type": {"value_type": "string"}, "required": True},
            "owner_id": {
                "type": {"value_type": "string"},
                "pre_insert": lambda value, user: user["id"],
            },
            "status": {"type": {"value_type": "union", "union_types": ["open", "done"]}},
            "labels": {
                "type": {
                    "value_type": "union", "value_form": "array",
                    "union_types": ["red", "blue"],
                },
            },
            "points": {"type": {"value_type": "number", "value_form": "array"}},
            "meta": {"type": {"value_type": {"slug": {"type": {"value_type": "string"}}}}},
        },
        "access": dict(ACCESS),
    })
    return registry


def test_collection_renders_as_singular_type():
    output = render_type_definitions(_registry())
    assert output.startswith("export type Task = {\n")
    assert output.endswith("};\n\n")


def test_field_lines():
    output = render_type_definitions(_registry())
    assert "\ttitle: string;\n" in output
    assert "\towner_id: string;\n" in output
    assert '\tstatus?: "done" | "open";\n' in output
    assert '\tlabels?: ("blue" | "red")[];\n' in output
    assert "\tpoints?: number[];\n" in output
    assert "\tid?: string;\n" in output


def test_nested_object_is_indented():
    output = render_type_definitions(_registry())
    assert "\tmeta?: {\n\t\tslug: string;\n\t};\n" in output


def test_every_collection_is_rendered_in_order():
    registry = _registry()
    registry.register_user_collection(None, FakeIdentityService())
    output = render_type_definitions(registry)
    assert output.index("export type Task") < output.index("export type User")
    assert "\tusername: string;\n" in output
    assert "\tpassword_hash: string;\n" in output
