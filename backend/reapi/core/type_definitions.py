"""Type Definitions — TypeScript declarations for client applications.

Invariants:
    - One `export type` per collection, named by dropping the trailing "s"
    - A field is optional ("?") unless required or filled by a pre_insert hook
    - Unions render as string literal unions, arrays with a "[]" suffix
    - Output order follows registration order
"""

from collections.abc import Iterable, Mapping

from reapi.core.domain_types import Cardinality, HookKind
from reapi.core.field_types import FieldDescriptor, FieldType, ObjectType, UnionType
from reapi.core.schema import CollectionSchema


def render_type_definitions(schemas: Iterable[CollectionSchema]) -> str:
    return "".join(_render_collection(schema) for schema in schemas)


def _render_collection(schema: CollectionSchema) -> str:
    lines = [f"export type {schema.name[:-1]} = {{"]
    for name, descriptor in schema.fields.items():
        optional = not descriptor.required and descriptor.hook(HookKind.PRE_INSERT) is None
        marker = "?" if optional else ""
        lines.append(f"\t{name}{marker}: {_render_type(descriptor.type, 1)};")
    lines.append("};")
    return "\n".join(lines) + "\n\n"


def _render_type(field_type: FieldType, level: int) -> str:
    if isinstance(field_type, ObjectType):
        rendered = _render_object(field_type.fields, level)
    elif isinstance(field_type, UnionType):
        rendered = " | ".join(f'"{literal}"' for literal in sorted(field_type.allowed))
        if field_type.cardinality is Cardinality.ARRAY and len(field_type.allowed) > 1:
            rendered = f"({rendered})"
    else:
        rendered = field_type.kind.value
    if field_type.cardinality is Cardinality.ARRAY:
        rendered += "[]"
    return rendered


def _render_object(fields: Mapping[str, FieldDescriptor], level: int) -> str:
    indent = "\t" * (level + 1)
    body = "".join(
        f"{indent}{name}: {_render_type(descriptor.type, level + 1)};\n"
        for name, descriptor in fields.items()
    )
    return "{\n" + body + "\t" * level + "}"
