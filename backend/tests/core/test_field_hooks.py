"""Field Hooks — tests for lifecycle transforms applied to documents.

Tests cover:
    - pre_read receives the value only, other kinds receive (value, user)
    - Async hooks awaited
    - `only` restricts which fields run
    - BEST_EFFORT keeps the original value, STRICT raises HookError
"""

import pytest

from reapi.core.domain_types import HookKind, HookPolicy, ScalarKind
from reapi.core.errors import HookError
from reapi.core.field_hooks import apply_hooks
from reapi.core.field_types import FieldDescriptor, ScalarType


STRING = ScalarType(ScalarKind.STRING)


def _field(**hooks):
    return FieldDescriptor(
        type=STRING, hooks={HookKind(kind): hook for kind, hook in hooks.items()},
    )


async def test_pre_insert_hook_receives_user():
    fields = {"owner_id": _field(pre_insert=lambda value, user: user["id"])}
    result = await apply_hooks({"owner_id": None}, fields, HookKind.PRE_INSERT, {"id": "u1"})
    assert result == {"owner_id": "u1"}


async def test_pre_read_hook_receives_value_only():
    fields = {"title": _field(pre_read=lambda value: value.upper())}
    result = await apply_hooks({"title": "hi"}, fields, HookKind.PRE_READ)
    assert result == {"title": "HI"}


async def test_async_hook_awaited():
    async def stamp(value, user):
        return "stamped"

    fields = {"title": _field(pre_edit=stamp)}
    result = await apply_hooks({"title": "x"}, fields, HookKind.PRE_EDIT, {"id": "u1"})
    assert result["title"] == "stamped"


async def test_input_document_not_mutated():
    fields = {"title": _field(pre_read=lambda value: "new")}
    document = {"title": "old"}
    await apply_hooks(document, fields, HookKind.PRE_READ)
    assert document == {"title": "old"}


async def test_only_limits_fields():
    fields = {
        "a": _field(pre_edit=lambda value, user: "A"),
        "b": _field(pre_edit=lambda value, user: "B"),
    }
    result = await apply_hooks({"a": 1, "b": 2}, fields, HookKind.PRE_EDIT, only=["a"])
    assert result == {"a": "A", "b": 2}


async def test_other_kinds_do_not_run():
    fields = {"title": _field(pre_insert=lambda value, user: "ins")}
    result = await apply_hooks({"title": "x"}, fields, HookKind.PRE_DELETE)
    assert result == {"title": "x"}


# ─── Failure policy ──────────────────────────────────────────────

def _boom(value, user):
    raise RuntimeError("boom")


async def test_best_effort_keeps_original_value(caplog):
    fields = {"title": _field(pre_insert=_boom)}
    result = await apply_hooks({"title": "x"}, fields, HookKind.PRE_INSERT)
    assert result == {"title": "x"}
    assert any("pre_insert" in record.getMessage() for record in caplog.records)


async def test_strict_raises_hook_error():
    fields = {"title": _field(pre_insert=_boom)}
    with pytest.raises(HookError) as exc:
        await apply_hooks(
            {"title": "x"}, fields, HookKind.PRE_INSERT, policy=HookPolicy.STRICT,
        )
    assert exc.value.context.field_name == "title"
