"""Field Hooks — apply per-field lifecycle transforms to a document.

Invariants:
    - Returns a new dict; the input document is never mutated
    - pre_read hooks receive (value); the others receive (value, user)
    - Hooks may be sync or async; awaitable results are awaited
    - A failing hook becomes a HookError. BEST_EFFORT logs it and keeps the
      original value; STRICT raises it
"""

import inspect
import logging
from collections.abc import Iterable, Mapping
from typing import Any

from reapi.core.domain_types import Document, HookKind, HookPolicy
from reapi.core.errors import HookError
from reapi.core.field_types import FieldDescriptor

logger = logging.getLogger(__name__)


async def apply_hooks(
    document: Mapping[str, Any],
    fields: Mapping[str, FieldDescriptor],
    kind: HookKind,
    user: Document | None = None,
    policy: HookPolicy = HookPolicy.BEST_EFFORT,
    only: Iterable[str] | None = None,
) -> Document:
    """Run `kind` hooks for every schema field (or only the named ones)."""
    result = dict(document)
    names = list(only) if only is not None else list(fields)
    for name in names:
        descriptor = fields.get(name)
        hook = descriptor.hook(kind) if descriptor else None
        if hook is None:
            continue
        try:
            result[name] = await _call_hook(hook, kind, result.get(name), user)
        except Exception as e:
            error = HookError(kind.value, name, e)
            if policy is HookPolicy.STRICT:
                raise error from e
            logger.warning(
                error.message,
                extra={"field": name, "hook": kind.value, "error_code": error.code},
            )
    return result


async def _call_hook(hook, kind: HookKind, value: Any, user: Document | None) -> Any:
    if kind is HookKind.PRE_READ:
        outcome = hook(value)
    else:
        outcome = hook(value, user)
    if inspect.isawaitable(outcome):
        outcome = await outcome
    return outcome
