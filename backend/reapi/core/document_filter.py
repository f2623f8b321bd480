"""Document Filters — validation and matching for equality-only store filters.

Invariants:
    - A filter maps field paths (dotted for nested fields) to expected values
    - Every entry must match; the empty filter matches every document
    - A path crossing an array fans out over its elements; the entry matches
      when any reached value matches ({"parts.sku": "K-1"} finds K-1 in any part)
    - A list-valued field matches a scalar expected value by membership
    - An expected None matches a missing or null field
    - Operator syntax ("$"-prefixed keys) is rejected, never interpreted

Design Decisions:
    - Path resolution here is separate from access_expression.resolve_path,
      which stays strict: access rules compare exactly one value per side
"""

from typing import Any

from reapi.core.access_expression import MISSING


def is_equality_filter(filter: Any) -> bool:
    """Whether `filter` is a plain equality filter the stores understand."""
    if not isinstance(filter, dict):
        return False
    for key, value in filter.items():
        if not isinstance(key, str) or not key or key.startswith("$"):
            return False
        if _has_operator(value):
            return False
    return True


def matches_filter(document: dict, filter: dict[str, Any]) -> bool:
    for path, expected in filter.items():
        reached = resolve_filter_path(document, path.split("."))
        if not any(_matches_value(actual, expected) for actual in reached):
            return False
    return True


def resolve_filter_path(current: Any, parts: list[str]) -> list[Any]:
    """Every value `parts` reaches, descending into list elements on the way."""
    if not parts:
        return [current]
    if isinstance(current, list):
        reached = []
        for item in current:
            reached.extend(resolve_filter_path(item, parts))
        return reached or [MISSING]
    if not isinstance(current, dict) or parts[0] not in current:
        return [MISSING]
    return resolve_filter_path(current[parts[0]], parts[1:])


def _matches_value(actual: Any, expected: Any) -> bool:
    if actual is MISSING or actual is None:
        return expected is None
    if isinstance(actual, list) and not isinstance(expected, list):
        return any(_strict_equals(item, expected) for item in actual)
    return _strict_equals(actual, expected)


def _strict_equals(actual: Any, expected: Any) -> bool:
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected


def _has_operator(value: Any) -> bool:
    if isinstance(value, dict):
        return any(
            (isinstance(k, str) and k.startswith("$")) or _has_operator(v)
            for k, v in value.items()
        )
    if isinstance(value, list):
        return any(_has_operator(item) for item in value)
    return False
