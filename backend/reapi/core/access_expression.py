"""Access Expressions — parse and evaluate the fixed access-rule grammar.

Grammar:
    rule       := sentinel | side "=" side
    sentinel   := "@everyone" | "@noone" | "@everyone-authenticated"
    side       := "$" path    (field of the candidate document)
                | "&" path    (field of the caller identity)
                | literal     (letters, digits, "_", "-", ".")
    path       := name ("." name)*

Invariants:
    - Parsing happens once, at schema registration; evaluation never raises
    - A "$" side with no document, or an "&" side with no user, denies
    - Unresolved (missing or null) values never compare equal
    - Equality is loose: a number equals its string representation
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from reapi.core.errors import SchemaDefinitionError


_PATH_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*(\.[A-Za-z_][A-Za-z0-9_]*)*$")
_LITERAL_RE = re.compile(r"^[A-Za-z0-9_.\-]+$")

MISSING = object()


class Sentinel(str, Enum):
    EVERYONE = "@everyone"
    NOONE = "@noone"
    EVERYONE_AUTHENTICATED = "@everyone-authenticated"


class SideSource(str, Enum):
    DOCUMENT = "$"
    USER = "&"
    LITERAL = ""


@dataclass(frozen=True)
class ExpressionSide:
    source: SideSource
    value: str


@dataclass(frozen=True)
class SentinelRule:
    sentinel: Sentinel

    @property
    def expression(self) -> str:
        return self.sentinel.value


@dataclass(frozen=True)
class ComparisonRule:
    left: ExpressionSide
    right: ExpressionSide
    expression: str


AccessRule = Union[SentinelRule, ComparisonRule]


# ─── Parsing ─────────────────────────────────────────────────────

def parse_access_expression(text: str) -> AccessRule:
    """Parse an access expression. Raises SchemaDefinitionError if malformed."""
    if not isinstance(text, str):
        raise SchemaDefinitionError(f"Access expression must be a string, got {text!r}")
    expression = text.strip()
    if expression.startswith("@"):
        try:
            return SentinelRule(Sentinel(expression))
        except ValueError:
            raise SchemaDefinitionError(
                f"Unknown access sentinel '{expression}'",
            ) from None

    sides = expression.split("=")
    if len(sides) != 2:
        raise SchemaDefinitionError(
            f"Access expression '{expression}' must compare exactly two sides",
        )
    left, right = (_parse_side(side.strip(), expression) for side in sides)
    return ComparisonRule(left=left, right=right, expression=expression)


def _parse_side(side: str, expression: str) -> ExpressionSide:
    if not side:
        raise SchemaDefinitionError(f"Empty side in access expression '{expression}'")
    sigil, rest = side[0], side[1:]
    if sigil in (SideSource.DOCUMENT.value, SideSource.USER.value):
        if not _PATH_RE.match(rest):
            raise SchemaDefinitionError(
                f"Invalid field path '{rest}' in access expression '{expression}'",
            )
        return ExpressionSide(SideSource(sigil), rest)
    if not _LITERAL_RE.match(side):
        raise SchemaDefinitionError(
            f"Unknown sigil '{sigil}' in access expression '{expression}'",
        )
    return ExpressionSide(SideSource.LITERAL, side)


# ─── Evaluation ──────────────────────────────────────────────────

def evaluate_access(
    rule: AccessRule, user: dict | None, document: dict | None,
) -> bool:
    """Decide whether (user, document) satisfies a pre-parsed rule."""
    if isinstance(rule, SentinelRule):
        if rule.sentinel is Sentinel.EVERYONE:
            return True
        if rule.sentinel is Sentinel.EVERYONE_AUTHENTICATED:
            return user is not None
        return False

    values = []
    for side in (rule.left, rule.right):
        if side.source is SideSource.DOCUMENT:
            if document is None:
                return False
            values.append(resolve_path(document, side.value))
        elif side.source is SideSource.USER:
            if user is None:
                return False
            values.append(resolve_path(user, side.value))
        else:
            values.append(side.value)
    return loose_equals(values[0], values[1])


def evaluate(expression: str, user: dict | None, document: dict | None) -> bool:
    """Parse and evaluate in one step."""
    return evaluate_access(parse_access_expression(expression), user, document)


def resolve_path(source: dict, path: str) -> Any:
    """Follow a dotted path through nested mappings. MISSING if any hop fails."""
    current: Any = source
    for part in path.split("."):
        if not isinstance(current, dict) or part not in current:
            return MISSING
        current = current[part]
    return current


def loose_equals(left: Any, right: Any) -> bool:
    """Store-style equality: numbers equal their string form, nulls match nothing."""
    if left is MISSING or right is MISSING or left is None or right is None:
        return False
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    if isinstance(left, (int, float)) and isinstance(right, str):
        return _number_matches_text(left, right)
    if isinstance(right, (int, float)) and isinstance(left, str):
        return _number_matches_text(right, left)
    return left == right


def _number_matches_text(number: int | float, text: str) -> bool:
    try:
        return float(text.strip()) == number
    except ValueError:
        return False
