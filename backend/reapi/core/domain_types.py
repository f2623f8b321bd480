"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - All valid states encoded as Enums — no raw string matching in core logic
    - Document is a plain dict; the engine never owns it beyond one request

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import Any, NewType


# ─── Identity Types ──────────────────────────────────────────────

DocumentId = NewType("DocumentId", str)
CollectionName = NewType("CollectionName", str)

Document = dict[str, Any]

USERS_COLLECTION = "Users"


# ─── Enums ───────────────────────────────────────────────────────

class AccessKind(str, Enum):
    """The five operation kinds every collection declares a rule for."""
    READ = "read"
    EDIT = "edit"
    DELETE = "delete"
    INFO = "info"
    INSERT = "insert"

    @property
    def document_scoped(self) -> bool:
        return self in (AccessKind.READ, AccessKind.EDIT, AccessKind.DELETE)


class ScalarKind(str, Enum):
    """Primitive leaf kinds."""
    STRING = "string"
    NUMBER = "number"


class Cardinality(str, Enum):
    """Whether a value is one node or a sequence of nodes."""
    SINGLE = "single"
    ARRAY = "array"


class HookKind(str, Enum):
    """Field lifecycle hooks, keyed by the operation that triggers them."""
    PRE_INSERT = "pre_insert"
    PRE_READ = "pre_read"
    PRE_EDIT = "pre_edit"
    PRE_DELETE = "pre_delete"


class HookPolicy(str, Enum):
    """What a failing hook does to the request."""
    BEST_EFFORT = "best_effort"
    STRICT = "strict"
