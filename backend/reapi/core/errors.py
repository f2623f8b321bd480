"""Error Hierarchy — typed, categorized exceptions for every ReAPI failure mode.

Invariants:
    - Every error has a code (str), category (ErrorCategory), severity (ErrorSeverity)
    - Malformed (400) and Denied (403) are client-facing and terminal for the request
    - Denied never reveals whether a document exists
    - to_response() produces the REST envelope; no internal details in messages

Design Decisions:
    - Single hierarchy with ReapiError base: one FastAPI handler catches all
    - SchemaDefinitionError is raised at registration time, never per request
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from datetime import datetime, timezone


class ErrorSeverity(str, Enum):
    """Error severity for observability and client handling."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class ErrorCategory(str, Enum):
    """High-level error categories for routing and handling."""
    VALIDATION = "validation"
    ACCESS = "access"
    RESOURCE_NOT_FOUND = "resource_not_found"
    SCHEMA = "schema"
    HOOK = "hook"
    DATABASE = "database"
    INTERNAL = "internal"


@dataclass
class ErrorContext:
    """Rich context for error observability and debugging."""
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    collection: str | None = None
    operation: str | None = None
    field_name: str | None = None
    debug_info: dict[str, Any] | None = None


class ReapiError(Exception):
    """Base exception for all ReAPI errors."""

    def __init__(
        self,
        message: str,
        code: str,
        category: ErrorCategory,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        context: ErrorContext | None = None,
        http_status: int = 500,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.category = category
        self.severity = severity
        self.context = context or ErrorContext()
        self.http_status = http_status

    def to_response(self) -> dict:
        """Convert to standardized REST error response."""
        return {
            "success": False,
            "message": self.message,
            "error": {
                "code": self.code,
                "category": self.category.value,
                "severity": self.severity.value,
                "timestamp": self.context.timestamp.isoformat(),
            },
        }


# ─── Request Errors (400-level) ─────────────────────────────────

class MalformedRequestError(ReapiError):
    """Request is missing fields or its payload fails schema validation."""
    def __init__(self, reason: str, context: ErrorContext | None = None):
        super().__init__(
            "Request was malformed.", "MALFORMED_REQUEST",
            ErrorCategory.VALIDATION, ErrorSeverity.WARNING, context, 400,
        )
        self.reason = reason


class AccessDeniedError(ReapiError):
    """Caller may not perform the operation (or nothing matched)."""
    def __init__(self, context: ErrorContext | None = None, code: str = "UNAUTHORIZED"):
        super().__init__(
            "Unauthorized request.", code,
            ErrorCategory.ACCESS, ErrorSeverity.WARNING, context, 403,
        )


class SessionExpiredError(AccessDeniedError):
    """Caller resolved but its token_disallow timestamp has passed."""
    def __init__(self, context: ErrorContext | None = None):
        super().__init__(context, code="SESSION_EXPIRED")


class ResourceNotFoundError(ReapiError):
    """Requested resource does not exist."""
    def __init__(
        self, resource_type: str, resource_id: str, context: ErrorContext | None = None,
    ):
        super().__init__(
            f"{resource_type} '{resource_id}' not found",
            "RESOURCE_NOT_FOUND", ErrorCategory.RESOURCE_NOT_FOUND,
            ErrorSeverity.ERROR, context, 404,
        )


# ─── Definition Errors ──────────────────────────────────────────

class SchemaDefinitionError(ReapiError):
    """A collection description is invalid. Raised during registration."""
    def __init__(self, message: str, collection: str | None = None):
        super().__init__(
            message, "SCHEMA_DEFINITION_ERROR", ErrorCategory.SCHEMA,
            ErrorSeverity.CRITICAL, ErrorContext(collection=collection), 500,
        )


# ─── Internal Errors (500-level) ────────────────────────────────

class HookError(ReapiError):
    """A field lifecycle hook raised."""
    def __init__(self, hook: str, field_name: str, cause: Exception):
        super().__init__(
            f"Hook {hook} failed for field '{field_name}': {cause}",
            "HOOK_FAILED", ErrorCategory.HOOK, ErrorSeverity.ERROR,
            ErrorContext(field_name=field_name), 500,
        )
        self.hook = hook
        self.field_name = field_name
        self.cause = cause


class IdentifierExhaustedError(ReapiError):
    """Identifier generation hit its attempt guard."""
    def __init__(self, attempts: int, collection: str):
        super().__init__(
            f"No free identifier found after {attempts} attempts",
            "ID_GENERATION_EXHAUSTED", ErrorCategory.INTERNAL,
            ErrorSeverity.CRITICAL, ErrorContext(collection=collection), 500,
        )
        self.attempts = attempts


class DatabaseError(ReapiError):
    """Database operation failed."""
    def __init__(self, message: str, operation: str, context: ErrorContext | None = None):
        super().__init__(
            f"Database {operation} failed: {message}",
            "DATABASE_ERROR", ErrorCategory.DATABASE,
            ErrorSeverity.CRITICAL, context, 503,
        )
        self.operation = operation
