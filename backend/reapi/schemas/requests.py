"""Request & Response Schemas — Pydantic models for the collection and session endpoints.

Invariants:
    - Credentials are optional on collection requests; the engine decides
      whether an anonymous caller may proceed
    - query/document_data are untyped mappings here; per-collection
      validation happens in the engine
    - Session endpoints keep their fields optional so missing credentials
      surface as the engine's malformed-request envelope
"""

from typing import Any

from pydantic import BaseModel


class CollectionRequestBody(BaseModel):
    """Body of POST /{database}/{collection}/{operation}."""
    username: str | None = None
    user_token: str | None = None
    query: dict[str, Any] | None = None
    document_data: dict[str, Any] | None = None


class LoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


class TokenRequest(BaseModel):
    """Body of /logout and /verifyToken."""
    username: str | None = None
    token: str | None = None


class SuccessResponse(BaseModel):
    success: bool = True
    message: str = "Request was fulfilled successfully."
    data: Any = None
