"""Boundary Protocols — contracts between core and shell.

Invariants:
    - reapi.core depends on nothing outside reapi.core
    - All IO goes through these Protocol types; the shell provides implementations
    - Filters are equality filters (see document_filter); no query operators

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - find() is an async iterator: lazy, finite, single-pass
    - Mutations return nothing; failures surface as exceptions at the boundary
"""

from collections.abc import AsyncIterator
from typing import Any, Protocol

from reapi.core.domain_types import Document


class DocumentStore(Protocol):
    """Contract for document persistence — implemented by shell."""
    def find(
        self, collection: str, filter: dict[str, Any],
    ) -> AsyncIterator[Document]: ...
    async def count(self, collection: str, filter: dict[str, Any]) -> int: ...
    async def insert(self, collection: str, document: Document) -> None: ...
    async def update(
        self, collection: str, filter: dict[str, Any], patch: dict[str, Any],
    ) -> None: ...
    async def delete(self, collection: str, filter: dict[str, Any]) -> None: ...


class IdentityService(Protocol):
    """Contract for credential hashing — implemented by shell."""
    async def hash_password(self, plaintext: str) -> str: ...
    async def verify_password(self, plaintext: str, stored_hash: str) -> bool: ...
