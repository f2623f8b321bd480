"""Identifier Generator — random alphanumeric strings and collision-free ids.

Invariants:
    - Candidates are drawn from A-Z, a-z, 0-9
    - generate_unique_id returns the first candidate the store counts zero for
    - The attempt guard only stops pathological loops; it is not a retry budget
"""

import logging
import secrets
import string
from collections.abc import Callable

from reapi.core.errors import IdentifierExhaustedError
from reapi.core.repository_protocols import DocumentStore

logger = logging.getLogger(__name__)

ALPHABET = string.ascii_uppercase + string.ascii_lowercase + string.digits
DEFAULT_MAX_ATTEMPTS = 100


def generate_random_string(length: int) -> str:
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


async def generate_unique_id(
    length: int,
    store: DocumentStore,
    collection: str,
    *,
    generate: Callable[[int], str] = generate_random_string,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
) -> str:
    """Generate ids until one is unused in `collection`."""
    for attempt in range(1, max_attempts + 1):
        candidate = generate(length)
        if await store.count(collection, {"id": candidate}) == 0:
            return candidate
        logger.warning(
            f"Id collision in {collection} (attempt {attempt})",
            extra={"collection": collection, "attempt": attempt},
        )
    raise IdentifierExhaustedError(max_attempts, collection)
