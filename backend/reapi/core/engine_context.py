"""Engine Context — everything an engine operation needs, passed explicitly.

Invariants:
    - Built once at startup, shared read-only across requests
    - The registry inside is not mutated after the app starts serving
    - `clock` is the only time source the engine consults
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from reapi.core.domain_types import HookPolicy
from reapi.core.identifiers import DEFAULT_MAX_ATTEMPTS
from reapi.core.repository_protocols import DocumentStore, IdentityService
from reapi.core.schema import SchemaRegistry
from reapi.core.session_tokens import utc_now


@dataclass(frozen=True)
class EngineContext:
    registry: SchemaRegistry
    store: DocumentStore
    identity: IdentityService
    id_length: int = 64
    token_length: int = 128
    token_lifetime_minutes: int = 60 * 8
    id_max_attempts: int = DEFAULT_MAX_ATTEMPTS
    hook_policy: HookPolicy = HookPolicy.BEST_EFFORT
    clock: Callable[[], datetime] = field(default=utc_now)
