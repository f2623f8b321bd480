"""Route Dependencies — hand the EngineContext and schemas to route handlers.

Invariants:
    - The EngineContext lives on app.state; nothing here caches it
    - Unknown collection names become ResourceNotFoundError (404)
"""

from fastapi import Request

from reapi.core.engine_context import EngineContext
from reapi.core.errors import ResourceNotFoundError
from reapi.core.schema import CollectionSchema


def get_engine(request: Request) -> EngineContext:
    engine = getattr(request.app.state, "engine", None)
    if engine is None:
        raise RuntimeError("Engine not initialized")
    return engine


def get_schema(collection: str, request: Request) -> CollectionSchema:
    schema = get_engine(request).registry.get(collection)
    if schema is None:
        raise ResourceNotFoundError("Collection", collection)
    return schema
