"""ReAPI — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map ReapiError → structured JSON responses
    - A registry without a Users collection is rejected before serving
    - The EngineContext is stored on app.state; built eagerly when a store is
      injected, otherwise on startup once the database is initialized

Usage:
    registry = SchemaRegistry()
    identity = BcryptIdentityService(settings.bcrypt_rounds)
    registry.register_user_collection(None, identity)
    registry.register_collection({...})
    app = create_app(registry, identity=identity)
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reapi.api.error_handlers import register_error_handlers
from reapi.api.routes import collections, health, sessions
from reapi.config import Settings, get_settings
from reapi.core.domain_types import USERS_COLLECTION
from reapi.core.engine_context import EngineContext
from reapi.core.errors import SchemaDefinitionError
from reapi.core.repository_protocols import DocumentStore, IdentityService
from reapi.core.schema import SchemaRegistry
from reapi.infrastructure.database import init_db
from reapi.infrastructure.document_store import SqlDocumentStore
from reapi.infrastructure.observability import setup_logging
from reapi.infrastructure.password_hasher import BcryptIdentityService

logger = logging.getLogger(__name__)


def build_engine(
    settings: Settings,
    registry: SchemaRegistry,
    store: DocumentStore,
    identity: IdentityService,
) -> EngineContext:
    return EngineContext(
        registry=registry,
        store=store,
        identity=identity,
        id_length=settings.id_length,
        token_length=settings.token_length,
        token_lifetime_minutes=settings.token_lifetime_minutes,
        id_max_attempts=settings.id_max_attempts,
        hook_policy=settings.hook_policy,
    )


def create_app(
    registry: SchemaRegistry | None = None,
    *,
    settings: Settings | None = None,
    store: DocumentStore | None = None,
    identity: IdentityService | None = None,
) -> FastAPI:
    """Build the app for a registry of collections."""
    settings = settings or get_settings()
    identity = identity or BcryptIdentityService(settings.bcrypt_rounds)
    if registry is None:
        registry = SchemaRegistry()
        registry.register_user_collection(None, identity)
    if USERS_COLLECTION not in registry:
        raise SchemaDefinitionError(
            "A Users collection must be registered", USERS_COLLECTION,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup/shutdown lifecycle."""
        setup_logging(settings.log_level, settings.log_format)
        manager = None
        if getattr(app.state, "engine", None) is None:
            manager = init_db(
                settings.database_url,
                pool_size=settings.database_pool_size,
                max_overflow=settings.database_max_overflow,
            )
            if settings.database_create_tables:
                await manager.create_all()
            app.state.engine = build_engine(
                settings, registry, SqlDocumentStore(manager), identity,
            )
        logger.info(f"ReAPI started with {len(registry)} collection(s)")
        yield
        logger.info("ReAPI shutting down")
        if manager is not None:
            await manager.dispose()

    app = FastAPI(title="ReAPI", version="1.0.0", lifespan=lifespan)
    if store is not None:
        app.state.engine = build_engine(settings, registry, store, identity)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Routes — explicit registration
    app.include_router(health.router)
    app.include_router(sessions.router)
    app.include_router(collections.router, prefix=f"/{settings.database_name}")

    register_error_handlers(app)
    return app


app = create_app()
