"""CertTrack API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map CertTrackError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - The collection store and service registry are built once in the lifespan
      and handed to routes through app.state (no module-level store)

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - The local backend is initialized (scaffold files) before the admin bootstrap
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from certtrack.api.error_handlers import register_error_handlers
from certtrack.api.routes import auth, health, maintenance
from certtrack.config import get_settings
from certtrack.infrastructure.local_file_store import LocalFileStore
from certtrack.infrastructure.observability import setup_logging
from certtrack.infrastructure.remote_versioned_store import RemoteVersionedStore
from certtrack.infrastructure.store_factory import build_collection_store
from certtrack.services.registry import build_registry

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    store = build_collection_store(settings)
    if isinstance(store, LocalFileStore):
        await store.initialize()
    registry = build_registry(store, settings)
    if settings.bootstrap_admin:
        await registry.users.ensure_default_admin(
            settings.default_admin_email, settings.default_admin_password,
        )
    app.state.registry = registry
    logger.info(f"CertTrack API started ({settings.storage_backend} storage)")
    yield
    if isinstance(store, RemoteVersionedStore):
        await store.close()
    logger.info("CertTrack API shutting down")


app = FastAPI(
    title="CertTrack API", version="1.0.0", lifespan=lifespan,
)

settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(maintenance.router)

register_error_handlers(app)
