"""FastAPI application factory for the local control service."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from pal.api.health import router as health_router
from pal.api.projects import router as projects_router
from pal.api.secrets import router as secrets_router
from pal.auth import load_or_create_token
from pal.keystore import Keystore, KeystoreCorruptedError
from pal.settings import Settings

logger = logging.getLogger(__name__)


def create_app(settings: Settings | None = None, keystore: Keystore | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Settings default to the PAL_* environment; the keystore defaults to one
    built from those settings.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup: resolve settings, open the keystore, load the API token."""
        resolved = settings or Settings.from_env()
        app.state.settings = resolved
        app.state.keystore = keystore or Keystore.from_settings(resolved)
        app.state.api_token = load_or_create_token(resolved)

        info = app.state.keystore.get_keystore_info()
        logger.info(f"Keystore at {info.path} ({info.storage})")
        yield

    app = FastAPI(title="PAL", version="0.1.0", lifespan=lifespan)

    app.include_router(health_router)
    app.include_router(secrets_router)
    app.include_router(projects_router)

    @app.exception_handler(KeystoreCorruptedError)
    async def keystore_corrupted(request: Request, exc: KeystoreCorruptedError) -> JSONResponse:
        logger.error(f"Keystore unreadable: {exc}")
        return JSONResponse(status_code=500, content={"detail": "Keystore is corrupted"})

    return app
