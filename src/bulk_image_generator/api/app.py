"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from bulk_image_generator.api.credentials import router as credentials_router
from bulk_image_generator.api.history import router as history_router
from bulk_image_generator.api.runs import router as runs_router
from bulk_image_generator.app_logging import configure_logging
from bulk_image_generator.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Loaded %s credentials and %s history sessions",
            len(container.credential_service.list_credentials()),
            len(container.session_recorder.load_all()),
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(title="Bulk Image Generator", lifespan=lifespan)
    app.state.container = container

    app.include_router(credentials_router)
    app.include_router(runs_router)
    app.include_router(history_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
