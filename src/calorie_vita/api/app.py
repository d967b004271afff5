"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from calorie_vita.api.users import router as users_router
from calorie_vita.app_logging import configure_logging
from calorie_vita.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "Starting analytics API (environment=%s, merge_policy=%s)",
            container.settings.environment,
            container.settings.merge_policy.value,
        )
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(ValueError)
    async def invalid_input(_request: Request, exc: ValueError) -> JSONResponse:
        logger.warning("Rejected request: %s", exc)
        return JSONResponse(
            status_code=422,
            content={"detail": str(exc)},
        )

    app.include_router(users_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    return app
