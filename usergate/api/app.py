"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

import usergate
from usergate.api.context import AppContext
from usergate.api.errors import install_exception_handlers
from usergate.api.routers import auth_router, users_router
from usergate.database import ProviderShutdownError

logger = logging.getLogger(__name__)


async def log_requests(request: Request, call_next):
    """Middleware to log request processing time and status."""
    start_time = datetime.now(UTC)
    response = await call_next(request)
    process_time = (datetime.now(UTC) - start_time).total_seconds()
    logger.info(f"{request.method} {request.url.path} - {response.status_code} - {process_time:.4f}s")
    return response


def create_app(context: Optional[AppContext] = None) -> FastAPI:
    """Build the API around ``context``, or around a context built from configuration.

    Storage is connected when the application starts (unless ``context.connect_on_startup`` is False) and every
    provider in the context's registry is closed when it shuts down. A failed startup connection aborts startup.

    Example:
        .. code-block:: python

            import uvicorn
            from usergate.api import create_app

            uvicorn.run(create_app(), host="0.0.0.0", port=3000)
    """
    context = context if context is not None else AppContext.from_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if context.connect_on_startup:
            await context.storage.connect()
        yield
        try:
            await context.registry.close_all()
        except ProviderShutdownError as e:
            logger.error(f"Error closing database connections: {e}")

    app = FastAPI(title="Usergate", version=usergate.__version__, lifespan=lifespan)
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[context.config.USERGATE.CLIENT_URL],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(log_requests)
    install_exception_handlers(app)

    app.include_router(auth_router)
    app.include_router(users_router)

    @app.get("/health", tags=["Health"])
    async def health() -> dict:
        return {
            "success": True,
            "message": "Usergate is running",
            "environment": context.config.USERGATE.ENVIRONMENT,
            "database": {
                "connected": context.storage.is_connected(),
                "type": context.storage.backend_type.value,
            },
        }

    return app
