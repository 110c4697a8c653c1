from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from journal.app.api import generate_router, subscription_router, webhook_router
from journal.app.core.cache import get_store
from journal.app.core.config import settings
from journal.app.core.http_client import init_http_client
from journal.app.core.logging import get_logger, setup_logging
from journal.app.db.async_session import close_async_engine, get_async_engine, init_async_db
from journal.app.exceptions import JournalException
from journal.app.middleware.request_id import RequestIdMiddleware
from journal.app.providers.base import BaseProvider
from journal.app.providers.factory import get_inference_provider


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    Returns:
        Configured FastAPI application instance
    """
    setup_logging()
    logger = get_logger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[dict, None]:
        """Initialize the shared HTTP client and the database on startup,
        release the completion store and the engine on shutdown.
        """
        async with init_http_client() as http_client:
            await init_async_db()
            logger.info(
                "Application startup complete",
                extra={
                    "debug_mode": settings.debug,
                    "cache_backend": settings.completion_cache_backend,
                },
            )

            yield {"http_client": http_client}

        await get_store().close()
        await close_async_engine()

        logger.info("Application shutdown complete")

    app = FastAPI(
        title="Reading Journal API",
        description="AI book and author summaries metered by subscription credits",
        version="1.0.0",
        lifespan=lifespan
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
        max_age=600,
    )
    app.add_middleware(RequestIdMiddleware)

    app.include_router(generate_router)
    app.include_router(subscription_router)
    app.include_router(webhook_router)

    @app.get("/health")
    async def health(
        provider: BaseProvider = Depends(get_inference_provider),
    ) -> dict[str, Any]:
        """Health check with database, completion store and inference provider status."""
        health_status = {
            "status": "ok",
            "components": {}
        }

        try:
            engine = get_async_engine()
            async with engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            health_status["components"]["database"] = {"status": "ok"}
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["database"] = {
                "status": "error",
                "error": str(e)[:100]
            }

        try:
            store = get_store()
            test_key = "_health_check_test"
            await store.set(test_key, b"ping", ttl=5)
            value = await store.get(test_key)
            if value == b"ping":
                health_status["components"]["completion_cache"] = {
                    "status": "ok",
                    "type": settings.completion_cache_backend,
                }
            else:
                health_status["status"] = "degraded"
                health_status["components"]["completion_cache"] = {
                    "status": "error",
                    "error": "Unexpected value",
                }
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["completion_cache"] = {
                "status": "error",
                "error": str(e)[:100]
            }

        try:
            reachable = await provider.health_check()
            health_status["components"]["inference_provider"] = {
                "status": "ok" if reachable else "unreachable",
                "type": type(provider).__name__,
            }
            if not reachable:
                health_status["status"] = "degraded"
        except Exception as e:
            health_status["status"] = "degraded"
            health_status["components"]["inference_provider"] = {
                "status": "error",
                "error": str(e)[:100]
            }

        return health_status

    @app.exception_handler(JournalException)
    async def journal_exception_handler(request: Request, exc: JournalException) -> JSONResponse:
        """Map domain errors to their HTTP status and JSON body."""
        request_id = getattr(request.state, "request_id", "unknown")
        logger.info(
            f"{type(exc).__name__}: {exc.message}",
            extra={"request_id": request_id, "status_code": exc.status_code},
        )
        return JSONResponse(status_code=exc.status_code, content=exc.to_response())

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Global exception handler for unhandled exceptions.

        Never returns a traceback; debug mode adds the exception message.
        """
        request_id = getattr(request.state, "request_id", "unknown")

        logger.exception(
            f"Unhandled exception [request_id={request_id}]",
            extra={
                "request_id": request_id,
                "exception_type": type(exc).__name__,
            }
        )

        if settings.debug:
            return JSONResponse(
                status_code=500,
                content={
                    "error": "internal_error",
                    "message": str(exc),
                    "exception_type": type(exc).__name__,
                    "request_id": request_id,
                }
            )

        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_error",
                "message": "An internal error occurred. Please try again later.",
                "request_id": request_id,
            }
        )

    return app


app = create_app()
