"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from benefits_engine import __version__
from benefits_engine.api.routes import health_router, month_end_router, paychecks_router
from benefits_engine.config import configure_logging, get_settings
from benefits_engine.database import dispose_db, init_db
from benefits_engine.services.month_close import MonthCloseError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings)
    init_db()
    logger.info("Benefits engine %s starting", settings.engine_version)
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Benefits Engine API",
        description="Section 125 paycheck calculations and month-end close",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(MonthCloseError)
    async def month_close_exception_handler(
        request: Request, exc: MonthCloseError
    ) -> JSONResponse:
        """Month close rejections."""
        content: dict[str, object] = {"detail": exc.message, "code": exc.code}
        if exc.report is not None:
            content["critical_issues"] = [c.id for c in exc.report.critical_issues]
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=content)

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            },
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(paychecks_router, prefix="/api/v1")
    app.include_router(month_end_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
