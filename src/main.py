"""
Site Content API - Main Application

FastAPI application that serves:
- REST API endpoints to read and replace the site content snapshot
- Uploaded images under /uploads
- Health check endpoint

The content store is constructed explicitly and attached to ``app.state``;
it is connected before the app starts serving and closed on shutdown.
"""

import sys
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger

from src.config import (
    APP_ENV,
    APP_HOST,
    APP_PORT,
    APP_VERSION,
    CORS_ORIGINS,
    DB_PATH,
    DEBUG,
    LOG_LEVEL,
    UPLOADS_DIR,
    UPLOADS_URL_PREFIX,
    ensure_directories,
)
from src.database import ContentStore
from src.routes.api import health_router
from src.routes.api import router as api_router

# ---------------------------------------------------------------------------
# Logging setup — stdout only
# ---------------------------------------------------------------------------
logger.remove()

logger.add(
    sys.stdout,
    level="DEBUG" if DEBUG else LOG_LEVEL,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    colorize=True,
)


# ---------------------------------------------------------------------------
# Lifespan
# ---------------------------------------------------------------------------
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan handler.

    On startup:
        1. Create the uploads and database directories
        2. Connect the content store (failure aborts startup)

    On shutdown:
        3. Close the content store
    """
    store: ContentStore = app.state.store

    # --- Startup ---
    logger.info("🚀 Starting Site Content API v{}", APP_VERSION)
    logger.info("📋 Environment: {} | Debug: {}", APP_ENV, DEBUG)

    ensure_directories(app.state.uploads_dir, store.db_path)
    logger.info("📁 Uploads directory: {}", app.state.uploads_dir)

    await store.connect()

    logger.success("✅ Application ready — listening on {}:{}", APP_HOST, APP_PORT)

    yield

    # --- Shutdown ---
    logger.info("🛑 Shutting down Site Content API …")
    await store.close()
    logger.info("👋 Shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------
def create_app(
    db_path: Optional[Path] = None,
    uploads_dir: Optional[Path] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Site Content API",
        description=(
            "Single-document content API for the promotional site: hero "
            "slides, palpites, resultados, contact links and features."
        ),
        version=APP_VERSION,
        lifespan=lifespan,
        docs_url="/docs" if DEBUG else None,
        redoc_url="/redoc" if DEBUG else None,
    )

    app.state.store = ContentStore(db_path or DB_PATH)
    app.state.uploads_dir = Path(uploads_dir or UPLOADS_DIR)

    # ------------------------------------------------------------------
    # Uploaded images (directory is created in the lifespan)
    # ------------------------------------------------------------------
    app.mount(
        UPLOADS_URL_PREFIX,
        StaticFiles(directory=str(app.state.uploads_dir), check_dir=False),
        name="uploads",
    )

    # ------------------------------------------------------------------
    # CORS
    # ------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=CORS_ORIGINS,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    # ------------------------------------------------------------------
    # Catch-all error handler
    # ------------------------------------------------------------------
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        """Turn any uncaught error into a generic 500 response."""
        logger.opt(exception=exc).error(
            "❌ Unhandled error on {} {}", request.method, request.url.path
        )
        return JSONResponse(
            status_code=500,
            content={"error": "Internal server error", "details": str(exc)},
        )

    # ------------------------------------------------------------------
    # Request logging middleware
    # ------------------------------------------------------------------
    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        """Log each request with status and duration; successful /uploads hits are skipped."""
        method, path = request.method, request.url.path
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "❌ {} {} — raised after {:.3f}s: {}",
                method,
                path,
                time.perf_counter() - start,
                exc,
            )
            raise

        status = response.status_code
        if status >= 500:
            level = "ERROR"
        elif status >= 400:
            level = "WARNING"
        elif path.startswith(UPLOADS_URL_PREFIX):
            return response
        else:
            level = "INFO"

        logger.log(
            level,
            "📤 {} {} — {} [{:.3f}s]",
            method,
            path,
            status,
            time.perf_counter() - start,
        )
        return response

    # ------------------------------------------------------------------
    # Register routers
    # ------------------------------------------------------------------
    app.include_router(health_router)  # /health
    app.include_router(api_router)  # /api/*

    return app


# ---------------------------------------------------------------------------
# Create the app instance (used by Uvicorn)
# ---------------------------------------------------------------------------
app = create_app()


# ---------------------------------------------------------------------------
# Direct execution (development)
# ---------------------------------------------------------------------------
if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "src.main:app",
        host=APP_HOST,
        port=APP_PORT,
        reload=DEBUG,
        log_level="debug" if DEBUG else "info",
    )
