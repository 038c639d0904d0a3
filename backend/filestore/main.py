"""Filestore FastAPI application factory."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from fastapi.staticfiles import StaticFiles

from filestore import __version__
from filestore.config import settings
from filestore.database import async_session, init_db
from filestore.exceptions import FilestoreError
from filestore.services import init_services, shutdown_services

logger = logging.getLogger(__name__)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    """Startup / shutdown lifecycle."""
    # === STARTUP ===
    _setup_logging()

    Path(settings.data_dir).mkdir(parents=True, exist_ok=True)

    await init_db()
    logger.info("Filestore v%s started — listening on %s:%s", __version__, settings.host, settings.port)

    await init_services(async_session)

    try:
        yield
    finally:
        # === SHUTDOWN ===
        await shutdown_services()
        logger.info("Filestore shutting down")


def _setup_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    # Quieten noisy third-party loggers
    for noisy in ("aiosqlite", "sqlalchemy.engine", "apscheduler", "python_multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FilestoreError)
    async def filestore_error_handler(request: Request, exc: FilestoreError) -> JSONResponse:
        logger.warning(
            "%s in %s %s: %s", type(exc).__name__, request.method, request.url.path, exc,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc), "type": "error"},
        )


def create_app() -> FastAPI:
    """Application factory."""
    from filestore.api.routes import api_router

    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        debug=settings.debug,
        lifespan=_lifespan,
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    _register_error_handlers(app)

    # Mount API routes
    app.include_router(api_router, prefix=settings.api_prefix)

    # Serve the single-page frontend build (dist/) when present
    static_dir = Path(__file__).resolve().parent.parent.parent / "dist"
    if static_dir.is_dir() and (static_dir / "index.html").exists():
        if (static_dir / "assets").is_dir():
            app.mount("/assets", StaticFiles(directory=static_dir / "assets"), name="frontend-assets")

        _index = static_dir / "index.html"

        # SPA fallback: any non-API route serves index.html
        @app.get("/", include_in_schema=False)
        async def _spa_root():
            return FileResponse(_index)

        @app.get("/{full_path:path}", include_in_schema=False)
        async def _spa_fallback(full_path: str):
            # Try to serve the exact file first (favicon.ico, etc.)
            file_path = static_dir / full_path
            if full_path and file_path.is_file():
                return FileResponse(file_path)
            return FileResponse(_index)

        logger.info("Frontend mounted from %s", static_dir)
    else:
        logger.info("No frontend found at %s — API-only mode", static_dir)

    return app


app = create_app()


def run(**kwargs: Any) -> None:
    import uvicorn

    uvicorn.run(
        "filestore.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        workers=settings.uvicorn_workers,
        log_level=settings.log_level.lower(),
        **kwargs,
    )


if __name__ == "__main__":
    run()
