"""FastAPI application setup for CV Screener."""

from __future__ import annotations

from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cv_screener.api.routes_admin import router as admin_router
from cv_screener.api.routes_chat import router as chat_router
from cv_screener.core.config import Settings, get_settings
from cv_screener.core.errors import ConfigurationError, ScreenerError
from cv_screener.core.logging import configure_logging, get_logger
from cv_screener.ingest.resume import load_corpus
from cv_screener.retrieval.service import RetrievalService, build_service

logger = get_logger(__name__)


def create_app(settings: Settings | None = None, service: RetrievalService | None = None) -> FastAPI:
    """Build the app; the retrieval service is created once at startup unless injected."""
    app = FastAPI(
        title="AI CV Screener",
        version="1.0.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.settings = settings
    app.state.service = service
    app.state.startup_error = None

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(chat_router, prefix="/api/chat", tags=["chat"])
    app.include_router(admin_router, prefix="", tags=["admin"])

    @app.on_event("startup")
    def startup() -> None:
        if app.state.settings is None:
            app.state.settings = get_settings()
        if app.state.service is None:
            try:
                app.state.service = build_service(app.state.settings)
            except ConfigurationError as exc:
                logger.error("Retrieval service not configured: %s", exc)
                app.state.startup_error = str(exc)
                return
            _auto_ingest(app.state.settings, app.state.service)

    @app.on_event("shutdown")
    def shutdown() -> None:
        if app.state.service is not None:
            app.state.service.close()

    @app.get("/api/health", tags=["admin"])
    def health() -> dict[str, str]:
        """Simple liveness check."""
        return {
            "status": "OK",
            "message": "AI CV Screener API is running",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/", tags=["admin"])
    def root() -> dict[str, object]:
        return {
            "message": "AI CV Screener API",
            "version": app.version,
            "endpoints": {"health": "/api/health", "chat": "/api/chat", "index": "/api/index"},
        }

    return app


def _auto_ingest(settings: Settings, service: RetrievalService) -> None:
    if not settings.auto_ingest:
        return
    if not settings.corpus_path.exists():
        logger.warning("Corpus %s not found; skipping initial ingest", settings.corpus_path)
        return
    try:
        service.ensure_index(lambda: load_corpus(settings.corpus_path))
    except ScreenerError as exc:
        # the API still serves; chat falls back until a rebuild succeeds
        logger.error("Initial ingest failed: %s", exc)


configure_logging()

app = create_app()
