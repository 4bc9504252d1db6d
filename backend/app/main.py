# backend/app/main.py - App FastAPI: middlewares, routers, health y ciclo de vida de la BD
import logging
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.core.settings import Settings, log_settings, settings as default_settings
from app.db.session import create_db_engine, create_session_factory, init_db
from app.utils.errors import register_exception_handlers
from app.utils.logging import setup_logging
from app.utils.responses import success_response

# Routers
from app.api.clients import router as clients_router

logger = logging.getLogger(__name__)

QUIET_PATHS = {"/health", "/health/", "/"}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or default_settings

    # 1) Logging
    setup_logging(settings.LOG_LEVEL)

    # 2) Ciclo de vida: el motor vive lo mismo que el proceso
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.DEBUG:
            log_settings(settings)
        engine = create_db_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO)
        init_db(engine)
        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        app.state.started_at = time.monotonic()
        logger.info(f"🚀 {settings.PROJECT_NAME} v{settings.VERSION} started ({settings.ENVIRONMENT})")
        try:
            yield
        finally:
            engine.dispose()
            logger.info("✅ Database connection closed")

    # 3) App
    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        docs_url="/docs" if settings.DEBUG else None,
        redoc_url="/redoc" if settings.DEBUG else None,
        lifespan=lifespan,
    )

    # 4) CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["content-type", "authorization"],
    )

    # 5) Log de requests (sin health checks)
    @app.middleware("http")
    async def request_logging_middleware(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        path = request.url.path
        if path not in QUIET_PATHS and request.method != "HEAD":
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.info(f"🌐 {request.method} {path} -> {response.status_code} ({elapsed_ms:.1f} ms)")
        return response

    # 6) Error handlers
    register_exception_handlers(app)

    # 7) Routers
    app.include_router(clients_router, prefix="/clients", tags=["clients"])

    # 8) Health / status
    def _uptime(request: Request) -> float:
        started_at = getattr(request.app.state, "started_at", None)
        return round(time.monotonic() - started_at, 3) if started_at is not None else 0.0

    def _now() -> str:
        return datetime.now(timezone.utc).isoformat()

    @app.get("/")
    def root_endpoint():
        return success_response(
            {"service": settings.PROJECT_NAME, "version": settings.VERSION, "endpoints": ["/health", "/status", "/clients"]},
            message="Backend is running successfully!",
        )

    @app.get("/health")
    def health_check(request: Request):
        return success_response(
            {"status": "healthy", "uptime": _uptime(request), "timestamp": _now()},
            message=f"{settings.PROJECT_NAME} is running",
        )

    @app.get("/status")
    def service_status(request: Request):
        return success_response({
            "service": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "status": "operational",
            "uptime": _uptime(request),
            "environment": settings.ENVIRONMENT,
            "timestamp": _now(),
        })

    return app


app = create_app()


# 9) Run
if __name__ == "__main__":
    uvicorn.run(
        "app.main:app",
        host=default_settings.HOST,
        port=default_settings.PORT,
        reload=False,
        access_log=False,
        log_level=default_settings.LOG_LEVEL.lower(),
    )
