"""Beam Authorization API - Main FastAPI application."""

import logging
import os
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import make_asgi_app
from sqlalchemy.exc import DBAPIError

from beamauth_api.db.session import is_serialization_failure
from beamauth_api.exceptions import NotFound, PermissionDenied, TransportFailure, ValidationError
from beamauth_api.routes import admin, authorizations, verifications
from beamauth_api.settings import get_settings

# Configure logging
logging.basicConfig(
    level=get_settings().log_level,
    format='{"time": "%(asctime)s", "level": "%(levelname)s", "message": "%(message)s", "module": "%(name)s"}',
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan events."""
    logger.info("Starting Beam Authorization API...")
    try:
        settings.validate_production_settings()
    except Exception as e:
        logger.error(f"Configuration validation failed: {e}")
        raise ValueError(f"Invalid configuration: {e}") from e

    yield
    logger.info("Shutting down Beam Authorization API...")


app = FastAPI(
    title="Beam Authorization API",
    description="Credited control verifications and director's beam authorizations",
    version="0.1.0",
    lifespan=lifespan,
)


def _error_handler(status_code: int):
    async def handler(request: Request, exc: Exception):
        return JSONResponse(status_code=status_code, content={"detail": str(exc)})

    return handler


app.add_exception_handler(ValidationError, _error_handler(status.HTTP_400_BAD_REQUEST))
app.add_exception_handler(PermissionDenied, _error_handler(status.HTTP_403_FORBIDDEN))
app.add_exception_handler(NotFound, _error_handler(status.HTTP_404_NOT_FOUND))
app.add_exception_handler(TransportFailure, _error_handler(status.HTTP_502_BAD_GATEWAY))


async def database_error_handler(request: Request, exc: DBAPIError):
    """Report concurrent-write conflicts as 409 and other driver errors as 503."""
    if is_serialization_failure(exc):
        logger.warning(f"Concurrent modification rejected: {exc.orig}", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": "Concurrent modification detected; reload and retry."},
        )

    logger.error(f"Database error: {exc}", extra={"path": request.url.path})
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content={"detail": "Database unavailable."},
    )


app.add_exception_handler(DBAPIError, database_error_handler)

# Prometheus metrics
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# Register routers
app.include_router(verifications.router)
app.include_router(authorizations.router)
app.include_router(admin.router)


@app.get("/health")
async def health_check():
    """Health check endpoint (basic liveness)."""
    return {
        "status": "healthy",
        "service": "beamauth-api",
        "version": "0.1.0",
    }


@app.get("/ready")
async def readiness_check():
    """Readiness check endpoint (verifies dependencies)."""
    import redis
    from sqlalchemy import text

    from beamauth_api.db.session import SessionLocal

    checks = {
        "database": False,
        "migrations": False,
        "redis": False,
    }

    # Check database connectivity
    db = SessionLocal()
    try:
        db.execute(text("SELECT 1"))
        checks["database"] = True
    except Exception as e:
        logger.error(f"Database check failed: {e}")
    finally:
        db.close()

    # Check Alembic migrations are at head
    if checks["database"]:
        try:
            from alembic.config import Config
            from alembic.runtime.migration import MigrationContext
            from alembic.script import ScriptDirectory

            db = SessionLocal()
            try:
                context = MigrationContext.configure(db.connection())
                current_rev = context.get_current_revision()

                alembic_ini_path = os.path.join(os.path.dirname(__file__), "..", "alembic.ini")
                alembic_cfg = Config(alembic_ini_path)
                alembic_cfg.set_main_option(
                    "script_location", os.path.join(os.path.dirname(__file__), "..", "alembic")
                )
                head_rev = ScriptDirectory.from_config(alembic_cfg).get_current_head()

                if current_rev == head_rev:
                    checks["migrations"] = True
                else:
                    logger.warning(f"Migrations not at head: current={current_rev}, head={head_rev}")
            finally:
                db.close()
        except Exception as e:
            logger.error(f"Migration check failed: {e}")

    # Check Redis (Celery broker)
    try:
        redis_client = redis.from_url(settings.redis_url, socket_connect_timeout=2)
        redis_client.ping()
        checks["redis"] = True
    except Exception as e:
        logger.error(f"Redis check failed: {e}")

    all_ready = all(checks.values())

    return JSONResponse(
        content={
            "status": "ready" if all_ready else "not_ready",
            "checks": checks,
        },
        status_code=200 if all_ready else 503,
    )


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "service": "Beam Authorization API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
