# hms/main.py
import logging
from contextlib import asynccontextmanager
from typing import Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.encoders import jsonable_encoder
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from sqlalchemy.exc import IntegrityError

from .config import Settings, get_settings
from .core.logging import setup_logging
from .crud import CRUDError
from .database import Database
from .limiter import limiter, configure_limiter
from .routers import appointments, availability, departments, doctors, health, hospitals, users
from .seed import seed_mock_data

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    log = structlog.get_logger()
    settings: Settings = app.state.settings
    database: Database = app.state.database

    if settings.db_synchronize:
        database.create_tables()
    if settings.is_development:
        db = database.session()
        try:
            seed_mock_data(db)
        finally:
            db.close()
    log.info("startup", environment=settings.environment, port=settings.port)
    yield
    database.dispose()
    log.info("shutdown")


def _integrity_message(exc: IntegrityError) -> str:
    text = str(exc.orig).lower()
    if "unique" in text or "duplicate" in text:
        return "A record with these values already exists"
    if "foreign key" in text:
        return "The record is referenced by, or refers to, another record"
    return "The request conflicts with existing data"


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(CRUDError)
    async def crud_error_handler(request: Request, exc: CRUDError):
        return JSONResponse(
            status_code=exc.status_code,
            content=jsonable_encoder({"detail": exc.message, **exc.extra}),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=jsonable_encoder({"detail": exc.errors()}),
        )

    @app.exception_handler(IntegrityError)
    async def integrity_error_handler(request: Request, exc: IntegrityError):
        logger.warning(f"Integrity error on {request.method} {request.url.path}: {exc.orig}")
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"detail": _integrity_message(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"detail": "Internal server error"},
        )


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = Database(settings.database_url, echo=settings.db_logging)

    configure_limiter(settings.rate_limit_enabled, settings.auth_rate_limit)
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    register_exception_handlers(app)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "HEAD"],
        allow_headers=["*"],
    )

    app.include_router(users.router, prefix="/api")
    app.include_router(hospitals.router, prefix="/api")
    app.include_router(departments.router, prefix="/api")
    app.include_router(doctors.router, prefix="/api")
    app.include_router(availability.router, prefix="/api")
    app.include_router(appointments.router, prefix="/api")
    app.include_router(health.router, prefix="/api")
    return app


def main():
    settings = get_settings()
    uvicorn.run("hms.main:create_app", factory=True, host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    main()
