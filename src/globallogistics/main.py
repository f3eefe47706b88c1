"""Main FastAPI application."""

from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from globallogistics.api import router
from globallogistics.config import Settings, settings as default_settings
from globallogistics.db import Database, init_db
from globallogistics.logging import configure_logging
from globallogistics.notifications import NotificationDispatcher
from globallogistics.services import ShipmentLocks
from globallogistics.services.exceptions import (
    DuplicateTrackingNumber,
    NotFound,
    TrackingError,
    ValidationError,
)

logger = structlog.get_logger(__name__)


def setup_exception_handlers(app: FastAPI) -> None:
    """Map service errors onto HTTP responses."""

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content=exc.to_dict())

    @app.exception_handler(DuplicateTrackingNumber)
    async def duplicate_handler(request: Request, exc: DuplicateTrackingNumber):
        logger.error("Tracking number allocation failed", attempts=exc.attempts)
        return JSONResponse(status_code=status.HTTP_409_CONFLICT, content=exc.to_dict())

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        logger.warning("Rejected write", path=request.url.path, error=exc.message)
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict())

    @app.exception_handler(TrackingError)
    async def tracking_error_handler(request: Request, exc: TrackingError):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=exc.to_dict())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application for the given settings."""
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan handler."""
        # Startup
        configure_logging(settings.log_level, json=settings.log_json)
        logger.info("Starting", app=settings.app_name)

        if settings.database_url.startswith("sqlite"):
            settings.data_dir.mkdir(parents=True, exist_ok=True)

        database = Database(settings.database_url, echo=settings.debug)
        await init_db(database)

        dispatcher = NotificationDispatcher.from_settings(settings)
        dispatcher.start()

        app.state.settings = settings
        app.state.database = database
        app.state.dispatcher = dispatcher
        app.state.shipment_locks = ShipmentLocks()

        yield

        # Shutdown
        logger.info("Shutting down")
        await dispatcher.stop()
        await database.dispose()

    app = FastAPI(
        title=settings.app_name,
        description="Shipment tracking with an append-only status history",
        version="0.1.0",
        lifespan=lifespan,
    )

    setup_exception_handlers(app)
    app.include_router(router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "globallogistics.main:app",
        host="0.0.0.0",
        port=5000,
        reload=default_settings.debug,
    )
