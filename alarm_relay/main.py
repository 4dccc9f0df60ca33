"""
Alarm Relay - HTTP API

FastAPI application that provides:
- Arm / disarm / trigger / stop-alarm control
- Relay of arm, disarm and stop commands to the remote device controller
- Sensor and image telemetry storage

The arming state lives in process memory only and resets on restart.
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .common.config import Settings, get_settings
from .common.exceptions import (
    NotArmedError,
    NotFoundError,
    RemoteNotifyError,
    StorageError,
    ValidationError,
)
from .common.logging_setup import get_service_logger
from .routers import system, telemetry
from .services.remote_notifier import RemoteNotifier
from .services.state_machine import AlarmStateMachine
from .services.telemetry_store import TelemetryStore

VERSION = __version__

logger = get_service_logger("api")


def create_app(
    settings: Settings | None = None,
    notifier: RemoteNotifier | None = None,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Configuration (defaults to environment settings)
        notifier: Remote device client (defaults to one built from settings)
    """
    settings = settings or get_settings()

    # ============================================
    # APPLICATION LIFESPAN
    # ============================================

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup:
        - Create telemetry files if missing
        - Build the remote notifier and the state machine

        Shutdown:
        - Wait for pending stop notifications
        - Close the remote device HTTP client
        """
        store = TelemetryStore(settings.sensor_path, settings.image_path)
        store.ensure_files()

        remote = notifier or RemoteNotifier(
            settings.remote_device_url,
            timeout_seconds=settings.remote_timeout_seconds,
        )

        app.state.settings = settings
        app.state.telemetry_store = store
        app.state.notifier = remote
        app.state.state_machine = AlarmStateMachine(remote)

        logger.info(
            "Alarm relay started",
            extra={
                "remote_device_url": settings.remote_device_url,
                "data_dir": str(settings.data_dir),
            },
        )

        yield

        await app.state.state_machine.drain()
        await remote.close()
        logger.info("Alarm relay stopped")

    app = FastAPI(
        title="Alarm Relay API",
        description="Arm/disarm control, alarm relay and telemetry storage.",
        version=VERSION,
        lifespan=lifespan,
    )

    # ============================================
    # CORS MIDDLEWARE
    # ============================================

    if settings.origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    # ============================================
    # ERROR HANDLERS
    # ============================================

    def _state(request: Request) -> dict:
        return request.app.state.state_machine.get_state().to_dict()

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": exc.message},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": "Request body is not valid JSON"},
        )

    @app.exception_handler(NotArmedError)
    async def not_armed_handler(request: Request, exc: NotArmedError):
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"message": exc.message, "state": _state(request)},
        )

    @app.exception_handler(RemoteNotifyError)
    async def remote_notify_handler(request: Request, exc: RemoteNotifyError):
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"message": exc.message, "state": _state(request)},
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"error": exc.message},
        )

    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError):
        logger.error(exc.message, extra={"path": exc.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": exc.message},
        )

    # ============================================
    # INCLUDE ROUTERS
    # ============================================

    app.include_router(system.router, prefix="/api", tags=["System"])
    app.include_router(telemetry.router, prefix="/api", tags=["Telemetry"])

    # ============================================
    # HEALTH
    # ============================================

    @app.get("/", tags=["Health"])
    async def root():
        """Basic API information."""
        return {
            "name": "Alarm Relay API",
            "version": VERSION,
            "status": "running",
            "docs": "/docs",
        }

    @app.get("/health", tags=["Health"])
    async def health_check(request: Request):
        """Service health and current alarm status."""
        state = request.app.state.state_machine.get_state()
        return {
            "status": "healthy",
            "alarm_status": state.status.value,
            "remote_device_url": settings.remote_device_url,
            "version": VERSION,
        }

    return app
