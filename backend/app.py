import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

import setproctitle

import settings
from brotli_asgi import BrotliMiddleware
from fastapi import FastAPI, APIRouter, Request
from fastapi.responses import JSONResponse

from routes.connections_route import router as connections_router
from routes.messages_route import router as messages_router
from routes.profile_qr_route import router as profile_qr_router
from routes.profiles_route import router as profiles_router
from routes.status_route import get_version, router as status_router
from services.errors import ServiceError
from starlette.middleware import Middleware

from utils.logs import setup_logs

logger = logging.getLogger("tapin.main")
setup_logs(settings.LOG_LEVEL)
setproctitle.setproctitle("TapIn API")


def update_database():  # pragma: no cover
    """Init the DB or run the Alembic migrations"""
    import alembic.config

    if not Path("alembic.ini").is_file():
        os.chdir(settings.BACKEND_DIR)

    try:
        alembic.config.main(
            argv=[
                "--raiseerr",
                "upgrade",
                "head",
            ]
        )
    except Exception as e:
        logger.exception(f"Cannot run DB migrations: {e}")


async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


@asynccontextmanager
async def app_lifespan(app: FastAPI):
    """Lifespan context manager for FastAPI app"""
    logger.debug("Starting...")
    update_database()
    yield
    logger.debug("Closing app")


def create_app() -> FastAPI:
    """Create and configure the FastAPI application"""

    app = FastAPI(
        title="TapIn",
        description="Campus connections and direct messages",
        version=get_version(),
        middleware=[
            Middleware(BrotliMiddleware, minimum_size=1000),
        ],
        swagger_ui_parameters={
            "defaultModelsExpandDepth": 0,
        },  # collapse the swagger schema
        lifespan=app_lifespan,
    )
    app.add_exception_handler(ServiceError, service_error_handler)

    # Mount routers
    api_router = APIRouter()
    api_router.include_router(status_router)
    api_router.include_router(connections_router, tags=["connections"])
    api_router.include_router(messages_router, tags=["messages"])
    api_router.include_router(profiles_router, tags=["profiles"])
    api_router.include_router(profile_qr_router, tags=["profile-qr"])
    app.include_router(api_router, prefix=settings.API_PREFIX)
    return app
