from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    message = "Internal server error"
    if exc.status_code == status.HTTP_503_SERVICE_UNAVAILABLE:
        message = exc.base_error.message
    error_dict = {"code": exc.base_error.code, "message": message}
    logger.error(f"Server error: {exc.base_error.code}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Release the change notifier's transport on shutdown"""
    from src.depends import get_change_notifier

    yield

    provider = app.dependency_overrides.get(get_change_notifier, get_change_notifier)
    await provider().close()
    logger.info("Change notifier closed")


def create_app(ApplicationConfig) -> FastAPI:
    app = FastAPI(title="Gate Access API", version="0.1.0", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import access, admin, health_check, invitation

    app.include_router(health_check.router, tags=["Health"])
    app.include_router(access.router, tags=["Access"])
    app.include_router(invitation.router, tags=["Invitations"])
    app.include_router(admin.router, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)

    return app
