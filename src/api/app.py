from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import SQLAlchemyError
from .error import ClientError, ServerError
import logging

logger = logging.getLogger(__name__)


async def handle_client_error(request: Request, exc: ClientError):
    error_dict = {"code": exc.base_error.code, "message": exc.base_error.message}
    if exc.details is not None:
        error_dict["details"] = exc.details
    logger.warning(f"Client error: {error_dict}")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_server_error(request: Request, exc: ServerError):
    # Retryable failures keep their message, anything else is opaque
    message = exc.base_error.message
    if exc.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        message = "Internal server error"
    error_dict = {"code": exc.base_error.code, "message": message}
    logger.error(f"Server error: {exc.base_error.code} ({exc.base_error.reason})")
    return JSONResponse(status_code=exc.status_code, content={"error": error_dict})


async def handle_store_error(request: Request, exc: SQLAlchemyError):
    logger.error(f"Store unavailable on {request.method} {request.url.path}: {exc}")
    error_dict = {"code": "STORE_UNAVAILABLE", "message": "Store unavailable, retry later"}
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content={"error": error_dict}
    )


def create_app(ApplicationConfig) -> FastAPI:
    app = FastAPI(title="Entitlement Service", version="0.1.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ApplicationConfig.CORS_ORIGINS,
        allow_credentials=ApplicationConfig.CORS_ALLOW_CREDENTIALS,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from src.api.routes import admin, entitlements, health_check, me, subscriptions, usage, webhooks

    prefix = ApplicationConfig.API_PREFIX
    app.include_router(health_check.router, tags=["Health"])
    app.include_router(webhooks.router, prefix=prefix, tags=["Webhooks"])
    app.include_router(subscriptions.router, prefix=prefix, tags=["Subscriptions"])
    app.include_router(entitlements.router, prefix=prefix, tags=["Entitlements"])
    app.include_router(usage.router, prefix=prefix, tags=["Usage"])
    app.include_router(me.router, prefix=prefix, tags=["Me"])
    app.include_router(admin.router, prefix=prefix, tags=["Admin"])

    app.add_exception_handler(ClientError, handle_client_error)
    app.add_exception_handler(ServerError, handle_server_error)
    app.add_exception_handler(SQLAlchemyError, handle_store_error)

    return app
