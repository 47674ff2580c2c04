from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from .errors import AppError
from .logging_setup import setup_logging
from .repositories import Stores, build_stores
from .routers import accounts as accounts_router
from .routers import profile as profile_router
from .routers import tasks as tasks_router
from .security import TokenService
from .services import AccountService, ProfileService, TaskService
from .settings import Settings, get_settings
from .storage import LocalFileStorage
from .utils import describe_validation_errors, error_response

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "health", "description": "Service health and status endpoints."},
    {"name": "accounts", "description": "Registration and login."},
    {
        "name": "tasks",
        "description": "Create, list (with date/search filters) and partially update the caller's tasks.",
    },
    {"name": "profile", "description": "Profile statistics and profile image upload."},
]


def _register_exception_handlers(app: FastAPI) -> None:
    """Every error leaves the service as {"error": <message>}."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return error_response(exc.status_code, exc.message, headers)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """
        Return a 400 with the first validation problem, e.g.
        {"error": "isChecked: Input should be a valid boolean"}.
        """
        return error_response(400, describe_validation_errors(exc.errors()))

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return error_response(500, "Internal server error")


# PUBLIC_INTERFACE
def create_app(
    settings: Optional[Settings] = None,
    *,
    stores: Optional[Stores] = None,
    file_storage: Optional[LocalFileStorage] = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Configuration; the cached process settings are used when omitted.
        stores: Pre-built stores; built from settings when omitted.
        file_storage: Image storage; a LocalFileStorage on settings.upload_dir when omitted.

    Returns:
        A ready FastAPI app whose services live on app.state.
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level)

    app = FastAPI(
        title="Tasks Backend",
        description="Task management API with user accounts, bearer-token auth and profile images.",
        version="1.0.0",
        openapi_tags=openapi_tags,
    )

    # Configure CORS based on settings (.env -> CORS_ALLOW_ORIGINS), with '*' fallback
    allow_all = (settings.cors_allow_origins == ["*"]) or (len(settings.cors_allow_origins) == 0)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if allow_all else settings.cors_allow_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    stores = stores or build_stores(settings)
    token_service = TokenService.from_settings(settings)
    app.state.settings = settings
    app.state.stores = stores
    app.state.token_service = token_service
    app.state.account_service = AccountService(
        stores.users, token_service, password_hash_method=settings.password_hash_method
    )
    app.state.task_service = TaskService(stores.tasks)
    app.state.profile_service = ProfileService(
        stores.users,
        stores.tasks,
        file_storage or LocalFileStorage(settings.upload_dir),
        max_image_bytes=settings.max_image_bytes,
    )

    _register_exception_handlers(app)

    # PUBLIC_INTERFACE
    @app.get("/", summary="Health Check", tags=["health"])
    def health_check():
        """
        Health check endpoint.

        Returns:
            A JSON object indicating service health.
        """
        return {"message": "Healthy", "backend": settings.persistence_backend}

    app.include_router(accounts_router.router)
    app.include_router(tasks_router.router)
    app.include_router(profile_router.router)

    logger.info("Tasks backend ready (backend=%s)", settings.persistence_backend)
    return app


app = create_app()


# PUBLIC_INTERFACE
def run() -> None:
    """Serve the app with uvicorn on the configured host and port."""
    import uvicorn

    settings = app.state.settings
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
