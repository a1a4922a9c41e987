"""FastAPI application entrypoint. No business logic; only wiring, error mapping and middleware."""

from dotenv import load_dotenv

load_dotenv()

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.v1 import router as v1_router
from app.core.config import Settings, settings
from app.core.database import engine
from app.core.errors import ServiceError
from app.schemas.errors import ErrorResponse
from app.services.result_cache import ResultCache
from app.services.token_service import TokenBlacklist, TokenService

logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
    datefmt="%Y-%m-%dT%H:%M:%SZ",
)
logger = logging.getLogger(__name__)


def _error_response(
    app_settings: Settings,
    status_code: int,
    error: str,
    message: str,
    detail: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        message=message,
        detail=None if app_settings.is_production else (detail or None),
    )
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log start-up and shutdown; drop the in-process revocation list and cache on exit."""
    app_settings: Settings = app.state.settings
    logger.info(
        "Warden API starting up",
        extra={"environment": app_settings.APP_ENV, "port": app_settings.PORT},
    )

    yield

    app.state.token_service.blacklist.clear()
    app.state.result_cache.clear()
    engine.dispose()
    logger.info("Warden API shutdown complete")


def create_app(app_settings: Settings | None = None) -> FastAPI:
    """
    Build the application and its process-local components.

    The token blacklist and the result cache are created here, owned by app.state,
    and shared by every request handled by this app instance.
    """
    app_settings = app_settings or settings
    app = FastAPI(
        title="Warden API",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.settings = app_settings
    app.state.token_service = TokenService.from_settings(app_settings, TokenBlacklist())
    app.state.result_cache = ResultCache(ttl_seconds=app_settings.CACHE_TTL_SECONDS)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if app_settings.APP_ENV == "dev" else [],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(ServiceError)
    async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
        """Map service exceptions to their status code and a structured body."""
        if exc.status_code >= 500:
            logger.error(
                "Request failed",
                extra={"path": request.url.path, "error_code": exc.error_code},
            )
        headers = {"WWW-Authenticate": "Bearer"} if exc.status_code == 401 else None
        return _error_response(
            app_settings, exc.status_code, exc.error_code, exc.message, exc.detail, headers
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Missing or malformed request fields are client errors (400)."""
        fields = [".".join(str(p) for p in err.get("loc", ())) for err in exc.errors()]
        return _error_response(
            app_settings,
            400,
            "validation_error",
            "Request validation failed.",
            {"fields": fields, "errors": [err.get("msg") for err in exc.errors()]},
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all: generic message, with the exception text only outside production."""
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return _error_response(
            app_settings,
            500,
            "internal",
            "An unexpected error occurred on the server.",
            {"type": type(exc).__name__, "error": str(exc)},
        )

    app.include_router(v1_router, prefix=app_settings.API_PREFIX)

    @app.get("/")
    def root() -> dict[str, str]:
        """Root route; minimal payload for discovery."""
        return {
            "message": "Warden API",
            "status": "OK",
            "environment": app_settings.APP_ENV,
            "docs": "/docs",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("app.main:app", host="0.0.0.0", port=settings.PORT)
