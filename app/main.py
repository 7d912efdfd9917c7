import time
import traceback
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import structlog
from dotenv import load_dotenv

# Load .env file before importing app modules
load_dotenv(override=False)

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import (
    IntegrityError,
    OperationalError,
    SQLAlchemyError,
)
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.endpoints.health import api_info
from app.api.router import api_router
from app.config import settings
from app.database import AsyncSessionLocal
from app.exceptions import CentraTutorException, extract_db_error_message
from app.schemas.health_schema import ApiInfo
from app.services.subscription_sweeper import build_subscription_sweeps
from app.utils.logger import configure_logger

configure_logger()
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the subscription sweeps on startup and stop them on shutdown."""
    logger.info("Starting up FastAPI application", environment=settings.ENVIRONMENT)
    app.state.started_at = time.monotonic()

    sweeps = []
    if settings.SUBSCRIPTION_SWEEPS_ENABLED:
        sweeps = build_subscription_sweeps(AsyncSessionLocal)
        for sweep in sweeps:
            sweep.start()
    try:
        yield
    finally:
        for sweep in sweeps:
            await sweep.stop()
        logger.info("Shutting down FastAPI application")


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    openapi_url=f"{settings.API_PREFIX}/openapi.json",
    lifespan=lifespan,
)


def custom_openapi():
    if app.openapi_schema:
        return app.openapi_schema

    from fastapi.openapi.utils import get_openapi

    openapi_schema = get_openapi(
        title=app.title,
        version=settings.VERSION,
        description="CentraTutor API - exam preparation content, past questions and subscriptions",
        routes=app.routes,
    )

    openapi_schema.setdefault("components", {})["securitySchemes"] = {
        "BearerAuth": {
            "type": "http",
            "scheme": "bearer",
            "bearerFormat": "JWT",
            "description": "Enter JWT token (without 'Bearer ' prefix)",
        }
    }

    public_auth_endpoints = {"/auth/signup", "/auth/login"}

    for path, path_data in openapi_schema["paths"].items():
        for method, method_data in path_data.items():
            if method.upper() == "OPTIONS" or method.upper() == "GET":
                continue
            if any(path.endswith(endpoint) for endpoint in public_auth_endpoints):
                continue
            method_data["security"] = [{"BearerAuth": []}]

    app.openapi_schema = openapi_schema
    return app.openapi_schema


app.openapi = custom_openapi


def error_response(
    status_code: int,
    code: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    exc: Optional[BaseException] = None,
) -> JSONResponse:
    """Render the error body shared by every handler.

    ``details`` and the stack trace are left out in production.
    """
    content: Dict[str, Any] = {"message": message, "code": code}
    if not settings.is_production:
        if details:
            content["details"] = details
        if exc is not None and status_code >= 500:
            content["stack"] = "".join(
                traceback.format_exception(type(exc), exc, exc.__traceback__)
            )
    return JSONResponse(status_code=status_code, content=content)


def _format_validation_errors(errors) -> list:
    return [
        {
            "field": " -> ".join(str(loc) for loc in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in errors
    ]


# Exception handlers
@app.exception_handler(CentraTutorException)
async def centratutor_exception_handler(
    request: Request, exc: CentraTutorException
) -> JSONResponse:
    """Handle custom CentraTutor application exceptions."""
    log = logger.error if exc.status_code >= 500 else logger.warning
    log(
        "Application error",
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        path=request.url.path,
        method=request.method,
    )
    return error_response(exc.status_code, exc.error_code, exc.message, exc.details, exc)


@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Handle invalid bodies, path and query parameters."""
    errors = _format_validation_errors(exc.errors())
    logger.warning(
        "Request validation error",
        errors=errors,
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        400,
        "VALIDATION_ERROR",
        "Input validation failed",
        {"validation_errors": errors},
    )


@app.exception_handler(PydanticValidationError)
async def pydantic_validation_exception_handler(
    request: Request, exc: PydanticValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors raised inside services."""
    errors = _format_validation_errors(exc.errors())
    logger.error(
        "Validation error",
        errors=errors,
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        400,
        "VALIDATION_ERROR",
        "Input validation failed",
        {"validation_errors": errors},
    )


@app.exception_handler(IntegrityError)
async def integrity_error_handler(
    request: Request, exc: IntegrityError
) -> JSONResponse:
    """Handle database integrity errors (unique constraints, not null, etc.)."""
    user_message, technical_details = extract_db_error_message(exc)
    logger.error(
        "Database integrity error",
        error=technical_details,
        path=request.url.path,
        method=request.method,
    )

    if "already exists" in user_message:
        return error_response(409, "CONFLICT_ERROR", "Resource already exists")
    return error_response(400, "INTEGRITY_ERROR", user_message)


@app.exception_handler(OperationalError)
async def operational_error_handler(
    request: Request, exc: OperationalError
) -> JSONResponse:
    """Handle database operational errors (connection issues, etc.)."""
    logger.error(
        "Database operational error",
        error=str(exc.orig) if exc.orig else str(exc),
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        503,
        "DATABASE_UNAVAILABLE",
        "Database is temporarily unavailable. Please try again later.",
        exc=exc,
    )


@app.exception_handler(SQLAlchemyError)
async def sqlalchemy_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """Handle other SQLAlchemy database errors."""
    user_message, technical_details = extract_db_error_message(exc)
    logger.exception(
        "Database error",
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
        technical_details=technical_details,
    )
    return error_response(
        500,
        "DATABASE_ERROR",
        user_message,
        {"technical_details": technical_details, "exception_type": type(exc).__name__},
        exc,
    )


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """Handle HTTP errors raised by routing and FastAPI itself."""
    logger.warning(
        "HTTP error",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
        method=request.method,
    )
    code = "NOT_FOUND_ERROR" if exc.status_code == 404 else "HTTP_ERROR"
    return error_response(exc.status_code, code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for all unhandled exceptions."""
    logger.exception(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        method=request.method,
    )
    return error_response(
        500,
        "INTERNAL_ERROR",
        "An unexpected error occurred. Please try again later.",
        {"exception_type": type(exc).__name__},
        exc,
    )


# Set CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include API router
app.include_router(api_router, prefix=settings.API_PREFIX)
app.add_api_route(settings.API_PREFIX, api_info, response_model=ApiInfo, tags=["Health"])
