from contextlib import asynccontextmanager
import logging
import traceback

from fastapi import FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text

from app.core.config import settings
from app.core.database import engine, init_db
from app.core.exceptions import (
    EasyEnglishException,
    ValidationError,
    NotFoundError,
    ConflictError,
    AuthenticationError,
    AuthorizationError,
    ServiceUnavailableError
)

# Import models to register them with SQLModel
from app.models import models  # noqa: F401

# Import API router
from app.api.v1 import api_router

logger = logging.getLogger(__name__)

EXCEPTION_STATUS_CODES = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    ServiceUnavailableError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def status_code_for(exc: EasyEnglishException) -> int:
    for exc_class in type(exc).__mro__:
        if exc_class in EXCEPTION_STATUS_CODES:
            return EXCEPTION_STATUS_CODES[exc_class]
    return status.HTTP_500_INTERNAL_SERVER_ERROR


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info(f"EasyEnglish API started (environment: {settings.environment})")
    yield


app = FastAPI(title="EasyEnglish API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Malformed request bodies and parameters are client errors: 400, not FastAPI's 422
@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": jsonable_encoder(exc.errors()), "type": "ValidationError"},
    )


@app.exception_handler(EasyEnglishException)
async def easyenglish_exception_handler(request: Request, exc: EasyEnglishException):
    """Translate application exceptions into JSON error responses."""
    status_code = status_code_for(exc)
    logger.warning(
        f"{type(exc).__name__} on {request.method} {request.url.path} -> {status_code}: {exc}"
    )
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "type": type(exc).__name__},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    """Last-resort 500; details are only exposed in development."""
    logger.error(f"Unhandled exception on {request.method} {request.url.path}", exc_info=exc)

    content = {
        "detail": "An internal server error occurred. Please try again later.",
        "type": "InternalServerError",
    }
    if settings.is_development:
        content = {
            "detail": str(exc),
            "type": type(exc).__name__,
            "traceback": traceback.format_exc(),
        }
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@app.get("/")
async def root():
    return {
        "message": "EasyEnglish API",
        "status": "running",
        "docs": {
            "swagger": "/docs",
            "redoc": "/redoc"
        }
    }


@app.get("/health")
def health():
    """Liveness plus a quick look at the database and external services."""
    try:
        with engine.connect() as connection:
            connection.execute(text("SELECT 1"))
        database_ok = True
    except Exception as e:
        logger.error(f"Health check: database unreachable: {e}")
        database_ok = False

    return {
        "status": "healthy" if database_ok else "degraded",
        "database": database_ok,
        "ai_feedback_configured": bool(settings.google_gemini_api_key),
        "storage_configured": bool(
            settings.aws_access_key_id and settings.aws_secret_access_key and settings.aws_s3_bucket
        ),
    }


app.include_router(api_router, prefix=settings.api_v1_prefix)
