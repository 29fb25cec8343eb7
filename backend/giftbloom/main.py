# backend/giftbloom/main.py

import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from giftbloom.api import order_api
from giftbloom.core import config
from giftbloom.core.errors import GiftBloomError
from giftbloom.core.logger import get_logger
from giftbloom.database import Database

logger = get_logger("giftbloom.main")

STARTED_AT = time.monotonic()


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _error_body(request: Request, message: str, **extra) -> dict:
    body = {
        "success": False,
        "message": message,
        "path": request.url.path,
        "method": request.method,
        "timestamp": _now(),
    }
    body.update(extra)
    return body


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("GiftBloom API startup", extra={"environment": config.APP_ENV})
    try:
        app.state.database.open()
    except GiftBloomError as err:
        # Keep serving: order routes answer 503 until the database is reachable
        logger.error("Database unavailable at startup", extra={"error": err.message})
    yield
    app.state.database.close()
    logger.info("GiftBloom API shutdown")


def register_exception_handlers(app: FastAPI):
    @app.exception_handler(GiftBloomError)
    async def giftbloom_error_handler(request: Request, exc: GiftBloomError):
        if exc.status_code >= 500:
            logger.error("Request failed", extra={"path": request.url.path, "error": exc.message})
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, exc.message))

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"field": ".".join(str(part) for part in error["loc"][1:]), "message": error["msg"]}
            for error in exc.errors()
        ]
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=_error_body(request, "Validation failed", errors=errors),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        message = "Route not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=_error_body(request, message))

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error", extra={"path": request.url.path})
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=_error_body(request, "Internal server error"),
        )


def create_app(database: Optional[Database] = None) -> FastAPI:
    app = FastAPI(title=config.SERVICE_NAME, version=config.SERVICE_VERSION, lifespan=lifespan)
    app.state.database = database or Database()

    # Allow the storefront to call the API
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[config.FRONTEND_URL],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "X-Requested-With"],
    )

    if config.APP_ENV == "development":
        @app.middleware("http")
        async def log_requests(request: Request, call_next):
            logger.info(f"{request.method} {request.url.path}")
            return await call_next(request)

    register_exception_handlers(app)
    app.include_router(order_api.router, prefix="/api")

    @app.get("/")
    async def read_root():
        return {
            "service": config.SERVICE_NAME,
            "version": config.SERVICE_VERSION,
            "status": "running",
            "timestamp": _now(),
            "environment": config.APP_ENV,
            "documentation": "/docs",
        }

    @app.get("/health")
    async def health():
        return {
            "status": "healthy",
            "timestamp": _now(),
            "uptime": round(time.monotonic() - STARTED_AT, 3),
            "database": "connected" if app.state.database.is_open else "unavailable",
            "environment": config.APP_ENV,
        }

    return app


app = create_app()
