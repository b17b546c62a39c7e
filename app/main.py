from contextlib import asynccontextmanager
from typing import Optional
import logging

import uvicorn
from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .context import AppContext, build_context
from .core.config import Settings, get_settings
from .database import create_db_and_tables
from .exceptions import (
    http_exception_handler,
    pool_timeout_handler,
    unhandled_exception_handler,
    validation_exception_handler,
)
from .middleware import (
    ErrorHandlingMiddleware,
    LoggingMiddleware,
    RateLimitMiddleware,
    RequestSizeLimitMiddleware,
    SecurityMiddleware,
)
from .routers import devices_router, health_router, keys_router, messages_router, registration_router

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=settings.LOG_FORMAT,
    )


@asynccontextmanager
async def lifespan(app: FastAPI):
    ctx: AppContext = app.state.context
    logger.info(f"Starting {ctx.settings.APP_NAME}...")
    create_db_and_tables(ctx.engine)
    ctx.verification.purge_expired()
    logger.info("Database initialized successfully")
    yield
    logger.info(f"Shutting down {ctx.settings.APP_NAME}...")
    ctx.engine.dispose()


def create_app(settings: Optional[Settings] = None, context: Optional[AppContext] = None) -> FastAPI:
    """Build the application; missing DATABASE_URL or JWT_SECRET_KEY fails here, at startup."""
    load_dotenv()
    if context is None:
        settings = settings or get_settings()
        context = build_context(settings)
    settings = context.settings
    configure_logging(settings)

    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        debug=settings.DEBUG,
        lifespan=lifespan,
        docs_url=("/docs" if settings.DOCS_ENABLED else None),
        redoc_url=("/redoc" if settings.DOCS_ENABLED else None),
        openapi_url=("/openapi.json" if settings.DOCS_ENABLED else None),
    )
    app.state.context = context

    # Add custom exception handlers
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(PoolTimeoutError, pool_timeout_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Add middleware
    app.add_middleware(ErrorHandlingMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(SecurityMiddleware)
    app.add_middleware(RequestSizeLimitMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=False,
        allow_methods=settings.allowed_methods_list,
        allow_headers=settings.allowed_headers_list,
    )

    app.include_router(registration_router.router)
    app.include_router(keys_router.router)
    app.include_router(devices_router.router)
    app.include_router(messages_router.router)
    app.include_router(health_router.router)

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    run()
