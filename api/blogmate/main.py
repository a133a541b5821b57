from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from alembic import command
from alembic.config import Config
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from starlette.exceptions import HTTPException as StarletteHTTPException

from .db import make_engine, make_sessionmaker
from .errors import BlogMateError, StoreUnavailable
from .middleware import RequestLoggingMiddleware, SecurityHeadersMiddleware
from .prompts import load_prompts
from .routers import ai, blogs, comments, system, users
from .seed import ensure_seed_data
from .services.ai import AIHelper, TextModel
from .settings import Settings, load_settings

logger = logging.getLogger(__name__)


def _alembic_config() -> Config:
    base_dir = Path(__file__).resolve().parent.parent
    cfg = Config()
    cfg.set_main_option("script_location", str(base_dir / "alembic"))
    return cfg


def run_migrations(engine: Engine) -> None:
    logger.info("run_migrations: Starting...")
    try:
        cfg = _alembic_config()
        with engine.begin() as connection:
            cfg.attributes["connection"] = connection
            command.upgrade(cfg, "head")
        logger.info("run_migrations: Completed successfully.")
    except Exception as e:
        logger.error(f"run_migrations: Error occurred: {e}", exc_info=True)
        raise


def _error_response(status_code: int, message: str, headers: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)


def _install_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BlogMateError)
    async def handle_domain_error(request: Request, exc: BlogMateError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path}: {exc.message}")
        return _error_response(exc.status_code, exc.message)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return _error_response(exc.status_code, str(exc.detail), getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors = exc.errors()
        if errors:
            first = errors[0]
            location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
            message = f"{location}: {first.get('msg')}" if location else str(first.get("msg"))
        else:
            message = "invalid request"
        return _error_response(status.HTTP_400_BAD_REQUEST, message)

    @app.exception_handler(OperationalError)
    @app.exception_handler(PoolTimeoutError)
    async def handle_store_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path}: storage error: {exc}")
        error = StoreUnavailable()
        return _error_response(error.status_code, error.message)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"{request.method} {request.url.path}: unhandled error: {exc}", exc_info=exc)
        return _error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "internal error")


def create_app(settings: Settings | None = None, ai_model: TextModel | None = None) -> FastAPI:
    """
    Build the application.

    ``ai_model`` replaces the Gemini client (the tests pass a scripted fake).
    """
    settings = settings or load_settings()
    logging.basicConfig(level=settings.log_level.upper())

    engine = make_engine(settings)
    session_factory = make_sessionmaker(engine)

    if ai_model is None:
        from .services.gemini import GeminiModel

        ai_model = GeminiModel(
            settings.gemini_api_key, settings.gemini_model, settings.ai_timeout_seconds
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("Starting application...")
        if settings.run_migrations:
            run_migrations(engine)
        ensure_seed_data(session_factory, settings)
        logger.info("BlogMate API server ready")
        yield
        logger.info("Shutting down application...")
        engine.dispose()

    app = FastAPI(
        title="BlogMate API",
        version="1.0.0",
        description="Blogging platform API with AI-assisted authoring",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = session_factory
    app.state.ai = AIHelper(ai_model, load_prompts(settings.prompts_file))

    if "*" in settings.cors_origins:
        logger.warning(
            "CORS is configured to allow all origins. "
            "This is insecure for production. Set CORS_ORIGINS to specific domains."
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "PATCH", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization", "Accept", "Origin", "X-Requested-With"],
        max_age=600,
    )
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    _install_exception_handlers(app)

    app.include_router(system.router)
    app.include_router(blogs.router)
    app.include_router(comments.router)
    app.include_router(users.router)
    app.include_router(ai.router)
    return app


def run() -> None:
    """Console entry point: serve the API with uvicorn on $PORT."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
