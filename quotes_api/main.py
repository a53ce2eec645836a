"""
Quotes API — FastAPI Application Factory
==========================================

What:  Creates and configures the FastAPI application instance.
How:   `create_app(settings)` builds the engine, the quote store picked by
       QUOTE_BACKEND, the token and user services, parks them on `app.state`,
       then registers middleware, exception handlers and routers.
Who:   uvicorn (`quotes_api.main:app`, or `python -m quotes_api`) and the
       test suite, which builds one app per Settings variant.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌────────┐ ┌─────────┐ ┌───────────┐ ┌──────┐           │
    │  │ Req ID │→│ Logging │→│ Preflight │→│ CORS │           │
    │  └────────┘ └─────────┘ └───────────┘ └──────┘           │
    │                                                          │
    │  Routes:                                                 │
    │  ┌─────────┐ ┌──────────┐ ┌───────────┐ ┌─────────┐      │
    │  │ /quotes │ │ /auth/*  │ │ /users/me │ │ /health │      │
    │  └─────────┘ └──────────┘ └───────────┘ └─────────┘      │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ QuoteApiError→status_code │ body→400 │ route→404   │  │
    │  │ anything else→500                                  │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Check security-sensitive settings (logged, not fatal)
    3. Create missing tables when DB_AUTO_CREATE is set
    4. Log the route banner

    Shutdown:
    1. Dispose the database engine (close pooled connections)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from quotes_api import __version__
from quotes_api.config import QUOTE_BACKEND_FILE, Settings, settings as default_settings
from quotes_api.database import build_engine, build_session_factory, dispose_engine, init_models
from quotes_api.exceptions import AuthError, QuoteApiError
from quotes_api.middleware.cors import ALLOWED_HEADERS, ALLOWED_METHODS, PreflightMiddleware
from quotes_api.middleware.logging import RequestLoggingMiddleware
from quotes_api.middleware.request_id import RequestIDMiddleware, request_id_var
from quotes_api.routes import auth, health, quotes, users
from quotes_api.schemas.common import envelope
from quotes_api.services.file_quote_store import FileQuoteStore
from quotes_api.services.quote_store import QuoteStore
from quotes_api.services.security import TokenService
from quotes_api.services.sql_quote_store import SqlQuoteStore
from quotes_api.services.user_service import UserService

logger = logging.getLogger(__name__)

INVALID_BODY_MESSAGE = "Invalid request body"
ROUTE_NOT_FOUND_MESSAGE = "Route not found"
INTERNAL_ERROR_MESSAGE = "Internal server error"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger once per process.

    Format: 2024-01-15T12:00:00 [INFO] quotes_api.access: GET /quotes 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Our access middleware already logs each request
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if log_level == "DEBUG" else logging.WARNING
    )
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

def _log_banner(app: FastAPI, config: Settings) -> None:
    logger.info("=" * 60)
    logger.info("Quotes API %s", __version__)
    logger.info(
        "Quote backend: %s | Auth mode: %s",
        config.quote_backend,
        config.auth_mode,
    )
    if config.quote_backend == QUOTE_BACKEND_FILE:
        logger.info("Quotes file: %s", config.quotes_file)
    logger.info("Available endpoints:")
    for route in app.routes:
        methods = getattr(route, "methods", None)
        if not methods or route.path.startswith(("/docs", "/redoc", "/openapi")):
            continue
        for method in sorted(methods - {"HEAD"}):
            logger.info("  %-6s %s", method, route.path)
    logger.info("Server ready at http://%s:%d", config.host, config.port)
    logger.info("=" * 60)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Startup before `yield`, shutdown after."""
    config: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(config.log_level)

    try:
        config.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    if config.db_auto_create:
        await init_models(app.state.engine)
        logger.info("Database tables ready")

    _log_banner(app, config)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Quotes API shutting down...")
    await dispose_engine(app.state.engine)
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def register_exception_handlers(app: FastAPI) -> None:
    """
    Turn every failure into the `{statusCode, message, error?}` envelope.

    Handler hierarchy:
        QuoteApiError           → exc.status_code (400/401/403/404/500)
        RequestValidationError  → 400 "Invalid request body"
        HTTPException 404/405   → 404 "Route not found"
        HTTPException 400       → 400 "Invalid request body" (undecodable body)
        HTTPException (other)   → its own status and detail
        Exception (fallback)    → 500 "Internal server error"

    Internal details (paths, SQL, stack traces) go to the log only.
    """

    @app.exception_handler(QuoteApiError)
    async def handle_quote_api_error(request: Request, exc: QuoteApiError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error("[%s] %s | Context: %s", rid, exc.message, exc.context)
        else:
            logger.info("[%s] %s: %s", rid, type(exc).__name__, exc.message)

        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, AuthError) else None
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(exc.status_code, exc.message, exc.error),
            headers=headers,
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        detail = errors[0].get("msg") if errors else None
        logger.info("[%s] Invalid request body: %s", request_id_var.get(""), detail)
        return JSONResponse(
            status_code=400,
            content=envelope(400, INVALID_BODY_MESSAGE, detail),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content=envelope(404, ROUTE_NOT_FOUND_MESSAGE))
        if exc.status_code == 400:
            # Raised by FastAPI for bodies it cannot decode at all (e.g. not UTF-8)
            logger.info("[%s] Unparseable request body: %s", request_id_var.get(""), exc.detail)
            return JSONResponse(
                status_code=400,
                content=envelope(400, INVALID_BODY_MESSAGE, str(exc.detail)),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=envelope(exc.status_code, str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return JSONResponse(status_code=500, content=envelope(500, INTERNAL_ERROR_MESSAGE))


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def build_quote_store(config: Settings, session_factory) -> QuoteStore:
    """The QuoteStore selected by QUOTE_BACKEND."""
    if config.quote_backend == QUOTE_BACKEND_FILE:
        return FileQuoteStore(config.quotes_file)
    return SqlQuoteStore(session_factory)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: Configuration to build with; the process-wide default
                  (environment / .env) when omitted.
    """
    config = settings or default_settings

    app = FastAPI(
        title="Quotes API",
        description="Store, browse and randomly sample quotes, with optional bearer-token auth.",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Shared Collaborators ──────────────────────────────────────────────
    engine = build_engine(config)
    session_factory = build_session_factory(engine)
    token_service = TokenService(
        secret=config.jwt_secret,
        algorithm=config.jwt_algorithm,
        expire_hours=config.token_expire_hours,
    )

    app.state.settings = config
    app.state.engine = engine
    app.state.quote_store = build_quote_store(config, session_factory)
    app.state.token_service = token_service
    app.state.user_service = UserService(
        session_factory,
        token_service,
        bcrypt_rounds=config.bcrypt_rounds,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → Preflight → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins_list,
        allow_methods=ALLOWED_METHODS,
        allow_headers=ALLOWED_HEADERS,
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(PreflightMiddleware, allow_origins=config.cors_origins_list)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(quotes.router)
    app.include_router(auth.router)
    app.include_router(users.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()
