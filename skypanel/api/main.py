"""
skypanel.api.main — FastAPI application entry point
====================================================

Run with::

    uvicorn skypanel.api.main:app --port 8080

or ``python -m skypanel``, which also configures logging.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

load_dotenv()

from skypanel.api.auth import router as auth_router  # noqa: E402
from skypanel.api.deps import get_config, get_engine  # noqa: E402
from skypanel.api.routes.assistant import router as assistant_router  # noqa: E402
from skypanel.api.routes.configs import router as configs_router  # noqa: E402
from skypanel.api.routes.guilds import router as guilds_router  # noqa: E402
from skypanel.api.session import end_session  # noqa: E402
from skypanel.bot.core import PanelBot, start_bot  # noqa: E402
from skypanel.database.engine import init_db, run_db  # noqa: E402
from skypanel.errors import (  # noqa: E402
    BotNotReady,
    NotConfigured,
    PanelError,
    SessionInvalid,
    ValidationFailed,
)
from skypanel.services.guild_service import (  # noqa: E402
    DiscordGuildService,
    GuildMembershipService,
)

logger = logging.getLogger(__name__)

GUILD_DATA_PREFIX = "/api/guilds/"

NO_CACHE_HEADERS = {
    "Cache-Control": "no-store, no-cache, must-revalidate, proxy-revalidate",
    "Pragma": "no-cache",
    "Expires": "0",
}

NOT_FOUND_PAGE = """<!DOCTYPE html>
<html lang="en">
<head><meta charset="utf-8"><title>Page not found</title></head>
<body>
  <h1>404</h1>
  <p>The page you are looking for does not exist.</p>
  <p><a href="/index.html">Back to home</a></p>
</body>
</html>
"""


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle — tables, bot client, optional features."""
    cfg = get_config()
    await run_db(init_db, get_engine())

    bot: PanelBot | None = None
    bot_task = None
    if app.state.guild_service is None:
        bot = PanelBot()
        app.state.guild_service = DiscordGuildService(bot)
        if cfg.bot_token:
            bot_task = start_bot(bot, cfg.bot_token)
        else:
            logger.warning("DISCORD_TOKEN not set — Discord bot features will be limited.")

    if not cfg.gemini_api_key:
        logger.warning("GEMINI_API_KEY not set — AI assistant features will be disabled.")

    logger.info("SkyPanel API started — redirect URI %s", cfg.redirect_uri)
    yield
    logger.info("SkyPanel API shutting down")

    if bot is not None:
        await bot.close()
    if bot_task is not None:
        await bot_task


def create_app(*, guild_service: GuildMembershipService | None = None) -> FastAPI:
    """Build the app.  *guild_service* replaces the bot-backed one (tests)."""
    cfg = get_config()
    app = FastAPI(title="SkyPanel Dashboard API", version="1.0.0", lifespan=lifespan)
    app.state.guild_service = guild_service

    # -----------------------------------------------------------------------
    # Middleware: the last one declared runs first.
    # -----------------------------------------------------------------------
    @app.middleware("http")
    async def readiness_gate(request: Request, call_next):
        """Refuse guild data until the bot's guild cache is populated."""
        if request.url.path.startswith(GUILD_DATA_PREFIX):
            service = request.app.state.guild_service
            if service is None or not service.is_ready():
                return _error_response(BotNotReady())
        return await call_next(request)

    @app.middleware("http")
    async def no_cache(request: Request, call_next):
        response = await call_next(request)
        if request.url.path.startswith("/api"):
            response.headers.update(NO_CACHE_HEADERS)
        return response

    # Outermost, so the readiness gate's 503 still carries CORS headers.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(cfg.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Error handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(PanelError)
    async def panel_error_handler(request: Request, exc: PanelError):
        if not isinstance(exc, NotConfigured):
            logger.info(
                "%s %s → %d %s: %s",
                request.method, request.url.path, exc.status_code,
                type(exc).__name__, exc.message,
            )
        return _error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        fields = [".".join(str(p) for p in err["loc"][1:]) for err in exc.errors()]
        logger.info("%s %s → invalid body: %s", request.method, request.url.path, fields)
        return _error_response(ValidationFailed("Invalid request data.", fields=fields))

    @app.exception_handler(StarletteHTTPException)
    async def not_found_page(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404:
            logger.info("404: %s %s", request.method, request.url.path)
            return HTMLResponse(NOT_FOUND_PAGE, status_code=404)
        return await http_exception_handler(request, exc)

    @app.exception_handler(Exception)
    async def unhandled_error(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        response = JSONResponse({"message": "Internal server error"}, status_code=500)
        # Rendered outside the no_cache middleware.
        if request.url.path.startswith("/api"):
            response.headers.update(NO_CACHE_HEADERS)
        return response

    # -----------------------------------------------------------------------
    # Routers
    # -----------------------------------------------------------------------
    app.include_router(auth_router)
    app.include_router(guilds_router, prefix="/api")
    app.include_router(configs_router, prefix="/api")
    app.include_router(assistant_router, prefix="/api")

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    return app


def _error_response(exc: PanelError) -> JSONResponse:
    response = JSONResponse(exc.to_body(), status_code=exc.status_code)
    if isinstance(exc, SessionInvalid):
        end_session(response)
    return response


app = create_app()
