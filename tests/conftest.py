"""
tests/conftest.py — Shared Test Fixtures
=========================================
"""

from __future__ import annotations

import asyncio
from typing import Any

import httpx
import pytest
from sqlalchemy import Engine, create_engine

# ---------------------------------------------------------------------------
# Make JSONB columns work in SQLite for testing.
# ---------------------------------------------------------------------------
from sqlalchemy.dialects.postgresql import JSONB as PG_JSONB
from sqlalchemy.pool import StaticPool

from skypanel.database.models import Base
from skypanel.errors import NotFound
from skypanel.services.discord_oauth import DiscordOAuthClient

_jsonb_sqlite_registered = False


def _register_jsonb_sqlite_compat():
    """Register SQLite compilation for PG JSONB type (idempotent)."""
    global _jsonb_sqlite_registered
    if _jsonb_sqlite_registered:
        return
    from sqlalchemy.ext.compiler import compiles

    @compiles(PG_JSONB, "sqlite")
    def _compile_jsonb_as_text(type_, compiler, **kw):
        return "TEXT"

    _jsonb_sqlite_registered = True


_register_jsonb_sqlite_compat()


def run_async(coro):
    """Run an async coroutine without pytest-asyncio."""
    return asyncio.run(coro)


REDIRECT_URI = "http://localhost:8080/api/callback"


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------
class FakeGuildService:
    """In-memory stand-in for the bot-backed guild service.

    *guilds* maps guild id → member roster.  Every live lookup is recorded
    in :attr:`calls` so tests can assert none happened.
    """

    def __init__(self, *, ready: bool = True, guilds: dict[str, list[dict]] | None = None):
        self.ready = ready
        self.guilds = guilds or {}
        self.calls: list[tuple[str, str]] = []

    def is_ready(self) -> bool:
        return self.ready

    def guild_is_member(self, guild_id: str) -> bool:
        return guild_id in self.guilds

    def cached_guild_stats(self) -> tuple[int, int]:
        return len(self.guilds), sum(len(m) for m in self.guilds.values())

    async def fetch_guild(self, guild_id: str) -> Any:
        self.calls.append(("fetch_guild", guild_id))
        if guild_id not in self.guilds:
            raise NotFound("Discord guild not found.")
        return guild_id

    async def fetch_members(self, guild_id: str) -> list[dict]:
        await self.fetch_guild(guild_id)
        self.calls.append(("fetch_members", guild_id))
        return list(self.guilds[guild_id])


class FakeDiscord:
    """Stub of Discord's OAuth2 + ``/users/@me`` endpoints for httpx.

    ``users`` maps a live bearer token to its user; any other token is
    rejected with 401, the way Discord answers a revoked token.
    """

    def __init__(self) -> None:
        self.users: dict[str, dict] = {
            "good-token": {"id": "42", "username": "operator", "global_name": "Operator"},
        }
        self.guilds: dict[str, list[dict]] = {"good-token": []}
        self.token_reply: dict = {"access_token": "good-token", "token_type": "Bearer"}
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/api/oauth2/token":
            status = 200 if "access_token" in self.token_reply else 400
            return httpx.Response(status, json=self.token_reply)

        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if token not in self.users:
            return httpx.Response(401, json={"message": "401: Unauthorized", "code": 0})
        if path == "/api/users/@me":
            return httpx.Response(200, json=self.users[token])
        if path == "/api/users/@me/guilds":
            return httpx.Response(200, json=self.guilds.get(token, []))
        return httpx.Response(404, json={"message": "404: Not Found", "code": 0})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def identity_client(self) -> DiscordOAuthClient:
        return DiscordOAuthClient(
            "1377632934965674055", "client-secret", REDIRECT_URI, transport=self.transport()
        )


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture
def db_engine() -> Engine:
    """In-memory SQLite engine with every config table.

    StaticPool keeps one shared connection so the ``asyncio.to_thread``
    calls made by ``run_db`` see the same database.
    """
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return engine


@pytest.fixture
def guild_service() -> FakeGuildService:
    return FakeGuildService(
        guilds={
            "111": [
                {"id": "1", "username": "alice", "displayName": "Alice"},
                {"id": "2", "username": "bob", "displayName": "bob"},
            ],
        },
    )


@pytest.fixture
def discord_api() -> FakeDiscord:
    return FakeDiscord()


@pytest.fixture
def client(db_engine, guild_service, discord_api):
    """TestClient over a fresh app wired to SQLite, the fake bot and fake Discord."""
    from fastapi.testclient import TestClient

    from skypanel.api.deps import get_config, get_engine, get_identity_client
    from skypanel.api.main import create_app
    from skypanel.config import PanelConfig

    app = create_app(guild_service=guild_service)
    app.dependency_overrides[get_config] = lambda: PanelConfig()
    app.dependency_overrides[get_engine] = lambda: db_engine
    app.dependency_overrides[get_identity_client] = discord_api.identity_client
    return TestClient(app, raise_server_exceptions=False, follow_redirects=False)
