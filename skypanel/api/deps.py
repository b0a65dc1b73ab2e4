"""
skypanel.api.deps — FastAPI dependency injection
=================================================
"""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends, Request
from sqlalchemy import Engine

from skypanel.config import PanelConfig, load_config
from skypanel.database.engine import create_db_engine
from skypanel.errors import ServiceUnavailable
from skypanel.services.assistant import AssistantClient
from skypanel.services.discord_oauth import DiscordOAuthClient
from skypanel.services.guild_service import GuildMembershipService


@lru_cache(maxsize=1)
def get_config() -> PanelConfig:
    return load_config()


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    return create_db_engine()


def get_guild_service(request: Request) -> GuildMembershipService:
    """The single bot-backed service installed on ``app.state``."""
    return request.app.state.guild_service


def get_identity_client(cfg: PanelConfig = Depends(get_config)) -> DiscordOAuthClient:
    return DiscordOAuthClient(cfg.client_id, cfg.client_secret, cfg.redirect_uri)


def get_assistant(cfg: PanelConfig = Depends(get_config)) -> AssistantClient:
    if not cfg.gemini_api_key:
        raise ServiceUnavailable("AI assistant is not configured (missing API key).")
    return AssistantClient(cfg.gemini_api_key, cfg.gemini_model)
