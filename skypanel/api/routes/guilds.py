"""
skypanel.api.routes.guilds — Bot-wide stats and guild rosters
==============================================================

Everything under ``/api/guilds/`` is behind the readiness gate installed
in :mod:`skypanel.api.main`.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from skypanel.api.deps import get_config, get_guild_service
from skypanel.config import PanelConfig
from skypanel.errors import BotNotReady
from skypanel.services.guild_service import GuildMembershipService

router = APIRouter(tags=["guilds"])


@router.get("/stats")
def stats(
    guilds: GuildMembershipService = Depends(get_guild_service),
    cfg: PanelConfig = Depends(get_config),
):
    """Guild and member totals from the bot's cache."""
    if not guilds.is_ready():
        raise BotNotReady("Bot client is not ready")
    servers, members = guilds.cached_guild_stats()
    return {
        "servers": servers,
        "members": members,
        "discordChecks": cfg.discord_checks,
    }


@router.get("/guilds/{guild_id}/members")
async def guild_members(
    guild_id: str,
    guilds: GuildMembershipService = Depends(get_guild_service),
):
    return await guilds.fetch_members(guild_id)
