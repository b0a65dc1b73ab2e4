"""
skypanel.services.guild_service — Bot-backed guild lookups
===========================================================

The API never touches the ``discord.Client`` directly.  Handlers depend on
:class:`GuildMembershipService`; the concrete :class:`DiscordGuildService`
wraps the single bot client owned by the app lifespan.

Two kinds of question, two costs:

* :meth:`guild_is_member` reads the bot's in-memory guild cache.  The
  cache is filled and kept current by the bot's own gateway connection and
  is eventually consistent; it is never re-queried per call.
* :meth:`fetch_guild` / :meth:`fetch_members` go to Discord's REST API.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

import discord

from skypanel.errors import Forbidden, Internal, NotFound

logger = logging.getLogger(__name__)

# Discord JSON error codes
UNKNOWN_GUILD = 10004
MISSING_ACCESS = 50001


class GuildMembershipService(Protocol):
    """What request handlers may ask of the bot runtime."""

    def is_ready(self) -> bool: ...

    def guild_is_member(self, guild_id: str) -> bool: ...

    def cached_guild_stats(self) -> tuple[int, int]: ...

    async def fetch_guild(self, guild_id: str) -> Any: ...

    async def fetch_members(self, guild_id: str) -> list[dict[str, str]]: ...


def display_name_for(member: Any) -> str:
    """Guild nickname, then global display name, then username."""
    return member.nick or member.global_name or member.name


def _snowflake(guild_id: str) -> int:
    try:
        return int(guild_id)
    except (TypeError, ValueError):
        raise NotFound("Discord guild not found.") from None


def translate_http_error(exc: discord.HTTPException, guild_id: str, operation: str) -> Exception:
    """Map a discord.py HTTP failure to the panel's error taxonomy."""
    if exc.code == UNKNOWN_GUILD or isinstance(exc, discord.NotFound):
        logger.warning("%s: guild %s not found", operation, guild_id)
        return NotFound("Discord guild not found.")
    if exc.code == MISSING_ACCESS:
        logger.warning("%s: missing access to guild %s", operation, guild_id)
        return Forbidden()
    logger.error("%s failed for guild %s: %s", operation, guild_id, exc)
    return Internal("Failed to fetch Discord guild members.")


class DiscordGuildService:
    """:class:`GuildMembershipService` backed by a ``discord.Client``."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    def is_ready(self) -> bool:
        return self.client.is_ready()

    def guild_is_member(self, guild_id: str) -> bool:
        try:
            snowflake = int(guild_id)
        except (TypeError, ValueError):
            return False
        return self.client.get_guild(snowflake) is not None

    def cached_guild_stats(self) -> tuple[int, int]:
        """``(guild count, summed member count)`` from the cache."""
        guilds = self.client.guilds
        return len(guilds), sum(g.member_count or 0 for g in guilds)

    async def fetch_guild(self, guild_id: str) -> discord.Guild:
        """Live REST lookup of *guild_id*.

        Raises
        ------
        NotFound
            Unknown guild, or an id that is not a snowflake.
        Forbidden
            The bot lacks access to the guild.
        Internal
            Any other Discord failure.
        """
        snowflake = _snowflake(guild_id)
        try:
            return await self.client.fetch_guild(snowflake)
        except discord.HTTPException as exc:
            raise translate_http_error(exc, guild_id, "fetch_guild") from exc

    async def fetch_members(self, guild_id: str) -> list[dict[str, str]]:
        """Full member roster for *guild_id* (requires the members intent)."""
        guild = await self.fetch_guild(guild_id)
        members: list[dict[str, str]] = []
        try:
            async for member in guild.fetch_members(limit=None):
                members.append({
                    "id": str(member.id),
                    "username": member.name,
                    "displayName": display_name_for(member),
                })
        except discord.HTTPException as exc:
            raise translate_http_error(exc, guild_id, "fetch_members") from exc
        except discord.ClientException as exc:
            logger.error("fetch_members unavailable for guild %s: %s", guild_id, exc)
            raise Internal("Failed to fetch Discord guild members.") from exc
        return members
