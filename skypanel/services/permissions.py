"""
skypanel.services.permissions — Administerable-guild filter
============================================================

Discord reports each of a user's guilds with a ``permissions`` bitfield
encoded as a decimal string.  The field is 64 bits wide and already uses
bits above 2**31, so it is parsed as a Python int (never truncated) and
normalised to its unsigned 64-bit value before the administrator bit is
tested.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any

from skypanel.services.discord_oauth import DiscordOAuthClient
from skypanel.services.guild_service import GuildMembershipService

logger = logging.getLogger(__name__)

ADMINISTRATOR = 0x8
_UINT64_MASK = (1 << 64) - 1

CDN = "https://cdn.discordapp.com"
DEFAULT_GUILD_ICON = f"{CDN}/embed/avatars/0.png"


def parse_permissions(raw: Any) -> int:
    """Decode a Discord permission value to an unsigned 64-bit int.

    Unparseable values grant nothing.
    """
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.debug("Ignoring unparseable permission value %r", raw)
        return 0
    return value & _UINT64_MASK


def is_administrator(raw: Any) -> bool:
    return parse_permissions(raw) & ADMINISTRATOR == ADMINISTRATOR


def guild_icon_url(guild_id: str, icon: str | None) -> str:
    if icon:
        return f"{CDN}/icons/{guild_id}/{icon}.png"
    return DEFAULT_GUILD_ICON


def administerable_guilds(
    memberships: Iterable[dict[str, Any]],
    guilds: GuildMembershipService,
) -> list[dict[str, Any]]:
    """Keep the guilds where the operator holds Administrator.

    ``hasBot`` comes from the bot's cached membership only, so this stays
    cheap no matter how many guilds the operator is in.  Provider order is
    preserved.
    """
    return [
        {
            "id": m["id"],
            "name": m.get("name"),
            "iconUrl": guild_icon_url(m["id"], m.get("icon")),
            "hasBot": guilds.guild_is_member(m["id"]),
        }
        for m in memberships
        if is_administrator(m.get("permissions"))
    ]


async def filter_administerable_guilds(
    identity: DiscordOAuthClient,
    guilds: GuildMembershipService,
    bearer_token: str,
) -> list[dict[str, Any]]:
    """Fetch the operator's guilds and filter them.

    Raises :class:`~skypanel.errors.SessionInvalid` if Discord rejects
    *bearer_token*.
    """
    memberships = await identity.fetch_user_guilds(bearer_token)
    return administerable_guilds(memberships, guilds)
