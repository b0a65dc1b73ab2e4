"""
skypanel.bot.core — Bot client owned by the API process
========================================================

The dashboard needs the bot's view of Discord: which guilds it is in and,
for rosters, the member lists.  :class:`PanelBot` is a plain
``discord.Client`` with exactly the intents those queries need.  It is
created and started by the FastAPI lifespan (see
:func:`start_bot`) and only ever read through
:class:`~skypanel.services.guild_service.DiscordGuildService`.
"""

from __future__ import annotations

import asyncio
import logging

import discord

logger = logging.getLogger(__name__)


class PanelBot(discord.Client):
    """Gateway client whose guild cache backs ``hasBot`` and ``/api/stats``."""

    def __init__(self) -> None:
        # GUILD_MEMBERS is privileged; enable it in the Developer Portal.
        intents = discord.Intents.none()
        intents.guilds = True
        intents.members = True
        super().__init__(intents=intents)

    async def on_ready(self) -> None:
        assert self.user is not None  # guaranteed after on_ready
        logger.info(
            "Discord client logged in as %s (ID: %s) — %d guilds cached",
            self.user.name, self.user.id, len(self.guilds),
        )

    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info("Joined guild %s (%s)", guild.name, guild.id)

    async def on_guild_remove(self, guild: discord.Guild) -> None:
        logger.info("Removed from guild %s (%s)", guild.name, guild.id)


def start_bot(bot: PanelBot, token: str) -> asyncio.Task:
    """Run *bot* in the background on the current loop.

    A failed login is logged, not raised: the dashboard keeps serving and
    the readiness gate keeps answering 503 for guild data.
    """

    async def _runner() -> None:
        try:
            await bot.start(token)
        except discord.LoginFailure:
            logger.error("Failed to log in Discord client: invalid bot token")
        except Exception:
            logger.exception("Discord client stopped unexpectedly")

    return asyncio.create_task(_runner(), name="discord-bot")
