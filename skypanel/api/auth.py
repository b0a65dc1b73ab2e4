"""
skypanel.api.auth — Discord OAuth2 login flow and operator identity
====================================================================
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, Cookie, Depends
from fastapi.responses import RedirectResponse

from skypanel.api.deps import get_guild_service, get_identity_client
from skypanel.api.session import begin_session, end_session, require_bearer_token
from skypanel.errors import ValidationFailed
from skypanel.services.discord_oauth import DiscordOAuthClient
from skypanel.services.guild_service import GuildMembershipService
from skypanel.services.permissions import filter_administerable_guilds

logger = logging.getLogger(__name__)
router = APIRouter(tags=["auth"])

DASHBOARD_PAGE = "/dashboard.html"
LANDING_PAGE = "/index.html"


@router.get("/login")
def login(discord_token: str | None = Cookie(default=None)):
    """Skip the consent screen when a session cookie already exists."""
    if discord_token:
        return RedirectResponse(DASHBOARD_PAGE)
    return RedirectResponse("/login/discord")


@router.get("/login/discord")
def login_discord(identity: DiscordOAuthClient = Depends(get_identity_client)):
    """Redirect to Discord's OAuth2 consent screen."""
    return RedirectResponse(identity.authorize_url())


@router.get("/api/callback")
async def callback(
    code: str | None = None,
    identity: DiscordOAuthClient = Depends(get_identity_client),
):
    """Exchange the OAuth code, start the cookie session, go to the dashboard."""
    if not code:
        raise ValidationFailed("No code provided")

    session = await identity.open_session(code)
    logger.info("Operator %s logged in", session.subject_id)

    response = RedirectResponse(DASHBOARD_PAGE)
    begin_session(response, session)
    return response


@router.get("/logout")
def logout():
    response = RedirectResponse(LANDING_PAGE)
    end_session(response)
    return response


@router.get("/api/me")
async def me(
    token: str = Depends(require_bearer_token),
    identity: DiscordOAuthClient = Depends(get_identity_client),
):
    """The operator's Discord identity, re-validated on every call."""
    return await identity.fetch_identity(token)


@router.get("/api/servers/me")
async def my_servers(
    token: str = Depends(require_bearer_token),
    identity: DiscordOAuthClient = Depends(get_identity_client),
    guilds: GuildMembershipService = Depends(get_guild_service),
):
    """Guilds the operator administers, flagged with bot presence."""
    return await filter_administerable_guilds(identity, guilds, token)
