"""
skypanel.services.discord_oauth — Discord OAuth2 identity client
=================================================================

Thin async wrapper over Discord's OAuth2 endpoints.  Bearer tokens are
opaque to us: nothing here verifies them locally, every call simply asks
Discord.  A rejected token surfaces as :class:`SessionInvalid`, which the
API layer turns into a 401 that also clears the session cookies.

No retries and no timeout override; one failure surfaces immediately.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlencode

import httpx

from skypanel.errors import AuthExchangeFailed, SessionInvalid, UpstreamFailure

logger = logging.getLogger(__name__)

DISCORD_API = "https://discord.com/api"
AUTHORIZE_URL = "https://discord.com/oauth2/authorize"
OAUTH_SCOPES = ("identify", "guilds")


@dataclass(frozen=True, slots=True)
class Session:
    """An authenticated operator: the provider's bearer token + user id."""

    bearer_token: str
    subject_id: str


class DiscordOAuthClient:
    """Performs the code exchange and the ``/users/@me*`` lookups.

    Parameters
    ----------
    client_id, client_secret:
        The application's OAuth2 credentials.
    redirect_uri:
        Must match the URI registered with Discord and sent on authorize.
    transport:
        Optional httpx transport, used by tests to stub Discord.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(base_url=DISCORD_API, transport=self._transport)

    def authorize_url(self) -> str:
        """Consent-screen URL for the ``identify guilds`` scopes."""
        query = urlencode(
            {
                "client_id": self.client_id,
                "permissions": "8",
                "response_type": "code",
                "redirect_uri": self.redirect_uri,
                "integration_type": "0",
                "scope": " ".join(OAUTH_SCOPES),
            }
        )
        return f"{AUTHORIZE_URL}?{query}"

    # -----------------------------------------------------------------------
    # Token exchange
    # -----------------------------------------------------------------------
    async def exchange_code(self, code: str) -> str:
        """Trade an authorization *code* for a bearer token.

        Raises
        ------
        AuthExchangeFailed
            Discord answered without an ``access_token``; the raw reply is
            attached as ``details``.
        UpstreamFailure
            Discord could not be reached or sent something other than JSON.
        """
        form = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "authorization_code",
            "code": code,
            "redirect_uri": self.redirect_uri,
            "scope": " ".join(OAUTH_SCOPES),
        }
        try:
            async with self._client() as client:
                resp = await client.post("/oauth2/token", data=form)
            payload = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("OAuth token exchange failed to reach Discord: %s", exc)
            raise UpstreamFailure("OAuth callback error") from exc

        token = payload.get("access_token") if isinstance(payload, dict) else None
        if not token:
            logger.error("Failed to obtain access token (HTTP %s): %s", resp.status_code, payload)
            raise AuthExchangeFailed(details=payload)
        return token

    async def open_session(self, code: str) -> Session:
        """Exchange *code* and resolve the operator it belongs to."""
        token = await self.exchange_code(code)
        identity = await self.fetch_identity(token)
        return Session(bearer_token=token, subject_id=str(identity["id"]))

    # -----------------------------------------------------------------------
    # Identity lookups
    # -----------------------------------------------------------------------
    async def _get(self, path: str, token: str, invalid_message: str) -> Any:
        try:
            async with self._client() as client:
                resp = await client.get(path, headers={"Authorization": f"Bearer {token}"})
        except httpx.HTTPError as exc:
            logger.error("Discord request %s failed: %s", path, exc)
            raise UpstreamFailure("Could not reach Discord.") from exc

        if not resp.is_success:
            logger.info("Discord rejected bearer token on %s (HTTP %s)", path, resp.status_code)
            raise SessionInvalid(invalid_message)

        try:
            return resp.json()
        except ValueError as exc:
            raise UpstreamFailure("Discord returned an unreadable response.") from exc

    async def fetch_identity(self, token: str) -> dict[str, Any]:
        """``GET /users/@me`` for the token's owner."""
        return await self._get(
            "/users/@me", token, "Invalid or expired token, please log in again."
        )

    async def fetch_user_guilds(self, token: str) -> list[dict[str, Any]]:
        """``GET /users/@me/guilds`` — every guild the operator is in."""
        return await self._get(
            "/users/@me/guilds", token, "Cannot fetch guilds, please log in again."
        )
