"""
tests/test_discord_oauth.py — Discord OAuth2 identity client
=============================================================
"""

from __future__ import annotations

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from conftest import REDIRECT_URI, run_async
from skypanel.errors import AuthExchangeFailed, SessionInvalid, UpstreamFailure
from skypanel.services.discord_oauth import DiscordOAuthClient, Session


class TestAuthorizeUrl:
    def test_carries_client_scope_and_redirect(self, discord_api):
        url = discord_api.identity_client().authorize_url()
        parts = urlsplit(url)
        query = parse_qs(parts.query)

        assert f"{parts.scheme}://{parts.netloc}{parts.path}" == "https://discord.com/oauth2/authorize"
        assert query["client_id"] == ["1377632934965674055"]
        assert query["scope"] == ["identify guilds"]
        assert query["redirect_uri"] == [REDIRECT_URI]
        assert query["response_type"] == ["code"]


class TestExchangeCode:
    def test_posts_form_encoded_grant(self, discord_api):
        token = run_async(discord_api.identity_client().exchange_code("abc"))
        assert token == "good-token"

        req = discord_api.requests[-1]
        assert req.method == "POST"
        assert req.headers["Content-Type"] == "application/x-www-form-urlencoded"
        form = parse_qs(req.content.decode())
        assert form["grant_type"] == ["authorization_code"]
        assert form["code"] == ["abc"]
        assert form["client_secret"] == ["client-secret"]
        assert form["redirect_uri"] == [REDIRECT_URI]

    def test_missing_access_token_carries_raw_body(self, discord_api):
        discord_api.token_reply = {"error": "invalid_grant", "error_description": "Invalid code"}
        with pytest.raises(AuthExchangeFailed) as excinfo:
            run_async(discord_api.identity_client().exchange_code("stale"))
        assert excinfo.value.extra["details"] == discord_api.token_reply
        assert excinfo.value.status_code == 400

    def test_transport_error_is_upstream_failure(self):
        def _boom(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("unreachable", request=request)

        client = DiscordOAuthClient("id", "secret", REDIRECT_URI, transport=httpx.MockTransport(_boom))
        with pytest.raises(UpstreamFailure):
            run_async(client.exchange_code("abc"))

    def test_non_json_reply_is_upstream_failure(self):
        transport = httpx.MockTransport(lambda r: httpx.Response(502, text="<html>bad gateway</html>"))
        client = DiscordOAuthClient("id", "secret", REDIRECT_URI, transport=transport)
        with pytest.raises(UpstreamFailure):
            run_async(client.exchange_code("abc"))


class TestIdentity:
    def test_open_session(self, discord_api):
        session = run_async(discord_api.identity_client().open_session("abc"))
        assert session == Session(bearer_token="good-token", subject_id="42")

    def test_fetch_identity_sends_bearer(self, discord_api):
        user = run_async(discord_api.identity_client().fetch_identity("good-token"))
        assert user["username"] == "operator"
        assert discord_api.requests[-1].headers["Authorization"] == "Bearer good-token"

    def test_rejected_token_is_session_invalid(self, discord_api):
        with pytest.raises(SessionInvalid):
            run_async(discord_api.identity_client().fetch_identity("revoked"))

    def test_fetch_user_guilds(self, discord_api):
        discord_api.guilds["good-token"] = [{"id": "1", "name": "G", "permissions": "8"}]
        guilds = run_async(discord_api.identity_client().fetch_user_guilds("good-token"))
        assert guilds == [{"id": "1", "name": "G", "permissions": "8"}]
        assert discord_api.requests[-1].url.path == "/api/users/@me/guilds"
