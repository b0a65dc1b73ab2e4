"""
skypanel.api.session — Cookie-carried operator sessions
========================================================

A session is two plain cookies: the Discord bearer token and the user id.
They are neither signed nor HttpOnly: the dashboard's
front-end reads them, and they are not trusted locally anyway.  Every
privileged endpoint re-presents the token to Discord, so a revoked
credential stops working on its next use.  There is no server-side
session store and therefore no signing secret.
"""

from __future__ import annotations

from datetime import timedelta

from fastapi import Cookie, Response

from skypanel.errors import NotAuthenticated
from skypanel.services.discord_oauth import Session

TOKEN_COOKIE = "discord_token"
USER_COOKIE = "user_id"
SESSION_TTL = timedelta(days=7)


def begin_session(response: Response, session: Session) -> None:
    max_age = int(SESSION_TTL.total_seconds())
    response.set_cookie(TOKEN_COOKIE, session.bearer_token, max_age=max_age, httponly=False)
    response.set_cookie(USER_COOKIE, session.subject_id, max_age=max_age, httponly=False)


def end_session(response: Response) -> None:
    """Expire both cookies.  Safe to call when no session exists."""
    response.delete_cookie(TOKEN_COOKIE)
    response.delete_cookie(USER_COOKIE)


def require_bearer_token(discord_token: str | None = Cookie(default=None)) -> str:
    """FastAPI dependency: the session's bearer token, or 401.

    Runs before any provider call is attempted.
    """
    if not discord_token:
        raise NotAuthenticated()
    return discord_token
