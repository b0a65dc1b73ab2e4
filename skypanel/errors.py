"""
skypanel.errors — Error taxonomy
=================================

Every failure that reaches an HTTP client is one of these.  Each carries
the status code it maps to and a human-readable message; extra keyword
arguments are merged into the JSON body by the handler in
:mod:`skypanel.api.main`.
"""

from __future__ import annotations

from typing import Any


class PanelError(Exception):
    """Base error type rendered as ``{"message": ..., **extra}``."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None, **extra: Any) -> None:
        self.message = message or self.default_message
        self.extra = extra
        super().__init__(self.message)

    def to_body(self) -> dict[str, Any]:
        return {"message": self.message, **self.extra}


class NotAuthenticated(PanelError):
    status_code = 401
    default_message = "Not logged in"


class SessionInvalid(PanelError):
    """The provider rejected the bearer token.  Always clears the session."""

    status_code = 401
    default_message = "Invalid or expired token, please log in again."


class AuthExchangeFailed(PanelError):
    status_code = 400
    default_message = "Failed to obtain access token"


class BotNotReady(PanelError):
    status_code = 503
    default_message = "Discord bot is not ready yet. Please try again in a moment."


class NotFound(PanelError):
    status_code = 404
    default_message = "Not found"


class NotConfigured(NotFound):
    """No config document exists for the guild.  An expected state."""

    default_message = "Configuration not found"


class Forbidden(PanelError):
    status_code = 403
    default_message = "Bot does not have access to this guild or missing permissions."


class ValidationFailed(PanelError):
    status_code = 400
    default_message = "Missing required configuration fields."


class UpstreamFailure(PanelError):
    status_code = 502
    default_message = "Upstream service failed to respond."


class ServiceUnavailable(PanelError):
    status_code = 503
    default_message = "Service is not configured."


class Internal(PanelError):
    status_code = 500
