"""
skypanel.config — YAML + Environment Configuration Loader
==========================================================

Soft, non-secret settings (public base URL, port, OAuth client id, the
stats counter) may live in ``config.yaml``.  Secrets and per-deployment
overrides come from the environment, which is populated from ``.env`` by
python-dotenv at startup.  Environment values always win over YAML.

Usage::

    from skypanel.config import load_config

    cfg = load_config()          # reads ./config.yaml if present
    print(cfg.redirect_uri)      # "http://localhost:8080/api/callback"
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_PORT = 8080
DEFAULT_DISCORD_CHECKS = 15000
DEFAULT_GEMINI_MODEL = "gemini-2.5-pro"


# ---------------------------------------------------------------------------
# Typed settings object
# ---------------------------------------------------------------------------
@dataclass(frozen=True, slots=True)
class PanelConfig:
    """Immutable configuration for the API process and its bot client."""

    # Public surface
    base_url: str = DEFAULT_BASE_URL
    port: int = DEFAULT_PORT
    cors_origins: tuple[str, ...] = field(default_factory=tuple)

    # Discord OAuth2
    client_id: str = ""
    client_secret: str = ""

    # Optional collaborators
    bot_token: str | None = None  # Bot features degrade when absent
    gemini_api_key: str | None = None  # AI endpoint disabled when absent
    gemini_model: str = DEFAULT_GEMINI_MODEL

    # Reported as-is by /api/stats
    discord_checks: int = DEFAULT_DISCORD_CHECKS

    @property
    def redirect_uri(self) -> str:
        return f"{self.base_url}/api/callback"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
def _env(name: str) -> str | None:
    value = os.getenv(name, "").strip()
    return value or None


def _read_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    with open(path, encoding="utf-8") as fh:
        raw = yaml.safe_load(fh)
    return raw or {}


def _split_origins(raw: str | None) -> tuple[str, ...]:
    if not raw:
        return ()
    return tuple(o.strip().rstrip("/") for o in raw.split(",") if o.strip())


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def load_config(path: str | Path = "config.yaml") -> PanelConfig:
    """Build a :class:`PanelConfig` from *path* and the environment.

    A missing YAML file is not an error; every setting has a default.

    Raises
    ------
    ValueError
        If ``PORT`` / ``port`` or ``discord_checks`` is not an integer.
    """
    raw = _read_yaml(Path(path))

    base_url = _env("BASE_URL") or raw.get("base_url") or DEFAULT_BASE_URL

    return PanelConfig(
        base_url=str(base_url).rstrip("/"),
        port=int(_env("PORT") or raw.get("port") or DEFAULT_PORT),
        cors_origins=_split_origins(_env("CORS_ALLOW_ORIGINS")),
        client_id=_env("DISCORD_CLIENT_ID") or str(raw.get("client_id", "")),
        client_secret=_env("DISCORD_CLIENT_SECRET") or "",
        bot_token=_env("DISCORD_TOKEN"),
        gemini_api_key=_env("GEMINI_API_KEY"),
        gemini_model=str(raw.get("gemini_model") or DEFAULT_GEMINI_MODEL),
        discord_checks=int(raw.get("discord_checks", DEFAULT_DISCORD_CHECKS)),
    )
