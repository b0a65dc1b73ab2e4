"""
tests/test_config.py — YAML + environment configuration
=========================================================
"""

from __future__ import annotations

import os
from unittest.mock import patch

import pytest

from skypanel.config import DEFAULT_BASE_URL, load_config

_ENV_KEYS = (
    "BASE_URL", "PORT", "CORS_ALLOW_ORIGINS", "DISCORD_CLIENT_ID",
    "DISCORD_CLIENT_SECRET", "DISCORD_TOKEN", "GEMINI_API_KEY",
)


@pytest.fixture(autouse=True)
def _clean_env():
    with patch.dict(os.environ):
        for key in _ENV_KEYS:
            os.environ.pop(key, None)
        yield


class TestLoadConfig:
    def test_defaults_without_yaml_or_env(self, tmp_path):
        cfg = load_config(tmp_path / "missing.yaml")
        assert cfg.base_url == DEFAULT_BASE_URL
        assert cfg.port == 8080
        assert cfg.redirect_uri == "http://localhost:8080/api/callback"
        assert cfg.bot_token is None
        assert cfg.gemini_api_key is None
        assert cfg.discord_checks == 15000

    def test_yaml_soft_settings(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "base_url: https://panel.example.com/\n"
            "port: 9000\n"
            "client_id: '1377632934965674055'\n"
            "discord_checks: 20000\n",
            encoding="utf-8",
        )
        cfg = load_config(path)
        assert cfg.base_url == "https://panel.example.com"
        assert cfg.redirect_uri == "https://panel.example.com/api/callback"
        assert cfg.port == 9000
        assert cfg.client_id == "1377632934965674055"
        assert cfg.discord_checks == 20000

    def test_env_overrides_yaml(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("base_url: https://yaml.example.com\nport: 9000\n", encoding="utf-8")
        env = {
            "BASE_URL": "https://env.example.com",
            "PORT": "7000",
            "DISCORD_TOKEN": "bot-token",
            "GEMINI_API_KEY": "gem",
            "CORS_ALLOW_ORIGINS": "https://a.example.com/, https://b.example.com",
        }
        with patch.dict(os.environ, env):
            cfg = load_config(path)
        assert cfg.base_url == "https://env.example.com"
        assert cfg.port == 7000
        assert cfg.bot_token == "bot-token"
        assert cfg.gemini_api_key == "gem"
        assert cfg.cors_origins == ("https://a.example.com", "https://b.example.com")

    def test_blank_env_values_are_unset(self, tmp_path):
        with patch.dict(os.environ, {"DISCORD_TOKEN": "   ", "GEMINI_API_KEY": ""}):
            cfg = load_config(tmp_path / "missing.yaml")
        assert cfg.bot_token is None
        assert cfg.gemini_api_key is None

    def test_bad_port_raises(self, tmp_path):
        with patch.dict(os.environ, {"PORT": "eighty"}):
            with pytest.raises(ValueError):
                load_config(tmp_path / "missing.yaml")
