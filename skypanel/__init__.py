"""
SkyPanel — Dashboard backend for the SkyUtilities Discord bot
==============================================================
Authenticates operators through Discord OAuth2, works out which guilds
they may administer, and stores per-guild feature configuration.

Package layout::

    skypanel/
    ├── config.py          # config.yaml + env → typed Python config
    ├── errors.py          # PanelError hierarchy (status + message)
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # One table per config domain
    ├── bot/
    │   └── core.py        # discord.Client subclass owned by the API
    ├── services/
    │   ├── config_store.py   # Generic guild-keyed upsert / clear
    │   ├── discord_oauth.py  # OAuth2 exchange + identity fetches
    │   ├── guild_service.py  # Bot readiness, guild cache, rosters
    │   ├── permissions.py    # Administerable-guild filter
    │   └── assistant.py      # Generative-text pass-through
    └── api/
        ├── main.py        # FastAPI app, middleware, error handlers
        ├── deps.py        # Dependency injection
        ├── session.py     # Cookie-carried sessions
        ├── auth.py        # Login / callback / logout / me
        └── routes/        # Guild, config-domain and AI endpoints
"""

__version__ = "0.1.0"
