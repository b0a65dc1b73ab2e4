"""
skypanel.database.engine — Database Connection & Async Helper
==============================================================

FastAPI handlers and the bot share one asyncio event loop.  SQLAlchemy
with a sync driver would block that loop, so every store function is a
plain synchronous function shipped to the default thread pool through
:func:`run_db`::

    engine = create_db_engine()          # reads DATABASE_URL from .env
    init_db(engine)                      # CREATE TABLE IF NOT EXISTS …

    doc = await run_db(get_config, engine, REMINDERS, guild_id)
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from contextlib import contextmanager
from typing import ParamSpec, TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session

from skypanel.database.models import Base

logger = logging.getLogger(__name__)

P = ParamSpec("P")
T = TypeVar("T")


# ---------------------------------------------------------------------------
# Engine creation
# ---------------------------------------------------------------------------
def create_db_engine(url: str | None = None) -> Engine:
    """Engine for the config tables.

    *url* wins over ``DATABASE_URL``.  Pool: five connections plus ten
    overflow, pre-pinged on checkout and recycled hourly.

    Raises
    ------
    RuntimeError
        If no URL is given and ``DATABASE_URL`` is not set.
    """
    url = url or os.getenv("DATABASE_URL")
    if not url:
        raise RuntimeError(
            "DATABASE_URL is not set.  "
            "Copy .env.example → .env and set a valid PostgreSQL URL."
        )

    engine = create_engine(
        url,
        echo=False,
        pool_size=5,
        max_overflow=10,
        pool_pre_ping=True,
        pool_timeout=10,
        pool_recycle=3600,
    )
    logger.info("Config database → %s/%s", engine.url.host, engine.url.database)
    return engine


# ---------------------------------------------------------------------------
# Schema initialization
# ---------------------------------------------------------------------------
def init_db(engine: Engine) -> None:
    """``CREATE TABLE IF NOT EXISTS`` for the three config tables.

    Called from the app lifespan so a fresh dev database works without
    running ``alembic upgrade head`` first.  Never alters existing tables.
    """
    Base.metadata.create_all(engine)
    logger.info("Config tables ready.")


# ---------------------------------------------------------------------------
# Session helper
# ---------------------------------------------------------------------------
@contextmanager
def get_session(engine: Engine):
    """One config-store transaction: committed when the block exits cleanly,
    rolled back and re-raised otherwise."""
    session = Session(engine)
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# ---------------------------------------------------------------------------
# Async bridge
# ---------------------------------------------------------------------------
async def run_db(func: Callable[P, T], *args: P.args, **kwargs: P.kwargs) -> T:
    """Await a blocking config-store call from a request handler.

    ``run_db(get_config, engine, REMINDERS, "123")`` is
    ``get_config(engine, REMINDERS, "123")`` executed on the default
    executor, leaving the loop free for the bot's gateway heartbeat.
    """
    return await asyncio.to_thread(func, *args, **kwargs)
