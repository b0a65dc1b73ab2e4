"""
skypanel.api.routes.configs — Per-guild config domains
=======================================================

Each domain in :data:`skypanel.services.config_store.DOMAINS` gets the same
three endpoints::

    GET    /api/<domain>/{guild_id}
    POST   /api/<domain>                                  (body carries guildId)
    DELETE /api/server-config/clear-<domain>/{guild_id}

A guild with no document answers 404 with ``"disabled": true`` so the
dashboard can render the feature as off instead of showing an error.
"""

# No ``from __future__ import annotations``: the request-body annotations
# below are closure variables FastAPI must resolve at route creation.

import logging
from collections.abc import Callable
from typing import Any, TypeVar

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from skypanel.api.deps import get_engine
from skypanel.database.engine import run_db
from skypanel.errors import Internal, NotConfigured
from skypanel.services.config_store import (
    ERLC,
    REMINDERS,
    RESTRICTIONS,
    ConfigDomain,
    clear_config,
    get_config,
    upsert_config,
)

logger = logging.getLogger(__name__)
router = APIRouter(tags=["configs"])

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Pydantic schemas (camelCase on the wire)
# ---------------------------------------------------------------------------
class _ConfigBody(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    guild_id: str | None = None
    disabled: bool | None = None

    def values(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude={"guild_id"})


class ErlcBody(_ConfigBody):
    api_key: str | None = None
    staff_role_id: str | None = None
    hr_role_id: str | None = None
    command_logs_channel_id: str | None = None


class ReminderBody(_ConfigBody):
    reminder_text: str | None = None
    reminder_interval: float | None = None


class RestrictionBody(_ConfigBody):
    livery_restrictions: Any = None
    team_restrictions: Any = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------
async def _store_call(
    domain: ConfigDomain,
    operation: str,
    guild_id: str | None,
    func: Callable[..., T],
    *args: Any,
) -> T:
    """Run a store function off-loop, turning DB failures into ``Internal``."""
    try:
        return await run_db(func, *args)
    except SQLAlchemyError as exc:
        logger.error("Error %s %s config for guild %s: %s", operation, domain.name, guild_id, exc)
        raise Internal(f"Server error {operation} {domain.label} config") from exc


def _mount(domain: ConfigDomain, body_model: type[_ConfigBody]) -> None:
    async def read(guild_id: str, engine: Engine = Depends(get_engine)):
        doc = await _store_call(domain, "fetching", guild_id, get_config, engine, domain, guild_id)
        if doc is None:
            raise NotConfigured(f"{domain.label} config not found", disabled=True)
        return doc

    async def write(body: body_model, engine: Engine = Depends(get_engine)):
        return await _store_call(
            domain, "saving", body.guild_id,
            upsert_config, engine, domain, body.guild_id, body.values(),
        )

    async def clear(guild_id: str, engine: Engine = Depends(get_engine)):
        cleared = await _store_call(domain, "clearing", guild_id, clear_config, engine, domain, guild_id)
        if not cleared:
            raise NotConfigured(f"No {domain.label} configuration found to clear.")
        return {"message": f"{domain.label} configuration cleared successfully!"}

    router.add_api_route(f"/{domain.name}/{{guild_id}}", read, methods=["GET"])
    router.add_api_route(f"/{domain.name}", write, methods=["POST"])
    router.add_api_route(
        f"/server-config/clear-{domain.name}/{{guild_id}}", clear, methods=["DELETE"]
    )


_mount(ERLC, ErlcBody)
_mount(REMINDERS, ReminderBody)
_mount(RESTRICTIONS, RestrictionBody)


@router.post("/restrictions/{guild_id}")
async def save_restrictions_for_guild(
    guild_id: str,
    body: RestrictionBody,
    engine: Engine = Depends(get_engine),
):
    """Path-keyed variant of ``POST /api/restrictions`` used by older pages."""
    return await _store_call(
        RESTRICTIONS, "saving", guild_id,
        upsert_config, engine, RESTRICTIONS, guild_id, body.values(),
    )
