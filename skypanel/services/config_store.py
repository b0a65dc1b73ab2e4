"""
skypanel.services.config_store — Guild-keyed config documents
==============================================================

Every dashboard feature (ER:LC toggles, reminders, restrictions) stores
one document per guild and shares the same three operations:

* :func:`get_config` — the document, or ``None`` when the guild has never
  been configured.
* :func:`upsert_config` — insert-with-defaults or full replace, in a single
  ``INSERT … ON CONFLICT (guild_id) DO UPDATE … RETURNING`` statement so a
  concurrent first write can never race a read-then-write.
* :func:`clear_config` — delete, reporting whether anything was there.

A :class:`ConfigDomain` describes one feature: its model, the mapping
between the dashboard's camelCase field names and model attributes, the
defaults applied on first insert, and an optional required-field check.
All functions are synchronous; call them through
:func:`skypanel.database.engine.run_db`.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy import Engine, delete, func, select
from sqlalchemy.dialects import postgresql, sqlite

from skypanel.database.engine import get_session
from skypanel.database.models import (
    Base,
    ErlcConfig,
    ReminderConfig,
    RestrictionConfig,
)
from skypanel.errors import ValidationFailed

logger = logging.getLogger(__name__)

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


# ---------------------------------------------------------------------------
# Domain descriptor
# ---------------------------------------------------------------------------
@dataclass(frozen=True)
class ConfigDomain:
    """One per-guild configuration feature."""

    name: str  # URL segment, e.g. "reminders"
    label: str  # Human name used in messages, e.g. "Reminders"
    model: type[Base]
    fields: Mapping[str, str]  # camelCase field → model attribute
    defaults: Mapping[str, Callable[[], Any]] = field(default_factory=dict)
    validate: Callable[[Mapping[str, Any]], None] | None = None

    def to_document(self, row: Any) -> dict[str, Any]:
        doc: dict[str, Any] = {"guildId": row.guild_id}
        for public, attr in self.fields.items():
            doc[public] = getattr(row, attr)
        return doc


def _require_reminder_fields(values: Mapping[str, Any]) -> None:
    """Reminders need text, an interval and an explicit disabled flag.

    An interval of ``0`` is a value, not a missing field.
    """
    text = values.get("reminderText")
    if not text:
        raise ValidationFailed("Missing required Reminder configuration fields.", field="reminderText")
    if values.get("reminderInterval") is None:
        raise ValidationFailed("Missing required Reminder configuration fields.", field="reminderInterval")
    if values.get("disabled") is None:
        raise ValidationFailed("Missing required Reminder configuration fields.", field="disabled")


ERLC = ConfigDomain(
    name="erlc",
    label="ERLC",
    model=ErlcConfig,
    fields={
        "apiKey": "api_key",
        "staffRoleId": "staff_role_id",
        "hrRoleId": "hr_role_id",
        "commandLogsChannelId": "command_logs_channel_id",
        "disabled": "disabled",
    },
    defaults={"disabled": lambda: False},
)

REMINDERS = ConfigDomain(
    name="reminders",
    label="Reminders",
    model=ReminderConfig,
    fields={
        "reminderText": "reminder_text",
        "reminderInterval": "reminder_interval",
        "disabled": "disabled",
    },
    validate=_require_reminder_fields,
)

RESTRICTIONS = ConfigDomain(
    name="restrictions",
    label="Restrictions",
    model=RestrictionConfig,
    fields={
        "liveryRestrictions": "livery_restrictions",
        "teamRestrictions": "team_restrictions",
        "disabled": "disabled",
    },
    defaults={
        "disabled": lambda: False,
        "liveryRestrictions": list,
        "teamRestrictions": list,
    },
)

DOMAINS: dict[str, ConfigDomain] = {d.name: d for d in (ERLC, REMINDERS, RESTRICTIONS)}


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def get_config(engine: Engine, domain: ConfigDomain, guild_id: str) -> dict[str, Any] | None:
    """Return the guild's document for *domain*, or ``None`` if unset."""
    with get_session(engine) as session:
        row = session.scalar(
            select(domain.model).where(domain.model.guild_id == guild_id)
        )
        if row is None:
            return None
        return domain.to_document(row)


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def upsert_config(
    engine: Engine,
    domain: ConfigDomain,
    guild_id: str | None,
    values: Mapping[str, Any],
) -> dict[str, Any]:
    """Create or wholesale-replace the guild's document for *domain*.

    *values* uses the dashboard's camelCase names.  Fields the domain knows
    but *values* omits are written as ``None`` on replace; on first insert
    they take the domain default instead.  Nothing from a previous document
    survives a replace.

    Raises
    ------
    ValidationFailed
        If *guild_id* is empty or the domain's required fields are missing.
    """
    if not guild_id:
        raise ValidationFailed("Missing guildId.", field="guildId")
    if domain.validate is not None:
        domain.validate(values)

    replace = {attr: values.get(public) for public, attr in domain.fields.items()}
    insert_values = {"guild_id": guild_id, **replace}
    for public, factory in domain.defaults.items():
        attr = domain.fields[public]
        if insert_values[attr] is None:
            insert_values[attr] = factory()

    insert = _INSERTS.get(engine.dialect.name)
    if insert is None:
        raise RuntimeError(f"Unsupported database dialect for upsert: {engine.dialect.name}")

    table = domain.model.__table__
    stmt = (
        insert(table)
        .values(**insert_values)
        .on_conflict_do_update(
            index_elements=[table.c.guild_id],
            set_={**replace, "updated_at": func.now()},
        )
        .returning(table)
    )

    with get_session(engine) as session:
        row = session.execute(stmt).one()

    logger.info("Upserted %s config for guild %s", domain.name, guild_id)
    return domain.to_document(row)


def clear_config(engine: Engine, domain: ConfigDomain, guild_id: str) -> bool:
    """Delete the guild's document.  Returns ``False`` if there was none."""
    with get_session(engine) as session:
        result = session.execute(
            delete(domain.model).where(domain.model.guild_id == guild_id)
        )

    cleared = result.rowcount > 0
    if cleared:
        logger.info("Cleared %s config for guild %s", domain.name, guild_id)
    return cleared
