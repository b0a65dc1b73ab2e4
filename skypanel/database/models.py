"""
skypanel.database.models — SQLAlchemy 2.0 Data Models
======================================================

One table per configuration domain.  Each is keyed by the Discord guild
id (stored as a string, exactly as the dashboard sends it) with a unique
constraint, so there is at most one document per ``(domain, guild_id)``.

Tables:
- erlc_configs        — ER:LC integration toggles (API key, roles, log channel)
- reminder_configs    — Periodic reminder text + interval
- restriction_configs — Livery / team restriction lists
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import Boolean, DateTime, Float, Integer, String, Text, func
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all SkyPanel ORM models."""


class GuildConfigMixin:
    """Columns shared by every per-guild config document."""

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    guild_id: Mapped[str] = mapped_column(String(32), nullable=False, unique=True)
    disabled: Mapped[bool | None] = mapped_column(Boolean, default=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )


# ---------------------------------------------------------------------------
# ErlcConfig — feature toggles for the ER:LC integration
# ---------------------------------------------------------------------------
class ErlcConfig(GuildConfigMixin, Base):
    __tablename__ = "erlc_configs"

    api_key: Mapped[str | None] = mapped_column(Text, default=None)
    staff_role_id: Mapped[str | None] = mapped_column(String(32), default=None)
    hr_role_id: Mapped[str | None] = mapped_column(String(32), default=None)
    command_logs_channel_id: Mapped[str | None] = mapped_column(String(32), default=None)

    def __repr__(self) -> str:
        return f"<ErlcConfig guild_id={self.guild_id!r} disabled={self.disabled}>"


# ---------------------------------------------------------------------------
# ReminderConfig — periodic reminder posted by the bot
# ---------------------------------------------------------------------------
class ReminderConfig(GuildConfigMixin, Base):
    __tablename__ = "reminder_configs"

    reminder_text: Mapped[str | None] = mapped_column(Text, default=None)
    reminder_interval: Mapped[float | None] = mapped_column(Float, default=None)

    def __repr__(self) -> str:
        return f"<ReminderConfig guild_id={self.guild_id!r} interval={self.reminder_interval}>"


# ---------------------------------------------------------------------------
# RestrictionConfig — livery and team restrictions
# ---------------------------------------------------------------------------
class RestrictionConfig(GuildConfigMixin, Base):
    __tablename__ = "restriction_configs"

    livery_restrictions: Mapped[Any] = mapped_column(JSONB, default=list)
    team_restrictions: Mapped[Any] = mapped_column(JSONB, default=list)

    def __repr__(self) -> str:
        return f"<RestrictionConfig guild_id={self.guild_id!r} disabled={self.disabled}>"
