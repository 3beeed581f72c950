"""
models/rsvp.py — Event-level RSVP table definition.

UNIQUE(event_id, user_id): one answer per user per event, written with
upsert semantics (last write wins).
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db
from backend.app.models.enums import RSVPStatus, enum_values


class RSVP(db.Model):
    __tablename__ = "rsvps"

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_rsvps_event_user"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    event_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False)

    status: Mapped[RSVPStatus] = mapped_column(
        Enum(
            RSVPStatus,
            name="rsvp_status_enum",
            native_enum=False,
            length=10,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )

    note: Mapped[str] = mapped_column(Text, nullable=False, default="")

    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<RSVP event_id={self.event_id} "
            f"user_id={self.user_id} "
            f"status={self.status}>"
        )
