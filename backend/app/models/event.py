"""
models/event.py — Event table definition.

Events are a thin collaborator here: the RSVP flow needs to know that an event
exists and, optionally, which users are allowed to answer it.
An empty `rsvp_target_user_ids` list means anyone may RSVP.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, String, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db


class Event(db.Model):
    __tablename__ = "events"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    circle_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    start_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    rsvp_target_user_ids: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Event id={self.id} circle_id={self.circle_id} title={self.title!r}>"
