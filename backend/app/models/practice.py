"""
models/practice.py — Recurring practice tables: series, sessions and
session-level RSVPs.

Key design points:
  - `PracticeSeries.fee` is the per-session amount in the smallest currency
    unit. 0 means the series is free and never billed.
  - `PracticeSession.date` is a calendar date. Cancelled sessions are kept
    but excluded from fee aggregation.
  - UNIQUE(session_id, user_id) on practice_rsvps: upsert semantics, stored
    apart from event-level RSVPs.
"""

from __future__ import annotations

import datetime as dt

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Integer,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db
from backend.app.models.enums import PracticeRSVPStatus, enum_values


class PracticeSeries(db.Model):
    __tablename__ = "practice_series"

    __table_args__ = (
        CheckConstraint("fee >= 0", name="ck_practice_series_fee_non_negative"),
        CheckConstraint(
            "day_of_week BETWEEN 0 AND 6",
            name="ck_practice_series_day_of_week",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    circle_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    category_id: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # 0 = Sunday ... 6 = Saturday
    day_of_week: Mapped[int] = mapped_column(Integer, nullable=False)

    # "HH:MM", informational only.
    start_time: Mapped[str] = mapped_column(String(5), nullable=False, default="")

    location: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    fee: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_by: Mapped[str] = mapped_column(String(64), nullable=False, default="")

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<PracticeSeries id={self.id} name={self.name!r} fee={self.fee}>"


class PracticeSession(db.Model):
    __tablename__ = "practice_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    series_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    date: Mapped[dt.date] = mapped_column(Date, nullable=False)

    cancelled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    note: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<PracticeSession id={self.id} "
            f"series_id={self.series_id} "
            f"date={self.date} cancelled={self.cancelled}>"
        )


class PracticeRSVP(db.Model):
    __tablename__ = "practice_rsvps"

    __table_args__ = (
        UniqueConstraint("session_id", "user_id", name="uq_practice_rsvps_session_user"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    session_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    status: Mapped[PracticeRSVPStatus] = mapped_column(
        Enum(
            PracticeRSVPStatus,
            name="practice_rsvp_status_enum",
            native_enum=False,
            length=10,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
    )

    updated_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<PracticeRSVP session_id={self.session_id} "
            f"user_id={self.user_id} "
            f"status={self.status}>"
        )
