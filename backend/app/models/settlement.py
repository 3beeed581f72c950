"""
models/settlement.py — Settlement table definition.

No business logic. No imports from services or routes.

Key design points:
  - `amount` is an Integer in the smallest currency unit — never Float.
  - `event_id` is an empty string for settlements generated from practice fees.
  - `target_user_ids` is a JSON list fixed at creation. Only title, amount
    and due_at are mutable (SettlementService.update_settlement).
  - Payments reference settlements by id only; there is no ORM relationship
    so the repository layer stays the single place that reads them.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, DateTime, Integer, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db


class Settlement(db.Model):
    __tablename__ = "settlements"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    circle_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )

    event_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default="",
        index=True,   # getByEvent drives the RSVP synchronizer
    )

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    amount: Mapped[int] = mapped_column(Integer, nullable=False)

    due_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    target_user_ids: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
    )

    bank_info: Mapped[str] = mapped_column(Text, nullable=False, default="")

    paypay_info: Mapped[str] = mapped_column(Text, nullable=False, default="")

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Settlement id={self.id} "
            f"circle_id={self.circle_id} "
            f"event_id={self.event_id!r} "
            f"amount={self.amount}>"
        )
