"""
models/payment.py — Payment table definition.

One user's obligation against one settlement.

Key design points:
  - UNIQUE(settlement_id, user_id): at most one payment per pair. The services
    check for an existing row before creating one; the constraint is the last
    line of defence against concurrent creators.
  - `method`, `note` and `reported_at` are only meaningful once the user has
    reported the payment (status PAID_REPORTED or later).
  - Rows are deleted when the user declines the related event.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, Enum, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.extensions import db
from backend.app.models.enums import PaymentMethod, PaymentStatus, enum_values


class Payment(db.Model):
    __tablename__ = "payments"

    __table_args__ = (
        UniqueConstraint("settlement_id", "user_id", name="uq_payments_settlement_user"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True)

    settlement_id: Mapped[str] = mapped_column(
        String(36),
        nullable=False,
        index=True,
    )

    user_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,   # getByUser drives "my settlements"
    )

    status: Mapped[PaymentStatus] = mapped_column(
        Enum(
            PaymentStatus,
            name="payment_status_enum",
            native_enum=False,
            length=20,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=False,
        default=PaymentStatus.UNPAID,
    )

    method: Mapped[PaymentMethod | None] = mapped_column(
        Enum(
            PaymentMethod,
            name="payment_method_enum",
            native_enum=False,
            length=20,
            values_callable=enum_values,
            validate_strings=True,
        ),
        nullable=True,
    )

    note: Mapped[str] = mapped_column(Text, nullable=False, default="")

    reported_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Payment id={self.id} "
            f"settlement_id={self.settlement_id} "
            f"user_id={self.user_id} "
            f"status={self.status}>"
        )
