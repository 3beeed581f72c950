"""
repositories/settlements.py — SQLAlchemy stores for settlements and payments.
"""

from __future__ import annotations

from sqlalchemy import delete, select

from backend.app.errors import ErrorCode
from backend.app.models.payment import Payment
from backend.app.models.settlement import Settlement
from backend.app.repositories.base import SqlAlchemyStore, new_id, translate_store_errors, utcnow
from backend.app.repositories.ports import PaymentStore, SettlementStore


class SettlementRepository(SqlAlchemyStore, SettlementStore):

    def create(self, settlement: Settlement) -> str:
        settlement.id = settlement.id or new_id()
        if settlement.created_at is None:
            settlement.created_at = utcnow()
        self._add(settlement, "settlement create")
        return settlement.id

    def get_by_id(self, settlement_id: str) -> Settlement | None:
        # Isolated so one failed lookup does not abort a caller looping over ids.
        with self._isolated("settlement lookup"):
            return self.session.get(Settlement, settlement_id)

    def get_by_event(self, event_id: str) -> list[Settlement]:
        stmt = (
            select(Settlement)
            .where(Settlement.event_id == event_id)
            .order_by(Settlement.created_at.asc())
        )
        with translate_store_errors("settlement lookup by event"):
            return list(self.session.execute(stmt).scalars().all())

    def update(self, settlement: Settlement) -> None:
        self._add(settlement, "settlement update")


class PaymentRepository(SqlAlchemyStore, PaymentStore):

    def create(self, payment: Payment) -> str:
        payment.id = payment.id or new_id()
        self._add_isolated(
            payment,
            "payment create",
            conflict_code=ErrorCode.PAYMENT_ALREADY_EXISTS,
        )
        return payment.id

    def get_by_settlement_and_user(self, settlement_id: str, user_id: str) -> Payment | None:
        stmt = select(Payment).where(
            Payment.settlement_id == settlement_id,
            Payment.user_id == user_id,
        )
        with translate_store_errors("payment lookup"):
            return self.session.execute(stmt).scalars().first()

    def get_by_user(self, user_id: str) -> list[Payment]:
        stmt = select(Payment).where(Payment.user_id == user_id)
        with translate_store_errors("payment lookup by user"):
            return list(self.session.execute(stmt).scalars().all())

    def update(self, payment: Payment) -> None:
        self._add(payment, "payment update")

    def delete_by_settlement_and_user(self, settlement_id: str, user_id: str) -> int:
        stmt = delete(Payment).where(
            Payment.settlement_id == settlement_id,
            Payment.user_id == user_id,
        )
        with translate_store_errors("payment delete"):
            result = self.session.execute(stmt)
            self.session.flush()
        return result.rowcount or 0
