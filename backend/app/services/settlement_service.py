"""
services/settlement_service.py — Settlement and payment business logic.

Invariants enforced here:
  - At most one Payment per (settlement_id, user_id). Every creation path
    either works from a de-duplicated target list (create_settlement) or
    checks for an existing row first (ensure_payment). The unique constraint
    in the payments table catches concurrent creators that slip past the check.
  - A Settlement is stored (and has an id) before any Payment referencing it.

Best-effort sub-operations:
  Payment creation during create_settlement, and the ensure/retract
  primitives used by the RSVP synchronizer, never raise for a single failed
  item. Each call returns a PaymentOutcome so callers and tests can see what
  happened; failures are logged at WARNING. The primary write (the settlement
  itself, the reported payment, the updated terms) raises normally.

Layer rules:
  - No Flask imports. Works against repository ports only.
  - Commits are the route's responsibility — stores only flush.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from backend.app.errors import AppError, ErrorCode, not_found
from backend.app.models.enums import PaymentMethod, PaymentStatus
from backend.app.models.payment import Payment
from backend.app.models.settlement import Settlement
from backend.app.repositories.ports import PaymentStore, SettlementStore

logger = logging.getLogger(__name__)


# Outcome actions
CREATED = "created"
EXISTS  = "exists"
DELETED = "deleted"
ABSENT  = "absent"
KEPT    = "kept"
SKIPPED = "skipped"
FAILED  = "failed"


@dataclass(frozen=True)
class PaymentOutcome:
    """Result of one best-effort payment-record operation."""

    settlement_id: str
    user_id: str
    action: str
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SettlementWithPayment:
    settlement: Settlement
    payment: Payment | None

    @property
    def is_paid(self) -> bool:
        """Paid means a payment row exists and has moved past UNPAID."""
        return self.payment is not None and self.payment.status != PaymentStatus.UNPAID


@dataclass
class MySettlements:
    items: list[SettlementWithPayment] = field(default_factory=list)
    # Payment rows whose settlement could not be resolved.
    skipped: list[PaymentOutcome] = field(default_factory=list)

    @property
    def paid(self) -> list[SettlementWithPayment]:
        return [item for item in self.items if item.is_paid]

    @property
    def unpaid(self) -> list[SettlementWithPayment]:
        return [item for item in self.items if not item.is_paid]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _require_non_negative_amount(amount: int) -> None:
    if amount < 0:
        raise AppError(
            ErrorCode.INVALID_AMOUNT,
            "Amount must be zero or greater.",
            400,
            field="amount",
        )


class SettlementService:

    def __init__(self, settlements: SettlementStore, payments: PaymentStore) -> None:
        self.settlements = settlements
        self.payments = payments

    # ── Settlements ────────────────────────────────────────────────────────

    def create_settlement(
            self,
            circle_id: str,
            event_id: str,
            title: str,
            amount: int,
            due_at: datetime,
            target_user_ids: list[str],
            bank_info: str = "",
            paypay_info: str = "",
    ) -> tuple[Settlement, list[PaymentOutcome]]:
        """
        Stores a settlement and one UNPAID payment per target user.

        Raises:
          AppError(INVALID_AMOUNT, 400)      — amount < 0
          AppError(EMPTY_TARGET_USERS, 400)  — no target users
          AppError(STORE_ERROR, 503)         — the settlement itself could not be stored

        Returns:
          (Settlement, outcomes) with one PaymentOutcome per distinct target user.
          A failed payment does not fail the call; see the module docstring.
        """
        _require_non_negative_amount(amount)

        # Duplicates would otherwise ask for two payments for one user.
        targets = list(dict.fromkeys(target_user_ids))
        if not targets:
            raise AppError(
                ErrorCode.EMPTY_TARGET_USERS,
                "A settlement needs at least one target user.",
                400,
                field="targetUserIds",
            )

        settlement = Settlement(
            circle_id=circle_id,
            event_id=event_id or "",
            title=title,
            amount=amount,
            due_at=due_at,
            target_user_ids=targets,
            bank_info=bank_info or "",
            paypay_info=paypay_info or "",
            created_at=_utcnow(),
        )
        self.settlements.create(settlement)

        outcomes = [self._create_payment(settlement.id, user_id) for user_id in targets]

        failed = [o for o in outcomes if not o.ok]
        if failed:
            logger.warning(
                "Settlement %s stored but %d of %d payment records failed: %s",
                settlement.id,
                len(failed),
                len(outcomes),
                ", ".join(f"{o.user_id} ({o.error})" for o in failed),
            )
        return settlement, outcomes

    def get_settlement(self, settlement_id: str) -> Settlement:
        """Returns the Settlement or raises SETTLEMENT_NOT_FOUND (404)."""
        settlement = self.settlements.get_by_id(settlement_id)
        if settlement is None:
            raise not_found(ErrorCode.SETTLEMENT_NOT_FOUND, "Settlement", settlement_id)
        return settlement

    def list_event_settlements(self, event_id: str) -> list[Settlement]:
        return self.settlements.get_by_event(event_id)

    def update_settlement(
            self,
            settlement_id: str,
            title: str,
            amount: int,
            due_at: datetime,
    ) -> Settlement:
        """
        Overwrites title, amount and due_at. Target users and payment
        destinations are never touched here.
        """
        settlement = self.get_settlement(settlement_id)
        _require_non_negative_amount(amount)

        settlement.title = title
        settlement.amount = amount
        settlement.due_at = due_at
        self.settlements.update(settlement)
        return settlement

    # ── Payments ───────────────────────────────────────────────────────────

    def report_payment(
            self,
            settlement_id: str,
            user_id: str,
            method: PaymentMethod,
            note: str = "",
    ) -> Payment:
        """
        Marks the caller's payment as PAID_REPORTED.

        Re-reporting is allowed from any status; the latest method, note and
        reported_at win.

        Raises:
          AppError(PAYMENT_NOT_FOUND, 404) — the user has no payment row for
                                             this settlement
        """
        payment = self.payments.get_by_settlement_and_user(settlement_id, user_id)
        if payment is None:
            raise AppError(
                ErrorCode.PAYMENT_NOT_FOUND,
                f"You have no payment record for settlement {settlement_id}.",
                404,
            )

        payment.status = PaymentStatus.PAID_REPORTED
        payment.method = method
        payment.note = note or ""
        payment.reported_at = _utcnow()
        self.payments.update(payment)
        return payment

    def get_my_settlements(self, user_id: str) -> MySettlements:
        """
        Lists the settlements the user holds a payment row for.

        Driven by the user's payments, so a settlement without a row for the
        user never appears. Rows whose settlement cannot be loaded are
        reported in `skipped` instead of failing the whole read.
        """
        result = MySettlements()
        for payment in self.payments.get_by_user(user_id):
            try:
                settlement = self.settlements.get_by_id(payment.settlement_id)
            except AppError as exc:
                result.skipped.append(
                    PaymentOutcome(payment.settlement_id, user_id, SKIPPED, exc.code)
                )
                continue

            if settlement is None:
                result.skipped.append(
                    PaymentOutcome(
                        payment.settlement_id, user_id, SKIPPED,
                        ErrorCode.SETTLEMENT_NOT_FOUND,
                    )
                )
                continue

            result.items.append(SettlementWithPayment(settlement, payment))

        if result.skipped:
            logger.warning(
                "Skipped %d payment rows for user %s with unreadable settlements.",
                len(result.skipped),
                user_id,
            )
        return result

    # ── Payment-record primitives (best effort) ────────────────────────────

    def ensure_payment(self, settlement_id: str, user_id: str) -> PaymentOutcome:
        """Creates an UNPAID payment for the pair unless one already exists."""
        try:
            existing = self.payments.get_by_settlement_and_user(settlement_id, user_id)
        except AppError as exc:
            logger.warning(
                "Failed to check payment for settlement %s, user %s: %s",
                settlement_id, user_id, exc.message,
            )
            return PaymentOutcome(settlement_id, user_id, FAILED, exc.code)

        if existing is not None:
            return PaymentOutcome(settlement_id, user_id, EXISTS)
        return self._create_payment(settlement_id, user_id)

    def retract_payment(
            self,
            settlement_id: str,
            user_id: str,
            keep_reported: bool = False,
    ) -> PaymentOutcome:
        """
        Removes the user's payment row for the settlement.

        With keep_reported=False (the default) the row is removed whatever its
        status. Removing a reported or confirmed payment is logged.
        """
        try:
            existing = self.payments.get_by_settlement_and_user(settlement_id, user_id)
            if existing is None:
                return PaymentOutcome(settlement_id, user_id, ABSENT)

            if existing.status != PaymentStatus.UNPAID:
                if keep_reported:
                    return PaymentOutcome(settlement_id, user_id, KEPT)
                logger.warning(
                    "Deleting %s payment for settlement %s, user %s after decline.",
                    existing.status.value, settlement_id, user_id,
                )

            self.payments.delete_by_settlement_and_user(settlement_id, user_id)
        except AppError as exc:
            logger.warning(
                "Failed to delete payment for settlement %s, user %s: %s",
                settlement_id, user_id, exc.message,
            )
            return PaymentOutcome(settlement_id, user_id, FAILED, exc.code)

        return PaymentOutcome(settlement_id, user_id, DELETED)

    def _create_payment(self, settlement_id: str, user_id: str) -> PaymentOutcome:
        payment = Payment(
            settlement_id=settlement_id,
            user_id=user_id,
            status=PaymentStatus.UNPAID,
            note="",
        )
        try:
            self.payments.create(payment)
        except AppError as exc:
            logger.warning(
                "Failed to create payment for settlement %s, user %s: %s",
                settlement_id, user_id, exc.message,
            )
            return PaymentOutcome(settlement_id, user_id, FAILED, exc.code)
        return PaymentOutcome(settlement_id, user_id, CREATED)
