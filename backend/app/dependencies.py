"""
dependencies.py — Wires services to the SQLAlchemy stores.

Routes call these builders instead of constructing repositories themselves,
so the only places that know about db.session are the repositories, the
app factory and this file.

The payment sync job runs on a worker thread. It pushes its own app context,
which gives it its own scoped session, and commits or rolls back before the
context is torn down.
"""

from __future__ import annotations

from flask import Flask, current_app

from backend.app.extensions import db
from backend.app.models.enums import RSVPStatus
from backend.app.repositories.events import EventRepository, RSVPRepository
from backend.app.repositories.practice import (
    PracticeRSVPRepository,
    PracticeSeriesRepository,
    PracticeSessionRepository,
)
from backend.app.repositories.settlements import PaymentRepository, SettlementRepository
from backend.app.services.event_service import EventService
from backend.app.services.payment_sync import RsvpPaymentSynchronizer, SyncJob
from backend.app.services.practice_service import PracticeService
from backend.app.services.rsvp_service import RsvpService
from backend.app.services.settlement_service import PaymentOutcome, SettlementService


def settlement_service() -> SettlementService:
    return SettlementService(
        SettlementRepository(db.session),
        PaymentRepository(db.session),
    )


def event_service() -> EventService:
    return EventService(EventRepository(db.session))


def rsvp_service() -> RsvpService:
    return RsvpService(
        RSVPRepository(db.session),
        EventRepository(db.session),
        payment_sync=current_app.extensions["payment_sync"],
    )


def practice_service() -> PracticeService:
    return PracticeService(
        PracticeSeriesRepository(db.session),
        PracticeSessionRepository(db.session),
        PracticeRSVPRepository(db.session),
        settlement_service(),
        due_days=current_app.config["PRACTICE_SETTLEMENT_DUE_DAYS"],
    )


def make_payment_sync_job(app: Flask) -> SyncJob:
    """Builds the callable the PaymentSyncDispatcher runs for each RSVP."""

    def run(event_id: str, user_id: str, status: RSVPStatus) -> list[PaymentOutcome]:
        with app.app_context():
            synchronizer = RsvpPaymentSynchronizer(
                settlement_service(),
                keep_reported=app.config["PAYMENT_SYNC_KEEP_REPORTED"],
            )
            try:
                outcomes = synchronizer.synchronize(event_id, user_id, status)
                db.session.commit()
            except Exception:
                db.session.rollback()
                raise
            return outcomes

    return run
