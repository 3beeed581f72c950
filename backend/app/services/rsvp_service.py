"""
services/rsvp_service.py — Event RSVP business logic.

Submitting an RSVP is a two-step affair for the caller:
  1. submit_rsvp()          — validates and stores the answer (flush only)
  2. dispatch_payment_sync() — called by the route AFTER commit, so the
                               background job sees the committed answer

The RSVP write never depends on the payment sync: a sync failure is logged
by the dispatcher and never reaches the request.
"""

from __future__ import annotations

from concurrent.futures import Future
from datetime import datetime, timezone

from backend.app.errors import AppError, ErrorCode, not_found
from backend.app.models.enums import RSVPStatus
from backend.app.models.rsvp import RSVP
from backend.app.repositories.ports import EventStore, RSVPStore
from backend.app.services.payment_sync import PaymentSyncDispatcher


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RsvpService:

    def __init__(
            self,
            rsvps: RSVPStore,
            events: EventStore,
            payment_sync: PaymentSyncDispatcher | None = None,
    ) -> None:
        self.rsvps = rsvps
        self.events = events
        self.payment_sync = payment_sync

    def submit_rsvp(
            self,
            event_id: str,
            user_id: str,
            status: RSVPStatus,
            note: str = "",
    ) -> RSVP:
        """
        Stores (or overwrites) the user's answer for the event.

        Raises:
          AppError(EVENT_NOT_FOUND, 404)
          AppError(FORBIDDEN, 403) — the event restricts who may answer and
                                     the user is not on the list
        """
        event = self.events.get_by_id(event_id)
        if event is None:
            raise not_found(ErrorCode.EVENT_NOT_FOUND, "Event", event_id)

        targets = event.rsvp_target_user_ids or []
        if targets and user_id not in targets:
            raise AppError(
                ErrorCode.FORBIDDEN,
                "You are not invited to respond to this event.",
                403,
            )

        rsvp = RSVP(
            event_id=event_id,
            user_id=user_id,
            status=status,
            note=note or "",
            updated_at=_utcnow(),
        )
        return self.rsvps.upsert(rsvp)

    def dispatch_payment_sync(self, rsvp: RSVP) -> Future | None:
        if self.payment_sync is None:
            return None
        return self.payment_sync.dispatch(rsvp.event_id, rsvp.user_id, rsvp.status)

    def get_my_rsvp(self, event_id: str, user_id: str) -> RSVP | None:
        return self.rsvps.get_by_event_and_user(event_id, user_id)

    def get_event_rsvps(self, event_id: str) -> list[RSVP]:
        return self.rsvps.get_by_event(event_id)
