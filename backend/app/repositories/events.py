"""
repositories/events.py — SQLAlchemy stores for events and event-level RSVPs.
"""

from __future__ import annotations

from sqlalchemy import select

from backend.app.models.event import Event
from backend.app.models.rsvp import RSVP
from backend.app.repositories.base import SqlAlchemyStore, new_id, translate_store_errors, utcnow
from backend.app.repositories.ports import EventStore, RSVPStore


class EventRepository(SqlAlchemyStore, EventStore):

    def create(self, event: Event) -> str:
        event.id = event.id or new_id()
        if event.created_at is None:
            event.created_at = utcnow()
        self._add(event, "event create")
        return event.id

    def get_by_id(self, event_id: str) -> Event | None:
        with translate_store_errors("event lookup"):
            return self.session.get(Event, event_id)


class RSVPRepository(SqlAlchemyStore, RSVPStore):

    def upsert(self, rsvp: RSVP) -> RSVP:
        existing = self.get_by_event_and_user(rsvp.event_id, rsvp.user_id)
        if existing is None:
            rsvp.id = rsvp.id or new_id()
            self._add(rsvp, "rsvp insert")
            return rsvp

        existing.status = rsvp.status
        existing.note = rsvp.note
        existing.updated_at = rsvp.updated_at
        self._add(existing, "rsvp update")
        return existing

    def get_by_event_and_user(self, event_id: str, user_id: str) -> RSVP | None:
        stmt = select(RSVP).where(RSVP.event_id == event_id, RSVP.user_id == user_id)
        with translate_store_errors("rsvp lookup"):
            return self.session.execute(stmt).scalars().first()

    def get_by_event(self, event_id: str) -> list[RSVP]:
        stmt = (
            select(RSVP)
            .where(RSVP.event_id == event_id)
            .order_by(RSVP.updated_at.asc())
        )
        with translate_store_errors("rsvp lookup by event"):
            return list(self.session.execute(stmt).scalars().all())
