"""
services/event_service.py — Event creation and lookup.

Events carry the RSVP target list used to decide who may answer; they are
otherwise plain records.
"""

from __future__ import annotations

from datetime import datetime

from backend.app.errors import ErrorCode, not_found
from backend.app.models.event import Event
from backend.app.repositories.ports import EventStore


class EventService:

    def __init__(self, events: EventStore) -> None:
        self.events = events

    def create_event(
            self,
            circle_id: str,
            title: str,
            start_at: datetime,
            created_by: str,
            location: str = "",
            rsvp_target_user_ids: list[str] | None = None,
    ) -> Event:
        event = Event(
            circle_id=circle_id,
            title=title,
            start_at=start_at,
            location=location or "",
            rsvp_target_user_ids=list(dict.fromkeys(rsvp_target_user_ids or [])),
            created_by=created_by,
        )
        self.events.create(event)
        return event

    def get_event(self, event_id: str) -> Event:
        """Returns the Event or raises EVENT_NOT_FOUND (404)."""
        event = self.events.get_by_id(event_id)
        if event is None:
            raise not_found(ErrorCode.EVENT_NOT_FOUND, "Event", event_id)
        return event
