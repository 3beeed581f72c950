"""
tests/unit/test_event_rsvp_units.py — EventService and RsvpService.

What this file proves:
  - RSVPs need an existing event and respect its target list (403)
  - A second answer overwrites the first
  - dispatch_payment_sync hands the stored answer to the dispatcher
"""

from __future__ import annotations

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from backend.app.errors import AppError, ErrorCode
from backend.app.models.enums import RSVPStatus
from backend.app.services.event_service import EventService
from backend.app.services.rsvp_service import RsvpService

from .fakes import FakeEventStore, FakeRSVPStore

START = datetime(2024, 4, 20, 18, 0, tzinfo=timezone.utc)


@pytest.fixture
def events():
    return FakeEventStore()


@pytest.fixture
def dispatcher():
    return MagicMock()


@pytest.fixture
def rsvp_service(events, dispatcher):
    return RsvpService(FakeRSVPStore(), events, payment_sync=dispatcher)


def _event(events, targets=None):
    return EventService(events).create_event(
        circle_id="c1",
        title="Spring match",
        start_at=START,
        created_by="owner",
        rsvp_target_user_ids=targets,
    )


class TestEventService:

    def test_get_unknown_event(self, events):
        with pytest.raises(AppError) as exc_info:
            EventService(events).get_event("missing")
        assert exc_info.value.code == ErrorCode.EVENT_NOT_FOUND
        assert exc_info.value.http_status == 404

    def test_target_list_is_deduplicated(self, events):
        event = _event(events, targets=["u1", "u1", "u2"])
        assert event.rsvp_target_user_ids == ["u1", "u2"]


class TestSubmitRsvp:

    def test_open_event_accepts_anyone(self, rsvp_service, events):
        event = _event(events)

        rsvp = rsvp_service.submit_rsvp(event.id, "anyone", RSVPStatus.LATE, "10 min")

        assert rsvp.status == RSVPStatus.LATE
        assert rsvp.note == "10 min"
        assert rsvp_service.get_my_rsvp(event.id, "anyone") is rsvp

    def test_targeted_event_rejects_outsider(self, rsvp_service, events):
        event = _event(events, targets=["u1"])

        with pytest.raises(AppError) as exc_info:
            rsvp_service.submit_rsvp(event.id, "u2", RSVPStatus.GO)

        assert exc_info.value.code == ErrorCode.FORBIDDEN
        assert exc_info.value.http_status == 403
        assert rsvp_service.get_event_rsvps(event.id) == []

    def test_unknown_event(self, rsvp_service):
        with pytest.raises(AppError) as exc_info:
            rsvp_service.submit_rsvp("missing", "u1", RSVPStatus.GO)
        assert exc_info.value.code == ErrorCode.EVENT_NOT_FOUND

    def test_second_answer_overwrites_first(self, rsvp_service, events):
        event = _event(events)

        rsvp_service.submit_rsvp(event.id, "u1", RSVPStatus.GO)
        rsvp_service.submit_rsvp(event.id, "u1", RSVPStatus.NO, "sick")

        rsvps = rsvp_service.get_event_rsvps(event.id)
        assert len(rsvps) == 1
        assert rsvps[0].status == RSVPStatus.NO
        assert rsvps[0].note == "sick"

    def test_submit_does_not_dispatch_by_itself(self, rsvp_service, events, dispatcher):
        event = _event(events)
        rsvp_service.submit_rsvp(event.id, "u1", RSVPStatus.GO)
        dispatcher.dispatch.assert_not_called()


class TestDispatchPaymentSync:

    def test_forwards_stored_answer(self, rsvp_service, events, dispatcher):
        event = _event(events)
        rsvp = rsvp_service.submit_rsvp(event.id, "u1", RSVPStatus.EARLY)

        rsvp_service.dispatch_payment_sync(rsvp)

        dispatcher.dispatch.assert_called_once_with(event.id, "u1", RSVPStatus.EARLY)

    def test_without_dispatcher_is_a_no_op(self, events):
        service = RsvpService(FakeRSVPStore(), events)
        rsvp = service.submit_rsvp(_event(events).id, "u1", RSVPStatus.GO)

        assert service.dispatch_payment_sync(rsvp) is None
