"""
tests/unit/fakes.py — In-memory implementations of the repository ports.

Used by the service unit tests so they run without a database or a Flask
app. Each store can be told to fail specific calls with a STORE_ERROR to
exercise the best-effort and abort paths.
"""

from __future__ import annotations

import itertools

from backend.app.errors import AppError, ErrorCode
from backend.app.repositories.ports import (
    EventStore,
    PaymentStore,
    PracticeRSVPStore,
    PracticeSeriesStore,
    PracticeSessionStore,
    RSVPStore,
    SettlementStore,
)

_ids = itertools.count(1)


def _next_id(prefix: str) -> str:
    return f"{prefix}-{next(_ids)}"


def store_error(operation: str) -> AppError:
    return AppError(ErrorCode.STORE_ERROR, f"{operation} failed.", 503)


class FakeSettlementStore(SettlementStore):

    def __init__(self):
        self.rows = {}
        self.fail_get_ids: set[str] = set()
        self.fail_create = False

    def create(self, settlement):
        if self.fail_create:
            raise store_error("settlement create")
        settlement.id = settlement.id or _next_id("settlement")
        self.rows[settlement.id] = settlement
        return settlement.id

    def get_by_id(self, settlement_id):
        if settlement_id in self.fail_get_ids:
            raise store_error("settlement lookup")
        return self.rows.get(settlement_id)

    def get_by_event(self, event_id):
        return [s for s in self.rows.values() if s.event_id == event_id]

    def update(self, settlement):
        self.rows[settlement.id] = settlement


class FakePaymentStore(PaymentStore):

    def __init__(self):
        self.rows = []
        self.fail_create_users: set[str] = set()
        self.fail_delete = False

    def create(self, payment):
        if payment.user_id in self.fail_create_users:
            raise store_error("payment create")
        if any(
            p.settlement_id == payment.settlement_id and p.user_id == payment.user_id
            for p in self.rows
        ):
            raise AppError(ErrorCode.PAYMENT_ALREADY_EXISTS, "duplicate payment", 409)
        payment.id = payment.id or _next_id("payment")
        self.rows.append(payment)
        return payment.id

    def get_by_settlement_and_user(self, settlement_id, user_id):
        for p in self.rows:
            if p.settlement_id == settlement_id and p.user_id == user_id:
                return p
        return None

    def get_by_user(self, user_id):
        return [p for p in self.rows if p.user_id == user_id]

    def update(self, payment):
        pass

    def delete_by_settlement_and_user(self, settlement_id, user_id):
        if self.fail_delete:
            raise store_error("payment delete")
        before = len(self.rows)
        self.rows = [
            p for p in self.rows
            if not (p.settlement_id == settlement_id and p.user_id == user_id)
        ]
        return before - len(self.rows)

    def for_settlement(self, settlement_id):
        return [p for p in self.rows if p.settlement_id == settlement_id]


class FakeEventStore(EventStore):

    def __init__(self):
        self.rows = {}

    def create(self, event):
        event.id = event.id or _next_id("event")
        self.rows[event.id] = event
        return event.id

    def get_by_id(self, event_id):
        return self.rows.get(event_id)


class FakeRSVPStore(RSVPStore):

    def __init__(self):
        self.rows = {}

    def upsert(self, rsvp):
        key = (rsvp.event_id, rsvp.user_id)
        existing = self.rows.get(key)
        if existing is None:
            rsvp.id = rsvp.id or _next_id("rsvp")
            self.rows[key] = rsvp
            return rsvp
        existing.status = rsvp.status
        existing.note = rsvp.note
        existing.updated_at = rsvp.updated_at
        return existing

    def get_by_event_and_user(self, event_id, user_id):
        return self.rows.get((event_id, user_id))

    def get_by_event(self, event_id):
        return [r for (eid, _), r in self.rows.items() if eid == event_id]


class FakePracticeSeriesStore(PracticeSeriesStore):

    def __init__(self):
        self.rows = {}

    def create(self, series):
        series.id = series.id or _next_id("series")
        self.rows[series.id] = series
        return series.id

    def get_by_id(self, series_id):
        return self.rows.get(series_id)

    def get_by_circle(self, circle_id):
        return [s for s in self.rows.values() if s.circle_id == circle_id]


class FakePracticeSessionStore(PracticeSessionStore):

    def __init__(self):
        self.rows = {}

    def create(self, session):
        session.id = session.id or _next_id("session")
        self.rows[session.id] = session
        return session.id

    def get_by_id(self, session_id):
        return self.rows.get(session_id)

    def get_by_series(self, series_id):
        return sorted(
            (s for s in self.rows.values() if s.series_id == series_id),
            key=lambda s: s.date,
        )

    def update(self, session):
        self.rows[session.id] = session


class FakePracticeRSVPStore(PracticeRSVPStore):

    def __init__(self, sessions: FakePracticeSessionStore):
        self.rows = {}
        self.sessions = sessions
        self.fail_get_sessions: set[str] = set()

    def upsert(self, rsvp):
        key = (rsvp.session_id, rsvp.user_id)
        existing = self.rows.get(key)
        if existing is None:
            rsvp.id = rsvp.id or _next_id("prsvp")
            self.rows[key] = rsvp
            return rsvp
        existing.status = rsvp.status
        existing.updated_at = rsvp.updated_at
        return existing

    def get_by_session(self, session_id):
        if session_id in self.fail_get_sessions:
            raise store_error("practice rsvp lookup by session")
        return [r for (sid, _), r in self.rows.items() if sid == session_id]

    def get_by_series_and_user(self, series_id, user_id):
        return [
            r for (sid, uid), r in self.rows.items()
            if uid == user_id and self.sessions.rows[sid].series_id == series_id
        ]
