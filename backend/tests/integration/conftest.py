"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against the database named by TEST_DATABASE_URL, in-memory
    SQLite when unset.
  - The app is created once per session using create_app("testing").
    TestingConfig turns on PAYMENT_SYNC_EAGER, so the RSVP → payment sync
    has finished by the time the RSVP request returns.
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - user_headers(user_id)         → {"X-User-Id": user_id}
  - make_event(client, ...)       → event dict
  - make_settlement(client, ...)  → HTTP response
  - rsvp(client, ...)             → HTTP response
  - make_series(client, ...)      → series dict
  - make_session(client, ...)     → session dict

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from backend.app import create_app
from backend.app.extensions import db as _db

_TABLES = (
    "payments",
    "settlements",
    "rsvps",
    "events",
    "practice_rsvps",
    "practice_sessions",
    "practice_series",
)


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test in the integration suite."""
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            for table in _TABLES:
                conn.execute(text(f"DELETE FROM {table}"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def user_headers(user_id: str) -> dict:
    """Returns the caller identification header for use in test requests."""
    return {"X-User-Id": user_id}


def make_event(
    client,
    user_id: str = "owner",
    title: str = "Spring match",
    targets: list[str] | None = None,
) -> dict:
    payload: dict = {
        "circleId": "c1",
        "title": title,
        "startAt": "2024-04-20T18:00:00+00:00",
    }
    if targets is not None:
        payload["rsvpTargetUserIds"] = targets

    resp = client.post("/api/v1/events", json=payload, headers=user_headers(user_id))
    assert resp.status_code == 201, f"make_event failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_settlement(
    client,
    targets: list[str],
    amount: int = 1000,
    event_id: str = "",
    title: str = "Court fee",
    user_id: str = "owner",
):
    return client.post(
        "/api/v1/settlements",
        json={
            "circleId": "c1",
            "eventId": event_id,
            "title": title,
            "amount": amount,
            "dueAt": "2024-06-30T12:00:00+00:00",
            "targetUserIds": targets,
            "bankInfo": "Bank X 1234567",
        },
        headers=user_headers(user_id),
    )


def rsvp(client, event_id: str, user_id: str, status: str, note: str = ""):
    return client.post(
        f"/api/v1/events/{event_id}/rsvp",
        json={"status": status, "note": note},
        headers=user_headers(user_id),
    )


def my_settlements(client, user_id: str) -> dict:
    resp = client.get("/api/v1/settlements/me", headers=user_headers(user_id))
    assert resp.status_code == 200, f"my_settlements failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_series(client, fee: int = 500, name: str = "Tuesday Practice", user_id: str = "owner") -> dict:
    resp = client.post(
        "/api/v1/practice-series",
        json={
            "circleId": "c1",
            "name": name,
            "dayOfWeek": 2,
            "startTime": "19:00",
            "location": "Gym A",
            "fee": fee,
        },
        headers=user_headers(user_id),
    )
    assert resp.status_code == 201, f"make_series failed: {resp.get_json()}"
    return resp.get_json()["data"]


def make_session(client, series_id: str, day: str, user_id: str = "owner") -> dict:
    resp = client.post(
        f"/api/v1/practice-series/{series_id}/sessions",
        json={"date": day},
        headers=user_headers(user_id),
    )
    assert resp.status_code == 201, f"make_session failed: {resp.get_json()}"
    return resp.get_json()["data"]
