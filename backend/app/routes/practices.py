"""
routes/practices.py — Practice series, session, RSVP and fee route handlers.

Endpoints (url_prefix=/api/v1):
  POST   /practice-series                     → 201  create a series
  GET    /circles/:id/practice-series         → 200  list a circle's series
  GET    /practice-series/:id                 → 200  series + sessions + my RSVPs
  POST   /practice-series/:id/sessions        → 201  add a session
  POST   /practice-series/:id/bulk-rsvp       → 200  answer several sessions
  POST   /practice-series/:id/settlements     → 201  bill a month's attendance
  PATCH  /practice-sessions/:id               → 200  cancel / annotate a session
  POST   /practice-sessions/:id/rsvp          → 200  answer one session
  GET    /practice-sessions/:id/rsvps         → 200  a session's answers

The monthly fee run commits once at the end. If it aborts part-way, nothing
it created is kept.
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.dependencies import practice_service
from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_user
from backend.app.models.practice import PracticeRSVP, PracticeSeries, PracticeSession
from backend.app.routes.settlements import serialize_settlement
from backend.app.schemas.practice_schema import (
    BulkRSVPSchema,
    CreateFeeSettlementsSchema,
    CreateSeriesSchema,
    CreateSessionSchema,
    PracticeRSVPSchema,
    UpdateSessionSchema,
)

practices_bp = Blueprint("practices", __name__)


# ── Serialization helpers ──────────────────────────────────────────────────

def _serialize_series(s: PracticeSeries) -> dict:
    return {
        "id": s.id,
        "circleId": s.circle_id,
        "categoryId": s.category_id,
        "name": s.name,
        "dayOfWeek": s.day_of_week,
        "startTime": s.start_time,
        "location": s.location,
        "fee": s.fee,
        "createdBy": s.created_by,
        "createdAt": s.created_at.isoformat() if s.created_at else None,
    }


def _serialize_session(s: PracticeSession) -> dict:
    return {
        "id": s.id,
        "seriesId": s.series_id,
        "date": s.date.isoformat(),
        "cancelled": s.cancelled,
        "note": s.note,
    }


def _serialize_rsvp(r: PracticeRSVP) -> dict:
    return {
        "id": r.id,
        "sessionId": r.session_id,
        "userId": r.user_id,
        "status": r.status.value,
        "updatedAt": r.updated_at.isoformat() if r.updated_at else None,
    }


# ── Series ─────────────────────────────────────────────────────────────────

@practices_bp.route("/practice-series", methods=["POST"])
@require_user
def create_series():
    data = CreateSeriesSchema().load(request.get_json(force=True) or {})
    series = practice_service().create_series(created_by=g.user_id, **data)
    db.session.commit()
    return jsonify({"data": _serialize_series(series), "warnings": []}), 201


@practices_bp.route("/circles/<circle_id>/practice-series", methods=["GET"])
@require_user
def list_series(circle_id: str):
    series = practice_service().list_series(circle_id)
    return jsonify({"data": [_serialize_series(s) for s in series], "warnings": []}), 200


@practices_bp.route("/practice-series/<series_id>", methods=["GET"])
@require_user
def get_series_detail(series_id: str):
    """GET /practice-series/:id — Includes the caller's own answers only."""
    detail = practice_service().get_series_detail(series_id, g.user_id)
    return jsonify({
        "data": {
            "series": _serialize_series(detail.series),
            "sessions": [_serialize_session(s) for s in detail.sessions],
            "myRsvps": [_serialize_rsvp(r) for r in detail.my_rsvps],
        },
        "warnings": [],
    }), 200


@practices_bp.route("/practice-series/<series_id>/sessions", methods=["POST"])
@require_user
def create_session(series_id: str):
    data = CreateSessionSchema().load(request.get_json(force=True) or {})
    session = practice_service().create_session(
        series_id=series_id,
        session_date=data["date"],
        note=data["note"],
    )
    db.session.commit()
    return jsonify({"data": _serialize_session(session), "warnings": []}), 201


@practices_bp.route("/practice-series/<series_id>/bulk-rsvp", methods=["POST"])
@require_user
def bulk_rsvp(series_id: str):
    data = BulkRSVPSchema().load(request.get_json(force=True) or {})
    rsvps = practice_service().bulk_rsvp(
        series_id=series_id,
        user_id=g.user_id,
        answers=[(item["session_id"], item["status"]) for item in data["rsvps"]],
    )
    db.session.commit()
    return jsonify({"data": [_serialize_rsvp(r) for r in rsvps], "warnings": []}), 200


@practices_bp.route("/practice-series/<series_id>/settlements", methods=["POST"])
@require_user
def create_fee_settlements(series_id: str):
    """POST /practice-series/:id/settlements — Bill one month, body {"month": "YYYY-MM"}."""
    data = CreateFeeSettlementsSchema().load(request.get_json(force=True) or {})
    settlements = practice_service().create_settlements(series_id, data["month"])
    db.session.commit()
    return jsonify({
        "data": [serialize_settlement(s) for s in settlements],
        "warnings": [],
    }), 201


# ── Sessions ───────────────────────────────────────────────────────────────

@practices_bp.route("/practice-sessions/<session_id>", methods=["PATCH"])
@require_user
def update_session(session_id: str):
    data = UpdateSessionSchema().load(request.get_json(force=True) or {})
    session = practice_service().update_session(session_id, **data)
    db.session.commit()
    return jsonify({"data": _serialize_session(session), "warnings": []}), 200


@practices_bp.route("/practice-sessions/<session_id>/rsvp", methods=["POST"])
@require_user
def submit_rsvp(session_id: str):
    data = PracticeRSVPSchema().load(request.get_json(force=True) or {})
    rsvp = practice_service().submit_rsvp(session_id, g.user_id, data["status"])
    db.session.commit()
    return jsonify({"data": _serialize_rsvp(rsvp), "warnings": []}), 200


@practices_bp.route("/practice-sessions/<session_id>/rsvps", methods=["GET"])
@require_user
def list_session_rsvps(session_id: str):
    rsvps = practice_service().get_session_rsvps(session_id)
    return jsonify({"data": [_serialize_rsvp(r) for r in rsvps], "warnings": []}), 200
