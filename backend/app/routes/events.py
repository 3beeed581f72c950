"""
routes/events.py — Event and event-RSVP route handlers.

The RSVP handler commits the answer first and only then hands the payment
sync to the background dispatcher, so the worker always reads the committed
RSVP. The response does not wait for, or report on, the sync.

Endpoints (url_prefix=/api/v1):
  POST   /events                → 201  create an event
  GET    /events/:id            → 200  get an event
  POST   /events/:id/rsvp       → 200  submit / change the caller's RSVP
  GET    /events/:id/rsvp/me    → 200  the caller's RSVP (null if none)
  GET    /events/:id/rsvps      → 200  every RSVP for the event
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.dependencies import event_service, rsvp_service
from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_user
from backend.app.models.event import Event
from backend.app.models.rsvp import RSVP
from backend.app.schemas.event_schema import CreateEventSchema, SubmitRSVPSchema

events_bp = Blueprint("events", __name__)


def _serialize_event(e: Event) -> dict:
    return {
        "id": e.id,
        "circleId": e.circle_id,
        "title": e.title,
        "startAt": e.start_at.isoformat(),
        "location": e.location,
        "rsvpTargetUserIds": list(e.rsvp_target_user_ids or []),
        "createdBy": e.created_by,
        "createdAt": e.created_at.isoformat() if e.created_at else None,
    }


def _serialize_rsvp(r: RSVP) -> dict:
    return {
        "id": r.id,
        "eventId": r.event_id,
        "userId": r.user_id,
        "status": r.status.value,
        "note": r.note,
        "updatedAt": r.updated_at.isoformat() if r.updated_at else None,
    }


@events_bp.route("/events", methods=["POST"])
@require_user
def create_event():
    """POST /events — The caller becomes createdBy."""
    data = CreateEventSchema().load(request.get_json(force=True) or {})
    event = event_service().create_event(created_by=g.user_id, **data)
    db.session.commit()
    return jsonify({"data": _serialize_event(event), "warnings": []}), 201


@events_bp.route("/events/<event_id>", methods=["GET"])
@require_user
def get_event(event_id: str):
    event = event_service().get_event(event_id)
    return jsonify({"data": _serialize_event(event), "warnings": []}), 200


@events_bp.route("/events/<event_id>/rsvp", methods=["POST"])
@require_user
def submit_rsvp(event_id: str):
    """
    POST /events/:id/rsvp — Store the caller's answer, then sync payments.

    Attending answers (GO / LATE / EARLY) add the caller to every settlement
    of the event; NO removes them. This runs after the response is decided.
    """
    data = SubmitRSVPSchema().load(request.get_json(force=True) or {})
    service = rsvp_service()
    rsvp = service.submit_rsvp(
        event_id=event_id,
        user_id=g.user_id,
        status=data["status"],
        note=data["note"],
    )
    db.session.commit()
    body = _serialize_rsvp(rsvp)

    service.dispatch_payment_sync(rsvp)
    return jsonify({"data": body, "warnings": []}), 200


@events_bp.route("/events/<event_id>/rsvp/me", methods=["GET"])
@require_user
def my_rsvp(event_id: str):
    rsvp = rsvp_service().get_my_rsvp(event_id, g.user_id)
    return jsonify({
        "data": _serialize_rsvp(rsvp) if rsvp is not None else None,
        "warnings": [],
    }), 200


@events_bp.route("/events/<event_id>/rsvps", methods=["GET"])
@require_user
def list_rsvps(event_id: str):
    rsvps = rsvp_service().get_event_rsvps(event_id)
    return jsonify({"data": [_serialize_rsvp(r) for r in rsvps], "warnings": []}), 200
