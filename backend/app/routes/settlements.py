"""
routes/settlements.py — Settlement route handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries. No bare SQL.

Special: create_settlement returns (Settlement, outcomes).
  Payment rows that could not be created do not fail the request; each one is
  reported in the envelope as a PAYMENT_NOT_CREATED warning and the status is
  still 201.

Endpoints (url_prefix=/api/v1):
  POST   /settlements               → 201  create a settlement + payments
  GET    /settlements/me            → 200  caller's settlements, unpaid/paid
  POST   /settlements/:id/report    → 200  report the caller's payment
  PUT    /settlements/:id           → 200  update title / amount / dueAt
  GET    /events/:id/settlements    → 200  settlements attached to an event
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from backend.app.dependencies import settlement_service
from backend.app.extensions import db
from backend.app.middleware.auth_middleware import require_user
from backend.app.models.payment import Payment
from backend.app.models.settlement import Settlement
from backend.app.schemas.settlement_schema import (
    CreateSettlementSchema,
    ReportPaymentSchema,
    UpdateSettlementSchema,
)
from backend.app.services.settlement_service import SettlementWithPayment

settlements_bp = Blueprint("settlements", __name__)


# ── Serialization helpers ──────────────────────────────────────────────────

def _iso(value):
    return value.isoformat() if value is not None else None


def serialize_settlement(s: Settlement) -> dict:
    """Converts a Settlement ORM object to a plain dict for JSON output."""
    return {
        "id": s.id,
        "circleId": s.circle_id,
        "eventId": s.event_id,
        "title": s.title,
        "amount": s.amount,
        "dueAt": _iso(s.due_at),
        "targetUserIds": list(s.target_user_ids or []),
        "bankInfo": s.bank_info,
        "paypayInfo": s.paypay_info,
        "createdAt": _iso(s.created_at),
    }


def _serialize_payment(p: Payment) -> dict:
    return {
        "id": p.id,
        "settlementId": p.settlement_id,
        "userId": p.user_id,
        "status": p.status.value,
        "method": p.method.value if p.method is not None else None,
        "note": p.note,
        "reportedAt": _iso(p.reported_at),
    }


def _serialize_item(item: SettlementWithPayment) -> dict:
    data = serialize_settlement(item.settlement)
    data["payment"] = _serialize_payment(item.payment) if item.payment is not None else None
    return data


# ── Route handlers ─────────────────────────────────────────────────────────

@settlements_bp.route("/settlements", methods=["POST"])
@require_user
def create_settlement():
    """
    POST /settlements — Create a settlement and one UNPAID payment per target.

    Payment rows that fail are listed as warnings; the settlement itself is
    committed regardless.
    """
    data = CreateSettlementSchema().load(request.get_json(force=True) or {})
    settlement, outcomes = settlement_service().create_settlement(**data)
    db.session.commit()

    warnings = [
        {
            "code": "PAYMENT_NOT_CREATED",
            "message": f"No payment record could be created for user {o.user_id}.",
            "userId": o.user_id,
            "cause": o.error,
        }
        for o in outcomes
        if not o.ok
    ]
    return jsonify({"data": serialize_settlement(settlement), "warnings": warnings}), 201


@settlements_bp.route("/settlements/me", methods=["GET"])
@require_user
def my_settlements():
    """GET /settlements/me — The caller's settlements split by payment state."""
    result = settlement_service().get_my_settlements(g.user_id)
    return jsonify({
        "data": {
            "unpaid": [_serialize_item(i) for i in result.unpaid],
            "paid": [_serialize_item(i) for i in result.paid],
        },
        "warnings": [],
    }), 200


@settlements_bp.route("/settlements/<settlement_id>/report", methods=["POST"])
@require_user
def report_payment(settlement_id: str):
    """POST /settlements/:id/report — Caller reports they have paid."""
    data = ReportPaymentSchema().load(request.get_json(force=True) or {})
    payment = settlement_service().report_payment(
        settlement_id=settlement_id,
        user_id=g.user_id,
        method=data["method"],
        note=data["note"],
    )
    db.session.commit()
    return jsonify({"data": _serialize_payment(payment), "warnings": []}), 200


@settlements_bp.route("/settlements/<settlement_id>", methods=["PUT"])
@require_user
def update_settlement(settlement_id: str):
    """PUT /settlements/:id — Change title, amount and due date."""
    data = UpdateSettlementSchema().load(request.get_json(force=True) or {})
    settlement = settlement_service().update_settlement(settlement_id=settlement_id, **data)
    db.session.commit()
    return jsonify({"data": serialize_settlement(settlement), "warnings": []}), 200


@settlements_bp.route("/events/<event_id>/settlements", methods=["GET"])
@require_user
def list_event_settlements(event_id: str):
    """GET /events/:id/settlements — All settlements attached to the event."""
    settlements = settlement_service().list_event_settlements(event_id)
    return jsonify({
        "data": [serialize_settlement(s) for s in settlements],
        "warnings": [],
    }), 200
