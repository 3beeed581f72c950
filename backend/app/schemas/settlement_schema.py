"""
schemas/settlement_schema.py — Marshmallow schemas for settlement endpoints.

Validation responsibility:
  - This file: field types, required fields, wire names (camelCase),
    amount >= 0 (INVALID_AMOUNT), non-empty target list (EMPTY_TARGET_USERS),
    payment method enum.
  - services/settlement_service.py:
      - SETTLEMENT_NOT_FOUND (404) — requires a store lookup
      - PAYMENT_NOT_FOUND    (404) — requires a store lookup
      - The same amount / target guards again, for callers that bypass HTTP
        (the practice fee aggregator).

Inherits from marshmallow.Schema directly; no app context is needed.
           See extensions.py for the full explanation.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate

from backend.app.errors import ErrorCode
from backend.app.models.enums import PaymentMethod


def _validate_non_empty_after_trim(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


# Money is an integer in the smallest currency unit (e.g. yen).
def _amount_field() -> fields.Integer:
    return fields.Integer(
        required=True,
        strict=True,   # reject 1.0 and "1"
        validate=validate.Range(min=0, error=ErrorCode.INVALID_AMOUNT),
    )


class CreateSettlementSchema(Schema):
    """
    POST /settlements

    eventId is optional; practice fee settlements and ad-hoc collections are
    not tied to an event. Duplicate targetUserIds are accepted here and
    collapsed by the service.
    """

    circle_id = fields.String(required=True, data_key="circleId", validate=validate.Length(min=1))
    event_id = fields.String(load_default="", data_key="eventId")
    title = fields.String(
        required=True,
        validate=[validate.Length(min=1, max=255), _validate_non_empty_after_trim],
    )
    amount = _amount_field()
    due_at = fields.DateTime(required=True, data_key="dueAt")
    target_user_ids = fields.List(
        fields.String(validate=validate.Length(min=1)),
        required=True,
        data_key="targetUserIds",
        validate=validate.Length(min=1, error=ErrorCode.EMPTY_TARGET_USERS),
    )
    bank_info = fields.String(load_default="", data_key="bankInfo")
    paypay_info = fields.String(load_default="", data_key="paypayInfo")


class UpdateSettlementSchema(Schema):
    """
    PUT /settlements/:id

    Only title, amount and dueAt can change. Anything else in the body is
    rejected as an unknown field rather than silently ignored.
    """

    title = fields.String(
        required=True,
        validate=[validate.Length(min=1, max=255), _validate_non_empty_after_trim],
    )
    amount = _amount_field()
    due_at = fields.DateTime(required=True, data_key="dueAt")


class ReportPaymentSchema(Schema):
    """POST /settlements/:id/report"""

    method = fields.Enum(
        PaymentMethod,
        required=True,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_FIELD},
    )
    note = fields.String(load_default="", validate=validate.Length(max=500))
