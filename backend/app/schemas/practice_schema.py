"""
schemas/practice_schema.py — Marshmallow schemas for practice series,
sessions, practice RSVPs and the monthly fee run.

Validation responsibility:
  - This file: field types, dayOfWeek 0..6 (0 = Sunday), startTime "HH:MM",
    fee >= 0, month "YYYY-MM".
  - services/practice_service.py:
      - SERIES_NOT_FOUND / SESSION_NOT_FOUND (404) — require store lookups
      - session belongs to the series in bulk RSVPs

Inherits from marshmallow.Schema directly; no app context is needed.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.errors import ErrorCode
from backend.app.models.enums import PracticeRSVPStatus
from backend.app.services.practice_service import MONTH_PATTERN


def _status_field() -> fields.Enum:
    return fields.Enum(
        PracticeRSVPStatus,
        required=True,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_FIELD},
    )


class CreateSeriesSchema(Schema):
    """POST /practice-series"""

    circle_id = fields.String(required=True, data_key="circleId", validate=validate.Length(min=1))
    category_id = fields.String(load_default="", data_key="categoryId")
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    day_of_week = fields.Integer(
        required=True,
        strict=True,
        data_key="dayOfWeek",
        validate=validate.Range(min=0, max=6),
    )
    start_time = fields.String(
        required=True,
        data_key="startTime",
        validate=validate.Regexp(
            r"^([01]\d|2[0-3]):[0-5]\d$",
            error="startTime must be in HH:MM format.",
        ),
    )
    location = fields.String(load_default="")
    fee = fields.Integer(
        required=True,
        strict=True,
        validate=validate.Range(min=0, error=ErrorCode.INVALID_AMOUNT),
    )


class CreateSessionSchema(Schema):
    """POST /practice-series/:id/sessions"""

    date = fields.Date(required=True)
    note = fields.String(load_default="")


class UpdateSessionSchema(Schema):
    """PATCH /practice-sessions/:id — absent fields are left unchanged."""

    cancelled = fields.Boolean(load_default=None)
    note = fields.String(load_default=None)


class PracticeRSVPSchema(Schema):
    """POST /practice-sessions/:id/rsvp"""

    status = _status_field()


class BulkRSVPItemSchema(Schema):
    session_id = fields.String(required=True, data_key="sessionId", validate=validate.Length(min=1))
    status = _status_field()


class BulkRSVPSchema(Schema):
    """POST /practice-series/:id/bulk-rsvp"""

    rsvps = fields.List(
        fields.Nested(BulkRSVPItemSchema),
        required=True,
        validate=validate.Length(min=1),
    )


class CreateFeeSettlementsSchema(Schema):
    """POST /practice-series/:id/settlements"""

    month = fields.String(
        required=True,
        validate=validate.Regexp(MONTH_PATTERN, error=ErrorCode.INVALID_MONTH),
    )
