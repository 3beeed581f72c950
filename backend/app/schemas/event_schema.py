"""
schemas/event_schema.py — Marshmallow schemas for events and event RSVPs.

Inherits from marshmallow.Schema directly; no app context is needed.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from backend.app.errors import ErrorCode
from backend.app.models.enums import RSVPStatus


class CreateEventSchema(Schema):
    """
    POST /events

    An empty rsvpTargetUserIds means anyone may answer.
    """

    circle_id = fields.String(required=True, data_key="circleId", validate=validate.Length(min=1))
    title = fields.String(required=True, validate=validate.Length(min=1, max=255))
    start_at = fields.DateTime(required=True, data_key="startAt")
    location = fields.String(load_default="")
    rsvp_target_user_ids = fields.List(
        fields.String(validate=validate.Length(min=1)),
        load_default=list,
        data_key="rsvpTargetUserIds",
    )


class SubmitRSVPSchema(Schema):
    """POST /events/:id/rsvp — status is one of GO, NO, LATE, EARLY."""

    status = fields.Enum(
        RSVPStatus,
        required=True,
        by_value=True,
        error_messages={"unknown": ErrorCode.INVALID_FIELD},
    )
    note = fields.String(load_default="", validate=validate.Length(max=500))
