"""Initial schema — all tables, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-19

Creates the settlement, payment, event, RSVP and practice tables.

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Notes:
  - Primary keys are string UUIDs assigned by the application.
  - Enumerations are stored as VARCHAR (models use native_enum=False), so
    no database enum types are created and the schema runs unchanged on
    PostgreSQL and SQLite.
  - There are no foreign keys: payments, RSVPs and sessions reference their
    parents by id only, and orphan payment rows are tolerated by the
    "my settlements" read.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration, no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def upgrade() -> None:

    # ── settlements ────────────────────────────────────────────────────────
    op.create_table(
        "settlements",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("circle_id", sa.String(64), nullable=False),
        sa.Column("event_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("amount", sa.Integer(), nullable=False),
        sa.Column("due_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("target_user_ids", sa.JSON(), nullable=False),
        sa.Column("bank_info", sa.Text(), nullable=False, server_default=""),
        sa.Column("paypay_info", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_settlements"),
    )
    op.create_index("ix_settlements_circle_id", "settlements", ["circle_id"])
    op.create_index("ix_settlements_event_id", "settlements", ["event_id"])

    # ── payments ───────────────────────────────────────────────────────────
    op.create_table(
        "payments",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("settlement_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="UNPAID"),
        sa.Column("method", sa.String(20), nullable=True),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column("reported_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_payments"),
        sa.UniqueConstraint("settlement_id", "user_id", name="uq_payments_settlement_user"),
    )
    op.create_index("ix_payments_settlement_id", "payments", ["settlement_id"])
    op.create_index("ix_payments_user_id", "payments", ["user_id"])

    # ── events ─────────────────────────────────────────────────────────────
    op.create_table(
        "events",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("circle_id", sa.String(64), nullable=False),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("start_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("location", sa.String(255), nullable=False, server_default=""),
        sa.Column("rsvp_target_user_ids", sa.JSON(), nullable=False),
        sa.Column("created_by", sa.String(64), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_events"),
    )
    op.create_index("ix_events_circle_id", "events", ["circle_id"])

    # ── rsvps ──────────────────────────────────────────────────────────────
    op.create_table(
        "rsvps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("event_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_rsvps"),
        sa.UniqueConstraint("event_id", "user_id", name="uq_rsvps_event_user"),
    )
    op.create_index("ix_rsvps_event_id", "rsvps", ["event_id"])

    # ── practice_series ────────────────────────────────────────────────────
    op.create_table(
        "practice_series",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("circle_id", sa.String(64), nullable=False),
        sa.Column("category_id", sa.String(64), nullable=False, server_default=""),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False, server_default=""),
        sa.Column("location", sa.String(255), nullable=False, server_default=""),
        sa.Column("fee", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.String(64), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_practice_series"),
        sa.CheckConstraint("fee >= 0", name="ck_practice_series_fee_non_negative"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_practice_series_day_of_week"),
    )
    op.create_index("ix_practice_series_circle_id", "practice_series", ["circle_id"])

    # ── practice_sessions ──────────────────────────────────────────────────
    op.create_table(
        "practice_sessions",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("series_id", sa.String(36), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("cancelled", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("note", sa.Text(), nullable=False, server_default=""),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.PrimaryKeyConstraint("id", name="pk_practice_sessions"),
    )
    op.create_index("ix_practice_sessions_series_id", "practice_sessions", ["series_id"])

    # ── practice_rsvps ─────────────────────────────────────────────────────
    op.create_table(
        "practice_rsvps",
        sa.Column("id", sa.String(36), nullable=False),
        sa.Column("session_id", sa.String(36), nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("status", sa.String(10), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_practice_rsvps"),
        sa.UniqueConstraint("session_id", "user_id", name="uq_practice_rsvps_session_user"),
    )
    op.create_index("ix_practice_rsvps_session_id", "practice_rsvps", ["session_id"])
    op.create_index("ix_practice_rsvps_user_id", "practice_rsvps", ["user_id"])


def downgrade() -> None:
    """Drop everything in reverse creation order."""
    op.drop_table("practice_rsvps")
    op.drop_table("practice_sessions")
    op.drop_table("practice_series")
    op.drop_table("rsvps")
    op.drop_table("events")
    op.drop_table("payments")
    op.drop_table("settlements")
