"""
services/practice_service.py — Practice series, sessions, RSVPs and the
monthly fee aggregation.

Fee aggregation (create_settlements):
  For one series and one "YYYY-MM" month, every non-cancelled session dated
  in that month is considered. Each user is charged fee × (number of those
  sessions they answered GO to), as one Settlement targeted at that user
  alone. Users with no GO answer are not charged. A free series (fee == 0)
  produces nothing.

  Aggregation is all-or-nothing from the caller's view: the first store
  error aborts the call and the route does not commit, so no partial set of
  fee settlements is left behind. Running it twice for the same month
  creates a second set; there is no duplicate guard.
"""

from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone

from backend.app.errors import AppError, ErrorCode, not_found
from backend.app.models.enums import PracticeRSVPStatus
from backend.app.models.practice import PracticeRSVP, PracticeSeries, PracticeSession
from backend.app.models.settlement import Settlement
from backend.app.repositories.ports import (
    PracticeRSVPStore,
    PracticeSeriesStore,
    PracticeSessionStore,
)
from backend.app.services.settlement_service import SettlementService

logger = logging.getLogger(__name__)

MONTH_PATTERN = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
DEFAULT_DUE_DAYS = 14


@dataclass
class SeriesDetail:
    series: PracticeSeries
    sessions: list[PracticeSession] = field(default_factory=list)
    my_rsvps: list[PracticeRSVP] = field(default_factory=list)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ── Private helpers ────────────────────────────────────────────────────────

def sessions_in_month(sessions: list[PracticeSession], month: str) -> list[PracticeSession]:
    """Non-cancelled sessions whose date falls in the "YYYY-MM" month."""
    return [
        s for s in sessions
        if not s.cancelled and s.date.strftime("%Y-%m") == month
    ]


def fee_title(series_name: str, month: str, count: int) -> str:
    """e.g. "Tuesday Practice fee (2024-05, 3 sessions)"."""
    noun = "session" if count == 1 else "sessions"
    return f"{series_name} fee ({month}, {count} {noun})"


def _require_month(month: str) -> None:
    if not MONTH_PATTERN.match(month or ""):
        raise AppError(
            ErrorCode.INVALID_MONTH,
            "month must be in YYYY-MM format.",
            400,
            field="month",
        )


# ── Service ────────────────────────────────────────────────────────────────

class PracticeService:

    def __init__(
            self,
            series: PracticeSeriesStore,
            sessions: PracticeSessionStore,
            rsvps: PracticeRSVPStore,
            settlement_service: SettlementService,
            due_days: int = DEFAULT_DUE_DAYS,
    ) -> None:
        self.series = series
        self.sessions = sessions
        self.rsvps = rsvps
        self.settlement_service = settlement_service
        self.due_days = due_days

    # ── Series ─────────────────────────────────────────────────────────────

    def create_series(
            self,
            circle_id: str,
            name: str,
            day_of_week: int,
            start_time: str,
            fee: int,
            created_by: str,
            category_id: str = "",
            location: str = "",
    ) -> PracticeSeries:
        if fee < 0:
            raise AppError(ErrorCode.INVALID_AMOUNT, "fee must be zero or greater.", 400, field="fee")

        series = PracticeSeries(
            circle_id=circle_id,
            category_id=category_id or "",
            name=name,
            day_of_week=day_of_week,
            start_time=start_time,
            location=location or "",
            fee=fee,
            created_by=created_by,
        )
        self.series.create(series)
        return series

    def get_series(self, series_id: str) -> PracticeSeries:
        series = self.series.get_by_id(series_id)
        if series is None:
            raise not_found(ErrorCode.SERIES_NOT_FOUND, "Practice series", series_id)
        return series

    def list_series(self, circle_id: str) -> list[PracticeSeries]:
        return self.series.get_by_circle(circle_id)

    def get_series_detail(self, series_id: str, user_id: str) -> SeriesDetail:
        """The series, its sessions by date, and the caller's own answers."""
        series = self.get_series(series_id)
        return SeriesDetail(
            series=series,
            sessions=self.sessions.get_by_series(series_id),
            my_rsvps=self.rsvps.get_by_series_and_user(series_id, user_id),
        )

    # ── Sessions ───────────────────────────────────────────────────────────

    def create_session(self, series_id: str, session_date: date, note: str = "") -> PracticeSession:
        self.get_series(series_id)
        session = PracticeSession(
            series_id=series_id,
            date=session_date,
            cancelled=False,
            note=note or "",
        )
        self.sessions.create(session)
        return session

    def get_session(self, session_id: str) -> PracticeSession:
        session = self.sessions.get_by_id(session_id)
        if session is None:
            raise not_found(ErrorCode.SESSION_NOT_FOUND, "Practice session", session_id)
        return session

    def update_session(
            self,
            session_id: str,
            cancelled: bool | None = None,
            note: str | None = None,
    ) -> PracticeSession:
        """Partial update; None leaves the field as it is."""
        session = self.get_session(session_id)
        if cancelled is not None:
            session.cancelled = cancelled
        if note is not None:
            session.note = note
        self.sessions.update(session)
        return session

    # ── RSVPs ──────────────────────────────────────────────────────────────

    def submit_rsvp(self, session_id: str, user_id: str, status: PracticeRSVPStatus) -> PracticeRSVP:
        self.get_session(session_id)
        return self.rsvps.upsert(
            PracticeRSVP(
                session_id=session_id,
                user_id=user_id,
                status=status,
                updated_at=_utcnow(),
            )
        )

    def bulk_rsvp(
            self,
            series_id: str,
            user_id: str,
            answers: list[tuple[str, PracticeRSVPStatus]],
    ) -> list[PracticeRSVP]:
        """
        Answers several sessions of one series at once.

        Every session is checked before anything is written, so an unknown
        session (or one from another series) rejects the whole batch.
        """
        self.get_series(series_id)
        for session_id, _ in answers:
            session = self.sessions.get_by_id(session_id)
            if session is None or session.series_id != series_id:
                raise not_found(ErrorCode.SESSION_NOT_FOUND, "Practice session", session_id)

        now = _utcnow()
        return [
            self.rsvps.upsert(
                PracticeRSVP(session_id=session_id, user_id=user_id, status=status, updated_at=now)
            )
            for session_id, status in answers
        ]

    def get_session_rsvps(self, session_id: str) -> list[PracticeRSVP]:
        self.get_session(session_id)
        return self.rsvps.get_by_session(session_id)

    # ── Fee aggregation ────────────────────────────────────────────────────

    def create_settlements(self, series_id: str, month: str) -> list[Settlement]:
        """
        Bills the month's attendance of a series. See the module docstring.

        Raises:
          AppError(INVALID_MONTH, 400)
          AppError(SERIES_NOT_FOUND, 404)
          AppError(STORE_ERROR, 503) — any store failure aborts the run
        """
        _require_month(month)
        series = self.get_series(series_id)

        if series.fee == 0:
            logger.info("Series %s is free; no settlements for %s.", series_id, month)
            return []

        sessions = sessions_in_month(self.sessions.get_by_series(series_id), month)
        if not sessions:
            return []

        attendance: Counter[str] = Counter()
        for session in sessions:
            for rsvp in self.rsvps.get_by_session(session.id):
                if rsvp.status == PracticeRSVPStatus.GO:
                    attendance[rsvp.user_id] += 1

        due_at = _utcnow() + timedelta(days=self.due_days)
        created: list[Settlement] = []
        for user_id, count in attendance.items():
            settlement, _ = self.settlement_service.create_settlement(
                circle_id=series.circle_id,
                event_id="",
                title=fee_title(series.name, month, count),
                amount=series.fee * count,
                due_at=due_at,
                target_user_ids=[user_id],
            )
            created.append(settlement)

        logger.info(
            "Created %d fee settlement(s) for series %s, month %s.",
            len(created), series_id, month,
        )
        return created
