"""
repositories/practice.py — SQLAlchemy stores for practice series, sessions
and session-level RSVPs.
"""

from __future__ import annotations

from sqlalchemy import select

from backend.app.models.practice import PracticeRSVP, PracticeSeries, PracticeSession
from backend.app.repositories.base import SqlAlchemyStore, new_id, translate_store_errors, utcnow
from backend.app.repositories.ports import (
    PracticeRSVPStore,
    PracticeSeriesStore,
    PracticeSessionStore,
)


class PracticeSeriesRepository(SqlAlchemyStore, PracticeSeriesStore):

    def create(self, series: PracticeSeries) -> str:
        series.id = series.id or new_id()
        if series.created_at is None:
            series.created_at = utcnow()
        self._add(series, "practice series create")
        return series.id

    def get_by_id(self, series_id: str) -> PracticeSeries | None:
        with translate_store_errors("practice series lookup"):
            return self.session.get(PracticeSeries, series_id)

    def get_by_circle(self, circle_id: str) -> list[PracticeSeries]:
        stmt = (
            select(PracticeSeries)
            .where(PracticeSeries.circle_id == circle_id)
            .order_by(PracticeSeries.created_at.asc())
        )
        with translate_store_errors("practice series lookup by circle"):
            return list(self.session.execute(stmt).scalars().all())


class PracticeSessionRepository(SqlAlchemyStore, PracticeSessionStore):

    def create(self, session: PracticeSession) -> str:
        session.id = session.id or new_id()
        if session.created_at is None:
            session.created_at = utcnow()
        self._add(session, "practice session create")
        return session.id

    def get_by_id(self, session_id: str) -> PracticeSession | None:
        with translate_store_errors("practice session lookup"):
            return self.session.get(PracticeSession, session_id)

    def get_by_series(self, series_id: str) -> list[PracticeSession]:
        stmt = (
            select(PracticeSession)
            .where(PracticeSession.series_id == series_id)
            .order_by(PracticeSession.date.asc(), PracticeSession.created_at.asc())
        )
        with translate_store_errors("practice session lookup by series"):
            return list(self.session.execute(stmt).scalars().all())

    def update(self, session: PracticeSession) -> None:
        self._add(session, "practice session update")


class PracticeRSVPRepository(SqlAlchemyStore, PracticeRSVPStore):

    def upsert(self, rsvp: PracticeRSVP) -> PracticeRSVP:
        stmt = select(PracticeRSVP).where(
            PracticeRSVP.session_id == rsvp.session_id,
            PracticeRSVP.user_id == rsvp.user_id,
        )
        with translate_store_errors("practice rsvp lookup"):
            existing = self.session.execute(stmt).scalars().first()

        if existing is None:
            rsvp.id = rsvp.id or new_id()
            self._add(rsvp, "practice rsvp insert")
            return rsvp

        existing.status = rsvp.status
        existing.updated_at = rsvp.updated_at
        self._add(existing, "practice rsvp update")
        return existing

    def get_by_session(self, session_id: str) -> list[PracticeRSVP]:
        stmt = (
            select(PracticeRSVP)
            .where(PracticeRSVP.session_id == session_id)
            .order_by(PracticeRSVP.updated_at.asc())
        )
        with translate_store_errors("practice rsvp lookup by session"):
            return list(self.session.execute(stmt).scalars().all())

    def get_by_series_and_user(self, series_id: str, user_id: str) -> list[PracticeRSVP]:
        stmt = (
            select(PracticeRSVP)
            .join(PracticeSession, PracticeSession.id == PracticeRSVP.session_id)
            .where(
                PracticeSession.series_id == series_id,
                PracticeRSVP.user_id == user_id,
            )
            .order_by(PracticeSession.date.asc())
        )
        with translate_store_errors("practice rsvp lookup by series"):
            return list(self.session.execute(stmt).scalars().all())
