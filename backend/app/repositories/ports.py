"""
repositories/ports.py — Persistence contracts consumed by the service layer.

Services depend on these abstract classes only. The SQLAlchemy implementations
live next to this module; unit tests substitute mocks or in-memory fakes.

Contract notes shared by every store:
  - create() assigns the id (and created_at where the entity has one) when the
    caller left it empty, and returns the id.
  - get_*() lookups return None when nothing matches. Turning that into a 404
    is the caller's decision.
  - Persistence failures surface as AppError(STORE_ERROR). Stores guarantee
    per-record atomicity only; there are no multi-record transactions at
    this boundary.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from backend.app.models.event import Event
from backend.app.models.payment import Payment
from backend.app.models.practice import PracticeRSVP, PracticeSeries, PracticeSession
from backend.app.models.rsvp import RSVP
from backend.app.models.settlement import Settlement


class SettlementStore(ABC):

    @abstractmethod
    def create(self, settlement: Settlement) -> str: ...

    @abstractmethod
    def get_by_id(self, settlement_id: str) -> Settlement | None: ...

    @abstractmethod
    def get_by_event(self, event_id: str) -> list[Settlement]: ...

    @abstractmethod
    def update(self, settlement: Settlement) -> None: ...


class PaymentStore(ABC):

    @abstractmethod
    def create(self, payment: Payment) -> str:
        """Raises AppError(PAYMENT_ALREADY_EXISTS) if the pair already has a row."""

    @abstractmethod
    def get_by_settlement_and_user(self, settlement_id: str, user_id: str) -> Payment | None: ...

    @abstractmethod
    def get_by_user(self, user_id: str) -> list[Payment]: ...

    @abstractmethod
    def update(self, payment: Payment) -> None: ...

    @abstractmethod
    def delete_by_settlement_and_user(self, settlement_id: str, user_id: str) -> int:
        """Returns the number of rows removed. Zero is not an error."""


class EventStore(ABC):

    @abstractmethod
    def create(self, event: Event) -> str: ...

    @abstractmethod
    def get_by_id(self, event_id: str) -> Event | None: ...


class RSVPStore(ABC):

    @abstractmethod
    def upsert(self, rsvp: RSVP) -> RSVP:
        """Insert or overwrite the row keyed by (event_id, user_id); returns the stored row."""

    @abstractmethod
    def get_by_event_and_user(self, event_id: str, user_id: str) -> RSVP | None: ...

    @abstractmethod
    def get_by_event(self, event_id: str) -> list[RSVP]: ...


class PracticeSeriesStore(ABC):

    @abstractmethod
    def create(self, series: PracticeSeries) -> str: ...

    @abstractmethod
    def get_by_id(self, series_id: str) -> PracticeSeries | None: ...

    @abstractmethod
    def get_by_circle(self, circle_id: str) -> list[PracticeSeries]: ...


class PracticeSessionStore(ABC):

    @abstractmethod
    def create(self, session: PracticeSession) -> str: ...

    @abstractmethod
    def get_by_id(self, session_id: str) -> PracticeSession | None: ...

    @abstractmethod
    def get_by_series(self, series_id: str) -> list[PracticeSession]:
        """Sessions of the series ordered by date ascending."""

    @abstractmethod
    def update(self, session: PracticeSession) -> None: ...


class PracticeRSVPStore(ABC):

    @abstractmethod
    def upsert(self, rsvp: PracticeRSVP) -> PracticeRSVP:
        """Insert or overwrite the row keyed by (session_id, user_id); returns the stored row."""

    @abstractmethod
    def get_by_session(self, session_id: str) -> list[PracticeRSVP]: ...

    @abstractmethod
    def get_by_series_and_user(self, series_id: str, user_id: str) -> list[PracticeRSVP]: ...
