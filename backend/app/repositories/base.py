"""
repositories/base.py — Shared plumbing for the SQLAlchemy-backed stores.

Every store wraps a SQLAlchemy Session (db.session in requests, a fresh
app-context session in background jobs). Stores only flush; committing is the
route's (or the background job's) responsibility.
"""

from __future__ import annotations

import contextlib
import logging
import uuid
from datetime import datetime, timezone
from typing import Iterator

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from backend.app.errors import AppError, ErrorCode

logger = logging.getLogger(__name__)


def new_id() -> str:
    """Opaque document-style identifier."""
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextlib.contextmanager
def translate_store_errors(
        operation: str,
        conflict_code: str | None = None,
) -> Iterator[None]:
    """
    Converts SQLAlchemy failures raised inside the block into AppError.

    IntegrityError becomes a 409 with `conflict_code` when one is given
    (unique-constraint violations the caller can reason about); everything
    else becomes STORE_ERROR (503).
    """
    try:
        yield
    except IntegrityError as exc:
        if conflict_code is None:
            logger.error("Integrity error during %s: %s", operation, exc)
            raise AppError(
                ErrorCode.STORE_ERROR,
                f"Storage rejected {operation}.",
                503,
            ) from exc
        raise AppError(
            conflict_code,
            f"A conflicting record already exists ({operation}).",
            409,
        ) from exc
    except SQLAlchemyError as exc:
        logger.error("Store failure during %s: %s", operation, exc)
        raise AppError(
            ErrorCode.STORE_ERROR,
            f"Storage is unavailable ({operation}).",
            503,
        ) from exc


class SqlAlchemyStore:
    """Base class holding the session handle."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _add(self, entity, operation: str, conflict_code: str | None = None) -> None:
        with translate_store_errors(operation, conflict_code):
            self.session.add(entity)
            self.session.flush()

    def _add_isolated(self, entity, operation: str, conflict_code: str | None = None) -> None:
        """
        Like _add, but inside a SAVEPOINT. A rejected row is rolled back on
        its own and the surrounding transaction (e.g. the settlement that was
        just inserted) stays usable.
        """
        with self._isolated(operation, conflict_code):
            self.session.add(entity)

    @contextlib.contextmanager
    def _isolated(self, operation: str, conflict_code: str | None = None) -> Iterator[None]:
        """
        Runs the block inside a SAVEPOINT and translates its failures.

        On PostgreSQL a failed statement aborts the whole transaction. Rolling
        back to the savepoint keeps the session usable for the next statement.
        """
        with translate_store_errors(operation, conflict_code):
            with self.session.begin_nested():
                yield
