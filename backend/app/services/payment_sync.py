"""
services/payment_sync.py — Keeps payment rows in step with event RSVPs.

RsvpPaymentSynchronizer holds the rule:
  - attending (GO / LATE / EARLY): every settlement of the event gets an
    UNPAID payment row for the user if it does not have one yet;
  - NO: the user's payment row is removed from every settlement of the event.
Re-running with the same status is harmless: existing rows are not
duplicated and deleting a missing row is a no-op.

PaymentSyncDispatcher runs the synchronizer after the RSVP has been
committed, on a bounded thread pool. The RSVP request never waits for it and
never sees its failures; they are logged from a done-callback. Eager mode runs
the job inline and is used by the test configuration.
"""

from __future__ import annotations

import functools
import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable

from backend.app.models.enums import RSVPStatus
from backend.app.services.settlement_service import PaymentOutcome, SettlementService

logger = logging.getLogger(__name__)

SyncJob = Callable[[str, str, RSVPStatus], list[PaymentOutcome]]


class RsvpPaymentSynchronizer:

    def __init__(self, settlement_service: SettlementService, keep_reported: bool = False) -> None:
        self.settlement_service = settlement_service
        self.keep_reported = keep_reported

    def synchronize(self, event_id: str, user_id: str, status: RSVPStatus) -> list[PaymentOutcome]:
        """
        Applies the RSVP rule to every settlement of the event.

        Failing to list the event's settlements raises (nothing can be done);
        per-settlement failures are returned as outcomes.
        """
        settlements = self.settlement_service.list_event_settlements(event_id)

        if status.is_attending:
            outcomes = [
                self.settlement_service.ensure_payment(s.id, user_id)
                for s in settlements
            ]
        else:
            outcomes = [
                self.settlement_service.retract_payment(
                    s.id, user_id, keep_reported=self.keep_reported,
                )
                for s in settlements
            ]

        logger.debug(
            "Payment sync event=%s user=%s status=%s: %s",
            event_id, user_id, status.value,
            [(o.settlement_id, o.action) for o in outcomes],
        )
        return outcomes


class PaymentSyncDispatcher:
    """Submits sync jobs to a bounded worker pool and logs how they ended."""

    def __init__(self, job: SyncJob, max_workers: int = 4, eager: bool = False) -> None:
        self._job = job
        self._eager = eager
        self._executor: ThreadPoolExecutor | None = None
        if not eager:
            self._executor = ThreadPoolExecutor(
                max_workers=max_workers,
                thread_name_prefix="payment-sync",
            )

    def dispatch(self, event_id: str, user_id: str, status: RSVPStatus) -> Future:
        """
        Schedules one sync job and returns its Future.

        Never raises: a pool that is already shut down produces a failed
        Future, which is logged like any other job failure.
        """
        if self._eager:
            future: Future = Future()
            try:
                future.set_result(self._job(event_id, user_id, status))
            except Exception as exc:
                future.set_exception(exc)
        else:
            try:
                future = self._executor.submit(self._job, event_id, user_id, status)
            except RuntimeError as exc:
                future = Future()
                future.set_exception(exc)

        future.add_done_callback(
            functools.partial(self._report, event_id, user_id, status)
        )
        return future

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)

    @staticmethod
    def _report(event_id: str, user_id: str, status: RSVPStatus, future: Future) -> None:
        exc = future.exception()
        if exc is not None:
            logger.error(
                "Payment sync failed for event %s, user %s (%s): %s",
                event_id, user_id, status.value, exc,
                exc_info=(type(exc), exc, exc.__traceback__),
            )
            return

        outcomes = future.result()
        failed = [o for o in outcomes if not o.ok]
        if failed:
            logger.warning(
                "Payment sync for event %s, user %s finished with %d failed item(s).",
                event_id, user_id, len(failed),
            )
        else:
            logger.info(
                "Payment sync for event %s, user %s (%s) touched %d settlement(s).",
                event_id, user_id, status.value, len(outcomes),
            )
