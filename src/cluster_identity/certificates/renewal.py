"""Certificate renewal scheduling.

RenewalScheduler owns one daemon thread that waits until the current
certificate enters its grace period, runs the renewal callable, and
re-arms against the expiry of the certificate that renewal produced.

State machine::

    IDLE --arm()--> ARMED --deadline--> RENEWING --ok--> ARMED
                                                 \\--error--> IDLE
    any state --cancel()--> CANCELLED

A certificate issued outside the cycle (a manual renewal) is followed
with ``reschedule()``. A fire time already in the past fires immediately.
A failed renewal is not retried: the scheduler goes idle, records the
error and reports it to ``on_failure``; the owner decides whether to
re-arm. A renewal that fails after ``cancel()`` is dropped quietly.
"""
from __future__ import annotations

import datetime
import logging
import threading
import time
from collections.abc import Callable
from enum import Enum

logger = logging.getLogger(__name__)

THREAD_NAME = "CertificateLifetimeMonitor"


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class SchedulerState(str, Enum):
    """Lifecycle state of a :class:`RenewalScheduler`."""

    IDLE = "idle"
    ARMED = "armed"
    RENEWING = "renewing"
    CANCELLED = "cancelled"


class RenewalScheduler:
    """Runs certificate renewal at ``not_after - grace_period``.

    Parameters
    ----------
    renew:
        Runs one renewal and returns the ``not_after`` of the new
        certificate. Any exception aborts the cycle.
    grace_period:
        Lead time before expiry at which renewal fires.
    clock:
        Returns the current UTC time; used to convert fire times to delays.
    on_failure:
        Called with the exception of a failed renewal cycle.
    """

    def __init__(
        self,
        renew: Callable[[], datetime.datetime],
        grace_period: datetime.timedelta,
        clock: Callable[[], datetime.datetime] = _utcnow,
        on_failure: Callable[[BaseException], None] | None = None,
    ) -> None:
        self._renew = renew
        self._grace_period = grace_period
        self._clock = clock
        self._on_failure = on_failure

        self._cond = threading.Condition()
        self._state = SchedulerState.IDLE
        self._fire_at: datetime.datetime | None = None
        self._deadline: float | None = None
        self._thread: threading.Thread | None = None
        self._last_error: BaseException | None = None
        self._renewals = 0
        self._pending_not_after: datetime.datetime | None = None

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> SchedulerState:
        with self._cond:
            return self._state

    @property
    def fire_at(self) -> datetime.datetime | None:
        """Wall-clock time of the armed renewal, or None when not armed."""
        with self._cond:
            return self._fire_at

    @property
    def last_error(self) -> BaseException | None:
        with self._cond:
            return self._last_error

    @property
    def renewals(self) -> int:
        """Number of renewal cycles that completed successfully."""
        with self._cond:
            return self._renewals

    def compute_fire_at(self, not_after: datetime.datetime) -> datetime.datetime:
        return not_after - self._grace_period

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def arm(self, not_after: datetime.datetime) -> datetime.datetime:
        """Schedule renewal for a certificate expiring at *not_after*.

        Returns
        -------
        datetime.datetime
            The wall-clock fire time.

        Raises
        ------
        RuntimeError
            If the scheduler was cancelled or a renewal is in progress.
        """
        with self._cond:
            if self._state is SchedulerState.CANCELLED:
                raise RuntimeError("Renewal scheduler has been cancelled")
            if self._state is SchedulerState.RENEWING:
                raise RuntimeError("Cannot re-arm while a renewal is in progress")
            fire_at = self._arm_locked(not_after)
            if self._thread is None:
                self._thread = threading.Thread(
                    target=self._run, name=THREAD_NAME, daemon=True
                )
                self._thread.start()
            return fire_at

    def reschedule(self, not_after: datetime.datetime) -> datetime.datetime | None:
        """Follow a certificate issued outside the scheduled cycle.

        An armed schedule moves to *not_after* at once. During a renewal
        the later of *not_after* and the renewal's own result is used for
        the next cycle. An idle or cancelled scheduler is left alone.

        Returns
        -------
        datetime.datetime or None
            The new fire time, or None if nothing was re-armed yet.
        """
        with self._cond:
            if self._state is SchedulerState.ARMED:
                return self._arm_locked(not_after)
            if self._state is SchedulerState.RENEWING:
                if self._pending_not_after is None or not_after > self._pending_not_after:
                    self._pending_not_after = not_after
            return None

    def cancel(self) -> None:
        """Cancel any pending renewal and stop the worker thread.

        Idempotent. Waits for an in-flight renewal to finish unless called
        from the worker thread itself.
        """
        with self._cond:
            if self._state is SchedulerState.CANCELLED:
                return
            self._state = SchedulerState.CANCELLED
            self._fire_at = None
            self._deadline = None
            self._cond.notify_all()
            thread = self._thread

        if thread is not None and thread is not threading.current_thread():
            thread.join()
        logger.debug("Renewal scheduler cancelled")

    # ------------------------------------------------------------------
    # Worker
    # ------------------------------------------------------------------

    def _arm_locked(self, not_after: datetime.datetime) -> datetime.datetime:
        fire_at = self.compute_fire_at(not_after)
        delay = max(fire_at - self._clock(), datetime.timedelta(0))
        self._fire_at = fire_at
        self._deadline = time.monotonic() + delay.total_seconds()
        self._state = SchedulerState.ARMED
        self._cond.notify_all()
        logger.info(
            "Certificate renewal scheduled at %s (in %s)", fire_at.isoformat(), delay
        )
        return fire_at

    def _due_locked(self) -> bool:
        return (
            self._state is SchedulerState.ARMED
            and self._deadline is not None
            and time.monotonic() >= self._deadline
        )

    def _wait_timeout_locked(self) -> float | None:
        if self._state is SchedulerState.ARMED and self._deadline is not None:
            return max(self._deadline - time.monotonic(), 0.0)
        return None

    def _run(self) -> None:
        while True:
            with self._cond:
                while self._state is not SchedulerState.CANCELLED and not self._due_locked():
                    self._cond.wait(self._wait_timeout_locked())
                if self._state is SchedulerState.CANCELLED:
                    return
                self._state = SchedulerState.RENEWING
                self._fire_at = None
                self._deadline = None

            try:
                not_after = self._renew()
            except Exception as exc:
                self._handle_failure(exc)
                continue

            with self._cond:
                self._renewals += 1
                if self._state is SchedulerState.CANCELLED:
                    return
                if self._pending_not_after is not None:
                    not_after = max(not_after, self._pending_not_after)
                    self._pending_not_after = None
                self._arm_locked(not_after)

    def _handle_failure(self, exc: Exception) -> None:
        with self._cond:
            self._pending_not_after = None
            cancelled = self._state is SchedulerState.CANCELLED
            if not cancelled:
                self._last_error = exc
                self._state = SchedulerState.IDLE
        if cancelled:
            logger.debug("Renewal abandoned during shutdown: %s", exc)
            return
        logger.error(
            "Certificate renewal failed; scheduler idle until re-armed: %s",
            exc,
            exc_info=exc,
        )
        if self._on_failure is not None:
            try:
                self._on_failure(exc)
            except Exception:
                logger.exception("Renewal failure handler raised")


__all__ = ["RenewalScheduler", "SchedulerState", "THREAD_NAME"]
