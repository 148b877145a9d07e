"""Renewal notifications.

Receivers learn only the old and new serial numbers; they pull any key
material they need from the client afterwards.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

logger = logging.getLogger(__name__)


@runtime_checkable
class CertificateNotification(Protocol):
    """Receiver of certificate renewal events."""

    def notify_certificate_renewed(self, old_serial: str, new_serial: str) -> None:
        ...


@dataclass(frozen=True)
class DeliveryFailure:
    """A receiver that raised while handling a renewal event."""

    receiver: CertificateNotification
    error: Exception


class NotificationRegistry:
    """Thread-safe set of renewal receivers.

    Registration of an already-registered receiver is a no-op. Fan-out
    iterates over a snapshot, so receivers may register (or trigger a
    fan-out) from inside a callback.
    """

    def __init__(self) -> None:
        self._receivers: set[CertificateNotification] = set()
        self._lock = threading.Lock()

    def register(self, receiver: CertificateNotification) -> None:
        if not isinstance(receiver, CertificateNotification):
            raise TypeError(
                f"{type(receiver).__name__} does not implement notify_certificate_renewed()"
            )
        with self._lock:
            self._receivers.add(receiver)

    def unregister(self, receiver: CertificateNotification) -> None:
        with self._lock:
            self._receivers.discard(receiver)

    def receivers(self) -> frozenset[CertificateNotification]:
        with self._lock:
            return frozenset(self._receivers)

    def fan_out(self, old_serial: str, new_serial: str) -> list[DeliveryFailure]:
        """Deliver a renewal event to every registered receiver.

        A receiver that raises is logged and skipped; delivery continues.

        Returns
        -------
        list[DeliveryFailure]
            One entry per receiver that raised.
        """
        failures: list[DeliveryFailure] = []
        for receiver in self.receivers():
            try:
                receiver.notify_certificate_renewed(old_serial, new_serial)
            except Exception as exc:
                logger.exception(
                    "Notification receiver %r failed for renewal %s -> %s",
                    receiver,
                    old_serial,
                    new_serial,
                )
                failures.append(DeliveryFailure(receiver=receiver, error=exc))
        return failures

    def __len__(self) -> int:
        with self._lock:
            return len(self._receivers)


__all__ = ["CertificateNotification", "DeliveryFailure", "NotificationRegistry"]
