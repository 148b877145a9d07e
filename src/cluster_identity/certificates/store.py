"""Certificate store — append-only mapping from serial number to certificate.

Superseded certificates stay in the store so signatures made under them
can still be verified after renewal.
"""
from __future__ import annotations

import threading

from cryptography import x509

from cluster_identity.exceptions import DuplicateSerialError


def serial_of(certificate: x509.Certificate) -> str:
    """Return the serial number of *certificate* as its string identifier."""
    return str(certificate.serial_number)


class CertificateStore:
    """Thread-safe, insert-only certificate history.

    Writes are serialised by an internal lock; reads are single dict
    lookups and need no lock.
    """

    def __init__(self) -> None:
        self._certificates: dict[str, x509.Certificate] = {}
        self._lock = threading.Lock()

    def put(self, serial: str, certificate: x509.Certificate) -> None:
        """Store *certificate* under *serial*.

        Raises
        ------
        DuplicateSerialError
            If *serial* is already stored.
        """
        with self._lock:
            if serial in self._certificates:
                raise DuplicateSerialError(serial)
            self._certificates[serial] = certificate

    def add(self, certificate: x509.Certificate) -> str:
        """Store *certificate* under its own serial number and return the serial."""
        serial = serial_of(certificate)
        self.put(serial, certificate)
        return serial

    def get(self, serial: str) -> x509.Certificate | None:
        """Return the certificate stored under *serial*, or None."""
        return self._certificates.get(serial)

    def serials(self) -> list[str]:
        """Return a snapshot of every stored serial number."""
        with self._lock:
            return list(self._certificates)

    def __contains__(self, serial: object) -> bool:
        return serial in self._certificates

    def __len__(self) -> int:
        return len(self._certificates)


__all__ = ["CertificateStore", "serial_of"]
