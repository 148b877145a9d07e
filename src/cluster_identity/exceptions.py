"""Error taxonomy for certificate lifecycle operations.

Every cryptographic failure surfaced by this package is a
:class:`CertificateError` carrying an :class:`ErrorCode`, so callers can
branch on the failure kind without string matching. Lookups of unknown
serial numbers are not errors; they return ``None``.
"""
from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Machine-readable failure kinds."""

    KEY_GENERATION_ERROR = "key_generation_error"
    CERTIFICATE_SIGNING_ERROR = "certificate_signing_error"
    CRYPTO_SIGNATURE_VERIFICATION_ERROR = "crypto_signature_verification_error"
    CRYPTO_SIGN_ERROR = "crypto_sign_error"
    DUPLICATE_SERIAL = "duplicate_serial"
    RESOURCE_RELEASE_ERROR = "resource_release_error"
    CLIENT_CLOSED = "client_closed"


class CertificateError(Exception):
    """Base class for all certificate lifecycle errors.

    Parameters
    ----------
    message:
        Human-readable description.
    code:
        The failure kind.
    """

    default_code: ErrorCode = ErrorCode.CERTIFICATE_SIGNING_ERROR

    def __init__(self, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code


class KeyGenerationError(CertificateError):
    """Raised when the configured key algorithm or provider is unavailable."""

    default_code = ErrorCode.KEY_GENERATION_ERROR


class SigningError(CertificateError):
    """Raised when the trust anchor cannot issue a requested certificate."""

    default_code = ErrorCode.CERTIFICATE_SIGNING_ERROR


class VerificationError(CertificateError):
    """Raised when a signature check could not be evaluated at all.

    A signature that was evaluated and found invalid is reported as
    ``False``, never as this error.
    """

    default_code = ErrorCode.CRYPTO_SIGNATURE_VERIFICATION_ERROR


class DuplicateSerialError(ValueError):
    """Raised when a serial number is stored twice."""

    def __init__(self, serial: str) -> None:
        super().__init__(
            f"Certificate serial {serial!r} is already stored. "
            "Stored certificates are never replaced."
        )
        self.serial = serial
        self.code = ErrorCode.DUPLICATE_SERIAL


class ClientClosedError(CertificateError):
    """Raised when renewal is requested from a closed client."""

    default_code = ErrorCode.CLIENT_CLOSED


class ResourceReleaseError(CertificateError):
    """Aggregates every failure raised while releasing downstream resources.

    Parameters
    ----------
    errors:
        The individual exceptions, in release order.
    """

    default_code = ErrorCode.RESOURCE_RELEASE_ERROR

    def __init__(self, errors: list[BaseException]) -> None:
        summary = "; ".join(f"{type(e).__name__}: {e}" for e in errors)
        super().__init__(
            f"{len(errors)} resource(s) failed to release: {summary}"
        )
        self.errors = list(errors)


__all__ = [
    "CertificateError",
    "ClientClosedError",
    "DuplicateSerialError",
    "ErrorCode",
    "KeyGenerationError",
    "ResourceReleaseError",
    "SigningError",
    "VerificationError",
]
