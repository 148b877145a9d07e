"""Certificate verification — chain and validity-window checks.

The CertificateVerifier validates a certificate against the trust anchor:
it must have been issued and signed by the anchor, and the current time
must fall inside its validity window.
"""
from __future__ import annotations

import datetime
from collections.abc import Callable
from dataclasses import dataclass, field

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


@dataclass
class VerificationResult:
    """Result of checking one certificate against the trust anchor.

    Parameters
    ----------
    valid:
        True only when both checks passed.
    chain_valid:
        The anchor issued and signed the certificate.
    not_expired:
        The clock falls between notBefore and notAfter.
    errors:
        One message per failed check.
    """

    valid: bool
    chain_valid: bool
    not_expired: bool
    errors: list[str] = field(default_factory=list)


class CertificateVerifier:
    """Verifies certificates against the trust anchor's certificate.

    Parameters
    ----------
    anchor_certificate:
        The trusted root certificate.
    clock:
        Returns the current UTC time.
    """

    def __init__(
        self,
        anchor_certificate: x509.Certificate,
        clock: Callable[[], datetime.datetime] = _utcnow,
    ) -> None:
        self._anchor_certificate = anchor_certificate
        self._clock = clock

    # ------------------------------------------------------------------
    # Public interface
    # ------------------------------------------------------------------

    def verify(self, cert: x509.Certificate) -> VerificationResult:
        """Verify *cert*'s chain signature and validity window."""
        errors: list[str] = []

        chain_valid = self._verify_chain(cert, errors)
        not_expired = self._verify_expiry(cert, errors)

        return VerificationResult(
            valid=chain_valid and not_expired,
            chain_valid=chain_valid,
            not_expired=not_expired,
            errors=errors,
        )

    # ------------------------------------------------------------------
    # Internal checks
    # ------------------------------------------------------------------

    def _verify_chain(self, cert: x509.Certificate, errors: list[str]) -> bool:
        """Check that cert was issued and signed by the anchor."""
        try:
            cert.verify_directly_issued_by(self._anchor_certificate)
            return True
        except InvalidSignature:
            errors.append("Certificate signature is invalid: not signed by trust anchor")
            return False
        except ValueError:
            errors.append("Certificate issuer does not match trust anchor subject")
            return False
        except (TypeError, UnsupportedAlgorithm) as exc:
            errors.append(f"Chain verification error: {exc}")
            return False

    def _verify_expiry(self, cert: x509.Certificate, errors: list[str]) -> bool:
        """Compare the clock against notBefore and notAfter."""
        now = self._clock()
        not_before = cert.not_valid_before_utc
        not_after = cert.not_valid_after_utc

        if now < not_before:
            errors.append(
                f"Certificate is not yet valid (valid from {not_before.isoformat()})"
            )
            return False

        if now > not_after:
            errors.append(f"Certificate expired at {not_after.isoformat()}")
            return False

        return True


__all__ = ["CertificateVerifier", "VerificationResult"]
