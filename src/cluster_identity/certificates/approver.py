"""Approver — signs certificate requests with the trust anchor's key.

Given the same request, anchor material, validity window and serial
number, the approver produces the same certificate body; the serial is
drawn from an injectable source so issuance can be made reproducible.
"""
from __future__ import annotations

import datetime
import logging
from collections.abc import Callable

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm

from cluster_identity.certificates.request import CertificateSigningRequest
from cluster_identity.config import SecurityConfig
from cluster_identity.exceptions import SigningError
from cluster_identity.keys.signatures import PrivateKey, get_signature_algorithm

logger = logging.getLogger(__name__)


class Approver:
    """Issues component certificates signed by the trust anchor.

    Parameters
    ----------
    config:
        Supplies the signature algorithm.
    serial_source:
        Callable returning a new positive serial number for each issuance.
    """

    def __init__(
        self,
        config: SecurityConfig,
        serial_source: Callable[[], int] = x509.random_serial_number,
    ) -> None:
        self._signature_algorithm = config.signature_algorithm
        self._serial_source = serial_source

    def sign(
        self,
        request: CertificateSigningRequest,
        ca_private_key: PrivateKey,
        ca_certificate: x509.Certificate,
        not_before: datetime.datetime,
        not_after: datetime.datetime,
    ) -> x509.Certificate:
        """Sign *request* and return the issued certificate.

        Parameters
        ----------
        request:
            The request to approve.
        ca_private_key:
            The anchor's private key.
        ca_certificate:
            The anchor's certificate; its subject becomes the issuer.
        not_before:
            Start of the validity window.
        not_after:
            End of the validity window.

        Raises
        ------
        SigningError
            If the request is malformed or the anchor key cannot sign.
        """
        if request.public_key is None:
            raise SigningError("Certificate request has no public key")
        if not request.subject:
            raise SigningError("Certificate request has an empty subject")
        if not_after <= not_before:
            raise SigningError(
                f"Invalid validity window: not_after ({not_after.isoformat()}) "
                f"is not after not_before ({not_before.isoformat()})"
            )

        try:
            algorithm = get_signature_algorithm(self._signature_algorithm)
        except KeyError as exc:
            raise SigningError(str(exc.args[0])) from exc
        if not algorithm.accepts(ca_private_key):
            raise SigningError(
                f"{algorithm.name} cannot sign with a {type(ca_private_key).__name__}"
            )

        try:
            builder = (
                x509.CertificateBuilder()
                .subject_name(request.subject_name())
                .issuer_name(ca_certificate.subject)
                .public_key(request.public_key)
                .serial_number(self._serial_source())
                .not_valid_before(not_before)
                .not_valid_after(not_after)
                .add_extension(
                    x509.BasicConstraints(ca=False, path_length=None),
                    critical=True,
                )
                .add_extension(request.key_usage(), critical=True)
                .add_extension(
                    x509.SubjectKeyIdentifier.from_public_key(request.public_key),
                    critical=False,
                )
                .add_extension(
                    x509.AuthorityKeyIdentifier.from_issuer_public_key(
                        ca_certificate.public_key()
                    ),
                    critical=False,
                )
            )
            certificate = builder.sign(ca_private_key, algorithm.certificate_hash())
        except (TypeError, ValueError, UnsupportedAlgorithm) as exc:
            raise SigningError(f"Cannot sign certificate request: {exc}") from exc

        logger.debug(
            "Issued certificate for %s, serial=%s", request.subject, certificate.serial_number
        )
        return certificate


__all__ = ["Approver"]
