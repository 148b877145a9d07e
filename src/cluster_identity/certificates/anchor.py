"""Self-signed trust anchor.

The anchor is bootstrapped once per process. Its certificate never
rotates; every component certificate is signed with its private key.
"""
from __future__ import annotations

import datetime
import logging
from collections.abc import Callable
from dataclasses import dataclass

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from cluster_identity.certificates.request import build_name
from cluster_identity.config import SecurityConfig
from cluster_identity.exceptions import SigningError
from cluster_identity.keys.generator import KeyPair
from cluster_identity.keys.signatures import get_signature_algorithm

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrustAnchor:
    """Root authority: a key pair and its self-signed CA certificate.

    Parameters
    ----------
    certificate:
        The self-signed root certificate (issuer == subject).
    key_pair:
        The root key pair. Its private key signs every issued certificate.
    """

    certificate: x509.Certificate
    key_pair: KeyPair

    # ------------------------------------------------------------------
    # Factory
    # ------------------------------------------------------------------

    @classmethod
    def bootstrap(
        cls,
        config: SecurityConfig,
        key_pair: KeyPair,
        not_before: datetime.datetime,
        serial_source: Callable[[], int] = x509.random_serial_number,
    ) -> "TrustAnchor":
        """Build and self-sign the root certificate.

        The validity window is ``[not_before, not_before + config.max_duration]``.
        The subject is ``CN=<ca_subject>, OU=<component_id>, O=<cluster_id>``.

        Raises
        ------
        SigningError
            If the configured signature algorithm cannot sign with *key_pair*.
        """
        try:
            algorithm = get_signature_algorithm(config.signature_algorithm)
        except KeyError as exc:
            raise SigningError(str(exc.args[0])) from exc

        name = build_name(config.ca_subject, config.cluster_id, config.component_id)
        builder = (
            x509.CertificateBuilder()
            .subject_name(name)
            .issuer_name(name)
            .public_key(key_pair.public_key)
            .serial_number(serial_source())
            .not_valid_before(not_before)
            .not_valid_after(not_before + config.max_duration)
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(key_pair.public_key),
                critical=False,
            )
        )
        if not algorithm.accepts(key_pair.private_key):
            raise SigningError(
                f"{algorithm.name} cannot sign with a {type(key_pair.private_key).__name__}"
            )
        try:
            certificate = builder.sign(key_pair.private_key, algorithm.certificate_hash())
        except (TypeError, ValueError, UnsupportedAlgorithm) as exc:
            raise SigningError(f"Cannot self-sign root certificate: {exc}") from exc

        logger.info(
            "Bootstrapped trust anchor %s, serial=%s, valid until %s",
            config.ca_subject,
            certificate.serial_number,
            certificate.not_valid_after_utc.isoformat(),
        )
        return cls(certificate=certificate, key_pair=key_pair)

    # ------------------------------------------------------------------
    # Convenience
    # ------------------------------------------------------------------

    @property
    def serial(self) -> str:
        return str(self.certificate.serial_number)

    @property
    def subject(self) -> x509.Name:
        return self.certificate.subject

    def certificate_pem(self) -> bytes:
        """Return PEM-encoded root certificate bytes."""
        return self.certificate.public_bytes(serialization.Encoding.PEM)


__all__ = ["TrustAnchor"]
