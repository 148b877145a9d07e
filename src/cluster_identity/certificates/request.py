"""Certificate signing requests submitted to the approver."""
from __future__ import annotations

from dataclasses import dataclass

from cryptography import x509
from cryptography.x509.oid import NameOID

from cluster_identity.config import SecurityConfig
from cluster_identity.keys.signatures import PublicKey


def build_name(common_name: str, cluster_id: str, component_id: str) -> x509.Name:
    """Return the distinguished name ``CN=<name>, OU=<component>, O=<cluster>``."""
    return x509.Name(
        [
            x509.NameAttribute(NameOID.COMMON_NAME, common_name),
            x509.NameAttribute(NameOID.ORGANIZATIONAL_UNIT_NAME, component_id),
            x509.NameAttribute(NameOID.ORGANIZATION_NAME, cluster_id),
        ]
    )


@dataclass(frozen=True)
class CertificateSigningRequest:
    """Unsigned subject identity plus candidate public key.

    Parameters
    ----------
    subject:
        Common name of the requested certificate.
    cluster_id:
        Cluster the component belongs to.
    component_id:
        Component or group identifier.
    public_key:
        Candidate public key. A request without one cannot be signed.
    digital_signature:
        Request the ``digitalSignature`` key usage.
    digital_encryption:
        Request the ``keyEncipherment`` and ``dataEncipherment`` key usages.
    """

    subject: str
    cluster_id: str
    component_id: str
    public_key: PublicKey | None
    digital_signature: bool = True
    digital_encryption: bool = False

    @classmethod
    def for_component(
        cls,
        config: SecurityConfig,
        public_key: PublicKey,
        digital_signature: bool = True,
        digital_encryption: bool = True,
    ) -> "CertificateSigningRequest":
        """Build a request for the configured component identity."""
        return cls(
            subject=config.subject,
            cluster_id=config.cluster_id,
            component_id=config.component_id,
            public_key=public_key,
            digital_signature=digital_signature,
            digital_encryption=digital_encryption,
        )

    def subject_name(self) -> x509.Name:
        return build_name(self.subject, self.cluster_id, self.component_id)

    def key_usage(self) -> x509.KeyUsage:
        """Translate the requested flags into a KeyUsage extension."""
        return x509.KeyUsage(
            digital_signature=self.digital_signature,
            content_commitment=False,
            key_encipherment=self.digital_encryption,
            data_encipherment=self.digital_encryption,
            key_agreement=False,
            key_cert_sign=False,
            crl_sign=False,
            encipher_only=False,
            decipher_only=False,
        )


__all__ = ["CertificateSigningRequest", "build_name"]
