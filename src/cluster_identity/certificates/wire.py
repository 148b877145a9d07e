"""Pydantic wire representations of certificates and signing requests.

Binary fields (public keys as DER SubjectPublicKeyInfo, signatures) are
raw ``bytes`` in Python and base64 strings in JSON.
"""
from __future__ import annotations

import datetime

from cryptography import x509
from cryptography.hazmat.primitives import serialization
from pydantic import BaseModel, ConfigDict

from cluster_identity.certificates.request import CertificateSigningRequest
from cluster_identity.keys.signatures import signature_algorithm_name


def _public_key_der(public_key) -> bytes:
    return public_key.public_bytes(
        encoding=serialization.Encoding.DER,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )


class SigningRequestRecord(BaseModel):
    """Wire shape of a certificate signing request."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    subject: str
    cluster_id: str
    component_id: str
    digital_signature: bool
    digital_encryption: bool
    public_key: bytes

    @classmethod
    def from_request(cls, request: CertificateSigningRequest) -> "SigningRequestRecord":
        if request.public_key is None:
            raise ValueError("Certificate request has no public key")
        return cls(
            subject=request.subject,
            cluster_id=request.cluster_id,
            component_id=request.component_id,
            digital_signature=request.digital_signature,
            digital_encryption=request.digital_encryption,
            public_key=_public_key_der(request.public_key),
        )

    def to_request(self) -> CertificateSigningRequest:
        """Decode back into a request the approver can sign."""
        return CertificateSigningRequest(
            subject=self.subject,
            cluster_id=self.cluster_id,
            component_id=self.component_id,
            public_key=serialization.load_der_public_key(self.public_key),
            digital_signature=self.digital_signature,
            digital_encryption=self.digital_encryption,
        )


class CertificateRecord(BaseModel):
    """Wire shape of an issued certificate."""

    model_config = ConfigDict(frozen=True, ser_json_bytes="base64", val_json_bytes="base64")

    serial_number: str
    issuer: str
    subject: str
    not_before: datetime.datetime
    not_after: datetime.datetime
    public_key: bytes
    signature_algorithm: str
    signature: bytes

    @classmethod
    def from_certificate(cls, certificate: x509.Certificate) -> "CertificateRecord":
        return cls(
            serial_number=str(certificate.serial_number),
            issuer=certificate.issuer.rfc4514_string(),
            subject=certificate.subject.rfc4514_string(),
            not_before=certificate.not_valid_before_utc,
            not_after=certificate.not_valid_after_utc,
            public_key=_public_key_der(certificate.public_key()),
            signature_algorithm=signature_algorithm_name(certificate.signature_algorithm_oid),
            signature=certificate.signature,
        )


__all__ = ["CertificateRecord", "SigningRequestRecord"]
