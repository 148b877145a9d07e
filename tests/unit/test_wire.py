"""Tests for cluster_identity.certificates.wire — wire representations."""
from __future__ import annotations

import base64
import datetime
import json

import pytest
from cryptography.hazmat.primitives import serialization

from cluster_identity.certificates.anchor import TrustAnchor
from cluster_identity.certificates.request import CertificateSigningRequest
from cluster_identity.certificates.wire import CertificateRecord, SigningRequestRecord
from cluster_identity.config import SecurityConfig
from cluster_identity.keys.generator import KeyGenerator, KeyPair

NOW = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)


@pytest.fixture(scope="module")
def config() -> SecurityConfig:
    return SecurityConfig(key_algorithm="EC", key_size=256, signature_algorithm="SHA256withECDSA")


@pytest.fixture(scope="module")
def key_pair(config: SecurityConfig) -> KeyPair:
    return KeyGenerator(config).generate()


class TestSigningRequestRecord:
    def test_fields_copied_from_request(self, config, key_pair) -> None:
        request = CertificateSigningRequest.for_component(config, key_pair.public_key)
        record = SigningRequestRecord.from_request(request)
        assert record.subject == "localhost"
        assert record.cluster_id == "cluster1"
        assert record.component_id == "scm1"
        assert record.digital_signature is True
        assert record.digital_encryption is True

    def test_public_key_is_der(self, config, key_pair) -> None:
        record = SigningRequestRecord.from_request(
            CertificateSigningRequest.for_component(config, key_pair.public_key)
        )
        assert serialization.load_der_public_key(record.public_key) == key_pair.public_key

    def test_decodes_back_into_signable_request(self, config, key_pair) -> None:
        request = CertificateSigningRequest.for_component(config, key_pair.public_key)
        decoded = SigningRequestRecord.from_request(request).to_request()
        assert decoded.subject_name() == request.subject_name()
        assert decoded.public_key == key_pair.public_key

    def test_json_encodes_key_as_base64(self, config, key_pair) -> None:
        record = SigningRequestRecord.from_request(
            CertificateSigningRequest.for_component(config, key_pair.public_key)
        )
        payload = json.loads(record.model_dump_json())
        assert base64.b64decode(payload["public_key"]) == record.public_key
        assert SigningRequestRecord.model_validate_json(record.model_dump_json()) == record

    def test_request_without_key_rejected(self) -> None:
        request = CertificateSigningRequest(
            subject="x", cluster_id="c", component_id="s", public_key=None
        )
        with pytest.raises(ValueError, match="public key"):
            SigningRequestRecord.from_request(request)


class TestCertificateRecord:
    def test_fields_copied_from_certificate(self, config, key_pair) -> None:
        cert = TrustAnchor.bootstrap(config, key_pair, NOW).certificate
        record = CertificateRecord.from_certificate(cert)
        assert record.serial_number == str(cert.serial_number)
        assert record.issuer == cert.issuer.rfc4514_string()
        assert record.subject == cert.subject.rfc4514_string()
        assert record.not_before == NOW
        assert record.signature_algorithm == "SHA256withECDSA"
        assert record.signature == cert.signature
