"""Tests for cluster_identity.certificates.verifier — CertificateVerifier."""
from __future__ import annotations

import datetime

import pytest

from cluster_identity.certificates.anchor import TrustAnchor
from cluster_identity.certificates.approver import Approver
from cluster_identity.certificates.request import CertificateSigningRequest
from cluster_identity.certificates.verifier import CertificateVerifier, VerificationResult
from cluster_identity.config import SecurityConfig
from cluster_identity.keys.generator import KeyGenerator

NOW = datetime.datetime(2026, 1, 1, tzinfo=datetime.timezone.utc)


@pytest.fixture(scope="module")
def config() -> SecurityConfig:
    return SecurityConfig(
        key_algorithm="EC",
        key_size=256,
        signature_algorithm="SHA256withECDSA",
        default_duration="P30D",
        renewal_grace_period="P7D",
    )


@pytest.fixture(scope="module")
def anchor(config: SecurityConfig) -> TrustAnchor:
    return TrustAnchor.bootstrap(config, KeyGenerator(config).generate(), NOW)


@pytest.fixture(scope="module")
def component_cert(config: SecurityConfig, anchor: TrustAnchor):
    request = CertificateSigningRequest.for_component(config, KeyGenerator(config).generate().public_key)
    return Approver(config).sign(
        request,
        anchor.key_pair.private_key,
        anchor.certificate,
        NOW,
        NOW + datetime.timedelta(days=30),
    )


def _verifier(anchor: TrustAnchor, at: datetime.datetime) -> CertificateVerifier:
    return CertificateVerifier(anchor.certificate, clock=lambda: at)


class TestVerificationResult:
    def test_errors_default_empty(self) -> None:
        result = VerificationResult(valid=True, chain_valid=True, not_expired=True)
        assert result.errors == []


class TestVerify:
    def test_valid_certificate_passes(self, anchor, component_cert) -> None:
        result = _verifier(anchor, NOW + datetime.timedelta(days=1)).verify(component_cert)
        assert result.valid is True
        assert result.errors == []

    def test_root_certificate_passes(self, anchor) -> None:
        result = _verifier(anchor, NOW + datetime.timedelta(days=1)).verify(anchor.certificate)
        assert result.valid is True

    def test_foreign_anchor_fails_chain(self, config, component_cert) -> None:
        other = TrustAnchor.bootstrap(
            config.with_overrides(ca_subject="otherCA@localhost"),
            KeyGenerator(config).generate(),
            NOW,
        )
        result = _verifier(other, NOW + datetime.timedelta(days=1)).verify(component_cert)
        assert result.chain_valid is False
        assert result.valid is False
        assert any("issuer" in e.lower() for e in result.errors)

    def test_same_subject_different_key_fails_signature(self, config, component_cert) -> None:
        impostor = TrustAnchor.bootstrap(config, KeyGenerator(config).generate(), NOW)
        result = _verifier(impostor, NOW + datetime.timedelta(days=1)).verify(component_cert)
        assert result.chain_valid is False
        assert any("signature" in e.lower() for e in result.errors)

    def test_expired_certificate(self, anchor, component_cert) -> None:
        result = _verifier(anchor, NOW + datetime.timedelta(days=31)).verify(component_cert)
        assert result.not_expired is False
        assert result.chain_valid is True
        assert any("expired" in e.lower() for e in result.errors)

    def test_not_yet_valid_certificate(self, anchor, component_cert) -> None:
        result = _verifier(anchor, NOW - datetime.timedelta(days=1)).verify(component_cert)
        assert result.not_expired is False
        assert any("not yet valid" in e.lower() for e in result.errors)
