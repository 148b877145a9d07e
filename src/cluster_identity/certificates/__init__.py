"""Certificate issuance, storage, verification, and renewal.

Provides the self-signed trust anchor, the approver that signs component
certificates, the append-only certificate store, and the background
renewal scheduler.
"""
from __future__ import annotations

from cluster_identity.certificates.anchor import TrustAnchor
from cluster_identity.certificates.approver import Approver
from cluster_identity.certificates.renewal import RenewalScheduler, SchedulerState
from cluster_identity.certificates.request import CertificateSigningRequest
from cluster_identity.certificates.store import CertificateStore, serial_of
from cluster_identity.certificates.verifier import CertificateVerifier, VerificationResult
from cluster_identity.certificates.wire import CertificateRecord, SigningRequestRecord

__all__ = [
    "Approver",
    "CertificateRecord",
    "CertificateSigningRequest",
    "CertificateStore",
    "CertificateVerifier",
    "RenewalScheduler",
    "SchedulerState",
    "SigningRequestRecord",
    "TrustAnchor",
    "VerificationResult",
    "serial_of",
]
