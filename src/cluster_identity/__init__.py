"""cluster-identity — certificate lifecycle management for cluster components.

Public API
----------
The stable public surface is everything exported from this module.
Anything inside submodules not re-exported here is considered private
and may change without notice.

Example
-------
>>> import cluster_identity
>>> cluster_identity.__version__
'0.1.0'

Quick start
-----------
::

    from cluster_identity import CertificateClient, SecurityConfig

    config = SecurityConfig(default_duration="P30D", renewal_grace_period="P7D")
    client = CertificateClient(config, auto_renew=True)
    client.register_notification_receiver(my_key_store_builder)
"""
from __future__ import annotations

__version__: str = "0.1.0"

from cluster_identity.config import SecurityConfig
from cluster_identity.exceptions import (
    CertificateError,
    ClientClosedError,
    DuplicateSerialError,
    ErrorCode,
    KeyGenerationError,
    ResourceReleaseError,
    SigningError,
    VerificationError,
)

# ------------------------------------------------------------------
# Keys and certificates
# ------------------------------------------------------------------
from cluster_identity.keys.generator import KeyGenerator, KeyPair
from cluster_identity.certificates.anchor import TrustAnchor
from cluster_identity.certificates.approver import Approver
from cluster_identity.certificates.renewal import RenewalScheduler, SchedulerState
from cluster_identity.certificates.request import CertificateSigningRequest
from cluster_identity.certificates.store import CertificateStore
from cluster_identity.certificates.verifier import CertificateVerifier, VerificationResult
from cluster_identity.certificates.wire import CertificateRecord, SigningRequestRecord

# ------------------------------------------------------------------
# Client
# ------------------------------------------------------------------
from cluster_identity.notification import CertificateNotification, NotificationRegistry
from cluster_identity.client import (
    ActiveIdentity,
    CertificateClient,
    ReleasableResource,
    Unsupported,
)

__all__ = [
    # version
    "__version__",
    # config
    "SecurityConfig",
    # errors
    "CertificateError",
    "ClientClosedError",
    "DuplicateSerialError",
    "ErrorCode",
    "KeyGenerationError",
    "ResourceReleaseError",
    "SigningError",
    "VerificationError",
    # keys and certificates
    "Approver",
    "CertificateRecord",
    "CertificateSigningRequest",
    "CertificateStore",
    "CertificateVerifier",
    "KeyGenerator",
    "KeyPair",
    "RenewalScheduler",
    "SchedulerState",
    "SigningRequestRecord",
    "TrustAnchor",
    "VerificationResult",
    # client
    "ActiveIdentity",
    "CertificateClient",
    "CertificateNotification",
    "NotificationRegistry",
    "ReleasableResource",
    "Unsupported",
]
