"""CertificateClient — the cryptographic identity of one cluster component.

Construction bootstraps a self-signed trust anchor, issues a component
certificate signed by it, and (optionally) arms background renewal. The
current key pair and certificate are held together in one immutable
:class:`ActiveIdentity` that is replaced by a single reference swap, so
readers never see a key paired with the wrong certificate.

Example
-------
::

    from cluster_identity import CertificateClient, SecurityConfig

    with CertificateClient(SecurityConfig(), auto_renew=True) as client:
        signature = client.sign_data(b"payload")
        assert client.verify_signature(b"payload", signature, client.current_certificate())
"""
from __future__ import annotations

import datetime
import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization

from cluster_identity.certificates.anchor import TrustAnchor
from cluster_identity.certificates.approver import Approver
from cluster_identity.certificates.renewal import RenewalScheduler
from cluster_identity.certificates.request import CertificateSigningRequest
from cluster_identity.certificates.store import CertificateStore, serial_of
from cluster_identity.certificates.verifier import CertificateVerifier, VerificationResult
from cluster_identity.config import SecurityConfig
from cluster_identity.exceptions import (
    ClientClosedError,
    ErrorCode,
    ResourceReleaseError,
    SigningError,
    VerificationError,
)
from cluster_identity.keys.generator import KeyGenerator, KeyPair
from cluster_identity.keys.signatures import (
    PrivateKey,
    PublicKey,
    SignatureAlgorithm,
    get_signature_algorithm,
    is_provider_available,
)
from cluster_identity.notification import CertificateNotification, NotificationRegistry

logger = logging.getLogger(__name__)


def _utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


def _resolve_algorithm(
    config: SecurityConfig,
    error_type: type[SigningError] | type[VerificationError],
    code: ErrorCode | None = None,
) -> SignatureAlgorithm:
    provider = config.security_provider
    if not is_provider_available(provider):
        raise error_type(f"Security provider {provider!r} is not available", code)
    try:
        return get_signature_algorithm(config.signature_algorithm)
    except KeyError as exc:
        raise error_type(str(exc.args[0]), code) from exc


def sign_bytes(config: SecurityConfig, private_key: PrivateKey, data: bytes) -> bytes:
    """Sign *data* with *private_key* using the configured algorithm and provider.

    Raises
    ------
    SigningError
        If the algorithm or provider is unavailable or rejects the key.
    """
    algorithm = _resolve_algorithm(config, SigningError, ErrorCode.CRYPTO_SIGN_ERROR)
    try:
        return algorithm.sign(private_key, data)
    except (TypeError, ValueError, UnsupportedAlgorithm) as exc:
        raise SigningError(
            f"Error while signing data: {exc}", ErrorCode.CRYPTO_SIGN_ERROR
        ) from exc


def check_signature(
    config: SecurityConfig, data: bytes, signature: bytes, cert: x509.Certificate
) -> bool:
    """Verify *signature* over *data* against *cert* with the configured algorithm.

    Returns False for a signature that does not match; raises
    :class:`VerificationError` when the check cannot be evaluated.
    """
    algorithm = _resolve_algorithm(config, VerificationError)
    try:
        algorithm.verify(cert.public_key(), signature, data)
    except InvalidSignature:
        return False
    except (TypeError, ValueError, UnsupportedAlgorithm) as exc:
        logger.error("Error while verifying signature: %s", exc)
        raise VerificationError(f"Error while verifying signature: {exc}") from exc
    return True


@dataclass(frozen=True)
class Unsupported:
    """Result of an operation this build does not implement.

    Distinct from an empty result: ``ca_list()`` returning ``Unsupported``
    means "cannot answer", not "no CAs".
    """

    operation: str


@runtime_checkable
class ReleasableResource(Protocol):
    """A downstream consumer (e.g. a key-store factory) released on close."""

    def destroy(self) -> None:
        ...


@dataclass(frozen=True)
class ActiveIdentity:
    """The current key pair and the certificate issued for it.

    Parameters
    ----------
    key_pair:
        The component key pair.
    certificate:
        The certificate whose public key is ``key_pair.public_key``.
    """

    key_pair: KeyPair
    certificate: x509.Certificate

    @property
    def serial(self) -> str:
        return serial_of(self.certificate)

    @property
    def private_key(self) -> PrivateKey:
        return self.key_pair.private_key

    @property
    def public_key(self) -> PublicKey:
        return self.key_pair.public_key

    def certificate_pem(self) -> bytes:
        """Return PEM-encoded certificate bytes."""
        return self.certificate.public_bytes(serialization.Encoding.PEM)

    def private_key_pem(self) -> bytes:
        """Return PEM-encoded private key bytes (unencrypted)."""
        return self.key_pair.private_key_pem()


class CertificateClient:
    """Holds and renews a component's cryptographic identity.

    All public methods may be called concurrently from any thread.

    Parameters
    ----------
    config:
        Security configuration. Defaults to ``SecurityConfig()``.
    auto_renew:
        Arm background renewal at ``not_after - renewal_grace_period``.
    clock:
        Returns the current UTC time.
    key_generator:
        Overrides the key generator built from *config*.
    approver:
        Overrides the approver built from *config*.
    resources:
        Downstream resources released by :meth:`close`.

    Raises
    ------
    KeyGenerationError, SigningError
        If the trust anchor or the initial certificate cannot be created.
    """

    def __init__(
        self,
        config: SecurityConfig | None = None,
        auto_renew: bool = False,
        clock: Callable[[], datetime.datetime] = _utcnow,
        key_generator: KeyGenerator | None = None,
        approver: Approver | None = None,
        resources: Iterable[ReleasableResource] = (),
    ) -> None:
        self._config = config or SecurityConfig()
        self._clock = clock
        self._key_generator = key_generator or KeyGenerator(self._config)
        self._approver = approver or Approver(self._config)
        self._store = CertificateStore()
        self._notifications = NotificationRegistry()
        self._resources: list[ReleasableResource] = list(resources)
        self._lock = threading.Lock()
        self._closed = False
        self._closing = False
        self._scheduler: RenewalScheduler | None = None
        self._renewal_error: BaseException | None = None

        now = self._clock()
        try:
            self._anchor = TrustAnchor.bootstrap(
                self._config, self._key_generator.generate(), now
            )
            self._store.add(self._anchor.certificate)

            initial = self._issue(self._key_generator.generate(), now)
            self._store.add(initial.certificate)
        except Exception:
            # Caller never gets a client to close.
            self._release(self._resources)
            self._resources = []
            raise
        self._active = initial
        self._verifier = CertificateVerifier(self._anchor.certificate, clock=self._clock)

        logger.info(
            "Issued component certificate %s for %s, valid until %s",
            initial.serial,
            self._config.subject,
            initial.certificate.not_valid_after_utc.isoformat(),
        )

        if auto_renew:
            self.schedule_renewal()

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> SecurityConfig:
        return self._config

    @property
    def store(self) -> CertificateStore:
        return self._store

    @property
    def scheduler(self) -> RenewalScheduler | None:
        """The renewal scheduler, or None if renewal was never scheduled."""
        return self._scheduler

    @property
    def renewal_error(self) -> BaseException | None:
        """The error of the most recent failed background renewal, if any."""
        return self._renewal_error

    @property
    def signature_algorithm(self) -> str:
        return self._config.signature_algorithm

    @property
    def security_provider(self) -> str:
        return self._config.security_provider

    @property
    def component_name(self) -> str:
        return self._config.component_id

    @property
    def closed(self) -> bool:
        return self._closed

    def active_identity(self) -> ActiveIdentity:
        """Return the current key pair and certificate as one consistent snapshot."""
        return self._active

    def current_private_key(self) -> PrivateKey:
        return self._active.private_key

    def current_public_key(self) -> PublicKey:
        return self._active.public_key

    def current_certificate(self) -> x509.Certificate:
        return self._active.certificate

    def certificate(self, serial: str) -> x509.Certificate | None:
        """Return the certificate with *serial* (current or superseded), or None."""
        return self._store.get(serial)

    def root_certificate(self) -> x509.Certificate:
        return self._anchor.certificate

    # ------------------------------------------------------------------
    # Signatures
    # ------------------------------------------------------------------

    def sign_data(self, data: bytes) -> bytes:
        """Sign *data* with the current private key.

        Raises
        ------
        SigningError
            If the configured algorithm cannot sign with the current key.
        """
        return sign_bytes(self._config, self._active.private_key, data)

    def verify_signature(
        self, data: bytes, signature: bytes, cert: x509.Certificate
    ) -> bool:
        """Check *signature* over *data* against *cert*'s public key.

        Returns
        -------
        bool
            True if the signature is valid, False if it was evaluated and
            does not match.

        Raises
        ------
        VerificationError
            If the check could not be evaluated (unavailable algorithm or
            provider, or a key unusable with the configured algorithm).
        """
        return check_signature(self._config, data, signature, cert)

    def verify_certificate(self, cert: x509.Certificate) -> VerificationResult:
        """Check that *cert* was issued by the trust anchor and is currently valid."""
        return self._verifier.verify(cert)

    # ------------------------------------------------------------------
    # Renewal
    # ------------------------------------------------------------------

    def renew(self) -> ActiveIdentity:
        """Replace the active identity with a freshly keyed certificate.

        Generates a key pair, has the trust anchor sign a request for the
        same subject, stores the new certificate, swaps it in, then
        notifies receivers with ``(old_serial, new_serial)``. If issuance
        fails, nothing is changed. An armed renewal schedule moves to the
        new certificate's expiry.

        Raises
        ------
        ClientClosedError
            If the client is closed.
        KeyGenerationError, SigningError
            If the new identity cannot be issued.
        """
        with self._lock:
            if self._closed:
                raise ClientClosedError("Cannot renew certificate: client is closed")
            previous = self._active
            candidate = self._issue(self._key_generator.generate(), self._clock())
            self._store.add(candidate.certificate)
            self._active = candidate
            if self._scheduler is not None:
                self._scheduler.reschedule(candidate.certificate.not_valid_after_utc)

        logger.info(
            "Certificate renewed: %s -> %s, valid until %s",
            previous.serial,
            candidate.serial,
            candidate.certificate.not_valid_after_utc.isoformat(),
        )
        self._notifications.fan_out(previous.serial, candidate.serial)
        return candidate

    def schedule_renewal(self) -> datetime.datetime:
        """Arm background renewal against the current certificate's expiry.

        Also used to re-arm after a failed background renewal.

        Returns
        -------
        datetime.datetime
            When renewal will fire.
        """
        with self._lock:
            if self._closed or self._closing:
                raise ClientClosedError("Cannot schedule renewal: client is closed")
            if self._scheduler is None:
                self._scheduler = RenewalScheduler(
                    renew=self._scheduled_renew,
                    grace_period=self._config.renewal_grace_period,
                    clock=self._clock,
                    on_failure=self._on_renewal_failure,
                )
            return self._scheduler.arm(self._active.certificate.not_valid_after_utc)

    def register_notification_receiver(self, receiver: CertificateNotification) -> None:
        """Register *receiver* for renewal events; re-registering is a no-op."""
        self._notifications.register(receiver)

    def _issue(self, key_pair: KeyPair, now: datetime.datetime) -> ActiveIdentity:
        request = CertificateSigningRequest.for_component(
            self._config,
            key_pair.public_key,
            digital_signature=True,
            digital_encryption=True,
        )
        certificate = self._approver.sign(
            request,
            self._anchor.key_pair.private_key,
            self._anchor.certificate,
            now,
            now + self._config.default_duration,
        )
        return ActiveIdentity(key_pair=key_pair, certificate=certificate)

    def _scheduled_renew(self) -> datetime.datetime:
        return self.renew().certificate.not_valid_after_utc

    def _on_renewal_failure(self, exc: BaseException) -> None:
        self._renewal_error = exc

    # ------------------------------------------------------------------
    # Unsupported in this build
    # ------------------------------------------------------------------

    def ca_list(self) -> Unsupported:
        return Unsupported("ca_list")

    def update_ca_list(self) -> Unsupported:
        return Unsupported("update_ca_list")

    def crls(self, crl_ids: Iterable[int]) -> Unsupported:
        return Unsupported("crls")

    def latest_crl_id(self) -> Unsupported:
        return Unsupported("latest_crl_id")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def attach_resource(self, resource: ReleasableResource) -> None:
        """Register a downstream resource to be destroyed by :meth:`close`."""
        if not isinstance(resource, ReleasableResource):
            raise TypeError(f"{type(resource).__name__} has no destroy() method")
        with self._lock:
            if self._closed:
                raise ClientClosedError("Cannot attach resource: client is closed")
            self._resources.append(resource)

    def close(self) -> None:
        """Cancel pending renewal and release downstream resources.

        Idempotent. Every resource is released even if an earlier one
        fails; the failures are then raised together.

        Raises
        ------
        ResourceReleaseError
            If one or more resources failed to release.
        """
        with self._lock:
            if self._closed or self._closing:
                return
            self._closing = True
            scheduler = self._scheduler

        # Cancel before renew() starts refusing; an in-flight renewal completes.
        if scheduler is not None:
            scheduler.cancel()

        with self._lock:
            self._closed = True
            resources, self._resources = self._resources, []

        errors = self._release(resources)
        logger.info("Certificate client for %s closed", self._config.subject)
        if errors:
            raise ResourceReleaseError(errors)

    def _release(self, resources: Iterable[ReleasableResource]) -> list[BaseException]:
        errors: list[BaseException] = []
        for resource in resources:
            try:
                resource.destroy()
            except Exception as exc:
                logger.error("Failed to release %r: %s", resource, exc)
                errors.append(exc)
        return errors

    def __enter__(self) -> "CertificateClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


__all__ = [
    "ActiveIdentity",
    "CertificateClient",
    "ReleasableResource",
    "Unsupported",
    "check_signature",
    "sign_bytes",
]
