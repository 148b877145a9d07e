"""Signature algorithm table.

Maps the configured signature algorithm name (``SHA256withRSA``,
``SHA256withECDSA``, ``Ed25519``...) onto ``cryptography`` primitives.
Lookups of unknown names raise :class:`KeyError`; key/algorithm mismatches
raise :class:`TypeError`; bad signatures raise
:class:`cryptography.exceptions.InvalidSignature`. Callers translate these
into the package's error taxonomy.
"""
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import Union

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, padding, rsa
from cryptography.x509 import ObjectIdentifier
from cryptography.x509.oid import SignatureAlgorithmOID

PrivateKey = Union[rsa.RSAPrivateKey, ec.EllipticCurvePrivateKey, ed25519.Ed25519PrivateKey]
PublicKey = Union[rsa.RSAPublicKey, ec.EllipticCurvePublicKey, ed25519.Ed25519PublicKey]

SUPPORTED_PROVIDERS: frozenset[str] = frozenset({"openssl"})

_PRIVATE_TYPES = {
    "RSA": rsa.RSAPrivateKey,
    "EC": ec.EllipticCurvePrivateKey,
    "Ed25519": ed25519.Ed25519PrivateKey,
}
_PUBLIC_TYPES = {
    "RSA": rsa.RSAPublicKey,
    "EC": ec.EllipticCurvePublicKey,
    "Ed25519": ed25519.Ed25519PublicKey,
}


def is_provider_available(name: str) -> bool:
    """Return True if *name* is a provider this build can use."""
    return name.lower() in SUPPORTED_PROVIDERS


@dataclass(frozen=True)
class SignatureAlgorithm:
    """One named signature scheme.

    Parameters
    ----------
    name:
        Configured algorithm name.
    key_algorithm:
        Key family the scheme requires: ``RSA``, ``EC`` or ``Ed25519``.
    hash_factory:
        Digest constructor, or None for schemes that hash internally.
    oid:
        X.509 signature algorithm identifier.
    """

    name: str
    key_algorithm: str
    hash_factory: Callable[[], hashes.HashAlgorithm] | None
    oid: ObjectIdentifier

    def certificate_hash(self) -> hashes.HashAlgorithm | None:
        """Return the digest to pass to ``CertificateBuilder.sign``."""
        return self.hash_factory() if self.hash_factory is not None else None

    def sign(self, private_key: PrivateKey, data: bytes) -> bytes:
        """Sign *data* with *private_key*."""
        self._check_key(private_key, _PRIVATE_TYPES)
        if self.key_algorithm == "RSA":
            return private_key.sign(data, padding.PKCS1v15(), self.hash_factory())
        if self.key_algorithm == "EC":
            return private_key.sign(data, ec.ECDSA(self.hash_factory()))
        return private_key.sign(data)

    def verify(self, public_key: PublicKey, signature: bytes, data: bytes) -> None:
        """Verify *signature* over *data*; raises ``InvalidSignature`` on mismatch."""
        self._check_key(public_key, _PUBLIC_TYPES)
        if self.key_algorithm == "RSA":
            public_key.verify(signature, data, padding.PKCS1v15(), self.hash_factory())
        elif self.key_algorithm == "EC":
            public_key.verify(signature, data, ec.ECDSA(self.hash_factory()))
        else:
            public_key.verify(signature, data)

    def accepts(self, key: object) -> bool:
        """Return True if *key* (private or public) belongs to this scheme's family."""
        return isinstance(
            key, (_PRIVATE_TYPES[self.key_algorithm], _PUBLIC_TYPES[self.key_algorithm])
        )

    def _check_key(self, key: object, types: dict[str, type]) -> None:
        expected = types[self.key_algorithm]
        if not isinstance(key, expected):
            raise TypeError(
                f"{self.name} requires a {self.key_algorithm} key, "
                f"got {type(key).__name__}"
            )


_ALGORITHMS: dict[str, SignatureAlgorithm] = {
    algo.name.lower(): algo
    for algo in (
        SignatureAlgorithm("SHA256withRSA", "RSA", hashes.SHA256, SignatureAlgorithmOID.RSA_WITH_SHA256),
        SignatureAlgorithm("SHA384withRSA", "RSA", hashes.SHA384, SignatureAlgorithmOID.RSA_WITH_SHA384),
        SignatureAlgorithm("SHA512withRSA", "RSA", hashes.SHA512, SignatureAlgorithmOID.RSA_WITH_SHA512),
        SignatureAlgorithm("SHA256withECDSA", "EC", hashes.SHA256, SignatureAlgorithmOID.ECDSA_WITH_SHA256),
        SignatureAlgorithm("SHA384withECDSA", "EC", hashes.SHA384, SignatureAlgorithmOID.ECDSA_WITH_SHA384),
        SignatureAlgorithm("SHA512withECDSA", "EC", hashes.SHA512, SignatureAlgorithmOID.ECDSA_WITH_SHA512),
        SignatureAlgorithm("Ed25519", "Ed25519", None, SignatureAlgorithmOID.ED25519),
    )
}


def get_signature_algorithm(name: str) -> SignatureAlgorithm:
    """Return the scheme registered under *name* (case-insensitive).

    Raises
    ------
    KeyError
        If no scheme is registered under that name.
    """
    try:
        return _ALGORITHMS[name.lower()]
    except KeyError:
        raise KeyError(f"Unsupported signature algorithm {name!r}") from None


def signature_algorithm_name(oid: ObjectIdentifier) -> str:
    """Return the configured-style name for *oid*, or its dotted string if unknown."""
    for algorithm in _ALGORITHMS.values():
        if algorithm.oid == oid:
            return algorithm.name
    return oid.dotted_string


__all__ = [
    "PrivateKey",
    "PublicKey",
    "SUPPORTED_PROVIDERS",
    "SignatureAlgorithm",
    "get_signature_algorithm",
    "is_provider_available",
    "signature_algorithm_name",
]
