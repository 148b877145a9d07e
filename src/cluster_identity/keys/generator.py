"""Key pair generation for the configured algorithm."""
from __future__ import annotations

import logging
from dataclasses import dataclass

from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec, ed25519, rsa

from cluster_identity.config import SecurityConfig
from cluster_identity.exceptions import KeyGenerationError
from cluster_identity.keys.signatures import PrivateKey, PublicKey, is_provider_available

logger = logging.getLogger(__name__)

_EC_CURVES: dict[int, type[ec.EllipticCurve]] = {
    256: ec.SECP256R1,
    384: ec.SECP384R1,
    521: ec.SECP521R1,
}
_MIN_RSA_KEY_SIZE = 2048


@dataclass(frozen=True)
class KeyPair:
    """A private key and its public half.

    Parameters
    ----------
    private_key:
        The private key.
    public_key:
        The public key derived from *private_key*.
    """

    private_key: PrivateKey
    public_key: PublicKey

    @classmethod
    def from_private_key(cls, private_key: PrivateKey) -> "KeyPair":
        return cls(private_key=private_key, public_key=private_key.public_key())

    def private_key_pem(self) -> bytes:
        """Return the PKCS#8 PEM encoding of the private key (unencrypted)."""
        return self.private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption(),
        )

    def public_key_pem(self) -> bytes:
        """Return the SubjectPublicKeyInfo PEM encoding of the public key."""
        return self.public_key.public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        )


class KeyGenerator:
    """Generates fresh key pairs for the configured algorithm and key size.

    Stateless apart from the configuration; every call draws new randomness.

    Parameters
    ----------
    config:
        Supplies ``key_algorithm``, ``key_size`` and ``security_provider``.
    """

    def __init__(self, config: SecurityConfig) -> None:
        self._algorithm = config.key_algorithm
        self._key_size = config.key_size
        self._provider = config.security_provider

    def generate(self) -> KeyPair:
        """Generate a new key pair.

        Raises
        ------
        KeyGenerationError
            If the algorithm, key size or provider is unavailable.
        """
        if not is_provider_available(self._provider):
            raise KeyGenerationError(
                f"Security provider {self._provider!r} is not available"
            )

        algorithm = self._algorithm.upper()
        if algorithm == "RSA":
            private_key = self._generate_rsa()
        elif algorithm in ("EC", "ECDSA"):
            private_key = self._generate_ec()
        elif algorithm == "ED25519":
            private_key = ed25519.Ed25519PrivateKey.generate()
        else:
            raise KeyGenerationError(
                f"Key algorithm {self._algorithm!r} is not supported"
            )

        logger.debug("Generated %s key pair", self._algorithm)
        return KeyPair.from_private_key(private_key)

    def _generate_rsa(self) -> rsa.RSAPrivateKey:
        if self._key_size < _MIN_RSA_KEY_SIZE:
            raise KeyGenerationError(
                f"RSA key size must be at least {_MIN_RSA_KEY_SIZE} bits, "
                f"got {self._key_size}"
            )
        try:
            return rsa.generate_private_key(public_exponent=65537, key_size=self._key_size)
        except ValueError as exc:
            raise KeyGenerationError(f"RSA key generation failed: {exc}") from exc

    def _generate_ec(self) -> ec.EllipticCurvePrivateKey:
        curve = _EC_CURVES.get(self._key_size)
        if curve is None:
            raise KeyGenerationError(
                f"No EC curve for key size {self._key_size}; "
                f"choose one of {sorted(_EC_CURVES)}"
            )
        return ec.generate_private_key(curve())


__all__ = ["KeyGenerator", "KeyPair"]
