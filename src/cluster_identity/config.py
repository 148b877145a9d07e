"""Security configuration shared by every lifecycle component.

:class:`SecurityConfig` is an immutable value handed to each component at
construction time. Durations are ISO-8601 duration strings (``P30D``,
``PT12H``) or :class:`datetime.timedelta` values. Options may be given by
field name or by their dotted property key::

    config = SecurityConfig.from_properties({
        "x509.default.duration": "P30D",
        "x509.renew.grace.duration": "P7D",
    })
"""
from __future__ import annotations

import datetime
import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, model_validator

DEFAULT_DURATION = "P365D"
DEFAULT_MAX_DURATION = "P1865D"
DEFAULT_RENEWAL_GRACE_PERIOD = "P28D"
DEFAULT_KEY_ALGORITHM = "RSA"
DEFAULT_KEY_SIZE = 2048
DEFAULT_SIGNATURE_ALGORITHM = "SHA256withRSA"
DEFAULT_SECURITY_PROVIDER = "openssl"


def _option(field_name: str, property_key: str, default: Any, description: str) -> Any:
    return Field(
        default=default,
        validation_alias=AliasChoices(field_name, property_key),
        description=description,
    )


class SecurityConfig(BaseModel):
    """Immutable configuration for key generation, issuance, and renewal."""

    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    default_duration: datetime.timedelta = _option(
        "default_duration", "x509.default.duration", DEFAULT_DURATION,
        "Validity of component certificates.",
    )
    max_duration: datetime.timedelta = _option(
        "max_duration", "x509.max.duration", DEFAULT_MAX_DURATION,
        "Validity of the root certificate; upper bound for any certificate.",
    )
    renewal_grace_period: datetime.timedelta = _option(
        "renewal_grace_period", "x509.renew.grace.duration", DEFAULT_RENEWAL_GRACE_PERIOD,
        "Lead time before expiry at which renewal starts.",
    )
    key_algorithm: str = _option(
        "key_algorithm", "security.key.algo", DEFAULT_KEY_ALGORITHM,
        "Asymmetric key algorithm: RSA, EC or Ed25519.",
    )
    key_size: int = _option(
        "key_size", "security.key.len", DEFAULT_KEY_SIZE,
        "Key size in bits (RSA modulus or EC curve size).",
    )
    signature_algorithm: str = _option(
        "signature_algorithm", "x509.signature.algorithm", DEFAULT_SIGNATURE_ALGORITHM,
        "Signature algorithm name, e.g. SHA256withRSA.",
    )
    security_provider: str = _option(
        "security_provider", "security.provider", DEFAULT_SECURITY_PROVIDER,
        "Cryptographic provider name.",
    )
    subject: str = _option(
        "subject", "x509.subject", "localhost", "Common name of the component certificate.",
    )
    ca_subject: str = _option(
        "ca_subject", "x509.ca.subject", "rootCA@localhost", "Common name of the root certificate.",
    )
    cluster_id: str = _option(
        "cluster_id", "cluster.id", "cluster1", "Cluster identifier (organization).",
    )
    component_id: str = _option(
        "component_id", "component.id", "scm1", "Component identifier (organizational unit).",
    )

    @model_validator(mode="after")
    def _check_durations(self) -> "SecurityConfig":
        zero = datetime.timedelta(0)
        for name in ("default_duration", "max_duration", "renewal_grace_period"):
            if getattr(self, name) <= zero:
                raise ValueError(f"{name} must be a positive duration")
        if self.default_duration > self.max_duration:
            raise ValueError(
                f"default_duration ({self.default_duration}) must not exceed "
                f"max_duration ({self.max_duration})"
            )
        if self.renewal_grace_period >= self.default_duration:
            raise ValueError(
                f"renewal_grace_period ({self.renewal_grace_period}) must be "
                f"shorter than default_duration ({self.default_duration})"
            )
        return self

    # ------------------------------------------------------------------
    # Loaders
    # ------------------------------------------------------------------

    @classmethod
    def from_properties(cls, properties: Mapping[str, Any]) -> "SecurityConfig":
        """Build a config from a flat mapping of field names or property keys."""
        return cls.model_validate(dict(properties))

    @classmethod
    def from_json_file(cls, path: Path) -> "SecurityConfig":
        """Load a config from a JSON object stored at *path*."""
        payload = json.loads(Path(path).read_text(encoding="utf-8"))
        if not isinstance(payload, dict):
            raise ValueError(f"{path} must contain a JSON object")
        return cls.from_properties(payload)

    def with_overrides(self, **overrides: Any) -> "SecurityConfig":
        """Return a validated copy with non-None *overrides* applied."""
        values = self.model_dump()
        values.update({k: v for k, v in overrides.items() if v is not None})
        return type(self).model_validate(values)


__all__ = ["SecurityConfig"]
