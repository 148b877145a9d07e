"""Key pair generation and signature primitives."""
from __future__ import annotations

from cluster_identity.keys.generator import KeyGenerator, KeyPair
from cluster_identity.keys.signatures import SignatureAlgorithm, get_signature_algorithm

__all__ = [
    "KeyGenerator",
    "KeyPair",
    "SignatureAlgorithm",
    "get_signature_algorithm",
]
