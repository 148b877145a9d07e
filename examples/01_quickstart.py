#!/usr/bin/env python3
"""Example: Quickstart

Demonstrates the minimal setup for cluster-identity: bootstrap a
component identity, sign and verify a payload, and renew the
certificate while a receiver listens for the change.

Usage:
    python examples/01_quickstart.py

Requirements:
    pip install cluster-identity
"""
from __future__ import annotations

import logging

import cluster_identity
from cluster_identity import CertificateClient, SecurityConfig


class PrintingReceiver:
    def notify_certificate_renewed(self, old_serial: str, new_serial: str) -> None:
        print(f"Renewed: {old_serial} -> {new_serial}")


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    print(f"cluster-identity version: {cluster_identity.__version__}")

    config = SecurityConfig(
        default_duration="P30D",
        renewal_grace_period="P7D",
        cluster_id="cluster1",
        component_id="scm1",
    )

    with CertificateClient(config, auto_renew=True) as client:
        # Step 1: Inspect the bootstrapped identity
        cert = client.current_certificate()
        print(f"Subject: {cert.subject.rfc4514_string()}")
        print(f"Issuer:  {cert.issuer.rfc4514_string()}")
        print(f"Renewal due: {client.scheduler.fire_at.isoformat()}")

        # Step 2: Sign and verify
        signature = client.sign_data(b"hello cluster")
        print(f"Signature valid: {client.verify_signature(b'hello cluster', signature, cert)}")

        # Step 3: Renew on demand
        client.register_notification_receiver(PrintingReceiver())
        client.renew()

        # Signatures made before renewal still verify against the stored certificate
        old = client.certificate(str(cert.serial_number))
        print(f"Old signature still valid: {client.verify_signature(b'hello cluster', signature, old)}")

    print("\nQuickstart complete.")


if __name__ == "__main__":
    main()
