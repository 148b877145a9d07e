"""CLI entry point for cluster-identity.

Invoked as::

    cluster-identity [OPTIONS] COMMAND [ARGS]...

or, during development::

    python -m cluster_identity.cli.main

Commands
--------
version   Show version information
show      Bootstrap an identity and display its certificates
export    Bootstrap an identity and write its PEM files
sign      Sign a file with a PEM private key
verify    Verify a signature against a PEM certificate
"""
from __future__ import annotations

import functools
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Any

import click
from cryptography import x509
from cryptography.hazmat.primitives.serialization import Encoding, load_pem_private_key
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from cluster_identity.config import SecurityConfig

console = Console()


# ------------------------------------------------------------------
# Shared configuration options
# ------------------------------------------------------------------


def config_options(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the security configuration options and pass a ``config`` kwarg."""
    options = [
        click.option(
            "--config",
            "config_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            default=None,
            help="JSON file of configuration options (field names or property keys).",
        ),
        click.option("--default-duration", default=None, help="Component certificate validity (ISO-8601, e.g. P30D)."),
        click.option("--max-duration", default=None, help="Root certificate validity (ISO-8601)."),
        click.option("--grace-period", default=None, help="Renewal grace period (ISO-8601)."),
        click.option("--key-algorithm", default=None, help="Key algorithm: RSA, EC or Ed25519."),
        click.option("--key-size", type=int, default=None, help="Key size in bits."),
        click.option("--signature-algorithm", default=None, help="Signature algorithm, e.g. SHA256withRSA."),
        click.option("--provider", default=None, help="Security provider name."),
        click.option("--subject", default=None, help="Component certificate common name."),
        click.option("--cluster-id", default=None, help="Cluster identifier."),
        click.option("--component-id", default=None, help="Component identifier."),
    ]

    @functools.wraps(func)
    def wrapper(
        config_file: Path | None,
        default_duration: str | None,
        max_duration: str | None,
        grace_period: str | None,
        key_algorithm: str | None,
        key_size: int | None,
        signature_algorithm: str | None,
        provider: str | None,
        subject: str | None,
        cluster_id: str | None,
        component_id: str | None,
        **kwargs: Any,
    ) -> Any:
        try:
            base = (
                SecurityConfig.from_json_file(config_file)
                if config_file is not None
                else SecurityConfig()
            )
            config = base.with_overrides(
                default_duration=default_duration,
                max_duration=max_duration,
                renewal_grace_period=grace_period,
                key_algorithm=key_algorithm,
                key_size=key_size,
                signature_algorithm=signature_algorithm,
                security_provider=provider,
                subject=subject,
                cluster_id=cluster_id,
                component_id=component_id,
            )
        except (ValidationError, ValueError) as exc:
            console.print(f"[red]Error:[/red] invalid configuration: {escape(str(exc))}")
            sys.exit(2)
        return func(config=config, **kwargs)

    for option in reversed(options):
        wrapper = option(wrapper)
    return wrapper


def _bootstrap(config: SecurityConfig):
    from cluster_identity.client import CertificateClient
    from cluster_identity.exceptions import CertificateError

    try:
        return CertificateClient(config)
    except CertificateError as exc:
        console.print(f"[red]Error:[/red] cannot bootstrap identity: {escape(str(exc))}")
        sys.exit(1)


# ------------------------------------------------------------------
# Root group
# ------------------------------------------------------------------


@click.group()
@click.version_option(package_name="cluster-identity")
def cli() -> None:
    """Certificate lifecycle management for cluster components"""


@cli.command(name="version")
def version_command() -> None:
    """Show detailed version information."""
    from cluster_identity import __version__

    console.print(f"[bold]cluster-identity[/bold] v{__version__}")


# ------------------------------------------------------------------
# show
# ------------------------------------------------------------------


@cli.command(name="show")
@config_options
def show_command(config: SecurityConfig) -> None:
    """Bootstrap an identity and display its certificates."""
    with _bootstrap(config) as client:
        table = Table(title="Certificates", show_lines=False)
        table.add_column("Role", style="bold")
        table.add_column("Serial")
        table.add_column("Subject")
        table.add_column("Issuer")
        table.add_column("Not before")
        table.add_column("Not after")

        for role, cert in (
            ("root", client.root_certificate()),
            ("component", client.current_certificate()),
        ):
            table.add_row(
                role,
                str(cert.serial_number),
                cert.subject.rfc4514_string(),
                cert.issuer.rfc4514_string(),
                cert.not_valid_before_utc.isoformat(),
                cert.not_valid_after_utc.isoformat(),
            )

        console.print(table)
        fire_at = client.current_certificate().not_valid_after_utc - config.renewal_grace_period
        console.print(f"  Signature algorithm: {client.signature_algorithm}")
        console.print(f"  Renewal due:         {fire_at.isoformat()}")


# ------------------------------------------------------------------
# export
# ------------------------------------------------------------------


@cli.command(name="export")
@click.argument("out_dir", type=click.Path(file_okay=False, path_type=Path))
@config_options
def export_command(out_dir: Path, config: SecurityConfig) -> None:
    """Bootstrap an identity and write root.pem, cert.pem and key.pem to OUT_DIR."""
    out_dir.mkdir(parents=True, exist_ok=True)
    with _bootstrap(config) as client:
        identity = client.active_identity()
        (out_dir / "root.pem").write_bytes(
            client.root_certificate().public_bytes(Encoding.PEM)
        )
        (out_dir / "cert.pem").write_bytes(identity.certificate_pem())
        key_path = out_dir / "key.pem"
        key_path.write_bytes(identity.private_key_pem())
        key_path.chmod(0o600)

    console.print(f"[green]Exported[/green] identity serial [bold]{identity.serial}[/bold] to {out_dir}")


# ------------------------------------------------------------------
# sign / verify
# ------------------------------------------------------------------


@cli.command(name="sign")
@click.option("--key", "key_file", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="PEM private key.")
@click.option("--data", "data_file", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="File to sign.")
@click.option("--out", "out_file", required=True, type=click.Path(dir_okay=False, path_type=Path), help="Where to write the raw signature.")
@config_options
def sign_command(key_file: Path, data_file: Path, out_file: Path, config: SecurityConfig) -> None:
    """Sign a file with a PEM private key using the configured algorithm."""
    from cluster_identity.client import sign_bytes
    from cluster_identity.exceptions import SigningError

    try:
        private_key = load_pem_private_key(key_file.read_bytes(), password=None)
        signature = sign_bytes(config, private_key, data_file.read_bytes())
    except (SigningError, ValueError, TypeError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        sys.exit(1)

    out_file.write_bytes(signature)
    console.print(f"[green]Signed[/green] {data_file} ({len(signature)} byte signature)")


@cli.command(name="verify")
@click.option("--cert", "cert_file", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="PEM certificate.")
@click.option("--data", "data_file", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Signed file.")
@click.option("--signature", "signature_file", required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Raw signature file.")
@config_options
def verify_command(
    cert_file: Path, data_file: Path, signature_file: Path, config: SecurityConfig
) -> None:
    """Verify a signature against a PEM certificate.

    Exits 0 when valid, 1 when invalid, 2 when it cannot be evaluated.
    """
    from cluster_identity.client import check_signature
    from cluster_identity.exceptions import VerificationError

    try:
        cert = x509.load_pem_x509_certificate(cert_file.read_bytes())
        valid = check_signature(
            config, data_file.read_bytes(), signature_file.read_bytes(), cert
        )
    except (VerificationError, ValueError) as exc:
        console.print(f"[yellow]Cannot verify:[/yellow] {escape(str(exc))}")
        sys.exit(2)

    if valid:
        console.print(f"[green]Valid[/green] signature from serial {cert.serial_number}")
    else:
        console.print("[red]Invalid[/red] signature")
        sys.exit(1)


if __name__ == "__main__":
    cli()
