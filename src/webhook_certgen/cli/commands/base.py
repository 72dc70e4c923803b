"""Shared utilities for CLI commands.

Provides the console, service construction from the global options, and
user-friendly error reporting. Library code raises; only this layer exits.
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import click
import typer
from rich.console import Console

from webhook_certgen.exceptions import CertgenError, InvalidArgumentError
from webhook_certgen.integrations.kubernetes.client import KubernetesClient
from webhook_certgen.integrations.kubernetes.config import KubernetesConfig
from webhook_certgen.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
    SecretKeyMissingError,
)
from webhook_certgen.logging.config import get_logger
from webhook_certgen.services.certgen import CertgenService

# Shared console instance
console = Console()

logger = get_logger(__name__)


def bool_value_callback(value: str) -> bool:
    """Parse ``true|false|1|0`` style option values."""
    return click.BOOL.convert(value, None, None)


def kubernetes_config(ctx: typer.Context) -> KubernetesConfig:
    """Return the connection config stored by the root callback."""
    if isinstance(ctx.obj, KubernetesConfig):
        return ctx.obj
    return KubernetesConfig.from_env()


@contextmanager
def get_service(config: KubernetesConfig) -> Iterator[CertgenService]:
    """Connect to the cluster and yield the service, closing the client afterwards."""
    with KubernetesClient(config) as client:
        logger.debug("using_context", context=client.get_current_context())
        yield CertgenService.from_client(client)


def handle_error(error: KubernetesError | CertgenError) -> None:
    """Report an error with user-friendly output.

    Args:
        error: The error to report.

    Raises:
        typer.Exit: Always exits with code 1.
    """
    if isinstance(error, KubernetesConnectionError):
        console.print("[red]Error:[/red] Cannot connect to Kubernetes cluster")
        console.print(f"  {error.message}")
        if error.original_error:
            console.print(f"  Cause: {error.original_error}")
        console.print(
            "\n[dim]Hint: Check --kubeconfig / CERTGEN_KUBECONFIG or run inside a cluster.[/dim]"
        )

    elif isinstance(error, KubernetesAuthError):
        console.print("[red]Error:[/red] Authentication/authorization failed")
        console.print(f"  {error.message}")
        console.print("\n[dim]Hint: Check the service account's RBAC permissions.[/dim]")

    elif isinstance(error, SecretKeyMissingError):
        console.print("[red]Error:[/red] Secret is missing the CA bundle")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesNotFoundError):
        console.print("[red]Error:[/red] Resource not found")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesValidationError):
        console.print("[red]Error:[/red] Validation failed")
        console.print(f"  {error.message}")

    elif isinstance(error, KubernetesConflictError):
        console.print("[red]Error:[/red] Resource conflict")
        console.print(f"  {error.message}")

    elif isinstance(error, InvalidArgumentError):
        console.print(f"[red]Error:[/red] Invalid argument: {error}")

    elif isinstance(error, KubernetesError):
        console.print(f"[red]Error:[/red] {error.message}")
        if error.status_code:
            console.print(f"  HTTP Status: {error.status_code}")

    else:
        console.print(f"[red]Error:[/red] {error.message}")

    raise typer.Exit(1)
