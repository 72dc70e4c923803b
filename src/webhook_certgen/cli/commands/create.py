"""Create command: generate a CA, server cert and key and store them in a Secret."""

from __future__ import annotations

import typer

from webhook_certgen.cli.commands.base import console, get_service, handle_error, kubernetes_config
from webhook_certgen.core.config.models import CreateConfig, build_config
from webhook_certgen.exceptions import CertgenError
from webhook_certgen.integrations.kubernetes.exceptions import KubernetesError
from webhook_certgen.services.certgen import CreateResult


def create(
    ctx: typer.Context,
    host: str = typer.Option(
        ...,
        "--host",
        help="Comma-separated hostnames and IPs to generate a certificate for",
    ),
    secret_name: str = typer.Option(
        ...,
        "--secret-name",
        help="Name of the secret where certificate information will be written",
    ),
    namespace: str = typer.Option(
        ...,
        "--namespace",
        help="Namespace of the secret where certificate information will be written",
    ),
    ca_name: str = typer.Option("ca", "--ca-name", help="Name of ca file in the secret"),
    cert_name: str = typer.Option("cert", "--cert-name", help="Name of cert file in the secret"),
    key_name: str = typer.Option("key", "--key-name", help="Name of key file in the secret"),
) -> None:
    """Generate a ca and server cert+key and store the results in a secret.

    Does nothing if the secret already exists.

    Examples:
        webhook-certgen create --host my-svc,my-svc.my-ns.svc --secret-name my-certs --namespace my-ns
    """
    try:
        config = build_config(
            CreateConfig,
            host=host,
            secret_name=secret_name,
            namespace=namespace,
            ca_name=ca_name,
            cert_name=cert_name,
            key_name=key_name,
        )
        with get_service(kubernetes_config(ctx)) as service:
            result = service.create(config)
    except (KubernetesError, CertgenError) as e:
        handle_error(e)
        return

    if result is CreateResult.ALREADY_EXISTS:
        console.print(f"secret {config.namespace}/{config.secret_name} already exists")
    else:
        console.print(f"[green]created[/green] secret {config.namespace}/{config.secret_name}")
