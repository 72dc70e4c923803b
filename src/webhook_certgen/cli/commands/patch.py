"""Patch command: install the stored CA bundle into webhooks and CRDs."""

from __future__ import annotations

import typer

from webhook_certgen.cli.commands.base import (
    bool_value_callback,
    console,
    get_service,
    handle_error,
    kubernetes_config,
)
from webhook_certgen.core.config.models import PatchConfig, build_config
from webhook_certgen.exceptions import CertgenError
from webhook_certgen.integrations.kubernetes.exceptions import KubernetesError


def patch(
    ctx: typer.Context,
    secret_name: str = typer.Option(
        ...,
        "--secret-name",
        help="Name of the secret where certificate information will be read from",
    ),
    namespace: str = typer.Option(
        ...,
        "--namespace",
        help="Namespace of the secret where certificate information will be read from",
    ),
    webhook_name: str = typer.Option(
        ...,
        "--webhook-name",
        help="Name of ValidatingWebhookConfiguration and MutatingWebhookConfiguration "
        "that will be updated",
    ),
    ca_name: str = typer.Option("ca", "--ca-name", help="Name of ca file in the secret"),
    patch_validating: str = typer.Option(
        "true",
        "--patch-validating",
        callback=bool_value_callback,
        metavar="BOOLEAN",
        help="If true, patch ValidatingWebhookConfiguration",
    ),
    patch_mutating: str = typer.Option(
        "true",
        "--patch-mutating",
        callback=bool_value_callback,
        metavar="BOOLEAN",
        help="If true, patch MutatingWebhookConfiguration",
    ),
    patch_failure_policy: str = typer.Option(
        "",
        "--patch-failure-policy",
        help="If set, patch the webhooks with this failure policy. Valid options are Ignore or Fail",
    ),
    admission_registration_version: str = typer.Option(
        "v1",
        "--admission-registration-version",
        help="admissionregistration.k8s.io api version (v1 or v1beta1)",
    ),
    crds: str = typer.Option(
        "",
        "--crds",
        help="Comma-separated CustomResourceDefinition names for which to patch "
        "the conversion webhook caBundle",
    ),
    crd_api_groups: str = typer.Option(
        "",
        "--crd-api-groups",
        help="Comma-separated CustomResourceDefinition API Groups for which to patch "
        "the conversion webhook caBundle",
    ),
) -> None:
    """Patch webhook configurations and CRDs with the ca from a secret.

    Examples:
        webhook-certgen patch --secret-name my-certs --namespace my-ns --webhook-name my-hooks
        webhook-certgen patch --secret-name my-certs --namespace my-ns --webhook-name my-hooks \\
            --patch-mutating=false --patch-failure-policy Fail --crd-api-groups example.com
    """
    try:
        config = build_config(
            PatchConfig,
            secret_name=secret_name,
            namespace=namespace,
            webhook_name=webhook_name,
            ca_name=ca_name,
            patch_validating=patch_validating,
            patch_mutating=patch_mutating,
            failure_policy=patch_failure_policy,
            version=admission_registration_version,
            crds=crds,
            crd_api_groups=crd_api_groups,
        )
        with get_service(kubernetes_config(ctx)) as service:
            service.patch(config)
    except (KubernetesError, CertgenError) as e:
        handle_error(e)
        return

    kinds = [
        kind
        for kind, enabled in (
            ("ValidatingWebhookConfiguration", config.patch_validating),
            ("MutatingWebhookConfiguration", config.patch_mutating),
        )
        if enabled
    ]
    console.print(
        f"[green]patched[/green] {', '.join(kinds)} '{config.webhook_name}' "
        f"({config.version.api_version})"
    )
    if config.patches_crds:
        console.print("[green]patched[/green] CustomResourceDefinition(s)")
