"""Main CLI entry point using Typer."""

from __future__ import annotations

import typer
from rich.console import Console

from webhook_certgen import __version__
from webhook_certgen.cli.commands import create, patch
from webhook_certgen.cli.commands import version as version_cmd
from webhook_certgen.integrations.kubernetes.config import KubernetesConfig
from webhook_certgen.logging.config import configure_logging, get_logger, parse_log_level

app = typer.Typer(
    name="webhook-certgen",
    help="Generate a self-signed CA for admission and conversion webhooks and patch its caBundle.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"webhook-certgen version {__version__}")
        raise typer.Exit()


def log_level_callback(value: str) -> str:
    """Reject unknown log levels before any command runs."""
    try:
        parse_log_level(value)
    except ValueError as e:
        raise typer.BadParameter(str(e)) from e
    return value.lower()


def log_format_callback(value: str) -> str:
    """Accept text or json."""
    if value not in ("text", "json"):
        raise typer.BadParameter(f"invalid log format '{value}', expected text or json")
    return value


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    kubeconfig: str | None = typer.Option(
        None,
        "--kubeconfig",
        envvar="CERTGEN_KUBECONFIG",
        help="Path to kubeconfig file; in-cluster config is used when unset.",
    ),
    context: str | None = typer.Option(
        None,
        "--context",
        envvar="CERTGEN_CONTEXT",
        help="Kubeconfig context to use.",
    ),
    log_level: str = typer.Option(
        "info",
        "--log-level",
        callback=log_level_callback,
        help="Log level: debug|info|warning|error.",
    ),
    log_format: str = typer.Option(
        "text",
        "--log-format",
        callback=log_format_callback,
        help="Log format: text|json.",
    ),
) -> None:
    """Provision a webhook CA and distribute its caBundle."""
    configure_logging(level=log_level, log_format=log_format)
    ctx.obj = KubernetesConfig.from_env({"kubeconfig": kubeconfig, "context": context})
    get_logger(__name__).debug("configured", command=ctx.invoked_subcommand)


# Register subcommands
app.command(
    help="Generate a ca and server cert+key and store the results in a secret "
    "'secret-name' in 'namespace'",
)(create.create)
app.command(
    help="Patch a ValidatingWebhookConfiguration, MutatingWebhookConfiguration and "
    "CustomResourceDefinitions by using the ca from 'secret-name' in 'namespace'",
)(patch.patch)
app.command(help="Prints the CLI version information")(version_cmd.version)


if __name__ == "__main__":
    app()
