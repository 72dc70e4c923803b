"""Version command."""

from __future__ import annotations

import platform

from webhook_certgen import __version__
from webhook_certgen.cli.commands.base import console


def version() -> None:
    """Print the CLI version and the Python runtime version."""
    console.print(__version__, highlight=False)
    console.print(
        f"{platform.python_implementation()} {platform.python_version()}", highlight=False
    )
