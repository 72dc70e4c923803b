"""Run configuration with Pydantic validation."""

from webhook_certgen.core.config.models import (
    CreateConfig,
    PatchConfig,
    build_config,
    split_csv,
)

__all__ = [
    "CreateConfig",
    "PatchConfig",
    "build_config",
    "split_csv",
]
