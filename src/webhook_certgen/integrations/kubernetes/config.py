"""Kubernetes connection configuration."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class KubernetesConfig(BaseModel):
    """How to reach the cluster.

    With neither field set the client uses the default kubeconfig
    resolution and falls back to in-cluster service account credentials.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    kubeconfig: str | None = None
    context: str | None = None

    @field_validator("kubeconfig")
    @classmethod
    def validate_kubeconfig(cls, v: str | None) -> str | None:
        """Expand ~ in kubeconfig path."""
        if not v:
            return None
        return str(Path(v).expanduser())

    @field_validator("context")
    @classmethod
    def validate_context(cls, v: str | None) -> str | None:
        """Treat an empty context as unset."""
        return v or None

    @classmethod
    def from_env(cls, base_config: dict[str, Any] | None = None) -> KubernetesConfig:
        """Create configuration with environment variable fallbacks.

        Explicit values in ``base_config`` take precedence over the environment.

        Supported environment variables:
            CERTGEN_KUBECONFIG: Path to a kubeconfig file
            CERTGEN_CONTEXT: Kubeconfig context to use
        """
        config_dict = {k: v for k, v in (base_config or {}).items() if v}

        if "kubeconfig" not in config_dict and (kubeconfig := os.environ.get("CERTGEN_KUBECONFIG")):
            config_dict["kubeconfig"] = kubeconfig

        if "context" not in config_dict and (context := os.environ.get("CERTGEN_CONTEXT")):
            config_dict["context"] = context

        return cls.model_validate(config_dict)
