"""Kubernetes integration - API client and configuration models."""

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

__all__ = [
    "KubernetesAuthError",
    "KubernetesClient",
    "KubernetesConfig",
    "KubernetesConflictError",
    "KubernetesConnectionError",
    "KubernetesError",
    "KubernetesNotFoundError",
    "KubernetesValidationError",
    "SecretKeyMissingError",
]
