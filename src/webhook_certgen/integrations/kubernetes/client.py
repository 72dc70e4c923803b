"""Kubernetes API client wrapper.

Wraps the official kubernetes Python client with kubeconfig / in-cluster
loading, lazy API group initialization and consistent error translation.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

import structlog

from webhook_certgen.integrations.kubernetes.exceptions import (
    KubernetesAuthError,
    KubernetesConflictError,
    KubernetesConnectionError,
    KubernetesError,
    KubernetesNotFoundError,
    KubernetesValidationError,
)

if TYPE_CHECKING:
    from kubernetes.client import (
        AdmissionregistrationV1Api,
        ApiextensionsV1Api,
        CoreV1Api,
        CustomObjectsApi,
    )

    from webhook_certgen.integrations.kubernetes.config import KubernetesConfig

logger = structlog.get_logger()


class KubernetesClient:
    """Kubernetes API client.

    Wraps the official kubernetes Python client with:
    - kubeconfig loading with in-cluster fallback
    - Lazy API group initialization
    - Consistent error translation to custom exceptions
    - Context manager support

    Example:
        ```python
        from webhook_certgen.integrations.kubernetes import KubernetesClient, KubernetesConfig

        with KubernetesClient(KubernetesConfig.from_env()) as client:
            secret = client.core_v1.read_namespaced_secret("certs", "default")
        ```
    """

    def __init__(self, config: KubernetesConfig) -> None:
        """Initialize Kubernetes client.

        Args:
            config: Connection configuration.

        Raises:
            KubernetesConnectionError: If no usable configuration is found.
        """
        self._config = config
        self._current_context: str | None = None

        self._core_v1: CoreV1Api | None = None
        self._admissionregistration_v1: AdmissionregistrationV1Api | None = None
        self._apiextensions_v1: ApiextensionsV1Api | None = None
        self._custom_objects: CustomObjectsApi | None = None

        self._load_config()

        logger.info("Kubernetes client initialized", context=self._current_context)

    def _load_config(self) -> None:
        """Load Kubernetes configuration from kubeconfig or in-cluster."""
        from kubernetes import config
        from kubernetes.config import ConfigException

        try:
            config.load_kube_config(
                config_file=self._config.kubeconfig,
                context=self._config.context,
            )
            self._current_context = self._config.context or "current-context"
            logger.debug(
                "loaded_kubeconfig",
                context=self._config.context,
                kubeconfig=self._config.kubeconfig,
            )
        except ConfigException as kubeconfig_error:
            # An explicitly requested kubeconfig must not silently fall through
            if self._config.kubeconfig:
                raise KubernetesConnectionError(
                    message=f"Cannot load kubeconfig '{self._config.kubeconfig}'",
                    original_error=kubeconfig_error,
                ) from kubeconfig_error
            try:
                config.load_incluster_config()
                self._current_context = "in-cluster"
                logger.debug("loaded_incluster_config")
            except ConfigException as e:
                raise KubernetesConnectionError(
                    message="Cannot load Kubernetes configuration. "
                    "Ensure kubeconfig exists or running inside a cluster.",
                    original_error=e,
                ) from e

        self._invalidate_api_cache()

    def _invalidate_api_cache(self) -> None:
        """Clear cached API group instances."""
        self._core_v1 = None
        self._admissionregistration_v1 = None
        self._apiextensions_v1 = None
        self._custom_objects = None

    # =========================================================================
    # Lazy API Group Accessors
    # =========================================================================

    @property
    def core_v1(self) -> CoreV1Api:
        """Get CoreV1Api instance (secrets)."""
        if self._core_v1 is None:
            from kubernetes.client import CoreV1Api

            self._core_v1 = CoreV1Api()
        return self._core_v1

    @property
    def admissionregistration_v1(self) -> AdmissionregistrationV1Api:
        """Get AdmissionregistrationV1Api instance (webhook configurations)."""
        if self._admissionregistration_v1 is None:
            from kubernetes.client import AdmissionregistrationV1Api

            self._admissionregistration_v1 = AdmissionregistrationV1Api()
        return self._admissionregistration_v1

    @property
    def apiextensions_v1(self) -> ApiextensionsV1Api:
        """Get ApiextensionsV1Api instance (custom resource definitions)."""
        if self._apiextensions_v1 is None:
            from kubernetes.client import ApiextensionsV1Api

            self._apiextensions_v1 = ApiextensionsV1Api()
        return self._apiextensions_v1

    @property
    def custom_objects(self) -> CustomObjectsApi:
        """Get CustomObjectsApi instance for API versions without typed models."""
        if self._custom_objects is None:
            from kubernetes.client import CustomObjectsApi

            self._custom_objects = CustomObjectsApi()
        return self._custom_objects

    def get_current_context(self) -> str:
        """Get the current active context name.

        Returns:
            The current context name, or 'in-cluster' if running inside a pod.
        """
        return self._current_context or "unknown"

    # =========================================================================
    # Error Translation
    # =========================================================================

    @staticmethod
    def translate_api_exception(
        e: Exception,
        resource_type: str | None = None,
        resource_name: str | None = None,
        namespace: str | None = None,
    ) -> KubernetesError:
        """Translate a kubernetes ApiException to a custom exception.

        Args:
            e: The original ApiException.
            resource_type: Type of resource being operated on.
            resource_name: Name of the resource.
            namespace: Namespace of the resource.

        Returns:
            An appropriate KubernetesError subclass.
        """
        from kubernetes.client import ApiException

        if isinstance(e, KubernetesError):
            return e

        if not isinstance(e, ApiException):
            return KubernetesError(
                message=str(e),
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        status = e.status

        if status in (401, 403):
            return KubernetesAuthError(
                message=e.reason or "Authentication/authorization failed",
                status_code=status,
                reason=e.reason,
            )

        if status == 404:
            return KubernetesNotFoundError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
            )

        if status == 409:
            return KubernetesConflictError(
                resource_type=resource_type,
                resource_name=resource_name,
                namespace=namespace,
                reason=_status_reason(e),
            )

        if status in (400, 422):
            return KubernetesValidationError(
                message=e.reason or "Validation failed",
                status_code=status,
            )

        return KubernetesError(
            message=e.reason or f"Kubernetes API error: {status}",
            status_code=status,
            resource_type=resource_type,
            resource_name=resource_name,
            namespace=namespace,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Close the client and release resources."""
        self._invalidate_api_cache()
        logger.debug("Kubernetes client closed")

    def __enter__(self) -> KubernetesClient:
        """Context manager entry."""
        return self

    def __exit__(self, *args: Any) -> None:
        """Context manager exit."""
        self.close()


def _status_reason(e: Any) -> str | None:
    """Extract the machine-readable reason from an ApiException's Status body."""
    body = getattr(e, "body", None)
    if not body:
        return None
    try:
        status = json.loads(body)
    except (TypeError, ValueError):
        return None
    return status.get("reason") if isinstance(status, dict) else None
