"""Secret-backed storage for the CA bundle, leaf certificate and key.

The Secret is created once and never updated: a second create fails with a
conflict instead of overwriting what another run stored.
"""

from __future__ import annotations

import base64
from collections.abc import Mapping

from webhook_certgen.integrations.kubernetes.exceptions import (
    KubernetesNotFoundError,
    SecretKeyMissingError,
)
from webhook_certgen.services.kubernetes.base import K8sBaseManager


class TrustStoreManager(K8sBaseManager):
    """Reads and creates the Secret holding the generated certificates."""

    _entity_name = "trust_store"

    def load_ca(self, secret_name: str, namespace: str, ca_key: str) -> bytes | None:
        """Return the CA bundle stored in a Secret.

        Args:
            secret_name: Secret name.
            namespace: Secret namespace.
            ca_key: Data key holding the CA bundle.

        Returns:
            The decoded CA bundle, or None if the Secret does not exist.

        Raises:
            SecretKeyMissingError: The Secret exists but has no ``ca_key``.
            KubernetesError: Any other API failure.
        """
        self._log.debug("getting_secret", name=secret_name, namespace=namespace)
        try:
            secret = self._client.core_v1.read_namespaced_secret(
                name=secret_name, namespace=namespace
            )
        except Exception as e:
            error = self._client.translate_api_exception(
                e, resource_type="Secret", resource_name=secret_name, namespace=namespace
            )
            if isinstance(error, KubernetesNotFoundError):
                self._log.info("secret_not_found", name=secret_name, namespace=namespace)
                return None
            raise error

        encoded = (secret.data or {}).get(ca_key)
        if encoded is None:
            raise SecretKeyMissingError(secret_name, namespace, ca_key)

        self._log.debug("got_secret", name=secret_name, namespace=namespace)
        return base64.b64decode(encoded)

    def save_certs(self, secret_name: str, namespace: str, data: Mapping[str, bytes]) -> None:
        """Create a Secret holding ``data``.

        Args:
            secret_name: Secret name.
            namespace: Secret namespace.
            data: Data keys mapped to raw (unencoded) bytes.

        Raises:
            KubernetesConflictError: The Secret already exists.
            KubernetesError: Any other API failure.
        """
        from kubernetes.client import V1ObjectMeta, V1Secret

        body = V1Secret(
            metadata=V1ObjectMeta(name=secret_name, namespace=namespace),
            type="Opaque",
            data={key: base64.b64encode(value).decode() for key, value in data.items()},
        )

        self._log.info("creating_secret", name=secret_name, namespace=namespace, keys=sorted(data))
        try:
            self._client.core_v1.create_namespaced_secret(namespace=namespace, body=body)
        except Exception as e:
            self._handle_api_error(e, "Secret", secret_name, namespace)
        self._log.info("created_secret", name=secret_name, namespace=namespace)
