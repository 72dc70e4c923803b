"""Create and patch flows.

``create`` makes sure a CA exists in the configured Secret, generating one
only when the Secret is absent. ``patch`` reads that CA back and installs it
into webhook configurations and CRD conversion webhooks.
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

import structlog

from webhook_certgen.certs.generator import generate_certs
from webhook_certgen.integrations.kubernetes.exceptions import KubernetesNotFoundError
from webhook_certgen.services.kubernetes.crd_manager import CRDPatcher
from webhook_certgen.services.kubernetes.trust_store import TrustStoreManager
from webhook_certgen.services.kubernetes.webhook_manager import WebhookPatcher

if TYPE_CHECKING:
    from webhook_certgen.core.config.models import CreateConfig, PatchConfig
    from webhook_certgen.integrations.kubernetes.client import KubernetesClient

logger = structlog.get_logger()


class CreateResult(StrEnum):
    """Outcome of the create flow."""

    CREATED = "created"
    ALREADY_EXISTS = "already_exists"


class CertgenService:
    """Sequences certificate generation, storage and distribution."""

    def __init__(
        self,
        trust_store: TrustStoreManager,
        webhooks: WebhookPatcher,
        crds: CRDPatcher,
    ) -> None:
        self._trust_store = trust_store
        self._webhooks = webhooks
        self._crds = crds

    @classmethod
    def from_client(cls, client: KubernetesClient) -> CertgenService:
        """Wire all managers around a single API client."""
        return cls(TrustStoreManager(client), WebhookPatcher(client), CRDPatcher(client))

    def create(self, config: CreateConfig) -> CreateResult:
        """Generate and store a CA, certificate and key unless the Secret exists.

        Safe to run repeatedly: an existing Secret is left untouched.

        Raises:
            SecretKeyMissingError: The Secret exists without the CA key.
            GenerationError: Certificate generation failed.
            EncodingError: Certificate or key serialization failed.
            KubernetesConflictError: Another run created the Secret first.
        """
        ca = self._trust_store.load_ca(config.secret_name, config.namespace, config.ca_name)
        if ca is not None:
            logger.info(
                "secret_already_exists", name=config.secret_name, namespace=config.namespace
            )
            return CreateResult.ALREADY_EXISTS

        logger.info("creating_new_secret", name=config.secret_name, namespace=config.namespace)
        generated = generate_certs(config.host)
        self._trust_store.save_certs(
            config.secret_name,
            config.namespace,
            config.secret_data(generated.ca, generated.cert, generated.key),
        )
        return CreateResult.CREATED

    def patch(self, config: PatchConfig) -> None:
        """Install the stored CA bundle into webhooks and CRDs.

        Webhook configurations are patched first, then CRDs selected by
        name and then by API group. The first fatal error stops the flow.

        Raises:
            KubernetesNotFoundError: The Secret or a target object is missing.
            SecretKeyMissingError: The Secret exists without the CA key.
            KubernetesError: Any other API failure.
        """
        ca = self._trust_store.load_ca(config.secret_name, config.namespace, config.ca_name)
        if ca is None:
            raise KubernetesNotFoundError(
                resource_type="Secret",
                resource_name=config.secret_name,
                namespace=config.namespace,
            )

        self._webhooks.patch_webhook_configurations(
            config.webhook_name,
            ca,
            config.failure_policy,
            patch_mutating=config.patch_mutating,
            patch_validating=config.patch_validating,
            version=config.version,
        )

        if config.patches_crds:
            self._crds.patch_custom_resource_definitions(
                config.crds, config.crd_api_groups, ca
            )
