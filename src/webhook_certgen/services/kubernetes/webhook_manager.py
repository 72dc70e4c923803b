"""caBundle and failurePolicy patching for admission webhook configurations.

Each (kind, API version) pair gets a small accessor that knows how to fetch,
edit and write back its object. ``WebhookPatcher`` runs one algorithm over
whichever accessors the caller selects.
"""

from __future__ import annotations

import base64
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from webhook_certgen.integrations.kubernetes.models.admission import (
    ADMISSION_REGISTRATION_GROUP,
    AdmissionRegistrationVersion,
    FailurePolicy,
    WebhookKind,
)
from webhook_certgen.services.kubernetes.base import K8sBaseManager

if TYPE_CHECKING:
    from webhook_certgen.integrations.kubernetes.client import KubernetesClient


def encode_ca_bundle(ca_bundle: bytes) -> str:
    """Encode a PEM bundle the way the API serializes ``[]byte`` fields."""
    return base64.b64encode(ca_bundle).decode()


class WebhookConfigurationAccessor(ABC):
    """Fetch/edit/update operations for one webhook configuration kind and version."""

    kind: ClassVar[WebhookKind]
    version: ClassVar[AdmissionRegistrationVersion]

    def __init__(self, client: KubernetesClient) -> None:
        self._client = client

    @abstractmethod
    def fetch(self, name: str) -> Any:
        """Read the configuration object named ``name``."""

    @abstractmethod
    def entries(self, obj: Any) -> list[Any]:
        """Return the object's webhook entries in order."""

    @abstractmethod
    def set_trust(self, entry: Any, ca_bundle: bytes) -> None:
        """Set ``clientConfig.caBundle`` on one entry."""

    @abstractmethod
    def set_policy(self, entry: Any, policy: FailurePolicy) -> None:
        """Set ``failurePolicy`` on one entry."""

    @abstractmethod
    def update(self, obj: Any) -> Any:
        """Replace the whole object, guarded by its ``resourceVersion``."""


class _TypedAccessor(WebhookConfigurationAccessor):
    """Accessor over the generated ``admissionregistration.k8s.io/v1`` models."""

    version = AdmissionRegistrationVersion.V1

    def entries(self, obj: Any) -> list[Any]:
        return list(obj.webhooks or [])

    def set_trust(self, entry: Any, ca_bundle: bytes) -> None:
        if entry.client_config is None:
            from kubernetes.client import AdmissionregistrationV1WebhookClientConfig

            entry.client_config = AdmissionregistrationV1WebhookClientConfig()
        entry.client_config.ca_bundle = encode_ca_bundle(ca_bundle)

    def set_policy(self, entry: Any, policy: FailurePolicy) -> None:
        entry.failure_policy = policy.value


class ValidatingV1Accessor(_TypedAccessor):
    kind = WebhookKind.VALIDATING

    def fetch(self, name: str) -> Any:
        return self._client.admissionregistration_v1.read_validating_webhook_configuration(
            name=name
        )

    def update(self, obj: Any) -> Any:
        return self._client.admissionregistration_v1.replace_validating_webhook_configuration(
            name=obj.metadata.name, body=obj
        )


class MutatingV1Accessor(_TypedAccessor):
    kind = WebhookKind.MUTATING

    def fetch(self, name: str) -> Any:
        return self._client.admissionregistration_v1.read_mutating_webhook_configuration(
            name=name
        )

    def update(self, obj: Any) -> Any:
        return self._client.admissionregistration_v1.replace_mutating_webhook_configuration(
            name=obj.metadata.name, body=obj
        )


class _UnstructuredAccessor(WebhookConfigurationAccessor):
    """Accessor over plain dicts for versions the generated client lacks.

    The kubernetes Python client dropped the v1beta1 webhook configuration
    models, so these objects go through the generic cluster-scoped object API.
    """

    def fetch(self, name: str) -> Any:
        return self._client.custom_objects.get_cluster_custom_object(
            group=ADMISSION_REGISTRATION_GROUP,
            version=self.version.value,
            plural=self.kind.plural,
            name=name,
        )

    def entries(self, obj: Any) -> list[Any]:
        return list(obj.get("webhooks") or [])

    def set_trust(self, entry: Any, ca_bundle: bytes) -> None:
        client_config = entry.get("clientConfig")
        if client_config is None:
            client_config = entry["clientConfig"] = {}
        client_config["caBundle"] = encode_ca_bundle(ca_bundle)

    def set_policy(self, entry: Any, policy: FailurePolicy) -> None:
        entry["failurePolicy"] = policy.value

    def update(self, obj: Any) -> Any:
        return self._client.custom_objects.replace_cluster_custom_object(
            group=ADMISSION_REGISTRATION_GROUP,
            version=self.version.value,
            plural=self.kind.plural,
            name=obj["metadata"]["name"],
            body=obj,
        )


class ValidatingV1beta1Accessor(_UnstructuredAccessor):
    kind = WebhookKind.VALIDATING
    version = AdmissionRegistrationVersion.V1BETA1


class MutatingV1beta1Accessor(_UnstructuredAccessor):
    kind = WebhookKind.MUTATING
    version = AdmissionRegistrationVersion.V1BETA1


ACCESSORS: dict[
    tuple[WebhookKind, AdmissionRegistrationVersion], type[WebhookConfigurationAccessor]
] = {
    (cls.kind, cls.version): cls
    for cls in (
        ValidatingV1Accessor,
        MutatingV1Accessor,
        ValidatingV1beta1Accessor,
        MutatingV1beta1Accessor,
    )
}


class WebhookPatcher(K8sBaseManager):
    """Writes a CA bundle (and optionally a failure policy) into webhook configurations."""

    _entity_name = "webhook_configuration"

    def patch_webhook_configurations(
        self,
        name: str,
        ca_bundle: bytes,
        failure_policy: FailurePolicy | str | None = None,
        *,
        patch_mutating: bool = True,
        patch_validating: bool = True,
        version: AdmissionRegistrationVersion | str = AdmissionRegistrationVersion.V1,
    ) -> None:
        """Patch the validating and/or mutating configuration named ``name``.

        Validating is patched before mutating. The first failure aborts;
        a kind already patched stays patched.

        Args:
            name: Name shared by the webhook configuration objects.
            ca_bundle: PEM CA bundle to install on every webhook entry.
            failure_policy: Policy for every entry, or None/"" to leave it unchanged.
            patch_mutating: Patch the MutatingWebhookConfiguration.
            patch_validating: Patch the ValidatingWebhookConfiguration.
            version: admissionregistration.k8s.io API version.

        Raises:
            InvalidArgumentError: Unknown version or failure policy; raised before any fetch.
            KubernetesNotFoundError: A selected configuration does not exist.
            KubernetesConflictError: The object changed between read and write.
            KubernetesError: Any other API failure.
        """
        version = AdmissionRegistrationVersion.parse(version)
        failure_policy = FailurePolicy.parse(failure_policy)

        self._log.info(
            "patching_webhook_configurations",
            name=name,
            mutating=patch_mutating,
            validating=patch_validating,
            failure_policy=failure_policy,
            version=version.value,
        )

        for kind, enabled in (
            (WebhookKind.VALIDATING, patch_validating),
            (WebhookKind.MUTATING, patch_mutating),
        ):
            if not enabled:
                self._log.debug("webhook_patch_not_required", kind=kind.value)
                continue
            self.patch_webhook_configuration(
                ACCESSORS[(kind, version)](self._client), name, ca_bundle, failure_policy
            )

        self._log.info("patched_webhook_configurations", name=name)

    def patch_webhook_configuration(
        self,
        accessor: WebhookConfigurationAccessor,
        name: str,
        ca_bundle: bytes,
        failure_policy: FailurePolicy | None,
    ) -> None:
        """Fetch one configuration, rewrite every entry and write it back.

        Args:
            accessor: Accessor for the kind and version to patch.
            name: Configuration name.
            ca_bundle: PEM CA bundle.
            failure_policy: Policy to set, or None to keep each entry's own.
        """
        kind = accessor.kind.value
        try:
            obj = accessor.fetch(name)
        except Exception as e:
            self._handle_api_error(e, kind, name)

        entries = accessor.entries(obj)
        for entry in entries:
            accessor.set_trust(entry, ca_bundle)
            if failure_policy is not None:
                accessor.set_policy(entry, failure_policy)

        try:
            accessor.update(obj)
        except Exception as e:
            self._handle_api_error(e, kind, name)

        self._log.info(
            "patched_webhook_configuration",
            kind=kind,
            name=name,
            api_version=accessor.version.api_version,
            webhooks=len(entries),
        )
