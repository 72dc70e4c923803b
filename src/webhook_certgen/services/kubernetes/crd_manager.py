"""Conversion webhook caBundle patching for CustomResourceDefinitions."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from webhook_certgen.exceptions import StructuralPreconditionError
from webhook_certgen.services.kubernetes.base import K8sBaseManager
from webhook_certgen.services.kubernetes.webhook_manager import encode_ca_bundle


def set_ca_bundle(crd: Any, ca_bundle: bytes) -> None:
    """Set ``spec.conversion.webhook.clientConfig.caBundle`` on a CRD in place.

    Raises:
        StructuralPreconditionError: The CRD is not set up for webhook conversion.
    """
    conversion = crd.spec.conversion
    if conversion is None:
        raise StructuralPreconditionError("spec.conversion")
    if conversion.webhook is None:
        raise StructuralPreconditionError("spec.conversion.webhook")
    if conversion.webhook.client_config is None:
        raise StructuralPreconditionError("spec.conversion.webhook.clientConfig")
    conversion.webhook.client_config.ca_bundle = encode_ca_bundle(ca_bundle)


class CRDPatcher(K8sBaseManager):
    """Writes a CA bundle into the conversion webhook of selected CRDs.

    A CRD without a webhook conversion block is logged and skipped, but it is
    still written back unchanged so the update is observable to watchers the
    same way as for patched definitions.
    """

    _entity_name = "custom_resource_definition"

    def patch_custom_resource_definitions(
        self,
        names: Iterable[str],
        api_groups: Iterable[str],
        ca_bundle: bytes,
    ) -> None:
        """Patch CRDs selected by name, then CRDs selected by API group.

        Args:
            names: CRD names, e.g. ``widgets.example.com``.
            api_groups: API groups whose CRDs should all be patched.
            ca_bundle: PEM CA bundle.
        """
        names = list(names)
        api_groups = list(api_groups)
        if names:
            self.patch_by_name(names, ca_bundle)
        if api_groups:
            self.patch_by_api_group(api_groups, ca_bundle)
        self._log.info("patched_crds")

    def patch_by_name(self, names: Iterable[str], ca_bundle: bytes) -> None:
        """Patch each named CRD in the order given.

        Raises:
            KubernetesNotFoundError: A named CRD does not exist.
            KubernetesError: Any other read or update failure.
        """
        names = list(names)
        self._log.info("patching_crds", names=names)
        for name in names:
            try:
                crd = self._client.apiextensions_v1.read_custom_resource_definition(name=name)
            except Exception as e:
                self._handle_api_error(e, "CustomResourceDefinition", name)
            self._patch_and_update(crd, ca_bundle)

    def patch_by_api_group(self, api_groups: Iterable[str], ca_bundle: bytes) -> None:
        """Patch every CRD whose ``spec.group`` is one of ``api_groups``.

        Raises:
            KubernetesError: Listing or updating failed.
        """
        groups = set(api_groups)
        self._log.info("patching_crds_by_api_group", api_groups=sorted(groups))
        try:
            result = self._client.apiextensions_v1.list_custom_resource_definition()
        except Exception as e:
            self._handle_api_error(e, "CustomResourceDefinition")

        for crd in result.items:
            if crd.spec.group in groups:
                self._patch_and_update(crd, ca_bundle)

    def _patch_and_update(self, crd: Any, ca_bundle: bytes) -> None:
        name = crd.metadata.name
        patched = True
        try:
            set_ca_bundle(crd, ca_bundle)
        except StructuralPreconditionError as e:
            patched = False
            self._log.warning("skip_patching_crd", name=name, reason=str(e))

        try:
            self._client.apiextensions_v1.replace_custom_resource_definition(name=name, body=crd)
        except Exception as e:
            self._handle_api_error(e, "CustomResourceDefinition", name)

        if patched:
            self._log.info("patched_crd", name=name)
        else:
            self._log.debug("updated_unpatched_crd", name=name)
