"""Closed vocabularies for admissionregistration.k8s.io patching."""

from __future__ import annotations

from enum import StrEnum

from webhook_certgen.exceptions import InvalidArgumentError

ADMISSION_REGISTRATION_GROUP = "admissionregistration.k8s.io"


class AdmissionRegistrationVersion(StrEnum):
    """Supported admissionregistration.k8s.io API versions."""

    V1 = "v1"
    V1BETA1 = "v1beta1"

    @property
    def api_version(self) -> str:
        """Full apiVersion string, e.g. ``admissionregistration.k8s.io/v1``."""
        return f"{ADMISSION_REGISTRATION_GROUP}/{self.value}"

    @classmethod
    def parse(cls, value: str | AdmissionRegistrationVersion) -> AdmissionRegistrationVersion:
        """Resolve a user-supplied version string.

        Raises:
            InvalidArgumentError: For any value other than ``v1`` or ``v1beta1``.
        """
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(
                f"invalid admissionregistration.k8s.io version: {value}",
                argument="admission-registration-version",
            ) from None


class FailurePolicy(StrEnum):
    """Webhook failure policies."""

    IGNORE = "Ignore"
    FAIL = "Fail"

    @classmethod
    def parse(cls, value: str | FailurePolicy | None) -> FailurePolicy | None:
        """Resolve a user-supplied failure policy; empty means "leave unchanged".

        Raises:
            InvalidArgumentError: For anything but "", ``Ignore`` or ``Fail``.
        """
        if not value:
            return None
        try:
            return cls(value)
        except ValueError:
            raise InvalidArgumentError(
                f"patch-failure-policy {value} is not valid, expected Ignore or Fail",
                argument="patch-failure-policy",
            ) from None


class WebhookKind(StrEnum):
    """The two webhook configuration kinds, in patch order."""

    VALIDATING = "ValidatingWebhookConfiguration"
    MUTATING = "MutatingWebhookConfiguration"

    @property
    def plural(self) -> str:
        """Resource plural used in REST paths."""
        return f"{self.name.lower()}webhookconfigurations"
