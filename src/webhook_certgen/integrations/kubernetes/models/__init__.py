"""Kubernetes resource vocabularies."""

from webhook_certgen.integrations.kubernetes.models.admission import (
    ADMISSION_REGISTRATION_GROUP,
    AdmissionRegistrationVersion,
    FailurePolicy,
    WebhookKind,
)

__all__ = [
    "ADMISSION_REGISTRATION_GROUP",
    "AdmissionRegistrationVersion",
    "FailurePolicy",
    "WebhookKind",
]
