"""Kubernetes service module.

Managers for the cluster objects this tool reads and writes: the
certificate Secret, admission webhook configurations and CRDs.
"""

from webhook_certgen.services.kubernetes.crd_manager import CRDPatcher
from webhook_certgen.services.kubernetes.trust_store import TrustStoreManager
from webhook_certgen.services.kubernetes.webhook_manager import WebhookPatcher

__all__ = [
    "CRDPatcher",
    "TrustStoreManager",
    "WebhookPatcher",
]
