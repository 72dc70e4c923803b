"""Self-signed CA provisioning and caBundle patching for Kubernetes webhooks."""

from webhook_certgen.__version__ import __version__

__all__ = ["__version__"]
