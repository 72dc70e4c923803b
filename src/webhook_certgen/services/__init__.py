"""Service layer."""

from webhook_certgen.services.certgen import CertgenService, CreateResult

__all__ = ["CertgenService", "CreateResult"]
