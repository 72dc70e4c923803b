"""Certificate generation."""

from webhook_certgen.certs.generator import GeneratedCertificates, generate_certs, parse_hosts

__all__ = ["GeneratedCertificates", "generate_certs", "parse_hosts"]
