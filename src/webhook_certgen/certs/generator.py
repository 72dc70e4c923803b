"""Self-signed CA and leaf certificate generation.

Produces a CA certificate, a leaf certificate signed by it and the leaf
private key, each PEM-encoded. Nothing here touches the network or the
cluster; callers decide where the material is stored.
"""

from __future__ import annotations

import ipaddress
import secrets
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import structlog
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import ExtendedKeyUsageOID, NameOID

from webhook_certgen.exceptions import EncodingError, GenerationError

logger = structlog.get_logger()

# Absorbs clock skew between this process and the first verifying client
CLOCK_SKEW_ALLOWANCE = timedelta(minutes=5)
VALIDITY_PERIOD = timedelta(days=100 * 365)
SERIAL_NUMBER_BITS = 128

CA_ORGANIZATION = "nil1"
LEAF_ORGANIZATION = "nil2"


@dataclass(frozen=True)
class GeneratedCertificates:
    """PEM-encoded output of one generation run.

    Attributes:
        ca: CA certificate, distributed as the caBundle.
        cert: Leaf certificate signed by the CA.
        key: Leaf private key.
    """

    ca: bytes
    cert: bytes
    key: bytes


def parse_hosts(host: str) -> list[x509.GeneralName]:
    """Split a comma-separated host specification into SAN entries.

    Entries parseable as an IP address become ``IPAddress`` names, all
    others ``DNSName`` names. Order is preserved.

    Args:
        host: e.g. ``"10.0.0.1,example.com"``.

    Returns:
        The subject alternative names.
    """
    names: list[x509.GeneralName] = []
    for entry in host.split(","):
        if not entry:
            continue
        try:
            names.append(x509.IPAddress(ipaddress.ip_address(entry)))
        except ValueError:
            names.append(x509.DNSName(entry))
    return names


def _random_serial_number() -> int:
    try:
        serial = 0
        while serial == 0:
            serial = secrets.randbelow(1 << SERIAL_NUMBER_BITS)
        return serial
    except OSError as e:
        raise GenerationError(f"failed to generate serial number: {e}") from e


def _generate_private_key() -> ec.EllipticCurvePrivateKey:
    try:
        return ec.generate_private_key(ec.SECP256R1())
    except Exception as e:
        raise GenerationError(f"failed to generate private key: {e}") from e


def _organization_name(organization: str) -> x509.Name:
    return x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization)])


def _with_alternative_names(
    builder: x509.CertificateBuilder, names: list[x509.GeneralName]
) -> x509.CertificateBuilder:
    if not names:
        return builder
    return builder.add_extension(x509.SubjectAlternativeName(names), critical=False)


def _build_ca_certificate(
    key: ec.EllipticCurvePrivateKey,
    names: list[x509.GeneralName],
    not_before: datetime,
    not_after: datetime,
) -> x509.Certificate:
    subject = _organization_name(CA_ORGANIZATION)
    builder = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(_random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=True, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=False,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=True,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage(
                [ExtendedKeyUsageOID.CLIENT_AUTH, ExtendedKeyUsageOID.SERVER_AUTH]
            ),
            critical=False,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()),
            critical=False,
        )
    )
    builder = _with_alternative_names(builder, names)
    try:
        return builder.sign(private_key=key, algorithm=hashes.SHA256())
    except (TypeError, ValueError) as e:
        raise GenerationError(f"error creating CA certificate: {e}") from e


def _build_leaf_certificate(
    key: ec.EllipticCurvePrivateKey,
    ca_certificate: x509.Certificate,
    ca_key: ec.EllipticCurvePrivateKey,
    names: list[x509.GeneralName],
    not_before: datetime,
    not_after: datetime,
) -> x509.Certificate:
    builder = (
        x509.CertificateBuilder()
        .subject_name(_organization_name(LEAF_ORGANIZATION))
        .issuer_name(ca_certificate.subject)
        .public_key(key.public_key())
        .serial_number(_random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .add_extension(x509.BasicConstraints(ca=False, path_length=None), critical=True)
        .add_extension(
            x509.KeyUsage(
                digital_signature=True,
                content_commitment=False,
                key_encipherment=True,
                data_encipherment=False,
                key_agreement=False,
                key_cert_sign=False,
                crl_sign=False,
                encipher_only=False,
                decipher_only=False,
            ),
            critical=True,
        )
        .add_extension(
            x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]),
            critical=False,
        )
        .add_extension(
            x509.SubjectKeyIdentifier.from_public_key(key.public_key()),
            critical=False,
        )
        .add_extension(
            x509.AuthorityKeyIdentifier.from_issuer_public_key(ca_key.public_key()),
            critical=False,
        )
    )
    builder = _with_alternative_names(builder, names)
    try:
        return builder.sign(private_key=ca_key, algorithm=hashes.SHA256())
    except (TypeError, ValueError) as e:
        raise GenerationError(f"error creating leaf certificate: {e}") from e


def encode_certificate(certificate: x509.Certificate) -> bytes:
    """PEM-encode a certificate."""
    try:
        return certificate.public_bytes(serialization.Encoding.PEM)
    except ValueError as e:
        raise EncodingError(f"unable to encode certificate: {e}") from e


def encode_private_key(key: ec.EllipticCurvePrivateKey) -> bytes:
    """PEM-encode an EC private key as an unencrypted ``EC PRIVATE KEY`` block."""
    try:
        return key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    except (TypeError, ValueError) as e:
        raise EncodingError(f"unable to marshal ECDSA private key: {e}") from e


def generate_certs(host: str) -> GeneratedCertificates:
    """Generate a CA plus a leaf certificate and key for ``host``.

    Both certificates share the validity window
    ``[now - 5 minutes, now - 5 minutes + 100 years)`` and carry the same
    subject alternative names.

    Args:
        host: Comma-separated hostnames and IP addresses.

    Returns:
        The PEM-encoded CA, leaf certificate and leaf key.

    Raises:
        GenerationError: Random source, key generation or signing failed.
        EncodingError: The leaf key or a certificate could not be serialized.
    """
    not_before = datetime.now(UTC) - CLOCK_SKEW_ALLOWANCE
    not_after = not_before + VALIDITY_PERIOD
    names = parse_hosts(host)

    logger.debug("generating_ca", hosts=host)
    ca_key = _generate_private_key()
    ca_certificate = _build_ca_certificate(ca_key, names, not_before, not_after)
    ca = encode_certificate(ca_certificate)

    logger.debug("generating_leaf_certificate", hosts=host)
    leaf_key = _generate_private_key()
    key = encode_private_key(leaf_key)
    leaf_certificate = _build_leaf_certificate(
        leaf_key, ca_certificate, ca_key, names, not_before, not_after
    )
    cert = encode_certificate(leaf_certificate)

    logger.debug("generated_certificates", not_after=not_after.isoformat())
    return GeneratedCertificates(ca=ca, cert=cert, key=key)
