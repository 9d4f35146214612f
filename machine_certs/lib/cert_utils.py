"""Certificate utility functions for key generation, serialization and SAN handling."""

import ipaddress
import uuid
from collections.abc import Iterable

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from .errors import CryptoError, ValidationError
from .policy import DEFAULT_KEY_SIZE


def generate_private_key(key_size: int = DEFAULT_KEY_SIZE) -> RSAPrivateKey:
    """Generate RSA private key with specified size.

    Raises:
        CryptoError: If the key size is rejected by the backend
    """
    try:
        return rsa.generate_private_key(
            public_exponent=65537,
            key_size=key_size,
        )
    except (ValueError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"failed to generate {key_size}-bit RSA key: {e}") from e


def serialize_private_key(key: RSAPrivateKey) -> bytes:
    """Serialize private key to PEM format (PKCS8, no encryption)."""
    return key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )


def deserialize_private_key(pem_data: bytes) -> RSAPrivateKey:
    """Deserialize RSA private key from PEM bytes.

    Raises:
        CryptoError: If the data is not an unencrypted RSA private key
    """
    try:
        key = serialization.load_pem_private_key(pem_data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise CryptoError(f"invalid private key: {e}") from e
    if not isinstance(key, RSAPrivateKey):
        raise CryptoError("expected RSA private key")
    return key


def serialize_certificate(cert: x509.Certificate) -> bytes:
    """Serialize certificate to PEM format."""
    return cert.public_bytes(serialization.Encoding.PEM)


def deserialize_certificate(pem_data: bytes) -> x509.Certificate:
    """Deserialize certificate from PEM bytes.

    Raises:
        CryptoError: If the data is not a PEM certificate
    """
    try:
        return x509.load_pem_x509_certificate(pem_data)
    except ValueError as e:
        raise CryptoError(f"invalid certificate: {e}") from e


def generate_serial_number() -> int:
    """Generate a random 128-bit certificate serial number from UUID4."""
    return uuid.uuid4().int


def get_certificate_serial_hex(cert: x509.Certificate) -> str:
    """Return certificate serial number as hex with colons (e.g., 3A:F2:B1:...)."""
    serial_hex = f"{cert.serial_number:X}"
    if len(serial_hex) % 2 != 0:
        serial_hex = "0" + serial_hex
    return ":".join(serial_hex[i : i + 2] for i in range(0, len(serial_hex), 2))


def verify_issued_by(cert: x509.Certificate, issuer_cert: x509.Certificate) -> bool:
    """Return True if cert's signature verifies against issuer_cert's public key."""
    try:
        cert.verify_directly_issued_by(issuer_cert)
        return True
    except (InvalidSignature, ValueError, TypeError):
        return False


def key_matches_certificate(key: RSAPrivateKey, cert: x509.Certificate) -> bool:
    """Return True if key is the private half of cert's public key."""
    cert_public_key = cert.public_key()
    if not isinstance(cert_public_key, rsa.RSAPublicKey):
        return False
    return key.public_key().public_numbers() == cert_public_key.public_numbers()


def _normalize_dns_name(value: str) -> str:
    """Return value unchanged when ASCII, otherwise its IDNA A-label form."""
    if value.isascii():
        return value
    try:
        return value.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise ValidationError(f"cannot encode DNS name {value!r}: {e}") from e


def build_subject_alternative_names(san_list: Iterable[str]) -> x509.SubjectAlternativeName:
    """Build a SAN extension from IP literals and DNS names.

    Entries that parse as an IP address become IPAddress names; anything else
    is taken verbatim as a DNS name. Blank entries and duplicates are dropped,
    first occurrence wins.

    Raises:
        ValidationError: If no non-empty entry remains
    """
    names: list[x509.GeneralName] = []
    seen: set[str] = set()
    for raw in san_list:
        value = raw.strip()
        if not value or value in seen:
            continue
        seen.add(value)
        try:
            names.append(x509.IPAddress(ipaddress.ip_address(value)))
        except ValueError:
            names.append(x509.DNSName(_normalize_dns_name(value)))

    if not names:
        raise ValidationError("at least one IP address or DNS name is required")
    return x509.SubjectAlternativeName(names)


def extract_san_values(cert: x509.Certificate) -> tuple[list[str], list[str]]:
    """Return (ip_addresses, dns_names) from a certificate's SAN extension.

    Certificates without a SAN extension yield two empty lists.
    """
    try:
        san = cert.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
    except x509.ExtensionNotFound:
        return [], []
    ips = [str(ip) for ip in san.get_values_for_type(x509.IPAddress)]
    dns_names = san.get_values_for_type(x509.DNSName)
    return ips, dns_names
