"""Server certificate issuance against an existing CA."""

from collections.abc import Sequence
from pathlib import Path

from .cert_utils import (
    build_subject_alternative_names,
    deserialize_certificate,
    deserialize_private_key,
    extract_san_values,
    generate_private_key,
    get_certificate_serial_hex,
    key_matches_certificate,
    serialize_certificate,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .config import DistinguishedName
from .errors import CryptoError, ValidationError
from .file_utils import read_file, write_file
from .models import ServerCertResult
from .policy import DEFAULT_KEY_SIZE, DEFAULT_VALIDITY_DAYS, PRIVATE_FILE_MODE, PUBLIC_FILE_MODE


class ServerCertIssuer:
    """Issues server leaf certificates bound to an IP address and/or DNS name."""

    def __init__(self, validity_days: int = DEFAULT_VALIDITY_DAYS) -> None:
        self.validity_days = validity_days

    def issue(
        self,
        san_list: Sequence[str],
        server_cert_path: Path,
        server_key_path: Path,
        ca_cert_path: Path,
        ca_key_path: Path,
        organization: str,
        key_bits: int = DEFAULT_KEY_SIZE,
    ) -> ServerCertResult:
        """Generate a server key pair and a CA-signed certificate for san_list.

        Everything is computed before the first write; existing files at the
        output paths are overwritten.

        Args:
            san_list: IP addresses and/or DNS names, at least one non-empty
            server_cert_path: Output path for the server certificate
            server_key_path: Output path for the server private key
            ca_cert_path: Existing CA certificate
            ca_key_path: Existing CA private key
            organization: Organization of the server certificate subject
            key_bits: RSA key size for the server key

        Returns:
            ServerCertResult with paths, serial and the embedded SANs

        Raises:
            ValidationError: If san_list has no usable entry or organization is empty
            StorageError: If CA material cannot be read or outputs written
            CryptoError: If CA material is invalid, the CA key does not match
                the CA certificate, or signing fails
        """
        san = build_subject_alternative_names(san_list)
        if not organization:
            raise ValidationError("organization must be set")

        ca_cert = deserialize_certificate(read_file(ca_cert_path))
        ca_key = deserialize_private_key(read_file(ca_key_path))
        if not key_matches_certificate(ca_key, ca_cert):
            raise CryptoError(f"CA key {ca_key_path} does not match CA certificate {ca_cert_path}")

        server_key = generate_private_key(key_bits)
        csr = CertificateBuilder.build_csr(
            DistinguishedName(organization=organization), server_key, san=san
        )
        server_cert = CertificateBuilder.build_server_certificate(
            csr=csr,
            issuer_cert=ca_cert,
            issuer_key=ca_key,
            validity_days=self.validity_days,
        )

        # server.pem is replaced only after its key is on disk
        write_file(server_key_path, serialize_private_key(server_key), PRIVATE_FILE_MODE)
        write_file(server_cert_path, serialize_certificate(server_cert), PUBLIC_FILE_MODE)

        ips, dns_names = extract_san_values(server_cert)
        return ServerCertResult(
            cert_path=server_cert_path,
            key_path=server_key_path,
            serial_number=get_certificate_serial_hex(server_cert),
            ip_addresses=ips,
            dns_names=dns_names,
        )
