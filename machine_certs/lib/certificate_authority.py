"""Certificate authority bootstrap: shared CA and client certificate."""

from pathlib import Path

from .cert_utils import (
    generate_private_key,
    get_certificate_serial_hex,
    serialize_certificate,
    serialize_private_key,
)
from .certificate_builder import CertificateBuilder
from .config import CAConfig, DistinguishedName
from .file_utils import ensure_dir, exclusive_lock, write_file
from .logging_config import LOGGER
from .models import BootstrapResult, BootstrapStatus
from .policy import (
    BOOTSTRAP_LOCK_NAME,
    CA_CERT_NAME,
    CA_KEY_NAME,
    CLIENT_CERT_NAME,
    CLIENT_KEY_NAME,
    PRIVATE_FILE_MODE,
    PUBLIC_FILE_MODE,
)


class CertificateAuthority:
    """Creates or reuses the CA and client certificate shared by all machines."""

    def __init__(self, config: CAConfig, lock_timeout: float = 30.0) -> None:
        """Initialize with certificate policy.

        Args:
            config: CA configuration with organization, validity and key size
            lock_timeout: Seconds to wait for a concurrent bootstrap to finish
        """
        self.config = config
        self.lock_timeout = lock_timeout

    @staticmethod
    def is_bootstrapped(certs_dir: Path) -> bool:
        """Return True if the CA certificate already exists under certs_dir.

        ca.pem is written last during bootstrap, so its presence implies the
        other three artifacts were written too.
        """
        return (certs_dir / CA_CERT_NAME).exists()

    def bootstrap(self, certs_dir: Path) -> BootstrapResult:
        """Create the CA key pair and a client certificate signed by it.

        No-op when ca.pem already exists. The existence check is repeated
        under an exclusive lock so two concurrent runs cannot both create a CA.

        Args:
            certs_dir: Shared certs directory of the output root

        Returns:
            BootstrapResult with status ALREADY_PRESENT or CREATED

        Raises:
            StorageError: If a file cannot be written or the lock times out
            CryptoError: If key generation or signing fails
        """
        if self.is_bootstrapped(certs_dir):
            LOGGER.info("Client certs found in %s, skipping client cert creation", certs_dir)
            return self._result(certs_dir, BootstrapStatus.ALREADY_PRESENT)

        ensure_dir(certs_dir)
        with exclusive_lock(certs_dir / BOOTSTRAP_LOCK_NAME, timeout=self.lock_timeout):
            if self.is_bootstrapped(certs_dir):
                LOGGER.info("Client certs created concurrently in %s, skipping", certs_dir)
                return self._result(certs_dir, BootstrapStatus.ALREADY_PRESENT)
            return self._create(certs_dir)

    def _create(self, certs_dir: Path) -> BootstrapResult:
        ca_key = generate_private_key(self.config.key_size)
        ca_cert = CertificateBuilder.build_ca(
            subject_dn=DistinguishedName(
                organization=self.config.organization,
                common_name=f"{self.config.organization} CA",
            ),
            private_key=ca_key,
            validity_days=self.config.ca_validity_days,
        )

        client_key = generate_private_key(self.config.key_size)
        csr = CertificateBuilder.build_csr(
            DistinguishedName(
                organization=self.config.organization,
                common_name=f"{self.config.organization} client",
            ),
            client_key,
        )
        client_cert = CertificateBuilder.build_client_certificate(
            csr=csr,
            issuer_cert=ca_cert,
            issuer_key=ca_key,
            validity_days=self.config.client_validity_days,
        )

        result = self._result(certs_dir, BootstrapStatus.CREATED)
        write_file(result.ca_key_path, serialize_private_key(ca_key), PRIVATE_FILE_MODE)
        write_file(result.client_key_path, serialize_private_key(client_key), PRIVATE_FILE_MODE)
        write_file(result.client_cert_path, serialize_certificate(client_cert), PUBLIC_FILE_MODE)
        # Written last: its presence marks a complete bootstrap
        write_file(result.ca_cert_path, serialize_certificate(ca_cert), PUBLIC_FILE_MODE)

        result.ca_serial = get_certificate_serial_hex(ca_cert)
        result.client_serial = get_certificate_serial_hex(client_cert)
        LOGGER.info("Client cert files successfully created in %s", certs_dir)
        return result

    @staticmethod
    def _result(certs_dir: Path, status: BootstrapStatus) -> BootstrapResult:
        return BootstrapResult(
            status=status,
            ca_cert_path=certs_dir / CA_CERT_NAME,
            ca_key_path=certs_dir / CA_KEY_NAME,
            client_cert_path=certs_dir / CLIENT_CERT_NAME,
            client_key_path=certs_dir / CLIENT_KEY_NAME,
        )
