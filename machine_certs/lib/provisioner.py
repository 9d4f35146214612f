"""End-to-end provisioning of one machine's TLS identity and descriptor."""

from .certificate_authority import CertificateAuthority
from .config import CAConfig, MachineConfig
from .descriptor_store import DescriptorStore
from .file_utils import copy_file, ensure_dir
from .host_descriptor import build_host_descriptor
from .logging_config import LOGGER
from .models import ProvisionResult
from .policy import (
    CA_CERT_NAME,
    CA_KEY_NAME,
    PRIVATE_FILE_MODE,
    SERVER_CERT_NAME,
    SERVER_KEY_NAME,
    SHARED_CERT_FILES,
    SSH_KEY_NAME,
)
from .server_cert_issuer import ServerCertIssuer


class MachineProvisioner:
    """Runs bootstrap, file copies, server issuance and descriptor save in order."""

    def __init__(self, config: MachineConfig, ca_config: CAConfig | None = None) -> None:
        config.validate()
        self.config = config.resolved()
        self.ca_config = ca_config or CAConfig()

    def provision(self) -> ProvisionResult:
        """Provision the configured machine.

        Raises:
            ProvisioningError: Any failure, surfaced from the failing step
        """
        config = self.config

        bootstrap = CertificateAuthority(self.ca_config).bootstrap(config.certs_dir)

        ensure_dir(config.machine_dir)
        for name in SHARED_CERT_FILES:
            copy_file(config.certs_file(name), config.machine_file(name))
        copy_file(config.ssh_key_path, config.machine_file(SSH_KEY_NAME), mode=PRIVATE_FILE_MODE)

        issuer = ServerCertIssuer(validity_days=self.ca_config.server_validity_days)
        server_cert = issuer.issue(
            san_list=config.san_list,
            server_cert_path=config.machine_file(SERVER_CERT_NAME),
            server_key_path=config.machine_file(SERVER_KEY_NAME),
            ca_cert_path=config.machine_file(CA_CERT_NAME),
            ca_key_path=config.certs_file(CA_KEY_NAME),
            organization=config.server_organization,
            key_bits=config.key_bits,
        )
        LOGGER.info("Server cert files successfully created for %s", config.machine_name)

        descriptor = build_host_descriptor(
            machine_name=config.machine_name,
            store_path=config.machine_dir,
            ip_address=config.server_ip,
            ssh_user=config.ssh_user,
            ssh_key_path=config.ssh_key_path,
            ssh_port=config.ssh_port,
            auth_paths=config.auth_paths(),
        )
        descriptor_path = DescriptorStore(config.out_dir).save(descriptor)
        LOGGER.info("config.json successfully created: %s", descriptor_path)

        return ProvisionResult(
            machine_name=config.machine_name,
            bootstrap=bootstrap,
            server_cert=server_cert,
            descriptor_path=descriptor_path,
        )
