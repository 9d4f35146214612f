"""Provisioning configuration dataclasses."""

import getpass
from dataclasses import dataclass, field, replace
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid

from .errors import ValidationError
from .policy import (
    CERTS_DIR_NAME,
    CA_CERT_NAME,
    CA_KEY_NAME,
    CLIENT_CERT_NAME,
    CLIENT_KEY_NAME,
    DEFAULT_KEY_SIZE,
    DEFAULT_SSH_PORT,
    DEFAULT_SSH_USER,
    DEFAULT_VALIDITY_DAYS,
    FALLBACK_ORGANIZATION,
    MACHINES_DIR_NAME,
    SERVER_CERT_NAME,
    SERVER_KEY_NAME,
)


def _default_organization() -> str:
    """Return the invoking user name, used as the certificate organization."""
    try:
        return getpass.getuser() or FALLBACK_ORGANIZATION
    except (OSError, KeyError):
        return FALLBACK_ORGANIZATION


def validate_machine_name(machine_name: str) -> str:
    """Reject names that are empty or would escape the machines directory.

    Raises:
        ValidationError: If machine_name is empty or is not a single path segment
    """
    if not machine_name:
        raise ValidationError("machine name must be set")
    if machine_name in (".", "..") or "/" in machine_name or "\\" in machine_name:
        raise ValidationError(f"invalid machine name: {machine_name!r}")
    return machine_name


@dataclass
class CAConfig:
    """Certificate policy for the CA bootstrap and leaf issuance."""

    organization: str = field(default_factory=_default_organization)
    ca_validity_days: int = DEFAULT_VALIDITY_DAYS
    client_validity_days: int = DEFAULT_VALIDITY_DAYS
    server_validity_days: int = DEFAULT_VALIDITY_DAYS
    key_size: int = DEFAULT_KEY_SIZE


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name."""

    organization: str
    common_name: str | None = None

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name, skipping unset attributes."""
        attributes = [x509.NameAttribute(oid.NameOID.ORGANIZATION_NAME, self.organization)]
        if self.common_name:
            attributes.append(x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name))
        return x509.Name(attributes)


@dataclass(frozen=True)
class AuthPaths:
    """Absolute paths of the TLS material referenced by a host descriptor."""

    cert_dir: Path
    ca_cert_path: Path
    ca_key_path: Path
    client_cert_path: Path
    client_key_path: Path
    server_cert_path: Path
    server_key_path: Path
    store_path: Path


@dataclass(frozen=True)
class MachineConfig:
    """Immutable description of one provisioning run for one machine.

    Every component receives this explicitly; nothing reads process-wide state.
    """

    out_dir: Path | str
    machine_name: str
    ssh_key_path: Path | str
    server_ip: str = ""
    server_dns: str = ""
    ssh_user: str = DEFAULT_SSH_USER
    ssh_port: int = DEFAULT_SSH_PORT
    key_bits: int = DEFAULT_KEY_SIZE

    def validate(self) -> None:
        """Check required fields.

        Raises:
            ValidationError: If a required field is missing or malformed
        """
        validate_machine_name(self.machine_name)
        if not str(self.ssh_key_path):
            raise ValidationError("ssh key path must be set")
        if not self.server_ip and not self.server_dns:
            raise ValidationError("server IP or server DNS must be set")
        if not self.ssh_user:
            raise ValidationError("ssh user must be set")
        if not 1 <= self.ssh_port <= 65535:
            raise ValidationError(f"ssh port out of range: {self.ssh_port}")

    def resolved(self) -> "MachineConfig":
        """Return a copy with absolute output and SSH key paths."""
        return replace(
            self,
            out_dir=Path(self.out_dir).absolute(),
            ssh_key_path=Path(self.ssh_key_path).absolute(),
        )

    @property
    def certs_dir(self) -> Path:
        return Path(self.out_dir) / CERTS_DIR_NAME

    @property
    def machine_dir(self) -> Path:
        return Path(self.out_dir) / MACHINES_DIR_NAME / self.machine_name

    def certs_file(self, name: str) -> Path:
        return self.certs_dir / name

    def machine_file(self, name: str) -> Path:
        return self.machine_dir / name

    @property
    def san_list(self) -> list[str]:
        """Server identities to embed in the server certificate."""
        return [value for value in (self.server_ip, self.server_dns) if value]

    @property
    def server_organization(self) -> str:
        return self.server_dns or self.machine_name

    def auth_paths(self) -> AuthPaths:
        """Build the auth section paths for this machine's descriptor."""
        return AuthPaths(
            cert_dir=self.certs_dir,
            ca_cert_path=self.certs_file(CA_CERT_NAME),
            ca_key_path=self.certs_file(CA_KEY_NAME),
            client_cert_path=self.certs_file(CLIENT_CERT_NAME),
            client_key_path=self.certs_file(CLIENT_KEY_NAME),
            server_cert_path=self.machine_file(SERVER_CERT_NAME),
            server_key_path=self.machine_file(SERVER_KEY_NAME),
            store_path=self.machine_dir,
        )
