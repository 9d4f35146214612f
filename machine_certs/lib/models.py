"""Result models for provisioning operations."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class BootstrapStatus(Enum):
    """Outcome of a CA bootstrap that did not fail."""

    ALREADY_PRESENT = "already-present"
    CREATED = "created"


@dataclass
class BootstrapResult:
    """Result from CA bootstrap operation.

    Paths are always populated; serial numbers only when the CA was created
    by this call.
    """

    status: BootstrapStatus
    ca_cert_path: Path
    ca_key_path: Path
    client_cert_path: Path
    client_key_path: Path
    ca_serial: str | None = None
    client_serial: str | None = None

    @property
    def created(self) -> bool:
        return self.status is BootstrapStatus.CREATED


@dataclass
class ServerCertResult:
    """Result from server certificate issuance."""

    cert_path: Path
    key_path: Path
    serial_number: str
    ip_addresses: list[str]
    dns_names: list[str]


@dataclass
class ProvisionResult:
    """Result from a full machine provisioning run."""

    machine_name: str
    bootstrap: BootstrapResult
    server_cert: ServerCertResult
    descriptor_path: Path
