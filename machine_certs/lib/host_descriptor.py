"""Host descriptor model in the docker-machine config.json schema."""

import typing
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from .config import AuthPaths, validate_machine_name
from .errors import SerializationError, ValidationError
from .policy import (
    CONFIG_VERSION,
    DRIVER_NAME,
    ENGINE_INSTALL_URL,
    ENGINE_PORT,
    ENGINE_TLS_VERIFY,
    SSH_KEY_NAME,
    SWARM_HOST,
    SWARM_IMAGE,
    SWARM_STRATEGY,
)


def _field(json_name: str, **kwargs: Any) -> Any:
    """Dataclass field carrying its serialized key name."""
    return field(metadata={"json": json_name}, **kwargs)


def _record_type(hint: Any) -> type["JsonRecord"] | None:
    """Return the JsonRecord class named by hint, unwrapping Optional."""
    for candidate in typing.get_args(hint) or (hint,):
        if (
            typing.get_origin(candidate) is None
            and isinstance(candidate, type)
            and issubclass(candidate, JsonRecord)
        ):
            return candidate
    return None


class JsonRecord:
    """Mixin mapping dataclass fields to their serialized key names."""

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {}
        for f in fields(self):  # type: ignore[arg-type]
            value = getattr(self, f.name)
            if isinstance(value, JsonRecord):
                value = value.to_dict()
            elif isinstance(value, list):
                value = list(value)
            data[f.metadata["json"]] = value
        return data

    @classmethod
    def from_dict(cls, data: Any) -> Any:
        """Load from a decoded JSON object; absent keys keep their defaults.

        Raises:
            SerializationError: If data or a nested section is not an object,
                or a required key is missing
        """
        if not isinstance(data, dict):
            raise SerializationError(f"{cls.__name__} must be a JSON object")

        hints = typing.get_type_hints(cls)
        kwargs: dict[str, Any] = {}
        for f in fields(cls):  # type: ignore[arg-type]
            key = f.metadata["json"]
            if key not in data:
                continue
            value = data[key]
            record_type = _record_type(hints[f.name])
            if record_type is not None and value is not None:
                value = record_type.from_dict(value)
            kwargs[f.name] = value

        try:
            return cls(**kwargs)
        except TypeError as e:
            raise SerializationError(f"invalid {cls.__name__}: {e}") from e


@dataclass
class GenericDriver(JsonRecord):
    """Generic (SSH) driver parameters."""

    ip_address: str = _field("IPAddress")
    machine_name: str = _field("MachineName")
    ssh_user: str = _field("SSHUser")
    ssh_port: int = _field("SSHPort")
    ssh_key_path: str = _field("SSHKeyPath")
    store_path: str = _field("StorePath")
    swarm_master: bool = _field("SwarmMaster", default=False)
    swarm_host: str = _field("SwarmHost", default="")
    swarm_discovery: str = _field("SwarmDiscovery", default="")
    engine_port: int = _field("EnginePort", default=ENGINE_PORT)
    ssh_key: str = _field("SSHKey", default="")


@dataclass
class AuthOptions(JsonRecord):
    """Paths of the TLS material used to reach the machine's engine."""

    cert_dir: str = _field("CertDir")
    ca_cert_path: str = _field("CaCertPath")
    ca_private_key_path: str = _field("CaPrivateKeyPath")
    ca_cert_remote_path: str = _field("CaCertRemotePath", default="")
    server_cert_path: str = _field("ServerCertPath", default="")
    server_key_path: str = _field("ServerKeyPath", default="")
    client_key_path: str = _field("ClientKeyPath", default="")
    server_cert_remote_path: str = _field("ServerCertRemotePath", default="")
    server_key_remote_path: str = _field("ServerKeyRemotePath", default="")
    client_cert_path: str = _field("ClientCertPath", default="")
    server_cert_sans: list[str] | None = _field("ServerCertSANs", default=None)
    store_path: str = _field("StorePath", default="")

    @classmethod
    def from_paths(cls, paths: AuthPaths) -> "AuthOptions":
        return cls(
            cert_dir=str(paths.cert_dir),
            ca_cert_path=str(paths.ca_cert_path),
            ca_private_key_path=str(paths.ca_key_path),
            server_cert_path=str(paths.server_cert_path),
            server_key_path=str(paths.server_key_path),
            client_key_path=str(paths.client_key_path),
            client_cert_path=str(paths.client_cert_path),
            store_path=str(paths.store_path),
        )


@dataclass
class EngineOptions(JsonRecord):
    """Engine install and daemon options, passed through to the consumer."""

    arbitrary_flags: list[str] | None = _field("ArbitraryFlags", default=None)
    dns: list[str] | None = _field("Dns", default=None)
    graph_dir: str = _field("GraphDir", default="")
    env: list[str] | None = _field("Env", default=None)
    ipv6: bool = _field("Ipv6", default=False)
    insecure_registry: list[str] | None = _field("InsecureRegistry", default=None)
    labels: list[str] | None = _field("Labels", default=None)
    log_level: str = _field("LogLevel", default="")
    storage_driver: str = _field("StorageDriver", default="")
    selinux_enabled: bool = _field("SelinuxEnabled", default=False)
    tls_verify: bool = _field("TlsVerify", default=ENGINE_TLS_VERIFY)
    registry_mirror: list[str] | None = _field("RegistryMirror", default=None)
    install_url: str = _field("InstallURL", default=ENGINE_INSTALL_URL)


@dataclass
class SwarmOptions(JsonRecord):
    """Swarm options, passed through to the consumer."""

    is_swarm: bool = _field("IsSwarm", default=False)
    address: str = _field("Address", default="")
    discovery: str = _field("Discovery", default="")
    agent: bool = _field("Agent", default=False)
    master: bool = _field("Master", default=False)
    host: str = _field("Host", default=SWARM_HOST)
    image: str = _field("Image", default=SWARM_IMAGE)
    strategy: str = _field("Strategy", default=SWARM_STRATEGY)
    heartbeat: int = _field("Heartbeat", default=0)
    overcommit: float = _field("Overcommit", default=0.0)
    arbitrary_flags: list[str] | None = _field("ArbitraryFlags", default=None)
    arbitrary_join_flags: list[str] | None = _field("ArbitraryJoinFlags", default=None)
    env: list[str] | None = _field("Env", default=None)
    is_experimental: bool = _field("IsExperimental", default=False)


@dataclass
class HostOptions(JsonRecord):
    driver: str = _field("Driver", default="")
    memory: int = _field("Memory", default=0)
    disk: int = _field("Disk", default=0)
    engine_options: EngineOptions = _field("EngineOptions", default_factory=EngineOptions)
    swarm_options: SwarmOptions = _field("SwarmOptions", default_factory=SwarmOptions)
    auth_options: AuthOptions | None = _field("AuthOptions", default=None)


@dataclass
class HostDescriptor(JsonRecord):
    """Everything a client needs to reach one provisioned machine."""

    config_version: int = _field("ConfigVersion")
    driver: GenericDriver = _field("Driver")
    driver_name: str = _field("DriverName")
    host_options: HostOptions = _field("HostOptions")
    name: str = _field("Name")


def build_host_descriptor(
    machine_name: str,
    store_path: Path,
    ip_address: str,
    ssh_user: str,
    ssh_key_path: Path,
    ssh_port: int,
    auth_paths: AuthPaths,
    engine_options: EngineOptions | None = None,
    swarm_options: SwarmOptions | None = None,
) -> HostDescriptor:
    """Assemble the host descriptor for a machine. Performs no I/O.

    Paths are used as given. Engine and swarm options default to the
    policy values (TLS verification on, spread strategy).

    Raises:
        ValidationError: If the machine name, store path or SSH user is empty
    """
    validate_machine_name(machine_name)
    if not store_path or Path(store_path) == Path():
        raise ValidationError("store path must be set")
    if not ssh_user:
        raise ValidationError("ssh user must be set")

    driver = GenericDriver(
        ip_address=ip_address,
        machine_name=machine_name,
        ssh_user=ssh_user,
        ssh_port=ssh_port,
        ssh_key_path=str(ssh_key_path),
        store_path=str(store_path),
        ssh_key=str(Path(store_path) / SSH_KEY_NAME),
    )
    return HostDescriptor(
        config_version=CONFIG_VERSION,
        driver=driver,
        driver_name=DRIVER_NAME,
        host_options=HostOptions(
            engine_options=engine_options if engine_options is not None else EngineOptions(),
            swarm_options=swarm_options if swarm_options is not None else SwarmOptions(),
            auth_options=AuthOptions.from_paths(auth_paths),
        ),
        name=machine_name,
    )
