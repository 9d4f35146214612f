"""Persistent store for host descriptors under an output root."""

import json
from pathlib import Path

from .config import validate_machine_name
from .errors import SerializationError
from .file_utils import ensure_dir, read_file, write_file
from .host_descriptor import HostDescriptor
from .policy import DESCRIPTOR_INDENT, DESCRIPTOR_NAME, MACHINES_DIR_NAME


class DescriptorStore:
    """Reads and writes ``<root>/machines/<name>/config.json``.

    Writes are plain overwrites without locking or atomic rename: a crash
    mid-write can leave a truncated descriptor, which load() then reports
    as a SerializationError.
    """

    def __init__(self, output_root: Path) -> None:
        self.output_root = Path(output_root)

    def machine_dir(self, machine_name: str) -> Path:
        """Return the machine directory, rejecting names that leave the machines tree.

        Raises:
            ValidationError: If machine_name is empty or not a single path segment
        """
        return self.output_root / MACHINES_DIR_NAME / validate_machine_name(machine_name)

    def config_path(self, machine_name: str) -> Path:
        return self.machine_dir(machine_name) / DESCRIPTOR_NAME

    def exists(self, machine_name: str) -> bool:
        return self.config_path(machine_name).exists()

    def save(self, descriptor: HostDescriptor) -> Path:
        """Serialize descriptor to its machine's config.json, replacing any prior file.

        Returns:
            Path of the written descriptor

        Raises:
            SerializationError: If the descriptor cannot be encoded as JSON
            ValidationError: If the descriptor name would escape the machines directory
            StorageError: If the file cannot be written
        """
        if not descriptor.name:
            raise SerializationError("descriptor has no machine name")
        path = self.config_path(descriptor.name)
        try:
            payload = json.dumps(descriptor.to_dict(), indent=DESCRIPTOR_INDENT)
        except (TypeError, ValueError) as e:
            raise SerializationError(f"failed to encode descriptor for {descriptor.name}: {e}") from e

        ensure_dir(path.parent)
        return write_file(path, payload.encode("utf-8"))

    def load(self, machine_name: str) -> HostDescriptor:
        """Load a previously saved descriptor.

        Raises:
            StorageError: If no descriptor exists for machine_name
            SerializationError: If the file is not a valid descriptor
        """
        path = self.config_path(machine_name)
        raw = read_file(path)
        try:
            data = json.loads(raw)
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SerializationError(f"invalid descriptor {path}: {e}") from e
        return HostDescriptor.from_dict(data)
