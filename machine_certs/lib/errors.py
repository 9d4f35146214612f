"""Exception hierarchy for machine provisioning."""


class ProvisioningError(Exception):
    """Base class for every error raised by machine_certs."""


class StorageError(ProvisioningError):
    """Filesystem read, write, copy, permission or lock failure."""


class CryptoError(ProvisioningError):
    """Key generation, PEM parsing or certificate signing failure."""


class ValidationError(ProvisioningError, ValueError):
    """Malformed or missing required input."""


class SerializationError(ProvisioningError):
    """Host descriptor could not be encoded or decoded."""
