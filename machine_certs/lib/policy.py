"""Hard-coded provisioning policy: file layout, descriptor defaults, key policy."""

# Output root layout
CERTS_DIR_NAME = "certs"
MACHINES_DIR_NAME = "machines"

CA_CERT_NAME = "ca.pem"
CA_KEY_NAME = "ca-key.pem"
CLIENT_CERT_NAME = "cert.pem"
CLIENT_KEY_NAME = "key.pem"
SERVER_CERT_NAME = "server.pem"
SERVER_KEY_NAME = "server-key.pem"
SSH_KEY_NAME = "id_rsa"
DESCRIPTOR_NAME = "config.json"
BOOTSTRAP_LOCK_NAME = ".bootstrap.lock"

# Files copied from the shared certs tree into every machine directory
SHARED_CERT_FILES = (CA_CERT_NAME, CLIENT_CERT_NAME, CLIENT_KEY_NAME)

PRIVATE_FILE_MODE = 0o600
PUBLIC_FILE_MODE = 0o644

# Key and validity policy
DEFAULT_KEY_SIZE = 2048
DEFAULT_VALIDITY_DAYS = 1080
FALLBACK_ORGANIZATION = "machine-certs"

# Host descriptor
CONFIG_VERSION = 3
DRIVER_NAME = "generic"
DEFAULT_SSH_USER = "root"
DEFAULT_SSH_PORT = 22

ENGINE_PORT = 2376
ENGINE_INSTALL_URL = "https://get.docker.com"
ENGINE_TLS_VERIFY = True

SWARM_HOST = "tcp://0.0.0.0:3376"
SWARM_IMAGE = "swarm:latest"
SWARM_STRATEGY = "spread"

DESCRIPTOR_INDENT = 4
