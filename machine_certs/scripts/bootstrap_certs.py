#!/usr/bin/env python3
"""Bootstrap the shared CA and client certificate under an output root."""

import argparse
import sys
from pathlib import Path

from machine_certs.lib.certificate_authority import CertificateAuthority
from machine_certs.lib.config import CAConfig
from machine_certs.lib.errors import ProvisioningError
from machine_certs.lib.logging_config import LOGGER
from machine_certs.lib.policy import CERTS_DIR_NAME


def main(argv: list[str] | None = None) -> int:
    """Create ca.pem, ca-key.pem, cert.pem and key.pem if absent.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    parser = argparse.ArgumentParser(description="Bootstrap CA and client certificate")
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=Path("out"),
        help="Output root; certs are written to <out-dir>/certs (default: out)",
    )
    args = parser.parse_args(argv)

    try:
        certs_dir = args.out_dir.absolute() / CERTS_DIR_NAME
        result = CertificateAuthority(CAConfig()).bootstrap(certs_dir)

        if result.created:
            LOGGER.info("CA created:")
            LOGGER.info("  Cert: %s", result.ca_cert_path)
            LOGGER.info("  Serial: %s", result.ca_serial)
            LOGGER.info("Client certificate created:")
            LOGGER.info("  Cert: %s", result.client_cert_path)
            LOGGER.info("  Serial: %s", result.client_serial)
        return 0

    except ProvisioningError as e:
        LOGGER.error("Bootstrap failed: %s", e)
        return 1
    except Exception as e:
        LOGGER.error("Unexpected bootstrap failure: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
