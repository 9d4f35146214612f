#!/usr/bin/env python3
"""Provision TLS certificates and a docker-machine config.json for a remote host."""

import argparse
import sys
from pathlib import Path

from machine_certs.lib.config import MachineConfig
from machine_certs.lib.errors import ProvisioningError
from machine_certs.lib.logging_config import LOGGER
from machine_certs.lib.policy import DEFAULT_SSH_PORT, DEFAULT_SSH_USER
from machine_certs.lib.provisioner import MachineProvisioner


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Create CA, client and server certs plus config.json for a machine"
    )
    parser.add_argument(
        "--out-dir",
        type=Path,
        default=Path("out"),
        help="Path to the output certs directory (default: out)",
    )
    parser.add_argument("--server-ip", default="", help="Server IP (optional if DNS is defined)")
    parser.add_argument("--server-dns", default="", help="Server DNS (optional if IP is defined)")
    parser.add_argument("--machine-name", default="", help="Machine name")
    parser.add_argument(
        "--ssh-key-path",
        default="",
        help="Path to ssh key to set in config.json",
    )
    parser.add_argument(
        "--ssh-user",
        default=DEFAULT_SSH_USER,
        help=f"SSH user to set in config.json (default: {DEFAULT_SSH_USER})",
    )
    parser.add_argument(
        "--ssh-port",
        type=int,
        default=DEFAULT_SSH_PORT,
        help=f"SSH port to set in config.json (default: {DEFAULT_SSH_PORT})",
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Provision one machine.

    Returns:
        Exit code (0 for success, 1 for failure)
    """
    args = build_parser().parse_args(argv)

    try:
        config = MachineConfig(
            out_dir=args.out_dir,
            machine_name=args.machine_name,
            ssh_key_path=args.ssh_key_path,
            server_ip=args.server_ip,
            server_dns=args.server_dns,
            ssh_user=args.ssh_user,
            ssh_port=args.ssh_port,
        )
        provisioner = MachineProvisioner(config)

        LOGGER.info("Provisioning machine: %s", config.machine_name)
        result = provisioner.provision()

        LOGGER.info("CA: %s (%s)", result.bootstrap.ca_cert_path, result.bootstrap.status.value)
        LOGGER.info("Server cert: %s", result.server_cert.cert_path)
        LOGGER.info("  Serial: %s", result.server_cert.serial_number)
        LOGGER.info("  IPs: %s", ", ".join(result.server_cert.ip_addresses) or "-")
        LOGGER.info("  DNS: %s", ", ".join(result.server_cert.dns_names) or "-")
        LOGGER.info("Descriptor: %s", result.descriptor_path)
        return 0

    except ProvisioningError as e:
        LOGGER.error("Provisioning failed: %s", e)
        return 1
    except Exception as e:
        LOGGER.error("Unexpected provisioning failure: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
