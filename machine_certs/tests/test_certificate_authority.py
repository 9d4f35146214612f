"""Tests for CertificateAuthority bootstrap."""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from cryptography import x509

from machine_certs.lib.cert_utils import deserialize_certificate, deserialize_private_key, verify_issued_by
from machine_certs.lib.certificate_authority import CertificateAuthority
from machine_certs.lib.config import CAConfig
from machine_certs.lib.errors import CryptoError, StorageError
from machine_certs.lib.models import BootstrapStatus

ARTIFACTS = ("ca.pem", "ca-key.pem", "cert.pem", "key.pem")


@pytest.fixture
def certs_dir(temp_output_dir: Path) -> Path:
    return temp_output_dir / "certs"


class TestBootstrap:
    """Tests for bootstrap() on an empty output root."""

    def test_creates_all_four_artifacts(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """Bootstrap writes CA cert/key and client cert/key."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        assert result.status is BootstrapStatus.CREATED
        assert result.created is True
        for name in ARTIFACTS:
            assert (certs_dir / name).is_file()
        assert result.ca_cert_path == certs_dir / "ca.pem"
        assert result.client_key_path == certs_dir / "key.pem"

    def test_reports_serial_numbers(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """CA and client serials are reported and distinct."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        assert result.ca_serial is not None
        assert result.client_serial is not None
        assert result.ca_serial != result.client_serial

    def test_ca_certificate_is_ca(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """CA certificate carries the CA basic constraint and is self-signed."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        ca_cert = deserialize_certificate(result.ca_cert_path.read_bytes())
        bc = ca_cert.extensions.get_extension_for_class(x509.BasicConstraints).value
        assert bc.ca is True
        assert verify_issued_by(ca_cert, ca_cert)

    def test_ca_key_matches_ca_cert(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """ca-key.pem is the private half of ca.pem."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        ca_cert = deserialize_certificate(result.ca_cert_path.read_bytes())
        ca_key = deserialize_private_key(result.ca_key_path.read_bytes())
        assert ca_key.public_key().public_numbers() == ca_cert.public_key().public_numbers()  # type: ignore[union-attr]

    def test_client_certificate_chains_to_ca(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """cert.pem verifies against ca.pem and is not a CA."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        ca_cert = deserialize_certificate(result.ca_cert_path.read_bytes())
        client_cert = deserialize_certificate(result.client_cert_path.read_bytes())
        bc = client_cert.extensions.get_extension_for_class(x509.BasicConstraints).value
        assert verify_issued_by(client_cert, ca_cert)
        assert bc.ca is False

    def test_organization_from_config(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """CA subject organization comes from CAConfig."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        ca_cert = deserialize_certificate(result.ca_cert_path.read_bytes())
        org = ca_cert.subject.get_attributes_for_oid(x509.NameOID.ORGANIZATION_NAME)[0].value
        assert org == "Test Org"

    def test_ca_key_never_in_other_files(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """CA private key material appears only in ca-key.pem."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        ca_key_body = result.ca_key_path.read_bytes().split(b"\n")[1]
        for name in ("ca.pem", "cert.pem", "key.pem"):
            assert ca_key_body not in (certs_dir / name).read_bytes()

    @pytest.mark.skipif(sys.platform == "win32", reason="POSIX permissions")
    def test_private_keys_are_owner_only(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """Private keys are 0600, certificates 0644."""
        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        assert result.ca_key_path.stat().st_mode & 0o777 == 0o600
        assert result.client_key_path.stat().st_mode & 0o777 == 0o600
        assert result.ca_cert_path.stat().st_mode & 0o777 == 0o644

    def test_lock_file_removed_after_bootstrap(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """The bootstrap lock does not outlive the call."""
        CertificateAuthority(ca_config).bootstrap(certs_dir)

        assert not (certs_dir / ".bootstrap.lock").exists()


class TestBootstrapIdempotency:
    """Tests for the ca.pem existence short-circuit."""

    def test_second_call_writes_nothing(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """Second bootstrap returns ALREADY_PRESENT and leaves files untouched."""
        authority = CertificateAuthority(ca_config)
        authority.bootstrap(certs_dir)
        before = {name: (certs_dir / name).read_bytes() for name in ARTIFACTS}
        mtimes = {name: (certs_dir / name).stat().st_mtime_ns for name in ARTIFACTS}

        with patch("machine_certs.lib.certificate_authority.write_file") as write_file:
            result = authority.bootstrap(certs_dir)

        write_file.assert_not_called()
        assert result.status is BootstrapStatus.ALREADY_PRESENT
        assert result.ca_serial is None
        for name in ARTIFACTS:
            assert (certs_dir / name).read_bytes() == before[name]
            assert (certs_dir / name).stat().st_mtime_ns == mtimes[name]

    def test_existing_ca_pem_alone_short_circuits(
        self, certs_dir: Path, ca_config: CAConfig
    ) -> None:
        """Any existing ca.pem is taken as a completed bootstrap."""
        certs_dir.mkdir(parents=True)
        (certs_dir / "ca.pem").write_bytes(b"existing")

        result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        assert result.status is BootstrapStatus.ALREADY_PRESENT
        assert (certs_dir / "ca.pem").read_bytes() == b"existing"
        assert not (certs_dir / "ca-key.pem").exists()

    def test_is_bootstrapped(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """is_bootstrapped reflects ca.pem presence."""
        assert CertificateAuthority.is_bootstrapped(certs_dir) is False
        CertificateAuthority(ca_config).bootstrap(certs_dir)
        assert CertificateAuthority.is_bootstrapped(certs_dir) is True


class TestBootstrapFailures:
    """Tests for aborted bootstraps."""

    def test_crypto_failure_writes_nothing(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """Key generation failure aborts before any artifact is written."""
        with (
            patch(
                "machine_certs.lib.certificate_authority.generate_private_key",
                side_effect=CryptoError("boom"),
            ),
            pytest.raises(CryptoError, match="boom"),
        ):
            CertificateAuthority(ca_config).bootstrap(certs_dir)

        for name in ARTIFACTS:
            assert not (certs_dir / name).exists()
        assert not (certs_dir / ".bootstrap.lock").exists()

    def test_write_failure_never_leaves_ca_pem(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """A failed write before the last one leaves no ca.pem to fool later runs."""
        from machine_certs.lib import certificate_authority

        real_write = certificate_authority.write_file
        calls = []

        def failing_write(path, data, mode):
            calls.append(path.name)
            if path.name == "cert.pem":
                raise StorageError("disk full")
            return real_write(path, data, mode)

        with (
            patch.object(certificate_authority, "write_file", side_effect=failing_write),
            pytest.raises(StorageError, match="disk full"),
        ):
            CertificateAuthority(ca_config).bootstrap(certs_dir)

        assert "ca.pem" not in calls
        assert not CertificateAuthority.is_bootstrapped(certs_dir)

    def test_waits_for_concurrent_bootstrap_then_times_out(
        self, certs_dir: Path, ca_config: CAConfig
    ) -> None:
        """A held lock blocks bootstrap until the timeout."""
        certs_dir.mkdir(parents=True)
        (certs_dir / ".bootstrap.lock").write_text("12345")

        with pytest.raises(StorageError, match="timed out waiting for lock"):
            CertificateAuthority(ca_config, lock_timeout=0.2).bootstrap(certs_dir)

        assert not (certs_dir / "ca.pem").exists()
        assert (certs_dir / ".bootstrap.lock").exists()

    def test_rechecks_after_acquiring_lock(self, certs_dir: Path, ca_config: CAConfig) -> None:
        """A CA created while waiting for the lock is reused."""
        checks = iter([False, True])

        with patch.object(
            CertificateAuthority, "is_bootstrapped", side_effect=lambda _: next(checks)
        ):
            result = CertificateAuthority(ca_config).bootstrap(certs_dir)

        assert result.status is BootstrapStatus.ALREADY_PRESENT
        assert not (certs_dir / "ca-key.pem").exists()
