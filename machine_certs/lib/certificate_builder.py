"""Certificate builder for X.509 certificate construction."""

from datetime import datetime, timedelta, timezone

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey
from cryptography.x509.oid import ExtendedKeyUsageOID

from .cert_utils import generate_serial_number
from .config import DistinguishedName
from .errors import CryptoError


def validate_csr_signature(csr: x509.CertificateSigningRequest) -> bool:
    """Verify CSR self-signature to prove private key possession."""
    try:
        return csr.is_signature_valid
    except (ValueError, UnsupportedAlgorithm):
        return False


def _csr_public_key(csr: x509.CertificateSigningRequest) -> rsa.RSAPublicKey:
    if not validate_csr_signature(csr):
        raise CryptoError("CSR signature validation failed")
    public_key = csr.public_key()
    if not isinstance(public_key, rsa.RSAPublicKey):
        raise CryptoError("CSR public key must be RSA type")
    return public_key


def _leaf_key_usage() -> x509.KeyUsage:
    return x509.KeyUsage(
        digital_signature=True,
        content_commitment=False,
        key_encipherment=True,
        data_encipherment=False,
        key_agreement=True,
        key_cert_sign=False,
        crl_sign=False,
        encipher_only=False,
        decipher_only=False,
    )


def _sign(builder: x509.CertificateBuilder, key: RSAPrivateKey) -> x509.Certificate:
    try:
        return builder.sign(key, hashes.SHA256())
    except (ValueError, TypeError) as e:
        raise CryptoError(f"certificate signing failed: {e}") from e


class CertificateBuilder:
    """Builds the CA certificate and the client and server leaf certificates."""

    @staticmethod
    def build_ca(
        subject_dn: DistinguishedName,
        private_key: RSAPrivateKey,
        validity_days: int,
    ) -> x509.Certificate:
        """Build self-signed CA certificate.

        Args:
            subject_dn: Distinguished name for certificate subject and issuer
            private_key: RSA private key for signing
            validity_days: Certificate validity period in days

        Returns:
            Self-signed X.509 certificate with CA extensions
        """
        subject = subject_dn.to_x509_name()
        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(subject)
            .issuer_name(subject)
            .public_key(private_key.public_key())
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=True, path_length=None),
                critical=True,
            )
            .add_extension(
                x509.KeyUsage(
                    digital_signature=True,
                    content_commitment=False,
                    key_encipherment=False,
                    data_encipherment=False,
                    key_agreement=False,
                    key_cert_sign=True,
                    crl_sign=True,
                    encipher_only=False,
                    decipher_only=False,
                ),
                critical=True,
            )
            .add_extension(
                x509.SubjectKeyIdentifier.from_public_key(private_key.public_key()),
                critical=False,
            )
        )

        return _sign(builder, private_key)

    @staticmethod
    def build_client_certificate(
        csr: x509.CertificateSigningRequest,
        issuer_cert: x509.Certificate,
        issuer_key: RSAPrivateKey,
        validity_days: int,
    ) -> x509.Certificate:
        """Build client certificate from CSR, signed by the CA.

        Args:
            csr: Certificate signing request from client
            issuer_cert: CA certificate (issuer)
            issuer_key: CA private key for signing
            validity_days: Certificate validity period in days

        Returns:
            X.509 end-entity certificate usable for TLS client authentication

        Raises:
            CryptoError: If CSR signature is invalid
        """
        public_key = _csr_public_key(csr)

        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(csr.subject)
            .issuer_name(issuer_cert.subject)
            .public_key(public_key)
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(_leaf_key_usage(), critical=False)
            .add_extension(
                x509.ExtendedKeyUsage([ExtendedKeyUsageOID.CLIENT_AUTH]),
                critical=False,
            )
        )

        return _sign(builder, issuer_key)

    @staticmethod
    def build_server_certificate(
        csr: x509.CertificateSigningRequest,
        issuer_cert: x509.Certificate,
        issuer_key: RSAPrivateKey,
        validity_days: int,
    ) -> x509.Certificate:
        """Build server certificate from CSR, signed by the CA.

        The SubjectAlternativeName extension requested in the CSR is carried
        over into the certificate.

        Raises:
            CryptoError: If CSR signature is invalid or it requests no SANs
        """
        public_key = _csr_public_key(csr)
        try:
            san = csr.extensions.get_extension_for_class(x509.SubjectAlternativeName).value
        except x509.ExtensionNotFound as e:
            raise CryptoError("server CSR carries no subject alternative names") from e

        not_before = datetime.now(timezone.utc)
        not_after = not_before + timedelta(days=validity_days)

        builder = (
            x509.CertificateBuilder()
            .subject_name(csr.subject)
            .issuer_name(issuer_cert.subject)
            .public_key(public_key)
            .serial_number(generate_serial_number())
            .not_valid_before(not_before)
            .not_valid_after(not_after)
            .add_extension(
                x509.BasicConstraints(ca=False, path_length=None),
                critical=True,
            )
            .add_extension(_leaf_key_usage(), critical=False)
            .add_extension(
                x509.ExtendedKeyUsage([ExtendedKeyUsageOID.SERVER_AUTH]),
                critical=False,
            )
            .add_extension(san, critical=False)
        )

        return _sign(builder, issuer_key)

    @staticmethod
    def build_csr(
        subject_dn: DistinguishedName,
        private_key: RSAPrivateKey,
        san: x509.SubjectAlternativeName | None = None,
    ) -> x509.CertificateSigningRequest:
        """Build a CSR for subject_dn, optionally requesting SANs."""
        builder = x509.CertificateSigningRequestBuilder().subject_name(subject_dn.to_x509_name())
        if san is not None:
            builder = builder.add_extension(san, critical=False)
        try:
            return builder.sign(private_key, hashes.SHA256())
        except (ValueError, TypeError) as e:
            raise CryptoError(f"CSR signing failed: {e}") from e
