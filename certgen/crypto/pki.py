"""X.509 issuance: template → signed certificate, CA material loading, issuer check."""

import logging
from pathlib import Path
from typing import Any, Optional, Union

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.x509.oid import NameOID
from pydantic import BaseModel, ConfigDict

from certgen.common.errors import AuthorityLoadError, SigningError
from certgen.crypto.sign import public_key_der, signature_hash_for
from certgen.crypto.template import CertificateTemplate, Usage

logger = logging.getLogger(__name__)


class AuthorityMaterial(BaseModel):
    """An existing CA certificate (DER) and its private key. Read-only."""
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    certificate_der: bytes
    private_key: Any


def subject_name(organization: str) -> x509.Name:
    """Subject with the organization as its only attribute."""
    return x509.Name([x509.NameAttribute(NameOID.ORGANIZATION_NAME, organization)])


def _key_usage(usage) -> x509.KeyUsage:
    """Map template usage flags onto the KeyUsage extension."""
    return x509.KeyUsage(
        digital_signature=Usage.DIGITAL_SIGNATURE in usage,
        content_commitment=False,
        key_encipherment=Usage.KEY_ENCIPHERMENT in usage,
        data_encipherment=False,
        key_agreement=False,
        key_cert_sign=Usage.CERT_SIGN in usage,
        crl_sign=False,
        encipher_only=False,
        decipher_only=False
    )


def _builder(template: CertificateTemplate, public_key, issuer: Optional[x509.Certificate]):
    subject = subject_name(template.organization)
    builder = x509.CertificateBuilder().subject_name(
        subject
    ).issuer_name(
        issuer.subject if issuer is not None else subject
    ).public_key(
        public_key
    ).serial_number(
        template.serial_number
    ).not_valid_before(
        template.not_before
    ).not_valid_after(
        template.not_after
    ).add_extension(
        _key_usage(template.key_usage),
        critical=True,
    )

    if template.ext_key_usage:
        builder = builder.add_extension(
            x509.ExtendedKeyUsage([x509.ObjectIdentifier(u.value) for u in template.ext_key_usage]),
            critical=False,
        )

    if template.basic_constraints_valid:
        builder = builder.add_extension(
            x509.BasicConstraints(ca=template.is_ca, path_length=None),
            critical=True,
        )

    if template.dns_names or template.ip_addresses:
        names = [x509.DNSName(h) for h in template.dns_names]
        names += [x509.IPAddress(ip) for ip in template.ip_addresses]
        builder = builder.add_extension(x509.SubjectAlternativeName(names), critical=False)

    if template.is_ca:
        builder = builder.add_extension(
            x509.SubjectKeyIdentifier.from_public_key(public_key),
            critical=False,
        )

    if issuer is not None:
        try:
            ski = issuer.extensions.get_extension_for_class(x509.SubjectKeyIdentifier)
            aki = x509.AuthorityKeyIdentifier.from_issuer_subject_key_identifier(ski.value)
        except x509.ExtensionNotFound:
            aki = x509.AuthorityKeyIdentifier.from_issuer_public_key(issuer.public_key())
        builder = builder.add_extension(aki, critical=False)

    return builder


def sign_template(
    template: CertificateTemplate,
    public_key,
    signing_key,
    issuer: Optional[x509.Certificate] = None,
) -> x509.Certificate:
    """
    Sign template for public_key with signing_key.
    With no issuer the certificate is self-signed (issuer name = subject name).
    """
    try:
        builder = _builder(template, public_key, issuer)
        return builder.sign(signing_key, signature_hash_for(signing_key))
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise SigningError(f"failed to sign certificate: {e}") from e


def load_authority(ca_cert_path: Union[str, Path], ca_key_path: Union[str, Path]) -> AuthorityMaterial:
    """Load CA certificate and private key; the key must match the certificate."""
    try:
        with open(ca_cert_path, "rb") as f:
            certs = x509.load_pem_x509_certificates(f.read())
        with open(ca_key_path, "rb") as f:
            ca_key = serialization.load_pem_private_key(f.read(), password=None)
    except OSError as e:
        raise AuthorityLoadError(f"cannot read CA material: {e}") from e
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise AuthorityLoadError(f"cannot parse CA material: {e}") from e

    # First block is the CA itself, anything after is chain
    ca_cert = certs[0]
    if public_key_der(ca_cert.public_key()) != public_key_der(ca_key):
        raise AuthorityLoadError(
            f"private key {ca_key_path} does not match public key in {ca_cert_path}"
        )

    logger.debug("Loaded CA %s from %s", ca_cert.subject.rfc4514_string(), ca_cert_path)
    return AuthorityMaterial(
        certificate_der=ca_cert.public_bytes(serialization.Encoding.DER),
        private_key=ca_key,
    )


def verify_issued_by(certificate: x509.Certificate, ca_certificate: x509.Certificate) -> bool:
    """Check issuer/subject chaining and the signature against the CA public key."""
    try:
        certificate.verify_directly_issued_by(ca_certificate)
        return True
    except (ValueError, TypeError, InvalidSignature):
        return False
