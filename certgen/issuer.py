"""Issue a self-signed CA or a CA-signed server/client certificate and write both PEM files."""

import logging

from cryptography import x509

from certgen.common.config import CAMode, ClientLeaf, IssuerConfig, ServerLeaf
from certgen.common.errors import CertGenError
from certgen.crypto.pki import load_authority, sign_template, verify_issued_by
from certgen.crypto.sign import certificate_to_pem, generate_rsa_key, private_key_to_pem
from certgen.crypto.template import build_template
from certgen.storage.files import check_files_exist, write_certificate, write_private_key

logger = logging.getLogger(__name__)


def _write_pair(config: IssuerConfig, certificate, private_key):
    # Not atomic: the certificate stays on disk if the key write fails
    write_certificate(config.cert_path, certificate_to_pem(certificate))
    write_private_key(config.key_path, private_key_to_pem(private_key))
    logger.info("Wrote %s and %s", config.cert_path, config.key_path)


def issue_ca(config: IssuerConfig):
    """
    Generate a new certificate authority and store the certificate and key
    in config.cert_path and config.key_path.
    Returns (certificate, private_key).
    """
    if not isinstance(config.mode, CAMode):
        raise CertGenError(f"issue_ca called with {config.mode.kind} mode")

    logger.info("Generating a new certificate authority.")
    template = build_template(config.organization, config.mode)
    private_key = generate_rsa_key()
    certificate = sign_template(template, private_key.public_key(), private_key)

    _write_pair(config, certificate, private_key)
    return certificate, private_key


def issue_leaf(config: IssuerConfig):
    """
    Generate a certificate signed by the CA named in config.mode.

    Server mode puts each host in the IP or DNS SAN list; client mode marks the
    certificate for client authentication only.
    Returns (certificate, private_key).
    """
    mode = config.mode
    if isinstance(mode, ClientLeaf):
        logger.info("no --host parameters, making a client cert")
    elif isinstance(mode, ServerLeaf):
        logger.info("Generating a server cert for %s", ", ".join(mode.hosts))
    else:
        raise CertGenError(f"issue_leaf called with {mode.kind} mode")

    template = build_template(config.organization, mode)
    authority = load_authority(mode.ca_cert_path, mode.ca_key_path)
    private_key = generate_rsa_key()

    ca_cert = x509.load_der_x509_certificate(authority.certificate_der)
    certificate = sign_template(
        template,
        private_key.public_key(),
        authority.private_key,
        issuer=ca_cert,
    )
    if verify_issued_by(certificate, ca_cert):
        logger.debug("Verified leaf against %s", mode.ca_cert_path)
    else:
        logger.warning("Leaf does not verify against %s", mode.ca_cert_path)

    _write_pair(config, certificate, private_key)
    return certificate, private_key


def issue(config: IssuerConfig):
    """Refuse to clobber existing outputs, then issue for the configured mode."""
    if not config.overwrite:
        check_files_exist(config.cert_path, config.key_path)

    if isinstance(config.mode, CAMode):
        return issue_ca(config)
    return issue_leaf(config)
