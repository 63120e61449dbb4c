"""
Generate a CA, or a certificate signed by one.

    generate-cert --cert ca.pem --key ca-key.pem
    generate-cert --cert ca.pem --key ca-key.pem --overwrite
    generate-cert --host 127.0.0.1 --cert cert.pem --key key.pem --ca ca.pem --ca-key ca-key.pem
"""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from certgen.common.config import CAMode, default_organization, resolve_config
from certgen.common.errors import CertGenError, ExistingFilesError
from certgen.issuer import issue

logger = logging.getLogger("certgen")


def build_parser():
    parser = argparse.ArgumentParser(
        prog="generate-cert",
        description="Generate a certificate authority or a certificate signed by one",
    )
    parser.add_argument('--host', default='', help='Comma-separated hostnames and IPs to generate a certificate for')
    parser.add_argument('--cert', default='', help='Output file for certificate')
    parser.add_argument('--key', default='', help='Output file for key')
    parser.add_argument('--ca', default='', help='Certificate authority file to sign with')
    parser.add_argument('--ca-key', default='', help='Certificate authority key file to sign with')
    parser.add_argument('--overwrite', action='store_true', help='Overwrite existing files')
    parser.add_argument('--org', default=default_organization(), help='Organization to generate a certificate for')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser


def main(argv=None):
    load_dotenv()
    args = build_parser().parse_args(argv)

    level = logging.DEBUG if args.verbose else os.getenv("CERTGEN_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(message)s")

    try:
        config = resolve_config(
            cert=args.cert,
            key=args.key,
            host=args.host,
            ca=args.ca,
            ca_key=args.ca_key,
            overwrite=args.overwrite,
            organization=args.org,
        )
    except CertGenError as e:
        logger.error("%s", e)
        return 1

    action = "CA" if isinstance(config.mode, CAMode) else "cert"
    try:
        certificate, _ = issue(config)
    except ExistingFilesError as e:
        logger.error("Preventing overwrite: %s", e)
        return 1
    except CertGenError as e:
        logger.error("Failure to generate %s: %s", action, e)
        return 1

    logger.info("Serial: %x", certificate.serial_number)
    logger.info("Subject: %s", certificate.subject.rfc4514_string())
    logger.info("Issuer: %s", certificate.issuer.rfc4514_string())
    logger.info("Valid until: %s", certificate.not_valid_after_utc)
    return 0


if __name__ == "__main__":
    sys.exit(main())
