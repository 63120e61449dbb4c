"""Certificate templates: random serial, validity window, per-mode usage policy."""

import ipaddress
import logging
import secrets
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import NamedTuple, Optional, Union

from pydantic import BaseModel, ConfigDict

from certgen.common.config import CAMode, ClientLeaf, ServerLeaf
from certgen.common.errors import EntropyError

logger = logging.getLogger(__name__)

VALID_FOR = timedelta(days=1080)
SERIAL_BITS = 128

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class Usage(str, Enum):
    DIGITAL_SIGNATURE = "digital_signature"
    KEY_ENCIPHERMENT = "key_encipherment"
    CERT_SIGN = "key_cert_sign"


class ExtendedUsage(str, Enum):
    CLIENT_AUTH = "1.3.6.1.5.5.7.3.2"


class UsagePolicy(NamedTuple):
    key_usage: frozenset
    ext_key_usage: tuple
    is_ca: bool
    with_hosts: bool


DEFAULT_USAGE = frozenset({Usage.KEY_ENCIPHERMENT, Usage.DIGITAL_SIGNATURE})

# CA usage adds cert signing on top of the default; client usage replaces it.
USAGE_POLICY = {
    None: UsagePolicy(DEFAULT_USAGE, (), False, False),
    "ca": UsagePolicy(DEFAULT_USAGE | {Usage.CERT_SIGN}, (), True, False),
    "server": UsagePolicy(DEFAULT_USAGE, (), False, True),
    "client": UsagePolicy(
        frozenset({Usage.DIGITAL_SIGNATURE}), (ExtendedUsage.CLIENT_AUTH,), False, False
    ),
}


class CertificateTemplate(BaseModel):
    """Fully-formed certificate fields, ready to be signed."""
    model_config = ConfigDict(frozen=True)

    serial_number: int
    organization: str
    not_before: datetime
    not_after: datetime
    key_usage: frozenset[Usage]
    ext_key_usage: tuple[ExtendedUsage, ...] = ()
    ip_addresses: tuple[IPAddress, ...] = ()
    dns_names: tuple[str, ...] = ()
    is_ca: bool = False
    basic_constraints_valid: bool = True


def random_serial_number() -> int:
    """Draw a serial uniformly from [1, 2^128); zero is not a legal serial."""
    try:
        return secrets.randbelow((1 << SERIAL_BITS) - 1) + 1
    except OSError as e:
        raise EntropyError(f"failed to generate serial number: {e}") from e


def classify_hosts(hosts) -> tuple[tuple[IPAddress, ...], tuple[str, ...]]:
    """Split hosts into IP literals and DNS names, keeping input order."""
    ips = []
    dns_names = []
    for h in hosts:
        try:
            ip = ipaddress.ip_address(h)
        except ValueError:
            dns_names.append(h)
            continue
        # A zoned IPv6 literal has no SAN encoding; the zone would be lost
        if getattr(ip, "scope_id", None):
            dns_names.append(h)
        else:
            ips.append(ip)
    return tuple(ips), tuple(dns_names)


def build_template(
    organization: str,
    mode: Optional[Union[CAMode, ServerLeaf, ClientLeaf]] = None,
    now: Optional[datetime] = None,
    valid_for: timedelta = VALID_FOR,
) -> CertificateTemplate:
    """
    Build a template for the given mode.
    With no mode the result carries the generic default usage.
    """
    if now is None:
        now = datetime.now(timezone.utc)
    elif now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    # X.509 times carry whole seconds
    not_before = now.replace(microsecond=0)

    kind = mode.kind if mode is not None else None
    policy = USAGE_POLICY[kind]

    ips, dns_names = (), ()
    if policy.with_hosts:
        ips, dns_names = classify_hosts(mode.hosts)

    template = CertificateTemplate(
        serial_number=random_serial_number(),
        organization=organization,
        not_before=not_before,
        not_after=not_before + valid_for,
        key_usage=policy.key_usage,
        ext_key_usage=policy.ext_key_usage,
        ip_addresses=ips,
        dns_names=dns_names,
        is_ca=policy.is_ca,
    )
    logger.debug("Built %s template with serial %x", kind or "default", template.serial_number)
    return template
