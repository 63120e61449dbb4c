from datetime import datetime, timedelta, timezone
from ipaddress import ip_address

import pytest
from pydantic import ValidationError

from certgen.common.config import CAMode, ClientLeaf, ServerLeaf
from certgen.common.errors import EntropyError
from certgen.crypto import template as template_mod
from certgen.crypto.template import (
    VALID_FOR, ExtendedUsage, Usage, build_template, classify_hosts, random_serial_number,
)

NOW = datetime(2024, 3, 1, 12, 30, 15, 123456, tzinfo=timezone.utc)


def server(*hosts):
    return ServerLeaf(hosts=hosts, ca_cert_path="ca.pem", ca_key_path="ca-key.pem")


def test_default_template():
    t = build_template("Org", now=NOW)
    assert t.organization == "Org"
    assert t.key_usage == {Usage.KEY_ENCIPHERMENT, Usage.DIGITAL_SIGNATURE}
    assert t.ext_key_usage == ()
    assert t.basic_constraints_valid
    assert not t.is_ca
    assert 0 < t.serial_number < 2 ** 128


def test_validity_window_is_fixed():
    t = build_template("Org", now=NOW)
    assert t.not_before == NOW.replace(microsecond=0)
    assert t.not_after - t.not_before == VALID_FOR == timedelta(days=1080)


def test_naive_now_is_treated_as_utc():
    t = build_template("Org", now=datetime(2024, 1, 1))
    assert t.not_before.tzinfo is timezone.utc


def test_ca_usage_is_additive():
    t = build_template("Org", CAMode(), now=NOW)
    assert t.is_ca
    assert t.key_usage == {Usage.KEY_ENCIPHERMENT, Usage.DIGITAL_SIGNATURE, Usage.CERT_SIGN}


def test_client_usage_replaces_default():
    t = build_template("Org", ClientLeaf(ca_cert_path="ca.pem", ca_key_path="ca-key.pem"), now=NOW)
    assert t.key_usage == {Usage.DIGITAL_SIGNATURE}
    assert t.ext_key_usage == (ExtendedUsage.CLIENT_AUTH,)
    assert t.ip_addresses == () and t.dns_names == ()
    assert not t.is_ca


def test_server_hosts_become_sans():
    t = build_template("Org", server("10.0.0.1", "example.com"), now=NOW)
    assert t.ip_addresses == (ip_address("10.0.0.1"),)
    assert t.dns_names == ("example.com",)
    assert t.key_usage == {Usage.KEY_ENCIPHERMENT, Usage.DIGITAL_SIGNATURE}
    assert t.ext_key_usage == ()


def test_classify_ip_only_keeps_order_and_duplicates():
    hosts = ["::1", "192.168.1.5", "10.0.0.1", "192.168.1.5", "fe80::1"]
    ips, dns = classify_hosts(hosts)
    assert [str(i) for i in ips] == hosts
    assert dns == ()


def test_classify_dns_only():
    hosts = ["example.com", "localhost", "a.b.example.org", "localhost"]
    ips, dns = classify_hosts(hosts)
    assert ips == ()
    assert dns == tuple(hosts)


def test_classify_rejects_partial_ips_as_dns():
    ips, dns = classify_hosts(["10.0.0", "256.1.1.1"])
    assert ips == ()
    assert dns == ("10.0.0", "256.1.1.1")


def test_template_is_immutable():
    t = build_template("Org", now=NOW)
    with pytest.raises(ValidationError):
        t.is_ca = True


def test_serials_are_distinct():
    serials = {random_serial_number() for _ in range(10000)}
    assert len(serials) == 10000
    assert all(0 < s < 2 ** 128 for s in serials)


def test_entropy_failure_is_fatal(monkeypatch):
    def broken(n):
        raise OSError("no entropy")

    monkeypatch.setattr(template_mod.secrets, "randbelow", broken)
    with pytest.raises(EntropyError, match="serial number"):
        build_template("Org")


def test_zoned_ipv6_literal_is_not_an_ip():
    ips, dns = classify_hosts(["fe80::1%eth0", "fe80::1"])
    assert ips == (ip_address("fe80::1"),)
    assert dns == ("fe80::1%eth0",)
