"""Tests for the private-range predicate."""

import pytest

from surf.classify import DEFAULT_PRIVATE_NETWORKS, IPClassifier, is_private_ip


@pytest.mark.parametrize("ip", [
    "10.1.2.3",
    "172.16.0.1",
    "172.31.255.254",
    "192.168.1.10",
    "127.0.0.1",
    "169.254.169.254",
    "0.0.0.0",
    "::1",
    "fe80::1",
    "fd12:3456:789a::1",
    "fc00::1",
    "::ffff:10.0.0.1",
    "fe80::1%eth0",
])
def test_private_addresses(ip):
    assert is_private_ip(ip)


@pytest.mark.parametrize("ip", [
    "93.184.216.34",
    "8.8.8.8",
    "172.32.0.1",
    "172.15.255.255",
    "100.64.0.1",
    "2606:2800:220:1:248:1893:25c8:1946",
    "::ffff:8.8.8.8",
])
def test_public_addresses(ip):
    assert not is_private_ip(ip)


@pytest.mark.parametrize("junk", ["", "not-an-ip", "300.1.1.1", "10.0.0"])
def test_unparseable_input_is_not_private(junk):
    assert not is_private_ip(junk)


def test_custom_range_table():
    c = IPClassifier(["100.64.0.0/10"])
    assert c.is_private("100.64.1.1")
    assert not c.is_private("10.0.0.1")


def test_default_table_parses():
    c = IPClassifier()
    assert len(c.networks) == len(DEFAULT_PRIVATE_NETWORKS)
    assert {n.version for n in c.networks} == {4, 6}
