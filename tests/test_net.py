import pytest

from ip_helper.errors import MalformedAddressError
from ip_helper.net import get_domain_only, get_domain_with_port, is_private, is_valid_ip, strip_port


@pytest.mark.parametrize(
    "ip",
    [
        "10.0.0.0",
        "10.1.2.3",
        "10.255.255.255",
        "172.16.0.0",
        "172.20.10.1",
        "172.31.255.255",
        "192.168.0.0",
        "192.168.1.1",
        "192.168.255.255",
        "::ffff:192.168.1.1",
    ],
)
def test_is_private_for_rfc1918_ranges(ip: str) -> None:
    assert is_private(ip)


@pytest.mark.parametrize(
    "ip",
    [
        "8.8.8.8",
        "9.255.255.255",
        "11.0.0.0",
        "172.15.255.255",
        "172.32.0.0",
        "192.167.255.255",
        "192.169.0.0",
        "127.0.0.1",
        "fd00::1",
        "2001:4860:4860::8888",
        "not-an-ip",
        "",
    ],
)
def test_is_private_false_outside_ranges(ip: str) -> None:
    """Loopback, IPv6 unique-local and garbage are not treated as private."""
    assert not is_private(ip)


@pytest.mark.parametrize("value", ["8.8.8.8", "2001:4860:4860::8888", "::1", "::ffff:10.0.0.1"])
def test_is_valid_ip_accepts_literals(value: str) -> None:
    assert is_valid_ip(value)


@pytest.mark.parametrize("value", ["", None, "qwerty", "999.999.999.999", "1.2.3", "8.8.8.8:53", " 8.8.8.8"])
def test_is_valid_ip_rejects_non_literals(value: str | None) -> None:
    assert not is_valid_ip(value)


@pytest.mark.parametrize(
    ("address", "host"),
    [
        ("1.2.3.4:1234", "1.2.3.4"),
        ("[2001:db8::1]:23", "2001:db8::1"),
        (("127.0.0.1", 50000), "127.0.0.1"),
        (("::1", 50000, 0, 0), "::1"),
    ],
)
def test_strip_port(address: object, host: str) -> None:
    assert strip_port(address) == host


@pytest.mark.parametrize(
    "address",
    [
        "1.2.3.4",
        "2001:db8::1",
        "[2001:db8::1]",
        ":1234",
        "1.2.3.4:",
        "example.com:80",
        ("127.0.0.1",),
        None,
        "/var/run/ip-helper.sock",
    ],
)
def test_strip_port_rejects_malformed_addresses(address: object) -> None:
    with pytest.raises(MalformedAddressError):
        strip_port(address)


@pytest.mark.parametrize(
    ("domain", "only", "with_port"),
    [
        ("http://localhost:8080", "localhost", "localhost:8080"),
        ("https://ip.example.com", "ip.example.com", "ip.example.com"),
        ("ip.example.com:8443", "ip.example.com", "ip.example.com:8443"),
        ("http://[2001:db8::1]:8080/", "2001:db8::1", "[2001:db8::1]:8080"),
    ],
)
def test_domain_helpers(domain: str, only: str, with_port: str) -> None:
    assert get_domain_only(domain) == only
    assert get_domain_with_port(domain) == with_port
