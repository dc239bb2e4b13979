import socket

import pytest

from evlink.transport import AddressResolutionError, UdpEndpoint, exchange, parse_address, resolve_endpoint


@pytest.mark.parametrize("address, expected", [
    ("127.0.0.1:7090", UdpEndpoint("127.0.0.1", 7090)),
    ("wallbox.local:7090", UdpEndpoint("wallbox.local", 7090)),
    ("[::1]:9999", UdpEndpoint("::1", 9999)),
    (":7090", UdpEndpoint("", 7090)),
])
def test_parse_address(address, expected):
    assert parse_address(address) == expected


@pytest.mark.parametrize("address", [
    "",
    "127.0.0.1",
    ":abc",
    "127.0.0.1:",
    "127.0.0.1:0",
    "127.0.0.1:70000",
    "::1:7090",
    "[::1",
])
def test_bad_addresses_fail_to_resolve(address):
    with pytest.raises(AddressResolutionError):
        resolve_endpoint(address)


def test_endpoint_str_brackets_ipv6():
    assert str(UdpEndpoint("::1", 7090)) == "[::1]:7090"
    assert str(UdpEndpoint("10.0.0.5", 7090)) == "10.0.0.5:7090"


def test_empty_host_resolves_to_loopback():
    family, sockaddr = resolve_endpoint(":7090")
    assert family in (socket.AF_INET, socket.AF_INET6)
    assert sockaddr[1] == 7090


def test_resolution_failure_creates_no_socket(monkeypatch):
    def no_sockets(*args, **kwargs):
        raise AssertionError("socket must not be created")

    monkeypatch.setattr(socket, "socket", no_sockets)

    with pytest.raises(AddressResolutionError):
        exchange(None, ":abc", b"ping")


def test_resolver_error_is_wrapped(monkeypatch):
    def fail(*args, **kwargs):
        raise socket.gaierror(socket.EAI_NONAME, "Name or service not known")

    monkeypatch.setattr(socket, "getaddrinfo", fail)

    with pytest.raises(AddressResolutionError) as ei:
        resolve_endpoint("nowhere.invalid:7090")
    assert isinstance(ei.value.__cause__, socket.gaierror)


@pytest.mark.parametrize("port", [0, 70000, -1])
def test_endpoint_object_port_is_validated(port, monkeypatch):
    def no_sockets(*args, **kwargs):
        raise AssertionError("socket must not be created")

    monkeypatch.setattr(socket, "socket", no_sockets)

    with pytest.raises(AddressResolutionError):
        exchange(None, UdpEndpoint("127.0.0.1", port), b"ping")
