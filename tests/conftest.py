import os
import socket
import threading
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import pytest
from fastapi.testclient import TestClient

from evlink.api.client import SimApiClient
from evlink.config.settings import ExchangeOptions
from evlink.drivers.keba import KebaCharger
from services.keba_sim.app.main import create_app

PROC_FD = Path("/proc/self/fd")

Handler = Callable[[bytes, tuple, socket.socket], Optional[bytes]]


@dataclass
class UdpPeer:
    """Loopback UDP peer served by a background thread."""
    sock: socket.socket
    handler: Handler
    received: list = field(default_factory=list)
    _stop: threading.Event = field(default_factory=threading.Event)
    _thread: Optional[threading.Thread] = None

    @property
    def sockname(self) -> tuple:
        return self.sock.getsockname()[:2]

    @property
    def address(self) -> str:
        host, port = self.sockname
        return f"{host}:{port}"

    def start(self) -> "UdpPeer":
        self.sock.settimeout(0.05)
        self._thread = threading.Thread(target=self._serve, daemon=True)
        self._thread.start()
        return self

    def stop(self) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout=2.0)
        self.sock.close()

    def _serve(self) -> None:
        while not self._stop.is_set():
            try:
                data, addr = self.sock.recvfrom(65535)
            except socket.timeout:
                continue
            except OSError:
                return
            self.received.append(data)
            reply = self.handler(data, addr, self.sock)
            if reply is not None:
                self.sock.sendto(reply, addr)


@pytest.fixture
def udp_peer():
    """
    Factory: udp_peer(handler) starts a peer on 127.0.0.1 with an ephemeral port.
    The handler returns the reply bytes, or None to stay silent.
    """
    peers = []

    def _make(handler: Handler) -> UdpPeer:
        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        sock.bind(("127.0.0.1", 0))
        peer = UdpPeer(sock, handler).start()
        peers.append(peer)
        return peer

    try:
        yield _make
    finally:
        for p in peers:
            p.stop()


@pytest.fixture
def echo_peer(udp_peer):
    return udp_peer(lambda data, addr, sock: data)


@pytest.fixture
def silent_peer(udp_peer):
    return udp_peer(lambda data, addr, sock: None)


@pytest.fixture
def fast_options():
    # short deadline keeps the negative-path tests quick
    return ExchangeOptions(timeout_s=0.2)


def _open_fd_count() -> int:
    return len(os.listdir(PROC_FD))


def _wait_for(predicate: Callable[[], bool], timeout_s: float = 3.0) -> bool:
    deadline = time.monotonic() + timeout_s
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


@pytest.fixture
def settled_exchanges():
    """
    Wait for exchange workers left behind by earlier cancelled calls; each still
    holds its socket until its own read deadline.
    """
    for t in threading.enumerate():
        if t.name.startswith("udp-exchange-"):
            t.join(timeout=5.0)


@pytest.fixture
def fd_count(settled_exchanges):
    """Number of descriptors open in this process (Linux only)."""
    if not PROC_FD.is_dir():
        pytest.skip("needs /proc/self/fd")
    return _open_fd_count


@pytest.fixture
def wait_for():
    return _wait_for


@pytest.fixture
def sim_app():
    return create_app(udp_host="127.0.0.1", udp_port=0)


@pytest.fixture
def sim_http(sim_app):
    # entering the TestClient runs the lifespan, which opens the UDP endpoint
    with TestClient(sim_app) as client:
        yield client


@pytest.fixture
def sim_api(sim_http):
    return SimApiClient("http://testserver", client=sim_http)


@pytest.fixture
def sim_udp_address(sim_app, sim_http):
    host, port = sim_app.state.udp_sockname
    return f"{host}:{port}"


@pytest.fixture
def keba(sim_udp_address):
    return KebaCharger(sim_udp_address, options=ExchangeOptions(timeout_s=0.3))


@pytest.fixture(autouse=True)
def reset_simulator(request):
    """
    Ensure each simulator test starts from a clean state.
    """
    if "sim_api" in request.fixturenames:
        api = request.getfixturevalue("sim_api")
        api.reset()
        api.set_faults()
    yield
