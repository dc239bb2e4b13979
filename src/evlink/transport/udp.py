from __future__ import annotations
import logging
import queue
import socket
import threading
from dataclasses import dataclass
from typing import BinaryIO, Union

from evlink.config.settings import ExchangeOptions
from evlink.transport.cancel import CancelSignal
from evlink.transport.errors import (
    AddressResolutionError,
    AssociationError,
    CancelledError,
    DeadlineExceededError,
    ReceiveError,
    TransmitError,
)
from evlink.utils.retry import RetryPolicy, with_retries

Payload = Union[bytes, bytearray, memoryview, BinaryIO]

_log = logging.getLogger(__name__)

@dataclass(frozen=True)
class UdpEndpoint:
    host: str
    port: int

    def __str__(self) -> str:
        if ":" in self.host:
            return f"[{self.host}]:{self.port}"
        return f"{self.host}:{self.port}"

@dataclass(frozen=True)
class ExchangeResult:
    data: bytes
    sender: UdpEndpoint
    # reply was longer than the buffer and got cut to buffer_size
    truncated: bool = False

    @property
    def bytes_received(self) -> int:
        return len(self.data)

def parse_address(address: str) -> UdpEndpoint:
    """
    Split "host:port" (or "[v6-host]:port") into an endpoint.
    An empty host is allowed and means the local machine.
    """
    if not isinstance(address, str):
        raise AddressResolutionError(f"address must be a string, got {type(address).__name__}")

    host, sep, port_s = address.rpartition(":")
    if not sep:
        raise AddressResolutionError(f"missing port in address {address!r}")
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    elif ":" in host:
        raise AddressResolutionError(f"too many colons in address {address!r}")

    try:
        port = int(port_s)
    except ValueError:
        raise AddressResolutionError(f"invalid port {port_s!r} in address {address!r}") from None
    if not (1 <= port <= 65535):
        raise AddressResolutionError(f"port out of range in address {address!r}")

    return UdpEndpoint(host, port)

def resolve_endpoint(address: str | UdpEndpoint) -> tuple[int, tuple]:
    """
    Resolve once to (family, sockaddr). IPv4 results are preferred when the
    name maps to both families.
    """
    ep = address if isinstance(address, UdpEndpoint) else parse_address(address)
    if not (1 <= ep.port <= 65535):
        raise AddressResolutionError(f"port out of range in endpoint {ep}")
    host = ep.host or "localhost"

    try:
        infos = socket.getaddrinfo(host, ep.port, type=socket.SOCK_DGRAM)
    except (OSError, UnicodeError) as exc:
        raise AddressResolutionError(f"cannot resolve {ep}: {exc}") from exc
    if not infos:
        raise AddressResolutionError(f"no datagram address for {ep}")

    for family, _, _, _, sockaddr in infos:
        if family == socket.AF_INET:
            return family, sockaddr
    family, _, _, _, sockaddr = infos[0]
    return family, sockaddr

def _payload_bytes(payload: Payload) -> bytes:
    if isinstance(payload, (bytes, bytearray, memoryview)):
        return bytes(payload)
    try:
        data = payload.read()
    except (OSError, ValueError) as exc:
        raise TransmitError(f"reading payload failed: {exc}") from exc
    if not isinstance(data, (bytes, bytearray)):
        raise TransmitError(f"payload source returned {type(data).__name__}, expected bytes")
    return bytes(data)

def _send_and_receive(sock: socket.socket, payload: Payload, options: ExchangeOptions,
                      log: logging.Logger) -> ExchangeResult:
    data = _payload_bytes(payload)
    try:
        sent = sock.send(data)
    except OSError as exc:
        raise TransmitError(f"send failed: {exc}") from exc
    if sent != len(data):
        raise TransmitError(f"short write: {sent} of {len(data)} bytes")

    log.debug("packet written: bytes=%d", sent)

    # deadline is armed only once the write went out
    sock.settimeout(options.timeout_s)
    try:
        # one extra byte tells a reply that exactly fills the buffer apart from an oversized one
        reply, addr = sock.recvfrom(options.buffer_size + 1)
    except socket.timeout:
        raise DeadlineExceededError(options.timeout_s) from None
    except OSError as exc:
        raise ReceiveError(f"receive failed: {exc}") from exc

    truncated = len(reply) > options.buffer_size
    if truncated:
        reply = reply[:options.buffer_size]
        log.debug("reply truncated to %d bytes", options.buffer_size)

    sender = UdpEndpoint(addr[0], addr[1])
    log.debug("packet received: bytes=%d from=%s", len(reply), sender)
    return ExchangeResult(data=reply, sender=sender, truncated=truncated)

def _transfer(sock: socket.socket, payload: Payload, options: ExchangeOptions, log: logging.Logger,
              completion: queue.Queue, wake: threading.Event) -> None:
    # the worker is the last user of the socket, so it is the one that closes it
    try:
        outcome = _send_and_receive(sock, payload, options, log)
    except Exception as exc:
        outcome = exc
    finally:
        sock.close()
    completion.put_nowait(outcome)
    wake.set()

def exchange(
    cancel: CancelSignal | None,
    address: str | UdpEndpoint,
    payload: Payload,
    *,
    options: ExchangeOptions | None = None,
    logger: logging.Logger | None = None,
) -> ExchangeResult:
    """
    Send one datagram to `address` and wait for one reply.

    The call ends with the first of: a reply, the read deadline
    (options.timeout_s, counted from the end of the write), a send/receive
    failure, or `cancel` firing. On cancellation the call returns at once while
    the background send/receive runs to its own end; the socket is closed by
    that background worker, never underneath it.

    Raises:
        AddressResolutionError, AssociationError, TransmitError, ReceiveError,
        DeadlineExceededError, CancelledError
    """
    options = options or ExchangeOptions()
    log = logger or _log

    if not isinstance(payload, (bytes, bytearray, memoryview)) and not hasattr(payload, "read"):
        raise TypeError(f"payload must be bytes-like or readable, got {type(payload).__name__}")
    if cancel is not None and cancel.cancelled:
        raise CancelledError(cancel.reason or "cancelled")

    family, peer = resolve_endpoint(address)

    try:
        sock = socket.socket(family, socket.SOCK_DGRAM)
    except OSError as exc:
        raise AssociationError(f"cannot create socket: {exc}") from exc
    try:
        # connect() pins the socket to the peer: datagrams from anyone else are dropped
        sock.connect(peer)
    except OSError as exc:
        sock.close()
        raise AssociationError(f"cannot associate with {peer}: {exc}") from exc

    completion: queue.Queue = queue.Queue(maxsize=1)
    wake = threading.Event()
    worker = threading.Thread(
        target=_transfer,
        args=(sock, payload, options, log, completion, wake),
        name=f"udp-exchange-{peer[0]}:{peer[1]}",
        daemon=True,
    )
    try:
        worker.start()
    except RuntimeError as exc:
        sock.close()
        raise AssociationError(f"cannot start exchange worker: {exc}") from exc

    if cancel is not None:
        cancel.add_listener(wake.set)
    try:
        wake.wait()
    finally:
        if cancel is not None:
            cancel.remove_listener(wake.set)

    try:
        outcome = completion.get_nowait()
    except queue.Empty:
        log.debug("cancelled")
        raise CancelledError(cancel.reason if cancel is not None and cancel.reason else "cancelled") from None

    if isinstance(outcome, BaseException):
        raise outcome
    return outcome

class UdpExchanger:
    """Exchange helper bound to one endpoint, with its own options and logger."""

    def __init__(self, endpoint: UdpEndpoint | str, options: ExchangeOptions | None = None,
                 logger: logging.Logger | None = None):
        self._endpoint = endpoint if isinstance(endpoint, UdpEndpoint) else parse_address(endpoint)
        self._options = options or ExchangeOptions()
        self._log = logger or _log

    @property
    def endpoint(self) -> UdpEndpoint:
        return self._endpoint

    @property
    def options(self) -> ExchangeOptions:
        return self._options

    def exchange(self, payload: Payload, cancel: CancelSignal | None = None) -> ExchangeResult:
        return exchange(cancel, self._endpoint, payload, options=self._options, logger=self._log)

    def request(self, payload: bytes, cancel: CancelSignal | None = None, *,
                policy: RetryPolicy | None = None) -> ExchangeResult:
        # a readable source would be drained by the first attempt
        if policy is None:
            return self.exchange(payload, cancel)
        return with_retries(lambda: self.exchange(payload, cancel), policy)

    def __repr__(self) -> str:
        return f"UdpExchanger({self._endpoint}, timeout_s={self._options.timeout_s})"
