"""
Keba KeContact P20/P30 driver.

The wallbox answers plain ASCII commands ("i", "report 2", "ena 1", ...) on
UDP port 7090, one datagram in and one datagram out.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from evlink.config.settings import ExchangeOptions
from evlink.drivers.base import CapabilityNotImplementedError, Charger, ChargeStatus
from evlink.transport.cancel import CancelSignal
from evlink.transport.udp import UdpExchanger
from evlink.utils.retry import RetryPolicy

KEBA_PORT = 7090


class KebaCharger(Charger):
    """Keba charger over UDP."""

    def __init__(
        self,
        uri: str,
        *,
        options: ExchangeOptions | None = None,
        logger: logging.Logger | None = None,
    ):
        """
        Args:
            uri: "host:port" of the wallbox; port 7090 is assumed when missing
            options: Reply buffer size and read deadline
            logger: Logger for packet traces (defaults to this module's)
        """
        self._log = logger or logging.getLogger(__name__)
        self._client = UdpExchanger(_with_default_port(uri), options=options, logger=self._log)

    @classmethod
    def from_config(cls, other: Mapping[str, Any], **kwargs: Any) -> "KebaCharger":
        """Create a charger from a driver config block like {"uri": "192.0.2.10:7090"}."""
        lowered = {str(k).lower(): v for k, v in other.items()}
        uri = lowered.get("uri")
        if not uri:
            raise ValueError("keba: missing uri")
        return cls(str(uri), **kwargs)

    @property
    def endpoint(self) -> str:
        return str(self._client.endpoint)

    def send(
        self,
        command: str | bytes,
        cancel: CancelSignal | None = None,
        *,
        policy: RetryPolicy | None = None,
    ) -> bytes:
        """
        Send one command and return the raw reply.

        Args:
            command: ASCII command text or pre-encoded bytes
            cancel: Signal that abandons the wait when fired
            policy: Retry policy applied around the exchange

        Returns:
            Reply bytes, uninterpreted

        Raises:
            ExchangeError: Any transport failure from the exchange
        """
        payload = command.encode("ascii") if isinstance(command, str) else bytes(command)
        result = self._client.request(payload, cancel, policy=policy)
        if result.truncated:
            self._log.warning("keba reply to %r truncated at %d bytes", command, result.bytes_received)
        return result.data

    def status(self) -> ChargeStatus:
        raise CapabilityNotImplementedError("keba", "status")

    def enabled(self) -> bool:
        raise CapabilityNotImplementedError("keba", "enabled")

    def enable(self, enable: bool) -> None:
        raise CapabilityNotImplementedError("keba", "enable")

    def max_current(self, current: int) -> None:
        raise CapabilityNotImplementedError("keba", "max_current")

    def __repr__(self) -> str:
        return f"KebaCharger({self.endpoint})"


def _with_default_port(uri: str) -> str:
    uri = uri.strip()
    if uri.startswith("["):
        if "]:" in uri:
            return uri
        return f"{uri}:{KEBA_PORT}"
    if ":" in uri:
        # bare IPv6 literal has several colons and no port
        if uri.count(":") > 1:
            return f"[{uri}]:{KEBA_PORT}"
        return uri
    return f"{uri}:{KEBA_PORT}"
