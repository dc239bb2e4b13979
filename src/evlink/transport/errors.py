from __future__ import annotations


class ExchangeError(Exception):
    """Base class for every failure of a UDP exchange."""


class AddressResolutionError(ExchangeError):
    """Endpoint string could not be turned into a datagram address."""


class AssociationError(ExchangeError):
    """Datagram socket could not be created or connected to the peer."""


class TransmitError(ExchangeError):
    pass


class ReceiveError(ExchangeError):
    pass


class DeadlineExceededError(ExchangeError, TimeoutError):
    """No reply arrived before the read deadline."""

    def __init__(self, timeout_s: float):
        self.timeout_s = timeout_s
        super().__init__(f"no reply within {timeout_s}s")


class CancelledError(ExchangeError):
    """Caller cancelled the exchange before a reply or deadline."""

    def __init__(self, reason: str = "cancelled"):
        self.reason = reason
        super().__init__(reason)
