from evlink.transport.cancel import CancelSignal
from evlink.transport.errors import (
    AddressResolutionError,
    AssociationError,
    CancelledError,
    DeadlineExceededError,
    ExchangeError,
    ReceiveError,
    TransmitError,
)
from evlink.transport.udp import (
    ExchangeResult,
    UdpEndpoint,
    UdpExchanger,
    exchange,
    parse_address,
    resolve_endpoint,
)

__all__ = [
    "CancelSignal",
    "ExchangeError",
    "AddressResolutionError",
    "AssociationError",
    "TransmitError",
    "ReceiveError",
    "DeadlineExceededError",
    "CancelledError",
    "ExchangeResult",
    "UdpEndpoint",
    "UdpExchanger",
    "exchange",
    "parse_address",
    "resolve_endpoint",
]
