"""
evlink - charger and vehicle integration layer.

The Keba wallbox speaks plain-text commands over UDP; evlink.transport holds
the single-shot, cancellable request/response exchange it is built on.
"""

from evlink.config.settings import ExchangeOptions, Settings, get_settings
from evlink.drivers import Charger, ChargeStatus, CapabilityNotImplementedError, KebaCharger
from evlink.transport import (
    AddressResolutionError,
    AssociationError,
    CancelledError,
    CancelSignal,
    DeadlineExceededError,
    ExchangeError,
    ExchangeResult,
    ReceiveError,
    TransmitError,
    UdpEndpoint,
    UdpExchanger,
    exchange,
)
from evlink.utils.retry import RetryPolicy, with_retries

__version__ = "0.3.0"
__all__ = [
    # Config
    "ExchangeOptions", "Settings", "get_settings",
    # Drivers
    "Charger", "ChargeStatus", "CapabilityNotImplementedError", "KebaCharger",
    # Transport
    "CancelSignal", "exchange", "ExchangeResult", "UdpEndpoint", "UdpExchanger",
    # Errors
    "ExchangeError", "AddressResolutionError", "AssociationError", "TransmitError",
    "ReceiveError", "DeadlineExceededError", "CancelledError",
    # Retry
    "RetryPolicy", "with_retries",
]
