"""
Charger capability contract.

Every charger driver implements this interface; the integration layer only
talks to chargers through it.
"""

from abc import ABC, abstractmethod
from enum import Enum


class ChargeStatus(str, Enum):
    """IEC 61851 control pilot states."""

    A = "A"  # no vehicle connected
    B = "B"  # vehicle connected, not charging
    C = "C"  # charging
    D = "D"  # charging, ventilation required
    E = "E"  # error, no power
    F = "F"  # charger fault


class CapabilityNotImplementedError(NotImplementedError):
    """
    Driver does not support an operation.

    Signals a capability gap, never a network fault; it is deliberately not an
    ExchangeError.
    """

    def __init__(self, driver: str, operation: str):
        self.driver = driver
        self.operation = operation
        super().__init__(f"{driver}: {operation} not implemented")


class Charger(ABC):
    """Abstract charger."""

    @abstractmethod
    def status(self) -> ChargeStatus:
        """Current control pilot state."""
        ...

    @abstractmethod
    def enabled(self) -> bool:
        ...

    @abstractmethod
    def enable(self, enable: bool) -> None:
        """Allow or forbid charging."""
        ...

    @abstractmethod
    def max_current(self, current: int) -> None:
        """
        Set the charge current limit.

        Args:
            current: Limit in amperes
        """
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"
