from evlink.drivers.base import CapabilityNotImplementedError, Charger, ChargeStatus
from evlink.drivers.keba import KebaCharger

__all__ = ["Charger", "ChargeStatus", "CapabilityNotImplementedError", "KebaCharger"]
