from enum import IntEnum

class KebaState(IntEnum):
    """Values of the "State" field in report 2."""
    STARTING = 0
    NOT_READY = 1
    READY = 2
    CHARGING = 3
    ERROR = 4
    INTERRUPTED = 5
