from __future__ import annotations
import json
from dataclasses import dataclass, field
from .state import KebaState
from .faults import FaultConfig

PRODUCT = "KC-P30-EC240422-E00"
SERIAL = "17619300"
FIRMWARE = "P30 v 3.10.16 (201207-093315)"

OK_REPLY = b"TCH-OK :done\n"
ERR_REPLY = b"TCH-ERR\n"

@dataclass
class SimModel:
    state: KebaState = KebaState.READY
    plug: int = 7                 # cable plugged in station and vehicle, locked
    enabled: bool = True
    max_curr_ma: int = 32000
    curr_ma: int = 16000
    energy_present_wh: float = 0.0
    energy_total_wh: float = 0.0
    reset_count: int = 0
    faults: FaultConfig = field(default_factory=FaultConfig)

    def reset(self) -> None:
        self.state = KebaState.READY
        self.enabled = True
        self.curr_ma = 16000
        self.energy_present_wh = 0.0
        self.reset_count += 1
        # keep faults as-is; tests can choose to reset them explicitly

    def set_enabled(self, enable: bool) -> None:
        self.enabled = enable
        if enable and self.plug == 7:
            self.state = KebaState.CHARGING
        elif self.state == KebaState.CHARGING:
            self.state = KebaState.INTERRUPTED

    def set_current(self, ma: int) -> None:
        if ma != 0 and not (6000 <= ma <= 63000):
            raise ValueError(f"current out of range: {ma}")
        self.curr_ma = min(ma, self.max_curr_ma)

    def report(self, n: int) -> dict:
        if n == 1:
            return {"ID": "1", "Product": PRODUCT, "Serial": SERIAL, "Firmware": FIRMWARE}
        if n == 2:
            return {
                "ID": "2",
                "State": int(self.state),
                "Plug": self.plug,
                "Enable sys": int(self.enabled),
                "Max curr": self.max_curr_ma,
                "Curr user": self.curr_ma,
            }
        if n == 3:
            charging = self.state == KebaState.CHARGING
            return {
                "ID": "3",
                "U1": 230, "U2": 230, "U3": 230,
                "I1": self.curr_ma if charging else 0,
                "I2": self.curr_ma if charging else 0,
                "I3": self.curr_ma if charging else 0,
                "E pres": round(self.energy_present_wh * 10),
                "E total": round(self.energy_total_wh * 10),
            }
        raise ValueError(f"unknown report {n}")

    def handle(self, command: str) -> bytes:
        """Answer one ASCII command the way the wallbox does."""
        parts = command.strip().split()
        if not parts:
            return ERR_REPLY
        verb, args = parts[0], parts[1:]
        try:
            if verb == "i" and not args:
                return f'"Firmware":"{FIRMWARE}"\n'.encode()
            if verb == "report" and len(args) == 1:
                return json.dumps(self.report(int(args[0]))).encode()
            if verb == "ena" and len(args) == 1 and args[0] in ("0", "1"):
                self.set_enabled(args[0] == "1")
                return OK_REPLY
            if verb == "curr" and len(args) == 1:
                self.set_current(int(args[0]))
                return OK_REPLY
        except ValueError:
            return ERR_REPLY
        return ERR_REPLY
