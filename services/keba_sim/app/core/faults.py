from __future__ import annotations
from dataclasses import dataclass
import random

@dataclass
class FaultConfig:
    delay_ms: int = 0           # add delay before responding
    drop_rate: float = 0.0      # 0.0..1.0
    pad_bytes: int = 0          # filler appended to every reply

    def should_drop(self) -> bool:
        return self.drop_rate > 0 and random.random() < self.drop_rate

    def apply_padding(self, reply: bytes) -> bytes:
        if self.pad_bytes <= 0:
            return reply
        return reply + b" " * self.pad_bytes
