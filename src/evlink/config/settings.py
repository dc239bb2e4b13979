from __future__ import annotations

from dataclasses import dataclass
import os

DEFAULT_BUFFER_SIZE = 1024
DEFAULT_TIMEOUT_S = 1.0


@dataclass(frozen=True)
class ExchangeOptions:
    buffer_size: int = DEFAULT_BUFFER_SIZE  # max reply size before truncation
    timeout_s: float = DEFAULT_TIMEOUT_S    # read deadline, armed after the write

    def __post_init__(self) -> None:
        if self.buffer_size < 1:
            raise ValueError(f"buffer_size must be positive, got {self.buffer_size}")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")


@dataclass(frozen=True)
class Settings:
    keba_uri: str
    udp_buffer_size: int
    udp_timeout_s: float
    sim_http: str
    sim_udp_host: str
    sim_udp_port: int

    def exchange_options(self) -> ExchangeOptions:
        return ExchangeOptions(buffer_size=self.udp_buffer_size, timeout_s=self.udp_timeout_s)


def get_settings() -> Settings:
    """
    Centralized configuration for drivers, tests and the simulator.
    Values come from environment variables with safe defaults.
    """
    return Settings(
        keba_uri=os.getenv("EVLINK_KEBA_URI", "127.0.0.1:7090"),
        udp_buffer_size=int(os.getenv("EVLINK_UDP_BUFFER_SIZE", str(DEFAULT_BUFFER_SIZE))),
        udp_timeout_s=float(os.getenv("EVLINK_UDP_TIMEOUT_S", str(DEFAULT_TIMEOUT_S))),
        sim_http=os.getenv("SIM_HTTP", "http://127.0.0.1:8000"),
        sim_udp_host=os.getenv("SIM_UDP_HOST", "127.0.0.1"),
        sim_udp_port=int(os.getenv("SIM_UDP_PORT", "7090")),
    )
