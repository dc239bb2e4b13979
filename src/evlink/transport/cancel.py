from __future__ import annotations

import threading
from typing import Callable

Listener = Callable[[], None]


class CancelSignal:
    """
    One-way cancellation latch shared between a caller and an exchange.

    Once cancelled it stays cancelled; listeners fire exactly once, on the
    thread that calls cancel() (or immediately, if added afterwards).
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self._lock = threading.Lock()
        self._listeners: list[Listener] = []
        self._reason: str | None = None
        self._timer: threading.Timer | None = None

    @classmethod
    def after(cls, seconds: float) -> "CancelSignal":
        """Signal that cancels itself once `seconds` have elapsed."""
        sig = cls()
        timer = threading.Timer(seconds, sig.cancel, kwargs={"reason": "deadline exceeded"})
        timer.daemon = True
        sig._timer = timer
        timer.start()
        return sig

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        return self._reason

    def cancel(self, reason: str = "cancelled") -> None:
        with self._lock:
            if self._event.is_set():
                return
            self._reason = reason
            self._event.set()
            listeners, self._listeners = self._listeners, []
            timer, self._timer = self._timer, None

        if timer is not None:
            timer.cancel()
        for fn in listeners:
            fn()

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)

    def add_listener(self, fn: Listener) -> None:
        with self._lock:
            if not self._event.is_set():
                self._listeners.append(fn)
                return
        fn()

    def remove_listener(self, fn: Listener) -> None:
        with self._lock:
            try:
                self._listeners.remove(fn)
            except ValueError:
                pass

    def __repr__(self) -> str:
        state = f"cancelled={self._reason!r}" if self.cancelled else "pending"
        return f"CancelSignal({state})"
