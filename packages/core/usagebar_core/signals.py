"""Synchronous fan-out signal used for tick and change notifications."""

from __future__ import annotations

from typing import Any, Callable

from .logging_setup import get_logger


Slot = Callable[..., Any]


class Signal:
    """Plain callback list; `emit` calls every slot in connection order on the caller's thread."""

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._slots: list[Slot] = []

    def __len__(self) -> int:
        return len(self._slots)

    def connect(self, slot: Slot) -> None:
        if slot not in self._slots:
            self._slots.append(slot)

    def disconnect(self, slot: Slot) -> bool:
        try:
            self._slots.remove(slot)
        except ValueError:
            return False
        return True

    def disconnect_all(self) -> None:
        self._slots.clear()

    def emit(self, *args: Any) -> None:
        for slot in list(self._slots):
            try:
                slot(*args)
            except Exception:
                get_logger().exception(
                    f"slot failed on signal {self.name or '<anonymous>'}",
                    extra={"event": "signal_slot_error"},
                )
