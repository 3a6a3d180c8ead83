"""Typed models for poll state and usage snapshots."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class PollPhase(str, Enum):
    INSTANTIATED = "instantiated"
    STARTED = "started"
    RESOLVED = "resolved"
    REJECTED = "rejected"
    STOPPED = "stopped"


class ResourceKind(str, Enum):
    CPU = "cpu"
    MEMORY = "memory"


@dataclass(frozen=True)
class Frequency:
    interval_ms: int
    backoff: bool = True
    factor: float = 2.0
    max_ms: int | None = None

    def __post_init__(self) -> None:
        if self.interval_ms <= 0:
            raise ValueError(f"interval_ms must be positive, got {self.interval_ms}")
        if self.factor < 1.0:
            raise ValueError(f"backoff factor must be >= 1, got {self.factor}")

    @property
    def ceiling_ms(self) -> int:
        if self.max_ms is None:
            return 10 * self.interval_ms
        return max(self.interval_ms, self.max_ms)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PollState:
    phase: PollPhase = PollPhase.INSTANTIATED
    payload: Any = None
    attempt: int = 0
    failures: int = 0
    next_delay_ms: int = 0
    error: str | None = None
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class UsageSnapshot:
    available: bool
    current_value: float
    limit: float | None
    warning: bool


UNAVAILABLE = UsageSnapshot(available=False, current_value=0.0, limit=None, warning=False)
