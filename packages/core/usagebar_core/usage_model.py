"""Change-notifying usage models for the CPU and memory status items."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, Callable

from usagebar_telemetry.models import MalformedPayloadError, MetricPayload

from .logging_setup import get_logger
from .models import UNAVAILABLE, Frequency, PollPhase, PollState, ResourceKind, UsageSnapshot
from .poller import Factory, Poller, Sleep
from .signals import Signal

if TYPE_CHECKING:
    from .config import AppConfig


Mapper = Callable[[Any], UsageSnapshot]


def cpu_snapshot(payload: MetricPayload) -> UsageSnapshot:
    """CPU in cores: 45% of one core is 0.45; `cpu_count` is the limit."""
    if payload.cpu_percent is None:
        raise MalformedPayloadError("payload has no cpu_percent")
    limit = payload.limit_for(ResourceKind.CPU.value)
    return UsageSnapshot(
        available=True,
        current_value=payload.cpu_percent / 100,
        limit=(float(payload.cpu_count) if payload.cpu_count else None),
        warning=(limit.warn if limit is not None else False),
    )


def memory_snapshot(payload: MetricPayload) -> UsageSnapshot:
    """Memory in bytes; unit scaling is left to the display."""
    if payload.rss is None:
        raise MalformedPayloadError("payload has no rss")
    limit = payload.limit_for(ResourceKind.MEMORY.value)
    return UsageSnapshot(
        available=True,
        current_value=float(payload.rss),
        limit=(float(limit.rss) if limit is not None and limit.rss else None),
        warning=(limit.warn if limit is not None else False),
    )


class UsageModel:
    """Latest interpreted snapshot of one resource, fed by its own poller.

    `state_changed` fires exactly once per tick whose snapshot differs from the
    previous one in any field, and never after `dispose()`.
    """

    def __init__(
        self,
        factory: Factory,
        mapper: Mapper,
        refresh_ms: int,
        backoff: bool = True,
        name: str = "",
        *,
        sleep: Sleep = asyncio.sleep,
        timeout_ms: int | None = None,
    ) -> None:
        self.name = name or "usage"
        self.state_changed = Signal(f"{self.name}#state_changed")
        self._mapper = mapper
        self._snapshot = UNAVAILABLE
        self._disposed = False
        self._logger = get_logger()
        self._poll = Poller(
            factory,
            Frequency(interval_ms=refresh_ms, backoff=backoff),
            name=f"{self.name}#metrics",
            sleep=sleep,
            timeout_ms=timeout_ms,
        )
        self._poll.ticked.connect(self._on_poll_ticked)

    @property
    def poller(self) -> Poller:
        return self._poll

    @property
    def snapshot(self) -> UsageSnapshot:
        return self._snapshot

    @property
    def available(self) -> bool:
        return self._snapshot.available

    @property
    def current_value(self) -> float:
        return self._snapshot.current_value

    @property
    def limit(self) -> float | None:
        return self._snapshot.limit

    @property
    def warning(self) -> bool:
        return self._snapshot.warning

    @property
    def phase(self) -> PollPhase:
        return self._poll.phase

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    def start(self) -> None:
        self._poll.start()

    def refresh(self) -> None:
        self._poll.refresh()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self.state_changed.disconnect_all()
        self._poll.dispose()

    def _on_poll_ticked(self, _poll: Poller, state: PollState) -> None:
        self.on_tick(state.payload, state.phase)

    def on_tick(self, payload: Any, phase: PollPhase) -> None:
        if self._disposed:
            return
        if phase == PollPhase.RESOLVED:
            try:
                if isinstance(payload, Mapping):
                    payload = MetricPayload.from_dict(dict(payload))
                snapshot = self._mapper(payload)
            except (MalformedPayloadError, AttributeError, TypeError, KeyError) as exc:
                self._logger.debug(f"{self.name}: unusable payload: {exc}", extra={"event": "payload_unusable"})
                snapshot = UNAVAILABLE
        elif phase == PollPhase.REJECTED:
            snapshot = UNAVAILABLE
        else:
            return

        if snapshot == self._snapshot:
            return
        self._snapshot = snapshot
        self.state_changed.emit(self)


def cpu_usage_model(factory: Factory, refresh_ms: int = 5000, backoff: bool = True, **kwargs: Any) -> UsageModel:
    return UsageModel(factory, cpu_snapshot, refresh_ms, backoff, name="cpu", **kwargs)


def memory_usage_model(factory: Factory, refresh_ms: int = 5000, backoff: bool = True, **kwargs: Any) -> UsageModel:
    return UsageModel(factory, memory_snapshot, refresh_ms, backoff, name="memory", **kwargs)


def build_usage_models(factory: Factory, config: AppConfig, **kwargs: Any) -> dict[ResourceKind, UsageModel]:
    poll = config.poll
    kwargs.setdefault("timeout_ms", poll.timeout_ms)
    return {
        ResourceKind.CPU: cpu_usage_model(factory, poll.cpu_refresh_ms, poll.backoff, **kwargs),
        ResourceKind.MEMORY: memory_usage_model(factory, poll.memory_refresh_ms, poll.backoff, **kwargs),
    }
