"""Asyncio polling loop with exponential backoff and terminal disposal."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from .logging_setup import get_logger
from .models import Frequency, PollPhase, PollState
from .signals import Signal


Factory = Callable[[], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[Any]]


class Poller:
    """Repeatedly awaits `factory`, one attempt at a time, until disposed.

    Every finished attempt is reported on `ticked` as ``(poller, state)`` where
    ``state.phase`` is either RESOLVED (with the payload) or REJECTED (payload
    None). Successful attempts are spaced by ``frequency.interval_ms``; failed
    ones by the backed-off delay from :meth:`next_delay_ms`.
    """

    def __init__(
        self,
        factory: Factory,
        frequency: Frequency,
        name: str = "",
        *,
        sleep: Sleep = asyncio.sleep,
        timeout_ms: int | None = None,
    ) -> None:
        self.factory = factory
        self.frequency = frequency
        self.name = name or "poll"
        self.timeout_ms = timeout_ms
        self.ticked = Signal(f"{self.name}#ticked")

        self._sleep = sleep
        self._state = PollState()
        self._task: asyncio.Task[None] | None = None
        self._wake: asyncio.Event | None = None
        self._disposed = False
        self._attempt = 0
        self._failures = 0
        self._events: list[dict[str, Any]] = []
        self._logger = get_logger()

    @property
    def state(self) -> PollState:
        return self._state

    @property
    def phase(self) -> PollPhase:
        return self._state.phase

    @property
    def is_disposed(self) -> bool:
        return self._disposed

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def recent_events(self, limit: int = 200) -> list[dict[str, Any]]:
        return self._events[-limit:]

    def _log_event(self, event: str, level: int = logging.DEBUG, **fields: Any) -> None:
        row = {
            "ts_utc": datetime.now(timezone.utc).isoformat(),
            "event": event,
            "phase": self._state.phase.value,
        }
        row.update(fields)
        self._events.append(row)
        if len(self._events) > 1000:
            self._events = self._events[-1000:]
        self._logger.log(level, f"{self.name}: {event}", extra={"event": event, "poll": self.name})

    def next_delay_ms(self, failures: int) -> int:
        """Delay before the next attempt after `failures` consecutive failures."""
        freq = self.frequency
        if failures <= 0 or not freq.backoff:
            return freq.interval_ms
        ceiling = freq.ceiling_ms
        try:
            delay = freq.interval_ms * freq.factor ** (failures - 1)
        except OverflowError:
            return ceiling
        return int(min(ceiling, delay))

    def start(self) -> None:
        if self._disposed:
            raise RuntimeError(f"{self.name} is disposed")
        if self._task is not None:
            return
        self._wake = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run(), name=self.name)
        self._log_event("poll_start", interval_ms=self.frequency.interval_ms)

    def refresh(self) -> None:
        """Cut the current wait short so the next attempt starts right away."""
        if self._wake is not None and not self._disposed:
            self._wake.set()

    def dispose(self) -> None:
        if self._disposed:
            return
        self._disposed = True
        self._state = PollState(
            phase=PollPhase.STOPPED,
            attempt=self._attempt,
            failures=self._failures,
        )
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self.ticked.disconnect_all()
        self._log_event("poll_disposed")

    async def _fetch(self) -> Any:
        if self.timeout_ms is None:
            return await self.factory()
        return await asyncio.wait_for(self.factory(), timeout=self.timeout_ms / 1000)

    async def _run(self) -> None:
        while not self._disposed:
            self._attempt += 1
            self._state = PollState(
                phase=PollPhase.STARTED,
                attempt=self._attempt,
                failures=self._failures,
            )
            try:
                payload = await self._fetch()
            except Exception as exc:
                if self._disposed:
                    return
                self._failures += 1
                delay = self.next_delay_ms(self._failures)
                error = str(exc) or type(exc).__name__
                state = PollState(
                    phase=PollPhase.REJECTED,
                    attempt=self._attempt,
                    failures=self._failures,
                    next_delay_ms=delay,
                    error=error,
                )
                level = logging.WARNING if self._failures == 1 else logging.DEBUG
                self._state = state
                self._log_event("poll_rejected", level, error=error, failures=self._failures, wait_ms=delay)
            else:
                if self._disposed:
                    return
                if self._failures:
                    self._log_event("poll_recovered", logging.INFO, failures=self._failures)
                self._failures = 0
                delay = self.frequency.interval_ms
                state = PollState(
                    phase=PollPhase.RESOLVED,
                    payload=payload,
                    attempt=self._attempt,
                    next_delay_ms=delay,
                )
                self._state = state
                self._log_event("poll_resolved", wait_ms=delay)

            self.ticked.emit(self, state)
            if self._disposed:
                return
            await self._wait(delay)

    async def _wait(self, delay_ms: int) -> None:
        wake = self._wake
        assert wake is not None
        if wake.is_set():
            wake.clear()
            return

        nap = asyncio.ensure_future(self._sleep(delay_ms / 1000))
        woken = asyncio.ensure_future(wake.wait())
        try:
            await asyncio.wait({nap, woken}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for fut in (nap, woken):
                if not fut.done():
                    fut.cancel()
        wake.clear()
