"""Local psutil-backed metrics provider with the same payload shape as the server extension."""

from __future__ import annotations

import asyncio
import os
from dataclasses import dataclass

import psutil

from .models import MetricPayload, MetricsFetchError, ResourceLimit


@dataclass(frozen=True)
class LocalLimits:
    mem_limit: int | None = None
    mem_warning_threshold: float = 0.1
    cpu_limit: float | None = None
    cpu_warning_threshold: float = 0.1


def memory_warning(rss: int, mem_limit: int | None, threshold: float) -> bool:
    if not mem_limit or threshold <= 0:
        return False
    return (mem_limit - rss) < (mem_limit * threshold)


def cpu_warning(cpu_percent: float, cpu_limit: float | None, threshold: float) -> bool:
    if not cpu_limit or threshold <= 0:
        return False
    return (cpu_limit - cpu_percent / 100) < (cpu_limit * threshold)


class LocalMetricsProvider:
    """Samples one process tree; children are cached so cpu_percent stays primed."""

    def __init__(self, pid: int | None = None, limits: LocalLimits | None = None) -> None:
        self.limits = limits or LocalLimits()
        try:
            self._root = psutil.Process(pid or os.getpid())
        except psutil.Error as exc:
            raise MetricsFetchError(f"cannot watch pid {pid}: {exc}") from exc
        # Prime non-blocking CPU measurement.
        self._root.cpu_percent(interval=None)
        self._children: dict[int, psutil.Process] = {}

    def _tree(self) -> list[psutil.Process]:
        try:
            current = self._root.children(recursive=True)
        except psutil.NoSuchProcess as exc:
            raise MetricsFetchError(f"process {self._root.pid} is gone") from exc
        except psutil.AccessDenied:
            current = []

        seen: dict[int, psutil.Process] = {}
        for proc in current:
            cached = self._children.get(proc.pid)
            seen[proc.pid] = cached if cached is not None else proc
        self._children = seen
        return [self._root, *seen.values()]

    def sample(self) -> MetricPayload:
        rss = 0
        cpu_percent = 0.0
        for proc in self._tree():
            try:
                with proc.oneshot():
                    rss += int(proc.memory_info().rss)
                    cpu_percent += float(proc.cpu_percent(interval=None))
            except (psutil.NoSuchProcess, psutil.ZombieProcess, psutil.AccessDenied):
                if proc is self._root:
                    raise MetricsFetchError(f"process {proc.pid} cannot be sampled")
                continue

        lim = self.limits
        limits: dict[str, ResourceLimit] = {}
        if lim.mem_limit:
            limits["memory"] = ResourceLimit(
                warn=memory_warning(rss, lim.mem_limit, lim.mem_warning_threshold),
                rss=int(lim.mem_limit),
            )
        if lim.cpu_limit:
            limits["cpu"] = ResourceLimit(
                warn=cpu_warning(cpu_percent, lim.cpu_limit, lim.cpu_warning_threshold),
                cpu=float(lim.cpu_limit),
            )

        cpu_count = lim.cpu_limit or psutil.cpu_count()
        return MetricPayload(
            cpu_percent=cpu_percent,
            cpu_count=(int(cpu_count) if cpu_count else None),
            rss=rss,
            limits=limits,
        )

    async def fetch(self) -> MetricPayload:
        return await asyncio.to_thread(self.sample)
