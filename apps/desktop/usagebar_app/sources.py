"""Pick the fetch capability described by the settings."""

from __future__ import annotations

from typing import Any, Awaitable, Callable

from usagebar_core import AppConfig
from usagebar_telemetry import MetricsEndpoint


def build_fetcher(cfg: AppConfig, local: bool | None = None, url: str | None = None) -> Callable[[], Awaitable[Any]]:
    use_local = cfg.endpoint.source == "local" if local is None else local
    if use_local:
        from usagebar_telemetry.provider import LocalLimits, LocalMetricsProvider

        provider = LocalMetricsProvider(
            pid=cfg.local.pid,
            limits=LocalLimits(
                mem_limit=cfg.local.mem_limit,
                mem_warning_threshold=cfg.local.mem_warning_threshold,
                cpu_limit=cfg.local.cpu_limit,
                cpu_warning_threshold=cfg.local.cpu_warning_threshold,
            ),
        )
        return provider.fetch

    endpoint = MetricsEndpoint(
        base_url=url or cfg.endpoint.base_url,
        token=cfg.endpoint.token,
        timeout_s=cfg.endpoint.timeout_s,
    )
    return endpoint.fetch
