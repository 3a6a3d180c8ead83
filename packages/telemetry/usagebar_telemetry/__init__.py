"""Fetch capabilities for process resource metrics."""

from .endpoint import MetricsEndpoint
from .models import MalformedPayloadError, MetricPayload, MetricsFetchError, ResourceLimit

try:  # pragma: no cover - optional at import time for minimal test environments
    from .provider import LocalLimits, LocalMetricsProvider
except ImportError:  # pragma: no cover
    LocalLimits = None  # type: ignore[assignment]
    LocalMetricsProvider = None  # type: ignore[assignment]

__all__ = [
    "MalformedPayloadError",
    "MetricPayload",
    "MetricsEndpoint",
    "MetricsFetchError",
    "ResourceLimit",
]

if LocalMetricsProvider is not None:
    __all__ += ["LocalLimits", "LocalMetricsProvider"]
