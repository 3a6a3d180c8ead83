"""Typed metric payload models and their JSON parsing."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


class MetricsFetchError(RuntimeError):
    """A metrics request failed; the attempt should count as rejected."""


class MalformedPayloadError(MetricsFetchError):
    """The metrics source answered, but not with a usable payload shape."""


@dataclass(frozen=True)
class ResourceLimit:
    warn: bool = False
    rss: int | None = None
    cpu: float | None = None


@dataclass(frozen=True)
class MetricPayload:
    cpu_percent: float | None = None
    cpu_count: int | None = None
    rss: int | None = None
    pss: int | None = None
    limits: dict[str, ResourceLimit] = field(default_factory=dict)

    def limit_for(self, kind: str) -> ResourceLimit | None:
        return self.limits.get(kind)

    @classmethod
    def from_dict(cls, raw: Any) -> MetricPayload:
        if not isinstance(raw, dict):
            raise MalformedPayloadError(f"expected a JSON object, got {type(raw).__name__}")

        limits_raw = raw.get("limits")
        if limits_raw is None:
            limits_raw = {}
        if not isinstance(limits_raw, dict):
            raise MalformedPayloadError("'limits' must be an object")

        limits: dict[str, ResourceLimit] = {}
        for kind, entry in limits_raw.items():
            if entry is None:
                continue
            if not isinstance(entry, dict):
                raise MalformedPayloadError(f"'limits.{kind}' must be an object")
            limits[str(kind)] = ResourceLimit(
                warn=bool(entry.get("warn", False)),
                rss=_optional_int(entry, "rss", f"limits.{kind}.rss"),
                cpu=_optional_float(entry, "cpu", f"limits.{kind}.cpu"),
            )

        return cls(
            cpu_percent=_optional_float(raw, "cpu_percent", "cpu_percent"),
            cpu_count=_optional_int(raw, "cpu_count", "cpu_count"),
            rss=_optional_int(raw, "rss", "rss"),
            pss=_optional_int(raw, "pss", "pss"),
            limits=limits,
        )

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {}
        for key in ("cpu_percent", "cpu_count", "rss", "pss"):
            value = getattr(self, key)
            if value is not None:
                out[key] = value
        limits: dict[str, Any] = {}
        for kind, limit in self.limits.items():
            entry: dict[str, Any] = {"warn": limit.warn}
            if limit.rss is not None:
                entry["rss"] = limit.rss
            if limit.cpu is not None:
                entry["cpu"] = limit.cpu
            limits[kind] = entry
        out["limits"] = limits
        return out


def _is_number(value: Any) -> bool:
    # bool is an int subclass but never a valid metric value.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _optional_float(raw: dict[str, Any], key: str, label: str) -> float | None:
    value = raw.get(key)
    if value is None:
        return None
    if not _is_number(value):
        raise MalformedPayloadError(f"'{label}' must be a number, got {value!r}")
    return float(value)


def _optional_int(raw: dict[str, Any], key: str, label: str) -> int | None:
    value = raw.get(key)
    if value is None:
        return None
    if not _is_number(value):
        raise MalformedPayloadError(f"'{label}' must be a number, got {value!r}")
    return int(value)
