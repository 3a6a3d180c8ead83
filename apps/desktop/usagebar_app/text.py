"""Status item text for the CPU and memory models."""

from __future__ import annotations

from typing import Union

from usagebar_core import UsageModel, UsageSnapshot


# Models and their snapshots expose the same read-only fields.
Usage = Union[UsageModel, UsageSnapshot]

MEMORY_UNITS = ("B", "KB", "MB", "GB", "TB", "PB")


def largest_unit(num_bytes: float) -> tuple[float, str]:
    """Scale bytes to the largest 1024-based unit that keeps the value >= 1."""
    value = float(num_bytes)
    for unit in MEMORY_UNITS[:-1]:
        if abs(value) < 1024:
            return value, unit
        value /= 1024
    return value, MEMORY_UNITS[-1]


def unit_divisor(unit: str) -> int:
    return 1024 ** MEMORY_UNITS.index(unit)


def _fmt_limit(limit: float) -> str:
    return str(int(limit)) if float(limit).is_integer() else f"{limit:g}"


def cpu_text(model: Usage, decimals: int = 3) -> str:
    current = f"{model.current_value:.{decimals}f}"
    if model.limit is None:
        return f"CPU: {current}"
    return f"CPU: {current} / {_fmt_limit(model.limit)}"


def memory_text(model: Usage, decimals: int = 2) -> str:
    current, unit = largest_unit(model.current_value)
    if model.limit is None:
        return f"Mem: {current:.{decimals}f} {unit}"
    limit = model.limit / unit_divisor(unit)
    return f"Mem: {current:.{decimals}f} / {limit:.{decimals}f} {unit}"


def tooltip(kind: str, model: Usage) -> str:
    if not model.available:
        return f"{kind} usage unavailable"
    if model.warning:
        return f"{kind} usage is close to its limit"
    return f"Current {kind.lower()} usage"
