"""Persistent app settings schema and load/save helpers."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from .paths import config_root


CONFIG_VERSION = 1

REFRESH_MS_MIN = 500
REFRESH_MS_MAX = 600_000


@dataclass
class EndpointConfig:
    source: str = "http"
    base_url: str = "http://localhost:8888/"
    token: str | None = None
    timeout_s: float = 10.0


@dataclass
class PollConfig:
    cpu_refresh_ms: int = 5000
    memory_refresh_ms: int = 5000
    backoff: bool = True
    timeout_ms: int | None = None


@dataclass
class DisplayConfig:
    cpu_decimals: int = 3
    memory_decimals: int = 2
    hide_unavailable: bool = True


@dataclass
class LocalConfig:
    pid: int | None = None
    mem_limit: int | None = None
    mem_warning_threshold: float = 0.1
    cpu_limit: float | None = None
    cpu_warning_threshold: float = 0.1


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    endpoint: EndpointConfig = field(default_factory=EndpointConfig)
    poll: PollConfig = field(default_factory=PollConfig)
    display: DisplayConfig = field(default_factory=DisplayConfig)
    local: LocalConfig = field(default_factory=LocalConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


def config_path() -> Path:
    return config_root() / "config.json"


def _merge(dataclass_type, raw: Any):
    defaults = dataclass_type()  # type: ignore[misc]
    if not isinstance(raw, dict):
        return defaults
    for k, v in raw.items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _clamp_refresh(value: Any, default: int) -> int:
    try:
        ms = int(value)
    except (TypeError, ValueError):
        ms = default
    return max(REFRESH_MS_MIN, min(REFRESH_MS_MAX, ms))


def clamp_refresh_ms(value: Any) -> int:
    return _clamp_refresh(value, PollConfig.cpu_refresh_ms)


def _clamp_fraction(value: Any, default: float) -> float:
    try:
        frac = float(value)
    except (TypeError, ValueError):
        frac = default
    return max(0.0, min(1.0, frac))


def _normalize_endpoint(cfg: AppConfig) -> None:
    if cfg.endpoint.source not in ("http", "local"):
        cfg.endpoint.source = "http"
    if not cfg.endpoint.base_url:
        cfg.endpoint.base_url = EndpointConfig.base_url
    cfg.endpoint.timeout_s = float(max(0.5, float(cfg.endpoint.timeout_s or EndpointConfig.timeout_s)))


def _normalize_poll(cfg: AppConfig) -> None:
    cfg.poll.cpu_refresh_ms = _clamp_refresh(cfg.poll.cpu_refresh_ms, PollConfig.cpu_refresh_ms)
    cfg.poll.memory_refresh_ms = _clamp_refresh(cfg.poll.memory_refresh_ms, PollConfig.memory_refresh_ms)
    cfg.poll.backoff = bool(cfg.poll.backoff)
    if cfg.poll.timeout_ms is not None:
        cfg.poll.timeout_ms = max(100, int(cfg.poll.timeout_ms))


def _normalize_display(cfg: AppConfig) -> None:
    cfg.display.cpu_decimals = max(0, min(6, int(cfg.display.cpu_decimals)))
    cfg.display.memory_decimals = max(0, min(6, int(cfg.display.memory_decimals)))


def _normalize_local(cfg: AppConfig) -> None:
    cfg.local.mem_warning_threshold = _clamp_fraction(cfg.local.mem_warning_threshold, 0.1)
    cfg.local.cpu_warning_threshold = _clamp_fraction(cfg.local.cpu_warning_threshold, 0.1)


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        return AppConfig()
    if not isinstance(data, dict):
        return AppConfig()

    cfg = AppConfig(
        config_version=CONFIG_VERSION,
        endpoint=_merge(EndpointConfig, data.get("endpoint", {})),
        poll=_merge(PollConfig, data.get("poll", {})),
        display=_merge(DisplayConfig, data.get("display", {})),
        local=_merge(LocalConfig, data.get("local", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_endpoint(cfg)
    _normalize_poll(cfg)
    _normalize_display(cfg)
    _normalize_local(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
