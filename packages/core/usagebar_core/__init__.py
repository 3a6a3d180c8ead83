"""Core polling engine, usage models, settings, and logging."""

from .config import AppConfig, load_config, save_config
from .models import UNAVAILABLE, Frequency, PollPhase, PollState, ResourceKind, UsageSnapshot
from .poller import Poller
from .signals import Signal
from .usage_model import (
    UsageModel,
    build_usage_models,
    cpu_snapshot,
    cpu_usage_model,
    memory_snapshot,
    memory_usage_model,
)

__all__ = [
    "AppConfig",
    "Frequency",
    "PollPhase",
    "PollState",
    "Poller",
    "ResourceKind",
    "Signal",
    "UNAVAILABLE",
    "UsageModel",
    "UsageSnapshot",
    "build_usage_models",
    "cpu_snapshot",
    "cpu_usage_model",
    "load_config",
    "memory_snapshot",
    "memory_usage_model",
    "save_config",
]
