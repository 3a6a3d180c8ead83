"""CLI entrypoints for the UsageBar status strip and console tools."""

from __future__ import annotations

import argparse
import asyncio
import json
from datetime import datetime, timezone

from usagebar_core import AppConfig, ResourceKind, UsageModel, build_usage_models, load_config
from usagebar_core.config import clamp_refresh_ms
from usagebar_core.logging_setup import configure_logging, get_logger
from usagebar_telemetry import MetricsFetchError

from .sources import build_fetcher


def _print_json(data: object, indent: int | None = 2) -> None:
    print(json.dumps(data, indent=indent, sort_keys=True, default=str), flush=True)


def snapshot_row(kind: ResourceKind, model: UsageModel) -> dict[str, object]:
    return {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "resource": kind.value,
        "available": model.available,
        "current_value": model.current_value,
        "limit": model.limit,
        "warning": model.warning,
    }


def cmd_run(_args: argparse.Namespace) -> int:
    from .app import run_gui

    return run_gui()


def cmd_fetch(args: argparse.Namespace) -> int:
    cfg = load_config()
    try:
        fetch = build_fetcher(cfg, local=args.local or None, url=args.url)
        payload = asyncio.run(fetch())
    except MetricsFetchError as exc:
        _print_json({"success": False, "error": str(exc)})
        return 2
    _print_json({"success": True, "payload": payload.to_dict()})
    return 0


async def watch(cfg: AppConfig, fetch, seconds: float | None) -> int:
    models = build_usage_models(fetch, cfg)
    changes = 0

    def _on_change(model: UsageModel) -> None:
        nonlocal changes
        changes += 1
        kind = next(k for k, m in models.items() if m is model)
        _print_json(snapshot_row(kind, model), indent=None)

    for model in models.values():
        model.state_changed.connect(_on_change)
        model.start()
    try:
        if seconds:
            await asyncio.sleep(seconds)
        else:
            await asyncio.Event().wait()
    finally:
        for model in models.values():
            model.dispose()
        get_logger().info(f"watch finished after {changes} changes", extra={"event": "watch_done"})
    return 0


def cmd_watch(args: argparse.Namespace) -> int:
    cfg = load_config()
    if args.refresh_ms is not None:
        cfg.poll.cpu_refresh_ms = clamp_refresh_ms(args.refresh_ms)
        cfg.poll.memory_refresh_ms = cfg.poll.cpu_refresh_ms
    if args.no_backoff:
        cfg.poll.backoff = False
    try:
        fetch = build_fetcher(cfg, local=args.local or None, url=args.url)
        return asyncio.run(watch(cfg, fetch, args.seconds))
    except MetricsFetchError as exc:
        _print_json({"success": False, "error": str(exc)})
        return 2
    except KeyboardInterrupt:
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="usagebar", description="Live CPU and memory usage status")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Run the desktop status strip")
    run_cmd.set_defaults(func=cmd_run)

    fetch_cmd = sub.add_parser("fetch", help="Fetch metrics once and print the payload")
    fetch_cmd.add_argument("--local", action="store_true", help="Sample this machine with psutil instead of HTTP")
    fetch_cmd.add_argument("--url", default=None, help="Override the server base URL")
    fetch_cmd.set_defaults(func=cmd_fetch)

    watch_cmd = sub.add_parser("watch", help="Print a JSON line whenever CPU or memory usage changes")
    watch_cmd.add_argument("--seconds", type=float, default=None, help="Stop after this many seconds")
    watch_cmd.add_argument("--refresh-ms", type=int, default=None, help="Poll interval for both resources")
    watch_cmd.add_argument("--no-backoff", action="store_true", help="Retry failures at the plain interval")
    watch_cmd.add_argument("--local", action="store_true", help="Sample this machine with psutil instead of HTTP")
    watch_cmd.add_argument("--url", default=None, help="Override the server base URL")
    watch_cmd.set_defaults(func=cmd_watch)

    return parser


def main(argv: list[str] | None = None) -> int:
    configure_logging(console=False)
    parser = build_parser()
    args = parser.parse_args(argv)
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
