from __future__ import annotations

import asyncio
import json

from usagebar_app import cli
from usagebar_core import AppConfig
from usagebar_telemetry import MetricPayload, MetricsFetchError


def test_watch_prints_one_line_per_change(capsys) -> None:
    async def fetch():
        return MetricPayload.from_dict({"cpu_percent": 45.0, "cpu_count": 4, "rss": 2048})

    rc = asyncio.run(cli.watch(AppConfig(), fetch, seconds=0.05))
    assert rc == 0

    rows = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
    by_resource = {row["resource"]: row for row in rows}
    assert len(rows) == 2
    assert by_resource["cpu"]["current_value"] == 0.45
    assert by_resource["cpu"]["limit"] == 4
    assert by_resource["memory"]["current_value"] == 2048
    assert all(row["available"] for row in rows)


def test_watch_is_silent_while_source_is_down(capsys) -> None:
    async def fetch():
        raise MetricsFetchError("connection refused")

    rc = asyncio.run(cli.watch(AppConfig(), fetch, seconds=0.05))
    assert rc == 0
    assert capsys.readouterr().out == ""


def test_fetch_command_reports_failure(monkeypatch, capsys) -> None:
    async def failing():
        raise MetricsFetchError("unreachable")

    monkeypatch.setattr(cli, "load_config", AppConfig)
    monkeypatch.setattr(cli, "build_fetcher", lambda cfg, local=None, url=None: failing)
    rc = cli.cmd_fetch(cli.build_parser().parse_args(["fetch"]))
    assert rc == 2
    assert json.loads(capsys.readouterr().out) == {"error": "unreachable", "success": False}


def test_watch_command_clamps_refresh_ms(monkeypatch) -> None:
    seen = {}

    async def fake_watch(cfg, fetch, seconds):
        seen["cfg"] = cfg
        return 0

    monkeypatch.setattr(cli, "load_config", AppConfig)
    monkeypatch.setattr(cli, "build_fetcher", lambda cfg, local=None, url=None: None)
    monkeypatch.setattr(cli, "watch", fake_watch)

    assert cli.cmd_watch(cli.build_parser().parse_args(["watch", "--refresh-ms", "0"])) == 0
    assert seen["cfg"].poll.cpu_refresh_ms == 500
    assert seen["cfg"].poll.memory_refresh_ms == 500

    assert cli.cmd_watch(cli.build_parser().parse_args(["watch", "--refresh-ms", "-5"])) == 0
    assert seen["cfg"].poll.cpu_refresh_ms == 500

    assert cli.cmd_watch(cli.build_parser().parse_args(["watch", "--refresh-ms", "99999999"])) == 0
    assert seen["cfg"].poll.memory_refresh_ms == 600_000
