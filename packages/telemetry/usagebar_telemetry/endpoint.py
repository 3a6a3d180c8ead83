"""HTTP client for the metrics server extension endpoint."""

from __future__ import annotations

import asyncio
import json
import urllib.error
import urllib.parse
import urllib.request

from .models import MetricPayload, MetricsFetchError


DEFAULT_PATH = "api/metrics/v1"


class MetricsEndpoint:
    """Thin wrapper over urllib for `GET <base_url>/api/metrics/v1`."""

    def __init__(
        self,
        base_url: str = "http://localhost:8888/",
        token: str | None = None,
        timeout_s: float = 10.0,
        path: str = DEFAULT_PATH,
    ) -> None:
        self.base_url = base_url
        self.token = token
        self.timeout_s = timeout_s
        self.path = path

    @property
    def url(self) -> str:
        base = self.base_url if self.base_url.endswith("/") else self.base_url + "/"
        return urllib.parse.urljoin(base, self.path.lstrip("/"))

    def _request(self) -> urllib.request.Request:
        req = urllib.request.Request(self.url, method="GET")
        req.add_header("Accept", "application/json")
        if self.token:
            req.add_header("Authorization", f"token {self.token}")
        return req

    def fetch_sync(self) -> MetricPayload:
        try:
            with urllib.request.urlopen(self._request(), timeout=self.timeout_s) as resp:
                body = resp.read()
        except urllib.error.HTTPError as exc:
            raise MetricsFetchError(f"{self.url} answered HTTP {exc.code}") from exc
        except (urllib.error.URLError, OSError) as exc:
            raise MetricsFetchError(f"{self.url} unreachable: {exc}") from exc

        try:
            raw = json.loads(body.decode("utf-8"))
        except ValueError as exc:
            raise MetricsFetchError(f"{self.url} returned invalid JSON") from exc
        return MetricPayload.from_dict(raw)

    async def fetch(self) -> MetricPayload:
        return await asyncio.to_thread(self.fetch_sync)
