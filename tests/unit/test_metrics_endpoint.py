import asyncio
import json
import sys
import unittest
import urllib.error
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from usagebar_telemetry.endpoint import MetricsEndpoint
from usagebar_telemetry.models import MalformedPayloadError, MetricsFetchError


class _FakeResponse:
    def __init__(self, body):
        self._body = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")

    def read(self):
        return self._body

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        return False


class MetricsEndpointTests(unittest.TestCase):
    def test_url_joins_base_and_path(self):
        self.assertEqual(MetricsEndpoint("http://host:8888").url, "http://host:8888/api/metrics/v1")
        self.assertEqual(
            MetricsEndpoint("http://host:8888/user/alice/").url,
            "http://host:8888/user/alice/api/metrics/v1",
        )

    def test_fetch_parses_payload(self):
        body = {"cpu_percent": 45.0, "cpu_count": 4, "rss": 2048, "limits": {"cpu": {"warn": False}}}
        with patch("urllib.request.urlopen", return_value=_FakeResponse(body)) as urlopen:
            payload = MetricsEndpoint("http://host/", token="secret").fetch_sync()
        self.assertEqual(payload.cpu_count, 4)
        self.assertEqual(payload.rss, 2048)
        request = urlopen.call_args.args[0]
        self.assertEqual(request.get_header("Authorization"), "token secret")
        self.assertEqual(request.get_header("Accept"), "application/json")

    def test_no_token_no_auth_header(self):
        with patch("urllib.request.urlopen", return_value=_FakeResponse({})) as urlopen:
            MetricsEndpoint("http://host/").fetch_sync()
        self.assertIsNone(urlopen.call_args.args[0].get_header("Authorization"))

    def test_http_error_is_fetch_error(self):
        err = urllib.error.HTTPError("http://host/api/metrics/v1", 404, "Not Found", {}, None)
        with patch("urllib.request.urlopen", side_effect=err):
            with self.assertRaises(MetricsFetchError) as ctx:
                MetricsEndpoint("http://host/").fetch_sync()
        self.assertIn("404", str(ctx.exception))

    def test_connection_error_is_fetch_error(self):
        with patch("urllib.request.urlopen", side_effect=urllib.error.URLError("refused")):
            with self.assertRaises(MetricsFetchError):
                MetricsEndpoint("http://host/").fetch_sync()

    def test_invalid_json_is_fetch_error(self):
        with patch("urllib.request.urlopen", return_value=_FakeResponse(b"<html>")):
            with self.assertRaises(MetricsFetchError):
                MetricsEndpoint("http://host/").fetch_sync()

    def test_non_utf8_body_is_fetch_error(self):
        with patch("urllib.request.urlopen", return_value=_FakeResponse(b"\xff\xfe{not utf8")):
            with self.assertRaises(MetricsFetchError):
                MetricsEndpoint("http://host/").fetch_sync()

    def test_wrong_shape_is_malformed(self):
        with patch("urllib.request.urlopen", return_value=_FakeResponse([1, 2])):
            with self.assertRaises(MalformedPayloadError):
                MetricsEndpoint("http://host/").fetch_sync()

    def test_async_fetch(self):
        with patch("urllib.request.urlopen", return_value=_FakeResponse({"rss": 7})):
            payload = asyncio.run(MetricsEndpoint("http://host/").fetch())
        self.assertEqual(payload.rss, 7)


if __name__ == "__main__":
    unittest.main()
