import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from usagebar_telemetry.models import MalformedPayloadError, MetricPayload, MetricsFetchError


class MetricPayloadTests(unittest.TestCase):
    def test_full_payload(self):
        payload = MetricPayload.from_dict(
            {
                "rss": 1024,
                "pss": 900,
                "cpu_percent": 45.0,
                "cpu_count": 4,
                "limits": {"memory": {"rss": 4096, "warn": True}, "cpu": {"cpu": 4, "warn": False}},
            }
        )
        self.assertEqual(payload.rss, 1024)
        self.assertEqual(payload.pss, 900)
        self.assertEqual(payload.cpu_percent, 45.0)
        self.assertEqual(payload.cpu_count, 4)
        self.assertTrue(payload.limit_for("memory").warn)
        self.assertEqual(payload.limit_for("memory").rss, 4096)
        self.assertEqual(payload.limit_for("cpu").cpu, 4.0)

    def test_every_field_is_optional(self):
        payload = MetricPayload.from_dict({})
        self.assertIsNone(payload.cpu_percent)
        self.assertIsNone(payload.cpu_count)
        self.assertIsNone(payload.rss)
        self.assertEqual(payload.limits, {})
        self.assertIsNone(payload.limit_for("cpu"))

    def test_null_limits_and_entries(self):
        payload = MetricPayload.from_dict({"cpu_percent": 1, "limits": {"cpu": None}})
        self.assertEqual(payload.limits, {})
        payload = MetricPayload.from_dict({"cpu_percent": 1, "limits": None})
        self.assertEqual(payload.limits, {})

    def test_limit_without_warn_defaults_false(self):
        payload = MetricPayload.from_dict({"limits": {"memory": {"rss": 10}}})
        self.assertFalse(payload.limit_for("memory").warn)

    def test_wrong_types_are_malformed(self):
        bad = [
            [],
            "nope",
            {"cpu_percent": "45"},
            {"cpu_percent": True},
            {"rss": [1]},
            {"limits": []},
            {"limits": {"cpu": "warn"}},
            {"limits": {"memory": {"rss": "lots"}}},
        ]
        for raw in bad:
            with self.subTest(raw=raw):
                with self.assertRaises(MalformedPayloadError):
                    MetricPayload.from_dict(raw)

    def test_malformed_is_a_fetch_error(self):
        self.assertTrue(issubclass(MalformedPayloadError, MetricsFetchError))

    def test_to_dict_skips_absent_fields(self):
        payload = MetricPayload.from_dict({"cpu_percent": 5.0, "limits": {"cpu": {"warn": True}}})
        self.assertEqual(payload.to_dict(), {"cpu_percent": 5.0, "limits": {"cpu": {"warn": True}}})


if __name__ == "__main__":
    unittest.main()
