import asyncio
import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

try:
    from usagebar_telemetry.provider import LocalLimits, LocalMetricsProvider, cpu_warning, memory_warning
except ImportError:  # pragma: no cover
    LocalMetricsProvider = None


@unittest.skipIf(LocalMetricsProvider is None, "psutil not installed")
class LocalMetricsProviderTests(unittest.TestCase):
    def test_sample_returns_payload(self):
        provider = LocalMetricsProvider()
        payload = provider.sample()
        self.assertGreater(payload.rss, 0)
        self.assertGreaterEqual(payload.cpu_percent, 0.0)
        self.assertEqual(payload.limits, {})

    def test_limits_are_reported(self):
        provider = LocalMetricsProvider(limits=LocalLimits(mem_limit=1, cpu_limit=2))
        payload = asyncio.run(provider.fetch())
        self.assertEqual(payload.cpu_count, 2)
        self.assertEqual(payload.limit_for("memory").rss, 1)
        # Any live process is above a one byte limit.
        self.assertTrue(payload.limit_for("memory").warn)
        self.assertEqual(payload.limit_for("cpu").cpu, 2.0)

    def test_memory_warning_threshold(self):
        self.assertFalse(memory_warning(rss=800, mem_limit=1000, threshold=0.1))
        self.assertTrue(memory_warning(rss=950, mem_limit=1000, threshold=0.1))
        self.assertFalse(memory_warning(rss=950, mem_limit=None, threshold=0.1))
        self.assertFalse(memory_warning(rss=950, mem_limit=1000, threshold=0.0))

    def test_cpu_warning_threshold(self):
        self.assertFalse(cpu_warning(cpu_percent=150.0, cpu_limit=2, threshold=0.1))
        self.assertTrue(cpu_warning(cpu_percent=190.0, cpu_limit=2, threshold=0.1))
        self.assertFalse(cpu_warning(cpu_percent=190.0, cpu_limit=None, threshold=0.1))


if __name__ == "__main__":
    unittest.main()
