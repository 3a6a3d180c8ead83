import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "apps" / "desktop"))
sys.path.insert(0, str(ROOT / "packages" / "core"))
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from usagebar_app.cli import build_parser


class CliTests(unittest.TestCase):
    def test_run_command(self):
        parser = build_parser()
        args = parser.parse_args(["run"])
        self.assertEqual(args.command, "run")

    def test_fetch_command(self):
        parser = build_parser()
        args = parser.parse_args(["fetch", "--url", "http://host:8888/"])
        self.assertEqual(args.command, "fetch")
        self.assertEqual(args.url, "http://host:8888/")
        self.assertFalse(args.local)

    def test_watch_command(self):
        parser = build_parser()
        args = parser.parse_args(["watch", "--seconds", "3", "--refresh-ms", "1000", "--no-backoff", "--local"])
        self.assertEqual(args.command, "watch")
        self.assertEqual(args.seconds, 3.0)
        self.assertEqual(args.refresh_ms, 1000)
        self.assertTrue(args.no_backoff)
        self.assertTrue(args.local)


if __name__ == "__main__":
    unittest.main()
