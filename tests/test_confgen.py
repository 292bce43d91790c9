import os
import tempfile
import unittest
from pathlib import Path

from confgen import synthesize_config, write_profile_config
from errors import FatalConfigError
from profiles import ProfileSpec

BALANCED = ProfileSpec(label="balanced", interval_ms=10, read_blink_ms=10, write_blink_ms=20)
BATTERY = ProfileSpec(label="battery", interval_ms=20, read_blink_ms=20, write_blink_ms=40)

BASE = """\
# nvme-led-daemon configuration
led_path = /sys/class/leds/tpacpi::power/brightness
nvme_path = /sys/block/nvme0n1/stat
interval_ms = 10
  read_blink_ms=8

active_high = false
"""


class TestSynthesizeConfig(unittest.TestCase):
    def test_balanced_keeps_other_lines(self):
        out = synthesize_config(BASE, BALANCED)
        lines = out.splitlines()
        base_lines = BASE.splitlines()
        self.assertEqual(lines[3], "interval_ms = 10")
        self.assertEqual(lines[4], "read_blink_ms = 10")
        for i in (0, 1, 2, 5, 6):
            self.assertEqual(lines[i], base_lines[i])
        self.assertEqual(lines[-1], "write_blink_ms = 20")
        self.assertEqual(len(lines), len(base_lines) + 1)

    def test_idempotent(self):
        once = synthesize_config(BASE, BATTERY)
        twice = synthesize_config(once, BATTERY)
        self.assertEqual(once, twice)

    def test_absent_keys_appended_once(self):
        out = synthesize_config("quiet = true\n", BATTERY)
        self.assertEqual(out, "quiet = true\ninterval_ms = 20\nread_blink_ms = 20\nwrite_blink_ms = 40\n")
        out = synthesize_config(out, BATTERY)
        for key in ("interval_ms", "read_blink_ms", "write_blink_ms"):
            self.assertEqual(sum(1 for l in out.splitlines() if l.startswith(key)), 1)

    def test_only_first_match_rewritten(self):
        base = "interval_ms = 5\ninterval_ms = 7\n"
        out = synthesize_config(base, BATTERY)
        self.assertTrue(out.startswith("interval_ms = 20\ninterval_ms = 7\n"))

    def test_similar_key_names_untouched(self):
        base = "interval_ms_max = 99\n# interval_ms = 3\n"
        out = synthesize_config(base, BALANCED)
        self.assertTrue(out.startswith(base))
        self.assertIn("interval_ms = 10\n", out)

    def test_line_endings_preserved(self):
        base = "led_path = /x\r\ninterval_ms = 3\r\n"
        out = synthesize_config(base, BALANCED)
        self.assertTrue(out.startswith("led_path = /x\r\ninterval_ms = 10\r\n"))

    def test_missing_trailing_newline(self):
        out = synthesize_config("quiet = true", BALANCED)
        self.assertTrue(out.startswith("quiet = true\ninterval_ms = 10\n"))

    def test_empty_base(self):
        out = synthesize_config("", BALANCED)
        self.assertEqual(out, "interval_ms = 10\nread_blink_ms = 10\nwrite_blink_ms = 20\n")


class TestWriteProfileConfig(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.dir = Path(self.tmp.name)

    def tearDown(self):
        self.tmp.cleanup()

    def test_writes_transient_config(self):
        base = self.dir / "base.conf"
        base.write_text(BASE)
        conf = write_profile_config(base, self.dir / "run" / "bench.toml", BATTERY)
        self.assertTrue(conf.exists())
        self.assertIn("interval_ms = 20", conf.read_text())
        # Base document is never modified
        self.assertEqual(base.read_text(), BASE)

    def test_missing_base_is_fatal(self):
        with self.assertRaises(FatalConfigError):
            write_profile_config(self.dir / "nope.conf", self.dir / "out.toml", BALANCED)


if __name__ == "__main__":
    unittest.main()
