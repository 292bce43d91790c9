import unittest

from pydantic import ValidationError

from errors import FatalConfigError
from profiles import ALL_PROFILES, PROFILES, ProfileSpec, select_profiles
from settings import BenchSettings


class TestProfiles(unittest.TestCase):
    def test_declared_order(self):
        self.assertEqual(ALL_PROFILES, ["ultra", "responsive", "balanced", "60fps", "battery", "ultra_saver"])

    def test_theoretical_wakeups(self):
        for p in PROFILES:
            self.assertEqual(p.theoretical_wakeups_per_sec, 1000.0 / p.interval_ms)
        self.assertEqual(PROFILES[2].theoretical_wakeups_per_sec, 100.0)

    def test_immutable_and_validated(self):
        with self.assertRaises(ValidationError):
            PROFILES[0].interval_ms = 1
        with self.assertRaises(ValidationError):
            ProfileSpec(label="bad", interval_ms=0, read_blink_ms=0, write_blink_ms=0)

    def test_select_keeps_declared_order(self):
        picked = select_profiles(["battery", "ultra"])
        self.assertEqual([p.label for p in picked], ["ultra", "battery"])
        self.assertEqual(select_profiles(None), PROFILES)

    def test_select_unknown(self):
        with self.assertRaises(ValueError):
            select_profiles(["turbo"])


class TestSettings(unittest.TestCase):
    def test_defaults(self):
        s = BenchSettings.from_env({})
        self.assertEqual(s.daemon_bin, "/usr/local/bin/nvme-led-daemon")
        self.assertEqual(s.base_config, "/etc/nvme-led-daemon.conf")
        self.assertEqual(s.conf_path, "/run/nvme-led-bench.toml")
        self.assertEqual(s.nvme_device, "/dev/nvme0n1")
        self.assertEqual(s.sample_seconds_idle, 15)
        self.assertEqual(s.sample_seconds_active, 15)
        self.assertEqual(s.warmup, 0.6)
        self.assertIsNone(s.csv_out)

    def test_environment(self):
        s = BenchSettings.from_env({
            "NVME_DEVICE": "/dev/nvme1n1",
            "SAMPLE_SECONDS_IDLE": "5",
            "WARMUP": "1.5",
            "CSV_OUT": "bench.csv",
            "BASE_CONFIG": "",
        })
        self.assertEqual(s.nvme_device, "/dev/nvme1n1")
        self.assertEqual(s.sample_seconds_idle, 5.0)
        self.assertEqual(s.warmup, 1.5)
        self.assertEqual(s.csv_out, "bench.csv")
        self.assertEqual(s.base_config, "/etc/nvme-led-daemon.conf")

    def test_overrides_win(self):
        s = BenchSettings.from_env({"SAMPLE_SECONDS_IDLE": "5"}, sample_seconds_idle=2.0, csv_out=None)
        self.assertEqual(s.sample_seconds_idle, 2.0)

    def test_invalid_is_fatal(self):
        with self.assertRaises(FatalConfigError):
            BenchSettings.from_env({"SAMPLE_SECONDS_IDLE": "soon"})
        with self.assertRaises(FatalConfigError):
            BenchSettings.from_env({"SAMPLE_SECONDS_ACTIVE": "0"})

    def test_fractional_window_refused(self):
        with self.assertRaises(FatalConfigError):
            BenchSettings.from_env({"SAMPLE_SECONDS_IDLE": "2.5"})
        with self.assertRaises(FatalConfigError):
            BenchSettings.from_env({}, sample_seconds_active=3.5)
        self.assertEqual(BenchSettings.from_env({"SAMPLE_SECONDS_ACTIVE": "4"}).sample_seconds_active, 4)


if __name__ == "__main__":
    unittest.main()
