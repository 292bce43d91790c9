#!/usr/bin/env python3
"""
Measure nvme-led-daemon overhead across polling profiles.

Usage:
    sudo ./bench.py
    sudo CSV_OUT=bench.csv ./bench.py --profiles balanced,battery

Each profile runs the daemon with a rewritten config, samples CPU%,
context switches/s and perf wakeups/s while idle, then again while reading
the NVMe device. Environment: DAEMON_BIN, BASE_CONFIG, CONF_PATH,
NVME_DEVICE, SAMPLE_SECONDS_IDLE, SAMPLE_SECONDS_ACTIVE, WARMUP, CSV_OUT.
Command line flags override the environment.
"""

import argparse
import sys

from errors import FatalConfigError
from experiment import preflight, run_sweep
from logs import log_error, log_info
from profiles import ALL_PROFILES, select_profiles
from report import TRAILER_NOTES, format_header, format_row, write_csv
from settings import BenchSettings


def build_parser():
    parser = argparse.ArgumentParser(
        description="Sweep nvme-led-daemon polling profiles and report CPU/wakeup overhead")
    parser.add_argument("--profiles", type=str, default=None,
                        help=f"comma separated subset of: {','.join(ALL_PROFILES)}")
    parser.add_argument("--csv", dest="csv_out", type=str, default=None, help="CSV output path")
    parser.add_argument("--idle", dest="sample_seconds_idle", type=int, default=None,
                        help="idle phase seconds")
    parser.add_argument("--active", dest="sample_seconds_active", type=int, default=None,
                        help="active phase seconds")
    parser.add_argument("--warmup", type=float, default=None, help="seconds to wait after start")
    parser.add_argument("--device", dest="nvme_device", type=str, default=None,
                        help="block device read during the active phase")
    parser.add_argument("--daemon-bin", dest="daemon_bin", type=str, default=None)
    parser.add_argument("--base-config", dest="base_config", type=str, default=None)
    return parser


def main(argv=None) -> int:
    try:
        return run(argv)
    except KeyboardInterrupt:
        print("\nInterrupted by user.")
        return 130


def run(argv=None) -> int:
    args = build_parser().parse_args(argv)
    overrides = {k: v for k, v in vars(args).items() if k != "profiles"}

    try:
        settings = BenchSettings.from_env(**overrides)
        labels = [l.strip() for l in args.profiles.split(",") if l.strip()] if args.profiles else None
        profiles = select_profiles(labels)
    except (FatalConfigError, ValueError) as e:
        log_error(str(e))
        return 1

    def print_row(row):
        print(format_row(row), flush=True)

    try:
        preflight(settings)
    except FatalConfigError as e:
        log_error(f"Error: {e}")
        return 1

    log_info(f"Sweeping {len(profiles)} profile(s) with {settings.daemon_bin}")
    for line in format_header():
        print(line)
    try:
        rows = run_sweep(settings, profiles, on_row=print_row, check=False)
    except FatalConfigError as e:
        log_error(f"Error: {e}")
        return 1

    if settings.csv_out:
        write_csv(rows, settings.csv_out)
        log_info(f"Wrote {len(rows)} row(s) to {settings.csv_out}")

    print()
    for line in TRAILER_NOTES:
        print(line)
    return 0


if __name__ == "__main__":
    sys.exit(main())
