import os
import time
from dataclasses import dataclass
from pathlib import Path

from activity import ActivityGenerator
from confgen import write_profile_config
from daemon import DaemonManager
from errors import FatalConfigError, StartFailure
from logs import log_info, log_warn
from profiles import PROFILES, ProfileSpec
from sampler import PhaseMeasurement, PhaseSampler, Toolset


@dataclass(frozen=True)
class BenchmarkRow:
    profile: ProfileSpec
    theoretical_wakeups_per_sec: float
    idle: PhaseMeasurement
    active: PhaseMeasurement
    notes: str = ""

    @classmethod
    def failed(cls, profile, reason):
        return cls(
            profile=profile,
            theoretical_wakeups_per_sec=profile.theoretical_wakeups_per_sec,
            idle=PhaseMeasurement.unavailable(),
            active=PhaseMeasurement.unavailable(),
            notes=reason,
        )

    def to_dict(self):
        return {
            "profile": self.profile.model_dump(),
            "theoretical_wakeups_per_sec": self.theoretical_wakeups_per_sec,
            "idle": self.idle.to_dict(),
            "active": self.active.to_dict(),
            "notes": self.notes,
        }


def preflight(settings):
    """
    Abort before any profile runs if the sweep cannot work at all.
    Missing measurement tools and running unprivileged only warn.
    """
    if not Path(settings.daemon_bin).is_file():
        raise FatalConfigError(f"{settings.daemon_bin} missing")
    if not Path(settings.base_config).is_file():
        raise FatalConfigError(f"{settings.base_config} missing")
    if hasattr(os, "geteuid") and os.geteuid() != 0:
        log_warn("Not running as root: perf, O_DIRECT reads and stopping the service may fail")


def run_profile(profile, settings, manager, sampler) -> BenchmarkRow:
    """
    One profile: write its config, start the daemon, measure idle, then
    measure again under disk load, and always tear both down.
    """
    conf_path = write_profile_config(settings.base_config, settings.conf_path, profile)

    try:
        handle = manager.start(conf_path)
    except StartFailure as e:
        log_warn(f"{profile.label}: {e}")
        return BenchmarkRow.failed(profile, f"daemon failed to start: {e}")

    try:
        log_info(f"{profile.label}: idle phase ({settings.sample_seconds_idle:g}s, pid {handle.pid})")
        idle = sampler.measure(handle.pid, settings.sample_seconds_idle)

        log_info(f"{profile.label}: active phase ({settings.sample_seconds_active:g}s)")
        with ActivityGenerator(settings.nvme_device, settings.sample_seconds_active) as load:
            active = sampler.measure(handle.pid, settings.sample_seconds_active)
        notes = "" if load.readable else "no device I/O"
    finally:
        manager.stop(handle)
        time.sleep(settings.settle)

    return BenchmarkRow(
        profile=profile,
        theoretical_wakeups_per_sec=profile.theoretical_wakeups_per_sec,
        idle=idle,
        active=active,
        notes=notes,
    )


def run_sweep(settings, profiles=PROFILES, manager=None, sampler=None, on_row=None,
              check=True):
    """Run every profile in order and return one row per profile."""
    if check:
        preflight(settings)

    if manager is None:
        manager = DaemonManager(settings.daemon_bin, warmup=settings.warmup)
    if sampler is None:
        tools = Toolset.detect()
        for name in tools.missing():
            log_warn(f"{name} not found; its column will be N/A")
        sampler = PhaseSampler(tools)

    rows = []
    try:
        for profile in profiles:
            row = run_profile(profile, settings, manager, sampler)
            rows.append(row)
            if on_row is not None:
                on_row(row)
    finally:
        manager.stop(manager.current)
    return rows
