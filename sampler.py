import os
import shutil
import subprocess
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Optional

from logs import log_warn
from parse import (
    ctx_switch_rate,
    parse_ctx_switches,
    parse_perf_wakeups,
    parse_pidstat_cpu,
    perf_wakeup_rate,
    wakeup_events,
    SCHED_WAKEUP_EVENTS,
)

TOOL_ENV = {**os.environ, "LC_ALL": "C"}
# Slack on top of the window before an external tool is considered hung
TOOL_TIMEOUT_SLACK = 10


@dataclass(frozen=True)
class PhaseMeasurement:
    cpu_percent: Optional[float] = None
    ctx_switch_rate: Optional[float] = None
    wakeup_rate: Optional[float] = None

    @classmethod
    def unavailable(cls):
        return cls()

    def to_dict(self):
        return asdict(self)


@dataclass(frozen=True)
class Toolset:
    pidstat: Optional[str] = None
    perf: Optional[str] = None
    perf_events: str = SCHED_WAKEUP_EVENTS

    @classmethod
    def detect(cls):
        """Look up pidstat and perf on PATH and pick the perf wakeup events."""
        pidstat = shutil.which("pidstat")
        perf = shutil.which("perf")
        events = SCHED_WAKEUP_EVENTS
        if perf:
            out = _run_tool([perf, "list"], timeout=30)
            if out is not None:
                events = wakeup_events(out[0])
        return cls(pidstat=pidstat, perf=perf, perf_events=events)

    def missing(self):
        return [name for name in ("pidstat", "perf") if getattr(self, name) is None]


def _run_tool(cmd, timeout):
    """Run an external measurement tool; None if it does not exist."""
    try:
        p = subprocess.run(cmd, capture_output=True, text=True, env=TOOL_ENV,
                           timeout=timeout, check=False)
        return p.stdout or "", p.stderr or ""
    except FileNotFoundError:
        return None
    except subprocess.TimeoutExpired as e:
        out = e.stdout.decode(errors="replace") if isinstance(e.stdout, bytes) else (e.stdout or "")
        err = e.stderr.decode(errors="replace") if isinstance(e.stderr, bytes) else (e.stderr or "")
        log_warn(f"{cmd[0]} timed out after {timeout}s")
        return out, err


def _wait_until(deadline):
    remaining = deadline - time.monotonic()
    if remaining > 0:
        time.sleep(remaining)


class PhaseSampler:
    """
    Measures one process over one window with three sources at once:
    pidstat CPU%, /proc context switches and perf wakeup counts.
    """

    def __init__(self, tools: Toolset, proc_root="/proc"):
        self.tools = tools
        self.proc_root = Path(proc_root)

    def measure(self, pid: int, seconds: float) -> PhaseMeasurement:
        deadline = time.monotonic() + seconds
        with ThreadPoolExecutor(max_workers=3, thread_name_prefix="phase") as pool:
            cpu = pool.submit(self.sample_cpu, pid, seconds, deadline)
            ctx = pool.submit(self.sample_ctx_switches, pid, seconds, deadline)
            wake = pool.submit(self.sample_wakeups, pid, seconds, deadline)
            results = [self._result(f, name) for f, name in
                       ((cpu, "cpu"), (ctx, "ctxsw"), (wake, "wakeups"))]
        _wait_until(deadline)
        return PhaseMeasurement(*results)

    @staticmethod
    def _result(future, name):
        try:
            return future.result()
        except Exception as e:
            log_warn(f"{name} sampling failed: {type(e).__name__}: {e}")
            return None

    # --- CPU utilization ---
    def sample_cpu(self, pid, seconds, deadline):
        value = None
        if self.tools.pidstat:
            count = max(1, int(seconds))
            out = _run_tool([self.tools.pidstat, "-p", str(pid), "1", str(count)],
                            timeout=count + TOOL_TIMEOUT_SLACK)
            if out is not None:
                value = parse_pidstat_cpu(out[0])
        _wait_until(deadline)
        return value

    # --- Context switches ---
    def read_ctx_switches(self, pid):
        try:
            text = (self.proc_root / str(pid) / "status").read_text()
        except OSError:
            return None
        return parse_ctx_switches(text)

    def sample_ctx_switches(self, pid, seconds, deadline):
        before = self.read_ctx_switches(pid)
        _wait_until(deadline)
        after = self.read_ctx_switches(pid)
        return ctx_switch_rate(before, after, seconds)

    # --- Kernel wakeups ---
    def sample_wakeups(self, pid, seconds, deadline):
        value = None
        if self.tools.perf:
            cmd = [self.tools.perf, "stat", "-e", self.tools.perf_events,
                   "-p", str(pid), "--", "sleep", f"{seconds:g}"]
            out = _run_tool(cmd, timeout=seconds + TOOL_TIMEOUT_SLACK)
            if out is not None:
                # perf stat reports on stderr
                value = perf_wakeup_rate(parse_perf_wakeups(out[1]), seconds)
        _wait_until(deadline)
        return value
