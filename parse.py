import re
from typing import Optional

import numpy as np

# Counter lines of `perf stat`: "      1,234      sched:sched_wakeup"
PERF_COUNT_PATTERN = re.compile(
    r'^\s*([\d,.]+|<not counted>|<not supported>)\s+(\S+)'
)

STATUS_PATTERN = re.compile(
    r'^(voluntary_ctxt_switches|nonvoluntary_ctxt_switches):\s*(\S+)', re.MULTILINE
)

WAKEUP_PMU_EVENT = "events/wakeup/"
SCHED_WAKEUP_EVENTS = "sched:sched_wakeup,sched:sched_wakeup_new"


def _to_float(token: str) -> Optional[float]:
    try:
        return float(token.replace(',', '.'))
    except ValueError:
        return None


def parse_pidstat_cpu(text: str) -> Optional[float]:
    """
    Extracts the %CPU of a single-process `pidstat -p PID 1 N` run.

    Prefers the "Average:" row. When pidstat was cut short and never printed
    it, falls back to the mean of every per-second sample. Returns None when
    the header or the samples are missing.
    """
    cpu_col = None
    average = None
    samples = []

    for line in (text or "").splitlines():
        fields = line.split()
        if not fields:
            continue

        # Header repeats every screenful; the column index is the same each time
        if 'UID' in fields and 'PID' in fields and '%CPU' in fields:
            cpu_col = fields.index('%CPU')
            continue
        if cpu_col is None or len(fields) <= cpu_col:
            continue

        value = _to_float(fields[cpu_col])
        if value is None:
            continue
        if fields[0] == 'Average:':
            average = value
            break
        if fields[0][0].isdigit():
            samples.append(value)

    if average is not None:
        return round(average, 2)
    if samples:
        return round(float(np.mean(samples)), 2)
    return None


def parse_ctx_switches(status_text: str) -> Optional[int]:
    """Voluntary plus non-voluntary switches from a /proc/<pid>/status dump."""
    counters = {}
    for key, value in STATUS_PATTERN.findall(status_text or ""):
        if not value.isdigit():
            return None
        counters[key] = int(value)
    if len(counters) != 2:
        return None
    return counters['voluntary_ctxt_switches'] + counters['nonvoluntary_ctxt_switches']


def ctx_switch_rate(before: Optional[int], after: Optional[int], seconds: float) -> Optional[float]:
    if before is None or after is None or seconds <= 0:
        return None
    # Counters going backwards means the PID was reused or restarted
    if after < before:
        return None
    return (after - before) / seconds


def parse_perf_wakeups(text: str) -> Optional[int]:
    """
    Sums the counts of every wakeup event reported by `perf stat`.
    Events perf could not count contribute zero; None if no wakeup
    counter line is present at all.
    """
    total = 0
    found = False
    for line in (text or "").splitlines():
        match = PERF_COUNT_PATTERN.match(line)
        if not match:
            continue
        count, event = match.groups()
        if 'wakeup' not in event:
            continue
        found = True
        if count.startswith('<'):
            continue
        digits = count.replace(',', '').replace('.', '')
        if digits.isdigit():
            total += int(digits)
    return total if found else None


def perf_wakeup_rate(count: Optional[int], seconds: float) -> Optional[float]:
    if count is None or seconds <= 0:
        return None
    return count / seconds


def has_wakeup_pmu(perf_list_text: str) -> bool:
    return WAKEUP_PMU_EVENT in (perf_list_text or "")


def wakeup_events(perf_list_text: str) -> str:
    """Event list for `perf stat -e`, preferring the dedicated wakeup PMU."""
    if has_wakeup_pmu(perf_list_text):
        return WAKEUP_PMU_EVENT
    return SCHED_WAKEUP_EVENTS
