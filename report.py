import math

import pandas as pd

NA = "N/A"

CSV_COLUMNS = [
    "profile", "interval_ms", "read_blink_ms", "write_blink_ms", "theory_wps",
    "cpu_idle", "ctxsw_idle", "perf_idle",
    "cpu_active", "ctxsw_active", "perf_active",
]

# (title, width) for each column left of the "|" divider, then right of it
IDLE_COLUMNS = [
    ("profile", 12), ("interval", 10), ("theory_wps", 12),
    ("cpu idle%", 13), ("ctxsw/s idle", 13), ("perf_wake/s idle", 16),
]
ACTIVE_COLUMNS = [
    ("cpu act%", 13), ("ctxsw/s act", 13), ("perf_wake/s act", 16),
]

TRAILER_NOTES = [
    "Notes:",
    "- If cpu columns remain N/A, ensure sysstat (pidstat) is installed; it is run with LC_ALL=C.",
    "- perf wakeups may be near zero at idle; increase interval to see effect on ctxsw/s.",
    "- Set CSV_OUT=bench.csv (or --csv) to save results.",
]


def fmt_value(value, digits=2):
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return NA
    return f"{value:.{digits}f}"


def _line(left, right, notes):
    left_part = " ".join(f"{v:<{w}}" for v, (_, w) in zip(left, IDLE_COLUMNS))
    right_part = " ".join(f"{v:<{w}}" for v, (_, w) in zip(right, ACTIVE_COLUMNS))
    return f"{left_part} | {right_part} {notes}".rstrip()


def format_header():
    """Column titles plus the dashed separator line."""
    titles = _line([t for t, _ in IDLE_COLUMNS], [t for t, _ in ACTIVE_COLUMNS], "notes")
    dashes = _line(["-" * w for _, w in IDLE_COLUMNS],
                   ["-" * w for _, w in ACTIVE_COLUMNS], "-----")
    return [titles, dashes]


def format_row(row):
    p = row.profile
    left = [
        p.label, f"{p.interval_ms}ms", fmt_value(row.theoretical_wakeups_per_sec, 1),
        fmt_value(row.idle.cpu_percent), fmt_value(row.idle.ctx_switch_rate),
        fmt_value(row.idle.wakeup_rate),
    ]
    right = [
        fmt_value(row.active.cpu_percent), fmt_value(row.active.ctx_switch_rate),
        fmt_value(row.active.wakeup_rate),
    ]
    return _line(left, right, row.notes)


def render_table(rows):
    return "\n".join(format_header() + [format_row(r) for r in rows])


def rows_to_frame(rows):
    records = []
    for row in rows:
        p = row.profile
        records.append({
            "profile": p.label,
            "interval_ms": p.interval_ms,
            "read_blink_ms": p.read_blink_ms,
            "write_blink_ms": p.write_blink_ms,
            "theory_wps": fmt_value(row.theoretical_wakeups_per_sec, 1),
            "cpu_idle": row.idle.cpu_percent,
            "ctxsw_idle": row.idle.ctx_switch_rate,
            "perf_idle": row.idle.wakeup_rate,
            "cpu_active": row.active.cpu_percent,
            "ctxsw_active": row.active.ctx_switch_rate,
            "perf_active": row.active.wakeup_rate,
        })
    df = pd.DataFrame(records, columns=CSV_COLUMNS)
    measured = CSV_COLUMNS[5:]
    df[measured] = df[measured].astype(float)
    return df


def write_csv(rows, path):
    """One line per row, unavailable values left empty."""
    df = rows_to_frame(rows)
    df.to_csv(path, index=False, na_rep="", float_format="%.2f")
    return df
