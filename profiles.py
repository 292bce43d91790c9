# -----------------------------------------------------------------------------
# Polling profiles swept by the benchmark
#
# Each profile is one daemon configuration: the stat polling interval and the
# per-direction blink durations. Order matters, profiles run first to last.
# -----------------------------------------------------------------------------
from pydantic import BaseModel, ConfigDict, Field


class ProfileSpec(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    interval_ms: int = Field(gt=0)
    read_blink_ms: int = Field(ge=0)
    write_blink_ms: int = Field(ge=0)

    @property
    def theoretical_wakeups_per_sec(self) -> float:
        # One timer expiry per interval
        return 1000.0 / self.interval_ms


PROFILES = (
    # Fastest polling, most wakeups
    ProfileSpec(label="ultra", interval_ms=6, read_blink_ms=6, write_blink_ms=12),
    ProfileSpec(label="responsive", interval_ms=8, read_blink_ms=8, write_blink_ms=16),
    # Default shipped configuration
    ProfileSpec(label="balanced", interval_ms=10, read_blink_ms=10, write_blink_ms=20),
    ProfileSpec(label="60fps", interval_ms=16, read_blink_ms=16, write_blink_ms=48),
    ProfileSpec(label="battery", interval_ms=20, read_blink_ms=20, write_blink_ms=40),
    ProfileSpec(label="ultra_saver", interval_ms=50, read_blink_ms=50, write_blink_ms=100),
)

ALL_PROFILES = [p.label for p in PROFILES]


def select_profiles(labels, profiles=PROFILES):
    """
    Return the profiles named in `labels`, keeping the declared order.
    An empty or None selection means every profile.
    """
    if not labels:
        return tuple(profiles)
    known = {p.label for p in profiles}
    unknown = [l for l in labels if l not in known]
    if unknown:
        raise ValueError(f"unknown profile(s): {', '.join(unknown)}")
    wanted = set(labels)
    return tuple(p for p in profiles if p.label in wanted)
