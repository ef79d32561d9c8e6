"""
Running pace estimates from music tempo.

The expected pace is a rough min/mile figure shown next to each track.
"""

import math

# 10 min/mi at 120 BPM, one minute faster per +20 BPM
BASE_PACE_MIN_PER_MI = 10.0
BASE_PACE_BPM = 120
BPM_PER_MINUTE = 20
FASTEST_PACE = 5.0
SLOWEST_PACE = 15.0


def expected_pace_min_per_mile(bpm: float | None) -> float | None:
    """Expected running pace (min/mi) for a track, or None below 60 BPM."""
    if not bpm or bpm < 60:
        return None
    pace = BASE_PACE_MIN_PER_MI - (bpm - BASE_PACE_BPM) / BPM_PER_MINUTE
    return max(FASTEST_PACE, min(SLOWEST_PACE, pace))


def format_pace(minutes: float | None, unit: str | None = None) -> str:
    """Format a pace as e.g. '4:32', or '4:32 /mi' when ``unit`` is given."""
    if minutes is None or minutes <= 0 or not math.isfinite(minutes):
        return "—"
    total_sec = minutes * 60
    mins = int(total_sec // 60)
    secs = int(round(total_sec % 60))
    if secs >= 60:
        secs = 0
        mins += 1
    text = f"{mins}:{secs:02d}"
    return f"{text} /{unit}" if unit else text
