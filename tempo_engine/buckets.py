"""
Bucket classifier: intensity / distance labels → numeric ranges.

All intervals are half-open ``[min, max)``.  An unknown or missing label
resolves to the unrestricted range so "no preference" means "no filtering".
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Mapping

INFINITY = math.inf


@dataclass(frozen=True)
class TempoRange:
    min: float = 0
    max: float = INFINITY

    @property
    def unbounded(self) -> bool:
        return self.min <= 0 and math.isinf(self.max)

    def contains(self, bpm: float | None) -> bool:
        if bpm is None:
            return False
        if bpm < self.min:
            return False
        return math.isinf(self.max) or bpm < self.max


@dataclass(frozen=True)
class DurationRange:
    min_minutes: float = 0
    max_minutes: float = INFINITY

    @property
    def min_seconds(self) -> float:
        return self.min_minutes * 60

    @property
    def max_seconds(self) -> float:
        if math.isinf(self.max_minutes):
            return INFINITY
        return self.max_minutes * 60


# ── Canonical tables ────────────────────────────────────────────────────
DEFAULT_TEMPO_RANGES: dict[str, TempoRange] = {
    "low": TempoRange(120, 140),
    "medium": TempoRange(140, 180),
    "high": TempoRange(180, INFINITY),
}

DEFAULT_DURATION_RANGES: dict[str, DurationRange] = {
    "short": DurationRange(0, 20),
    "medium": DurationRange(20, 40),
    "long": DurationRange(40, INFINITY),
}

# Tempo asked of the augmentation hook for each intensity
DEFAULT_TARGET_TEMPOS: dict[str, float] = {
    "low": 130,
    "medium": 170,
    "high": 180,
}

FULL_TEMPO_RANGE = TempoRange()
FULL_DURATION_RANGE = DurationRange()


def normalize_label(label: str | None) -> str:
    if not isinstance(label, str):
        return ""
    return label.strip().lower()


@dataclass(frozen=True)
class BucketScheme:
    """
    Overridable set of bucket tables.  Tests and callers can pass their own
    scheme instead of patching module constants.
    """
    tempo_ranges: Mapping[str, TempoRange] = field(
        default_factory=lambda: dict(DEFAULT_TEMPO_RANGES)
    )
    duration_ranges: Mapping[str, DurationRange] = field(
        default_factory=lambda: dict(DEFAULT_DURATION_RANGES)
    )
    target_tempos: Mapping[str, float] = field(
        default_factory=lambda: dict(DEFAULT_TARGET_TEMPOS)
    )

    def tempo_range_for(self, intensity: str | None) -> TempoRange:
        return self.tempo_ranges.get(normalize_label(intensity), FULL_TEMPO_RANGE)

    def duration_range_for(self, distance: str | None) -> DurationRange:
        return self.duration_ranges.get(normalize_label(distance), FULL_DURATION_RANGE)

    def target_tempo_for(self, intensity: str | None) -> float | None:
        return self.target_tempos.get(normalize_label(intensity))

    def knows_distance(self, distance: str | None) -> bool:
        return normalize_label(distance) in self.duration_ranges


DEFAULT_SCHEME = BucketScheme()


def tempo_range_for(intensity: str | None, scheme: BucketScheme = DEFAULT_SCHEME) -> TempoRange:
    """Tempo range for an intensity label (``low`` / ``medium`` / ``high``)."""
    return scheme.tempo_range_for(intensity)


def duration_range_for(distance: str | None, scheme: BucketScheme = DEFAULT_SCHEME) -> DurationRange:
    """Target playlist duration range for a distance label."""
    return scheme.duration_range_for(distance)
