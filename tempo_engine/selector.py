"""
Playlist selector: tempo filter → duration packing → augmentation → ordering.

Packing policy depends on the distance bucket:

  short          keep catalog order, stop at the first track that would
                 overflow the cap
  medium / long  shortest tracks first until the minimum is met (medium
                 stops once it is 20% past the minimum), then a second pass
                 over catalog order to top up
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Callable, Iterable, Sequence

from .buckets import DEFAULT_SCHEME, BucketScheme, DurationRange, TempoRange, normalize_label
from .models import Track
from .normalizer import TrackNormalizer

logger = logging.getLogger(__name__)

# (target_bpm, limit) -> raw track records
AugmentFn = Callable[[float, int], list]


@dataclass(frozen=True)
class SelectorConfig:
    scheme: BucketScheme = field(default_factory=lambda: DEFAULT_SCHEME)
    medium_early_stop_factor: float = 1.2
    fallback_count: int = 5
    min_track_count: int = 3
    augment_limit: int = 100
    # Augmented tracks with no known tempo take the tempo they were fetched for
    augmented_inherit_target_tempo: bool = True


def total_seconds(tracks: Iterable[Track]) -> int:
    return sum(t.duration_seconds for t in tracks)


def filter_by_intensity(tracks: Sequence[Track], tempo_range: TempoRange) -> list[Track]:
    """Keep tracks whose tempo lies in ``tempo_range``; unknown tempo is dropped
    unless the range is unbounded."""
    if tempo_range.unbounded:
        return list(tracks)
    return [t for t in tracks if tempo_range.contains(t.tempo_bpm)]


def pack_short(tracks: Sequence[Track], duration_range: DurationRange) -> list[Track]:
    max_seconds = duration_range.max_seconds
    selected: list[Track] = []
    total = 0
    for track in tracks:
        if total + track.duration_seconds <= max_seconds:
            selected.append(track)
            total += track.duration_seconds
        else:
            break
    return selected if selected else list(tracks[:1])


def pack_range(
    tracks: Sequence[Track],
    duration_range: DurationRange,
    early_stop_factor: float | None = None,
    fallback_count: int = 5,
) -> list[Track]:
    """
    Fill ``duration_range`` from the shortest tracks up.  ``early_stop_factor``
    (medium only) ends the first pass once the total reaches
    ``min * early_stop_factor``.
    """
    min_seconds = duration_range.min_seconds
    max_seconds = duration_range.max_seconds

    by_duration = sorted(tracks, key=lambda t: t.duration_seconds)
    selected: list[Track] = []
    total = 0

    for track in by_duration:
        new_total = total + track.duration_seconds
        if new_total > max_seconds:
            break
        selected.append(track)
        total = new_total
        if (
            early_stop_factor is not None
            and total >= min_seconds
            and total >= min_seconds * early_stop_factor
        ):
            break

    # Second pass in catalog order to reach the minimum
    if total < min_seconds:
        selected_ids = {t.id for t in selected}
        for track in tracks:
            if track.id in selected_ids:
                continue
            if total + track.duration_seconds <= max_seconds:
                selected.append(track)
                selected_ids.add(track.id)
                total += track.duration_seconds
                if total >= min_seconds:
                    break

    if selected:
        return selected
    return list(tracks[: min(fallback_count, len(tracks))])


def sort_by_tempo(tracks: Iterable[Track]) -> list[Track]:
    """Descending tempo, unknown last; equal tempos keep their order."""
    return sorted(tracks, key=lambda t: t.tempo_bpm or 0, reverse=True)


class PlaylistSelector:
    """
    Single selection implementation; the variations between call sites live
    in ``SelectorConfig`` and in whether an ``augment`` hook is passed.
    """

    def __init__(
        self,
        config: SelectorConfig | None = None,
        normalizer: TrackNormalizer | None = None,
    ):
        self.config = config or SelectorConfig()
        self.normalizer = normalizer or TrackNormalizer()

    def pack(self, tracks: Sequence[Track], distance: str | None) -> list[Track]:
        scheme = self.config.scheme
        if not tracks:
            return []
        if not scheme.knows_distance(distance):
            return list(tracks)

        duration_range = scheme.duration_range_for(distance)
        label = normalize_label(distance)
        if label == "short":
            return pack_short(tracks, duration_range)
        early_stop = self.config.medium_early_stop_factor if label == "medium" else None
        return pack_range(tracks, duration_range, early_stop, self.config.fallback_count)

    def needs_more(self, selected: Sequence[Track], distance: str | None) -> bool:
        duration_range = self.config.scheme.duration_range_for(distance)
        return (
            total_seconds(selected) < duration_range.min_seconds
            or len(selected) < self.config.min_track_count
        )

    def augment_candidates(
        self,
        candidates: list[Track],
        known_ids: set[str],
        intensity: str | None,
        augment: AugmentFn,
    ) -> list[Track]:
        """Ask the hook for more tracks; return only new, in-range ones."""
        target_bpm = self.config.scheme.target_tempo_for(intensity)
        if target_bpm is None:
            return []

        limit = self.config.augment_limit
        logger.info(
            f"Not enough songs ({len(candidates)}), fetching up to {limit} "
            f"more around {target_bpm:g} BPM"
        )
        fallback = target_bpm if self.config.augmented_inherit_target_tempo else None
        # Hooks may return lazily; a failure while reading or mapping a record
        # drops the whole batch
        try:
            raw = list(augment(target_bpm, limit) or [])
            fetched = [
                replace(t, source="augmented")
                for t in self.normalizer.normalize(raw, fallback_tempo=fallback)
            ]
        except Exception as e:
            logger.warning(f"Augmentation failed, keeping current selection: {e}")
            return []
        tempo_range = self.config.scheme.tempo_range_for(intensity)
        new_tracks = [
            t for t in filter_by_intensity(fetched, tempo_range)
            if t.id not in known_ids
        ]
        logger.info(f"Added {len(new_tracks)} tracks from augmentation")
        return new_tracks

    def select(
        self,
        tracks: Sequence[Track],
        distance: str | None,
        intensity: str | None,
        augment: AugmentFn | None = None,
    ) -> list[Track]:
        """Return the ordered playlist for ``distance`` / ``intensity``."""
        if not tracks:
            return []

        scheme = self.config.scheme
        candidates = filter_by_intensity(tracks, scheme.tempo_range_for(intensity))
        logger.debug(f"Intensity filter ({intensity}): {len(tracks)} -> {len(candidates)} tracks")

        selected = self.pack(candidates, distance)

        if augment is not None and self.needs_more(selected, distance):
            known_ids = {t.id for t in tracks}
            extra = self.augment_candidates(candidates, known_ids, intensity, augment)
            if extra:
                candidates = candidates + extra
                selected = self.pack(candidates, distance)

        if not candidates:
            # Nothing passed the filter: fall back to the first few tracks
            selected = self.pack(list(tracks[: self.config.fallback_count]), distance)

        logger.debug(
            f"Selected {len(selected)} tracks, {total_seconds(selected) / 60:.1f} min "
            f"(distance={distance}, intensity={intensity})"
        )
        return sort_by_tempo(selected)


def select_playlist(
    tracks: Sequence[Track],
    distance: str | None,
    intensity: str | None,
    augment: AugmentFn | None = None,
    config: SelectorConfig | None = None,
) -> list[Track]:
    return PlaylistSelector(config).select(tracks, distance, intensity, augment)
