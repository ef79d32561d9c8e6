"""
Run playlist builder.

Raw source tracks + distance + intensity
  ──▶ normalize (tempo lookup)
  ──▶ filter by tempo, pack to the distance's duration range
  ──▶ (augment from a secondary catalog when short)
  ──▶ title + artist summary
"""

from __future__ import annotations

import logging
from typing import Iterable

from tempo_engine.formatter import format_playlist
from tempo_engine.models import Playlist, Track
from tempo_engine.normalizer import TrackNormalizer
from tempo_engine.selector import AugmentFn, PlaylistSelector

logger = logging.getLogger(__name__)


class PlaylistService:
    """
    Builds a playlist from one source fetch.

    The tempo provider (inside ``normalizer``) and the augmentation catalog
    are injected, so the same service runs against the local dataset, the
    GetSong API or a static table.
    """

    def __init__(
        self,
        normalizer: TrackNormalizer | None = None,
        selector: PlaylistSelector | None = None,
        augment: AugmentFn | None = None,
    ):
        self.normalizer = normalizer or TrackNormalizer()
        self.selector = selector or PlaylistSelector(normalizer=self.normalizer)
        self.augment = augment

    def build(
        self,
        raw_tracks: Iterable[dict | Track] | None,
        distance: str | None,
        intensity: str | None,
    ) -> Playlist:
        tracks = self.normalizer.normalize(raw_tracks)
        selected = self.selector.select(tracks, distance, intensity, augment=self.augment)
        summary = format_playlist(distance, intensity, selected)
        logger.info(
            f"Built '{summary.title}': {len(selected)} tracks from {len(tracks)} candidates"
        )
        return Playlist(
            tracks=tuple(selected),
            title=summary.title,
            artist_summary=summary.artist_summary,
        )


def playlist_stats(playlist: Iterable[Track]) -> dict:
    """Return summary stats for the generated playlist."""
    tracks = list(playlist)
    if not tracks:
        return {"total_tracks": 0, "total_duration_min": 0, "avg_bpm": 0,
                "min_bpm": 0, "max_bpm": 0}

    bpms = [t.tempo_bpm for t in tracks if t.tempo_bpm]
    total_dur_s = sum(t.duration_seconds for t in tracks)
    return {
        "total_tracks": len(tracks),
        "total_duration_min": round(total_dur_s / 60, 1),
        "avg_bpm": round(sum(bpms) / len(bpms)) if bpms else 0,
        "min_bpm": round(min(bpms)) if bpms else 0,
        "max_bpm": round(max(bpms)) if bpms else 0,
    }
