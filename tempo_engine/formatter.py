"""
Playlist title and artist-roster summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from .buckets import normalize_label
from .models import Track

INTENSITY_LABELS = {
    "low": "EASY",
    "medium": "MODERATE",
    "high": "INTENSE",
}

DISTANCE_LABELS = {
    "short": "SHORT",
    "medium": "MEDIUM",
    "long": "LONG",
}

FALLBACK_LABEL = "RUN"
NO_SONGS = "No songs available"
MAX_LISTED_ARTISTS = 4


@dataclass(frozen=True)
class PlaylistSummary:
    title: str
    artist_summary: str


def playlist_title(distance: str | None, intensity: str | None) -> str:
    intensity_label = INTENSITY_LABELS.get(normalize_label(intensity), FALLBACK_LABEL)
    distance_label = DISTANCE_LABELS.get(normalize_label(distance), FALLBACK_LABEL)
    return f"{intensity_label} {distance_label} MIX"


def artist_summary(tracks: Iterable[Track]) -> str:
    artists = list(dict.fromkeys(t.artist for t in tracks))
    if not artists:
        return NO_SONGS
    summary = ", ".join(artists[:MAX_LISTED_ARTISTS])
    if len(artists) > MAX_LISTED_ARTISTS:
        summary += ", and more"
    return summary


def format_playlist(
    distance: str | None,
    intensity: str | None,
    tracks: Iterable[Track],
) -> PlaylistSummary:
    return PlaylistSummary(
        title=playlist_title(distance, intensity),
        artist_summary=artist_summary(tracks),
    )
