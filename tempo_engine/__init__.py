"""Tempo-matched playlist selection engine."""
from tempo_engine.buckets import (
    DEFAULT_SCHEME,
    BucketScheme,
    DurationRange,
    TempoRange,
    duration_range_for,
    tempo_range_for,
)
from tempo_engine.formatter import PlaylistSummary, format_playlist
from tempo_engine.models import Playlist, Track
from tempo_engine.normalizer import TrackNormalizer, normalize_tracks
from tempo_engine.selector import PlaylistSelector, SelectorConfig, select_playlist

__all__ = [
    "BucketScheme",
    "DEFAULT_SCHEME",
    "DurationRange",
    "Playlist",
    "PlaylistSelector",
    "PlaylistSummary",
    "SelectorConfig",
    "TempoRange",
    "Track",
    "TrackNormalizer",
    "duration_range_for",
    "format_playlist",
    "normalize_tracks",
    "select_playlist",
    "tempo_range_for",
]
