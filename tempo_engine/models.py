"""
Value objects shared by the selection engine.
"""

from __future__ import annotations

from dataclasses import dataclass


def lookup_key(title: str, artist: str) -> str:
    """Composite key used to match a track against tempo data."""
    return f"{(title or '').strip().lower()}|{(artist or '').strip().lower()}"


def format_duration(seconds: int) -> str:
    """Whole seconds → 'M:SS'."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


@dataclass(frozen=True)
class Track:
    """One normalized candidate track."""
    id: str
    title: str
    artist: str
    duration_seconds: int
    tempo_bpm: float | None = None
    album_art: str = "default"
    playback_ref: str | None = None
    external_url: str = ""
    album_id: str | None = None
    album_image_url: str | None = None
    source: str = "primary"

    @property
    def lookup_key(self) -> str:
        return lookup_key(self.title, self.artist)

    @property
    def display_time(self) -> str:
        return format_duration(self.duration_seconds)


@dataclass(frozen=True)
class Playlist:
    """A finished selection plus its display title and artist roster."""
    tracks: tuple[Track, ...]
    title: str
    artist_summary: str

    @property
    def total_duration_seconds(self) -> int:
        return sum(t.duration_seconds for t in self.tracks)

    def __len__(self) -> int:
        return len(self.tracks)
