"""
Track catalog normalizer.

Maps heterogeneous source records into ``Track`` values.  Two raw shapes are
accepted:

  streaming  {id, name, artists: [{name}], duration_ms, album, uri, external_urls}
  static     {id, title, artist, bpm, time: "M:SS", albumArt}

Tempo comes from the record itself (static shape) or from the injected tempo
provider.  What happens to a track whose tempo stays unknown is decided by
``default_tempo`` / ``fallback_tempo``, never implicitly.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from .models import Track

logger = logging.getLogger(__name__)

UNKNOWN_ARTIST = "Unknown Artist"
UNKNOWN_TITLE = "Unknown Title"


class TempoProvider(Protocol):
    def lookup(self, title: str, artist: str) -> float | None:
        ...


def _positive(value: Any) -> float | None:
    try:
        bpm = float(value)
    except (TypeError, ValueError):
        return None
    return bpm if bpm > 0 else None


def parse_time(text: Any) -> int:
    """'M:SS' → whole seconds (0 when unparsable)."""
    if not isinstance(text, str) or ":" not in text:
        return 0
    minutes, _, seconds = text.strip().partition(":")
    try:
        return max(0, int(minutes) * 60 + int(seconds))
    except ValueError:
        return 0


def _first_artist(raw: dict) -> str:
    artists = raw.get("artists")
    if isinstance(artists, list) and artists:
        first = artists[0]
        name = first.get("name") if isinstance(first, dict) else first
        if name:
            return str(name)
        return UNKNOWN_ARTIST
    artist = raw.get("artist")
    if isinstance(artist, str) and artist.strip():
        return artist
    return UNKNOWN_ARTIST


def _duration_seconds(raw: dict) -> int:
    if raw.get("duration_ms") is not None:
        try:
            return max(0, int(raw["duration_ms"]) // 1000)
        except (TypeError, ValueError):
            return 0
    if raw.get("duration_seconds") is not None:
        try:
            return max(0, int(raw["duration_seconds"]))
        except (TypeError, ValueError):
            return 0
    return parse_time(raw.get("time"))


def _first_image_url(album: dict) -> str | None:
    images = album.get("images") or []
    first = images[0] if isinstance(images, list) and images else None
    if isinstance(first, dict) and first.get("url"):
        return str(first["url"])
    return None


def album_art_for(raw: dict) -> str:
    """Image URL, else first letter of the album name, else 'default'."""
    if raw.get("albumArt"):
        return str(raw["albumArt"])
    if raw.get("album_art"):
        return str(raw["album_art"])
    album = raw.get("album") or {}
    if not isinstance(album, dict):
        return "default"
    url = _first_image_url(album)
    if url:
        return url
    name = (album.get("name") or "").strip()
    if name:
        return name.split(" ")[0][:1].lower()
    return "default"


class TrackNormalizer:
    """
    Parameters
    ----------
    tempo_provider : TempoProvider or None
        Asked for ``(title, artist)`` when a record carries no tempo.
    default_tempo : float or None
        Tempo given to tracks whose tempo stays unknown.  ``None`` leaves
        them unknown, which excludes them from intensity filtering.
    """

    def __init__(
        self,
        tempo_provider: TempoProvider | None = None,
        default_tempo: float | None = None,
    ):
        self.tempo_provider = tempo_provider
        self.default_tempo = _positive(default_tempo)

    def resolve_tempo(self, title: str, artist: str) -> float | None:
        if self.tempo_provider is None:
            return None
        try:
            return _positive(self.tempo_provider.lookup(title, artist))
        except Exception as e:
            logger.warning(f"Tempo lookup failed for '{title}' by '{artist}': {e}")
            return None

    def normalize_one(self, raw: dict, fallback_tempo: float | None = None) -> Track | None:
        track_id = raw.get("id")
        if track_id is None or not str(track_id).strip():
            return None

        title = raw.get("title") or raw.get("name") or UNKNOWN_TITLE
        artist = _first_artist(raw)

        tempo = _positive(raw.get("bpm"))
        if tempo is None:
            tempo = self.resolve_tempo(title, artist)
        if tempo is None:
            tempo = self.default_tempo if self.default_tempo is not None else _positive(fallback_tempo)

        album = raw.get("album") if isinstance(raw.get("album"), dict) else {}

        return Track(
            id=str(track_id),
            title=str(title),
            artist=artist,
            duration_seconds=_duration_seconds(raw),
            tempo_bpm=tempo,
            album_art=album_art_for(raw),
            playback_ref=raw.get("uri") or raw.get("spotifyUri"),
            external_url=(raw.get("external_urls") or {}).get("spotify", "") or raw.get("spotifyUrl", ""),
            album_id=album.get("id") or raw.get("albumId"),
            album_image_url=_first_image_url(album) or raw.get("albumImageUrl"),
            source=raw.get("source") or "primary",
        )

    def normalize(
        self,
        raw_tracks: Iterable[dict | Track] | None,
        fallback_tempo: float | None = None,
    ) -> list[Track]:
        """
        Normalize a batch.  Entries without an id are dropped and repeated ids
        keep their first occurrence.  ``Track`` values pass through untouched.
        """
        tracks: list[Track] = []
        seen_ids: set[str] = set()
        for raw in raw_tracks or []:
            if isinstance(raw, Track):
                track = raw
            elif isinstance(raw, dict):
                track = self.normalize_one(raw, fallback_tempo)
            else:
                track = None
            if track is None or track.id in seen_ids:
                continue
            seen_ids.add(track.id)
            tracks.append(track)

        found = sum(1 for t in tracks if t.tempo_bpm is not None)
        logger.info(f"Normalized {len(tracks)} tracks, tempo known for {found}/{len(tracks)}")
        return tracks


def normalize_tracks(
    raw_tracks: Iterable[dict | Track] | None,
    tempo_provider: TempoProvider | None = None,
    default_tempo: float | None = None,
) -> list[Track]:
    """Convenience wrapper around ``TrackNormalizer.normalize``."""
    return TrackNormalizer(tempo_provider, default_tempo).normalize(raw_tracks)
