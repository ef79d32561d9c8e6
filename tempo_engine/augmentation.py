"""
Augmentation hook implementations.

The selector only knows the contract ``fetch_more(target_bpm, limit) -> list``
of raw track records.  The catalogs below adapt a concrete source to it; the
network or disk access stays inside the injected callables.
"""

from __future__ import annotations

import logging
from typing import Callable, Mapping, Protocol

logger = logging.getLogger(__name__)

# (playlist_id, limit) -> raw track records
FetchTracksFn = Callable[[str, int], list]


class TempoSearchable(Protocol):
    def search_by_tempo(self, min_bpm: float, max_bpm: float, limit: int = 50) -> list[dict]:
        ...


class CuratedTempoCatalog:
    """
    Secondary catalog of curated playlists, one per target tempo, e.g.
    ``{130: "<130 BPM mix id>", 170: ..., 180: ...}``.  The playlist whose
    tempo is nearest to the requested target is fetched.  ``fallback`` is
    asked instead when that playlist yields nothing.
    """

    def __init__(
        self,
        fetch_tracks: FetchTracksFn,
        playlists: Mapping[float, str],
        fallback: Callable[[float, int], list] | None = None,
    ):
        self.fetch_tracks = fetch_tracks
        self.playlists = dict(playlists)
        self.fallback = fallback

    def playlist_for(self, target_bpm: float) -> str | None:
        if not self.playlists:
            return None
        nearest = min(self.playlists, key=lambda bpm: (abs(bpm - target_bpm), bpm))
        return self.playlists[nearest]

    def __call__(self, target_bpm: float, limit: int) -> list:
        tracks = []
        playlist_id = self.playlist_for(target_bpm)
        if playlist_id is not None:
            logger.info(f"Fetching curated playlist {playlist_id} for {target_bpm:g} BPM")
            tracks = self.fetch_tracks(playlist_id, limit) or []
            if not tracks:
                logger.warning(f"No tracks found in {playlist_id}; it may be private or inaccessible")
        if not tracks and self.fallback is not None:
            tracks = self.fallback(target_bpm, limit) or []
        return tracks


class DatasetTempoCatalog:
    """Pull tracks within ``target ± tolerance`` BPM from a local dataset."""

    def __init__(self, dataset: TempoSearchable, tolerance: float = 5):
        self.dataset = dataset
        self.tolerance = tolerance

    def __call__(self, target_bpm: float, limit: int) -> list:
        logger.info(f"Searching tempo dataset around {target_bpm:g} BPM")
        return self.dataset.search_by_tempo(
            min_bpm=target_bpm - self.tolerance,
            max_bpm=target_bpm + self.tolerance,
            limit=limit,
        )
