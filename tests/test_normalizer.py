from conftest import make_track, static_record, streaming_record

from bpm_service import StaticTempoTable
from tempo_engine.normalizer import (
    TrackNormalizer,
    album_art_for,
    normalize_tracks,
    parse_time,
)


class ExplodingProvider:
    def lookup(self, title, artist):
        raise RuntimeError("lookup service down")


def test_streaming_record_maps_fields():
    provider = StaticTempoTable({("Song", "Artist"): 172})
    [track] = TrackNormalizer(provider).normalize([streaming_record("a1", duration_ms=215_999)])

    assert track.id == "a1"
    assert track.title == "Song"
    assert track.artist == "Artist"
    assert track.duration_seconds == 215
    assert track.tempo_bpm == 172
    assert track.playback_ref == "spotify:track:a1"
    assert track.external_url == "https://open.spotify.com/track/a1"
    assert track.album_id == "album-a1"
    assert track.album_art == "https://img.example/a1.jpg"
    assert track.source == "primary"


def test_static_record_prefers_its_own_bpm():
    provider = StaticTempoTable({("Song", "Artist"): 99})
    [track] = TrackNormalizer(provider).normalize([static_record("s1", bpm=165, time="4:05")])

    assert track.tempo_bpm == 165
    assert track.duration_seconds == 245
    assert track.album_art == "s"


def test_first_listed_artist_wins():
    raw = streaming_record("a1")
    raw["artists"] = [{"name": "Lead"}, {"name": "Feature"}]
    [track] = normalize_tracks([raw])
    assert track.artist == "Lead"


def test_missing_artist_falls_back():
    raw = streaming_record("a1")
    raw["artists"] = []
    [track] = normalize_tracks([raw])
    assert track.artist == "Unknown Artist"


def test_records_without_id_are_dropped():
    raws = [streaming_record(None), streaming_record("  "), streaming_record("ok")]
    assert [t.id for t in normalize_tracks(raws)] == ["ok"]


def test_duplicate_ids_keep_first_occurrence():
    raws = [
        streaming_record("dup", name="First"),
        streaming_record("other"),
        streaming_record("dup", name="Second"),
    ]
    tracks = normalize_tracks(raws)
    assert [t.id for t in tracks] == ["dup", "other"]
    assert tracks[0].title == "First"


def test_unknown_tempo_stays_unknown_by_default():
    [track] = normalize_tracks([streaming_record("a1")])
    assert track.tempo_bpm is None


def test_default_tempo_fills_unknown():
    [track] = normalize_tracks([streaming_record("a1")], default_tempo=120)
    assert track.tempo_bpm == 120


def test_fallback_tempo_used_for_unknown_only():
    raws = [streaming_record("a1"), static_record("s1", bpm=150)]
    tracks = TrackNormalizer().normalize(raws, fallback_tempo=170)
    assert [t.tempo_bpm for t in tracks] == [170, 150]


def test_provider_failure_means_unknown_tempo():
    [track] = TrackNormalizer(ExplodingProvider()).normalize([streaming_record("a1")])
    assert track.tempo_bpm is None


def test_non_positive_tempo_is_unknown():
    [track] = normalize_tracks([static_record("s1", bpm=0)])
    assert track.tempo_bpm is None


def test_track_values_pass_through():
    existing = make_track("t1", bpm=150)
    assert normalize_tracks([existing, streaming_record("t1")]) == [existing]


def test_empty_and_none_input():
    assert normalize_tracks([]) == []
    assert normalize_tracks(None) == []


def test_parse_time():
    assert parse_time("3:07") == 187
    assert parse_time("0:45") == 45
    assert parse_time("abc") == 0
    assert parse_time(None) == 0
    assert parse_time("x:10") == 0


def test_album_art_prefers_image_then_letter():
    assert album_art_for({"album": {"images": [{"url": "u"}], "name": "Blue"}}) == "u"
    assert album_art_for({"album": {"images": [], "name": "Blue Album"}}) == "b"
    assert album_art_for({"album": {"images": []}}) == "default"
    assert album_art_for({}) == "default"


def test_album_without_usable_image():
    raw = streaming_record("a1")
    raw["album"]["images"] = [None]
    [track] = normalize_tracks([raw])
    assert track.album_image_url is None
    assert track.album_art == "g"
