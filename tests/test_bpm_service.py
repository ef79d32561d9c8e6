import json

import pytest
import requests

from bpm_service import (
    ChainedTempoProvider,
    GetSongAuthError,
    GetSongError,
    GetSongRateLimitError,
    GetSongTempoProvider,
    LocalTempoDataset,
    StaticTempoTable,
    normalize_lookup_key,
)


class FakeResponse:
    def __init__(self, status_code=200, payload=None, reason="OK"):
        self.status_code = status_code
        self._payload = payload
        self.reason = reason

    @property
    def ok(self):
        return self.status_code < 400

    def json(self):
        return self._payload


class FakeSession:
    def __init__(self, *responses):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers})
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


def _provider(*responses, **kwargs):
    kwargs.setdefault("request_delay", 0)
    return GetSongTempoProvider("secret", session=FakeSession(*responses), **kwargs)


@pytest.fixture
def dataset_csv(tmp_path):
    path = tmp_path / "tracks.csv"
    path.write_text(
        "track_id,track_name,artists,tempo,duration_ms,genre,popularity\n"
        "id1,Blinding Lights,The Weeknd,171.0,200040,pop,90\n"
        "id2,Lose Yourself,Eminem,171.4,326466,hip-hop,85\n"
        "id3,Levitating,Dua Lipa;DaBaby,103.0,203064,pop,80\n"
        "id4,Blinding Lights,The Weeknd,99.0,200040,pop,10\n"
        "id5,Broken,Nobody,0,180000,pop,5\n"
    )
    return path


def test_normalize_lookup_key():
    assert normalize_lookup_key("  Hello ", "ADELE ") == "hello|adele"


def test_dataset_exact_match_first_row_wins(dataset_csv):
    dataset = LocalTempoDataset(dataset_csv)
    assert dataset.lookup("blinding lights", "the weeknd") == 171.0


def test_dataset_drops_non_positive_tempo(dataset_csv):
    dataset = LocalTempoDataset(dataset_csv)
    assert len(dataset) == 4
    assert dataset.lookup("Broken", "Nobody") is None


def test_dataset_uses_first_listed_artist(dataset_csv):
    assert LocalTempoDataset(dataset_csv).lookup("Levitating", "Dua Lipa") == 103.0


def test_dataset_partial_match(dataset_csv):
    dataset = LocalTempoDataset(dataset_csv)
    assert dataset.lookup("Lose Yourself - From 8 Mile", "Eminem") == 171.4
    assert dataset.lookup("Lose", "Eminem feat. Someone") == 171.4


def test_dataset_miss_and_blank_input(dataset_csv):
    dataset = LocalTempoDataset(dataset_csv)
    assert dataset.lookup("Unknown Song", "Eminem") is None
    assert dataset.lookup("", "Eminem") is None
    assert dataset.lookup("Lose Yourself", "  ") is None


def test_dataset_reads_json_records(tmp_path):
    path = tmp_path / "tempos.json"
    path.write_text(json.dumps([
        {"track_title": "Song A", "artist": "Band", "bpm": 128},
        {"track_title": "Song B", "artist": "Band", "bpm": 174},
    ]))
    dataset = LocalTempoDataset(path)
    assert dataset.lookup("song b", "band") == 174


def test_missing_dataset_file_is_empty(tmp_path):
    dataset = LocalTempoDataset(tmp_path / "nope.csv")
    assert len(dataset) == 0
    assert dataset.lookup("Anything", "Anyone") is None
    assert dataset.search_by_tempo(100, 200) == []


def test_search_by_tempo_orders_by_popularity(dataset_csv):
    dataset = LocalTempoDataset(dataset_csv)
    result = dataset.search_by_tempo(165, 175, limit=5)
    assert [r["id"] for r in result] == ["id1", "id2"]
    first = result[0]
    assert first["uri"] == "spotify:track:id1"
    assert first["name"] == "Blinding Lights"
    assert first["duration_ms"] == 200040


def test_search_by_tempo_excludes_ids(dataset_csv):
    dataset = LocalTempoDataset(dataset_csv)
    result = dataset.search_by_tempo(165, 175, exclude_ids={"id1"})
    assert [r["id"] for r in result] == ["id2"]


def test_getsong_search_hit():
    provider = _provider(FakeResponse(payload={"search": [
        {"id": "gs1", "title": "Blinding Lights", "tempo": "171", "artist": {"name": "The Weeknd"}},
    ]}))
    assert provider.lookup("Blinding Lights", "The Weeknd") == 171.0

    call = provider.session.calls[0]
    assert call["url"] == "https://api.getsong.co/search/"
    assert call["params"]["lookup"] == "song:Blinding Lights artist:The Weeknd"
    assert call["params"]["api_key"] == "secret"
    assert call["headers"] == {"X-API-KEY": "secret"}


def test_getsong_accepts_list_payload():
    provider = _provider(FakeResponse(payload=[{"id": "gs1", "title": "Song", "tempo": 128}]))
    assert provider.lookup("Song", "Artist") == 128.0


@pytest.mark.parametrize("payload", [
    {"search": {"error": "no result"}},
    {"search": []},
    {"search": [{"id": "gs1", "title": "Song"}]},
])
def test_getsong_no_usable_result(payload):
    assert _provider(FakeResponse(payload=payload)).lookup("Song", "Artist") is None


@pytest.mark.parametrize("status, error", [
    (401, GetSongAuthError),
    (429, GetSongRateLimitError),
    (500, GetSongError),
])
def test_getsong_status_errors(status, error):
    provider = _provider(FakeResponse(status_code=status, reason="nope"))
    with pytest.raises(error):
        provider.search_song("Song", "Artist")


def test_getsong_lookup_swallows_errors():
    provider = _provider(FakeResponse(status_code=429))
    assert provider.lookup("Song", "Artist") is None


def test_getsong_network_error():
    provider = _provider(requests.ConnectionError("offline"))
    with pytest.raises(GetSongError):
        provider.search_song("Song", "Artist")


def test_getsong_requires_key():
    provider = GetSongTempoProvider("", session=FakeSession())
    with pytest.raises(GetSongAuthError):
        provider.search_song("Song", "Artist")
    assert provider.lookup("Song", "Artist") is None


def test_getsong_request_cap():
    hit = {"search": [{"id": "gs1", "title": "Song", "tempo": 120}]}
    provider = _provider(FakeResponse(payload=hit), FakeResponse(payload=hit), max_requests=1)
    assert provider.lookup("Song", "Artist") == 120.0
    assert provider.lookup("Song", "Artist") is None
    assert len(provider.session.calls) == 1


def test_static_table_is_case_insensitive():
    table = StaticTempoTable({("Song", "Band"): 150})
    table.add("Other", "Band", 170)
    assert table.lookup(" song ", "BAND") == 150
    assert table.lookup("other", "band") == 170
    assert table.lookup("missing", "band") is None


def test_chained_provider_first_positive_wins():
    class Broken:
        def lookup(self, title, artist):
            raise RuntimeError("boom")

    chain = ChainedTempoProvider([
        Broken(),
        StaticTempoTable({("Song", "Band"): 0}),
        None,
        StaticTempoTable({("Song", "Band"): 140}),
    ])
    assert chain.lookup("Song", "Band") == 140
    assert chain.lookup("Nope", "Band") is None
