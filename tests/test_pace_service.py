import pytest

from pace_service import expected_pace_min_per_mile, format_pace


@pytest.mark.parametrize("bpm, expected", [
    (120, 10.0),
    (160, 8.0),
    (180, 7.0),
    (60, 13.0),
    (300, 5.0),
])
def test_expected_pace(bpm, expected):
    assert expected_pace_min_per_mile(bpm) == pytest.approx(expected)


@pytest.mark.parametrize("bpm", [None, 0, 59])
def test_expected_pace_needs_a_plausible_tempo(bpm):
    assert expected_pace_min_per_mile(bpm) is None


def test_format_pace():
    assert format_pace(8.5) == "8:30"
    assert format_pace(7.0, unit="mi") == "7:00 /mi"
    assert format_pace(4.999) == "5:00"
    assert format_pace(None) == "—"
    assert format_pace(0) == "—"
    assert format_pace(float("inf")) == "—"
