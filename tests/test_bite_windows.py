"""Tests for bite window scoring."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from bite_forecast.forecasting.bite_windows import compute_bite_windows, is_near_full, is_near_new

SUNRISE = datetime(2024, 6, 1, 10, 0, tzinfo=timezone.utc)
SUNSET = datetime(2024, 6, 1, 22, 10, tzinfo=timezone.utc)
MORNING = datetime(2024, 6, 1, 8, 30, tzinfo=timezone.utc)


def _by_label(windows):
    return {w.label: w for w in windows}


def test_full_moon_morning():
    windows = compute_bite_windows(SUNRISE, SUNSET, 0.52, "America/New_York", MORNING)

    assert [w.label for w in windows] == ["Dawn feed", "Midday major", "Dusk push"]
    by_label = _by_label(windows)
    # near-term and full-moon boosts, capped at 5
    assert by_label["Dawn feed"].score == 5
    assert by_label["Midday major"].score == 4
    assert by_label["Dusk push"].score == 4


def test_midday_centred_between_sunrise_and_sunset():
    windows = compute_bite_windows(SUNRISE, SUNSET, 0.5, "UTC", MORNING)
    midday = _by_label(windows)["Midday major"]
    center = datetime(2024, 6, 1, 16, 5, tzinfo=timezone.utc)
    assert midday.start == center - timedelta(minutes=45)
    assert midday.end == center + timedelta(minutes=60)


def test_new_moon_adds_midnight_bite():
    windows = compute_bite_windows(SUNRISE, SUNSET, 0.03, "UTC", MORNING)

    assert [w.label for w in windows] == ["Midnight bite", "Dawn feed", "Dusk push"]
    midnight = windows[0]
    assert midnight.start == SUNRISE - timedelta(hours=6, minutes=45)
    assert midnight.score == 4
    assert _by_label(windows)["Dawn feed"].score == 5


def test_quarter_moon_only_dawn_and_dusk():
    far_away = datetime(2024, 6, 3, 0, 0, tzinfo=timezone.utc)
    windows = compute_bite_windows(SUNRISE, SUNSET, 0.25, "UTC", far_away)
    assert [(w.label, w.score) for w in windows] == [("Dawn feed", 4), ("Dusk push", 4)]


def test_near_term_boost_applies_to_dusk():
    evening = datetime(2024, 6, 1, 20, 0, tzinfo=timezone.utc)
    windows = compute_bite_windows(SUNRISE, SUNSET, 0.25, "UTC", evening)
    assert _by_label(windows)["Dusk push"].score == 5
    assert _by_label(windows)["Dawn feed"].score == 4


def test_missing_sunrise_skips_dependent_windows():
    windows = compute_bite_windows(None, SUNSET, 0.5, "UTC", MORNING)
    assert [w.label for w in windows] == ["Dusk push"]


def test_missing_moon_phase_is_not_a_boost():
    windows = compute_bite_windows(SUNRISE, SUNSET, None, "UTC", MORNING)
    assert [w.label for w in windows] == ["Dawn feed", "Dusk push"]


def test_phase_wraps_past_one():
    windows = compute_bite_windows(SUNRISE, SUNSET, 1.02, "UTC", MORNING)
    assert "Midnight bite" in _by_label(windows)


@pytest.mark.parametrize("phase", [0.0, 0.1, 0.25, 0.4, 0.5, 0.6, 0.75, 0.9, 0.99])
def test_scores_are_integers_in_range_and_sorted(phase):
    windows = compute_bite_windows(SUNRISE, SUNSET, phase, "UTC", MORNING)
    assert windows
    for w in windows:
        assert isinstance(w.score, int)
        assert 1 <= w.score <= 5
        assert w.end - w.start == timedelta(minutes=105)
    assert [w.start for w in windows] == sorted(w.start for w in windows)


def test_rationale_mentions_timezone():
    windows = compute_bite_windows(SUNRISE, SUNSET, 0.25, "America/New_York", MORNING)
    assert "America/New_York" in _by_label(windows)["Dawn feed"].rationale


@pytest.mark.parametrize(
    "phase, full, new",
    [(0.39, False, False), (0.4, True, False), (0.6, True, False), (0.1, False, True), (0.9, False, True), (None, False, False)],
)
def test_phase_predicates(phase, full, new):
    assert is_near_full(phase) is full
    assert is_near_new(phase) is new
