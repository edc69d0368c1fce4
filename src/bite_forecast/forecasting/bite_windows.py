"""Solunar-style feeding windows from sun and moon times."""

from __future__ import annotations

import math
from datetime import datetime, timedelta

from bite_forecast.forecasting.models import BiteWindow

WINDOW_LEAD = timedelta(minutes=45)
WINDOW_TRAIL = timedelta(minutes=60)
NEAR_TERM = timedelta(hours=3)

BITE_WINDOW_BASIS = "Derived from sunrise, sunset, and moon phase with near-term boost."


def _normalize_phase(moon_phase: float | None) -> float | None:
    if moon_phase is None or not math.isfinite(moon_phase):
        return None
    return moon_phase % 1.0


def is_near_full(phase: float | None) -> bool:
    return phase is not None and 0.4 <= phase <= 0.6


def is_near_new(phase: float | None) -> bool:
    return phase is not None and (phase <= 0.1 or phase >= 0.9)


def _score(base: float, boosts: int) -> int:
    score = base
    for _ in range(boosts):
        score = min(5.0, score + 1.0)
    return int(max(1, min(5, math.floor(score + 0.5))))


def _window(
    center: datetime | None,
    label: str,
    base_score: float,
    rationale: str,
    now: datetime,
    extra_boost: bool = False,
) -> BiteWindow | None:
    if center is None:
        return None
    boosts = 0
    if abs(center - now) <= NEAR_TERM:
        boosts += 1
    if extra_boost:
        boosts += 1
    return BiteWindow(
        start=center - WINDOW_LEAD,
        end=center + WINDOW_TRAIL,
        label=label,
        score=_score(base_score, boosts),
        rationale=rationale,
    )


def compute_bite_windows(
    sunrise: datetime | None,
    sunset: datetime | None,
    moon_phase: float | None,
    timezone: str,
    now: datetime,
) -> list[BiteWindow]:
    """Score the day's feeding windows, sorted by start time.

    Dawn and dusk windows (base 4) sit on sunrise and sunset. Any window
    centred within three hours of *now* gains a point. Near full moon
    (phase in [0.4, 0.6]) dawn gains a point and a midday major (base 3.5)
    is added halfway between sunrise and sunset; near new moon (phase
    <= 0.1 or >= 0.9) a midnight window (base 3.5) is added six hours
    before sunrise. Scores are rounded and clamped to 1-5. Windows whose
    centre is unknown are skipped.
    """
    phase = _normalize_phase(moon_phase)
    candidates = [
        _window(
            sunrise,
            "Dawn feed",
            4,
            f"Sunrise window in {timezone} often sparks baitfish movement.",
            now,
            extra_boost=is_near_full(phase),
        ),
        _window(
            sunset,
            "Dusk push",
            4,
            "Sunset feeding activity boosted by cooling surface temps.",
            now,
        ),
    ]

    if is_near_full(phase) and sunrise is not None and sunset is not None:
        midday = sunrise + (sunset - sunrise) / 2
        candidates.append(
            _window(midday, "Midday major", 3.5, "Full moon overhead keeps bait active past noon.", now)
        )
    if is_near_new(phase) and sunrise is not None:
        candidates.append(
            _window(
                sunrise - timedelta(hours=6),
                "Midnight bite",
                3.5,
                "New moon darkness favors stealth feeders.",
                now,
            )
        )

    windows = [w for w in candidates if w is not None]
    return sorted(windows, key=lambda w: w.start)
