"""Output formatters: Rich tables and JSON for bundles, tides and bite signals."""

from __future__ import annotations

import json
from datetime import datetime

from rich.console import Console
from rich.table import Table

from bite_forecast.forecasting.models import ForecastBundle, TidePrediction, TideTrend
from bite_forecast.signals.models import BiteSignal, PredictionDirection

_DIRECTION_STYLE = {
    PredictionDirection.UP: ("green", "▲ up"),
    PredictionDirection.FLAT: ("yellow", "▬ flat"),
    PredictionDirection.DOWN: ("red", "▼ down"),
}

_TREND_STYLE = {
    TideTrend.RISING: "green",
    TideTrend.FALLING: "red",
    TideTrend.SLACK: "dim",
}


def _hhmm(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M UTC") if value else "-"


def _num(value: float | None, fmt: str = ".1f", suffix: str = "") -> str:
    return f"{value:{fmt}}{suffix}" if value is not None else "-"


def format_bundle_table(bundle: ForecastBundle, console: Console | None = None) -> None:
    """Print a forecast bundle: location summary, bite windows, weather hours and tides."""
    if console is None:
        console = Console()

    loc = bundle.location
    weather_source = bundle.weather.source
    console.print(
        f"[bold]Forecast for ({loc.latitude:.3f}, {loc.longitude:.3f})[/bold] "
        f"[dim]{loc.timezone}[/dim]"
    )
    console.print(f"  Sunrise: {_hhmm(loc.sunrise)}   Sunset: {_hhmm(loc.sunset)}")
    if loc.moon_phase_fraction is not None:
        console.print(f"  Moon: {loc.moon_phase_label} ({loc.moon_phase_fraction:.2f})")
    source_color = "yellow" if weather_source.status != "ok" else "green"
    console.print(f"  Weather source: [{source_color}]{weather_source.label}[/{source_color}]")

    windows = Table(title="Bite Windows", show_lines=True)
    windows.add_column("Label", style="bold", width=14)
    windows.add_column("Start", width=22)
    windows.add_column("End", width=22)
    windows.add_column("Score", justify="right", width=5)
    windows.add_column("Rationale", width=40, no_wrap=False)
    for w in bundle.bite_windows.windows:
        score_color = "green" if w.score >= 4 else "yellow" if w.score == 3 else "red"
        windows.add_row(
            w.label,
            _hhmm(w.start),
            _hhmm(w.end),
            f"[{score_color}]{w.score}[/{score_color}]",
            w.rationale,
        )
    console.print(windows)

    hours = Table(title="Hourly Weather")
    hours.add_column("Time", width=22)
    hours.add_column("Temp °F", justify="right", width=7)
    hours.add_column("Wind mph", justify="right", width=8)
    hours.add_column("Dir", justify="right", width=5)
    hours.add_column("Pressure", justify="right", width=8)
    hours.add_column("Precip %", justify="right", width=8)
    hours.add_column("Conditions", width=24)
    for h in bundle.weather.hours:
        hours.add_row(
            _hhmm(h.timestamp),
            _num(h.temperature_f),
            _num(h.wind_speed_mph),
            _num(h.wind_direction, ".0f"),
            _num(h.pressure_hpa),
            _num(h.precipitation_probability, ".0f"),
            h.weather_summary or "-",
        )
    console.print(hours)

    format_tides_table(bundle.tides.predictions, console)

    for event in bundle.telemetry.errors:
        console.print(f"[red]error[/red] {event.provider_id}: {event.message}")
    for event in bundle.telemetry.warnings:
        console.print(f"[yellow]warning[/yellow] {event.provider_id}: {event.message}")


def format_tides_table(predictions: list[TidePrediction], console: Console | None = None) -> None:
    """Print tide predictions as a Rich table."""
    if console is None:
        console = Console()

    if not predictions:
        console.print("[yellow]No tide predictions.[/yellow]")
        return

    table = Table(title="Tides (synthetic)")
    table.add_column("Time", width=22)
    table.add_column("Height m", justify="right", width=8)
    table.add_column("Trend", width=8)
    for p in predictions:
        color = _TREND_STYLE[p.trend]
        table.add_row(_hhmm(p.timestamp), f"{p.height_meters:+.2f}", f"[{color}]{p.trend.value}[/{color}]")
    console.print(table)


def format_signal_table(signal: BiteSignal | None, console: Console | None = None) -> None:
    """Print a bite signal: header, predictions and the slice matrix."""
    if console is None:
        console = Console()

    if signal is None:
        console.print("[yellow]No bite signal available for this location.[/yellow]")
        return

    console.print(f"[bold]Bite signal: {signal.location_key}[/bold]")
    console.print(
        f"  Samples: {signal.sample_size}   Weight: {signal.total_weight:.2f}   "
        f"Updated: {_hhmm(signal.updated_at)}   Expires: {_hhmm(signal.expires_at)}"
    )
    if signal.insufficient:
        console.print("  [yellow]Not enough recent catches for a confident outlook.[/yellow]")
    if not signal.persisted:
        console.print("  [dim]Signal could not be saved; showing the computed result.[/dim]")

    if signal.predictions:
        table = Table(title="Outlook", show_lines=True)
        table.add_column("When", style="bold", width=5)
        table.add_column("Direction", width=8)
        table.add_column("Conf", justify="right", width=5)
        table.add_column("Slice", width=26)
        table.add_column("Catches", justify="right", width=7)
        for p in signal.predictions:
            color, text = _DIRECTION_STYLE[p.direction]
            table.add_row(
                p.label,
                f"[{color}]{text}[/{color}]",
                f"{p.confidence:.0%}",
                p.bands.slice_key,
                str(p.sample_size),
            )
        console.print(table)

    if signal.matrix:
        matrix = Table(title="Catch Slices")
        matrix.add_column("Slice", width=26)
        matrix.add_column("Catches", justify="right", width=7)
        matrix.add_column("Weight", justify="right", width=7)
        for key, stats in sorted(signal.matrix.items(), key=lambda kv: kv[1].weight, reverse=True):
            matrix.add_row(key, str(stats.samples), f"{stats.weight:.2f}")
        console.print(matrix)


def format_bundle_json(bundle: ForecastBundle) -> str:
    return json.dumps(bundle.to_dict(), indent=2)


def format_tides_json(predictions: list[TidePrediction]) -> str:
    return json.dumps([p.to_dict() for p in predictions], indent=2)


def format_signal_json(signal: BiteSignal | None) -> str:
    """JSON for a signal; ``null`` when there is none."""
    return json.dumps(signal.to_dict() if signal else None, indent=2)
