"""Typer CLI: bite-forecast forecast, tides, signal, add-catch."""

from __future__ import annotations

import asyncio
from typing import Optional

import typer
from rich.console import Console

app = typer.Typer(
    name="bite-forecast",
    help="Fishing conditions: weather, tides, bite windows and crowd bite signals",
    no_args_is_help=True,
)
console = Console()


def _check_output(output: str) -> str:
    if output not in ("table", "json"):
        raise typer.BadParameter("Output format must be 'table' or 'json'")
    return output


@app.command()
def forecast(
    lat: float = typer.Argument(help="Latitude in decimal degrees"),
    lon: float = typer.Argument(help="Longitude in decimal degrees"),
    output: str = typer.Option(
        "table", "--output", "-o",
        help="Output format: table, json",
        callback=_check_output,
    ),
) -> None:
    """Weather, synthetic tides and bite windows for a coordinate."""
    from bite_forecast.signals.formatters import format_bundle_json, format_bundle_table

    async def _run() -> None:
        from bite_forecast.forecasting.bundle import get_forecast_bundle

        bundle = await get_forecast_bundle(lat, lon)
        if output == "json":
            typer.echo(format_bundle_json(bundle))
        else:
            format_bundle_table(bundle, console)

    asyncio.run(_run())


@app.command()
def tides(
    lat: float = typer.Argument(help="Latitude in decimal degrees"),
    lon: float = typer.Argument(help="Longitude in decimal degrees"),
    output: str = typer.Option("table", "--output", "-o", callback=_check_output),
) -> None:
    """Synthetic tide curve for the next 27 hours (no network)."""
    from bite_forecast.common.types import utc_now
    from bite_forecast.forecasting.tides import generate_synthetic_tides
    from bite_forecast.signals.formatters import format_tides_json, format_tides_table

    predictions = generate_synthetic_tides(lat, lon, utc_now())
    if output == "json":
        typer.echo(format_tides_json(predictions))
    else:
        format_tides_table(predictions, console)


@app.command()
def signal(
    location_key: str = typer.Argument(help="Location key the catches were logged under"),
    lat: Optional[float] = typer.Option(None, "--lat", help="Latitude used to refresh a stale signal"),
    lon: Optional[float] = typer.Option(None, "--lon", help="Longitude used to refresh a stale signal"),
    output: str = typer.Option("table", "--output", "-o", callback=_check_output),
) -> None:
    """Show the crowd bite signal for a location, recomputing it when stale."""
    from bite_forecast.common.types import Coordinates
    from bite_forecast.signals.formatters import format_signal_json, format_signal_table

    if (lat is None) != (lon is None):
        raise typer.BadParameter("--lat and --lon must be given together")
    coordinates = Coordinates(lat, lon) if lat is not None and lon is not None else None

    async def _run() -> None:
        from bite_forecast.signals.service import build_bite_signal_service

        service = build_bite_signal_service()
        result = await service.get_or_refresh_bite_signal(location_key, coordinates)
        if output == "json":
            typer.echo(format_signal_json(result))
        else:
            format_signal_table(result, console)

    asyncio.run(_run())


@app.command(name="add-catch")
def add_catch(
    location_key: str = typer.Argument(help="Location key to log the catch under"),
    lat: Optional[float] = typer.Option(None, "--lat"),
    lon: Optional[float] = typer.Option(None, "--lon"),
    user: str = typer.Option("", "--user", "-u", help="Angler user id"),
    pro: bool = typer.Option(False, "--pro", help="Mark the angler as a pro"),
    trophies: int = typer.Option(0, "--trophies", min=0, help="Angler trophy count"),
    at: Optional[str] = typer.Option(None, "--at", help="Capture time, ISO-8601 (default: now)"),
    time_of_day: Optional[str] = typer.Option(None, "--time-of-day", help="dawn, day, dusk or night"),
    moon: Optional[str] = typer.Option(None, "--moon", help="new, waxing, full or waning"),
    pressure: Optional[str] = typer.Option(None, "--pressure", help="low, mid or high"),
    refresh: bool = typer.Option(True, "--refresh/--no-refresh", help="Recompute the bite signal afterwards"),
) -> None:
    """Log a catch (for seeding local data). Bands default to current conditions at --lat/--lon."""
    from bite_forecast.common.types import Coordinates, parse_utc, utc_now
    from bite_forecast.environment.bands import EnvironmentBands

    if (lat is None) != (lon is None):
        raise typer.BadParameter("--lat and --lon must be given together")
    coordinates = Coordinates(lat, lon) if lat is not None and lon is not None else None

    captured_at = parse_utc(at) if at else utc_now()
    if captured_at is None:
        raise typer.BadParameter(f"Unreadable capture time: {at}")

    explicit = (time_of_day, moon, pressure)
    bands = None
    if any(v is not None for v in explicit):
        bands = EnvironmentBands.from_dict({"timeOfDay": time_of_day, "moonPhase": moon, "pressure": pressure})
        if bands is None:
            raise typer.BadParameter("--time-of-day, --moon and --pressure must all be given with valid values")
    elif coordinates is None:
        raise typer.BadParameter("Give --lat/--lon to derive bands, or all of --time-of-day/--moon/--pressure")

    async def _run() -> None:
        from bite_forecast.environment.slices import ForecastEnvironmentSliceProvider
        from bite_forecast.signals.models import UserProfile
        from bite_forecast.signals.service import build_bite_signal_service
        from bite_forecast.storage.sqlite import SqliteStore

        catch_bands = bands
        if catch_bands is None:
            slices = await ForecastEnvironmentSliceProvider().get_slices(coordinates, 0)
            catch_bands = slices[0].snapshot.bands if slices else None

        store = SqliteStore()
        if user and (pro or trophies):
            await store.upsert_profile(UserProfile(user_id=user, is_pro=pro, trophy_count=trophies))
        catch_id = await store.add_catch(
            location_key,
            user_id=user,
            captured_at=captured_at,
            bands=catch_bands,
            coordinates=coordinates,
        )
        slice_key = catch_bands.slice_key if catch_bands else "?"
        console.print(f"Logged catch [bold]{catch_id[:8]}[/bold] at {location_key} ({slice_key})")

        if refresh:
            service = build_bite_signal_service()
            await service.refresh_bite_signal_for_catch(location_key, coordinates)

    asyncio.run(_run())


if __name__ == "__main__":
    app()
