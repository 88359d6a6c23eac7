from __future__ import annotations

import logging

import typer
from rich.console import Console
from rich.table import Table

from .aggregation import AQIAggregator
from .config import load_config
from .errors import InvalidRequest
from .models import Activity, Coordinate
from .providers import WAQIProvider, build_providers
from .spots import SpotFinder

logging.basicConfig(level=logging.INFO, format="%(asctime)s | %(levelname)s | %(message)s")
app = typer.Typer(add_completion=False)
console = Console()


def _fmt(value) -> str:
    return "-" if value is None else str(value)


@app.command()
def current(lat: float = 12.9716, lon: float = 77.5946):
    """Composite AQI for one location."""
    cfg, creds = load_config()
    aggregator = AQIAggregator(build_providers(cfg, creds), cfg)
    outcome = aggregator.get_composite_aqi(Coordinate(lat, lon))
    if not outcome.ok:
        console.print(f"[red]AQI lookup failed:[/red] {outcome.error}")
        raise typer.Exit(code=1)

    result = outcome.result
    summary = Table(title=f"Air quality at {lat:.4f}, {lon:.4f}")
    summary.add_column("Key", style="cyan")
    summary.add_column("Value", style="green")
    summary.add_row("AQI", _fmt(result.aqi))
    summary.add_row("Category", _fmt(result.category))
    summary.add_row("Confidence", result.confidence)
    summary.add_row("Station", _fmt(result.nearest_station))
    summary.add_row("Best time", result.recommendations.best_time)
    for key, value in result.pollutants.items():
        summary.add_row(key, _fmt(value))
    console.print(summary)

    sources = Table(title="Sources")
    for col in ("Provider", "AQI", "Distance (km)", "Station"):
        sources.add_column(col)
    for s in result.sources:
        sources.add_row(s.name, str(s.aqi), f"{s.distance_km:.1f}", s.station)
    console.print(sources)


@app.command()
def spots(
    lat: float = 12.9716,
    lon: float = 77.5946,
    activity: str = "walking",
    radius_steps: int = 5,
    requests_per_second: float = 1.0,
):
    """Sweep a grid around a location and list the best outdoor spots."""
    try:
        chosen = Activity.parse(activity)
    except InvalidRequest as e:
        console.print(f"[red]Invalid activity:[/red] {e}")
        raise typer.Exit(code=2)

    cfg, creds = load_config(grid_radius_steps=radius_steps, requests_per_second=requests_per_second)
    finder = SpotFinder(AQIAggregator(build_providers(cfg, creds), cfg), cfg)
    found = finder.find_spots(Coordinate(lat, lon), chosen)

    if not found:
        console.print("No suitable outdoor locations found. Consider indoor activities.")
        return

    table = Table(title=f"Top spots for {activity}")
    for col in ("Lat", "Lon", "AQI", "Distance (km)", "Score", "Best time", "Confidence"):
        table.add_column(col)
    for s in found:
        table.add_row(
            f"{s.location.lat:.4f}", f"{s.location.lon:.4f}", str(s.aqi),
            f"{s.distance_km:.2f}", f"{s.score:.3f}", s.best_time, s.confidence,
        )
    console.print(table)


@app.command()
def stations(lat: float = 12.9716, lon: float = 77.5946, radius_km: float = 5.0):
    """WAQI monitoring stations near a location."""
    cfg, creds = load_config()
    found = WAQIProvider(creds.waqi_api_key, cfg).stations_in_radius(Coordinate(lat, lon), radius_km)

    table = Table(title=f"WAQI stations within {radius_km:g} km")
    for col in ("Station", "AQI", "Distance (km)"):
        table.add_column(col)
    for s in found:
        table.add_row(s.name, _fmt(s.aqi), f"{s.distance_km:.2f}")
    console.print(table)


@app.command()
def serve(host: str = "0.0.0.0", port: int = 8000):
    """Run the HTTP API."""
    import uvicorn

    from .api import create_app

    uvicorn.run(create_app(), host=host, port=port)


if __name__ == "__main__":
    app()
