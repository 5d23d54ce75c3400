"""Command-line interface for Air Companion."""

from typing import Annotated, Optional

import typer
from rich.console import Console
from rich.table import Table

from aircompanion.logging_config import configure_logging, get_logger
from aircompanion.promo.catalog import promo_catalog
from aircompanion.settings import settings
from aircompanion.storage.db import Database
from aircompanion.storage.kv import SqlKeyValueStorage
from aircompanion.user.models import Location, SensitivityLevel
from aircompanion.user.store import UserStateStore

# Configure logging
configure_logging()
logger = get_logger(__name__)

# Create Typer app
app = typer.Typer(
    name="aircompanion",
    help="Air Companion - profile, air credits and saved routes",
    no_args_is_help=True,
)

# Rich console for pretty output
console = Console()


def _open_store(ctx: typer.Context) -> UserStateStore:
    storage = SqlKeyValueStorage(Database(ctx.obj["database_url"]))
    logger.debug("store_opening", database_url=ctx.obj["database_url"])
    return UserStateStore.open(storage)


def _parse_point(value: str) -> Location:
    try:
        lat, lng = (float(part) for part in value.split(","))
        return Location(lat=lat, lng=lng)
    except ValueError:
        raise typer.BadParameter(f"Expected LAT,LNG within range, got '{value}'")


def _report_persist(store: UserStateStore) -> None:
    outcome = store.last_persist
    if outcome is not None and not outcome.ok:
        console.print(f"[yellow]Warning:[/yellow] changes were not saved ({outcome.error})")


@app.callback()
def main(
    ctx: typer.Context,
    database_url: Annotated[
        Optional[str], typer.Option("--db", help="State database URL")
    ] = None,
) -> None:
    """Air Companion state tools."""
    ctx.obj = {"database_url": database_url or settings.database_url}


@app.command("status")
def show_status(ctx: typer.Context) -> None:
    """Show profile, credits and onboarding state."""
    with _open_store(ctx) as store:
        profile = store.profile
        summary = store.credit_summary()

        if profile is None:
            console.print("[yellow]No profile yet[/yellow]")
        else:
            table = Table(title="Profile")
            table.add_column("Field", style="cyan")
            table.add_column("Value")
            table.add_row("ID", profile.id)
            table.add_row("Name", profile.name or "-")
            table.add_row("Age", str(profile.age) if profile.age else "-")
            table.add_row("Respiratory issues", "yes" if profile.has_respiratory_issues else "no")
            table.add_row("Sensitivity", profile.sensitivity_level.value)
            home = profile.home_location
            table.add_row("Home", f"{home.lat}, {home.lng}" if home else "-")
            table.add_row("Saved routes", str(len(profile.preferred_routes)))
            console.print(table)

        hours, remainder = divmod(summary["refresh_in_seconds"], 3600)
        console.print(
            f"Credits: [bold]{summary['balance']}[/bold] / {summary['daily_allowance']} "
            f"(refresh in {hours}h {remainder // 60}m)"
        )
        console.print(f"Onboarding complete: {'yes' if store.is_onboarding_complete else 'no'}")
        console.print(f"Redeemed codes: {', '.join(store.redeemed_codes) or 'none'}")


@app.command("profile")
def update_profile(
    ctx: typer.Context,
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Your name")] = None,
    age: Annotated[Optional[int], typer.Option("--age", help="Your age")] = None,
    respiratory: Annotated[
        Optional[bool],
        typer.Option("--respiratory/--no-respiratory", help="Respiratory conditions"),
    ] = None,
    sensitivity: Annotated[
        Optional[SensitivityLevel],
        typer.Option("--sensitivity", "-s", help="Air pollution sensitivity"),
    ] = None,
) -> None:
    """Create or update the profile."""
    changes = {
        "name": name,
        "age": age,
        "has_respiratory_issues": respiratory,
        "sensitivity_level": sensitivity,
    }
    changes = {key: value for key, value in changes.items() if value is not None}

    with _open_store(ctx) as store:
        try:
            profile = store.update_profile(**changes)
        except ValueError as e:
            console.print(f"[bold red]✗[/bold red] Invalid profile data: {e}")
            raise typer.Exit(code=1)

        _report_persist(store)
        console.print(f"[bold green]✓[/bold green] Profile saved ({profile.air_credits} credits)")


@app.command("set-home")
def set_home(
    ctx: typer.Context,
    lat: Annotated[float, typer.Argument(help="Latitude")],
    lng: Annotated[float, typer.Argument(help="Longitude")],
) -> None:
    """Set the home location used for local air quality."""
    with _open_store(ctx) as store:
        try:
            store.set_home_location(Location(lat=lat, lng=lng))
        except ValueError as e:
            console.print(f"[bold red]✗[/bold red] Invalid location: {e}")
            raise typer.Exit(code=1)

        _report_persist(store)
        console.print(f"[bold green]✓[/bold green] Home location set to {lat}, {lng}")


@app.command("onboard")
def onboard(
    ctx: typer.Context,
    undo: Annotated[bool, typer.Option("--undo", help="Mark onboarding as not done")] = False,
) -> None:
    """Mark onboarding as complete."""
    with _open_store(ctx) as store:
        store.set_onboarding_complete(not undo)
        _report_persist(store)
        console.print(f"Onboarding complete: {'no' if undo else 'yes'}")


@app.command("spend")
def spend(
    ctx: typer.Context,
    amount: Annotated[int, typer.Argument(help="Credits to spend")],
) -> None:
    """Spend air credits."""
    with _open_store(ctx) as store:
        if not store.spend_credits(amount):
            console.print(
                f"[bold red]✗[/bold red] Cannot spend {amount} credits "
                f"(available: {store.available_credits()})"
            )
            raise typer.Exit(code=1)

        _report_persist(store)
        console.print(f"[bold green]✓[/bold green] Spent {amount} credits, {store.available_credits()} left")


@app.command("search-route")
def search_route(ctx: typer.Context) -> None:
    """Pay for one route search."""
    with _open_store(ctx) as store:
        cost = store.config.route_search_cost
        if not store.charge_route_search():
            console.print(
                f"[bold red]✗[/bold red] You need {cost} air credits to search for routes. "
                f"You currently have {store.available_credits()} credits."
            )
            raise typer.Exit(code=1)

        _report_persist(store)
        console.print(
            f"[bold green]✓[/bold green] {cost} air credits have been used. "
            f"You have {store.available_credits()} credits remaining."
        )


@app.command("redeem")
def redeem(
    ctx: typer.Context,
    code: Annotated[str, typer.Argument(help="Promo code")],
) -> None:
    """Redeem a promo code."""
    with _open_store(ctx) as store:
        result = store.redeem_promo_code(code)
        if not result.success:
            console.print(f"[bold red]✗[/bold red] {result.message}")
            raise typer.Exit(code=1)

        _report_persist(store)
        console.print(f"[bold green]✓[/bold green] {result.message} Balance: {result.balance}")


@app.command("promos")
def list_promos() -> None:
    """List active promo codes."""
    table = Table(title="Promo Codes")
    table.add_column("Code", style="cyan")
    table.add_column("Credits", justify="right")
    table.add_column("Description")

    for promo in promo_catalog.list_active():
        table.add_row(promo.code, str(promo.credits), promo.description)

    console.print(table)


@app.command("route-save")
def save_route(
    ctx: typer.Context,
    start: Annotated[str, typer.Option("--from", help="Start as LAT,LNG")],
    end: Annotated[str, typer.Option("--to", help="End as LAT,LNG")],
    name: Annotated[Optional[str], typer.Option("--name", "-n", help="Route name")] = None,
) -> None:
    """Save a route."""
    route = {"start": _parse_point(start), "end": _parse_point(end), "name": name}

    with _open_store(ctx) as store:
        saved = store.save_route(route)
        _report_persist(store)
        console.print(f"[bold green]✓[/bold green] Route saved with ID: [bold]{saved.id}[/bold]")


@app.command("routes")
def list_routes(ctx: typer.Context) -> None:
    """List saved routes."""
    with _open_store(ctx) as store:
        routes = store.routes

        if not routes:
            console.print("[yellow]No saved routes[/yellow]")
            return

        table = Table(title="Saved Routes")
        table.add_column("ID", style="cyan")
        table.add_column("Name", style="green")
        table.add_column("From")
        table.add_column("To")

        for route in routes:
            table.add_row(
                route.id,
                route.name or "-",
                f"{route.start.lat}, {route.start.lng}",
                f"{route.end.lat}, {route.end.lng}",
            )

        console.print(table)


@app.command("route-delete")
def delete_route(
    ctx: typer.Context,
    route_id: Annotated[str, typer.Argument(help="Route ID")],
) -> None:
    """Delete a saved route."""
    with _open_store(ctx) as store:
        if not store.delete_route(route_id):
            console.print(f"[yellow]No saved route with ID {route_id}[/yellow]")
            return

        _report_persist(store)
        console.print(f"[bold green]✓[/bold green] Route {route_id} deleted")


@app.command("reset")
def reset(
    ctx: typer.Context,
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Skip confirmation")] = False,
) -> None:
    """Delete the profile, onboarding state and redeemed codes."""
    if not yes:
        typer.confirm("This removes all local state. Continue?", abort=True)

    with _open_store(ctx) as store:
        outcome = store.reset_all()
        if not outcome.ok:
            console.print(f"[yellow]Warning:[/yellow] stored state could not be removed ({outcome.error})")
            raise typer.Exit(code=1)

        console.print("[bold green]✓[/bold green] All local state removed")


if __name__ == "__main__":
    app()
