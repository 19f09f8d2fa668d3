"""
CLI Entry Point for Wyrdcry.

Provides commands for:
- Managing cost-rate profiles
- Building, editing and pricing fighters
- CSV import and export
"""

import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import get_factions_file, get_storage_path, get_theme, set_theme
from .cost_profiles import CostProfileStore
from .csv_io import CsvImportError, export_filename
from .factions import FactionCatalog, load_faction_catalog
from .fighters import FighterStore, filter_and_sort
from .models import ADD_NEW_PROFILE, COST_KEYS, CostProfile, FighterProfile, SortKey, Theme
from .parsing import format_number, round_half_up
from .pricing import calculate_cost
from .session import EditorSession
from .storage import JsonFileStore

# Setup rich console
console = Console()

# Setup logging
logging.basicConfig(
    level=logging.WARNING,
    format="%(message)s",
    handlers=[RichHandler(console=console, rich_tracebacks=True)],
)
logger = logging.getLogger(__name__)

# Create Typer app
app = typer.Typer(
    name="wyrdcry",
    help="Fighter cost ledger: price statlines against cost-rate profiles",
    add_completion=False,
)


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logging"),
):
    """Fighter cost ledger."""
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)


def open_store() -> JsonFileStore:
    """Open the configured storage file."""
    return JsonFileStore(get_storage_path())


def open_stores() -> tuple[CostProfileStore, FighterStore]:
    """Open the cost profile and fighter stores over shared storage."""
    store = open_store()
    return CostProfileStore(store), FighterStore(store)


def load_catalog() -> FactionCatalog:
    """Load the configured faction catalog."""
    return load_faction_catalog(get_factions_file())


def _gold(value: float) -> str:
    return f"{round_half_up(value)}gc"


def _fighters_table(fighters: list[FighterProfile], profile: CostProfile, title: str) -> Table:
    table = Table(title=title)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="green")
    table.add_column("Faction", style="cyan")
    for header in ("M", "F", "S", "D", "H", "Br", "PL"):
        table.add_column(header, justify="right")
    table.add_column("Cost", style="yellow", justify="right")

    for fighter in fighters:
        table.add_row(
            fighter.id,
            fighter.name,
            fighter.faction or "-",
            f'{fighter.move}"',
            format_number(fighter.fight),
            format_number(fighter.shoot),
            format_number(fighter.defense),
            format_number(fighter.health),
            f"{fighter.bravery}+",
            str(fighter.power_level),
            _gold(calculate_cost(fighter, profile).total),
        )
    return table


def _print_breakdown(fighter: FighterProfile, profile: CostProfile) -> None:
    points = calculate_cost(fighter, profile)

    table = Table(title=f"{fighter.name or 'Unnamed'} - {profile.name or 'default rates'}")
    table.add_column("Term", style="cyan")
    table.add_column("Cost", justify="right")

    table.add_row("base", _gold(points.base_cost))
    for key, value in points.terms().items():
        table.add_row(key, _gold(value))
    table.add_row("[bold]total[/]", f"[bold]{_gold(points.total)}[/]")

    console.print(table)


def _read_text(path: Path) -> str:
    if not path.exists():
        console.print(f"[red]Error: File not found: {path}[/]")
        raise typer.Exit(1)
    with open(path, encoding="utf-8-sig", newline="") as f:
        return f.read()


def _write_text(path: Path, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)


# =============================================================================
# COST PROFILE COMMANDS
# =============================================================================

@app.command("list-costs")
def list_costs():
    """List saved cost-rate profiles."""
    cost_profiles, _ = open_stores()
    profiles = cost_profiles.list_profiles()

    if not profiles:
        console.print("[yellow]No cost profiles saved. Using default rates.[/]")
        return

    active_id = cost_profiles.get_active_id()

    table = Table(title="Cost Profiles")
    table.add_column("", width=1)
    table.add_column("ID", style="dim")
    table.add_column("Name", style="green")
    table.add_column("Base", justify="right")
    for key in COST_KEYS:
        table.add_column(key, justify="right")

    for profile in profiles:
        table.add_row(
            "*" if profile.id == active_id else "",
            profile.id,
            profile.name,
            str(profile.base_cost),
            *(format_number(getattr(profile.costs, key)) for key in COST_KEYS),
        )

    console.print(table)


@app.command("show-costs")
def show_costs():
    """Show the active cost-rate profile."""
    cost_profiles, _ = open_stores()
    active = cost_profiles.find_active()
    profile = active or cost_profiles.get_active_profile()

    title = f"{active.name} ({active.id})" if active else "Default rates (no active profile)"
    table = Table(title=title)
    table.add_column("Rate", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("baseCost", str(profile.base_cost))
    for key in COST_KEYS:
        table.add_row(key, format_number(getattr(profile.costs, key)))

    console.print(table)


@app.command("save-costs")
def save_costs(
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Profile name"),
    base: Optional[str] = typer.Option(None, "--base", "-b", help="Base cost of the basic fighter"),
    move: Optional[str] = typer.Option(None, "--move", help="Cost per point of Move"),
    fight: Optional[str] = typer.Option(None, "--fight", help="Cost per point of Fight"),
    shoot: Optional[str] = typer.Option(None, "--shoot", help="Cost per point of Shoot"),
    defense: Optional[str] = typer.Option(None, "--defense", help="Cost per point of Defense"),
    health: Optional[str] = typer.Option(None, "--health", help="Cost per point of Health"),
    bravery: Optional[str] = typer.Option(None, "--bravery", help="Cost per step of Bravery"),
    powerlevel: Optional[str] = typer.Option(None, "--powerlevel", help="Cost per Power Level"),
):
    """
    Save rates to the active profile, or create a new one.

    Rates that are not given keep their current values.
    """
    cost_profiles, _ = open_stores()
    current = cost_profiles.get_active_profile()

    given = {
        "move": move,
        "fight": fight,
        "shoot": shoot,
        "defense": defense,
        "health": health,
        "bravery": bravery,
        "powerlevel": powerlevel,
    }
    rates = current.costs.model_dump()
    rates.update({key: value for key, value in given.items() if value is not None})

    saved = cost_profiles.save_profile(
        name if name is not None else current.name,
        rates,
        base if base is not None else current.base_cost,
    )
    console.print(f"[green]Saved cost profile '{saved.name}' ({saved.id})[/]")


@app.command("select-costs")
def select_costs(
    profile_id: str = typer.Argument(..., help=f"Profile ID, or '{ADD_NEW_PROFILE}' to start a new one"),
):
    """Choose the active cost-rate profile."""
    cost_profiles, _ = open_stores()
    cost_profiles.select(profile_id)

    active = cost_profiles.find_active()
    if active:
        console.print(f"Active cost profile: [green]{active.name}[/]")
    elif profile_id == ADD_NEW_PROFILE:
        console.print("No active cost profile. The next save creates a new one.")
    else:
        console.print(f"[yellow]No cost profile '{profile_id}'. Using default rates.[/]")


@app.command("delete-costs")
def delete_costs(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete the active cost-rate profile."""
    cost_profiles, _ = open_stores()
    if not cost_profiles.get_active_id():
        console.print("[yellow]No active cost profile to delete.[/]")
        return

    if not yes and not typer.confirm("Delete this cost profile? This cannot be undone."):
        return

    if cost_profiles.delete_active():
        active = cost_profiles.find_active()
        console.print("[green]Cost profile deleted.[/]")
        if active:
            console.print(f"Active cost profile: [green]{active.name}[/]")


@app.command("export-costs")
def export_costs(
    path: Path = typer.Argument(Path("cost_profiles.csv"), help="Output CSV file"),
):
    """Export all cost-rate profiles as CSV."""
    cost_profiles, _ = open_stores()
    if not cost_profiles.list_profiles():
        console.print("[yellow]No cost profiles to export. Create and save a cost profile first.[/]")
        return

    _write_text(path, cost_profiles.export_csv())
    console.print(f"[green]Exported cost profiles to {path}[/]")


@app.command("import-costs")
def import_costs(
    path: Path = typer.Argument(..., help="CSV file to import"),
):
    """Append cost-rate profiles from CSV and activate the first one."""
    cost_profiles, _ = open_stores()

    try:
        imported = cost_profiles.import_csv(_read_text(path))
    except CsvImportError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    console.print(f"[green]Imported {len(imported)} cost profiles.[/]")


# =============================================================================
# FIGHTER COMMANDS
# =============================================================================

@app.command("list-fighters")
def list_fighters(
    factions: Optional[List[str]] = typer.Option(None, "--faction", "-f", help="Only show this faction (repeatable)"),
    sort: SortKey = typer.Option(SortKey.NAME_ASC, "--sort", "-s", help="Sort order"),
):
    """List saved fighters with their current cost."""
    cost_profiles, fighters = open_stores()
    profile = cost_profiles.get_active_profile()
    selected = factions or []

    rows = filter_and_sort(fighters.list_fighters(), selected, sort, profile)
    if not rows:
        console.print("[yellow]No fighters saved yet. Add one with 'add-fighter'.[/]")
        return

    title = f"Fighters - {load_catalog().summarize(selected)}"
    console.print(_fighters_table(rows, profile, title))


def _apply_fields(session: EditorSession, fields: dict) -> None:
    for field, value in fields.items():
        if value is not None:
            session.set_field(field, value)


@app.command("add-fighter")
def add_fighter(
    name: str = typer.Argument(..., help="Fighter name"),
    faction: Optional[str] = typer.Option(None, "--faction", "-f", help="Faction"),
    move: Optional[str] = typer.Option(None, "--move", help="Move"),
    fight: Optional[str] = typer.Option(None, "--fight", help="Fight"),
    shoot: Optional[str] = typer.Option(None, "--shoot", help="Shoot"),
    defense: Optional[str] = typer.Option(None, "--defense", help="Defense"),
    health: Optional[str] = typer.Option(None, "--health", help="Health"),
    bravery: Optional[str] = typer.Option(None, "--bravery", help="Bravery threshold, e.g. 4 or 4+"),
    power: Optional[str] = typer.Option(None, "--power", help="Power level (-3 to 3)"),
):
    """Build a new fighter from the basic fighter's statline."""
    cost_profiles, fighters = open_stores()
    session = EditorSession(fighters, cost_profiles)

    if faction is None:
        faction = load_catalog().default_faction

    _apply_fields(session, {
        "name": name,
        "faction": faction,
        "move": move,
        "fight": fight,
        "shoot": shoot,
        "defense": defense,
        "health": health,
        "bravery": bravery,
        "power_level": power,
    })

    try:
        stored = session.save()
    except ValueError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    console.print(f"[green]Saved fighter '{stored.name}' ({stored.id})[/]")
    _print_breakdown(stored, cost_profiles.get_active_profile())


@app.command("edit-fighter")
def edit_fighter(
    fighter_id: str = typer.Argument(..., help="Fighter ID"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Fighter name"),
    faction: Optional[str] = typer.Option(None, "--faction", "-f", help="Faction"),
    move: Optional[str] = typer.Option(None, "--move", help="Move"),
    fight: Optional[str] = typer.Option(None, "--fight", help="Fight"),
    shoot: Optional[str] = typer.Option(None, "--shoot", help="Shoot"),
    defense: Optional[str] = typer.Option(None, "--defense", help="Defense"),
    health: Optional[str] = typer.Option(None, "--health", help="Health"),
    bravery: Optional[str] = typer.Option(None, "--bravery", help="Bravery threshold, e.g. 4 or 4+"),
    power: Optional[str] = typer.Option(None, "--power", help="Power level (-3 to 3)"),
):
    """Change fields of a saved fighter. Each change is saved immediately."""
    cost_profiles, fighters = open_stores()
    session = EditorSession(fighters, cost_profiles)

    if not session.edit(fighter_id):
        console.print(f"[yellow]Not found: fighter '{fighter_id}'[/]")
        raise typer.Exit(1)

    _apply_fields(session, {
        "name": name,
        "faction": faction,
        "move": move,
        "fight": fight,
        "shoot": shoot,
        "defense": defense,
        "health": health,
        "bravery": bravery,
        "power_level": power,
    })

    if not session.dirty:
        console.print("[yellow]No changes given.[/]")
    elif not session.draft.name:
        console.print("[yellow]A fighter needs a name; change not saved.[/]")
        raise typer.Exit(1)

    _print_breakdown(session.draft, cost_profiles.get_active_profile())


@app.command()
def price(
    fighter_id: str = typer.Argument(..., help="Fighter ID"),
):
    """Show a fighter's cost breakdown under the active profile."""
    cost_profiles, fighters = open_stores()
    fighter = fighters.get(fighter_id)

    if fighter is None:
        console.print(f"[yellow]Not found: fighter '{fighter_id}'[/]")
        raise typer.Exit(1)

    _print_breakdown(fighter, cost_profiles.get_active_profile())


@app.command("delete-fighter")
def delete_fighter(
    fighter_id: str = typer.Argument(..., help="Fighter ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete a saved fighter."""
    _, fighters = open_stores()

    if not yes and not typer.confirm("Are you sure you want to delete this fighter?"):
        return

    if fighters.delete(fighter_id):
        console.print("[green]Fighter deleted.[/]")
    else:
        console.print(f"[yellow]Not found: fighter '{fighter_id}'[/]")


@app.command("export-fighters")
def export_fighters(
    path: Optional[Path] = typer.Argument(None, help="Output CSV file (default: named after profile and factions)"),
    factions: Optional[List[str]] = typer.Option(None, "--faction", "-f", help="Only export this faction (repeatable)"),
    sort: SortKey = typer.Option(SortKey.NAME_ASC, "--sort", "-s", help="Row order"),
):
    """Export fighters as CSV, in list order."""
    cost_profiles, fighters = open_stores()
    profile = cost_profiles.get_active_profile()
    selected = factions or []

    rows = filter_and_sort(fighters.list_fighters(), selected, sort, profile)
    if not rows:
        console.print("[yellow]No fighters to export. Add fighters first.[/]")
        return

    if path is None:
        active = cost_profiles.find_active()
        path = Path(export_filename(active.name if active else None, selected, load_catalog()))

    _write_text(path, fighters.export_csv(rows, profile))
    console.print(f"[green]Exported {len(rows)} fighters to {path}[/]")


@app.command("import-fighters")
def import_fighters(
    path: Path = typer.Argument(..., help="CSV file to import"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Replace all saved fighters with those in a CSV file."""
    _, fighters = open_stores()

    try:
        parsed = fighters.parse_csv(_read_text(path), default_faction=load_catalog().default_faction)
    except CsvImportError as e:
        console.print(f"[red]Error: {e}[/]")
        raise typer.Exit(1)

    prompt = f"This will replace all current fighters with {len(parsed)} from the file. Continue?"
    if not yes and not typer.confirm(prompt):
        return

    fighters.replace_all(parsed)
    console.print(f"[green]Imported {len(parsed)} fighters.[/]")


# =============================================================================
# MISC COMMANDS
# =============================================================================

@app.command()
def factions():
    """List builder factions and filter options."""
    catalog = load_catalog()

    table = Table(title="Factions")
    table.add_column("Value", style="cyan")
    table.add_column("Label", style="green")
    table.add_column("Builder", justify="center")

    values = catalog.filter_values()
    for option in catalog.filter:
        table.add_row(option.value, option.label, "✓" if option.value in catalog.builder else "")
    for faction in catalog.builder:
        if faction not in values:
            table.add_row(faction, faction, "✓")

    console.print(table)
    console.print(f"Default faction: [green]{catalog.default_faction}[/]")


@app.command()
def theme(
    value: Optional[Theme] = typer.Argument(None, help="Set the theme"),
):
    """Show or set the display theme preference."""
    store = open_store()
    current = set_theme(store, value) if value is not None else get_theme(store)
    console.print(f"Theme: [bold]{current.value}[/]")


def main():
    """Entry point."""
    app()


if __name__ == "__main__":
    main()
