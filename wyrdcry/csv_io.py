"""
CSV import and export for fighters and cost-rate profiles.

Export writes a header row and CRLF-terminated rows, quoting any field that
contains a comma, quote, or line break. Import accepts standard CSV quoting,
either line ending, and skips blank rows. Unparseable cells degrade to
defaults; only a missing required column or an empty file fails the import.
"""

import csv
import io
import logging
import re
from typing import Iterable, Sequence

from .factions import FactionCatalog
from .models import (
    BASELINE_VALUES,
    COST_KEYS,
    DEFAULT_BASE_COST,
    DEFAULT_FACTION,
    POWER_LEVEL_MAX,
    POWER_LEVEL_MIN,
    CostProfile,
    CostRates,
    FighterProfile,
)
from .parsing import clamp, format_number, parse_float, parse_int, round_half_up
from .pricing import calculate_cost

logger = logging.getLogger(__name__)

FIGHTER_HEADERS = [
    "Name",
    "Faction",
    "Move",
    "Fight",
    "Shoot",
    "Defense",
    "Health",
    "Bravery",
    "Power Level",
    "Cost (gc)",
]

COST_PROFILE_HEADERS = ["name", "baseCost", *COST_KEYS]

# Substring used to find each fighter column on import
_FIGHTER_COLUMN_PATTERNS = {
    "name": "name",
    "faction": "faction",
    "move": "move",
    "fight": "fight",
    "shoot": "shoot",
    "defense": "defense",
    "health": "health",
    "bravery": "bravery",
    "power_level": "power",
}


class CsvImportError(ValueError):
    """Raised when a CSV file cannot be imported at all."""


# =============================================================================
# LOW-LEVEL READ / WRITE
# =============================================================================


def write_csv(headers: Sequence, rows: Iterable[Sequence]) -> str:
    """Render a header and rows as CRLF-terminated CSV text."""
    buffer = io.StringIO(newline="")
    writer = csv.writer(buffer, lineterminator="\r\n", quoting=csv.QUOTE_MINIMAL)
    writer.writerow(headers)
    for row in rows:
        writer.writerow(["" if value is None else format_number(value) for value in row])
    return buffer.getvalue()


def read_csv(text: str) -> list[list[str]]:
    """
    Parse CSV text into rows of cells.

    Quoted fields may hold commas, doubled quotes and line breaks.
    Rows whose cells are all blank are dropped.
    """
    if text.startswith("\ufeff"):
        text = text[1:]

    reader = csv.reader(io.StringIO(text, newline=""))
    return [row for row in reader if any(cell.strip() for cell in row)]


def _split_header_and_rows(text: str, what: str) -> tuple[list[str], list[list[str]]]:
    rows = read_csv(text)
    if len(rows) < 2:
        raise CsvImportError(f"CSV must have a header row and at least one {what}.")
    return [cell.strip() for cell in rows[0]], rows[1:]


def _cell(cells: list[str], index: int) -> str:
    if 0 <= index < len(cells):
        return cells[index].strip()
    return ""


# =============================================================================
# FIGHTERS
# =============================================================================


def fighters_to_csv(fighters: Iterable[FighterProfile], profile: CostProfile) -> str:
    """
    Export fighters in the given order, costed against profile.

    Bravery is written as a threshold ("4+"), cost rounded to whole gold crowns.
    """
    rows = []
    for fighter in fighters:
        cost = round_half_up(calculate_cost(fighter, profile).total)
        rows.append([
            fighter.name,
            fighter.faction,
            fighter.move,
            fighter.fight,
            fighter.shoot,
            fighter.defense,
            fighter.health,
            f"{fighter.bravery}+",
            fighter.power_level,
            cost,
        ])
    return write_csv(FIGHTER_HEADERS, rows)


def fighters_from_csv(text: str, default_faction: str = DEFAULT_FACTION) -> list[FighterProfile]:
    """
    Parse fighters from CSV text.

    Columns are found by case-insensitive substring match on the header.
    Returned fighters have no id; the caller assigns them.

    Raises:
        CsvImportError: If the file is empty or lacks Name or Move columns.
    """
    header, rows = _split_header_and_rows(text, "data row")
    lowered = [h.lower() for h in header]

    columns = {}
    for field, pattern in _FIGHTER_COLUMN_PATTERNS.items():
        columns[field] = next((i for i, h in enumerate(lowered) if pattern in h), -1)

    if columns["name"] == -1 or columns["move"] == -1:
        raise CsvImportError("CSV must include at least Name and Move columns.")

    fighters = []
    for cells in rows:
        def get(field: str) -> str:
            return _cell(cells, columns[field])

        bravery = parse_int(get("bravery").replace("+", ""), BASELINE_VALUES["bravery"])
        power_level = parse_int(get("power_level"), 0)

        fighter = FighterProfile(
            name=get("name") or "Unnamed",
            faction=get("faction") or default_faction,
            move=parse_int(get("move"), BASELINE_VALUES["move"]),
            fight=parse_float(get("fight"), BASELINE_VALUES["fight"]),
            shoot=parse_float(get("shoot"), BASELINE_VALUES["shoot"]),
            defense=parse_float(get("defense"), BASELINE_VALUES["defense"]),
            health=parse_float(get("health"), BASELINE_VALUES["health"]),
            bravery=bravery,
            power_level=clamp(power_level, POWER_LEVEL_MIN, POWER_LEVEL_MAX),
            base_cost=DEFAULT_BASE_COST,
        )
        fighters.append(fighter)

    logger.debug(f"Parsed {len(fighters)} fighters from CSV")
    return fighters


# =============================================================================
# COST PROFILES
# =============================================================================


def cost_profiles_to_csv(profiles: Iterable[CostProfile]) -> str:
    """Export cost-rate profiles, one row each."""
    rows = []
    for profile in profiles:
        rates = profile.costs
        rows.append([
            profile.name or "Unnamed",
            profile.base_cost,
            *(getattr(rates, key) for key in COST_KEYS),
        ])
    return write_csv(COST_PROFILE_HEADERS, rows)


def cost_profiles_from_csv(text: str) -> list[CostProfile]:
    """
    Parse cost-rate profiles from CSV text.

    Header names must match exactly (ignoring case and surrounding space).
    Returned profiles have no id; the caller assigns them.

    Raises:
        CsvImportError: If the file is empty or lacks name or move columns.
    """
    header, rows = _split_header_and_rows(text, "cost profile")
    lowered = [h.lower() for h in header]

    def column(name: str) -> int:
        return lowered.index(name) if name in lowered else -1

    name_idx = column("name")
    base_idx = column("basecost")
    rate_idx = {key: column(key) for key in COST_KEYS}

    if name_idx == -1 or rate_idx["move"] == -1:
        raise CsvImportError('CSV must include at least "name" and "move" columns.')

    profiles = []
    for cells in rows:
        base_cost = parse_int(_cell(cells, base_idx), DEFAULT_BASE_COST) if base_idx >= 0 else DEFAULT_BASE_COST
        rates = CostRates(**{key: parse_float(_cell(cells, idx), 0.0) for key, idx in rate_idx.items()})
        profiles.append(CostProfile(
            name=_cell(cells, name_idx) or "Unnamed",
            base_cost=max(0, base_cost),
            costs=rates,
        ))

    logger.debug(f"Parsed {len(profiles)} cost profiles from CSV")
    return profiles


# =============================================================================
# FILENAMES
# =============================================================================


def export_filename(
    profile_name: str | None,
    selected_factions: Iterable[str] = (),
    catalog: FactionCatalog | None = None,
) -> str:
    """
    Suggest a file name for a fighter export.

    Combines a slug of the cost profile name with the selected faction labels,
    e.g. "Tournament v2" with Eshin selected gives "tournamentv2_claneshin.csv".
    """
    profile_slug = re.sub(r"[^a-z0-9]+", "", (profile_name or "default").lower()) or "default"

    selected = list(selected_factions)
    if not selected:
        faction_slug = "allfactions"
    else:
        labels = [catalog.label_for(value) if catalog else value for value in selected]
        faction_slug = "_".join(re.sub(r"\s+", "", label.lower()) for label in labels)

    return f"{profile_slug}_{faction_slug}.csv"
