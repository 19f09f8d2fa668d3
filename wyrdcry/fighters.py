"""
Fighter profile collection.

Fighters are kept as a JSON list under `fighterProfiles`. The collection is
keyed by id; any display order is computed on read by `filter_and_sort`.
"""

import logging
import time
from typing import Callable, Iterable

from pydantic import ValidationError

from .csv_io import fighters_from_csv, fighters_to_csv
from .models import DEFAULT_FACTION, CostProfile, FighterProfile, SortKey, new_timestamp_id
from .pricing import fighter_total
from .storage import FIGHTER_PROFILES_KEY, KeyValueStore, read_json_list, write_json

logger = logging.getLogger(__name__)


class FighterStore:
    """CRUD over saved fighters."""

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the fighter store.

        Args:
            store: Key-value backend holding the collection.
            clock: Time source for new fighter ids (seconds since epoch).
        """
        self.store = store
        self.clock = clock

    def _load(self) -> list[FighterProfile]:
        fighters = []
        for record in read_json_list(self.store, FIGHTER_PROFILES_KEY):
            try:
                fighters.append(FighterProfile.model_validate(record))
            except ValidationError as e:
                logger.error(f"Skipping invalid fighter record:\n{e}")
        return fighters

    def _save(self, fighters: list[FighterProfile]) -> None:
        write_json(self.store, FIGHTER_PROFILES_KEY, [f.to_record() for f in fighters])

    def list_fighters(self) -> list[FighterProfile]:
        """All stored fighters, in insertion order."""
        return self._load()

    def get(self, fighter_id: str) -> FighterProfile | None:
        """A fighter by id, or None."""
        return next((f for f in self._load() if f.id == fighter_id), None)

    def upsert(self, fighter: FighterProfile) -> FighterProfile:
        """
        Replace the fighter with the same id, or append it under a new id.

        Returns:
            The stored fighter (with its assigned id).
        """
        fighters = self._load()

        for index, existing in enumerate(fighters):
            if fighter.id and existing.id == fighter.id:
                fighters[index] = fighter
                self._save(fighters)
                logger.debug(f"Updated fighter '{fighter.name}' ({fighter.id})")
                return fighter

        stored = fighter.model_copy(update={"id": new_timestamp_id(self.clock, {f.id for f in fighters})})
        fighters.append(stored)
        self._save(fighters)
        logger.info(f"Created fighter '{stored.name}' ({stored.id})")
        return stored

    def delete(self, fighter_id: str) -> bool:
        """
        Remove a fighter by id. Confirmation is the caller's job.

        Returns:
            True if a fighter was removed.
        """
        fighters = self._load()
        remaining = [f for f in fighters if f.id != fighter_id]
        if len(remaining) == len(fighters):
            return False

        self._save(remaining)
        logger.info(f"Deleted fighter {fighter_id}")
        return True

    def replace_all(self, fighters: Iterable[FighterProfile]) -> list[FighterProfile]:
        """Replace the whole collection, minting ids for fighters without one."""
        stored = []
        taken: set[str] = set()
        for row, fighter in enumerate(fighters, start=1):
            if not fighter.id or fighter.id in taken:
                fighter = fighter.model_copy(
                    update={"id": new_timestamp_id(self.clock, taken, suffix=f"-{row}")}
                )
            taken.add(fighter.id)
            stored.append(fighter)

        self._save(stored)
        logger.info(f"Replaced fighter collection with {len(stored)} fighters")
        return stored

    # =========================================================================
    # CSV
    # =========================================================================

    def parse_csv(self, text: str, default_faction: str = DEFAULT_FACTION) -> list[FighterProfile]:
        """
        Parse fighters from CSV without touching storage.

        Pass the result to `replace_all` once the user confirms.

        Raises:
            CsvImportError: If required columns are missing.
        """
        return fighters_from_csv(text, default_faction=default_faction)

    def import_csv(self, text: str, default_faction: str = DEFAULT_FACTION) -> list[FighterProfile]:
        """Parse CSV and replace the whole collection with its fighters."""
        return self.replace_all(self.parse_csv(text, default_faction=default_faction))

    def export_csv(self, fighters: Iterable[FighterProfile], profile: CostProfile) -> str:
        """Export the given fighters, in the given order, as CSV text."""
        return fighters_to_csv(fighters, profile)


# =============================================================================
# FILTER / SORT
# =============================================================================


def _name_key(fighter: FighterProfile) -> str:
    return (fighter.name or "").lower()


def _faction_key(fighter: FighterProfile) -> str:
    return (fighter.faction or "").lower()


def filter_and_sort(
    fighters: Iterable[FighterProfile],
    selected_factions: Iterable[str],
    sort_key: SortKey | str,
    profile: CostProfile,
) -> list[FighterProfile]:
    """
    Filter fighters by faction and order them for display.

    All sorts are stable. Cost sorts price each fighter against `profile` at
    call time. Faction sorts break ties by name ascending in both directions.

    Args:
        fighters: Fighters to order.
        selected_factions: Factions to keep; empty keeps everyone.
        sort_key: One of the `SortKey` values; unknown keys sort by name.
        profile: Active cost-rate profile used for cost sorts.

    Returns:
        A new list.
    """
    selected = set(selected_factions)
    result = [f for f in fighters if not selected or (f.faction or "") in selected]

    try:
        key = SortKey(sort_key)
    except ValueError:
        logger.warning(f"Unknown sort key {sort_key!r}, sorting by name")
        key = SortKey.NAME_ASC

    if key == SortKey.NAME_ASC:
        return sorted(result, key=_name_key)
    if key == SortKey.NAME_DESC:
        return sorted(result, key=_name_key, reverse=True)
    if key in (SortKey.COST_ASC, SortKey.COST_DESC):
        costs = {id(f): fighter_total(f, profile) for f in result}
        return sorted(result, key=lambda f: costs[id(f)], reverse=key == SortKey.COST_DESC)
    if key == SortKey.FACTION_ASC:
        return sorted(result, key=lambda f: (_faction_key(f), _name_key(f)))

    # Faction descending, name still ascending: two stable passes
    by_name = sorted(result, key=_name_key)
    return sorted(by_name, key=_faction_key, reverse=True)
