"""
Cost-rate profile collection.

Profiles are kept as a JSON list under `costProfiles`, with a separate
`activeCostProfileId` pointer. When nothing valid is active, reads fall back
to the default rate set (all zero, base cost 20).
"""

import logging
import time
from typing import Callable, Mapping

from pydantic import ValidationError

from .csv_io import cost_profiles_from_csv, cost_profiles_to_csv
from .models import (
    ADD_NEW_PROFILE,
    DEFAULT_BASE_COST,
    CostProfile,
    CostRates,
    default_cost_profile,
    new_timestamp_id,
)
from .parsing import parse_int
from .storage import (
    ACTIVE_COST_PROFILE_KEY,
    COST_PROFILES_KEY,
    LEGACY_POINT_COSTS_KEY,
    KeyValueStore,
    read_json,
    read_json_list,
    write_json,
)

logger = logging.getLogger(__name__)


def _coerce_rates(rates: CostRates | Mapping | None) -> CostRates:
    if isinstance(rates, CostRates):
        return rates
    return CostRates.model_validate(dict(rates or {}))


def _coerce_base_cost(value) -> int:
    return max(0, parse_int(value, DEFAULT_BASE_COST))


class CostProfileStore:
    """
    CRUD over cost-rate profiles plus the active-profile pointer.

    Construction runs the one-time migration of legacy single rate sets.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
    ):
        """
        Initialize the cost profile store.

        Args:
            store: Key-value backend holding the collections.
            clock: Time source for new profile ids (seconds since epoch).
        """
        self.store = store
        self.clock = clock
        self.migrate()

    # =========================================================================
    # PERSISTENCE
    # =========================================================================

    def _load(self) -> list[CostProfile]:
        profiles = []
        for record in read_json_list(self.store, COST_PROFILES_KEY):
            try:
                profiles.append(CostProfile.model_validate(record))
            except ValidationError as e:
                logger.error(f"Skipping invalid cost profile record:\n{e}")
        return profiles

    def _save(self, profiles: list[CostProfile]) -> None:
        write_json(self.store, COST_PROFILES_KEY, [p.to_record() for p in profiles])

    def _set_active_id(self, profile_id: str | None) -> None:
        if profile_id:
            self.store.set(ACTIVE_COST_PROFILE_KEY, profile_id)
        else:
            self.store.remove(ACTIVE_COST_PROFILE_KEY)

    def _new_id(self, profiles: list[CostProfile]) -> str:
        return new_timestamp_id(self.clock, {p.id for p in profiles}, prefix="profile-")

    def migrate(self) -> None:
        """
        Bring stored data up to the multi-profile layout.

        If there are no profiles but a legacy `pointCosts` rate set exists, it
        becomes an active profile named "Default". Every stored profile
        without a base cost gets 20. Safe to run repeatedly.
        """
        records = read_json_list(self.store, COST_PROFILES_KEY)

        if not records:
            legacy = read_json(self.store, LEGACY_POINT_COSTS_KEY)
            if isinstance(legacy, dict):
                profile = CostProfile(
                    id=new_timestamp_id(self.clock, prefix="default-"),
                    name="Default",
                    base_cost=DEFAULT_BASE_COST,
                    costs=_coerce_rates(legacy),
                )
                records = [profile.to_record()]
                write_json(self.store, COST_PROFILES_KEY, records)
                self._set_active_id(profile.id)
                logger.info(f"Migrated legacy point costs into profile {profile.id}")

        missing = [r for r in records if isinstance(r, dict) and r.get("baseCost") is None]
        if missing:
            for record in missing:
                record["baseCost"] = DEFAULT_BASE_COST
            write_json(self.store, COST_PROFILES_KEY, records)
            logger.info(f"Backfilled base cost on {len(missing)} cost profiles")

    # =========================================================================
    # QUERIES
    # =========================================================================

    def list_profiles(self) -> list[CostProfile]:
        """All stored profiles, in insertion order."""
        return self._load()

    def get_active_id(self) -> str | None:
        """The raw active pointer (may reference a deleted profile)."""
        return self.store.get(ACTIVE_COST_PROFILE_KEY)

    def find_active(self) -> CostProfile | None:
        """The active profile, or None if the pointer is unset or dangling."""
        active_id = self.get_active_id()
        if not active_id:
            return None
        return next((p for p in self._load() if p.id == active_id), None)

    def get_active_profile(self) -> CostProfile:
        """The active profile, falling back to the default rate set."""
        return self.find_active() or default_cost_profile()

    # =========================================================================
    # MUTATIONS
    # =========================================================================

    def select(self, profile_id: str | None) -> None:
        """
        Point the active selection at a profile.

        "add-new" (or nothing) clears the selection, so the next save creates
        a new profile.
        """
        if not profile_id or profile_id == ADD_NEW_PROFILE:
            self._set_active_id(None)
            logger.debug("Cleared active cost profile")
        else:
            self._set_active_id(profile_id)
            logger.debug(f"Selected cost profile {profile_id}")

    def save_profile(
        self,
        name: str | None,
        rates: CostRates | Mapping | None,
        base_cost=DEFAULT_BASE_COST,
    ) -> CostProfile:
        """
        Save rates to the active profile, or create and activate a new one.

        Args:
            name: Profile name; blank becomes "Unnamed".
            rates: Rates per characteristic; unparseable values become 0.
            base_cost: Integer base cost; invalid becomes 20, floored at 0.

        Returns:
            The stored profile.
        """
        name = (name or "").strip() or "Unnamed"
        costs = _coerce_rates(rates)
        base = _coerce_base_cost(base_cost)

        profiles = self._load()
        active_id = self.get_active_id()

        for index, profile in enumerate(profiles):
            if active_id and profile.id == active_id:
                updated = CostProfile.model_validate(
                    {**profile.model_dump(), "name": name, "costs": costs, "base_cost": base}
                )
                profiles[index] = updated
                self._save(profiles)
                logger.info(f"Updated cost profile '{name}' ({updated.id})")
                return updated

        created = CostProfile(id=self._new_id(profiles), name=name, costs=costs, base_cost=base)
        profiles.append(created)
        self._save(profiles)
        self._set_active_id(created.id)
        logger.info(f"Created cost profile '{name}' ({created.id})")
        return created

    def update_active(
        self,
        name: str | None,
        rates: CostRates | Mapping | None,
        base_cost=DEFAULT_BASE_COST,
    ) -> CostProfile | None:
        """
        Persist live edits to the active profile.

        Unlike `save_profile`, this never creates a profile and a blank name
        keeps the stored one. Returns None when nothing is active.
        """
        profiles = self._load()
        active_id = self.get_active_id()
        index = next((i for i, p in enumerate(profiles) if active_id and p.id == active_id), None)
        if index is None:
            return None

        current = profiles[index]
        updated = CostProfile.model_validate({
            **current.model_dump(),
            "name": (name or "").strip() or current.name or "Unnamed",
            "costs": _coerce_rates(rates),
            "base_cost": _coerce_base_cost(base_cost),
        })
        profiles[index] = updated
        self._save(profiles)
        return updated

    def delete_active(self) -> bool:
        """
        Delete the active profile.

        Deleting the last profile empties the collection and clears the
        pointer. Otherwise the first remaining profile becomes active.
        Confirmation is the caller's job.

        Returns:
            True if a profile was removed.
        """
        active_id = self.get_active_id()
        if not active_id:
            return False

        profiles = self._load()
        if len(profiles) <= 1:
            if not profiles:
                return False
            self._save([])
            self._set_active_id(None)
            logger.info("Deleted the last cost profile")
            return True

        remaining = [p for p in profiles if p.id != active_id]
        self._set_active_id(remaining[0].id)
        self._save(remaining)
        logger.info(f"Deleted cost profile {active_id}, now using {remaining[0].id}")
        return len(remaining) < len(profiles)

    # =========================================================================
    # CSV
    # =========================================================================

    def export_csv(self) -> str:
        """All profiles as CSV text."""
        return cost_profiles_to_csv(self._load())

    def import_csv(self, text: str) -> list[CostProfile]:
        """
        Append profiles parsed from CSV and activate the first one.

        Raises:
            CsvImportError: If required columns are missing; nothing is saved.
        """
        parsed = cost_profiles_from_csv(text)
        profiles = self._load()
        taken = {p.id for p in profiles}

        imported = []
        for row, profile in enumerate(parsed, start=1):
            profile_id = new_timestamp_id(self.clock, taken, prefix="profile-", suffix=f"-{row}")
            taken.add(profile_id)
            imported.append(profile.model_copy(update={"id": profile_id}))

        self._save(profiles + imported)
        if imported:
            self._set_active_id(imported[0].id)
        logger.info(f"Imported {len(imported)} cost profiles")
        return imported
