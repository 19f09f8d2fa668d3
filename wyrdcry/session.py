"""
Fighter editor session.

Holds the fighter being built or edited. Every validated field change is
committed straight to the fighter store once the fighter has a name, so the
saved collection always matches what the user sees.
"""

import logging

from .cost_profiles import CostProfileStore
from .fighters import FighterStore
from .models import (
    BASELINE_VALUES,
    BASIC_FIGHTER,
    POWER_LEVEL_MAX,
    POWER_LEVEL_MIN,
    CostBreakdown,
    FighterProfile,
)
from .parsing import clamp, parse_float, parse_int
from .pricing import calculate_cost

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    "name",
    "faction",
    "move",
    "fight",
    "shoot",
    "defense",
    "health",
    "bravery",
    "power_level",
)


class EditorSession:
    """
    Editing context for one fighter at a time.

    Flow:
    1. `reset()` starts from the basic fighter, or `edit(id)` loads one
    2. `set_field()` coerces the value and auto-saves if a name is set
    3. `save()` commits and resets for the next fighter
    """

    def __init__(self, fighters: FighterStore, cost_profiles: CostProfileStore):
        self.fighters = fighters
        self.cost_profiles = cost_profiles
        self.draft = FighterProfile()
        self.editing_id: str | None = None
        self.dirty = False
        self.reset()

    def reset(self) -> None:
        """Start a fresh fighter from the basic fighter's statline."""
        self.draft = BASIC_FIGHTER.model_copy(update={"name": ""})
        self.editing_id = None
        self.dirty = False

    def edit(self, fighter_id: str) -> bool:
        """
        Load a saved fighter into the session.

        Returns:
            False if no fighter has that id.
        """
        fighter = self.fighters.get(fighter_id)
        if fighter is None:
            logger.warning(f"Fighter not found: {fighter_id}")
            return False

        self.draft = fighter.model_copy()
        self.editing_id = fighter.id
        self.dirty = False
        return True

    def _coerce(self, field: str, value):
        if field == "name":
            return str(value or "").strip()
        if field == "faction":
            return str(value or "").strip() or BASIC_FIGHTER.faction
        if field in ("move", "bravery"):
            return parse_int(value, BASELINE_VALUES[field])
        if field == "power_level":
            return clamp(parse_int(value, 0), POWER_LEVEL_MIN, POWER_LEVEL_MAX)
        return parse_float(value, BASELINE_VALUES[field])

    def set_field(self, field: str, value) -> FighterProfile | None:
        """
        Change one field of the draft and auto-save it.

        Invalid numbers fall back to the basic fighter's value; power level is
        clamped to [-3, 3].

        Returns:
            The stored fighter, or None if the draft has no name yet.

        Raises:
            KeyError: If field is not editable.
        """
        if field not in EDITABLE_FIELDS:
            raise KeyError(f"Not an editable fighter field: {field}")

        record = self.draft.model_dump()
        record[field] = self._coerce(field, value)
        self.draft = FighterProfile.model_validate(record)
        self.dirty = True
        return self.commit()

    def commit(self) -> FighterProfile | None:
        """
        Persist the draft if it has a name.

        The first commit assigns the id; later ones update the same record.
        The stored base cost records the active profile's base cost.
        """
        if not self.draft.name:
            return None

        base_cost = self.cost_profiles.get_active_profile().base_cost
        draft = self.draft.model_copy(update={"id": self.editing_id or "", "base_cost": base_cost})
        stored = self.fighters.upsert(draft)

        self.editing_id = stored.id
        self.draft = stored
        return stored

    def save(self) -> FighterProfile:
        """
        Commit the draft and start a new fighter.

        Raises:
            ValueError: If the draft has no name.
        """
        if not self.draft.name:
            raise ValueError("Please enter a fighter name")

        stored = self.commit()
        self.reset()
        return stored

    def breakdown(self) -> CostBreakdown:
        """Price the draft against the active cost-rate profile."""
        return calculate_cost(self.draft, self.cost_profiles.get_active_profile())
