"""
Pydantic models for fighter statlines and cost-rate profiles.

Records are stored with the camelCase keys used by existing saved data
(`powerLevel`, `baseCost`), so models validate from and dump to those aliases.
Numeric fields are lenient: unparseable input falls back to a safe default
instead of failing validation.
"""

from enum import Enum
from typing import Callable, Collection

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from .parsing import clamp, parse_float, parse_int

# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_FACTION = "Eshin"
DEFAULT_BASE_COST = 20

POWER_LEVEL_MIN = -3
POWER_LEVEL_MAX = 3

# Rate keys, in display and CSV order
COST_KEYS = ("move", "fight", "shoot", "defense", "health", "bravery", "powerlevel")

# Baseline characteristics every fighter is priced against
BASELINE_VALUES = {
    "move": 5,
    "fight": 3,
    "shoot": 3,
    "defense": 3,
    "health": 8,
    "bravery": 5,
}

ADD_NEW_PROFILE = "add-new"


# =============================================================================
# ENUMS
# =============================================================================


class SortKey(str, Enum):
    """Fighter list orderings."""

    NAME_ASC = "name-asc"
    NAME_DESC = "name-desc"
    COST_ASC = "cost-asc"
    COST_DESC = "cost-desc"
    FACTION_ASC = "faction-asc"
    FACTION_DESC = "faction-desc"


class Theme(str, Enum):
    """Display theme preference."""

    LIGHT = "light"
    DARK = "dark"


# =============================================================================
# FIGHTER MODELS
# =============================================================================


class FighterProfile(BaseModel):
    """
    A fighter statline.

    Bravery is a roll threshold: lower is better.
    `base_cost` records the cost basis when the fighter was created; pricing
    always uses the active cost-rate profile instead.
    """

    model_config = ConfigDict(populate_by_name=True)

    # Identity
    id: str = ""
    name: str = ""
    faction: str = DEFAULT_FACTION

    # Characteristics
    move: int = BASELINE_VALUES["move"]
    fight: int | float = BASELINE_VALUES["fight"]
    shoot: int | float = BASELINE_VALUES["shoot"]
    defense: int | float = BASELINE_VALUES["defense"]
    health: int | float = BASELINE_VALUES["health"]
    bravery: int = BASELINE_VALUES["bravery"]
    power_level: int = Field(
        default=0,
        validation_alias=AliasChoices("powerLevel", "power_level", "specialTier"),
        serialization_alias="powerLevel",
    )

    base_cost: int | float = Field(default=DEFAULT_BASE_COST, alias="baseCost")

    @field_validator("id", "name", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)

    @field_validator("faction", mode="before")
    @classmethod
    def _faction(cls, value):
        return "" if value is None else str(value)

    @field_validator("move", "bravery", mode="before")
    @classmethod
    def _whole_characteristic(cls, value, info):
        return parse_int(value, BASELINE_VALUES[info.field_name])

    @field_validator("fight", "shoot", "defense", "health", mode="before")
    @classmethod
    def _numeric_characteristic(cls, value, info):
        number = parse_float(value, BASELINE_VALUES[info.field_name])
        return int(number) if float(number).is_integer() else number

    @field_validator("power_level", mode="before")
    @classmethod
    def _power_level(cls, value):
        return clamp(parse_int(value, 0), POWER_LEVEL_MIN, POWER_LEVEL_MAX)

    @field_validator("base_cost", mode="before")
    @classmethod
    def _base_cost(cls, value):
        number = parse_float(value, DEFAULT_BASE_COST)
        return int(number) if float(number).is_integer() else number

    def to_record(self) -> dict:
        """Dump to the stored record shape."""
        return self.model_dump(by_alias=True)


BASIC_FIGHTER = FighterProfile(
    name="Basic Fighter",
    faction=DEFAULT_FACTION,
    power_level=0,
    base_cost=DEFAULT_BASE_COST,
    **BASELINE_VALUES,
)


# =============================================================================
# COST MODELS
# =============================================================================


class CostRates(BaseModel):
    """Point price per characteristic step."""

    move: float = 0.0
    fight: float = 0.0
    shoot: float = 0.0
    defense: float = 0.0
    health: float = 0.0
    bravery: float = 0.0
    powerlevel: float = 0.0

    @field_validator("*", mode="before")
    @classmethod
    def _rate(cls, value):
        return parse_float(value, 0.0)


class CostProfile(BaseModel):
    """A named set of cost rates plus the base cost of a baseline fighter."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = ""
    name: str = "Unnamed"
    base_cost: int = Field(default=DEFAULT_BASE_COST, alias="baseCost")
    costs: CostRates = Field(default_factory=CostRates)

    @field_validator("id", "name", mode="before")
    @classmethod
    def _text(cls, value):
        return "" if value is None else str(value)

    @field_validator("base_cost", mode="before")
    @classmethod
    def _base_cost(cls, value):
        return max(0, parse_int(value, DEFAULT_BASE_COST))

    @field_validator("costs", mode="before")
    @classmethod
    def _costs(cls, value):
        return {} if value is None else value

    def to_record(self) -> dict:
        """Dump to the stored record shape."""
        return self.model_dump(by_alias=True)


def default_cost_profile() -> CostProfile:
    """The rate set used when no cost-rate profile is active: all zero, base 20."""
    return CostProfile(id="", name="", base_cost=DEFAULT_BASE_COST, costs=CostRates())


class CostBreakdown(BaseModel):
    """Signed cost term per characteristic plus the clamped total."""

    base_cost: float = 0.0
    move_cost: float = 0.0
    fight_cost: float = 0.0
    shoot_cost: float = 0.0
    defense_cost: float = 0.0
    health_cost: float = 0.0
    bravery_cost: float = 0.0
    power_level_cost: float = 0.0
    total: float = 0.0

    def terms(self) -> dict[str, float]:
        """Per-characteristic terms in display order (excludes base and total)."""
        return {
            "move": self.move_cost,
            "fight": self.fight_cost,
            "shoot": self.shoot_cost,
            "defense": self.defense_cost,
            "health": self.health_cost,
            "bravery": self.bravery_cost,
            "powerlevel": self.power_level_cost,
        }


# =============================================================================
# IDENTIFIERS
# =============================================================================


def new_timestamp_id(
    clock: Callable[[], float],
    taken: Collection[str] = (),
    prefix: str = "",
    suffix: str = "",
) -> str:
    """
    Mint an id from the current time in milliseconds.

    Bumps the millisecond until the id is not in `taken`, so records created
    within the same millisecond still get distinct ids.
    """
    millis = int(clock() * 1000)
    while f"{prefix}{millis}{suffix}" in taken:
        millis += 1
    return f"{prefix}{millis}{suffix}"
