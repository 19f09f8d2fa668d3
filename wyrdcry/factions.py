"""
Faction catalog loader.

Faction choices are human-edited data kept in YAML, parsed into Pydantic
models. A malformed file is logged and replaced by a minimal catalog so the
rest of the tool keeps working.
"""

import logging
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from .models import DEFAULT_FACTION

logger = logging.getLogger(__name__)

PACKAGED_FACTIONS_FILE = Path(__file__).parent / "data" / "factions.yaml"


class FactionOption(BaseModel):
    """A filter option: stored value plus display label."""

    value: str
    label: str


class FactionCatalog(BaseModel):
    """Builder factions and filter options."""

    builder: list[str] = Field(default_factory=lambda: [DEFAULT_FACTION])
    filter: list[FactionOption] = Field(default_factory=list)

    @property
    def default_faction(self) -> str:
        """Faction given to fighters that do not name one."""
        return self.builder[0] if self.builder else DEFAULT_FACTION

    def label_for(self, value: str) -> str:
        """Display label for a stored faction value (the value itself if unknown)."""
        for option in self.filter:
            if option.value == value:
                return option.label
        return value

    def filter_values(self) -> list[str]:
        """All filterable faction values, in catalog order."""
        return [option.value for option in self.filter]

    def summarize(self, selected: list[str]) -> str:
        """
        Short description of a faction filter selection.

        Nothing or everything selected reads "All Factions"; up to two
        factions are listed by label, more are counted.
        """
        if not selected or len(selected) == len(self.filter):
            return "All Factions"

        labels = [self.label_for(value) for value in selected]
        if len(labels) <= 2:
            return ", ".join(labels)
        return f"{len(labels)} factions"


def load_faction_catalog(path: str | Path | None = None) -> FactionCatalog:
    """
    Load the faction catalog from YAML.

    Args:
        path: Catalog file. Defaults to the catalog shipped with the package.

    Returns:
        Parsed catalog, or a minimal default catalog if the file is missing
        or invalid.
    """
    file_path = Path(path) if path else PACKAGED_FACTIONS_FILE

    try:
        with open(file_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        catalog = FactionCatalog.model_validate(data)
    except FileNotFoundError:
        logger.warning(f"Faction catalog not found: {file_path}")
        return FactionCatalog()
    except ValidationError as e:
        logger.error(f"Validation error in {file_path}:\n{e}")
        return FactionCatalog()
    except yaml.YAMLError as e:
        logger.error(f"YAML parse error in {file_path}:\n{e}")
        return FactionCatalog()

    logger.debug(f"Loaded {len(catalog.builder)} builder factions, {len(catalog.filter)} filter options")
    return catalog
