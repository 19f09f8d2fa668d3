import pytest

from wyrdcry.cost_profiles import CostProfileStore
from wyrdcry.fighters import FighterStore
from wyrdcry.storage import MemoryStore

# Frozen clock: every id minted in a test shares the same millisecond
FROZEN_TIME = 1_700_000_000.0


@pytest.fixture
def clock():
    return lambda: FROZEN_TIME


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def cost_profiles(store, clock):
    return CostProfileStore(store, clock=clock)


@pytest.fixture
def fighters(store, clock):
    return FighterStore(store, clock=clock)
