import json

import pytest

from wyrdcry.csv_io import CsvImportError
from wyrdcry.fighters import FighterStore, filter_and_sort
from wyrdcry.models import CostProfile, CostRates, FighterProfile, SortKey
from wyrdcry.storage import FIGHTER_PROFILES_KEY, MemoryStore

ZERO_RATES = CostProfile(id="zero", name="Zero", base_cost=20)
MOVE_RATES = CostProfile(id="move", name="Move", base_cost=20, costs=CostRates(move=10))
FIGHT_RATES = CostProfile(id="fight", name="Fight", base_cost=20, costs=CostRates(fight=10))


def _fighter(fighter_id: str, name: str, faction: str = "Eshin", **stats) -> FighterProfile:
    return FighterProfile(id=fighter_id, name=name, faction=faction, **stats)


# =============================================================================
# STORE
# =============================================================================


def test_upsert_assigns_id_and_appends(fighters):
    stored = fighters.upsert(FighterProfile(name="Rat"))

    assert stored.id == "1700000000000"
    assert fighters.list_fighters() == [stored]


def test_upsert_replaces_existing(fighters):
    stored = fighters.upsert(FighterProfile(name="Rat"))

    fighters.upsert(stored.model_copy(update={"move": 7}))

    (only,) = fighters.list_fighters()
    assert only.id == stored.id
    assert only.move == 7


def test_upsert_unknown_id_gets_fresh_id(fighters):
    stored = fighters.upsert(FighterProfile(id="ghost", name="Rat"))

    assert stored.id != "ghost"


def test_ids_unique_within_same_millisecond(fighters):
    first = fighters.upsert(FighterProfile(name="A"))
    second = fighters.upsert(FighterProfile(name="B"))

    assert first.id != second.id


def test_get(fighters):
    stored = fighters.upsert(FighterProfile(name="Rat"))

    assert fighters.get(stored.id) == stored
    assert fighters.get("missing") is None


def test_delete(fighters):
    keep = fighters.upsert(FighterProfile(name="Keep"))
    drop = fighters.upsert(FighterProfile(name="Drop"))

    assert fighters.delete(drop.id) is True
    assert fighters.delete("missing") is False
    assert fighters.list_fighters() == [keep]


def test_stored_record_shape(fighters, store):
    fighters.upsert(FighterProfile(name="Rat", power_level=2))

    (record,) = json.loads(store.get(FIGHTER_PROFILES_KEY))

    assert record["powerLevel"] == 2
    assert record["baseCost"] == 20
    assert "power_level" not in record


def test_reads_legacy_special_tier(clock):
    records = [{"id": "1", "name": "Old", "move": 5, "specialTier": 5}]
    store = MemoryStore({FIGHTER_PROFILES_KEY: json.dumps(records)})

    (fighter,) = FighterStore(store, clock=clock).list_fighters()

    assert fighter.power_level == 3


def test_corrupt_collection_reads_empty(clock, caplog):
    store = MemoryStore({FIGHTER_PROFILES_KEY: "{not json"})

    assert FighterStore(store, clock=clock).list_fighters() == []
    assert "not valid JSON" in caplog.text


def test_import_replaces_collection(fighters):
    fighters.upsert(FighterProfile(name="Old"))

    imported = fighters.import_csv("Name,Faction,Move\nA,Eshin,6\nB,Undead,4\n")

    assert [f.name for f in fighters.list_fighters()] == ["A", "B"]
    assert [f.id for f in imported] == ["1700000000000-1", "1700000000000-2"]


def test_failed_import_keeps_collection(fighters):
    fighters.upsert(FighterProfile(name="Old"))

    with pytest.raises(CsvImportError):
        fighters.import_csv("Name,Faction\nA,Eshin\n")

    assert [f.name for f in fighters.list_fighters()] == ["Old"]


def test_export_round_trip(fighters):
    fighters.upsert(FighterProfile(name="Runner", move=6, bravery=4, power_level=1))
    fighters.upsert(FighterProfile(name="Zealot", faction="Sisters", health=10, bravery=6))

    text = fighters.export_csv(fighters.list_fighters(), MOVE_RATES)
    parsed = fighters.parse_csv(text)

    for before, after in zip(fighters.list_fighters(), parsed):
        assert after.model_dump(exclude={"id"}) == before.model_dump(exclude={"id"})


# =============================================================================
# FILTER / SORT
# =============================================================================


def test_filter_by_faction():
    roster = [_fighter("1", "A", "Eshin"), _fighter("2", "B", "Undead"), _fighter("3", "C", "Sisters")]

    result = filter_and_sort(roster, {"Eshin", "Sisters"}, SortKey.NAME_ASC, ZERO_RATES)

    assert [f.id for f in result] == ["1", "3"]


def test_empty_filter_keeps_everyone():
    roster = [_fighter("1", "A", "Eshin"), _fighter("2", "B", "")]

    assert len(filter_and_sort(roster, [], SortKey.NAME_ASC, ZERO_RATES)) == 2


def test_name_sort_is_case_insensitive():
    roster = [_fighter("1", "bravo"), _fighter("2", "Alpha"), _fighter("3", "charlie")]

    asc = filter_and_sort(roster, [], SortKey.NAME_ASC, ZERO_RATES)
    desc = filter_and_sort(roster, [], SortKey.NAME_DESC, ZERO_RATES)

    assert [f.name for f in asc] == ["Alpha", "bravo", "charlie"]
    assert [f.name for f in desc] == ["charlie", "bravo", "Alpha"]


def test_cost_sort_uses_given_profile():
    fast = _fighter("1", "Fast", move=8)
    fierce = _fighter("2", "Fierce", fight=6)
    roster = [fast, fierce]

    by_move = filter_and_sort(roster, [], SortKey.COST_DESC, MOVE_RATES)
    by_fight = filter_and_sort(roster, [], SortKey.COST_DESC, FIGHT_RATES)

    assert [f.name for f in by_move] == ["Fast", "Fierce"]
    assert [f.name for f in by_fight] == ["Fierce", "Fast"]
    assert [f.name for f in filter_and_sort(roster, [], SortKey.COST_ASC, MOVE_RATES)] == ["Fierce", "Fast"]


def test_faction_sorts_break_ties_by_name_ascending():
    roster = [
        _fighter("1", "Zed", "Eshin"),
        _fighter("2", "Abe", "Undead"),
        _fighter("3", "Bob", "Eshin"),
        _fighter("4", "Ann", "undead"),
    ]

    asc = filter_and_sort(roster, [], SortKey.FACTION_ASC, ZERO_RATES)
    desc = filter_and_sort(roster, [], SortKey.FACTION_DESC, ZERO_RATES)

    assert [f.name for f in asc] == ["Bob", "Zed", "Abe", "Ann"]
    assert [f.name for f in desc] == ["Abe", "Ann", "Bob", "Zed"]


@pytest.mark.parametrize("sort_key", list(SortKey))
def test_sorts_are_stable(sort_key):
    first = _fighter("1", "Rat", "Eshin", move=6)
    second = _fighter("2", "rat", "Eshin", move=6)
    other = _fighter("3", "Ogre", "Mercenaries", move=4)

    for roster in ([first, other, second], [other, first, second]):
        result = filter_and_sort(roster, [], sort_key, MOVE_RATES)
        ids = [f.id for f in result if f.id in ("1", "2")]
        assert ids == ["1", "2"]


def test_unknown_sort_key_sorts_by_name():
    roster = [_fighter("1", "b"), _fighter("2", "a")]

    assert [f.name for f in filter_and_sort(roster, [], "sideways", ZERO_RATES)] == ["a", "b"]


def test_filter_and_sort_returns_new_list():
    roster = [_fighter("1", "b"), _fighter("2", "a")]

    filter_and_sort(roster, [], SortKey.NAME_ASC, ZERO_RATES)

    assert [f.name for f in roster] == ["b", "a"]
