import pytest

from wyrdcry.csv_io import (
    CsvImportError,
    cost_profiles_from_csv,
    cost_profiles_to_csv,
    export_filename,
    fighters_from_csv,
    fighters_to_csv,
    read_csv,
)
from wyrdcry.factions import load_faction_catalog
from wyrdcry.models import CostProfile, CostRates, FighterProfile
from wyrdcry.pricing import calculate_cost


def _profile(**rates) -> CostProfile:
    return CostProfile(id="p", name="Tournament", base_cost=20, costs=CostRates(**rates))


def _fighters() -> list[FighterProfile]:
    return [
        FighterProfile(id="1", name="Gutter Runner", faction="Eshin", move=6, fight=4, bravery=4, power_level=1),
        FighterProfile(id="2", name='Snikch, the "Whisperer"', faction="Eshin", move=7, fight=5, shoot=4, bravery=3, power_level=3),
        FighterProfile(id="3", name="Zealot", faction="Sisters", move=4, defense=4, health=10, bravery=6, power_level=-1),
    ]


# =============================================================================
# FIGHTERS
# =============================================================================


def test_fighter_export_layout():
    text = fighters_to_csv(_fighters()[:1], _profile(move=5, bravery=10, powerlevel=3))

    assert text == (
        "Name,Faction,Move,Fight,Shoot,Defense,Health,Bravery,Power Level,Cost (gc)\r\n"
        "Gutter Runner,Eshin,6,4,3,3,8,4+,1,38\r\n"
    )


def test_fighter_export_quotes_special_fields():
    text = fighters_to_csv(_fighters()[1:2], _profile())

    assert '"Snikch, the ""Whisperer"""' in text


def test_fighter_export_rounds_cost_half_up():
    text = fighters_to_csv([FighterProfile(name="Half", defense=3.5)], _profile(defense=1))

    # 20 + 0.5 rounds up to 21
    assert text.splitlines()[1].endswith(",21")


def test_fighter_round_trip():
    original = _fighters()

    parsed = fighters_from_csv(fighters_to_csv(original, _profile(move=5)))

    assert len(parsed) == len(original)
    for before, after in zip(original, parsed):
        assert after.name == before.name
        assert after.faction == before.faction
        for field in ("move", "fight", "shoot", "defense", "health", "bravery", "power_level"):
            assert getattr(after, field) == getattr(before, field)


def test_fighter_import_defaults_and_clamping():
    text = (
        "name,faction,move,fight,shoot,defense,health,bravery,power\n"
        ",,x,,,,,6+,9\n"
        "Skaven,Undead,6,,,,,nope,-8\n"
    )

    first, second = fighters_from_csv(text)

    assert first.name == "Unnamed"
    assert first.faction == "Eshin"
    assert first.move == 5
    assert first.fight == 3
    assert first.health == 8
    assert first.bravery == 6
    assert first.power_level == 3
    assert first.base_cost == 20
    assert first.id == ""

    assert second.move == 6
    assert second.bravery == 5
    assert second.power_level == -3


def test_fighter_import_uses_default_faction_argument():
    fighters = fighters_from_csv("Name,Move\nRat,5\n", default_faction="Undead")

    assert fighters[0].faction == "Undead"


def test_fighter_import_header_substring_match():
    text = "Fighter Name,Faction,Move (in),Power Level\r\nRat,Eshin,6,2\r\n"

    (fighter,) = fighters_from_csv(text)

    assert fighter.name == "Rat"
    assert fighter.move == 6
    assert fighter.power_level == 2


def test_fighter_import_missing_power_column_defaults_to_zero():
    (fighter,) = fighters_from_csv("Name,Move\nRat,6\n")

    assert fighter.power_level == 0


def test_fighter_import_quoted_newline_and_blank_lines():
    text = 'Name,Faction,Move\r\n\r\n"Two\nLines",Eshin,6\r\n   \r\n"a ""b""",Eshin,5\r\n'

    fighters = fighters_from_csv(text)

    assert [f.name for f in fighters] == ["Two\nLines", 'a "b"']


@pytest.mark.parametrize(
    "text",
    [
        "Name,Faction\nRat,Eshin\n",
        "Faction,Move\nEshin,6\n",
    ],
)
def test_fighter_import_requires_name_and_move(text):
    with pytest.raises(CsvImportError, match="Name and Move"):
        fighters_from_csv(text)


@pytest.mark.parametrize("text", ["", "Name,Move\n", "\n\n"])
def test_fighter_import_requires_a_data_row(text):
    with pytest.raises(CsvImportError):
        fighters_from_csv(text)


def test_read_csv_strips_bom():
    assert read_csv("\ufeffName,Move\nRat,6\n") == [["Name", "Move"], ["Rat", "6"]]


# =============================================================================
# COST PROFILES
# =============================================================================


def test_cost_profile_export_layout():
    profiles = [
        CostProfile(id="a", name="Tournament", base_cost=25, costs=CostRates(move=5, bravery=10, powerlevel=2.5)),
        CostProfile(id="b", name="", base_cost=20),
    ]

    text = cost_profiles_to_csv(profiles)

    assert text == (
        "name,baseCost,move,fight,shoot,defense,health,bravery,powerlevel\r\n"
        "Tournament,25,5,0,0,0,0,10,2.5\r\n"
        "Unnamed,20,0,0,0,0,0,0,0\r\n"
    )


def test_cost_profile_import_parses_rows():
    text = (
        " Name , BaseCost ,Move,Fight,Bravery\n"
        "Tournament,25,5,8,10\n"
        "Bad,abc,x,1.5,\n"
        "Cheap,-4,1,,\n"
    )

    tournament, bad, cheap = cost_profiles_from_csv(text)

    assert tournament.name == "Tournament"
    assert tournament.base_cost == 25
    assert tournament.costs.move == 5
    assert tournament.costs.fight == 8
    assert tournament.costs.bravery == 10
    assert tournament.costs.shoot == 0

    assert bad.base_cost == 20
    assert bad.costs.move == 0
    assert bad.costs.fight == 1.5

    assert cheap.base_cost == 0


def test_cost_profile_import_without_base_column():
    (profile,) = cost_profiles_from_csv("name,move\nPlain,3\n")

    assert profile.base_cost == 20
    assert profile.id == ""


def test_cost_profile_import_requires_exact_headers():
    with pytest.raises(CsvImportError, match='"name" and "move"'):
        cost_profiles_from_csv("profile name,move\nX,1\n")


def test_cost_profile_round_trip():
    profiles = [CostProfile(name="A", base_cost=22, costs=CostRates(move=5, health=1.5))]

    (parsed,) = cost_profiles_from_csv(cost_profiles_to_csv(profiles))

    assert parsed.name == "A"
    assert parsed.base_cost == 22
    assert parsed.costs == profiles[0].costs


# =============================================================================
# FILENAMES
# =============================================================================


def test_export_filename_defaults():
    assert export_filename(None) == "default_allfactions.csv"
    assert export_filename("!!!") == "default_allfactions.csv"


def test_export_filename_uses_faction_labels():
    catalog = load_faction_catalog()

    name = export_filename("Tournament v2", ["Eshin", "Sisters", "Nobody"], catalog)

    assert name == "tournamentv2_claneshin_sistersofsigmar_nobody.csv"


def test_fighter_import_huge_numbers():
    (fighter,) = fighters_from_csv("Name,Move,Fight,Bravery\r\nBob," + "9" * 400 + ",1e999,9\r\n")

    assert fighter.move == int("9" * 400)
    assert fighter.fight == 3
    assert calculate_cost(fighter, _profile(move=5)).move_cost == -25
