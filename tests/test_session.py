import pytest

from wyrdcry.models import BASIC_FIGHTER
from wyrdcry.session import EditorSession


@pytest.fixture
def session(fighters, cost_profiles):
    return EditorSession(fighters, cost_profiles)


def test_starts_from_basic_fighter(session):
    assert session.draft.name == ""
    assert session.draft.move == BASIC_FIGHTER.move
    assert session.draft.bravery == BASIC_FIGHTER.bravery
    assert session.editing_id is None


def test_unnamed_draft_is_not_saved(session, fighters):
    assert session.set_field("move", "7") is None

    assert fighters.list_fighters() == []
    assert session.draft.move == 7


def test_autosaves_once_named(session, fighters):
    session.set_field("move", "7")
    stored = session.set_field("name", "Night Runner")

    assert stored is not None
    assert fighters.list_fighters() == [stored]
    assert stored.move == 7


def test_later_changes_update_same_record(session, fighters):
    first = session.set_field("name", "Night Runner")
    session.set_field("fight", "4")
    session.set_field("bravery", "4+")

    (only,) = fighters.list_fighters()
    assert only.id == first.id
    assert only.fight == 4
    assert only.bravery == 4


@pytest.mark.parametrize(
    "field,value,expected",
    [
        ("move", "abc", 5),
        ("move", "6.9", 6),
        ("fight", "3.5", 3.5),
        ("health", "", 8),
        ("bravery", "junk", 5),
        ("power_level", "9", 3),
        ("power_level", "-7", -3),
        ("power_level", "x", 0),
        ("faction", "   ", "Eshin"),
        ("name", "  Rat  ", "Rat"),
    ],
)
def test_field_coercion(session, field, value, expected):
    session.set_field(field, value)

    assert getattr(session.draft, field) == expected


def test_unknown_field_rejected(session):
    with pytest.raises(KeyError):
        session.set_field("base_cost", "99")


def test_commit_records_active_base_cost(session, cost_profiles):
    cost_profiles.save_profile("Campaign", {}, base_cost=25)

    stored = session.set_field("name", "Rat")

    assert stored.base_cost == 25


def test_save_requires_name(session):
    with pytest.raises(ValueError, match="Please enter a fighter name"):
        session.save()


def test_save_resets_for_next_fighter(session, fighters):
    session.set_field("name", "Rat")
    session.set_field("move", "6")

    stored = session.save()

    assert stored.move == 6
    assert session.draft.name == ""
    assert session.editing_id is None
    assert session.dirty is False

    session.set_field("name", "Second Rat")
    assert len(fighters.list_fighters()) == 2


def test_edit_loads_saved_fighter(session, fighters):
    session.set_field("name", "Rat")
    saved = session.save()

    assert session.edit(saved.id) is True
    session.set_field("shoot", "5")

    (only,) = fighters.list_fighters()
    assert only.id == saved.id
    assert only.shoot == 5


def test_edit_missing_fighter(session):
    assert session.edit("missing") is False
    assert session.editing_id is None


def test_breakdown_uses_active_profile(session, cost_profiles):
    cost_profiles.save_profile("Campaign", {"move": 5}, base_cost=20)

    session.set_field("move", "6")

    assert session.breakdown().move_cost == 5
    assert session.breakdown().total == 25


def test_huge_number_edit_stays_priceable(session, fighters, cost_profiles):
    cost_profiles.save_profile("Campaign", {"bravery": 10}, base_cost=20)
    session.set_field("name", "Rat")

    stored = session.set_field("bravery", "9" * 400)

    assert stored.bravery == int("9" * 400)
    assert fighters.get(stored.id).bravery == stored.bravery
    assert session.breakdown().bravery_cost == 50
