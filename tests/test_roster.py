import pytest

from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.roster import RosterError, list_fighters, load_fighter, save_fighter


def test_bundled_roster_is_valid() -> None:
    entries = list_fighters()

    assert [entry.slug for entry in entries] == ["darnell-okafor", "kenji-sato", "marco-reyes", "viktor-hale"]
    assert all(entry.is_valid for entry in entries)
    assert load_fighter("kenji-sato").offense.counter_punching == 90


def test_save_then_load_keeps_the_profile(tmp_path) -> None:
    fighter = Fighter.from_dict({
        "name": "Rosa Vega",
        "nickname": "The Needle",
        "style": "out-boxer",
        "weight_kg": 61.0,
        "speed": {"hand_speed": 91},
        "tactics": {"dirtiness": 12},
    })

    path = save_fighter(fighter, tmp_path)
    loaded = load_fighter("rosa-vega", tmp_path)

    assert path == tmp_path / "rosa-vega.json"
    assert loaded.profile_dict() == fighter.profile_dict()
    assert not list(tmp_path.glob("*.tmp"))


def test_save_does_not_persist_fight_state(tmp_path) -> None:
    fighter = Fighter(name="Worn Out")
    fighter.take_damage(40.0)
    fighter.spend_stamina(30.0)

    save_fighter(fighter, tmp_path)
    loaded = load_fighter("worn-out", tmp_path)

    assert loaded.head_damage == 0.0
    assert loaded.current_stamina == loaded.max_stamina


def test_missing_fighter_raises(tmp_path) -> None:
    with pytest.raises(RosterError, match="not found"):
        load_fighter("nobody", tmp_path)


def test_slug_is_validated() -> None:
    with pytest.raises(RosterError, match="slug"):
        load_fighter("../etc/passwd")


def test_broken_files_are_flagged_not_raised(tmp_path) -> None:
    (tmp_path / "garbled.json").write_text("{not json", encoding="utf-8")
    (tmp_path / "nameless.json").write_text('{"style": "brawler"}', encoding="utf-8")
    save_fighter(Fighter(name="Solid Sam"), tmp_path)

    entries = {entry.slug: entry for entry in list_fighters(tmp_path)}

    assert entries["solid-sam"].is_valid
    assert not entries["garbled"].is_valid
    assert "not valid JSON" in entries["garbled"].error
    assert not entries["nameless"].is_valid
    with pytest.raises(RosterError, match="nameless.json"):
        load_fighter("nameless", tmp_path)


def test_missing_roster_directory_lists_nothing(tmp_path) -> None:
    assert list_fighters(tmp_path / "absent") == []
