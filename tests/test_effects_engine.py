import random

import pytest

from boxing_sim.models import Cut, EffectCategory, InvalidFighterReference
from boxing_sim.modules.effects_engine import EffectsEngine
from boxing_sim.modules.fighter_state import Fighter


def test_unknown_fighter_id_is_rejected() -> None:
    engine = EffectsEngine(rng=random.Random(1))

    with pytest.raises(InvalidFighterReference):
        engine.apply_effect("C", "rattled")
    with pytest.raises(InvalidFighterReference):
        engine.get_modifier("red", "power")
    with pytest.raises(InvalidFighterReference):
        engine.shift_momentum("Z", 10.0)


def test_unknown_effect_type_is_rejected() -> None:
    engine = EffectsEngine(rng=random.Random(1))

    with pytest.raises(ValueError, match="Unknown effect type"):
        engine.apply_effect("A", "invincible")


def test_reapplying_refreshes_instead_of_duplicating() -> None:
    engine = EffectsEngine(rng=random.Random(2))

    first = engine.apply_effect("A", "rattled", intensity=0.5)
    second = engine.apply_effect("A", "rattled", intensity=0.8)

    assert first is second
    assert second.intensity == 0.8
    assert [item.effect for item in engine.drain_applied()] == ["rattled"]
    assert engine.drain_applied() == []


def test_stackable_effect_caps_at_max_stacks() -> None:
    engine = EffectsEngine(rng=random.Random(3))

    for _ in range(5):
        engine.apply_effect("B", "rhythm")

    assert engine.effects["B"]["rhythm"].stacks == 3
    assert engine.get_accuracy_modifier("B") == pytest.approx(18.0)


def test_timed_effect_expires() -> None:
    engine = EffectsEngine(rng=random.Random(4))
    engine.apply_effect("A", "focus_lapse")

    expired: list[tuple[str, str]] = []
    for _ in range(6):
        expired.extend(engine.tick())

    assert expired == [("A", "focus_lapse")]
    assert not engine.has_effect("A", "focus_lapse")


def test_modifiers_are_capped() -> None:
    engine = EffectsEngine(rng=random.Random(5))
    for effect in ("frozen", "shell_shocked", "cautious", "demoralized"):
        engine.apply_effect("A", effect)

    assert engine.get_aggression_modifier("A") == -50.0


def test_new_round_clears_round_scoped_effects() -> None:
    engine = EffectsEngine(rng=random.Random(6))
    engine.apply_effect("B", "cautious")
    engine.apply_effect("B", "rattled")

    engine.reset_for_round(2)

    assert not engine.has_effect("B", "cautious")
    assert engine.has_effect("B", "rattled")
    assert engine.has_effect("A", "fresh_legs")
    assert engine.has_effect("B", "fresh_legs")


def test_knockdown_swings_momentum() -> None:
    engine = EffectsEngine(rng=random.Random(7))

    engine.on_knockdown("B", "A")

    assert engine.momentum_for("A") == pytest.approx(70.0)
    assert engine.momentum_for("B") == pytest.approx(-70.0)
    assert engine.has_effect("A", "momentum")
    assert engine.has_effect("B", "shell_shocked")
    summary = engine.get_effects_summary("B")
    assert [item["type"] for item in summary["debuffs"]] == ["shell_shocked"]


def test_second_wind_fires_once_in_the_late_rounds() -> None:
    engine = EffectsEngine(rng=random.Random(8))
    fighter = Fighter(name="Closer")
    fighter.stamina.second_wind = 100
    fighter.spend_stamina(fighter.max_stamina * 0.8)

    assert engine.check_second_wind("A", fighter, 2, 12) is False

    fired = [engine.check_second_wind("A", fighter, 11, 12) for _ in range(200)]

    assert fired.count(True) == 1
    assert engine.has_effect("A", "second_wind")


def test_eye_cut_impairs_vision() -> None:
    engine = EffectsEngine(rng=random.Random(9))

    engine.on_cut_opened("A", Cut("right_eye", 2))
    engine.on_cut_opened("B", Cut("lip", 2))

    assert engine.effects["A"]["vision_impaired"].category == EffectCategory.DEBUFF
    assert not engine.has_effect("B", "vision_impaired")
