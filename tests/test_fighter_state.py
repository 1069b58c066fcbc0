import math
import random

import pytest

from boxing_sim.constants import MAX_BUZZED_TICKS, MAX_STUN_TICKS
from boxing_sim.models import (
    DefensiveSubState,
    FighterConfigError,
    FighterState,
    InvalidStateTransition,
    MovementSubState,
    OffensiveSubState,
    PowerAttributes,
)
from boxing_sim.modules.fighter_state import Fighter, sub_state_allowed


def test_fighter_requires_a_name() -> None:
    with pytest.raises(FighterConfigError, match="name is required"):
        Fighter(name="   ")


def test_from_dict_rejects_unknown_attribute() -> None:
    with pytest.raises(FighterConfigError, match="Unknown PowerAttributes"):
        Fighter.from_dict({"name": "Typo", "power": {"knockout_powr": 80}})


def test_attributes_are_clamped_on_construction() -> None:
    power = PowerAttributes(power_left=150, power_right=-4)

    assert power.power_left == 100
    assert power.power_right == 1


def test_fighter_id_defaults_to_slug_of_name() -> None:
    fighter = Fighter(name="Iron Mike Jr.")

    assert fighter.fighter_id == "iron-mike-jr"


def test_transition_checks_sub_state_owner() -> None:
    fighter = Fighter(name="Mover")

    fighter.transition_to(FighterState.OFFENSIVE, OffensiveSubState.PRESSURE)
    assert fighter.state == FighterState.OFFENSIVE
    assert fighter.sub_state == OffensiveSubState.PRESSURE

    with pytest.raises(InvalidStateTransition):
        fighter.transition_to(FighterState.DEFENSIVE, OffensiveSubState.COMBINATION)

    assert sub_state_allowed(FighterState.MOVING, MovementSubState.CIRCLING)
    assert sub_state_allowed(FighterState.BUZZED, DefensiveSubState.HIGH_GUARD)
    assert not sub_state_allowed(FighterState.NEUTRAL, MovementSubState.CIRCLING)


def test_buzzed_fighter_cannot_attack_or_time_counters() -> None:
    fighter = Fighter(name="Dazed")
    fighter.set_buzzed(4.0, "cross")

    assert fighter.state == FighterState.BUZZED
    assert fighter.sub_state == DefensiveSubState.HIGH_GUARD
    assert not fighter.can_transition(FighterState.OFFENSIVE, OffensiveSubState.PRESSURE)
    assert not fighter.can_transition(FighterState.TIMING)
    assert fighter.can_transition(FighterState.CLINCH)
    with pytest.raises(InvalidStateTransition):
        fighter.transition_to(FighterState.OFFENSIVE)


def test_downed_fighter_only_leaves_through_recovered() -> None:
    fighter = Fighter(name="Floored")
    fighter.transition_to(FighterState.KNOCKED_DOWN)

    assert fighter.is_down
    assert not fighter.can_transition(FighterState.NEUTRAL)
    fighter.transition_to(FighterState.RECOVERED)
    assert not fighter.is_down


def test_take_damage_clamps_to_maximum_and_ignores_nan() -> None:
    fighter = Fighter(name="Sponge")

    absorbed = fighter.take_damage(10_000.0)
    assert fighter.head_damage == fighter.max_head_damage
    assert absorbed == fighter.max_head_damage

    assert fighter.take_damage(math.nan, "body") == 0.0
    assert fighter.body_damage == 0.0

    with pytest.raises(ValueError, match="Unknown damage location"):
        fighter.take_damage(1.0, "leg")


def test_body_damage_drains_stamina() -> None:
    fighter = Fighter(name="Body Bag")
    before = fighter.current_stamina

    fighter.take_damage(10.0, "body")

    assert fighter.body_damage == pytest.approx(10.0)
    assert fighter.current_stamina == pytest.approx(before - 5.0)


def test_stamina_never_leaves_bounds() -> None:
    fighter = Fighter(name="Tank")

    fighter.spend_stamina(fighter.max_stamina * 3)
    assert fighter.current_stamina == 0.0
    assert fighter.get_stamina_tier() == "gassed"

    fighter.recover_stamina(fighter.max_stamina * 3)
    assert fighter.current_stamina == fighter.max_stamina
    assert fighter.get_stamina_tier() == "fresh"


def test_repeated_buzz_compounds_severity_up_to_cap() -> None:
    fighter = Fighter(name="Glass")

    fighter.set_buzzed(4.0)
    assert fighter.buzzed is not None
    assert fighter.buzzed.severity == 2
    first_rate = fighter.buzzed.recovery_rate

    for _ in range(5):
        fighter.set_buzzed(5.5, "rear_hook")

    assert fighter.buzzed.severity == 3
    assert fighter.buzzed.duration <= MAX_BUZZED_TICKS
    assert fighter.buzzed.recovery_rate < first_rate
    assert fighter.get_buzzed_vulnerability() > 1.0


def test_hurt_replaces_buzzed_and_applies_debuff() -> None:
    fighter = Fighter(name="Wobbly")
    fighter.set_buzzed(3.0)

    fighter.set_hurt(4.0)
    fighter.update_modified_attributes()

    assert not fighter.is_buzzed
    assert fighter.is_hurt
    assert fighter.state == FighterState.HURT
    assert fighter.effective("speed", "hand_speed") < fighter.speed.hand_speed

    fighter.update_stun(tick_rate=5.0)
    assert not fighter.is_hurt
    assert fighter.state == FighterState.NEUTRAL


def test_near_eye_cut_reduces_vision() -> None:
    fighter = Fighter(name="Bleeder")

    fighter.add_cut("left_eyebrow")
    fighter.add_cut("left_eyebrow", severity=2)
    fighter.update_modified_attributes()

    assert len(fighter.cuts) == 1
    assert fighter.worst_cut_severity() == 3
    assert fighter.effective("offense", "jab_accuracy") < fighter.offense.jab_accuracy


def test_between_round_recovery_restores_stamina_and_heals() -> None:
    fighter = Fighter(name="Rested")
    fighter.spend_stamina(fighter.max_stamina / 2)
    fighter.take_damage(50.0)

    recovered = fighter.apply_between_round_recovery()

    assert recovered > 0
    assert fighter.current_stamina <= fighter.max_stamina
    assert fighter.head_damage == pytest.approx(45.0)


def test_heavy_stun_is_capped_and_blocks_punching() -> None:
    fighter = Fighter(name="Stunned")

    fighter.apply_stun(100.0, "rear_hook")

    assert fighter.is_stunned
    assert fighter.stun_level == 2
    assert fighter.stun_duration == MAX_STUN_TICKS
    rng = random.Random(3)
    assert not any(fighter.can_throw_punch(rng) for _ in range(100))


def test_light_stun_only_sometimes_lets_punches_go() -> None:
    fighter = Fighter(name="Shaken")

    fighter.apply_stun(3.0, "jab")

    assert fighter.stun_level == 1
    rng = random.Random(12)
    rolls = [fighter.can_throw_punch(rng) for _ in range(200)]
    assert True in rolls
    assert False in rolls
    assert rolls.count(True) < rolls.count(False)


def test_stun_wears_off_after_its_duration() -> None:
    fighter = Fighter(name="Clearing")
    fighter.apply_stun(100.0)

    for _ in range(MAX_STUN_TICKS):
        fighter.update_stun(0.5)

    assert not fighter.is_stunned
    assert fighter.stun_level == 0
    assert fighter.can_throw_punch()


def test_total_vulnerability_multiplies_each_condition() -> None:
    fighter = Fighter(name="Wobbly")
    assert fighter.get_total_vulnerability() == 1.0

    fighter.set_buzzed(4.0, "jab")
    fighter.apply_stun(6.0)

    assert not fighter.is_hurt
    assert fighter.get_total_vulnerability() == pytest.approx(
        fighter.get_buzzed_vulnerability() * fighter.get_stun_vulnerability()
    )
    assert fighter.get_total_vulnerability() == pytest.approx(1.5 * 1.3)

    fighter.set_hurt(5.0)

    assert not fighter.is_buzzed
    assert fighter.get_total_vulnerability() == pytest.approx(
        fighter.get_stun_vulnerability() * fighter.get_hurt_vulnerability()
    )
