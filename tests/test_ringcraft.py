import random

import pytest

from boxing_sim.models import (
    ActionType,
    DefenseAttributes,
    DefensiveSubState,
    FighterState,
    MovementSubState,
    OffensiveSubState,
    PunchType,
)
from boxing_sim.modules.contracts import Action, Decision, Hit
from boxing_sim.modules.fight import Fight
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.ringcraft import (
    BasicCombatResolver,
    BasicDamageCalculator,
    BasicDecisionSource,
    BasicPositionTracker,
    BasicStaminaManager,
    ringcraft_collaborators,
)

_ADVANCE = Decision(FighterState.MOVING, MovementSubState.ADVANCING)
_HOLD = Decision(FighterState.NEUTRAL)


def _pair() -> tuple[Fighter, Fighter]:
    return Fighter(name="Left"), Fighter(name="Right")


def test_tracker_starts_at_mid_range_in_open_ring() -> None:
    tracker = BasicPositionTracker()

    assert tracker.get_distance() == pytest.approx(5.0)
    assert not tracker.is_on_ropes("A")
    assert not tracker.is_in_corner("B")
    assert tracker.get_center_control() is None


def test_advancing_fighters_never_overlap() -> None:
    tracker = BasicPositionTracker()
    fighter_a, fighter_b = _pair()

    for _ in range(40):
        tracker.update(fighter_a, fighter_b, _ADVANCE, _ADVANCE, 0.5)

    assert tracker.get_distance() == pytest.approx(0.8)


def test_clinch_pins_the_gap() -> None:
    tracker = BasicPositionTracker()
    fighter_a, fighter_b = _pair()
    fighter_a.transition_to(FighterState.CLINCH)

    tracker.update(fighter_a, fighter_b, Decision(FighterState.CLINCH), _HOLD, 0.5)

    assert tracker.get_distance() == pytest.approx(0.9)


def test_retreating_fighter_reaches_the_ropes_and_stays_inside() -> None:
    tracker = BasicPositionTracker()
    fighter_a, fighter_b = _pair()
    retreat = Decision(FighterState.MOVING, MovementSubState.RETREATING)

    for _ in range(30):
        tracker.update(fighter_a, fighter_b, retreat, _HOLD, 0.5)

    x, y = tracker.positions["A"]
    assert tracker.is_on_ropes("A")
    assert -tracker.half_size <= x <= tracker.half_size
    assert -tracker.half_size <= y <= tracker.half_size
    assert tracker.get_center_control() is None


def test_separation_restarts_about_the_centre() -> None:
    tracker = BasicPositionTracker()
    tracker.positions["A"] = [0.0, 0.0]
    assert tracker.get_center_control() == "A"

    tracker.separate_fighters(6.4)

    assert tracker.get_distance() == pytest.approx(6.4)
    assert tracker.is_on_ropes("A") and tracker.is_on_ropes("B")


def test_downed_fighter_holds_and_hurt_fighter_survives() -> None:
    fighter_a, fighter_b = _pair()
    fight = Fight(fighter_a, fighter_b)
    source = BasicDecisionSource(random.Random(1), BasicPositionTracker())

    fighter_b.transition_to(FighterState.KNOCKED_DOWN)
    assert source.decide(fighter_b, fighter_a, fight).state == FighterState.KNOCKED_DOWN

    fighter_a.set_hurt(5.0)
    for _ in range(50):
        decision = source.decide(fighter_a, fighter_b, fight)
        assert decision.state in (FighterState.HURT, FighterState.CLINCH)
        assert not decision.throws_punch


def test_buzzed_fighter_never_chooses_to_attack() -> None:
    fighter_a, fighter_b = _pair()
    fight = Fight(fighter_a, fighter_b)
    source = BasicDecisionSource(random.Random(2), BasicPositionTracker())
    fighter_a.set_buzzed(4.0)

    for _ in range(100):
        decision = source.decide(fighter_a, fighter_b, fight)
        assert decision.state not in (FighterState.OFFENSIVE, FighterState.TIMING)


def test_long_distance_makes_fighters_close_in() -> None:
    fighter_a, fighter_b = _pair()
    fight = Fight(fighter_a, fighter_b)
    source = BasicDecisionSource(random.Random(3), BasicPositionTracker(start_distance=6.5))

    decision = source.decide(fighter_a, fighter_b, fight)

    assert decision.state == FighterState.MOVING
    assert decision.sub_state in (MovementSubState.ADVANCING, MovementSubState.CUTTING_OFF)


def test_guard_follows_defensive_strengths() -> None:
    source = BasicDecisionSource(random.Random(4))
    shell = Fighter(name="Shell", defense=DefenseAttributes(shoulder_roll=85))
    slick = Fighter(name="Slick", defense=DefenseAttributes(shoulder_roll=40, head_movement=88))

    assert source._guard(shell) == DefensiveSubState.PHILLY_SHELL
    assert source._guard(slick) == DefensiveSubState.HEAD_MOVEMENT


def test_punch_selection_respects_range() -> None:
    source = BasicDecisionSource(random.Random(5))

    long_range = {source.select_punch(5.0) for _ in range(200)}
    body = {source.select_punch(3.0, body_attack=True) for _ in range(200)}

    assert PunchType.JAB in long_range
    assert all(punch.is_body for punch in body)


def test_vulnerable_defender_is_easier_to_hit() -> None:
    resolver = BasicCombatResolver(random.Random(6))
    attacker = Fighter(name="Attacker")
    fresh = Fighter(name="Fresh")
    dazed = Fighter(name="Dazed")
    dazed.set_buzzed(5.5)

    assert resolver.accuracy(attacker, dazed, PunchType.CROSS, distance=4.5) > resolver.accuracy(
        attacker, fresh, PunchType.CROSS, distance=4.5,
    )


def test_high_guard_blocks_head_shots_better_than_body_shots() -> None:
    resolver = BasicCombatResolver(random.Random(7))
    defender = Fighter(name="Guard")
    defender.transition_to(FighterState.DEFENSIVE, DefensiveSubState.HIGH_GUARD)
    decision = Decision(FighterState.DEFENSIVE, DefensiveSubState.HIGH_GUARD)

    head, technique = resolver.block_chance(defender, decision, PunchType.CROSS)
    body, _ = resolver.block_chance(defender, decision, PunchType.BODY_CROSS)

    assert technique == "high_guard"
    assert head > body
    assert resolver.evade_chance(defender, Decision(FighterState.CLINCH), PunchType.JAB) > 0
    defender.transition_to(FighterState.CLINCH)
    assert resolver.evade_chance(defender, Decision(FighterState.CLINCH), PunchType.JAB) == 0.0


def test_idle_exchange_produces_nothing() -> None:
    fighter_a, fighter_b = _pair()
    fight = Fight(fighter_a, fighter_b)
    resolver = BasicCombatResolver(random.Random(8), BasicPositionTracker())

    result = resolver.resolve(fighter_a, fighter_b, _HOLD, _HOLD, fight)

    assert result.hits == result.misses == result.blocks == result.evades == []
    assert result.knockdown is None


def test_every_thrown_punch_is_accounted_for() -> None:
    fighter_a, fighter_b = _pair()
    fight = Fight(fighter_a, fighter_b)
    resolver = BasicCombatResolver(random.Random(9), BasicPositionTracker())
    jab = Decision(FighterState.OFFENSIVE, OffensiveSubState.PRESSURE, Action(ActionType.PUNCH, PunchType.JAB))

    for _ in range(50):
        result = resolver.resolve(fighter_a, fighter_b, jab, _HOLD, fight)
        outcomes = len(result.hits) + len(result.misses) + len(result.blocks) + len(result.evades)
        assert outcomes == 1
        assert all(hit.attacker == "A" and hit.target == "B" for hit in result.hits)


def test_knockdown_threshold_drops_as_damage_builds() -> None:
    resolver = BasicCombatResolver(random.Random(10))
    fighter = Fighter(name="Eroding")
    thresholds = []
    for _ in range(5):
        thresholds.append(resolver.knockdown_threshold(fighter))
        fighter.take_damage(fighter.max_head_damage * 0.2)

    assert thresholds == sorted(thresholds, reverse=True)
    assert thresholds[0] > thresholds[-1]


def test_light_hits_never_hurt_and_heavy_hits_might() -> None:
    calculator = BasicDamageCalculator(random.Random(11))
    target = Fighter(name="Target")

    assert calculator.hurt_chance(target, 2.0) == 0.0
    assert calculator.check_hurt(target, 2.0) is False
    assert 0.1 <= calculator.hurt_chance(target, 9.0) <= 0.6


def test_good_chin_takes_less_head_damage() -> None:
    calculator = BasicDamageCalculator(random.Random(12))
    attacker = Fighter(name="Attacker")
    granite = Fighter.from_dict({"name": "Granite", "mental": {"chin": 95}})
    glass = Fighter.from_dict({"name": "Glass", "mental": {"chin": 40}})
    hit = Hit("A", "B", PunchType.CROSS, "head", 6.0)

    assert calculator.calculate_damage(hit, attacker, granite) < calculator.calculate_damage(hit, attacker, glass)
    assert calculator.calculate_damage(Hit("A", "B", PunchType.JAB, "head", 0.1), attacker, granite) == 0.5


def test_stamina_drains_on_offense_and_recovers_on_defense() -> None:
    manager = BasicStaminaManager()
    fighter = Fighter(name="Engine")
    fighter.spend_stamina(fighter.max_stamina * 0.5)

    fighter.transition_to(FighterState.OFFENSIVE, OffensiveSubState.PRESSURE)
    before = fighter.current_stamina
    manager.update(fighter, Decision(FighterState.OFFENSIVE), 0.5)
    assert fighter.current_stamina < before

    fighter.transition_to(FighterState.DEFENSIVE, DefensiveSubState.HIGH_GUARD)
    before = fighter.current_stamina
    manager.update(fighter, Decision(FighterState.DEFENSIVE), 0.5)
    assert fighter.current_stamina > before

    assert manager.calculate_miss_stamina_cost(fighter, PunchType.CROSS) > manager.calculate_hit_stamina_cost(
        fighter, PunchType.CROSS,
    )


def test_collaborators_share_tracker_and_effects() -> None:
    parts = ringcraft_collaborators(random.Random(13))

    assert parts["decision_source"].position_tracker is parts["position_tracker"]
    assert parts["combat_resolver"].position_tracker is parts["position_tracker"]
    assert parts["decision_source"].effects is parts["effects"]
