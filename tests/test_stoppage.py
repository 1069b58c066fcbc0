import random

import pytest

from boxing_sim.models import MentalAttributes, PowerAttributes, StoppageType
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.referee_policy import Referee
from boxing_sim.modules.stoppage import evaluate_tko, finisher_bonus, stop_probability


def test_three_knockdown_rule_stops_immediately() -> None:
    fighter = Fighter(name="Floored Thrice")
    fighter.knockdowns_this_round = 3
    fighter.knockdowns_total = 3

    check = evaluate_tko(fighter, Fighter(name="Opponent"), Referee(), three_knockdown_rule=True)

    assert check.should_stop
    assert check.method == StoppageType.TKO_THREE_KNOCKDOWNS


def test_three_knockdowns_without_the_rule_go_through_the_gate() -> None:
    fighter = Fighter(name="Floored Thrice")
    fighter.knockdowns_this_round = 3
    fighter.knockdowns_total = 3

    check = evaluate_tko(fighter, Fighter(name="Opponent"), Referee(), rng=random.Random(1))

    assert not check.should_stop
    assert check.probability == pytest.approx(0.3)


def test_empty_and_hurt_is_a_forced_stoppage() -> None:
    fighter = Fighter(name="Spent")
    fighter.spend_stamina(fighter.max_stamina)
    fighter.set_hurt(4.0)

    check = evaluate_tko(fighter, Fighter(name="Opponent"), Referee(), rng=random.Random(2))

    assert check.should_stop
    assert check.reason == "exhaustion_and_damage"


def test_maxed_head_damage_after_a_knockdown_is_forced() -> None:
    fighter = Fighter(name="Battered")
    fighter.take_damage(fighter.max_head_damage)
    fighter.knockdowns_total = 1

    probability, method, reason, forced = stop_probability(fighter, Fighter(name="Opponent"), Referee())

    assert forced
    assert probability == 1.0
    assert method == StoppageType.TKO_REFEREE
    assert reason == "damage"


def test_deep_cut_becomes_a_doctor_stoppage() -> None:
    fighter = Fighter(name="Bleeder")
    fighter.add_cut("left_eyebrow", severity=4)

    probability, method, reason, forced = stop_probability(fighter, Fighter(name="Opponent"), Referee())

    assert not forced
    assert method == StoppageType.TKO_DOCTOR
    assert reason == "cut"
    assert probability == pytest.approx((0.3 + 0.15) * Referee().protectiveness)


def test_cut_tiers_add_up() -> None:
    nicked = Fighter(name="Nicked")
    nicked.add_cut("right_eyebrow", severity=3)
    gashed = Fighter(name="Gashed")
    gashed.add_cut("right_eyebrow", severity=4)
    referee = Referee()

    severe = stop_probability(nicked, Fighter(name="Opponent"), referee)[0]
    very_severe = stop_probability(gashed, Fighter(name="Opponent"), referee)[0]

    assert severe == pytest.approx(0.15 * referee.protectiveness)
    assert very_severe - severe == pytest.approx(0.3 * referee.protectiveness)


def test_elite_finisher_adds_steep_bonus() -> None:
    assert finisher_bonus(70.0) == 0.0
    assert finisher_bonus(95.0) == pytest.approx(0.25)


def test_hurt_fighter_is_at_more_risk_against_a_finisher() -> None:
    fighter = Fighter(name="Hurt")
    fighter.set_hurt(4.0)
    finisher = Fighter(
        name="Finisher",
        power=PowerAttributes(knockout_power=98),
        mental=MentalAttributes(killer_instinct=98),
    )
    journeyman = Fighter(
        name="Journeyman",
        power=PowerAttributes(knockout_power=50),
        mental=MentalAttributes(killer_instinct=50),
    )

    against_finisher = stop_probability(fighter, finisher, Referee())[0]
    against_journeyman = stop_probability(fighter, journeyman, Referee())[0]

    assert against_finisher > against_journeyman == 0.0
