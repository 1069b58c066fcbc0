import random

from boxing_sim.models import FoulConsequence, FoulType, Tactics
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.foul_policy import FoulPolicy, FoulSituation
from boxing_sim.modules.referee_policy import Referee


class _AlwaysLow(random.Random):
    """Every roll comes up 0.0: fouls are always seen, damage is minimal."""

    def random(self) -> float:
        return 0.0


def _situation(**overrides) -> FoulSituation:
    values = {"stamina_percent": 0.8, "distance": 3.0, "round_number": 5, "score_diff": 0.0}
    values.update(overrides)
    return FoulSituation(**values)


def test_clean_fighter_never_fouls() -> None:
    policy = FoulPolicy(Referee(), rng=random.Random(7))
    fighter = Fighter(name="Choirboy", tactics=Tactics(dirtiness=0))
    situation = _situation(distance=1.0, score_diff=-5.0, stamina_percent=0.1, is_hurt=True)

    assert policy.foul_chance("A", fighter, situation) == 0.0
    assert all(policy.attempt("A", fighter, "B", situation) is None for _ in range(500))


def test_desperation_raises_foul_chance() -> None:
    policy = FoulPolicy(Referee())
    fighter = Fighter(name="Dirty", tactics=Tactics(dirtiness=80))

    calm = policy.foul_chance("A", fighter, _situation())
    desperate = policy.foul_chance("A", fighter, _situation(score_diff=-4.0, distance=1.0, is_hurt=True))

    assert calm > 0
    assert desperate > calm


def test_break_fouls_need_a_fresh_separation() -> None:
    policy = FoulPolicy(Referee(), rng=random.Random(9))
    fighter = Fighter(name="Late Hitter", tactics=Tactics(dirtiness=50))

    picks = {policy.select_foul_type(fighter, _situation()) for _ in range(300)}

    assert FoulType.HITTING_AFTER_BREAK not in picks
    assert FoulType.HITTING_ON_BREAK not in picks


def test_repeated_holding_escalates_to_disqualification() -> None:
    policy = FoulPolicy(Referee.from_preset("default"), rng=_AlwaysLow())
    fighter = Fighter(name="Octopus", tactics=Tactics(dirtiness=30))

    consequences = [
        policy.execute_foul("A", fighter, "B", FoulType.HOLDING).consequence
        for _ in range(7)
    ]

    assert consequences == [
        FoulConsequence.WARNING,
        FoulConsequence.WARNING,
        FoulConsequence.WARNING,
        FoulConsequence.POINT_DEDUCTION,
        FoulConsequence.POINT_DEDUCTION,
        FoulConsequence.POINT_DEDUCTION,
        FoulConsequence.DISQUALIFICATION,
    ]
    assert policy.warnings_for("A") == 3
    assert policy.deductions_for("A") == 3
    assert policy.deductions_for("B") == 0


def test_strict_referee_skips_a_warning() -> None:
    policy = FoulPolicy(Referee.from_preset("strict"), rng=_AlwaysLow())
    fighter = Fighter(name="Grabber", tactics=Tactics(dirtiness=30))

    consequences = [
        policy.execute_foul("B", fighter, "A", FoulType.HOLDING).consequence
        for _ in range(3)
    ]

    assert consequences == [
        FoulConsequence.WARNING,
        FoulConsequence.WARNING,
        FoulConsequence.POINT_DEDUCTION,
    ]


def test_low_blow_hurts_the_body_and_drains_stamina() -> None:
    policy = FoulPolicy(Referee(), rng=random.Random(11))
    fouler = Fighter(name="Low")
    target = Fighter(name="Target")
    stamina_before = target.current_stamina

    outcome = policy.execute_foul("A", fouler, "B", FoulType.LOW_BLOW)
    policy.apply_foul_effects(outcome, fouler, target)

    assert target.head_damage == 0.0
    assert target.current_stamina < stamina_before
    assert outcome.stamina_drain == 15.0


def test_fouls_are_only_tried_within_reach_or_off_a_break() -> None:
    policy = FoulPolicy(Referee())
    fighter = Fighter(name="Dirty", tactics=Tactics(dirtiness=80))

    assert policy.tick_chance("A", fighter, _situation(distance=6.0)) == 0.0
    assert policy.tick_chance("A", fighter, _situation(distance=6.0, just_separated=True)) > 0.0
    assert policy.tick_chance("A", fighter, _situation(distance=1.0)) > 0.0


def test_per_tick_chance_keeps_fouls_occasional() -> None:
    policy = FoulPolicy(Referee())
    fighter = Fighter(name="Bull", tactics=Tactics(dirtiness=65))
    situation = _situation(distance=1.0)
    ticks_per_round = int(180 / 0.5)

    per_attempt = policy.foul_chance("A", fighter, situation)
    per_tick = policy.tick_chance("A", fighter, situation, tick_rate=0.5)

    assert per_tick < per_attempt
    assert per_tick * ticks_per_round < 2.0


def test_intentional_foul_gets_a_warning_on_first_offence() -> None:
    policy = FoulPolicy(Referee.from_preset("default"), rng=_AlwaysLow())
    fighter = Fighter(name="Butcher", tactics=Tactics(dirtiness=90))

    first = policy.execute_foul("A", fighter, "B", FoulType.HEADBUTT)
    second = policy.execute_foul("A", fighter, "B", FoulType.HEADBUTT)

    assert first.intentional and second.intentional
    assert first.consequence == FoulConsequence.WARNING
    assert second.consequence == FoulConsequence.POINT_DEDUCTION


def test_strict_referee_sees_more_fouls() -> None:
    fighter = Fighter(name="Sneaky", tactics=Tactics(dirtiness=50))
    lenient = FoulPolicy(Referee.from_preset("lenient"), rng=random.Random(21))
    strict = FoulPolicy(Referee.from_preset("strict"), rng=random.Random(21))

    seen_lenient = sum(lenient.execute_foul("A", fighter, "B", FoulType.PUSH).detected for _ in range(400))
    seen_strict = sum(strict.execute_foul("A", fighter, "B", FoulType.PUSH).detected for _ in range(400))

    assert seen_strict > seen_lenient
