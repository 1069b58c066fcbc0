import random

import pytest

from boxing_sim.models import (
    FightConfig,
    FightConfigError,
    FightStatus,
    InvalidFighterReference,
    InvalidStateTransition,
    Judge,
    StoppageType,
)
from boxing_sim.modules.fight import Fight
from boxing_sim.modules.fighter_state import Fighter


def _fight(rounds: int = 3) -> Fight:
    return Fight(
        Fighter(name="Red Corner"),
        Fighter(name="Blue Corner"),
        FightConfig(rounds=rounds),
        rng=random.Random(21),
    )


@pytest.mark.parametrize(
    "overrides",
    [
        {"rounds": 0},
        {"rounds": 16},
        {"round_duration": 0.0},
        {"rest_duration": -1.0},
        {"tick_rate": 0.0},
        {"home_fighter": "C"},
    ],
)
def test_invalid_config_is_rejected(overrides: dict) -> None:
    with pytest.raises(FightConfigError):
        FightConfig(**overrides)


def test_config_defaults_come_from_rules() -> None:
    config = FightConfig.from_rules(rounds=12, title="Lineal Title")

    assert config.rounds == 12
    assert config.title == "Lineal Title"
    assert config.round_duration == 180.0


def test_fight_needs_two_distinct_fighters_and_three_judges() -> None:
    fighter = Fighter(name="Solo")

    with pytest.raises(FightConfigError, match="itself"):
        Fight(fighter, fighter)
    with pytest.raises(FightConfigError, match="two Fighter"):
        Fight(fighter, "sparring partner")  # type: ignore[arg-type]
    with pytest.raises(FightConfigError, match="three judges"):
        Fight(fighter, Fighter(name="Other"), judges=[Judge("one"), Judge("two")])
    with pytest.raises(FightConfigError, match="unique"):
        Fight(fighter, Fighter(name="Other"), judges=[Judge("one"), Judge("one"), Judge("two")])


def test_status_machine_walks_through_rounds() -> None:
    fight = _fight(rounds=2)
    assert fight.status == FightStatus.NOT_STARTED

    with pytest.raises(InvalidStateTransition):
        fight.end_round()

    fight.start()
    assert fight.status == FightStatus.IN_PROGRESS
    with pytest.raises(InvalidStateTransition):
        fight.start()
    with pytest.raises(InvalidStateTransition):
        fight.start_next_round()

    scores = fight.end_round()
    assert len(scores) == 3
    assert fight.status == FightStatus.BETWEEN_ROUNDS

    fight.start_next_round()
    assert fight.current_round_number == 2
    fight.end_round()

    assert fight.status == FightStatus.COMPLETED
    assert fight.result is not None
    assert fight.result.method == StoppageType.DRAW_UNANIMOUS
    assert fight.result.is_draw
    with pytest.raises(InvalidStateTransition):
        fight.start_next_round()


def test_stoppage_is_terminal() -> None:
    fight = _fight()
    fight.start()
    fight.current_round.tick(75.0)

    result = fight.stop_fight(StoppageType.TKO_CORNER, "B", "corner_retirement")

    assert fight.status == FightStatus.STOPPED
    assert result.winner_name == "Blue Corner"
    assert result.time == 75.0
    assert fight.current_round.is_complete
    with pytest.raises(InvalidStateTransition):
        fight.stop_fight(StoppageType.KO, "A")
    with pytest.raises(InvalidStateTransition):
        fight.end_round()


def test_stop_rejects_unknown_winner() -> None:
    fight = _fight()
    fight.start()

    with pytest.raises(InvalidFighterReference):
        fight.stop_fight(StoppageType.KO, "C")


def test_lookup_by_corner_and_instance() -> None:
    fight = _fight()

    assert fight.get_fighter("A").name == "Red Corner"
    assert fight.opponent_of("A").name == "Blue Corner"
    assert fight.id_of(fight.fighter_b) == "B"
    with pytest.raises(InvalidFighterReference):
        fight.id_of(Fighter(name="Stranger"))


def test_score_diff_is_mirrored() -> None:
    fight = _fight()
    for card in fight.scorecards:
        card.add(10, 9)
    fight.scorecards[0].add(10, 9)

    assert fight.estimated_score_diff("A") == pytest.approx(4 / 3)
    assert fight.estimated_score_diff("B") == pytest.approx(-4 / 3)
