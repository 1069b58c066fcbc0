import random

import pytest

from boxing_sim.models import Judge, PunchType, StoppageType, default_judges
from boxing_sim.modules.round_ledger import KnockdownRecord, Round
from boxing_sim.modules.scoring import ScoreCard, calculate_judge_score, decision_from_scorecards


def _card(name: str, points_a: int, points_b: int) -> ScoreCard:
    card = ScoreCard(name)
    card.add(points_a, points_b)
    return card


def _knockdown(fighter: str) -> KnockdownRecord:
    return KnockdownRecord(fighter, "A" if fighter == "B" else "B", 30.0, "cross", 8, False)


def test_default_panel_has_three_distinct_judges() -> None:
    judges = default_judges()

    assert len(judges) == 3
    assert len({judge.name for judge in judges}) == 3


def test_unknown_judge_profile_is_rejected() -> None:
    with pytest.raises(ValueError, match="Unknown judge profile"):
        Judge.from_profile("corrupt")


def test_one_sided_round_is_ten_nine() -> None:
    round_ = Round(1, 180.0)
    for _ in range(30):
        round_.record_hit("A", PunchType.CROSS, "head", 6.0)
    round_.complete()

    for judge in default_judges():
        assert calculate_judge_score(judge, round_, rng=random.Random(1)) == (10, 9)


def test_knockdowns_cost_a_point_each() -> None:
    judge = default_judges()[0]
    single = Round(1, 180.0)
    single.record_knockdown(_knockdown("B"))
    double = Round(2, 180.0)
    double.record_knockdown(_knockdown("B"))
    double.record_knockdown(_knockdown("B"))

    assert calculate_judge_score(judge, single, rng=random.Random(2)) == (10, 9)
    assert calculate_judge_score(judge, double, rng=random.Random(2)) == (10, 8)


def test_knockdown_overrides_a_round_won_on_work() -> None:
    round_ = Round(1, 180.0)
    for _ in range(30):
        round_.record_hit("B", PunchType.CROSS, "head", 6.0)
    round_.record_knockdown(_knockdown("B"))

    assert calculate_judge_score(default_judges()[1], round_, rng=random.Random(3)) == (10, 9)


def test_point_deduction_and_score_floor() -> None:
    judge = default_judges()[2]
    round_ = Round(1, 180.0)
    round_.record_foul("A", point_deducted=True)
    for _ in range(5):
        round_.record_knockdown(_knockdown("B"))

    score_a, score_b = calculate_judge_score(judge, round_, rng=random.Random(4))

    assert score_a == 9
    assert score_b == 7


@pytest.mark.parametrize(
    ("cards", "expected"),
    [
        ([(30, 27), (29, 28), (30, 27)], ("A", StoppageType.DECISION_UNANIMOUS)),
        ([(27, 30), (29, 28), (28, 29)], ("B", StoppageType.DECISION_SPLIT)),
        ([(30, 27), (28, 28), (29, 28)], ("A", StoppageType.DECISION_MAJORITY)),
        ([(28, 28), (28, 28), (28, 28)], (None, StoppageType.DRAW_UNANIMOUS)),
        ([(28, 28), (29, 28), (28, 28)], (None, StoppageType.DRAW_MAJORITY)),
        ([(28, 28), (29, 28), (28, 29)], (None, StoppageType.DRAW_SPLIT)),
    ],
)
def test_decision_from_scorecards(cards: list[tuple[int, int]], expected: tuple) -> None:
    scorecards = [_card(f"judge-{index}", a, b) for index, (a, b) in enumerate(cards)]

    assert decision_from_scorecards(scorecards) == expected


def test_scorecard_tracks_leader() -> None:
    card = ScoreCard("solo")
    card.add(10, 9)
    card.add(9, 10)

    assert card.leader is None
    assert card.as_tuple() == ("solo", 19, 19)


def _ring_control_round(center_a: float, center_b: float) -> Round:
    round_ = Round(1, 180.0)
    round_.record_position("A", center_a, center_control=True)
    round_.record_position("B", center_b, center_control=True)
    return round_


def test_consistent_judge_never_misses_a_moderate_round() -> None:
    judge = Judge(name="Metronome", consistency=100.0)
    round_ = _ring_control_round(40.0, 0.0)

    scores = {calculate_judge_score(judge, round_, rng=random.Random(seed)) for seed in range(200)}

    assert scores == {(10, 9)}


def test_erratic_judge_sometimes_calls_a_moderate_round_wrong() -> None:
    judge = Judge(name="Coin Flip", consistency=0.0)
    round_ = _ring_control_round(40.0, 0.0)

    scores = [calculate_judge_score(judge, round_, rng=random.Random(seed)) for seed in range(200)]

    assert (9, 10) in scores
    assert scores.count((10, 9)) > scores.count((9, 10))


def test_close_round_is_mostly_even_and_never_goes_the_wrong_way() -> None:
    judge = Judge(name="Even Hand", consistency=100.0)
    round_ = _ring_control_round(15.0, 0.0)

    scores = [calculate_judge_score(judge, round_, rng=random.Random(seed)) for seed in range(200)]

    assert set(scores) == {(10, 10), (10, 9)}
    assert (9, 10) not in scores


def test_razor_thin_round_is_always_even() -> None:
    judge = Judge(name="Even Hand", consistency=100.0)
    round_ = _ring_control_round(2.5, 0.0)

    scores = {calculate_judge_score(judge, round_, rng=random.Random(seed)) for seed in range(50)}

    assert scores == {(10, 10)}


def test_home_bias_can_swing_a_close_round() -> None:
    judge = Judge(name="Local Hero", consistency=100.0, home_bias=100.0)
    round_ = _ring_control_round(50.0, 40.0)

    neutral = {calculate_judge_score(judge, round_, rng=random.Random(seed)) for seed in range(100)}
    at_home = {
        calculate_judge_score(judge, round_, home_fighter="B", rng=random.Random(seed))
        for seed in range(100)
    }

    assert (9, 10) not in neutral
    assert at_home == {(9, 10)}
