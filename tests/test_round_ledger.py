import pytest

from boxing_sim.models import InvalidFighterReference, PunchType, RoundClosedError
from boxing_sim.modules.round_ledger import FighterRoundStats, KnockdownRecord, Round


def test_round_rejects_bad_construction() -> None:
    with pytest.raises(ValueError, match="Round number"):
        Round(0, 180.0)
    with pytest.raises(ValueError, match="duration"):
        Round(1, 0.0)


def test_hits_update_both_corners() -> None:
    round_ = Round(1, 180.0)

    round_.record_hit("A", PunchType.CROSS, "head", 6.0, is_counter=True)
    round_.record_hit("A", PunchType.JAB, "body", 1.0, clean=False)
    round_.record_miss("A", PunchType.JAB)

    stats_a = round_.stats_for("A")
    stats_b = round_.stats_for("B")
    assert stats_a.punches_thrown == 3
    assert stats_a.punches_landed == 2
    assert stats_a.jabs_thrown == 2
    assert stats_a.power_landed == 1
    assert stats_a.head_landed == 1
    assert stats_a.body_landed == 1
    assert stats_a.partial_punches == 1
    assert stats_a.counters_landed == 1
    assert stats_a.significant_strikes == 1
    assert stats_b.damage_received == pytest.approx(7.0)
    assert stats_a.accuracy == pytest.approx(2 / 3)


def test_blocks_and_evasions_are_credited_to_the_defender() -> None:
    round_ = Round(2, 180.0)

    round_.record_block("A", PunchType.LEAD_HOOK, "high_guard")
    round_.record_block("A", PunchType.CROSS, "high_guard")
    round_.record_evade("A", PunchType.JAB, "slip")

    assert round_.stats_for("A").punches_thrown == 3
    assert round_.stats_for("B").punches_blocked == 2
    assert round_.stats_for("B").blocks == {"high_guard": 2}
    assert round_.stats_for("B").evasions == {"slip": 1}


def test_clock_runs_out_and_remaining_never_negative() -> None:
    round_ = Round(1, 3.0)

    assert round_.tick(2.0) is False
    assert round_.tick(2.0) is True
    assert round_.remaining == 0.0
    assert round_.elapsed == 3.0


def test_completed_round_is_frozen() -> None:
    round_ = Round(3, 180.0)
    round_.tick(42.0)
    round_.complete(stoppage_reason="KO")

    assert round_.stoppage_time == 42.0
    with pytest.raises(RoundClosedError):
        round_.record_hit("B", PunchType.JAB, "head", 1.0)
    with pytest.raises(RoundClosedError):
        round_.tick(0.5)
    with pytest.raises(RoundClosedError):
        round_.complete()


def test_each_judge_scores_once() -> None:
    round_ = Round(1, 180.0)
    round_.complete()

    round_.record_score("technical", 10, 9)
    with pytest.raises(RoundClosedError, match="already scored"):
        round_.record_score("technical", 9, 10)
    assert round_.summary()["scores"] == {"technical": [10, 9]}


def test_knockdown_and_foul_records() -> None:
    round_ = Round(4, 180.0)

    round_.record_knockdown(KnockdownRecord("B", "A", 61.0, "rear_hook", 8, False))
    round_.record_foul("A", point_deducted=True)

    assert round_.stats_for("B").knockdowns_suffered == 1
    assert round_.stats_for("A").point_deductions == 1
    assert round_.summary()["knockdowns"] == {"A": 0, "B": 1}


def test_unknown_fighter_id_is_rejected() -> None:
    round_ = Round(1, 180.0)

    with pytest.raises(InvalidFighterReference):
        round_.stats_for("C")


def test_stats_merge_adds_counters_and_technique_maps() -> None:
    first = FighterRoundStats(punches_thrown=10, blocks={"parry": 1})
    second = FighterRoundStats(punches_thrown=5, blocks={"parry": 2, "high_guard": 1})

    first.merge(second)

    assert first.punches_thrown == 15
    assert first.blocks == {"parry": 3, "high_guard": 1}
