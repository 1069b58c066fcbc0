"""Ten-point-must round scoring and fight decisions.

Each judge scores a round from four criteria (clean effective punching,
effective aggression, ring generalship, defense) weighted by that judge's
preference profile.  Weights come from ``rules/scoring.json``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass, field

from boxing_sim.constants import ROUND_SCORE_FLOOR
from boxing_sim.models import Judge, StoppageType
from boxing_sim.modules.round_ledger import FighterRoundStats, Round
from boxing_sim.rules_registry import load_rule_set


@dataclass
class ScoreCard:
    """Accumulates scorecard points for one judge."""

    judge: str
    points_a: int = 0
    points_b: int = 0
    rounds: list[tuple[int, int]] = field(default_factory=list)

    def add(self, score_a: int, score_b: int) -> None:
        self.points_a += score_a
        self.points_b += score_b
        self.rounds.append((score_a, score_b))

    @property
    def leader(self) -> str | None:
        if self.points_a > self.points_b:
            return "A"
        if self.points_b > self.points_a:
            return "B"
        return None

    def as_tuple(self) -> tuple[str, int, int]:
        return (self.judge, self.points_a, self.points_b)


@dataclass(frozen=True)
class CriteriaBreakdown:
    clean_punching: float
    effective_aggression: float
    ring_generalship: float
    defense: float
    total: float


# ---------------------------------------------------------------------------
# Criteria
# ---------------------------------------------------------------------------

def clean_punching_score(own: FighterRoundStats) -> float:
    weights = load_rule_set("scoring")["clean_punching"]
    return (
        own.clean_punches * float(weights["clean"])
        + own.power_landed * float(weights["power"])
        + own.jabs_landed * float(weights["jab"])
        + (own.damage_dealt / float(weights["damage_divisor"])) * float(weights["damage"])
        + own.significant_strikes * float(weights["significant"])
    )


def effective_aggression_score(own: FighterRoundStats, opponent: FighterRoundStats) -> float:
    weights = load_rule_set("scoring")["aggression"]
    score = own.forward_time * float(weights["forward_time"]) * own.accuracy
    if own.punches_landed > opponent.punches_landed:
        score += float(weights["outlanded_bonus"])
    if own.damage_dealt > opponent.damage_dealt:
        score += float(weights["outdamaged_bonus"])
    return score + own.damage_dealt / float(weights["damage_divisor"])


def ring_generalship_score(own: FighterRoundStats, opponent: FighterRoundStats) -> float:
    weights = load_rule_set("scoring")["generalship"]
    # Backing up while out-damaging the other man is tactical, not running.
    if own.damage_dealt > opponent.damage_dealt:
        backward_weight = float(weights["backward_when_winning"])
    else:
        backward_weight = float(weights["backward_when_losing"])
    return (
        own.center_control_time * float(weights["center"])
        + opponent.rope_time * float(weights["opponent_ropes"])
        + opponent.corner_time * float(weights["opponent_corner"])
        - own.backward_time * backward_weight
        - own.rope_time * float(weights["own_ropes"])
        - own.corner_time * float(weights["own_corner"])
    )


def defense_score(own: FighterRoundStats) -> float:
    weights = load_rule_set("scoring")["defense"]
    return (
        own.punches_blocked * float(weights["blocked"])
        + own.punches_evaded * float(weights["evaded"])
        - own.damage_received / float(weights["received_divisor"])
    )


def criteria_for(judge: Judge, own: FighterRoundStats, opponent: FighterRoundStats) -> CriteriaBreakdown:
    """Score one fighter's round through *judge*'s preference profile."""
    totals = load_rule_set("scoring")["totals"]
    clean = clean_punching_score(own)
    aggression = effective_aggression_score(own, opponent)
    generalship = ring_generalship_score(own, opponent)
    defense = defense_score(own)

    total = (
        clean * judge.clean_punching * float(totals["clean"])
        + own.power_landed * judge.power_shots * float(totals["power_shots"])
        + own.punches_landed * judge.volume * float(totals["volume"])
        + aggression * judge.effective_aggression
        + max(0.0, generalship) * judge.ring_generalship
        + max(0.0, defense) * judge.defense * float(totals["defense"])
    )
    return CriteriaBreakdown(
        clean_punching=clean,
        effective_aggression=aggression,
        ring_generalship=generalship,
        defense=defense,
        total=total,
    )


# ---------------------------------------------------------------------------
# Round score
# ---------------------------------------------------------------------------

def _band_score(diff: float, judge: Judge, randomizer: random.Random) -> tuple[int, int]:
    bands = load_rule_set("scoring")["bands"]
    if abs(diff) > float(bands["clear"]):
        return (10, 9) if diff > 0 else (9, 10)

    if abs(diff) > float(bands["moderate"]):
        favours_a = diff > 0
        inconsistent = randomizer.random() > judge.consistency / 100
        if inconsistent and randomizer.random() < float(bands["wrong_call_chance"]):
            favours_a = not favours_a
        return (10, 9) if favours_a else (9, 10)

    if randomizer.random() < float(bands["close_draw_chance"]):
        return (10, 10)
    edge = float(bands["close_edge"])
    if diff > edge:
        return (10, 9)
    if diff < -edge:
        return (9, 10)
    return (10, 10)


def calculate_judge_score(
    judge: Judge,
    round_: Round,
    *,
    home_fighter: str | None = None,
    rng: random.Random | None = None,
) -> tuple[int, int]:
    """Return ``(score_a, score_b)`` for *round_* as seen by *judge*."""
    randomizer = rng or random.Random()
    stats_a = round_.stats["A"]
    stats_b = round_.stats["B"]

    total_a = criteria_for(judge, stats_a, stats_b).total
    total_b = criteria_for(judge, stats_b, stats_a).total
    if home_fighter == "A":
        total_a *= 1 + judge.home_bias / 100
    elif home_fighter == "B":
        total_b *= 1 + judge.home_bias / 100

    diff = total_a - total_b
    score_a, score_b = _band_score(diff, judge, randomizer)

    downs_a = stats_a.knockdowns_suffered
    downs_b = stats_b.knockdowns_suffered
    adjusted_a = score_a - downs_a * judge.knockdown_weight
    adjusted_b = score_b - downs_b * judge.knockdown_weight
    # A knockdown hands the round over even when the fallen fighter led on work.
    if downs_a > 0 and downs_b == 0 and diff > 0:
        adjusted_a = min(adjusted_a, 9)
        adjusted_b = 10
    elif downs_b > 0 and downs_a == 0 and diff < 0:
        adjusted_b = min(adjusted_b, 9)
        adjusted_a = 10

    adjusted_a -= stats_a.point_deductions
    adjusted_b -= stats_b.point_deductions
    return (
        max(ROUND_SCORE_FLOOR, round(adjusted_a)),
        max(ROUND_SCORE_FLOOR, round(adjusted_b)),
    )


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------

def decision_from_scorecards(cards: list[ScoreCard]) -> tuple[str | None, StoppageType]:
    """Compile judge cards into ``(winner_id, method)``; ``None`` is a draw."""
    a_judges = 0
    b_judges = 0
    draw_judges = 0
    for card in cards:
        leader = card.leader
        if leader == "A":
            a_judges += 1
        elif leader == "B":
            b_judges += 1
        else:
            draw_judges += 1

    for winner, votes in (("A", a_judges), ("B", b_judges)):
        if votes >= 2:
            if votes == len(cards):
                return winner, StoppageType.DECISION_UNANIMOUS
            if draw_judges >= 1:
                return winner, StoppageType.DECISION_MAJORITY
            return winner, StoppageType.DECISION_SPLIT

    if draw_judges == len(cards):
        return None, StoppageType.DRAW_UNANIMOUS
    if draw_judges >= 2:
        return None, StoppageType.DRAW_MAJORITY
    return None, StoppageType.DRAW_SPLIT
