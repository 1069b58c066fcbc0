"""Per-tick technical-knockout evaluation.

Accumulates a stop probability from exhaustion, damage, knockdowns, sustained
punishment, cuts and the opponent's finishing ability, scales it by the
referee's protectiveness and uses it as a stochastic gate.  Weights come from
``rules/stoppage.json``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from boxing_sim.models import StoppageType
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.referee_policy import Referee
from boxing_sim.rules_registry import load_rule_set


@dataclass(frozen=True)
class TkoCheck:
    should_stop: bool
    method: StoppageType | None = None
    probability: float = 0.0
    reason: str = ""


def finisher_rating(fighter: Fighter) -> float:
    params = load_rule_set("stoppage")["finisher"]
    return (
        fighter.power.knockout_power * float(params["power_weight"])
        + fighter.mental.killer_instinct * float(params["instinct_weight"])
    )


def finisher_bonus(rating: float) -> float:
    """Linear above the pivot, with a steep extra term for elite finishers."""
    params = load_rule_set("stoppage")["finisher"]
    bonus = max(0.0, rating - float(params["pivot"])) * float(params["linear"])
    elite = max(0.0, rating - float(params["elite_threshold"]))
    bonus += elite ** float(params["elite_exponent"]) * float(params["elite_scale"])
    return bonus


def _first_at_least(value: float, table: list[list[float]]) -> float:
    for threshold, bonus in table:
        if value >= float(threshold):
            return float(bonus)
    return 0.0


def _sum_at_least(value: float, table: list[list[float]]) -> float:
    return sum(float(bonus) for threshold, bonus in table if value >= float(threshold))


def stop_probability(
    fighter: Fighter,
    opponent: Fighter,
    referee: Referee,
    *,
    just_knocked_down: bool = False,
) -> tuple[float, StoppageType, str, bool]:
    """Return ``(probability, method, reason, forced)`` before the random gate."""
    params = load_rule_set("stoppage")
    probability = 0.0
    method = StoppageType.TKO_REFEREE
    reason = "referee_stoppage"

    damage = fighter.get_head_damage_percent()
    stamina = fighter.get_stamina_percent()
    exhaustion = params["exhaustion"]
    if stamina <= 0:
        if fighter.is_hurt or damage >= float(exhaustion["empty_stop_damage"]):
            return 1.0, StoppageType.TKO_REFEREE, "exhaustion_and_damage", True
        probability += float(exhaustion["empty_bonus"])
    elif stamina < float(exhaustion["low_threshold"]):
        probability += float(exhaustion["low_bonus"])

    if damage >= 1.0:
        if fighter.knockdowns_total > 0 or stamina < float(params["damage"]["stop_stamina"]):
            return 1.0, StoppageType.TKO_REFEREE, "damage", True
        probability += float(params["damage"]["full_bonus"])

    if fighter.get_body_damage_percent() >= 1.0 and fighter.knockdowns_total > 0:
        return 1.0, StoppageType.TKO_REFEREE, "body_damage", True

    probability += _first_at_least(fighter.knockdowns_this_round, params["round_knockdowns"])
    probability += _first_at_least(fighter.knockdowns_total, params["total_knockdowns"])
    if fighter.is_hurt and fighter.knockdowns_this_round >= 1:
        probability += float(params["hurt_after_knockdown"])
    sustained = params["sustained_hurt"]
    if (
        fighter.is_hurt
        and fighter.hurt_duration > float(sustained["seconds"])
        and fighter.round_stats.damage_received > float(sustained["round_damage"])
    ):
        probability += float(sustained["bonus"])

    cut_bonus = _sum_at_least(fighter.worst_cut_severity(), params["cuts"])
    if cut_bonus > 0:
        probability += cut_bonus
        if fighter.worst_cut_severity() >= int(params["doctor_cut_severity"]):
            method = StoppageType.TKO_DOCTOR
            reason = "cut"

    if fighter.is_hurt or just_knocked_down:
        probability += finisher_bonus(finisher_rating(opponent))

    probability *= referee.protectiveness
    return probability, method, reason, False


def evaluate_tko(
    fighter: Fighter,
    opponent: Fighter,
    referee: Referee,
    *,
    three_knockdown_rule: bool = False,
    just_knocked_down: bool = False,
    rng: random.Random | None = None,
) -> TkoCheck:
    if three_knockdown_rule and fighter.knockdowns_this_round >= 3:
        return TkoCheck(True, StoppageType.TKO_THREE_KNOCKDOWNS, 1.0, "three_knockdowns")

    randomizer = rng or random.Random()
    probability, method, reason, forced = stop_probability(
        fighter, opponent, referee, just_knocked_down=just_knocked_down,
    )
    if forced:
        return TkoCheck(True, method, probability, reason)

    gate = load_rule_set("stoppage")["gate"]
    should_stop = (
        probability > float(gate["minimum"])
        and randomizer.random() < probability * float(gate["multiplier"])
    )
    return TkoCheck(should_stop, method if should_stop else None, probability, reason if should_stop else "")
