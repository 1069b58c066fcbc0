"""Knockdown protocol: flash pre-resolution, immediate KO and the count.

All functions here are pure with respect to fighter state; the orchestrator
applies the outcome.  Weights come from ``rules/knockdown.json``.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from boxing_sim.constants import FIRST_RECOVERY_COUNT, FULL_COUNT, MANDATORY_COUNT
from boxing_sim.modules.contracts import KnockdownRequest
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.rules_registry import load_rule_set
from boxing_sim.utils import clamp_float, clamp_int


@dataclass(frozen=True)
class KnockdownOutcome:
    flash: bool
    immediate_ko: bool
    counts: tuple[int, ...]
    recovered: bool

    @property
    def final_count(self) -> int:
        return self.counts[-1] if self.counts else 0


def _first_at_least(value: float, table: list[list[float]], default: float = 1.0) -> float:
    for threshold, factor in table:
        if value >= float(threshold):
            return float(factor)
    return default


def _first_above(value: float, table: list[list[float]], default: float = 1.0) -> float:
    for threshold, factor in table:
        if value > float(threshold):
            return float(factor)
    return default


def _first_below(value: float, table: list[list[float]], default: float = 1.0) -> float:
    for threshold, factor in table:
        if value < float(threshold):
            return float(factor)
    return default


# ---------------------------------------------------------------------------
# Flash knockdowns
# ---------------------------------------------------------------------------

def flash_recovery_chance(fighter: Fighter) -> float:
    """Chance that a flash knockdown really is one; heart dominates."""
    params = load_rule_set("knockdown")["flash"]
    chance = _first_at_least(fighter.mental.heart, params["heart_brackets"], float(params["heart_floor"]))
    chance *= _first_at_least(fighter.knockdowns_total, params["prior_knockdowns"])
    chance *= _first_above(fighter.get_head_damage_percent(), params["damage"])
    return clamp_float(chance, 0.0, 1.0)


def flash_count_target(fighter: Fighter) -> int:
    params = load_rule_set("knockdown")["flash"]
    target = float(params["count_base"]) - (fighter.mental.chin + fighter.mental.heart) / 200 * float(params["count_span"])
    return clamp_int(round(target), int(params["count_min"]), int(params["count_max"]))


# ---------------------------------------------------------------------------
# Regular knockdowns
# ---------------------------------------------------------------------------

def immediate_ko_chance(attacker: Fighter, defender: Fighter, punch_damage: float) -> float:
    """Chance the fighter is out cold before the count even matters.

    Reads the defender's modified chin, so a drained gas tank raises it.
    """
    params = load_rule_set("knockdown")["immediate_ko"]
    chin = defender.effective("mental", "chin")
    chance = max(0.0, (attacker.power.knockout_power - float(params["power_pivot"])) / float(params["power_divisor"]))
    chance *= 1 - chin / float(params["chin_divisor"])
    chance *= _first_at_least(punch_damage, params["punch_damage"])
    chance *= _first_above(defender.get_head_damage_percent(), params["accumulated_damage"])
    chance *= _first_at_least(defender.knockdowns_this_round, params["round_knockdowns"])
    chance *= _first_below(defender.get_stamina_percent(), params["stamina"])
    chance *= 1 - defender.mental.heart / float(params["heart_divisor"])
    chance *= defender.get_total_vulnerability()
    return clamp_float(chance, 0.0, float(params["cap"]))


def heart_recovery_factor(heart: float) -> float:
    params = load_rule_set("knockdown")["recovery"]
    for threshold, base, slope in params["heart_brackets"]:
        if heart >= float(threshold):
            return float(base) + (heart - float(threshold)) * float(slope)
    pivot, base, slope = params["heart_floor"]
    return max(0.0, float(base) + (heart - float(pivot)) * float(slope))


def recovery_chance(fighter: Fighter, count: int) -> float:
    """Chance of beating the count at *count*; heart first, then chin/experience/composure."""
    params = load_rule_set("knockdown")["recovery"]
    base = (fighter.mental.chin + fighter.mental.experience + fighter.mental.composure) / 300
    chance = heart_recovery_factor(fighter.mental.heart) * float(params["heart_weight"])
    chance += base * float(params["base_weight"])

    damage = fighter.get_head_damage_percent()
    heavy = float(params["heavy_damage_threshold"])
    if damage > heavy:
        chance *= max(0.0, 1 - (damage - heavy) * float(params["heavy_damage_factor"]))
    else:
        chance *= 1 - damage * float(params["damage_factor"])

    for limit, factor in params["count_factors"]:
        if count <= int(limit):
            chance *= float(factor)
            break
    else:
        chance *= float(params["late_count_factor"])

    stamina = fighter.get_stamina_percent()
    for threshold, factor in params["stamina"]:
        if stamina < float(threshold):
            chance *= float(factor)
            break
    else:
        chance *= float(params["stamina_base"]) + stamina * float(params["stamina_scale"])

    chance *= float(params["prior_knockdown_factor"]) ** fighter.knockdowns_total
    chance /= fighter.get_total_vulnerability()
    return clamp_float(chance, float(params["min"]), float(params["max"]))


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------

def resolve_knockdown(
    request: KnockdownRequest,
    attacker: Fighter,
    defender: Fighter,
    *,
    mandatory_eight_count: bool = True,
    rng: random.Random | None = None,
) -> KnockdownOutcome:
    """Run the whole count without mutating either fighter.

    A requested flash knockdown is confirmed up front; an unconfirmed one is
    treated as a regular knockdown so it can never end in a KO while
    labelled as a flash.
    """
    randomizer = rng or random.Random()

    if request.flash and randomizer.random() < flash_recovery_chance(defender):
        counts = tuple(range(1, flash_count_target(defender) + 1))
        return KnockdownOutcome(flash=True, immediate_ko=False, counts=counts, recovered=True)

    if randomizer.random() < immediate_ko_chance(attacker, defender, request.damage):
        return KnockdownOutcome(
            flash=False, immediate_ko=True, counts=tuple(range(1, FULL_COUNT + 1)), recovered=False,
        )

    minimum = MANDATORY_COUNT if mandatory_eight_count else FIRST_RECOVERY_COUNT
    counts: list[int] = []
    on_feet = False
    for count in range(1, FULL_COUNT + 1):
        counts.append(count)
        if count == FULL_COUNT:
            break
        if not on_feet and count >= FIRST_RECOVERY_COUNT:
            on_feet = randomizer.random() < recovery_chance(defender, count)
        if on_feet and count >= minimum:
            return KnockdownOutcome(flash=False, immediate_ko=False, counts=tuple(counts), recovered=True)
    return KnockdownOutcome(flash=False, immediate_ko=False, counts=tuple(counts), recovered=False)
