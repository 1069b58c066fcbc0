"""Foul attempts, detection and escalation.

A fighter's dirtiness and situation decide whether a foul is tried; the
referee's skill decides whether it is seen.  Detected fouls escalate from
warnings to point deductions to disqualification.  The foul catalogue lives
in ``rules/fouls.json``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from boxing_sim.constants import DEFAULT_TICK_RATE, FIGHTER_IDS, MAX_POINT_DEDUCTIONS
from boxing_sim.models import FoulConsequence, FoulType, require_fighter_id
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.referee_policy import Referee
from boxing_sim.rules_registry import load_rule_set

logger = logging.getLogger(__name__)

_BREAK_FOULS = (FoulType.HITTING_AFTER_BREAK, FoulType.HITTING_ON_BREAK)


@dataclass(frozen=True)
class FoulSituation:
    stamina_percent: float
    distance: float
    round_number: int
    score_diff: float
    is_hurt: bool = False
    is_buzzed: bool = False
    just_separated: bool = False


@dataclass(frozen=True)
class FoulOutcome:
    fouler: str
    target: str
    foul_type: FoulType
    detected: bool
    intentional: bool
    consequence: FoulConsequence
    damage: float = 0.0
    causes_cut: bool = False
    stamina_drain: float = 0.0
    stamina_recovery: float = 0.0
    deductions: int = 0

    @property
    def disqualifies(self) -> bool:
        return self.consequence == FoulConsequence.DISQUALIFICATION


class FoulPolicy:
    def __init__(self, referee: Referee, rng: random.Random | None = None) -> None:
        self.referee = referee
        self.rng = rng or random.Random()
        self.warnings: dict[str, int] = {fid: 0 for fid in FIGHTER_IDS}
        self.deductions: dict[str, int] = {fid: 0 for fid in FIGHTER_IDS}
        self.detected_by_type: dict[str, dict[FoulType, int]] = {fid: {} for fid in FIGHTER_IDS}

    def warnings_for(self, fighter_id: str) -> int:
        return self.warnings[require_fighter_id(fighter_id)]

    def deductions_for(self, fighter_id: str) -> int:
        return self.deductions[require_fighter_id(fighter_id)]

    # -- attempt -----------------------------------------------------------

    def foul_chance(self, fighter_id: str, fighter: Fighter, situation: FoulSituation) -> float:
        params = load_rule_set("fouls")["attempt"]
        require_fighter_id(fighter_id)
        if fighter.tactics.dirtiness < int(params["min_dirtiness"]):
            return 0.0

        chance = fighter.tactics.dirtiness * float(params["dirtiness_factor"])
        if situation.score_diff < float(params["behind_threshold"]):
            chance *= float(params["behind"])
        if situation.stamina_percent < float(params["tired_threshold"]):
            chance *= float(params["tired"])
        if situation.is_hurt or situation.is_buzzed:
            chance *= float(params["hurt"])
        if situation.distance < float(params["close_distance"]):
            chance *= float(params["close"])
        if situation.round_number < int(params["early_round_limit"]):
            chance *= float(params["early"])
        if self.warnings[fighter_id] >= int(params["warned_threshold"]):
            chance *= float(params["warned"])
        if self.deductions[fighter_id] > 0:
            chance *= float(params["deducted"])
        return min(1.0, chance)

    def tick_chance(
        self,
        fighter_id: str,
        fighter: Fighter,
        situation: FoulSituation,
        tick_rate: float = DEFAULT_TICK_RATE,
    ) -> float:
        """Spread the per-attempt chance over the ticks of one foul window.

        Fouls are only tried in range, or straight off a break.
        """
        params = load_rule_set("fouls")["attempt"]
        if situation.distance >= float(params["reach_distance"]) and not situation.just_separated:
            return 0.0
        chance = self.foul_chance(fighter_id, fighter, situation)
        return chance * min(1.0, tick_rate / float(params["window_seconds"]))

    def should_attempt_foul(
        self,
        fighter_id: str,
        fighter: Fighter,
        situation: FoulSituation,
        tick_rate: float = DEFAULT_TICK_RATE,
    ) -> bool:
        chance = self.tick_chance(fighter_id, fighter, situation, tick_rate)
        return chance > 0 and self.rng.random() < chance

    def select_foul_type(self, fighter: Fighter, situation: FoulSituation) -> FoulType:
        rules = load_rule_set("fouls")
        selection = rules["selection"]
        default = int(selection["default_tendency"])

        weights: dict[FoulType, float] = {}
        for foul in FoulType:
            if foul in _BREAK_FOULS:
                if situation.just_separated:
                    weights[foul] = float(default)
                continue
            weights[foul] = float(fighter.tactics.tendency(foul.value, default))

        situational: list[dict[str, float]] = []
        if situation.distance < float(selection["clinch_distance"]):
            situational.append(selection["clinch"])
        if situation.stamina_percent < float(rules["attempt"]["tired_threshold"]):
            situational.append(selection["tired"])
        if situation.is_hurt or situation.is_buzzed:
            situational.append(selection["hurt"])
        if situation.score_diff < float(rules["attempt"]["behind_threshold"]):
            situational.append(selection["behind"])
        for table in situational:
            for name, factor in table.items():
                foul = FoulType(name)
                if foul in weights:
                    weights[foul] *= float(factor)

        candidates = [(foul, weight) for foul, weight in weights.items() if weight > 0]
        if not candidates:
            return FoulType.HOLDING
        roll = self.rng.random() * sum(weight for _, weight in candidates)
        for foul, weight in candidates:
            roll -= weight
            if roll <= 0:
                return foul
        return candidates[-1][0]

    # -- execution ---------------------------------------------------------

    def execute_foul(
        self,
        fouler_id: str,
        fighter: Fighter,
        target_id: str,
        foul_type: FoulType,
    ) -> FoulOutcome:
        rules = load_rule_set("fouls")
        entry = rules["catalogue"][foul_type.value]
        require_fighter_id(fouler_id)
        require_fighter_id(target_id)

        low, high = entry["damage"]
        damage = self.rng.uniform(float(low), float(high)) if float(high) > 0 else 0.0
        causes_cut = self.rng.random() < float(entry.get("cut_chance", 0.0))

        intentional_rules = rules["intentional"]
        intentional = (
            fighter.tactics.dirtiness > int(intentional_rules["min_dirtiness"])
            and self.rng.random() < float(intentional_rules["chance"])
        )

        strictness = rules["detection"]
        detection = float(entry["detect_chance"]) * self.referee.skill / 100
        detection *= float(strictness["base"]) + self.referee.foul_strictness * float(strictness["span"])
        detected = self.rng.random() < detection

        consequence = FoulConsequence.NONE
        if detected:
            counts = self.detected_by_type[fouler_id]
            counts[foul_type] = counts.get(foul_type, 0) + 1
            consequence = self._escalate(fouler_id, counts[foul_type], int(entry["warning_threshold"]), intentional)

        outcome = FoulOutcome(
            fouler=fouler_id,
            target=target_id,
            foul_type=foul_type,
            detected=detected,
            intentional=intentional,
            consequence=consequence,
            damage=round(damage, 2),
            causes_cut=causes_cut,
            stamina_drain=float(entry.get("stamina_drain", 0.0)),
            stamina_recovery=float(entry.get("stamina_recovery", 0.0)),
            deductions=self.deductions[fouler_id],
        )
        logger.debug(
            "%s foul by %s: detected=%s consequence=%s",
            foul_type.value, fighter.name, detected, consequence.value,
        )
        return outcome

    def _escalate(self, fouler_id: str, count: int, threshold: int, intentional: bool) -> FoulConsequence:
        if not self.referee.warning_first:
            threshold = max(0, threshold - 1)
        if count <= threshold and not (intentional and count > 1):
            self.warnings[fouler_id] += 1
            return FoulConsequence.WARNING
        if self.deductions[fouler_id] >= MAX_POINT_DEDUCTIONS:
            return FoulConsequence.DISQUALIFICATION
        self.deductions[fouler_id] += 1
        return FoulConsequence.POINT_DEDUCTION

    def apply_foul_effects(self, outcome: FoulOutcome, fouler: Fighter, target: Fighter) -> None:
        if outcome.damage > 0:
            location = "body" if outcome.foul_type == FoulType.LOW_BLOW else "head"
            target.take_damage(outcome.damage, location)
        if outcome.stamina_drain > 0:
            target.spend_stamina(outcome.stamina_drain)
        if outcome.stamina_recovery > 0:
            fouler.recover_stamina(outcome.stamina_recovery)

    def attempt(
        self,
        fouler_id: str,
        fighter: Fighter,
        target_id: str,
        situation: FoulSituation,
        tick_rate: float = DEFAULT_TICK_RATE,
    ) -> FoulOutcome | None:
        """Roll for a foul this tick and, if one happens, execute it."""
        if not self.should_attempt_foul(fouler_id, fighter, situation, tick_rate):
            return None
        foul_type = self.select_foul_type(fighter, situation)
        return self.execute_foul(fouler_id, fighter, target_id, foul_type)
