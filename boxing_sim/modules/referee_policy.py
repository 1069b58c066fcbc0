"""Referee behaviour: clinch breaking, stoppage judgement and commands.

Tendencies and presets live in ``rules/referees.json``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import asdict, dataclass, field
from typing import Any

from boxing_sim.models import FightConfigError, RefereeCommandType
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.rules_registry import load_rule_set
from boxing_sim.utils import clamp_attribute, clamp_float

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RefereeCommand:
    type: RefereeCommandType
    text: str


@dataclass(frozen=True)
class ClinchCall:
    command: RefereeCommand
    delay: float = 0.0


@dataclass(frozen=True)
class StoppageSituation:
    """What the referee can see when weighing a stoppage."""

    score_diff: float = 0.0
    punches_taken: int = 0
    punches_landed: int = 0


@dataclass(frozen=True)
class StoppageCall:
    should_stop: bool
    reason: str | None
    score: float
    threshold: float


def _first_match(value: float, table: list[list[float]]) -> float:
    """Bonus of the first ``[threshold, bonus]`` row that *value* exceeds."""
    for threshold, bonus in table:
        if value > float(threshold):
            return float(bonus)
    return 0.0


def _first_at_least(value: float, table: list[list[float]]) -> float:
    for threshold, bonus in table:
        if value >= float(threshold):
            return float(bonus)
    return 0.0


def _sum_above(value: float, table: list[list[float]]) -> float:
    """Every row *value* exceeds adds its bonus."""
    return sum(float(bonus) for threshold, bonus in table if value > float(threshold))


@dataclass
class Referee:
    name: str = "Referee"
    experience: int = 75
    attentiveness: int = 80
    positioning: int = 75
    command_presence: int = 80
    clinch_tolerance: float = 3.0
    clinch_break_speed: float = 1.0
    stoppage_threshold: float = 0.6
    protectiveness: float = 0.5
    count_speed: float = 1.0
    foul_strictness: float = 0.5
    warning_first: bool = True

    clinch_break_time: float | None = field(default=None, init=False)
    clinch_warned: bool = field(default=False, init=False)

    def __post_init__(self) -> None:
        for name in ("experience", "attentiveness", "positioning", "command_presence"):
            setattr(self, name, clamp_attribute(getattr(self, name)))
        if self.clinch_tolerance <= 0 or self.clinch_break_speed <= 0:
            raise FightConfigError("Clinch tolerance and break speed must be positive.")
        self.stoppage_threshold = clamp_float(self.stoppage_threshold, 0.05, 1.0)
        self.protectiveness = clamp_float(self.protectiveness, 0.0, 1.0)
        self.foul_strictness = clamp_float(self.foul_strictness, 0.0, 1.0)

    @classmethod
    def from_preset(cls, preset: str = "default", name: str | None = None) -> "Referee":
        presets = load_rule_set("referees")["presets"]
        if preset not in presets:
            raise FightConfigError(f"Unknown referee preset: {preset}")
        values: dict[str, Any] = dict(presets[preset])
        if name:
            values["name"] = name
        return cls(**values)

    @property
    def skill(self) -> float:
        return (self.experience + self.attentiveness + self.positioning + self.command_presence) / 4

    # -- clinches ----------------------------------------------------------

    def reset_clinch(self) -> None:
        self.clinch_break_time = None
        self.clinch_warned = False

    def _break_time(self, fighter_a: Fighter, fighter_b: Fighter, randomizer: random.Random) -> float:
        params = load_rule_set("referees")["clinch"]
        break_time = self.clinch_tolerance * float(params["tolerance_factor"])
        if fighter_a.is_hurt or fighter_b.is_hurt:
            break_time *= float(params["hurt_factor"])
        average_stamina = (fighter_a.get_stamina_percent() + fighter_b.get_stamina_percent()) / 2
        if average_stamina < float(params["tired_threshold"]):
            break_time *= float(params["tired_factor"])
        break_time *= float(params["experience_base"]) + self.experience / 100 * float(params["experience_factor"])
        break_time *= float(params["random_base"]) + randomizer.random() * float(params["random_span"])
        return break_time

    def check_clinch_break(
        self,
        duration: float,
        fighter_a: Fighter,
        fighter_b: Fighter,
        rng: random.Random | None = None,
    ) -> ClinchCall | None:
        """Decide whether to warn or break a clinch that has lasted *duration* s."""
        randomizer = rng or random.Random()
        params = load_rule_set("referees")["clinch"]
        if self.clinch_break_time is None:
            self.clinch_break_time = self._break_time(fighter_a, fighter_b, randomizer)

        if duration >= self.clinch_break_time:
            self.reset_clinch()
            return ClinchCall(
                command=self.issue_command(RefereeCommandType.BREAK, randomizer),
                delay=float(params["break_delay"]) / self.clinch_break_speed,
            )
        warning_at = self.clinch_break_time - float(params["warning_window"])
        if not self.clinch_warned and duration >= warning_at:
            self.clinch_warned = True
            return ClinchCall(command=self.issue_command(RefereeCommandType.WORK, randomizer))
        return None

    # -- stoppage ----------------------------------------------------------

    def check_stoppage(
        self,
        fighter: Fighter,
        opponent: Fighter,
        situation: StoppageSituation | None = None,
    ) -> StoppageCall:
        """Weigh whether to wave off *fighter*; never while clearly ahead."""
        params = load_rule_set("referees")["stoppage"]
        situation = situation or StoppageSituation()
        threshold = self.stoppage_threshold * (1 - self.protectiveness * float(params["protectiveness_discount"]))
        if situation.score_diff > float(params["ahead_margin"]):
            return StoppageCall(False, None, 0.0, threshold)

        score = 0.0
        head_percent = fighter.get_head_damage_percent()
        score += _first_match(head_percent, params["head_damage"])
        score += _first_match(fighter.get_body_damage_percent(), params["body_damage"])
        if fighter.is_hurt:
            score += float(params["hurt"])
            score += _sum_above(fighter.hurt_duration, params["hurt_duration"])
        score += _first_at_least(fighter.knockdowns_this_round, params["round_knockdowns"])
        score += _first_at_least(fighter.knockdowns_total, params["total_knockdowns"])
        one_sided = params["one_sided"]
        if (
            situation.punches_taken > int(one_sided["taken"])
            and situation.punches_landed < int(one_sided["landed"])
        ):
            score += float(one_sided["bonus"])
        low_stamina = params["low_stamina"]
        if fighter.get_stamina_percent() < float(low_stamina["threshold"]):
            score += float(low_stamina["bonus"])

        if score < threshold:
            return StoppageCall(False, None, score, threshold)

        if fighter.knockdowns_this_round >= 3:
            reason = "three_knockdowns"
        elif fighter.is_hurt and situation.punches_landed < int(one_sided["landed"]):
            reason = "not_defending"
        elif head_percent > float(params["accumulated_damage_ratio"]):
            reason = "accumulated_damage"
        else:
            reason = "referee_stoppage"
        logger.debug("%s waves off %s (score %.2f >= %.2f, %s)", self.name, fighter.name, score, threshold, reason)
        return StoppageCall(True, reason, score, threshold)

    # -- commands ----------------------------------------------------------

    def issue_command(
        self,
        command: RefereeCommandType,
        rng: random.Random | None = None,
    ) -> RefereeCommand:
        randomizer = rng or random.Random()
        texts = load_rule_set("referees")["commands"].get(command.value) or [command.value.upper()]
        return RefereeCommand(type=command, text=randomizer.choice(texts))

    def to_dict(self) -> dict[str, Any]:
        payload = asdict(self)
        payload.pop("clinch_break_time")
        payload.pop("clinch_warned")
        return payload
