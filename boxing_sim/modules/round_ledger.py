"""Per-round statistic ledger.

A ``Round`` is opened at the bell, mutated only while the round runs and
frozen once it completes (end of time or stoppage).  Every judge may score
it exactly once.
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any

from boxing_sim.constants import FIGHTER_IDS
from boxing_sim.models import PunchType, RoundClosedError, other_fighter_id, require_fighter_id
from boxing_sim.rules_registry import load_rule_set


@dataclass
class FighterRoundStats:
    punches_thrown: int = 0
    punches_landed: int = 0
    jabs_thrown: int = 0
    jabs_landed: int = 0
    power_thrown: int = 0
    power_landed: int = 0
    head_landed: int = 0
    body_landed: int = 0
    clean_punches: int = 0
    partial_punches: int = 0
    punches_blocked: int = 0
    punches_missed: int = 0
    punches_evaded: int = 0
    counters_landed: int = 0
    damage_dealt: float = 0.0
    damage_received: float = 0.0
    significant_strikes: int = 0
    blocks: dict[str, int] = field(default_factory=dict)
    evasions: dict[str, int] = field(default_factory=dict)
    forward_time: float = 0.0
    backward_time: float = 0.0
    clinches_initiated: int = 0
    clinch_time: float = 0.0
    center_control_time: float = 0.0
    rope_time: float = 0.0
    corner_time: float = 0.0
    combinations: int = 0
    knockdowns_suffered: int = 0
    point_deductions: int = 0
    fouls_committed: int = 0

    @property
    def accuracy(self) -> float:
        if self.punches_thrown == 0:
            return 0.0
        return self.punches_landed / self.punches_thrown

    def merge(self, other: "FighterRoundStats") -> None:
        """Add *other*'s counters into this ledger."""
        for item in fields(self):
            mine = getattr(self, item.name)
            theirs = getattr(other, item.name)
            if isinstance(mine, dict):
                for key, value in theirs.items():
                    mine[key] = mine.get(key, 0) + value
            else:
                setattr(self, item.name, mine + theirs)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {}
        for item in fields(self):
            value = getattr(self, item.name)
            if isinstance(value, dict):
                payload[item.name] = dict(value)
            elif isinstance(value, float):
                payload[item.name] = round(value, 2)
            else:
                payload[item.name] = value
        return payload


@dataclass
class KnockdownRecord:
    fighter: str
    attacker: str
    time: float
    punch_type: str | None
    count: int
    flash: bool


class Round:
    def __init__(self, number: int, duration: float) -> None:
        if number < 1:
            raise ValueError("Round number must be >= 1.")
        if duration <= 0:
            raise ValueError("Round duration must be positive.")
        self.number = number
        self.duration = float(duration)
        self.elapsed = 0.0
        self.stats: dict[str, FighterRoundStats] = {fid: FighterRoundStats() for fid in FIGHTER_IDS}
        self.events: list[dict[str, Any]] = []
        self.knockdowns: dict[str, list[KnockdownRecord]] = {fid: [] for fid in FIGHTER_IDS}
        self.scores: dict[str, tuple[int, int]] = {}
        self.is_complete = False
        self.stoppage_time: float | None = None
        self.stoppage_reason: str | None = None

    # -- guards ------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self.is_complete:
            raise RoundClosedError(f"Round {self.number} is complete and cannot be changed.")

    def stats_for(self, fighter_id: str) -> FighterRoundStats:
        return self.stats[require_fighter_id(fighter_id)]

    # -- clock -------------------------------------------------------------

    def tick(self, seconds: float) -> bool:
        """Advance the round clock; returns ``True`` once time has run out."""
        self._ensure_open()
        self.elapsed = min(self.duration, self.elapsed + seconds)
        return self.elapsed >= self.duration

    @property
    def remaining(self) -> float:
        return max(0.0, self.duration - self.elapsed)

    def complete(self, *, stoppage_reason: str | None = None) -> None:
        self._ensure_open()
        if stoppage_reason is not None:
            self.stoppage_time = self.elapsed
            self.stoppage_reason = stoppage_reason
        self.is_complete = True

    # -- punches -----------------------------------------------------------

    def _record_thrown(self, stats: FighterRoundStats, punch_type: PunchType) -> None:
        stats.punches_thrown += 1
        if punch_type.is_jab:
            stats.jabs_thrown += 1
        else:
            stats.power_thrown += 1

    def record_hit(
        self,
        attacker: str,
        punch_type: PunchType,
        location: str,
        damage: float,
        *,
        clean: bool = True,
        is_counter: bool = False,
    ) -> None:
        self._ensure_open()
        own = self.stats_for(attacker)
        opponent = self.stats[other_fighter_id(attacker)]
        self._record_thrown(own, punch_type)
        own.punches_landed += 1
        if punch_type.is_jab:
            own.jabs_landed += 1
        else:
            own.power_landed += 1
        if location == "body":
            own.body_landed += 1
        else:
            own.head_landed += 1
        if clean:
            own.clean_punches += 1
        else:
            own.partial_punches += 1
        if is_counter:
            own.counters_landed += 1
        own.damage_dealt += damage
        opponent.damage_received += damage
        if damage >= float(load_rule_set("scoring")["significant_damage"]):
            own.significant_strikes += 1

    def record_miss(self, attacker: str, punch_type: PunchType) -> None:
        self._ensure_open()
        own = self.stats_for(attacker)
        self._record_thrown(own, punch_type)
        own.punches_missed += 1

    def record_block(self, attacker: str, punch_type: PunchType, technique: str = "guard") -> None:
        """An *attacker* punch stopped by the defender's guard."""
        self._ensure_open()
        own = self.stats_for(attacker)
        defender = self.stats[other_fighter_id(attacker)]
        self._record_thrown(own, punch_type)
        defender.punches_blocked += 1
        defender.blocks[technique] = defender.blocks.get(technique, 0) + 1

    def record_evade(self, attacker: str, punch_type: PunchType, technique: str = "slip") -> None:
        self._ensure_open()
        own = self.stats_for(attacker)
        defender = self.stats[other_fighter_id(attacker)]
        self._record_thrown(own, punch_type)
        defender.punches_evaded += 1
        defender.evasions[technique] = defender.evasions.get(technique, 0) + 1

    def record_combination(self, attacker: str) -> None:
        self._ensure_open()
        self.stats_for(attacker).combinations += 1

    # -- position ----------------------------------------------------------

    def record_position(
        self,
        fighter_id: str,
        seconds: float,
        *,
        on_ropes: bool = False,
        in_corner: bool = False,
        center_control: bool = False,
    ) -> None:
        self._ensure_open()
        stats = self.stats_for(fighter_id)
        if in_corner:
            stats.corner_time += seconds
        elif on_ropes:
            stats.rope_time += seconds
        if center_control:
            stats.center_control_time += seconds

    def record_movement(self, fighter_id: str, seconds: float, direction: str) -> None:
        self._ensure_open()
        stats = self.stats_for(fighter_id)
        if direction == "forward":
            stats.forward_time += seconds
        elif direction == "backward":
            stats.backward_time += seconds

    def record_clinch(self, fighter_id: str, seconds: float, *, initiated: bool = False) -> None:
        self._ensure_open()
        stats = self.stats_for(fighter_id)
        stats.clinch_time += seconds
        if initiated:
            stats.clinches_initiated += 1

    # -- incidents ---------------------------------------------------------

    def record_knockdown(self, record: KnockdownRecord) -> None:
        self._ensure_open()
        self.knockdowns[require_fighter_id(record.fighter)].append(record)
        self.stats[record.fighter].knockdowns_suffered += 1

    def record_foul(self, fighter_id: str, *, point_deducted: bool = False) -> None:
        self._ensure_open()
        stats = self.stats_for(fighter_id)
        stats.fouls_committed += 1
        if point_deducted:
            stats.point_deductions += 1

    def add_event(self, event: dict[str, Any]) -> None:
        self._ensure_open()
        self.events.append(dict(event))

    # -- scores ------------------------------------------------------------

    def record_score(self, judge_name: str, score_a: int, score_b: int) -> None:
        if judge_name in self.scores:
            raise RoundClosedError(f"Judge {judge_name} already scored round {self.number}.")
        self.scores[judge_name] = (int(score_a), int(score_b))

    def summary(self) -> dict[str, Any]:
        return {
            "round": self.number,
            "elapsed": round(self.elapsed, 1),
            "stats": {fid: self.stats[fid].to_dict() for fid in FIGHTER_IDS},
            "knockdowns": {fid: len(self.knockdowns[fid]) for fid in FIGHTER_IDS},
            "scores": {name: list(score) for name, score in self.scores.items()},
            "stoppage_reason": self.stoppage_reason,
        }
