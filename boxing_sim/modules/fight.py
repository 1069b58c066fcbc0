"""Fight aggregate: two fighters, officials, rounds and scorecards.

Status moves NOT_STARTED -> IN_PROGRESS <-> BETWEEN_ROUNDS and ends in
STOPPED or COMPLETED, both terminal.  Any other move raises
``InvalidStateTransition``.
"""

from __future__ import annotations

import logging
import random
from typing import Any

from boxing_sim.constants import FIGHTER_IDS
from boxing_sim.models import (
    FightConfig,
    FightConfigError,
    FightResult,
    FightStatus,
    InvalidFighterReference,
    InvalidStateTransition,
    Judge,
    StoppageType,
    default_judges,
    other_fighter_id,
    require_fighter_id,
)
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.referee_policy import Referee
from boxing_sim.modules.round_ledger import Round
from boxing_sim.modules.scoring import ScoreCard, calculate_judge_score, decision_from_scorecards

logger = logging.getLogger(__name__)

STATUS_TRANSITIONS: dict[FightStatus, frozenset[FightStatus]] = {
    FightStatus.NOT_STARTED: frozenset({FightStatus.IN_PROGRESS}),
    FightStatus.IN_PROGRESS: frozenset({
        FightStatus.BETWEEN_ROUNDS,
        FightStatus.STOPPED,
        FightStatus.COMPLETED,
    }),
    FightStatus.BETWEEN_ROUNDS: frozenset({
        FightStatus.IN_PROGRESS,
        FightStatus.STOPPED,
        FightStatus.COMPLETED,
    }),
    FightStatus.STOPPED: frozenset(),
    FightStatus.COMPLETED: frozenset(),
}


class Fight:
    def __init__(
        self,
        fighter_a: Fighter,
        fighter_b: Fighter,
        config: FightConfig | None = None,
        *,
        referee: Referee | None = None,
        judges: list[Judge] | None = None,
        rng: random.Random | None = None,
    ) -> None:
        if not isinstance(fighter_a, Fighter) or not isinstance(fighter_b, Fighter):
            raise FightConfigError("A fight needs two Fighter instances.")
        if fighter_a is fighter_b:
            raise FightConfigError("A fighter cannot be matched against itself.")
        panel = list(judges) if judges is not None else default_judges()
        if len(panel) != 3:
            raise FightConfigError("A fight needs exactly three judges.")
        if len({judge.name for judge in panel}) != len(panel):
            raise FightConfigError("Judge names must be unique.")

        self.config = config or FightConfig.from_rules()
        self.fighters: dict[str, Fighter] = {"A": fighter_a, "B": fighter_b}
        self.referee = referee or Referee.from_preset("default")
        self.judges = panel
        self.rng = rng or random.Random()
        self.status = FightStatus.NOT_STARTED
        self.rounds: list[Round] = []
        self.scorecards = [ScoreCard(judge=judge.name) for judge in panel]
        self.result: FightResult | None = None

    # -- lookup ------------------------------------------------------------

    @property
    def fighter_a(self) -> Fighter:
        return self.fighters["A"]

    @property
    def fighter_b(self) -> Fighter:
        return self.fighters["B"]

    def get_fighter(self, fighter_id: str) -> Fighter:
        return self.fighters[require_fighter_id(fighter_id)]

    def opponent_of(self, fighter_id: str) -> Fighter:
        return self.fighters[other_fighter_id(fighter_id)]

    def id_of(self, fighter: Fighter) -> str:
        for fighter_id, candidate in self.fighters.items():
            if candidate is fighter:
                return fighter_id
        raise InvalidFighterReference(f"{fighter.name} is not in this fight")

    @property
    def current_round(self) -> Round | None:
        return self.rounds[-1] if self.rounds else None

    @property
    def current_round_number(self) -> int:
        return len(self.rounds)

    @property
    def is_over(self) -> bool:
        return self.status in (FightStatus.STOPPED, FightStatus.COMPLETED)

    @property
    def is_final_round(self) -> bool:
        return self.current_round_number >= self.config.rounds

    # -- status machine ----------------------------------------------------

    def _set_status(self, target: FightStatus) -> None:
        if target not in STATUS_TRANSITIONS[self.status]:
            raise InvalidStateTransition(f"Fight cannot move from {self.status.value} to {target.value}")
        self.status = target

    def _open_round(self) -> Round:
        round_ = Round(self.current_round_number + 1, self.config.round_duration)
        self.rounds.append(round_)
        for fighter_id, fighter in self.fighters.items():
            fighter.reset_for_round(round_.stats[fighter_id])
        self.referee.reset_clinch()
        return round_

    def start(self) -> Round:
        self._set_status(FightStatus.IN_PROGRESS)
        logger.info("%s vs %s: %d rounds", self.fighter_a.name, self.fighter_b.name, self.config.rounds)
        return self._open_round()

    def start_next_round(self) -> Round:
        if self.status != FightStatus.BETWEEN_ROUNDS:
            raise InvalidStateTransition("The next round can only start from the rest period.")
        self._set_status(FightStatus.IN_PROGRESS)
        return self._open_round()

    def end_round(self) -> list[tuple[str, int, int]]:
        """Close the running round at the bell and score it once per judge."""
        if self.status != FightStatus.IN_PROGRESS or self.current_round is None:
            raise InvalidStateTransition("No round is in progress.")
        round_ = self.current_round
        round_.complete()
        scores: list[tuple[str, int, int]] = []
        for judge, card in zip(self.judges, self.scorecards):
            score_a, score_b = calculate_judge_score(
                judge, round_, home_fighter=self.config.home_fighter, rng=self.rng,
            )
            round_.record_score(judge.name, score_a, score_b)
            card.add(score_a, score_b)
            scores.append((judge.name, score_a, score_b))
        for fighter in self.fighters.values():
            fighter.archive_round_stats()

        if self.is_final_round:
            self.finish_by_decision()
        else:
            self._set_status(FightStatus.BETWEEN_ROUNDS)
            for fighter in self.fighters.values():
                fighter.apply_between_round_recovery()
        return scores

    def stop_fight(self, method: StoppageType, winner_id: str | None, reason: str = "") -> FightResult:
        """End the bout early; terminal and irreversible."""
        if winner_id is not None:
            require_fighter_id(winner_id)
        round_ = self.current_round
        if round_ is not None and not round_.is_complete:
            round_.complete(stoppage_reason=reason or method.value)
        self._set_status(FightStatus.STOPPED)
        self.result = FightResult(
            winner=winner_id,
            winner_name=self.fighters[winner_id].name if winner_id else None,
            method=method,
            round=self.current_round_number,
            time=round_.elapsed if round_ is not None else 0.0,
            reason=reason,
            scorecards=tuple(card.as_tuple() for card in self.scorecards),
        )
        logger.info("Fight stopped: %s (%s) in round %d", method.value, reason or "-", self.current_round_number)
        return self.result

    def finish_by_decision(self) -> FightResult:
        winner_id, method = decision_from_scorecards(self.scorecards)
        round_ = self.current_round
        self._set_status(FightStatus.COMPLETED)
        self.result = FightResult(
            winner=winner_id,
            winner_name=self.fighters[winner_id].name if winner_id else None,
            method=method,
            round=self.current_round_number,
            time=round_.elapsed if round_ is not None else 0.0,
            reason="decision",
            scorecards=tuple(card.as_tuple() for card in self.scorecards),
        )
        logger.info("Decision: %s for %s", method.value, self.result.winner_name or "nobody")
        return self.result

    # -- scoring views -----------------------------------------------------

    def estimated_score_diff(self, fighter_id: str) -> float:
        """Average card margin for *fighter_id* over the completed rounds."""
        require_fighter_id(fighter_id)
        if not self.scorecards:
            return 0.0
        margins = [card.points_a - card.points_b for card in self.scorecards]
        average = sum(margins) / len(margins)
        return average if fighter_id == "A" else -average

    def score_totals(self) -> list[tuple[str, int, int]]:
        return [card.as_tuple() for card in self.scorecards]

    def punch_stats(self) -> dict[str, dict[str, Any]]:
        summary: dict[str, dict[str, Any]] = {}
        for fighter_id in FIGHTER_IDS:
            totals = self.fighters[fighter_id].fight_totals()
            summary[fighter_id] = {
                "landed": totals.punches_landed,
                "thrown": totals.punches_thrown,
                "jabs_landed": totals.jabs_landed,
                "jabs_thrown": totals.jabs_thrown,
                "power_landed": totals.power_landed,
                "power_thrown": totals.power_thrown,
                "accuracy": round(totals.accuracy, 3),
                "damage_dealt": round(totals.damage_dealt, 1),
                "knockdowns_suffered": totals.knockdowns_suffered,
            }
        return summary

    def to_dict(self) -> dict[str, Any]:
        return {
            "fighters": {fid: fighter.profile_dict() for fid, fighter in self.fighters.items()},
            "config": self.config.to_dict(),
            "referee": self.referee.to_dict(),
            "judges": [judge.name for judge in self.judges],
            "status": self.status.value,
        }
