"""Collaborator contracts consumed by the fight orchestrator.

The embedding application supplies a decision source, combat resolver,
damage calculator, stamina manager and position tracker.  Each is called
synchronously once per tick.  When one is missing the orchestrator uses the
inert fallback defined here instead of failing.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol

from boxing_sim.models import ActionType, FighterState, PunchType, SubState

if TYPE_CHECKING:
    from boxing_sim.modules.fight import Fight
    from boxing_sim.modules.fighter_state import Fighter


# ---------------------------------------------------------------------------
# Value shapes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Action:
    type: ActionType
    punch_type: PunchType | None = None
    direction: str | None = None
    is_counter: bool = False


@dataclass(frozen=True)
class Decision:
    state: FighterState
    sub_state: SubState | None = None
    action: Action | None = None

    @property
    def throws_punch(self) -> bool:
        return self.action is not None and self.action.type == ActionType.PUNCH


@dataclass(frozen=True)
class Hit:
    attacker: str
    target: str
    punch_type: PunchType
    location: str
    damage: float
    quality: str = "clean"
    is_counter: bool = False
    caused_stun: bool = False

    @property
    def is_clean(self) -> bool:
        return self.quality == "clean"


@dataclass(frozen=True)
class Miss:
    attacker: str
    target: str
    punch_type: PunchType


@dataclass(frozen=True)
class Block:
    attacker: str
    target: str
    punch_type: PunchType
    technique: str = "guard"


@dataclass(frozen=True)
class Evade:
    attacker: str
    target: str
    punch_type: PunchType
    technique: str = "slip"


@dataclass(frozen=True)
class KnockdownRequest:
    attacker: str
    target: str
    punch_type: PunchType | None
    damage: float
    flash: bool = False


@dataclass(frozen=True)
class CombatResult:
    hits: list[Hit] = field(default_factory=list)
    misses: list[Miss] = field(default_factory=list)
    blocks: list[Block] = field(default_factory=list)
    evades: list[Evade] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    knockdown: KnockdownRequest | None = None


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------

class DecisionSource(Protocol):
    def decide(self, fighter: Fighter, opponent: Fighter, fight: Fight) -> Decision: ...


class CombatResolver(Protocol):
    def resolve(
        self,
        fighter_a: Fighter,
        fighter_b: Fighter,
        decision_a: Decision,
        decision_b: Decision,
        fight: Fight,
    ) -> CombatResult: ...


class DamageCalculator(Protocol):
    def calculate_damage(self, hit: Hit, attacker: Fighter, target: Fighter) -> float: ...

    def check_hurt(self, target: Fighter, damage: float) -> bool: ...


class StaminaManager(Protocol):
    def update(self, fighter: Fighter, decision: Decision, tick_rate: float) -> None: ...

    def calculate_hit_stamina_cost(self, attacker: Fighter, punch_type: PunchType) -> float: ...

    def calculate_miss_stamina_cost(self, attacker: Fighter, punch_type: PunchType) -> float: ...


class PositionTracker(Protocol):
    def update(
        self,
        fighter_a: Fighter,
        fighter_b: Fighter,
        decision_a: Decision,
        decision_b: Decision,
        tick_rate: float,
    ) -> None: ...

    def get_distance(self) -> float: ...

    def is_on_ropes(self, fighter_id: str) -> bool: ...

    def is_in_corner(self, fighter_id: str) -> bool: ...

    def get_center_control(self) -> str | None: ...

    def separate_fighters(self, distance: float) -> None: ...


# ---------------------------------------------------------------------------
# Inert fallbacks
# ---------------------------------------------------------------------------

class HoldStateDecisionSource:
    """Keeps each fighter in its current state and never acts."""

    def decide(self, fighter: Fighter, opponent: Fighter, fight: Fight) -> Decision:
        return Decision(state=fighter.state, sub_state=fighter.sub_state, action=None)


class NullCombatResolver:
    def resolve(
        self,
        fighter_a: Fighter,
        fighter_b: Fighter,
        decision_a: Decision,
        decision_b: Decision,
        fight: Fight,
    ) -> CombatResult:
        return CombatResult()


class PassThroughDamageCalculator:
    def calculate_damage(self, hit: Hit, attacker: Fighter, target: Fighter) -> float:
        return max(0.0, float(hit.damage))

    def check_hurt(self, target: Fighter, damage: float) -> bool:
        return False


class FallbackStaminaManager:
    """Flat costs: 2 per punch, 0.2 recovery per tick while neutral or defending."""

    PUNCH_COST = 2.0
    RECOVERY_PER_TICK = 0.2

    def update(self, fighter: Fighter, decision: Decision, tick_rate: float) -> None:
        if fighter.state in (FighterState.DEFENSIVE, FighterState.NEUTRAL):
            fighter.recover_stamina(self.RECOVERY_PER_TICK)

    def calculate_hit_stamina_cost(self, attacker: Fighter, punch_type: PunchType) -> float:
        return self.PUNCH_COST

    def calculate_miss_stamina_cost(self, attacker: Fighter, punch_type: PunchType) -> float:
        return self.PUNCH_COST


class StaticPositionTracker:
    """Fighters stay at mid range in open ring."""

    DEFAULT_DISTANCE = 5.0

    def __init__(self) -> None:
        self.distance = self.DEFAULT_DISTANCE

    def update(
        self,
        fighter_a: Fighter,
        fighter_b: Fighter,
        decision_a: Decision,
        decision_b: Decision,
        tick_rate: float,
    ) -> None:
        return None

    def get_distance(self) -> float:
        return self.distance

    def is_on_ropes(self, fighter_id: str) -> bool:
        return False

    def is_in_corner(self, fighter_id: str) -> bool:
        return False

    def get_center_control(self) -> str | None:
        return None

    def separate_fighters(self, distance: float) -> None:
        self.distance = max(0.0, float(distance))
