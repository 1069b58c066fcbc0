from __future__ import annotations

from dataclasses import asdict, dataclass, field, fields
from enum import Enum
from typing import Any

from boxing_sim.constants import DEFAULT_TICK_RATE, FIGHTER_IDS
from boxing_sim.rules_registry import load_rule_set, rule_value
from boxing_sim.utils import clamp_attribute, clamp_int


# ---------------------------------------------------------------------------
# Error kinds
# ---------------------------------------------------------------------------

class FightConfigError(ValueError):
    """Raised when a fight is configured with impossible settings."""


class FighterConfigError(ValueError):
    """Raised when a fighter definition is incomplete or malformed."""


class InvalidStateTransition(ValueError):
    """Raised when a fighter or fight is moved along an undefined edge."""


class RoundClosedError(ValueError):
    """Raised when a completed round is mutated or scored twice."""


class InvalidFighterReference(KeyError):
    """Raised when a fighter id other than the two corners is referenced."""


def require_fighter_id(fighter_id: str) -> str:
    if fighter_id not in FIGHTER_IDS:
        raise InvalidFighterReference(f"Unknown fighter id: {fighter_id!r}")
    return fighter_id


def other_fighter_id(fighter_id: str) -> str:
    require_fighter_id(fighter_id)
    return "B" if fighter_id == "A" else "A"


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class FighterState(str, Enum):
    NEUTRAL = "neutral"
    OFFENSIVE = "offensive"
    DEFENSIVE = "defensive"
    TIMING = "timing"
    MOVING = "moving"
    CLINCH = "clinch"
    BUZZED = "buzzed"
    HURT = "hurt"
    KNOCKED_DOWN = "knocked_down"
    FLASH_DOWN = "flash_down"
    RECOVERED = "recovered"


class OffensiveSubState(str, Enum):
    PRESSURE = "pressure"
    COMBINATION = "combination"
    COUNTER = "counter"
    FEINTING = "feinting"
    BODY_ATTACK = "body_attack"


class DefensiveSubState(str, Enum):
    HIGH_GUARD = "high_guard"
    PHILLY_SHELL = "philly_shell"
    HEAD_MOVEMENT = "head_movement"
    DISTANCE = "distance"
    PARRYING = "parrying"


class MovementSubState(str, Enum):
    ADVANCING = "advancing"
    CUTTING_OFF = "cutting_off"
    CIRCLING = "circling"
    RETREATING = "retreating"
    LATERAL = "lateral"


SubState = OffensiveSubState | DefensiveSubState | MovementSubState


class FightStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    BETWEEN_ROUNDS = "between_rounds"
    STOPPED = "stopped"
    COMPLETED = "completed"


class StoppageType(str, Enum):
    KO = "KO"
    TKO_REFEREE = "TKO_REFEREE"
    TKO_CORNER = "TKO_CORNER"
    TKO_DOCTOR = "TKO_DOCTOR"
    TKO_INJURY = "TKO_INJURY"
    TKO_THREE_KNOCKDOWNS = "TKO_THREE_KNOCKDOWNS"
    DECISION_UNANIMOUS = "DECISION_UNANIMOUS"
    DECISION_SPLIT = "DECISION_SPLIT"
    DECISION_MAJORITY = "DECISION_MAJORITY"
    DRAW_UNANIMOUS = "DRAW_UNANIMOUS"
    DRAW_SPLIT = "DRAW_SPLIT"
    DRAW_MAJORITY = "DRAW_MAJORITY"
    NO_CONTEST = "NO_CONTEST"
    DISQUALIFICATION = "DISQUALIFICATION"

    @property
    def is_stoppage(self) -> bool:
        return self in _STOPPAGE_METHODS

    @property
    def is_draw(self) -> bool:
        return self in (StoppageType.DRAW_UNANIMOUS, StoppageType.DRAW_SPLIT, StoppageType.DRAW_MAJORITY)


_STOPPAGE_METHODS = frozenset({
    StoppageType.KO,
    StoppageType.TKO_REFEREE,
    StoppageType.TKO_CORNER,
    StoppageType.TKO_DOCTOR,
    StoppageType.TKO_INJURY,
    StoppageType.TKO_THREE_KNOCKDOWNS,
    StoppageType.DISQUALIFICATION,
})


class ActionType(str, Enum):
    PUNCH = "punch"
    BLOCK = "block"
    EVADE = "evade"
    MOVE = "move"
    CLINCH = "clinch"
    FEINT = "feint"
    WAIT = "wait"


class PunchType(str, Enum):
    JAB = "jab"
    CROSS = "cross"
    LEAD_HOOK = "lead_hook"
    REAR_HOOK = "rear_hook"
    LEAD_UPPERCUT = "lead_uppercut"
    REAR_UPPERCUT = "rear_uppercut"
    BODY_JAB = "body_jab"
    BODY_CROSS = "body_cross"
    BODY_HOOK_LEAD = "body_hook_lead"
    BODY_HOOK_REAR = "body_hook_rear"

    @property
    def is_body(self) -> bool:
        return self.value.startswith("body_")

    @property
    def is_jab(self) -> bool:
        return self in (PunchType.JAB, PunchType.BODY_JAB)


class FoulType(str, Enum):
    HEADBUTT = "headbutt"
    LOW_BLOW = "low_blow"
    RABBIT_PUNCH = "rabbit_punch"
    HOLDING = "holding"
    ELBOW = "elbow"
    PUSH = "push"
    HITTING_AFTER_BREAK = "hitting_after_break"
    HITTING_ON_BREAK = "hitting_on_break"


class FoulConsequence(str, Enum):
    NONE = "none"
    WARNING = "warning"
    POINT_DEDUCTION = "point_deduction"
    DISQUALIFICATION = "disqualification"


class RefereeCommandType(str, Enum):
    BREAK = "break"
    WORK = "work"
    STOP = "stop"
    WARNING = "warning"
    POINT = "point"
    TIME = "time"
    BOX = "box"


class EffectCategory(str, Enum):
    BUFF = "buff"
    DEBUFF = "debuff"


# ---------------------------------------------------------------------------
# Attribute groups
# ---------------------------------------------------------------------------

@dataclass
class _AttributeGroup:
    """Named set of 1-100 ratings; values are clamped on construction."""

    def __post_init__(self) -> None:
        for item in fields(self):
            setattr(self, item.name, clamp_attribute(getattr(self, item.name)))

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None):
        payload = payload or {}
        known = {item.name for item in fields(cls)}
        unknown = set(payload) - known
        if unknown:
            raise FighterConfigError(
                f"Unknown {cls.__name__} attributes: {', '.join(sorted(unknown))}"
            )
        try:
            return cls(**{key: int(value) for key, value in payload.items()})
        except (TypeError, ValueError) as exc:
            raise FighterConfigError(f"Invalid {cls.__name__} value: {exc}") from exc


@dataclass
class PowerAttributes(_AttributeGroup):
    power_left: int = 70
    power_right: int = 75
    knockout_power: int = 70
    body_punching: int = 70
    punching_stamina: int = 70


@dataclass
class SpeedAttributes(_AttributeGroup):
    hand_speed: int = 75
    foot_speed: int = 70
    reflexes: int = 75
    first_step: int = 70
    combination_speed: int = 70


@dataclass
class StaminaAttributes(_AttributeGroup):
    cardio: int = 75
    recovery_rate: int = 70
    work_rate: int = 70
    second_wind: int = 50
    pace_control: int = 60


@dataclass
class DefenseAttributes(_AttributeGroup):
    head_movement: int = 65
    blocking: int = 70
    parrying: int = 60
    shoulder_roll: int = 50
    clinch_defense: int = 65
    clinch_offense: int = 60
    ring_awareness: int = 65


@dataclass
class OffenseAttributes(_AttributeGroup):
    jab_accuracy: int = 70
    power_accuracy: int = 65
    body_accuracy: int = 65
    punch_selection: int = 70
    feinting: int = 60
    counter_punching: int = 65
    combination_punching: int = 65


@dataclass
class TechnicalAttributes(_AttributeGroup):
    footwork: int = 70
    distance_management: int = 70
    inside_fighting: int = 65
    outside_fighting: int = 65
    ring_generalship: int = 65
    adaptability: int = 65
    fight_iq: int = 70


@dataclass
class MentalAttributes(_AttributeGroup):
    chin: int = 75
    heart: int = 75
    killer_instinct: int = 65
    composure: int = 65
    intimidation: int = 50
    confidence: int = 70
    experience: int = 60
    clutch_factor: int = 60
    focus: int = 85


ATTRIBUTE_GROUPS: dict[str, type[_AttributeGroup]] = {
    "power": PowerAttributes,
    "speed": SpeedAttributes,
    "stamina": StaminaAttributes,
    "defense": DefenseAttributes,
    "offense": OffenseAttributes,
    "technical": TechnicalAttributes,
    "mental": MentalAttributes,
}


@dataclass
class Tactics:
    """Rule-bending tendencies; 0 dirtiness never fouls."""

    dirtiness: int = 0
    headbutt: int = 10
    low_blow: int = 10
    rabbit_punch: int = 10
    holding: int = 10
    elbow: int = 10
    push: int = 10

    def __post_init__(self) -> None:
        for item in fields(self):
            setattr(self, item.name, clamp_int(getattr(self, item.name), 0, 100))

    def tendency(self, foul_name: str, default: int) -> int:
        return int(getattr(self, foul_name, default))

    def to_dict(self) -> dict[str, int]:
        return asdict(self)

    @classmethod
    def from_dict(cls, payload: dict[str, Any] | None) -> "Tactics":
        payload = payload or {}
        known = {item.name for item in fields(cls)}
        try:
            return cls(**{key: int(value) for key, value in payload.items() if key in known})
        except (TypeError, ValueError) as exc:
            raise FighterConfigError(f"Invalid tactics value: {exc}") from exc


# ---------------------------------------------------------------------------
# Condition records
# ---------------------------------------------------------------------------

@dataclass
class Cut:
    location: str
    severity: int = 1

    @property
    def near_eye(self) -> bool:
        return "eye" in self.location

    def to_dict(self) -> dict[str, Any]:
        return {"location": self.location, "severity": self.severity}


@dataclass
class StatusModifier:
    """Timed attribute modifier attached to a fighter.

    ``duration`` is counted in ticks; ``None`` means it stays until removed.
    Modifier values are percentages keyed by ``speed``, ``power``,
    ``defense``, ``accuracy``, ``vision`` or ``chin``.
    """

    name: str
    category: EffectCategory
    modifiers: dict[str, float]
    duration: float | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category.value,
            "modifiers": dict(self.modifiers),
            "duration": self.duration,
        }


@dataclass
class BuzzedCondition:
    severity: int
    duration: float
    recovery_rate: float


# ---------------------------------------------------------------------------
# Officials and configuration
# ---------------------------------------------------------------------------

@dataclass
class Judge:
    name: str
    clean_punching: float = 1.0
    defense: float = 1.0
    effective_aggression: float = 1.0
    ring_generalship: float = 1.0
    power_shots: float = 1.0
    volume: float = 1.0
    consistency: float = 85.0
    knockdown_weight: float = 1.0
    home_bias: float = 0.0

    @classmethod
    def from_profile(cls, profile: str, name: str | None = None) -> "Judge":
        profiles = load_rule_set("judges")["profiles"]
        if profile not in profiles:
            raise FightConfigError(f"Unknown judge profile: {profile}")
        values = {key: float(value) for key, value in profiles[profile].items()}
        return cls(name=name or profile, **values)


def default_judges() -> list[Judge]:
    panel = load_rule_set("judges")["default_panel"]
    return [Judge.from_profile(profile) for profile in panel]


@dataclass
class FightConfig:
    rounds: int = 10
    round_duration: float = 180.0
    rest_duration: float = 60.0
    three_knockdown_rule: bool = False
    mandatory_eight_count: bool = True
    home_fighter: str | None = None
    tick_rate: float = DEFAULT_TICK_RATE
    title: str = ""

    def __post_init__(self) -> None:
        max_rounds = int(rule_value("fight", "max_rounds"))
        if int(self.rounds) < 1:
            raise FightConfigError("Rounds must be >= 1.")
        if int(self.rounds) > max_rounds:
            raise FightConfigError(f"Rounds must be <= {max_rounds}.")
        if self.round_duration <= 0:
            raise FightConfigError("Round duration must be positive.")
        if self.rest_duration < 0:
            raise FightConfigError("Rest duration cannot be negative.")
        if not 0 < self.tick_rate <= self.round_duration:
            raise FightConfigError("Tick rate must be positive and shorter than a round.")
        if self.home_fighter is not None and self.home_fighter not in FIGHTER_IDS:
            raise FightConfigError(f"Unknown home fighter: {self.home_fighter}")
        self.rounds = int(self.rounds)

    @classmethod
    def from_rules(cls, **overrides: Any) -> "FightConfig":
        values = dict(load_rule_set("fight")["defaults"])
        values.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Outcome
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FightResult:
    winner: str | None
    winner_name: str | None
    method: StoppageType
    round: int
    time: float
    reason: str = ""
    scorecards: tuple[tuple[str, int, int], ...] = field(default_factory=tuple)

    @property
    def is_draw(self) -> bool:
        return self.winner is None

    @property
    def is_knockout(self) -> bool:
        return self.method == StoppageType.KO

    def to_dict(self) -> dict[str, Any]:
        return {
            "winner": self.winner,
            "winner_name": self.winner_name,
            "method": self.method.value,
            "round": self.round,
            "time": self.time,
            "reason": self.reason,
            "scorecards": [list(card) for card in self.scorecards],
        }
