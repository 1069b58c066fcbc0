"""Per-fighter condition model.

Holds the seven attribute groups and every runtime field the engine mutates
during a bout: primary state and sub-state, stamina, head/body damage, cuts,
buzzed/stun/hurt timers, status modifiers and the statistic ledgers.  All
bounded values are clamped here, at the point of mutation.  Parameters come
from ``rules/fighter_model.json``.
"""

from __future__ import annotations

import logging
import math
import random
from dataclasses import dataclass, field
from typing import Any

from boxing_sim.constants import MAX_BUZZED_TICKS, MAX_STUN_TICKS, MIN_BUZZED_TICKS
from boxing_sim.models import (
    ATTRIBUTE_GROUPS,
    BuzzedCondition,
    Cut,
    DefenseAttributes,
    DefensiveSubState,
    EffectCategory,
    FighterConfigError,
    FighterState,
    InvalidStateTransition,
    MentalAttributes,
    MovementSubState,
    OffenseAttributes,
    OffensiveSubState,
    PowerAttributes,
    SpeedAttributes,
    StaminaAttributes,
    StatusModifier,
    SubState,
    Tactics,
    TechnicalAttributes,
)
from boxing_sim.modules.round_ledger import FighterRoundStats
from boxing_sim.rules_registry import load_rule_set
from boxing_sim.utils import clamp_float, clamp_int, slugify

logger = logging.getLogger(__name__)

HURT_MODIFIER = "hurt"
BUZZED_MODIFIER = "buzzed"


# ---------------------------------------------------------------------------
# Transition table
# ---------------------------------------------------------------------------

_ACTIVE_STATES = frozenset({
    FighterState.NEUTRAL,
    FighterState.OFFENSIVE,
    FighterState.DEFENSIVE,
    FighterState.TIMING,
    FighterState.MOVING,
    FighterState.CLINCH,
    FighterState.RECOVERED,
})
_DOWN_STATES = frozenset({FighterState.KNOCKED_DOWN, FighterState.FLASH_DOWN})

TRANSITIONS: dict[FighterState, frozenset[FighterState]] = {
    **{
        state: _ACTIVE_STATES | _DOWN_STATES | {FighterState.BUZZED, FighterState.HURT}
        for state in _ACTIVE_STATES
    },
    FighterState.BUZZED: frozenset({
        FighterState.BUZZED,
        FighterState.NEUTRAL,
        FighterState.DEFENSIVE,
        FighterState.MOVING,
        FighterState.CLINCH,
        FighterState.HURT,
    }) | _DOWN_STATES,
    FighterState.HURT: _ACTIVE_STATES | _DOWN_STATES | {FighterState.HURT},
    FighterState.KNOCKED_DOWN: frozenset({FighterState.KNOCKED_DOWN, FighterState.RECOVERED}),
    FighterState.FLASH_DOWN: frozenset({FighterState.FLASH_DOWN, FighterState.RECOVERED}),
}
"""Allowed primary-state edges; anything else is an ``InvalidStateTransition``."""

_SUB_STATE_OWNERS: dict[type, frozenset[FighterState]] = {
    OffensiveSubState: frozenset({FighterState.OFFENSIVE}),
    DefensiveSubState: frozenset({FighterState.DEFENSIVE, FighterState.BUZZED}),
    MovementSubState: frozenset({FighterState.MOVING}),
}

_REFUSED_WHILE_BUZZED = frozenset({FighterState.OFFENSIVE, FighterState.TIMING})


def sub_state_allowed(state: FighterState, sub_state: SubState | None) -> bool:
    if sub_state is None:
        return True
    owners = _SUB_STATE_OWNERS.get(type(sub_state))
    return owners is not None and state in owners


# ---------------------------------------------------------------------------
# Derived maxima
# ---------------------------------------------------------------------------

def _bracket(value: float, brackets: list[list[float]], floor: float) -> float:
    """First multiplier whose upper bound is ``>= value``."""
    for limit, multiplier in brackets:
        if value <= float(limit):
            return float(multiplier)
    return float(floor)


def max_damage_for(weight_kg: float, chin: int) -> tuple[float, float]:
    model = load_rule_set("fighter_model")
    head, body = 180.0, 150.0
    for row in model["damage_table"]:
        if weight_kg >= float(row["min_weight_kg"]):
            head, body = float(row["head"]), float(row["body"])
            break
    scale = model["chin_head_scale"]
    head *= float(scale["base"]) + chin / float(scale["divisor"])
    return head, body


def max_stamina_for(cardio: int, weight_kg: float, age: int, body_type: str) -> float:
    params = load_rule_set("fighter_model")["stamina"]
    base = float(params["base"]) + cardio * float(params["cardio_factor"])
    weight_mod = 1 - (weight_kg - float(params["weight_pivot_kg"])) * float(params["weight_factor"])
    age_mod = _bracket(age, params["age_brackets"], params["age_floor"])
    body_mod = float(params["body_types"].get(body_type, 1.0))
    return max(1.0, base * weight_mod * age_mod * body_mod)


# ---------------------------------------------------------------------------
# Fighter
# ---------------------------------------------------------------------------

@dataclass
class Fighter:
    name: str
    fighter_id: str = ""
    nickname: str = ""
    age: int = 28
    height_cm: float = 180.0
    weight_kg: float = 72.6
    reach_cm: float = 183.0
    stance: str = "orthodox"
    body_type: str = "average"
    style: str = "boxer-puncher"
    trainer_skill: int = 50
    power: PowerAttributes = field(default_factory=PowerAttributes)
    speed: SpeedAttributes = field(default_factory=SpeedAttributes)
    stamina: StaminaAttributes = field(default_factory=StaminaAttributes)
    defense: DefenseAttributes = field(default_factory=DefenseAttributes)
    offense: OffenseAttributes = field(default_factory=OffenseAttributes)
    technical: TechnicalAttributes = field(default_factory=TechnicalAttributes)
    mental: MentalAttributes = field(default_factory=MentalAttributes)
    tactics: Tactics = field(default_factory=Tactics)

    state: FighterState = field(default=FighterState.NEUTRAL, init=False)
    sub_state: SubState | None = field(default=None, init=False)
    max_stamina: float = field(default=0.0, init=False)
    current_stamina: float = field(default=0.0, init=False)
    max_head_damage: float = field(default=0.0, init=False)
    max_body_damage: float = field(default=0.0, init=False)
    head_damage: float = field(default=0.0, init=False)
    body_damage: float = field(default=0.0, init=False)
    cuts: list[Cut] = field(default_factory=list, init=False)
    buzzed: BuzzedCondition | None = field(default=None, init=False)
    stun_level: int = field(default=0, init=False)
    stun_duration: int = field(default=0, init=False)
    is_hurt: bool = field(default=False, init=False)
    hurt_duration: float = field(default=0.0, init=False)
    modifiers: list[StatusModifier] = field(default_factory=list, init=False)
    knockdowns_this_round: int = field(default=0, init=False)
    knockdowns_total: int = field(default=0, init=False)
    round_stats: FighterRoundStats = field(default_factory=FighterRoundStats, init=False)
    round_history: list[FighterRoundStats] = field(default_factory=list, init=False)
    modified: dict[str, dict[str, float]] = field(default_factory=dict, init=False)

    def __post_init__(self) -> None:
        if not isinstance(self.name, str) or not self.name.strip():
            raise FighterConfigError("Fighter name is required.")
        self.name = self.name.strip()
        self.fighter_id = self.fighter_id or slugify(self.name)
        if self.weight_kg <= 0:
            raise FighterConfigError("Fighter weight must be positive.")
        self.trainer_skill = clamp_int(self.trainer_skill, 0, 100)
        self.max_head_damage, self.max_body_damage = max_damage_for(self.weight_kg, self.mental.chin)
        self.max_stamina = max_stamina_for(self.stamina.cardio, self.weight_kg, self.age, self.body_type)
        self.current_stamina = self.max_stamina
        self.update_modified_attributes()

    # -- flags -------------------------------------------------------------

    @property
    def is_buzzed(self) -> bool:
        return self.buzzed is not None

    @property
    def is_down(self) -> bool:
        return self.state in _DOWN_STATES

    @property
    def is_stunned(self) -> bool:
        return self.stun_duration > 0

    # -- state machine -----------------------------------------------------

    def can_transition(self, target: FighterState, sub_state: SubState | None = None) -> bool:
        if target not in TRANSITIONS[self.state]:
            return False
        if self.is_buzzed and target in _REFUSED_WHILE_BUZZED:
            return False
        return sub_state_allowed(target, sub_state)

    def transition_to(self, target: FighterState, sub_state: SubState | None = None) -> None:
        if not self.can_transition(target, sub_state):
            raise InvalidStateTransition(
                f"{self.name}: cannot move from {self.state.value} to {target.value}"
                + (f" ({sub_state.value})" if sub_state is not None else "")
            )
        self.state = target
        self.sub_state = sub_state

    # -- stamina -----------------------------------------------------------

    def get_stamina_percent(self) -> float:
        return self.current_stamina / self.max_stamina

    def get_stamina_tier(self) -> str:
        percent = self.get_stamina_percent()
        for tier, threshold in load_rule_set("fighter_model")["stamina_tiers"]:
            if percent >= float(threshold):
                return tier
        return "gassed"

    def spend_stamina(self, amount: float) -> None:
        self.current_stamina = clamp_float(self.current_stamina - max(0.0, amount), 0.0, self.max_stamina)

    def recover_stamina(self, amount: float) -> None:
        self.current_stamina = clamp_float(self.current_stamina + max(0.0, amount), 0.0, self.max_stamina)

    # -- damage ------------------------------------------------------------

    def get_head_damage_percent(self) -> float:
        return self.head_damage / self.max_head_damage

    def get_body_damage_percent(self) -> float:
        return self.body_damage / self.max_body_damage

    def take_damage(self, amount: float, location: str = "head") -> float:
        """Apply *amount* to the head or body and return the damage absorbed."""
        amount = max(0.0, float(amount)) if not math.isnan(float(amount)) else 0.0
        if location == "body":
            before = self.body_damage
            self.body_damage = clamp_float(self.body_damage + amount, 0.0, self.max_body_damage)
            drain = float(load_rule_set("fighter_model")["stamina"]["body_damage_drain"])
            self.spend_stamina(amount * drain)
            return self.body_damage - before
        if location != "head":
            raise ValueError(f"Unknown damage location: {location}")
        before = self.head_damage
        self.head_damage = clamp_float(self.head_damage + amount, 0.0, self.max_head_damage)
        return self.head_damage - before

    def add_cut(self, location: str, severity: int = 1) -> Cut:
        """Open a cut, or worsen an existing one at the same location."""
        params = load_rule_set("fighter_model")["cuts"]
        max_severity = int(params["max_severity"])
        existing = next((cut for cut in self.cuts if cut.location == location), None)
        if existing is not None:
            existing.severity = clamp_int(existing.severity + max(1, severity), 1, max_severity)
            cut = existing
        else:
            cut = Cut(location=location, severity=clamp_int(severity, 1, max_severity))
            self.cuts.append(cut)
        if cut.near_eye:
            self.remove_modifier(f"cut_{location}")
            self.add_modifier(StatusModifier(
                name=f"cut_{location}",
                category=EffectCategory.DEBUFF,
                modifiers={"vision": float(params["vision_per_severity"]) * cut.severity},
            ))
        return cut

    def worst_cut_severity(self) -> int:
        return max((cut.severity for cut in self.cuts), default=0)

    # -- status modifiers --------------------------------------------------

    def add_modifier(self, modifier: StatusModifier) -> None:
        self.modifiers.append(modifier)

    def remove_modifier(self, name: str) -> None:
        self.modifiers = [item for item in self.modifiers if item.name != name]

    def has_modifier(self, name: str) -> bool:
        return any(item.name == name for item in self.modifiers)

    def update_modifiers(self) -> None:
        """Count timed modifiers down by one tick and drop the expired ones."""
        kept: list[StatusModifier] = []
        for item in self.modifiers:
            if item.duration is not None:
                item.duration -= 1
                if item.duration <= 0:
                    continue
            kept.append(item)
        self.modifiers = kept

    # -- hurt --------------------------------------------------------------

    def set_hurt(self, duration: float) -> None:
        """Enter the hurt state for *duration* simulated seconds; clears buzzed."""
        if self.is_down:
            return
        debuff = load_rule_set("fighter_model")["hurt"]["debuff"]
        self.clear_buzzed()
        self.transition_to(FighterState.HURT)
        self.is_hurt = True
        self.hurt_duration = max(self.hurt_duration, float(duration))
        self.remove_modifier(HURT_MODIFIER)
        self.add_modifier(StatusModifier(
            name=HURT_MODIFIER,
            category=EffectCategory.DEBUFF,
            modifiers={key: float(value) for key, value in debuff.items()},
        ))

    def clear_hurt(self) -> None:
        self.is_hurt = False
        self.hurt_duration = 0.0
        self.remove_modifier(HURT_MODIFIER)
        if self.state == FighterState.HURT:
            self.state = FighterState.NEUTRAL
            self.sub_state = None

    # -- buzzed ------------------------------------------------------------

    def set_buzzed(self, damage: float, punch_type: str | None = None) -> None:
        """Daze the fighter; a second call while buzzed compounds the spell."""
        if self.is_hurt or self.is_down:
            return
        model = load_rule_set("fighter_model")
        params = model["buzzed"]
        chin = self.mental.chin

        severity = 1
        for threshold, level in params["severity_thresholds"]:
            if damage >= float(threshold):
                severity = int(level)
                break

        ticks = (float(params["base_ticks"]) + severity * float(params["ticks_per_severity"]))
        ticks *= float(params["chin_scale_base"]) + (1 - chin / 200) * float(params["chin_scale_factor"])
        if punch_type in model["power_punches"]:
            ticks *= float(params["power_punch_multiplier"])
        head_percent = self.get_head_damage_percent()
        heavy = float(params["heavy_damage_threshold"])
        moderate = float(params["moderate_damage_threshold"])
        if head_percent > heavy:
            ticks *= float(params["heavy_damage_base"]) + (head_percent - heavy)
        elif head_percent > moderate:
            ticks *= 1 + (head_percent - moderate) * float(params["moderate_damage_factor"])
        duration = float(clamp_int(round(ticks), MIN_BUZZED_TICKS, MAX_BUZZED_TICKS))

        recovery = (
            float(params["recovery_base"])
            + chin / float(params["recovery_chin_divisor"])
            + self.stamina.cardio / float(params["recovery_cardio_divisor"])
        )
        stamina_percent = self.get_stamina_percent()
        for threshold, factor in params["low_stamina"]:
            if stamina_percent < float(threshold):
                recovery *= float(factor)
                break

        if self.buzzed is not None:
            current = self.buzzed
            extension = round(duration * float(params["compound_extension"]))
            current.duration = min(current.duration + extension, float(MAX_BUZZED_TICKS))
            if severity >= current.severity:
                current.severity = min(3, current.severity + 1)
            current.recovery_rate *= float(params["compound_recovery_factor"])
            logger.debug("%s buzzed again: severity %d, %.0f ticks", self.name, current.severity, current.duration)
        else:
            self.buzzed = BuzzedCondition(severity=severity, duration=duration, recovery_rate=recovery)
            self.transition_to(FighterState.BUZZED, DefensiveSubState.HIGH_GUARD)
        self._refresh_buzzed_debuff()

    def _refresh_buzzed_debuff(self) -> None:
        if self.buzzed is None:
            return
        per_severity = load_rule_set("fighter_model")["buzzed"]["debuff_per_severity"]
        self.remove_modifier(BUZZED_MODIFIER)
        self.add_modifier(StatusModifier(
            name=BUZZED_MODIFIER,
            category=EffectCategory.DEBUFF,
            modifiers={key: float(value) * self.buzzed.severity for key, value in per_severity.items()},
        ))

    def update_buzzed(self, rng: random.Random | None = None) -> None:
        if self.buzzed is None:
            return
        randomizer = rng or random.Random()
        params = load_rule_set("fighter_model")["buzzed"]
        self.buzzed.duration -= self.buzzed.recovery_rate
        if self.buzzed.duration > float(params["shake_off_floor"]):
            shake_off = (self.mental.chin + self.mental.composure) / float(params["shake_off_divisor"])
            if randomizer.random() < shake_off:
                self.buzzed.duration -= float(params["shake_off_amount"])
        if self.buzzed.duration <= 0:
            self.clear_buzzed()

    def clear_buzzed(self) -> None:
        if self.buzzed is None:
            return
        self.buzzed = None
        self.remove_modifier(BUZZED_MODIFIER)
        if self.state == FighterState.BUZZED:
            self.state = FighterState.NEUTRAL
            self.sub_state = None

    # -- stun --------------------------------------------------------------

    def apply_stun(self, damage: float, punch_type: str | None = None) -> None:
        model = load_rule_set("fighter_model")
        params = model["stun"]
        ticks = math.ceil(damage / float(params["damage_per_tick"])) * (1 - self.mental.chin / float(params["chin_divisor"]))
        if punch_type in model["power_punches"]:
            ticks *= float(params["power_punch_multiplier"])
        duration = clamp_int(round(ticks), 1, MAX_STUN_TICKS)
        level = 2 if damage >= float(params["heavy_threshold"]) else 1
        if level > self.stun_level or duration > self.stun_duration:
            self.stun_level = max(level, self.stun_level)
            self.stun_duration = max(duration, self.stun_duration)

    def update_stun(self, tick_rate: float) -> None:
        """Count the stun down one tick and the hurt timer down by *tick_rate*."""
        if self.stun_duration > 0:
            self.stun_duration -= 1
            if self.stun_duration <= 0:
                self.stun_duration = 0
                self.stun_level = 0
        if self.is_hurt:
            self.hurt_duration -= tick_rate
            if self.hurt_duration <= 0:
                self.clear_hurt()

    def can_throw_punch(self, rng: random.Random | None = None) -> bool:
        if self.is_down:
            return False
        if not self.is_stunned:
            return True
        if self.stun_level >= 2:
            return False
        randomizer = rng or random.Random()
        chance = float(load_rule_set("fighter_model")["stun"]["light_throw_chance"])
        return randomizer.random() < chance

    # -- vulnerability -----------------------------------------------------

    def get_buzzed_vulnerability(self) -> float:
        if self.buzzed is None:
            return 1.0
        per_severity = float(load_rule_set("fighter_model")["buzzed"]["vulnerability_per_severity"])
        return 1 + self.buzzed.severity * per_severity

    def get_stun_vulnerability(self) -> float:
        if not self.is_stunned:
            return 1.0
        table = load_rule_set("fighter_model")["stun"]["vulnerability"]
        return float(table.get(str(self.stun_level), 1.0))

    def get_hurt_vulnerability(self) -> float:
        if not self.is_hurt:
            return 1.0
        return float(load_rule_set("fighter_model")["hurt"]["vulnerability"])

    def get_total_vulnerability(self) -> float:
        return (
            self.get_buzzed_vulnerability()
            * self.get_stun_vulnerability()
            * self.get_hurt_vulnerability()
        )

    # -- modified attributes -----------------------------------------------

    def heart_fatigue_factor(self) -> float:
        params = load_rule_set("fighter_model")["heart_fatigue"]
        factor = 1 - (self.mental.heart - float(params["pivot"])) / float(params["divisor"])
        return clamp_float(factor, float(params["min_factor"]), float(params["max_factor"]))

    def update_modified_attributes(self, extra_modifiers: dict[str, float] | None = None) -> dict[str, dict[str, float]]:
        """Rebuild the attribute snapshot that combat and AI read during a tick.

        Applies the stamina-tier fatigue penalty (softened by heart), the
        near-empty chin penalty, every active status modifier and any
        *extra_modifiers* supplied by the effects engine.
        """
        model = load_rule_set("fighter_model")
        totals: dict[str, float] = {}

        heart_factor = self.heart_fatigue_factor()
        for key, value in model["fatigue_penalties"].get(self.get_stamina_tier(), {}).items():
            totals[key] = totals.get(key, 0.0) + float(value) * heart_factor
        for item in self.modifiers:
            for key, value in item.modifiers.items():
                totals[key] = totals.get(key, 0.0) + float(value)
        for key, value in (extra_modifiers or {}).items():
            totals[key] = totals.get(key, 0.0) + float(value)

        snapshot = {
            name: {key: float(value) for key, value in getattr(self, name).to_dict().items()}
            for name in ATTRIBUTE_GROUPS
        }
        for modifier_key, amount in totals.items():
            for group, attribute in model["modifier_targets"].get(modifier_key, []):
                snapshot[group][attribute] *= 1 + amount / 100

        params = model["low_stamina_chin"]
        threshold = float(params["threshold"])
        stamina_percent = self.get_stamina_percent()
        if stamina_percent <= threshold:
            penalty = float(params["max_penalty"]) * (1 - stamina_percent / threshold)
            snapshot["mental"]["chin"] *= 1 - penalty

        for group in snapshot.values():
            for key in group:
                group[key] = clamp_float(group[key], 1.0, 100.0)
        self.modified = snapshot
        return snapshot

    def effective(self, group: str, attribute: str) -> float:
        """Modified value of ``group.attribute`` from the current snapshot."""
        return self.modified[group][attribute]

    # -- round lifecycle ---------------------------------------------------

    def reset_for_round(self, stats: FighterRoundStats | None = None) -> None:
        """Prepare for a new round, binding *stats* as the live round ledger."""
        self.round_stats = stats if stats is not None else FighterRoundStats()
        self.state = FighterState.NEUTRAL
        self.sub_state = None
        self.knockdowns_this_round = 0
        self.clear_hurt()
        self.clear_buzzed()
        self.stun_level = 0
        self.stun_duration = 0

    def apply_between_round_recovery(self, trainer_skill: int | None = None) -> float:
        """Corner work during the rest period; returns stamina recovered."""
        params = load_rule_set("fighter_model")["between_rounds"]
        skill = self.trainer_skill if trainer_skill is None else trainer_skill
        recovery = (
            self.max_stamina
            * (self.stamina.recovery_rate / 100)
            * float(params["stamina_factor"])
            * (1 + skill / 100 * float(params["trainer_factor"]))
            * max(0.0, 1 - self.body_damage / float(params["body_damage_divisor"]))
            * _bracket(self.age, params["age_brackets"], params["age_floor"])
        )
        recovery = min(recovery, self.max_stamina * float(params["cap_fraction"]))
        before = self.current_stamina
        self.recover_stamina(recovery)
        self.head_damage = clamp_float(self.head_damage * float(params["head_damage_retained"]), 0.0, self.max_head_damage)
        self.body_damage = clamp_float(self.body_damage * float(params["body_damage_retained"]), 0.0, self.max_body_damage)
        return self.current_stamina - before

    def archive_round_stats(self) -> None:
        self.round_history.append(self.round_stats)

    def fight_totals(self) -> FighterRoundStats:
        totals = FighterRoundStats()
        for stats in self.round_history:
            totals.merge(stats)
        if all(stats is not self.round_stats for stats in self.round_history):
            totals.merge(self.round_stats)
        return totals

    def record_knockdown(self) -> None:
        self.knockdowns_this_round += 1
        self.knockdowns_total += 1

    # -- reporting ---------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        return {
            "id": self.fighter_id,
            "name": self.name,
            "state": self.state.value,
            "sub_state": self.sub_state.value if self.sub_state is not None else None,
            "stamina": round(self.current_stamina, 2),
            "max_stamina": round(self.max_stamina, 2),
            "stamina_percent": round(self.get_stamina_percent(), 4),
            "stamina_tier": self.get_stamina_tier(),
            "head_damage": round(self.head_damage, 2),
            "body_damage": round(self.body_damage, 2),
            "head_damage_percent": round(self.get_head_damage_percent(), 4),
            "body_damage_percent": round(self.get_body_damage_percent(), 4),
            "is_hurt": self.is_hurt,
            "is_buzzed": self.is_buzzed,
            "buzzed_severity": self.buzzed.severity if self.buzzed else 0,
            "stun_level": self.stun_level,
            "knockdowns_this_round": self.knockdowns_this_round,
            "knockdowns_total": self.knockdowns_total,
            "cuts": [cut.to_dict() for cut in self.cuts],
            "modifiers": [item.name for item in self.modifiers],
            "punches_landed": self.round_stats.punches_landed,
            "punches_thrown": self.round_stats.punches_thrown,
        }

    def profile_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "name": self.name,
            "fighter_id": self.fighter_id,
            "nickname": self.nickname,
            "age": self.age,
            "height_cm": self.height_cm,
            "weight_kg": self.weight_kg,
            "reach_cm": self.reach_cm,
            "stance": self.stance,
            "body_type": self.body_type,
            "style": self.style,
            "trainer_skill": self.trainer_skill,
            "tactics": self.tactics.to_dict(),
        }
        for group in ATTRIBUTE_GROUPS:
            payload[group] = getattr(self, group).to_dict()
        return payload

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Fighter":
        if not isinstance(payload, dict):
            raise FighterConfigError("Fighter definition must be a mapping.")
        if not payload.get("name"):
            raise FighterConfigError("Fighter name is required.")
        groups = {
            name: group_cls.from_dict(payload.get(name))
            for name, group_cls in ATTRIBUTE_GROUPS.items()
        }
        try:
            return cls(
                name=str(payload["name"]),
                fighter_id=str(payload.get("fighter_id", "")),
                nickname=str(payload.get("nickname", "")),
                age=int(payload.get("age", 28)),
                height_cm=float(payload.get("height_cm", 180.0)),
                weight_kg=float(payload.get("weight_kg", 72.6)),
                reach_cm=float(payload.get("reach_cm", 183.0)),
                stance=str(payload.get("stance", "orthodox")),
                body_type=str(payload.get("body_type", "average")),
                style=str(payload.get("style", "boxer-puncher")),
                trainer_skill=int(payload.get("trainer_skill", 50)),
                tactics=Tactics.from_dict(payload.get("tactics")),
                **groups,
            )
        except (TypeError, ValueError) as exc:
            if isinstance(exc, FighterConfigError):
                raise
            raise FighterConfigError(f"Invalid fighter definition: {exc}") from exc
