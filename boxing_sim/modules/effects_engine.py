"""Timed fight effects (buffs and debuffs) keyed by fighter id.

Effects are triggered by fight situations: intimidation before the first
bell, big-fight nerves, fast starters, momentum swings, second winds, focus
lapses and so on.  Their modifier maps (percentages) feed each fighter's
modified-attribute snapshot.  The catalogue and trigger weights live in
``rules/effects.json``.
"""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field
from typing import Any

from boxing_sim.constants import FAST_START_LAST_ROUND, FIGHTER_IDS, MOMENTUM_LIMIT
from boxing_sim.models import Cut, EffectCategory, InvalidFighterReference, other_fighter_id
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.round_ledger import FighterRoundStats
from boxing_sim.rules_registry import load_rule_set
from boxing_sim.utils import clamp_float

logger = logging.getLogger(__name__)

ATTRIBUTE_MODIFIER_KEYS = ("speed", "power", "accuracy", "defense")


@dataclass
class FightEffect:
    type: str
    category: EffectCategory
    intensity: float = 1.0
    duration: float | None = None
    max_duration: float | None = None
    source: str = ""
    stackable: bool = False
    stacks: int = 1
    max_stacks: int = 1
    round_scoped: bool = False
    modifiers: dict[str, float] = field(default_factory=dict)

    @property
    def effective_intensity(self) -> float:
        """Intensity, fading linearly over the last quarter of the duration."""
        if self.duration is None or not self.max_duration:
            return self.intensity * self.stacks
        fade_window = self.max_duration * float(load_rule_set("effects")["fade_fraction"])
        if fade_window > 0 and self.duration < fade_window:
            return self.intensity * self.stacks * max(0.0, self.duration / fade_window)
        return self.intensity * self.stacks

    def modifier(self, key: str) -> float:
        return self.modifiers.get(key, 0.0) * self.effective_intensity

    def refresh(self, intensity: float, duration: float | None = None) -> None:
        self.intensity = max(self.intensity, intensity)
        if self.stackable:
            self.stacks = min(self.max_stacks, self.stacks + 1)
        if self.duration is not None and self.max_duration is not None:
            extension = duration if duration is not None else self.max_duration / 2
            self.duration = min(self.max_duration, self.duration + extension)

    def tick(self) -> bool:
        """Advance one tick; returns ``True`` once the effect has expired."""
        if self.duration is None:
            return False
        self.duration -= 1
        return self.duration <= 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "category": self.category.value,
            "intensity": round(self.effective_intensity, 3),
            "duration": self.duration,
            "source": self.source,
            "stacks": self.stacks,
        }


@dataclass(frozen=True)
class EffectApplication:
    fighter: str
    effect: str
    category: EffectCategory
    source: str


class EffectsEngine:
    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()
        self.effects: dict[str, dict[str, FightEffect]] = {fid: {} for fid in FIGHTER_IDS}
        self.momentum = 0.0
        self.second_wind_used: set[str] = set()
        self._jab_streaks: dict[str, int] = {fid: 0 for fid in FIGHTER_IDS}
        self._applied: list[EffectApplication] = []

    # -- bookkeeping -------------------------------------------------------

    def _effects_for(self, fighter_id: str) -> dict[str, FightEffect]:
        if fighter_id not in self.effects:
            raise InvalidFighterReference(f"Unknown fighter id: {fighter_id!r}")
        return self.effects[fighter_id]

    def drain_applied(self) -> list[EffectApplication]:
        """Effects applied since the last call, oldest first."""
        applied, self._applied = self._applied, []
        return applied

    def apply_effect(
        self,
        fighter_id: str,
        effect_type: str,
        *,
        intensity: float = 1.0,
        duration: float | None = None,
        source: str = "",
    ) -> FightEffect:
        effects = self._effects_for(fighter_id)
        catalogue = load_rule_set("effects")["catalogue"]
        if effect_type not in catalogue:
            raise ValueError(f"Unknown effect type: {effect_type}")
        template = catalogue[effect_type]
        base_duration = template.get("duration")
        resolved_duration = duration if duration is not None else base_duration

        existing = effects.get(effect_type)
        if existing is not None:
            existing.refresh(intensity, duration)
            return existing

        effect = FightEffect(
            type=effect_type,
            category=EffectCategory(template["category"]),
            intensity=float(intensity),
            duration=float(resolved_duration) if resolved_duration is not None else None,
            max_duration=float(resolved_duration) if resolved_duration is not None else None,
            source=source,
            stackable=bool(template.get("stackable", False)),
            max_stacks=int(template.get("max_stacks", 1)),
            round_scoped=bool(template.get("round_scoped", False)),
            modifiers={key: float(value) for key, value in template.get("modifiers", {}).items()},
        )
        effects[effect_type] = effect
        self._applied.append(EffectApplication(fighter_id, effect_type, effect.category, source))
        logger.debug("effect %s applied to %s (%s)", effect_type, fighter_id, source or "n/a")
        return effect

    def remove_effect(self, fighter_id: str, effect_type: str) -> None:
        self._effects_for(fighter_id).pop(effect_type, None)

    def has_effect(self, fighter_id: str, effect_type: str) -> bool:
        return effect_type in self._effects_for(fighter_id)

    def tick(self) -> list[tuple[str, str]]:
        """Decay every timed effect; returns ``(fighter_id, effect)`` pairs that expired."""
        expired: list[tuple[str, str]] = []
        for fighter_id, effects in self.effects.items():
            for effect_type in list(effects):
                if effects[effect_type].tick():
                    del effects[effect_type]
                    expired.append((fighter_id, effect_type))
        decay = float(load_rule_set("effects")["momentum"]["decay_per_tick"])
        if self.momentum > 0:
            self.momentum = max(0.0, self.momentum - decay)
        elif self.momentum < 0:
            self.momentum = min(0.0, self.momentum + decay)
        return expired

    def reset_for_round(self, round_number: int) -> None:
        """Clear round-scoped effects and hand both corners fresh legs."""
        for effects in self.effects.values():
            for effect_type in [key for key, effect in effects.items() if effect.round_scoped]:
                del effects[effect_type]
        for fighter_id in FIGHTER_IDS:
            self.apply_effect(fighter_id, "fresh_legs", intensity=0.3, duration=12, source="new_round")
            self._jab_streaks[fighter_id] = 0
        self.update_fast_start_for_round(round_number)

    # -- queries -----------------------------------------------------------

    def get_modifier(self, fighter_id: str, key: str) -> float:
        limit = float(load_rule_set("effects")["modifier_limit"])
        total = sum(effect.modifier(key) for effect in self._effects_for(fighter_id).values())
        return clamp_float(total, -limit, limit)

    def get_aggression_modifier(self, fighter_id: str) -> float:
        return self.get_modifier(fighter_id, "aggression")

    def get_defense_modifier(self, fighter_id: str) -> float:
        return self.get_modifier(fighter_id, "defense")

    def get_accuracy_modifier(self, fighter_id: str) -> float:
        return self.get_modifier(fighter_id, "accuracy")

    def get_power_modifier(self, fighter_id: str) -> float:
        return self.get_modifier(fighter_id, "power")

    def get_speed_modifier(self, fighter_id: str) -> float:
        return self.get_modifier(fighter_id, "speed")

    def attribute_modifiers(self, fighter_id: str) -> dict[str, float]:
        return {key: self.get_modifier(fighter_id, key) for key in ATTRIBUTE_MODIFIER_KEYS}

    def momentum_for(self, fighter_id: str) -> float:
        self._effects_for(fighter_id)
        return self.momentum if fighter_id == "A" else -self.momentum

    def get_effects_summary(self, fighter_id: str) -> dict[str, Any]:
        effects = self._effects_for(fighter_id).values()
        return {
            "buffs": [effect.to_dict() for effect in effects if effect.category == EffectCategory.BUFF],
            "debuffs": [effect.to_dict() for effect in effects if effect.category == EffectCategory.DEBUFF],
            "momentum": round(self.momentum_for(fighter_id), 2),
        }

    # -- momentum ----------------------------------------------------------

    def shift_momentum(self, toward: str, amount: float) -> None:
        """Move the shared meter by *amount* in *toward*'s favour."""
        self._effects_for(toward)
        signed = amount if toward == "A" else -amount
        self.momentum = clamp_float(self.momentum + signed, -MOMENTUM_LIMIT, MOMENTUM_LIMIT)
        threshold = float(load_rule_set("effects")["momentum"]["buff_threshold"])
        for fighter_id in FIGHTER_IDS:
            if self.momentum_for(fighter_id) >= threshold:
                self.apply_effect(fighter_id, "momentum", intensity=self.momentum_for(fighter_id) / MOMENTUM_LIMIT, source="momentum")
                self.remove_effect(other_fighter_id(fighter_id), "momentum")

    # -- triggers ----------------------------------------------------------

    def on_punch_landed(self, attacker_id: str, target_id: str, damage: float, punch_type: str) -> None:
        rules = load_rule_set("effects")
        weights = rules["momentum"]
        triggers = rules["triggers"]
        self.shift_momentum(attacker_id, float(weights["punch_landed"]))
        self.shift_momentum(target_id, float(weights["punch_received"]))

        self._jab_streaks[target_id] = 0
        if punch_type in ("jab", "body_jab"):
            self._jab_streaks[attacker_id] += 1
            if self._jab_streaks[attacker_id] >= int(triggers["rhythm_jab_streak"]):
                self.apply_effect(attacker_id, "rhythm", source="jab_streak")
                self._jab_streaks[attacker_id] = 0

        if damage >= float(triggers["heavy_punch"]) and self.rng.random() < float(triggers["rattled_chance"]):
            self.apply_effect(target_id, "rattled", source="heavy_punch")

    def on_fighter_hurt(self, hurt_id: str, attacker_id: str, hurt: Fighter, attacker: Fighter) -> None:
        triggers = load_rule_set("effects")["triggers"]
        if attacker.mental.killer_instinct >= int(triggers["killer_instinct_threshold"]):
            self.apply_effect(
                attacker_id, "killer_instinct",
                intensity=attacker.mental.killer_instinct / 100, source="opponent_hurt",
            )
        if hurt.mental.heart >= int(triggers["adrenaline_heart"]) and self.rng.random() < hurt.mental.heart / 200:
            self.apply_effect(hurt_id, "adrenaline_surge", source="hurt")
        else:
            self.apply_effect(hurt_id, "rattled", source="hurt")

    def on_knockdown(self, down_id: str, attacker_id: str) -> None:
        weights = load_rule_set("effects")["momentum"]
        self.shift_momentum(attacker_id, float(weights["knockdown_scored"]))
        self.shift_momentum(down_id, float(weights["knockdown_suffered"]))
        self.apply_effect(down_id, "shell_shocked", source="knockdown")
        self.apply_effect(attacker_id, "confidence_boost", source="knockdown")
        self.apply_effect(attacker_id, "crowd_energy", source="knockdown")

    def on_recovery(self, fighter_id: str, fighter: Fighter) -> None:
        triggers = load_rule_set("effects")["triggers"]
        if fighter.mental.heart >= int(triggers["recovery_adrenaline_heart"]):
            self.apply_effect(fighter_id, "adrenaline_surge", source="beat_the_count")
        else:
            self.apply_effect(fighter_id, "cautious", source="beat_the_count")

    def on_stamina_low(self, fighter_id: str, fighter: Fighter) -> None:
        threshold = float(load_rule_set("effects")["triggers"]["gassed_stamina"])
        if fighter.get_stamina_percent() < threshold and not self.has_effect(fighter_id, "gassed"):
            self.apply_effect(fighter_id, "gassed", source="low_stamina")

    def on_behind_on_cards(self, fighter_id: str, score_diff: float, round_number: int, total_rounds: int) -> None:
        triggers = load_rule_set("effects")["triggers"]
        if score_diff <= float(triggers["desperate_deficit"]) and round_number >= total_rounds - 2:
            self.apply_effect(fighter_id, "desperate", source="behind_on_cards")

    def on_domination(self, fighter_id: str, own: FighterRoundStats, opponent: FighterRoundStats) -> None:
        triggers = load_rule_set("effects")["triggers"]
        if own.punches_landed < int(triggers["domination_min_landed"]):
            return
        if own.punches_landed >= float(triggers["domination_ratio"]) * max(1, opponent.punches_landed):
            self.apply_effect(fighter_id, "confidence_boost", source="domination")
            self.apply_effect(other_fighter_id(fighter_id), "demoralized", source="dominated")

    def on_cut_opened(self, fighter_id: str, cut: Cut) -> None:
        if cut.near_eye:
            self.apply_effect(fighter_id, "vision_impaired", intensity=min(1.0, cut.severity / 2), source=cut.location)

    def on_intimidation(
        self,
        intimidator_id: str,
        intimidator: Fighter,
        target_id: str,
        target: Fighter,
    ) -> bool:
        """Stare-down before the first bell; returns ``True`` if *target* freezes."""
        params = load_rule_set("effects")["intimidation"]
        self._effects_for(intimidator_id)
        resistance = target.mental.heart + target.mental.experience * float(params["experience_weight"])
        gap = intimidator.mental.intimidation - resistance
        if gap <= 0:
            return False
        strength = min(1.0, gap / float(params["gap_scale"]))
        chance = float(params["chance_base"]) + intimidator.mental.intimidation / float(params["chance_divisor"])
        if self.rng.random() >= chance:
            return False
        duration = float(params["base_ticks"]) + strength * float(params["ticks_per_strength"])
        self.apply_effect(target_id, "frozen", intensity=strength, duration=duration, source="intimidation")
        return True

    def check_second_wind(self, fighter_id: str, fighter: Fighter, round_number: int, total_rounds: int) -> bool:
        params = load_rule_set("effects")["second_wind"]
        self._effects_for(fighter_id)
        if fighter_id in self.second_wind_used:
            return False
        if round_number < total_rounds - int(params["final_rounds"]) + 1:
            return False
        if fighter.get_stamina_percent() >= float(params["max_stamina"]):
            return False
        if self.rng.random() >= fighter.stamina.second_wind / float(params["divisor"]):
            return False
        self.second_wind_used.add(fighter_id)
        fighter.recover_stamina(fighter.max_stamina * float(params["restore_fraction"]))
        self.remove_effect(fighter_id, "gassed")
        self.apply_effect(fighter_id, "second_wind", source="late_rounds")
        return True

    def check_focus_lapse(self, fighter_id: str, fighter: Fighter) -> bool:
        params = load_rule_set("effects")["focus_lapse"]
        if self.has_effect(fighter_id, "focus_lapse"):
            return False
        chance = max(float(params["floor"]), (100 - fighter.mental.focus) / float(params["divisor"]))
        chance *= 1 + (1 - fighter.get_stamina_percent())
        if self.rng.random() >= chance:
            return False
        duration = self.rng.randint(int(params["min_ticks"]), int(params["max_ticks"]))
        self.apply_effect(fighter_id, "focus_lapse", duration=duration, source="focus")
        return True

    def apply_big_fight_mentality(self, fighter_id: str, fighter: Fighter, opponent: Fighter) -> bool:
        params = load_rule_set("effects")["big_fight"]
        self._effects_for(fighter_id)
        rating = (
            opponent.mental.chin
            + opponent.mental.heart
            + opponent.power.knockout_power
            + opponent.technical.fight_iq
            + opponent.mental.experience
        ) / 5
        if rating < float(params["opponent_rating"]) or fighter.mental.clutch_factor < int(params["clutch"]):
            return False
        intensity = float(params["base_intensity"]) + (fighter.mental.clutch_factor - int(params["clutch"])) / float(params["clutch_span"])
        self.apply_effect(fighter_id, "big_fight_mentality", intensity=min(1.5, intensity), source="big_fight")
        return True

    def apply_fast_start(self, fighter_id: str, fighter: Fighter) -> bool:
        threshold = float(load_rule_set("effects")["fast_start"]["threshold"])
        self._effects_for(fighter_id)
        if (fighter.speed.first_step + fighter.mental.killer_instinct) / 2 < threshold:
            return False
        self.apply_effect(fighter_id, "fast_start", source="explosive_style")
        return True

    def update_fast_start_for_round(self, round_number: int) -> None:
        for effects in self.effects.values():
            effect = effects.get("fast_start")
            if effect is None:
                continue
            if round_number > FAST_START_LAST_ROUND:
                del effects["fast_start"]
            else:
                effect.intensity = (FAST_START_LAST_ROUND + 1 - round_number) / FAST_START_LAST_ROUND
