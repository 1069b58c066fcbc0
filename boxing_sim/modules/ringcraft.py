"""Attribute-driven collaborators for the fight orchestrator.

These are the default decision source, combat resolver, damage calculator,
stamina manager and position tracker used by ``build_simulation``.  They read
the modified attribute snapshot each fighter carries for the tick, so fatigue
and effects are already folded in.  Weights come from ``rules/ringcraft.json``.
"""

from __future__ import annotations

import logging
import math
import random
from typing import TYPE_CHECKING, Any

from boxing_sim.models import (
    ActionType,
    DefensiveSubState,
    FighterState,
    MovementSubState,
    OffensiveSubState,
    PunchType,
    other_fighter_id,
)
from boxing_sim.modules.contracts import (
    Action,
    Block,
    CombatResult,
    Decision,
    Evade,
    Hit,
    KnockdownRequest,
    Miss,
)
from boxing_sim.modules.effects_engine import EffectsEngine
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.rules_registry import load_rule_set
from boxing_sim.utils import clamp_float

if TYPE_CHECKING:
    from boxing_sim.modules.fight import Fight

logger = logging.getLogger(__name__)

REAR_HAND_PUNCHES = frozenset({
    PunchType.CROSS,
    PunchType.REAR_HOOK,
    PunchType.REAR_UPPERCUT,
    PunchType.BODY_CROSS,
    PunchType.BODY_HOOK_REAR,
})
STRAIGHT_PUNCHES = frozenset({PunchType.JAB, PunchType.CROSS, PunchType.BODY_JAB, PunchType.BODY_CROSS})
COUNTER_PUNCHES = (PunchType.CROSS, PunchType.REAR_HOOK, PunchType.LEAD_HOOK)


def _rules() -> dict[str, Any]:
    return load_rule_set("ringcraft")


def punch_profile(punch_type: PunchType) -> dict[str, float]:
    return {key: float(value) for key, value in _rules()["punches"][punch_type.value].items()}


def _first_below(value: float, table: list[list[float]], default: float = 1.0) -> float:
    for threshold, factor in table:
        if value < float(threshold):
            return float(factor)
    return default


def _first_at_least(value: float, table: list[list[float]], default: float = 1.0) -> float:
    for threshold, factor in table:
        if value >= float(threshold):
            return float(factor)
    return default


def _weighted_choice(weights: dict[str, float], rng: random.Random) -> PunchType:
    names = list(weights)
    picked = rng.choices(names, weights=[float(weights[name]) for name in names], k=1)[0]
    return PunchType(picked)


# ---------------------------------------------------------------------------
# Position
# ---------------------------------------------------------------------------

class BasicPositionTracker:
    """Two fighters on a square canvas centred on the origin.

    Positions are metres; the ropes sit at ``half_size`` on each axis.
    """

    def __init__(self, start_distance: float | None = None) -> None:
        ring = _rules()["ring"]
        self.half_size = float(ring["half_size"])
        distance = float(ring["start_distance"]) if start_distance is None else float(start_distance)
        self.positions: dict[str, list[float]] = {
            "A": [-distance / 2, 0.0],
            "B": [distance / 2, 0.0],
        }
        self._clamp()

    def _clamp(self) -> None:
        for position in self.positions.values():
            position[0] = clamp_float(position[0], -self.half_size, self.half_size)
            position[1] = clamp_float(position[1], -self.half_size, self.half_size)

    def _axis(self) -> tuple[float, float]:
        """Unit vector from A toward B."""
        ax, ay = self.positions["A"]
        bx, by = self.positions["B"]
        dx, dy = bx - ax, by - ay
        length = math.hypot(dx, dy)
        if length == 0:
            return 1.0, 0.0
        return dx / length, dy / length

    def _step_size(self, fighter: Fighter, tick_rate: float) -> float:
        ring = _rules()["ring"]
        speed = float(ring["speed_base"]) + fighter.effective("speed", "foot_speed") / float(ring["foot_speed_divisor"])
        return float(ring["step"]) * speed * tick_rate

    def _velocity(self, fighter_id: str, fighter: Fighter, decision: Decision, tick_rate: float) -> tuple[float, float]:
        ring = _rules()["ring"]
        ux, uy = self._axis()
        if fighter_id == "B":
            ux, uy = -ux, -uy
        step = self._step_size(fighter, tick_rate)
        state, sub_state = fighter.state, decision.sub_state

        if fighter.is_down:
            return 0.0, 0.0
        if state == FighterState.HURT:
            share = float(ring["hurt_retreat_share"])
            return -ux * step * share, -uy * step * share
        if sub_state == MovementSubState.CUTTING_OFF:
            x, y = self.positions[fighter_id]
            pull = float(ring["cut_off_center_pull"])
            return ux * step - x * pull * step, uy * step - y * pull * step
        if state == FighterState.OFFENSIVE or sub_state == MovementSubState.ADVANCING:
            return ux * step, uy * step
        if sub_state in (MovementSubState.RETREATING, DefensiveSubState.DISTANCE):
            return -ux * step, -uy * step
        if sub_state in (MovementSubState.CIRCLING, MovementSubState.LATERAL):
            sign = 1.0 if fighter_id == "A" else -1.0
            return -uy * step * sign, ux * step * sign
        return 0.0, 0.0

    def update(
        self,
        fighter_a: Fighter,
        fighter_b: Fighter,
        decision_a: Decision,
        decision_b: Decision,
        tick_rate: float,
    ) -> None:
        ring = _rules()["ring"]
        moves = {
            "A": self._velocity("A", fighter_a, decision_a, tick_rate),
            "B": self._velocity("B", fighter_b, decision_b, tick_rate),
        }
        for fighter_id, (dx, dy) in moves.items():
            self.positions[fighter_id][0] += dx
            self.positions[fighter_id][1] += dy
        self._clamp()

        clinched = FighterState.CLINCH in (fighter_a.state, fighter_b.state)
        floor = float(ring["clinch_distance"]) if clinched else float(ring["min_distance"])
        if clinched or self.get_distance() < floor:
            self._set_gap(floor)

    def _set_gap(self, distance: float) -> None:
        ax, ay = self.positions["A"]
        bx, by = self.positions["B"]
        mx, my = (ax + bx) / 2, (ay + by) / 2
        ux, uy = self._axis()
        half = distance / 2
        self.positions["A"] = [mx - ux * half, my - uy * half]
        self.positions["B"] = [mx + ux * half, my + uy * half]
        self._clamp()

    def get_distance(self) -> float:
        ax, ay = self.positions["A"]
        bx, by = self.positions["B"]
        return math.hypot(bx - ax, by - ay)

    def is_on_ropes(self, fighter_id: str) -> bool:
        x, y = self.positions[fighter_id]
        edge = self.half_size - float(_rules()["ring"]["rope_margin"])
        return max(abs(x), abs(y)) >= edge

    def is_in_corner(self, fighter_id: str) -> bool:
        x, y = self.positions[fighter_id]
        edge = self.half_size - float(_rules()["ring"]["corner_margin"])
        return min(abs(x), abs(y)) >= edge

    def get_center_control(self) -> str | None:
        radius = float(_rules()["ring"]["center_radius"])
        inside = [fid for fid, (x, y) in self.positions.items() if math.hypot(x, y) <= radius]
        return inside[0] if len(inside) == 1 else None

    def separate_fighters(self, distance: float) -> None:
        """Referee restart: both fighters placed about the ring centre."""
        ux, uy = self._axis()
        half = max(0.0, float(distance)) / 2
        self.positions["A"] = [-ux * half, -uy * half]
        self.positions["B"] = [ux * half, uy * half]
        self._clamp()


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------

class BasicDecisionSource:
    """Chooses a state, sub-state and action from attributes and the situation."""

    def __init__(
        self,
        rng: random.Random | None = None,
        position_tracker: BasicPositionTracker | None = None,
        effects: EffectsEngine | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.position_tracker = position_tracker
        self.effects = effects

    def _distance(self) -> float:
        if self.position_tracker is None:
            return float(_rules()["ring"]["start_distance"])
        return self.position_tracker.get_distance()

    def decide(self, fighter: Fighter, opponent: Fighter, fight: Fight) -> Decision:
        params = _rules()["decision"]
        rng = self.rng
        fighter_id = fight.id_of(fighter)
        distance = self._distance()

        if fighter.is_down:
            return Decision(state=fighter.state, sub_state=fighter.sub_state)
        if fighter.is_hurt:
            return self._survive(fighter, distance)
        tired = fighter.get_stamina_percent() < float(params["tired_threshold"])
        if fighter.state == FighterState.CLINCH and (fighter.is_buzzed or tired):
            if rng.random() < float(params["clinch_hold_chance"]):
                return Decision(state=FighterState.CLINCH)
        if fighter.is_buzzed:
            return self._weather(fighter, distance)
        if tired and distance <= float(params["clinch_distance"]) and rng.random() < float(params["tired_clinch_chance"]):
            return Decision(state=FighterState.CLINCH, action=Action(ActionType.CLINCH))

        if distance > float(params["advance_distance"]):
            return self._close_distance(fighter)
        if rng.random() < self.activity(fighter_id, fighter, opponent):
            return self._attack(fighter, opponent, distance)
        if rng.random() < fighter.effective("offense", "counter_punching") / float(params["counter_divisor"]):
            return Decision(state=FighterState.TIMING)
        return self._defend(fighter_id, fighter, distance)

    def activity(self, fighter_id: str, fighter: Fighter, opponent: Fighter) -> float:
        """Per-tick chance of opening up."""
        params = _rules()["decision"]
        chance = float(params["activity_base"])
        chance += fighter.effective("stamina", "work_rate") / float(params["work_rate_divisor"])
        if self.effects is not None:
            chance += self.effects.get_aggression_modifier(fighter_id) / float(params["aggression_divisor"])
        if opponent.is_hurt or opponent.is_buzzed:
            chance += fighter.effective("mental", "killer_instinct") / float(params["finish_instinct_divisor"])
        if fighter.get_stamina_percent() < float(params["tired_threshold"]):
            chance *= float(params["tired_activity"])
        return clamp_float(chance, 0.0, 1.0)

    def select_punch(self, distance: float, body_attack: bool = False) -> PunchType:
        selection = _rules()["selection"]
        if body_attack:
            table = selection["body_attack"]
        elif distance > float(selection["long_distance"]):
            table = selection["long"]
        elif distance < float(selection["close_distance"]):
            table = selection["close"]
        else:
            table = selection["mid"]
        return _weighted_choice(table, self.rng)

    def _attack(self, fighter: Fighter, opponent: Fighter, distance: float) -> Decision:
        params = _rules()["decision"]
        rng = self.rng
        if opponent.is_hurt or opponent.is_buzzed:
            sub_state = OffensiveSubState.PRESSURE
        elif rng.random() < fighter.effective("power", "body_punching") / float(params["body_attack_divisor"]):
            sub_state = OffensiveSubState.BODY_ATTACK
        elif rng.random() < fighter.effective("offense", "combination_punching") / float(params["combination_divisor"]):
            sub_state = OffensiveSubState.COMBINATION
        elif rng.random() < fighter.effective("offense", "feinting") / float(params["feint_divisor"]):
            return Decision(
                state=FighterState.OFFENSIVE,
                sub_state=OffensiveSubState.FEINTING,
                action=Action(ActionType.FEINT),
            )
        else:
            sub_state = OffensiveSubState.PRESSURE
        punch = self.select_punch(distance, body_attack=sub_state == OffensiveSubState.BODY_ATTACK)
        return Decision(
            state=FighterState.OFFENSIVE,
            sub_state=sub_state,
            action=Action(ActionType.PUNCH, punch_type=punch),
        )

    def _defend(self, fighter_id: str, fighter: Fighter, distance: float) -> Decision:
        params = _rules()["decision"]
        tracker = self.position_tracker
        if tracker is not None and tracker.is_on_ropes(fighter_id):
            return Decision(
                state=FighterState.MOVING,
                sub_state=MovementSubState.LATERAL,
                action=Action(ActionType.MOVE, direction="lateral"),
            )
        if self.rng.random() < float(params["circle_chance"]):
            if fighter.technical.outside_fighting > fighter.technical.inside_fighting:
                if distance < float(_rules()["selection"]["close_distance"]):
                    return Decision(
                        state=FighterState.MOVING,
                        sub_state=MovementSubState.RETREATING,
                        action=Action(ActionType.MOVE, direction="backward"),
                    )
                return Decision(state=FighterState.MOVING, sub_state=MovementSubState.CIRCLING)
            return Decision(state=FighterState.MOVING, sub_state=MovementSubState.CUTTING_OFF)
        return Decision(state=FighterState.DEFENSIVE, sub_state=self._guard(fighter))

    def _guard(self, fighter: Fighter) -> DefensiveSubState:
        params = _rules()["decision"]
        if fighter.defense.shoulder_roll >= int(params["shell_threshold"]):
            return DefensiveSubState.PHILLY_SHELL
        if fighter.defense.head_movement >= int(params["head_movement_threshold"]):
            return DefensiveSubState.HEAD_MOVEMENT
        if fighter.defense.parrying > fighter.defense.blocking:
            return DefensiveSubState.PARRYING
        return DefensiveSubState.HIGH_GUARD

    def _close_distance(self, fighter: Fighter) -> Decision:
        divisor = float(_rules()["decision"]["cut_off_divisor"])
        if self.position_tracker is not None and self.rng.random() < fighter.technical.ring_generalship / divisor:
            return Decision(state=FighterState.MOVING, sub_state=MovementSubState.CUTTING_OFF)
        return Decision(
            state=FighterState.MOVING,
            sub_state=MovementSubState.ADVANCING,
            action=Action(ActionType.MOVE, direction="forward"),
        )

    def _survive(self, fighter: Fighter, distance: float) -> Decision:
        params = _rules()["decision"]
        if distance <= float(params["clinch_distance"]) and self.rng.random() < float(params["hurt_clinch_chance"]):
            return Decision(state=FighterState.CLINCH, action=Action(ActionType.CLINCH))
        return Decision(state=FighterState.HURT, action=Action(ActionType.MOVE, direction="backward"))

    def _weather(self, fighter: Fighter, distance: float) -> Decision:
        params = _rules()["decision"]
        roll = self.rng.random()
        if distance <= float(params["clinch_distance"]) and roll < float(params["hurt_clinch_chance"]):
            return Decision(state=FighterState.CLINCH, action=Action(ActionType.CLINCH))
        if roll < float(params["buzzed_guard_chance"]):
            return Decision(state=FighterState.BUZZED, sub_state=self._guard(fighter))
        return Decision(
            state=FighterState.MOVING,
            sub_state=MovementSubState.RETREATING,
            action=Action(ActionType.MOVE, direction="backward"),
        )


# ---------------------------------------------------------------------------
# Exchanges
# ---------------------------------------------------------------------------

class BasicCombatResolver:
    """Resolves thrown punches into hits, misses, blocks and evasions."""

    def __init__(
        self,
        rng: random.Random | None = None,
        position_tracker: BasicPositionTracker | None = None,
    ) -> None:
        self.rng = rng or random.Random()
        self.position_tracker = position_tracker

    def _distance(self) -> float:
        if self.position_tracker is None:
            return float(_rules()["ring"]["start_distance"])
        return self.position_tracker.get_distance()

    # -- chances -------------------------------------------------------------

    def accuracy(
        self,
        attacker: Fighter,
        defender: Fighter,
        punch_type: PunchType,
        *,
        distance: float,
        is_counter: bool = False,
    ) -> float:
        params = _rules()["accuracy"]
        profile = punch_profile(punch_type)
        if punch_type.is_jab:
            skill = attacker.effective("offense", "jab_accuracy")
        elif punch_type.is_body:
            skill = attacker.effective("offense", "body_accuracy")
        else:
            skill = attacker.effective("offense", "power_accuracy")

        chance = profile["accuracy"]
        chance *= float(params["skill_base"]) + skill / float(params["skill_divisor"])
        chance *= float(params["hand_speed_base"]) + attacker.effective("speed", "hand_speed") / float(params["hand_speed_divisor"])
        range_mod = 1 - abs(distance - profile["range"]) * float(params["range_penalty"])
        chance *= max(float(params["range_floor"]), range_mod)
        if is_counter:
            skill = attacker.effective("offense", "counter_punching") - float(params["counter_pivot"])
            chance *= float(params["counter_multiplier"]) + skill / float(params["counter_skill_divisor"])
        if defender.state == FighterState.MOVING:
            chance *= float(params["moving_target"])
        chance *= defender.get_total_vulnerability()
        return clamp_float(chance, 0.0, 0.95)

    def evade_chance(self, defender: Fighter, decision: Decision, punch_type: PunchType) -> float:
        params = _rules()["defense"]
        if defender.state in (FighterState.CLINCH, FighterState.HURT) or defender.is_down:
            return 0.0
        chance = float(params["evade_base"])
        chance += defender.effective("defense", "head_movement") / float(params["head_movement_divisor"])
        chance += defender.effective("speed", "reflexes") / float(params["reflexes_divisor"])
        if punch_type.is_body:
            chance *= float(params["body_evade_multiplier"])
        elif punch_type not in STRAIGHT_PUNCHES:
            chance *= float(params["inside_punch_evade_multiplier"])
        if decision.sub_state in (DefensiveSubState.HEAD_MOVEMENT, DefensiveSubState.DISTANCE):
            chance *= float(params["head_movement_state_bonus"])
        if defender.get_stamina_percent() < float(params["tired_evade_threshold"]):
            chance *= float(params["tired_evade_multiplier"])
        chance /= defender.get_total_vulnerability()
        return clamp_float(chance, 0.0, float(params["evade_max"]))

    def block_chance(self, defender: Fighter, decision: Decision, punch_type: PunchType) -> tuple[float, str]:
        """Chance of a full block and the technique that would make it."""
        params = _rules()["defense"]
        if defender.is_down:
            return 0.0, "guard"
        guarding = defender.state in (FighterState.DEFENSIVE, FighterState.BUZZED)
        chance = float(params["guarding_block_base"] if guarding else params["block_base"])
        technique = "guard"
        sub_state = decision.sub_state
        straight = punch_type in STRAIGHT_PUNCHES
        if sub_state == DefensiveSubState.HIGH_GUARD:
            technique = "high_guard"
            chance += float(params["high_guard_bonus"])
            if punch_type.is_body:
                chance -= float(params["high_guard_body_penalty"])
        elif sub_state == DefensiveSubState.PHILLY_SHELL:
            technique = "shoulder_roll"
            chance += float(params["shell_straight_bonus"] if straight else params["shell_hook_bonus"])
        elif sub_state == DefensiveSubState.PARRYING and straight:
            if defender.effective("defense", "parrying") > float(params["parry_threshold"]):
                technique = "parry"
                chance += float(params["parry_bonus"])
        chance += defender.effective("defense", "blocking") / float(params["blocking_divisor"])
        chance /= defender.get_total_vulnerability()
        return clamp_float(chance, 0.0, 0.9), technique

    def raw_damage(self, attacker: Fighter, punch_type: PunchType, *, is_counter: bool = False) -> float:
        params = _rules()["damage"]
        low, high = params["variance"]
        hand = "power_right" if punch_type in REAR_HAND_PUNCHES else "power_left"
        damage = punch_profile(punch_type)["damage"] * self.rng.uniform(float(low), float(high))
        damage *= float(params["power_base"]) + attacker.effective("power", hand) / float(params["power_divisor"])
        if punch_type.is_body:
            damage *= float(params["body_punch_base"]) + attacker.effective("power", "body_punching") / float(params["body_punch_divisor"])
        if not punch_type.is_jab and attacker.power.knockout_power >= int(params["elite_power_threshold"]):
            damage *= float(params["elite_power_bonus"])
        if is_counter:
            damage *= float(params["counter_bonus"])
        return round(damage, 2)

    # -- resolution ----------------------------------------------------------

    def resolve_punch(
        self,
        attacker_id: str,
        attacker: Fighter,
        defender: Fighter,
        defender_decision: Decision,
        punch_type: PunchType,
        *,
        is_counter: bool = False,
    ) -> Hit | Miss | Block | Evade:
        target_id = other_fighter_id(attacker_id)
        rng = self.rng
        distance = self._distance()
        if rng.random() >= self.accuracy(attacker, defender, punch_type, distance=distance, is_counter=is_counter):
            return Miss(attacker_id, target_id, punch_type)
        if rng.random() < self.evade_chance(defender, defender_decision, punch_type):
            technique = "slip" if punch_type in STRAIGHT_PUNCHES else "roll"
            return Evade(attacker_id, target_id, punch_type, technique)

        location = "body" if punch_type.is_body else "head"
        block, technique = self.block_chance(defender, defender_decision, punch_type)
        roll = rng.random()
        if roll < block:
            return Block(attacker_id, target_id, punch_type, technique)
        damage = self.raw_damage(attacker, punch_type, is_counter=is_counter)
        defense = _rules()["defense"]
        if roll < block + float(defense["partial_window"]):
            return Hit(
                attacker_id, target_id, punch_type, location,
                round(damage * float(defense["partial_multiplier"]), 2),
                quality="partial", is_counter=is_counter,
            )
        return Hit(attacker_id, target_id, punch_type, location, damage, quality="clean", is_counter=is_counter)

    def combination(self, attacker: Fighter, decision: Decision) -> list[PunchType]:
        if decision.action is None or decision.action.punch_type is None:
            return []
        punches = [decision.action.punch_type]
        if decision.sub_state != OffensiveSubState.COMBINATION:
            return punches
        selection = _rules()["selection"]
        speed = attacker.effective("speed", "combination_speed") / float(selection["combination_speed_pivot"])
        chance = float(selection["followup_chance"]) * speed
        while len(punches) <= int(selection["max_followups"]) and self.rng.random() < chance:
            followups = selection["combination_followups"].get(punches[-1].value) or ["jab"]
            punches.append(PunchType(self.rng.choice(followups)))
        return punches

    def resolve(
        self,
        fighter_a: Fighter,
        fighter_b: Fighter,
        decision_a: Decision,
        decision_b: Decision,
        fight: Fight,
    ) -> CombatResult:
        hits: list[Hit] = []
        misses: list[Miss] = []
        blocks: list[Block] = []
        evades: list[Evade] = []
        actions: list[Action] = []

        def record(outcome: Hit | Miss | Block | Evade) -> bool:
            if isinstance(outcome, Hit):
                hits.append(outcome)
                return False
            if isinstance(outcome, Miss):
                misses.append(outcome)
            elif isinstance(outcome, Block):
                blocks.append(outcome)
            else:
                evades.append(outcome)
            return True

        exchanges = (
            ("A", fighter_a, fighter_b, decision_a, decision_b),
            ("B", fighter_b, fighter_a, decision_b, decision_a),
        )
        for attacker_id, attacker, defender, decision, defense in exchanges:
            if decision.action is not None:
                actions.append(decision.action)
            if not decision.throws_punch or attacker.is_down or defender.is_down:
                continue
            is_counter = decision.action.is_counter
            avoided = False
            for punch in self.combination(attacker, decision):
                avoided = record(
                    self.resolve_punch(attacker_id, attacker, defender, defense, punch, is_counter=is_counter)
                ) or avoided

            countering = defense.state == FighterState.TIMING and defender.can_throw_punch(self.rng)
            params = _rules()["defense"]
            if avoided and countering and self.rng.random() < (
                defender.effective("offense", "counter_punching") / float(params["counter_chance_divisor"])
            ):
                punch = self.rng.choice(COUNTER_PUNCHES)
                actions.append(Action(ActionType.PUNCH, punch_type=punch, is_counter=True))
                record(self.resolve_punch(
                    other_fighter_id(attacker_id), defender, attacker, decision, punch, is_counter=True,
                ))

        knockdown = self.check_knockdown(hits, fight)
        return CombatResult(
            hits=hits, misses=misses, blocks=blocks, evades=evades, actions=actions, knockdown=knockdown,
        )

    def knockdown_threshold(self, defender: Fighter) -> float:
        params = _rules()["knockdown"]
        chin = defender.effective("mental", "chin")
        threshold = float(params["chin_base"]) + chin / float(params["chin_divisor"])
        damage = defender.get_head_damage_percent()
        if damage > float(params["damage_threshold"]):
            threshold *= 1 - (damage - float(params["damage_threshold"])) * float(params["damage_factor"])
        threshold *= _first_below(defender.get_stamina_percent(), params["stamina"])
        if damage < float(params["min_damage_percent"]):
            threshold *= float(params["fresh_multiplier"])
        return threshold

    def check_knockdown(self, hits: list[Hit], fight: Fight) -> KnockdownRequest | None:
        """At most one knockdown per tick, from the heaviest clean head shot."""
        params = _rules()["knockdown"]
        head_shots = [hit for hit in hits if hit.location == "head" and hit.is_clean]
        for hit in sorted(head_shots, key=lambda item: item.damage, reverse=True):
            defender = fight.get_fighter(hit.target)
            if defender.is_down or hit.damage < self.knockdown_threshold(defender):
                continue
            resist = defender.effective("mental", "chin") / float(params["resist_chin_divisor"])
            chance = max(float(params["resist_floor"]), 1 - resist) * defender.get_total_vulnerability()
            if self.rng.random() >= chance:
                return None
            flash = hit.damage < float(params["flash_damage"]) and self.rng.random() < float(params["flash_share"])
            logger.debug("Knockdown on %s from %s (%.2f)", hit.target, hit.punch_type.value, hit.damage)
            return KnockdownRequest(hit.attacker, hit.target, hit.punch_type, hit.damage, flash=flash)
        return None


# ---------------------------------------------------------------------------
# Damage and stamina
# ---------------------------------------------------------------------------

class BasicDamageCalculator:
    def __init__(self, rng: random.Random | None = None) -> None:
        self.rng = rng or random.Random()

    def resistance(self, target: Fighter) -> float:
        params = _rules()["damage"]["resistance"]
        value = target.effective("defense", "blocking") / float(params["blocking_divisor"])
        value += target.mental.experience / float(params["experience_divisor"])
        value += float(params["body_types"].get(target.body_type, 0.0))
        return clamp_float(value, 0.0, float(params["max"]))

    def calculate_damage(self, hit: Hit, attacker: Fighter, target: Fighter) -> float:
        params = _rules()["damage"]
        damage = hit.damage * (1 - self.resistance(target))
        if hit.location == "head":
            chin = target.effective("mental", "chin")
            damage *= 1 + (float(params["chin_pivot"]) - chin) * float(params["chin_factor"])
        stamina = attacker.get_stamina_percent()
        threshold = float(params["stamina_threshold"])
        if stamina < threshold:
            damage *= 1 - (threshold - stamina) * (1 - attacker.power.punching_stamina / 100)
        return max(float(params["minimum"]), round(damage, 1))

    def hurt_chance(self, target: Fighter, damage: float) -> float:
        params = _rules()["hurt"]
        head_damage = target.get_head_damage_percent()
        threshold = float(params["head_threshold"]) * (1 - head_damage * float(params["damage_relief"]))
        if damage < threshold:
            return 0.0
        chance = float(params["base_chance"]) + (damage / threshold - 1) * float(params["ratio_scaling"])
        chance *= 1 - (target.effective("mental", "chin") - float(params["chin_pivot"])) / 100 * float(params["chin_factor"])
        chance *= 1 - (target.effective("mental", "composure") - float(params["composure_pivot"])) / float(params["composure_divisor"])
        if head_damage > float(params["damage_threshold"]):
            chance *= float(params["damage_base"]) + (head_damage - float(params["damage_threshold"])) * float(params["damage_multiplier"])
        chance *= _first_below(target.get_stamina_percent(), params["stamina"])
        return clamp_float(chance, float(params["min"]), float(params["max"]))

    def check_hurt(self, target: Fighter, damage: float) -> bool:
        chance = self.hurt_chance(target, damage)
        return chance > 0 and self.rng.random() < chance


class BasicStaminaManager:
    def update(self, fighter: Fighter, decision: Decision, tick_rate: float) -> None:
        params = _rules()["stamina"]
        state = fighter.state.value
        cost = float(params["state_costs"].get(state, 0.0)) * tick_rate
        if cost > 0:
            fighter.spend_stamina(cost)
        if state in params["recovery_states"]:
            rate = float(params["recovery_per_second"]) * tick_rate
            rate *= 0.5 + fighter.stamina.recovery_rate / 100
            rate *= _first_at_least(fighter.get_stamina_percent(), params["ceiling"])
            fighter.recover_stamina(rate)

    def calculate_hit_stamina_cost(self, attacker: Fighter, punch_type: PunchType) -> float:
        params = _rules()["stamina"]
        cost = punch_profile(punch_type)["stamina"] * float(params["punch_scale"])
        return cost * (1 - attacker.power.punching_stamina / float(params["punching_stamina_divisor"]))

    def calculate_miss_stamina_cost(self, attacker: Fighter, punch_type: PunchType) -> float:
        return self.calculate_hit_stamina_cost(attacker, punch_type) * float(_rules()["stamina"]["miss_multiplier"])


def ringcraft_collaborators(
    rng: random.Random | None = None,
    effects: EffectsEngine | None = None,
) -> dict[str, Any]:
    """Keyword arguments for ``FightSimulation`` sharing one tracker and engine."""
    randomizer = rng or random.Random()
    engine = effects or EffectsEngine(randomizer)
    tracker = BasicPositionTracker()
    return {
        "decision_source": BasicDecisionSource(randomizer, tracker, engine),
        "combat_resolver": BasicCombatResolver(randomizer, tracker),
        "damage_calculator": BasicDamageCalculator(randomizer),
        "stamina_manager": BasicStaminaManager(),
        "position_tracker": tracker,
        "effects": engine,
    }
