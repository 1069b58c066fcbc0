"""Tick orchestrator and real-time driver.

``FightSimulation.step()`` runs exactly one tick of the fight in a fixed
phase order and returns the events it produced.  It holds no timers:
``RealTimeDriver`` wraps the same ``step()`` with a cancellable delay so
batch and live runs give identical outcomes for the same seed.
"""

from __future__ import annotations

import logging
import math
import random
import threading
from typing import Any

from boxing_sim.constants import FIGHTER_IDS
from boxing_sim.models import (
    ActionType,
    EffectCategory,
    FightConfig,
    FighterState,
    FightResult,
    FightStatus,
    FoulConsequence,
    InvalidStateTransition,
    MovementSubState,
    RefereeCommandType,
    StatusModifier,
    StoppageType,
    default_judges,
    other_fighter_id,
)
from boxing_sim.modules.contracts import (
    CombatResolver,
    CombatResult,
    DamageCalculator,
    Decision,
    DecisionSource,
    FallbackStaminaManager,
    Hit,
    HoldStateDecisionSource,
    KnockdownRequest,
    NullCombatResolver,
    PassThroughDamageCalculator,
    PositionTracker,
    StaminaManager,
    StaticPositionTracker,
)
from boxing_sim.modules.effects_engine import EffectsEngine
from boxing_sim.modules.events import EventChannel, EventType, FightEvent
from boxing_sim.modules.fight import Fight
from boxing_sim.modules.fighter_state import Fighter, sub_state_allowed
from boxing_sim.modules.foul_policy import FoulOutcome, FoulPolicy, FoulSituation
from boxing_sim.modules.knockdown import resolve_knockdown
from boxing_sim.modules.referee_policy import Referee, StoppageSituation
from boxing_sim.modules.ringcraft import ringcraft_collaborators
from boxing_sim.modules.round_ledger import KnockdownRecord, Round
from boxing_sim.modules.stoppage import evaluate_tko
from boxing_sim.rules_registry import load_rule_set, rule_value

logger = logging.getLogger(__name__)

POST_KNOCKDOWN_MODIFIER = "post_knockdown"

_FORWARD_SUB_STATES = (MovementSubState.ADVANCING, MovementSubState.CUTTING_OFF)
_BACKWARD_SUB_STATES = (MovementSubState.RETREATING,)
_HURT_ALLOWED = frozenset({FighterState.HURT, FighterState.CLINCH})


class FightSimulation:
    def __init__(
        self,
        fight: Fight,
        *,
        decision_source: DecisionSource | None = None,
        combat_resolver: CombatResolver | None = None,
        damage_calculator: DamageCalculator | None = None,
        stamina_manager: StaminaManager | None = None,
        position_tracker: PositionTracker | None = None,
        effects: EffectsEngine | None = None,
        foul_policy: FoulPolicy | None = None,
        channel: EventChannel | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.fight = fight
        self.rng = rng or fight.rng
        self.decision_source = decision_source or HoldStateDecisionSource()
        self.combat_resolver = combat_resolver or NullCombatResolver()
        self.damage_calculator = damage_calculator or PassThroughDamageCalculator()
        self.stamina_manager = stamina_manager or FallbackStaminaManager()
        self.position_tracker = position_tracker or StaticPositionTracker()
        self.effects = effects or EffectsEngine(self.rng)
        self.fouls = foul_policy or FoulPolicy(fight.referee, self.rng)
        self.channel = channel or EventChannel()
        self.tick_rate = fight.config.tick_rate
        self.ticks = 0
        self.clinch_duration = 0.0
        self._just_separated = False
        self._just_knocked_down: set[str] = set()
        self._events: list[FightEvent] = []

    # -- events ------------------------------------------------------------

    def _now(self) -> tuple[int, float]:
        round_ = self.fight.current_round
        if round_ is None:
            return 0, 0.0
        return round_.number, round(round_.elapsed, 2)

    def _emit(self, event_type: EventType, **data: Any) -> FightEvent:
        number, elapsed = self._now()
        event = FightEvent(type=event_type, round=number, time=elapsed, data=data)
        self._events.append(event)
        round_ = self.fight.current_round
        if event_type != EventType.TICK and round_ is not None and not round_.is_complete:
            round_.add_event(event.to_dict())
        self.channel.publish(event)
        return event

    def _flush_effects(self) -> None:
        for applied in self.effects.drain_applied():
            self._emit(
                EventType.EFFECT_APPLIED,
                fighter=applied.fighter,
                effect=applied.effect,
                category=applied.category,
                source=applied.source,
            )

    def _collect(self) -> list[FightEvent]:
        events, self._events = self._events, []
        return events

    # -- lifecycle ---------------------------------------------------------

    def start(self) -> list[FightEvent]:
        """Open the bout: intro, pre-fight effects and the first bell."""
        fight = self.fight
        self._emit(
            EventType.FIGHT_START,
            fighters={fid: fighter.profile_dict() for fid, fighter in fight.fighters.items()},
            config=fight.config.to_dict(),
            referee=fight.referee.name,
            judges=[judge.name for judge in fight.judges],
        )
        for fighter_id in FIGHTER_IDS:
            other = other_fighter_id(fighter_id)
            self.effects.on_intimidation(fighter_id, fight.get_fighter(fighter_id), other, fight.get_fighter(other))
        for fighter_id in FIGHTER_IDS:
            fighter = fight.get_fighter(fighter_id)
            self.effects.apply_big_fight_mentality(fighter_id, fighter, fight.opponent_of(fighter_id))
            self.effects.apply_fast_start(fighter_id, fighter)

        round_ = fight.start()
        self._open_round(round_)
        return self._collect()

    def _open_round(self, round_: Round) -> None:
        self.clinch_duration = 0.0
        self._just_separated = False
        self._just_knocked_down.clear()
        self.effects.reset_for_round(round_.number)
        self._emit(EventType.ROUND_START, round=round_.number)
        self._flush_effects()

    def run(self) -> FightResult:
        """Batch mode: step until the fight is decided."""
        while not self.fight.is_over:
            self.step()
        if self.fight.result is None:
            raise InvalidStateTransition("Fight ended without a result.")
        return self.fight.result

    @property
    def result(self) -> FightResult | None:
        return self.fight.result

    # -- tick --------------------------------------------------------------

    def step(self) -> list[FightEvent]:
        """Run one tick and return the events it produced."""
        fight = self.fight
        if fight.is_over:
            return []
        if fight.status == FightStatus.NOT_STARTED:
            return self.start()
        if fight.status == FightStatus.BETWEEN_ROUNDS:
            self._open_round(fight.start_next_round())
            return self._collect()

        # 1. clock
        round_ = fight.current_round
        if round_ is None:
            raise InvalidStateTransition("No round is in progress.")
        self.ticks += 1
        if round_.tick(self.tick_rate):
            self._close_round(round_)
            return self._collect()
        self._just_knocked_down.clear()

        # 2. decisions
        for fighter_id, fighter in fight.fighters.items():
            fighter.update_modified_attributes(self.effects.attribute_modifiers(fighter_id))
        decisions = {
            fighter_id: self.decision_source.decide(fighter, fight.opponent_of(fighter_id), fight)
            for fighter_id, fighter in fight.fighters.items()
        }

        # 3. fouls
        if self._check_fouls(round_):
            return self._collect()

        # 4. transitions
        for fighter_id in FIGHTER_IDS:
            decisions[fighter_id] = self._apply_decision(fight.get_fighter(fighter_id), decisions[fighter_id])

        # 5. clinch
        self._check_clinch(round_)

        # 6. combat
        result = self.combat_resolver.resolve(
            fight.fighter_a, fight.fighter_b, decisions["A"], decisions["B"], fight,
        )

        # 7. hits, misses, blocks, evasions
        self._process_combat(round_, result)

        # 8. stamina and position
        self._update_stamina_and_position(round_, decisions)

        # 9. knockdown protocol
        if result.knockdown is not None and self._knockdown(round_, result.knockdown):
            return self._collect()

        # 10. stoppage
        if self._check_stoppages():
            return self._collect()

        # 11. decay
        self._decay()

        # 12. tick snapshot
        self._emit_tick()
        return self._collect()

    # -- phase helpers -----------------------------------------------------

    def _close_round(self, round_: Round) -> None:
        fight = self.fight
        scores = fight.end_round()
        self._emit(
            EventType.ROUND_END,
            round=round_.number,
            stats={fid: round_.stats[fid].to_dict() for fid in FIGHTER_IDS},
            scores={name: [score_a, score_b] for name, score_a, score_b in scores},
            rest=fight.config.rest_duration if not fight.is_over else 0.0,
        )
        if fight.is_over:
            self._emit_finish()
            return
        self.position_tracker.separate_fighters(float(rule_value("knockdown", "restart_distance")))
        for fighter_id in FIGHTER_IDS:
            self.effects.on_behind_on_cards(
                fighter_id,
                fight.estimated_score_diff(fighter_id),
                round_.number + 1,
                fight.config.rounds,
            )
            self.effects.on_domination(
                fighter_id,
                round_.stats[fighter_id],
                round_.stats[other_fighter_id(fighter_id)],
            )
        self._flush_effects()

    def _check_fouls(self, round_: Round) -> bool:
        """Roll foul attempts for both corners; ``True`` if one disqualified."""
        fight = self.fight
        distance = self.position_tracker.get_distance()
        just_separated, self._just_separated = self._just_separated, False
        for fighter_id, fighter in fight.fighters.items():
            if fighter.is_down:
                continue
            target_id = other_fighter_id(fighter_id)
            situation = FoulSituation(
                stamina_percent=fighter.get_stamina_percent(),
                distance=distance,
                round_number=round_.number,
                score_diff=fight.estimated_score_diff(fighter_id),
                is_hurt=fighter.is_hurt,
                is_buzzed=fighter.is_buzzed,
                just_separated=just_separated,
            )
            outcome = self.fouls.attempt(fighter_id, fighter, target_id, situation, self.tick_rate)
            if outcome is not None and self._apply_foul(round_, outcome):
                return True
        return False

    def _apply_foul(self, round_: Round, outcome: FoulOutcome) -> bool:
        fouler = self.fight.get_fighter(outcome.fouler)
        target = self.fight.get_fighter(outcome.target)
        self.fouls.apply_foul_effects(outcome, fouler, target)
        self._emit(
            EventType.FOUL,
            attacker=outcome.fouler,
            target=outcome.target,
            foul=outcome.foul_type,
            detected=outcome.detected,
            intentional=outcome.intentional,
            consequence=outcome.consequence,
            damage=outcome.damage,
        )
        if outcome.causes_cut:
            self._open_cut(outcome.target, target)
        if not outcome.detected:
            return False

        deducted = outcome.consequence == FoulConsequence.POINT_DEDUCTION
        round_.record_foul(outcome.fouler, point_deducted=deducted)
        if outcome.consequence == FoulConsequence.WARNING:
            self._command(RefereeCommandType.WARNING)
        elif deducted:
            self._command(RefereeCommandType.POINT)
            self._emit(
                EventType.POINT_DEDUCTION,
                fighter=outcome.fouler,
                reason=outcome.foul_type,
                total=self.fouls.deductions_for(outcome.fouler),
            )
        elif outcome.disqualifies:
            self._command(RefereeCommandType.STOP)
            self._finish(StoppageType.DISQUALIFICATION, outcome.target, f"disqualified_{outcome.foul_type.value}")
            return True
        return False

    def _apply_decision(self, fighter: Fighter, decision: Decision) -> Decision:
        """Apply the requested state change where the table allows it."""
        state = decision.state
        sub_state = decision.sub_state
        if not sub_state_allowed(state, sub_state):
            logger.debug("%s: dropping sub-state %s for %s", fighter.name, sub_state, state.value)
            sub_state = None
        if fighter.is_hurt and state not in _HURT_ALLOWED:
            state, sub_state = FighterState.HURT, None
        elif fighter.is_buzzed and state in (FighterState.DEFENSIVE, FighterState.NEUTRAL):
            state = FighterState.BUZZED
            if not sub_state_allowed(state, sub_state):
                sub_state = None

        if (state, sub_state) != (fighter.state, fighter.sub_state):
            if fighter.can_transition(state, sub_state):
                fighter.transition_to(state, sub_state)
            else:
                logger.debug("%s: rejected %s -> %s", fighter.name, fighter.state.value, state.value)

        action = decision.action
        if action is not None and action.type == ActionType.PUNCH and not fighter.can_throw_punch(self.rng):
            action = None
        return Decision(state=fighter.state, sub_state=fighter.sub_state, action=action)

    def _check_clinch(self, round_: Round) -> None:
        fight = self.fight
        holders = [fid for fid, fighter in fight.fighters.items() if fighter.state == FighterState.CLINCH]
        if not holders:
            if self.clinch_duration > 0:
                self.clinch_duration = 0.0
                fight.referee.reset_clinch()
            return

        if self.clinch_duration == 0:
            round_.record_clinch(holders[0], 0.0, initiated=True)
            tied_up = fight.get_fighter(other_fighter_id(holders[0]))
            if tied_up.state != FighterState.CLINCH and tied_up.can_transition(FighterState.CLINCH):
                tied_up.transition_to(FighterState.CLINCH)
        self.clinch_duration += self.tick_rate
        for fighter_id in FIGHTER_IDS:
            round_.record_clinch(fighter_id, self.tick_rate)

        call = fight.referee.check_clinch_break(self.clinch_duration, fight.fighter_a, fight.fighter_b, self.rng)
        if call is None:
            return
        self._emit(EventType.REFEREE_COMMAND, command=call.command.type, text=call.command.text, delay=call.delay)
        if call.command.type == RefereeCommandType.BREAK:
            for fighter in fight.fighters.values():
                if fighter.state == FighterState.CLINCH:
                    fighter.transition_to(FighterState.NEUTRAL)
            self.position_tracker.separate_fighters(
                float(rule_value("referees", "clinch.separation_distance"))
            )
            self.clinch_duration = 0.0
            self._just_separated = True

    def _process_combat(self, round_: Round, result: CombatResult) -> None:
        thrown = {fid: 0 for fid in FIGHTER_IDS}
        for hit in result.hits:
            thrown[hit.attacker] += 1
            self._apply_hit(round_, hit)
        for miss in result.misses:
            thrown[miss.attacker] += 1
            round_.record_miss(miss.attacker, miss.punch_type)
            attacker = self.fight.get_fighter(miss.attacker)
            attacker.spend_stamina(self.stamina_manager.calculate_miss_stamina_cost(attacker, miss.punch_type))
        for block in result.blocks:
            thrown[block.attacker] += 1
            round_.record_block(block.attacker, block.punch_type, block.technique)
            attacker = self.fight.get_fighter(block.attacker)
            attacker.spend_stamina(self.stamina_manager.calculate_hit_stamina_cost(attacker, block.punch_type))
        for evade in result.evades:
            thrown[evade.attacker] += 1
            round_.record_evade(evade.attacker, evade.punch_type, evade.technique)
            attacker = self.fight.get_fighter(evade.attacker)
            attacker.spend_stamina(self.stamina_manager.calculate_miss_stamina_cost(attacker, evade.punch_type))
        for fighter_id, count in thrown.items():
            if count >= 2:
                round_.record_combination(fighter_id)
        self._flush_effects()

    def _apply_hit(self, round_: Round, hit: Hit) -> None:
        attacker = self.fight.get_fighter(hit.attacker)
        target = self.fight.get_fighter(hit.target)
        if target.is_down:
            return
        damage = float(self.damage_calculator.calculate_damage(hit, attacker, target))
        if math.isnan(damage) or damage < 0:
            damage = 0.0
        target.take_damage(damage, hit.location)
        round_.record_hit(
            hit.attacker, hit.punch_type, hit.location, damage,
            clean=hit.is_clean, is_counter=hit.is_counter,
        )
        attacker.spend_stamina(self.stamina_manager.calculate_hit_stamina_cost(attacker, hit.punch_type))
        self._emit(
            EventType.PUNCH_LANDED,
            attacker=hit.attacker,
            target=hit.target,
            punch_type=hit.punch_type,
            location=hit.location,
            damage=round(damage, 2),
            quality=hit.quality,
            is_counter=hit.is_counter,
        )
        self.effects.on_punch_landed(hit.attacker, hit.target, damage, hit.punch_type.value)

        model = load_rule_set("fighter_model")
        cuts = model["cuts"]
        if hit.location == "head" and damage >= float(cuts["damage_threshold"]) and self.rng.random() < float(cuts["chance"]):
            self._open_cut(hit.target, target)

        if hit.caused_stun or damage >= float(model["stun"]["apply_threshold"]):
            target.apply_stun(damage, hit.punch_type.value)

        trigger = model["buzzed"]["trigger"]
        if (
            not target.is_hurt
            and hit.location == "head"
            and float(trigger["min_damage"]) <= damage < float(trigger["max_damage"])
        ):
            chance = (
                (damage - float(trigger["damage_offset"])) * float(trigger["per_damage"])
                + (1 - target.mental.chin / float(trigger["chin_divisor"]))
            )
            if self.rng.random() < chance:
                target.set_buzzed(damage, hit.punch_type.value)
                if target.buzzed is not None:
                    self._emit(
                        EventType.BUZZED,
                        fighter=hit.target,
                        severity=target.buzzed.severity,
                        duration=target.buzzed.duration,
                    )

        if self.damage_calculator.check_hurt(target, damage):
            hurt = model["hurt"]
            target.set_hurt(self.rng.uniform(float(hurt["min_seconds"]), float(hurt["max_seconds"])))
            if target.is_hurt:
                self._emit(EventType.HURT, fighter=hit.target, duration=round(target.hurt_duration, 2))
                self.effects.on_fighter_hurt(hit.target, hit.attacker, target, attacker)

    def _open_cut(self, fighter_id: str, fighter: Fighter) -> None:
        location = self.rng.choice(load_rule_set("fighter_model")["cuts"]["locations"])
        cut = fighter.add_cut(location, 1)
        self._emit(EventType.CUT, fighter=fighter_id, location=cut.location, severity=cut.severity)
        self.effects.on_cut_opened(fighter_id, cut)

    def _update_stamina_and_position(self, round_: Round, decisions: dict[str, Decision]) -> None:
        fight = self.fight
        for fighter_id, fighter in fight.fighters.items():
            self.stamina_manager.update(fighter, decisions[fighter_id], self.tick_rate)
        self.position_tracker.update(
            fight.fighter_a, fight.fighter_b, decisions["A"], decisions["B"], self.tick_rate,
        )
        center = self.position_tracker.get_center_control()
        for fighter_id in FIGHTER_IDS:
            round_.record_position(
                fighter_id,
                self.tick_rate,
                on_ropes=self.position_tracker.is_on_ropes(fighter_id),
                in_corner=self.position_tracker.is_in_corner(fighter_id),
                center_control=center == fighter_id,
            )
            direction = _movement_direction(decisions[fighter_id])
            if direction is not None:
                round_.record_movement(fighter_id, self.tick_rate, direction)

    def _knockdown(self, round_: Round, request: KnockdownRequest) -> bool:
        """Run the count; ``True`` when the knockdown ends the fight."""
        fight = self.fight
        attacker = fight.get_fighter(request.attacker)
        defender = fight.get_fighter(request.target)
        if defender.is_down:
            return False

        punch = request.punch_type.value if request.punch_type is not None else None
        if fight.config.three_knockdown_rule and defender.knockdowns_this_round + 1 >= 3:
            defender.clear_hurt()
            defender.clear_buzzed()
            defender.transition_to(FighterState.KNOCKED_DOWN)
            defender.record_knockdown()
            self._just_knocked_down.add(request.target)
            self._emit(EventType.KNOCKDOWN, fighter=request.target, attacker=request.attacker, punch=punch)
            round_.record_knockdown(KnockdownRecord(
                fighter=request.target,
                attacker=request.attacker,
                time=round_.elapsed,
                punch_type=punch,
                count=0,
                flash=False,
            ))
            self._command(RefereeCommandType.STOP)
            self._finish(StoppageType.TKO_THREE_KNOCKDOWNS, request.attacker, "three_knockdowns")
            return True

        outcome = resolve_knockdown(
            request, attacker, defender,
            mandatory_eight_count=fight.config.mandatory_eight_count,
            rng=self.rng,
        )
        params = load_rule_set("knockdown")
        defender.clear_hurt()
        defender.clear_buzzed()
        defender.transition_to(FighterState.FLASH_DOWN if outcome.flash else FighterState.KNOCKED_DOWN)
        defender.record_knockdown()
        defender.spend_stamina(defender.max_stamina * float(load_rule_set("fight")["knockdown_stamina_cost"]))
        self._just_knocked_down.add(request.target)

        self._emit(
            EventType.FLASH_KNOCKDOWN if outcome.flash else EventType.KNOCKDOWN,
            fighter=request.target,
            attacker=request.attacker,
            punch=punch,
        )
        self.effects.on_knockdown(request.target, request.attacker)
        self._flush_effects()
        for count in outcome.counts:
            self._emit(
                EventType.COUNT,
                fighter=request.target,
                count=count,
                is_ko=not outcome.recovered and count == outcome.final_count,
            )
        round_.record_knockdown(KnockdownRecord(
            fighter=request.target,
            attacker=request.attacker,
            time=round_.elapsed,
            punch_type=punch,
            count=outcome.final_count,
            flash=outcome.flash,
        ))

        if not outcome.recovered:
            self._finish(StoppageType.KO, request.attacker, "knockout")
            return True

        defender.transition_to(FighterState.RECOVERED)
        post = params["post_knockdown"]["flash" if outcome.flash else "regular"]
        defender.remove_modifier(POST_KNOCKDOWN_MODIFIER)
        defender.add_modifier(StatusModifier(
            name=POST_KNOCKDOWN_MODIFIER,
            category=EffectCategory.DEBUFF,
            modifiers={key: float(value) for key, value in post["modifiers"].items()},
            duration=float(post["ticks"]),
        ))
        self._emit(EventType.RECOVERY, fighter=request.target, count=outcome.final_count, flash=outcome.flash)
        self.effects.on_recovery(request.target, defender)
        if outcome.flash:
            defender.set_buzzed(float(params["flash_buzz_damage"]), punch)
            if defender.buzzed is not None:
                self._emit(
                    EventType.BUZZED,
                    fighter=request.target,
                    severity=defender.buzzed.severity,
                    duration=defender.buzzed.duration,
                )
        self.position_tracker.separate_fighters(float(params["restart_distance"]))
        self.clinch_duration = 0.0
        fight.referee.reset_clinch()
        self._flush_effects()
        return False

    def _check_stoppages(self) -> bool:
        fight = self.fight
        referee = fight.referee
        for fighter_id, fighter in fight.fighters.items():
            opponent_id = other_fighter_id(fighter_id)
            opponent = fight.get_fighter(opponent_id)
            check = evaluate_tko(
                fighter, opponent, referee,
                three_knockdown_rule=fight.config.three_knockdown_rule,
                just_knocked_down=fighter_id in self._just_knocked_down,
                rng=self.rng,
            )
            if check.should_stop and check.method is not None:
                self._command(RefereeCommandType.STOP)
                self._finish(check.method, opponent_id, check.reason)
                return True
            if not fighter.is_hurt:
                continue
            call = referee.check_stoppage(fighter, opponent, StoppageSituation(
                score_diff=fight.estimated_score_diff(fighter_id),
                punches_taken=opponent.round_stats.punches_landed,
                punches_landed=fighter.round_stats.punches_landed,
            ))
            if call.should_stop:
                self._command(RefereeCommandType.STOP)
                method = (
                    StoppageType.TKO_THREE_KNOCKDOWNS
                    if call.reason == "three_knockdowns" and fight.config.three_knockdown_rule
                    else StoppageType.TKO_REFEREE
                )
                self._finish(method, opponent_id, call.reason or "referee_stoppage")
                return True
        return False

    def _decay(self) -> None:
        fight = self.fight
        for fighter in fight.fighters.values():
            fighter.update_stun(self.tick_rate)
            fighter.update_buzzed(self.rng)
            fighter.update_modifiers()
        self.effects.tick()
        round_number = fight.current_round_number
        for fighter_id, fighter in fight.fighters.items():
            self.effects.on_stamina_low(fighter_id, fighter)
            self.effects.check_second_wind(fighter_id, fighter, round_number, fight.config.rounds)
            self.effects.check_focus_lapse(fighter_id, fighter)
        self._flush_effects()

    def _emit_tick(self) -> None:
        tracker = self.position_tracker
        self._emit(
            EventType.TICK,
            fighters={fid: fighter.snapshot() for fid, fighter in self.fight.fighters.items()},
            positions={
                "distance": round(tracker.get_distance(), 2),
                "on_ropes": {fid: tracker.is_on_ropes(fid) for fid in FIGHTER_IDS},
                "in_corner": {fid: tracker.is_in_corner(fid) for fid in FIGHTER_IDS},
                "center_control": tracker.get_center_control(),
            },
            momentum=round(self.effects.momentum, 2),
        )

    # -- endings -----------------------------------------------------------

    def _command(self, command: RefereeCommandType) -> None:
        issued = self.fight.referee.issue_command(command, self.rng)
        self._emit(EventType.REFEREE_COMMAND, command=issued.type, text=issued.text)

    def _finish(self, method: StoppageType, winner_id: str | None, reason: str) -> None:
        self.fight.stop_fight(method, winner_id, reason)
        self._emit_finish()

    def _emit_finish(self) -> None:
        result = self.fight.result
        if result is None:
            return
        self._emit(
            EventType.FIGHT_ENDING,
            winner=result.winner,
            method=result.method,
            is_ko=result.method == StoppageType.KO,
        )
        self._emit(
            EventType.FIGHT_END,
            winner=result.winner,
            winner_name=result.winner_name,
            method=result.method,
            round=result.round,
            time=round(result.time, 2),
            reason=result.reason,
            scorecards=[list(card) for card in result.scorecards],
        )


def _movement_direction(decision: Decision) -> str | None:
    action = decision.action
    if action is not None and action.type == ActionType.MOVE and action.direction in ("forward", "backward"):
        return action.direction
    if decision.sub_state in _FORWARD_SUB_STATES:
        return "forward"
    if decision.sub_state in _BACKWARD_SUB_STATES:
        return "backward"
    return None


# ---------------------------------------------------------------------------
# Real-time pacing
# ---------------------------------------------------------------------------

class InstantDelay:
    """Delay that never waits; batch runs through the driver."""

    def wait(self, seconds: float) -> bool:
        return True

    def cancel(self) -> None:
        return None


class ThreadingDelay:
    """Wall-clock delay that ``cancel()`` interrupts from any thread."""

    def __init__(self) -> None:
        self._cancelled = threading.Event()

    def wait(self, seconds: float) -> bool:
        """Sleep up to *seconds*; returns ``False`` if cancelled."""
        return not self._cancelled.wait(max(0.0, seconds))

    def cancel(self) -> None:
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()


class RealTimeDriver:
    def __init__(
        self,
        simulation: FightSimulation,
        delay: InstantDelay | ThreadingDelay | None = None,
        speed: float = 1.0,
    ) -> None:
        if speed <= 0:
            raise ValueError("Playback speed must be positive.")
        self.simulation = simulation
        self.delay = delay or ThreadingDelay()
        self.speed = float(speed)
        self._unpaused = threading.Event()
        self._unpaused.set()
        self._stopped = False

    @property
    def is_paused(self) -> bool:
        return not self._unpaused.is_set()

    @property
    def is_stopped(self) -> bool:
        return self._stopped

    def pause(self) -> None:
        self._unpaused.clear()

    def resume(self) -> None:
        self._unpaused.set()

    def stop(self) -> None:
        """End the loop at the next tick boundary; safe from any thread."""
        self._stopped = True
        self.delay.cancel()
        self._unpaused.set()

    def pause_for(self, events: list[FightEvent]) -> float:
        """Presentation pause (simulated seconds) after a batch of events."""
        pacing = load_rule_set("fight")["pacing"]
        config: FightConfig = self.simulation.fight.config
        seconds = 0.0
        for event in events:
            if event.type == EventType.FIGHT_START:
                seconds += float(pacing["intro_seconds"])
            elif event.type == EventType.ROUND_START:
                seconds += float(pacing["round_intro_seconds"])
            elif event.type == EventType.COUNT:
                seconds += float(pacing["count_seconds"]) * self.simulation.fight.referee.count_speed
            elif event.type == EventType.ROUND_END:
                seconds += float(event.get("rest", 0.0))
            elif event.type == EventType.TICK:
                seconds += config.tick_rate
        return seconds / self.speed

    def run(self) -> FightResult | None:
        """Drive the simulation to the end, or until stopped."""
        simulation = self.simulation
        while not self._stopped and not simulation.fight.is_over:
            while not self._unpaused.wait(timeout=0.1):
                if self._stopped:
                    break
            if self._stopped:
                break
            events = simulation.step()
            if not self.delay.wait(self.pause_for(events)) and self._stopped:
                break
        return simulation.fight.result


# ---------------------------------------------------------------------------
# Convenience
# ---------------------------------------------------------------------------

def build_simulation(
    fighter_a: Fighter,
    fighter_b: Fighter,
    config: FightConfig | None = None,
    *,
    referee_preset: str = "default",
    channel: EventChannel | None = None,
    seed: int | None = None,
    rng: random.Random | None = None,
) -> FightSimulation:
    """Wire a fight with the ringcraft collaborators."""
    randomizer = rng or random.Random(seed)
    fight = Fight(
        fighter_a,
        fighter_b,
        config,
        referee=Referee.from_preset(referee_preset),
        judges=default_judges(),
        rng=randomizer,
    )
    return FightSimulation(fight, channel=channel, rng=randomizer, **ringcraft_collaborators(randomizer))


def run_fight(
    fighter_a: Fighter,
    fighter_b: Fighter,
    config: FightConfig | None = None,
    *,
    referee_preset: str = "default",
    channel: EventChannel | None = None,
    seed: int | None = None,
) -> FightResult:
    simulation = build_simulation(
        fighter_a, fighter_b, config,
        referee_preset=referee_preset, channel=channel, seed=seed,
    )
    return simulation.run()
