from __future__ import annotations

import random

from boxing_sim.models import FightConfig, FightResult
from boxing_sim.modules.events import EventChannel, EventType, FightEvent
from boxing_sim.modules.fight import Fight
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.modules.referee_policy import Referee
from boxing_sim.modules.roster import RosterEntry, RosterError, list_fighters, load_fighter
from boxing_sim.modules.simulation import FightSimulation, RealTimeDriver, build_simulation
from boxing_sim.rules_registry import load_rule_set, rule_value

_ANNOUNCED = frozenset({
    EventType.FIGHT_START,
    EventType.ROUND_START,
    EventType.ROUND_END,
    EventType.KNOCKDOWN,
    EventType.FLASH_KNOCKDOWN,
    EventType.COUNT,
    EventType.RECOVERY,
    EventType.HURT,
    EventType.BUZZED,
    EventType.CUT,
    EventType.FOUL,
    EventType.POINT_DEDUCTION,
    EventType.REFEREE_COMMAND,
    EventType.FIGHT_END,
})


def _prompt_non_empty(prompt: str) -> str:
    while True:
        value = input(prompt).strip()
        if value:
            return value
        print("Input cannot be empty.")


def _prompt_int(prompt: str, minimum: int, maximum: int) -> int:
    while True:
        raw = input(prompt).strip()
        try:
            value = int(raw)
        except ValueError:
            print("Please enter a whole number.")
            continue

        if minimum <= value <= maximum:
            return value
        print(f"Value must be between {minimum} and {maximum}.")


def _prompt_yes_no(prompt: str) -> bool:
    while True:
        value = _prompt_non_empty(prompt).lower()
        if value in ("y", "yes"):
            return True
        if value in ("n", "no"):
            return False
        print("Please answer y or n.")


def _format_clock(seconds: float) -> str:
    whole = int(seconds)
    return f"{whole // 60}:{whole % 60:02d}"


# ---------------------------------------------------------------------------
# Commentary
# ---------------------------------------------------------------------------

class EventPrinter:
    """Prints one line per notable event; subscribed to the fight's channel."""

    def __init__(self, fight: Fight, show_punches: bool = False) -> None:
        self.fight = fight
        self.show_punches = show_punches

    def _name(self, fighter_id: str | None) -> str:
        if fighter_id is None:
            return "nobody"
        return self.fight.get_fighter(fighter_id).name

    def __call__(self, event: FightEvent) -> None:
        line = self.describe(event)
        if line:
            print(line)

    def describe(self, event: FightEvent) -> str | None:
        clock = f"[R{event.round} {_format_clock(event.time)}]"
        kind = event.type

        if kind == EventType.FIGHT_START:
            a, b = self.fight.fighter_a, self.fight.fighter_b
            title = self.fight.config.title or f"{self.fight.config.rounds} rounds"
            return f"\n=== {a.name} vs {b.name} ({title}) | Referee: {self.fight.referee.name} ==="
        if kind == EventType.ROUND_START:
            return f"\n--- Round {event['round']} ---"
        if kind == EventType.ROUND_END:
            scores = ", ".join(f"{judge} {pair[0]}-{pair[1]}" for judge, pair in event["scores"].items())
            return f"{clock} End of round {event['round']}. Cards: {scores}"
        if kind == EventType.PUNCH_LANDED:
            if not self.show_punches:
                return None
            counter = " counter" if event["is_counter"] else ""
            return (
                f"{clock} {self._name(event['attacker'])} lands a{counter} {event['punch_type'].replace('_', ' ')}"
                f" to the {event['location']} ({event['damage']:.1f})"
            )
        if kind in (EventType.KNOCKDOWN, EventType.FLASH_KNOCKDOWN):
            label = "FLASH KNOCKDOWN" if kind == EventType.FLASH_KNOCKDOWN else "DOWN"
            punch = (event.get("punch") or "punch").replace("_", " ")
            return f"{clock} {label}! {self._name(event['fighter'])} goes down from a {punch}."
        if kind == EventType.COUNT:
            return f"    ... {event['count']}{' - OUT!' if event['is_ko'] else ''}"
        if kind == EventType.RECOVERY:
            return f"{clock} {self._name(event['fighter'])} beats the count at {event['count']}."
        if kind == EventType.HURT:
            return f"{clock} {self._name(event['fighter'])} is hurt!"
        if kind == EventType.BUZZED:
            return f"{clock} {self._name(event['fighter'])} is buzzed (severity {event['severity']})."
        if kind == EventType.CUT:
            return f"{clock} Cut opened on {self._name(event['fighter'])} ({event['location'].replace('_', ' ')})."
        if kind == EventType.FOUL:
            if not event["detected"]:
                return None
            return f"{clock} Foul: {event['foul'].replace('_', ' ')} by {self._name(event['attacker'])}."
        if kind == EventType.POINT_DEDUCTION:
            return f"{clock} Point deducted from {self._name(event['fighter'])}."
        if kind == EventType.REFEREE_COMMAND:
            return f"{clock} Referee: {event['text']}"
        if kind == EventType.FIGHT_END:
            method = event["method"].replace("_", " ")
            if event["winner"] is None:
                return f"\nResult: {method} after {event['round']} rounds."
            return (
                f"\nResult: {event['winner_name']} wins by {method} "
                f"in round {event['round']} at {_format_clock(event['time'])}."
            )
        return None


def _print_scorecards(result: FightResult) -> None:
    if not result.scorecards:
        return
    print("\n== Scorecards ==")
    for judge, points_a, points_b in result.scorecards:
        print(f"{judge}: {points_a}-{points_b}")


def _print_punch_stats(simulation: FightSimulation) -> None:
    fight = simulation.fight
    print("\n== Punch Stats ==")
    for fighter_id, stats in fight.punch_stats().items():
        print(
            f"{fight.get_fighter(fighter_id).name}: "
            f"{stats['landed']}/{stats['thrown']} landed ({stats['accuracy']:.0%}), "
            f"jabs {stats['jabs_landed']}/{stats['jabs_thrown']}, "
            f"power {stats['power_landed']}/{stats['power_thrown']}, "
            f"knockdowns suffered {stats['knockdowns_suffered']}"
        )


# ---------------------------------------------------------------------------
# Menus
# ---------------------------------------------------------------------------

def _render_roster(entries: list[RosterEntry]) -> None:
    print("\n== Roster ==")
    for index, entry in enumerate(entries, start=1):
        if not entry.is_valid:
            print(f"{index}. {entry.slug} [invalid: {entry.error}]")
            continue
        nickname = f' "{entry.nickname}"' if entry.nickname else ""
        weight = f" | {entry.weight_kg:.1f} kg" if entry.weight_kg is not None else ""
        print(f"{index}. {entry.name}{nickname} | {entry.style or 'unknown style'}{weight}")


def _choose_fighter(entries: list[RosterEntry], prompt: str, taken: str | None = None) -> Fighter | None:
    while True:
        choice = _prompt_int(prompt, 0, len(entries))
        if choice == 0:
            return None
        entry = entries[choice - 1]
        if entry.slug == taken:
            print("Pick a different opponent.")
            continue
        try:
            return load_fighter(entry.slug)
        except RosterError as exc:
            print(f"Could not load fighter: {exc}")


def _configure_fight() -> FightConfig:
    max_rounds = int(rule_value("fight", "max_rounds"))
    rounds = _prompt_int(f"Number of rounds (1-{max_rounds}): ", 1, max_rounds)
    three_knockdowns = _prompt_yes_no("Three-knockdown rule? (y/n): ")
    return FightConfig.from_rules(rounds=rounds, three_knockdown_rule=three_knockdowns)


def _choose_referee() -> str:
    presets = sorted(load_rule_set("referees")["presets"])
    print("\n== Referees ==")
    for index, preset in enumerate(presets, start=1):
        print(f"{index}. {Referee.from_preset(preset).name}")
    return presets[_prompt_int("Choose referee: ", 1, len(presets)) - 1]


def _play_fight(entries: list[RosterEntry]) -> None:
    _render_roster(entries)
    print("0. Back")
    fighter_a = _choose_fighter(entries, "Red corner: ")
    if fighter_a is None:
        return
    fighter_b = _choose_fighter(entries, "Blue corner: ", taken=fighter_a.fighter_id)
    if fighter_b is None:
        return
    config = _configure_fight()
    referee = _choose_referee()

    print("1. Watch live")
    print("2. Instant result")
    live = _prompt_int("Choose mode: ", 1, 2) == 1

    channel = EventChannel()
    simulation = build_simulation(
        fighter_a, fighter_b, config,
        referee_preset=referee, channel=channel, rng=random.Random(),
    )
    channel.subscribe(
        EventPrinter(simulation.fight, show_punches=live),
        None if live else _ANNOUNCED,
    )

    if live:
        speed = _prompt_int("Playback speed (1-60x): ", 1, 60)
        driver = RealTimeDriver(simulation, speed=speed)
        try:
            result = driver.run()
        except KeyboardInterrupt:
            driver.stop()
            print("\nFight abandoned.")
            return
    else:
        result = simulation.run()

    if result is not None:
        _print_scorecards(result)
        _print_punch_stats(simulation)


def run() -> None:
    while True:
        print("\n=== Text Boxing Simulator ===")
        print("1. Fight")
        print("2. View roster")
        print("3. Quit")

        choice = _prompt_int("Choose option: ", 1, 3)

        if choice == 3:
            print("Goodbye.")
            return
        entries = list_fighters()
        if len([entry for entry in entries if entry.is_valid]) < 2:
            print("The roster needs at least two valid fighters.")
            continue
        if choice == 1:
            _play_fight(entries)
        elif choice == 2:
            _render_roster(entries)


if __name__ == "__main__":
    run()
