#!/usr/bin/env python3
"""Batch fight simulation for outcome calibration.

Runs the same matchup across deterministic seeds and reports how often each
corner wins, how fights end and how many knockdowns a bout averages.  Useful
for checking that rule-table changes keep finish rates plausible.
"""

from __future__ import annotations

import argparse
import logging
import statistics
import sys
from collections import Counter
from dataclasses import dataclass
from pathlib import Path


def _bootstrap_project_path() -> None:
    root = Path(__file__).resolve().parents[1]
    candidate = str(root)
    if candidate not in sys.path:
        sys.path.insert(0, candidate)


_bootstrap_project_path()

from boxing_sim.models import FightConfig
from boxing_sim.modules.roster import list_fighters, load_fighter
from boxing_sim.modules.simulation import build_simulation


@dataclass(frozen=True)
class FightSample:
    seed: int
    winner: str | None
    method: str
    round: int
    knockdowns: int


def simulate_fight(
    seed: int,
    red: str,
    blue: str,
    *,
    rounds: int,
    referee: str,
    three_knockdown_rule: bool,
) -> FightSample:
    # Fighters carry fight state, so each bout loads fresh copies.
    fighter_a = load_fighter(red)
    fighter_b = load_fighter(blue)
    config = FightConfig.from_rules(rounds=rounds, three_knockdown_rule=three_knockdown_rule)
    simulation = build_simulation(fighter_a, fighter_b, config, referee_preset=referee, seed=seed)
    result = simulation.run()
    return FightSample(
        seed=seed,
        winner=result.winner,
        method=result.method.value,
        round=result.round,
        knockdowns=fighter_a.knockdowns_total + fighter_b.knockdowns_total,
    )


def summarize(samples: list[FightSample]) -> dict[str, object]:
    total = len(samples)
    winners = Counter(sample.winner for sample in samples)
    stoppages = [sample for sample in samples if not sample.method.startswith(("DECISION", "DRAW"))]
    return {
        "fights": total,
        "a_win_pct": winners.get("A", 0) / total,
        "b_win_pct": winners.get("B", 0) / total,
        "draw_pct": winners.get(None, 0) / total,
        "methods": Counter(sample.method for sample in samples),
        "knockdowns_avg": statistics.mean(sample.knockdowns for sample in samples),
        "stoppage_round_avg": statistics.mean(sample.round for sample in stoppages) if stoppages else 0.0,
    }


def _print_report(red: str, blue: str, report: dict[str, object]) -> None:
    total = int(report["fights"])  # type: ignore[arg-type]
    print(f"\n== {red} vs {blue} ({total} fights) ==")
    print(
        f"Red {report['a_win_pct']:.1%} | "
        f"Blue {report['b_win_pct']:.1%} | "
        f"Draw {report['draw_pct']:.1%}"
    )
    print(f"Knockdowns per fight avg {report['knockdowns_avg']:.2f}")
    print(f"Average stoppage round {report['stoppage_round_avg']:.2f}")
    print("Methods:")
    methods: Counter = report["methods"]  # type: ignore[assignment]
    for method, count in methods.most_common():
        print(f"  {method:<22} {count:>5} ({count / total:.1%})")


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run seeded batch fight simulations.")
    parser.add_argument("red", nargs="?", help="Roster slug for the red corner.")
    parser.add_argument("blue", nargs="?", help="Roster slug for the blue corner.")
    parser.add_argument(
        "--runs",
        type=int,
        default=200,
        help="Number of deterministic seeds to run (default: 200).",
    )
    parser.add_argument("--rounds", type=int, default=10, help="Scheduled rounds (default: 10).")
    parser.add_argument("--referee", default="default", help="Referee preset (default: default).")
    parser.add_argument(
        "--three-knockdown-rule",
        action="store_true",
        help="Stop the fight on the third knockdown of a round.",
    )
    parser.add_argument("--list", action="store_true", help="List roster slugs and exit.")
    parser.add_argument("--verbose", action="store_true", help="Enable engine debug logging.")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    if args.list:
        for entry in list_fighters():
            print(f"{entry.slug:<20} {entry.name}{'' if entry.is_valid else ' [invalid]'}")
        return
    if not args.red or not args.blue:
        raise SystemExit("red and blue roster slugs are required (see --list)")
    if args.runs < 1:
        raise SystemExit("--runs must be >= 1")

    try:
        samples = [
            simulate_fight(
                seed, args.red, args.blue,
                rounds=args.rounds,
                referee=args.referee,
                three_knockdown_rule=args.three_knockdown_rule,
            )
            for seed in range(args.runs)
        ]
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc

    _print_report(args.red, args.blue, summarize(samples))


if __name__ == "__main__":
    main()
