"""Shared engine constants.

Centralises magic numbers and string literals that are referenced by
multiple modules so they have a single source of truth.  Tunable formula
weights live in the JSON tables under ``rules/``.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Corners
# ---------------------------------------------------------------------------
FIGHTER_IDS: tuple[str, str] = ("A", "B")
"""Corner ids used to address the two fighters in a bout."""

# ---------------------------------------------------------------------------
# Attribute boundaries
# ---------------------------------------------------------------------------
MIN_ATTRIBUTE: int = 1
"""Absolute minimum for any single fighter attribute."""

MAX_ATTRIBUTE: int = 100
"""Absolute maximum for any single fighter attribute."""

# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------
DEFAULT_TICK_RATE: float = 0.5
"""Simulated seconds advanced by one orchestrator tick."""

MAX_STUN_TICKS: int = 5
"""Upper bound for a per-hit stun."""

MIN_BUZZED_TICKS: int = 10
"""Shortest buzzed spell (5 simulated seconds at the default tick rate)."""

MAX_BUZZED_TICKS: int = 40
"""Longest buzzed spell, also the cap when compounding."""

# ---------------------------------------------------------------------------
# Knockdowns and scoring
# ---------------------------------------------------------------------------
FULL_COUNT: int = 10
"""Count at which a downed fighter is knocked out."""

FIRST_RECOVERY_COUNT: int = 4
"""Earliest count from which a fighter may beat the count."""

MANDATORY_COUNT: int = 8
"""Minimum count reached before a recovery when the mandatory eight applies."""

ROUND_SCORE_FLOOR: int = 7
"""Lowest score a judge may give a fighter for a single round."""

MAX_POINT_DEDUCTIONS: int = 3
"""Point deductions after which a further detected foul disqualifies."""

# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------
MOMENTUM_LIMIT: float = 100.0
"""Absolute cap on the shared momentum meter."""

FAST_START_LAST_ROUND: int = 4
"""Final round in which a fast-start buff still applies."""
