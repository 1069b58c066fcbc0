"""Shared utility helpers used across boxing-sim modules.

Small clamping / coercion primitives applied at every point where the
engine mutates a bounded value.
"""

from __future__ import annotations

import math
import re

from boxing_sim.constants import MAX_ATTRIBUTE, MIN_ATTRIBUTE

_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")


def clamp_int(value: int, minimum: int, maximum: int) -> int:
    """Clamp *value* to the inclusive ``[minimum, maximum]`` range."""
    return max(minimum, min(maximum, int(value)))


def clamp_float(value: float, minimum: float, maximum: float) -> float:
    """Clamp *value* to the inclusive ``[minimum, maximum]`` range.

    ``NaN`` collapses to *minimum* so a bad input can never leak into
    fighter state.
    """
    numeric = float(value)
    if math.isnan(numeric):
        return minimum
    return max(minimum, min(maximum, numeric))


def clamp_attribute(value: float) -> int:
    """Clamp a fighter attribute to ``[1, 100]``."""
    return clamp_int(round(float(value)), MIN_ATTRIBUTE, MAX_ATTRIBUTE)


def slugify(name: str) -> str:
    """Lower-case, dash separated id derived from a display name."""
    return _SLUG_PATTERN.sub("-", name.strip().lower()).strip("-")
