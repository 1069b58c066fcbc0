"""Access to the JSON parameter tables under ``rules/``.

Every tunable weight used by a formula is read from one of these tables so
the formulas can be tuned and tested without touching code.
"""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

PROJECT_ROOT = Path(__file__).resolve().parents[1]
RULES_DIR = PROJECT_ROOT / "rules"

_MISSING = object()


@lru_cache(maxsize=32)
def load_rule_set(name: str) -> dict[str, Any]:
    path = RULES_DIR / f"{name}.json"
    if not path.exists():
        raise FileNotFoundError(f"Rule set not found: {path}")
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def rule_value(rule_set: str, dotted_path: str, default: Any = _MISSING) -> Any:
    """Look up ``a.b.c`` inside the named rule set.

    Falls back to *default* when any segment is missing; without a default
    a missing key raises ``KeyError``.
    """
    node: Any = load_rule_set(rule_set)
    for segment in dotted_path.split("."):
        if isinstance(node, dict) and segment in node:
            node = node[segment]
            continue
        if default is _MISSING:
            raise KeyError(f"{rule_set}: no parameter at {dotted_path!r}")
        return default
    return node
