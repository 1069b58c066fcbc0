"""Load and save fighter definitions kept as JSON files under ``fighters/``.

One file per fighter, named after its slug.  Writes are atomic.
"""

from __future__ import annotations

import json
import os
import re
from dataclasses import dataclass
from pathlib import Path
from tempfile import NamedTemporaryFile

from boxing_sim.models import FighterConfigError
from boxing_sim.modules.fighter_state import Fighter
from boxing_sim.utils import slugify

PROJECT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_ROSTER_DIR = PROJECT_ROOT / "fighters"

_SLUG_PATTERN = re.compile(r"^[a-z0-9-]{1,40}$")


class RosterError(ValueError):
    """Raised when roster files are invalid or missing."""


@dataclass(frozen=True)
class RosterEntry:
    """Summary line for a roster file, read without building the fighter."""

    slug: str
    path: Path
    name: str
    nickname: str
    style: str
    weight_kg: float | None
    is_valid: bool
    error: str = ""


def _validate_slug(slug: str) -> str:
    candidate = slug.strip().lower()
    if not _SLUG_PATTERN.match(candidate):
        raise RosterError("Fighter slug must be 1-40 chars of lower-case letters, numbers or -.")
    return candidate


def _roster_path(slug: str, roster_dir: Path | None = None) -> Path:
    return (roster_dir or DEFAULT_ROSTER_DIR) / f"{slug}.json"


def _read_payload(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except json.JSONDecodeError as exc:
        raise RosterError(f"{path.name} is not valid JSON.") from exc
    except OSError as exc:
        raise RosterError(f"Failed to read {path.name}: {exc}") from exc
    if not isinstance(payload, dict):
        raise RosterError(f"{path.name} does not hold a fighter definition.")
    return payload


# ---------------------------------------------------------------------------
# Reading
# ---------------------------------------------------------------------------

def list_fighters(roster_dir: Path | None = None) -> list[RosterEntry]:
    """Every ``*.json`` in the roster, sorted by slug; broken files are flagged, not raised."""
    base = roster_dir or DEFAULT_ROSTER_DIR
    if not base.exists():
        return []

    entries: list[RosterEntry] = []
    for path in sorted(base.glob("*.json")):
        slug = path.stem
        try:
            payload = _read_payload(path)
        except RosterError as exc:
            entries.append(RosterEntry(slug, path, slug, "", "", None, False, str(exc)))
            continue
        name = str(payload.get("name") or "")
        try:
            weight = float(payload["weight_kg"]) if "weight_kg" in payload else None
        except (TypeError, ValueError):
            weight = None
        entries.append(RosterEntry(
            slug=slug,
            path=path,
            name=name or slug,
            nickname=str(payload.get("nickname", "")),
            style=str(payload.get("style", "")),
            weight_kg=weight,
            is_valid=bool(name),
            error="" if name else "Fighter name is required.",
        ))
    return entries


def load_fighter(slug: str, roster_dir: Path | None = None) -> Fighter:
    normalized = _validate_slug(slug)
    path = _roster_path(normalized, roster_dir)
    if not path.exists():
        raise RosterError(f"Fighter not found in roster: {normalized}")
    payload = _read_payload(path)
    try:
        return Fighter.from_dict(payload)
    except FighterConfigError as exc:
        raise RosterError(f"{path.name}: {exc}") from exc


# ---------------------------------------------------------------------------
# Writing
# ---------------------------------------------------------------------------

def save_fighter(fighter: Fighter, roster_dir: Path | None = None) -> Path:
    """Persist *fighter*'s definition (not its fight state) atomically."""
    slug = _validate_slug(fighter.fighter_id or slugify(fighter.name))
    target_path = _roster_path(slug, roster_dir)
    target_path.parent.mkdir(parents=True, exist_ok=True)

    temp_path: Path | None = None
    try:
        with NamedTemporaryFile(
            "w", encoding="utf-8",
            dir=target_path.parent, prefix=f"{slug}.", suffix=".tmp",
            delete=False,
        ) as handle:
            temp_path = Path(handle.name)
            json.dump(fighter.profile_dict(), handle, indent=2)
            handle.flush()
            os.fsync(handle.fileno())
        temp_path.replace(target_path)
    except OSError as exc:
        raise RosterError(f"Failed to write roster file: {exc}") from exc
    finally:
        if temp_path is not None and temp_path.exists():
            temp_path.unlink(missing_ok=True)
    return target_path
