from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_LAYOUT_PATH = Path(__file__).resolve().parent.parent / "data" / "layouts" / "remington_gail.yaml"


class ModifierState(str, Enum):
    """Which of a key's four outputs is selected."""

    NORMAL = "normal"
    SHIFT = "shift"
    ALTGR = "altgr"
    ALTGR_SHIFT = "altgr-shift"


@dataclass(frozen=True)
class KeyMapping:
    key_id: str
    normal: str
    shift: str
    altgr: str
    altgr_shift: str
    finger: int
    hand: str
    label: Optional[str] = None

    def output(self, state: ModifierState) -> str:
        if state is ModifierState.SHIFT:
            return self.shift
        if state is ModifierState.ALTGR:
            return self.altgr
        if state is ModifierState.ALTGR_SHIFT:
            return self.altgr_shift
        return self.normal

    def outputs(self) -> dict[ModifierState, str]:
        return {state: self.output(state) for state in ModifierState}


@dataclass(frozen=True)
class KeyboardLayout:
    name: str
    description: str
    rows: tuple[tuple[KeyMapping, ...], ...]
    shift_keys: frozenset[str] = field(default_factory=lambda: frozenset({"ShiftLeft", "ShiftRight"}))
    altgr_keys: frozenset[str] = field(default_factory=lambda: frozenset({"AltRight", "AltGraph"}))

    def keys(self) -> list[KeyMapping]:
        return [mapping for row in self.rows for mapping in row]


_OUTPUT_FIELDS = ("normal", "shift", "altgr", "altgr_shift")


def _parse_key(raw: object, where: str) -> KeyMapping:
    if not isinstance(raw, dict):
        raise ValueError(f"{where}: expected a mapping with 'key' and four outputs")
    key_id = raw.get("key")
    if not key_id or not isinstance(key_id, str):
        raise ValueError(f"{where}: missing or invalid 'key'")
    outputs = {}
    for name in _OUTPUT_FIELDS:
        if name not in raw:
            raise ValueError(f"{where}: key {key_id} is missing '{name}'")
        value = raw[name]
        outputs[name] = "" if value is None else str(value)
    finger = raw.get("finger")
    if not isinstance(finger, int) or not 0 <= finger <= 9:
        raise ValueError(f"{where}: key {key_id} has invalid finger {finger!r}")
    hand = raw.get("hand")
    if hand not in ("left", "right"):
        raise ValueError(f"{where}: key {key_id} has invalid hand {hand!r}")
    label = raw.get("label")
    return KeyMapping(key_id=key_id, finger=finger, hand=hand, label=label, **outputs)


def load_layout(path: Optional[Path] = None) -> KeyboardLayout:
    """Load and validate a layout YAML file.

    Falls back to ``$TANKAN_LAYOUT`` and then to the bundled Remington GAIL
    layout when ``path`` is not given.
    """
    if path is None:
        env_path = os.environ.get("TANKAN_LAYOUT")
        path = Path(env_path) if env_path else DEFAULT_LAYOUT_PATH
    if not path.exists():
        raise FileNotFoundError(f"Layout file not found: {path}")

    raw = yaml.safe_load(path.read_text(encoding="utf-8"))
    if not raw or not isinstance(raw, dict):
        raise ValueError(f"{path.name}: expected YAML with 'name' and 'rows'")
    name = raw.get("name")
    if not name or not isinstance(name, str):
        raise ValueError(f"{path.name}: missing or invalid 'name'")
    raw_rows = raw.get("rows")
    if not raw_rows or not isinstance(raw_rows, list):
        raise ValueError(f"{path.name}: missing 'rows'")

    seen: set[str] = set()
    rows: list[tuple[KeyMapping, ...]] = []
    for r, raw_row in enumerate(raw_rows):
        if not isinstance(raw_row, list):
            raise ValueError(f"{path.name}: row {r} is not a list")
        row = []
        for c, raw_key in enumerate(raw_row):
            mapping = _parse_key(raw_key, f"{path.name} row {r} column {c}")
            if mapping.key_id in seen:
                raise ValueError(f"{path.name}: duplicate key {mapping.key_id}")
            seen.add(mapping.key_id)
            row.append(mapping)
        rows.append(tuple(row))

    modifiers = raw.get("modifiers") or {}
    layout = KeyboardLayout(
        name=name.strip(),
        description=str(raw.get("description", "")).strip(),
        rows=tuple(rows),
        shift_keys=frozenset(modifiers.get("shift", ("ShiftLeft", "ShiftRight"))),
        altgr_keys=frozenset(modifiers.get("altgr", ("AltRight", "AltGraph"))),
    )
    logger.info("Loaded layout %s with %d keys from %s", layout.name, len(seen), path)
    return layout
