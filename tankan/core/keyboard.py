from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Optional

from tankan.core.layout import KeyboardLayout, KeyMapping, ModifierState, load_layout

logger = logging.getLogger(__name__)

MODIFIER_KEYS = frozenset(
    {
        "ShiftLeft",
        "ShiftRight",
        "AltLeft",
        "AltRight",
        "AltGraph",
        "ControlLeft",
        "ControlRight",
        "MetaLeft",
        "MetaRight",
        "CapsLock",
    }
)

CONTROL_KEYS = frozenset(
    {
        "Backspace",
        "Enter",
        "NumpadEnter",
        "Tab",
        "Escape",
        "ArrowUp",
        "ArrowDown",
        "ArrowLeft",
        "ArrowRight",
        "Home",
        "End",
        "PageUp",
        "PageDown",
        "Insert",
        "Delete",
        "ContextMenu",
        "PrintScreen",
        "ScrollLock",
        "Pause",
        "NumLock",
    }
    | {f"F{n}" for n in range(1, 13)}
)

_MODIFIER_ORDER = tuple(ModifierState)


@dataclass(frozen=True)
class KeyPosition:
    key_id: str
    modifier_state: ModifierState


class KeyboardMapper:
    """Read-only lookups over a loaded keyboard layout.

    Forward lookups go through a ``key_id`` index built at construction; the
    reverse index (output -> key positions) is built on first use. Both are
    never mutated afterwards, so one mapper can back any number of sessions.
    """

    def __init__(self, layout: KeyboardLayout) -> None:
        self._layout = layout
        self._keys: dict[str, KeyMapping] = {}
        self._rows: dict[str, int] = {}
        for row_index, row in enumerate(layout.rows):
            for mapping in row:
                self._keys[mapping.key_id] = mapping
                self._rows[mapping.key_id] = row_index
        self._reverse: Optional[dict[str, list[KeyPosition]]] = None

    @classmethod
    def default(cls) -> "KeyboardMapper":
        """Shared mapper for the configured layout."""
        return _default_mapper()

    @property
    def layout(self) -> KeyboardLayout:
        return self._layout

    @property
    def key_count(self) -> int:
        return len(self._keys)

    def find_key(self, key_id: str) -> Optional[KeyMapping]:
        return self._keys.get(key_id)

    def character_for(self, key_id: str, modifier_state: ModifierState) -> str:
        """Output of ``key_id`` in ``modifier_state``; ``""`` for unknown keys or empty slots."""
        mapping = self._keys.get(key_id)
        if mapping is None:
            return ""
        return mapping.output(ModifierState(modifier_state))

    def all_characters_for_key(self, key_id: str) -> list[str]:
        mapping = self._keys.get(key_id)
        if mapping is None:
            return []
        return [out for out in (mapping.output(state) for state in _MODIFIER_ORDER) if out]

    def key_row(self, key_id: str) -> int:
        return self._rows.get(key_id, -1)

    def is_valid_key_combination(self, key_id: str, modifier_state: ModifierState) -> bool:
        return bool(self.character_for(key_id, modifier_state))

    def keys_producing(self, character: str) -> list[KeyPosition]:
        """Every (key, modifier state) whose output is exactly ``character``.

        Ordered by layout row and column, then normal, shift, altgr, altgr-shift.
        """
        if not character:
            return []
        if self._reverse is None:
            self._reverse = self._build_reverse_index()
        return list(self._reverse.get(character, ()))

    def _build_reverse_index(self) -> dict[str, list[KeyPosition]]:
        index: dict[str, list[KeyPosition]] = {}
        for row in self._layout.rows:
            for mapping in row:
                for state in _MODIFIER_ORDER:
                    out = mapping.output(state)
                    if out:
                        index.setdefault(out, []).append(KeyPosition(mapping.key_id, state))
        logger.debug("Built reverse index with %d outputs for %s", len(index), self._layout.name)
        return index

    @staticmethod
    def is_modifier_key(key_id: str) -> bool:
        return key_id in MODIFIER_KEYS

    @staticmethod
    def is_control_key(key_id: str) -> bool:
        return key_id in CONTROL_KEYS

    @staticmethod
    def is_typeable_key(key_id: str) -> bool:
        return key_id not in MODIFIER_KEYS and key_id not in CONTROL_KEYS

    def resolve_modifier_state(self, held_keys: Iterable[str]) -> ModifierState:
        """Collapse the set of held keys into one of the four modifier states."""
        held = set(held_keys)
        shift = bool(held & self._layout.shift_keys)
        altgr = bool(held & self._layout.altgr_keys)
        if shift and altgr:
            return ModifierState.ALTGR_SHIFT
        if altgr:
            return ModifierState.ALTGR
        if shift:
            return ModifierState.SHIFT
        return ModifierState.NORMAL


@lru_cache(maxsize=1)
def _default_mapper() -> KeyboardMapper:
    return KeyboardMapper(load_layout())
