from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from tankan.core.composition import decompose, recompose
from tankan.core.devanagari import HALANT, RA, normalize
from tankan.core.keyboard import KeyboardMapper, KeyPosition
from tankan.core.layout import ModifierState

logger = logging.getLogger(__name__)

BACKSPACE_KEY = "Backspace"

# Multi-codepoint units a single key produces, longest first.
KNOWN_SEQUENCES = ("क्ष्", "त्र", "द्ध", "द्य", "श्र", "ज्ञ", "रू", "र्", "्र")


@dataclass(frozen=True)
class KeystrokeResult:
    """Outcome of one keystroke."""

    accepted: bool
    cluster: str = ""
    expected: str = ""
    correct: bool = False
    completed: bool = False


IGNORED = KeystrokeResult(accepted=False)


@dataclass(frozen=True)
class KeystrokeRecord:
    key_id: str
    modifier_state: ModifierState
    cluster: str
    correct: bool
    timestamp: float


class TypingSession:
    """Validates keystrokes against one passage.

    The passage is decomposed once into the order its keys are pressed and
    every keystroke's output is compared with the next slice of that target.
    Wrong output is recorded as per-codepoint errors and typing continues.

    Backspace removes a single codepoint, except that the first backspace
    after a multi-codepoint half form (``क्``, ``क्ष्``) only clears
    ``pending_half_form``.
    """

    def __init__(
        self,
        passage: str,
        mapper: Optional[KeyboardMapper] = None,
        on_complete: Optional[Callable[["TypingSession"], None]] = None,
    ) -> None:
        self._passage = passage
        self._mapper = mapper or KeyboardMapper.default()
        self._target = decompose(passage)
        self._on_complete = on_complete
        self._cursor = 0
        self._typed: list[str] = []
        self._errors: set[int] = set()
        self._pending_half_form = False
        self._keystrokes: list[KeystrokeRecord] = []

    @property
    def passage(self) -> str:
        return self._passage

    @property
    def decomposed_target(self) -> str:
        return self._target

    @property
    def mapper(self) -> KeyboardMapper:
        return self._mapper

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def typed_buffer(self) -> str:
        return "".join(self._typed)

    @property
    def error_positions(self) -> frozenset[int]:
        return frozenset(self._errors)

    @property
    def pending_half_form(self) -> bool:
        return self._pending_half_form

    @property
    def is_completed(self) -> bool:
        return self._cursor >= len(self._target)

    @property
    def error_count(self) -> int:
        return len(self._errors)

    @property
    def correct_count(self) -> int:
        return self._cursor - len(self._errors)

    @property
    def keystrokes(self) -> list[KeystrokeRecord]:
        return list(self._keystrokes)

    def display_text(self) -> str:
        """Typed buffer in reading order."""
        return recompose(self._typed)

    def reset(self) -> None:
        """Start the same passage over."""
        self._cursor = 0
        self._typed.clear()
        self._errors.clear()
        self._pending_half_form = False
        self._keystrokes.clear()

    def press(self, key_id: str, held_keys: Iterable[str] = ()) -> Optional[KeystrokeResult]:
        """Handle a key press from the host; returns ``None`` for Backspace."""
        if key_id == BACKSPACE_KEY:
            self.backspace()
            return None
        return self.keystroke(key_id, self._mapper.resolve_modifier_state(held_keys))

    def keystroke(self, key_id: str, modifier_state: ModifierState = ModifierState.NORMAL) -> KeystrokeResult:
        if self.is_completed:
            logger.debug("Ignoring %s: session already completed", key_id)
            return IGNORED
        if not self._mapper.is_typeable_key(key_id):
            logger.debug("Ignoring non-typeable key %s", key_id)
            return IGNORED
        cluster = self._mapper.character_for(key_id, modifier_state)
        if not cluster:
            logger.debug("Key %s produces nothing in state %s", key_id, ModifierState(modifier_state).value)
            return IGNORED

        n = len(cluster)
        start = self._cursor
        expected = self._target[start:start + n]
        correct = normalize(cluster) == normalize(expected)

        self._typed.extend(cluster)
        self._cursor += n
        if not correct:
            self._errors.update(range(start, self._cursor))
        self._pending_half_form = n >= 2 and cluster.endswith(HALANT)
        self._keystrokes.append(
            KeystrokeRecord(
                key_id=key_id,
                modifier_state=ModifierState(modifier_state),
                cluster=cluster,
                correct=correct,
                timestamp=time.time(),
            )
        )

        completed = self.is_completed
        if completed:
            logger.info("Passage completed with %d error(s)", len(self._errors))
            if self._on_complete is not None:
                self._on_complete(self)
        return KeystrokeResult(
            accepted=True,
            cluster=cluster,
            expected=expected,
            correct=correct,
            completed=completed,
        )

    def backspace(self) -> bool:
        """Undo one codepoint. Returns False when there was nothing to change.

        A completed passage is final; backspace no longer reopens it.
        """
        if self._cursor == 0 or self.is_completed:
            return False
        if self._pending_half_form:
            self._pending_half_form = False
            return True
        self._cursor -= 1
        self._typed.pop()
        self._errors.discard(self._cursor)
        return True

    def next_expected(self) -> str:
        """The next unit the typist should produce with a single key."""
        target, i = self._target, self._cursor
        if i >= len(target):
            return ""
        for sequence in KNOWN_SEQUENCES:
            if target.startswith(sequence, i) and self._mapper.keys_producing(sequence):
                return sequence
        if target[i + 1:i + 2] == HALANT and target[i + 2:i + 3] != RA:
            half_form = target[i] + HALANT
            if self._mapper.keys_producing(half_form):
                return half_form
        return target[i]

    def next_keys(self) -> list[KeyPosition]:
        """Key positions that produce ``next_expected()``."""
        return self._mapper.keys_producing(self.next_expected())
