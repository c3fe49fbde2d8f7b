from __future__ import annotations

import html
import logging
import os
import time
from typing import Optional

from PySide6.QtCore import Qt, QTimer
from PySide6.QtGui import QCloseEvent, QFont, QKeyEvent
from PySide6.QtWidgets import (
    QComboBox,
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QMainWindow,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from tankan.core.composition import recompose_segments
from tankan.core.devanagari import normalize
from tankan.core.keyboard import KeyboardMapper, KeyPosition
from tankan.core.layout import KeyMapping, ModifierState
from tankan.core.levels import Level, LevelRepository
from tankan.core.session import TypingSession
from tankan.core.stats import (
    TypingStats,
    format_time,
    get_accuracy_level,
    get_performance_level,
    stats_for_session,
)
from tankan.ui.colors import PracticeColors, blend_hex, finger_color
from tankan.ui.keymap import HeldKeys, key_id_from_event

logger = logging.getLogger(__name__)

_MODIFIER_HINTS = {
    ModifierState.NORMAL: "",
    ModifierState.SHIFT: "Shift + ",
    ModifierState.ALTGR: "AltGr + ",
    ModifierState.ALTGR_SHIFT: "AltGr + Shift + ",
}


def render_typed_html(session: TypingSession) -> str:
    """Recomposed typed text, with syllables that contain errors in red."""
    errors = session.error_positions
    runs: list[tuple[bool, str]] = []
    for segment in recompose_segments(session.typed_buffer):
        wrong = any(i in errors for i in range(segment.start, segment.end))
        if runs and runs[-1][0] == wrong:
            runs[-1] = (wrong, runs[-1][1] + segment.text)
        else:
            runs.append((wrong, segment.text))
    parts: list[str] = []
    for wrong, text in runs:
        if wrong:
            style = f"color:{PracticeColors.ERROR}; background:{PracticeColors.ERROR_BG};"
        else:
            style = f"color:{PracticeColors.CORRECT};"
        parts.append(f'<span style="{style}">{html.escape(normalize(text))}</span>')
    return "".join(parts)


class PracticeWindow(QMainWindow):
    """Single-screen practice window.

    Runs one ``TypingSession`` per passage of the selected level, shows the
    recomposed typed text under the passage and highlights the key(s) for
    the next expected unit on an on-screen Remington keyboard.
    """

    def __init__(self, levels: LevelRepository, mapper: KeyboardMapper) -> None:
        super().__init__()
        self._levels_repo = levels
        self._mapper = mapper
        self._held = HeldKeys()
        self._unlock_all_levels = os.environ.get("TANKAN_UNLOCK_ALL") == "1"
        self._passed_levels: set[str] = set()

        self._level: Optional[Level] = None
        self._task_index = 0
        self._session: Optional[TypingSession] = None
        self._started_at: Optional[float] = None
        self._finished_at: Optional[float] = None

        self._key_labels: dict[str, QLabel] = {}
        self._highlighted: list[str] = []

        self._level_combo: Optional[QComboBox] = None
        self._passage_label: Optional[QLabel] = None
        self._typed_label: Optional[QLabel] = None
        self._hint_label: Optional[QLabel] = None
        self._stats_label: Optional[QLabel] = None
        self._result_label: Optional[QLabel] = None

        self._stats_timer = QTimer(self)
        self._stats_timer.setInterval(1000)
        self._stats_timer.timeout.connect(self._update_stats)

        self._build_ui()
        self._refresh_levels()
        first = self._levels_repo.all()[0]
        self._start_level(first.key)

    # ------------------------------------------------------------------
    # UI construction
    # ------------------------------------------------------------------

    def _build_ui(self) -> None:
        self.setWindowTitle("टंकण - Hindi typing tutor")
        root = QWidget()
        root.setStyleSheet(f"background:{PracticeColors.BG};")
        layout = QVBoxLayout(root)
        layout.setContentsMargins(24, 16, 24, 16)
        layout.setSpacing(12)

        header = QHBoxLayout()
        self._level_combo = QComboBox()
        self._level_combo.currentIndexChanged.connect(self._on_level_selected)
        self._level_combo.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        retry = QPushButton("Retry")
        retry.setFocusPolicy(Qt.FocusPolicy.NoFocus)
        retry.clicked.connect(self._retry)
        header.addWidget(self._level_combo, 1)
        header.addWidget(retry)
        layout.addLayout(header)

        card = QFrame()
        card.setStyleSheet(
            f"QFrame {{ background:{PracticeColors.CARD_BG}; border:1px solid {PracticeColors.CARD_BORDER};"
            " border-radius:12px; }"
        )
        card_layout = QVBoxLayout(card)
        text_font = QFont()
        text_font.setPointSize(26)
        self._passage_label = QLabel()
        self._passage_label.setFont(text_font)
        self._passage_label.setStyleSheet(f"color:{PracticeColors.TEXT_SECONDARY}; border:none;")
        self._typed_label = QLabel()
        self._typed_label.setFont(text_font)
        self._typed_label.setTextFormat(Qt.TextFormat.RichText)
        self._typed_label.setStyleSheet("border:none;")
        self._hint_label = QLabel()
        self._hint_label.setStyleSheet(f"color:{PracticeColors.HIGHLIGHT}; font-size:16px; border:none;")
        card_layout.addWidget(self._passage_label)
        card_layout.addWidget(self._typed_label)
        card_layout.addWidget(self._hint_label)
        layout.addWidget(card)

        self._stats_label = QLabel()
        self._stats_label.setStyleSheet(f"color:{PracticeColors.TEXT_PRIMARY}; font-size:15px;")
        self._result_label = QLabel()
        self._result_label.setStyleSheet(f"color:{PracticeColors.PRIMARY}; font-size:15px;")
        layout.addWidget(self._stats_label)
        layout.addWidget(self._result_label)

        layout.addWidget(self._build_keyboard())
        layout.addStretch(1)
        self.setCentralWidget(root)

    def _build_keyboard(self) -> QWidget:
        """On-screen layout: each key shows its normal and shift outputs."""
        container = QWidget()
        grid = QGridLayout(container)
        grid.setSpacing(6)
        for row_index, row in enumerate(self._mapper.layout.rows):
            offset = row_index if row_index < 4 else 3
            span = 2 if row_index < 4 else 12
            for col_index, mapping in enumerate(row):
                label = QLabel(self._key_caption(mapping))
                label.setAlignment(Qt.AlignmentFlag.AlignCenter)
                label.setMinimumSize(48, 48)
                label.setStyleSheet(self._key_style(mapping, highlighted=False))
                grid.addWidget(label, row_index, offset + col_index * 2, 1, span)
                self._key_labels[mapping.key_id] = label
        return container

    @staticmethod
    def _key_caption(mapping: KeyMapping) -> str:
        if mapping.label:
            return mapping.label
        return f"{mapping.shift}\n{mapping.normal}"

    @staticmethod
    def _key_style(mapping: KeyMapping, highlighted: bool) -> str:
        accent = finger_color(mapping.finger)
        if highlighted:
            background = blend_hex(PracticeColors.HIGHLIGHT_BG, accent, 0.35)
            border = f"3px solid {PracticeColors.HIGHLIGHT}"
        else:
            background = PracticeColors.KEY_BG
            border = f"1px solid {PracticeColors.KEY_BORDER}"
        return (
            f"background:{background}; border:{border}; border-bottom:4px solid {accent};"
            f" border-radius:6px; color:{PracticeColors.TEXT_PRIMARY}; font-size:16px;"
        )

    # ------------------------------------------------------------------
    # Levels and sessions
    # ------------------------------------------------------------------

    def _unlocked(self, index: int, levels: list[Level]) -> bool:
        if self._unlock_all_levels or index == 0:
            return True
        return levels[index - 1].key in self._passed_levels

    def _refresh_levels(self) -> None:
        if self._level_combo is None:
            return
        levels = self._levels_repo.all()
        self._level_combo.blockSignals(True)
        current = self._level_combo.currentIndex()
        self._level_combo.clear()
        for index, level in enumerate(levels):
            prefix = "" if self._unlocked(index, levels) else "🔒 "
            self._level_combo.addItem(f"{prefix}{level.name}", level.key)
        if current >= 0:
            self._level_combo.setCurrentIndex(current)
        self._level_combo.blockSignals(False)

    def _on_level_selected(self, index: int) -> None:
        levels = self._levels_repo.all()
        if not 0 <= index < len(levels):
            return
        if not self._unlocked(index, levels):
            self._result_label.setText("Pass the previous level to unlock this one.")
            return
        self._start_level(levels[index].key)

    def _start_level(self, level_key: str) -> None:
        self._level = self._levels_repo.get(level_key)
        self._task_index = 0
        logger.info("Starting level %s", level_key)
        self._result_label.setText(" · ".join(self._level.instructions))
        self._start_task()

    def _start_task(self) -> None:
        if self._level is None:
            return
        passage = self._level.tasks[self._task_index]
        self._session = TypingSession(passage, self._mapper, on_complete=self._on_task_complete)
        self._started_at = None
        self._finished_at = None
        self._stats_timer.stop()
        self._passage_label.setText(passage)
        self._refresh_view()

    def _retry(self) -> None:
        if self._session is None:
            return
        self._session.reset()
        self._started_at = None
        self._finished_at = None
        self._stats_timer.stop()
        self._refresh_view()

    def _elapsed(self) -> float:
        if self._started_at is None:
            return 0.0
        end = self._finished_at if self._finished_at is not None else time.time()
        return end - self._started_at

    def _on_task_complete(self, session: TypingSession) -> None:
        self._finished_at = time.time()
        self._stats_timer.stop()
        stats = stats_for_session(session, self._elapsed())
        self._show_result(stats)

    def _show_result(self, stats: TypingStats) -> None:
        if self._level is None:
            return
        speed = get_performance_level(stats.net_wpm)
        accuracy = get_accuracy_level(stats.accuracy)
        last_task = self._task_index + 1 >= len(self._level.tasks)
        if last_task and self._level.passed(stats):
            self._passed_levels.add(self._level.key)
            self._refresh_levels()
            verdict = "Level passed."
        elif last_task:
            verdict = (
                f"Needs {self._level.min_accuracy:.0f}% accuracy and {self._level.min_wpm:.0f} WPM to pass."
            )
        else:
            verdict = "Press Enter for the next passage."
        self._result_label.setText(
            f"{speed.level}: {speed.description}  {accuracy.level}: {accuracy.description}  {verdict}"
        )

    def _advance(self) -> None:
        if self._level is None or self._session is None or not self._session.is_completed:
            return
        if self._task_index + 1 < len(self._level.tasks):
            self._task_index += 1
            self._start_task()

    # ------------------------------------------------------------------
    # Keyboard input
    # ------------------------------------------------------------------

    def keyPressEvent(self, event: QKeyEvent) -> None:
        key_id = key_id_from_event(event)
        if key_id is None or self._session is None:
            super().keyPressEvent(event)
            return
        self._held.sync(bool(event.modifiers() & Qt.KeyboardModifier.ShiftModifier))
        if self._mapper.is_modifier_key(key_id):
            self._held.press(key_id)
            return
        if key_id in ("Enter", "NumpadEnter"):
            self._advance()
            return
        if self._mapper.is_control_key(key_id) and key_id != "Backspace":
            super().keyPressEvent(event)
            return
        if self._started_at is None and key_id != "Backspace":
            self._started_at = time.time()
            self._stats_timer.start()
        self._session.press(key_id, self._held.held)
        self._refresh_view()

    def keyReleaseEvent(self, event: QKeyEvent) -> None:
        key_id = key_id_from_event(event)
        if key_id is not None:
            self._held.release(key_id)
        super().keyReleaseEvent(event)

    def focusOutEvent(self, event) -> None:
        self._held.clear()
        super().focusOutEvent(event)

    # ------------------------------------------------------------------
    # View refresh
    # ------------------------------------------------------------------

    def _refresh_view(self) -> None:
        session = self._session
        if session is None:
            return
        self._typed_label.setText(render_typed_html(session))
        self._update_hint(session)
        self._update_stats()

    def _update_hint(self, session: TypingSession) -> None:
        for key_id in self._highlighted:
            mapping = self._mapper.find_key(key_id)
            if mapping is not None:
                self._key_labels[key_id].setStyleSheet(self._key_style(mapping, highlighted=False))
        self._highlighted = []
        if session.is_completed:
            self._hint_label.setText("")
            return
        if session.pending_half_form:
            self._hint_label.setText("Backspace once more to remove the half form")
        positions = session.next_keys()
        for position in positions:
            mapping = self._mapper.find_key(position.key_id)
            if mapping is None:
                continue
            self._key_labels[position.key_id].setStyleSheet(self._key_style(mapping, highlighted=True))
            self._highlighted.append(position.key_id)
        if not session.pending_half_form:
            self._hint_label.setText(self._hint_text(session.next_expected(), positions))

    @staticmethod
    def _hint_text(unit: str, positions: list[KeyPosition]) -> str:
        shown = "Space" if unit == " " else unit
        if not positions:
            return f"Next: {shown}"
        first = positions[0]
        return f"Next: {shown}   ({_MODIFIER_HINTS[first.modifier_state]}{first.key_id})"

    def _update_stats(self) -> None:
        if self._session is None:
            return
        stats = stats_for_session(self._session, self._elapsed())
        self._stats_label.setText(
            f"Time {format_time(stats.time_elapsed)}   WPM {stats.net_wpm}   "
            f"Accuracy {stats.accuracy:.1f}%   Errors {stats.incorrect_chars}"
        )

    def closeEvent(self, event: QCloseEvent) -> None:
        self._stats_timer.stop()
        super().closeEvent(event)
