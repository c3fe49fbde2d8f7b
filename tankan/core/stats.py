"""Typing statistics.

Speeds use the five-character word: gross WPM is characters / 5 per minute,
net WPM subtracts errors / 5 per minute and is floored at 0. Elapsed time is
always supplied by the caller.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, NamedTuple

if TYPE_CHECKING:
    from tankan.core.session import TypingSession


class Rating(NamedTuple):
    level: str
    description: str
    color: str


@dataclass(frozen=True)
class TypingStats:
    wpm: int
    gross_wpm: int
    net_wpm: int
    accuracy: float
    correct_chars: int
    incorrect_chars: int
    total_chars: int
    time_elapsed: float


def calculate_gross_wpm(char_count: int, seconds: float) -> int:
    if seconds <= 0:
        return 0
    return round((char_count / 5.0) / (seconds / 60.0))


def calculate_net_wpm(char_count: int, seconds: float, error_count: int) -> int:
    if seconds <= 0:
        return 0
    penalty = (error_count / 5.0) / (seconds / 60.0)
    return max(0, round(calculate_gross_wpm(char_count, seconds) - penalty))


def calculate_wpm(char_count: int, seconds: float, error_count: int = 0) -> int:
    """Net WPM computed from unrounded gross speed."""
    if seconds <= 0:
        return 0
    minutes = seconds / 60.0
    gross = (char_count / 5.0) / minutes
    return round(max(0.0, gross - (error_count / 5.0) / minutes))


def calculate_accuracy(correct_count: int, total_count: int) -> float:
    """Percentage rounded to two decimals; 100 when nothing was typed."""
    if total_count == 0:
        return 100.0
    return round(correct_count / total_count * 100.0, 2)


def calculate_cpm(char_count: int, seconds: float) -> int:
    if seconds <= 0:
        return 0
    return round(char_count / (seconds / 60.0))


def calculate_average_keystroke_interval(keystrokes: int, seconds: float) -> int:
    """Mean milliseconds between consecutive keystrokes."""
    if keystrokes <= 1:
        return 0
    return round(seconds * 1000.0 / (keystrokes - 1))


def calculate_detailed_stats(
    typed_chars: int,
    correct_chars: int,
    error_count: int,
    seconds: float,
) -> TypingStats:
    net = calculate_net_wpm(typed_chars, seconds, error_count)
    return TypingStats(
        wpm=net,
        gross_wpm=calculate_gross_wpm(typed_chars, seconds),
        net_wpm=net,
        accuracy=calculate_accuracy(correct_chars, typed_chars),
        correct_chars=correct_chars,
        incorrect_chars=error_count,
        total_chars=typed_chars,
        time_elapsed=seconds,
    )


def stats_for_session(session: "TypingSession", seconds: float) -> TypingStats:
    """Snapshot of a session's counters."""
    return calculate_detailed_stats(
        typed_chars=session.cursor,
        correct_chars=session.correct_count,
        error_count=session.error_count,
        seconds=seconds,
    )


_PERFORMANCE_LEVELS = (
    (10, Rating("Beginner", "Keep practicing! Speed will come with time.", "#6b7280")),
    (20, Rating("Novice", "You're making progress. Focus on accuracy.", "#3b82f6")),
    (30, Rating("Intermediate", "Good progress! Keep building muscle memory.", "#22c55e")),
    (40, Rating("Advanced", "Excellent typing speed!", "#a855f7")),
    (50, Rating("Expert", "Outstanding! You're a proficient typist.", "#f97316")),
)
_MASTER = Rating("Master", "Exceptional speed! You're among the best.", "#ef4444")

_ACCURACY_LEVELS = (
    (98, Rating("Excellent", "Near-perfect accuracy!", "#16a34a")),
    (95, Rating("Very Good", "Great accuracy!", "#22c55e")),
    (90, Rating("Good", "Good accuracy. Minor improvements needed.", "#3b82f6")),
    (85, Rating("Fair", "Decent accuracy. Focus on reducing errors.", "#eab308")),
    (80, Rating("Needs Improvement", "Slow down and focus on accuracy.", "#f97316")),
)
_POOR = Rating("Poor", "Accuracy needs significant improvement.", "#ef4444")


def get_performance_level(wpm: float) -> Rating:
    for limit, rating in _PERFORMANCE_LEVELS:
        if wpm < limit:
            return rating
    return _MASTER


def get_accuracy_level(accuracy: float) -> Rating:
    for floor, rating in _ACCURACY_LEVELS:
        if accuracy >= floor:
            return rating
    return _POOR


def format_time(seconds: float) -> str:
    """``m:ss``"""
    total = int(seconds)
    return f"{total // 60}:{total % 60:02d}"


def calculate_progress(current: int, total: int) -> int:
    if total == 0:
        return 0
    return min(100, round(current / total * 100))
