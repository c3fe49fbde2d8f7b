from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

import yaml

from tankan.core.devanagari import is_valid_hindi_text
from tankan.core.stats import TypingStats

logger = logging.getLogger(__name__)

DEFAULT_LEVELS_DIR = Path(__file__).resolve().parent.parent / "data" / "levels"

DIFFICULTIES = ("beginner", "intermediate", "advanced")


@dataclass(frozen=True)
class Level:
    key: str
    name: str
    tasks: List[str]
    description: str = ""
    difficulty: str = "beginner"
    min_accuracy: float = 90.0
    min_wpm: float = 0.0
    target_keys: List[str] = field(default_factory=list)
    instructions: List[str] = field(default_factory=list)

    def passed(self, stats: TypingStats) -> bool:
        """Whether ``stats`` meet this level's accuracy and speed thresholds."""
        return stats.accuracy >= self.min_accuracy and stats.net_wpm >= self.min_wpm


def _string_list(value: object, name: str, where: str) -> List[str]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{where}: '{name}' must be a list")
    return [str(item).strip() for item in value if str(item).strip()]


def _threshold(value: object, default: float, name: str, where: str) -> float:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{where}: '{name}' must be a number")
    if value < 0:
        raise ValueError(f"{where}: '{name}' must not be negative")
    return float(value)


class LevelRepository:
    def __init__(self, base_dir: Optional[Path] = None) -> None:
        self._base_dir = base_dir or DEFAULT_LEVELS_DIR
        self._levels = self._load_levels()

    def all(self) -> List[Level]:
        return list(self._levels.values())

    def get(self, key: str) -> Level:
        return self._levels[key]

    def _load_levels(self) -> Dict[str, Level]:
        base_dir = self._base_dir
        if not base_dir.exists():
            raise FileNotFoundError(f"Levels directory not found: {base_dir}")

        levels: Dict[str, Level] = {}

        def _sort_key(p: Path) -> tuple[int, str]:
            m = re.match(r"^level(\d+)$", p.stem)
            if m:
                return (int(m.group(1)), p.stem)
            return (10**9, p.stem)

        for level_path in sorted(base_dir.glob("level*.yaml"), key=_sort_key):
            levels[level_path.stem] = self._load_level(level_path)

        if not levels:
            raise ValueError(f"No level files (level*.yaml) found in {base_dir}")
        logger.info("Loaded %d levels from %s", len(levels), base_dir)
        return levels

    @staticmethod
    def _load_level(level_path: Path) -> Level:
        where = level_path.name
        raw = yaml.safe_load(level_path.read_text(encoding="utf-8"))
        if not raw or not isinstance(raw, dict):
            raise ValueError(f"{where}: expected YAML with 'title' and 'content'")
        title = raw.get("title")
        content = raw.get("content")
        if not title or not isinstance(title, str):
            raise ValueError(f"{where}: missing or invalid 'title'")
        if content is None:
            raise ValueError(f"{where}: missing 'content'")
        if isinstance(content, list):
            tasks = [str(item).strip() for item in content if str(item).strip()]
        else:
            # allow content as multiline string
            text = str(content).strip()
            tasks = [line.strip() for line in text.splitlines() if line.strip()]
        if not tasks:
            raise ValueError(f"{where}: 'content' has no tasks")
        for task in tasks:
            if not is_valid_hindi_text(task):
                logger.warning("%s: passage %r contains non-Devanagari text", where, task)

        difficulty = str(raw.get("difficulty", "beginner")).strip().lower()
        if difficulty not in DIFFICULTIES:
            raise ValueError(f"{where}: invalid 'difficulty' {difficulty!r}")

        return Level(
            key=level_path.stem,
            name=title.strip(),
            tasks=tasks,
            description=str(raw.get("description") or "").strip(),
            difficulty=difficulty,
            min_accuracy=_threshold(raw.get("min_accuracy"), 90.0, "min_accuracy", where),
            min_wpm=_threshold(raw.get("min_wpm"), 0.0, "min_wpm", where),
            target_keys=_string_list(raw.get("target_keys"), "target_keys", where),
            instructions=_string_list(raw.get("instructions"), "instructions", where),
        )
