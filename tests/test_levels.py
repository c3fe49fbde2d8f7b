"""Tests for tankan.core.levels – YAML-based lesson loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from tankan.core.devanagari import equivalent
from tankan.core.keyboard import KeyboardMapper
from tankan.core.layout import DEFAULT_LAYOUT_PATH, load_layout
from tankan.core.levels import Level, LevelRepository
from tankan.core.session import TypingSession
from tankan.core.stats import calculate_detailed_stats


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def levels_dir(tmp_path: Path) -> Path:
    d = tmp_path / "data" / "levels"
    d.mkdir(parents=True)
    return d


def _write_yaml(path: Path, data: dict) -> None:
    path.write_text(yaml.dump(data, allow_unicode=True, default_flow_style=False), encoding="utf-8")


# ---------------------------------------------------------------------------
# Level dataclass
# ---------------------------------------------------------------------------

class TestLevelDataclass:
    def test_defaults(self):
        lv = Level(key="level1", name="Home row", tasks=["कर"])
        assert lv.min_accuracy == 90.0
        assert lv.min_wpm == 0.0
        assert lv.difficulty == "beginner"
        assert lv.target_keys == []
        assert lv.instructions == []

    def test_frozen(self):
        lv = Level(key="level1", name="Home row", tasks=["कर"])
        with pytest.raises(AttributeError):
            lv.key = "other"  # type: ignore[misc]

    def test_passed(self):
        lv = Level(key="level1", name="L", tasks=["कर"], min_accuracy=90, min_wpm=10)
        assert lv.passed(calculate_detailed_stats(100, 95, 5, 60))
        assert not lv.passed(calculate_detailed_stats(100, 80, 20, 60))
        assert not lv.passed(calculate_detailed_stats(20, 20, 0, 60))


# ---------------------------------------------------------------------------
# LevelRepository – happy paths
# ---------------------------------------------------------------------------

class TestLevelRepositoryHappy:
    def test_single_level(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "Basics", "content": ["कर", "सरल"]})
        repo = LevelRepository(levels_dir)
        assert len(repo.all()) == 1
        lv = repo.get("level1")
        assert lv.name == "Basics"
        assert lv.tasks == ["कर", "सरल"]

    def test_multiple_levels_sorted_numerically(self, levels_dir: Path):
        _write_yaml(levels_dir / "level10.yaml", {"title": "Ten", "content": ["क"]})
        _write_yaml(levels_dir / "level2.yaml", {"title": "Two", "content": ["क"]})
        _write_yaml(levels_dir / "level1.yaml", {"title": "One", "content": ["क"]})
        repo = LevelRepository(levels_dir)
        assert [lv.key for lv in repo.all()] == ["level1", "level2", "level10"]

    def test_content_as_multiline_string(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": "कर\nसर\nहर"})
        assert LevelRepository(levels_dir).get("level1").tasks == ["कर", "सर", "हर"]

    def test_optional_fields(self, levels_dir: Path):
        _write_yaml(
            levels_dir / "level1.yaml",
            {
                "title": "T",
                "content": ["क"],
                "description": " Home row ",
                "difficulty": "Advanced",
                "min_accuracy": 95,
                "min_wpm": 12.5,
                "target_keys": ["KeyD", "KeyF"],
                "instructions": ["Press ि first", ""],
            },
        )
        lv = LevelRepository(levels_dir).get("level1")
        assert lv.description == "Home row"
        assert lv.difficulty == "advanced"
        assert lv.min_accuracy == 95.0
        assert lv.min_wpm == 12.5
        assert lv.target_keys == ["KeyD", "KeyF"]
        assert lv.instructions == ["Press ि first"]

    def test_non_hindi_passage_is_loaded(self, levels_dir: Path, caplog):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": ["abc"]})
        assert LevelRepository(levels_dir).get("level1").tasks == ["abc"]
        assert "non-Devanagari" in caplog.text

    def test_bundled_levels(self):
        repo = LevelRepository()
        levels = repo.all()
        assert levels
        assert levels[0].key == "level1"
        for lv in levels:
            assert lv.tasks

    def test_bundled_passages_can_be_typed_from_hints(self):
        mapper = KeyboardMapper(load_layout(DEFAULT_LAYOUT_PATH))
        for lv in LevelRepository().all():
            for passage in lv.tasks:
                session = TypingSession(passage, mapper)
                while not session.is_completed:
                    keys = session.next_keys()
                    assert keys, f"no key for {session.next_expected()!r} in {passage!r}"
                    session.keystroke(keys[0].key_id, keys[0].modifier_state)
                assert session.error_count == 0, passage
                assert equivalent(session.display_text(), passage)


# ---------------------------------------------------------------------------
# LevelRepository – error paths
# ---------------------------------------------------------------------------

class TestLevelRepositoryErrors:
    def test_missing_directory(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            LevelRepository(tmp_path / "nope")

    def test_no_yaml_files(self, levels_dir: Path):
        with pytest.raises(ValueError, match="No level files"):
            LevelRepository(levels_dir)

    def test_empty_yaml(self, levels_dir: Path):
        (levels_dir / "level1.yaml").write_text("", encoding="utf-8")
        with pytest.raises(ValueError, match="expected YAML"):
            LevelRepository(levels_dir)

    def test_missing_title(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"content": ["क"]})
        with pytest.raises(ValueError, match="missing or invalid 'title'"):
            LevelRepository(levels_dir)

    def test_missing_content(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T"})
        with pytest.raises(ValueError, match="missing 'content'"):
            LevelRepository(levels_dir)

    def test_whitespace_only_content(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": ["  ", "\n"]})
        with pytest.raises(ValueError, match="no tasks"):
            LevelRepository(levels_dir)

    def test_invalid_threshold(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": ["क"], "min_wpm": "fast"})
        with pytest.raises(ValueError, match="level1.yaml: 'min_wpm'"):
            LevelRepository(levels_dir)

    def test_negative_threshold(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": ["क"], "min_accuracy": -5})
        with pytest.raises(ValueError, match="min_accuracy"):
            LevelRepository(levels_dir)

    def test_invalid_difficulty(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": ["क"], "difficulty": "expert"})
        with pytest.raises(ValueError, match="difficulty"):
            LevelRepository(levels_dir)

    def test_target_keys_not_a_list(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": ["क"], "target_keys": "KeyD"})
        with pytest.raises(ValueError, match="target_keys"):
            LevelRepository(levels_dir)

    def test_get_missing_key(self, levels_dir: Path):
        _write_yaml(levels_dir / "level1.yaml", {"title": "T", "content": ["क"]})
        with pytest.raises(KeyError):
            LevelRepository(levels_dir).get("nonexistent")
