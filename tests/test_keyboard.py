"""Tests for tankan.core.keyboard – forward/reverse mapping and modifiers."""

from __future__ import annotations

import pytest

from tankan.core.keyboard import CONTROL_KEYS, MODIFIER_KEYS, KeyboardMapper, KeyPosition
from tankan.core.layout import KeyboardLayout, KeyMapping, ModifierState, load_layout

N, S, A, AS = (
    ModifierState.NORMAL,
    ModifierState.SHIFT,
    ModifierState.ALTGR,
    ModifierState.ALTGR_SHIFT,
)


@pytest.fixture(scope="module")
def mapper() -> KeyboardMapper:
    return KeyboardMapper(load_layout())


# ---------------------------------------------------------------------------
# character_for
# ---------------------------------------------------------------------------

class TestCharacterFor:
    @pytest.mark.parametrize(
        "key_id,state,expected",
        [
            ("KeyD", N, "क"),
            ("KeyD", S, "क्"),
            ("KeyD", A, "ध"),
            ("KeyF", N, "ि"),
            ("KeyL", S, "स्"),
            ("BracketLeft", S, "क्ष्"),
            ("Digit9", S, "त्र"),
            ("KeyX", S, "र्"),
            ("KeyZ", N, "्र"),
            ("Space", N, " "),
            ("Quote", AS, "ष"),
        ],
    )
    def test_known_outputs(self, mapper, key_id, state, expected):
        assert mapper.character_for(key_id, state) == expected

    def test_unknown_key_is_empty(self, mapper):
        assert mapper.character_for("KeyNotThere", N) == ""

    def test_empty_slot(self, mapper):
        assert mapper.character_for("KeyZ", S) == ""

    def test_accepts_state_value(self, mapper):
        assert mapper.character_for("KeyD", "shift") == "क्"


# ---------------------------------------------------------------------------
# keys_producing
# ---------------------------------------------------------------------------

class TestKeysProducing:
    def test_single_key(self, mapper):
        assert mapper.keys_producing("क") == [KeyPosition("KeyD", N)]

    def test_multi_codepoint_output(self, mapper):
        assert mapper.keys_producing("क्ष्") == [KeyPosition("BracketLeft", S)]

    def test_ordered_by_position_then_modifier(self, mapper):
        # । is Shift+1 (row 0) and AltGr+; (row 2).
        assert mapper.keys_producing("।") == [
            KeyPosition("Digit1", S),
            KeyPosition("Semicolon", A),
        ]

    def test_space_in_every_state(self, mapper):
        assert mapper.keys_producing(" ") == [KeyPosition("Space", s) for s in (N, S, A, AS)]

    def test_unreachable(self, mapper):
        assert mapper.keys_producing("x") == []
        assert mapper.keys_producing("") == []

    def test_every_output_is_reachable(self, mapper):
        for mapping in mapper.layout.keys():
            for state, out in mapping.outputs().items():
                if not out:
                    continue
                positions = mapper.keys_producing(out)
                assert positions
                assert all(mapper.character_for(p.key_id, p.modifier_state) == out for p in positions)

    def test_result_is_a_copy(self, mapper):
        mapper.keys_producing("क").clear()
        assert mapper.keys_producing("क")


# ---------------------------------------------------------------------------
# Key classification
# ---------------------------------------------------------------------------

class TestKeyClassification:
    @pytest.mark.parametrize("key_id", sorted(MODIFIER_KEYS))
    def test_modifiers(self, key_id):
        assert KeyboardMapper.is_modifier_key(key_id)
        assert not KeyboardMapper.is_typeable_key(key_id)

    @pytest.mark.parametrize("key_id", ["Backspace", "Enter", "Tab", "F5", "F12", "ArrowLeft", "NumLock"])
    def test_control_keys(self, key_id):
        assert key_id in CONTROL_KEYS
        assert KeyboardMapper.is_control_key(key_id)
        assert not KeyboardMapper.is_typeable_key(key_id)

    @pytest.mark.parametrize("key_id", ["KeyA", "Digit1", "Space", "Semicolon"])
    def test_typeable(self, key_id):
        assert KeyboardMapper.is_typeable_key(key_id)
        assert not KeyboardMapper.is_control_key(key_id)


# ---------------------------------------------------------------------------
# resolve_modifier_state
# ---------------------------------------------------------------------------

class TestResolveModifierState:
    @pytest.mark.parametrize(
        "held,expected",
        [
            (set(), N),
            ({"ShiftLeft"}, S),
            ({"ShiftRight"}, S),
            ({"AltRight"}, A),
            ({"AltGraph"}, A),
            ({"AltGraph", "ShiftLeft"}, AS),
            ({"AltRight", "ShiftRight"}, AS),
            ({"AltLeft"}, N),
            ({"ControlLeft", "ShiftLeft"}, S),
        ],
    )
    def test_states(self, mapper, held, expected):
        assert mapper.resolve_modifier_state(held) is expected


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class TestHelpers:
    def test_find_key(self, mapper):
        assert mapper.find_key("KeyD").normal == "क"
        assert mapper.find_key("Nope") is None

    def test_all_characters_for_key(self, mapper):
        assert mapper.all_characters_for_key("KeyD") == ["क", "क्", "ध", "हु"]
        assert mapper.all_characters_for_key("KeyZ") == ["्र"]
        assert mapper.all_characters_for_key("Nope") == []

    def test_key_row(self, mapper):
        assert mapper.key_row("Digit1") == 0
        assert mapper.key_row("KeyQ") == 1
        assert mapper.key_row("KeyA") == 2
        assert mapper.key_row("KeyZ") == 3
        assert mapper.key_row("Space") == 4
        assert mapper.key_row("Nope") == -1

    def test_valid_combination(self, mapper):
        assert mapper.is_valid_key_combination("KeyD", N)
        assert not mapper.is_valid_key_combination("KeyZ", S)

    def test_key_count(self, mapper):
        assert mapper.key_count == 48

    def test_default_is_shared(self, monkeypatch):
        monkeypatch.delenv("TANKAN_LAYOUT", raising=False)
        assert KeyboardMapper.default() is KeyboardMapper.default()

    def test_custom_layout(self):
        layout = KeyboardLayout(
            name="Tiny",
            description="",
            rows=((KeyMapping("KeyA", "अ", "आ", "", "", finger=0, hand="left"),),),
        )
        tiny = KeyboardMapper(layout)
        assert tiny.keys_producing("आ") == [KeyPosition("KeyA", S)]
        assert tiny.resolve_modifier_state({"ShiftLeft"}) is S
