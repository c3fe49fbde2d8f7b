"""Tests for tankan.core.devanagari – codepoint classes and normalization."""

from __future__ import annotations

import unicodedata

import pytest

from tankan.core.devanagari import (
    HALANT,
    ends_with_half_form,
    equivalent,
    is_consonant,
    is_devanagari,
    is_halant,
    is_matra,
    is_pre_base_matra,
    is_valid_hindi_text,
    is_vowel,
    normalize,
)


# ---------------------------------------------------------------------------
# Codepoint classes
# ---------------------------------------------------------------------------

class TestCodepointClasses:
    @pytest.mark.parametrize("char", ["अ", "आ", "इ", "ऋ", "ए", "औ"])
    def test_vowels(self, char):
        assert is_vowel(char)
        assert not is_consonant(char)

    @pytest.mark.parametrize("char", ["क", "ज", "ह", "ळ", "\u0958", "\u095f"])
    def test_consonants(self, char):
        assert is_consonant(char)
        assert not is_vowel(char)

    @pytest.mark.parametrize("char", ["ा", "ि", "ौ", "़", "ँ", "ं", "ः"])
    def test_matras_and_signs(self, char):
        assert is_matra(char)

    def test_halant_is_not_a_matra(self):
        assert is_halant(HALANT)
        assert not is_matra(HALANT)

    def test_only_i_is_pre_base(self):
        assert is_pre_base_matra("ि")
        assert not is_pre_base_matra("ी")

    def test_empty_string_matches_nothing(self):
        assert not is_vowel("")
        assert not is_consonant("")
        assert not is_matra("")
        assert not is_devanagari("")

    def test_latin_is_not_devanagari(self):
        assert not is_devanagari("a")
        assert is_devanagari("।")


# ---------------------------------------------------------------------------
# Half forms
# ---------------------------------------------------------------------------

class TestHalfForm:
    def test_consonant_plus_halant(self):
        assert ends_with_half_form("नमस्")

    def test_bare_halant(self):
        assert not ends_with_half_form(HALANT)

    def test_full_consonant(self):
        assert not ends_with_half_form("नम")


# ---------------------------------------------------------------------------
# Normalization
# ---------------------------------------------------------------------------

class TestNormalization:
    def test_nukta_forms_are_equivalent(self):
        decomposed = "\u0915\u093c"
        precomposed = "\u0958"
        assert equivalent(decomposed, precomposed)

    def test_normalize_is_nfc(self):
        text = "ड़"
        assert normalize(text) == unicodedata.normalize("NFC", text)

    def test_different_text_not_equivalent(self):
        assert not equivalent("क", "ख")


class TestValidHindiText:
    def test_words_and_punctuation(self):
        assert is_valid_hindi_text("नमस्ते, आप कैसे हैं?")

    def test_latin_rejected(self):
        assert not is_valid_hindi_text("नमस्ते hello")
