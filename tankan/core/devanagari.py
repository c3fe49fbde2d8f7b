"""Devanagari codepoint classes and normalization helpers."""

from __future__ import annotations

import unicodedata

HALANT = "्"
NUKTA = "़"
RA = "र"

AA_MATRA = "ा"
I_MATRA = "ि"
II_MATRA = "ी"
U_MATRA = "ु"
UU_MATRA = "ू"
VOCALIC_R_MATRA = "ृ"
CANDRA_E = "ॅ"
E_MATRA = "े"
AI_MATRA = "ै"
O_MATRA = "ो"
AU_MATRA = "ौ"

CHANDRABINDU = "ँ"
ANUSVARA = "ं"

VOWEL_A = "अ"
VOWEL_I = "इ"
VOWEL_E = "ए"

REPH = RA + HALANT

# Matras that render to the left of the consonant they follow in memory.
PRE_BASE_MATRAS = frozenset({I_MATRA})


def _code(char: str) -> int:
    return ord(char[0]) if char else -1


def is_vowel(char: str) -> bool:
    """Independent vowel, अ to औ."""
    return 0x0905 <= _code(char) <= 0x0914


def is_consonant(char: str) -> bool:
    code = _code(char)
    return 0x0915 <= code <= 0x0939 or 0x0958 <= code <= 0x095F


def is_matra(char: str) -> bool:
    """Dependent vowel sign, nukta, chandrabindu, anusvara or visarga."""
    code = _code(char)
    return 0x093E <= code <= 0x094C or code in (0x093C, 0x0901, 0x0902, 0x0903)


def is_halant(char: str) -> bool:
    return char == HALANT


def is_pre_base_matra(char: str) -> bool:
    return char in PRE_BASE_MATRAS


def is_devanagari(char: str) -> bool:
    code = _code(char)
    return 0x0900 <= code <= 0x097F or 0xA8E0 <= code <= 0xA8FF


def ends_with_half_form(text: str) -> bool:
    """True when ``text`` ends in consonant + halant."""
    return len(text) >= 2 and text[-1] == HALANT and is_consonant(text[-2])


def normalize(text: str) -> str:
    """Canonical composition (NFC)."""
    return unicodedata.normalize("NFC", text)


def equivalent(a: str, b: str) -> bool:
    """Compare two strings under canonical equivalence."""
    return normalize(a) == normalize(b)


def is_valid_hindi_text(text: str) -> bool:
    """Devanagari only, allowing spaces and common passage punctuation."""
    for char in text:
        if char in " ,.?!-\n":
            continue
        if not is_devanagari(char):
            return False
    return True
