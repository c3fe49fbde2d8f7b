"""Keystroke composition for the Remington GAIL layout.

Three views of the same passage meet here:

* the composed text a reader sees (``कि``),
* the keystroke-aligned text, i.e. the codepoints in the order the layout's
  keys emit them (``िक``),
* whatever prefix of the keystroke-aligned text the typist has produced.

``decompose`` turns the first into the second, ``recompose`` turns any prefix
of the second back into display text, and ``compose_incremental`` builds
display text one keystroke at a time. All three are driven by the rule table
``RULES``: each rule carries a forward matcher (composed -> keystrokes) and,
where the rewrite is not the identity, a backward matcher.

Matchers are pure functions ``(codepoints, index) -> Match | None`` over a
list of single-codepoint strings. A position nobody matches is copied as-is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, NamedTuple, Optional, Sequence

from tankan.core.devanagari import (
    AA_MATRA,
    AI_MATRA,
    ANUSVARA,
    AU_MATRA,
    CANDRA_E,
    CHANDRABINDU,
    E_MATRA,
    HALANT,
    II_MATRA,
    I_MATRA,
    NUKTA,
    O_MATRA,
    RA,
    REPH,
    UU_MATRA,
    U_MATRA,
    VOCALIC_R_MATRA,
    VOWEL_A,
    VOWEL_E,
    VOWEL_I,
    ends_with_half_form,
    is_consonant,
    is_devanagari,
    is_matra,
    normalize,
)

logger = logging.getLogger(__name__)

Codepoints = Sequence[str]

# Conjuncts the layout exposes on a single key.
DIRECT_CONJUNCTS = frozenset({"त्र", "द्ध", "द्य", "श्र", "ज्ञ"})

# क्ष is typed as its half form (one key) followed by the AA key.
KSSA = "क्ष"
KSSA_SPELLING = "क्ष्" + AA_MATRA

# Full consonants without a key outside the AltGr plane: half form + AA.
HALF_PLUS_AA_CONSONANTS = frozenset("खघथधभशषण")

INDEPENDENT_VOWEL_SPELLINGS = {
    "आ": VOWEL_A + AA_MATRA,
    "ई": VOWEL_I + REPH,
    "ऊ": VOWEL_A + UU_MATRA,
    "ऐ": VOWEL_E + E_MATRA,
    "ओ": VOWEL_A + AA_MATRA + E_MATRA,
    "औ": VOWEL_A + AA_MATRA + AI_MATRA,
}

# What a trailing independent vowel becomes when a sign is typed after it.
VOWEL_FUSIONS: dict[str, dict[str, str]] = {
    VOWEL_A: {
        AA_MATRA: "आ",
        I_MATRA: VOWEL_I,
        II_MATRA: "ई",
        U_MATRA: "उ",
        UU_MATRA: "ऊ",
        VOCALIC_R_MATRA: "ऋ",
        E_MATRA: VOWEL_E,
        AI_MATRA: "ऐ",
        O_MATRA: "ओ",
        AU_MATRA: "औ",
    },
    "आ": {E_MATRA: "ओ", AI_MATRA: "औ"},
    VOWEL_E: {E_MATRA: "ऐ"},
    VOWEL_I: {REPH: "ई"},
}

COMPOUND_MATRA_SPELLINGS = {
    O_MATRA: AA_MATRA + E_MATRA,
    AU_MATRA: AA_MATRA + AI_MATRA,
}

CHANDRABINDU_SPELLING = CANDRA_E + ANUSVARA

# Two-sign sequences that fuse back into one sign.
SIGN_FUSIONS = {spelling: sign for sign, spelling in COMPOUND_MATRA_SPELLINGS.items()}
SIGN_FUSIONS[CHANDRABINDU_SPELLING] = CHANDRABINDU


@dataclass(frozen=True)
class Match:
    consumed: int
    output: str


Matcher = Callable[[Codepoints, int], Optional[Match]]


@dataclass(frozen=True)
class CompositionRule:
    """One orthographic rule with its forward and backward rewriters.

    ``backward`` is ``None`` when the forward rewrite leaves the text as it
    was. ``backward_priority`` orders the backward matchers; lower runs first.
    """

    name: str
    forward: Matcher
    backward: Optional[Matcher] = None
    backward_priority: int = 0


class Composition(NamedTuple):
    text: str
    pending_pre_base: Optional[str]


def _at(cps: Codepoints, i: int) -> str:
    return cps[i] if 0 <= i < len(cps) else ""


def _span(cps: Codepoints, i: int, n: int) -> str:
    return "".join(cps[i:i + n])


# ---------------------------------------------------------------------------
# Forward matchers (composed -> keystroke-aligned)
# ---------------------------------------------------------------------------

def _emit_unit(cps: Codepoints, start: int, end: int, spelling: str) -> Match:
    """Emit a consonant unit, pulling a following pre-base matra in front."""
    if _at(cps, end) == I_MATRA:
        return Match(end + 1 - start, I_MATRA + spelling)
    return Match(end - start, spelling)


def _forward_reph(cps: Codepoints, i: int) -> Optional[Match]:
    if not (_at(cps, i) == RA and _at(cps, i + 1) == HALANT and is_consonant(_at(cps, i + 2))):
        return None
    base = i + 2
    end = base + 1
    if _at(cps, end) == NUKTA:
        end += 1
    if _at(cps, end) == HALANT:
        # Reph over a longer conjunct: only the first consonant moves.
        return Match(end - i, _span(cps, base, end - base) + REPH)
    while end < len(cps) and is_matra(cps[end]):
        end += 1
    syllable = decompose("".join(cps[base:end]))
    return Match(end - i, syllable + REPH)


def _forward_conjunct(cps: Codepoints, i: int) -> Optional[Match]:
    three = _span(cps, i, 3)
    if three in DIRECT_CONJUNCTS:
        return _emit_unit(cps, i, i + 3, three)
    if three == KSSA and _at(cps, i + 3) != HALANT:
        return _emit_unit(cps, i, i + 3, KSSA_SPELLING)
    return None


def _forward_rakar(cps: Codepoints, i: int) -> Optional[Match]:
    if (
        is_consonant(_at(cps, i))
        and _at(cps, i + 1) == HALANT
        and _at(cps, i + 2) == RA
        and _at(cps, i + 3) != HALANT
    ):
        return _emit_unit(cps, i, i + 3, _span(cps, i, 3))
    return None


def _forward_half_form(cps: Codepoints, i: int) -> Optional[Match]:
    if not is_consonant(_at(cps, i)):
        return None
    end = i + 1
    if _at(cps, end) == NUKTA:
        end += 1
    if _at(cps, end) == HALANT:
        return Match(end + 1 - i, _span(cps, i, end + 1 - i))
    return None


def _forward_half_plus_aa(cps: Codepoints, i: int) -> Optional[Match]:
    char = _at(cps, i)
    if char not in HALF_PLUS_AA_CONSONANTS:
        return None
    spelling = char + HALANT + AA_MATRA
    end = i + 1
    if _at(cps, end) == NUKTA:
        spelling += NUKTA
        end += 1
    return _emit_unit(cps, i, end, spelling)


def _forward_independent_vowel(cps: Codepoints, i: int) -> Optional[Match]:
    spelling = INDEPENDENT_VOWEL_SPELLINGS.get(_at(cps, i))
    return Match(1, spelling) if spelling else None


def _forward_pre_base(cps: Codepoints, i: int) -> Optional[Match]:
    if not is_consonant(_at(cps, i)):
        return None
    end = i + 1
    if _at(cps, end) == NUKTA:
        end += 1
    if _at(cps, end) == I_MATRA:
        return Match(end + 1 - i, I_MATRA + _span(cps, i, end - i))
    return None


def _forward_compound_matra(cps: Codepoints, i: int) -> Optional[Match]:
    spelling = COMPOUND_MATRA_SPELLINGS.get(_at(cps, i))
    return Match(1, spelling) if spelling else None


def _forward_chandrabindu(cps: Codepoints, i: int) -> Optional[Match]:
    return Match(1, CHANDRABINDU_SPELLING) if _at(cps, i) == CHANDRABINDU else None


# ---------------------------------------------------------------------------
# Backward matchers (keystroke-aligned -> composed)
# ---------------------------------------------------------------------------

def _unit_end(cps: Codepoints, i: int) -> Optional[int]:
    """End of the keystroke spelling of a consonant unit starting at ``i``."""
    if not is_consonant(_at(cps, i)):
        return None
    if _span(cps, i, len(KSSA_SPELLING)) == KSSA_SPELLING:
        return i + len(KSSA_SPELLING)
    if _span(cps, i, 3) in DIRECT_CONJUNCTS:
        return i + 3
    if _at(cps, i + 1) == HALANT and _at(cps, i + 2) == RA:
        return i + 3
    end = i + 1
    if _at(cps, end) == NUKTA:
        end += 1
    if _at(cps, end) == HALANT:
        if _at(cps, end + 1) != AA_MATRA:
            return None
        end += 2
        if _at(cps, end) == NUKTA:
            end += 1
    return end


def _backward_reph(cps: Codepoints, i: int) -> Optional[Match]:
    start = i + 1 if _at(cps, i) == I_MATRA else i
    end = _unit_end(cps, start)
    if end is None:
        return None
    while end < len(cps) and is_matra(cps[end]) and cps[end] != I_MATRA:
        end += 1
    if _at(cps, end) == RA and _at(cps, end + 1) == HALANT:
        return Match(end + 2 - i, REPH + recompose(cps[i:end]))
    return None


def _backward_pre_base(cps: Codepoints, i: int) -> Optional[Match]:
    if _at(cps, i) != I_MATRA:
        return None
    end = _unit_end(cps, i + 1)
    if end is None:
        return None
    return Match(end - i, recompose(cps[i + 1:end]) + I_MATRA)


def _backward_independent_vowel(cps: Codepoints, i: int) -> Optional[Match]:
    vowel = _at(cps, i)
    end = i + 1
    while vowel in VOWEL_FUSIONS:
        for sign, fused in VOWEL_FUSIONS[vowel].items():
            if _span(cps, end, len(sign)) != sign:
                continue
            if sign == I_MATRA and _unit_end(cps, end + 1) is not None:
                # िक after अ is a reordered कि, not इ.
                continue
            vowel = fused
            end += len(sign)
            break
        else:
            break
    if end == i + 1:
        return None
    return Match(end - i, vowel)


def _backward_half_plus_aa(cps: Codepoints, i: int) -> Optional[Match]:
    if is_consonant(_at(cps, i)) and _at(cps, i + 1) == HALANT and _at(cps, i + 2) == AA_MATRA:
        return Match(3, cps[i])
    return None


def _backward_sign_pair(cps: Codepoints, i: int) -> Optional[Match]:
    fused = SIGN_FUSIONS.get(_span(cps, i, 2))
    return Match(2, fused) if fused else None


RULES: tuple[CompositionRule, ...] = (
    CompositionRule("reph", _forward_reph, _backward_reph, backward_priority=0),
    CompositionRule("fixed_conjunct", _forward_conjunct),
    CompositionRule("rakar", _forward_rakar),
    CompositionRule("half_form", _forward_half_form),
    CompositionRule("half_plus_aa", _forward_half_plus_aa, _backward_half_plus_aa, backward_priority=3),
    CompositionRule(
        "independent_vowel",
        _forward_independent_vowel,
        _backward_independent_vowel,
        backward_priority=2,
    ),
    CompositionRule("pre_base", _forward_pre_base, _backward_pre_base, backward_priority=1),
    CompositionRule("compound_matra", _forward_compound_matra, _backward_sign_pair, backward_priority=4),
    CompositionRule("chandrabindu", _forward_chandrabindu),
)

_FORWARD: tuple[Matcher, ...] = tuple(rule.forward for rule in RULES)
_BACKWARD: tuple[Matcher, ...] = tuple(
    rule.backward
    for rule in sorted(RULES, key=lambda r: r.backward_priority)
    if rule.backward is not None
)


class Segment(NamedTuple):
    start: int
    end: int
    text: str


def _segments(cps: Codepoints, matchers: Sequence[Matcher]) -> list[Segment]:
    out: list[Segment] = []
    i = 0
    while i < len(cps):
        for matcher in matchers:
            match = matcher(cps, i)
            if match is not None:
                out.append(Segment(i, i + match.consumed, match.output))
                i += match.consumed
                break
        else:
            out.append(Segment(i, i + 1, cps[i]))
            i += 1
    return out


def _rewrite(cps: Codepoints, matchers: Sequence[Matcher]) -> str:
    return "".join(segment.text for segment in _segments(cps, matchers))


def decompose(text: str) -> str:
    """Rewrite composed text into the order its keystrokes produce it."""
    cps = list(normalize(text))
    if logger.isEnabledFor(logging.DEBUG):
        foreign = {c for c in cps if not is_devanagari(c) and not c.isspace()}
        if foreign:
            logger.debug("Passing through non-Devanagari codepoints: %s", sorted(foreign))
    return _rewrite(cps, _FORWARD)


def recompose(typed: Sequence[str] | str) -> str:
    """Turn keystroke-aligned text (or any typed prefix of it) into display text."""
    return normalize(_rewrite(list(typed), _BACKWARD))


def recompose_segments(typed: Sequence[str] | str) -> list[Segment]:
    """Like ``recompose``, but keeps the typed span each piece of display text came from.

    A reordered syllable (``िक`` shown as ``कि``) stays one segment, so callers
    can style it as a whole.
    """
    return _segments(list(typed), _BACKWARD)


# ---------------------------------------------------------------------------
# Incremental composition
# ---------------------------------------------------------------------------

def _syllable_start(text: str) -> Optional[int]:
    """Index of the consonant that carries the trailing signs of ``text``."""
    k = len(text) - 1
    while k >= 0 and is_matra(text[k]) and text[k] != NUKTA:
        k -= 1
    if k >= 0 and text[k] == NUKTA:
        k -= 1
    if k >= 0 and is_consonant(text[k]):
        return k
    return None


def compose_incremental(
    existing: str,
    cluster: str,
    pending_pre_base: Optional[str] = None,
) -> Composition:
    """Add one keystroke's output to already composed display text.

    A pre-base matra is held back in ``pending_pre_base`` until the consonant
    it belongs to arrives.
    """
    if not cluster:
        return Composition(existing, pending_pre_base)

    if cluster == I_MATRA:
        return Composition(existing + (pending_pre_base or ""), cluster)

    if pending_pre_base:
        if is_consonant(cluster[0]):
            if ends_with_half_form(cluster):
                # Wait for the AA that completes the half form.
                return Composition(existing + cluster, pending_pre_base)
            return Composition(existing + cluster + pending_pre_base, None)
        if cluster == AA_MATRA and ends_with_half_form(existing):
            return Composition(existing[:-1] + pending_pre_base, None)
        return Composition(existing + pending_pre_base + cluster, None)

    last = existing[-1:]
    fused = VOWEL_FUSIONS.get(last, {}).get(cluster)
    if fused:
        return Composition(existing[:-1] + fused, None)

    if len(cluster) == 1 and is_matra(cluster) and ends_with_half_form(existing):
        if cluster == AA_MATRA:
            return Composition(existing[:-1], None)
        return Composition(existing[:-1] + cluster, None)

    fused = SIGN_FUSIONS.get(last + cluster)
    if fused:
        return Composition(existing[:-1] + fused, None)

    if cluster == REPH:
        start = _syllable_start(existing)
        if start is not None:
            return Composition(existing[:start] + REPH + existing[start:], None)

    if cluster[0] == HALANT and last == I_MATRA and is_consonant(existing[-2:-1]):
        return Composition(existing[:-1] + cluster + I_MATRA, None)

    return Composition(existing + cluster, None)


def compose_sequence(clusters: Sequence[str]) -> str:
    """Fold ``compose_incremental`` over keystroke outputs."""
    text, pending = "", None
    for cluster in clusters:
        text, pending = compose_incremental(text, cluster, pending)
    return normalize(text + (pending or ""))
