"""
Chord Quality Module - Canonical Chord Qualities and Their Aliases

Chord charts spell the same quality many ways: "m7b5", "ø7", "min7(b5)",
"half-dim". This module collapses all of them onto one closed set of
canonical qualities, each with a fixed interval structure.

Key ideas:
    1. ChordQuality is the only type downstream code sees (never raw strings)
    2. Every alias goes through the same canonical-form function that was used
       to build the alias table, so stacked alterations match in any order
    3. Resolution never fails: unknown tokens become "major" with
       recognized=False so the caller can show a hint

Example:
    >>> resolve_chord_quality("7b13#9")
    QualityResolution(normalized=<ChordQuality.DOM7_SHARP9_FLAT13: '7#9b13'>, recognized=True)
"""

import logging
import re
from enum import Enum
from typing import Dict, FrozenSet, Optional, Tuple

from pydantic import BaseModel, ConfigDict

from fretlab.theory.pitch import note_to_value, value_to_note

logger = logging.getLogger(__name__)


# =============================================================================
# PART 1: CANONICAL QUALITIES
# =============================================================================

class ChordQuality(str, Enum):
    """Closed set of canonical chord-quality identifiers."""

    MAJOR = "major"
    MINOR = "minor"
    DIM = "dim"
    AUG = "aug"
    SUS2 = "sus2"
    SUS4 = "sus4"
    POWER = "5"
    DOM7 = "7"
    MAJ7 = "maj7"
    MIN7 = "min7"
    DIM7 = "dim7"
    MIN7_FLAT5 = "min7b5"
    MIN_MAJ7 = "min/maj7"
    DOM9 = "9"
    MAJ9 = "maj9"
    MIN9 = "min9"
    DOM9_SHARP11 = "9#11"
    DOM11 = "11"
    MAJ11 = "maj11"
    MIN11 = "min11"
    DOM13 = "13"
    MAJ13 = "maj13"
    MIN13 = "min13"
    MAJ6 = "6"
    MIN6 = "min6"
    SIX_NINE = "6/9"
    ADD9 = "add9"
    ADD11 = "add11"
    MIN_ADD9 = "madd9"
    DOM7_FLAT9 = "7b9"
    DOM7_SHARP9 = "7#9"
    DOM7_FLAT5 = "7b5"
    DOM7_SHARP5 = "7#5"
    DOM7_ALT = "7alt"
    DOM7_FLAT13 = "7b13"
    DOM7_SHARP11 = "7#11"
    DOM7_FLAT9_FLAT13 = "7b9b13"
    DOM7_SHARP9_FLAT13 = "7#9b13"
    DOM7_SHARP5_FLAT9 = "7#5b9"
    DOM7_SHARP5_SHARP9 = "7#5#9"
    DOM7_SUS4 = "7sus4"
    DOM9_SUS4 = "9sus4"
    MAJ7_SHARP11 = "maj7#11"
    MAJ7_FLAT13 = "maj7b13"
    MAJ7_SHARP9 = "maj7#9"
    QUARTAL = "quartal"

    def __str__(self) -> str:
        return self.value


# Semitone offsets from the root. Extensions above the octave are kept as
# written (14 = 9th) and compared mod 12.
QUALITY_INTERVALS: Dict[ChordQuality, Tuple[int, ...]] = {
    ChordQuality.MAJOR: (0, 4, 7),
    ChordQuality.MINOR: (0, 3, 7),
    ChordQuality.DIM: (0, 3, 6),
    ChordQuality.AUG: (0, 4, 8),
    ChordQuality.SUS2: (0, 2, 7),
    ChordQuality.SUS4: (0, 5, 7),
    ChordQuality.POWER: (0, 7),
    ChordQuality.DOM7: (0, 4, 7, 10),
    ChordQuality.MAJ7: (0, 4, 7, 11),
    ChordQuality.MIN7: (0, 3, 7, 10),
    ChordQuality.DIM7: (0, 3, 6, 9),
    ChordQuality.MIN7_FLAT5: (0, 3, 6, 10),
    ChordQuality.MIN_MAJ7: (0, 3, 7, 11),
    ChordQuality.DOM9: (0, 4, 7, 10, 14),
    ChordQuality.MAJ9: (0, 4, 7, 11, 14),
    ChordQuality.MIN9: (0, 3, 7, 10, 14),
    ChordQuality.DOM9_SHARP11: (0, 4, 7, 10, 14, 18),
    ChordQuality.DOM11: (0, 4, 7, 10, 14, 17),
    ChordQuality.MAJ11: (0, 4, 7, 11, 14, 17),
    ChordQuality.MIN11: (0, 3, 7, 10, 14, 17),
    ChordQuality.DOM13: (0, 4, 7, 10, 14, 21),
    ChordQuality.MAJ13: (0, 4, 7, 11, 14, 21),
    ChordQuality.MIN13: (0, 3, 7, 10, 14, 21),
    ChordQuality.MAJ6: (0, 4, 7, 9),
    ChordQuality.MIN6: (0, 3, 7, 9),
    ChordQuality.SIX_NINE: (0, 4, 7, 9, 14),
    ChordQuality.ADD9: (0, 4, 7, 14),
    ChordQuality.ADD11: (0, 4, 7, 17),
    ChordQuality.MIN_ADD9: (0, 3, 7, 14),
    ChordQuality.DOM7_FLAT9: (0, 4, 7, 10, 13),
    ChordQuality.DOM7_SHARP9: (0, 4, 7, 10, 15),
    ChordQuality.DOM7_FLAT5: (0, 4, 6, 10),
    ChordQuality.DOM7_SHARP5: (0, 4, 8, 10),
    ChordQuality.DOM7_ALT: (0, 4, 6, 8, 10, 13, 15),
    ChordQuality.DOM7_FLAT13: (0, 4, 7, 10, 20),
    ChordQuality.DOM7_SHARP11: (0, 4, 7, 10, 18),
    ChordQuality.DOM7_FLAT9_FLAT13: (0, 4, 7, 10, 13, 20),
    ChordQuality.DOM7_SHARP9_FLAT13: (0, 4, 7, 10, 15, 20),
    ChordQuality.DOM7_SHARP5_FLAT9: (0, 4, 8, 10, 13),
    ChordQuality.DOM7_SHARP5_SHARP9: (0, 4, 8, 10, 15),
    ChordQuality.DOM7_SUS4: (0, 5, 7, 10),
    ChordQuality.DOM9_SUS4: (0, 5, 7, 10, 14),
    ChordQuality.MAJ7_SHARP11: (0, 4, 7, 11, 18),
    ChordQuality.MAJ7_FLAT13: (0, 4, 7, 11, 20),
    ChordQuality.MAJ7_SHARP9: (0, 4, 7, 11, 15),
    ChordQuality.QUARTAL: (0, 5, 10, 15),
}


# =============================================================================
# PART 2: ALIASES
# =============================================================================
#
# Keys are written the way people type them; they are passed through
# canonical_quality_form() when the table is built, exactly like input is.

QUALITY_SYNONYMS: Dict[str, ChordQuality] = {
    "": ChordQuality.MAJOR,
    "maj": ChordQuality.MAJOR,
    "major": ChordQuality.MAJOR,
    "m": ChordQuality.MINOR,
    "mi": ChordQuality.MINOR,
    "min": ChordQuality.MINOR,
    "minor": ChordQuality.MINOR,
    "-": ChordQuality.MINOR,
    "o": ChordQuality.DIM,
    "diminished": ChordQuality.DIM,
    "+": ChordQuality.AUG,
    "#5": ChordQuality.AUG,
    "augmented": ChordQuality.AUG,
    "sus": ChordQuality.SUS4,
    "power": ChordQuality.POWER,
    "5th": ChordQuality.POWER,
    "dom": ChordQuality.DOM7,
    "dom7": ChordQuality.DOM7,
    "dominant": ChordQuality.DOM7,
    "dominant7": ChordQuality.DOM7,
    "ma7": ChordQuality.MAJ7,
    "major7": ChordQuality.MAJ7,
    "δ": ChordQuality.MAJ7,
    "m7": ChordQuality.MIN7,
    "mi7": ChordQuality.MIN7,
    "minor7": ChordQuality.MIN7,
    "-7": ChordQuality.MIN7,
    "o7": ChordQuality.DIM7,
    "diminished7": ChordQuality.DIM7,
    "m7b5": ChordQuality.MIN7_FLAT5,
    "mi7b5": ChordQuality.MIN7_FLAT5,
    "-7b5": ChordQuality.MIN7_FLAT5,
    "ø": ChordQuality.MIN7_FLAT5,
    "ø7": ChordQuality.MIN7_FLAT5,
    "half-dim": ChordQuality.MIN7_FLAT5,
    "halfdim": ChordQuality.MIN7_FLAT5,
    "half-diminished": ChordQuality.MIN7_FLAT5,
    "mmaj7": ChordQuality.MIN_MAJ7,
    "minmaj7": ChordQuality.MIN_MAJ7,
    "mimaj7": ChordQuality.MIN_MAJ7,
    "m/maj7": ChordQuality.MIN_MAJ7,
    "-maj7": ChordQuality.MIN_MAJ7,
    "mm7": ChordQuality.MIN_MAJ7,
    "m7+": ChordQuality.MIN_MAJ7,
    "min7/maj7": ChordQuality.MIN_MAJ7,
    "dom9": ChordQuality.DOM9,
    "ma9": ChordQuality.MAJ9,
    "m9": ChordQuality.MIN9,
    # no minor-major ninth quality; charts that write it get the minor ninth
    "mmaj9": ChordQuality.MIN9,
    "-9": ChordQuality.MIN9,
    "m11": ChordQuality.MIN11,
    "-11": ChordQuality.MIN11,
    "m13": ChordQuality.MIN13,
    "-13": ChordQuality.MIN13,
    "maj6": ChordQuality.MAJ6,
    "m6": ChordQuality.MIN6,
    "-6": ChordQuality.MIN6,
    "69": ChordQuality.SIX_NINE,
    "6add9": ChordQuality.SIX_NINE,
    "add2": ChordQuality.ADD9,
    "add4": ChordQuality.ADD11,
    "madd2": ChordQuality.MIN_ADD9,
    "minadd9": ChordQuality.MIN_ADD9,
    "7+": ChordQuality.DOM7_SHARP5,
    "+7": ChordQuality.DOM7_SHARP5,
    "aug7": ChordQuality.DOM7_SHARP5,
    "alt": ChordQuality.DOM7_ALT,
    "7sus": ChordQuality.DOM7_SUS4,
    "9sus": ChordQuality.DOM9_SUS4,
    "sus9": ChordQuality.DOM9_SUS4,
}

# Unicode glyphs used on chord charts
_GLYPH_REPLACEMENTS = (
    ("♯", "#"),
    ("♭", "b"),
    ("°", "o"),
    ("º", "o"),
    ("Ø", "ø"),
)

_ALTERATION_RUN = re.compile(r"^(.*?)((?:[#b](?:5|9|11|13))+)$")
_ALTERATION = re.compile(r"([#b])(5|9|11|13)")
_STRIPPED_CHARS = re.compile(r"[\s(),]")


def _sort_alterations(text: str) -> str:
    """Put a trailing run of alterations into degree order (#9b13, not b13#9)."""
    match = _ALTERATION_RUN.match(text)
    if not match:
        return text
    base, run = match.groups()
    alterations = _ALTERATION.findall(run)
    alterations.sort(key=lambda alt: (int(alt[1]), 0 if alt[0] == "b" else 1))
    return base + "".join(acc + degree for acc, degree in alterations)


def canonical_quality_form(token: str) -> str:
    """
    Reduce a quality token to the form used for alias matching.

    Steps: a leading capital "M" before a digit means major ("M7" -> "maj7");
    case-fold; unicode glyphs to ASCII; drop whitespace, parentheses and
    commas; "-9"/"+5" style alterations to "b9"/"#5"; delta to "maj";
    alterations sorted by degree.
    """
    text = token.strip()
    text = re.sub(r"^M(?=\d|$)", "maj", text)
    text = text.lower()
    for glyph, replacement in _GLYPH_REPLACEMENTS:
        text = text.replace(glyph, replacement)
    text = _STRIPPED_CHARS.sub("", text)

    # delta followed by an extension means "maj<ext>", a bare delta is maj7
    text = re.sub(r"[δ△](?=\d)", "maj", text)
    text = re.sub(r"[δ△]", "maj7", text)

    text = re.sub(r"(?<=\d)-(5|9|11|13)", r"b\1", text)
    text = re.sub(r"\+(5|9|11|13)", r"#\1", text)
    return _sort_alterations(text)


def _build_alias_table() -> Dict[str, ChordQuality]:
    table: Dict[str, ChordQuality] = {}
    for quality in ChordQuality:
        table[canonical_quality_form(quality.value)] = quality
    for alias, quality in QUALITY_SYNONYMS.items():
        table[canonical_quality_form(alias)] = quality
    return table


QUALITY_ALIASES: Dict[str, ChordQuality] = _build_alias_table()


# =============================================================================
# PART 3: RESOLUTION
# =============================================================================

class QualityResolution(BaseModel):
    """
    Result of resolving a chord-quality token.

    Attributes:
        normalized: Canonical quality (MAJOR when the token is unknown)
        recognized: False when the token was not understood
    """
    model_config = ConfigDict(frozen=True)

    normalized: ChordQuality
    recognized: bool


def resolve_chord_quality(token: str) -> QualityResolution:
    """
    Resolve a chord-quality token to its canonical quality.

    Examples:
        resolve_chord_quality("m7b5")   -> min7b5, recognized
        resolve_chord_quality("Δ7")     -> maj7, recognized
        resolve_chord_quality("")       -> major, recognized
        resolve_chord_quality("weird")  -> major, NOT recognized

    Args:
        token: Quality text following the root (e.g. "m7", "7#9b13")

    Returns:
        QualityResolution; this function never raises
    """
    if token is None:
        token = ""
    quality = QUALITY_ALIASES.get(canonical_quality_form(str(token)))
    if quality is None:
        logger.debug("Unrecognized chord quality %r, falling back to major", token)
        return QualityResolution(normalized=ChordQuality.MAJOR, recognized=False)
    return QualityResolution(normalized=quality, recognized=True)


def normalize_chord_quality(token: str) -> ChordQuality:
    return resolve_chord_quality(token).normalized


def is_supported_chord_quality(token: str) -> bool:
    return resolve_chord_quality(token).recognized


def get_chord_intervals(quality: ChordQuality) -> Tuple[int, ...]:
    """Semitone offsets of a quality (extensions above 11 kept as written)."""
    return QUALITY_INTERVALS[ChordQuality(quality)]


def get_chord_pitch_classes(root: int, quality: ChordQuality) -> FrozenSet[int]:
    """Pitch classes of a chord built on `root` (0-11)."""
    return frozenset((root + interval) % 12 for interval in get_chord_intervals(quality))


def get_chord_note_names(root: str, quality: ChordQuality) -> Tuple[str, ...]:
    """Chord tones in interval order, canonical spellings, duplicates removed."""
    base = note_to_value(root)
    names = []
    for interval in get_chord_intervals(quality):
        name = value_to_note(base + interval)
        if name not in names:
            names.append(name)
    return tuple(names)


def is_transposition_symmetric(quality: ChordQuality) -> Optional[int]:
    """
    Smallest transposition (in semitones) that maps the chord onto itself.

    A diminished seventh repeats every 3 semitones and an augmented triad
    every 4, so one movable shape serves several roots. Everything else
    returns None and needs root-specific fret data.
    """
    pitch_classes = get_chord_pitch_classes(0, quality)
    for period in range(1, 12):
        if frozenset((pc + period) % 12 for pc in pitch_classes) == pitch_classes:
            return period
    return None
