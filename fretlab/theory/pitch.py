"""
Pitch Module - Pitch-Class Arithmetic for the Fretboard

This module is the lowest layer of the engine. It can:
    1. Map any of the common note spellings to a pitch class (0-11, C = 0)
    2. Render a pitch class back to its canonical (sharp) spelling
    3. Normalize enharmonic spellings (Db -> C#, E# -> F)
    4. Compute the note sounding on a given string and fret
    5. Spell notes for a key signature (Bb in F major, A# in E major)

Everything here is a pure function over static tables.
"""

import re
from enum import Enum
from typing import Optional, Tuple

from fretlab.errors import InvalidNoteError


# =============================================================================
# CONSTANTS: The Building Blocks of Music Theory
# =============================================================================

# The 12 notes in Western music, using sharps as the canonical spelling
CHROMATIC_SCALE = ["C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B"]

# Every other spelling mapped to its sharp canonical form
FLAT_TO_SHARP = {
    "Db": "C#",
    "Eb": "D#",
    "Fb": "E",
    "Gb": "F#",
    "Ab": "G#",
    "Bb": "A#",
    "Cb": "B",
    "E#": "F",
    "B#": "C",
}

NATURAL_VALUES = {"C": 0, "D": 2, "E": 4, "F": 5, "G": 7, "A": 9, "B": 11}

ACCIDENTAL_OFFSETS = {"": 0, "#": 1, "b": -1}

# Standard tuning, low E to high E (string index 0 = low E)
OPEN_STRING_VALUES: Tuple[int, ...] = (4, 9, 2, 7, 11, 4)
OPEN_STRING_NAMES: Tuple[str, ...] = ("E", "A", "D", "G", "B", "E")
STRING_COUNT = 6

# Unicode accidentals people paste from chord charts
_UNICODE_ACCIDENTALS = {"♯": "#", "♭": "b", "♮": ""}


# =============================================================================
# CORE FUNCTIONS
# =============================================================================

def _clean_spelling(name: str) -> str:
    """Trim a note name and convert unicode accidentals to ASCII."""
    text = name.strip()
    for symbol, ascii_form in _UNICODE_ACCIDENTALS.items():
        text = text.replace(symbol, ascii_form)
    return text


def format_note(name: str) -> str:
    """
    Tidy the capitalization of a note name without changing its spelling.

    Examples:
        format_note("db")  -> "Db"
        format_note("F♯")  -> "F#"
    """
    text = _clean_spelling(name)
    if not text:
        raise InvalidNoteError(name)
    letter = text[0].upper()
    accidental = text[1:].lower() if len(text) > 1 else ""
    spelled = letter + accidental
    if letter not in NATURAL_VALUES or accidental not in ACCIDENTAL_OFFSETS:
        raise InvalidNoteError(name)
    return spelled


def note_to_value(name: str, default: Optional[int] = None) -> int:
    """
    Get the pitch class (0-11) of a note name.

    Accepts naturals, sharps and flats for all seven letters, in any case,
    with ASCII or unicode accidentals.

    Examples:
        note_to_value("C")   -> 0
        note_to_value("db")  -> 1
        note_to_value("B#")  -> 0

    Args:
        name: Note name such as "F#", "Bb", "e"
        default: Value to return instead of raising for unknown names

    Returns:
        Pitch class in [0, 11]

    Raises:
        InvalidNoteError: If the name is unknown and no default was given
    """
    try:
        spelled = format_note(name)
    except InvalidNoteError:
        if default is not None:
            return default
        raise
    return (NATURAL_VALUES[spelled[0]] + ACCIDENTAL_OFFSETS[spelled[1:]]) % 12


def is_note_name(name: str) -> bool:
    """Return True if the text is a recognizable note name."""
    try:
        note_to_value(name)
    except InvalidNoteError:
        return False
    return True


def value_to_note(value: int) -> str:
    """Get the canonical (sharp) name for a pitch class, wrapping mod 12."""
    return CHROMATIC_SCALE[value % 12]


def normalize_root(name: str) -> str:
    """
    Convert a note name to its canonical sharp spelling.

    Examples:
        normalize_root("Db") -> "C#"
        normalize_root("Gb") -> "F#"
        normalize_root("C#") -> "C#"
    """
    spelled = format_note(name)
    return FLAT_TO_SHARP.get(spelled, value_to_note(note_to_value(spelled)))


def transpose_note(name: str, semitones: int) -> str:
    """Transpose a note by a number of semitones (canonical spelling)."""
    return value_to_note(note_to_value(name) + semitones)


def semitone_distance(from_note: str, to_note: str) -> int:
    """Upward distance in semitones (0-11) from one note to another."""
    return (note_to_value(to_note) - note_to_value(from_note)) % 12


def note_at_fret(string_index: int, fret: int) -> int:
    """
    Pitch class sounding on a string at an absolute fret.

    Args:
        string_index: 0 (low E) to 5 (high E)
        fret: Absolute fret number (0 = open string)
    """
    if not 0 <= string_index < STRING_COUNT:
        raise ValueError(f"String index must be 0-{STRING_COUNT - 1}. Got: {string_index}")
    return (OPEN_STRING_VALUES[string_index] + fret) % 12


# =============================================================================
# KEY-CONTEXT SPELLING
# =============================================================================

class AccidentalType(str, Enum):
    """Which accidental a key signature uses."""

    NATURAL = "natural"
    SHARP = "sharp"
    FLAT = "flat"


FLAT_SCALE = ["C", "Db", "D", "Eb", "E", "F", "Gb", "G", "Ab", "A", "Bb", "B"]

# Conventional spellings when the key has no accidentals (C major / A minor)
NATURAL_KEY_SPELLINGS = ["C", "C#", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B"]

KEY_ACCIDENTALS = {
    "C": AccidentalType.NATURAL,
    "G": AccidentalType.SHARP,
    "D": AccidentalType.SHARP,
    "A": AccidentalType.SHARP,
    "E": AccidentalType.SHARP,
    "B": AccidentalType.SHARP,
    "F#": AccidentalType.SHARP,
    "C#": AccidentalType.SHARP,
    "F": AccidentalType.FLAT,
    "Bb": AccidentalType.FLAT,
    "Eb": AccidentalType.FLAT,
    "Ab": AccidentalType.FLAT,
    "Db": AccidentalType.FLAT,
    "Gb": AccidentalType.FLAT,
    "Cb": AccidentalType.FLAT,
}

_MINOR_KEY_SUFFIX = re.compile(r"\s*(m|min|minor)$", re.IGNORECASE)


def split_key_name(key: str) -> Tuple[str, bool]:
    """
    Split a key name into its tonic and whether it is minor.

    Examples:
        split_key_name("Bb")       -> ("Bb", False)
        split_key_name("f# minor") -> ("F#", True)

    Raises:
        InvalidNoteError: If the key does not start with a note name
    """
    text = _clean_spelling(key or "")
    minor = _MINOR_KEY_SUFFIX.search(text[1:]) if len(text) > 1 else None
    if minor:
        text = text[:len(text) - len(minor.group(0))]
    return format_note(text), minor is not None


def get_key_accidental_type(key: str) -> AccidentalType:
    """
    Accidental used by a key signature.

    Minor keys ("Dm", "D minor") follow their relative major. Keys that
    are not in the circle of fifths (and unreadable text) prefer sharps.

    Examples:
        get_key_accidental_type("C")   -> AccidentalType.NATURAL
        get_key_accidental_type("Bb")  -> AccidentalType.FLAT
        get_key_accidental_type("Dm")  -> AccidentalType.FLAT      # relative of F
        get_key_accidental_type("A#")  -> AccidentalType.SHARP
    """
    try:
        tonic, minor = split_key_name(key)
    except InvalidNoteError:
        return AccidentalType.SHARP

    if not minor:
        return KEY_ACCIDENTALS.get(tonic, AccidentalType.SHARP)
    relative = note_to_value(tonic) + 3
    for name in (value_to_note(relative), FLAT_SCALE[relative % 12]):
        if name in KEY_ACCIDENTALS:
            return KEY_ACCIDENTALS[name]
    return AccidentalType.SHARP


def display_note(note: str, key: str) -> str:
    """
    Spell a note the way the key signature would.

    Examples:
        display_note("A#", "F")  -> "Bb"
        display_note("Bb", "E")  -> "A#"
        display_note("D#", "C")  -> "Eb"
    """
    value = note_to_value(note)
    accidental = get_key_accidental_type(key)
    if accidental is AccidentalType.NATURAL:
        return NATURAL_KEY_SPELLINGS[value]
    if accidental is AccidentalType.FLAT:
        return FLAT_SCALE[value]
    return CHROMATIC_SCALE[value]
