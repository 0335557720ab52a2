"""
Chord Analysis - Formulas, Interval Names and Compatible Scales

Answers "what is this chord, and what can I play over it?":
    1. The chord formula in degrees ("1-b3-5-b7")
    2. The interval names from the root ("Minor 3rd", "Perfect 5th")
    3. The chord tones spelled for a key, and their degrees in that key
    4. Scales on the chord root that contain every chord tone, with the
       ones that also stay inside the key listed first

Example:
    >>> analyze_chord("Dm7", "C").compatible_scales[0]
    <ScaleKey.DORIAN: 'dorian'>
"""

import logging
from typing import List, Optional, Sequence, Tuple

from fretlab.data.schema import ChordAnalysis
from fretlab.errors import InvalidNoteError
from fretlab.library.scales import SCALE_INTERVALS
from fretlab.theory.modes import ScaleKey
from fretlab.theory.pitch import display_note, note_to_value, split_key_name, value_to_note
from fretlab.theory.qualities import get_chord_intervals
from fretlab.theory.symbols import parse_chord_symbol

logger = logging.getLogger(__name__)

# Chord tones by semitones above the root: (degree, interval name)
CHORD_DEGREES = {
    0: ("1", "Root"),
    1: ("b2", "Minor 2nd"),
    2: ("2", "Major 2nd"),
    3: ("b3", "Minor 3rd"),
    4: ("3", "Major 3rd"),
    5: ("4", "Perfect 4th"),
    6: ("b5", "Diminished 5th"),
    7: ("5", "Perfect 5th"),
    8: ("#5", "Augmented 5th"),
    9: ("6", "Major 6th"),
    10: ("b7", "Minor 7th"),
    11: ("7", "Major 7th"),
    13: ("b9", "Minor 9th"),
    14: ("9", "Major 9th"),
    15: ("#9", "Augmented 9th"),
    17: ("11", "Perfect 11th"),
    18: ("#11", "Augmented 11th"),
    20: ("b13", "Minor 13th"),
    21: ("13", "Major 13th"),
}

DIMINISHED_SEVENTH = ("bb7", "Diminished 7th")

# Degrees of the twelve pitch classes inside a key, counted from the tonic
KEY_DEGREES = ["1", "b2", "2", "b3", "3", "4", "b5", "5", "b6", "6", "b7", "7"]

NATURAL_MINOR_INTERVALS = SCALE_INTERVALS[ScaleKey.MINOR]
MAJOR_KEY_INTERVALS = SCALE_INTERVALS[ScaleKey.MAJOR]

COMPATIBLE_SCALE_LIMIT = 5


def _chord_degrees(intervals: Sequence[int]) -> List[Tuple[str, str]]:
    interval_set = set(intervals)
    degrees = []
    for interval in intervals:
        # a 6th above a b5 with no 7th is the diminished seventh
        if interval == 9 and 6 in interval_set and not interval_set & {10, 11}:
            degrees.append(DIMINISHED_SEVENTH)
        else:
            degrees.append(CHORD_DEGREES[interval])
    return degrees


def get_chord_formula(chord_symbol: str) -> str:
    """
    Chord formula in scale degrees.

    Examples:
        get_chord_formula("C7")     -> "1-3-5-b7"
        get_chord_formula("Bdim7")  -> "1-b3-b5-bb7"
        get_chord_formula("F6/9")   -> "1-3-5-6-9"
    """
    chord = parse_chord_symbol(chord_symbol)
    return "-".join(degree for degree, _ in _chord_degrees(get_chord_intervals(chord.quality)))


def get_chord_interval_names(chord_symbol: str) -> List[str]:
    """Interval names from the root, e.g. ["Root", "Major 3rd", "Perfect 5th"]."""
    chord = parse_chord_symbol(chord_symbol)
    return [name for _, name in _chord_degrees(get_chord_intervals(chord.quality))]


def get_chord_notes(chord_symbol: str, key: str = "C") -> List[str]:
    """
    Chord tones in formula order, spelled for the key, without repeats.

    Example:
        get_chord_notes("A#7", "F")  -> ['Bb', 'D', 'F', 'Ab']
    """
    chord = parse_chord_symbol(chord_symbol)
    notes: List[str] = []
    for interval in get_chord_intervals(chord.quality):
        name = display_note(value_to_note(chord.root + interval), key)
        if name not in notes:
            notes.append(name)
    return notes


def _key_scale(key: str) -> Optional[Tuple[int, Tuple[int, ...]]]:
    """Tonic pitch class and interval set of a key, None if unreadable."""
    try:
        tonic, minor = split_key_name(key)
    except InvalidNoteError:
        logger.debug("Key %r is not a note name; no key context", key)
        return None
    return note_to_value(tonic), NATURAL_MINOR_INTERVALS if minor else MAJOR_KEY_INTERVALS


def get_chord_scale_degrees(chord_symbol: str, key: str) -> List[str]:
    """
    Degree of each chord tone inside the key.

    Examples:
        get_chord_scale_degrees("G7", "C")   -> ['5', '7', '2', '4']
        get_chord_scale_degrees("Bb", "F")   -> ['4', '6', '1']
    """
    chord = parse_chord_symbol(chord_symbol)
    context = _key_scale(key)
    tonic = context[0] if context else 0
    degrees: List[str] = []
    for interval in get_chord_intervals(chord.quality):
        degree = KEY_DEGREES[(chord.root + interval - tonic) % 12]
        if degree not in degrees:
            degrees.append(degree)
    return degrees


def get_scales_containing_chord(chord_symbol: str, key: Optional[str] = None) -> List[ScaleKey]:
    """
    Scales built on the chord root that contain every chord tone.

    Without a key the scales come in library order. With a key, the
    scales whose notes all belong to that key come first (Dm7 in C puts
    Dorian ahead of Minor).

    Example:
        get_scales_containing_chord("G7", "C")[0]  -> ScaleKey.MIXOLYDIAN
    """
    chord = parse_chord_symbol(chord_symbol)
    chord_tones = {interval % 12 for interval in get_chord_intervals(chord.quality)}
    matches = [key_ for key_, intervals in SCALE_INTERVALS.items() if chord_tones <= set(intervals)]

    context = _key_scale(key) if key else None
    if context is None:
        return matches

    tonic, key_intervals = context
    key_pitch_classes = {(tonic + i) % 12 for i in key_intervals}

    def fits_key(scale: ScaleKey) -> bool:
        return all((chord.root + i) % 12 in key_pitch_classes for i in SCALE_INTERVALS[scale])

    return sorted(matches, key=lambda scale: not fits_key(scale))


def analyze_chord(chord_symbol: str, key: str = "C",
                  limit: int = COMPATIBLE_SCALE_LIMIT) -> ChordAnalysis:
    """
    Full theory summary of a chord in a key.

    Args:
        chord_symbol: Chord symbol such as "Dm7" or "F#7b9/A"
        key: Key context ("C", "Bb", "F# minor")
        limit: Maximum number of compatible scales to report

    Returns:
        ChordAnalysis

    Raises:
        InvalidChordSymbolError: If the symbol has no valid root
    """
    chord = parse_chord_symbol(chord_symbol)
    if not chord.quality_recognized:
        logger.info("Analyzing %r as %s (quality not recognized)", chord_symbol, chord.symbol)

    degrees = _chord_degrees(get_chord_intervals(chord.quality))
    return ChordAnalysis(
        symbol=chord.symbol,
        key=key,
        quality=chord.quality,
        quality_recognized=chord.quality_recognized,
        formula="-".join(degree for degree, _ in degrees),
        intervals=[name for _, name in degrees],
        notes=get_chord_notes(chord_symbol, key),
        scale_degrees=get_chord_scale_degrees(chord_symbol, key),
        compatible_scales=get_scales_containing_chord(chord_symbol, key)[:max(limit, 0)],
    )
