"""
Scale Library - Interval Tables and Multi-Position Fingerings

This module can:
    1. Give the interval structure and note names of any supported scale
    2. Produce fretboard fingerings for a scale in several neck positions
    3. Check that a fingering only uses notes of its scale
    4. Describe a scale (formula, step pattern, relative major for modes)

Fingering templates are generated once per scale from the interval table,
relative to the reference root C, and shifted to the requested root on
each call.
"""

import logging
from functools import lru_cache
from typing import Dict, List, Sequence, Tuple, Union

from fretlab.data.schema import FingeringValidation, ScaleDefinition, ScaleInsight
from fretlab.errors import InvalidNoteError
from fretlab.theory.modes import (
    MAJOR_INTERVALS,
    ScaleKey,
    get_major_system_mode_profile,
    normalize_mode_canonical,
    normalize_scale_name,
    rotate_major_scale,
)
from fretlab.theory.pitch import (
    STRING_COUNT,
    format_note,
    is_note_name,
    note_at_fret,
    note_to_value,
    value_to_note,
)

logger = logging.getLogger(__name__)


# =============================================================================
# PART 1: INTERVAL TABLES
# =============================================================================

SCALE_INTERVALS: Dict[ScaleKey, Tuple[int, ...]] = {
    ScaleKey.MAJOR: MAJOR_INTERVALS,
    ScaleKey.DORIAN: rotate_major_scale(1),
    ScaleKey.PHRYGIAN: rotate_major_scale(2),
    ScaleKey.LYDIAN: rotate_major_scale(3),
    ScaleKey.MIXOLYDIAN: rotate_major_scale(4),
    ScaleKey.MINOR: rotate_major_scale(5),
    ScaleKey.LOCRIAN: rotate_major_scale(6),
    ScaleKey.HARMONIC_MINOR: (0, 2, 3, 5, 7, 8, 11),
    ScaleKey.MELODIC_MINOR: (0, 2, 3, 5, 7, 9, 11),
    ScaleKey.PENTATONIC_MAJOR: (0, 2, 4, 7, 9),
    ScaleKey.PENTATONIC_MINOR: (0, 3, 5, 7, 10),
    ScaleKey.BLUES: (0, 3, 5, 6, 7, 10),
    ScaleKey.WHOLE_TONE: (0, 2, 4, 6, 8, 10),
    ScaleKey.DIMINISHED: (0, 1, 3, 4, 6, 7, 9, 10),
    ScaleKey.ALTERED: (0, 1, 3, 4, 6, 8, 10),
    ScaleKey.LYDIAN_DOMINANT: (0, 2, 4, 6, 7, 9, 10),
    ScaleKey.PHRYGIAN_DOMINANT: (0, 1, 4, 5, 7, 8, 10),
    ScaleKey.HUNGARIAN_MINOR: (0, 2, 3, 6, 7, 8, 11),
    ScaleKey.BEBOP_DOMINANT: (0, 2, 4, 5, 7, 9, 10, 11),
    ScaleKey.BEBOP_MAJOR: (0, 2, 4, 5, 7, 8, 9, 11),
}

# Open-string pitches in semitones (E2 = 40), low E to high E
OPEN_STRING_PITCHES = (40, 45, 50, 55, 59, 64)

REFERENCE_ROOT = "C"

ScaleName = Union[str, ScaleKey]
Fingering = List[List[int]]


def _resolve_key(scale: ScaleName) -> ScaleKey:
    if isinstance(scale, ScaleKey):
        return scale
    return normalize_scale_name(scale)


def _root_value(root: str) -> int:
    """Pitch class of a root; unknown roots fall back to C with a warning."""
    try:
        return note_to_value(root)
    except InvalidNoteError:
        logger.warning("Unknown root %r, using %s", root, REFERENCE_ROOT)
        return note_to_value(REFERENCE_ROOT)


def get_scale_intervals(scale: ScaleName) -> List[int]:
    """
    Semitone offsets of a scale from its root.

    Unknown names fall back to the major scale.

    Examples:
        get_scale_intervals("major")        -> [0, 2, 4, 5, 7, 9, 11]
        get_scale_intervals("Blues scale")  -> [0, 3, 5, 6, 7, 10]
    """
    return list(SCALE_INTERVALS.get(_resolve_key(scale), MAJOR_INTERVALS))


def get_scale_notes(root: str, scale: ScaleName) -> List[str]:
    """
    Note names of a scale, starting on the root as spelled by the caller.

    Examples:
        get_scale_notes("C", "major")   -> ['C', 'D', 'E', 'F', 'G', 'A', 'B']
        get_scale_notes("Db", "major")  -> ['Db', 'D#', 'F', 'F#', 'G#', 'A#', 'C']
    """
    base = _root_value(root)
    notes = [value_to_note(base + interval) for interval in get_scale_intervals(scale)]
    try:
        notes[0] = format_note(root)
    except InvalidNoteError:
        pass
    return notes


# =============================================================================
# PART 2: FINGERING TEMPLATES
# =============================================================================

def _build_position(intervals: Sequence[int], degree: int) -> List[List[int]]:
    """
    One fingering position starting on `degree` on the low E string.

    Consecutive scale pitches are laid out ascending, 3 per string for
    scales with more than five notes and 2 per string otherwise. If any
    fret would be negative, the whole position moves up an octave.
    """
    root = note_to_value(REFERENCE_ROOT)
    pitch_classes = sorted((root + i) % 12 for i in intervals)
    notes_per_string = 3 if len(intervals) > 5 else 2

    start_fret = (pitch_classes[degree] - OPEN_STRING_PITCHES[0]) % 12
    pitch = OPEN_STRING_PITCHES[0] + start_fret

    frets: List[List[int]] = []
    for open_pitch in OPEN_STRING_PITCHES:
        string_frets = []
        for _ in range(notes_per_string):
            string_frets.append(pitch - open_pitch)
            pitch += 1
            while pitch % 12 not in pitch_classes:
                pitch += 1
        frets.append(string_frets)

    if min(min(s) for s in frets) < 0:
        frets = [[f + 12 for f in s] for s in frets]
    return frets


@lru_cache(maxsize=None)
def get_scale_definition(scale: ScaleKey) -> ScaleDefinition:
    """Intervals plus generated fingering templates (reference root C)."""
    intervals = SCALE_INTERVALS.get(scale, MAJOR_INTERVALS)
    positions = [_build_position(intervals, degree) for degree in range(len(intervals))]
    positions.sort(key=lambda p: min(min(s) for s in p))
    return ScaleDefinition(
        key=scale,
        intervals=intervals,
        fingerings=tuple(tuple(tuple(s) for s in p) for p in positions),
    )


def get_position_count(scale: ScaleName) -> int:
    return get_scale_definition(_resolve_key(scale)).position_count


def _shift_position(position: Sequence[Sequence[int]], offset: int) -> Fingering:
    """
    Move a template to a new root `offset` semitones above C.

    Candidates offset + 12k are tried; the one whose frets are all >= 0
    and that sits closest to the nut wins.
    """
    lowest = min(min(s) for s in position)
    best_shift = None
    for shift in (offset - 24, offset - 12, offset, offset + 12):
        if lowest + shift < 0:
            continue
        if best_shift is None or lowest + shift < lowest + best_shift:
            best_shift = shift
    return [[fret + best_shift for fret in string] for string in position]


def get_scale_fingering(scale: ScaleName, root: str, position_index: int = 0) -> Fingering:
    """
    Fret numbers of one scale position, six lists from low E to high E.

    A position index past the end is clamped to the last position, so a
    caller switching from a 7-position mode to the 6-position whole-tone
    scale keeps working.

    Examples:
        get_scale_fingering("major", "G", 0)
        get_scale_fingering("whole tone", "C", 7)   # same as position 5

    Args:
        scale: Scale name or ScaleKey
        root: Root note of the scale
        position_index: 0-based position, ordered from the nut upward for C
    """
    definition = get_scale_definition(_resolve_key(scale))
    last = definition.position_count - 1
    index = min(max(position_index, 0), last)
    if index != position_index:
        logger.debug("Position %d clamped to %d for %s", position_index, index, definition.key.value)

    offset = (_root_value(root) - note_to_value(REFERENCE_ROOT)) % 12
    return _shift_position(definition.fingerings[index], offset)


def get_all_scale_fingerings(scale: ScaleName, root: str) -> List[Fingering]:
    """Every position of a scale on a root."""
    return [get_scale_fingering(scale, root, i) for i in range(get_position_count(scale))]


# =============================================================================
# PART 3: VALIDATION
# =============================================================================

def validate_fingering_notes(fingering: Sequence[Sequence[int]], root: str,
                             scale: ScaleName) -> FingeringValidation:
    """
    Check that every fingered note belongs to the scale.

    Missing scale notes are tolerated; only foreign notes make the
    fingering invalid.

    Returns:
        FingeringValidation with invalid notes described as
        "String <n>, fret <f>: <note>" (n = 1 for low E)
    """
    expected = {note_to_value(name) for name in get_scale_notes(root, scale)}
    total = 0
    invalid = []
    for string_index, frets in enumerate(fingering[:STRING_COUNT]):
        for fret in frets:
            total += 1
            pitch_class = note_at_fret(string_index, fret)
            if pitch_class not in expected:
                invalid.append(
                    f"String {string_index + 1}, fret {fret}: {value_to_note(pitch_class)}"
                )

    coverage = (total - len(invalid)) / total if total else 0.0
    return FingeringValidation(is_valid=not invalid, coverage=coverage, invalid_notes=invalid)


# =============================================================================
# PART 4: DESCRIPTIONS
# =============================================================================

def intervals_to_step_pattern(intervals: Sequence[int]) -> str:
    """Semitone steps between scale notes, e.g. "2-2-1-2-2-2-1"."""
    unique = sorted({i % 12 for i in intervals} | {0})
    steps = [
        (unique[i + 1] if i + 1 < len(unique) else unique[0] + 12) - current
        for i, current in enumerate(unique)
    ]
    return "-".join(str(step) for step in steps)


def _formula_token(interval: int, interval_set: set) -> str:
    major_third = 4 in interval_set and 3 not in interval_set
    if interval == 6:
        return "#4" if 7 in interval_set or major_third else "b5"
    if interval == 8:
        return "#5" if major_third and 7 not in interval_set else "b6"
    return {
        0: "1", 1: "b2", 2: "2", 3: "b3", 4: "3", 5: "4",
        7: "5", 9: "6", 10: "b7", 11: "7",
    }[interval]


def intervals_to_formula(intervals: Sequence[int]) -> str:
    """Degree formula relative to major, e.g. "1 2 b3 4 5 6 b7"."""
    unique = sorted({i % 12 for i in intervals} | {0})
    interval_set = set(unique)
    return " ".join(_formula_token(i, interval_set) for i in unique)


def describe_scale(root: str, scale: ScaleName) -> ScaleInsight:
    """
    Summarize a scale for display.

    Modes of the major scale get their known formula and relative major;
    everything else gets a formula derived from its intervals.
    """
    key = _resolve_key(scale)
    intervals = get_scale_intervals(key)
    profile = get_major_system_mode_profile(key)
    name = scale.value if isinstance(scale, ScaleKey) else scale

    return ScaleInsight(
        root=format_note(root) if is_note_name(root) else REFERENCE_ROOT,
        key=key,
        mode_name=profile.canonical if profile else normalize_mode_canonical(name),
        notes=get_scale_notes(root, key),
        formula=profile.formula if profile else intervals_to_formula(intervals),
        step_pattern=intervals_to_step_pattern(intervals),
        is_major_system_mode=profile is not None,
        mode_profile=profile,
        relative_major=profile.relative_major(root) if profile and is_note_name(root) else None,
    )
