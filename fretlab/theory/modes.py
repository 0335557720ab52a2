"""
Scale Modes - Scale Names, Aliases and Major-System Mode Profiles

People name the same scale many ways: "Aeolian", "Natural Minor",
"A minor scale". This module maps free text onto a closed set of scale
keys (ScaleKey) and carries extra metadata for the seven modes of the
major scale (degree, interval formula, relative major).
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from fretlab.theory.pitch import format_note, note_to_value, value_to_note

logger = logging.getLogger(__name__)


# =============================================================================
# PART 1: SCALE KEYS AND DESCRIPTORS
# =============================================================================

class ScaleKey(str, Enum):
    """Closed set of scale identifiers understood by the scale library."""

    MAJOR = "major"
    MINOR = "minor"
    DORIAN = "dorian"
    PHRYGIAN = "phrygian"
    LYDIAN = "lydian"
    MIXOLYDIAN = "mixolydian"
    LOCRIAN = "locrian"
    HARMONIC_MINOR = "harmonic minor"
    MELODIC_MINOR = "melodic minor"
    PENTATONIC_MAJOR = "pentatonic major"
    PENTATONIC_MINOR = "pentatonic minor"
    BLUES = "blues"
    WHOLE_TONE = "whole tone"
    DIMINISHED = "diminished"
    ALTERED = "altered"
    LYDIAN_DOMINANT = "lydian dominant"
    PHRYGIAN_DOMINANT = "phrygian dominant"
    HUNGARIAN_MINOR = "hungarian minor"
    BEBOP_DOMINANT = "bebop dominant"
    BEBOP_MAJOR = "bebop major"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ScaleDescriptor:
    """Display name plus library key for a recognized scale name."""
    canonical: str
    key: ScaleKey


# (display name, key, aliases)
_DESCRIPTORS = [
    ("Major", ScaleKey.MAJOR, ["Ionian", "Major Scale"]),
    ("Minor", ScaleKey.MINOR, ["Aeolian", "Natural Minor"]),
    ("Dorian", ScaleKey.DORIAN, []),
    ("Phrygian", ScaleKey.PHRYGIAN, []),
    ("Lydian", ScaleKey.LYDIAN, []),
    ("Mixolydian", ScaleKey.MIXOLYDIAN, []),
    ("Locrian", ScaleKey.LOCRIAN, []),
    ("Harmonic Minor", ScaleKey.HARMONIC_MINOR, []),
    ("Melodic Minor", ScaleKey.MELODIC_MINOR, ["Jazz Minor"]),
    ("Major Pentatonic", ScaleKey.PENTATONIC_MAJOR, ["Pentatonic Major"]),
    ("Minor Pentatonic", ScaleKey.PENTATONIC_MINOR, ["Pentatonic Minor", "Pentatonic"]),
    ("Blues", ScaleKey.BLUES, ["Minor Blues", "Blues Minor"]),
    ("Whole Tone", ScaleKey.WHOLE_TONE, ["Wholetone"]),
    ("Diminished", ScaleKey.DIMINISHED, ["Half-Whole", "Half Whole Diminished", "Octatonic"]),
    ("Altered", ScaleKey.ALTERED, ["Super Locrian", "Superlocrian", "Altered Dominant"]),
    ("Lydian Dominant", ScaleKey.LYDIAN_DOMINANT, ["Lydian b7", "Overtone"]),
    ("Phrygian Dominant", ScaleKey.PHRYGIAN_DOMINANT, ["Spanish Phrygian", "Freygish"]),
    ("Hungarian Minor", ScaleKey.HUNGARIAN_MINOR, ["Gypsy", "Gypsy Minor"]),
    ("Bebop Dominant", ScaleKey.BEBOP_DOMINANT, ["Bebop"]),
    ("Bebop Major", ScaleKey.BEBOP_MAJOR, []),
]

_LEADING_ROOT = re.compile(r"^([A-Ga-g](?:[#b♯♭])?)\s+(.+)$")
_TRAILING_WORDS = re.compile(r"(?:\s+(?:scale|mode))+$", re.IGNORECASE)


def _sanitize(value: str) -> str:
    return re.sub(r"[\s\-_]+", "", value).lower()


def _build_descriptor_lookup() -> Dict[str, ScaleDescriptor]:
    lookup: Dict[str, ScaleDescriptor] = {}
    for canonical, key, aliases in _DESCRIPTORS:
        descriptor = ScaleDescriptor(canonical=canonical, key=key)
        for name in [canonical, key.value] + aliases:
            lookup[_sanitize(name)] = descriptor
    return lookup


DESCRIPTOR_LOOKUP: Dict[str, ScaleDescriptor] = _build_descriptor_lookup()


def strip_scale_name(text: str) -> str:
    """
    Remove a leading root note and trailing "scale"/"mode" words.

    Examples:
        strip_scale_name("A Natural Minor scale") -> "Natural Minor"
        strip_scale_name("Dorian mode")            -> "Dorian"
    """
    stripped = text.strip()
    match = _LEADING_ROOT.match(stripped)
    if match:
        stripped = match.group(2)
    stripped = _TRAILING_WORDS.sub("", " " + stripped).strip()
    return stripped


def normalize_scale_descriptor(text: Union[str, ScaleKey]) -> Optional[ScaleDescriptor]:
    """Look up a scale name; returns None when it is not recognized."""
    if isinstance(text, ScaleKey):
        text = text.value
    if not text:
        return None
    return DESCRIPTOR_LOOKUP.get(_sanitize(strip_scale_name(str(text))))


def is_supported_scale_descriptor(text: str) -> bool:
    return normalize_scale_descriptor(text) is not None


def normalize_scale_name(text: Union[str, ScaleKey, None]) -> ScaleKey:
    """
    Map a free-text scale name to its ScaleKey.

    Unrecognized names default to ScaleKey.MAJOR.

    Examples:
        normalize_scale_name("Natural Minor")   -> ScaleKey.MINOR
        normalize_scale_name("C Ionian scale")  -> ScaleKey.MAJOR
        normalize_scale_name("Super Locrian")   -> ScaleKey.ALTERED
    """
    descriptor = normalize_scale_descriptor(text) if text is not None else None
    if descriptor is None:
        logger.debug("Unrecognized scale name %r, falling back to major", text)
        return ScaleKey.MAJOR
    return descriptor.key


def normalize_mode_canonical(text: str) -> str:
    """
    Display name of a scale/mode ("aeolian" -> "Minor").

    Unknown names are returned title-cased.
    """
    descriptor = normalize_scale_descriptor(text)
    if descriptor is not None:
        return descriptor.canonical
    return " ".join(word.capitalize() for word in strip_scale_name(text).split())


# =============================================================================
# PART 2: MAJOR-SYSTEM MODE PROFILES
# =============================================================================

ROMAN_NUMERALS = ["I", "II", "III", "IV", "V", "VI", "VII"]


class ModeProfile(BaseModel):
    """
    Metadata for one of the seven modes of the major scale.

    Attributes:
        canonical: Display name ("Dorian", "Minor")
        key: Scale library key
        degree_roman: Degree of the parent major scale the mode starts on
        formula: Interval formula relative to a major scale
        major_delta: Altered degrees compared to major ("b3, b7")
        parent_major_shift: Semitones from the mode root to its parent major
    """
    model_config = ConfigDict(frozen=True)

    canonical: str
    key: ScaleKey
    degree_roman: str = Field(..., examples=["I", "II", "V"])
    formula: str = Field(..., examples=["1 2 b3 4 5 6 b7"])
    major_delta: str = Field(default="")
    parent_major_shift: int = Field(..., ge=-11, le=0)

    def relative_major(self, root: str) -> str:
        """
        Name of the parent major key.

        Example:
            DORIAN.relative_major("D") -> "C Major"
        """
        value = (note_to_value(root) + self.parent_major_shift) % 12
        if value == note_to_value(root):
            return f"{format_note(root)} Major"
        return f"{value_to_note(value)} Major"


MAJOR_INTERVALS = (0, 2, 4, 5, 7, 9, 11)

# Modes of the major scale in degree order (I = Ionian)
_MODE_ORDER = [
    (ScaleKey.MAJOR, "Major"),
    (ScaleKey.DORIAN, "Dorian"),
    (ScaleKey.PHRYGIAN, "Phrygian"),
    (ScaleKey.LYDIAN, "Lydian"),
    (ScaleKey.MIXOLYDIAN, "Mixolydian"),
    (ScaleKey.MINOR, "Minor"),
    (ScaleKey.LOCRIAN, "Locrian"),
]


def rotate_major_scale(degree: int) -> Tuple[int, ...]:
    """
    Intervals of the mode that starts on a degree of the major scale.

    Example:
        rotate_major_scale(1) -> (0, 2, 3, 5, 7, 9, 10)   # Dorian
    """
    start = MAJOR_INTERVALS[degree]
    return tuple(sorted((i - start) % 12 for i in MAJOR_INTERVALS))


def _build_mode_profile(degree: int) -> ModeProfile:
    key, canonical = _MODE_ORDER[degree]
    tokens = []
    for number, (interval, major) in enumerate(zip(rotate_major_scale(degree), MAJOR_INTERVALS), 1):
        accidental = {-1: "b", 0: "", 1: "#"}[interval - major]
        tokens.append(f"{accidental}{number}")
    return ModeProfile(
        canonical=canonical,
        key=key,
        degree_roman=ROMAN_NUMERALS[degree],
        formula=" ".join(tokens),
        major_delta=", ".join(t for t in tokens if not t.isdigit()),
        parent_major_shift=-MAJOR_INTERVALS[degree],
    )


MAJOR_SYSTEM_MODES: Dict[ScaleKey, ModeProfile] = {
    profile.key: profile for profile in (_build_mode_profile(d) for d in range(len(_MODE_ORDER)))
}


def get_major_system_mode_profile(name: Union[str, ScaleKey]) -> Optional[ModeProfile]:
    """
    Mode profile for the seven major-system modes, None for anything else.

    Examples:
        get_major_system_mode_profile("Mixolydian").formula  -> "1 2 3 4 5 6 b7"
        get_major_system_mode_profile("blues")               -> None
    """
    descriptor = normalize_scale_descriptor(name)
    if descriptor is None:
        return None
    return MAJOR_SYSTEM_MODES.get(descriptor.key)
