"""
Chord Symbol Parser

Splits a chord symbol such as "F#m7b5/A" into its root, canonical quality
and optional slash bass.

Grammar:
    <root><quality>[/<bass>]

The root is one letter plus an optional accidental. The text after the
last "/" only counts as a bass note when it is itself a note name, so
qualities that contain a slash ("min/maj7", "6/9") survive intact.
"""

import logging
import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from fretlab.errors import InvalidChordSymbolError, InvalidNoteError
from fretlab.theory.pitch import display_note, format_note, is_note_name, note_to_value
from fretlab.theory.qualities import ChordQuality, resolve_chord_quality

logger = logging.getLogger(__name__)


# Display spellings that differ from the canonical id
_DISPLAY_QUALITIES = {
    ChordQuality.MAJOR: "",
    ChordQuality.MINOR: "m",
    ChordQuality.DIM: "°",
    ChordQuality.AUG: "+",
    ChordQuality.DIM7: "°7",
    ChordQuality.MIN7_FLAT5: "ø7",
    ChordQuality.MIN_MAJ7: "m(maj7)",
}


class ChordSymbol(BaseModel):
    """
    A parsed chord symbol. Immutable once built.

    Attributes:
        root: Pitch class of the root (0-11)
        root_name: Root as the user spelled it, tidied ("Db", not "C#")
        quality: Canonical chord quality
        quality_recognized: False when the quality text fell back to major
        bass: Pitch class of the slash bass, if any
        bass_name: Slash bass as spelled, if any

    Example:
        >>> parse_chord_symbol("Bbm7/F").symbol
        'Bbmin7/F'
    """
    model_config = ConfigDict(frozen=True)

    root: int = Field(..., ge=0, le=11, description="Root pitch class")
    root_name: str = Field(..., description="Root spelling", examples=["C", "F#", "Bb"])
    quality: ChordQuality = Field(default=ChordQuality.MAJOR)
    quality_recognized: bool = Field(default=True)
    bass: Optional[int] = Field(default=None, ge=0, le=11)
    bass_name: Optional[str] = Field(default=None)

    @property
    def has_bass(self) -> bool:
        return self.bass is not None

    @property
    def symbol(self) -> str:
        """Canonical ASCII name, e.g. "C#min7/G#" (major quality omitted)."""
        quality = "" if self.quality is ChordQuality.MAJOR else self.quality.value
        bass = f"/{self.bass_name}" if self.bass_name else ""
        return f"{self.root_name}{quality}{bass}"

    @property
    def display_name(self) -> str:
        """Chart-style name with unicode accidentals, e.g. "F♯ø7"."""
        quality = _DISPLAY_QUALITIES.get(self.quality)
        if quality is None:
            quality = self.quality.value
            if quality.startswith("min"):
                quality = "m" + quality[3:]
            quality = quality.replace("#", "♯").replace("b", "♭")
        name = _pretty_note(self.root_name) + quality
        if self.bass_name:
            name += "/" + _pretty_note(self.bass_name)
        return name

    def __str__(self) -> str:
        return self.symbol


def _pretty_note(name: str) -> str:
    return name[0] + name[1:].replace("#", "♯").replace("b", "♭")


def parse_chord_symbol(text: str) -> ChordSymbol:
    """
    Parse a chord symbol string.

    Examples:
        parse_chord_symbol("C")          -> C major
        parse_chord_symbol("F#m7b5/A")   -> F# min7b5, bass A
        parse_chord_symbol("Cmin/maj7")  -> C min/maj7, no bass
        parse_chord_symbol("Gmystery")   -> G major, quality_recognized=False

    Args:
        text: Chord symbol as typed by the user

    Returns:
        ChordSymbol

    Raises:
        InvalidChordSymbolError: If no valid root note starts the symbol
    """
    if text is None:
        raise InvalidChordSymbolError("None", "empty symbol")
    cleaned = text.strip().replace("♯", "#").replace("♭", "b")
    if not cleaned:
        raise InvalidChordSymbolError(text, "empty symbol")

    root_length = 2 if len(cleaned) > 1 and cleaned[1] in "#b" else 1
    try:
        root_name = format_note(cleaned[:root_length])
    except InvalidNoteError:
        raise InvalidChordSymbolError(text, "no root note") from None

    remainder = cleaned[root_length:]
    bass_name = None
    if "/" in remainder:
        head, tail = remainder.rsplit("/", 1)
        if is_note_name(tail):
            remainder = head
            bass_name = format_note(tail)

    resolution = resolve_chord_quality(remainder)
    if not resolution.recognized:
        logger.debug("Chord %r: quality %r not recognized", text, remainder)

    return ChordSymbol(
        root=note_to_value(root_name),
        root_name=root_name,
        quality=resolution.normalized,
        quality_recognized=resolution.recognized,
        bass=note_to_value(bass_name) if bass_name else None,
        bass_name=bass_name,
    )


def split_chord_name(text: str):
    """Return (root_name, quality, bass_name) for a chord symbol."""
    chord = parse_chord_symbol(text)
    return chord.root_name, chord.quality, chord.bass_name


def format_chord_canonical_name(text: str) -> str:
    """
    Canonical ASCII chord name, used to key previews and caches.

    Examples:
        format_chord_canonical_name("C♯maj")  -> "C#"
        format_chord_canonical_name("Bb-7")   -> "Bbmin7"
    """
    return parse_chord_symbol(text).symbol


_LEADING_ROOT = re.compile(r"^\s*([A-Ga-g][#b♯♭]?)(.*)$")


def display_chord_name(text: str, key: str) -> str:
    """
    Respell a chord's root (and slash bass) for a key signature.

    The quality is left exactly as written. Text without a leading note
    name is returned unchanged.

    Examples:
        display_chord_name("A#maj7", "F")   -> "Bbmaj7"
        display_chord_name("Gbm/Db", "E")   -> "F#m/C#"
        display_chord_name("D#dim", "C")    -> "Ebdim"
    """
    match = _LEADING_ROOT.match(text)
    if not match:
        return text
    root, rest = match.groups()
    if "/" in rest:
        head, tail = rest.rsplit("/", 1)
        if is_note_name(tail):
            rest = f"{head}/{display_note(tail, key)}"
    return display_note(root, key) + rest
