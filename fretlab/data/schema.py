"""
Schema definitions for fretlab.

This module defines the Pydantic models for the fretboard data the engine
serves: chord voicings, scale definitions and the validation reports the
integrity checks produce. Every curated voicing must conform to
ChordVoicing before the library will load.
"""

from enum import Enum
from typing import List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from fretlab.theory.modes import ModeProfile, ScaleKey
from fretlab.theory.qualities import ChordQuality


# =============================================================================
# VALID OPTIONS
# =============================================================================

MUTED = "x"

STRING_COUNT = 6

# A fret entry is either an int fret number or the muted marker
FretEntry = Union[int, str]


# =============================================================================
# CHORD VOICINGS
# =============================================================================

class ChordVoicing(BaseModel):
    """
    One way to finger a chord on a six-string guitar.

    Attributes:
        frets: Six entries, low E to high E; an int fret or "x" (muted)
        first_fret: For movable shapes, the fret the pattern starts on.
            Pattern frets are then relative: fret 1 sits on first_fret.
        label: Optional human label ("Open", "Barre 3rd")

    Example:
        >>> ChordVoicing(frets=["x", 3, 2, 0, 1, 0], label="Open")
        >>> ChordVoicing(frets=[1, 3, 3, 2, 1, 1], first_fret=3)   # G barre
    """
    model_config = ConfigDict(frozen=True)

    frets: Tuple[FretEntry, ...] = Field(
        ...,
        description="Six fret entries, low E to high E",
        examples=[["x", 3, 2, 0, 1, 0]],
    )
    first_fret: Optional[int] = Field(
        default=None,
        ge=1,
        description="Starting fret for movable (barre) shapes",
    )
    label: Optional[str] = Field(default=None, examples=["Open", "Barre 3rd"])

    @field_validator('frets', mode='before')
    @classmethod
    def validate_frets(cls, v):
        """Exactly six entries; ints >= 0 or the muted marker ("x", "X" or None)."""
        if not isinstance(v, (list, tuple)):
            raise ValueError(f"Frets must be a list of {STRING_COUNT} entries. Got: {v!r}")
        entries = list(v)
        if len(entries) != STRING_COUNT:
            raise ValueError(
                f"A voicing needs exactly {STRING_COUNT} fret entries. "
                f"Got: {entries} (length: {len(entries)})"
            )
        cleaned = []
        for entry in entries:
            if entry is None or (isinstance(entry, str) and entry.lower() == MUTED):
                cleaned.append(MUTED)
            elif isinstance(entry, bool) or not isinstance(entry, int):
                raise ValueError(f"Fret entries must be ints or '{MUTED}'. Got: {entry!r}")
            elif entry < 0:
                raise ValueError(f"Fret numbers must be >= 0. Got: {entry}")
            else:
                cleaned.append(entry)
        return tuple(cleaned)

    @model_validator(mode='after')
    def validate_movable_shape(self):
        """A movable shape needs at least one fretted (non-zero) string."""
        if self.first_fret is not None and not any(
            isinstance(f, int) and f > 0 for f in self.frets
        ):
            raise ValueError("A voicing with first_fret must fret at least one string")
        return self

    def absolute_frets(self) -> Tuple[FretEntry, ...]:
        """Frets with the first_fret offset applied to every numeric entry."""
        if self.first_fret is None or self.first_fret == 1:
            return self.frets
        offset = self.first_fret - 1
        return tuple(
            f + offset if isinstance(f, int) else f
            for f in self.frets
        )

    def fret_string(self) -> str:
        """Compact display such as "x32010" or "x-10-12-12-12-10"."""
        frets = self.absolute_frets()
        wide = any(isinstance(f, int) and f > 9 for f in frets)
        parts = [str(f) for f in frets]
        return "-".join(parts) if wide else "".join(parts)

    def __str__(self) -> str:
        return self.fret_string()


# =============================================================================
# LIBRARY VALIDATION REPORT
# =============================================================================

class VoicingStatus(str, Enum):
    """Outcome of checking one curated voicing against its chord."""
    VALID = "valid"
    PARTIAL = "partial"
    ROOTLESS = "rootless"
    INCORRECT = "incorrect"
    MUTED = "muted"


class VoicingFinding(BaseModel):
    """Validation result for one (root, quality, index) library entry."""
    root: str
    quality: ChordQuality
    index: int
    frets: Tuple[FretEntry, ...]
    first_fret: Optional[int] = None
    status: VoicingStatus
    missing_notes: List[str] = Field(default_factory=list)
    extra_notes: List[str] = Field(default_factory=list)

    @property
    def location(self) -> str:
        return f"{self.root}{self.quality.value} #{self.index + 1}"


class LibraryReport(BaseModel):
    """
    Integrity report for the whole curated voicing table.

    Only wrong-note entries and illegal shared shapes are errors; partial
    and rootless voicings are musically valid and are only counted.
    """
    findings: List[VoicingFinding] = Field(default_factory=list)
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def count(self, status: VoicingStatus) -> int:
        return sum(1 for finding in self.findings if finding.status == status)

    def __str__(self) -> str:
        lines = ["✅ VALID" if self.is_valid else "❌ INVALID"]
        lines.append(f"  Checked {len(self.findings)} voicings: " + ", ".join(
            f"{status.value}={self.count(status)}" for status in VoicingStatus
        ))
        if self.errors:
            lines.append("  Errors:")
            lines.extend(f"    - {err}" for err in self.errors)
        if self.warnings:
            lines.append("  Warnings:")
            lines.extend(f"    - {warn}" for warn in self.warnings)
        return "\n".join(lines)


# =============================================================================
# SCALES
# =============================================================================

class ScaleDefinition(BaseModel):
    """
    Interval structure and fingering templates of one scale.

    Fingerings are stored relative to the reference root (C): each
    position is six per-string fret lists, low E to high E.
    """
    model_config = ConfigDict(frozen=True)

    key: ScaleKey
    intervals: Tuple[int, ...]
    fingerings: Tuple[Tuple[Tuple[int, ...], ...], ...] = ()

    @field_validator('intervals')
    @classmethod
    def validate_intervals(cls, v: Tuple[int, ...]) -> Tuple[int, ...]:
        """Start at 0, stay within one octave, strictly increasing."""
        if not v or v[0] != 0:
            raise ValueError(f"Scale intervals must start at 0. Got: {v}")
        if any(b <= a for a, b in zip(v, v[1:])) or v[-1] > 11:
            raise ValueError(f"Scale intervals must strictly increase within 0-11. Got: {v}")
        return v

    @field_validator('fingerings')
    @classmethod
    def validate_fingerings(cls, v):
        for position in v:
            if len(position) != STRING_COUNT:
                raise ValueError(f"Each fingering position needs {STRING_COUNT} strings")
        return v

    @property
    def position_count(self) -> int:
        return len(self.fingerings)


class FingeringValidation(BaseModel):
    """
    Result of checking a fingering against the notes of its scale.

    Attributes:
        is_valid: True when no fingered note falls outside the scale
        coverage: Fraction of fingered notes that belong to the scale
        invalid_notes: Descriptions such as "String 2, fret 4: C#"
    """
    is_valid: bool
    coverage: float = Field(..., ge=0.0, le=1.0)
    invalid_notes: List[str] = Field(default_factory=list)

    def __str__(self) -> str:
        status = "✅ VALID" if self.is_valid else "❌ INVALID"
        lines = [f"{status} (coverage {self.coverage:.0%})"]
        lines.extend(f"    - {note}" for note in self.invalid_notes)
        return "\n".join(lines)


class ScaleInsight(BaseModel):
    """Human-facing description of a scale on a given root."""
    root: str
    key: ScaleKey
    mode_name: str
    notes: List[str]
    formula: str
    step_pattern: str
    is_major_system_mode: bool = False
    mode_profile: Optional[ModeProfile] = None
    relative_major: Optional[str] = None


# =============================================================================
# CHORD ANALYSIS
# =============================================================================

class ChordAnalysis(BaseModel):
    """
    Theory summary of one chord, read in the context of a key.

    Attributes:
        symbol: Canonical chord name ("Dmin7")
        key: Key the chord was read in, as given ("C", "Bb", "Dm")
        quality: Canonical quality
        quality_recognized: False when the quality fell back to major
        formula: Chord degrees joined by dashes ("1-b3-5-b7")
        intervals: Interval names from the root ("Minor 3rd", ...)
        notes: Chord tones spelled for the key
        scale_degrees: Degree of each chord tone within the key ("2", "4", "6", "1")
        compatible_scales: Scales on the chord root that contain every chord tone,
            scales that also stay inside the key listed first
    """
    symbol: str
    key: str
    quality: ChordQuality
    quality_recognized: bool = True
    formula: str = Field(..., examples=["1-3-5-b7"])
    intervals: List[str] = Field(default_factory=list)
    notes: List[str] = Field(default_factory=list)
    scale_degrees: List[str] = Field(default_factory=list)
    compatible_scales: List[ScaleKey] = Field(default_factory=list)

    @model_validator(mode='after')
    def check_lengths(self):
        """Formula, interval names and degrees describe the same tones."""
        if len(self.intervals) != len(self.formula.split("-")):
            raise ValueError("Every formula degree needs an interval name")
        return self
