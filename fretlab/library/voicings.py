"""
Voicing Library - Curated Chord Shapes with Fallback Synthesis

This module answers "how do I play this chord?" for any chord symbol.
The curated table (fretlab/data/voicings.yaml) is loaded once and never
mutated. Lookups go through a fallback chain so the caller always gets
at least one voicing:

    1. Exact root spelling + quality in the curated table
    2. Enharmonic retry (Db -> C#, A# -> Bb)
    3. Transposition of the same quality from another root
    4. A muted / open-bass-only placeholder

The same module also carries the integrity checks used by tests and
the `fretlab validate` command.
"""

import logging
from collections import defaultdict
from functools import lru_cache
from pathlib import Path
from typing import Dict, FrozenSet, Iterable, Iterator, List, Mapping, Optional, Tuple, Union

import yaml
from pydantic import ValidationError

from fretlab.config import get_config
from fretlab.data.schema import (
    MUTED,
    STRING_COUNT,
    ChordVoicing,
    LibraryReport,
    VoicingFinding,
    VoicingStatus,
)
from fretlab.errors import InvalidChordSymbolError, InvalidNoteError, LibraryIntegrityError, LibraryLoadError
from fretlab.theory.pitch import OPEN_STRING_VALUES, format_note, note_at_fret, note_to_value, value_to_note
from fretlab.theory.qualities import (
    ChordQuality,
    get_chord_pitch_classes,
    is_transposition_symmetric,
    resolve_chord_quality,
)
from fretlab.theory.symbols import ChordSymbol, parse_chord_symbol

logger = logging.getLogger(__name__)

DEFAULT_LIBRARY_PATH = Path(__file__).resolve().parent.parent / "data" / "voicings.yaml"

VoicingTable = Dict[str, Dict[ChordQuality, Tuple[ChordVoicing, ...]]]


# =============================================================================
# PART 1: THE CURATED TABLE
# =============================================================================

class ChordLibrary:
    """
    Read-only view of the curated voicing table.

    Entries are keyed by the root spelling used in the data file and by
    canonical quality. A pitch-class index supports enharmonic retry.
    """

    def __init__(self, table: VoicingTable, source: Optional[Path] = None):
        self._table = table
        self._by_pitch_class: Dict[int, List[str]] = defaultdict(list)
        for root_name in table:
            self._by_pitch_class[note_to_value(root_name)].append(root_name)
        self.source = source

    @classmethod
    def from_mapping(cls, data: Mapping, source: Optional[Path] = None) -> "ChordLibrary":
        """
        Build a library from the raw YAML structure.

        Raises:
            LibraryLoadError: On unknown roots or qualities, or malformed voicings
        """
        if not isinstance(data, Mapping):
            raise LibraryLoadError("Voicing table must map root names to qualities")

        table: VoicingTable = {}
        for raw_root, qualities in data.items():
            try:
                root_name = format_note(str(raw_root))
            except InvalidNoteError:
                raise LibraryLoadError(f"Unknown root '{raw_root}' in voicing table") from None
            if not isinstance(qualities, Mapping):
                raise LibraryLoadError(f"Root '{raw_root}' must map qualities to voicing lists")

            root_entries = table.setdefault(root_name, {})
            for raw_quality, records in qualities.items():
                resolution = resolve_chord_quality(str(raw_quality))
                if not resolution.recognized:
                    raise LibraryLoadError(
                        f"Unknown chord quality '{raw_quality}' under root '{raw_root}'"
                    )
                voicings = []
                for index, record in enumerate(records or []):
                    try:
                        voicings.append(ChordVoicing.model_validate(record))
                    except ValidationError as e:
                        raise LibraryLoadError(
                            f"Malformed voicing {raw_root}{raw_quality} #{index + 1}: {e}"
                        ) from e
                root_entries[resolution.normalized] = tuple(voicings)
        return cls(table, source=source)

    def __len__(self) -> int:
        return sum(len(voicings) for _, _, voicings in self.entries())

    def roots(self) -> List[str]:
        return list(self._table)

    def get(self, root_name: str, quality: ChordQuality) -> Tuple[ChordVoicing, ...]:
        """Voicings stored under this exact root spelling (empty if none)."""
        return self._table.get(root_name, {}).get(quality, ())

    def get_enharmonic(self, root: int, quality: ChordQuality,
                       exclude: Optional[str] = None) -> Tuple[Optional[str], Tuple[ChordVoicing, ...]]:
        """Voicings stored under any other spelling of the same pitch class."""
        for root_name in self._by_pitch_class.get(root % 12, []):
            if root_name == exclude:
                continue
            voicings = self.get(root_name, quality)
            if voicings:
                return root_name, voicings
        return None, ()

    def entries(self) -> Iterator[Tuple[str, ChordQuality, Tuple[ChordVoicing, ...]]]:
        for root_name, qualities in self._table.items():
            for quality, voicings in qualities.items():
                yield root_name, quality, voicings

    def entries_for_quality(self, quality: ChordQuality) -> Iterator[Tuple[str, Tuple[ChordVoicing, ...]]]:
        for root_name, qualities in self._table.items():
            if quality in qualities:
                yield root_name, qualities[quality]


def load_chord_library(path: Optional[str] = None) -> ChordLibrary:
    """
    Return the curated voicing table, loading it on first use.

    The path is resolved on every call (explicit path, then the configured
    `library.voicings_path`, then the packaged table), so a reloaded config
    that points at another file takes effect. Each file is read only once.

    Args:
        path: YAML file to read; defaults to the configured path or the
            table shipped with the package

    Raises:
        LibraryLoadError: If the file cannot be read or is malformed
    """
    if path is None:
        library_path = get_config().voicings_path or DEFAULT_LIBRARY_PATH
    else:
        library_path = Path(path)
    return _read_chord_library(str(library_path.expanduser().resolve()))


@lru_cache(maxsize=None)
def _read_chord_library(library_path: str) -> ChordLibrary:
    try:
        with open(library_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise LibraryLoadError(f"Cannot read voicing table {library_path}: {e}") from e

    library = ChordLibrary.from_mapping(data, source=Path(library_path))
    logger.debug("Loaded %d voicings from %s", len(library), library_path)
    return library


def clear_library_cache() -> None:
    """Forget every loaded table so the next lookup re-reads its file."""
    _read_chord_library.cache_clear()


# =============================================================================
# PART 2: PATTERN EVALUATION HELPERS
# =============================================================================

def is_muted_voicing(voicing: ChordVoicing) -> bool:
    """True if every string is muted."""
    return all(fret == MUTED for fret in voicing.frets)


def realize_pitch_classes(voicing: ChordVoicing) -> FrozenSet[int]:
    """Pitch classes actually sounded by a voicing."""
    return frozenset(
        note_at_fret(string_index, fret)
        for string_index, fret in enumerate(voicing.absolute_frets())
        if fret != MUTED
    )


def lowest_note(voicing: ChordVoicing) -> Optional[int]:
    """Pitch class of the lowest sounding string, or None if all muted."""
    for string_index, fret in enumerate(voicing.absolute_frets()):
        if fret != MUTED:
            return note_at_fret(string_index, fret)
    return None


def voicing_position(voicing: ChordVoicing) -> int:
    """Lowest absolute fret used (0 for shapes with open strings)."""
    frets = [f for f in voicing.absolute_frets() if f != MUTED]
    return min(frets) if frets else 0


def validate_voicing_format(voicing: Union[ChordVoicing, Mapping],
                            root: Optional[str] = None) -> bool:
    """
    Structural check of a voicing record. Never raises.

    Rules: exactly six entries; numeric entries >= 0; a first_fret must be
    a positive int and requires at least one entry > 0.

    Args:
        voicing: A ChordVoicing or a raw mapping with "frets"/"first_fret"
        root: Chord name used in log messages only
    """
    if isinstance(voicing, ChordVoicing):
        frets, first_fret = voicing.frets, voicing.first_fret
    elif isinstance(voicing, Mapping):
        frets = voicing.get("frets")
        first_fret = voicing.get("first_fret", voicing.get("firstFret"))
    else:
        return False

    label = root or "voicing"
    if not isinstance(frets, (list, tuple)) or len(frets) != STRING_COUNT:
        logger.debug("%s: expected %d fret entries, got %r", label, STRING_COUNT, frets)
        return False

    for fret in frets:
        if fret is None or (isinstance(fret, str) and fret.lower() == MUTED):
            continue
        if isinstance(fret, bool) or not isinstance(fret, int) or fret < 0:
            logger.debug("%s: invalid fret entry %r", label, fret)
            return False

    if first_fret is not None:
        if isinstance(first_fret, bool) or not isinstance(first_fret, int) or first_fret < 1:
            logger.debug("%s: invalid first_fret %r", label, first_fret)
            return False
        if not any(isinstance(f, int) and not isinstance(f, bool) and f > 0 for f in frets):
            logger.debug("%s: movable shape without a fretted string", label)
            return False
    return True


# =============================================================================
# PART 3: FALLBACK SYNTHESIS
# =============================================================================

def transpose_voicing(voicing: ChordVoicing, shift: int, max_fret: int = 15,
                      label: Optional[str] = None) -> Optional[ChordVoicing]:
    """
    Shift a voicing by `shift` semitones along the neck.

    Movable shapes keep their pattern and move first_fret; open-format
    shapes move every fretted string. Returns None when the result would
    leave the 0..max_fret range.
    """
    numeric = [f for f in voicing.frets if f != MUTED]
    if not numeric:
        return None

    if voicing.first_fret is not None:
        first_fret = voicing.first_fret + shift
        if first_fret < 1 or first_fret + max(numeric) - 1 > max_fret:
            return None
        return ChordVoicing(frets=voicing.frets, first_fret=first_fret, label=label or voicing.label)

    frets = [f if f == MUTED else f + shift for f in voicing.frets]
    if any(f != MUTED and (f < 0 or f > max_fret) for f in frets):
        return None
    return ChordVoicing(frets=frets, label=label or voicing.label)


def synthesize_by_transposition(library: ChordLibrary, root: int, quality: ChordQuality,
                                max_fret: int = 15) -> Optional[ChordVoicing]:
    """
    Build a voicing for (root, quality) from another root's curated shape.

    Every curated voicing of the same quality is tried at both the upward
    and the downward shift; the candidate closest to the nut wins.
    """
    best: Optional[Tuple[int, ChordVoicing]] = None
    for source_root, voicings in library.entries_for_quality(quality):
        delta = (root - note_to_value(source_root)) % 12
        if delta == 0:
            continue
        for voicing in voicings:
            for shift in (delta, delta - 12):
                candidate = transpose_voicing(
                    voicing, shift, max_fret, label=f"Transposed from {source_root}"
                )
                if candidate is None:
                    continue
                position = voicing_position(candidate)
                if best is None or position < best[0]:
                    best = (position, candidate)
    return best[1] if best else None


def placeholder_voicing(root: Optional[int] = None) -> ChordVoicing:
    """
    Degenerate voicing used when nothing else is available.

    If the root is an open string, that string alone is played as a bass
    note; otherwise every string is muted.
    """
    frets: List[Union[int, str]] = [MUTED] * STRING_COUNT
    if root is not None and root % 12 in OPEN_STRING_VALUES:
        frets[OPEN_STRING_VALUES.index(root % 12)] = 0
    return ChordVoicing(frets=frets, label="Placeholder")


def order_by_bass(voicings: Iterable[ChordVoicing], bass: int) -> List[ChordVoicing]:
    """Stable reorder putting voicings whose lowest note is `bass` first."""
    return sorted(voicings, key=lambda v: lowest_note(v) != bass % 12)


# =============================================================================
# PART 4: LOOKUP
# =============================================================================

def resolve_voicings(chord: ChordSymbol, library: Optional[ChordLibrary] = None,
                     max_fret: Optional[int] = None) -> List[ChordVoicing]:
    """Run the fallback chain for an already parsed chord."""
    if library is None:
        library = load_chord_library()
    if max_fret is None:
        max_fret = get_config().max_fret

    voicings = library.get(chord.root_name, chord.quality)
    if not voicings:
        spelling, voicings = library.get_enharmonic(chord.root, chord.quality,
                                                    exclude=chord.root_name)
        if voicings:
            logger.debug("%s: using voicings stored under %s", chord.symbol, spelling)

    result = list(voicings)
    if not result:
        synthesized = synthesize_by_transposition(library, chord.root, chord.quality, max_fret)
        if synthesized is not None:
            logger.debug("%s: synthesized by transposition (%s)", chord.symbol, synthesized.label)
            result = [synthesized]

    if not result:
        logger.debug("%s: no playable voicing, using placeholder", chord.symbol)
        result = [placeholder_voicing(chord.root)]

    if chord.bass is not None:
        result = order_by_bass(result, chord.bass)
    return result


def get_voicings(chord_symbol: str, library: Optional[ChordLibrary] = None,
                 max_fret: Optional[int] = None) -> List[ChordVoicing]:
    """
    Get voicings for a chord symbol. Never raises, never returns [].

    Examples:
        get_voicings("C")          -> [x32010 (Open), x-3-5-5-5-3, ...]
        get_voicings("Dbmaj7")     -> voicings stored under C#
        get_voicings("F#13")       -> one shape transposed from C13
        get_voicings("C/E")        -> voicings with E in the bass first

    Args:
        chord_symbol: Chord symbol such as "F#m7b5/A"
        library: Library to use (defaults to the packaged table)
        max_fret: Highest fret a synthesized voicing may use

    Returns:
        Ordered list of ChordVoicing, lowest neck position first
    """
    try:
        chord = parse_chord_symbol(chord_symbol)
    except InvalidChordSymbolError as e:
        logger.warning("%s; returning placeholder voicing", e)
        return [placeholder_voicing(None)]
    return resolve_voicings(chord, library, max_fret)


def get_voicings_for_many(chord_symbols: Iterable[str],
                          library: Optional[ChordLibrary] = None) -> Dict[str, List[ChordVoicing]]:
    """Batch lookup keyed by the input symbols."""
    if library is None:
        library = load_chord_library()
    return {symbol: get_voicings(symbol, library) for symbol in chord_symbols}


# =============================================================================
# PART 5: LIBRARY INTEGRITY
# =============================================================================

def _note_names(pitch_classes: Iterable[int]) -> List[str]:
    return [value_to_note(pc) for pc in sorted(pitch_classes)]


def check_voicing(root_name: str, quality: ChordQuality, index: int,
                  voicing: ChordVoicing) -> VoicingFinding:
    """Classify one curated voicing against its chord definition."""
    root = note_to_value(root_name)
    expected = get_chord_pitch_classes(root, quality)
    realized = realize_pitch_classes(voicing)

    extra = realized - expected
    if not realized:
        status = VoicingStatus.MUTED
    elif extra:
        status = VoicingStatus.INCORRECT
    elif root not in realized:
        status = VoicingStatus.ROOTLESS
    elif realized != expected:
        status = VoicingStatus.PARTIAL
    else:
        status = VoicingStatus.VALID

    return VoicingFinding(
        root=root_name,
        quality=quality,
        index=index,
        frets=voicing.frets,
        first_fret=voicing.first_fret,
        status=status,
        missing_notes=_note_names(expected - realized),
        extra_notes=_note_names(extra),
    )


def _check_shared_shapes(library: ChordLibrary, report: LibraryReport) -> None:
    """
    Flag identical shapes stored under different roots of one quality.

    Only transposition-symmetric qualities (dim7, aug) may legitimately
    reuse a shape, and only for roots a whole number of periods apart.
    """
    for quality in ChordQuality:
        seen: Dict[Tuple, List[str]] = defaultdict(list)
        for root_name, voicings in library.entries_for_quality(quality):
            for voicing in voicings:
                seen[(voicing.frets, voicing.first_fret)].append(root_name)

        period = is_transposition_symmetric(quality)
        for (frets, first_fret), roots in seen.items():
            for other in roots[1:]:
                distance = (note_to_value(other) - note_to_value(roots[0])) % 12
                if distance == 0:
                    continue
                if period is None or distance % period != 0:
                    shape = ChordVoicing(frets=frets, first_fret=first_fret).fret_string()
                    report.errors.append(
                        f"{quality.value}: shape {shape} is stored for both "
                        f"{roots[0]} and {other}, but {quality.value} is not "
                        f"symmetric at {distance} semitones"
                    )


def validate_chord_library(library: Optional[ChordLibrary] = None,
                           raise_on_error: bool = False) -> LibraryReport:
    """
    Check every curated voicing against its chord's pitch classes.

    Partial and rootless voicings are fine. A voicing that sounds a note
    outside the chord is an error, as is an illegally shared movable shape.
    Out-of-order entries and fully muted entries are warnings.

    Args:
        library: Library to check (defaults to the packaged table)
        raise_on_error: Raise LibraryIntegrityError if any error is found

    Returns:
        LibraryReport
    """
    if library is None:
        library = load_chord_library()
    report = LibraryReport()

    for root_name, quality, voicings in library.entries():
        previous_position = -1
        for index, voicing in enumerate(voicings):
            finding = check_voicing(root_name, quality, index, voicing)
            report.findings.append(finding)

            if finding.status == VoicingStatus.INCORRECT:
                report.errors.append(
                    f"{finding.location} ({voicing.fret_string()}) sounds "
                    f"{', '.join(finding.extra_notes)} outside the chord"
                )
            elif finding.status == VoicingStatus.MUTED:
                report.warnings.append(f"{finding.location} is fully muted")

            position = voicing_position(voicing)
            if position < previous_position:
                report.warnings.append(f"{finding.location} is out of neck-position order")
            previous_position = position

    _check_shared_shapes(library, report)

    for error in report.errors:
        logger.error("Chord library: %s", error)

    if raise_on_error and report.errors:
        raise LibraryIntegrityError(report)
    return report
