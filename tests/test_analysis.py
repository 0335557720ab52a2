"""
Tests for chord analysis: formulas, interval names, key degrees and
compatible scales.

Run with: pytest tests/test_analysis.py -v
"""

import pytest
from pydantic import ValidationError

from fretlab.data.schema import ChordAnalysis
from fretlab.errors import InvalidChordSymbolError
from fretlab.library.analysis import (
    analyze_chord,
    get_chord_formula,
    get_chord_interval_names,
    get_chord_notes,
    get_chord_scale_degrees,
    get_scales_containing_chord,
)
from fretlab.library.scales import SCALE_INTERVALS
from fretlab.theory.modes import ScaleKey
from fretlab.theory.qualities import ChordQuality, get_chord_intervals
from fretlab.theory.symbols import parse_chord_symbol


class TestFormulas:

    @pytest.mark.parametrize("symbol,formula", [
        ("C", "1-3-5"),
        ("Am", "1-b3-5"),
        ("G7", "1-3-5-b7"),
        ("Fmaj7", "1-3-5-7"),
        ("Bm7b5", "1-b3-b5-b7"),
        ("Bdim7", "1-b3-b5-bb7"),
        ("Caug", "1-3-#5"),
        ("Dm6", "1-b3-5-6"),
        ("F6/9", "1-3-5-6-9"),
        ("E7#9", "1-3-5-b7-#9"),
        ("G7b9b13", "1-3-5-b7-b9-b13"),
        ("Cmaj7#11", "1-3-5-7-#11"),
        ("A13", "1-3-5-b7-9-13"),
    ])
    def test_formula(self, symbol, formula):
        assert get_chord_formula(symbol) == formula

    def test_every_quality_has_a_formula(self):
        for quality in ChordQuality:
            symbol = "C" if quality is ChordQuality.MAJOR else f"C{quality.value}"
            formula = get_chord_formula(symbol)
            assert formula.startswith("1"), quality
            assert len(formula.split("-")) == len(get_chord_interval_names(symbol)), quality

    def test_interval_names(self):
        assert get_chord_interval_names("Cm7") == ["Root", "Minor 3rd", "Perfect 5th", "Minor 7th"]
        assert get_chord_interval_names("Cdim7")[-1] == "Diminished 7th"
        assert get_chord_interval_names("C9")[-1] == "Major 9th"

    def test_bad_root_raises(self):
        with pytest.raises(InvalidChordSymbolError):
            get_chord_formula("Hm7")


class TestNotesAndDegrees:

    def test_notes_follow_the_key(self):
        assert get_chord_notes("A#7", "F") == ["Bb", "D", "F", "Ab"]
        assert get_chord_notes("Bb7", "E") == ["A#", "D", "F", "G#"]
        assert get_chord_notes("Cm", "C") == ["C", "Eb", "G"]

    def test_extensions_are_not_repeated(self):
        assert get_chord_notes("C13", "C") == ["C", "E", "G", "Bb", "D", "A"]

    @pytest.mark.parametrize("symbol,key,degrees", [
        ("G7", "C", ["5", "7", "2", "4"]),
        ("Dm7", "C", ["2", "4", "6", "1"]),
        ("Bb", "F", ["4", "6", "1"]),
        ("E7", "Am", ["5", "7", "2", "4"]),
        ("Ebmaj7", "Cm", ["b3", "5", "b7", "2"]),
    ])
    def test_scale_degrees(self, symbol, key, degrees):
        assert get_chord_scale_degrees(symbol, key) == degrees


class TestCompatibleScales:

    def test_every_match_contains_the_chord(self):
        for symbol in ["C", "Am7", "G7", "Bm7b5", "Cmaj7#11", "E7#9", "Dsus4"]:
            chord = parse_chord_symbol(symbol)
            tones = {i % 12 for i in get_chord_intervals(chord.quality)}
            scales = get_scales_containing_chord(symbol)
            assert scales, symbol
            for scale in scales:
                assert tones <= set(SCALE_INTERVALS[scale]), (symbol, scale)

    def test_chord_tones_inside_each_scale(self):
        scales = get_scales_containing_chord("G7")
        assert ScaleKey.MIXOLYDIAN in scales
        assert ScaleKey.MAJOR not in scales
        for scale in scales:
            assert {0, 4, 7, 10} <= set(SCALE_INTERVALS[scale])

    def test_key_context_puts_diatonic_scales_first(self):
        assert get_scales_containing_chord("Dm7", "C")[0] is ScaleKey.DORIAN
        assert get_scales_containing_chord("Em7", "C")[0] is ScaleKey.PHRYGIAN
        assert get_scales_containing_chord("G7", "C")[0] is ScaleKey.MIXOLYDIAN
        assert get_scales_containing_chord("Fmaj7", "C")[0] is ScaleKey.LYDIAN

    def test_key_context_only_reorders(self):
        assert sorted(get_scales_containing_chord("Dm7", "C")) == sorted(get_scales_containing_chord("Dm7"))

    def test_unreadable_key_keeps_library_order(self):
        assert get_scales_containing_chord("Dm7", "H") == get_scales_containing_chord("Dm7")


class TestAnalyzeChord:

    def test_full_analysis(self):
        analysis = analyze_chord("Dm7", "C")
        assert analysis.symbol == "Dmin7"
        assert analysis.quality is ChordQuality.MIN7
        assert analysis.formula == "1-b3-5-b7"
        assert analysis.notes == ["D", "F", "A", "C"]
        assert analysis.scale_degrees == ["2", "4", "6", "1"]
        assert analysis.compatible_scales[0] is ScaleKey.DORIAN
        assert len(analysis.compatible_scales) <= 5

    def test_limit(self):
        assert len(analyze_chord("C", limit=2).compatible_scales) == 2
        assert analyze_chord("C", limit=0).compatible_scales == []

    def test_unrecognized_quality_is_flagged(self):
        analysis = analyze_chord("Cmystery")
        assert not analysis.quality_recognized
        assert analysis.formula == "1-3-5"

    def test_model_rejects_mismatched_intervals(self):
        with pytest.raises(ValidationError):
            ChordAnalysis(symbol="C", key="C", quality=ChordQuality.MAJOR,
                          formula="1-3-5", intervals=["Root"])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
