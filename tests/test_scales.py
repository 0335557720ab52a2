"""
Tests for the scale library: intervals, notes, fingerings, descriptions.

Run with: pytest tests/test_scales.py -v
"""

import pytest
from pydantic import ValidationError

from fretlab.data.schema import ScaleDefinition
from fretlab.library.scales import (
    SCALE_INTERVALS,
    describe_scale,
    get_all_scale_fingerings,
    get_position_count,
    get_scale_definition,
    get_scale_fingering,
    get_scale_intervals,
    get_scale_notes,
    intervals_to_formula,
    intervals_to_step_pattern,
    validate_fingering_notes,
)
from fretlab.theory.modes import ScaleKey

C_MAJOR_FIRST_POSITION = [
    [0, 1, 3],
    [0, 2, 3],
    [0, 2, 3],
    [0, 2, 4],
    [1, 3, 5],
    [1, 3, 5],
]

ROOTS = ["C", "C#", "D", "Eb", "E", "F", "F#", "G", "Ab", "A", "Bb", "B"]


class TestIntervalsAndNotes:

    def test_major_intervals(self):
        assert get_scale_intervals("major") == [0, 2, 4, 5, 7, 9, 11]

    def test_aliases_share_intervals(self):
        assert get_scale_intervals("Blues scale") == [0, 3, 5, 6, 7, 10]
        assert get_scale_intervals("Aeolian") == get_scale_intervals("natural minor")
        assert get_scale_intervals("Super Locrian") == get_scale_intervals(ScaleKey.ALTERED)

    def test_unknown_scale_falls_back_to_major(self):
        assert get_scale_intervals("klingon") == [0, 2, 4, 5, 7, 9, 11]

    def test_every_key_has_intervals(self):
        assert set(SCALE_INTERVALS) == set(ScaleKey)

    def test_scale_notes(self):
        assert get_scale_notes("C", "major") == ["C", "D", "E", "F", "G", "A", "B"]
        assert get_scale_notes("A", "natural minor") == ["A", "B", "C", "D", "E", "F", "G"]
        assert get_scale_notes("E", "pentatonic minor") == ["E", "G", "A", "B", "D"]

    def test_root_keeps_its_spelling(self):
        notes = get_scale_notes("Db", "major")
        assert notes[0] == "Db"
        assert notes[1:] == ["D#", "F", "F#", "G#", "A#", "C"]

    def test_unknown_root_uses_c(self):
        assert get_scale_notes("H", "major") == get_scale_notes("C", "major")


class TestScaleDefinitions:

    @pytest.mark.parametrize("scale,count", [
        ("major", 7), ("dorian", 7), ("harmonic minor", 7),
        ("pentatonic minor", 5), ("pentatonic major", 5),
        ("blues", 6), ("whole tone", 6),
        ("diminished", 8), ("bebop dominant", 8),
    ])
    def test_position_counts(self, scale, count):
        assert get_position_count(scale) == count

    def test_definition_is_cached(self):
        assert get_scale_definition(ScaleKey.MAJOR) is get_scale_definition(ScaleKey.MAJOR)

    def test_positions_ordered_from_the_nut(self):
        definition = get_scale_definition(ScaleKey.MAJOR)
        lowest = [min(min(s) for s in p) for p in definition.fingerings]
        assert lowest == sorted(lowest)

    @pytest.mark.parametrize("intervals", [(0, 2, 2, 5), (2, 4, 7), (0, 5, 12), ()])
    def test_bad_intervals_rejected(self, intervals):
        with pytest.raises(ValidationError):
            ScaleDefinition(key=ScaleKey.MAJOR, intervals=intervals)

    def test_position_needs_six_strings(self):
        with pytest.raises(ValidationError):
            ScaleDefinition(key=ScaleKey.MAJOR, intervals=(0, 2, 4), fingerings=(((0,),) * 5,))


class TestFingerings:

    def test_c_major_first_position(self):
        assert get_scale_fingering("major", "C", 0) == C_MAJOR_FIRST_POSITION

    def test_shift_to_another_root(self):
        g_major = get_scale_fingering("major", "G", 0)
        assert g_major == [[f + 7 for f in s] for s in C_MAJOR_FIRST_POSITION]

    def test_six_strings_and_notes_per_string(self):
        heptatonic = get_scale_fingering("dorian", "D", 2)
        assert len(heptatonic) == 6
        assert all(len(s) == 3 for s in heptatonic)
        pentatonic = get_scale_fingering("pentatonic minor", "A", 1)
        assert all(len(s) == 2 for s in pentatonic)

    def test_position_index_is_clamped(self):
        assert get_scale_fingering("whole tone", "C", 7) == get_scale_fingering("whole tone", "C", 5)
        assert get_scale_fingering("major", "C", 99) == get_scale_fingering("major", "C", 6)
        assert get_scale_fingering("major", "C", -3) == get_scale_fingering("major", "C", 0)

    def test_all_fingerings(self):
        assert len(get_all_scale_fingerings("blues", "A")) == 6

    def test_every_position_is_in_key_and_on_the_neck(self):
        for scale in ScaleKey:
            for root in ROOTS:
                for index, fingering in enumerate(get_all_scale_fingerings(scale, root)):
                    result = validate_fingering_notes(fingering, root, scale)
                    assert result.is_valid, f"{root} {scale} #{index}: {result.invalid_notes}"
                    assert result.coverage == 1.0
                    assert 0 <= min(min(s) for s in fingering) <= 11


class TestFingeringValidation:

    def test_foreign_notes_are_reported(self):
        fingering = [[0, 1, 2], [], [], [], [], []]
        result = validate_fingering_notes(fingering, "C", "major")
        assert not result.is_valid
        assert result.invalid_notes == ["String 1, fret 2: F#"]
        assert result.coverage == pytest.approx(2 / 3)
        assert "❌" in str(result)

    def test_empty_fingering(self):
        result = validate_fingering_notes([[], [], [], [], [], []], "C", "major")
        assert result.is_valid
        assert result.coverage == 0.0


class TestDescriptions:

    def test_step_patterns(self):
        assert intervals_to_step_pattern(SCALE_INTERVALS[ScaleKey.MAJOR]) == "2-2-1-2-2-2-1"
        assert intervals_to_step_pattern(SCALE_INTERVALS[ScaleKey.PENTATONIC_MINOR]) == "3-2-2-3-2"
        assert intervals_to_step_pattern(SCALE_INTERVALS[ScaleKey.WHOLE_TONE]) == "2-2-2-2-2-2"

    @pytest.mark.parametrize("key,formula", [
        (ScaleKey.HARMONIC_MINOR, "1 2 b3 4 5 b6 7"),
        (ScaleKey.WHOLE_TONE, "1 2 3 #4 #5 b7"),
        (ScaleKey.LYDIAN_DOMINANT, "1 2 3 #4 5 6 b7"),
        (ScaleKey.PHRYGIAN_DOMINANT, "1 b2 3 4 5 b6 b7"),
        (ScaleKey.PENTATONIC_MINOR, "1 b3 4 5 b7"),
    ])
    def test_formulas(self, key, formula):
        assert intervals_to_formula(SCALE_INTERVALS[key]) == formula

    def test_describe_mode(self):
        insight = describe_scale("D", "dorian")
        assert insight.key is ScaleKey.DORIAN
        assert insight.mode_name == "Dorian"
        assert insight.notes == ["D", "E", "F", "G", "A", "B", "C"]
        assert insight.formula == "1 2 b3 4 5 6 b7"
        assert insight.step_pattern == "2-1-2-2-2-1-2"
        assert insight.is_major_system_mode
        assert insight.mode_profile.degree_roman == "II"
        assert insight.relative_major == "C Major"

    def test_describe_aliased_mode(self):
        insight = describe_scale("A", "Aeolian")
        assert insight.mode_name == "Minor"
        assert insight.relative_major == "C Major"

    def test_describe_non_mode(self):
        insight = describe_scale("C", "blues")
        assert insight.mode_name == "Blues"
        assert not insight.is_major_system_mode
        assert insight.mode_profile is None
        assert insight.relative_major is None

    def test_describe_with_scale_key(self):
        insight = describe_scale("Bb", ScaleKey.MAJOR)
        assert insight.root == "Bb"
        assert insight.relative_major == "Bb Major"

    def test_describe_unknown_root(self):
        insight = describe_scale("H", "major")
        assert insight.root == "C"
        assert insight.relative_major is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
