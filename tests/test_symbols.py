"""
Tests for chord symbol parsing.

Run with: pytest tests/test_symbols.py -v
"""

import pytest
from pydantic import ValidationError

from fretlab.errors import InvalidChordSymbolError
from fretlab.theory.qualities import ChordQuality
from fretlab.theory.symbols import (
    display_chord_name,
    format_chord_canonical_name,
    parse_chord_symbol,
    split_chord_name,
)


class TestParseChordSymbol:

    def test_plain_major(self):
        chord = parse_chord_symbol("C")
        assert chord.root == 0
        assert chord.root_name == "C"
        assert chord.quality is ChordQuality.MAJOR
        assert chord.quality_recognized
        assert not chord.has_bass

    def test_half_diminished_with_bass(self):
        chord = parse_chord_symbol("F#m7b5/A")
        assert chord.root == 6
        assert chord.root_name == "F#"
        assert chord.quality is ChordQuality.MIN7_FLAT5
        assert chord.bass == 9
        assert chord.bass_name == "A"

    def test_flat_root_keeps_spelling(self):
        chord = parse_chord_symbol("Bbm7/F")
        assert chord.root == 10
        assert chord.root_name == "Bb"
        assert chord.symbol == "Bbmin7/F"

    def test_lowercase_and_unicode_roots(self):
        assert parse_chord_symbol("am7").root_name == "A"
        assert parse_chord_symbol("E♭maj7").root_name == "Eb"
        assert parse_chord_symbol("F♯7").root == 6

    @pytest.mark.parametrize("symbol,quality", [
        ("Cmin/maj7", ChordQuality.MIN_MAJ7),
        ("C6/9", ChordQuality.SIX_NINE),
    ])
    def test_slash_inside_quality_is_not_a_bass(self, symbol, quality):
        chord = parse_chord_symbol(symbol)
        assert chord.quality is quality
        assert chord.bass is None

    def test_slash_bass_on_major(self):
        chord = parse_chord_symbol("C/E")
        assert chord.quality is ChordQuality.MAJOR
        assert chord.bass == 4

    def test_unknown_quality_falls_back(self):
        chord = parse_chord_symbol("Gmystery")
        assert chord.root == 7
        assert chord.quality is ChordQuality.MAJOR
        assert chord.quality_recognized is False

    @pytest.mark.parametrize("symbol", ["", "   ", "Hm7", "7", "/E"])
    def test_no_root_raises(self, symbol):
        with pytest.raises(InvalidChordSymbolError):
            parse_chord_symbol(symbol)

    def test_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_chord_symbol("xyz")

    def test_chord_symbol_is_frozen(self):
        chord = parse_chord_symbol("C")
        with pytest.raises(ValidationError):
            chord.root = 2


class TestNames:

    def test_split_chord_name(self):
        assert split_chord_name("Dbmaj7/Ab") == ("Db", ChordQuality.MAJ7, "Ab")
        assert split_chord_name("G7") == ("G", ChordQuality.DOM7, None)

    @pytest.mark.parametrize("text,expected", [
        ("C♯maj", "C#"),
        ("Bb-7", "Bbmin7"),
        ("Am", "Aminor"),
        ("D7b13#9", "D7#9b13"),
        ("EΔ", "Emaj7"),
        ("F#ø/C", "F#min7b5/C"),
    ])
    def test_canonical_name(self, text, expected):
        assert format_chord_canonical_name(text) == expected

    @pytest.mark.parametrize("text,expected", [
        ("F#m7b5", "F♯ø7"),
        ("Am", "Am"),
        ("Bbm7", "B♭m7"),
        ("Cdim7", "C°7"),
        ("Eb7b9", "E♭7♭9"),
        ("Caug", "C+"),
        ("C/E", "C/E"),
    ])
    def test_display_name(self, text, expected):
        assert parse_chord_symbol(text).display_name == expected

    def test_str_is_symbol(self):
        assert str(parse_chord_symbol("Dm7")) == "Dmin7"


class TestDisplayChordName:

    @pytest.mark.parametrize("text,key,expected", [
        ("A#maj7", "F", "Bbmaj7"),
        ("Bbmaj7", "E", "A#maj7"),
        ("D#dim", "C", "Ebdim"),
        ("Gbm/Db", "E", "F#m/C#"),
        ("C#m7b5", "Ab", "Dbm7b5"),
        ("Cmin/maj7", "Bb", "Cmin/maj7"),
        ("G7", "Eb", "G7"),
    ])
    def test_respells_root_and_bass(self, text, key, expected):
        assert display_chord_name(text, key) == expected

    def test_text_without_a_root_is_unchanged(self):
        assert display_chord_name("N.C.", "F") == "N.C."
        assert display_chord_name("", "F") == ""


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
