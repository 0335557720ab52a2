"""
Tests for progression cache keys.

Run with: pytest tests/test_cache_keys.py -v
"""

import pytest

from fretlab.app.cache_keys import get_progression_cache_key, normalize_mode_token


class TestProgressionCacheKey:

    def test_example_key(self):
        key = get_progression_cache_key("C", "Ionian", True, 4, "I-V-vi-IV")
        assert key == "progression:c:major:tensions:4:i-v-vi-iv:balanced"

    @pytest.mark.parametrize("alias", ["Major", "major", "Ionian", "ionian mode", "Major Scale"])
    def test_major_aliases_collapse(self, alias):
        reference = get_progression_cache_key("C", "Major", False, 4, "I-IV-V")
        assert get_progression_cache_key("C", alias, False, 4, "I-IV-V") == reference

    def test_minor_aliases_collapse(self):
        assert (
            get_progression_cache_key("A", "Aeolian", True, 8, "i-iv-v", "jazzy")
            == get_progression_cache_key("A", "Natural Minor", True, 8, "i-iv-v", "jazzy")
        )

    def test_every_parameter_changes_the_key(self):
        base = ("C", "major", True, 4, "I-V-vi-IV", "balanced")
        variants = [
            ("D", "major", True, 4, "I-V-vi-IV", "balanced"),
            ("C", "dorian", True, 4, "I-V-vi-IV", "balanced"),
            ("C", "major", False, 4, "I-V-vi-IV", "balanced"),
            ("C", "major", True, 8, "I-V-vi-IV", "balanced"),
            ("C", "major", True, 4, "ii-V-I", "balanced"),
            ("C", "major", True, 4, "I-V-vi-IV", "advanced"),
        ]
        keys = {get_progression_cache_key(*args) for args in [base] + variants}
        assert len(keys) == len(variants) + 1

    def test_tokens_are_normalized(self):
        key = get_progression_cache_key(" F# ", "Dorian", False, 3, "ii – V – I", "Jazz / Fusion")
        assert key == "progression:f#:dorian:no-tensions:3:ii-v-i:jazz-fusion"

    def test_whitespace_is_removed(self):
        assert get_progression_cache_key("C", "major", True, 4, "I - V - vi - IV").endswith(
            ":i-v-vi-iv:balanced"
        )

    def test_deterministic(self):
        args = ("Eb", "lydian", True, 6, "I-II-V", "balanced")
        assert get_progression_cache_key(*args) == get_progression_cache_key(*args)


class TestModeToken:

    def test_known_modes_use_their_scale_key(self):
        assert normalize_mode_token("Ionian") == "major"
        assert normalize_mode_token("Harmonic Minor") == "harmonicminor"

    def test_unknown_mode_keeps_its_own_token(self):
        assert normalize_mode_token("Enigmatic") == "enigmatic"
        assert normalize_mode_token("Enigmatic") != normalize_mode_token("major")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
