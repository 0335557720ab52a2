"""
Cache keys for generated chord progressions.

The progression generator lives outside the engine; it caches its answers
under a string built here. Parameters that mean the same thing must give
the same key, so mode names go through the scale-name normalizer
("Major" and "Ionian" collapse to one token).
"""

import re

from fretlab.theory.modes import normalize_scale_descriptor

CACHE_PREFIX = "progression"

_NON_TOKEN = re.compile(r"[^a-z0-9]+")


def _token(value) -> str:
    """Lowercase, drop whitespace, replace other symbols with '-'."""
    text = re.sub(r"\s+", "", str(value).strip().lower())
    return _NON_TOKEN.sub("-", text).strip("-")


def normalize_mode_token(mode: str) -> str:
    """
    Cache token of a mode name.

    Recognized names use their scale key ("Ionian" -> "major"); anything
    else is kept as its own token so unknown modes never collide with major.
    """
    descriptor = normalize_scale_descriptor(mode)
    if descriptor is not None:
        return _token(descriptor.key.value)
    return _token(mode)


def get_progression_cache_key(
    key: str,
    mode: str,
    include_tensions: bool,
    num_chords: int,
    selected_progression: str,
    difficulty: str = "balanced",
) -> str:
    """
    Build the deterministic cache key for a progression request.

    Example:
        >>> get_progression_cache_key("C", "Ionian", True, 4, "I-V-vi-IV")
        'progression:c:major:tensions:4:i-v-vi-iv:balanced'

    Args:
        key: Key root, e.g. "C" or "F#"
        mode: Mode or scale name, any alias
        include_tensions: Whether extended chords were requested
        num_chords: Number of chords in the progression
        selected_progression: Progression selector (roman numerals or a name)
        difficulty: Difficulty/style token

    Returns:
        A string such as "progression:c:major:tensions:4:i-v-vi-iv:balanced"
    """
    parts = [
        key.strip().lower(),
        normalize_mode_token(mode),
        "tensions" if include_tensions else "no-tensions",
        str(int(num_chords)),
        _token(selected_progression),
        _token(difficulty),
    ]
    return CACHE_PREFIX + ":" + ":".join(parts)
