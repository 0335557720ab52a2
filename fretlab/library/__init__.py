"""
Library Subpackage

Fretboard lookups backed by curated or generated data:
    - voicings.py: Chord voicing table, fallbacks, integrity checks
    - scales.py: Scale intervals, multi-position fingerings, descriptions
    - analysis.py: Chord formulas, key degrees and compatible scales

Lookups never fail on musical input. When the curated table has nothing
for a chord, the engine falls back to an enharmonic root, then to a
transposed shape, and finally to a single-note placeholder.
"""
