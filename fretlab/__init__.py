"""
fretlab - Guitar Music-Theory Resolution Engine

This package turns chord symbols and scale names into concrete guitar
fretboard shapes. It can:
    1. Resolve chord-quality aliases ("m7b5", "ø", "Δ7") to canonical qualities
    2. Look up curated chord voicings, transposing when no entry exists
    3. Generate multi-position scale fingerings and mode metadata
    4. Serve debounced chord previews to asynchronous UI code

Package layout:
    fretlab.theory   - pitch arithmetic, chord qualities, symbols, modes
    fretlab.library  - voicing library and scale library
    fretlab.app      - preview facade, cache keys, command line interface
    fretlab.data     - value objects and the curated voicing table
"""

__version__ = "0.1.0"
