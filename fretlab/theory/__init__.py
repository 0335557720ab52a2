"""
Theory Subpackage

Pure music-theory helpers with no data files:
    - pitch.py: Note names, pitch classes, fretboard arithmetic
    - qualities.py: Chord quality ids, aliases and interval tables
    - symbols.py: Chord symbol parsing ("F#m7b5/A" -> root, quality, bass)
    - modes.py: Scale name normalization and major-system mode profiles
"""
