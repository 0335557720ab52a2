"""
Test Package

Contains unit tests for all modules.
Run with: pytest tests/ -v

Test files follow the pattern:
    test_<module_name>.py

Example:
    tests/test_pitch.py       - Tests for fretlab/theory/pitch.py
    tests/test_voicings.py    - Tests for fretlab/library/voicings.py
    tests/test_preview.py     - Tests for fretlab/app/preview.py
"""
