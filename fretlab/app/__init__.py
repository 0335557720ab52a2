"""
App Subpackage

User-facing entry points built on the engine:
    - cli.py: `fretlab` command line tool
    - preview.py: Debounced async voicing preview for UI code
    - cache_keys.py: Deterministic cache keys for progression requests
"""
