"""
Data Subpackage

    - schema.py: Pydantic models for voicings, scales and reports
    - voicings.yaml: The curated chord voicing table
"""
