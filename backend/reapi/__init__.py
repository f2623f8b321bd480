"""ReAPI Package — schema-driven document API with per-document access rules.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
