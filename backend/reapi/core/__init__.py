"""Core Layer — schemas, validators and access rules.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - IO only through the protocols in repository_protocols; everything else is pure

Design Decisions:
    - Functional core separated from imperative shell
"""
