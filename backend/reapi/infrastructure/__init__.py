"""Infrastructure Layer — database, hashing and logging implementations.

Invariants:
    - Implements the core protocols; core never imports from here
    - Driver exceptions mapped to ReapiError subclasses
"""
