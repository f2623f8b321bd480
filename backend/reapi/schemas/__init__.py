"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (request bodies, response envelopes)
    - Collection payloads stay untyped here; the engine validates them per schema
"""
