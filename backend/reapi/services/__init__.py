"""Services Layer — request authorization and per-operation orchestration.

Invariants:
    - Services take an EngineContext; no module-level state
    - Failures raise ReapiError subclasses; routes never build error bodies
"""
