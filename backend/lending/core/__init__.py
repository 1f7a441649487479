"""Core Layer - pure lending logic, no IO, no async, no DB, no clock reads.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, models/ or db/
    - All functions are pure and deterministic given their arguments

Design Decisions:
    - Functional core separated from imperative shell (impureim sandwich)
"""
