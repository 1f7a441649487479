"""Lending Service Package - reservation lifecycle, wallet ledger and reconciliation jobs.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)

Design Decisions:
    - Empty __init__.py: explicit imports only, no star exports
"""
