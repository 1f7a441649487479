"""Services Layer - transactions around the lending core.

Invariants:
    - Services load records, call core planners, write the plan, commit, then notify
    - One unit of work per borrow/return and per reconciled reservation

Design Decisions:
    - Sweeps live beside the request services and share their repositories
"""
