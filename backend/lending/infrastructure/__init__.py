"""Infrastructure Layer - persistence adapters and cross-cutting concerns.

Invariants:
    - Infrastructure implements core protocols; it never makes lending decisions
    - All DB errors mapped to core DatabaseError/ConcurrencyError

Design Decisions:
    - One adapter per concern: database, repositories, notifications, clock, scheduler
"""
