"""SQLAlchemy Repositories - ORM rows <-> frozen core records.

Invariants:
    - Repositories flush but never commit; the owning service commits
    - Every datetime handed back to the core is timezone-aware UTC
    - Balance and availability writes are compare-and-set on the value last read
"""
