"""ORM Models - SQLAlchemy declarative models for users, items, wallets and reservations.

Invariants:
    - All models inherit from Base (db/base.py)
    - Rows never leave the shell: repositories map them to core records

Design Decisions:
    - One file per entity
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from lending.models.user import User  # noqa: F401
from lending.models.item import Item  # noqa: F401
from lending.models.wallet import Wallet  # noqa: F401
from lending.models.reservation import Reservation  # noqa: F401
