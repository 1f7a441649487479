"""Database Metadata - the SQLAlchemy declarative Base.

Design Decisions:
    - Engine and sessions live in infrastructure/database.py; this package only
      owns table metadata so models and Alembic can import it without an engine
"""
