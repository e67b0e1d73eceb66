"""Database Package — the declarative Base shared by ORM models and Alembic.

Invariants:
    - Engine and sessions live in infrastructure.database, not here
"""
