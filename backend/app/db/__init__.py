"""Database Layer — the declarative Base shared by ORM models and alembic.

Invariants:
    - Engine and sessions live in infrastructure/database.py, not here

Design Decisions:
    - asyncpg driver for PostgreSQL (ADR: native async, no thread pool overhead)
"""
