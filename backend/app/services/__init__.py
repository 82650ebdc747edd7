"""Services Layer — application use cases.

Invariants:
    - Services depend on core protocols only, never on SQLAlchemy
    - Mutations run inside exactly one unit of work

Design Decisions:
    - One service per resource; the transaction boundary lives here
"""
