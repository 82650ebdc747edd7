"""Core Layer — entities, error taxonomy, id generation and port contracts. No IO, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - Everything here is importable without a database driver

Design Decisions:
    - Domain separated from adapters so persistence can be swapped behind the protocols
"""
