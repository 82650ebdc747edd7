"""Pydantic Schemas — request/response validation for API endpoints.

Invariants:
    - Schemas validate at system boundary (user input, API responses)
    - Schemas convert to core dataclasses before reaching services

Design Decisions:
    - Separate from models: schemas are API contracts, models are persistence
"""
