"""Infrastructure Layer — persistence adapters and cross-cutting concerns.

Invariants:
    - Infrastructure implements core protocols; core never imports infrastructure
    - Every driver error is classified into a DomainError before leaving this layer

Design Decisions:
    - Classification isolated in constraint_errors.py so it is testable without a database
"""
