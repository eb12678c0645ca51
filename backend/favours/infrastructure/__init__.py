"""Infrastructure Layer — external service clients and cross-cutting concerns.

Invariants:
    - Infrastructure never imports from services/
    - All external calls wrapped with retry/timeout/error mapping into core/errors.py

Design Decisions:
    - Resilient wrappers over raw httpx clients (single responsibility per collaborator)
"""
