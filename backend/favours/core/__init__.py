"""Core Layer — pure favour lifecycle logic, no IO, no async.

Invariants:
    - No module in core/ imports from services/ or infrastructure/
    - All functions are pure and deterministic (clock values are passed in)

Design Decisions:
    - Functional core separated from imperative shell: workflows in services/
      orchestrate the async calls around these pure rules
"""
