"""Core Layer — pure domain logic, no IO, no async.

Invariants:
    - No module in core/ imports from services/, api/ or infrastructure/
    - The only outside imports are the pydantic record shapes in models/, which
      the rules read but never load or persist
    - All functions are pure and deterministic; "now" is always a parameter

Design Decisions:
    - Functional core separated from imperative shell (ADR: impureim sandwich)
"""
