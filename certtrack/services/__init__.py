"""Services Layer — async orchestration of the core rules over a CollectionStore.

Invariants:
    - Every service receives its store by constructor injection
    - Each operation loads a collection once and persists it once

Design Decisions:
    - One service per lifecycle/concern for locality (ADR: no god objects)
"""
