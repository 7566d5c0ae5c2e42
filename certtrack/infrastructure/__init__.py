"""Infrastructure Layer — storage backends and cross-cutting concerns.

Invariants:
    - Stores implement core.repository_protocols.CollectionStore
    - Transport and filesystem failures are mapped to StorageIOError here, never above
    - No retries: conflict and IO policy belongs to the caller

Design Decisions:
    - Two interchangeable backends selected by settings (ADR: collection = logical table)
"""
