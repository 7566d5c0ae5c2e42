"""Payload Schemas — validated inputs handed to the services by collaborators.

Invariants:
    - Schemas check shape and types only; domain rules (ranges, ordering,
      uniqueness) are enforced by core/ and raise CertTrackError subclasses
    - Domain enums from core/ used for enum fields

Design Decisions:
    - Separate from models: schemas are inputs, models are persisted records (ADR: DDD boundary)
"""
