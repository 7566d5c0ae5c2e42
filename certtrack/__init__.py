"""CertTrack — certification tracking over whole-collection JSON storage.

Layers (dependency arrows point inward):
    core/            pure rules, no IO
    models/          persisted records (pydantic, camelCase on disk)
    schemas/         validated inputs
    infrastructure/  stores, hashing, audit, logging
    services/        async orchestration over an injected CollectionStore
    api/             thin FastAPI boundary
"""
