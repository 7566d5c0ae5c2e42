"""Collection IO — the load-once / persist-once edge shared by every service.

Invariants:
    - One load() per collection per operation, one save() per mutated collection
    - persist() hands back the revision it loaded at; a moved revision surfaces
      as StaleRevisionError from the store and is never retried here
    - Audit entries are emitted only after the write succeeded

Design Decisions:
    - Services receive the store and sink by constructor injection (no singleton)
"""

import logging
from datetime import datetime
from typing import Callable, TypeVar

from pydantic import BaseModel

from certtrack.core.clock import utcnow
from certtrack.core.collections import CollectionSnapshot
from certtrack.core.domain_types import CollectionName
from certtrack.core.repository_protocols import AuditEntry, AuditSink, CollectionStore

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)

Clock = Callable[[], datetime]

SYSTEM_ACTOR = "system"


async def load_snapshot(
    store: CollectionStore, name: CollectionName, model: type[R],
) -> CollectionSnapshot[R]:
    content, revision = await store.load(name)
    return CollectionSnapshot.from_content(name, content, revision, model)


async def persist_snapshot(
    store: CollectionStore, snapshot: CollectionSnapshot, description: str,
) -> None:
    snapshot.revision = await store.save(
        snapshot.name, snapshot.to_content(), snapshot.revision, description,
    )


def audit_view(record: BaseModel | None) -> dict | None:
    if record is None:
        return None
    return record.model_dump(mode="json", by_alias=True, exclude_none=True, exclude={"password_hash"})


class CollectionService:
    """Base for services over injected stores: clock, audit and snapshot helpers."""

    def __init__(
        self,
        store: CollectionStore,
        audit: AuditSink | None = None,
        clock: Clock = utcnow,
    ):
        self.store = store
        self.audit = audit
        self.clock = clock

    async def _load(self, name: CollectionName, model: type[R]) -> CollectionSnapshot[R]:
        return await load_snapshot(self.store, name, model)

    async def _persist(self, snapshot: CollectionSnapshot, description: str) -> None:
        await persist_snapshot(self.store, snapshot, description)

    def _audit(
        self,
        actor: str | None,
        action: str,
        resource_type: str,
        resource_id: str,
        before: BaseModel | None = None,
        after: BaseModel | None = None,
    ) -> None:
        if self.audit is None:
            return
        self.audit.record(AuditEntry(
            actor=actor or SYSTEM_ACTOR,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            before=audit_view(before),
            after=audit_view(after),
            timestamp=self.clock(),
        ))
