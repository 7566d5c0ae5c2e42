"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - load() on a never-written collection returns (empty_scaffold(name), None), never an error
    - save() always receives the revision the caller loaded at (None if never written)
    - save() raises StaleRevisionError (recoverable) or StorageIOError (fatal), nothing else
    - Implementations provided by shell via constructor injection (no module singleton)

Design Decisions:
    - Protocol over ABC: structural subtyping, no inheritance hierarchy
    - Async in CollectionStore: every load/save is an IO boundary (file or network);
      the pure lifecycle logic that consumes the content is never async itself
    - Revision explicit in save(): stores without concurrency control ignore it,
      versioned stores use it as the compare-and-swap token
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol

from certtrack.core.domain_types import CollectionName, Revision


class CollectionStore(Protocol):
    """Typed whole-collection load/save with a revision concept."""

    async def load(self, name: CollectionName) -> tuple[dict, Revision | None]: ...

    async def save(
        self,
        name: CollectionName,
        content: dict,
        revision: Revision | None,
        description: str | None = None,
    ) -> Revision | None: ...


class PasswordHasher(Protocol):
    """Strong one-way hash; the algorithm is an implementation detail."""

    def hash(self, password: str) -> str: ...

    def verify(self, password: str, password_hash: str) -> bool: ...


@dataclass
class AuditEntry:
    """One mutating operation, as handed to the audit sink."""
    actor: str
    action: str
    resource_type: str
    resource_id: str
    before: dict[str, Any] | None = None
    after: dict[str, Any] | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink(Protocol):
    """Receives audit entries; must not raise into the caller's operation."""

    def record(self, entry: AuditEntry) -> None: ...
