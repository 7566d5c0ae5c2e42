"""Collection Scaffolds & Snapshots — the whole-collection unit of storage.

Invariants:
    - A collection's content is always {"<name>": [record, ...]}
    - empty_scaffold(name) is what load() returns for a never-written collection
    - CollectionSnapshot keeps records keyed by id in their original order
    - Stored content with two records sharing an id is a decode error, never a silent drop
    - to_content() of an unmodified snapshot reproduces the loaded record order

Design Decisions:
    - Snapshot = in-memory index loaded once per operation, persisted as one full
      write (ADR: collection is the logical table; no per-record persistence)
    - Records are pydantic models; serialization uses camelCase aliases so the
      on-disk shape matches what every existing collection file holds
"""

from dataclasses import dataclass, field
from typing import Generic, Iterator, TypeVar

from pydantic import BaseModel, ValidationError as PydanticValidationError

from certtrack.core.domain_types import CollectionName, Revision
from certtrack.core.errors import StorageIOError

COLLECTION_FILES: dict[CollectionName, str] = {
    CollectionName.USERS: "users.json",
    CollectionName.CERTIFICATIONS: "certifications.json",
    CollectionName.STUDY_PLANS: "study_plans.json",
    CollectionName.ACHIEVEMENTS: "achievements.json",
    CollectionName.NOTIFICATIONS: "notifications.json",
    CollectionName.SESSIONS: "sessions.json",
}

R = TypeVar("R", bound=BaseModel)


def empty_scaffold(name: CollectionName) -> dict:
    """Well-known empty content for a collection that was never written."""
    return {name.value: []}


def collection_file(name: CollectionName) -> str:
    return COLLECTION_FILES[name]


def records_of(name: CollectionName, content: dict) -> list[dict]:
    """Extract the record array, tolerating a missing key as empty."""
    items = content.get(name.value, [])
    if not isinstance(items, list):
        raise StorageIOError(
            f"collection '{name.value}' does not hold an array", "decode",
        )
    return items


@dataclass
class CollectionSnapshot(Generic[R]):
    """Id-keyed in-memory view of one collection plus the revision it was read at."""

    name: CollectionName
    records: dict[str, R] = field(default_factory=dict)
    revision: Revision | None = None

    @classmethod
    def from_content(
        cls, name: CollectionName, content: dict,
        revision: Revision | None, model: type[R],
    ) -> "CollectionSnapshot[R]":
        snapshot: CollectionSnapshot[R] = cls(name=name, revision=revision)
        for raw in records_of(name, content):
            try:
                record = model.model_validate(raw)
            except PydanticValidationError as e:
                raise StorageIOError(
                    f"malformed record in '{name.value}': {e}", "decode",
                ) from e
            if record.id in snapshot.records:
                raise StorageIOError(
                    f"duplicate id '{record.id}' in '{name.value}'", "decode",
                )
            snapshot.records[record.id] = record
        return snapshot

    def to_content(self) -> dict:
        return {
            self.name.value: [
                r.model_dump(mode="json", by_alias=True, exclude_none=True)
                for r in self.records.values()
            ],
        }

    def __iter__(self) -> Iterator[R]:
        return iter(list(self.records.values()))

    def __len__(self) -> int:
        return len(self.records)

    def get(self, record_id: str) -> R | None:
        return self.records.get(record_id)

    def put(self, record: R) -> R:
        self.records[record.id] = record
        return record

    def remove(self, record_id: str) -> R | None:
        return self.records.pop(record_id, None)

    def replace_all(self, records: list[R]) -> None:
        self.records = {r.id: r for r in records}
