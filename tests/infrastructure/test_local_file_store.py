"""Local File Store — scaffold reads, last-write-wins saves, snapshot/restore.

Invariants:
    - Never-written collection loads as the scaffold with revision None
    - save() ignores the revision: the later writer silently wins
    - restore() brings back exactly the snapshot's collection set
"""

import json
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from certtrack.core.domain_types import CollectionName
from certtrack.core.errors import NotFoundError, StorageIOError
from certtrack.infrastructure.local_file_store import LocalFileStore


@pytest.fixture
def local(tmp_path):
    return LocalFileStore(tmp_path / "data", tmp_path / "backups")


async def test_missing_collection_loads_scaffold(local):
    content, revision = await local.load(CollectionName.ACHIEVEMENTS)
    assert content == {"achievements": []}
    assert revision is None


async def test_save_then_load(local, tmp_path):
    await local.save(CollectionName.USERS, {"users": [{"id": "u1"}]}, None, "add u1")
    content, revision = await local.load(CollectionName.USERS)
    assert content == {"users": [{"id": "u1"}]}
    assert revision is None
    on_disk = json.loads((tmp_path / "data" / "users.json").read_text(encoding="utf-8"))
    assert on_disk == content


async def test_last_write_wins(local):
    first, _ = await local.load(CollectionName.USERS)
    second, _ = await local.load(CollectionName.USERS)
    first["users"].append({"id": "from-first"})
    second["users"].append({"id": "from-second"})
    await local.save(CollectionName.USERS, first, None)
    await local.save(CollectionName.USERS, second, "stale-revision-is-ignored")
    content, _ = await local.load(CollectionName.USERS)
    assert content == {"users": [{"id": "from-second"}]}


async def test_corrupt_file_is_storage_error(local, tmp_path):
    (tmp_path / "data").mkdir()
    (tmp_path / "data" / "users.json").write_text("{not json", encoding="utf-8")
    with pytest.raises(StorageIOError) as exc:
        await local.load(CollectionName.USERS)
    assert exc.value.operation == "load"


async def test_initialize_writes_every_scaffold(local, tmp_path):
    await local.initialize()
    for name in ("users", "certifications", "study_plans", "achievements", "notifications", "sessions"):
        assert (tmp_path / "data" / f"{name}.json").is_file()


async def test_snapshot_and_restore(local):
    await local.save(CollectionName.USERS, {"users": [{"id": "u1"}]}, None)
    backup_id = await local.snapshot()

    await local.save(CollectionName.USERS, {"users": [{"id": "u1"}, {"id": "u2"}]}, None)
    await local.save(CollectionName.SESSIONS, {"sessions": [{"id": "s1"}]}, None)

    await local.restore(backup_id)
    users, _ = await local.load(CollectionName.USERS)
    sessions, _ = await local.load(CollectionName.SESSIONS)
    assert users == {"users": [{"id": "u1"}]}
    # sessions were never written when the snapshot was taken
    assert sessions == {"sessions": []}


async def test_restore_unknown_backup(local, tmp_path):
    with pytest.raises(NotFoundError):
        await local.restore(str(tmp_path / "backups" / "backup-nope"))


async def test_list_and_prune_backups(local):
    await local.save(CollectionName.USERS, {"users": []}, None)
    backup_id = await local.snapshot()
    backups = await local.list_backups()
    assert [b["id"] for b in backups] == [backup_id]
    assert backups[0]["collections"] == ["users"]

    assert await local.prune_backups(30) == 0
    later = datetime.now(timezone.utc) + timedelta(days=31)
    assert await local.prune_backups(30, now=later) == 1
    assert await local.list_backups() == []


async def test_snapshots_in_the_same_millisecond_get_distinct_ids(local, monkeypatch):
    frozen = datetime(2024, 6, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)
    monkeypatch.setattr("certtrack.infrastructure.local_file_store.utcnow", lambda: frozen)
    await local.save(CollectionName.USERS, {"users": []}, None)

    first = await local.snapshot()
    second = await local.snapshot()

    assert first != second
    assert second.endswith("-1")
    assert len(await local.list_backups()) == 2


async def test_prune_skips_unreadable_manifest_dates(local):
    await local.save(CollectionName.USERS, {"users": []}, None)
    backup_id = await local.snapshot()
    manifest = Path(backup_id) / "manifest.json"
    manifest.write_text(json.dumps({"createdAt": "last tuesday", "collections": []}), encoding="utf-8")

    later = datetime.now(timezone.utc) + timedelta(days=31)
    assert await local.prune_backups(30, now=later) == 0
    assert [b["id"] for b in await local.list_backups()] == [backup_id]
