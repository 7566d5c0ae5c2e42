"""Local File Store — CollectionStore over JSON files in a data directory.

Invariants:
    - One JSON file per collection; a missing file loads as the empty scaffold
    - save() always succeeds or raises StorageIOError: no conflict detection,
      the later of two racing writers wins (last-write-wins)
    - Revisions are always None for this backend; the revision passed to save() is ignored
    - Each file write is an atomic replace (readers never see a half-written file)
    - snapshot()/restore() operate on the whole collection set, never one collection

Design Decisions:
    - Blocking file IO runs in a worker thread (asyncio.to_thread) so the
      async CollectionStore contract holds without an extra dependency
    - Backup id is the snapshot directory path; restore() accepts it back verbatim
    - A backup name already taken (same millisecond) gets a -1, -2, ... suffix
    - prune_backups() skips, with a warning, manifests whose createdAt does not parse
"""

import asyncio
import json
import logging
import os
import shutil
import tempfile
from datetime import datetime, timedelta
from pathlib import Path

from certtrack.core.clock import as_utc, utcnow
from certtrack.core.collections import collection_file, empty_scaffold
from certtrack.core.domain_types import CollectionName, Revision
from certtrack.core.errors import NotFoundError, StorageIOError

logger = logging.getLogger(__name__)

MANIFEST_FILE = "manifest.json"
BACKUP_PREFIX = "backup-"


def _backup_name(now: datetime) -> str:
    # backup-2024-01-01T12-30-05-123Z
    stamp = as_utc(now).strftime("%Y-%m-%dT%H-%M-%S-") + f"{as_utc(now).microsecond // 1000:03d}Z"
    return BACKUP_PREFIX + stamp


def _new_backup_dir(target_dir: Path, name: str) -> Path:
    """Create a fresh backup directory; a taken name gets a -1, -2, ... suffix."""
    target_dir.mkdir(parents=True, exist_ok=True)
    candidate, suffix = target_dir / name, 0
    while True:
        try:
            candidate.mkdir()
            return candidate
        except FileExistsError:
            suffix += 1
            candidate = target_dir / f"{name}-{suffix}"


class LocalFileStore:
    """JSON-file collection store with snapshot backup/restore."""

    def __init__(self, data_dir: Path | str, backup_dir: Path | str | None = None):
        self.data_dir = Path(data_dir)
        self.backup_dir = Path(backup_dir) if backup_dir is not None else self.data_dir.parent / "backups"

    def _path(self, name: CollectionName) -> Path:
        return self.data_dir / collection_file(name)

    # ─── CollectionStore ─────────────────────────────────────────

    async def load(self, name: CollectionName) -> tuple[dict, Revision | None]:
        return await asyncio.to_thread(self._read, name), None

    async def save(
        self,
        name: CollectionName,
        content: dict,
        revision: Revision | None,
        description: str | None = None,
    ) -> Revision | None:
        await asyncio.to_thread(self._write, name, content)
        logger.debug(
            f"Saved collection {name.value}: {description or 'update'}",
            extra={"collection": name.value},
        )
        return None

    def _read(self, name: CollectionName) -> dict:
        path = self._path(name)
        try:
            with path.open("r", encoding="utf-8") as f:
                content = json.load(f)
        except FileNotFoundError:
            return empty_scaffold(name)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(
                f"Failed to read collection file {path}: {e}",
                extra={"collection": name.value},
            )
            raise StorageIOError(str(e), "load") from e
        if not isinstance(content, dict):
            raise StorageIOError(f"{path} does not hold a JSON object", "load")
        return content

    def _write(self, name: CollectionName, content: dict) -> None:
        path = self._path(name)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(content, f, ensure_ascii=False, indent=2)
                os.replace(tmp, path)
            except BaseException:
                Path(tmp).unlink(missing_ok=True)
                raise
        except (OSError, TypeError, ValueError) as e:
            logger.error(
                f"Failed to write collection file {path}: {e}",
                extra={"collection": name.value},
            )
            raise StorageIOError(str(e), "save") from e

    # ─── Setup ───────────────────────────────────────────────────

    async def initialize(self) -> None:
        """Create the data directory and any missing scaffold files."""
        await asyncio.to_thread(self._initialize)

    def _initialize(self) -> None:
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageIOError(str(e), "initialize") from e
        for name in CollectionName:
            if not self._path(name).exists():
                self._write(name, empty_scaffold(name))
        logger.info(f"Data directory ready: {self.data_dir}")

    # ─── Backup / Restore ────────────────────────────────────────

    async def snapshot(self, target_dir: Path | str | None = None) -> str:
        """Copy every collection into a new backup directory. Returns the backup id."""
        return await asyncio.to_thread(self._snapshot, Path(target_dir) if target_dir else self.backup_dir)

    def _snapshot(self, target_dir: Path) -> str:
        now = utcnow()
        backup_path = target_dir / _backup_name(now)
        try:
            backup_path = _new_backup_dir(target_dir, backup_path.name)
            saved = []
            for name in CollectionName:
                source = self._path(name)
                if source.exists():
                    shutil.copy2(source, backup_path / collection_file(name))
                    saved.append(name.value)
            manifest = {"createdAt": now.isoformat(), "collections": saved}
            (backup_path / MANIFEST_FILE).write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        except OSError as e:
            logger.error(f"Backup to {backup_path} failed: {e}", exc_info=True)
            raise StorageIOError(str(e), "snapshot") from e
        logger.info(f"Backup created: {backup_path}", extra={"count": len(saved)})
        return str(backup_path)

    async def restore(self, backup_id: str) -> None:
        """Replace the live collection set with the snapshot's contents."""
        await asyncio.to_thread(self._restore, Path(backup_id))

    def _restore(self, backup_path: Path) -> None:
        if not (backup_path / MANIFEST_FILE).is_file():
            raise NotFoundError("Backup", str(backup_path))
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            for name in CollectionName:
                source = backup_path / collection_file(name)
                target = self._path(name)
                if source.exists():
                    tmp = target.with_name(f".{target.name}.restore")
                    shutil.copy2(source, tmp)
                    os.replace(tmp, target)
                else:
                    target.unlink(missing_ok=True)
        except OSError as e:
            logger.error(f"Restore from {backup_path} failed: {e}", exc_info=True)
            raise StorageIOError(str(e), "restore") from e
        logger.info(f"Restored collections from backup: {backup_path}")

    async def list_backups(self) -> list[dict]:
        """Backups in the backup directory, newest first."""
        return await asyncio.to_thread(self._list_backups)

    def _list_backups(self) -> list[dict]:
        if not self.backup_dir.is_dir():
            return []
        backups = []
        for path in self.backup_dir.iterdir():
            manifest = path / MANIFEST_FILE
            if not (path.name.startswith(BACKUP_PREFIX) and manifest.is_file()):
                continue
            try:
                meta = json.loads(manifest.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError) as e:
                logger.warning(f"Skipping unreadable backup manifest {manifest}: {e}")
                continue
            backups.append({
                "id": str(path),
                "name": path.name,
                "createdAt": meta.get("createdAt"),
                "collections": meta.get("collections", []),
            })
        return sorted(backups, key=lambda b: b["name"], reverse=True)

    async def prune_backups(self, retention_days: int, now: datetime | None = None) -> int:
        """Delete backups older than the retention window. Returns how many were removed."""
        cutoff = as_utc(now or utcnow()) - timedelta(days=retention_days)
        removed = 0
        for backup in await self.list_backups():
            try:
                created = as_utc(datetime.fromisoformat(backup["createdAt"]))
            except (TypeError, ValueError):
                logger.warning(f"Skipping backup with unreadable createdAt: {backup['name']}")
                continue
            if created < cutoff:
                await asyncio.to_thread(shutil.rmtree, backup["id"], True)
                removed += 1
        if removed:
            logger.info(f"Pruned {removed} old backups", extra={"count": removed})
        return removed
