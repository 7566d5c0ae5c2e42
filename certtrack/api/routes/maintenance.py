"""Maintenance Routes — admin-only operator triggers for the scheduled sweeps.

Invariants:
    - Every route requires an admin session
    - Nothing here runs on a timer; an operator or external cron calls these
    - Backups exist only on the local backend; other backends answer ValidationError
"""

import logging

from fastapi import APIRouter, Depends

from certtrack.api.deps import get_registry, require_admin
from certtrack.config import Settings, get_settings
from certtrack.core.errors import ValidationError
from certtrack.infrastructure.local_file_store import LocalFileStore
from certtrack.models.user import User
from certtrack.schemas.maintenance import (
    BackupInfo, CountResult, ExpireResult, PruneRequest, RestoreRequest, ScheduleResult,
)
from certtrack.services.registry import ServiceRegistry

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/maintenance", tags=["maintenance"])


def _local_store(registry: ServiceRegistry) -> LocalFileStore:
    if not isinstance(registry.store, LocalFileStore):
        raise ValidationError("Backups are only available on the local storage backend", "storageBackend")
    return registry.store


@router.post("/expire-achievements", response_model=ExpireResult)
async def expire_achievements(
    admin: User = Depends(require_admin),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.achievements.process_expired()


@router.post("/run-notifications", response_model=ScheduleResult)
async def run_notifications(
    admin: User = Depends(require_admin),
    registry: ServiceRegistry = Depends(get_registry),
):
    return await registry.scheduler.run_scheduled()


@router.post("/cleanup-sessions", response_model=CountResult)
async def cleanup_sessions(
    admin: User = Depends(require_admin),
    registry: ServiceRegistry = Depends(get_registry),
):
    return CountResult(count=await registry.sessions.cleanup_expired())


@router.post("/prune-notifications", response_model=CountResult)
async def prune_notifications(
    body: PruneRequest | None = None,
    admin: User = Depends(require_admin),
    registry: ServiceRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    days = body.days if body and body.days else settings.notification_retention_days
    return CountResult(count=await registry.inbox.prune_older_than(days))


@router.post("/backups", response_model=BackupInfo)
async def create_backup(
    admin: User = Depends(require_admin),
    registry: ServiceRegistry = Depends(get_registry),
    settings: Settings = Depends(get_settings),
):
    store = _local_store(registry)
    backup_id = await store.snapshot()
    await store.prune_backups(settings.backup_retention_days)
    logger.info("Backup created by operator", extra={"actor": admin.id, "resource_id": backup_id})
    backups = await store.list_backups()
    return next(BackupInfo.model_validate(b) for b in backups if b["id"] == backup_id)


@router.get("/backups", response_model=list[BackupInfo])
async def list_backups(
    admin: User = Depends(require_admin),
    registry: ServiceRegistry = Depends(get_registry),
):
    return [BackupInfo.model_validate(b) for b in await _local_store(registry).list_backups()]


@router.post("/backups/restore")
async def restore_backup(
    body: RestoreRequest,
    admin: User = Depends(require_admin),
    registry: ServiceRegistry = Depends(get_registry),
):
    store = _local_store(registry)
    await store.restore(body.backup_id)
    logger.warning("Collections restored from backup", extra={"actor": admin.id, "resource_id": body.backup_id})
    return {"status": "restored", "backupId": body.backup_id}
