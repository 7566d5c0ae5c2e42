"""Health & Maintenance Routes — probes, admin-only triggers, backups."""

from datetime import date

from certtrack.core.errors import StorageIOError
from certtrack.schemas.achievement import AchievementCreate
from certtrack.schemas.study_plan import StudyPlanCreate


async def test_liveness(client):
    response = await client.get("/api/v1/health/")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


async def test_readiness(client):
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 200
    assert response.json()["checks"]["storage"] == "healthy"


async def test_readiness_reports_storage_failure(client, registry, monkeypatch):
    async def broken(name):
        raise StorageIOError("disk on fire", "load")

    monkeypatch.setattr(registry.store, "load", broken)
    response = await client.get("/api/v1/health/ready")
    assert response.status_code == 503
    assert response.json()["reason"] == "storage_unavailable"


async def test_maintenance_is_admin_only(client, member_headers):
    response = await client.post("/api/v1/maintenance/run-notifications", headers=member_headers)
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "FORBIDDEN"
    assert (await client.post("/api/v1/maintenance/run-notifications")).status_code == 401


async def test_expire_and_notify(client, registry, member, certification, admin_headers):
    user, _ = member
    await registry.achievements.add(user.id, AchievementCreate(
        certification_id=certification.id, achieved_date=date(2021, 5, 31), expiry_date=date(2024, 5, 31),
    ))
    await registry.study_plans.create(user.id, StudyPlanCreate(
        certification_id=certification.id, start_date=date(2024, 1, 1), target_date=date(2024, 6, 8),
    ))

    expired = await client.post("/api/v1/maintenance/expire-achievements", headers=admin_headers)
    assert expired.status_code == 200
    assert expired.json()["count"] == 1

    run = await client.post("/api/v1/maintenance/run-notifications", headers=admin_headers)
    assert run.json() == {"planReminders": 1, "expiryWarnings": 0, "total": 1}
    rerun = await client.post("/api/v1/maintenance/run-notifications", headers=admin_headers)
    assert rerun.json()["total"] == 0


async def test_sweeps(client, admin_headers):
    cleanup = await client.post("/api/v1/maintenance/cleanup-sessions", headers=admin_headers)
    assert cleanup.json() == {"count": 0}
    prune = await client.post("/api/v1/maintenance/prune-notifications", json={"days": 7}, headers=admin_headers)
    assert prune.json() == {"count": 0}


async def test_backup_create_list_restore(client, registry, admin_headers, member):
    created = await client.post("/api/v1/maintenance/backups", headers=admin_headers)
    assert created.status_code == 200
    backup = created.json()
    assert "users" in backup["collections"]

    listed = await client.get("/api/v1/maintenance/backups", headers=admin_headers)
    assert [b["id"] for b in listed.json()] == [backup["id"]]

    user, _ = member
    await registry.users.delete_user(user.id)
    restored = await client.post(
        "/api/v1/maintenance/backups/restore", json={"backupId": backup["id"]}, headers=admin_headers,
    )
    assert restored.status_code == 200
    assert (await registry.users.get_user(user.id)).email == "member@example.com"


async def test_restore_unknown_backup_is_404(client, admin_headers):
    response = await client.post(
        "/api/v1/maintenance/backups/restore", json={"backupId": "/nowhere/backup-x"}, headers=admin_headers,
    )
    assert response.status_code == 404
