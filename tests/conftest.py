"""Root conftest — shared fixtures: a tmp-dir LocalFileStore, a fixed clock, a wired registry.

Design Decisions:
    - Settings built with _env_file=None so a developer .env never leaks into tests
    - Fast pbkdf2 iterations for the test hasher: hashing cost is not under test
"""

import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("STORAGE_BACKEND", "local")
os.environ.setdefault("BOOTSTRAP_ADMIN", "false")
os.environ.setdefault("LOG_FORMAT", "text")

from certtrack.config import Settings  # noqa: E402
from certtrack.core.domain_types import CertificationCategory, UserRole  # noqa: E402
from certtrack.core.errors import StorageIOError  # noqa: E402
from certtrack.infrastructure.audit_log import MemoryAuditSink  # noqa: E402
from certtrack.infrastructure.local_file_store import LocalFileStore  # noqa: E402
from certtrack.infrastructure.password_hashing import WerkzeugPasswordHasher  # noqa: E402
from certtrack.schemas.certification import CertificationCreate  # noqa: E402
from certtrack.schemas.user import UserCreate  # noqa: E402
from certtrack.services.registry import build_registry  # noqa: E402

FIXED_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock(FIXED_NOW)


@pytest.fixture
def store(tmp_path):
    return LocalFileStore(tmp_path / "data", tmp_path / "backups")


@pytest.fixture
def hasher():
    return WerkzeugPasswordHasher(method="pbkdf2:sha256:1000")


@pytest.fixture
def audit():
    return MemoryAuditSink()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        data_dir=str(tmp_path / "data"),
        backup_dir=str(tmp_path / "backups"),
        bootstrap_admin=False,
    )


@pytest.fixture
def registry(store, settings, hasher, audit, clock):
    return build_registry(store, settings, hasher=hasher, audit=audit, clock=clock)


class SaveFailingStore:
    """Wraps a store; saves to the named collections raise StorageIOError."""

    def __init__(self, inner, failing):
        self.inner = inner
        self.failing = set(failing)

    async def load(self, name):
        return await self.inner.load(name)

    async def save(self, name, content, revision, description=None):
        if name in self.failing:
            raise StorageIOError(f"disk full writing {name.value}", "save")
        return await self.inner.save(name, content, revision, description)


@pytest.fixture
def registry_failing_on(store, settings, hasher, audit, clock):
    """Registry over the same data whose saves to the given collections fail."""
    def build(*names):
        return build_registry(SaveFailingStore(store, names), settings, hasher=hasher, audit=audit, clock=clock)
    return build


@pytest.fixture
async def member(registry):
    """A member user; returns (PublicUser, initial password)."""
    return await registry.users.create_user(
        UserCreate(email="member@example.com", name="Mia Member"),
    )


@pytest.fixture
async def admin(registry):
    return await registry.users.create_user(
        UserCreate(email="admin@example.com", name="Ada Admin", role=UserRole.ADMIN),
    )


@pytest.fixture
async def certification(registry):
    return await registry.certifications.create(CertificationCreate(
        name="Cloud Practitioner",
        issuer="AWS",
        category=CertificationCategory.CLOUD,
        difficulty=2,
        validity_period=36,
    ))
