"""Notification Inbox — listing, read marks, deletion, retention, stats."""

import pytest

from certtrack.core.domain_types import CertificationCategory
from certtrack.core.errors import NotFoundError
from certtrack.schemas.certification import CertificationCreate


async def _announce(registry, name):
    return await registry.certifications.create(CertificationCreate(
        name=name, issuer="Acme", category=CertificationCategory.SECURITY, difficulty=3,
    ))


@pytest.fixture
async def inbox_user(registry, member, clock):
    """Member with three new-certification notifications, one per day."""
    user, _ = member
    for name in ("First", "Second", "Third"):
        await _announce(registry, name)
        clock.advance(days=1)
    return user


async def test_newest_first(registry, inbox_user):
    names = [n.payload.certification_name for n in await registry.inbox.list_for_user(inbox_user.id)]
    assert names == ["Third", "Second", "First"]


async def test_mark_read_and_unread_filter(registry, inbox_user):
    newest = (await registry.inbox.list_for_user(inbox_user.id))[0]
    marked = await registry.inbox.mark_as_read(newest.id)
    assert marked.is_read
    unread = await registry.inbox.list_for_user(inbox_user.id, unread_only=True)
    assert newest.id not in [n.id for n in unread]
    assert len(unread) == 2

    assert await registry.inbox.mark_all_as_read(inbox_user.id) == 2
    assert await registry.inbox.mark_all_as_read(inbox_user.id) == 0


async def test_delete(registry, inbox_user):
    target = (await registry.inbox.list_for_user(inbox_user.id))[0]
    await registry.inbox.delete(target.id)
    with pytest.raises(NotFoundError):
        await registry.inbox.get(target.id)
    with pytest.raises(NotFoundError):
        await registry.inbox.mark_as_read(target.id)


async def test_prune_older_than(registry, inbox_user, clock):
    # notifications are 3, 2 and 1 days old
    assert await registry.inbox.prune_older_than(2) == 1
    assert len(await registry.inbox.list_for_user(inbox_user.id)) == 2
    assert await registry.inbox.prune_older_than(30) == 0


async def test_stats(registry, inbox_user):
    newest = (await registry.inbox.list_for_user(inbox_user.id))[0]
    await registry.inbox.mark_as_read(newest.id)
    stats = await registry.inbox.stats(inbox_user.id)
    assert stats["total"] == 3
    assert stats["unread"] == 2
    assert stats["byType"]["new_certification"] == {"total": 3, "unread": 2}
    assert stats["byType"]["plan_reminder"] == {"total": 0, "unread": 0}
