"""Session Authority — login, validation window, logout, password change, cleanup.

Invariants:
    - Unknown email and wrong password fail identically
    - Sessions live for the configured TTL and are soft-deleted on logout
    - cleanup_expired() keeps only active, unexpired sessions
"""

import pytest

from certtrack.core.domain_types import CollectionName
from certtrack.core.errors import AuthError, ValidationError


async def _login(registry, member):
    user, password = member
    return await registry.sessions.login(user.email, password)


async def test_login_creates_session_and_stamps_user(registry, member, store, clock):
    result = await _login(registry, member)
    assert result.must_change_password is True
    assert result.user.email == "member@example.com"
    assert not hasattr(result.user, "password_hash")

    sessions, _ = await store.load(CollectionName.SESSIONS)
    [session] = sessions["sessions"]
    assert session["id"] == result.session_id
    assert session["isActive"] is True

    user = await registry.sessions.validate(result.session_id)
    assert user.last_login_at == clock.now


async def test_login_email_is_case_insensitive(registry, member):
    user, password = member
    result = await registry.sessions.login("  MEMBER@Example.com ", password)
    assert result.user.id == user.id


async def test_unknown_email_and_wrong_password_fail_alike(registry, member):
    user, _ = member
    with pytest.raises(AuthError) as wrong_password:
        await registry.sessions.login(user.email, "not-the-password")
    with pytest.raises(AuthError) as unknown_email:
        await registry.sessions.login("nobody@example.com", "whatever")
    assert wrong_password.value.message == unknown_email.value.message
    assert wrong_password.value.http_status == 401


async def test_session_expires_after_ttl(registry, member, clock):
    result = await _login(registry, member)
    clock.advance(hours=23, minutes=59)
    assert await registry.sessions.validate(result.session_id) is not None
    clock.advance(minutes=2)
    assert await registry.sessions.validate(result.session_id) is None


async def test_validate_unknown_or_empty_token(registry):
    assert await registry.sessions.validate("nope") is None
    assert await registry.sessions.validate(None) is None


async def test_logout_soft_deletes(registry, member, store):
    result = await _login(registry, member)
    assert await registry.sessions.logout(result.session_id) is True
    assert await registry.sessions.validate(result.session_id) is None
    assert await registry.sessions.logout(result.session_id) is False

    sessions, _ = await store.load(CollectionName.SESSIONS)
    assert sessions["sessions"][0]["isActive"] is False


async def test_change_password(registry, member):
    user, password = member
    with pytest.raises(AuthError):
        await registry.sessions.change_password(user.id, "wrong-old", "brand-new-pass")

    await registry.sessions.change_password(user.id, password, "brand-new-pass")
    result = await registry.sessions.login(user.email, "brand-new-pass")
    assert result.must_change_password is False
    with pytest.raises(AuthError):
        await registry.sessions.login(user.email, password)


async def test_change_password_too_short(registry, member):
    user, password = member
    with pytest.raises(ValidationError):
        await registry.sessions.change_password(user.id, password, "short")


async def test_cleanup_expired(registry, member, clock, store):
    old = await _login(registry, member)
    clock.advance(hours=12)
    ended = await _login(registry, member)
    await registry.sessions.logout(ended.session_id)
    clock.advance(hours=13)
    fresh = await _login(registry, member)

    assert await registry.sessions.cleanup_expired() == 2
    sessions, _ = await store.load(CollectionName.SESSIONS)
    assert [s["id"] for s in sessions["sessions"]] == [fresh.session_id]
    assert await registry.sessions.validate(old.session_id) is None
    assert await registry.sessions.cleanup_expired() == 0
