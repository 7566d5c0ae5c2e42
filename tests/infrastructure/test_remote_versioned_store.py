"""Remote Versioned Store — contents API emulated with httpx.MockTransport.

Invariants:
    - 404 on GET loads as the scaffold with revision None
    - A save with a stale revision never overwrites a newer write (no lost update)
    - The remote rejecting a raced PUT surfaces as StaleRevisionError
    - Transport failures and other non-2xx answers surface as StorageIOError
"""

import base64
import hashlib
import json

import httpx
import pytest

from certtrack.core.domain_types import CollectionName
from certtrack.core.errors import ConflictError, StaleRevisionError, StorageIOError
from certtrack.infrastructure.remote_versioned_store import RemoteVersionedStore


class FakeContentsAPI:
    """Path-addressed blobs with sha-checked PUT, like the real service."""

    def __init__(self):
        self.files: dict[str, tuple[str, str]] = {}
        self.messages: list[str] = []
        self.race_next_put = False
        self.fail_with: int | None = None

    def _write(self, path: str, encoded: str) -> str:
        sha = hashlib.sha1(base64.b64decode(encoded)).hexdigest()
        self.files[path] = (encoded, sha)
        return sha

    def handler(self, request: httpx.Request) -> httpx.Response:
        if self.fail_with:
            return httpx.Response(self.fail_with, text="upstream trouble")
        path = request.url.path
        if request.method == "GET":
            if path not in self.files:
                return httpx.Response(404, json={"message": "Not Found"})
            encoded, sha = self.files[path]
            return httpx.Response(200, json={"content": encoded, "sha": sha})

        body = json.loads(request.content)
        if self.race_next_put:
            self.race_next_put = False
            self._write(path, base64.b64encode(b'{"raced": true}').decode())
        current = self.files.get(path)
        if current is None and "sha" in body:
            return httpx.Response(422, json={"message": "sha does not match"})
        if current is not None and body.get("sha") != current[1]:
            return httpx.Response(409, json={"message": "is at a different sha"})
        sha = self._write(path, body["content"])
        self.messages.append(body["message"])
        return httpx.Response(201, json={"content": {"sha": sha}})


@pytest.fixture
def api():
    return FakeContentsAPI()


@pytest.fixture
async def remote(api):
    client = httpx.AsyncClient(
        transport=httpx.MockTransport(api.handler), base_url="https://api.test",
    )
    store = RemoteVersionedStore(owner="acme", repo="certs", token="t", client=client)
    yield store
    await client.aclose()


async def test_missing_file_loads_scaffold(remote):
    content, revision = await remote.load(CollectionName.STUDY_PLANS)
    assert content == {"studyPlans": []}
    assert revision is None


async def test_first_write_then_read_back(remote, api):
    revision = await remote.save(
        CollectionName.USERS, {"users": [{"id": "u1", "name": "Zoë"}]}, None, "Create user u1",
    )
    content, loaded = await remote.load(CollectionName.USERS)
    assert content == {"users": [{"id": "u1", "name": "Zoë"}]}
    assert loaded == revision
    assert api.messages == ["Create user u1"]
    assert "/repos/acme/certs/contents/data/users.json" in api.files


async def test_stale_revision_never_overwrites(remote):
    base = await remote.save(CollectionName.USERS, {"users": []}, None)

    winner = await remote.save(CollectionName.USERS, {"users": [{"id": "winner"}]}, base)
    with pytest.raises(StaleRevisionError) as exc:
        await remote.save(CollectionName.USERS, {"users": [{"id": "loser"}]}, base)
    assert isinstance(exc.value, ConflictError)

    content, revision = await remote.load(CollectionName.USERS)
    assert content == {"users": [{"id": "winner"}]}
    assert revision == winner


async def test_server_side_rejection_is_stale_revision(remote, api):
    base = await remote.save(CollectionName.USERS, {"users": []}, None)
    api.race_next_put = True
    with pytest.raises(StaleRevisionError):
        await remote.save(CollectionName.USERS, {"users": [{"id": "late"}]}, base)
    content, _ = await remote.load(CollectionName.USERS)
    assert content == {"raced": True}


async def test_writing_over_unknown_file_with_revision_is_stale(remote):
    with pytest.raises(StaleRevisionError):
        await remote.save(CollectionName.USERS, {"users": []}, "made-up-sha")


async def test_server_error_is_storage_error(remote, api):
    api.fail_with = 502
    with pytest.raises(StorageIOError) as exc:
        await remote.load(CollectionName.USERS)
    assert "upstream" not in exc.value.message


async def test_transport_failure_is_storage_error():
    def boom(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = httpx.AsyncClient(transport=httpx.MockTransport(boom), base_url="https://api.test")
    store = RemoteVersionedStore(owner="acme", repo="certs", token="t", client=client)
    with pytest.raises(StorageIOError) as exc:
        await store.save(CollectionName.USERS, {"users": []}, None)
    assert exc.value.operation == "load"
    await client.aclose()
