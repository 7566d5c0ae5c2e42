"""Remote Versioned Store — CollectionStore over a content-addressed contents API.

Invariants:
    - GET 404 maps to (empty_scaffold(name), None); never an error
    - Every successful save() is one immutable remote revision with its own
      human-readable description (the remote history is the audit trail)
    - save() is a compare-and-swap on the caller's revision: the current revision
      is re-fetched first and a mismatch is rejected before any write; the PUT
      carries the same revision so the service rejects a writer that raced in between
    - Rejections surface as StaleRevisionError (409, or 422 mentioning the sha);
      every other non-2xx or transport failure surfaces as StorageIOError
    - No retries: reload-and-retry vs. fail-fast is the caller's decision

Design Decisions:
    - httpx.AsyncClient injected or owned: tests pass a MockTransport-backed client
    - Content travels as base64 of pretty-printed UTF-8 JSON, as the service stores it
"""

import base64
import json
import logging

import httpx

from certtrack.core.collections import collection_file, empty_scaffold
from certtrack.core.domain_types import CollectionName, Revision
from certtrack.core.errors import ErrorContext, StaleRevisionError, StorageIOError

logger = logging.getLogger(__name__)


def encode_content(content: dict) -> str:
    raw = json.dumps(content, ensure_ascii=False, indent=2).encode("utf-8")
    return base64.b64encode(raw).decode("ascii")


def decode_content(encoded: str) -> dict:
    # the service wraps base64 at 60 columns
    raw = base64.b64decode("".join(encoded.split()))
    return json.loads(raw.decode("utf-8"))


class RemoteVersionedStore:
    """Contents-API collection store with revision-checked writes."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        branch: str = "main",
        data_prefix: str = "data",
        api_url: str = "https://api.github.com",
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.owner = owner
        self.repo = repo
        self.branch = branch
        self.data_prefix = data_prefix.strip("/")
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(
            base_url=api_url,
            timeout=timeout_seconds,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/vnd.github+json",
            },
        )

    def _url(self, name: CollectionName) -> str:
        path = collection_file(name)
        if self.data_prefix:
            path = f"{self.data_prefix}/{path}"
        return f"/repos/{self.owner}/{self.repo}/contents/{path}"

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    # ─── CollectionStore ─────────────────────────────────────────

    async def load(self, name: CollectionName) -> tuple[dict, Revision | None]:
        response = await self._request("GET", name, params={"ref": self.branch})
        if response.status_code == 404:
            return empty_scaffold(name), None
        self._raise_for_status(response, name, "load")
        body = response.json()
        try:
            content = decode_content(body["content"])
        except (KeyError, ValueError, TypeError) as e:
            raise StorageIOError(
                f"undecodable content for {name.value}: {e}", "load",
                ErrorContext(collection=name.value),
            ) from e
        return content, Revision(body["sha"])

    async def save(
        self,
        name: CollectionName,
        content: dict,
        revision: Revision | None,
        description: str | None = None,
    ) -> Revision | None:
        _, current = await self.load(name)
        if current != revision:
            logger.warning(
                f"Rejected write to {name.value}: loaded at {revision}, now at {current}",
                extra={"collection": name.value, "revision": current},
            )
            raise StaleRevisionError(name.value, revision)

        body = {
            "message": description or f"Update {name.value}",
            "content": encode_content(content),
            "branch": self.branch,
        }
        if revision is not None:
            body["sha"] = revision

        response = await self._request("PUT", name, json=body)
        if response.status_code == 409 or (
            response.status_code == 422 and "sha" in response.text
        ):
            logger.warning(
                f"Remote rejected stale write to {name.value}",
                extra={"collection": name.value, "revision": revision},
            )
            raise StaleRevisionError(name.value, revision)
        self._raise_for_status(response, name, "save")

        new_revision = Revision(response.json()["content"]["sha"])
        logger.info(
            f"Saved {name.value}: {body['message']}",
            extra={"collection": name.value, "revision": new_revision},
        )
        return new_revision

    # ─── Transport ───────────────────────────────────────────────

    async def _request(self, method: str, name: CollectionName, **kwargs) -> httpx.Response:
        try:
            return await self.client.request(method, self._url(name), **kwargs)
        except httpx.HTTPError as e:
            logger.error(
                f"Remote {method} {name.value} failed: {e}",
                extra={"collection": name.value},
            )
            raise StorageIOError(
                str(e), "load" if method == "GET" else "save",
                ErrorContext(collection=name.value),
            ) from e

    def _raise_for_status(self, response: httpx.Response, name: CollectionName, operation: str) -> None:
        if response.is_success:
            return
        logger.error(
            f"Remote {operation} of {name.value} returned {response.status_code}",
            extra={"collection": name.value},
        )
        raise StorageIOError(
            f"HTTP {response.status_code}: {response.text[:200]}", operation,
            ErrorContext(collection=name.value),
        )
