"""Store Factory — builds the configured CollectionStore from settings.

Invariants:
    - storage_backend "local" -> LocalFileStore, "remote" -> RemoteVersionedStore
    - Remote backend refuses to start without owner/repo/token
"""

import logging

from certtrack.config import Settings
from certtrack.infrastructure.local_file_store import LocalFileStore
from certtrack.infrastructure.remote_versioned_store import RemoteVersionedStore

logger = logging.getLogger(__name__)


def build_collection_store(settings: Settings) -> LocalFileStore | RemoteVersionedStore:
    if settings.storage_backend == "remote":
        missing = [
            key for key in ("remote_owner", "remote_repo", "remote_token")
            if not getattr(settings, key)
        ]
        if missing:
            raise RuntimeError(f"Remote storage requires settings: {', '.join(missing)}")
        logger.info(f"Using remote store {settings.remote_owner}/{settings.remote_repo}@{settings.remote_branch}")
        return RemoteVersionedStore(
            owner=settings.remote_owner,
            repo=settings.remote_repo,
            token=settings.remote_token,
            branch=settings.remote_branch,
            data_prefix=settings.remote_data_prefix,
            api_url=settings.remote_api_url,
            timeout_seconds=settings.remote_timeout_seconds,
        )
    logger.info(f"Using local store at {settings.data_dir}")
    return LocalFileStore(settings.data_dir, settings.backup_dir)
