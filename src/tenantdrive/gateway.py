"""Object store gateway for TenantDrive.

Wraps a single ``ObjectStoreBackend`` with the operations the folder
workflows need: paginated and fully drained listings, chunked batch
deletes, and presigned URL issuance. Each call is bounded by a per-call
timeout; there is no overall deadline and no retry at this layer.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator

from tenantdrive import metrics
from tenantdrive.errors import StoreUnavailable
from tenantdrive.models import ListPage, ObjectEntry, PresignedUrl
from tenantdrive.storage.backend import ObjectStoreBackend

logger = logging.getLogger(__name__)

# S3 delete_objects accepts at most 1000 keys per request
MAX_BATCH_DELETE = 1000

DEFAULT_PRESIGN_TTL = 900


class ObjectStoreGateway:
    """Thin operation set over the backing object store.

    Attributes:
        backend: The backend performing the actual round trips.
        batch_delete_size: Keys per batch-delete request (at most 1000).
        call_timeout_seconds: Timeout for each backend call (0 disables).
    """

    def __init__(
        self,
        backend: ObjectStoreBackend,
        batch_delete_size: int = MAX_BATCH_DELETE,
        call_timeout_seconds: float = 30.0,
    ) -> None:
        self.backend = backend
        self.batch_delete_size = max(1, min(batch_delete_size, MAX_BATCH_DELETE))
        self.call_timeout_seconds = call_timeout_seconds

    async def _call(self, action: str, awaitable):
        """Await one backend round trip under the per-call timeout."""
        if not self.call_timeout_seconds:
            return await awaitable
        try:
            return await asyncio.wait_for(awaitable, self.call_timeout_seconds)
        except asyncio.TimeoutError as e:
            logger.warning(
                "Object store %s timed out after %.1fs", action, self.call_timeout_seconds
            )
            raise StoreUnavailable(f"Object store {action} timed out") from e

    # -- Listing --------------------------------------------------------------

    async def list(
        self,
        prefix: str,
        delimiter: str = "/",
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListPage:
        """Fetch one page of entries and common prefixes under ``prefix``."""
        page = await self._call(
            "list",
            self.backend.list_objects(
                prefix,
                delimiter=delimiter,
                continuation_token=continuation_token,
                max_keys=max_keys,
            ),
        )
        metrics.record_page()
        return page

    async def iter_pages(self, prefix: str, delimiter: str = "") -> AsyncIterator[ListPage]:
        """Yield every page under ``prefix`` until the listing is exhausted.

        Each page boundary is a cancellation checkpoint: cancelling the
        consuming task stops the walk before the next round trip.
        """
        token = None
        pages = 0
        while True:
            page = await self.list(prefix, delimiter=delimiter, continuation_token=token)
            pages += 1
            yield page
            token = page.next_continuation_token
            if not token:
                break
        logger.debug("Listed %s in %d pages", prefix, pages)

    async def list_all(self, prefix: str) -> list[ObjectEntry]:
        """Drain every page under ``prefix`` without a delimiter."""
        entries: list[ObjectEntry] = []
        async for page in self.iter_pages(prefix):
            entries.extend(page.entries)
        return entries

    # -- Single-object operations ---------------------------------------------

    async def head_exists(self, key: str) -> bool:
        """Return True if an object exists at ``key``."""
        return await self._call("head", self.backend.head_object(key))

    async def put(self, key: str, data: bytes, content_type: str | None = None) -> None:
        await self._call("put", self.backend.put_object(key, data, content_type))

    async def get(self, key: str) -> bytes:
        return await self._call("get", self.backend.get_object(key))

    async def delete(self, key: str) -> None:
        await self._call("delete", self.backend.delete_object(key))
        metrics.record_deleted()

    async def copy(self, source_key: str, destination_key: str) -> None:
        """Server-side copy; bytes never pass through this process."""
        await self._call("copy", self.backend.copy_object(source_key, destination_key))
        metrics.record_copied()

    # -- Bulk operations ------------------------------------------------------

    async def batch_delete(self, keys: list[str]) -> int:
        """Delete ``keys`` in sequential chunks of ``batch_delete_size``.

        Returns:
            The number of keys submitted for deletion.
        """
        deleted = 0
        for start in range(0, len(keys), self.batch_delete_size):
            chunk = keys[start:start + self.batch_delete_size]
            await self._call("batch delete", self.backend.delete_objects(chunk))
            deleted += len(chunk)
            metrics.record_deleted(len(chunk))
            logger.debug("Deleted batch of %d keys (%d/%d)", len(chunk), deleted, len(keys))
        return deleted

    # -- Presigned URLs -------------------------------------------------------

    async def presign_upload(
        self,
        key: str,
        content_type: str = "application/octet-stream",
        ttl_seconds: int = DEFAULT_PRESIGN_TTL,
    ) -> PresignedUrl:
        """Issue a time-limited PUT URL for a direct client upload."""
        url = await self._call(
            "presign", self.backend.presign("put_object", key, ttl_seconds, content_type)
        )
        return PresignedUrl(url=url, expires_in_seconds=ttl_seconds)

    async def presign_download(self, key: str, ttl_seconds: int = DEFAULT_PRESIGN_TTL) -> PresignedUrl:
        """Issue a time-limited GET URL for a direct client download."""
        url = await self._call("presign", self.backend.presign("get_object", key, ttl_seconds))
        return PresignedUrl(url=url, expires_in_seconds=ttl_seconds)
