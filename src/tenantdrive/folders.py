"""Folder workflows over a flat object store.

Folders exist only as key prefixes, optionally made explicit by a zero-byte
marker object whose key ends in ``/``. Multi-object workflows (move, rename,
delete of a folder) are sagas: a sequence of independent store calls with
no rollback. Their partial-failure states are:

* ``relocate_folder``: every copy is attempted before anything is deleted.
  If any copy fails the source is left intact and the destination may hold
  a partial copy. Re-running with ``resume=True`` re-copies and converges.
* ``delete_folder_objects``: batches are deleted in order; a failure leaves
  the later batches in place and a re-run deletes what remains.
* File move/rename: copy, then delete the source. A failure between the two
  leaves both copies present.
"""

import asyncio
import logging

from tenantdrive.errors import BucketMissing, Conflict, DriveError, InvalidArgument, NotFound
from tenantdrive.gateway import ObjectStoreGateway

logger = logging.getLogger(__name__)

DEFAULT_COPY_CONCURRENCY = 8


def _folder_key(key: str) -> str:
    return key if key.endswith("/") else f"{key}/"


class FolderOperationEngine:
    """Orchestrates existence checks, conflict detection, and recursive
    copy/delete for folder-like prefixes.

    All keys handled here are absolute. Tenant scoping is the caller's job.

    Attributes:
        gateway: The object store gateway.
        copy_concurrency: Maximum server-side copies in flight during a
            folder relocation.
    """

    def __init__(
        self,
        gateway: ObjectStoreGateway,
        copy_concurrency: int = DEFAULT_COPY_CONCURRENCY,
    ) -> None:
        self.gateway = gateway
        self.copy_concurrency = max(1, copy_concurrency)

    # -- Existence and conflict checks -----------------------------------------

    async def ensure_object_exists(self, key: str) -> None:
        """Raise NotFound unless an object exists at ``key``."""
        if not await self.gateway.head_exists(key):
            raise NotFound("Object not found")

    async def ensure_target_available(self, key: str, is_folder: bool = False) -> None:
        """Raise Conflict if the destination is already occupied.

        A folder target is occupied when any key exists beneath it; a file
        target when an object exists at exactly that key.
        """
        if is_folder:
            page = await self.gateway.list(_folder_key(key), delimiter="", max_keys=1)
            if page.key_count:
                raise Conflict("Destination folder already exists")
            return

        if await self.gateway.head_exists(key):
            raise Conflict("Destination file already exists")

    # -- Single-object primitives ---------------------------------------------

    async def copy_object(self, source_key: str, destination_key: str) -> None:
        await self.gateway.copy(source_key, destination_key)

    async def delete_object_by_key(self, key: str) -> None:
        await self.gateway.delete(key)

    # -- Folder markers -------------------------------------------------------

    async def create_folder_placeholder(self, folder_key: str) -> str:
        """Write a zero-byte marker at ``folder_key`` (trailing slash enforced).

        Returns:
            The marker key that was written.
        """
        marker = _folder_key(folder_key)
        await self.gateway.put(marker, b"")
        return marker

    async def ensure_folder_exists(self, folder_key: str) -> None:
        """Idempotently create a folder marker.

        A missing bucket is fatal; any other store failure is logged and
        treated as success.
        """
        try:
            await self.create_folder_placeholder(folder_key)
        except BucketMissing:
            raise
        except DriveError as e:
            logger.warning("Folder marker for %s not written: %s", folder_key, e.code)

    # -- Recursive workflows --------------------------------------------------

    async def delete_folder_objects(self, folder_prefix: str) -> int:
        """Delete every object beneath ``folder_prefix``.

        Returns:
            The number of objects deleted.

        Raises:
            InvalidArgument: If the prefix does not end with ``/``.
            NotFound: If nothing exists beneath the prefix.
        """
        if not folder_prefix.endswith("/"):
            raise InvalidArgument("Folder prefix must end with a slash")

        keys = [entry.key for entry in await self.gateway.list_all(folder_prefix)]
        if not keys:
            raise NotFound("Folder not found")

        deleted = await self.gateway.batch_delete(keys)
        logger.info(
            "Deleted folder %s (%d objects)",
            folder_prefix,
            deleted,
            extra={"operation": "delete_folder", "object_count": deleted},
        )
        return deleted

    async def relocate_folder(
        self,
        source_prefix: str,
        destination_prefix: str,
        resume: bool = False,
    ) -> int:
        """Copy every object under ``source_prefix`` to ``destination_prefix``,
        then delete the originals.

        Relative structure beneath the prefix is preserved. Copies run
        concurrently (bounded by ``copy_concurrency``) and all of them are
        awaited before the first failure, if any, is raised. The source is
        deleted only once every copy has succeeded.

        Args:
            source_prefix: Absolute source folder prefix, ``/``-terminated.
            destination_prefix: Absolute destination prefix, ``/``-terminated.
            resume: Skip the destination-availability check so an
                interrupted relocation can be re-run over its partial copy.

        Returns:
            The number of objects relocated.

        Raises:
            InvalidArgument: If either prefix lacks a trailing slash.
            Conflict: If the destination already holds keys (unless resuming).
            NotFound: If nothing exists beneath the source.
        """
        if not source_prefix.endswith("/") or not destination_prefix.endswith("/"):
            raise InvalidArgument("Folder prefixes must end with a slash")

        if not resume:
            await self.ensure_target_available(destination_prefix, is_folder=True)

        keys = [entry.key for entry in await self.gateway.list_all(source_prefix)]
        if not keys:
            raise NotFound("Folder not found")

        semaphore = asyncio.Semaphore(self.copy_concurrency)

        async def _copy(key: str) -> None:
            destination_key = f"{destination_prefix}{key[len(source_prefix):]}"
            async with semaphore:
                await self.copy_object(key, destination_key)
            logger.debug("Copied %s -> %s", key, destination_key)

        results = await asyncio.gather(*(_copy(k) for k in keys), return_exceptions=True)
        failures = [r for r in results if isinstance(r, BaseException)]
        if failures:
            logger.error(
                "Relocation %s -> %s incomplete: %d of %d copies failed, source left intact",
                source_prefix,
                destination_prefix,
                len(failures),
                len(keys),
                extra={"operation": "relocate_folder", "object_count": len(keys)},
            )
            raise failures[0]

        await self.gateway.batch_delete(keys)
        logger.info(
            "Relocated %s -> %s (%d objects)",
            source_prefix,
            destination_prefix,
            len(keys),
            extra={"operation": "relocate_folder", "object_count": len(keys)},
        )
        return len(keys)
