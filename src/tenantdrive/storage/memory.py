"""In-memory object store backend for TenantDrive.

Implements the ObjectStoreBackend protocol using a Python dictionary, with
S3 listing semantics: lexicographic key order, delimiter grouping into
common prefixes, and opaque continuation tokens. Used for local development
and tests; nothing survives a restart.
"""

import base64
import logging
import time
import urllib.parse
from datetime import datetime, timezone

from tenantdrive.errors import NotFound
from tenantdrive.models import ListPage, ObjectEntry

logger = logging.getLogger(__name__)

# Matches the S3 list_objects_v2 page limit
_DEFAULT_PAGE_SIZE = 1000
_MAX_BATCH_DELETE = 1000


class MemoryObjectStore:
    """Object store backend that holds all objects in memory.

    Objects are stored in a dictionary keyed by absolute key with values of
    (data, last_modified, content_type).

    Attributes:
        bucket_name: Name used when rendering presigned URLs.
        page_size: Maximum keys returned by one list call.
    """

    def __init__(self, bucket_name: str = "tenantdrive", page_size: int = _DEFAULT_PAGE_SIZE) -> None:
        self.bucket_name = bucket_name
        self.page_size = page_size
        self._objects: dict[str, tuple[bytes, datetime, str | None]] = {}

    async def init(self) -> None:
        logger.info("Memory object store initialized: page_size=%d", self.page_size)

    async def close(self) -> None:
        pass

    # -- Listing --------------------------------------------------------------

    @staticmethod
    def _encode_token(kind: str, key: str) -> str:
        return base64.urlsafe_b64encode(f"{kind}:{key}".encode()).decode()

    @staticmethod
    def _decode_token(token: str | None) -> tuple[str | None, bool]:
        """Return (last key returned, whether it was a common prefix)."""
        if not token:
            return None, False
        try:
            kind, _, key = base64.urlsafe_b64decode(token.encode()).decode().partition(":")
        except (ValueError, UnicodeDecodeError):
            return None, False
        return key, kind == "p"

    async def list_objects(
        self,
        prefix: str,
        delimiter: str = "/",
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListPage:
        limit = self.page_size if max_keys is None else min(max_keys, self.page_size)
        if limit <= 0:
            return ListPage()

        after, after_is_prefix = self._decode_token(continuation_token)
        entries: list[ObjectEntry] = []
        common_prefixes: list[str] = []
        last: tuple[str, str] | None = None
        truncated = False

        for key in sorted(k for k in self._objects if k.startswith(prefix)):
            if after is not None:
                if key <= after:
                    continue
                if after_is_prefix and key.startswith(after):
                    continue

            group = None
            if delimiter:
                pos = key.find(delimiter, len(prefix))
                if pos >= 0:
                    group = key[: pos + len(delimiter)]
            # Keys sharing a prefix are contiguous in sorted order
            if group is not None and common_prefixes and common_prefixes[-1] == group:
                continue

            if len(entries) + len(common_prefixes) >= limit:
                truncated = True
                break

            if group is not None:
                common_prefixes.append(group)
                last = ("p", group)
            else:
                data, modified, _ = self._objects[key]
                entries.append(ObjectEntry(key=key, size=len(data), last_modified=modified))
                last = ("k", key)

        next_token = self._encode_token(*last) if truncated and last else None
        return ListPage(
            entries=entries,
            common_prefixes=common_prefixes,
            next_continuation_token=next_token,
        )

    # -- Single-object CRUD ---------------------------------------------------

    async def head_object(self, key: str) -> bool:
        return key in self._objects

    async def put_object(self, key: str, data: bytes, content_type: str | None = None) -> None:
        self._objects[key] = (bytes(data), datetime.now(timezone.utc), content_type)

    async def get_object(self, key: str) -> bytes:
        try:
            return self._objects[key][0]
        except KeyError:
            raise NotFound() from None

    async def delete_object(self, key: str) -> None:
        self._objects.pop(key, None)

    async def delete_objects(self, keys: list[str]) -> None:
        if len(keys) > _MAX_BATCH_DELETE:
            raise ValueError(f"Batch delete accepts at most {_MAX_BATCH_DELETE} keys")
        for key in keys:
            self._objects.pop(key, None)

    async def copy_object(self, src_key: str, dst_key: str) -> None:
        try:
            data, _, content_type = self._objects[src_key]
        except KeyError:
            raise NotFound("Source object not found") from None
        self._objects[dst_key] = (data, datetime.now(timezone.utc), content_type)

    async def presign(
        self,
        operation: str,
        key: str,
        expires_in: int,
        content_type: str | None = None,
    ) -> str:
        query = {"op": operation, "expires": int(time.time()) + expires_in}
        if content_type and operation == "put_object":
            query["content-type"] = content_type
        path = urllib.parse.quote(key, safe="/")
        return f"memory://{self.bucket_name}/{path}?{urllib.parse.urlencode(query)}"

    # -- Inspection helpers ---------------------------------------------------

    def keys(self) -> list[str]:
        """Return every stored key in sorted order."""
        return sorted(self._objects)
