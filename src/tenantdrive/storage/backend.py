"""Abstract object store backend protocol for TenantDrive."""

from typing import Protocol

from tenantdrive.models import ListPage


class ObjectStoreBackend(Protocol):
    """Protocol defining the flat key-value object store interface.

    Every method is a single round trip to the backing store. Keys are
    absolute; tenant scoping happens above this layer.
    """

    async def init(self) -> None:
        """Initialize the backend (connect, verify the bucket, etc.)."""
        ...

    async def close(self) -> None:
        """Release resources held by the backend."""
        ...

    async def list_objects(
        self,
        prefix: str,
        delimiter: str = "/",
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListPage:
        """List one page of keys under a prefix.

        Args:
            prefix: Only keys starting with this prefix are returned.
            delimiter: Group keys sharing a prefix up to this delimiter into
                common prefixes. Empty string disables grouping.
            continuation_token: Cursor returned by a previous page.
            max_keys: Upper bound on keys returned, or None for the backend default.

        Returns:
            A single listing page.
        """
        ...

    async def head_object(self, key: str) -> bool:
        """Return True if an object exists at ``key``."""
        ...

    async def put_object(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Store an object's bytes."""
        ...

    async def get_object(self, key: str) -> bytes:
        """Retrieve an object's bytes.

        Raises:
            NotFound: If the object does not exist.
        """
        ...

    async def delete_object(self, key: str) -> None:
        """Delete an object. Missing keys are not an error."""
        ...

    async def delete_objects(self, keys: list[str]) -> None:
        """Delete up to 1000 objects in one request."""
        ...

    async def copy_object(self, src_key: str, dst_key: str) -> None:
        """Server-side copy preserving metadata."""
        ...

    async def presign(
        self,
        operation: str,
        key: str,
        expires_in: int,
        content_type: str | None = None,
    ) -> str:
        """Return a signed URL for ``operation`` ("get_object" or "put_object")."""
        ...
