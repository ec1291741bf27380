"""Data model types for TenantDrive.

These dataclasses represent what the object store returns (entries and
listing pages) and the computed results handed back to callers (usage
totals, folder listings, presigned URLs). None of them is persisted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class ObjectEntry:
    """One concrete stored object.

    Attributes:
        key: The absolute object key.
        size: Size in bytes.
        last_modified: Last-modified timestamp reported by the store.
    """

    key: str
    size: int = 0
    last_modified: datetime | None = None


@dataclass
class ListPage:
    """One page of a (possibly delimited) listing.

    Attributes:
        entries: Objects directly matched on this page.
        common_prefixes: Delimiter-grouped prefixes ("folders").
        next_continuation_token: Cursor for the next page, or None when done.
    """

    entries: list[ObjectEntry] = field(default_factory=list)
    common_prefixes: list[str] = field(default_factory=list)
    next_continuation_token: str | None = None

    @property
    def key_count(self) -> int:
        """Number of keys and prefixes returned on this page."""
        return len(self.entries) + len(self.common_prefixes)


@dataclass
class UsageTotals:
    """Aggregate byte and object totals over a prefix."""

    total_bytes: int = 0
    object_count: int = 0

    def to_dict(self) -> dict:
        return {"totalBytes": self.total_bytes, "objectCount": self.object_count}


@dataclass
class FolderSummary:
    """A folder shown in a listing, with its subtree usage."""

    key: str
    name: str
    total_bytes: int = 0
    object_count: int = 0

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "totalBytes": self.total_bytes,
            "objectCount": self.object_count,
        }


@dataclass
class FileSummary:
    """A file shown in a listing."""

    key: str
    name: str
    size: int = 0
    last_modified: datetime | None = None

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "name": self.name,
            "size": self.size,
            "lastModified": self.last_modified.isoformat() if self.last_modified else None,
        }


@dataclass
class FolderListing:
    """One level of a tenant's folder tree.

    Attributes:
        prefix: The relative prefix that was listed ("" for the root).
        folders: Sub-folders with usage totals.
        files: Files directly inside the prefix.
        next_continuation_token: Cursor for the next page, or None.
    """

    prefix: str
    folders: list[FolderSummary] = field(default_factory=list)
    files: list[FileSummary] = field(default_factory=list)
    next_continuation_token: str | None = None

    def to_dict(self) -> dict:
        return {
            "prefix": self.prefix,
            "folders": [f.to_dict() for f in self.folders],
            "files": [f.to_dict() for f in self.files],
            "nextContinuationToken": self.next_continuation_token,
        }


@dataclass
class PresignedUrl:
    """A time-limited URL for a direct client transfer.

    Attributes:
        url: The signed URL.
        expires_in_seconds: Seconds until the URL expires.
        max_upload_bytes: Effective upload cap (uploads only; None = unlimited).
    """

    url: str
    expires_in_seconds: int
    max_upload_bytes: int | None = None

    def to_dict(self) -> dict:
        body: dict = {"url": self.url, "expiresInSeconds": self.expires_in_seconds}
        if self.max_upload_bytes is not None:
            body["maxUploadBytes"] = self.max_upload_bytes
        return body
