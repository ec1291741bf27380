"""Key and name validation helpers for TenantDrive.

These functions normalize user-supplied relative paths *independently* of
any tenant or backend, so they can be unit-tested in isolation and always
run before any object store call.

Each function raises an appropriate ``DriveError`` subclass on invalid input.
"""

import re
import string

from tenantdrive.errors import InvalidKey, InvalidName, MissingKey

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_REPEATED_SLASHES = re.compile(r"/{2,}")
_TRAVERSAL = ".."

# Characters dropped from both ends of a normalized key
_EDGE_CHARS = "/" + string.whitespace

# S3 rejects keys longer than 1024 bytes when UTF-8 encoded
_MAX_KEY_BYTES = 1024


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def sanitize_key(raw, allow_empty: bool = False, expect_folder: bool = False) -> str:
    """Normalize a relative key into a safe, slash-separated form.

    Backslashes become ``/``, repeated slashes collapse, and leading and
    trailing separators are removed. Folder keys get exactly one trailing
    ``/``; file keys get none. The result is idempotent under re-sanitizing.

    Args:
        raw: The user-supplied key (``None`` is treated as empty).
        allow_empty: Return ``""`` for empty input instead of failing.
        expect_folder: Guarantee a single trailing slash.

    Returns:
        The normalized relative key.

    Raises:
        MissingKey: If the key is empty and ``allow_empty`` is False.
        InvalidKey: If the key contains a ``..`` sequence.
    """
    if raw is None:
        if allow_empty:
            return ""
        raise MissingKey()

    normalized = str(raw).strip().replace("\\", "/")
    if _TRAVERSAL in normalized:
        raise InvalidKey()

    normalized = _REPEATED_SLASHES.sub("/", normalized).strip(_EDGE_CHARS)
    if not normalized:
        if allow_empty:
            return ""
        raise MissingKey()

    if expect_folder:
        return f"{normalized}/"
    return normalized


def sanitize_segment(raw) -> str:
    """Validate a single folder or file name.

    Args:
        raw: The candidate name.

    Returns:
        The trimmed name.

    Raises:
        InvalidName: If the name is not a string, is blank, contains a
            separator, or contains ``..``.
    """
    if not isinstance(raw, str):
        raise InvalidName("Folder or file name must be a string")

    trimmed = raw.strip()
    if not trimmed:
        raise InvalidName("Name is required")
    if "/" in trimmed or "\\" in trimmed:
        raise InvalidName("Name cannot contain slashes")
    if _TRAVERSAL in trimmed:
        raise InvalidName("Name contains invalid traversal characters")
    return trimmed


def normalize_prefix(raw="") -> str:
    """Convert an optional prefix into a folder key (``""`` for the root)."""
    if raw is None or not str(raw).strip():
        return ""
    return sanitize_key(raw, allow_empty=True, expect_folder=True)


def is_folder_key(value) -> bool:
    """Return True if the trimmed value ends with ``/``."""
    return str(value or "").strip().endswith("/")


def validate_object_key(key: str) -> None:
    """Validate an absolute object key against the backend's length limit.

    Raises:
        InvalidKey: If the key exceeds 1024 bytes when UTF-8 encoded.
    """
    if len(key.encode("utf-8")) > _MAX_KEY_BYTES:
        raise InvalidKey("Your key is too long.")
