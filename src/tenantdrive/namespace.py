"""Tenant namespace mapping for TenantDrive.

Relative keys are what a tenant sees: ``docs/report.pdf``.
Absolute keys carry the tenant's root prefix: ``users/<tenant>/docs/report.pdf``.
"""

import logging
import re

from tenantdrive.errors import InvalidArgument, OutOfBoundsKey

# Security faults are logged apart from ordinary user errors
security_logger = logging.getLogger("tenantdrive.security")

_REPEATED_SLASHES = re.compile(r"/{2,}")
_ROOT_NAMESPACE = "users"


def _with_trailing_slash(value: str) -> str:
    return value if value.endswith("/") else f"{value}/"


def build_root_prefix(tenant_id) -> str:
    """Build the root prefix for a tenant, always slash-terminated.

    Raises:
        InvalidArgument: If the tenant id is empty or contains a separator.
    """
    identifier = str(tenant_id or "").strip()
    if not identifier or "/" in identifier or "\\" in identifier or ".." in identifier:
        raise InvalidArgument("Tenant identifier must be a non-empty single path segment")
    return f"{_ROOT_NAMESPACE}/{identifier}/"


def to_absolute(root_prefix: str, relative_key: str) -> str:
    """Join a tenant root with a relative key.

    An empty relative key denotes the root itself and yields the root
    prefix without its trailing slash.
    """
    root = _with_trailing_slash(root_prefix or "")
    if not relative_key:
        return root[:-1]
    return _REPEATED_SLASHES.sub("/", f"{root}{relative_key}")


def to_absolute_prefix(root_prefix: str, relative_prefix: str) -> str:
    """Join a tenant root with a relative prefix, keeping a trailing slash."""
    root = _with_trailing_slash(root_prefix or "")
    normalized = _with_trailing_slash(relative_prefix) if relative_prefix else ""
    return _REPEATED_SLASHES.sub("/", f"{root}{normalized}")


def to_relative(root_prefix: str, absolute_key: str) -> str:
    """Strip the tenant root from an absolute key.

    Raises:
        OutOfBoundsKey: If the key does not live under the root prefix.
    """
    root = _with_trailing_slash(root_prefix or "")
    if not absolute_key.startswith(root):
        security_logger.warning(
            "Key %r escaped tenant root %r", absolute_key, root
        )
        raise OutOfBoundsKey()
    return absolute_key[len(root):]


def ensure_within_root(root_prefix: str, absolute_key: str) -> str:
    """Assert an absolute key is the root itself or lives beneath it.

    Returns:
        The absolute key, unchanged.

    Raises:
        OutOfBoundsKey: If the key escapes the root prefix.
    """
    root = _with_trailing_slash(root_prefix or "")
    if absolute_key != root[:-1]:
        to_relative(root, absolute_key)
    return absolute_key
