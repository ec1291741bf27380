"""Tenant-scoped file management workflows.

``TenantDrive`` is what the HTTP layer calls. Every operation validates its
input locally, maps relative keys into the tenant's namespace, confirms the
result stays under the tenant root, and only then touches the object store.
"""

from __future__ import annotations

import asyncio
import functools
import logging
import re
import time
from dataclasses import dataclass

from tenantdrive import metrics
from tenantdrive.config import DriveConfig, LimitsConfig
from tenantdrive.errors import DriveError, InvalidArgument
from tenantdrive.folders import FolderOperationEngine
from tenantdrive.gateway import ObjectStoreGateway
from tenantdrive.keys import (
    is_folder_key,
    normalize_prefix,
    sanitize_key,
    sanitize_segment,
    validate_object_key,
)
from tenantdrive.logging_config import bind_tenant, reset_tenant
from tenantdrive.models import FileSummary, FolderListing, FolderSummary, PresignedUrl, UsageTotals
from tenantdrive.namespace import (
    build_root_prefix,
    ensure_within_root,
    to_absolute,
    to_absolute_prefix,
    to_relative,
)
from tenantdrive.quota import QuotaGate
from tenantdrive.storage import ObjectStoreBackend, create_object_store
from tenantdrive.usage import UsageAccumulator

logger = logging.getLogger(__name__)

_REPEATED_SLASHES = re.compile(r"/{2,}")


@dataclass(frozen=True)
class TenantContext:
    """Per-request identity supplied by the authentication layer.

    Attributes:
        root_prefix: The tenant's absolute root prefix (``users/<id>/``).
        quota_bytes: Storage quota in bytes; 0 means unlimited.
    """

    root_prefix: str
    quota_bytes: int = 0


def _tracked(operation: str):
    """Count and time each call of a workflow, logging under its tenant."""

    def decorator(func):
        @functools.wraps(func)
        async def wrapper(self, ctx: TenantContext, *args, **kwargs):
            token = bind_tenant(ctx.root_prefix)
            start = time.monotonic()
            status = "error"
            try:
                result = await func(self, ctx, *args, **kwargs)
                status = "ok"
                return result
            except DriveError as e:
                status = e.code
                raise
            finally:
                metrics.record_operation(operation, status)
                logger.debug(
                    "%s finished: %s",
                    operation,
                    status,
                    extra={
                        "operation": operation,
                        "duration_ms": round((time.monotonic() - start) * 1000, 1),
                    },
                )
                reset_tenant(token)

        return wrapper

    return decorator


class TenantDrive:
    """Caller-facing folder experience for one object store.

    Attributes:
        gateway: The object store gateway.
        engine: Folder workflows over the gateway.
        usage: Usage accounting over the gateway.
        quota: Upload admission.
        limits: Upload ceilings and presign lifetime.
    """

    def __init__(self, gateway: ObjectStoreGateway, limits: LimitsConfig | None = None) -> None:
        self.limits = limits or LimitsConfig()
        self.gateway = gateway
        self.engine = FolderOperationEngine(gateway, copy_concurrency=self.limits.copy_concurrency)
        self.usage = UsageAccumulator(gateway)
        self.quota = QuotaGate(self.usage)

    @classmethod
    def from_config(
        cls, config: DriveConfig, backend: ObjectStoreBackend | None = None
    ) -> TenantDrive:
        """Build a drive and its gateway from configuration.

        Args:
            config: The loaded configuration.
            backend: An already constructed backend; built from
                ``config.storage`` when omitted.
        """
        gateway = ObjectStoreGateway(
            backend or create_object_store(config.storage),
            batch_delete_size=config.limits.batch_delete_size,
            call_timeout_seconds=config.limits.call_timeout_seconds,
        )
        return cls(gateway, config.limits)

    # -- Key mapping ----------------------------------------------------------

    @staticmethod
    def _absolute(ctx: TenantContext, relative_key: str) -> str:
        key = ensure_within_root(ctx.root_prefix, to_absolute(ctx.root_prefix, relative_key))
        validate_object_key(key)
        return key

    @staticmethod
    def _absolute_prefix(ctx: TenantContext, relative_prefix: str) -> str:
        prefix = ensure_within_root(
            ctx.root_prefix, to_absolute_prefix(ctx.root_prefix, relative_prefix)
        )
        validate_object_key(prefix)
        return prefix

    @staticmethod
    def _resolve_source(raw_key) -> tuple[bool, str]:
        """Return (is folder, normalized key without trailing slash)."""
        folder_candidate = is_folder_key(raw_key)
        normalized = sanitize_key(raw_key, allow_empty=False, expect_folder=folder_candidate)
        return folder_candidate, normalized.rstrip("/")

    # -- Listing and usage ----------------------------------------------------

    @_tracked("list")
    async def list_folder(
        self,
        ctx: TenantContext,
        prefix: str = "",
        continuation_token: str | None = None,
    ) -> FolderListing:
        """List one level of the tenant's tree with per-folder usage."""
        relative_prefix = normalize_prefix(prefix)
        absolute_prefix = self._absolute_prefix(ctx, relative_prefix)
        page = await self.gateway.list(
            absolute_prefix, delimiter="/", continuation_token=continuation_token
        )

        folder_keys = [to_relative(ctx.root_prefix, cp) for cp in page.common_prefixes]
        totals = await asyncio.gather(
            *(self.usage.calculate_usage(cp) for cp in page.common_prefixes)
        )
        folders = [
            FolderSummary(
                key=key,
                name=key[len(relative_prefix):].rstrip("/"),
                total_bytes=usage.total_bytes,
                object_count=usage.object_count,
            )
            for key, usage in zip(folder_keys, totals)
        ]

        files = []
        for entry in page.entries:
            if entry.key == absolute_prefix:
                continue
            relative_key = to_relative(ctx.root_prefix, entry.key)
            if relative_key == relative_prefix:
                continue
            files.append(
                FileSummary(
                    key=relative_key,
                    name=[s for s in relative_key.split("/") if s][-1],
                    size=entry.size,
                    last_modified=entry.last_modified,
                )
            )

        return FolderListing(
            prefix=relative_prefix,
            folders=folders,
            files=files,
            next_continuation_token=page.next_continuation_token,
        )

    @_tracked("usage")
    async def folder_usage(self, ctx: TenantContext, prefix: str = "") -> UsageTotals:
        """Total bytes and objects beneath a relative prefix."""
        relative_prefix = normalize_prefix(prefix)
        return await self.usage.calculate_usage(self._absolute_prefix(ctx, relative_prefix))

    async def usage_report(self, root_prefixes: list[str]) -> dict[str, UsageTotals]:
        """Compute total usage for several tenant roots concurrently."""
        results = await asyncio.gather(
            *(self.usage.calculate_usage(root) for root in root_prefixes)
        )
        return dict(zip(root_prefixes, results))

    # -- Folder creation ------------------------------------------------------

    @_tracked("create_folder")
    async def create_folder(self, ctx: TenantContext, name, prefix: str = "") -> str:
        """Create an empty folder named ``name`` inside ``prefix``.

        Returns:
            The relative key of the new folder.
        """
        folder_name = sanitize_segment(name)
        safe_prefix = normalize_prefix(prefix or "")
        folder_key = _REPEATED_SLASHES.sub("/", f"{safe_prefix}{folder_name}/")
        absolute_key = self._absolute(ctx, folder_key)

        await self.engine.ensure_target_available(absolute_key, is_folder=True)
        await self.engine.create_folder_placeholder(absolute_key)
        return folder_key

    async def provision_tenant(self, tenant_id, quota_bytes: int | None = None) -> TenantContext:
        """Build a tenant's root prefix and make sure its marker exists."""
        root_prefix = build_root_prefix(tenant_id)
        await self.engine.ensure_folder_exists(root_prefix)
        logger.info("Provisioned tenant root %s", root_prefix, extra={"tenant": str(tenant_id)})
        return TenantContext(
            root_prefix=root_prefix,
            quota_bytes=self.limits.default_quota_bytes if quota_bytes is None else quota_bytes,
        )

    # -- Delete, rename, move -------------------------------------------------

    @_tracked("delete")
    async def delete(self, ctx: TenantContext, key) -> None:
        """Delete a file, or a whole folder when ``key`` ends with ``/``."""
        folder_candidate, safe_key = self._resolve_source(key)
        if folder_candidate:
            await self.engine.delete_folder_objects(self._absolute_prefix(ctx, safe_key))
            return

        absolute_key = self._absolute(ctx, safe_key)
        await self.engine.ensure_object_exists(absolute_key)
        await self.engine.delete_object_by_key(absolute_key)

    @_tracked("rename")
    async def rename(self, ctx: TenantContext, key, new_name, resume: bool = False) -> str:
        """Rename a file or folder in place.

        Returns:
            The new relative key.
        """
        folder_candidate, safe_key = self._resolve_source(key)
        safe_name = sanitize_segment(new_name)
        parent_prefix = safe_key[: safe_key.rfind("/") + 1]
        target_key = f"{parent_prefix}{safe_name}{'/' if folder_candidate else ''}"

        if safe_key == target_key.rstrip("/"):
            raise InvalidArgument("No changes detected")

        await self._transfer(ctx, folder_candidate, safe_key, target_key, resume)
        return target_key

    @_tracked("move")
    async def move(
        self, ctx: TenantContext, source_key, destination_prefix: str = "", resume: bool = False
    ) -> str:
        """Move a file or folder into ``destination_prefix``.

        Returns:
            The new relative key.

        Raises:
            InvalidArgument: If the destination equals the source, or a
                folder would be moved into itself or one of its descendants.
        """
        folder_candidate, safe_source = self._resolve_source(source_key)
        safe_destination = normalize_prefix(destination_prefix)
        item_name = [s for s in safe_source.split("/") if s][-1]
        target_key = f"{safe_destination}{item_name}{'/' if folder_candidate else ''}"

        if safe_source == target_key.rstrip("/"):
            raise InvalidArgument("Source and destination are identical")
        if folder_candidate and target_key.startswith(f"{safe_source}/"):
            raise InvalidArgument("Cannot move a folder inside itself")

        await self._transfer(ctx, folder_candidate, safe_source, target_key, resume)
        return target_key

    async def _transfer(
        self,
        ctx: TenantContext,
        is_folder: bool,
        source_key: str,
        target_key: str,
        resume: bool,
    ) -> None:
        """Relocate a folder, or copy a file then delete its source."""
        if is_folder:
            await self.engine.relocate_folder(
                self._absolute_prefix(ctx, source_key),
                self._absolute_prefix(ctx, target_key),
                resume=resume,
            )
            return

        absolute_source = self._absolute(ctx, source_key)
        absolute_target = self._absolute(ctx, target_key)
        await self.engine.ensure_target_available(absolute_target, is_folder=False)
        await self.engine.ensure_object_exists(absolute_source)
        await self.engine.copy_object(absolute_source, absolute_target)
        await self.engine.delete_object_by_key(absolute_source)

    # -- Transfers ------------------------------------------------------------

    @_tracked("upload_url")
    async def create_upload_url(
        self,
        ctx: TenantContext,
        key,
        content_length,
        content_type: str = "application/octet-stream",
    ) -> PresignedUrl:
        """Authorize an upload against the quota and presign a PUT URL."""
        safe_key = sanitize_key(key)
        try:
            upload_bytes = int(content_length)
        except (TypeError, ValueError):
            upload_bytes = 0
        if upload_bytes <= 0:
            raise InvalidArgument("contentLength is required")

        absolute_key = self._absolute(ctx, safe_key)
        cap = await self.quota.authorize_upload(
            ctx.root_prefix,
            ctx.quota_bytes,
            self.limits.max_upload_bytes,
            upload_bytes,
        )
        presigned = await self.gateway.presign_upload(
            absolute_key, content_type, self.limits.presign_ttl_seconds
        )
        presigned.max_upload_bytes = cap
        return presigned

    @_tracked("download_url")
    async def create_download_url(self, ctx: TenantContext, key) -> PresignedUrl:
        """Presign a GET URL for an existing file."""
        absolute_key = self._absolute(ctx, sanitize_key(key))
        await self.engine.ensure_object_exists(absolute_key)
        return await self.gateway.presign_download(absolute_key, self.limits.presign_ttl_seconds)

    @_tracked("read")
    async def read_file(self, ctx: TenantContext, key) -> bytes:
        """Return a file's bytes."""
        return await self.gateway.get(self._absolute(ctx, sanitize_key(key)))
