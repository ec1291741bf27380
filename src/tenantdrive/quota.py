"""Upload admission against a tenant's storage quota."""

import logging

from tenantdrive.errors import PayloadTooLarge, QuotaExhausted
from tenantdrive.usage import UsageAccumulator

logger = logging.getLogger(__name__)


class QuotaGate:
    """Decides whether a prospective upload fits the tenant's quota.

    Usage is recomputed on every call and nothing is reserved, so two
    concurrent authorizations for the same tenant can both pass and
    together overrun the quota.
    """

    def __init__(self, usage: UsageAccumulator) -> None:
        self.usage = usage

    async def authorize_upload(
        self,
        tenant_root_prefix: str,
        quota_bytes: int,
        static_ceiling_bytes: int,
        upload_bytes: int,
    ) -> int | None:
        """Check an upload of ``upload_bytes`` against quota and ceiling.

        Args:
            tenant_root_prefix: The tenant's absolute root prefix.
            quota_bytes: The tenant's quota; 0 or less means unlimited.
            static_ceiling_bytes: Per-upload ceiling used when no quota is
                set; 0 or less means unlimited.
            upload_bytes: Size of the proposed upload.

        Returns:
            The effective cap in bytes, or None when uploads are unlimited.

        Raises:
            QuotaExhausted: If a quota is set and nothing remains.
            PayloadTooLarge: If the upload exceeds the effective cap.
        """
        remaining = None
        if quota_bytes > 0:
            totals = await self.usage.calculate_usage(tenant_root_prefix)
            remaining = max(quota_bytes - totals.total_bytes, 0)
            if remaining <= 0:
                logger.info(
                    "Quota exhausted for %s: %d of %d bytes used",
                    tenant_root_prefix,
                    totals.total_bytes,
                    quota_bytes,
                )
                raise QuotaExhausted()

        if remaining is not None:
            cap = remaining
        elif static_ceiling_bytes > 0:
            cap = static_ceiling_bytes
        else:
            cap = None

        if cap is not None and upload_bytes > cap:
            if remaining is not None:
                message = f"Upload exceeds your remaining storage ({cap} bytes available)."
            else:
                message = "File exceeds allowed upload size."
            raise PayloadTooLarge(message, max_bytes=cap)
        return cap
