"""Usage accounting over a key prefix.

Totals are always recomputed from a full listing; nothing is cached. The
walk is a single non-atomic scan, so objects written or removed while it
runs may or may not be counted.
"""

import logging

from tenantdrive.gateway import ObjectStoreGateway
from tenantdrive.models import UsageTotals

logger = logging.getLogger(__name__)


class UsageAccumulator:
    """Sums object sizes and counts across every page of a prefix."""

    def __init__(self, gateway: ObjectStoreGateway) -> None:
        self.gateway = gateway

    async def calculate_usage(self, prefix: str) -> UsageTotals:
        """Walk every page under ``prefix`` and total sizes and objects.

        Folder markers are ordinary zero-byte objects: they add 0 bytes and
        1 object like any other entry.
        """
        totals = UsageTotals()
        async for page in self.gateway.iter_pages(prefix):
            for entry in page.entries:
                totals.total_bytes += entry.size
                totals.object_count += 1
        logger.debug(
            "Usage for %s: %d bytes in %d objects",
            prefix,
            totals.total_bytes,
            totals.object_count,
        )
        return totals
