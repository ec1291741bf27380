"""Tests for upload admission against quotas."""

from unittest.mock import AsyncMock

import pytest

from tenantdrive.errors import PayloadTooLarge, QuotaExhausted
from tenantdrive.models import UsageTotals
from tenantdrive.quota import QuotaGate


def _gate(used_bytes: int = 0) -> QuotaGate:
    usage = AsyncMock()
    usage.calculate_usage = AsyncMock(
        return_value=UsageTotals(total_bytes=used_bytes, object_count=1)
    )
    return QuotaGate(usage)


class TestQuota:
    """Uploads against a tenant quota."""

    async def test_fits_remaining(self):
        gate = _gate(used_bytes=900)
        cap = await gate.authorize_upload("users/a/", 1000, 0, 100)
        assert cap == 100
        gate.usage.calculate_usage.assert_awaited_once_with("users/a/")

    async def test_one_byte_over(self):
        gate = _gate(used_bytes=900)
        with pytest.raises(PayloadTooLarge) as exc_info:
            await gate.authorize_upload("users/a/", 1000, 0, 101)
        err = exc_info.value
        assert err.http_status == 413
        assert "100 bytes available" in err.message
        assert err.extra_fields["maxUploadBytes"] == "100"

    async def test_exhausted(self):
        gate = _gate(used_bytes=1000)
        with pytest.raises(QuotaExhausted) as exc_info:
            await gate.authorize_upload("users/a/", 1000, 0, 1)
        assert exc_info.value.http_status == 403

    async def test_over_quota_is_exhausted(self):
        gate = _gate(used_bytes=5000)
        with pytest.raises(QuotaExhausted):
            await gate.authorize_upload("users/a/", 1000, 0, 1)

    async def test_quota_overrides_static_ceiling(self):
        """With a quota set, the remaining space is the cap even above the ceiling."""
        gate = _gate(used_bytes=0)
        cap = await gate.authorize_upload("users/a/", 5000, 1000, 3000)
        assert cap == 5000


class TestStaticCeiling:
    """Uploads when the tenant has no quota."""

    async def test_within_ceiling(self):
        gate = _gate()
        assert await gate.authorize_upload("users/a/", 0, 1000, 1000) == 1000
        gate.usage.calculate_usage.assert_not_awaited()

    async def test_over_ceiling(self):
        gate = _gate()
        with pytest.raises(PayloadTooLarge, match="File exceeds allowed upload size."):
            await gate.authorize_upload("users/a/", 0, 1000, 1001)

    async def test_unlimited(self):
        gate = _gate()
        assert await gate.authorize_upload("users/a/", 0, 0, 10**12) is None
