"""Tests for Prometheus metrics recording."""

import pytest
from prometheus_client import REGISTRY

from tenantdrive import metrics
from tenantdrive.errors import NotFound


@pytest.fixture(autouse=True)
def _metrics():
    metrics.init_metrics()


def _sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestInit:
    """Tests for init_metrics()."""

    def test_idempotent(self):
        """A second call must not re-register collectors."""
        metrics.init_metrics()
        assert metrics.operations_total is not None

    def test_counters_use_namespace(self):
        names = {m.name for m in REGISTRY.collect()}
        assert "tenantdrive_operations" in names
        assert "tenantdrive_objects_copied" in names
        assert "tenantdrive_listing_pages" in names


class TestRecording:
    """Tests for the counters moved by gateway and drive calls."""

    async def test_listing_pages_counted(self, gateway):
        before = _sample("tenantdrive_listing_pages_total")
        await gateway.list_all("users/alice/")
        assert _sample("tenantdrive_listing_pages_total") == before + 1

    async def test_copies_and_deletes_counted(self, gateway, seed):
        await seed({"a": b"1"})
        copied = _sample("tenantdrive_objects_copied_total")
        deleted = _sample("tenantdrive_objects_deleted_total")

        await gateway.copy("a", "b")
        await gateway.batch_delete(["a", "b"])

        assert _sample("tenantdrive_objects_copied_total") == copied + 1
        assert _sample("tenantdrive_objects_deleted_total") == deleted + 2

    async def test_operation_outcomes(self, drive, ctx):
        labels_ok = {"operation": "create_folder", "status": "ok"}
        labels_missing = {"operation": "delete", "status": "NotFound"}
        ok = _sample("tenantdrive_operations_total", labels_ok)
        missing = _sample("tenantdrive_operations_total", labels_missing)

        await drive.create_folder(ctx, "metrics-test")
        with pytest.raises(NotFound):
            await drive.delete(ctx, "missing.txt")

        assert _sample("tenantdrive_operations_total", labels_ok) == ok + 1
        assert _sample("tenantdrive_operations_total", labels_missing) == missing + 1
