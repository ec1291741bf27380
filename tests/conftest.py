"""Shared pytest fixtures for TenantDrive tests.

Every fixture builds on a fresh MemoryObjectStore, so tests exercise real
listing, pagination, and copy semantics without network access. Tests that
need the aiobotocore client mock it directly (see test_storage_aws.py).
"""

import pytest

from tenantdrive.config import LimitsConfig
from tenantdrive.drive import TenantContext, TenantDrive
from tenantdrive.folders import FolderOperationEngine
from tenantdrive.gateway import ObjectStoreGateway
from tenantdrive.storage.memory import MemoryObjectStore
from tenantdrive.usage import UsageAccumulator

ROOT = "users/alice/"


@pytest.fixture
async def store():
    """An initialized in-memory object store with the default page size."""
    backend = MemoryObjectStore()
    await backend.init()
    yield backend
    await backend.close()


@pytest.fixture
def gateway(store) -> ObjectStoreGateway:
    """A gateway over the memory store with call timeouts disabled."""
    return ObjectStoreGateway(store, call_timeout_seconds=0)


@pytest.fixture
def engine(gateway) -> FolderOperationEngine:
    return FolderOperationEngine(gateway, copy_concurrency=4)


@pytest.fixture
def usage(gateway) -> UsageAccumulator:
    return UsageAccumulator(gateway)


@pytest.fixture
def drive(gateway) -> TenantDrive:
    """A drive with a 1000-byte static upload ceiling."""
    return TenantDrive(gateway, LimitsConfig(max_upload_bytes=1000, presign_ttl_seconds=600))


@pytest.fixture
def ctx() -> TenantContext:
    """Tenant 'alice' with no quota."""
    return TenantContext(root_prefix=ROOT, quota_bytes=0)


@pytest.fixture
def seed(store):
    """Return an async helper that writes {key: bytes} into the store."""

    async def _seed(objects: dict[str, bytes]) -> None:
        for key, data in objects.items():
            await store.put_object(key, data)

    return _seed
