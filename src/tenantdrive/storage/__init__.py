"""Object store backends for TenantDrive."""

from typing import TYPE_CHECKING

from tenantdrive.storage.backend import ObjectStoreBackend

if TYPE_CHECKING:
    from tenantdrive.config import StorageConfig

__all__ = [
    "create_object_store",
    "ObjectStoreBackend",
]


def create_object_store(config: "StorageConfig") -> ObjectStoreBackend:
    """Create an object store backend based on configuration.

    Args:
        config: The storage configuration.

    Returns:
        A backend instance implementing the ObjectStoreBackend protocol.

    Raises:
        ValueError: If the backend is unknown or required config is missing.
    """
    backend = config.backend

    if backend == "memory":
        from tenantdrive.storage.memory import MemoryObjectStore

        return MemoryObjectStore(page_size=config.memory_page_size)

    elif backend == "aws":
        if not config.aws_bucket:
            raise ValueError("storage.aws.bucket is required when backend is 'aws'")
        from tenantdrive.storage.aws import AWSObjectStore

        return AWSObjectStore(
            bucket_name=config.aws_bucket,
            region=config.aws_region,
            endpoint_url=config.aws_endpoint_url,
            use_path_style=config.aws_use_path_style,
            access_key_id=config.aws_access_key_id,
            secret_access_key=config.aws_secret_access_key,
        )

    else:
        raise ValueError(f"Unknown storage backend: {backend}")
