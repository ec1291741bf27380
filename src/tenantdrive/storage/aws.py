"""AWS S3 object store backend for TenantDrive.

Talks to an upstream S3 (or S3-compatible) bucket via aiobotocore. Keys are
passed through unchanged; the tenant root prefix is already part of them.

Credentials are resolved via the standard AWS credential chain
(env vars, ~/.aws/credentials, IAM role, etc.) unless given explicitly.
"""

import logging

from aiobotocore.session import AioSession
from botocore.exceptions import BotoCoreError, ClientError

from tenantdrive.errors import BucketMissing, NotFound, StoreError, StoreUnavailable
from tenantdrive.models import ListPage, ObjectEntry

logger = logging.getLogger(__name__)

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})
_THROTTLE_CODES = frozenset(
    {
        "503",
        "SlowDown",
        "Throttling",
        "ThrottlingException",
        "RequestTimeout",
        "ServiceUnavailable",
    }
)


def _error_code(exc: ClientError) -> str:
    return exc.response.get("Error", {}).get("Code", "")


def _translate(exc: Exception, action: str) -> Exception:
    """Map a botocore failure to the drive error taxonomy.

    The upstream message is logged, never copied into the returned error.
    """
    if isinstance(exc, ClientError):
        code = _error_code(exc)
        logger.warning("S3 %s failed: %s", action, code)
        if code == "NoSuchBucket":
            return BucketMissing()
        if code in _THROTTLE_CODES:
            return StoreUnavailable()
        return StoreError(f"Object store rejected {action}")
    logger.warning("S3 %s transport failure: %s", action, exc)
    return StoreUnavailable()


class AWSObjectStore:
    """Object store backend backed by a single AWS S3 bucket.

    Attributes:
        bucket_name: The upstream S3 bucket name.
        region: The AWS region for the bucket.
        endpoint_url: Custom endpoint for S3-compatible services.
    """

    def __init__(
        self,
        bucket_name: str,
        region: str = "us-east-1",
        endpoint_url: str = "",
        use_path_style: bool = False,
        access_key_id: str = "",
        secret_access_key: str = "",
    ) -> None:
        self.bucket_name = bucket_name
        self.region = region
        self.endpoint_url = endpoint_url
        self.use_path_style = use_path_style
        self.access_key_id = access_key_id
        self.secret_access_key = secret_access_key
        self._session = AioSession()
        self._client = None
        self._client_ctx = None

    async def init(self) -> None:
        """Create the aiobotocore S3 client and verify the bucket exists.

        Raises:
            BucketMissing: If the bucket does not exist or is inaccessible.
        """
        client_kwargs: dict = {"region_name": self.region}
        if self.endpoint_url:
            client_kwargs["endpoint_url"] = self.endpoint_url
        if self.use_path_style:
            from botocore.config import Config as BotoConfig
            client_kwargs["config"] = BotoConfig(s3={"addressing_style": "path"})

        # Use explicit credentials if provided, otherwise fall back to chain
        if self.access_key_id and self.secret_access_key:
            session = AioSession()
            session.set_credentials(self.access_key_id, self.secret_access_key)
            self._session = session
        self._client_ctx = self._session.create_client("s3", **client_kwargs)
        self._client = await self._client_ctx.__aenter__()

        try:
            await self._client.head_bucket(Bucket=self.bucket_name)
        except ClientError as e:
            code = _error_code(e)
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None
            raise BucketMissing(
                f"Cannot access S3 bucket '{self.bucket_name}': {code}"
            ) from e

        logger.info(
            "AWS object store initialized: bucket=%s region=%s",
            self.bucket_name,
            self.region,
        )

    async def close(self) -> None:
        """Close the aiobotocore client session."""
        if self._client_ctx is not None:
            await self._client_ctx.__aexit__(None, None, None)
            self._client = None
            self._client_ctx = None

    async def list_objects(
        self,
        prefix: str,
        delimiter: str = "/",
        continuation_token: str | None = None,
        max_keys: int | None = None,
    ) -> ListPage:
        """List one page via ``list_objects_v2``."""
        kwargs: dict = {"Bucket": self.bucket_name, "Prefix": prefix}
        if delimiter:
            kwargs["Delimiter"] = delimiter
        if continuation_token:
            kwargs["ContinuationToken"] = continuation_token
        if max_keys is not None:
            kwargs["MaxKeys"] = max_keys

        try:
            resp = await self._client.list_objects_v2(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, "list") from e

        entries = [
            ObjectEntry(
                key=item["Key"],
                size=int(item.get("Size") or 0),
                last_modified=item.get("LastModified"),
            )
            for item in resp.get("Contents", [])
            if item.get("Key")
        ]
        common_prefixes = [
            cp["Prefix"] for cp in resp.get("CommonPrefixes", []) if cp.get("Prefix")
        ]
        next_token = resp.get("NextContinuationToken") if resp.get("IsTruncated") else None
        return ListPage(
            entries=entries,
            common_prefixes=common_prefixes,
            next_continuation_token=next_token,
        )

    async def head_object(self, key: str) -> bool:
        """Check if an object exists. A 404 is False, not an error."""
        try:
            await self._client.head_object(Bucket=self.bucket_name, Key=key)
            return True
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                return False
            raise _translate(e, "head") from e
        except BotoCoreError as e:
            raise _translate(e, "head") from e

    async def put_object(self, key: str, data: bytes, content_type: str | None = None) -> None:
        """Upload an object's bytes."""
        kwargs: dict = {"Bucket": self.bucket_name, "Key": key, "Body": data}
        if content_type:
            kwargs["ContentType"] = content_type
        try:
            await self._client.put_object(**kwargs)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, "put") from e

    async def get_object(self, key: str) -> bytes:
        """Download an object.

        Raises:
            NotFound: If the object does not exist.
        """
        try:
            resp = await self._client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise NotFound() from e
            raise _translate(e, "get") from e
        except BotoCoreError as e:
            raise _translate(e, "get") from e

        async with resp["Body"] as stream:
            return await stream.read()

    async def delete_object(self, key: str) -> None:
        """Delete an object. Idempotent, S3 does not error on missing keys."""
        try:
            await self._client.delete_object(Bucket=self.bucket_name, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, "delete") from e

    async def delete_objects(self, keys: list[str]) -> None:
        """Batch delete up to 1000 keys.

        Raises:
            StoreError: If S3 reports any per-key failure.
        """
        try:
            resp = await self._client.delete_objects(
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": k} for k in keys], "Quiet": True},
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, "batch delete") from e

        errors = resp.get("Errors") or []
        if errors:
            logger.warning(
                "Batch delete left %d of %d keys, first: %s (%s)",
                len(errors),
                len(keys),
                errors[0].get("Key"),
                errors[0].get("Code"),
            )
            raise StoreError(f"Failed to delete {len(errors)} objects")

    async def copy_object(self, src_key: str, dst_key: str) -> None:
        """Copy an object using S3 server-side copy."""
        try:
            await self._client.copy_object(
                Bucket=self.bucket_name,
                Key=dst_key,
                CopySource={"Bucket": self.bucket_name, "Key": src_key},
                MetadataDirective="COPY",
            )
        except ClientError as e:
            if _error_code(e) in _NOT_FOUND_CODES:
                raise NotFound("Source object not found") from e
            raise _translate(e, "copy") from e
        except BotoCoreError as e:
            raise _translate(e, "copy") from e

    async def presign(
        self,
        operation: str,
        key: str,
        expires_in: int,
        content_type: str | None = None,
    ) -> str:
        """Generate a presigned URL for a direct client transfer."""
        params: dict = {"Bucket": self.bucket_name, "Key": key}
        if content_type and operation == "put_object":
            params["ContentType"] = content_type
        try:
            return await self._client.generate_presigned_url(
                operation, Params=params, ExpiresIn=expires_in
            )
        except (ClientError, BotoCoreError) as e:
            raise _translate(e, "presign") from e
