"""Structured error definitions for TenantDrive.

Every failure surfaced to the HTTP layer is a ``DriveError`` carrying a
stable machine-readable code and an HTTP status class.
"""


class DriveError(Exception):
    """A drive error with code, message, and HTTP status.

    Attributes:
        code: The stable error code string (e.g. "NotFound", "Conflict").
        message: Human-readable error description.
        http_status: The HTTP status code the caller should return.
        extra_fields: Additional key-value pairs to include in the error body.
    """

    def __init__(
        self,
        code: str,
        message: str,
        http_status: int = 400,
        extra_fields: dict[str, str] | None = None,
    ) -> None:
        """Initialize the drive error.

        Args:
            code: Stable error code.
            message: Error description.
            http_status: HTTP status code (default 400).
            extra_fields: Optional extra body fields.
        """
        super().__init__(message)
        self.code = code
        self.message = message
        self.http_status = http_status
        self.extra_fields = extra_fields or {}

    def to_dict(self) -> dict:
        """Render the error as the JSON body shared with the HTTP layer."""
        body = {"code": self.code, "message": self.message}
        body.update(self.extra_fields)
        return {"error": body}


# -- Input errors (detected locally, before any backend call) -----------------


class InvalidKey(DriveError):
    """The supplied key is malformed or attempts path traversal."""

    def __init__(self, message: str = "Key contains invalid traversal characters") -> None:
        super().__init__(code="InvalidKey", message=message, http_status=400)


class MissingKey(DriveError):
    """A key was required but none (or only separators) was supplied."""

    def __init__(self, message: str = "Key is required") -> None:
        super().__init__(code="MissingKey", message=message, http_status=400)


class InvalidName(DriveError):
    """A folder or file name is empty or contains separators."""

    def __init__(self, message: str = "Name is required") -> None:
        super().__init__(code="InvalidName", message=message, http_status=400)


class InvalidArgument(DriveError):
    """An internal invariant or request argument was violated."""

    def __init__(self, message: str = "Invalid Argument") -> None:
        super().__init__(code="InvalidArgument", message=message, http_status=400)


# -- Authorization ------------------------------------------------------------


class OutOfBoundsKey(DriveError):
    """A computed key escaped the tenant's root prefix."""

    def __init__(self, key: str = "") -> None:
        super().__init__(
            code="OutOfBoundsKey",
            message="Object is outside of your storage root",
            http_status=403,
            extra_fields={"key": key} if key else {},
        )


class QuotaExhausted(DriveError):
    """The tenant has no storage left."""

    def __init__(
        self, message: str = "Storage quota exhausted. Remove files or request more space."
    ) -> None:
        super().__init__(code="QuotaExhausted", message=message, http_status=403)


# -- State errors -------------------------------------------------------------


class NotFound(DriveError):
    """The object or folder does not exist."""

    def __init__(self, message: str = "Object not found", key: str = "") -> None:
        super().__init__(
            code="NotFound",
            message=message,
            http_status=404,
            extra_fields={"key": key} if key else {},
        )


class Conflict(DriveError):
    """The destination is already occupied."""

    def __init__(self, message: str = "Destination already exists", key: str = "") -> None:
        super().__init__(
            code="Conflict",
            message=message,
            http_status=409,
            extra_fields={"key": key} if key else {},
        )


class PayloadTooLarge(DriveError):
    """The proposed upload exceeds the allowed size."""

    def __init__(self, message: str = "File exceeds allowed upload size.", max_bytes: int | None = None) -> None:
        super().__init__(
            code="PayloadTooLarge",
            message=message,
            http_status=413,
            extra_fields={"maxUploadBytes": str(max_bytes)} if max_bytes is not None else {},
        )


# -- Backend errors -----------------------------------------------------------


class StoreError(DriveError):
    """The backing object store rejected or failed a request."""

    def __init__(self, message: str = "Object store request failed") -> None:
        super().__init__(code="StoreError", message=message, http_status=502)


class BucketMissing(StoreError):
    """The configured bucket does not exist or is inaccessible."""

    def __init__(self, message: str = "The storage bucket does not exist.") -> None:
        super().__init__(message)
        self.code = "BucketMissing"


class StoreUnavailable(DriveError):
    """The backing object store is throttling, unreachable, or timed out."""

    def __init__(self, message: str = "Object store is temporarily unavailable") -> None:
        super().__init__(code="StoreUnavailable", message=message, http_status=503)
