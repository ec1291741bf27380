"""Configuration loading and Pydantic models for TenantDrive."""

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field


class StorageConfig(BaseModel):
    """Object storage backend configuration."""

    backend: str = "memory"
    aws_bucket: str = ""
    aws_region: str = "us-east-1"
    aws_endpoint_url: str = ""
    aws_use_path_style: bool = False
    aws_access_key_id: str = ""
    aws_secret_access_key: str = ""
    memory_page_size: int = 1000


class LimitsConfig(BaseModel):
    """Upload ceilings, quota defaults, and bulk-operation tuning."""

    max_upload_bytes: int = 104_857_600
    default_quota_bytes: int = 107_374_182_400
    presign_ttl_seconds: int = 900
    batch_delete_size: int = Field(default=1000, ge=1, le=1000)
    copy_concurrency: int = Field(default=8, ge=1)
    call_timeout_seconds: float = 30.0


class LoggingConfig(BaseModel):
    """Log level and output format."""

    level: str = "INFO"
    format: str = "text"


class ObservabilityConfig(BaseModel):
    """Metrics toggle."""

    metrics: bool = True


class DriveConfig(BaseModel):
    """Top-level TenantDrive configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    observability: ObservabilityConfig = Field(default_factory=ObservabilityConfig)


def _parse_storage(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the storage section from YAML data.

    Handles nested structure: storage.aws.bucket -> aws_bucket, etc.
    """
    if data is None:
        return {}

    result: dict[str, Any] = {"backend": data.get("backend", "memory")}

    aws_section = data.get("aws")
    if isinstance(aws_section, dict):
        result["aws_bucket"] = aws_section.get("bucket", "")
        result["aws_region"] = aws_section.get("region", "us-east-1")
        result["aws_endpoint_url"] = aws_section.get("endpoint_url", "")
        result["aws_use_path_style"] = aws_section.get("use_path_style", False)
        result["aws_access_key_id"] = aws_section.get("access_key_id", "")
        result["aws_secret_access_key"] = aws_section.get("secret_access_key", "")

    memory_section = data.get("memory")
    if isinstance(memory_section, dict):
        result["memory_page_size"] = memory_section.get("page_size", 1000)

    return result


def _parse_limits(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the limits section, keeping only keys that were set."""
    if data is None:
        return {}
    return {k: v for k, v in data.items() if k in LimitsConfig.model_fields}


def _parse_logging(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the logging section from YAML data."""
    if data is None:
        return {}
    return {
        "level": data.get("level", "INFO"),
        "format": data.get("format", "text"),
    }


def _parse_observability(data: dict[str, Any] | None) -> dict[str, Any]:
    """Parse the observability section from YAML data."""
    if data is None:
        return {}
    return {"metrics": data.get("metrics", True)}


def load_config(path: Path) -> DriveConfig:
    """Load a DriveConfig from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        A fully populated DriveConfig validated by Pydantic.

    Raises:
        FileNotFoundError: If the config file does not exist.
        yaml.YAMLError: If the file is not valid YAML.
        pydantic.ValidationError: If a value is out of range.
    """
    with open(path, "r") as fh:
        raw: dict[str, Any] = yaml.safe_load(fh) or {}

    return DriveConfig(
        storage=StorageConfig(**_parse_storage(raw.get("storage"))),
        limits=LimitsConfig(**_parse_limits(raw.get("limits"))),
        logging=LoggingConfig(**_parse_logging(raw.get("logging"))),
        observability=ObservabilityConfig(**_parse_observability(raw.get("observability"))),
    )
