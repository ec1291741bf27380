"""CLI entry point for TenantDrive: tenant folder operations from a shell."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from tenantdrive import metrics
from tenantdrive.config import DriveConfig, load_config
from tenantdrive.drive import TenantContext, TenantDrive
from tenantdrive.errors import DriveError
from tenantdrive.keys import normalize_prefix
from tenantdrive.logging_config import configure_logging
from tenantdrive.namespace import build_root_prefix
from tenantdrive.storage import create_object_store

logger = logging.getLogger("tenantdrive")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Parsed argument namespace.
    """
    parser = argparse.ArgumentParser(
        prog="tenantdrive",
        description="TenantDrive - per-tenant folders on a flat object store",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Path to YAML configuration file (default: built-in defaults)",
    )
    parser.add_argument(
        "--tenant", type=str, required=True,
        help="Tenant identifier; operations are confined to users/<tenant>/",
    )
    parser.add_argument(
        "--quota-bytes", type=int, default=0,
        help="Tenant storage quota in bytes (default: 0, unlimited)",
    )
    parser.add_argument(
        "--log-level", type=str, default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config)",
    )
    parser.add_argument(
        "--log-format", type=str, default=None, choices=["text", "json"],
        help="Log format: 'text' (human-readable) or 'json' (structured)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    ls_parser = subparsers.add_parser("ls", help="List a folder")
    ls_parser.add_argument("prefix", nargs="?", default="")
    ls_parser.add_argument("--continuation-token", default=None)

    du_parser = subparsers.add_parser("du", help="Show usage beneath a folder")
    du_parser.add_argument("prefix", nargs="?", default="")

    mkdir_parser = subparsers.add_parser("mkdir", help="Create a folder")
    mkdir_parser.add_argument("name")
    mkdir_parser.add_argument("--prefix", default="")

    rm_parser = subparsers.add_parser("rm", help="Delete a file, or a folder (trailing /)")
    rm_parser.add_argument("key")

    mv_parser = subparsers.add_parser("mv", help="Move a file or folder into a prefix")
    mv_parser.add_argument("source")
    mv_parser.add_argument("destination", nargs="?", default="")
    mv_parser.add_argument("--resume", action="store_true", default=False,
                           help="Continue an interrupted folder move")

    rename_parser = subparsers.add_parser("rename", help="Rename a file or folder")
    rename_parser.add_argument("key")
    rename_parser.add_argument("name")
    rename_parser.add_argument("--resume", action="store_true", default=False,
                               help="Continue an interrupted folder rename")

    cat_parser = subparsers.add_parser("cat", help="Write a file's bytes to stdout")
    cat_parser.add_argument("key")

    upload_parser = subparsers.add_parser("upload-url", help="Presign an upload")
    upload_parser.add_argument("key")
    upload_parser.add_argument("--size", type=int, required=True)
    upload_parser.add_argument("--content-type", default="application/octet-stream")

    download_parser = subparsers.add_parser("download-url", help="Presign a download")
    download_parser.add_argument("key")

    subparsers.add_parser("provision", help="Create the tenant's root folder marker")

    return parser.parse_args(argv)


async def _dispatch(drive: TenantDrive, ctx: TenantContext, args: argparse.Namespace):
    """Run one subcommand and return a JSON-serializable result (or bytes)."""
    command = args.command
    if command == "ls":
        listing = await drive.list_folder(ctx, args.prefix, args.continuation_token)
        return listing.to_dict()
    if command == "du":
        usage = await drive.folder_usage(ctx, args.prefix)
        return {"prefix": normalize_prefix(args.prefix), **usage.to_dict()}
    if command == "mkdir":
        return {"key": await drive.create_folder(ctx, args.name, args.prefix)}
    if command == "rm":
        await drive.delete(ctx, args.key)
        return {"success": True}
    if command == "mv":
        return {"key": await drive.move(ctx, args.source, args.destination, resume=args.resume)}
    if command == "rename":
        return {"key": await drive.rename(ctx, args.key, args.name, resume=args.resume)}
    if command == "cat":
        return await drive.read_file(ctx, args.key)
    if command == "upload-url":
        presigned = await drive.create_upload_url(ctx, args.key, args.size, args.content_type)
        return presigned.to_dict()
    if command == "download-url":
        return (await drive.create_download_url(ctx, args.key)).to_dict()
    if command == "provision":
        provisioned = await drive.provision_tenant(args.tenant, ctx.quota_bytes)
        return {"rootPrefix": provisioned.root_prefix}
    raise ValueError(f"Unknown command: {command}")


async def _run(config: DriveConfig, args: argparse.Namespace) -> int:
    backend = create_object_store(config.storage)
    await backend.init()
    try:
        drive = TenantDrive.from_config(config, backend)
        ctx = TenantContext(
            root_prefix=build_root_prefix(args.tenant),
            quota_bytes=args.quota_bytes,
        )
        try:
            result = await _dispatch(drive, ctx, args)
        except DriveError as e:
            print(json.dumps(e.to_dict()), file=sys.stderr)
            return 1
    finally:
        await backend.close()

    if isinstance(result, bytes):
        sys.stdout.buffer.write(result)
    else:
        print(json.dumps(result, indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the TenantDrive CLI.

    Args:
        argv: Argument list to parse. Defaults to sys.argv[1:].

    Returns:
        Process exit code.
    """
    args = parse_args(argv)

    # Use a basic stderr logger for config-loading errors
    logging.basicConfig(level=logging.INFO, stream=sys.stderr)

    if args.config is None:
        config = DriveConfig()
    else:
        try:
            config = load_config(args.config)
        except FileNotFoundError:
            logger.error("Config file not found: %s", args.config)
            return 1
        except Exception as exc:
            logger.error("Failed to load config: %s", exc)
            return 1

    if args.log_level is not None:
        config.logging.level = args.log_level
    if args.log_format is not None:
        config.logging.format = args.log_format
    configure_logging(level=config.logging.level, fmt=config.logging.format)

    if config.observability.metrics:
        metrics.init_metrics()

    try:
        return asyncio.run(_run(config, args))
    except DriveError as e:
        # Backend initialisation and tenant id failures
        print(json.dumps(e.to_dict()), file=sys.stderr)
        return 1
    except ValueError as e:
        logger.error("%s", e)
        return 1


def entry_point() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    entry_point()
