# src/main.py - v1
"""CLI entry point: upload, resolve, delete, invalidate, clear-cache commands.

Usage:
    avatarkit upload <identity> <file>
    avatarkit resolve <identity>
    avatarkit delete <identity>
    avatarkit invalidate <identity>
    avatarkit clear-cache

Storage, cache and conversion settings come from .env (see Settings).
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from avatarkit.version import __version__

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from avatarkit.config.settings import load_settings

    settings = load_settings()
    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="avatarkit",
        description=f"avatarkit v{__version__} - profile image storage and caching",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    p_upload = subparsers.add_parser("upload", help="Convert and upload an avatar")
    p_upload.add_argument("identity", help="Identity owning the avatar")
    p_upload.add_argument("file", type=Path, help="Source image")
    p_upload.set_defaults(func=_cmd_upload)

    p_resolve = subparsers.add_parser("resolve", help="Print the avatar location")
    p_resolve.add_argument("identity")
    p_resolve.set_defaults(func=_cmd_resolve)

    p_delete = subparsers.add_parser("delete", help="Delete the stored avatar")
    p_delete.add_argument("identity")
    p_delete.set_defaults(func=_cmd_delete)

    p_invalidate = subparsers.add_parser(
        "invalidate", help="Drop the cached location (stored file is kept)",
    )
    p_invalidate.add_argument("identity")
    p_invalidate.set_defaults(func=_cmd_invalidate)

    p_clear = subparsers.add_parser("clear-cache", help="Clear every cached location")
    p_clear.set_defaults(func=_cmd_clear_cache)

    return parser


def _build_service(settings, identity: str | None):
    from avatarkit.identity.static_source import StaticIdentitySource
    from avatarkit.services.service_factory import create_avatar_service

    return create_avatar_service(settings, StaticIdentitySource(identity))


async def _run(args: argparse.Namespace, settings) -> int:
    """Run one command against a service that is always closed afterwards."""
    service = _build_service(settings, getattr(args, "identity", None))
    try:
        return await args.func(args, service)
    finally:
        await service.close()


async def _cmd_upload(args: argparse.Namespace, service) -> int:
    file_path: Path = args.file
    if not file_path.is_file():
        logger.error("File not found: %s", file_path)
        return 1

    def on_progress(fraction: float) -> None:
        logger.debug("Upload progress: %d%%", round(fraction * 100))

    result = await service.upload_for_current_identity(file_path, on_progress=on_progress)
    print(result.location)
    return 0


async def _cmd_resolve(args: argparse.Namespace, service) -> int:
    location = await service.resolve(args.identity)
    if location is None:
        print(f"No avatar for {args.identity}")
        return 2
    print(location)
    return 0


async def _cmd_delete(args: argparse.Namespace, service) -> int:
    await service.delete_for_current_identity()
    print(f"Deleted avatar for {args.identity}")
    return 0


async def _cmd_invalidate(args: argparse.Namespace, service) -> int:
    await service.invalidate(args.identity)
    return 0


async def _cmd_clear_cache(args: argparse.Namespace, service) -> int:
    await service.clear_all_caches()
    return 0


def _setup_logging(settings, verbose: bool) -> None:
    from avatarkit.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    raise SystemExit(main())
