"""Command line front-end: onedrive-versions {mapping,list,show,save,restore} PATH"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from onedrive_versions.config import load_config
from onedrive_versions.errors import AuthRequiredError, MappingNotFoundError, OneDriveVersionsError
from onedrive_versions.graph.auth import GraphAuthError
from onedrive_versions.graph.client import GraphApiError
from onedrive_versions.graph.models import UNKNOWN_TIMESTAMP, Version
from onedrive_versions.orchestration.service import VersionService, version_service_from_config

logger = logging.getLogger(__name__)

BINARY_NOTICE = (
    "This version appears to be binary content. Use 'save' or 'restore' to get its bytes."
)


def decode_preview(content: bytes) -> str:
    """Decode version bytes for display, refusing content that looks binary."""
    text = content.decode("utf-8", errors="replace")
    if "\x00" in text:
        return BINARY_NOTICE
    return text


def format_timestamp(value: datetime) -> str:
    """Render a version timestamp in local time."""
    if value == UNKNOWN_TIMESTAMP:
        return "unknown date"
    return value.astimezone().strftime("%Y-%m-%d %H:%M:%S")


def format_version(version: Version, index: int, selected: bool) -> str:
    marker = "*" if selected else " "
    when = format_timestamp(version.last_modified)
    author = version.modified_by or "unknown"
    size = f"{round(version.size / 1024)} KB" if version.size is not None else "size n/a"
    return f"{marker} [{index}] {when}  {author} | {size} | {version.id}"


def _print_prompt(message: str) -> None:
    print(message, file=sys.stderr, flush=True)


def _confirm(question: str) -> bool:
    """Ask a yes/no question; a closed stdin counts as "no"."""
    try:
        answer = input(f"{question} [y/N] ")
    except EOFError:
        return False
    return answer.strip().lower() in ("y", "yes")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="onedrive-versions",
        description="Browse and restore OneDrive version history of local files.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--no-interactive",
        action="store_true",
        help="Never prompt for sign-in; fail if no token is cached",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    mapping = sub.add_parser("mapping", help="Show the detected OneDrive mapping (no network)")
    mapping.add_argument("path")

    list_cmd = sub.add_parser("list", help="List versions, newest first")
    list_cmd.add_argument("path")

    show = sub.add_parser("show", help="Print a version as text")
    show.add_argument("path")
    show.add_argument("--index", type=int, default=None, help="Version index (0 = newest)")

    save = sub.add_parser("save", help="Write a version to another file")
    save.add_argument("path")
    save.add_argument("--index", type=int, default=0)
    save.add_argument("--output", required=True)

    restore = sub.add_parser("restore", help="Overwrite the local file with a version")
    restore.add_argument("path")
    restore.add_argument("--index", type=int, default=0)
    restore.add_argument("--yes", action="store_true", help="Do not ask for confirmation")
    return parser


async def _selected(service: VersionService, args: argparse.Namespace) -> Version:
    interactive = not args.no_interactive
    context = await service.load_versions(args.path, interactive=interactive)
    if args.index is not None:
        context = service.set_selected_index(args.path, args.index)
    return context.selected_version


async def run_command(service: VersionService, args: argparse.Namespace) -> int:
    """Execute one parsed command against the service; returns the exit status."""
    interactive = not args.no_interactive

    if args.command == "mapping":
        found = service.find_mapping(args.path)
        if found is None:
            raise MappingNotFoundError(args.path)
        print(f"local root:       {found.local_root}")
        print(f"drive id:         {found.drive_id or '-'}")
        print(f"remote root:      {found.remote_root}")
        print(f"url namespace:    {found.url_namespace or '-'}")
        print(f"full remote path: {found.full_remote_path or '-'}")
        return 0

    if args.command == "list":
        context = await service.load_versions(args.path, interactive=interactive)
        for index, version in enumerate(context.versions):
            print(format_version(version, index, index == context.selected_index))
        return 0

    version = await _selected(service, args)
    content = await service.download_version_bytes(args.path, version.id, interactive=interactive)

    if args.command == "show":
        print(decode_preview(content))
        return 0

    if args.command == "save":
        Path(args.output).write_bytes(content)
        print(f"Saved version {version.id} to {args.output}")
        return 0

    # restore
    if not args.yes:
        when = format_timestamp(version.last_modified)
        if not _confirm(f"Restore {args.path} to the version from {when}?"):
            print("Restore cancelled.")
            return 1
    Path(args.path).write_bytes(content)
    print("Version restored locally. The sync client will upload it as the current version.")
    return 0


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    try:
        config = load_config()
    except KeyError as exc:
        print(f"OneDrive Versions: missing environment variable {exc}", file=sys.stderr)
        return 2
    except (OSError, ValueError) as exc:
        print(f"OneDrive Versions: invalid configuration: {exc}", file=sys.stderr)
        return 2

    service = version_service_from_config(config, prompt=_print_prompt)
    try:
        return asyncio.run(run_command(service, args))
    except MappingNotFoundError as exc:
        print(f"OneDrive Versions inactive: {exc}", file=sys.stderr)
    except AuthRequiredError:
        print(
            "OneDrive Versions: versions not yet available; sign-in is required"
            " (run without --no-interactive).",
            file=sys.stderr,
        )
    except (OneDriveVersionsError, GraphApiError, GraphAuthError, OSError) as exc:
        logger.debug("[main] command failed; command:%s", args.command, exc_info=True)
        print(f"OneDrive Versions: {exc}", file=sys.stderr)
    return 1
