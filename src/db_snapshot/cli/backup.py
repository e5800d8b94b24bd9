"""Backup commands for the ``db-snapshot`` CLI.

Each ``cmd_*`` function is registered as a subcommand by
``db_snapshot.cli.main`` and returns a process exit code.  Commands that
touch the database wrap an ``_async_*`` implementation with
``asyncio.run()``.

Usage:
    db-snapshot list
    db-snapshot create
    db-snapshot restore backup-2026-10-17T02-00-00-000Z.json --yes
    db-snapshot delete backup-2026-10-17T02-00-00-000Z.json
    db-snapshot download backup-2026-10-17T02-00-00-000Z.json -o /tmp/snap.json
    db-snapshot upload ./snap.json --name backup-imported.json
"""

import argparse
import asyncio
from pathlib import Path

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from db_snapshot.audit import DatabaseAuditSink
from db_snapshot.backup.service import BackupService
from db_snapshot.backup.storage import SnapshotStorage
from db_snapshot.config.loader import load_db_config
from db_snapshot.errors import SnapshotError, SnapshotNotFoundError
from db_snapshot.factory import ProfileNotFoundError, get_adapter

console = Console()

CLI_SOURCE_ADDRESS = "cli"


# ============================================================================
# Helpers
# ============================================================================


def _config_path(args: argparse.Namespace) -> Path | None:
    config = getattr(args, "config", None)
    return Path(config) if config else None


def _actor(args: argparse.Namespace) -> str | None:
    """User id for the audit entry; None records the entry without a user."""
    return getattr(args, "actor", None)


def _storage(args: argparse.Namespace) -> SnapshotStorage:
    """Artifact store from the ``[backup]`` section of db.toml."""
    settings = load_db_config(_config_path(args)).backup
    return SnapshotStorage(settings.directory, settings.extension)


async def _open_service(args: argparse.Namespace) -> BackupService:
    storage = _storage(args)
    adapter = await get_adapter(
        env_prefix=getattr(args, "env_prefix", ""),
        config_path=_config_path(args),
    )
    return BackupService(adapter, storage, audit=DatabaseAuditSink(adapter))


def _format_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    value = size / 1024
    for unit in ("KB", "MB"):
        if value < 1024:
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def _fail(error: Exception) -> int:
    console.print(f"[bold red]x[/bold red] {error}")
    return 1


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_create(args: argparse.Namespace) -> int:
    service = await _open_service(args)
    try:
        console.print("Capturing snapshot...", style="dim")
        result = await service.create_backup(
            actor_id=_actor(args), source_address=CLI_SOURCE_ADDRESS
        )
    finally:
        await service.adapter.close()

    console.print(f"[bold green]v[/bold green] {result.message}: [cyan]{result.filename}[/cyan]")
    return 0


async def _async_restore(args: argparse.Namespace) -> int:
    service = await _open_service(args)
    try:
        console.print(f"Restoring from {args.filename}...", style="dim")
        result = await service.restore_backup(
            args.filename, actor_id=_actor(args), source_address=CLI_SOURCE_ADDRESS
        )
    finally:
        await service.adapter.close()

    console.print(f"[bold green]v[/bold green] {result.message}")
    summary = service.last_restore
    if summary is not None and summary.created:
        table = Table(title="Restored rows", show_header=True, header_style="bold")
        table.add_column("Table")
        table.add_column("Rows", justify="right")
        for name, count in summary.created.items():
            table.add_row(name, str(count))
        console.print(table)
    return 0


async def _async_delete(args: argparse.Namespace) -> int:
    service = await _open_service(args)
    try:
        result = await service.delete_backup(
            args.filename, actor_id=_actor(args), source_address=CLI_SOURCE_ADDRESS
        )
    finally:
        await service.adapter.close()

    console.print(f"[bold green]v[/bold green] {result.message}")
    return 0


async def _async_upload(args: argparse.Namespace) -> int:
    source = Path(args.path)
    content = source.read_bytes()
    name = args.name or source.name

    service = await _open_service(args)
    try:
        result = await service.upload_backup(
            name, content, actor_id=_actor(args), source_address=CLI_SOURCE_ADDRESS
        )
    finally:
        await service.adapter.close()

    console.print(f"[bold green]v[/bold green] {result.message}: [cyan]{result.filename}[/cyan]")
    return 0


# ============================================================================
# Sync CLI wrappers
# ============================================================================


def cmd_list(args: argparse.Namespace) -> int:
    """List stored backups, newest first.

    Reads only the backup directory -- no database calls.
    """
    try:
        backups = _storage(args).list()
    except (FileNotFoundError, SnapshotError) as e:
        return _fail(e)

    if not backups:
        console.print("[yellow]No backups found.[/yellow]")
        return 0

    table = Table(title="Backups", show_header=True, header_style="bold")
    table.add_column("Filename")
    table.add_column("Size", justify="right")
    table.add_column("Created (UTC)")

    for info in backups:
        table.add_row(
            info.filename,
            _format_size(info.size_bytes),
            info.created_at.strftime("%Y-%m-%d %H:%M:%S"),
        )

    console.print(table)
    return 0


def cmd_create(args: argparse.Namespace) -> int:
    """Capture the database into a new backup file."""
    try:
        return asyncio.run(_async_create(args))
    except (ProfileNotFoundError, FileNotFoundError, KeyError, ValueError, SnapshotError) as e:
        return _fail(e)


def cmd_restore(args: argparse.Namespace) -> int:
    """Replace the database contents with a backup.

    Asks for confirmation unless ``--yes`` is given.
    """
    if not args.yes:
        console.print(
            f"[bold yellow]![/bold yellow] This will replace ALL data with the "
            f"contents of [cyan]{args.filename}[/cyan]."
        )
        if not Confirm.ask("Continue?", default=False):
            console.print("Cancelled.")
            return 0

    try:
        return asyncio.run(_async_restore(args))
    except (ProfileNotFoundError, FileNotFoundError, KeyError, ValueError, SnapshotError) as e:
        return _fail(e)


def cmd_delete(args: argparse.Namespace) -> int:
    """Delete a stored backup.

    Asks for confirmation unless ``--yes`` is given.
    """
    if not args.yes and not Confirm.ask(f"Delete {args.filename}?", default=False):
        console.print("Cancelled.")
        return 0

    try:
        return asyncio.run(_async_delete(args))
    except (ProfileNotFoundError, FileNotFoundError, KeyError, ValueError, SnapshotError) as e:
        return _fail(e)


def cmd_download(args: argparse.Namespace) -> int:
    """Copy a stored backup to a local path.

    Reads only the backup directory -- no database calls.
    """
    output = Path(args.output) if args.output else Path.cwd() / args.filename
    try:
        chunks = _storage(args).download(args.filename)
        written = 0
        with open(output, "wb") as f:
            for chunk in chunks:
                f.write(chunk)
                written += len(chunk)
    except SnapshotNotFoundError as e:
        output.unlink(missing_ok=True)
        return _fail(e)
    except (FileNotFoundError, SnapshotError) as e:
        return _fail(e)

    console.print(
        f"[bold green]v[/bold green] Saved [cyan]{args.filename}[/cyan] "
        f"to {output} ({_format_size(written)})"
    )
    return 0


def cmd_upload(args: argparse.Namespace) -> int:
    """Store a local JSON file as a backup."""
    try:
        return asyncio.run(_async_upload(args))
    except (ProfileNotFoundError, FileNotFoundError, KeyError, ValueError, SnapshotError) as e:
        return _fail(e)


# ============================================================================
# Parser registration
# ============================================================================


def add_backup_commands(subparsers: argparse._SubParsersAction) -> None:
    """Register the backup subcommands on the main parser."""
    p_list = subparsers.add_parser("list", help="List stored backups")
    p_list.set_defaults(func=cmd_list)

    p_create = subparsers.add_parser("create", help="Create a full database backup")
    p_create.set_defaults(func=cmd_create)

    p_restore = subparsers.add_parser(
        "restore",
        help="Replace all data with the contents of a backup",
    )
    p_restore.add_argument("filename", help="Backup file name (see: db-snapshot list)")
    p_restore.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_restore.set_defaults(func=cmd_restore)

    p_delete = subparsers.add_parser("delete", help="Delete a stored backup")
    p_delete.add_argument("filename", help="Backup file name")
    p_delete.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Skip confirmation prompt",
    )
    p_delete.set_defaults(func=cmd_delete)

    p_download = subparsers.add_parser("download", help="Copy a backup to a local path")
    p_download.add_argument("filename", help="Backup file name")
    p_download.add_argument(
        "--output", "-o",
        help="Destination path (default: ./<filename>)",
    )
    p_download.set_defaults(func=cmd_download)

    p_upload = subparsers.add_parser("upload", help="Store a local file as a backup")
    p_upload.add_argument("path", help="Path to a .json backup file")
    p_upload.add_argument(
        "--name",
        help="Stored file name (default: the local file name)",
    )
    p_upload.set_defaults(func=cmd_upload)
