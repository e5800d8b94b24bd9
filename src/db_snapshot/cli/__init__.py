"""CLI for database profile management and full-database backups.

Usage:
    DB_PROFILE=local db-snapshot connect
    db-snapshot status
    db-snapshot profiles
    db-snapshot create
    db-snapshot list
    db-snapshot restore backup-2026-10-17T02-00-00-000Z.json --yes

Commands:
    connect   - Test the connection for a profile and make it active
    status    - Show current connection status
    profiles  - List available profiles
    list      - List stored backups
    create    - Create a full database backup
    restore   - Replace all data with the contents of a backup
    delete    - Delete a stored backup
    download  - Copy a backup to a local path
    upload    - Store a local file as a backup
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from db_snapshot.cli.backup import add_backup_commands
from db_snapshot.config.loader import load_db_config
from db_snapshot.factory import connect, read_profile_lock, resolve_active_profile

console = Console()


def _configure_logging(verbose: bool) -> None:
    """Route library logging through rich."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _config_path(args: argparse.Namespace) -> Path | None:
    config = getattr(args, "config", None)
    return Path(config) if config else None


# ============================================================================
# Async command implementations
# ============================================================================


async def _async_connect(args: argparse.Namespace) -> int:
    """Async implementation for connect command.

    Returns:
        0 on success, 1 on failure.
    """
    env_prefix = getattr(args, "env_prefix", "")

    previous_profile = read_profile_lock()

    console.print("Connecting to database...", style="dim")

    result = await connect(env_prefix=env_prefix, config_path=_config_path(args))

    if result.success:
        console.print()
        console.print(
            f"[bold green]v[/bold green] Connected to profile: "
            f"[bold cyan]{result.profile_name}[/bold cyan]"
        )

        # Show profile switch notice
        if previous_profile and previous_profile != result.profile_name:
            console.print(
                f"\n[dim]Switched from[/dim] [bold]{previous_profile}[/bold] "
                f"[dim]to[/dim] [bold cyan]{result.profile_name}[/bold cyan]"
            )

        return 0

    console.print()
    console.print(f"[bold red]x[/bold red] {result.error}")
    return 1


# ============================================================================
# Sync CLI wrappers
# ============================================================================


def cmd_connect(args: argparse.Namespace) -> int:
    """Test the connection for the selected profile and lock it in.

    Wraps the async implementation with ``asyncio.run()``.
    """
    return asyncio.run(_async_connect(args))


def cmd_status(args: argparse.Namespace) -> int:
    """Show current connection status.

    Resolves the profile the way the backup commands do (env var first,
    then the lock file).  Reads only local files -- no database calls.

    Returns:
        0 always (informational command).
    """
    env_prefix = getattr(args, "env_prefix", "")
    resolved = resolve_active_profile(env_prefix)

    if resolved:
        profile, source = resolved
        table = Table(title="Connection Status", show_header=False)
        table.add_column("Key", style="dim")
        table.add_column("Value")

        table.add_row("Current profile", f"[bold cyan]{profile}[/bold cyan]")
        table.add_row("Profile source", source)

        try:
            config = load_db_config(_config_path(args))
            if profile in config.profiles:
                p = config.profiles[profile]
                table.add_row("Provider", p.provider)
                if p.description:
                    table.add_row("Description", p.description)
            else:
                table.add_row("Warning", "[yellow]Profile not found in db.toml[/yellow]")
            table.add_row("Backup directory", config.backup.directory)
        except FileNotFoundError:
            table.add_row("Warning", "[yellow]db.toml not found[/yellow]")

        console.print(table)
    else:
        console.print("[yellow]No active profile.[/yellow]")
        console.print(
            f"[dim]Run:[/dim] [cyan]{env_prefix}DB_PROFILE=<name> db-snapshot connect[/cyan]"
        )

    return 0


def cmd_profiles(args: argparse.Namespace) -> int:
    """List available profiles from db.toml.

    Reads only local TOML config -- no database calls.

    Returns:
        0 on success, 1 if db.toml not found.
    """
    try:
        config = load_db_config(_config_path(args))
    except FileNotFoundError as e:
        console.print(f"[red]Error: {e}[/red]")
        return 1

    current = read_profile_lock()

    table = Table(title="Database Profiles", show_header=True, header_style="bold")
    table.add_column("", width=2)
    table.add_column("Profile")
    table.add_column("Provider")
    table.add_column("Description")

    for name, profile in config.profiles.items():
        marker = "[bold green]*[/bold green]" if name == current else " "
        name_style = "bold cyan" if name == current else ""
        table.add_row(
            marker,
            f"[{name_style}]{name}[/{name_style}]" if name_style else name,
            profile.provider,
            profile.description or "",
        )

    console.print(table)

    if current:
        console.print("\n[bold green]*[/bold green] = current profile")

    return 0


# ============================================================================
# Main entry point
# ============================================================================


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with every subcommand registered."""
    parser = argparse.ArgumentParser(
        prog="db-snapshot",
        description="Full-database snapshot backup and restore",
    )

    parser.add_argument(
        "--env-prefix",
        default="",
        help=(
            "Prefix for environment variable lookup "
            "(e.g., --env-prefix APP_ reads APP_DB_PROFILE)"
        ),
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to db.toml (default: ./db.toml)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Show debug logging",
    )
    parser.add_argument(
        "--actor",
        default=None,
        help="User id recorded in the audit log (default: none)",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    p_connect = subparsers.add_parser(
        "connect",
        help="Test the connection for a profile and make it active",
    )
    p_connect.set_defaults(func=cmd_connect)

    p_status = subparsers.add_parser(
        "status",
        help="Show current connection status",
    )
    p_status.set_defaults(func=cmd_status)

    p_profiles = subparsers.add_parser(
        "profiles",
        help="List available profiles",
    )
    p_profiles.set_defaults(func=cmd_profiles)

    add_backup_commands(subparsers)

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Parses command line arguments and dispatches to appropriate handler.

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    args = build_parser().parse_args(argv)
    _configure_logging(args.verbose)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
