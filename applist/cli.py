"""
AppList CLI

Command-line interface for listing and exporting installed applications.

Usage:
    # List installed apps matching a query
    python -m applist list --query http

    # Include system apps from the Debian package database
    python -m applist list --registry dpkg --system

    # Export the filtered list as CSV and open the share dialog
    python -m applist export --format csv --query http --share
"""

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

import config
from utils.exceptions import ConfigError
from utils.logging_config import setup_logging

from .export.serializer import format_timestamp
from .models import ExportFormat
from .session import AppListSession
from .settings import AppListSettings

console = Console()


def _load_settings(args: argparse.Namespace) -> AppListSettings:
    settings = AppListSettings.from_yaml(Path(args.config)) if args.config else AppListSettings()
    if getattr(args, "registry", None):
        settings.registry = args.registry
    if getattr(args, "system", False):
        settings.include_system_apps = True
    if getattr(args, "output_dir", None):
        settings.export_dir = Path(args.output_dir).expanduser()
    return settings


async def _open_session(settings: AppListSettings, query: str) -> Optional[AppListSession]:
    """Build a session, load the catalog and apply the query. None if loading failed."""
    session = settings.build_session()
    with console.status(f"[cyan]Reading {settings.registry} registry...[/cyan]"):
        await session.load()
    if session.state.error:
        console.print(f"[red]{session.state.error}[/red]")
        return None
    if query:
        session.search(query)
    return session


async def cmd_list(args: argparse.Namespace) -> int:
    """List installed apps."""
    settings = _load_settings(args)
    session = await _open_session(settings, args.query)
    if session is None:
        return 1

    state = session.state
    table = Table(title=f"Installed apps ({len(state.filtered_apps)} of {len(state.apps)})")
    table.add_column("Name", style="cyan")
    table.add_column("Package")
    table.add_column("Version", style="green")
    table.add_column("Code", justify="right")
    table.add_column("Type")
    table.add_column("Installed")
    table.add_column("Updated")

    for app in state.filtered_apps:
        table.add_row(
            app.name,
            app.identifier,
            app.version_label,
            str(app.version_ordinal),
            "system" if app.is_system else "user",
            format_timestamp(app.installed_at),
            format_timestamp(app.updated_at),
        )

    console.print(table)
    return 0


async def cmd_export(args: argparse.Namespace) -> int:
    """Export the filtered app list to a file."""
    settings = _load_settings(args)
    fmt = ExportFormat.from_name(args.format) if args.format else settings.default_format

    session = await _open_session(settings, args.query)
    if session is None:
        return 1

    console.print(
        f"[cyan]Exporting {len(session.state.filtered_apps)} apps as {fmt.extension}[/cyan]"
    )
    if args.share:
        result = await session.export_and_share(fmt)
    else:
        result = await session.export(fmt)

    state = session.state
    if state.error:
        console.print(f"[red]{state.error}[/red]")
        return 1
    if result is None or not result.success:
        console.print(f"[yellow]{state.export_message}[/yellow]")
        return 1

    console.print(f"[green]{state.export_message}[/green]")
    return 0


def _add_catalog_options(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--query", "-q", default="", help="Filter by name or package")
    parser.add_argument("--system", "-s", action="store_true", help="Include system apps")
    parser.add_argument("--registry", "-r", help="Registry backend (python, dpkg)")


def main(argv: Optional[list] = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="applist",
        description="List and export installed applications",
    )
    parser.add_argument("--config", "-c", help="Path to settings YAML")
    parser.add_argument("--log-level", default=config.LOG_LEVEL, help="Log level")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    list_parser = subparsers.add_parser("list", help="List installed apps")
    _add_catalog_options(list_parser)

    export_parser = subparsers.add_parser("export", help="Export the app list to a file")
    _add_catalog_options(export_parser)
    export_parser.add_argument(
        "--format", "-f", choices=[f.extension for f in ExportFormat], help="Export format"
    )
    export_parser.add_argument("--output-dir", "-o", help="Directory for the exported file")
    export_parser.add_argument("--share", action="store_true", help="Share the file after export")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    config.validate_config()
    setup_logging(level="DEBUG" if config.DEBUG else args.log_level, log_dir=config.LOG_DIR)

    try:
        if args.command == "list":
            return asyncio.run(cmd_list(args))
        elif args.command == "export":
            return asyncio.run(cmd_export(args))
    except ConfigError as e:
        console.print(f"[red]Configuration error: {e}[/red]")
        return 2

    parser.print_help()
    return 0


if __name__ == "__main__":
    sys.exit(main())
