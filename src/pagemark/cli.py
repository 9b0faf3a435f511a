"""Command-line interface for pagemark."""

import argparse
import asyncio
import sys
from contextlib import nullcontext
from datetime import datetime
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.progress import BarColumn, Progress, SpinnerColumn, TaskProgressColumn, TextColumn
from rich.table import Table

from . import __version__
from .context import AppContext
from .core.exporter import ExportOrchestrator
from .logging_config import setup_logging
from .models.batch import BatchStatus
from .models.config import PagemarkConfig
from .models.events import EventType, ExportEvent

DEFAULT_CONFIG_FILE = Path("pagemark.yaml")

# Seconds between scheduler polls while waiting on a background export
WAIT_POLL_INTERVAL = 0.5


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser for CLI."""
    parser = argparse.ArgumentParser(
        prog="pagemark",
        description="Export CMS content to Markdown files with YAML front matter",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Export everything now
  pagemark export

  # Export posts only, newest 20
  pagemark export --types post --limit 20

  # Start a chunked export and let a timer drive it
  pagemark export --background
  pagemark tick            # run from cron every minute

  # Start a chunked export and drive it from this terminal
  pagemark export --background --wait
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=Path,
        default=None,
        help=f"YAML configuration file (default: ./{DEFAULT_CONFIG_FILE} if present)",
    )

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--verbose", "-v", action="store_true", help="Verbose output")
    verbosity.add_argument("--quiet", "-q", action="store_true", help="Only print errors")

    commands = parser.add_subparsers(dest="command", required=True)

    export = commands.add_parser("export", help="Export content to Markdown")
    export.add_argument(
        "--background",
        action="store_true",
        help="Split the export into scheduled chunks (recommended for large sites)",
    )
    export.add_argument(
        "--wait",
        action="store_true",
        help="With --background, process chunks here until the export ends",
    )
    export.add_argument("--types", nargs="+", default=None, metavar="TYPE", help="Content types to export")
    export.add_argument("--limit", type=int, default=None, help="Maximum number of items (newest first)")

    commands.add_parser("tick", help="Run scheduled export chunks that are due")
    commands.add_parser("status", help="Show the running export and the last published export")
    commands.add_parser("cancel", help="Cancel the running background export")

    files = commands.add_parser("files", help="List published Markdown files")
    files.add_argument("--types", nargs="+", default=None, metavar="TYPE", help="Content types to list")

    show = commands.add_parser("show", help="Print the published Markdown file of an item")
    show.add_argument("id", type=int, help="Item id")

    return parser


def load_config(args: argparse.Namespace) -> PagemarkConfig:
    """Load configuration from --config, ./pagemark.yaml, or defaults."""
    if args.config is not None:
        config = PagemarkConfig.from_yaml_file(args.config)
    elif DEFAULT_CONFIG_FILE.exists():
        config = PagemarkConfig.from_yaml_file(DEFAULT_CONFIG_FILE)
    else:
        config = PagemarkConfig()

    # Log level
    if args.verbose:
        config = config.model_copy(update={"log_level": "DEBUG"})
    elif args.quiet:
        config = config.model_copy(update={"log_level": "ERROR"})

    return config


def _format_time(timestamp: Optional[float]) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp).strftime("%Y-%m-%d %H:%M:%S")


async def _wait_for_background(
    orchestrator: ExportOrchestrator,
    export_id: str,
    console: Console,
    quiet: bool,
) -> int:
    batch = orchestrator.get_status(export_id)
    total = batch.total_items if batch else 0

    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TaskProgressColumn(),
        console=console,
        transient=True,
        disable=quiet,
    ) as progress:
        task = progress.add_task("Starting...", total=total or None)

        while True:
            await orchestrator.tick()
            batch = orchestrator.get_status(export_id)
            if batch is None:
                break
            progress.update(task, completed=batch.processed, description=f"[cyan]{batch.current_operation}")
            if not batch.is_running:
                break
            await asyncio.sleep(WAIT_POLL_INTERVAL)

    if batch is None:
        console.print(f"[red]Error:[/red] Export {export_id} record is gone")
        return 1

    if batch.status is BatchStatus.COMPLETED:
        orchestrator.pop_completion_flag()
        if not quiet:
            console.print(f"[green]Exported {batch.exported} items[/green] ({batch.failed} failed)")
        return 0

    console.print(f"[red]Export {batch.status.value}:[/red] {batch.current_operation}")
    return 1


def run_export(args: argparse.Namespace, context: AppContext, console: Console) -> int:
    """Run the export command."""

    def on_event(event: ExportEvent) -> None:
        if event.type == EventType.ITEM_FAILED:
            console.print(f"[red]Failed:[/red] item {event.item_id} - {event.error}")

    orchestrator = ExportOrchestrator(context, emit=on_event)

    async def run() -> int:
        if not args.background:
            with console.status("[cyan]Exporting...", spinner="dots") if not args.quiet else nullcontext():
                count = await orchestrator.run(item_types=args.types, limit=args.limit)

            history = orchestrator.history()
            if history and history[-1].status is BatchStatus.FAILED:
                console.print("[red]Error:[/red] Export could not be published; the previous export is unchanged")
                return 1
            if not args.quiet:
                console.print(f"[green]Exported {count} items[/green] to {context.directory.live}")
            return 0

        started = await orchestrator.run(item_types=args.types, limit=args.limit, background=True)
        assert isinstance(started, dict)
        if not args.quiet:
            console.print(f"[bold blue]{started['message']}[/bold blue] ({started['export_id']})")

        if args.wait:
            return await _wait_for_background(orchestrator, started["export_id"], console, args.quiet)

        if not args.quiet:
            console.print("Run [bold]pagemark tick[/bold] periodically to process the export.")
        return 0

    return asyncio.run(run())


def run_tick(args: argparse.Namespace, context: AppContext, console: Console) -> int:
    """Run the tick command."""
    orchestrator = ExportOrchestrator(context)
    jobs = asyncio.run(orchestrator.tick())
    if args.verbose:
        console.print(f"Ran {jobs} scheduled jobs")
    return 0


def run_status(args: argparse.Namespace, context: AppContext, console: Console) -> int:
    """Run the status command."""
    orchestrator = ExportOrchestrator(context)

    batch = orchestrator.get_status()
    if batch is None:
        console.print("No export running")
    else:
        console.print(f"[bold]Export {batch.export_id}[/bold] ({batch.status.value})")
        console.print(f"  {batch.current_operation}")
        console.print(
            f"  Processed: {batch.processed}/{batch.total_items} "
            f"({batch.progress_percentage}%), exported {batch.exported}, failed {batch.failed}"
        )
        console.print(f"  Started: {_format_time(batch.started_at)}")
        console.print(f"  Estimated completion: {_format_time(batch.estimated_completion)}")

    last = orchestrator.get_last_export()
    if last is not None:
        console.print()
        console.print("[bold]Last export:[/bold]")
        console.print(f"  {_format_time(last.timestamp)}: {last.count} items ({', '.join(last.item_types)})")
    return 0


def run_cancel(args: argparse.Namespace, context: AppContext, console: Console) -> int:
    """Run the cancel command."""
    if ExportOrchestrator(context).cancel():
        console.print("Export cancelled")
        return 0
    console.print("[yellow]No export running[/yellow]")
    return 1


def run_files(args: argparse.Namespace, context: AppContext, console: Console) -> int:
    """Run the files command."""
    files = context.directory.list_files(args.types)
    if not files:
        console.print("No exported files")
        return 0

    table = Table(show_header=True, header_style="bold")
    table.add_column("ID", justify="right")
    table.add_column("Type")
    table.add_column("File")
    table.add_column("Size", justify="right")
    table.add_column("Modified")
    for exported in files:
        table.add_row(
            str(exported.id),
            exported.type,
            exported.filename,
            str(exported.size),
            _format_time(exported.modified),
        )
    console.print(table)
    return 0


def run_show(args: argparse.Namespace, context: AppContext, console: Console) -> int:
    """Run the show command."""
    exported = context.directory.find_file(args.id)
    if exported is None:
        console.print(f"[red]Error:[/red] No exported file for item {args.id}")
        return 1

    sys.stdout.write(exported.path.read_text(encoding="utf-8"))
    return 0


COMMANDS = {
    "export": run_export,
    "tick": run_tick,
    "status": run_status,
    "cancel": run_cancel,
    "files": run_files,
    "show": run_show,
}


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)
    console = Console()

    try:
        config = load_config(args)
    except (ValidationError, yaml.YAMLError, OSError) as e:
        console.print(f"[red]Configuration error:[/red] {e}")
        return 1

    setup_logging(config.log_level, config.log_file)

    try:
        context = AppContext.from_config(config)
        return COMMANDS[args.command](args, context, console)
    except Exception as e:
        console.print(f"[red]Error:[/red] {e}")
        if args.verbose:
            import traceback

            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
