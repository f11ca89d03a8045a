"""
Functions for formatting and displaying data in the console using Rich.
"""

from pathlib import Path
from typing import Any

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from signaler.exceptions import (
    ConfigurationError,
    EngineProcessError,
    EntryNotFoundError,
    HistoryWriteError,
    ManifestNotFoundError,
    ManifestParseError,
    ReportNotFoundError,
    ResolutionError,
    RunConflictError,
    StateCorruptedError,
    UnsupportedSchemaError,
    WorkspaceError,
)
from signaler.models.doctor import DoctorReport
from signaler.models.run import HistoryEntry
from signaler.utils.formatting import format_duration, format_timestamp


_GENERIC_SUGGESTIONS = ("Run the command again with -vv for detailed logs.",)

SUGGESTIONS: dict[type[Exception], tuple[str, ...]] = {
    ManifestNotFoundError: (
        "No engine is installed in the cache or next to the launcher.",
        "Reinstall the launcher bundle, which ships a default engine.",
    ),
    ManifestParseError: (
        "The engine manifest is damaged or from an incompatible release.",
        "Delete the cached engine directory and reinstall the engine.",
    ),
    UnsupportedSchemaError: (
        "The installed engine needs a newer launcher.",
        "Update the launcher, or reinstall a matching engine version.",
    ),
    EntryNotFoundError: (
        "The engine installation is incomplete.",
        "Reinstall the engine version named in the manifest.",
    ),
    ResolutionError: ("Run `signaler engine path --json` to see where the launcher looks.",),
    RunConflictError: ("Wait for the current run to finish, or cancel it first.",),
    EngineProcessError: (
        "Check that the runtime is installed: `signaler doctor`.",
        "Set `runtime` in config.ini if it lives outside your PATH.",
    ),
    HistoryWriteError: ("Check free disk space and permissions of the data directory.",),
    WorkspaceError: ("Check free disk space and permissions of the data directory.",),
    ReportNotFoundError: (
        "The run may not have finished, or it failed before writing a report.",
        "Check the run's output directory for run.json.",
    ),
    ConfigurationError: ("Review config.ini; --show-config prints the effective values.",),
    StateCorruptedError: ("Restart the launcher; its run state can no longer be trusted.",),
}


def suggestions_for(error: Exception) -> tuple[str, ...]:
    """Most specific suggestions registered for the error's class or a base class."""
    for cls in type(error).__mro__:
        if cls in SUGGESTIONS:
            return SUGGESTIONS[cls]
    return _GENERIC_SUGGESTIONS


def format_error_with_suggestions(
    error: Exception, context: dict | None = None
) -> Panel:
    """Renders an error, with what the user can do about it, as a Rich Panel."""
    body = Table.grid(padding=(1, 0))
    body.add_row(Text.assemble((f"{type(error).__name__}: ", "bold red"), str(error)))
    body.add_row(Text("What to try", style="bold yellow"))
    body.add_row(Text("\n".join(f"• {hint}" for hint in suggestions_for(error))))
    if context:
        details = ", ".join(f"{key}={value}" for key, value in context.items())
        body.add_row(Text(details, style="dim"))

    return Panel(
        body,
        title="[bold red]signaler: error[/bold red]",
        border_style="red",
        expand=False,
    )


def print_config(config_path: Path, config_data: dict[str, Any]):
    """Displays the effective configuration."""
    console = Console()
    content = ""
    for key, value in config_data.items():
        content += f"{key} = {escape(str(value))}\n"

    console.print(
        Panel(
            content.strip(),
            title=f"Configuration ([dim]{escape(str(config_path))}[/dim])",
            border_style="cyan",
        )
    )


def print_doctor_report(report: DoctorReport):
    """Displays the environment checks as a small table."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan")
    table.add_column()
    table.add_column()

    for name, result in (("Node:", report.node), ("Browser:", report.browser)):
        mark = "[green]✓[/green]" if result.ok else "[red]✗[/red]"
        table.add_row(name, mark, escape(result.detail))

    if report.ok:
        title = "[bold green]✓ Environment OK[/bold green]"
        border = "green"
    else:
        title = "[bold red]✗ Environment has problems[/bold red]"
        border = "red"
    console.print(Panel(table, title=title, border_style=border, expand=False))


def print_history_table(entries: list[HistoryEntry]):
    """Displays recorded runs, newest first."""
    console = Console()
    if not entries:
        console.print("[dim]No runs recorded yet.[/dim]")
        return

    table = Table(title="Run History", box=box.ROUNDED)
    table.add_column("Run", style="dim", no_wrap=True)
    table.add_column("Started", no_wrap=True)
    table.add_column("Mode", style="magenta")
    table.add_column("Target", style="cyan")
    table.add_column("Output", style="dim")
    for entry in entries:
        table.add_row(
            entry.id,
            format_timestamp(entry.created_at),
            entry.mode,
            escape(entry.target),
            escape(entry.output_dir),
        )
    console.print(table)


def print_run_summary(
    output_dir: str, exit_code: int | None, duration_s: float, cancelled: bool = False
):
    """Displays the outcome of a supervised run."""
    console = Console()
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="bold cyan", justify="right")
    table.add_column()

    if cancelled:
        table.add_row("Status:", "[yellow]Cancelled[/yellow]")
    elif exit_code == 0:
        table.add_row("Status:", "[bold green]Completed[/bold green]")
    else:
        code = "killed" if exit_code is None else str(exit_code)
        table.add_row("Status:", f"[bold red]Failed (exit {code})[/bold red]")
    table.add_row("Output:", f"[dim]{escape(output_dir)}[/dim]")
    table.add_row("Time Elapsed:", f"[blue]{format_duration(duration_s)}[/blue]")

    border = "green" if exit_code == 0 and not cancelled else "yellow"
    console.print()
    console.print(
        Panel(
            table,
            title="[bold]Run Summary[/bold]",
            border_style=border,
            box=box.DOUBLE,
            expand=False,
            padding=(1, 2),
        )
    )
