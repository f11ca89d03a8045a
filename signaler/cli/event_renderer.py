"""
Renders a supervised run's engine events in the terminal.

Progress events drive a Rich progress bar; the other known engine events are
printed as one-line status messages, and unparsed output is shown dimmed.
"""

import json
import logging

import typer
from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TaskID,
    TextColumn,
    TimeElapsedColumn,
)

from signaler.models.events import (
    EngineEvent,
    RawEvent,
    StructuredEvent,
    TerminatedEvent,
    to_payload,
)

log = logging.getLogger("signaler")


class EventRenderer:
    """Turns engine events into console output for one run."""

    def __init__(self, console: Console, json_output: bool = False):
        self.console = console
        self.json_output = json_output

        self.progress = Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}", justify="left"),
            BarColumn(bar_width=30),
            MofNCompleteColumn(),
            "•",
            TimeElapsedColumn(),
            console=console,
            transient=False,
        )
        self._task_id: TaskID | None = None
        self.exit_code: int | None = None
        self.terminated = False
        self.artifacts: list[str] = []

    def __enter__(self):
        if not self.json_output:
            self.progress.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if not self.json_output:
            self.progress.stop()
        return False

    def render(self, event: EngineEvent) -> None:
        if isinstance(event, TerminatedEvent):
            self.terminated = True
            self.exit_code = event.exit_code

        if self.json_output:
            typer.echo(json.dumps(to_payload(event)))
            return

        if isinstance(event, StructuredEvent):
            self._render_structured(event.value)
        elif isinstance(event, RawEvent):
            style = "red" if event.stream == "stderr" else "dim"
            self.progress.console.print(f"[{style}]{escape(event.text)}[/{style}]")
        elif isinstance(event, TerminatedEvent):
            self._finish_progress()

    def _render_structured(self, value) -> None:
        if not isinstance(value, dict):
            self.progress.console.print(escape(json.dumps(value)))
            return

        event_type = value.get("type")
        if event_type == "progress":
            self._update_progress(value)
        elif event_type == "run_started":
            self.progress.console.print(
                f"[bold cyan]▶ Engine started[/bold cyan] ({value.get('mode', '?')})"
            )
        elif event_type == "artifact_written":
            path = str(value.get("relativePath", ""))
            self.artifacts.append(path)
            self.progress.console.print(f"[green]✓[/green] Wrote [dim]{escape(path)}[/dim]")
        elif event_type == "run_completed":
            self._finish_progress()
            self.progress.console.print("[bold green]✓ Engine finished[/bold green]")
        elif event_type == "folder_server_started":
            self.progress.console.print(
                f"[cyan]Serving folder at {escape(str(value.get('baseUrl', '')))}[/cyan]"
            )
        else:
            log.debug(f"Engine event: {value}")

    def _update_progress(self, value: dict) -> None:
        total = value.get("total")
        completed = value.get("completed")
        description = " ".join(
            str(part) for part in (value.get("path"), value.get("device")) if part
        )
        if self._task_id is None:
            self._task_id = self.progress.add_task(
                description or "Auditing", total=total or None
            )
        self.progress.update(
            self._task_id,
            completed=completed if completed is not None else value.get("pct", 0),
            total=total if total is not None else (100 if "pct" in value else None),
            description=description or "Auditing",
        )

    def _finish_progress(self) -> None:
        if self._task_id is None:
            return
        for task in self.progress.tasks:
            if task.id == self._task_id and task.total:
                self.progress.update(self._task_id, completed=task.total)
