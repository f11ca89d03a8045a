"""
Defines the command-line interface for the launcher using Typer.
"""

import asyncio
import json
import logging
import time
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from signaler import __version__
from signaler.core import (
    EngineRunner,
    EnvironmentDoctor,
    RunOrchestrator,
    RunWorkspace,
    run_mode,
)
from signaler.engine import ManifestResolver, build_resolution_report, resolve_entry
from signaler.exceptions import SignalerError
from signaler.models.engine import EngineManifestInfo
from signaler.models.run import RunMode
from signaler.models.settings import LauncherSettings
from signaler.storage import ConfigManager, RunHistoryStore, find_report_path
from signaler.utils.paths import get_config_dir, get_launcher_dir
from signaler.utils.structured_logger import create_run_logger

from .event_renderer import EventRenderer
from .formatters import (
    format_error_with_suggestions,
    print_config,
    print_doctor_report,
    print_history_table,
    print_run_summary,
)

console = Console()
err_console = Console(stderr=True)

logging.basicConfig(
    level="INFO",
    format="%(message)s",
    datefmt="[%X]",
    handlers=[
        RichHandler(
            console=err_console,
            rich_tracebacks=True,
            show_path=False,
            show_level=False,
            markup=False,
        )
    ],
)
log = logging.getLogger("signaler")

app = typer.Typer(
    name="signaler",
    help=(
        "Launcher for the Signaler audit engine. Use 'signaler <command> --help'"
        " for more info."
    ),
    rich_markup_mode="rich",
    pretty_exceptions_show_locals=False,
    add_completion=False,
)
engine_app = typer.Typer(help="Inspect and run the resolved engine.")
run_app = typer.Typer(help="Run the engine in a given mode in the foreground.")
app.add_typer(engine_app, name="engine")
app.add_typer(run_app, name="run")

CONFIG_DIR = get_config_dir()
CONFIG_FILE = CONFIG_DIR / "config.ini"

FORWARD_CONTEXT = {"ignore_unknown_options": True}


def _settings(ctx: typer.Context) -> LauncherSettings:
    settings = ctx.find_root().obj
    if settings is None:
        settings = ConfigManager(CONFIG_FILE).load_config()
        ctx.find_root().obj = settings
    return settings


def _fail(command: str, error: Exception) -> typer.Exit:
    """Reports a failure on stderr and returns the Exit to raise."""
    err_console.print(f"[red]{command} failed:[/red] {escape(str(error))}")
    log.debug("Full traceback:", exc_info=True)
    return typer.Exit(code=1)


def _resolve_manifest(settings: LauncherSettings) -> EngineManifestInfo:
    resolver = ManifestResolver(Path(settings.cache_dir), get_launcher_dir())
    return resolver.resolve()


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: int = typer.Option(
        0,
        "--verbose",
        "-v",
        count=True,
        help="Increase logging verbosity (-vv for debug).",
    ),
    version: bool = typer.Option(
        False, "--version", help="Show version and exit.", is_eager=True
    ),
    show_config: bool = typer.Option(
        False, "--show-config", help="Display the effective configuration."
    ),
    cache_dir: Path | None = typer.Option(
        None, "--cache-dir", help="Override the engine cache directory."
    ),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Override where runs and history are stored."
    ),
    runtime: str | None = typer.Option(
        None, "--runtime", help="Executable used to run the engine (default: node)."
    ),
):
    """Signaler Launcher"""
    if version:
        console.print(f"[bold]signaler[/bold] version [cyan]{__version__}[/cyan]")
        raise typer.Exit()

    log_level = "INFO"
    if verbose >= 2:
        log_level = "DEBUG"
    logging.getLogger("signaler").setLevel(log_level)

    cli_options = {
        "cache_dir": str(cache_dir) if cache_dir else None,
        "app_data_dir": str(data_dir) if data_dir else None,
        "runtime": runtime,
    }
    try:
        settings = ConfigManager(CONFIG_FILE).load_config(cli_options)
    except SignalerError as e:
        err_console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    ctx.obj = settings

    if show_config:
        print_config(CONFIG_FILE, settings.model_dump(exclude={"config_path"}))
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@app.command()
def init(
    ctx: typer.Context,
    force: bool = typer.Option(
        False, "--force", "-f", help="Overwrite an existing config file without asking."
    ),
):
    """Write the effective settings to config.ini."""
    if (
        CONFIG_FILE.exists()
        and not force
        and not typer.confirm("Configuration file already exists. Overwrite it?")
    ):
        raise typer.Abort()

    settings = _settings(ctx)
    try:
        ConfigManager(CONFIG_FILE).save_config(settings)
    except SignalerError as e:
        err_console.print(format_error_with_suggestions(e))
        raise typer.Exit(code=1) from e
    console.print(
        f"[green]✓ Configuration saved to[/green] [dim]{escape(str(CONFIG_FILE))}[/dim]"
    )


@app.command()
def doctor(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print a JSON report."),
):
    """Check for a compatible runtime and a supported browser."""
    settings = _settings(ctx)
    report = EnvironmentDoctor(settings.runtime, settings.min_node_major).check()
    if json_output:
        typer.echo(report.model_dump_json(indent=2))
    else:
        print_doctor_report(report)
    if not report.ok:
        raise typer.Exit(code=1)


@engine_app.command("path")
def engine_path(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False, "--json", help="Print the full resolution report."
    ),
):
    """Print the path of the engine manifest in use."""
    try:
        info = _resolve_manifest(_settings(ctx))
        if json_output:
            typer.echo(build_resolution_report(info).model_dump_json(indent=2))
        else:
            typer.echo(str(info.manifest_path))
    except SignalerError as e:
        raise _fail("engine", e) from e


@engine_app.command("resolve")
def engine_resolve(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False, "--json", help="Print the full resolution report."
    ),
):
    """Print the engine entry point that would be executed."""
    try:
        info = _resolve_manifest(_settings(ctx))
        if json_output:
            typer.echo(build_resolution_report(info).model_dump_json(indent=2))
        else:
            typer.echo(str(resolve_entry(info)))
    except SignalerError as e:
        raise _fail("engine", e) from e


@engine_app.command("run", context_settings=FORWARD_CONTEXT)
def engine_run(
    ctx: typer.Context,
    args: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Arguments forwarded verbatim to the engine (after '--')."
    ),
):
    """Run the engine with the given arguments, streaming its output."""
    settings = _settings(ctx)
    try:
        runner = EngineRunner.from_manifest(_resolve_manifest(settings), settings.runtime)
        status = runner.run(list(args or []))
    except SignalerError as e:
        raise _fail("engine", e) from e
    if not status.success:
        raise typer.Exit(code=1)


def _run_in_mode(ctx: typer.Context, mode: str, json_output: bool, args: list[str]):
    settings = _settings(ctx)
    try:
        status, report = run_mode(
            _resolve_manifest(settings), settings.runtime, mode, args, json_output
        )
    except SignalerError as e:
        raise _fail("run", e) from e
    if report is not None:
        typer.echo(report.model_dump_json(indent=2))
    if not status.success:
        raise typer.Exit(code=1)


@run_app.command("audit", context_settings=FORWARD_CONTEXT)
def run_audit(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False, "--json", help="Capture the engine's output and print a JSON report."
    ),
    args: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Arguments forwarded to the engine's audit mode (after '--')."
    ),
):
    """Run an audit with the engine."""
    _run_in_mode(ctx, "audit", json_output, list(args or []))


@run_app.command("folder", context_settings=FORWARD_CONTEXT)
def run_folder(
    ctx: typer.Context,
    json_output: bool = typer.Option(
        False, "--json", help="Capture the engine's output and print a JSON report."
    ),
    args: list[str] | None = typer.Argument(  # noqa: B008
        None, help="Arguments forwarded to the engine's folder mode (after '--')."
    ),
):
    """Audit a static folder with the engine."""
    _run_in_mode(ctx, "folder", json_output, list(args or []))


@app.command()
def update(
    ctx: typer.Context,
    check: bool = typer.Option(False, "--check", help="Only check for updates."),
):
    """Update the cached engine (not implemented yet)."""
    settings = _settings(ctx)
    typer.echo(f"update: not implemented (cacheDir: {settings.cache_dir})")
    if not check:
        raise typer.Exit(code=1)


def _build_orchestrator(settings: LauncherSettings, run_logger) -> RunOrchestrator:
    data_dir = Path(settings.app_data_dir)
    resolver = ManifestResolver(Path(settings.cache_dir), get_launcher_dir())
    return RunOrchestrator(
        RunWorkspace(data_dir),
        RunHistoryStore(data_dir),
        lambda: EngineRunner.from_manifest(resolver.resolve(), settings.runtime),
        run_logger=run_logger,
    )


@app.command()
def start(
    ctx: typer.Context,
    mode: RunMode = typer.Argument(..., help="What to audit: 'url' or 'folder'."),
    target: str = typer.Argument(..., help="Base URL, or the folder's root path."),
    json_output: bool = typer.Option(
        False, "--json", help="Print engine events as JSON lines."
    ),
):
    """Start a supervised run and follow its events. Ctrl-C cancels the run."""
    settings = _settings(ctx)
    data_dir = Path(settings.app_data_dir)
    base_logger, run_logger = create_run_logger(
        data_dir / "logs", enable_json=settings.json_logs
    )
    base_logger.set_session_context(mode=mode.value, target=target)

    async def _start_async() -> int | None:
        orchestrator = _build_orchestrator(settings, run_logger)
        with orchestrator.subscribe() as subscription:
            try:
                result = await orchestrator.start_run(mode, target)
            except SignalerError as e:
                raise _fail("run", e) from e

            if not json_output:
                console.print(
                    f"[bold cyan]Run {result.run_id} started.[/bold cyan] "
                    f"Output: [dim]{escape(result.output_dir)}[/dim]"
                )
            start_time = time.monotonic()
            cancelled = False
            with EventRenderer(console, json_output=json_output) as renderer:
                try:
                    async for event in subscription.until_terminated(result.run_id):
                        renderer.render(event)
                except (KeyboardInterrupt, asyncio.CancelledError):
                    cancelled = await orchestrator.cancel_run()
                    await orchestrator.wait_finished()

            if not json_output:
                print_run_summary(
                    result.output_dir,
                    renderer.exit_code,
                    time.monotonic() - start_time,
                    cancelled=cancelled,
                )
            if cancelled:
                return None
            return renderer.exit_code

    try:
        exit_code = asyncio.run(_start_async())
    finally:
        base_logger.close()
    if exit_code != 0:
        raise typer.Exit(code=1)


@app.command()
def history(
    ctx: typer.Context,
    json_output: bool = typer.Option(False, "--json", help="Print history as JSON."),
    limit: int | None = typer.Option(
        None, "--limit", "-n", min=1, help="Show only the most recent N runs."
    ),
):
    """List previous runs, newest first."""
    settings = _settings(ctx)
    entries = RunHistoryStore(Path(settings.app_data_dir)).list()
    if limit is not None:
        entries = entries[:limit]
    if json_output:
        payload = [entry.model_dump(by_alias=True) for entry in entries]
        typer.echo(json.dumps(payload, indent=2))
    else:
        print_history_table(entries)


@app.command()
def report(
    output_dir: Path = typer.Argument(..., help="A run's output directory."),
    open_report: bool = typer.Option(
        False, "--open", help="Open the report in the default application."
    ),
):
    """Print the HTML report path of a finished run."""
    try:
        report_path = find_report_path(output_dir)
    except SignalerError as e:
        raise _fail("report", e) from e
    typer.echo(str(report_path))
    if open_report:
        typer.launch(str(report_path))
