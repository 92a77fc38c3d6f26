"""
Command line interface for the tagsmith component compiler.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .build import BuildReport, SiteBuilder
from .config import BuildConfig, ConfigError, find_default_config, get_settings, load_config
from .engine import TagsmithError
from .web import DevServer, LiveReloadHub, Watcher

console = Console()
app = typer.Typer(
    help="Expand HTML components, props, conditionals and loops across a directory tree.",
    add_completion=False,
)
logger = logging.getLogger(__name__)

LOG_LEVELS = ["critical", "error", "warning", "info", "debug"]


def _configure_logging(level_name: Optional[str], verbose: bool) -> None:
    env_override = get_settings().log_level
    level_str = (env_override or level_name or ("debug" if verbose else "warning")).upper()
    if level_str not in {lvl.upper() for lvl in LOG_LEVELS}:
        level_str = "WARNING"
    logging.basicConfig(
        level=getattr(logging, level_str, logging.WARNING),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    logger.debug("Logging configured at %s", level_str)


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold green]tagsmith[/] {__version__}")
        raise typer.Exit()


def _resolve_source_dir(value: Path) -> Path:
    """Ensure the source directory exists and return its absolute path."""
    resolved = value.expanduser().resolve()
    if not resolved.exists():
        raise typer.BadParameter(f"Source directory not found: {resolved}")
    if not resolved.is_dir():
        raise typer.BadParameter(f"Source path must be a directory, got file: {resolved}")
    return resolved


def _split_names(value: Optional[str]) -> Optional[list[str]]:
    if value is None:
        return None
    return [name.strip() for name in value.split(",") if name.strip()]


def _load_build_config(config_path: Optional[Path], overrides: Dict[str, Any]) -> BuildConfig:
    path = config_path or find_default_config()
    base = load_config(path) if path else BuildConfig()
    if path:
        logger.info("Loaded configuration from %s", path)

    settings = get_settings()
    merged = base.model_dump()
    if "port" not in base.model_fields_set and settings.port is not None:
        merged["port"] = settings.port
    if "workers" not in base.model_fields_set and settings.workers is not None:
        merged["workers"] = settings.workers
    merged.update({key: value for key, value in overrides.items() if value is not None})
    try:
        return BuildConfig.model_validate(merged)
    except ValueError as exc:
        raise ConfigError(str(exc)) from exc


def _print_build_report(report: BuildReport) -> None:
    table = Table(title="Build Summary")
    table.add_column("Key")
    table.add_column("Value", overflow="fold")
    for key, value in report.summary_rows():
        table.add_row(key, value)
    console.print(table)

    if report.missing:
        missing = Table(title="Unresolved Components")
        missing.add_column("Component")
        missing.add_column("First referenced in", overflow="fold")
        missing.add_column("Occurrences", justify="right")
        for row in report.missing:
            missing.add_row(row.component, row.first_file, str(row.occurrences))
        console.print(missing)

    if report.failed:
        console.print("[bold red]Some documents could not be processed (copied unchanged):[/]")
        for path, reason in report.failed.items():
            console.print(f"  • {path}: {reason}")

    console.print(f"[bold green]Processing complete.[/] Output directory: {report.output}")


@app.command()
def build(
    source: Path = typer.Argument(
        ...,
        help="Directory containing the documents to process.",
        callback=_resolve_source_dir,
    ),
    depth: Optional[int] = typer.Option(
        None,
        "--depth",
        "-d",
        min=0,
        help="Maximum directory depth of processed documents (0 = top level only).",
    ),
    names: Optional[str] = typer.Option(
        None,
        "--names",
        "-n",
        help="Comma-separated document names (without extension) to process.",
    ),
    out: Optional[Path] = typer.Option(
        None,
        "--out",
        "-o",
        help="Output directory (defaults to <source>_processed).",
    ),
    components: Optional[Path] = typer.Option(
        None,
        "--components",
        "-c",
        help="Components directory (defaults to ./components).",
    ),
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        help="Path to a tagsmith.toml configuration file.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "--logs",
        "-v",
        help="Enable verbose (debug) logging.",
    ),
    log_level: Optional[str] = typer.Option(
        None,
        "--log-level",
        help="Logging level (critical, error, warning, info, debug).",
        case_sensitive=False,
    ),
    watch: bool = typer.Option(
        False,
        "--watch",
        "-w",
        help="Rebuild when sources or components change.",
    ),
    serve: bool = typer.Option(
        False,
        "--serve",
        "-s",
        help="Serve the output over HTTP with live reload (implies --watch).",
    ),
    port: Optional[int] = typer.Option(
        None,
        "--port",
        "-p",
        min=0,
        max=65535,
        help="Port for --serve.",
    ),
    host: Optional[str] = typer.Option(
        None,
        "--host",
        help="Bind address for --serve.",
    ),
    trace_markers: Optional[bool] = typer.Option(
        None,
        "--trace-markers/--no-trace-markers",
        help="Wrap expanded components in trace comments.",
    ),
    workers: Optional[int] = typer.Option(
        None,
        "--workers",
        min=1,
        help="Worker threads (defaults to the CPU count).",
    ),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show tagsmith version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """
    Build SOURCE into the output directory, optionally watching and serving it.
    """
    _configure_logging(log_level, verbose)

    overrides: Dict[str, Any] = {
        "source": source,
        "output": out,
        "components": components,
        "depth": depth,
        "names": _split_names(names),
        "trace_markers": trace_markers,
        "workers": workers,
        "host": host,
        "port": port,
    }
    try:
        build_config = _load_build_config(config, overrides)
        builder = SiteBuilder(build_config)
        report = builder.process_directory()
    except ConfigError as exc:
        console.print(f"[bold red]Configuration error:[/] {exc}")
        raise typer.Exit(code=1) from exc
    except TagsmithError as exc:
        console.print(f"[bold red]Error:[/] {exc}")
        raise typer.Exit(code=1) from exc

    _print_build_report(report)

    if not (watch or serve):
        return

    hub = LiveReloadHub() if serve else None
    server: Optional[DevServer] = None
    if serve:
        try:
            server = DevServer(builder.output, host=build_config.host, port=build_config.port, hub=hub)
        except OSError as exc:
            console.print(f"[bold red]Cannot start server:[/] {exc}")
            raise typer.Exit(code=1) from exc
        server.start()
        console.print(f"[bold green]Serving[/] {builder.output} at [cyan]{server.url}[/]")

    console.print("[yellow]Watching for changes. Press Ctrl+C to stop.[/]")
    watcher = Watcher(builder, hub=hub, on_build=_print_build_report)
    try:
        watcher.run_forever()
    finally:
        if server is not None:
            server.stop()


def main() -> None:
    """
    Entry-point used by the console script defined in pyproject.toml.
    """
    app()
