"""Typer CLI entrypoint for Lead Finder."""

from __future__ import annotations

import signal
import sys
from dataclasses import dataclass
from pathlib import Path
from threading import Event
from typing import List, Optional

import typer
from rich import box
from rich.console import Console
from rich.table import Table

from .config import ConfigRepository
from .engine.exporter import build_exporter
from .errors import FatalRunError, ParseError, ValidationError
from .logging_conf import available_run_logs, configure_logging, log_path, tail_log
from .models import RunEvent, RunSummary, TaskFailed
from .orchestrator import LeadSearchSession
from .ui import ProgressReporter, filter_categories

app = typer.Typer(
    help="Lead Finder: batch business search over a CSV of locations.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
log_app = typer.Typer(
    name="log",
    help="Inspect log files.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    repository: ConfigRepository
    session: LeadSearchSession


def build_state(verbose: bool) -> AppState:
    configure_logging(verbose=verbose)
    repository = ConfigRepository()
    session = LeadSearchSession(repository)
    return AppState(repository=repository, session=session)


def _get_state(ctx: typer.Context) -> AppState:
    state = ctx.obj
    if state is None:
        state = build_state(verbose=False)
        ctx.obj = state
    return state


def _progress_default_enabled() -> bool:
    return bool(getattr(sys.stdout, "isatty", lambda: False)())


def _read_terms(terms: Optional[List[str]], terms_file: Optional[Path], categories: Optional[List[str]]) -> list[str]:
    collected: list[str] = list(terms or [])
    if terms_file is not None:
        try:
            content = terms_file.read_text(encoding="utf-8")
        except OSError as exc:
            console.print(f"Could not read terms file: {exc}", style="red")
            raise typer.Exit(code=1)
        collected.extend(line for line in content.splitlines() if line.strip())
    collected.extend(categories or [])
    return collected


def _render_table_overview(session: LeadSearchSession, csv_path: Path) -> Table:
    table = session.table
    mapping = session.mapping
    overview = Table(title=f"{csv_path.name} · {len(table.rows)} rows", box=box.SIMPLE_HEAD)
    overview.add_column("Field", style="cyan")
    overview.add_column("Value", style="green", overflow="fold")
    overview.add_row("Headers", ", ".join(table.headers))
    overview.add_row("City column", mapping.city or "-")
    overview.add_row("State column", mapping.state or "-")
    overview.add_row("Country column", mapping.country or "-")
    return overview


def _render_summary(status: str, summary: RunSummary) -> Table:
    table = Table(title=f"Search {status}", box=box.SIMPLE_HEAD)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", style="green", justify="right")
    table.add_row("Planned requests", str(summary.total))
    table.add_row("Issued", str(summary.issued))
    table.add_row("Succeeded", str(summary.succeeded))
    table.add_row("Failed", str(summary.failed))
    table.add_row("Skipped rows", str(summary.skipped_rows))
    table.add_row("Results", str(summary.result_count))
    return table


def _export(session: LeadSearchSession, output_dir: Optional[Path], fmt: Optional[str]) -> None:
    try:
        path = session.export(output_dir, fmt)
    except ValueError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    if path is None:
        console.print("No results to export.", style="yellow")
    else:
        console.print(f"Exported {len(session.results)} results to {path}", style="green")


app.add_typer(log_app, name="log", help="View log files.")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.obj = build_state(verbose)


@app.command("run", help="Search every (location, term) pair and export the results.")
def run_search(
    ctx: typer.Context,
    csv_path: Path = typer.Argument(..., help="CSV file with one location per row."),
    term: Optional[List[str]] = typer.Option(None, "--term", "-t", help="Search term (repeatable)."),
    terms_file: Optional[Path] = typer.Option(None, "--terms-file", help="File with one term per line."),
    category: Optional[List[str]] = typer.Option(None, "--category", "-c", help="Catalogue category (repeatable)."),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="RapidAPI key; prompted when omitted."),
    city_column: Optional[str] = typer.Option(None, "--city-column", help="Column holding the city."),
    state_column: Optional[str] = typer.Option(None, "--state-column", help="Column holding the state (optional)."),
    country_column: Optional[str] = typer.Option(None, "--country-column", help="Column holding the 2-letter country code."),
    quoted: bool = typer.Option(False, "--quoted", help="Parse quoted CSV fields (commas inside quotes)."),
    output_dir: Optional[Path] = typer.Option(None, "--output-dir", help="Directory for the export file."),
    fmt: Optional[str] = typer.Option(None, "--format", help="Export format: csv or json."),
    quiet: bool = typer.Option(False, "--quiet", help="Only print the final summary."),
) -> None:
    state = _get_state(ctx)
    session = state.session
    try:
        build_exporter(fmt or session.global_config.output_format)
    except ValueError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    try:
        session.load_table(csv_path, quoted=quoted)
    except ParseError as exc:
        console.print(f"Failed to parse CSV file: {exc}", style="red")
        raise typer.Exit(code=1)

    terms = _read_terms(term, terms_file, category)
    spec = session.build_spec(
        terms,
        city_column=city_column,
        state_column=state_column,
        country_column=country_column,
    )
    if not quiet:
        console.print(_render_table_overview(session, csv_path))
        console.print(
            f"{len(session.table.rows)} rows × {len(spec.terms)} terms = "
            f"{session.api_call_estimate(spec.terms)} API calls",
            style="dim",
        )

    credential = api_key if api_key is not None else typer.prompt("RapidAPI Key", hide_input=True)

    def _on_event(event: RunEvent) -> None:
        if isinstance(event, TaskFailed) and not quiet:
            console.print(event.message, style="red")

    cancel = Event()
    previous_handler = signal.getsignal(signal.SIGINT)
    signal.signal(signal.SIGINT, lambda *_: cancel.set())
    progress_flag = (
        _progress_default_enabled() and not quiet and session.global_config.enable_progress_bar
    )
    reporter = ProgressReporter(enabled=progress_flag, console=console)
    reporter.set_label(csv_path.stem)
    try:
        summary = session.run(
            credential, spec, reporter=reporter, cancel=cancel, on_event=_on_event
        )
    except ValidationError as exc:
        console.print(str(exc), style="red")
        raise typer.Exit(code=1)
    except FatalRunError as exc:
        console.print(str(exc), style="red")
        console.print(f"Search failed. {len(session.results)} results kept.", style="yellow")
        _export(session, output_dir, fmt)
        raise typer.Exit(code=1)
    finally:
        signal.signal(signal.SIGINT, previous_handler)

    if quiet:
        console.print(
            f"Search {session.status}: issued {summary.issued}, failed {summary.failed}, "
            f"results {summary.result_count}"
        )
    else:
        console.print(_render_summary(session.status, summary))
    _export(session, output_dir, fmt)


@app.command("columns", help="Show CSV headers, suggested column mapping and a sample row.")
def show_columns(
    ctx: typer.Context,
    csv_path: Path = typer.Argument(..., help="CSV file with one location per row."),
    quoted: bool = typer.Option(False, "--quoted", help="Parse quoted CSV fields."),
) -> None:
    session = _get_state(ctx).session
    try:
        table = session.load_table(csv_path, quoted=quoted)
    except ParseError as exc:
        console.print(f"Failed to parse CSV file: {exc}", style="red")
        raise typer.Exit(code=1)
    console.print(_render_table_overview(session, csv_path))
    if table.rows:
        sample = Table(title="First row", box=box.SIMPLE_HEAD)
        for header in table.headers:
            sample.add_column(header, overflow="fold")
        sample.add_row(*(table.rows[0].get(header, "") for header in table.headers))
        console.print(sample)
    else:
        console.print("The file has no data rows.", style="yellow")


@app.command("categories", help="List built-in business categories usable as search terms.")
def list_categories(
    filter_text: str = typer.Option("", "--filter", "-f", help="Case-insensitive substring filter."),
) -> None:
    matches = filter_categories(filter_text)
    if not matches:
        console.print("No categories match.", style="dim")
        return
    for category in matches:
        console.print(category)


@log_app.command("list", help="List per-run log files.")
def log_list() -> None:
    logs = list(available_run_logs())
    if not logs:
        console.print("No run logs yet.", style="dim")
        return
    table = Table(box=box.SIMPLE_HEAD)
    table.add_column("File", style="green")
    for path in logs:
        table.add_row(path.name)
    console.print(table)


@log_app.command("show", help="Show the tail of the application log or one run log.")
def log_show(
    run: Optional[str] = typer.Option(None, "--run", help="Run log name (default: application log)."),
    tail: int = typer.Option(100, "--tail", help="Number of lines to show."),
) -> None:
    lines = tail_log(log_path(run), tail)
    if not lines:
        console.print("No log lines yet.", style="dim")
        return
    console.print(f"{run or 'lead_finder'} · last {len(lines)} lines", style="cyan")
    console.print("".join(lines), markup=False, highlight=False)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
