"""Search session wiring together table loading, the batch driver, progress and export."""

from __future__ import annotations

import time
from datetime import datetime, timezone
from pathlib import Path
from threading import Event
from typing import Callable, Literal, Sequence

import structlog

from .config import ConfigRepository, GlobalConfig
from .engine import BatchQueryDriver, ColumnMapping, LocationTable, SearchClient, load_table, suggest_columns
from .engine.exporter import build_exporter
from .errors import FatalRunError, ParseError, ValidationError
from .logging_conf import close_run_logger, configure_logging, run_logger
from .models import (
    ProgressState,
    ProgressUpdate,
    ResultRecord,
    ResultsAppended,
    RunEvent,
    RunFinished,
    RunSummary,
    SearchSpec,
    TaskFailed,
)
from .ui import ProgressReporter

SessionStatus = Literal["idle", "running", "complete", "failed", "cancelled"]
ClientFactory = Callable[[GlobalConfig, structlog.BoundLogger], SearchClient]


def _default_client_factory(config: GlobalConfig, logger: structlog.BoundLogger) -> SearchClient:
    return SearchClient(config, logger=logger)


class LeadSearchSession:
    """Holds one user's table, mapping, results and run status across runs."""

    def __init__(
        self,
        config_repository: ConfigRepository,
        client_factory: ClientFactory | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config_repository = config_repository
        self.global_config: GlobalConfig = config_repository.load_global_config()
        self._client_factory = client_factory or _default_client_factory
        self._sleep = sleep
        self.logger = configure_logging().bind(component="session")

        self.status: SessionStatus = "idle"
        self.table: LocationTable | None = None
        self.mapping = ColumnMapping()
        self.terms: list[str] = []
        self.results: list[ResultRecord] = []
        self.errors: list[str] = []
        self.progress = ProgressState(completed=0, total=0, status="Idle")
        self.summary: RunSummary | None = None

    # ------------------------------------------------------------------
    def load_table(self, path: Path, *, quoted: bool = False) -> LocationTable:
        try:
            table = load_table(path, quoted=quoted)
        except ParseError as exc:
            self.table = None
            self.mapping = ColumnMapping()
            self.errors.append(f"Failed to parse CSV file. Please ensure it is a valid CSV. ({exc})")
            self.logger.warning("table_parse_failed", path=str(path), error=str(exc))
            raise
        self.table = table
        self.mapping = suggest_columns(table.headers)
        self.logger.info(
            "table_loaded",
            path=str(path),
            headers=list(table.headers),
            rows=len(table.rows),
        )
        return table

    def build_spec(
        self,
        terms: Sequence[str],
        *,
        city_column: str | None = None,
        state_column: str | None = None,
        country_column: str | None = None,
    ) -> SearchSpec:
        """Search spec from ``terms`` and the current mapping, overridden per column."""

        spec = SearchSpec(
            city_column=city_column if city_column is not None else self.mapping.city,
            state_column=(state_column if state_column is not None else self.mapping.state) or None,
            country_column=country_column if country_column is not None else self.mapping.country,
            max_results=self.global_config.max_results,
        )
        return spec.with_terms(*terms)

    def api_call_estimate(self, terms: Sequence[str]) -> int:
        rows = len(self.table.rows) if self.table is not None else 0
        return rows * len(terms)

    # ------------------------------------------------------------------
    def run(
        self,
        credential: str,
        spec: SearchSpec,
        *,
        reporter: ProgressReporter | None = None,
        cancel: Event | None = None,
        on_event: Callable[[RunEvent], None] | None = None,
    ) -> RunSummary:
        label = datetime.now(timezone.utc).strftime("run-%Y%m%d-%H%M%S")
        log = run_logger(label)
        client = self._client_factory(self.global_config, log)
        driver = BatchQueryDriver(
            client,
            pacing_delay=self.global_config.pacing_delay,
            sleep=self._sleep,
            logger=log,
        )
        self.errors = []
        try:
            events = driver.run(credential, spec, self.table, cancel=cancel)
        except ValidationError as exc:
            client.close()
            self.errors.append(str(exc))
            log.warning("run_rejected", error=str(exc))
            close_run_logger(label)
            raise

        self.status = "running"
        self.results = []
        self.summary = None
        self.terms = list(spec.terms)
        self.mapping = ColumnMapping(
            city=spec.city_column,
            state=spec.state_column or "",
            country=spec.country_column,
        )
        reporter = reporter or ProgressReporter(enabled=False)
        try:
            reporter.start(self.api_call_estimate(spec.terms))
            log.info("run_started", terms=self.terms, rows=len(self.table.rows))
            for event in events:
                self._apply(event, reporter)
                if on_event is not None:
                    on_event(event)
        except FatalRunError as exc:
            self.status = "failed"
            self.results = list(exc.results)
            if exc.progress is not None:
                self.progress = exc.progress
            self.errors.append(str(exc))
            raise
        except Exception as exc:
            self.status = "failed"
            message = f"A critical error occurred: {exc}"
            self.errors.append(message)
            log.error("run_aborted", error=str(exc), results=len(self.results))
            raise FatalRunError(
                message, results=tuple(self.results), progress=self.progress
            ) from exc
        finally:
            events.close()
            reporter.close()
            client.close()
            close_run_logger(label)
        return self.summary or RunSummary(result_count=len(self.results))

    def _apply(self, event: RunEvent, reporter: ProgressReporter) -> None:
        if isinstance(event, ProgressUpdate):
            self.progress = event.progress
            reporter.update(event.progress)
        elif isinstance(event, ResultsAppended):
            self.results.extend(event.records)
            reporter.record_success(len(event.records))
        elif isinstance(event, TaskFailed):
            self.errors.append(event.message)
            reporter.record_failure()
        elif isinstance(event, RunFinished):
            self.status = event.status
            self.progress = event.progress
            self.summary = event.summary

    # ------------------------------------------------------------------
    def export(self, output_dir: Path | None = None, fmt: str | None = None) -> Path | None:
        """Write accumulated results; ``None`` when there is nothing to export."""

        exporter = build_exporter(fmt or self.global_config.output_format)
        locations = self.table.locations(self.mapping) if self.table is not None else []
        payload = exporter.export(self.results, self.terms, locations)
        if payload is None:
            return None
        directory = output_dir or self.config_repository.outputs_dir()
        path = exporter.save(payload, directory)
        self.logger.info("results_exported", path=str(path), records=len(self.results))
        return path


__all__ = ["LeadSearchSession", "SessionStatus"]
