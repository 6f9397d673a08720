"""Sequential batch driver: one search request per (location row, term) pair."""

from __future__ import annotations

import time
from threading import Event
from typing import Callable, Iterator

import structlog

from ..errors import FatalRunError, SearchClientError, TaskError, ValidationError
from ..models import (
    ProgressState,
    ProgressUpdate,
    QueryTask,
    ResultRecord,
    ResultsAppended,
    RunEvent,
    RunFinished,
    RunSummary,
    SearchSpec,
    TaskFailed,
)
from .client import SearchClient
from .table import LocationTable


class BatchQueryDriver:
    """Walk rows x terms in order, issuing one request per task.

    ``run`` returns a generator of events; the caller drives it and renders
    progress. Tasks that fail are reported through ``TaskFailed`` and the run
    carries on. Anything else escaping the loop aborts the run with
    ``FatalRunError``. ``results`` keeps what was accumulated in every case.

    The caller must not mutate the table or the search spec while a run is active.
    """

    def __init__(
        self,
        client: SearchClient,
        *,
        pacing_delay: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
        logger: structlog.BoundLogger | None = None,
    ) -> None:
        self.client = client
        self.pacing_delay = pacing_delay
        self._sleep = sleep
        self.logger = logger or structlog.get_logger("lead_finder.driver")
        self.results: list[ResultRecord] = []
        self.progress = ProgressState(completed=0, total=0, status="Idle")

    @staticmethod
    def validate(credential: str, spec: SearchSpec, table: LocationTable | None) -> None:
        if not credential or not credential.strip():
            raise ValidationError("RapidAPI Key is required.")
        if not spec.terms:
            raise ValidationError("At least one search term is required.")
        if table is None or len(table.rows) == 0:
            raise ValidationError("A CSV file with location data is required.")
        if not spec.city_column:
            raise ValidationError("Please map the City column.")
        if not table.has_column(spec.city_column):
            raise ValidationError(f"City column '{spec.city_column}' is not in the file.")
        if not spec.country_column:
            raise ValidationError("Please map the Country column.")
        if not table.has_column(spec.country_column):
            raise ValidationError(f"Country column '{spec.country_column}' is not in the file.")

    def run(
        self,
        credential: str,
        spec: SearchSpec,
        table: LocationTable,
        *,
        cancel: Event | None = None,
    ) -> Iterator[RunEvent]:
        self.validate(credential, spec, table)
        self.results = []
        total = len(table.rows) * len(spec.terms)
        self.progress = ProgressState(completed=0, total=total, status="Starting search...")
        return self._iterate(credential, spec, table, total, cancel)

    def _iterate(
        self,
        credential: str,
        spec: SearchSpec,
        table: LocationTable,
        total: int,
        cancel: Event | None,
    ) -> Iterator[RunEvent]:
        yield ProgressUpdate(self.progress)
        issued = succeeded = failed = skipped_rows = 0
        cancelled = False
        try:
            for row_index, row in enumerate(table.rows):
                location = table.column_values(
                    row, spec.city_column, spec.state_column, spec.country_column
                )
                if not location.city or not location.country:
                    skipped_rows += 1
                    self.logger.info(
                        "row_skipped",
                        row=row_index,
                        city=location.city,
                        country=location.country,
                    )
                    continue

                for term in spec.terms:
                    if cancel is not None and cancel.is_set():
                        cancelled = True
                        break
                    issued += 1
                    task = QueryTask(
                        index=issued, row_index=row_index, term=term, location=location
                    )
                    self.progress = ProgressState(
                        completed=issued,
                        total=total,
                        status=(
                            f'Searching for "{term}" in {location.label}... ({issued}/{total})'
                        ),
                    )
                    yield ProgressUpdate(self.progress, task=task)

                    try:
                        found = self.client.search(
                            credential, task.query, spec.max_results, task.country_code
                        )
                    except SearchClientError as exc:
                        failed += 1
                        error = TaskError(index=task.index, query=task.query, message=str(exc))
                        self.logger.warning(
                            "task_failed", index=task.index, query=task.query, error=str(exc)
                        )
                        yield TaskFailed(task=task, error=error)
                    else:
                        succeeded += 1
                        tagged = tuple(
                            ResultRecord.tag(result, term, location) for result in found
                        )
                        self.results.extend(tagged)
                        self.logger.debug(
                            "task_succeeded", index=task.index, query=task.query, count=len(tagged)
                        )
                        yield ResultsAppended(
                            task=task, records=tagged, accumulated=len(self.results)
                        )
                    self._sleep(self.pacing_delay)
                if cancelled:
                    break
        except Exception as exc:  # noqa: BLE001
            self.logger.error("run_failed", error=str(exc), completed=self.progress.completed)
            self.progress = ProgressState(
                completed=self.progress.completed, total=total, status="Search failed."
            )
            raise FatalRunError(
                f"A critical error occurred: {exc}",
                results=self.results,
                progress=self.progress,
            ) from exc

        summary = RunSummary(
            total=total,
            issued=issued,
            succeeded=succeeded,
            failed=failed,
            skipped_rows=skipped_rows,
            result_count=len(self.results),
        )
        if cancelled:
            self.progress = ProgressState(
                completed=issued, total=total, status="Search cancelled."
            )
            self.logger.info("run_cancelled", issued=issued, total=total)
            yield RunFinished(status="cancelled", progress=self.progress, summary=summary)
            return
        self.progress = ProgressState(completed=total, total=total, status="Search complete!")
        self.logger.info(
            "run_complete",
            issued=issued,
            failed=failed,
            skipped_rows=skipped_rows,
            results=len(self.results),
        )
        yield RunFinished(status="complete", progress=self.progress, summary=summary)


__all__ = ["BatchQueryDriver"]
