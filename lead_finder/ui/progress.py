"""Terminal progress helpers with Rich-based rendering."""

from __future__ import annotations

from dataclasses import dataclass

from rich.console import Console
from rich.errors import LiveError
from rich.progress import (
    BarColumn,
    Progress,
    ProgressColumn,
    SpinnerColumn,
    Task,
    TaskID,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)
from rich.text import Text

from ..models import ProgressState


@dataclass
class ReporterCounters:
    total: int
    completed: int = 0
    succeeded: int = 0
    failed: int = 0
    results: int = 0
    status: str = ""


class RateColumn(ProgressColumn):
    """Requests per second, rendered as "X.X req/s"."""

    def render(self, task: Task) -> Text:
        speed = task.finished_speed or task.speed
        if speed is None:
            return Text("", style="progress.percentage")
        return Text(f"{speed:.1f} req/s", style="progress.percentage")


class ProgressReporter:
    """Render driver progress and maintain counters for CLI feedback."""

    def __init__(self, enabled: bool = True, console: Console | None = None) -> None:
        self.enabled = enabled
        self._console = console
        self._progress: Progress | None = None
        self._task_id: TaskID | None = None
        self.state: ReporterCounters | None = None
        self._label = "lead search"

    def set_label(self, label: str) -> None:
        self._label = label
        if self._progress is not None and self._task_id is not None:
            self._progress.update(self._task_id, label=label)

    def start(self, total: int) -> None:
        self.state = ReporterCounters(total=total)
        if not self.enabled:
            return
        if self._console is None:
            self._console = Console()
        if not self._console.is_terminal:
            # non-interactive output: stay silent
            self.enabled = False
            return
        self._progress = Progress(
            SpinnerColumn(style="cyan"),
            TextColumn("[bold blue]{task.fields[label]:<14}", justify="left"),
            BarColumn(bar_width=None, complete_style="green", finished_style="green"),
            TaskProgressColumn(show_speed=False),
            TimeElapsedColumn(),
            RateColumn(),
            TextColumn("[green]✓{task.fields[succeeded]:>3}", justify="right"),
            TextColumn("[red]✗{task.fields[failed]:>3}", justify="right"),
            TextColumn("[cyan]■{task.fields[results]:>5}", justify="right"),
            TextColumn("[dim]{task.fields[status]}", justify="left"),
            refresh_per_second=12,
            expand=True,
            transient=True,
            console=self._console,
        )
        try:
            self._progress.start()
        except LiveError:
            self.enabled = False
            self._progress = None
            return
        self._task_id = self._progress.add_task(
            "search",
            total=total,
            label=self._label,
            succeeded=0,
            failed=0,
            results=0,
            status="Starting search...",
        )

    def update(self, progress: ProgressState) -> None:
        """Mirror the driver's progress state (completed counter and status)."""

        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before update")
        self.state.completed = progress.completed
        self.state.status = progress.status
        self._refresh(completed=progress.completed)

    def record_success(self, result_count: int) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before record_success")
        self.state.succeeded += 1
        self.state.results += result_count
        self._refresh()

    def record_failure(self) -> None:
        if not self.state:
            raise RuntimeError("ProgressReporter.start must be called before record_failure")
        self.state.failed += 1
        self._refresh()

    def _refresh(self, **extra: object) -> None:
        if self._progress is None or self._task_id is None or self.state is None:
            return
        status = self.state.status
        if len(status) > 60:
            status = status[:57] + "..."
        self._progress.update(
            self._task_id,
            succeeded=self.state.succeeded,
            failed=self.state.failed,
            results=self.state.results,
            status=status,
            **extra,
        )

    def close(self) -> None:
        if self._progress is not None:
            self._progress.stop()
            self._progress = None
        self._task_id = None

    def summary(self) -> dict[str, int]:
        if not self.state:
            return {"completed": 0, "succeeded": 0, "failed": 0, "results": 0}
        return {
            "completed": self.state.completed,
            "succeeded": self.state.succeeded,
            "failed": self.state.failed,
            "results": self.state.results,
        }


__all__ = ["ProgressReporter", "RateColumn", "ReporterCounters"]
