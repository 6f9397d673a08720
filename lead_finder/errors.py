"""Error taxonomy shared by the table parser, search client and batch driver."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:  # pragma: no cover
    from .models import ProgressState, ResultRecord


class LeadFinderError(Exception):
    """Base class for all errors raised by lead_finder."""


class ValidationError(LeadFinderError):
    """Run preconditions not met; no request has been issued."""


class ParseError(LeadFinderError):
    """Uploaded location file could not be turned into a table."""


class SearchClientError(LeadFinderError):
    """A single search request failed (transport, status or payload)."""


class ApiError(SearchClientError):
    """Search API answered with a non-successful response."""

    def __init__(
        self,
        status_code: int | None,
        reason: str = "",
        message: str | None = None,
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        self.message = message or "Unknown error"
        if status_code is None:
            text = f"API Error: {self.message}"
        else:
            text = f"API Error: {status_code} {reason} - {self.message}".replace("  ", " ")
        super().__init__(text)


@dataclass(frozen=True, slots=True)
class TaskError:
    """Per-task failure report; the run continues after it."""

    index: int
    query: str
    message: str

    def __str__(self) -> str:
        return (
            f"An error occurred on request {self.index}: {self.message}. "
            "Moving to next request."
        )


class FatalRunError(LeadFinderError):
    """Driver control flow failed; remaining tasks are abandoned."""

    def __init__(
        self,
        message: str,
        results: Sequence["ResultRecord"] = (),
        progress: "ProgressState | None" = None,
    ) -> None:
        super().__init__(message)
        self.results = list(results)
        self.progress = progress


__all__ = [
    "ApiError",
    "FatalRunError",
    "LeadFinderError",
    "ParseError",
    "SearchClientError",
    "TaskError",
    "ValidationError",
]
