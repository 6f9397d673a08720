"""Domain models: search results, search specification, tasks, progress and run events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import TaskError

DEFAULT_MAX_RESULTS = 500


class BusinessResult(BaseModel):
    """One business record as returned by the search API."""

    model_config = ConfigDict(extra="allow", frozen=True)

    business_id: str | None = None
    name: str | None = None
    phone_number: str | None = None
    full_address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    review_count: int | None = None
    rating: float | None = None
    website: str | None = None
    place_id: str | None = None
    place_link: str | None = None
    types: list[str] = Field(default_factory=list)
    price_level: str | None = None
    city: str | None = None
    state: str | None = None
    description: list[str | None] | None = None

    @field_validator(
        "business_id",
        "name",
        "phone_number",
        "full_address",
        "website",
        "place_id",
        "place_link",
        "city",
        "state",
        mode="before",
    )
    @classmethod
    def _coerce_text(cls, value: Any) -> Any:
        if value is None or isinstance(value, str):
            return value
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _coerce_description(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [value]
        return value

    @field_validator("types", mode="before")
    @classmethod
    def _coerce_types(cls, value: Any) -> list[str]:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return [str(item) for item in value]

    @field_validator("price_level", mode="before")
    @classmethod
    def _coerce_price_level(cls, value: Any) -> str | None:
        if value is None or value == "":
            return None
        return str(value)


class SearchLocation(BaseModel):
    """City/state/country triple a task was issued for."""

    model_config = ConfigDict(frozen=True)

    city: str
    state: str = ""
    country: str

    @property
    def label(self) -> str:
        return ", ".join(part for part in (self.city, self.state) if part)


class ResultRecord(BusinessResult):
    """Business result tagged with the term and location that produced it."""

    search_term: str
    location: SearchLocation

    @classmethod
    def tag(cls, result: BusinessResult, term: str, location: SearchLocation) -> "ResultRecord":
        payload = result.model_dump()
        payload.update(search_term=term, location=location)
        return cls.model_validate(payload)


class SearchSpec(BaseModel):
    """Search terms plus the column mapping applied to the location table."""

    terms: list[str] = Field(default_factory=list)
    city_column: str = ""
    state_column: str | None = None
    country_column: str = ""
    max_results: int = DEFAULT_MAX_RESULTS

    @field_validator("terms")
    @classmethod
    def _validate_terms(cls, value: list[str]) -> list[str]:
        seen: set[str] = set()
        for term in value:
            if not term.strip():
                raise ValueError("Search terms must not be empty")
            if term in seen:
                raise ValueError(f"Duplicate search term: {term}")
            seen.add(term)
        return value

    @field_validator("max_results")
    @classmethod
    def _validate_max_results(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_results must be >= 1")
        return value

    def with_terms(self, *terms: str) -> "SearchSpec":
        """Return a copy with new terms appended; blanks and duplicates are ignored."""

        merged = list(self.terms)
        for term in terms:
            cleaned = term.strip()
            if cleaned and cleaned not in merged:
                merged.append(cleaned)
        return self.model_copy(update={"terms": merged})

    def without_term(self, term: str) -> "SearchSpec":
        return self.model_copy(update={"terms": [t for t in self.terms if t != term]})


@dataclass(frozen=True, slots=True)
class QueryTask:
    """A single (location row, term) pair mapped to one request."""

    index: int
    row_index: int
    term: str
    location: SearchLocation

    @property
    def query(self) -> str:
        return f"{self.term} in {self.location.label}"

    @property
    def country_code(self) -> str:
        return self.location.country


@dataclass(frozen=True, slots=True)
class ProgressState:
    completed: int
    total: int
    status: str

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(self.completed / self.total, 1.0)


@dataclass(frozen=True, slots=True)
class RunSummary:
    total: int = 0
    issued: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped_rows: int = 0
    result_count: int = 0


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    progress: ProgressState
    task: QueryTask | None = None


@dataclass(frozen=True, slots=True)
class ResultsAppended:
    task: QueryTask
    records: tuple[ResultRecord, ...]
    accumulated: int


@dataclass(frozen=True, slots=True)
class TaskFailed:
    task: QueryTask
    error: TaskError

    @property
    def message(self) -> str:
        return str(self.error)


@dataclass(frozen=True, slots=True)
class RunFinished:
    status: Literal["complete", "cancelled"]
    progress: ProgressState
    summary: RunSummary = field(default_factory=RunSummary)


RunEvent = Union[ProgressUpdate, ResultsAppended, TaskFailed, RunFinished]


__all__ = [
    "DEFAULT_MAX_RESULTS",
    "BusinessResult",
    "ProgressState",
    "ProgressUpdate",
    "QueryTask",
    "ResultRecord",
    "ResultsAppended",
    "RunEvent",
    "RunFinished",
    "RunSummary",
    "SearchLocation",
    "SearchSpec",
    "TaskFailed",
]
