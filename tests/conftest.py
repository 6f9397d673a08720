"""Pytest configuration providing shared fixtures."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, Sequence

import pytest

from lead_finder.config import ConfigLocator, ConfigRepository, GlobalConfig
from lead_finder.engine import LocationTable, parse_table
from lead_finder.errors import ApiError
from lead_finder.models import BusinessResult, SearchSpec


class StubSearchClient:
    """Records calls; fails on the listed 1-based call numbers."""

    def __init__(
        self,
        results: dict[str, list[BusinessResult]] | None = None,
        fail_on: Iterable[int] = (),
        error: Exception | None = None,
    ) -> None:
        self.results = results or {}
        self.fail_on = set(fail_on)
        self.error = error
        self.calls: list[tuple[str, str, int, str]] = []
        self.closed = False

    def search(self, credential: str, query: str, limit: int, country_code: str) -> list[BusinessResult]:
        self.calls.append((credential, query, limit, country_code))
        if len(self.calls) in self.fail_on:
            raise self.error or ApiError(500, "Internal Server Error", "boom")
        if query in self.results:
            return self.results[query]
        return [BusinessResult(name=f"{query} #1", rating=4.5, review_count=10)]

    def close(self) -> None:
        self.closed = True


class RecordingSleep:
    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.calls.append(seconds)


@pytest.fixture
def stub_client() -> Callable[..., StubSearchClient]:
    return StubSearchClient


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def sample_global_config(tmp_path: Path) -> GlobalConfig:
    return GlobalConfig(outputs_dir=tmp_path / "outputs", pacing_delay=0.1)


@pytest.fixture
def make_table() -> Callable[..., LocationTable]:
    def _builder(rows: Sequence[dict[str, str]], headers: Sequence[str] = ("city", "state", "country")) -> LocationTable:
        lines = [",".join(headers)]
        lines.extend(",".join(row.get(h, "") for h in headers) for row in rows)
        return parse_table("\n".join(lines))

    return _builder


@pytest.fixture
def make_spec() -> Callable[..., SearchSpec]:
    def _builder(terms: Sequence[str], **overrides: Any) -> SearchSpec:
        base: dict[str, Any] = {
            "terms": list(terms),
            "city_column": "city",
            "state_column": "state",
            "country_column": "country",
        }
        base.update(overrides)
        return SearchSpec(**base)

    return _builder


@pytest.fixture
def temp_config_repository(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterable[ConfigRepository]:
    monkeypatch.setenv("LEAD_FINDER_HOME", str(tmp_path))
    locator = ConfigLocator(project_root=tmp_path)
    repository = ConfigRepository(locator)
    yield repository


@pytest.fixture
def locations_csv(tmp_path: Path) -> Path:
    path = tmp_path / "locations.csv"
    path.write_text(
        "City,State,Country\nAustin,TX,US\n,CA,US\nToronto,,CA\n",
        encoding="utf-8",
    )
    return path
