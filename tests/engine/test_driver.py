from __future__ import annotations

from threading import Event

import pytest

from lead_finder.engine import BatchQueryDriver
from lead_finder.errors import FatalRunError, ValidationError
from lead_finder.models import (
    BusinessResult,
    ProgressUpdate,
    ResultsAppended,
    RunFinished,
    TaskFailed,
)


def _drain(events):
    return list(events)


def test_single_row_two_terms_issues_two_queries(stub_client, recording_sleep, make_table, make_spec) -> None:
    client = stub_client()
    driver = BatchQueryDriver(client, pacing_delay=0.1, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}])

    events = _drain(driver.run("key", make_spec(["bakery", "gym"]), table))

    assert client.calls == [
        ("key", "bakery in Austin, TX", 500, "US"),
        ("key", "gym in Austin, TX", 500, "US"),
    ]
    finished = events[-1]
    assert isinstance(finished, RunFinished)
    assert finished.status == "complete"
    assert finished.progress.status == "Search complete!"
    assert finished.summary.issued == 2
    assert [r.search_term for r in driver.results] == ["bakery", "gym"]
    assert driver.results[0].location.city == "Austin"
    assert driver.results[0].location.state == "TX"
    assert driver.results[0].location.country == "US"


def test_progress_counter_increments_once_per_task(stub_client, recording_sleep, make_table, make_spec) -> None:
    driver = BatchQueryDriver(stub_client(), sleep=recording_sleep)
    table = make_table(
        [
            {"city": "Austin", "state": "TX", "country": "US"},
            {"city": "Denver", "state": "CO", "country": "US"},
        ]
    )

    events = _drain(driver.run("key", make_spec(["bakery", "gym"]), table))
    updates = [e.progress for e in events if isinstance(e, ProgressUpdate)]

    assert updates[0].completed == 0
    assert updates[0].total == 4
    assert [p.completed for p in updates[1:]] == [1, 2, 3, 4]
    assert updates[1].status == 'Searching for "bakery" in Austin, TX... (1/4)'
    assert all(p.completed <= p.total for p in updates)


def test_results_grouped_by_row_then_term(recording_sleep, stub_client, make_table, make_spec) -> None:
    driver = BatchQueryDriver(stub_client(), sleep=recording_sleep)
    table = make_table(
        [
            {"city": "Austin", "state": "TX", "country": "US"},
            {"city": "Denver", "state": "CO", "country": "US"},
        ]
    )

    _drain(driver.run("key", make_spec(["gym", "bakery"]), table))

    assert [(r.location.city, r.search_term) for r in driver.results] == [
        ("Austin", "gym"),
        ("Austin", "bakery"),
        ("Denver", "gym"),
        ("Denver", "bakery"),
    ]


def test_row_without_city_is_skipped_but_counted_in_total(stub_client, recording_sleep, make_table, make_spec) -> None:
    client = stub_client()
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table(
        [
            {"city": "", "state": "CA", "country": "US"},
            {"city": "Austin", "state": "TX", "country": "US"},
            {"city": "Paris", "state": "", "country": ""},
        ]
    )

    events = _drain(driver.run("key", make_spec(["bakery"]), table))
    finished = events[-1]

    assert len(client.calls) == 1
    assert finished.summary.total == 3
    assert finished.summary.issued == 1
    assert finished.summary.skipped_rows == 2
    updates = [e.progress for e in events if isinstance(e, ProgressUpdate) and e.task is not None]
    assert [(p.completed, p.total) for p in updates] == [(1, 3)]


def test_empty_state_omits_separator(stub_client, recording_sleep, make_table, make_spec) -> None:
    client = stub_client()
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table([{"city": "Toronto", "state": "", "country": "CA"}])

    _drain(driver.run("key", make_spec(["gym"]), table))
    _drain(driver.run("key", make_spec(["gym"], state_column=None), table))

    assert [call[1] for call in client.calls] == ["gym in Toronto", "gym in Toronto"]


def test_failed_task_does_not_stop_run(stub_client, recording_sleep, make_table, make_spec) -> None:
    client = stub_client(fail_on=[1])
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}])

    events = _drain(driver.run("key", make_spec(["bakery", "gym"]), table))

    failures = [e for e in events if isinstance(e, TaskFailed)]
    assert len(failures) == 1
    assert failures[0].error.index == 1
    assert "boom" in failures[0].message
    assert "request 1" in failures[0].message
    assert len(client.calls) == 2
    assert [r.search_term for r in driver.results] == ["gym"]
    assert events[-1].status == "complete"
    assert events[-1].summary.failed == 1


def test_all_tasks_failing_still_completes(stub_client, recording_sleep, make_table, make_spec) -> None:
    driver = BatchQueryDriver(stub_client(fail_on=[1, 2]), sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}])

    events = _drain(driver.run("key", make_spec(["bakery", "gym"]), table))

    assert events[-1].status == "complete"
    assert driver.results == []
    assert events[-1].summary.result_count == 0


def test_results_are_published_incrementally(stub_client, recording_sleep, make_table, make_spec) -> None:
    client = stub_client(
        results={
            "bakery in Austin, TX": [BusinessResult(name="A"), BusinessResult(name="B")],
            "gym in Austin, TX": [BusinessResult(name="C")],
        }
    )
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}])

    appended = [
        e for e in driver.run("key", make_spec(["bakery", "gym"]), table) if isinstance(e, ResultsAppended)
    ]

    assert [len(e.records) for e in appended] == [2, 1]
    assert [e.accumulated for e in appended] == [2, 3]


def test_pacing_delay_after_every_task(stub_client, recording_sleep, make_table, make_spec) -> None:
    driver = BatchQueryDriver(stub_client(fail_on=[2]), pacing_delay=0.1, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}])

    _drain(driver.run("key", make_spec(["bakery", "gym", "cafe"]), table))

    assert recording_sleep.calls == [0.1, 0.1, 0.1]


@pytest.mark.parametrize(
    ("credential", "terms", "rows", "overrides", "message"),
    [
        ("", ["gym"], 1, {}, "RapidAPI Key is required."),
        ("key", [], 1, {}, "At least one search term is required."),
        ("key", ["gym"], 0, {}, "A CSV file with location data is required."),
        ("key", ["gym"], 1, {"city_column": ""}, "Please map the City column."),
        ("key", ["gym"], 1, {"city_column": "town"}, "City column 'town'"),
        ("key", ["gym"], 1, {"country_column": ""}, "Please map the Country column."),
        ("key", ["gym"], 1, {"country_column": "nation"}, "Country column 'nation'"),
    ],
)
def test_validation_fails_before_any_request(
    stub_client, recording_sleep, make_table, make_spec, credential, terms, rows, overrides, message
) -> None:
    client = stub_client()
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}] * rows)

    with pytest.raises(ValidationError) as excinfo:
        driver.run(credential, make_spec(terms, **overrides), table)

    assert message in str(excinfo.value)
    assert client.calls == []
    assert recording_sleep.calls == []


def test_missing_table_is_validation_error(stub_client, make_spec) -> None:
    driver = BatchQueryDriver(stub_client())
    with pytest.raises(ValidationError):
        driver.run("key", make_spec(["gym"]), None)


def test_state_column_is_optional(stub_client, recording_sleep, make_table, make_spec) -> None:
    client = stub_client()
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "country": "US"}], headers=("city", "country"))

    events = _drain(driver.run("key", make_spec(["gym"], state_column=None), table))

    assert events[-1].status == "complete"
    assert client.calls[0][1] == "gym in Austin"


def test_cancellation_stops_at_task_boundary(stub_client, recording_sleep, make_table, make_spec) -> None:
    client = stub_client()
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}])
    cancel = Event()

    events = []
    for event in driver.run("key", make_spec(["bakery", "gym", "cafe"]), table, cancel=cancel):
        events.append(event)
        if isinstance(event, ResultsAppended):
            cancel.set()

    assert len(client.calls) == 1
    assert events[-1].status == "cancelled"
    assert events[-1].summary.issued == 1
    assert len(driver.results) == 1


def test_unexpected_error_aborts_run_and_keeps_partial_results(
    stub_client, recording_sleep, make_table, make_spec
) -> None:
    client = stub_client(fail_on=[2], error=RuntimeError("driver bug"))
    driver = BatchQueryDriver(client, sleep=recording_sleep)
    table = make_table([{"city": "Austin", "state": "TX", "country": "US"}])

    events = []
    with pytest.raises(FatalRunError) as excinfo:
        for event in driver.run("key", make_spec(["bakery", "gym", "cafe"]), table):
            events.append(event)

    assert len(client.calls) == 2
    assert not any(isinstance(e, RunFinished) for e in events)
    assert [r.search_term for r in excinfo.value.results] == ["bakery"]
    assert excinfo.value.progress.status == "Search failed."
    assert isinstance(excinfo.value.__cause__, RuntimeError)
    assert len(driver.results) == 1
