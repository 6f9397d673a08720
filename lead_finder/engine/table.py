"""Location table parsing from uploaded comma-delimited text."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Mapping, Sequence

from ..errors import ParseError
from ..models import SearchLocation

LocationRow = Mapping[str, str]


@dataclass(frozen=True, slots=True)
class ColumnMapping:
    """User-selected columns for city, state and country."""

    city: str = ""
    state: str = ""
    country: str = ""


@dataclass(frozen=True, slots=True)
class LocationTable:
    headers: tuple[str, ...]
    rows: tuple[LocationRow, ...] = field(default=())

    def __len__(self) -> int:
        return len(self.rows)

    def has_column(self, name: str | None) -> bool:
        return bool(name) and name in self.headers

    @staticmethod
    def column_values(
        row: LocationRow, city: str, state: str | None, country: str
    ) -> SearchLocation:
        """Read the stripped location triple of ``row``; missing columns read as empty."""

        return SearchLocation(
            city=(row.get(city) or "").strip(),
            state=(row.get(state) or "").strip() if state else "",
            country=(row.get(country) or "").strip(),
        )

    def locations(self, mapping: ColumnMapping) -> list[SearchLocation]:
        return [
            self.column_values(row, mapping.city, mapping.state, mapping.country)
            for row in self.rows
        ]


def _clean(value: str) -> str:
    return value.replace('"', "").strip()


def parse_table(raw_text: str, *, quoted: bool = False) -> LocationTable:
    """Parse delimited text into a table; the first line holds the headers.

    The default mode splits on bare commas and does not understand quoting,
    so a field containing a comma misaligns its row. Rows whose field count
    differs from the header count are dropped without notice. ``quoted=True``
    switches to a quote-aware reader over the whole text, so quoted fields
    may hold commas and line breaks; the same row-dropping rule applies.
    """

    text = raw_text.strip()
    if not text:
        raise ParseError("File is empty or could not be read.")
    if quoted:
        try:
            split_rows: list[list[str]] = list(csv.reader(io.StringIO(text)))
        except csv.Error as exc:
            raise ParseError(f"Malformed quoted CSV: {exc}") from exc
    else:
        split_rows = [line.split(",") for line in text.split("\n")]
    if not split_rows:
        raise ParseError("File is empty or could not be read.")

    headers = tuple(_clean(value) for value in split_rows[0])
    rows: list[LocationRow] = []
    for values in split_rows[1:]:
        if len(values) != len(headers):
            continue
        rows.append(MappingProxyType({h: _clean(v) for h, v in zip(headers, values)}))
    return LocationTable(headers=headers, rows=tuple(rows))


def load_table(path: Path, *, quoted: bool = False) -> LocationTable:
    try:
        raw = path.read_bytes()
        text = raw.decode("utf-8-sig")
    except (OSError, UnicodeDecodeError) as exc:
        raise ParseError(f"Failed to read {path}: {exc}") from exc
    return parse_table(text, quoted=quoted)


def suggest_columns(headers: Sequence[str]) -> ColumnMapping:
    """Pick city/state/country columns by name; city falls back to the first header."""

    if not headers:
        return ColumnMapping()
    lowered = [header.lower() for header in headers]

    def _find(name: str) -> str:
        return headers[lowered.index(name)] if name in lowered else ""

    return ColumnMapping(
        city=_find("city") or headers[0],
        state=_find("state"),
        country=_find("country"),
    )


__all__ = [
    "ColumnMapping",
    "LocationRow",
    "LocationTable",
    "load_table",
    "parse_table",
    "suggest_columns",
]
