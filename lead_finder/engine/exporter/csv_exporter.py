"""Delimited-text exporters for tagged search results."""

from __future__ import annotations

import json
from typing import Any, Sequence

from ...models import ResultRecord
from .base import BaseExporter

CSV_HEADERS = (
    "Search Term",
    "Search City",
    "Search State",
    "Search Country",
    "Name",
    "Phone Number",
    "Full Address",
    "Website",
    "Rating",
    "Review Count",
    "Price Level",
    "Types",
    "Latitude",
    "Longitude",
    "Place Link",
)


def _text(value: Any) -> str:
    text = "" if value is None else str(value)
    text = " ".join(text.splitlines())
    return '"' + text.replace('"', '""') + '"'


def _number(value: Any) -> str:
    # zero and missing values both render empty
    return str(value) if value else ""


class CsvLeadExporter(BaseExporter):
    """Fixed 15-column CSV; text quoted, numbers bare, no trailing newline."""

    filename = "business_leads.csv"
    media_type = "text/csv;charset=utf-8"

    def render(self, records: Sequence[ResultRecord]) -> str:
        lines = [",".join(CSV_HEADERS)]
        for record in records:
            lines.append(",".join(self.row(record)))
        return "\n".join(lines)

    @staticmethod
    def row(record: ResultRecord) -> list[str]:
        location = record.location
        return [
            _text(record.search_term),
            _text(location.city),
            _text(location.state),
            _text(location.country),
            _text(record.name),
            _text(record.phone_number),
            _text(record.full_address),
            _text(record.website),
            _number(record.rating),
            _number(record.review_count),
            _text(record.price_level),
            _text("; ".join(record.types)),
            _number(record.latitude),
            _number(record.longitude),
            _text(record.place_link),
        ]


class JsonLinesLeadExporter(BaseExporter):
    """One JSON object per tagged record."""

    filename = "business_leads.jsonl"
    media_type = "application/x-ndjson"

    def render(self, records: Sequence[ResultRecord]) -> str:
        return "\n".join(
            json.dumps(record.model_dump(mode="json"), ensure_ascii=False) for record in records
        )


def build_exporter(fmt: str) -> BaseExporter:
    if fmt == "csv":
        return CsvLeadExporter()
    if fmt == "json":
        return JsonLinesLeadExporter()
    raise ValueError(f"Unsupported output format: {fmt}")


__all__ = ["CSV_HEADERS", "CsvLeadExporter", "JsonLinesLeadExporter", "build_exporter"]
