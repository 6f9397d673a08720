"""Exporter SPI and implementations."""

from .base import BaseExporter, ExportPayload
from .csv_exporter import CSV_HEADERS, CsvLeadExporter, JsonLinesLeadExporter, build_exporter

__all__ = [
    "BaseExporter",
    "CSV_HEADERS",
    "CsvLeadExporter",
    "ExportPayload",
    "JsonLinesLeadExporter",
    "build_exporter",
]
