"""Exporter Service Provider Interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import structlog

from ...models import ResultRecord, SearchLocation


@dataclass(frozen=True, slots=True)
class ExportPayload:
    """Rendered export: bytes plus the suggested download name."""

    filename: str
    content: bytes
    media_type: str


class BaseExporter(ABC):
    """Uniform exporter contract enabling plug-and-play outputs."""

    filename: str = "business_leads"
    media_type: str = "application/octet-stream"

    def __init__(self, logger: structlog.BoundLogger | None = None) -> None:
        self.logger = logger or structlog.get_logger("lead_finder.exporter")

    def export(
        self,
        records: Sequence[ResultRecord],
        search_terms: Sequence[str] = (),
        locations: Sequence[SearchLocation] = (),
    ) -> ExportPayload | None:
        """Render ``records``; returns ``None`` when there is nothing to export.

        Each record already carries its term and location, so ``search_terms``
        and ``locations`` are only logged alongside the export.
        """

        if not records:
            self.logger.info("nothing_to_export", message="No results to export.")
            return None
        content = self.render(records)
        self.logger.info(
            "export_rendered",
            filename=self.filename,
            records=len(records),
            terms=len(search_terms),
            locations=len(locations),
        )
        return ExportPayload(
            filename=self.filename,
            content=content.encode("utf-8"),
            media_type=self.media_type,
        )

    @abstractmethod
    def render(self, records: Sequence[ResultRecord]) -> str:
        """Serialise records to text."""

    @staticmethod
    def save(payload: ExportPayload, directory: Path) -> Path:
        directory.mkdir(parents=True, exist_ok=True)
        path = directory / payload.filename
        path.write_bytes(payload.content)
        return path


__all__ = ["BaseExporter", "ExportPayload"]
