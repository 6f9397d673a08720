"""Pydantic models used across Lead Finder configuration flow."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from ..models import DEFAULT_MAX_RESULTS


class GlobalConfig(BaseModel):
    """Controls shared by every search run."""

    api_host: str = "maps-data.p.rapidapi.com"
    api_path: str = "/search"
    language: str = "en"
    max_results: int = DEFAULT_MAX_RESULTS
    # seconds waited after every task, success or failure
    pacing_delay: float = 0.1
    request_timeout: float = 30.0
    output_format: Literal["csv", "json"] = "csv"
    enable_progress_bar: bool = True
    outputs_dir: Path = Field(default=Path("data/outputs"))

    @field_validator("outputs_dir", mode="before")
    @classmethod
    def _coerce_dirs(cls, value: Any) -> Path:
        return Path(value)

    @field_validator("api_path")
    @classmethod
    def _normalise_path(cls, value: str) -> str:
        return value if value.startswith("/") else f"/{value}"

    @model_validator(mode="after")
    def _validate_limits(self) -> "GlobalConfig":
        if self.max_results < 1:
            raise ValueError("max_results must be >= 1")
        if self.pacing_delay < 0:
            raise ValueError("pacing_delay must be non-negative")
        if self.request_timeout <= 0:
            raise ValueError("request_timeout must be positive")
        if not self.api_host:
            raise ValueError("api_host cannot be empty")
        return self

    @property
    def search_url(self) -> str:
        return f"https://{self.api_host}{self.api_path}"

    def resolved_outputs_dir(self, base_dir: Path) -> Path:
        if not self.outputs_dir.is_absolute():
            return (base_dir / self.outputs_dir).resolve()
        return self.outputs_dir


__all__ = ["GlobalConfig"]
