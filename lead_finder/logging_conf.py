"""Logging configuration built around structlog JSON logging."""

from __future__ import annotations

import logging
import logging.config
import os
import re
from pathlib import Path
from typing import Iterable

import structlog

from .config.loader import HOME_ENV

_LOGGING_INITIALISED = False


def _default_log_dir() -> Path:
    env_root = os.environ.get(HOME_ENV)
    root = Path(env_root).expanduser() if env_root else Path.cwd()
    return root.resolve() / "logs"


def _slug(label: str) -> str:
    return re.sub(r"[^0-9A-Za-z_-]+", "_", label.strip()) or "run"


def configure_logging(verbose: bool = False) -> structlog.BoundLogger:
    """Configure structlog + stdlib handlers and return application logger."""

    global _LOGGING_INITIALISED
    log_dir = _default_log_dir()
    error_log = log_dir / "error.log"
    app_log = log_dir / "lead_finder.log"
    runs_dir = log_dir / "runs"
    runs_dir.mkdir(parents=True, exist_ok=True)
    error_log.touch(exist_ok=True)
    app_log.touch(exist_ok=True)

    if not _LOGGING_INITIALISED:
        level = "DEBUG" if verbose else "INFO"
        logging.config.dictConfig(
            {
                "version": 1,
                "disable_existing_loggers": False,
                "formatters": {
                    "plain": {
                        "()": "pythonjsonlogger.json.JsonFormatter",
                        "fmt": "%(asctime)s %(levelname)s %(name)s %(message)s",
                    }
                },
                "handlers": {
                    "console": {
                        "class": "logging.StreamHandler",
                        "level": level if verbose else "WARNING",
                        "formatter": "plain",
                    },
                    "app_file": {
                        "class": "logging.FileHandler",
                        "level": "INFO",
                        "filename": str(app_log),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                    "error_file": {
                        "class": "logging.FileHandler",
                        "level": "ERROR",
                        "filename": str(error_log),
                        "formatter": "plain",
                        "encoding": "utf-8",
                    },
                },
                "loggers": {
                    "lead_finder": {
                        "handlers": ["console", "app_file", "error_file"],
                        "level": level,
                        "propagate": False,
                    },
                },
            }
        )

        structlog.configure(
            processors=[
                structlog.contextvars.merge_contextvars,
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.stdlib.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
            ],
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_INITIALISED = True
    return structlog.get_logger("lead_finder")


def run_logger(label: str, verbose: bool = False) -> structlog.BoundLogger:
    """Return a logger bound to one search run, with its own log file."""

    configure_logging(verbose)
    name = _slug(label)
    run_log_path = _default_log_dir() / "runs" / f"{name}.log"
    run_log_path.parent.mkdir(parents=True, exist_ok=True)

    logger_name = f"lead_finder.run.{name}"
    py_logger = logging.getLogger(logger_name)
    if not any(
        isinstance(handler, logging.FileHandler) and handler.baseFilename == str(run_log_path)
        for handler in py_logger.handlers
    ):
        file_handler = logging.FileHandler(run_log_path, encoding="utf-8")
        global_logger = logging.getLogger("lead_finder")
        if global_logger.handlers:
            file_handler.setFormatter(global_logger.handlers[0].formatter)
        file_handler.setLevel(logging.INFO)
        py_logger.addHandler(file_handler)

    return structlog.get_logger(logger_name).bind(run=label)


def close_run_logger(label: str) -> None:
    """Detach and close the file handlers opened by ``run_logger`` for ``label``."""

    py_logger = logging.getLogger(f"lead_finder.run.{_slug(label)}")
    for handler in list(py_logger.handlers):
        py_logger.removeHandler(handler)
        handler.close()


def tail_log(path: Path, line_count: int = 100) -> list[str]:
    """Return the last N lines from a log file."""

    if not path.exists():
        return []
    with path.open("r", encoding="utf-8", errors="ignore") as stream:
        lines = stream.readlines()
    return lines[-line_count:]


def available_run_logs() -> Iterable[Path]:
    """Yield available per-run log file paths."""

    runs_dir = _default_log_dir() / "runs"
    if not runs_dir.exists():
        return []
    return sorted(p for p in runs_dir.glob("*.log"))


def log_path(run: str | None = None) -> Path:
    base_dir = _default_log_dir()
    if run:
        return base_dir / "runs" / f"{_slug(run)}.log"
    return base_dir / "lead_finder.log"


__all__ = [
    "available_run_logs",
    "close_run_logger",
    "configure_logging",
    "log_path",
    "run_logger",
    "tail_log",
]
