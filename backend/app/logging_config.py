"""
Logging setup.

Every console line can carry the pipeline run and step it belongs to. Code
inside a run logs through a RunLogger, which attaches ``run_id`` and ``step``
to the record; RunContextFilter renders them for the formatters:

    2026-10-18 12:00:01 | WARNING  | pipeline.orchestrator  | run=3 step=2 | Process failed

Environment:
    LOG_LEVEL: root level (default INFO)
    LOG_FORMAT: structured | simple
    LOG_LEVEL_PIPELINE, LOG_LEVEL_SUMMARY, LOG_LEVEL_FETCHER: area overrides
"""

import logging
import sys
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from app.config import Settings


# Settings field -> logger names it controls
LEVEL_OVERRIDES: dict[str, tuple[str, ...]] = {
    "log_level_pipeline": (
        "app.services.pipeline",
        "app.services.stages",
        "app.services.session",
    ),
    "log_level_summary": (
        "app.services.summary_generator",
        "app.services.ai_clients",
    ),
    "log_level_fetcher": (
        "app.services.transcript_fetcher",
        "app.services.transcript_processor",
    ),
}

QUIET_LOGGERS = ("httpx", "httpcore", "anthropic", "yt_dlp", "uvicorn.access")

SIMPLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(run_tag)s%(message)s"


class RunLogger(logging.LoggerAdapter):
    """
    Logger bound to one pipeline run.

    Example:
        log = RunLogger(logger, run_id=3)
        log.bind(step=2).warning("Process failed")
    """

    def __init__(self, logger: logging.Logger, **fields: Any):
        super().__init__(logger, fields)

    def bind(self, **fields: Any) -> "RunLogger":
        return RunLogger(self.logger, **{**self.extra, **fields})

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def describe_run(record: logging.LogRecord) -> str:
    """'run=3 step=2' for records logged inside a run, '' otherwise."""
    parts = []
    run_id = getattr(record, "run_id", None)
    step = getattr(record, "step", None)
    if run_id is not None:
        parts.append(f"run={run_id}")
    if step is not None:
        parts.append(f"step={step}")
    return " ".join(parts)


class RunContextFilter(logging.Filter):
    """Sets ``record.run_tag`` so both formats can print the run context."""

    def filter(self, record: logging.LogRecord) -> bool:
        tag = describe_run(record)
        record.run_tag = f"[{tag}] " if tag else ""
        return True


def short_name(name: str) -> str:
    for prefix, replacement in (("app.services.", ""), ("app.api.", "api."), ("app.", "")):
        if name.startswith(prefix):
            return replacement + name[len(prefix):]
    return name


class StructuredFormatter(logging.Formatter):
    """timestamp | level | logger | [run context |] message"""

    def format(self, record: logging.LogRecord) -> str:
        columns = [
            self.formatTime(record, "%Y-%m-%d %H:%M:%S"),
            f"{record.levelname:8}",
            f"{short_name(record.name):22}",
        ]
        tag = describe_run(record)
        if tag:
            columns.append(tag)
        columns.append(record.getMessage())

        line = " | ".join(columns)
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def _parse_level(value: str | None, default: int) -> int:
    if not value:
        return default
    return getattr(logging, value.upper(), default)


def setup_logging(settings: "Settings") -> None:
    """Install the stdout handler and apply level overrides from settings."""
    root_level = _parse_level(settings.log_level, logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.addFilter(RunContextFilter())
    if settings.log_format == "structured":
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(logging.Formatter(SIMPLE_FORMAT))

    logging.basicConfig(level=root_level, handlers=[handler], force=True)

    for field_name, logger_names in LEVEL_OVERRIDES.items():
        override = getattr(settings, field_name, None)
        if override:
            for name in logger_names:
                logging.getLogger(name).setLevel(_parse_level(override, root_level))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
