# src/wfarchive/core/logging.py
"""Log output for wfarchive.

Archive and retention code logs through structlog bound loggers; SQLAlchemy
and other libraries log through stdlib ``logging``. Both end up on a single
stdout handler whose ``ProcessorFormatter`` renders every record the same
way, as JSON lines or as plain console text.

What gets rendered is decided by ``LoggingSettings`` from the settings file,
optionally overridden from the command line (``--verbose`` forces DEBUG,
``--json-logs`` forces JSON).
"""

import logging
import sys
from dataclasses import dataclass
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

from wfarchive.core.config import LoggingSettings

# Statement and pool chatter; only surfaced through DatabaseSettings.echo
_SQLALCHEMY_LOGGER = "sqlalchemy"

_PRE_CHAIN: tuple[Any, ...] = (
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.stdlib.add_logger_name,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
    structlog.stdlib.PositionalArgumentsFormatter(),
    structlog.processors.StackInfoRenderer(),
)


@dataclass(frozen=True, slots=True)
class LogOverrides:
    """Command-line switches that take precedence over ``LoggingSettings``."""

    verbose: bool = False
    json_logs: bool = False

    def apply(self, settings: LoggingSettings) -> LoggingSettings:
        if not (self.verbose or self.json_logs):
            return settings
        return settings.model_copy(
            update={
                "level": "DEBUG" if self.verbose else settings.level,
                "json_output": self.json_logs or settings.json_output,
            }
        )


def _render_chain(json_output: bool) -> list[Any]:
    chain: list[Any] = [ProcessorFormatter.remove_processors_meta]
    if json_output:
        chain += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=False))
    return chain


def configure_logging(
    settings: LoggingSettings | None = None,
    overrides: LogOverrides | None = None,
    *,
    stream: TextIO | None = None,
) -> LoggingSettings:
    """Route structlog and stdlib records to one handler.

    Safe to call repeatedly; each call replaces the root handler, which is
    how the CLI moves from its pre-settings defaults to the loaded file.

    Args:
        settings: Level and output format; defaults to ``LoggingSettings()``
        overrides: Command-line switches applied on top of ``settings``
        stream: Destination; defaults to ``sys.stdout`` at call time

    Returns:
        The effective settings after overrides.
    """
    effective = (overrides or LogOverrides()).apply(settings or LoggingSettings())
    level = logging.getLevelName(effective.level)

    structlog.configure(
        processors=[*_PRE_CHAIN, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfigured per command and per test
        cache_logger_on_first_use=False,
    )

    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(ProcessorFormatter(processors=_render_chain(effective.json_output), foreign_pre_chain=list(_PRE_CHAIN)))

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    # --verbose means archive debug output, not every SQL statement
    logging.getLogger(_SQLALCHEMY_LOGGER).setLevel(max(level, logging.WARNING))
    return effective


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Bound logger for a module, normally called with ``__name__``."""
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger
