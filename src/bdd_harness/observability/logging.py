"""Structured logging for harness runs.

Events go to stdout (console or JSON) and, optionally, to a JSON-lines run
log file that CI jobs can keep next to the report. Every event emitted
while a scenario is in flight carries a ``scenario`` key.

Usage::

    from bdd_harness.observability.logging import configure_logging, get_logger

    configure_logging(log_file=Path('logs/run.jsonl'))  # once per session
    logger = get_logger(__name__)
    logger.info('browser_launched', browser='chromium')

Environment: ``LOG_LEVEL`` (default INFO), ``LOG_FORMAT`` (``json`` or
``console``, default console), ``HARNESS_LOG_FILE``.
"""

from __future__ import annotations

import logging
import os
import sys
from contextvars import ContextVar
from pathlib import Path

import structlog

# Name of the scenario currently being executed on this worker.
scenario_ctx: ContextVar[str | None] = ContextVar('scenario', default=None)

# Libraries whose INFO chatter drowns out harness events.
_NOISY_LOGGERS = ('httpx', 'httpcore', 'sqlalchemy.engine')

_configured = False


def _add_scenario(
    logger: logging.Logger,
    method_name: str,
    event_dict: dict,
) -> dict:
    """Tag the event with the in-flight scenario, unless already tagged."""
    name = scenario_ctx.get()
    if name is not None:
        event_dict.setdefault('scenario', name)
    return event_dict


def configure_logging(
    *,
    level: str | None = None,
    json_output: bool | None = None,
    log_file: Path | None = None,
) -> None:
    """Route structlog through stdlib logging. Only the first call counts.

    Args:
        level: Level name; defaults to ``LOG_LEVEL`` or INFO.
        json_output: JSON lines on stdout instead of the console
            renderer; defaults to ``LOG_FORMAT == 'json'``.
        log_file: Also append JSON lines to this file; defaults to
            ``HARNESS_LOG_FILE`` when set.
    """
    global _configured
    if _configured:
        return
    _configured = True

    level = (level or os.environ.get('LOG_LEVEL') or 'INFO').upper()
    if json_output is None:
        json_output = os.environ.get('LOG_FORMAT', 'console') == 'json'
    if log_file is None and os.environ.get('HARNESS_LOG_FILE'):
        log_file = Path(os.environ['HARNESS_LOG_FILE'])

    structlog.configure(
        processors=[
            *_pre_chain(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handlers: list[logging.Handler] = [
        _handler(logging.StreamHandler(sys.stdout), json_output),
    ]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(_handler(logging.FileHandler(log_file, encoding='utf-8'), True))

    root = logging.getLogger()
    root.handlers[:] = handlers
    root.setLevel(getattr(logging, level, logging.INFO))

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger bound to the given name."""
    return structlog.get_logger(name)


# ── Helpers ────────────────────────────────────────────────────────


def _pre_chain() -> list:
    return [
        structlog.contextvars.merge_contextvars,
        _add_scenario,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt='iso'),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def _handler(handler: logging.Handler, json_output: bool) -> logging.Handler:
    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
            foreign_pre_chain=_pre_chain(),
        ),
    )
    return handler
