"""
structlog setup shared by the CLI and the TUI.

Modules log with key-value events::

    logger = structlog.get_logger()
    logger.info("session_created", handle=handle[:8], profile=profile.name)

``configure_logging()`` decides where those events go.  The CLI writes to
stderr.  ``agentdeck ui`` owns the terminal, so it passes ``log_file`` and the
same pipeline appends to ``<data dir>/agentdeck.log``.  Third-party loggers
that use stdlib ``logging`` are routed through the same processors via
``ProcessorFormatter``.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import structlog

_QUIET_LOGGERS = ("asyncio", "textual")


def _shared_processors() -> list[structlog.types.Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def _open_handler(log_file: Path | str | None) -> tuple[logging.Handler, bool]:
    """Return the output handler and whether it may be coloured."""
    if log_file is None:
        return logging.StreamHandler(sys.stderr), sys.stderr.isatty()
    path = Path(log_file)
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    return logging.FileHandler(path, encoding="utf-8"), False


def _is_ours(handler: logging.Handler) -> bool:
    return isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter)


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = False,
    log_file: Path | str | None = None,
) -> None:
    """
    Route structlog and stdlib logging to stderr, or to *log_file*.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR).  Unknown names
               fall back to INFO.
        json_output: Emit JSON lines instead of ConsoleRenderer output.
        log_file: Append to this file instead of writing to stderr.

    May be called more than once; the previous agentdeck handler is closed
    and replaced.
    """
    shared = _shared_processors()
    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler, colors = _open_handler(log_file)
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=colors)
    )
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared,
        )
    )

    root = logging.getLogger()
    for old in [h for h in root.handlers if _is_ours(h)]:
        root.removeHandler(old)
        old.close()
    root.addHandler(handler)
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
