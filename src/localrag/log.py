"""
Logging setup.

Modules log through structlog with an event name plus key/value pairs:

    logger = structlog.get_logger()
    logger.info("documents_loaded", directory=str(path), count=12)

configure_logging() is called once by the CLI. Output goes to stderr so the
interactive session's answers on stdout stay clean.
"""

import logging
import sys

import structlog


def _stderr_logger(*args) -> structlog.PrintLogger:
    # Looked up per logger so a replaced sys.stderr is honoured
    return structlog.PrintLogger(file=sys.stderr)


def configure_logging(verbosity: int = 0, json: bool = False) -> None:
    """
    Configure structlog processors and level.

    Args:
        verbosity: 0 = warnings only, 1 = info, 2+ = debug.
        json: Render one JSON object per line instead of the console format.
    """
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if json:
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=_stderr_logger,
        cache_logger_on_first_use=False,
    )

