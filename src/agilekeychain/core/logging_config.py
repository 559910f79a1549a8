# Agile Keychain - Logging Setup
#
# Library modules log through logging.getLogger(__name__); structured events
# (key recovery, CLI outcomes) go through structlog on top of the same stdlib
# handlers. Nothing here ever sees key bytes or passphrases.

import logging
import sys

import structlog


def configure_logging(level: str = "WARNING", json_output: bool = False) -> None:
    """
    Configure stdlib logging and structlog to write to stderr.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ...)
        json_output: Render one JSON object per line instead of console text
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"Unknown log level: {level}")

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter('%(message)s'))  # structlog handles formatting

    root_logger = logging.getLogger()
    for existing in list(root_logger.handlers):
        if getattr(existing, "_agilekeychain", False):
            root_logger.removeHandler(existing)
    handler._agilekeychain = True
    root_logger.addHandler(handler)
    root_logger.setLevel(numeric_level)
