from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_LOGGING_CONFIGURED = False
_FILE_HANDLER: logging.FileHandler | None = None


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Set up structured logging for the merge_to_md package.

    Warnings about skipped paths go to the error stream so that stdout only carries
    the command's own result line.

    Args:
        filename: Optional path to a log file receiving a copy of every record.
            Records are always written to stderr. Only one log file is active at a
            time: a new filename replaces the previous handler.

    Returns:
        A structlog logger instance configured for the merge_to_md package.
    """
    global _LOGGING_CONFIGURED, _FILE_HANDLER  # noqa: PLW0603
    if filename and (_FILE_HANDLER is None or _FILE_HANDLER.baseFilename != os.path.abspath(filename)):
        package_logger = logging.getLogger("merge_to_md")
        if _FILE_HANDLER is not None:
            package_logger.removeHandler(_FILE_HANDLER)
            _FILE_HANDLER.close()
        _FILE_HANDLER = logging.FileHandler(str(filename), encoding="utf-8")
        _FILE_HANDLER.setFormatter(logging.Formatter("%(message)s"))
        package_logger.addHandler(_FILE_HANDLER)
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(
            level=logging.INFO,
            handlers=[logging.StreamHandler(sys.stderr)],
            format="%(message)s",
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger("merge_to_md")


logger = setup_logging()
