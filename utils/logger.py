"""
Structured logging setup for the inspection planner.

Provides consistent, informative logging across all modules with
support for file output and colored console output.

Usage:
    from utils.logger import setup_logger, get_logger

    # Initialize once at startup
    setup_logger()

    # Get logger in any module
    logger = get_logger(__name__)
    logger.info("Planning started", mode="nbv")

    # Tag every log line of one planning run
    with planning_run_context(run_id=3, mode="goal"):
        logger.info("Tree grown", nodes=120)
"""

import logging
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

import structlog
from structlog.typing import Processor

from config.settings import get_settings


def setup_logger(
    log_level: Optional[str] = None,
    log_to_file: Optional[bool] = None,
    log_directory: Optional[str] = None,
) -> None:
    """
    Initialize the logging system.

    Should be called once at application startup before any logging occurs.
    Uses settings from config if parameters are not explicitly provided.

    Args:
        log_level: Override log level (DEBUG, INFO, WARNING, ERROR)
        log_to_file: Override whether to log to file
        log_directory: Override directory for log files
    """
    settings = get_settings()

    level = log_level or settings.logging.log_level
    to_file = log_to_file if log_to_file is not None else settings.logging.log_to_file
    log_dir = log_directory or settings.logging.log_directory

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # structlog hands rendered lines to the stdlib root logger, so console
    # and file handlers both receive them
    logging.basicConfig(
        format="%(message)s",
        level=numeric_level,
        stream=sys.stdout,
    )

    processors: list[Processor] = [
        # Planning run identifiers bound via planning_run_context()
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if numeric_level == logging.DEBUG:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            )
        )

    if sys.stdout.isatty():
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    else:
        # JSON output for non-terminal (useful for log aggregation)
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    if to_file:
        _setup_file_logging(log_dir, numeric_level)


def _setup_file_logging(log_directory: str, level: int) -> None:
    """
    Set up file-based logging.

    Creates a timestamped log file in the specified directory.

    Args:
        log_directory: Directory to store log files
        level: Logging level
    """
    log_path = Path(log_directory)
    log_path.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    log_file = log_path / f"inspection_planner_{timestamp}.log"

    file_handler = logging.FileHandler(log_file)
    file_handler.setLevel(level)
    file_handler.setFormatter(
        logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    )

    logging.getLogger().addHandler(file_handler)

    print(f"Logging to file: {log_file}")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger instance for the given module name.

    Args:
        name: Module name (typically __name__)

    Returns:
        BoundLogger instance for structured logging

    Example:
        logger = get_logger(__name__)
        logger.info("Node added", index=12, parent=7)
        logger.warning("Occupancy map unavailable", policy="occupied")
    """
    return structlog.get_logger(name)


@contextmanager
def planning_run_context(**context) -> Iterator[None]:
    """
    Bind key/value pairs to every log line emitted inside the block.

    Args:
        **context: Values identifying the planning run (run id, mode, ...)
    """
    with structlog.contextvars.bound_contextvars(**context):
        yield
