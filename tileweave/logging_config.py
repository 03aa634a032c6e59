"""
Logging setup for tileweave runs.

Every run writes a rotating debug log (catalog extraction, one line per
solver tick, every backtrack) and echoes warnings to stderr:

    from tileweave.logging_config import setup_logging, teardown_logging
    log_path = setup_logging("logs")
    ...
    teardown_logging()

Modules get their logger through get_logger(__name__), which places it
under the "tileweave" namespace so the handlers above catch it.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from . import __version__

LOGGER_NAME = "tileweave"
LOG_FILE_NAME = "debug.log"
MAX_LOG_SIZE = 10 * 1024 * 1024  # 10 MB per file
BACKUP_COUNT = 5

# Tick lines are already pipe-separated, so the prefix stays short
FILE_FORMAT = "%(asctime)s.%(msecs)03d | %(levelname)-7s | %(name)s | %(message)s"
CONSOLE_FORMAT = "%(levelname)s: %(message)s"
DATE_FORMAT = "%H:%M:%S"


def _file_handler(log_path: Path, level: int) -> logging.Handler:
    handler = RotatingFileHandler(
        log_path,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def _console_handler(level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(CONSOLE_FORMAT))
    return handler


def setup_logging(
    log_dir: Path | str,
    log_level: int = logging.DEBUG,
    console_level: int | None = logging.WARNING,
) -> Path:
    """
    Route all tileweave loggers to <log_dir>/debug.log and stderr.

    Calling it again replaces the previous handlers, so a second run in the
    same process logs to its own directory.

    Args:
        log_dir: Directory for the log file (created if missing)
        log_level: Level for the log file (default: DEBUG)
        console_level: Level for stderr, or None for no console output

    Returns:
        Path to the log file
    """
    log_path = Path(log_dir) / LOG_FILE_NAME
    log_path.parent.mkdir(parents=True, exist_ok=True)

    teardown_logging()
    root_logger = logging.getLogger(LOGGER_NAME)
    root_logger.setLevel(logging.DEBUG)

    root_logger.addHandler(_file_handler(log_path, log_level))
    if console_level is not None:
        root_logger.addHandler(_console_handler(console_level))

    root_logger.info(f"tileweave {__version__} logging to {log_path.absolute()}")
    return log_path


def teardown_logging() -> None:
    """Flush, close and detach every handler installed by setup_logging()."""
    root_logger = logging.getLogger(LOGGER_NAME)
    for handler in list(root_logger.handlers):
        handler.flush()
        handler.close()
        root_logger.removeHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, always inside the tileweave namespace."""
    if name == LOGGER_NAME or name.startswith(f"{LOGGER_NAME}."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


# =============================================================================
# Structured Logging Helpers
# =============================================================================


def log_tick(
    logger: logging.Logger,
    tick: int,
    action: str,
    details: str | None = None,
) -> None:
    """Log solver tick activity."""
    details_str = f" | {details}" if details else ""
    logger.debug(f"TICK {tick:05d} | {action}{details_str}")


def log_backtrack(
    logger: logging.Logger,
    tick: int,
    position: tuple[int, int],
    rollback_to: tuple[int, int] | None,
    details: str | None = None,
) -> None:
    """Log a contradiction and the history entry it rolled back to."""
    target = f"({rollback_to[0]}, {rollback_to[1]})" if rollback_to is not None else "none"
    details_str = f" | {details}" if details else ""
    logger.debug(
        f"TICK {tick:05d} | BACKTRACK | at=({position[0]}, {position[1]}) | to={target}{details_str}"
    )


def log_catalog(
    logger: logging.Logger,
    operation: str,
    source: Path | str | None = None,
    details: str | None = None,
) -> None:
    """Log catalog extraction activity."""
    source_str = f" | {source}" if source else ""
    details_str = f" | {details}" if details else ""
    logger.debug(f"CATALOG | {operation}{source_str}{details_str}")
