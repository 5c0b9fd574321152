"""Logger configuration for the onboarding service.

Checklist code logs with keyword context (member_id, item_id, key, ...).
The console sink renders that context as trailing ``key=value`` pairs; the
file sink can instead write one JSON object per record so the context stays
queryable.
"""

import sys
from pathlib import Path
from typing import Any

from loguru import logger

_CONSOLE_PREFIX = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
_FILE_PREFIX = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def _context_suffix(record: dict[str, Any], colored: bool) -> str:
    # Values stay format fields; only key names are inlined.
    pairs = []
    for key in sorted(record["extra"]):
        field = f"{{extra[{key}]}}"
        pairs.append(f"<dim>{key}</dim>={field}" if colored else f"{key}={field}")
    return (" | " + " ".join(pairs)) if pairs else ""


def _console_format(record: dict[str, Any]) -> str:
    return _CONSOLE_PREFIX + _context_suffix(record, colored=True) + "\n{exception}"


def _file_format(record: dict[str, Any]) -> str:
    return _FILE_PREFIX + _context_suffix(record, colored=False) + "\n{exception}"


def setup_logger(
    level: str = "INFO",
    log_file: str | None = None,
    json_logs: bool = False,
    rotation: str = "10 MB",
    retention: str = "7 days",
) -> None:
    """Configure loguru with a console sink and an optional rotating file sink.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Optional path to log file. If None, only console logging.
        json_logs: Write the file sink as serialized JSON records
        rotation: Log rotation size (e.g., "10 MB", "1 day")
        retention: Log retention period (e.g., "7 days", "1 month")
    """
    logger.remove()

    logger.add(sys.stderr, format=_console_format, level=level, colorize=True)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_options: dict[str, Any] = {"serialize": True} if json_logs else {"format": _file_format}
        logger.add(
            log_path,
            level=level,
            rotation=rotation,
            retention=retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
            **file_options,
        )

    logger.info("Logger initialized", level=level, log_file=log_file, json_logs=json_logs)
