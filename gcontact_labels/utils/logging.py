"""
Logging configuration module for gcontact_labels.

Provides centralized logging configuration with support for:
- Console and file logging
- Configurable log levels via environment variables
- Verbose mode for detailed output
- Colored output for better readability (when supported)
- A dedicated audit log of planned and issued label operations
"""

import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

# Default log format
DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Simplified format for console (less verbose)
CONSOLE_FORMAT = "%(levelname)s: %(message)s"

# Verbose format (includes more details)
VERBOSE_FORMAT = (
    "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"
)

# Date format for log timestamps
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Environment variable names
ENV_LOG_LEVEL = "GCONTACT_LABELS_LOG_LEVEL"
ENV_DEBUG = "GCONTACT_LABELS_DEBUG"
ENV_LOG_FILE = "GCONTACT_LABELS_LOG_FILE"

# Root logger name for the package hierarchy
ROOT_LOGGER_NAME = "gcontact_labels"

# Name of the apply audit logger
APPLY_LOGGER_NAME = "gcontact_labels.apply"


def _get_default_log_dir() -> Path:
    """Get the default logs directory inside the user config directory."""
    from gcontact_labels.utils.paths import logs_dir

    return logs_dir()


DEFAULT_LOG_DIR = _get_default_log_dir()

# Apply audit log format with millisecond timestamps
APPLY_LOG_FORMAT = "%(asctime)s.%(msecs)03d - %(levelname)s - %(message)s"
APPLY_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ColoredFormatter(logging.Formatter):
    """
    A logging formatter that adds ANSI color codes to log messages.

    Colors are only applied when output is to a terminal that supports them.
    """

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",  # Cyan
        "INFO": "\033[32m",  # Green
        "WARNING": "\033[33m",  # Yellow
        "ERROR": "\033[31m",  # Red
        "CRITICAL": "\033[35m",  # Magenta
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        use_colors: bool = True,
    ):
        """
        Initialize the colored formatter.

        Args:
            fmt: Log message format string
            datefmt: Date format string
            use_colors: Whether to use colors (disabled if the terminal lacks support)
        """
        super().__init__(fmt, datefmt)
        self.use_colors = use_colors and self._supports_color()

    def _supports_color(self) -> bool:
        """Check if the terminal supports colors."""
        if not hasattr(sys.stdout, "isatty") or not sys.stdout.isatty():
            return False

        # https://no-color.org/
        if os.environ.get("NO_COLOR"):
            return False

        term = os.environ.get("TERM", "")
        return term != "dumb"

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with optional colors."""
        # Copy so other handlers see the uncolored record
        record = logging.makeLogRecord(record.__dict__)

        if self.use_colors and record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            record.levelname = f"{color}{record.levelname}{self.RESET}"
            record.msg = f"{color}{record.msg}{self.RESET}"

        return super().format(record)


def get_log_level_from_env() -> int:
    """
    Get the logging level from environment variables.

    GCONTACT_LABELS_DEBUG wins over GCONTACT_LABELS_LOG_LEVEL.

    Returns:
        Logging level constant (e.g., logging.DEBUG, logging.INFO)
    """
    if os.environ.get(ENV_DEBUG, "").lower() in ("1", "true", "yes"):
        return logging.DEBUG

    level_str = os.environ.get(ENV_LOG_LEVEL, "INFO").upper()

    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "WARN": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    return level_map.get(level_str, logging.INFO)


def get_log_file_path() -> Optional[Path]:
    """
    Get the log file path from environment or default location.

    Returns:
        Path to log file, or None if file logging is disabled
    """
    log_file = os.environ.get(ENV_LOG_FILE)
    if log_file is not None:
        if log_file.lower() in ("none", "disabled", ""):
            return None
        return Path(log_file)

    return DEFAULT_LOG_DIR / f"gcontact_labels_{datetime.now().strftime('%Y%m%d')}.log"


# Module-level variable to store configured log directory
_configured_log_dir: Optional[Path] = None


def setup_logging(
    level: Optional[int] = None,
    verbose: bool = False,
    log_dir: Optional[Path] = None,
    log_file: Optional[Path] = None,
    enable_file_logging: bool = True,
    use_colors: bool = True,
) -> logging.Logger:
    """
    Configure logging for the gcontact_labels application.

    Sets up both console and file logging handlers with appropriate
    formatters and levels.

    Args:
        level: Logging level (e.g., logging.DEBUG). If None, determined from
               environment variables.
        verbose: If True, use verbose format and DEBUG level.
        log_dir: Directory for log files. If provided, overrides default.
        log_file: Path to log file. If None, uses log_dir or default.
        enable_file_logging: If False, disable file logging entirely.
        use_colors: If True, use colored output for console (when supported).

    Returns:
        The root logger for gcontact_labels

    Example:
        # Verbose mode for CLI
        setup_logging(verbose=True)

        # Disable file logging
        setup_logging(enable_file_logging=False)
    """
    global _configured_log_dir

    if level is None:
        level = get_log_level_from_env()
    if verbose:
        level = logging.DEBUG

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()

    # Prevent propagation to root logger to avoid duplicate messages
    logger.propagate = False

    console_format = VERBOSE_FORMAT if verbose else CONSOLE_FORMAT

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)

    console_formatter: logging.Formatter
    if use_colors:
        console_formatter = ColoredFormatter(console_format, DATE_FORMAT)
    else:
        console_formatter = logging.Formatter(console_format, DATE_FORMAT)

    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if enable_file_logging:
        file_path: Optional[Path] = None
        if log_file:
            file_path = log_file
        elif log_dir:
            file_path = (
                log_dir / f"gcontact_labels_{datetime.now().strftime('%Y%m%d')}.log"
            )
        else:
            file_path = get_log_file_path()

        if file_path:
            try:
                file_path.parent.mkdir(parents=True, exist_ok=True)

                file_handler = logging.FileHandler(file_path, encoding="utf-8")
                file_handler.setLevel(logging.DEBUG)  # Always capture debug in file
                file_handler.setFormatter(
                    logging.Formatter(VERBOSE_FORMAT, DATE_FORMAT)
                )
                logger.addHandler(file_handler)

                logger.debug(f"Log file: {file_path}")
            except (OSError, PermissionError) as e:
                logger.warning(f"Could not create log file {file_path}: {e}")

    if log_dir:
        _configured_log_dir = log_dir
    elif log_file:
        _configured_log_dir = log_file.parent
    else:
        _configured_log_dir = None

    return logger


def cleanup_old_logs(log_dir: Optional[Path] = None, keep_count: int = 10) -> int:
    """
    Clean up old log files, keeping only the most recent ones.

    Removes old gcontact_labels_*.log and apply_*.log files from the log
    directory, keeping only the specified number of most recent files
    of each kind.

    Args:
        log_dir: Directory containing log files. If None, uses configured
                 directory or the default.
        keep_count: Number of log files to keep for each type. Set to 0
                    to disable cleanup.

    Returns:
        Number of files deleted.
    """
    if keep_count <= 0:
        return 0

    if log_dir:
        logs_dir = log_dir
    elif _configured_log_dir:
        logs_dir = _configured_log_dir
    else:
        logs_dir = DEFAULT_LOG_DIR

    if not logs_dir.exists():
        return 0

    deleted_count = 0

    for pattern in ("gcontact_labels_*.log", "apply_*.log"):
        logs = sorted(
            logs_dir.glob(pattern),
            key=lambda p: p.stat().st_mtime,
            reverse=True,
        )
        for old_log in logs[keep_count:]:
            try:
                old_log.unlink()
                deleted_count += 1
            except OSError as e:
                logging.getLogger(ROOT_LOGGER_NAME).debug(
                    f"Could not delete old log {old_log}: {e}"
                )

    return deleted_count


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module.

    Returns a child logger of the gcontact_labels logger hierarchy.

    Args:
        name: Name of the module (typically __name__)

    Returns:
        Logger instance for the module
    """
    if not name.startswith(ROOT_LOGGER_NAME):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def get_apply_log_path(log_dir: Optional[Path] = None) -> Path:
    """
    Get the path for the apply audit log file.

    Creates a timestamped file name for each session.

    Args:
        log_dir: Optional directory for log files. If None, uses configured
                 directory from setup_logging() or the default.

    Returns:
        Path to the apply audit log file
    """
    if log_dir:
        logs_dir = log_dir
    elif _configured_log_dir:
        logs_dir = _configured_log_dir
    else:
        logs_dir = DEFAULT_LOG_DIR

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return logs_dir / f"apply_{timestamp}.log"


def setup_apply_logger(
    log_file: Optional[Path] = None,
    level: int = logging.DEBUG,
) -> logging.Logger:
    """
    Set up a dedicated logger for label apply operations.

    The audit log records, for one session, the membership summary that was
    presented, every planned operation and the outcome of each labeling call.

    Args:
        log_file: Optional custom path for the log file.
        level: Logging level (default: DEBUG)

    Returns:
        Logger instance for apply operations
    """
    logger = logging.getLogger(APPLY_LOGGER_NAME)
    logger.setLevel(level)
    logger.handlers.clear()
    logger.propagate = False

    file_path = log_file if log_file else get_apply_log_path()

    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(file_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(
            logging.Formatter(APPLY_LOG_FORMAT, APPLY_DATE_FORMAT)
        )
        logger.addHandler(file_handler)

        logger.info("=" * 80)
        logger.info(f"Apply log session started at {datetime.now().isoformat()}")
        logger.info(f"Log file: {file_path}")
        logger.info("=" * 80)

    except (OSError, PermissionError) as e:
        # Fall back to the console if the file cannot be created
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(level)
        console_handler.setFormatter(
            logging.Formatter(APPLY_LOG_FORMAT, APPLY_DATE_FORMAT)
        )
        logger.addHandler(console_handler)
        logger.warning(f"Could not create apply log file {file_path}: {e}")
        logger.warning("Falling back to console output for apply logs")

    return logger


def get_apply_logger() -> logging.Logger:
    """
    Get the apply audit logger instance.

    If setup_apply_logger() has not been called, records simply propagate
    to the gcontact_labels logger.
    """
    return logging.getLogger(APPLY_LOGGER_NAME)


__all__ = [
    "setup_logging",
    "get_logger",
    "cleanup_old_logs",
    "ColoredFormatter",
    "get_log_level_from_env",
    "get_log_file_path",
    "setup_apply_logger",
    "get_apply_logger",
    "get_apply_log_path",
    "DEFAULT_LOG_DIR",
    "DEFAULT_FORMAT",
    "CONSOLE_FORMAT",
    "VERBOSE_FORMAT",
    "DATE_FORMAT",
    "APPLY_LOG_FORMAT",
    "APPLY_DATE_FORMAT",
]
