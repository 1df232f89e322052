"""
Logging configuration for the affilNet library.

This module provides centralized logging configuration with support for:
- Console and rotating file output handlers
- Environment variable configuration
- Optional JSON formatting for structured logs
- Timing of long-running operations (per-window metric computations)
"""

import json
import logging
import logging.handlers
import os
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any


ROOT_LOGGER_NAME = "affilNet"

# Default configuration constants
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s.%(funcName)s:%(lineno)d | %(message)s"
DEFAULT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
DEFAULT_MAX_FILE_SIZE = 10 * 1024 * 1024  # 10MB
DEFAULT_BACKUP_COUNT = 5

# Environment variable names
ENV_LOG_LEVEL = "AFFILNET_LOG_LEVEL"
ENV_LOG_FILE = "AFFILNET_LOG_FILE"
ENV_LOG_DIR = "AFFILNET_LOG_DIR"
ENV_LOG_FORMAT = "AFFILNET_LOG_FORMAT"
ENV_LOG_CONSOLE = "AFFILNET_LOG_CONSOLE"
ENV_LOG_JSON = "AFFILNET_LOG_JSON"

# LogRecord attributes that are not "extra" fields
_RESERVED_RECORD_KEYS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName",
    "processName", "process", "getMessage", "exc_info", "exc_text",
    "stack_info", "message", "taskName"
}


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs each record as one JSON object per line, including any ``extra``
    fields passed to the logging call.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_obj = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "message": record.getMessage(),
        }

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_KEYS:
                log_obj[key] = value

        return json.dumps(log_obj, default=str)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the given name.

    Module loggers (``affilNet.network.metrics`` ...) sit under the
    ``affilNet`` root logger, so ``setup_logging()`` configures them all.

    Parameters
    ----------
    name : str
        The name for the logger (typically __name__)

    Examples
    --------
    >>> logger = get_logger(__name__)
    >>> logger.info("Computing %d windows", 12)
    """
    return logging.getLogger(name)


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    log_dir: Optional[str] = None,
    console: Optional[bool] = None,
    json_format: Optional[bool] = None,
    format_string: Optional[str] = None,
    date_format: Optional[str] = None,
    max_file_size: Optional[int] = None,
    backup_count: Optional[int] = None,
    force_setup: bool = False
) -> logging.Logger:
    """
    Set up logging configuration for the affilNet library.

    Parameters
    ----------
    level : str, optional
        Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        If None, uses AFFILNET_LOG_LEVEL or defaults to INFO.
    log_file : str, optional
        Path to log file. If None, uses AFFILNET_LOG_FILE.
    log_dir : str, optional
        Directory for log files; when given without log_file, logs go to
        ``affilnet.log`` inside it. If None, uses AFFILNET_LOG_DIR.
    console : bool, optional
        Whether to log to stdout. If None, uses AFFILNET_LOG_CONSOLE or True.
    json_format : bool, optional
        Whether to use JSONFormatter. If None, uses AFFILNET_LOG_JSON or False.
    format_string : str, optional
        Custom format string. If None, uses AFFILNET_LOG_FORMAT or the default.
    date_format : str, optional
        Date format for timestamps.
    max_file_size : int, optional
        Maximum size for log files before rotation (bytes). Defaults to 10MB.
    backup_count : int, optional
        Number of rotated files to keep. Defaults to 5.
    force_setup : bool, default False
        Reconfigure even if handlers are already installed.

    Returns
    -------
    logging.Logger
        The configured ``affilNet`` root logger

    Raises
    ------
    ValueError
        If an invalid logging level is specified

    Examples
    --------
    >>> logger = setup_logging()
    >>> logger = setup_logging(level="DEBUG", log_file="metrics.log")
    >>> logger = setup_logging(json_format=True, console=False, log_dir="/var/log/affilnet")

    Notes
    -----
    Arguments take precedence over environment variables, which take
    precedence over defaults. Subsequent calls are no-ops unless
    ``force_setup=True``.
    """
    root_logger = logging.getLogger(ROOT_LOGGER_NAME)

    if not force_setup and root_logger.handlers:
        return root_logger

    if force_setup:
        for handler in list(root_logger.handlers):
            handler.close()
        root_logger.handlers.clear()

    config = _resolve_logging_config(
        level=level,
        log_file=log_file,
        log_dir=log_dir,
        console=console,
        json_format=json_format,
        format_string=format_string,
        date_format=date_format,
        max_file_size=max_file_size,
        backup_count=backup_count
    )

    log_level = getattr(logging, str(config["level"]).upper(), None)
    if not isinstance(log_level, int):
        raise ValueError(f"Invalid logging level: {config['level']}")
    root_logger.setLevel(log_level)

    if config["json_format"]:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt=config["format_string"],
            datefmt=config["date_format"]
        )

    if config["console"]:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if config["log_file"]:
        log_path = Path(config["log_file"])
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=config["log_file"],
            maxBytes=config["max_file_size"],
            backupCount=config["backup_count"],
            encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.propagate = False

    root_logger.info(
        "Logging configured: level=%s, console=%s, file=%s, json=%s",
        config["level"], config["console"],
        config["log_file"] or "None", config["json_format"]
    )

    return root_logger


def _resolve_logging_config(**kwargs) -> Dict[str, Any]:
    """Resolve logging configuration from parameters, environment and defaults."""

    def _get_bool_env(env_var: str, default: bool) -> bool:
        value = os.getenv(env_var, "").lower()
        if value in ("true", "yes", "1", "on"):
            return True
        elif value in ("false", "no", "0", "off"):
            return False
        else:
            return default

    level = kwargs.get("level") or os.getenv(ENV_LOG_LEVEL, DEFAULT_LOG_LEVEL)

    log_dir = kwargs.get("log_dir") or os.getenv(ENV_LOG_DIR)
    log_file = kwargs.get("log_file") or os.getenv(ENV_LOG_FILE)

    if not log_file and log_dir:
        log_file = os.path.join(log_dir, "affilnet.log")

    console = kwargs.get("console")
    if console is None:
        console = _get_bool_env(ENV_LOG_CONSOLE, True)

    json_format = kwargs.get("json_format")
    if json_format is None:
        json_format = _get_bool_env(ENV_LOG_JSON, False)

    format_string = (
        kwargs.get("format_string") or
        os.getenv(ENV_LOG_FORMAT, DEFAULT_LOG_FORMAT)
    )

    return {
        "level": level,
        "log_file": log_file,
        "console": console,
        "json_format": json_format,
        "format_string": format_string,
        "date_format": kwargs.get("date_format") or DEFAULT_DATE_FORMAT,
        "max_file_size": kwargs.get("max_file_size") or DEFAULT_MAX_FILE_SIZE,
        "backup_count": kwargs.get("backup_count") or DEFAULT_BACKUP_COUNT,
    }


def configure_external_library_logging(
    libraries: Optional[Dict[str, str]] = None
) -> None:
    """
    Quiet chatty third-party loggers.

    Parameters
    ----------
    libraries : Dict[str, str], optional
        Mapping of logger names to levels. Defaults cover the graph and
        plotting libraries used alongside affilNet.

    Examples
    --------
    >>> configure_external_library_logging()
    >>> configure_external_library_logging({"networkit": "ERROR"})
    """
    config = libraries or {
        "networkit": "WARNING",
        "networkx": "WARNING",
        "matplotlib": "WARNING",
        "concurrent.futures": "WARNING",
    }

    for library_name, level in config.items():
        library_level = getattr(logging, level.upper(), None)
        if not isinstance(library_level, int):
            continue
        logging.getLogger(library_name).setLevel(library_level)


def log_function_entry(func_name: str, **kwargs) -> None:
    """
    Log function entry with parameters at DEBUG level.

    Examples
    --------
    >>> log_function_entry("build_edgelist", on_cols=["Org.ID"], start="1980-01-01")
    """
    logger = get_logger(f"{ROOT_LOGGER_NAME}.debug")
    if logger.isEnabledFor(logging.DEBUG):
        param_str = ", ".join([f"{k}={v}" for k, v in kwargs.items()])
        logger.debug("Entering %s(%s)", func_name, param_str)


def log_performance_metric(
    operation: str,
    duration: float,
    details: Optional[Dict[str, Any]] = None
) -> None:
    """
    Log the duration of an operation to the ``affilNet.performance`` logger.

    Parameters
    ----------
    operation : str
        Name of the operation that was timed
    duration : float
        Duration in seconds
    details : Dict[str, Any], optional
        Additional details about the operation (window count, members, ...)
    """
    logger = get_logger(f"{ROOT_LOGGER_NAME}.performance")

    message = f"Performance: {operation} completed in {duration:.3f}s"

    if details:
        detail_str = ", ".join([f"{k}={v}" for k, v in details.items()])
        message += f" ({detail_str})"

    logger.debug(message, extra={"operation": operation, "duration": duration})


class LoggingTimer:
    """
    Context manager timing an operation and logging its duration.

    Examples
    --------
    >>> with LoggingTimer("compute_all_metrics", {"windows": 12}):
    ...     pass
    """

    def __init__(self, operation: str, details: Optional[Dict[str, Any]] = None):
        self.operation = operation
        self.details = details or {}
        self.start_time = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start_time is not None:
            duration = time.time() - self.start_time
            log_performance_metric(self.operation, duration, self.details)
