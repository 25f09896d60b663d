"""Setup logging configuration."""

import logging
import sys
from pathlib import Path
from typing import Optional

_DEFAULT_LOG_FILE = "logs/dbml2orm.log"


def _resolve_log_path(log_file: Optional[str]) -> Path:
    # Relative paths resolve against the DBML2ORM package root
    path = Path(log_file or _DEFAULT_LOG_FILE)
    if not path.is_absolute():
        path = Path(__file__).parent.parent.parent / path
    return path


def clear_log_file(log_file: Optional[str] = None) -> None:
    """
    Clear the log file if it exists.
    
    Args:
        log_file: Path to log file (relative to DBML2ORM root). If None, uses default.
    """
    log_path = _resolve_log_path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    
    if log_path.exists():
        try:
            log_path.unlink()
        except PermissionError:
            # File is locked (e.g., open in an editor) - skip clearing
            logger = logging.getLogger(__name__)
            logger.warning(f"Cannot clear log file {log_path} - file is locked. Continuing without clearing.")


def setup_logging(
    level: str = "INFO",
    format_type: str = "detailed",
    log_to_file: bool = False,
    log_file: Optional[str] = None,
    clear_existing: bool = False,
) -> None:
    """
    Setup logging configuration.

    The transpiler core only logs through ``get_logger``; callers (a CLI, a
    build hook) decide where records go by calling this once.
    
    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        format_type: "simple" or "detailed"
        log_to_file: Whether to log to file
        log_file: Path to log file (relative to DBML2ORM root when not absolute)
        clear_existing: Whether to clear the log file before setting up logging
    """
    if clear_existing and log_to_file:
        clear_log_file(log_file)
    
    log_level = getattr(logging, level.upper(), logging.INFO)
    
    if format_type == "detailed":
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )
    else:
        formatter = logging.Formatter(
            fmt="%(levelname)s | %(name)s | %(message)s"
        )
    
    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    
    # Diagnostics go to stderr so generated source can be piped from stdout
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)
    
    if log_to_file:
        log_path = _resolve_log_path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.
    
    Args:
        name: Logger name (typically __name__)
        
    Returns:
        logging.Logger: Logger instance
    """
    return logging.getLogger(name)


def setup_logging_from_config(config_path: Optional[str] = None, clear_existing: bool = False) -> None:
    """
    Setup logging from the ``logging`` section of config.yaml.
    
    Args:
        config_path: Optional explicit path to a config file
        clear_existing: Whether to clear the log file before setting up logging
    """
    from DBML2ORM.config.loader import get_config

    logging_config = get_config("logging", config_path)
    setup_logging(
        level=logging_config.get("level", "INFO"),
        format_type=logging_config.get("format_type", "detailed"),
        log_to_file=logging_config.get("log_to_file", False),
        log_file=logging_config.get("log_file"),
        clear_existing=clear_existing,
    )
