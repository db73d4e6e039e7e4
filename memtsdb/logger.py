"""
Centralized logging configuration for memtsdb.
Provides structured logging with optional file output and configurable levels.
"""

import logging
import sys
from pathlib import Path
from datetime import datetime
from typing import Optional


PACKAGE_LOGGER = "memtsdb"

LEVEL_MAP = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL
}


class MemTSDBLogger:
    """Centralized logger for memtsdb components."""

    _loggers = {}
    _initialized = False
    _log_dir = None
    _log_file = None
    _log_level = logging.INFO

    @classmethod
    def setup(cls, log_dir: Optional[str] = None, log_level: str = "INFO", console_output: bool = False,
              log_format: Optional[str] = None):
        """Setup logging configuration for all memtsdb components."""
        if cls._initialized:
            return

        cls._log_level = LEVEL_MAP.get(log_level.upper(), logging.INFO)

        detailed_formatter = logging.Formatter(
            log_format or '%(asctime)s | %(name)s | %(levelname)s | %(funcName)s:%(lineno)d | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )

        simple_formatter = logging.Formatter(
            '%(asctime)s | %(levelname)s | %(message)s',
            datefmt='%H:%M:%S'
        )

        # Handlers live on the package logger so the host keeps control of root
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        package_logger.setLevel(cls._log_level)
        package_logger.handlers.clear()

        if log_dir:
            cls._log_dir = Path(log_dir)
            cls._log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            cls._log_file = cls._log_dir / f"memtsdb_{timestamp}.log"
            file_handler = logging.FileHandler(cls._log_file)
            file_handler.setLevel(cls._log_level)
            file_handler.setFormatter(detailed_formatter)
            package_logger.addHandler(file_handler)

        if console_output:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.WARNING)  # Only warnings/errors to console
            console_handler.setFormatter(simple_formatter)
            package_logger.addHandler(console_handler)

        if not package_logger.handlers:
            package_logger.addHandler(logging.NullHandler())

        cls._initialized = True

        init_logger = cls.get_logger("MemTSDBLogger")
        init_logger.info(f"Logging initialized - Level: {log_level}, File: {cls._log_file}")
        if console_output:
            init_logger.info("Console output enabled for WARNING+ messages")

    @classmethod
    def setup_from_config(cls, config):
        """Setup logging from a MemTSDBConfig logging section."""
        cls.setup(
            log_dir=config.logging.log_dir or None,
            log_level=config.logging.level,
            console_output=config.logging.console_output,
            log_format=config.logging.format,
        )

    @classmethod
    def get_logger(cls, name: str) -> logging.Logger:
        """Get a logger for a specific component."""
        if not cls._initialized:
            from .config import get_config
            cls.setup_from_config(get_config())

        if name not in cls._loggers:
            logger = logging.getLogger(f"{PACKAGE_LOGGER}.{name}")
            logger.setLevel(cls._log_level)
            cls._loggers[name] = logger

        return cls._loggers[name]

    @classmethod
    def set_level(cls, level: str):
        """Change logging level for all loggers."""
        new_level = LEVEL_MAP.get(level.upper(), logging.INFO)

        logging.getLogger(PACKAGE_LOGGER).setLevel(new_level)

        for logger in cls._loggers.values():
            logger.setLevel(new_level)

        cls._log_level = new_level

    @classmethod
    def get_log_file(cls) -> Optional[Path]:
        """Get the current log file path."""
        if not cls._initialized:
            return None
        return cls._log_file

    @classmethod
    def reset(cls):
        """Drop handlers and cached loggers (mainly for testing)."""
        package_logger = logging.getLogger(PACKAGE_LOGGER)
        for handler in list(package_logger.handlers):
            handler.close()
        package_logger.handlers.clear()
        cls._loggers = {}
        cls._initialized = False
        cls._log_dir = None
        cls._log_file = None
        cls._log_level = logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Convenience function to get a logger."""
    return MemTSDBLogger.get_logger(name)
