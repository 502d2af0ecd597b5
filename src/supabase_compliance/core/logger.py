"""
Logging setup for the Supabase Compliance Checker.

Check results are logged under per-check category loggers
(``supabase_compliance.compliance.mfa`` and friends) so they can be routed
to their own file.
"""

import logging
from logging.handlers import RotatingFileHandler
from typing import Optional

from rich.logging import RichHandler

from supabase_compliance.core.config import Config, LoggingConfig

ROOT_LOGGER = "supabase_compliance"
COMPLIANCE_LOGGER = f"{ROOT_LOGGER}.compliance"

FILE_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_logger(category: str) -> logging.Logger:
    """
    Get a logger for a component or check category.

    ``mfa``, ``rls`` and ``pitr`` resolve to the compliance category loggers;
    anything else lives directly under the package logger.
    """
    if category in ("mfa", "rls", "pitr"):
        return logging.getLogger(f"{COMPLIANCE_LOGGER}.{category}")
    return logging.getLogger(f"{ROOT_LOGGER}.{category}")


def _rotating_handler(
    settings: LoggingConfig, filename: str, level: int
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        settings.log_dir / filename,
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt=DATE_FORMAT))
    return handler


def setup_logging(config: Config, console: Optional[bool] = None) -> logging.Logger:
    """
    Configure the package loggers.

    Args:
        config: Application configuration
        console: Force the rich console handler on or off. Defaults to on
            outside production.

    Returns:
        The package root logger
    """
    settings = config.logging
    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(settings.level.upper())

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    compliance = logging.getLogger(COMPLIANCE_LOGGER)
    for handler in list(compliance.handlers):
        compliance.removeHandler(handler)
        handler.close()

    if settings.file_logging:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        root.addHandler(_rotating_handler(settings, "error.log", logging.ERROR))
        root.addHandler(_rotating_handler(settings, "combined.log", logging.DEBUG))
        compliance.addHandler(
            _rotating_handler(settings, "compliance.log", logging.DEBUG)
        )

    if console is None:
        console = not config.is_production
    if console:
        root.addHandler(RichHandler(rich_tracebacks=True, show_path=False))

    return root


__all__ = ["get_logger", "setup_logging", "ROOT_LOGGER", "COMPLIANCE_LOGGER"]
