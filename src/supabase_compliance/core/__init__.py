"""
Core module for the Supabase Compliance Checker.
Contains configuration, errors and logging. The check base class and the
report aggregator live in ``supabase_compliance.core.checker``.
"""

from supabase_compliance.core.config import Config, load_config
from supabase_compliance.core.errors import (
    AuthenticationError,
    ComplianceError,
    ManagementKeyRequiredError,
    UpstreamError,
    ValidationError,
)
from supabase_compliance.core.logger import get_logger, setup_logging

__all__ = [
    "Config",
    "load_config",
    "ComplianceError",
    "ValidationError",
    "AuthenticationError",
    "ManagementKeyRequiredError",
    "UpstreamError",
    "get_logger",
    "setup_logging",
]
