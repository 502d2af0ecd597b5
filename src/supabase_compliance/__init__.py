"""
Supabase Compliance Checker - MFA, RLS and PITR compliance for Supabase projects.

This package provides:
- MFA, RLS and PITR checks with an aggregated compliance report
- Batch and per-project fixes for failing checks
- A Gemini-backed assistant for compliance questions
- An HTTP API with a small web dashboard
"""

__version__ = "1.0.0"
__author__ = "Supabase Compliance Checker Contributors"
__license__ = "MIT"

# Export main classes for convenient imports
from supabase_compliance.core.checker import ComplianceAggregator, ComplianceContext
from supabase_compliance.reporting.models import (
    ComplianceReport,
    ComplianceStatus,
    SupabaseCredentials,
)

__all__ = [
    "__version__",
    "ComplianceAggregator",
    "ComplianceContext",
    "ComplianceReport",
    "ComplianceStatus",
    "SupabaseCredentials",
]
