"""
Reporting module: result models for checks, reports and fixes.
"""

from supabase_compliance.reporting.models import (
    AIResponse,
    CheckResult,
    ComplianceReport,
    ComplianceStatus,
    FixOptions,
    FixReport,
    ManagedProject,
    MFACheckResult,
    MFAUser,
    PITRCheckResult,
    PITRProject,
    RLSCheckResult,
    RLSPolicy,
    RLSTable,
    SupabaseCredentials,
)

__all__ = [
    "AIResponse",
    "CheckResult",
    "ComplianceReport",
    "ComplianceStatus",
    "FixOptions",
    "FixReport",
    "ManagedProject",
    "MFACheckResult",
    "MFAUser",
    "PITRCheckResult",
    "PITRProject",
    "RLSCheckResult",
    "RLSPolicy",
    "RLSTable",
    "SupabaseCredentials",
]
