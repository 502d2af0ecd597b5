"""
Remediation for failing MFA, RLS and PITR checks.
"""

from supabase_compliance.remediation.fixer import ComplianceFixer

__all__ = ["ComplianceFixer"]
