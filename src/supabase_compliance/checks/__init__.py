"""
Compliance checks for Supabase projects.

Each check issues its remote calls and reduces the response to a pass/fail
result.
"""

from .mfa_check import MFACheck
from .pitr_check import PITRCheck
from .rls_check import RLSCheck

__all__ = [
    "MFACheck",
    "RLSCheck",
    "PITRCheck",
]
