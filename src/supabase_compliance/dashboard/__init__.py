"""
Web dashboard and HTTP API for the compliance checker.
"""

from supabase_compliance.dashboard.server import create_app
from supabase_compliance.dashboard.sessions import SessionStore

__all__ = ["create_app", "SessionStore"]
