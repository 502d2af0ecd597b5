"""
Integrations with external services: the Supabase Management API and the
Gemini-backed AI assistant.
"""

from supabase_compliance.integrations.management_api import ManagementAPIClient

__all__ = ["ManagementAPIClient"]
