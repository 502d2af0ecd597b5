"""
In-memory session store.

Each verified set of credentials gets its own ComplianceContext, keyed by a
hash of the service key. The service key doubles as the bearer token on
every authenticated request, so concurrent users never share a context.
"""

import threading
from typing import Dict, Optional

from supabase_compliance.core.checker import ComplianceContext
from supabase_compliance.core.config import Config
from supabase_compliance.core.utils import hash_string
from supabase_compliance.reporting.models import SupabaseCredentials


class SessionStore:
    """Thread-safe map from service key to compliance context."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or Config()
        self._sessions: Dict[str, ComplianceContext] = {}
        self._lock = threading.Lock()

    @staticmethod
    def _key(service_key: str) -> str:
        return hash_string(service_key)

    def new_context(self, credentials: SupabaseCredentials) -> ComplianceContext:
        """Build a context for credentials without registering it."""
        return ComplianceContext(credentials=credentials, config=self.config)

    def add(self, context: ComplianceContext) -> None:
        """
        Register a context, replacing any session for the same service key.

        A Management API key registered on the replaced session carries over
        unless the new credentials bring their own.
        """
        key = self._key(context.credentials.service_key)
        with self._lock:
            previous = self._sessions.get(key)
            if (
                previous is not None
                and previous.credentials.management_api_key
                and not context.credentials.management_api_key
            ):
                context.set_management_api_key(previous.credentials.management_api_key)
            self._sessions[key] = context
        if previous is not None and previous is not context:
            previous.close()

    def get(self, service_key: str) -> Optional[ComplianceContext]:
        with self._lock:
            return self._sessions.get(self._key(service_key))

    def remove(self, service_key: str) -> None:
        with self._lock:
            context = self._sessions.pop(self._key(service_key), None)
        if context is not None:
            context.close()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)


__all__ = ["SessionStore"]
