"""
Supabase Management API client.

A thin ``requests`` wrapper around https://api.supabase.com/v1. All calls are
blocking; async callers run them through ``asyncio.to_thread``.
"""

from typing import Any, Dict, List, Optional

import requests

from supabase_compliance.core.errors import ManagementKeyRequiredError, UpstreamError
from supabase_compliance.core.logger import get_logger
from supabase_compliance.reporting.models import ManagedProject

DEFAULT_API_URL = "https://api.supabase.com/v1"


class ManagementAPIClient:
    """Client for project-level operations on the Supabase control plane."""

    def __init__(
        self,
        api_key: str,
        api_url: str = DEFAULT_API_URL,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        if not api_key:
            raise ManagementKeyRequiredError("Management API key is required")
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            }
        )
        self.logger = get_logger("management_api")

    def _request(
        self,
        method: str,
        path: str,
        action: str,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.api_url}/{path.lstrip('/')}"
        self.logger.debug("%s %s", method, url)

        try:
            response = self.session.request(method, url, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise UpstreamError(f"Failed to {action}: {e}") from e

        if not response.ok:
            raise UpstreamError(
                f"Failed to {action}: {response.status_code} - {response.text}",
                upstream_status=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text

    def list_projects(self) -> List[ManagedProject]:
        """List every project the key can see."""
        projects = self._request("GET", "projects", "fetch projects") or []
        return [
            ManagedProject(id=p["id"], name=p.get("name", p["id"]), ref=p.get("ref", p["id"]))
            for p in projects
        ]

    def get_backups(self, project_ref: str) -> Dict[str, Any]:
        """Fetch backup details (including PITR state) for a project."""
        return self._request(
            "GET",
            f"projects/{project_ref}/database/backups",
            f"fetch backup details for project {project_ref}",
        ) or {}

    def enable_pitr(self, project_ref: str, retention_days: int = 7) -> Any:
        """Turn on point-in-time recovery for a project."""
        return self._request(
            "POST",
            f"projects/{project_ref}/pitr",
            f"enable PITR for project {project_ref}",
            json={"enabled": True, "retention_days": retention_days},
        )

    def execute_sql(self, project_ref: str, query: str) -> Any:
        """Run a SQL query against a project's database."""
        return self._request(
            "POST",
            f"projects/{project_ref}/database/query",
            "execute SQL",
            json={"query": query},
        )

    def list_functions(self, project_ref: str) -> List[Dict[str, Any]]:
        """List edge functions deployed to a project."""
        return self._request(
            "GET", f"projects/{project_ref}/functions", "fetch functions"
        ) or []

    def deploy_function(
        self, project_ref: str, name: str, code: str, verify_jwt: bool = True
    ) -> Any:
        """Deploy an edge function to a project."""
        return self._request(
            "POST",
            f"projects/{project_ref}/functions",
            "deploy function",
            json={"name": name, "slug": name, "body": code, "verify_jwt": verify_jwt},
        )

    def close(self) -> None:
        self.session.close()


__all__ = ["ManagementAPIClient", "DEFAULT_API_URL"]
