"""
PITR (Point-in-Time Recovery) Check

Lists the projects visible to the Management API key and fetches the backup
settings of each one concurrently.
"""

import asyncio
from typing import Optional

from supabase_compliance.core.checker import BaseCheck
from supabase_compliance.core.errors import ManagementKeyRequiredError, UpstreamError
from supabase_compliance.reporting.models import (
    ComplianceStatus,
    ManagedProject,
    PITRCheckResult,
    PITRProject,
)


def format_retention(days: Optional[int]) -> Optional[str]:
    return f"{days} days" if days else None


class PITRCheck(BaseCheck):
    """Check that every project has Point-in-Time Recovery enabled."""

    name = "pitr_check"
    description = "Verifies that Point-in-Time Recovery is enabled on all projects"
    category = "pitr"

    async def run(self) -> PITRCheckResult:
        self.logger.info("Starting PITR compliance check")
        if not self.context.has_management_key:
            raise ManagementKeyRequiredError(
                "Management API key is required for PITR check"
            )

        management = self.context.get_management_client()
        projects = await self.call(management.list_projects)
        statuses = await asyncio.gather(
            *(self._project_status(project) for project in projects)
        )

        missing = [p for p in statuses if not p.has_pitr]
        result = PITRCheckResult(
            status=ComplianceStatus.from_bool(not missing),
            details=(
                "All projects have PITR enabled"
                if not missing
                else f"{len(missing)} projects do not have PITR enabled"
            ),
            projects=list(statuses),
        )
        self.logger.info(
            "PITR check completed status=%s projects=%d without_pitr=%d",
            result.status.value,
            len(statuses),
            len(missing),
        )
        return result

    async def _project_status(self, project: ManagedProject) -> PITRProject:
        management = self.context.get_management_client()
        try:
            backups = await self.call(management.get_backups, project.ref or project.id)
            if not isinstance(backups, dict):
                raise UpstreamError(f"Unexpected backup details payload: {backups!r:.100}")
            has_pitr = bool(backups.get("pitr_enabled", False))
            retention = format_retention(backups.get("pitr_retention_days"))
        except Exception as e:
            # One unreachable project degrades to "no PITR" instead of failing the check
            self.logger.error("Failed to check PITR for project %s: %s", project.name, e)
            return PITRProject(id=project.id, name=project.name, has_pitr=False)

        return PITRProject(
            id=project.id,
            name=project.name,
            has_pitr=has_pitr,
            retention_period=retention,
        )
