"""
Remediation for failing compliance checks.

Batch fixes work on the session's project through the Supabase SDK; project
fixes go through the Management API for a given project ref. Each fix is
best-effort: a failing item is recorded and the remaining items still run.

MFA cannot be enabled on a user's behalf. The MFA fixes only verify the
users exist and report them as needing manual enrollment.
"""

import asyncio
from typing import Any, Awaitable, List, Optional

from supabase_compliance.checks import MFACheck, PITRCheck, RLSCheck
from supabase_compliance.core import sql
from supabase_compliance.core.checker import ComplianceContext
from supabase_compliance.core.errors import UpstreamError
from supabase_compliance.core.logger import get_logger
from supabase_compliance.reporting.models import FixOptions, FixReport

ENABLE_RLS_RPC = "enable_rls_for_table"


def manual_mfa_action(email: str) -> str:
    return f"MFA must be enabled by {email} through their account settings"


class ComplianceFixer:
    """Applies fixes for the MFA, RLS and PITR checks."""

    def __init__(
        self,
        context: ComplianceContext,
        mfa_check: Optional[MFACheck] = None,
        rls_check: Optional[RLSCheck] = None,
        pitr_check: Optional[PITRCheck] = None,
    ):
        self.context = context
        self.mfa_check = mfa_check or MFACheck(context)
        self.rls_check = rls_check or RLSCheck(context)
        self.pitr_check = pitr_check or PITRCheck(context)
        self.logger = get_logger("remediation")

    async def _call(self, func, *args, **kwargs):
        return await asyncio.to_thread(func, *args, **kwargs)

    async def fix_issues(self, options: FixOptions) -> FixReport:
        """
        Fix every check requested in ``options``.

        ``results`` holds one boolean per requested check: true when every
        offending item was remediated. Items that could not be fixed are
        listed under ``failures``.
        """
        report = FixReport()

        if options.enable_mfa:
            await self._run_fix("mfa", self._fix_mfa(report), report)
        if options.enable_rls:
            await self._run_fix("rls", self._fix_rls(), report)
        if options.enable_pitr:
            await self._run_fix("pitr", self._fix_pitr(), report)

        self.logger.info("Fix operation completed results=%s", report.results)
        return report

    async def _run_fix(self, check: str, fix: Awaitable[List[str]], report: FixReport) -> None:
        try:
            failed = await fix
        except Exception as e:
            self.logger.error("%s fix failed: %s", check.upper(), e)
            report.results[check] = False
            report.failures[check] = [str(e)]
            return

        report.results[check] = not failed
        if failed:
            report.failures[check] = failed

    async def _fix_mfa(self, report: FixReport) -> List[str]:
        status = await self.mfa_check.run()
        pending = []
        for user in status.users_without_mfa:
            pending.append(user.email)
            try:
                await self.enable_mfa_for_user(user.id)
            except UpstreamError as e:
                self.logger.error("MFA fix failed for user %s: %s", user.id, e)
                continue
            report.manual_actions.append(manual_mfa_action(user.email))
        return pending

    async def _fix_rls(self) -> List[str]:
        status = await self.rls_check.run()
        failed = []
        for table in status.tables_without_rls:
            try:
                await self.enable_rls_for_table(table.name)
            except UpstreamError as e:
                self.logger.error("%s", e)
                failed.append(table.name)
        return failed

    async def _fix_pitr(self) -> List[str]:
        status = await self.pitr_check.run()
        failed = []
        for project in status.projects_without_pitr:
            try:
                await self.enable_pitr(project.id)
            except UpstreamError as e:
                self.logger.error("%s", e)
                failed.append(project.name)
        return failed

    async def enable_mfa_for_user(self, user_id: str) -> None:
        """
        Confirm a user exists so they can be asked to enroll in MFA.

        Raises:
            UpstreamError: If the user cannot be found
        """
        client = self.context.get_client()
        try:
            response = await self._call(client.auth.admin.get_user_by_id, user_id)
        except Exception as e:
            raise UpstreamError(f"User not found: {e}") from e
        user = getattr(response, "user", None)
        if user is None:
            raise UpstreamError(f"User not found: {user_id}")
        self.logger.info(
            "MFA must be enabled by user %s through their account settings",
            getattr(user, "email", user_id),
        )

    async def enable_rls_for_table(self, table_name: str) -> None:
        """Enable RLS plus the default authenticated-users policy on one table."""
        client = self.context.get_client()
        try:
            await self._call(
                client.rpc(ENABLE_RLS_RPC, {"target_table": table_name}).execute
            )
        except Exception as e:
            raise UpstreamError(f"Failed to enable RLS for table {table_name}: {e}") from e
        self.logger.info("Enabled RLS for table %s", table_name)

    async def enable_pitr(self, project_ref: str) -> None:
        """
        Enable PITR on a project through the Management API.

        Raises:
            ManagementKeyRequiredError: If no Management API key is configured
            UpstreamError: If the Management API rejects the request
        """
        management = self.context.get_management_client()
        await self._call(
            management.enable_pitr,
            project_ref,
            retention_days=self.context.config.management.pitr_retention_days,
        )
        self.logger.info("Enabled PITR for project %s", project_ref)

    async def enable_rls_for_project(self, project_ref: str) -> None:
        """Install the helper functions and enable RLS on every public table of a project."""
        management = self.context.get_management_client()
        await self._call(management.execute_sql, project_ref, sql.SETUP_SCRIPT)
        await self._call(management.execute_sql, project_ref, sql.ENABLE_RLS_FOR_ALL_TABLES)
        self.logger.info("Enabled RLS for all public tables in project %s", project_ref)

    async def users_needing_mfa(self, project_ref: str) -> List[str]:
        """List the manual MFA actions pending for a project's users."""
        management = self.context.get_management_client()
        rows: Any = await self._call(management.execute_sql, project_ref, sql.USERS_WITHOUT_MFA)
        actions = [
            manual_mfa_action(row.get("email") or "no-email")
            for row in rows or []
            if isinstance(row, dict)
        ]
        self.logger.info(
            "%d users in project %s need to enroll in MFA", len(actions), project_ref
        )
        return actions


__all__ = ["ComplianceFixer", "manual_mfa_action", "ENABLE_RLS_RPC"]
