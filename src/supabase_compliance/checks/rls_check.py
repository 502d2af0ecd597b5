"""
RLS (Row Level Security) Check

Calls the ``get_rls_status`` RPC (see ``core/sql.py``) and reports which
public tables have Row Level Security enabled, along with their policies.
"""

from typing import Any, Dict, List

from supabase_compliance.core.checker import BaseCheck
from supabase_compliance.core.errors import UpstreamError
from supabase_compliance.reporting.models import (
    ComplianceStatus,
    RLSCheckResult,
    RLSPolicy,
    RLSTable,
)

RLS_STATUS_RPC = "get_rls_status"


def parse_policies(raw: Any) -> List[RLSPolicy]:
    policies = []
    for policy in raw or []:
        roles = policy.get("roles") or []
        if isinstance(roles, str):
            # Postgres name[] can come back as "{authenticated,anon}"
            roles = [r for r in roles.strip("{}").split(",") if r]
        policies.append(
            RLSPolicy(
                name=policy.get("name", "unknown"),
                command=policy.get("command") or "ALL",
                roles=list(roles),
            )
        )
    return policies


def parse_table(row: Dict[str, Any]) -> RLSTable:
    return RLSTable(
        name=row.get("table_name") or row.get("name", "unknown"),
        has_rls=bool(row.get("rls_enabled", row.get("hasRLS", False))),
        policies=parse_policies(row.get("policies")),
    )


class RLSCheck(BaseCheck):
    """Check that every public table has Row Level Security enabled."""

    name = "rls_check"
    description = "Verifies that Row Level Security is enabled on all public tables"
    category = "rls"

    async def run(self) -> RLSCheckResult:
        self.logger.info("Starting RLS compliance check")
        tables = [parse_table(row) for row in await self._fetch_status()]

        missing = [t for t in tables if not t.has_rls]
        result = RLSCheckResult(
            status=ComplianceStatus.from_bool(not missing),
            details=(
                "All tables have RLS enabled"
                if not missing
                else f"{len(missing)} tables do not have RLS enabled"
            ),
            tables=tables,
        )
        self.logger.info(
            "RLS check completed status=%s tables=%d without_rls=%d",
            result.status.value,
            len(tables),
            len(missing),
        )
        return result

    async def _fetch_status(self) -> List[Dict[str, Any]]:
        client = self.context.get_client()
        try:
            response = await self.call(client.rpc(RLS_STATUS_RPC).execute)
        except Exception as e:
            self.logger.error("Failed to fetch tables for RLS check: %s", e)
            raise UpstreamError(
                f"Failed to fetch RLS status: {e}", error="Failed to check RLS status"
            ) from e

        data = getattr(response, "data", None)
        if not isinstance(data, list):
            self.logger.error("Invalid response format from %s: %r", RLS_STATUS_RPC, data)
            raise UpstreamError(
                f"Invalid response format from {RLS_STATUS_RPC}",
                error="Failed to check RLS status",
            )
        return data
