"""
MFA (Multi-Factor Authentication) Check

Lists every auth user through the admin API and reports which ones have MFA.
A user counts as enrolled when ``app_metadata.mfa_enabled`` is set or when at
least one verified MFA factor exists. The metadata flag is project specific
and not a real enrollment signal, so the factor list is consulted as well.
"""

from typing import Any, List

from supabase_compliance.core.checker import BaseCheck
from supabase_compliance.core.errors import UpstreamError
from supabase_compliance.reporting.models import ComplianceStatus, MFACheckResult, MFAUser

USERS_PER_PAGE = 1000


def _get(obj: Any, key: str, default: Any = None) -> Any:
    if isinstance(obj, dict):
        return obj.get(key, default)
    return getattr(obj, key, default)


def user_has_mfa(user: Any) -> bool:
    """Decide whether an auth user has MFA enabled."""
    app_metadata = _get(user, "app_metadata") or {}
    if bool(app_metadata.get("mfa_enabled")):
        return True
    factors = _get(user, "factors") or []
    return any(_get(factor, "status") == "verified" for factor in factors)


class MFACheck(BaseCheck):
    """Check that every user has MFA enabled."""

    name = "mfa_check"
    description = "Verifies that all auth users have multi-factor authentication enabled"
    category = "mfa"

    async def run(self) -> MFACheckResult:
        self.logger.info("Starting MFA compliance check")
        users = [
            MFAUser(
                id=str(_get(user, "id")),
                email=_get(user, "email") or "no-email",
                has_mfa=user_has_mfa(user),
            )
            for user in await self._list_users()
        ]

        missing = [u for u in users if not u.has_mfa]
        result = MFACheckResult(
            status=ComplianceStatus.from_bool(not missing),
            details=(
                "All users have MFA enabled"
                if not missing
                else f"{len(missing)} users do not have MFA enabled"
            ),
            users=users,
        )
        self.logger.info(
            "MFA check completed status=%s users=%d without_mfa=%d",
            result.status.value,
            len(users),
            len(missing),
        )
        return result

    async def _list_users(self) -> List[Any]:
        client = self.context.get_client()
        users: List[Any] = []
        page = 1
        while True:
            try:
                batch = await self.call(
                    client.auth.admin.list_users, page=page, per_page=USERS_PER_PAGE
                )
            except Exception as e:
                self.logger.error("Failed to fetch users for MFA check: %s", e)
                raise UpstreamError(
                    f"Failed to fetch users: {e}", error="Failed to check MFA status"
                ) from e

            batch = list(batch or [])
            users.extend(batch)
            if len(batch) < USERS_PER_PAGE:
                return users
            page += 1
