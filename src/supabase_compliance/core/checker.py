"""
Compliance context, base check class and the report aggregator.
"""

import asyncio
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, TypeVar

from supabase import Client, create_client

from supabase_compliance.core.config import Config
from supabase_compliance.core.errors import (
    ManagementKeyRequiredError,
    ValidationError,
)
from supabase_compliance.core.logger import get_logger
from supabase_compliance.core.utils import redact_secret
from supabase_compliance.integrations.management_api import ManagementAPIClient
from supabase_compliance.reporting.models import (
    CheckResult,
    ComplianceReport,
    PITRCheckResult,
    SupabaseCredentials,
)

T = TypeVar("T")

MANAGEMENT_KEY_REQUIRED = "Management API key is required for PITR check"


@dataclass
class ComplianceContext:
    """
    Per-session state passed to every check and fix.

    Holds the credentials for one Supabase project plus the lazily created
    SDK and Management API clients. One context exists per session; nothing
    here is shared between sessions.
    """

    credentials: SupabaseCredentials
    config: Config = field(default_factory=Config)
    client: Optional[Client] = None
    management_client: Optional[ManagementAPIClient] = None

    def __post_init__(self) -> None:
        self.logger = get_logger("context")

    def get_client(self) -> Client:
        """Get the Supabase client, creating it on first use."""
        if self.client is None:
            self.client = create_client(
                self.credentials.url, self.credentials.service_key
            )
            self.logger.info(
                "Initialized Supabase client url=%s key=%s",
                self.credentials.url,
                redact_secret(self.credentials.service_key),
            )
        return self.client

    @property
    def management_api_key(self) -> Optional[str]:
        if self.credentials.management_api_key:
            return self.credentials.management_api_key
        default_key = self.config.management.api_key
        if default_key is not None and default_key.get_secret_value():
            return default_key.get_secret_value()
        return None

    @property
    def has_management_key(self) -> bool:
        return self.management_api_key is not None

    def set_management_api_key(self, key: str) -> None:
        """Register a Management API key for this session."""
        if not key or not key.strip():
            raise ValidationError(
                "Management API key is required", error="Management API key is required"
            )
        self.credentials = self.credentials.model_copy(
            update={"management_api_key": key.strip()}
        )
        if self.management_client is not None:
            self.management_client.close()
        self.management_client = None

    def get_management_client(self) -> ManagementAPIClient:
        """
        Get the Management API client.

        Raises:
            ManagementKeyRequiredError: If neither the session nor the
                configuration provides a Management API key
        """
        if self.management_client is None:
            key = self.management_api_key
            if key is None:
                raise ManagementKeyRequiredError(
                    "Management API key not configured. Please set it first."
                )
            self.management_client = ManagementAPIClient(
                api_key=key,
                api_url=self.config.management.api_url,
                timeout=self.config.management.timeout_seconds,
            )
        return self.management_client

    def close(self) -> None:
        if self.management_client is not None:
            self.management_client.close()
            self.management_client = None


class BaseCheck(ABC):
    """
    Abstract base class for the compliance checks.

    A check issues its remote calls and reduces the raw responses to a
    CheckResult whose status is derived from the items it found.
    """

    name: str = "base_check"
    description: str = "Base compliance check"
    category: str = "general"

    def __init__(self, context: ComplianceContext):
        self.context = context
        self.config = context.config
        self.logger = get_logger(self.category)

    @abstractmethod
    async def run(self) -> CheckResult:
        """
        Run the check.

        Raises:
            ComplianceError: If the check cannot be completed
        """

    async def call(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> T:
        """Run a blocking SDK or HTTP call in a worker thread."""
        return await asyncio.to_thread(func, *args, **kwargs)


class ComplianceAggregator:
    """
    Runs the MFA, RLS and PITR checks and reduces them to one report.
    """

    def __init__(
        self,
        context: ComplianceContext,
        mfa_check: Optional[BaseCheck] = None,
        rls_check: Optional[BaseCheck] = None,
        pitr_check: Optional[BaseCheck] = None,
    ):
        from supabase_compliance.checks import MFACheck, PITRCheck, RLSCheck

        self.context = context
        self.mfa_check = mfa_check or MFACheck(context)
        self.rls_check = rls_check or RLSCheck(context)
        self.pitr_check = pitr_check or PITRCheck(context)
        self.logger = get_logger("aggregator")

    async def generate_report(self) -> ComplianceReport:
        """
        Produce a compliance report.

        MFA and RLS run concurrently; PITR runs afterwards. A missing
        Management API key turns the PITR section into a failing result
        instead of an error. Every other failure propagates.
        """
        mfa_result, rls_result = await asyncio.gather(
            self.mfa_check.run(), self.rls_check.run()
        )

        try:
            pitr_result = await self.pitr_check.run()
        except ManagementKeyRequiredError:
            self.logger.info("PITR check skipped: no Management API key")
            pitr_result = PITRCheckResult(
                status="fail",
                details=MANAGEMENT_KEY_REQUIRED,
                projects=[],
            )

        report = ComplianceReport.build(mfa_result, rls_result, pitr_result)
        self.logger.info(
            "Compliance report generated overall=%s mfa=%s rls=%s pitr=%s",
            report.overall_status.value,
            mfa_result.status.value,
            rls_result.status.value,
            pitr_result.status.value,
        )
        return report


__all__ = [
    "ComplianceContext",
    "BaseCheck",
    "ComplianceAggregator",
    "MANAGEMENT_KEY_REQUIRED",
]
