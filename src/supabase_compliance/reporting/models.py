"""
Pydantic models for compliance check results and reports.

The JSON wire format is camelCase (``hasMFA``, ``overallStatus``...); Python
code uses the snake_case attribute names. Serialize with ``to_api()``.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    field_validator,
)

from supabase_compliance.core.utils import is_valid_url, utc_now


class ComplianceStatus(str, Enum):
    """Outcome of a compliance check."""

    PASS = "pass"
    FAIL = "fail"

    @classmethod
    def from_bool(cls, compliant: bool) -> "ComplianceStatus":
        return cls.PASS if compliant else cls.FAIL


class APIModel(BaseModel):
    """Base model accepting both field names and camelCase aliases."""

    model_config = ConfigDict(populate_by_name=True)

    def to_api(self) -> Dict[str, Any]:
        """Dump as JSON-compatible camelCase dict."""
        return self.model_dump(mode="json", by_alias=True)


class CheckResult(APIModel):
    """Base shape shared by every check result."""

    status: ComplianceStatus = Field(..., description="pass or fail")
    details: str = Field(..., description="Human readable summary")
    timestamp: datetime = Field(default_factory=utc_now)

    @property
    def passed(self) -> bool:
        return self.status == ComplianceStatus.PASS


class MFAUser(APIModel):
    id: str
    email: str = "no-email"
    has_mfa: bool = Field(False, alias="hasMFA")


class MFACheckResult(CheckResult):
    users: List[MFAUser] = Field(default_factory=list)

    @property
    def users_without_mfa(self) -> List[MFAUser]:
        return [u for u in self.users if not u.has_mfa]


class RLSPolicy(APIModel):
    name: str
    command: str = "ALL"
    roles: List[str] = Field(default_factory=list)


class RLSTable(APIModel):
    name: str
    has_rls: bool = Field(False, alias="hasRLS")
    policies: List[RLSPolicy] = Field(default_factory=list)


class RLSCheckResult(CheckResult):
    tables: List[RLSTable] = Field(default_factory=list)

    @property
    def tables_without_rls(self) -> List[RLSTable]:
        return [t for t in self.tables if not t.has_rls]


class PITRProject(APIModel):
    id: str
    name: str
    has_pitr: bool = Field(False, alias="hasPITR")
    retention_period: Optional[str] = Field(None, alias="retentionPeriod")


class PITRCheckResult(CheckResult):
    projects: List[PITRProject] = Field(default_factory=list)

    @property
    def projects_without_pitr(self) -> List[PITRProject]:
        return [p for p in self.projects if not p.has_pitr]


class ComplianceReport(APIModel):
    """Aggregated MFA, RLS and PITR results. Never persisted."""

    mfa: MFACheckResult
    rls: RLSCheckResult
    pitr: PITRCheckResult
    overall_status: ComplianceStatus = Field(..., alias="overallStatus")
    generated_at: datetime = Field(default_factory=utc_now, alias="generatedAt")

    @classmethod
    def build(
        cls,
        mfa: MFACheckResult,
        rls: RLSCheckResult,
        pitr: PITRCheckResult,
    ) -> "ComplianceReport":
        """Create a report, deriving the overall status from the three checks."""
        return cls(
            mfa=mfa,
            rls=rls,
            pitr=pitr,
            overall_status=ComplianceStatus.from_bool(
                mfa.passed and rls.passed and pitr.passed
            ),
        )


class SupabaseCredentials(APIModel):
    """Credentials for one Supabase project."""

    url: str
    service_key: str = Field(..., alias="serviceKey")
    management_api_key: Optional[str] = Field(None, alias="managementApiKey")

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        value = value.strip()
        if not is_valid_url(value):
            raise ValueError("Invalid Supabase URL format")
        return value.rstrip("/")

    @field_validator("service_key")
    @classmethod
    def _check_service_key(cls, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("Invalid or missing Supabase service key")
        return value.strip()


class FixOptions(APIModel):
    """Which checks a batch fix should remediate."""

    enable_mfa: StrictBool = Field(False, alias="enableMFA")
    enable_rls: StrictBool = Field(False, alias="enableRLS")
    enable_pitr: StrictBool = Field(False, alias="enablePITR")


class FixReport(APIModel):
    """Outcome of a batch fix, one boolean per requested check."""

    message: str = "Fix operation completed"
    results: Dict[str, bool] = Field(default_factory=dict)
    manual_actions: List[str] = Field(default_factory=list, alias="manualActions")
    failures: Dict[str, List[str]] = Field(default_factory=dict)


class ManagedProject(APIModel):
    """A project as listed by the Management API."""

    id: str
    name: str
    ref: Optional[str] = None


class AIResponseMetadata(APIModel):
    model: str
    timestamp: datetime = Field(default_factory=utc_now)


class AIResponse(APIModel):
    content: str
    metadata: AIResponseMetadata


__all__ = [
    "ComplianceStatus",
    "CheckResult",
    "MFAUser",
    "MFACheckResult",
    "RLSPolicy",
    "RLSTable",
    "RLSCheckResult",
    "PITRProject",
    "PITRCheckResult",
    "ComplianceReport",
    "SupabaseCredentials",
    "FixOptions",
    "FixReport",
    "ManagedProject",
    "AIResponseMetadata",
    "AIResponse",
]
