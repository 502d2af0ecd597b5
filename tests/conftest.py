"""
Pytest configuration and shared fixtures for the Supabase Compliance Checker.
"""

from types import SimpleNamespace
from typing import Any, Dict, List, Optional
from unittest.mock import Mock

import pytest
from pydantic import SecretStr

from supabase_compliance.core.checker import ComplianceContext
from supabase_compliance.core.config import (
    AIConfig,
    Config,
    LoggingConfig,
    ManagementConfig,
)
from supabase_compliance.integrations.management_api import ManagementAPIClient
from supabase_compliance.reporting.models import ManagedProject, SupabaseCredentials


# ============================================================================
# Pytest Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests")


# ============================================================================
# Helpers
# ============================================================================

def make_user(
    user_id: str,
    email: Optional[str] = None,
    mfa_enabled: bool = False,
    factors: Optional[List[Dict[str, Any]]] = None,
) -> SimpleNamespace:
    """Build an object shaped like a supabase-py auth User."""
    return SimpleNamespace(
        id=user_id,
        email=email,
        app_metadata={"mfa_enabled": True} if mfa_enabled else {},
        factors=factors,
    )


def rls_row(name: str, enabled: bool, policies: Optional[list] = None) -> Dict[str, Any]:
    """Build a row as returned by the get_rls_status RPC."""
    return {"table_name": name, "rls_enabled": enabled, "policies": policies or []}


# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def config() -> Config:
    """Configuration without file logging or default API keys."""
    return Config(
        management=ManagementConfig(api_key=None),
        ai=AIConfig(api_key=None),
        logging=LoggingConfig(file_logging=False),
    )


@pytest.fixture
def config_with_management_key(config: Config) -> Config:
    """Configuration carrying a default Management API key."""
    return config.model_copy(
        update={"management": ManagementConfig(api_key=SecretStr("sbp_default_key"))}
    )


@pytest.fixture
def credentials() -> SupabaseCredentials:
    return SupabaseCredentials(
        url="https://test.supabase.co",
        service_key="test-service-role-key",
    )


# ============================================================================
# Mock External Services
# ============================================================================

@pytest.fixture
def mock_supabase_client():
    """Mock supabase-py client with no users and no tables."""
    client = Mock()
    client.auth.admin.list_users = Mock(return_value=[])
    client.auth.admin.get_user_by_id = Mock(
        side_effect=lambda uid: SimpleNamespace(user=make_user(uid, f"{uid}@example.com"))
    )
    client.rpc.return_value.execute.return_value = SimpleNamespace(data=[])
    return client


@pytest.fixture
def mock_management_client():
    """Mock Management API client with no projects."""
    client = Mock(spec=ManagementAPIClient)
    client.list_projects.return_value = []
    client.get_backups.return_value = {}
    client.enable_pitr.return_value = None
    client.execute_sql.return_value = []
    client.list_functions.return_value = []
    return client


# ============================================================================
# Context Fixtures
# ============================================================================

@pytest.fixture
def context(config, credentials, mock_supabase_client) -> ComplianceContext:
    """Context without a Management API key."""
    return ComplianceContext(
        credentials=credentials,
        config=config,
        client=mock_supabase_client,
    )


@pytest.fixture
def management_context(
    config, credentials, mock_supabase_client, mock_management_client
) -> ComplianceContext:
    """Context with a Management API key and a mocked Management API client."""
    return ComplianceContext(
        credentials=credentials.model_copy(update={"management_api_key": "sbp_test_key"}),
        config=config,
        client=mock_supabase_client,
        management_client=mock_management_client,
    )


# ============================================================================
# Test Data
# ============================================================================

@pytest.fixture
def sample_projects() -> List[ManagedProject]:
    return [
        ManagedProject(id="proj-a", name="Alpha", ref="proj-a"),
        ManagedProject(id="proj-b", name="Beta", ref="proj-b"),
    ]
