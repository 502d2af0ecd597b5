"""
Integration tests for the HTTP API, driven through the Flask test client.
"""

from types import SimpleNamespace
from unittest.mock import patch

import pytest

from conftest import make_user, rls_row
from supabase_compliance.core.checker import MANAGEMENT_KEY_REQUIRED
from supabase_compliance.core.errors import UpstreamError
from supabase_compliance.dashboard.server import API_PREFIX, create_app
from supabase_compliance.dashboard.sessions import SessionStore

SERVICE_KEY = "test-service-role-key"
AUTH = {"Authorization": f"Bearer {SERVICE_KEY}"}


@pytest.fixture
def store(config):
    return SessionStore(config)


@pytest.fixture
def app(config, store):
    return create_app(config, session_store=store)


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session(store, context):
    """Register the mocked context as a verified session."""
    store.add(context)
    return context


@pytest.fixture
def management_session(store, management_context):
    store.add(management_context)
    return management_context


@pytest.mark.integration
class TestCredentials:
    """Tests for credential verification and authentication."""

    def test_verify_credentials(self, client, store, mock_supabase_client):
        with patch(
            "supabase_compliance.core.checker.create_client",
            return_value=mock_supabase_client,
        ):
            response = client.post(
                f"{API_PREFIX}/credentials",
                json={"url": "https://test.supabase.co", "serviceKey": SERVICE_KEY},
            )

        assert response.status_code == 200
        assert response.get_json()["message"] == "Credentials verified successfully"
        assert store.get(SERVICE_KEY) is not None

    def test_reverify_keeps_management_key(self, client, store, mock_supabase_client):
        payload = {"url": "https://test.supabase.co", "serviceKey": SERVICE_KEY}
        with patch(
            "supabase_compliance.core.checker.create_client",
            return_value=mock_supabase_client,
        ):
            client.post(f"{API_PREFIX}/credentials", json=payload)
            registered = client.post(
                f"{API_PREFIX}/management-key",
                json={"managementApiKey": "sbp_x"},
                headers=AUTH,
            )
            reverified = client.post(f"{API_PREFIX}/credentials", json=payload)

        assert registered.status_code == 200
        assert reverified.status_code == 200
        assert store.get(SERVICE_KEY).management_api_key == "sbp_x"

    def test_invalid_url(self, client, store):
        response = client.post(
            f"{API_PREFIX}/credentials",
            json={"url": "not-a-url", "serviceKey": SERVICE_KEY},
        )

        assert response.status_code == 400
        assert response.get_json()["details"] == "Invalid Supabase URL format"
        assert len(store) == 0

    def test_rejected_key(self, client, store, mock_supabase_client):
        mock_supabase_client.auth.admin.list_users.side_effect = RuntimeError("invalid JWT")
        with patch(
            "supabase_compliance.core.checker.create_client",
            return_value=mock_supabase_client,
        ):
            response = client.post(
                f"{API_PREFIX}/credentials",
                json={"url": "https://test.supabase.co", "serviceKey": "wrong"},
            )

        assert response.status_code == 401
        assert response.get_json()["error"] == "Invalid credentials"
        assert len(store) == 0

    def test_missing_bearer(self, client):
        response = client.get(f"{API_PREFIX}/report")

        assert response.status_code == 401
        assert response.get_json()["details"] == "Please provide credentials first"

    def test_unknown_session(self, client):
        response = client.get(f"{API_PREFIX}/report", headers={"Authorization": "Bearer nope"})

        assert response.status_code == 401

    def test_forget_credentials(self, client, store, session):
        response = client.delete(f"{API_PREFIX}/credentials", headers=AUTH)

        assert response.status_code == 200
        assert store.get(SERVICE_KEY) is None


@pytest.mark.integration
class TestReportAndChecks:
    """Tests for the report and single-check endpoints."""

    def test_report_without_management_key(self, client, session, mock_supabase_client):
        mock_supabase_client.auth.admin.list_users.return_value = [make_user("u1")]

        response = client.get(f"{API_PREFIX}/report", headers=AUTH)

        assert response.status_code == 200
        body = response.get_json()
        assert body["mfa"]["status"] == "fail"
        assert "1" in body["mfa"]["details"]
        assert body["rls"]["status"] == "pass"
        assert body["pitr"]["details"] == MANAGEMENT_KEY_REQUIRED
        assert body["overallStatus"] == "fail"
        assert "generatedAt" in body

    def test_report_all_pass(
        self, client, management_session, mock_supabase_client, mock_management_client,
        sample_projects,
    ):
        mock_supabase_client.auth.admin.list_users.return_value = [
            make_user("u1", "u1@example.com", mfa_enabled=True)
        ]
        mock_supabase_client.rpc.return_value.execute.return_value = SimpleNamespace(
            data=[rls_row("users", True)]
        )
        mock_management_client.list_projects.return_value = sample_projects
        mock_management_client.get_backups.return_value = {
            "pitr_enabled": True,
            "pitr_retention_days": 7,
        }

        body = client.get(f"{API_PREFIX}/report", headers=AUTH).get_json()

        assert body["overallStatus"] == "pass"
        assert body["pitr"]["projects"][0]["retentionPeriod"] == "7 days"

    def test_pitr_check_without_key_is_401(self, client, session):
        response = client.get(f"{API_PREFIX}/check/pitr", headers=AUTH)

        assert response.status_code == 401
        assert response.get_json()["error"] == "Management API key required"

    def test_rls_check(self, client, session, mock_supabase_client):
        mock_supabase_client.rpc.return_value.execute.return_value = SimpleNamespace(
            data=[rls_row("users", True), rls_row("posts", False)]
        )

        body = client.get(f"{API_PREFIX}/check/rls", headers=AUTH).get_json()

        assert body["status"] == "fail"
        assert body["details"] == "1 tables do not have RLS enabled"

    def test_upstream_failure_is_500(self, client, session, mock_supabase_client):
        mock_supabase_client.auth.admin.list_users.side_effect = RuntimeError("timeout")

        response = client.get(f"{API_PREFIX}/check/mfa", headers=AUTH)

        assert response.status_code == 500
        assert response.get_json()["error"] == "Failed to check MFA status"

    def test_unexpected_error_body(self, client, session):
        with patch("supabase_compliance.dashboard.server.ComplianceAggregator") as aggregator:
            aggregator.return_value.generate_report.side_effect = RuntimeError("boom")
            response = client.get(f"{API_PREFIX}/report", headers=AUTH)

        assert response.status_code == 500
        assert response.get_json() == {
            "error": "Internal server error",
            "details": "Something went wrong",
        }


@pytest.mark.integration
class TestFixes:
    """Tests for the fix endpoints."""

    def test_fix_rls(self, client, session, mock_supabase_client):
        mock_supabase_client.rpc.return_value.execute.return_value = SimpleNamespace(
            data=[rls_row("posts", False)]
        )

        response = client.post(f"{API_PREFIX}/fix", json={"enableRLS": True}, headers=AUTH)

        assert response.status_code == 200
        body = response.get_json()
        assert body["results"] == {"rls": True}
        assert body["manualActions"] == []

    @pytest.mark.parametrize(
        "payload,details",
        [
            ([True], "Fix options must be an object"),
            ({"enableRLS": "yes"}, "Invalid fix options format"),
        ],
    )
    def test_invalid_fix_options(self, client, session, payload, details):
        response = client.post(f"{API_PREFIX}/fix", json=payload, headers=AUTH)

        assert response.status_code == 400
        assert response.get_json()["details"] == details

    def test_project_fix_requires_management_key(self, client, session):
        response = client.post(f"{API_PREFIX}/fix/pitr/proj-a", headers=AUTH)

        assert response.status_code == 401
        assert response.get_json()["error"] == "Management API key required"

    def test_project_pitr_fix(self, client, management_session, mock_management_client):
        response = client.post(f"{API_PREFIX}/fix/pitr/proj-a", headers=AUTH)

        assert response.status_code == 200
        mock_management_client.enable_pitr.assert_called_once_with("proj-a", retention_days=7)

    def test_project_mfa_fix(self, client, management_session, mock_management_client):
        mock_management_client.execute_sql.return_value = [{"email": "u1@example.com"}]

        body = client.post(f"{API_PREFIX}/fix/mfa/proj-a", headers=AUTH).get_json()

        assert body["manualActionRequired"] is True
        assert body["manualActions"] == [
            "MFA must be enabled by u1@example.com through their account settings"
        ]

    def test_project_rls_fix_upstream_error(
        self, client, management_session, mock_management_client
    ):
        mock_management_client.execute_sql.side_effect = UpstreamError(
            "Failed to execute SQL: 400 - syntax error", upstream_status=400
        )

        response = client.post(f"{API_PREFIX}/fix/rls/proj-a", headers=AUTH)

        assert response.status_code == 500
        assert "syntax error" in response.get_json()["details"]


@pytest.mark.integration
class TestManagementEndpoints:
    """Tests for management key registration and project endpoints."""

    def test_set_management_key(self, client, session):
        response = client.post(
            f"{API_PREFIX}/management-key",
            json={"managementApiKey": "sbp_new"},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert session.management_api_key == "sbp_new"

    def test_missing_management_key(self, client, session):
        response = client.post(f"{API_PREFIX}/management-key", json={}, headers=AUTH)

        assert response.status_code == 400

    def test_list_projects(self, client, management_session, mock_management_client, sample_projects):
        mock_management_client.list_projects.return_value = sample_projects

        body = client.get(f"{API_PREFIX}/projects", headers=AUTH).get_json()

        assert [p["id"] for p in body] == ["proj-a", "proj-b"]

    def test_deploy_function_requires_fields(self, client, management_session):
        response = client.post(
            f"{API_PREFIX}/projects/proj-a/functions", json={"name": "hello"}, headers=AUTH
        )

        assert response.status_code == 400

    def test_deploy_function(self, client, management_session, mock_management_client):
        mock_management_client.deploy_function.return_value = {"slug": "hello"}

        response = client.post(
            f"{API_PREFIX}/projects/proj-a/functions",
            json={"name": "hello", "code": "export default () => new Response('hi')"},
            headers=AUTH,
        )

        assert response.get_json() == {"slug": "hello"}
        mock_management_client.deploy_function.assert_called_once()


@pytest.mark.integration
class TestAIAndMisc:
    """Tests for the AI endpoints, the dashboard page and fallbacks."""

    def test_ai_without_key(self, client, session):
        response = client.post(
            f"{API_PREFIX}/ai/assist",
            json={"query": "How do I enable RLS?", "context": {"rls": {"status": "fail"}}},
            headers=AUTH,
        )

        assert response.status_code == 200
        assert response.get_json()["metadata"]["model"] == "unavailable"

    def test_ai_requires_query(self, client, session):
        response = client.post(f"{API_PREFIX}/ai/suggest", json={}, headers=AUTH)

        assert response.status_code == 400

    def test_health(self, client):
        assert client.get("/health").get_json() == {"status": "healthy"}

    def test_dashboard_page(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert b"Supabase Compliance Checker" in response.data
        assert "no-cache" in response.headers["Cache-Control"]

    def test_dashboard_offers_management_key_prompt(self, client):
        page = client.get("/").get_data(as_text=True)

        assert 'id="management-key-section"' in page
        assert '"/management-key"' in page
        assert MANAGEMENT_KEY_REQUIRED in page

    def test_default_config_reads_environment(self, monkeypatch):
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.setenv("SUPABASE_MANAGEMENT_API_KEY", "sbp_env_key")

        app = create_app()

        config = app.extensions["supabase_compliance"]["config"]
        assert config.management.api_key.get_secret_value() == "sbp_env_key"

    def test_unknown_route(self, client):
        response = client.get("/nope")

        assert response.status_code == 404
        assert response.get_json() == {"error": "Not found"}
