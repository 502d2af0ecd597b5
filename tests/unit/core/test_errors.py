"""
Unit tests for core.errors and core.utils modules.
"""

from supabase_compliance.core.errors import (
    AuthenticationError,
    ComplianceError,
    ManagementKeyRequiredError,
    UpstreamError,
    ValidationError,
)
from supabase_compliance.core.utils import is_valid_url, redact_secret


class TestErrors:
    """Tests for the exception hierarchy."""

    def test_status_codes(self):
        assert ValidationError("bad").status_code == 400
        assert AuthenticationError("who").status_code == 401
        assert ManagementKeyRequiredError().status_code == 401
        assert UpstreamError("down").status_code == 500

    def test_management_key_error_is_distinguishable(self):
        error = ManagementKeyRequiredError()

        assert isinstance(error, AuthenticationError)
        assert error.to_dict() == {
            "error": "Management API key required",
            "details": "Management API key is required for this operation",
        }

    def test_custom_error_text(self):
        error = UpstreamError("rpc failed", error="Failed to check RLS status", upstream_status=502)

        assert isinstance(error, ComplianceError)
        assert error.to_dict()["error"] == "Failed to check RLS status"
        assert error.upstream_status == 502
        assert UpstreamError("other").error == "Upstream request failed"


class TestUtils:
    """Tests for utility helpers."""

    def test_redact_secret(self):
        assert redact_secret("eyJhbGciOiJIUzI1NiJ9.payload") == "eyJh...load"
        assert redact_secret("short") == "*****"

    def test_is_valid_url(self):
        assert is_valid_url("https://abc.supabase.co")
        assert is_valid_url("http://localhost:54321")
        assert not is_valid_url("abc.supabase.co")
        assert not is_valid_url("")
