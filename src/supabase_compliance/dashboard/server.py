#!/usr/bin/env python3
"""
Supabase Compliance Dashboard - HTTP API and dashboard page.

All compliance endpoints live under /api/compliance. Apart from
POST /credentials they require ``Authorization: Bearer <service key>`` for a
session created by POST /credentials.
"""

import asyncio
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional

from flask import Flask, g, jsonify, make_response, render_template, request
from flask_cors import CORS
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException

from supabase_compliance.checks import MFACheck, PITRCheck, RLSCheck
from supabase_compliance.core.checker import (
    MANAGEMENT_KEY_REQUIRED,
    ComplianceAggregator,
    ComplianceContext,
)
from supabase_compliance.core.config import Config, load_config
from supabase_compliance.core.errors import (
    AuthenticationError,
    ComplianceError,
    ValidationError,
)
from supabase_compliance.core.logger import get_logger
from supabase_compliance.core.utils import redact_secret, utc_now_iso
from supabase_compliance.dashboard.sessions import SessionStore
from supabase_compliance.integrations.ai_assistant import AIAssistant
from supabase_compliance.reporting.models import FixOptions, SupabaseCredentials
from supabase_compliance.remediation.fixer import ComplianceFixer

API_PREFIX = "/api/compliance"


def run_async(coro):
    """Drive a coroutine to completion from a synchronous Flask view."""
    return asyncio.run(coro)


def _bearer_token() -> Optional[str]:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object")
    return body


def _first_error(exc: PydanticValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return str(exc)
    message = errors[0].get("msg", str(exc))
    return message.removeprefix("Value error, ")


def create_app(
    config: Optional[Config] = None,
    session_store: Optional[SessionStore] = None,
    assistant: Optional[AIAssistant] = None,
) -> Flask:
    """Create and configure the Flask application."""

    config = config if config is not None else load_config()
    dashboard_dir = Path(__file__).parent

    app = Flask(__name__, template_folder=str(dashboard_dir / "templates"))
    CORS(app, origins=config.server.cors_origins)

    logger = get_logger("api")
    sessions = session_store if session_store is not None else SessionStore(config)
    ai = assistant if assistant is not None else AIAssistant(config.ai)

    app.extensions["supabase_compliance"] = {
        "config": config,
        "sessions": sessions,
        "assistant": ai,
    }

    def authenticate(view):
        """Attach the caller's compliance context to ``g.compliance``."""

        @wraps(view)
        def wrapper(*args, **kwargs):
            token = _bearer_token()
            if token is None:
                raise AuthenticationError("Please provide credentials first")
            context = sessions.get(token)
            if context is None:
                raise AuthenticationError(
                    "No Supabase session found for this key. Please provide credentials first"
                )
            g.compliance = context
            return view(*args, **kwargs)

        return wrapper

    def current_context() -> ComplianceContext:
        return g.compliance

    # ------------------------------------------------------------------
    # Error handling
    # ------------------------------------------------------------------

    @app.errorhandler(ComplianceError)
    def handle_compliance_error(error: ComplianceError):
        if error.status_code >= 500:
            logger.error("%s: %s", error.error, error.message)
        else:
            logger.info("%s: %s", error.error, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(_error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(Exception)
    def handle_unexpected(error: Exception):
        if isinstance(error, HTTPException):
            return jsonify({"error": error.description}), error.code
        logger.exception("Unhandled error: %s", error)
        return jsonify(
            {
                "error": "Internal server error",
                "details": str(error) if config.server.debug else "Something went wrong",
            }
        ), 500

    # ------------------------------------------------------------------
    # Dashboard and health
    # ------------------------------------------------------------------

    @app.route("/")
    def index():
        page = render_template(
            "dashboard.html",
            api_prefix=API_PREFIX,
            management_key_required=MANAGEMENT_KEY_REQUIRED,
        )
        response = make_response(page)
        response.headers["Cache-Control"] = "no-cache, no-store, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"
        return response

    @app.route("/health")
    def health():
        return jsonify({"status": "healthy"})

    # ------------------------------------------------------------------
    # Credentials
    # ------------------------------------------------------------------

    @app.route(f"{API_PREFIX}/credentials", methods=["POST"])
    def verify_credentials():
        """Verify Supabase credentials and open a session for them"""
        try:
            credentials = SupabaseCredentials.model_validate(_json_body())
        except PydanticValidationError as e:
            raise ValidationError(_first_error(e), error="Invalid credentials") from e

        logger.info(
            "Received credentials request url=%s key=%s",
            credentials.url,
            redact_secret(credentials.service_key),
        )

        context = sessions.new_context(credentials)
        try:
            # Listing users proves the key is a working service-role key
            run_async(MFACheck(context).run())
        except Exception as e:
            context.close()
            logger.error("Credentials verification failed: %s", e)
            raise AuthenticationError(
                getattr(e, "message", str(e)), error="Invalid credentials"
            ) from e

        sessions.add(context)
        return jsonify(
            {
                "message": "Credentials verified successfully",
                "timestamp": utc_now_iso(),
            }
        )

    @app.route(f"{API_PREFIX}/credentials", methods=["DELETE"])
    @authenticate
    def forget_credentials():
        """Drop the caller's session"""
        sessions.remove(current_context().credentials.service_key)
        return jsonify({"message": "Session closed"})

    @app.route(f"{API_PREFIX}/management-key", methods=["POST"])
    @authenticate
    def set_management_key():
        """Register a Management API key for the caller's session"""
        key = _json_body().get("managementApiKey")
        if not isinstance(key, str) or not key.strip():
            raise ValidationError(
                "Management API key is required", error="Management API key is required"
            )
        current_context().set_management_api_key(key)
        return jsonify({"message": "Management API key set successfully"})

    # ------------------------------------------------------------------
    # Checks and report
    # ------------------------------------------------------------------

    @app.route(f"{API_PREFIX}/report")
    @authenticate
    def generate_report():
        report = run_async(ComplianceAggregator(current_context()).generate_report())
        return jsonify(report.to_api())

    @app.route(f"{API_PREFIX}/check/mfa")
    @authenticate
    def check_mfa():
        return jsonify(run_async(MFACheck(current_context()).run()).to_api())

    @app.route(f"{API_PREFIX}/check/rls")
    @authenticate
    def check_rls():
        return jsonify(run_async(RLSCheck(current_context()).run()).to_api())

    @app.route(f"{API_PREFIX}/check/pitr")
    @authenticate
    def check_pitr():
        return jsonify(run_async(PITRCheck(current_context()).run()).to_api())

    # ------------------------------------------------------------------
    # Fixes
    # ------------------------------------------------------------------

    @app.route(f"{API_PREFIX}/fix", methods=["POST"])
    @authenticate
    def fix_issues():
        body = request.get_json(silent=True)
        if not isinstance(body, dict):
            raise ValidationError("Fix options must be an object")
        try:
            options = FixOptions.model_validate(body)
        except PydanticValidationError as e:
            raise ValidationError("Invalid fix options format") from e

        report = run_async(ComplianceFixer(current_context()).fix_issues(options))
        return jsonify(report.to_api())

    @app.route(f"{API_PREFIX}/fix/mfa/<project_ref>", methods=["POST"])
    @authenticate
    def fix_project_mfa(project_ref: str):
        actions = run_async(ComplianceFixer(current_context()).users_needing_mfa(project_ref))
        return jsonify(
            {
                "message": (
                    "MFA requires manual user action"
                    if actions
                    else "All users have MFA enabled"
                ),
                "manualActionRequired": bool(actions),
                "manualActions": actions,
            }
        )

    @app.route(f"{API_PREFIX}/fix/rls/<project_ref>", methods=["POST"])
    @authenticate
    def fix_project_rls(project_ref: str):
        run_async(ComplianceFixer(current_context()).enable_rls_for_project(project_ref))
        return jsonify({"message": "RLS enabled successfully"})

    @app.route(f"{API_PREFIX}/fix/pitr/<project_ref>", methods=["POST"])
    @authenticate
    def fix_project_pitr(project_ref: str):
        run_async(ComplianceFixer(current_context()).enable_pitr(project_ref))
        return jsonify({"message": "PITR enabled successfully"})

    # ------------------------------------------------------------------
    # Management API passthrough
    # ------------------------------------------------------------------

    @app.route(f"{API_PREFIX}/projects")
    @authenticate
    def list_projects():
        projects = current_context().get_management_client().list_projects()
        return jsonify([p.to_api() for p in projects])

    @app.route(f"{API_PREFIX}/projects/<project_ref>/functions")
    @authenticate
    def list_functions(project_ref: str):
        return jsonify(current_context().get_management_client().list_functions(project_ref))

    @app.route(f"{API_PREFIX}/projects/<project_ref>/functions", methods=["POST"])
    @authenticate
    def deploy_function(project_ref: str):
        body = _json_body()
        name, code = body.get("name"), body.get("code")
        if not name or not code:
            raise ValidationError("Function name and code are required")
        result = current_context().get_management_client().deploy_function(
            project_ref, name, code
        )
        return jsonify(result)

    # ------------------------------------------------------------------
    # AI assistant
    # ------------------------------------------------------------------

    def _ai_query(body: Dict[str, Any]) -> str:
        query = body.get("query")
        if not isinstance(query, str) or not query.strip():
            raise ValidationError("Query is required")
        return query

    @app.route(f"{API_PREFIX}/ai/assist", methods=["POST"])
    @authenticate
    def ai_assist():
        body = _json_body()
        response = run_async(
            ai.get_compliance_assistance(_ai_query(body), body.get("context"))
        )
        return jsonify(response.to_api())

    @app.route(f"{API_PREFIX}/ai/suggest", methods=["POST"])
    @authenticate
    def ai_suggest():
        body = _json_body()
        response = run_async(
            ai.get_suggestions(
                _ai_query(body), body.get("currentConfig") or body.get("context")
            )
        )
        return jsonify(response.to_api())

    return app


def main():
    """Main entry point for the dashboard server."""
    from supabase_compliance.core.logger import setup_logging

    config = load_config()
    setup_logging(config)
    app = create_app(config)
    app.run(
        host=config.server.host,
        port=config.server.port,
        debug=config.server.debug,
        threaded=True,
    )


if __name__ == "__main__":
    main()
