"""
Configuration management for the Supabase Compliance Checker.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings


class ServerConfig(BaseModel):
    """HTTP server configuration."""

    host: str = Field("0.0.0.0", description="Interface the API binds to")
    port: int = Field(3001, description="Port the API listens on")
    debug: bool = Field(False, description="Run Flask in debug mode")
    cors_origins: List[str] = Field(
        default_factory=lambda: ["*"], description="Origins allowed by CORS"
    )


class ManagementConfig(BaseModel):
    """Supabase Management API configuration."""

    api_url: str = Field(
        "https://api.supabase.com/v1", description="Management API base URL"
    )
    api_key: Optional[SecretStr] = Field(
        None, description="Default Management API key used when a session has none"
    )
    timeout_seconds: float = Field(30.0, description="Timeout for Management API calls")
    pitr_retention_days: int = Field(
        7, description="Retention period requested when enabling PITR"
    )


class AIConfig(BaseModel):
    """Generative AI configuration."""

    api_key: Optional[SecretStr] = None
    model: str = Field("gemini-2.0-flash", description="Gemini model name")
    temperature: float = 0.7
    max_output_tokens: int = 2048


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level for the package")
    log_dir: Path = Field(Path("logs"), description="Directory for rotating log files")
    file_logging: bool = True
    max_bytes: int = Field(5 * 1024 * 1024, description="Rotate log files at this size")
    backup_count: int = 5


class Config(BaseSettings):
    """Main configuration class for the Supabase Compliance Checker."""

    environment: str = Field(
        "development", description="development or production"
    )

    server: ServerConfig = Field(default_factory=ServerConfig)
    management: ManagementConfig = Field(default_factory=ManagementConfig)
    ai: AIConfig = Field(default_factory=AIConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    class Config:
        env_prefix = "SUPABASE_COMPLIANCE_"
        env_nested_delimiter = "__"
        case_sensitive = False
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @classmethod
    def from_file(cls, config_path: Path | str) -> "Config":
        """Load configuration from a JSON file."""
        config_path = Path(config_path) if isinstance(config_path, str) else config_path
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path) as f:
            data = json.load(f)

        return cls(**data)

    def to_dict(self, exclude_secrets: bool = True) -> Dict[str, Any]:
        """Export configuration to a dictionary."""
        if exclude_secrets:
            return json.loads(
                self.model_dump_json(
                    exclude={
                        "management": {"api_key"},
                        "ai": {"api_key"},
                    }
                )
            )
        return json.loads(self.model_dump_json())

    def save_to_file(self, config_path: Path, exclude_secrets: bool = True) -> None:
        """Save configuration to a JSON file."""
        with open(config_path, "w") as f:
            json.dump(self.to_dict(exclude_secrets=exclude_secrets), f, indent=2)


def _well_known_env() -> Dict[str, Any]:
    """Pick up the unprefixed variables the Supabase and Google tooling use."""
    overrides: Dict[str, Any] = {}

    google_api_key = os.environ.get("GOOGLE_API_KEY")
    if google_api_key:
        overrides["ai"] = {"api_key": google_api_key}

    management_key = os.environ.get("SUPABASE_MANAGEMENT_API_KEY")
    if management_key:
        overrides["management"] = {"api_key": management_key}

    port = os.environ.get("PORT")
    if port:
        overrides["server"] = {"port": int(port)}

    return overrides


def _merge(base: Dict[str, Any], extra: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in extra.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_config(
    config_path: Optional[Path] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> Config:
    """
    Load configuration from file and environment variables.

    Priority (highest to lowest):
    1. Provided overrides
    2. Config file
    3. GOOGLE_API_KEY / SUPABASE_MANAGEMENT_API_KEY / PORT
    4. SUPABASE_COMPLIANCE_* environment variables
    5. Default values
    """
    config_data = _well_known_env()

    if config_path:
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")
        with open(config_path) as f:
            config_data = _merge(config_data, json.load(f))

    if overrides:
        config_data = _merge(config_data, overrides)

    return Config(**config_data)


def create_default_config(output_path: Path) -> None:
    """Create a default configuration file."""
    default_config = {
        "environment": "development",
        "server": {"host": "0.0.0.0", "port": 3001, "debug": False, "cors_origins": ["*"]},
        "management": {
            "api_url": "https://api.supabase.com/v1",
            "api_key": "your-management-api-key-here",
            "timeout_seconds": 30,
            "pitr_retention_days": 7,
        },
        "ai": {
            "api_key": "your-google-api-key-here",
            "model": "gemini-2.0-flash",
            "temperature": 0.7,
            "max_output_tokens": 2048,
        },
        "logging": {"level": "INFO", "log_dir": "logs", "file_logging": True},
    }

    with open(output_path, "w") as f:
        json.dump(default_config, f, indent=2)


__all__ = [
    "Config",
    "ServerConfig",
    "ManagementConfig",
    "AIConfig",
    "LoggingConfig",
    "load_config",
    "create_default_config",
]
