"""
Application configuration using Pydantic Settings.

Loads configuration from AEGIS_* environment variables and .env file.
Components take these values as constructor defaults only.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    model_config = SettingsConfigDict(
        env_prefix="AEGIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="aegis-core", description="Application name")
    app_env: str = Field(default="development", description="Environment (development/production)")
    log_level: str = Field(default="INFO", description="Logging level")
    log_redaction_enabled: bool = Field(default=True, description="Enable PII redaction in logs")

    # Project layout
    state_dir: str = Field(default=".aegis", description="Engine state directory (logs, histories, lock)")
    blueprints_dir: str = Field(default="blueprints", description="Directory holding one folder per blueprint")
    blueprint_filename: str = Field(default="blueprint.yaml", description="Artifact file name inside a blueprint folder")
    drift_log_dir: str = Field(default="framework/drift-log", description="Historical violation/drift logs")
    default_framework_version: str = Field(
        default="1.2.0-alpha",
        description="Framework version used when the project has no VERSION file",
    )

    # External commands and locking
    command_timeout: float = Field(default=30.0, description="Timeout for blocking external commands (seconds)")
    lock_timeout: float = Field(default=10.0, description="Wait for the repository write lock (seconds)")

    # Bounded histories
    alert_history_limit: int = Field(default=100, description="Predictive alerts kept in history")
    healing_history_limit: int = Field(default=50, description="Healing summaries kept in history")
    validation_history_limit: int = Field(default=50, description="Mechanism validation results kept in history")
    prevention_ledger_limit: int = Field(default=200, description="Executed prevention actions remembered")

    # Prediction
    auto_prevention_enabled: bool = Field(default=True, description="Auto-execute prevention for critical alerts")
    prevention_dry_run: bool = Field(default=False, description="Record prevention plans without executing them")
    validation_max_age_hours: float = Field(default=24.0, description="Age after which a validation run is stale")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.app_env.lower() == "development"

    def state_path(self, project_root: Path) -> Path:
        return Path(project_root) / self.state_dir


# Global settings instance
settings = Settings()
