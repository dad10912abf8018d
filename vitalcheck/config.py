"""
Configuration management with environment variable support and validation.

Settings are read once from the environment (or a .env file) and validated at
startup. There is no default encryption key; a missing one fails fast.
"""

import os
from functools import lru_cache
from typing import Literal, cast

from cryptography.fernet import Fernet
from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

from vitalcheck.domain.models import Severity

# Load environment variables from .env file
load_dotenv()


class SecurityConfig(BaseModel):
    """Authentication and encryption-at-rest settings."""

    encryption_key: str = Field(..., description="Fernet master key for health data at rest")
    session_duration_hours: float = Field(
        default=24.0, gt=0.0, description="Lifetime of an authenticated session"
    )
    lockout_threshold: int = Field(
        default=5, gt=0, description="Failed logins before the account is locked"
    )
    lockout_minutes: float = Field(default=30.0, gt=0.0, description="Account lockout duration")
    security_log_retention: int = Field(
        default=100, gt=0, description="Number of warning/critical security events kept"
    )

    @field_validator("encryption_key")
    def validate_encryption_key(cls, v):
        if not v or v == "your-encryption-key-here":
            raise ValueError("Encryption key must be set in environment or .env file")
        try:
            Fernet(v.encode())
        except ValueError as e:
            raise ValueError("Encryption key must be a urlsafe base64-encoded 32-byte key") from e
        return v


class ClassifierConfig(BaseModel):
    """Learned classifier settings. The rule-based path is always active."""

    enabled: bool = Field(default=True, description="Consult the learned classifier")
    kernel: Literal["linear", "poly", "rbf", "sigmoid"] = Field(
        default="rbf", description="SVM kernel"
    )
    gamma: float = Field(default=0.5, gt=0.0, description="RBF kernel coefficient")
    c: float = Field(default=1.0, gt=0.0, description="SVM regularization parameter")


class AlertConfig(BaseModel):
    """Alert log and default monitoring behavior."""

    retention: int = Field(default=100, gt=0, description="Most recent alerts kept per user")
    default_threshold: Severity = Field(
        default=Severity.WARNING, description="Alert threshold for users without saved settings"
    )
    default_active: bool = Field(default=True, description="Monitoring active by default")


class StorageConfig(BaseModel):
    """Storage collaborator selection."""

    backend: Literal["memory", "file"] = Field(default="file", description="Storage backend")
    data_dir: str = Field(default="./data", description="Directory for the file backend")


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: Literal["json", "console"] = Field(default="json", description="Logging format")


class AppConfig(BaseModel):
    """Main application configuration combining all subsystems."""

    # Environment
    environment: Literal["development", "staging", "production"] = Field(
        default="development", description="Environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Component configs
    security: SecurityConfig
    classifier: ClassifierConfig
    alerts: AlertConfig
    storage: StorageConfig
    logging: LoggingConfig

    @model_validator(mode="after")
    def debug_only_in_dev(self) -> "AppConfig":
        """Ensure debug mode is only allowed in development environment."""
        if self.debug and self.environment != "development":
            raise ValueError("debug mode is only allowed in development environment")
        return self


def load_config_from_env() -> AppConfig:
    """Load configuration from environment variables with validation."""

    def _env_to_literal(val: str) -> Literal["development", "staging", "production"]:
        v = val.strip().lower()
        if v in {"dev", "development"}:
            return "development"
        if v in {"stage", "staging"}:
            return "staging"
        return "production"

    def _level_to_literal(val: str) -> Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]:
        v = val.strip().upper()
        return cast(
            Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
            v if v in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"} else "INFO",
        )

    def _parse_bool(val: str | None, default: bool) -> bool:
        if val is None:
            return default
        return val.strip().lower() in {"1", "true", "yes", "on"}

    # Detect environment
    environment = _env_to_literal(os.getenv("ENVIRONMENT", "development"))
    debug = environment == "development"

    security_config = SecurityConfig(
        encryption_key=os.getenv("ENCRYPTION_KEY", ""),
        session_duration_hours=float(os.getenv("SESSION_DURATION_HOURS", "24")),
        lockout_threshold=int(os.getenv("LOCKOUT_THRESHOLD", "5")),
        lockout_minutes=float(os.getenv("LOCKOUT_MINUTES", "30")),
    )

    classifier_config = ClassifierConfig(
        enabled=_parse_bool(os.getenv("CLASSIFIER_ENABLED"), True),
        gamma=float(os.getenv("CLASSIFIER_GAMMA", "0.5")),
        c=float(os.getenv("CLASSIFIER_C", "1.0")),
    )

    alert_config = AlertConfig(
        retention=int(os.getenv("ALERT_RETENTION", "100")),
        default_threshold=Severity(os.getenv("ALERT_THRESHOLD", "warning").strip().lower()),
        default_active=_parse_bool(os.getenv("MONITORING_ACTIVE"), True),
    )

    storage_backend = os.getenv("STORAGE_BACKEND", "file").strip().lower()
    storage_config = StorageConfig(
        backend="memory" if storage_backend == "memory" else "file",
        data_dir=os.getenv("DATA_DIR", "./data"),
    )

    logging_config = LoggingConfig(
        level=_level_to_literal(os.getenv("LOG_LEVEL", "INFO")),
        format="console" if debug else "json",
    )

    return AppConfig(
        environment=environment,
        debug=debug,
        security=security_config,
        classifier=classifier_config,
        alerts=alert_config,
        storage=storage_config,
        logging=logging_config,
    )


@lru_cache
def get_config() -> AppConfig:
    """Get cached application configuration."""
    return load_config_from_env()


def validate_config() -> None:
    """Validate configuration at startup."""
    try:
        config = get_config()
        print(f"Configuration loaded for {config.environment} environment")
        if config.classifier.enabled:
            print(f"Learned classifier enabled ({config.classifier.kernel} kernel)")
    except Exception as e:
        print(f"Configuration validation failed: {e}")
        raise


def print_config_summary() -> None:
    """Print configuration summary for debugging."""
    config = get_config()

    print("\nCONFIGURATION SUMMARY")
    print(f"Environment: {config.environment}")
    print(f"Debug Mode: {config.debug}")
    print(f"Log Level: {config.logging.level}")

    print("\nCLASSIFIER")
    print(f"Enabled: {config.classifier.enabled}")
    print(f"Kernel: {config.classifier.kernel}")
    print(f"Gamma: {config.classifier.gamma}, C: {config.classifier.c}")

    print("\nALERTS")
    print(f"Default Threshold: {config.alerts.default_threshold.value}")
    print(f"Retention: {config.alerts.retention} alerts")

    print("\nSTORAGE")
    print(f"Backend: {config.storage.backend}")
    if config.storage.backend == "file":
        print(f"Data Directory: {config.storage.data_dir}")


if __name__ == "__main__":
    # Test configuration loading
    validate_config()
    print_config_summary()
