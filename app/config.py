"""Application configuration."""

from functools import lru_cache
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Settings shared by the API and the migration script.

    Values come from environment variables or a ``.env`` file, by the
    upper-case alias of each field.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_parse_none_str="null",
    )

    # Service
    app_name: str = Field(default="Dermaglare Admin API", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    environment: str = Field(default="development", alias="ENVIRONMENT")
    api_v1_prefix: str = Field(default="/api/v1", alias="API_V1_PREFIX")
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=False, alias="RELOAD")

    # Firebase: inline JSON wins over a file path; neither means default credentials
    firebase_config_json: str | None = Field(default=None, alias="FIREBASE_CONFIG_JSON")
    firebase_credentials_path: str | None = Field(default=None, alias="FIREBASE_CREDENTIALS_PATH")
    firebase_project_id: str | None = Field(default=None, alias="FIREBASE_PROJECT_ID")

    # Firestore collections
    users_collection: str = Field(default="users", alias="USERS_COLLECTION")
    appointments_collection: str = Field(default="appointments", alias="APPOINTMENTS_COLLECTION")
    chats_collection: str = Field(default="chats", alias="CHATS_COLLECTION")
    notifications_collection: str = Field(
        default="notifications", alias="NOTIFICATIONS_COLLECTION"
    )

    # Value of the "role" custom claim that grants dashboard admin access
    admin_role: str = Field(default="admin", alias="ADMIN_ROLE")

    # Pricing backfill
    default_service_amount: int = Field(default=500, gt=0, alias="DEFAULT_SERVICE_AMOUNT")
    default_service_category: str = Field(default="Medical", alias="DEFAULT_SERVICE_CATEGORY")
    service_pricing_overrides: dict[str, dict[str, Any]] = Field(
        default_factory=dict,
        alias="SERVICE_PRICING",
        description='JSON object, e.g. {"PRP Therapy": {"amount": 3400, "category": "Cosmetic"}}',
    )

    # Reconciliation runs
    migration_conditional_writes: bool = Field(
        default=True,
        alias="MIGRATION_CONDITIONAL_WRITES",
        description="Only update an appointment if it is unchanged since it was read",
    )
    migration_reject_ambiguous_matches: bool = Field(
        default=False,
        alias="MIGRATION_REJECT_AMBIGUOUS_MATCHES",
        description="Fail appointments whose email matches more than one user",
    )

    # CORS (comma-separated origins of the dashboard)
    cors_origins_str: str = Field(default="http://localhost:3000", alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")

    # Logging
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: Literal["json", "console"] = Field(default="json", alias="LOG_FORMAT")

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept any case; store upper case."""
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level

    @property
    def cors_origins(self) -> list[str]:
        """CORS origins as a list."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Global settings instance
settings = get_settings()
