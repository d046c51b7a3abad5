"""
Configuration management for Workboard.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_ALLOWED_UPLOAD_TYPES = ",".join(
    [
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "image/svg+xml",
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        "text/plain",
        "text/csv",
    ]
)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")

    # Application
    app_name: str = Field(default="Workboard")
    debug: bool = Field(default=False)
    environment: str = Field(default="development")

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=8000)
    api_workers: int = Field(default=1)

    # Database
    database_url: str = Field(default="sqlite:///./workboard.db")

    # Tenant bootstrap (single-tenant sample deployment)
    default_workspace_id: str = Field(default="default-workspace")
    default_user_id: str = Field(default="default-user")
    default_user_email: str = Field(default="default@workboard.local")
    default_user_name: str = Field(default="Default User")
    default_workspace_name: str = Field(default="My Workspace")

    # Attachments
    blob_store_uri: str = Field(
        default="file://./uploads",
        description="Where attachment blobs are written (file:// only for now)",
    )
    blob_public_base_url: Optional[str] = Field(
        default=None,
        description="Base URL attachments are served from. Defaults to the blob URI.",
    )
    max_upload_bytes: int = Field(default=10 * 1024 * 1024)
    allowed_upload_types: str = Field(
        default=DEFAULT_ALLOWED_UPLOAD_TYPES,
        description="Comma-separated list of accepted attachment MIME types.",
    )

    # Logging
    log_level: str = Field(default="INFO")

    @property
    def allowed_upload_type_list(self) -> List[str]:
        """Parsed MIME allow-list."""
        return [t.strip() for t in self.allowed_upload_types.split(",") if t.strip()]


# Global settings instance
settings = Settings()


def get_settings() -> Settings:
    """Get application settings."""
    return settings
