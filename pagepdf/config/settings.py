"""
Application Settings
===================

Main application settings and environment configuration using Pydantic Settings.
Supports development, testing, and production environments.
"""

from typing import Optional, List, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
import json
from pathlib import Path


class Settings(BaseSettings):
    """Main application settings with environment variable support."""

    # Application Configuration
    app_name: str = Field(default="Page PDF Render Cache", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: str = Field(
        default="development", description="Environment: development, testing, production"
    )
    debug: bool = Field(default=True, description="Debug mode")

    # Server Configuration
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=3000, description="Server port")
    api_path: str = Field(default="/api/pdf", description="Path of the render endpoint")

    # Render Target Configuration
    render_base_url: Optional[str] = Field(
        default=None,
        description="Base address of rendered pages; defaults to http://localhost:<request port>",
    )
    target_param: str = Field(
        default="targetPath", description="Reserved query parameter naming the page to render"
    )
    sort_query_params: bool = Field(
        default=False, description="Sort forwarded query parameters when building cache keys"
    )

    # Storage Configuration
    artifact_dir: Path = Field(
        default=Path("./public/pdfS"), description="Directory of rendered PDF artifacts"
    )
    index_file: Path = Field(default=Path("./cache.json"), description="Cache index document")
    public_prefix: str = Field(default="/pdfS", description="URL prefix artifacts are served under")
    log_dir: Path = Field(default=Path("./logs"), description="Log file directory")

    # PDF Configuration
    pdf_format: str = Field(default="A4", description="Paper format of exported documents")
    print_background: bool = Field(default=True, description="Include background graphics")

    # Browser Configuration
    playwright_headless: bool = Field(default=True, description="Run browser in headless mode")
    playwright_timeout: int = Field(
        default=0, description="Navigation timeout in milliseconds (0 waits indefinitely)"
    )
    browser_args: List[str] = Field(
        default=["--no-sandbox", "--disable-setuid-sandbox"],
        description="Extra Chromium launch arguments",
    )

    # Security Configuration
    allowed_hosts: List[str] = Field(default=["*"], description="Allowed hosts for CORS")

    # Monitoring Configuration
    log_level: str = Field(default="INFO", description="Logging level")

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment value."""
        allowed = {"development", "testing", "production"}
        if v not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()

    @field_validator("public_prefix", "api_path")
    @classmethod
    def validate_url_path(cls, v: str) -> str:
        """Normalize URL paths to a leading slash and no trailing slash."""
        v = "/" + v.strip("/")
        if v == "/":
            raise ValueError("Path must not be the site root")
        return v

    @field_validator("render_base_url")
    @classmethod
    def strip_base_url(cls, v: Optional[str]) -> Optional[str]:
        """Drop the trailing slash so paths can be appended directly."""
        if v is None:
            return v
        return v.rstrip("/")

    @field_validator("allowed_hosts", "browser_args", mode="before")
    @classmethod
    def parse_string_list(cls, v: Union[str, List[str]]) -> List[str]:
        """Parse lists from a JSON array or comma-separated string."""
        if isinstance(v, str):
            # Handle JSON-like string: ["*"] or ["host1", "host2"]
            v = v.strip()
            if v.startswith("[") and v.endswith("]"):
                try:
                    return json.loads(v)
                except json.JSONDecodeError:
                    pass
            # Handle comma-separated string: "*" or "host1,host2"
            return [item.strip() for item in v.split(",") if item.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, env_prefix="PAGE_PDF_"
    )


# Global settings instance - will be initialized when needed
settings = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global settings
    if settings is None:
        settings = Settings()
    return settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global settings
    settings = Settings()
    return settings
