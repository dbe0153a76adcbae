"""
PDF Upload Service Configuration Module

Centralized configuration management with Pydantic validation.
All environment variables are read once at startup into an immutable
settings object that is handed explicitly to each component.
"""

import logging
from functools import lru_cache
from typing import List, Optional

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


logger = logging.getLogger(__name__)

# Graph requires every non-final slice to be a multiple of 320 KiB
SLICE_SIZE_UNIT = 320 * 1024


class ServiceSettings(BaseSettings):
    """
    PDF upload service configuration with validation.

    Env var names follow the Azure Functions app settings the service was
    deployed with (``browserlessApiKey``, ``tenantId``, ``driveId``...);
    upper-case spellings are accepted as well.
    """

    model_config = SettingsConfigDict(
        case_sensitive=False,
        populate_by_name=True,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    # === Environment ===
    environment: str = Field(
        default="Production",
        validation_alias=AliasChoices("AZURE_FUNCTIONS_ENVIRONMENT", "ENVIRONMENT"),
        description="Deployment environment: Development selects static secret credentials"
    )

    # === Rendering service ===
    browserless_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("browserlessApiKey", "BROWSERLESS_API_KEY"),
        description="Browserless token appended to the websocket endpoint"
    )
    browserless_endpoint: str = Field(
        default="wss://chrome.browserless.io",
        validation_alias=AliasChoices("BROWSERLESS_ENDPOINT"),
        description="Browserless websocket endpoint"
    )
    pdf_format: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("PDF_FORMAT"),
        description="Optional paper format (Letter, A4...); browser default when unset"
    )
    print_background: bool = Field(
        default=False,
        validation_alias=AliasChoices("PDF_PRINT_BACKGROUND"),
        description="Print background colors/images"
    )

    # === Static secret credentials (Development only) ===
    tenant_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("tenantId", "TENANT_ID")
    )
    client_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("clientId", "CLIENT_ID")
    )
    client_secret: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("clientSecret", "CLIENT_SECRET")
    )

    # === Storage destination ===
    drive_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("driveId", "DRIVE_ID"),
        description="Graph drive identifier"
    )
    parent_id: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("parentId", "PARENT_ID"),
        description="Graph parent folder item identifier"
    )
    graph_base_url: str = Field(
        default="https://graph.microsoft.com/v1.0",
        validation_alias=AliasChoices("GRAPH_BASE_URL"),
    )
    upload_slice_size: int = Field(
        default=SLICE_SIZE_UNIT,
        validation_alias=AliasChoices("UPLOAD_SLICE_SIZE"),
        description="Bytes per upload slice (multiple of 320 KiB)"
    )
    report_suffix: str = Field(
        default="BECReport",
        validation_alias=AliasChoices("REPORT_SUFFIX"),
        description="Fixed tag appended to uploaded file names"
    )

    # === Timeouts (unset means unbounded) ===
    render_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("RENDER_TIMEOUT_SECONDS"),
    )
    upload_timeout_seconds: Optional[float] = Field(
        default=None,
        gt=0,
        validation_alias=AliasChoices("UPLOAD_TIMEOUT_SECONDS"),
        description="Timeout applied to each Graph call"
    )

    # === Inbound auth ===
    function_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("FUNCTION_KEY"),
        description="Function-level key expected on inbound requests"
    )

    @field_validator("browserless_endpoint")
    @classmethod
    def validate_ws_endpoint(cls, v: str) -> str:
        """Browserless is only reachable over a websocket."""
        if not v.startswith(("ws://", "wss://")):
            raise ValueError(f"Invalid websocket endpoint: {v}")
        return v.rstrip("/")

    @field_validator("graph_base_url")
    @classmethod
    def validate_graph_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Invalid URL format: {v}")
        return v.rstrip("/")

    @field_validator("upload_slice_size")
    @classmethod
    def validate_slice_size(cls, v: int) -> int:
        """Validate slice size against the upload session byte-range rules."""
        if v <= 0 or v % SLICE_SIZE_UNIT != 0:
            raise ValueError(
                f"upload_slice_size must be a positive multiple of {SLICE_SIZE_UNIT} bytes"
            )
        return v

    @property
    def is_development(self) -> bool:
        """Check if running with development (static secret) credentials."""
        return self.environment.lower() == "development"

    @property
    def browser_ws_endpoint(self) -> str:
        """Token-authenticated Browserless websocket URL."""
        return f"{self.browserless_endpoint}?token={self.browserless_api_key or ''}"

    @property
    def auth_required(self) -> bool:
        """Auth required outside development OR if a key is configured."""
        return not self.is_development or self.function_key is not None

    def validate_production_config(self) -> List[str]:
        """
        Validate configuration is usable for the selected environment.

        Returns list of warning/error messages.
        """
        issues = []

        if self.is_development:
            missing = [
                name for name in ("tenant_id", "client_id", "client_secret")
                if not getattr(self, name)
            ]
            if missing:
                issues.append(
                    f"CRITICAL: Development credentials incomplete, missing {', '.join(missing)}"
                )
        elif not self.function_key:
            issues.append(
                "WARNING: FUNCTION_KEY not configured, requests will fail with a server "
                "authentication error (HTTP 500)"
            )

        if not self.browserless_api_key:
            issues.append("WARNING: browserlessApiKey not configured")
        if not self.drive_id or not self.parent_id:
            issues.append("WARNING: driveId/parentId not configured, uploads will fail")

        return issues


@lru_cache()
def get_settings() -> ServiceSettings:
    """
    Get cached settings instance.

    Settings are loaded once and cached for the life of the process.
    """
    return ServiceSettings()


def validate_config_on_startup(settings: Optional[ServiceSettings] = None) -> ServiceSettings:
    """
    Validate configuration at application startup.

    Raises ValueError with details if config is invalid.
    Logs warnings for non-critical issues.
    """
    try:
        settings = settings or get_settings()
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {e}")

    for issue in settings.validate_production_config():
        if issue.startswith("CRITICAL"):
            raise ValueError(issue)
        logger.warning(issue)

    # Log loaded configuration (redact secrets)
    logger.info(f"Configuration loaded: environment={settings.environment}")
    logger.info(f"  browserless_endpoint={settings.browserless_endpoint}")
    logger.info(f"  browserless_api_key={'*****' if settings.browserless_api_key else None}")
    logger.info(f"  graph_base_url={settings.graph_base_url}")
    logger.info(f"  drive_id={settings.drive_id} parent_id={settings.parent_id}")
    logger.info(f"  upload_slice_size={settings.upload_slice_size}")
    logger.info(f"  auth_required={settings.auth_required}")
    return settings
