"""
Shared models for the PDF upload service.

Pydantic models define the inbound request and outbound JSON payloads;
dataclasses carry the internal upload results between components.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class RenderRequest(BaseModel):
    """Inbound request body. Fields are not required; absent values stay None."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    html: Optional[str] = Field(None, alias="Html", description="HTML document to render")
    client_name: Optional[str] = Field(
        None, alias="ClientName", description="Client name used verbatim in the file name"
    )


class ApiResponse(BaseModel):
    """Response payload. Serialized once per request, nulls included."""

    model_config = ConfigDict(frozen=True)

    base64: Optional[str] = None
    success: bool = False
    uploadUrl: Optional[str] = None
    uploadErrors: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = "healthy"
    timestamp: datetime
    environment: str
    credential_source: str


@dataclass(frozen=True)
class UploadDestination:
    """Where an upload lands: drive, parent folder and file name."""

    drive_id: Optional[str]
    parent_id: Optional[str]
    file_name: str


@dataclass(frozen=True)
class UploadOutcome:
    """Result of one upload: a file URL on success, error text on failure."""

    success: bool
    location_or_error: str

    @classmethod
    def succeeded(cls, url: str) -> "UploadOutcome":
        return cls(success=True, location_or_error=url)

    @classmethod
    def failed(cls, error: str) -> "UploadOutcome":
        return cls(success=False, location_or_error=error)


@dataclass(frozen=True)
class SessionCreated:
    """Upload session issued by the storage API."""

    upload_url: str
    expiration: Optional[str] = None


@dataclass(frozen=True)
class SessionFailed:
    """Upload session could not be created; ``error`` is the captured text."""

    error: str


SessionResult = Union[SessionCreated, SessionFailed]
