"""
Pydantic Models and Schemas
===========================

Response envelopes of the render endpoint and internal result descriptors.
Field names on the wire are camelCase; Python attributes are snake_case.
"""

from typing import Optional, Dict, Any

from pydantic import BaseModel, ConfigDict, Field


class RenderData(BaseModel):
    """Successful render (or cache hit) descriptor."""

    model_config = ConfigDict(populate_by_name=True)

    url: str = Field(..., description="Canonical target address, also the cache key")
    psd_url: str = Field(..., alias="psdUrl", description="Public address of the artifact")
    pdf_file_name: str = Field(..., alias="pdfFileName", description="Artifact filename")
    time_taken: int = Field(
        ..., alias="timeTaken", ge=0, description="Wall-clock request duration in milliseconds"
    )
    cache_hit: bool = Field(default=False, exclude=True)


class ClearData(BaseModel):
    """Cache clear confirmation."""

    message: str = "Cache Cleared"


class ApiError(BaseModel):
    """Error body."""

    message: str
    cache: Optional[Dict[str, str]] = None


class ApiResponse(BaseModel):
    """Envelope returned by the render endpoint for every outcome."""

    model_config = ConfigDict(populate_by_name=True)

    data: Optional[Any] = None
    error: Optional[ApiError] = None
    is_success: bool = Field(..., alias="isSuccess")

    @classmethod
    def success(cls, data: BaseModel) -> "ApiResponse":
        return cls(data=data.model_dump(by_alias=True), is_success=True)

    @classmethod
    def failure(cls, message: str, cache: Optional[Dict[str, str]] = None) -> "ApiResponse":
        return cls(error=ApiError(message=message, cache=cache), is_success=False)

    def to_content(self) -> Dict[str, Any]:
        """JSON-ready body with wire names and unset fields dropped."""
        return self.model_dump(by_alias=True, exclude_none=True)


class HealthStatus(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Overall health status")
    version: str = Field(..., description="Application version")
    browser_started: bool = Field(..., description="Whether the shared browser has been launched")
    browser_connected: bool = Field(..., description="Whether the shared browser is alive")
    cached_entries: Optional[int] = Field(None, description="Entries in the cache index")
    artifact_count: int = Field(..., description="Files in the artifact directory")
    index_error: Optional[str] = Field(None, description="Cache index read error, if any")
    renders_in_flight: int = Field(0, description="Targets currently being rendered or queued")
