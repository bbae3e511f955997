from pydantic import BaseModel, ConfigDict, Field


class HealthResponse(BaseModel):
    """Response model for the health check endpoint."""

    status: str
    domain: str


class GeoResult(BaseModel):
    """Geolocation answer shared by every transport: the IP and its locality fields."""

    model_config = ConfigDict(frozen=True)

    ip: str
    info: list[str] = Field(default_factory=list)


class ErrorResponse(BaseModel):
    """Error body returned by the exception handlers."""

    code: str
    message: str
