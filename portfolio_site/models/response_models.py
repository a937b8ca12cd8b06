"""Response models for API endpoints."""

from typing import List, Optional
from pydantic import BaseModel, Field
from portfolio_site.models.context_models import ContributionPoint, DailyTemperature, Location


class ErrorResponse(BaseModel):
    """Error response model."""

    error: str = Field(
        ...,
        description="Error message describing what went wrong",
        examples=["Missing required fields"],
    )
    message: Optional[str] = Field(
        None,
        description="Additional detail for unexpected failures",
    )


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(
        ...,
        description="Service status",
        examples=["ok"],
    )


class RootResponse(BaseModel):
    """Root endpoint response model."""

    message: str = Field(
        ...,
        description="API name",
        examples=["Portfolio Site API"],
    )
    version: str = Field(
        ...,
        description="API version",
        examples=["1.0.0"],
    )


class FeedbackResponse(BaseModel):
    """Feedback endpoint response model."""

    success: bool
    message: str
    regenerate: Optional[bool] = None
    rate_limited: Optional[bool] = Field(None, alias="rateLimited")
    retry_after: Optional[int] = Field(None, alias="retryAfter")

    class Config:
        populate_by_name = True


class GitHubActivityResponse(BaseModel):
    """Daily GitHub activity counts."""

    contributions: List[ContributionPoint] = []
    total_commits: int = Field(0, alias="totalCommits")
    recent_activity: int = Field(0, alias="recentActivity")

    class Config:
        populate_by_name = True


class WeatherResponse(BaseModel):
    """Seven-day min/max temperature forecast."""

    data: List[DailyTemperature] = []
    unit: str = "C"
    location: Location


class GeocodingResult(BaseModel):
    """Coordinates for a city name."""

    lat: float
    lon: float
    name: str
    country: Optional[str] = None
    timezone: Optional[str] = None
