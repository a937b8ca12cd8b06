"""Models describing the visitor and the data handed to the AI prompts."""

from typing import List, Literal, Optional
from pydantic import BaseModel, Field


DeviceType = Literal["mobile", "tablet", "desktop"]
TimeOfDay = Literal["morning", "afternoon", "evening", "night"]
CategorizationStatus = Literal["matched", "new_tag", "rejected"]


class GeoContext(BaseModel):
    """Visitor location as reported by the edge."""

    country: Optional[str] = None
    city: Optional[str] = None
    continent: Optional[str] = None
    timezone: Optional[str] = None
    region: Optional[str] = None
    is_eu_country: bool = False


class DeviceContext(BaseModel):
    """Device details parsed from the User-Agent."""

    type: DeviceType = "desktop"
    browser: Optional[str] = None
    os: Optional[str] = None


class TimeContext(BaseModel):
    """Visitor local time."""

    local_hour: int
    time_of_day: TimeOfDay
    is_weekend: bool


class NetworkContext(BaseModel):
    """Connection details."""

    http_protocol: str = "HTTP/1.1"
    colo: str = "unknown"


class VisitorContext(BaseModel):
    """Everything known about the visitor at request time."""

    geo: GeoContext
    device: DeviceContext
    time: TimeContext
    network: NetworkContext = NetworkContext()

    def public_summary(self) -> dict:
        """Subset of the context that is echoed back to clients."""
        return {
            "geo": {"country": self.geo.country, "city": self.geo.city},
            "device": {"type": self.device.type},
            "time": {"timeOfDay": self.time.time_of_day},
        }


class UIHints(BaseModel):
    """Presentation hints derived from the visitor context."""

    suggested_theme: Literal["light", "dark", "system"] = Field("system", alias="suggestedTheme")
    prefer_compact_layout: bool = Field(False, alias="preferCompactLayout")

    class Config:
        populate_by_name = True


class CategorizationResult(BaseModel):
    """Outcome of mapping a free-text visitor intent to a visitor tag."""

    status: CategorizationStatus
    tag_name: str = Field(alias="tagName")
    display_name: str = Field(alias="displayName")
    guidelines: str
    confidence: float
    reason: Optional[str] = None

    class Config:
        populate_by_name = True


class StoredTag(BaseModel):
    """A custom visitor tag kept for reuse."""

    tag_name: str = Field(alias="tagName")
    display_name: str = Field(alias="displayName")
    guidelines: str
    created_at: str = Field(alias="createdAt")
    mapped_from: str = Field(alias="mappedFrom")
    is_custom: bool = Field(True, alias="isCustom")

    class Config:
        populate_by_name = True


class ContributionPoint(BaseModel):
    """Activity count for a single day."""

    date: str
    count: int


class DateRange(BaseModel):
    start: str
    end: str


class GitHubDataSummary(BaseModel):
    """Condensed GitHub activity given to the layout prompt."""

    available: bool
    username: str
    total_commits: int = 0
    recent_activity: int = 0
    date_range: Optional[DateRange] = None
    sample_points: List[ContributionPoint] = []
    avg_commits_per_week: Optional[int] = None


class Location(BaseModel):
    name: Optional[str] = None
    lat: float
    lon: float


class DailyTemperature(BaseModel):
    """Min/max temperature for one day."""

    date: str
    min_temp: Optional[float] = Field(None, alias="minTemp")
    max_temp: Optional[float] = Field(None, alias="maxTemp")

    class Config:
        populate_by_name = True


class WeatherDataSummary(BaseModel):
    """Condensed weather forecast given to the layout prompt."""

    available: bool
    location: Location
    weekly_forecast: List[DailyTemperature] = []
    unit: str = "C"


class DataSummaries(BaseModel):
    github: Optional[GitHubDataSummary] = None
    weather: Optional[WeatherDataSummary] = None
