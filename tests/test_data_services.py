"""Tests for the GitHub, weather and link validation services."""

from datetime import date
import httpx
import pytest
from portfolio_site.models.context_models import Location
from portfolio_site.models.layout_models import GeneratedLayout
from portfolio_site.models.response_models import GitHubActivityResponse
from portfolio_site.services.github_service import (
    GitHubService,
    activity_count,
    aggregate_events,
    extract_github_username,
    summarize_activity,
)
from portfolio_site.services.link_validator import LinkValidator, extract_links
from portfolio_site.services.visitor_context import extract_visitor_context
from portfolio_site.services.weather_service import (
    DEFAULT_LOCATION,
    CityNotFoundError,
    WeatherService,
    forecast_cache_key,
)


TODAY = date(2026, 10, 18)

EVENTS = [
    {"type": "PushEvent", "created_at": "2026-10-17T10:00:00Z", "payload": {"size": 3}},
    {"type": "PullRequestEvent", "created_at": "2026-10-17T12:00:00Z", "payload": {}},
    {"type": "WatchEvent", "created_at": "2026-10-16T12:00:00Z", "payload": {}},
    {"type": "PushEvent", "created_at": "2026-09-18T08:00:00Z", "payload": {"size": 2}},
    {"type": "IssuesEvent", "created_at": "2026-08-01T08:00:00Z", "payload": {}},
]

FORECAST = {
    "daily": {
        "time": ["2026-10-18", "2026-10-19"],
        "temperature_2m_min": [12.1, 10.4],
        "temperature_2m_max": [20.5, 18.0],
    },
    "daily_units": {"temperature_2m_max": "°C"},
}


class Recorder:
    """MockTransport handler that records requests and replies from a route table."""

    def __init__(self, routes):
        self.routes = routes
        self.requests = []

    def __call__(self, request):
        self.requests.append(request)
        for prefix, response in self.routes.items():
            if str(request.url).startswith(prefix):
                return response() if callable(response) else response
        return httpx.Response(404)


def test_activity_count():
    assert activity_count(EVENTS[0]) == 3
    assert activity_count(EVENTS[1]) == 1
    assert activity_count(EVENTS[2]) == 0
    assert activity_count({"type": "PushEvent", "payload": {}}) == 1


def test_aggregate_events():
    activity = aggregate_events(EVENTS, TODAY)

    assert [(p.date, p.count) for p in activity.contributions] == [
        ("2026-08-01", 1), ("2026-09-18", 2), ("2026-10-17", 4),
    ]
    assert activity.total_commits == 7
    # 2026-09-18 is exactly 30 days back and is not counted as recent
    assert activity.recent_activity == 4
    assert activity.model_dump(by_alias=True)["totalCommits"] == 7


def test_summarize_activity():
    summary = summarize_activity(aggregate_events(EVENTS, TODAY), "alexmorgan")
    assert summary.available
    assert summary.date_range.start == "2026-08-01"
    assert summary.date_range.end == "2026-10-17"
    assert summary.avg_commits_per_week == 7

    empty = summarize_activity(GitHubActivityResponse(), "alexmorgan")
    assert not empty.available


def test_extract_github_username(portfolio):
    assert extract_github_username(portfolio, "fallback") == "alexmorgan"
    contact = portfolio.personal.contact.model_copy(update={"github": "not a url"})
    personal = portfolio.personal.model_copy(update={"contact": contact})
    assert extract_github_username(portfolio.model_copy(update={"personal": personal}), "fallback") == "fallback"


@pytest.mark.asyncio
async def test_github_activity_is_cached(cache):
    recorder = Recorder({"https://api.github.com/users/alexmorgan/events": httpx.Response(200, json=EVENTS)})
    service = GitHubService(cache, transport=httpx.MockTransport(recorder), today=lambda: TODAY)

    first = await service.get_activity("alexmorgan")
    second = await service.get_activity("alexmorgan")

    assert first == second
    assert first.total_commits == 7
    assert len(recorder.requests) == 1
    assert recorder.requests[0].url.params["per_page"] == "100"
    assert recorder.requests[0].headers["user-agent"] == "Portfolio-Site"


@pytest.mark.asyncio
async def test_github_failure(cache):
    service = GitHubService(cache, transport=httpx.MockTransport(lambda request: httpx.Response(403)))

    with pytest.raises(RuntimeError):
        await service.fetch_activity("alexmorgan")

    empty = await service.get_activity("alexmorgan")
    assert empty.contributions == []
    assert empty.total_commits == 0


@pytest.mark.asyncio
async def test_forecast(cache):
    recorder = Recorder({"https://api.open-meteo.com/v1/forecast": httpx.Response(200, json=FORECAST)})
    service = WeatherService(cache, transport=httpx.MockTransport(recorder))
    location = Location(name="Paris", lat=48.8566, lon=2.3522)

    forecast = await service.get_forecast(location)
    assert forecast.unit == "C"
    assert forecast.data[0].min_temp == 12.1
    assert forecast.model_dump(by_alias=True)["data"][1] == {"date": "2026-10-19", "minTemp": 10.4, "maxTemp": 18.0}

    assert forecast_cache_key(48.8566, 2.3522) == "weather:minmax:48.86:2.35"
    again = await service.get_forecast(Location(lat=48.857, lon=2.351))
    assert again.data == forecast.data
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_forecast_failure_returns_empty(cache):
    service = WeatherService(cache, transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    forecast = await service.get_forecast(DEFAULT_LOCATION)
    assert forecast.data == []
    assert forecast.location == DEFAULT_LOCATION


@pytest.mark.asyncio
async def test_geocode(cache):
    recorder = Recorder({
        "https://geocoding-api.open-meteo.com/v1/search": httpx.Response(200, json={"results": [
            {"latitude": 41.01, "longitude": 28.97, "name": "Istanbul", "country": "Türkiye", "timezone": "Europe/Istanbul"},
        ]}),
    })
    service = WeatherService(cache, transport=httpx.MockTransport(recorder))

    found = await service.geocode(" Istanbul ")
    assert (found.lat, found.lon, found.name) == (41.01, 28.97, "Istanbul")
    await service.geocode("istanbul")
    assert len(recorder.requests) == 1

    with pytest.raises(ValueError):
        await service.geocode(" x ")


@pytest.mark.asyncio
async def test_geocode_not_found(cache):
    service = WeatherService(
        cache, transport=httpx.MockTransport(lambda request: httpx.Response(200, json={"results": []}))
    )
    with pytest.raises(CityNotFoundError, match="City not found: Atlantis"):
        await service.geocode("Atlantis")

    assert await service.locate("Atlantis") == DEFAULT_LOCATION


@pytest.mark.asyncio
@pytest.mark.parametrize("body", [[{"latitude": 1}], "Berlin", {"results": [{"name": "Berlin"}]}, {"results": "x"}])
async def test_geocode_malformed_response(cache, body):
    service = WeatherService(cache, transport=httpx.MockTransport(lambda request: httpx.Response(200, json=body)))
    with pytest.raises(RuntimeError, match="Unexpected geocoding response"):
        await service.geocode("Berlin")

    assert await service.locate("Berlin") == DEFAULT_LOCATION


@pytest.mark.asyncio
async def test_weather_summary_uses_visitor_city(cache):
    recorder = Recorder({
        "https://geocoding-api.open-meteo.com": httpx.Response(200, json={"results": [
            {"latitude": 52.52, "longitude": 13.41, "name": "Berlin"},
        ]}),
        "https://api.open-meteo.com": httpx.Response(200, json=FORECAST),
    })
    service = WeatherService(cache, transport=httpx.MockTransport(recorder))

    summary = await service.get_summary(extract_visitor_context({"cf-ipcity": "Berlin"}))
    assert summary.available
    assert summary.location.name == "Berlin"
    assert len(summary.weekly_forecast) == 2


def layout_with_cta(href):
    return GeneratedLayout.model_validate({
        "layout": "single-column",
        "sections": [
            {"type": "Hero", "props": {"title": "Hi", "cta": {"text": "Go", "href": href}}},
            {"type": "TextBlock", "props": {"title": "About", "content": "text"}},
        ],
    })


@pytest.mark.asyncio
async def test_link_validator_accepts_local_links():
    validator = LinkValidator(transport=httpx.MockTransport(lambda request: httpx.Response(500)))
    for href in ("mailto:alex@example.com", "/assets/resume.pdf"):
        layout = layout_with_cta(href)
        assert await validator.validate_layout(layout) == layout


@pytest.mark.asyncio
async def test_link_validator_follows_redirects():
    def handler(request):
        if request.url.path == "/old":
            return httpx.Response(301, headers={"Location": "https://example.org/new"})
        return httpx.Response(200)

    validator = LinkValidator(transport=httpx.MockTransport(handler))
    layout = layout_with_cta("https://example.org/old")
    assert extract_links(layout) == ["https://example.org/old"]
    assert await validator.validate_layout(layout) == layout


@pytest.mark.asyncio
async def test_link_validator_removes_broken_cta():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    validator = LinkValidator(transport=httpx.MockTransport(handler))
    cleaned = await validator.validate_layout(layout_with_cta("https://down.example"))
    assert "cta" not in cleaned.sections[0].props
    assert cleaned.sections[1].props["content"] == "text"
