"""Shared fixtures: an isolated service container with every upstream stubbed."""

import json
import httpx
import pytest
from fastapi.testclient import TestClient
from portfolio_site.dependencies import Services, get_services
from portfolio_site.main import app
from portfolio_site.services.cache import KVCache
from portfolio_site.services.github_service import GitHubService
from portfolio_site.services.llm_service import AISettings, LLMService
from portfolio_site.services.portfolio_loader import PortfolioLoader
from portfolio_site.services.weather_service import WeatherService
from portfolio_site.settings import SiteSettings


class FakeClock:
    """Manually advanced clock for TTL and rate-limit tests."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def completion(payload) -> httpx.Response:
    """Chat completions response whose message content is ``payload`` as JSON."""
    content = payload if isinstance(payload, str) else json.dumps(payload)
    return httpx.Response(200, json={"choices": [{"message": {"content": content}}]})


def offline_transport() -> httpx.MockTransport:
    return httpx.MockTransport(lambda request: httpx.Response(503))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def cache(clock):
    return KVCache(clock=clock)


@pytest.fixture
def portfolio():
    return PortfolioLoader().load_portfolio()


@pytest.fixture
def make_services(cache):
    """Factory for service containers; AI unconfigured and upstreams down unless overridden."""
    def factory(llm=None, github=None, weather=None, **settings):
        settings.setdefault("enable_link_validation", False)
        settings.setdefault("generate_rate_limit_max", 100)
        transport = offline_transport()
        return Services(
            settings=SiteSettings(**settings),
            cache=cache,
            portfolio_loader=PortfolioLoader(),
            llm=llm or LLMService(AISettings(ai_api_key=""), transport=transport),
            github=github or GitHubService(cache, transport=transport),
            weather=weather or WeatherService(cache, transport=transport),
        )
    return factory


@pytest.fixture
def services(make_services):
    services = make_services()
    app.dependency_overrides[get_services] = lambda: services
    yield services
    app.dependency_overrides.clear()


@pytest.fixture
def client(services):
    with TestClient(app) as test_client:
        yield test_client
