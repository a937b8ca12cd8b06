"""Open-Meteo forecast and geocoding."""

import logging
from typing import Optional
import httpx
from portfolio_site.models.context_models import (
    DailyTemperature,
    Location,
    VisitorContext,
    WeatherDataSummary,
)
from portfolio_site.models.response_models import GeocodingResult, WeatherResponse
from portfolio_site.services.cache import KVCache


logger = logging.getLogger(__name__)

FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
REQUEST_HEADERS = {"User-Agent": "Portfolio-Site"}

WEATHER_CACHE_TTL = 3600
GEOCODE_CACHE_TTL = 31536000

DEFAULT_LOCATION = Location(name="Shanghai", lat=31.23, lon=121.47)


class CityNotFoundError(LookupError):
    """The geocoder returned no match for a city name."""


def forecast_cache_key(lat: float, lon: float) -> str:
    return f"weather:minmax:{lat:.2f}:{lon:.2f}"


class WeatherService:
    """Seven-day min/max forecasts and city lookups, cached in the KV store."""

    def __init__(
        self,
        cache: KVCache,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.cache = cache
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self.transport, headers=REQUEST_HEADERS)

    async def geocode(self, city: str) -> GeocodingResult:
        """
        Resolve a city name to coordinates.

        Raises:
            ValueError: If the name is shorter than 2 characters
            CityNotFoundError: If the geocoder has no match
            RuntimeError: If the geocoder cannot be reached
        """
        name = (city or "").strip()
        if len(name) < 2:
            raise ValueError("Missing or invalid city parameter (min 2 characters)")

        cache_key = f"geocode:{name.lower()}"
        cached = self.cache.get_json(cache_key)
        if cached:
            return GeocodingResult.model_validate(cached)

        async with self._client() as client:
            try:
                response = await client.get(
                    GEOCODING_URL, params={"name": name, "count": 1, "language": "en"}
                )
                response.raise_for_status()
                data = response.json()
            except (httpx.HTTPError, ValueError) as e:
                raise RuntimeError(f"Geocoding request failed: {e}") from e

        if not isinstance(data, dict):
            raise RuntimeError("Unexpected geocoding response")
        results = data.get("results") or []
        if not results:
            raise CityNotFoundError(f"City not found: {city}")

        try:
            first = results[0]
            result = GeocodingResult(
                lat=first["latitude"],
                lon=first["longitude"],
                name=first["name"],
                country=first.get("country"),
                timezone=first.get("timezone"),
            )
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise RuntimeError(f"Unexpected geocoding response: {e}") from e
        self.cache.put(cache_key, result.model_dump(), ttl=GEOCODE_CACHE_TTL)
        return result

    async def locate(self, city: Optional[str]) -> Location:
        """Coordinates for a visitor city, or the default location."""
        if city:
            try:
                found = await self.geocode(city)
                return Location(name=found.name, lat=found.lat, lon=found.lon)
            except (ValueError, LookupError, RuntimeError) as e:
                logger.info("Falling back to default weather location for %r: %s", city, e)
        return DEFAULT_LOCATION

    async def fetch_forecast(self, location: Location) -> WeatherResponse:
        """
        Seven-day min/max forecast.

        Raises:
            RuntimeError: If Open-Meteo cannot be reached or answers badly
        """
        cache_key = forecast_cache_key(location.lat, location.lon)
        cached = self.cache.get_json(cache_key)
        if cached:
            return WeatherResponse(location=location, **cached)

        params = {
            "latitude": location.lat,
            "longitude": location.lon,
            "daily": "temperature_2m_max,temperature_2m_min",
            "forecast_days": 7,
            "timezone": "auto",
        }
        async with self._client() as client:
            try:
                response = await client.get(FORECAST_URL, params=params)
                response.raise_for_status()
                data = response.json()
                daily = data["daily"]
                days = [
                    DailyTemperature(date=day, min_temp=low, max_temp=high)
                    for day, low, high in zip(
                        daily["time"], daily["temperature_2m_min"], daily["temperature_2m_max"]
                    )
                ]
                unit = data["daily_units"]["temperature_2m_max"].replace("°", "")
            except (httpx.HTTPError, ValueError, KeyError, TypeError, AttributeError) as e:
                raise RuntimeError(f"Weather request failed: {e}") from e

        forecast = WeatherResponse(data=days, unit=unit, location=location)
        self.cache.put(
            cache_key,
            {"data": [d.model_dump(by_alias=True) for d in days], "unit": unit},
            ttl=WEATHER_CACHE_TTL,
        )
        return forecast

    async def get_forecast(self, location: Location) -> WeatherResponse:
        """Forecast for the endpoint; empty data on failure."""
        try:
            return await self.fetch_forecast(location)
        except RuntimeError as e:
            logger.warning("Weather unavailable for %s: %s", location, e)
            return WeatherResponse(location=location)

    async def get_summary(self, visitor_context: VisitorContext) -> WeatherDataSummary:
        """Forecast summary for the visitor's city, used in the layout prompt."""
        location = await self.locate(visitor_context.geo.city)
        try:
            forecast = await self.fetch_forecast(location)
        except RuntimeError as e:
            logger.warning("Weather summary unavailable: %s", e)
            return WeatherDataSummary(available=False, location=location)

        return WeatherDataSummary(
            available=bool(forecast.data),
            location=location,
            weekly_forecast=forecast.data,
            unit=forecast.unit,
        )
