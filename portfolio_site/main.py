"""FastAPI application for the personalized portfolio site."""

import logging
import math
from pathlib import Path
from typing import Optional
from fastapi import Depends, FastAPI, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from portfolio_site.dependencies import Services, get_services
from portfolio_site.models.context_models import Location
from portfolio_site.models.request_models import FeedbackRequest, GenerateRequest
from portfolio_site.models.response_models import (
    ErrorResponse,
    FeedbackResponse,
    GeocodingResult,
    GitHubActivityResponse,
    HealthResponse,
    RootResponse,
    WeatherResponse,
)
from portfolio_site.pages import router as pages_router
from portfolio_site.services.visitor_context import extract_visitor_context, get_client_ip
from portfolio_site.services.weather_service import CityNotFoundError


logger = logging.getLogger(__name__)

API_NAME = "Portfolio Site API"
API_VERSION = "1.0.0"

app = FastAPI(
    title=API_NAME,
    description="""Personal portfolio that rearranges itself for each visitor.

## Features

* **Personalized layouts**: An AI model picks sections and ordering per visitor type
* **Custom intents**: Free-text visitor intents are categorized into audience tags
* **Feedback loop**: Disliked layouts are dropped from the cache and regenerated
* **Live data**: GitHub activity and weather forecasts feed the layout prompt
* **Localized**: English, Chinese, Japanese and Turkish

## Usage

1. Open `/` in a browser and pick a perspective, or describe what you are looking for
2. Use `/api/generate` to get the raw layout JSON for a visitor tag
3. Use `/api/feedback` to like or dislike a generated layout""",
    version=API_VERSION,
    openapi_tags=[
        {"name": "health", "description": "Health check and status endpoints"},
        {"name": "layout", "description": "Layout generation and feedback"},
        {"name": "data", "description": "GitHub activity, weather and geocoding"},
        {"name": "pages", "description": "Server-rendered HTML site"},
    ],
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)

app.mount(
    "/static",
    StaticFiles(directory=str(Path(__file__).parent / "static")),
    name="static",
)
app.include_router(pages_router)


def error_response(status_code: int, error: str, message: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, message=message)
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)


def internal_error(e: Exception) -> JSONResponse:
    logger.exception("Unhandled API error")
    return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", str(e))


@app.get(
    "/api",
    response_model=RootResponse,
    status_code=status.HTTP_200_OK,
    summary="API information",
    description="Returns API information including name and version",
    tags=["health"],
    responses={
        200: {
            "description": "API information",
            "content": {
                "application/json": {
                    "example": {
                        "message": API_NAME,
                        "version": API_VERSION
                    }
                }
            }
        }
    }
)
async def api_root():
    """Basic API information."""
    return RootResponse(message=API_NAME, version=API_VERSION)


@app.get(
    "/api/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check",
    description="Checks if the service is running",
    tags=["health"],
    responses={
        200: {
            "description": "Service is healthy",
            "content": {"application/json": {"example": {"status": "ok"}}}
        }
    }
)
async def api_health():
    return HealthResponse(status="ok")


@app.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check (alias)",
    tags=["health"],
    include_in_schema=False,
)
async def health():
    return HealthResponse(status="ok")


@app.post(
    "/api/generate",
    status_code=status.HTTP_200_OK,
    summary="Generate a personalized layout",
    description="""
    Generates a layout for a visitor type, optionally refined by a free-text intent.

    **Process:**
    1. Rate limits by client IP (3 requests per minute)
    2. Extracts visitor context (device, location, local time) from request headers
    3. Categorizes the custom intent into an audience tag, if one is given
    4. Returns a cached layout when available
    5. Otherwise asks the AI model, falling back to the default layout for the tag

    The layout is returned with metadata keys prefixed by an underscore
    (`_cacheKey`, `_categorization`, `_visitorContext`, `_uiHints`, or
    `_rateLimited` and `_retryAfter` when rate limited).
    """,
    tags=["layout"],
    responses={
        200: {
            "description": "Generated layout",
            "content": {
                "application/json": {
                    "example": {
                        "layout": "single-column",
                        "theme": {"accent": "blue"},
                        "sections": [{"type": "Hero", "props": {"title": "Alex Morgan"}}],
                        "_cacheKey": "layout:recruiter:default:3f2a9c1b7d4e"
                    }
                }
            }
        },
        400: {
            "description": "Bad request - Missing required fields",
            "model": ErrorResponse
        },
        500: {
            "description": "Internal server error",
            "model": ErrorResponse
        }
    }
)
async def generate_layout(
    body: GenerateRequest,
    request: Request,
    services: Services = Depends(get_services),
):
    """
    Generate a personalized layout.

    **Example:**
    ```json
    {
      "visitorTag": "developer",
      "customIntent": "I'm hiring for a platform team",
      "portfolioContent": { ... }
    }
    ```
    """
    if not body.visitor_tag or body.portfolio_content is None:
        return error_response(status.HTTP_400_BAD_REQUEST, "Missing required fields")

    try:
        result = await services.layout_generator.generate(
            visitor_tag=body.visitor_tag,
            portfolio=body.portfolio_content,
            visitor_context=extract_visitor_context(request.headers, request.scope.get("http_version")),
            client_ip=get_client_ip(request.headers, request.client.host if request.client else None),
            custom_intent=body.custom_intent,
        )
        return JSONResponse(result.to_payload())
    except Exception as e:
        return internal_error(e)


@app.post(
    "/api/feedback",
    response_model=FeedbackResponse,
    status_code=status.HTTP_200_OK,
    summary="Like or dislike a layout",
    description="""
    Records feedback on a generated layout.

    - `like` only records the feedback
    - `dislike` removes the layout from the cache so the next request regenerates it.
      Dislikes are limited to one per minute per session.
    """,
    tags=["layout"],
    responses={
        200: {
            "description": "Feedback recorded",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Regenerating your personalized layout...",
                        "regenerate": True
                    }
                }
            }
        },
        400: {
            "description": "Bad request - Missing fields or invalid feedback type",
            "model": FeedbackResponse
        },
        500: {
            "description": "Internal server error",
            "model": ErrorResponse
        }
    }
)
async def submit_feedback(body: FeedbackRequest, services: Services = Depends(get_services)):
    try:
        status_code, outcome = services.feedback.submit(
            body.feedback_type, body.audience_type, body.session_id, body.cache_key
        )
        return JSONResponse(outcome.model_dump(by_alias=True, exclude_none=True), status_code=status_code)
    except Exception as e:
        return internal_error(e)


@app.get(
    "/api/github/activity",
    response_model=GitHubActivityResponse,
    status_code=status.HTTP_200_OK,
    summary="GitHub activity",
    description="Daily contribution counts from the user's recent public events. Empty on upstream errors.",
    tags=["data"],
    responses={
        500: {
            "description": "Internal server error",
            "model": ErrorResponse
        }
    }
)
async def github_activity(
    username: Optional[str] = Query(None, max_length=39),
    services: Services = Depends(get_services),
):
    try:
        activity = await services.github.get_activity(username or services.settings.default_github_username)
        return JSONResponse(activity.model_dump(mode="json", by_alias=True))
    except Exception as e:
        return internal_error(e)


@app.get(
    "/api/weather",
    response_model=WeatherResponse,
    status_code=status.HTTP_200_OK,
    summary="Weather forecast",
    description="""
    Seven-day minimum and maximum temperatures.

    Pass `lat` and `lon`, or `visitor=true` to use the visitor's city
    (falls back to Shanghai). Upstream errors return empty data.
    """,
    tags=["data"],
    responses={
        400: {
            "description": "Bad request - Missing or invalid coordinates",
            "model": ErrorResponse
        },
        500: {
            "description": "Internal server error",
            "model": ErrorResponse
        }
    }
)
async def weather(
    request: Request,
    lat: Optional[str] = Query(None),
    lon: Optional[str] = Query(None),
    visitor: Optional[str] = Query(None),
    services: Services = Depends(get_services),
):
    try:
        if visitor == "true":
            context = extract_visitor_context(request.headers)
            location = await services.weather.locate(context.geo.city)
        else:
            if lat is None or lon is None:
                return error_response(status.HTTP_400_BAD_REQUEST, "Missing lat or lon parameters")
            try:
                lat_value, lon_value = float(lat), float(lon)
                if not (math.isfinite(lat_value) and math.isfinite(lon_value)):
                    raise ValueError("non-finite coordinates")
                location = Location(lat=lat_value, lon=lon_value)
            except ValueError:
                return error_response(status.HTTP_400_BAD_REQUEST, "Invalid lat or lon parameters")

        forecast = await services.weather.get_forecast(location)
        return JSONResponse(forecast.model_dump(mode="json", by_alias=True, exclude_none=True))
    except Exception as e:
        return internal_error(e)


@app.get(
    "/api/geocode",
    response_model=GeocodingResult,
    status_code=status.HTTP_200_OK,
    summary="Geocode a city",
    description="Resolves a city name (at least 2 characters) to coordinates.",
    tags=["data"],
    responses={
        400: {
            "description": "Bad request - Missing or invalid city parameter",
            "model": ErrorResponse
        },
        404: {
            "description": "Not found - No city matches the name",
            "model": ErrorResponse
        },
        500: {
            "description": "Geocoding failed",
            "model": ErrorResponse
        }
    }
)
async def geocode(city: Optional[str] = Query(None), services: Services = Depends(get_services)):
    try:
        result = await services.weather.geocode(city or "")
        return JSONResponse(result.model_dump())
    except ValueError as e:
        return error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except CityNotFoundError as e:
        return error_response(status.HTTP_404_NOT_FOUND, str(e))
    except RuntimeError as e:
        logger.error("Geocoding failed: %s", e)
        return error_response(status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to geocode city")
    except Exception as e:
        return internal_error(e)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("portfolio_site.main:app", host="0.0.0.0", port=8000, reload=True)
