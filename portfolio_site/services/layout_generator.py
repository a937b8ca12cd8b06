"""Personalized layout generation.

Flow for one request: rate limit by client, optional intent categorization,
layout cache lookup, then the LLM call with link validation. Every failure
after the rate limit degrades to the default layout for the visitor tag.
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ValidationError
from portfolio_site.models.context_models import DataSummaries, UIHints, VisitorContext
from portfolio_site.models.layout_models import GeneratedLayout, LayoutKind, LayoutTheme, Section
from portfolio_site.models.portfolio_models import PortfolioContent
from portfolio_site.services.cache import LAYOUT_KEY_PREFIX, KVCache, hash_string
from portfolio_site.services.categorizer import IntentCategorizer
from portfolio_site.services.github_service import GitHubService, extract_github_username
from portfolio_site.services.link_validator import LinkValidator
from portfolio_site.services.llm_service import LAYOUT_SCHEMA, LLMService
from portfolio_site.services.prompts import ALLOWED_VISITOR_TAGS, build_system_prompt, build_user_prompt
from portfolio_site.services.rate_limiter import WindowRateLimiter
from portfolio_site.services.visitor_context import derive_ui_hints
from portfolio_site.services.weather_service import WeatherService


logger = logging.getLogger(__name__)

LAYOUT_CACHE_TTL = 86400
PROFILE_IMAGE = "/assets/profile.png"


def get_default_layout(visitor_tag: str, portfolio: PortfolioContent) -> GeneratedLayout:
    """Hand-written layout for a visitor tag; unknown tags get the friend layout."""
    personal = portfolio.personal
    project_ids = [project.id for project in portfolio.projects]

    hero: Dict[str, Any] = {"title": personal.name, "subtitle": personal.title, "image": PROFILE_IMAGE}
    layout = LayoutKind.HERO_FOCUSED
    sections: List[Section]

    if visitor_tag == "recruiter":
        if personal.resume_url:
            hero["cta"] = {"text": "View Resume", "href": personal.resume_url}
        sections = [
            Section(type="SkillBadges", props={"title": "Technical Skills", "style": "detailed"}),
            Section(type="Timeline", props={"title": "Experience"}),
            Section(type="CardGrid", props={
                "title": "Featured Projects", "columns": 2, "items": project_ids[:4],
            }),
        ]
    elif visitor_tag == "developer":
        layout = LayoutKind.TWO_COLUMN
        sections = [
            Section(type="CardGrid", props={"title": "Projects", "columns": 3, "items": project_ids}),
            Section(type="SkillBadges", props={"title": "Tech Stack", "style": "detailed"}),
            Section(type="ContactForm", props={"title": "Connect", "showGitHub": True, "showEmail": True}),
        ]
    elif visitor_tag == "collaborator":
        sections = [
            Section(type="TextBlock", props={"title": "About Me", "content": personal.bio, "style": "prose"}),
            Section(type="CardGrid", props={
                "title": "Current Projects", "columns": 2, "items": project_ids[:2],
            }),
            Section(type="ContactForm", props={
                "title": "Let's Collaborate", "showEmail": True, "showLinkedIn": True, "showGitHub": True,
            }),
        ]
    else:
        layout = LayoutKind.SINGLE_COLUMN
        sections = [
            Section(type="TextBlock", props={"title": "Hey there!", "content": personal.bio, "style": "prose"}),
            Section(type="ImageGallery", props={
                "title": "Photos", "images": [photo.path for photo in portfolio.photos or []],
            }),
            Section(type="ContactForm", props={"title": "Get in Touch", "showEmail": True}),
        ]

    return GeneratedLayout(
        layout=layout,
        theme=LayoutTheme(accent="blue"),
        sections=[Section(type="Hero", props=hero)] + sections,
    )


def context_hash(visitor_context: VisitorContext) -> str:
    return hash_string(
        f"{visitor_context.device.type}:{visitor_context.time.time_of_day}:"
        f"{visitor_context.geo.country or 'XX'}"
    )


def layout_cache_key(tag: str, guidelines: Optional[str], visitor_context: VisitorContext) -> str:
    guidelines_part = hash_string(guidelines) if guidelines else "default"
    return f"{LAYOUT_KEY_PREFIX}{tag}:{guidelines_part}:{context_hash(visitor_context)}"


class GenerationResult(BaseModel):
    """A layout plus the metadata echoed to the client."""

    layout: GeneratedLayout
    visitor_tag: str
    source: str = "default"  # "ai", "cache" or "default"
    categorization: Optional[Dict[str, Any]] = None
    cache_key: Optional[str] = None
    visitor_context: Optional[VisitorContext] = None
    ui_hints: Optional[UIHints] = None
    rate_limited: bool = False
    retry_after: Optional[int] = None

    @property
    def is_fallback(self) -> bool:
        return self.source == "default"

    def to_payload(self) -> Dict[str, Any]:
        """JSON body for the generate endpoint."""
        payload = self.layout.model_dump(mode="json")
        if self.rate_limited:
            payload["_rateLimited"] = True
            payload["_retryAfter"] = self.retry_after
            return payload

        if self.categorization is not None:
            payload["_categorization"] = self.categorization
        payload["_cacheKey"] = self.cache_key
        if self.visitor_context is not None:
            payload["_visitorContext"] = self.visitor_context.public_summary()
        if self.ui_hints is not None:
            payload["_uiHints"] = self.ui_hints.model_dump(by_alias=True)
        return payload


class LayoutGenerator:
    """Produces personalized layouts, falling back to the defaults."""

    def __init__(
        self,
        llm: LLMService,
        cache: KVCache,
        categorizer: IntentCategorizer,
        rate_limiter: WindowRateLimiter,
        github: GitHubService,
        weather: WeatherService,
        link_validator: Optional[LinkValidator] = None,
        default_github_username: str = "alexmorgan",
    ):
        self.llm = llm
        self.cache = cache
        self.categorizer = categorizer
        self.rate_limiter = rate_limiter
        self.github = github
        self.weather = weather
        self.link_validator = link_validator
        self.default_github_username = default_github_username

    async def fetch_data_summaries(
        self, portfolio: PortfolioContent, visitor_context: VisitorContext
    ) -> DataSummaries:
        username = extract_github_username(portfolio, self.default_github_username)
        github_summary, weather_summary = await asyncio.gather(
            self.github.get_summary(username),
            self.weather.get_summary(visitor_context),
        )
        return DataSummaries(github=github_summary, weather=weather_summary)

    async def _generate_with_ai(
        self,
        tag: str,
        custom_intent: Optional[str],
        custom_guidelines: Optional[Dict[str, str]],
        portfolio: PortfolioContent,
        visitor_context: VisitorContext,
        data_summaries: DataSummaries,
    ) -> GeneratedLayout:
        data = await self.llm.chat_json(
            messages=[
                {
                    "role": "system",
                    "content": build_system_prompt(portfolio, custom_guidelines, visitor_context, data_summaries),
                },
                {"role": "user", "content": build_user_prompt(tag, custom_intent, visitor_context)},
            ],
            schema=LAYOUT_SCHEMA,
            temperature=0.7,
            max_tokens=2000,
        )
        if not data.get("layout") or data.get("sections") is None:
            raise ValueError("Invalid layout structure")

        try:
            layout = GeneratedLayout.model_validate(data)
        except ValidationError as e:
            raise ValueError(f"Invalid layout structure: {e}") from e

        if self.link_validator is not None:
            layout = await self.link_validator.validate_layout(layout)
        return layout

    async def generate(
        self,
        visitor_tag: str,
        portfolio: PortfolioContent,
        visitor_context: VisitorContext,
        client_ip: str = "unknown",
        custom_intent: Optional[str] = None,
    ) -> GenerationResult:
        """
        Generate a layout for a visitor.

        Args:
            visitor_tag: Tag chosen by the visitor
            portfolio: Portfolio content the layout may reference
            visitor_context: Context extracted from the request
            client_ip: Key for the per-client rate limit
            custom_intent: Free-text intent; categorized into a tag when given

        Returns:
            GenerationResult: Never raises for provider failures
        """
        limit = self.rate_limiter.check(client_ip)
        if limit.limited:
            logger.info("Generate rate limit hit for %s, retry in %ss", client_ip, limit.retry_after)
            return GenerationResult(
                layout=get_default_layout(visitor_tag, portfolio),
                visitor_tag=visitor_tag,
                rate_limited=True,
                retry_after=limit.retry_after,
            )
        self.rate_limiter.hit(client_ip)

        ui_hints = derive_ui_hints(visitor_context)
        data_summaries = await self.fetch_data_summaries(portfolio, visitor_context)

        tag = visitor_tag
        custom_guidelines: Optional[Dict[str, str]] = None
        categorization: Optional[Dict[str, Any]] = None

        if custom_intent and custom_intent.strip():
            result = await self.categorizer.categorize(custom_intent)
            tag = result.tag_name
            categorization = {
                "status": result.status,
                "tagName": result.tag_name,
                "displayName": result.display_name,
                "confidence": result.confidence,
            }
            if result.status == "new_tag" or result.tag_name not in ALLOWED_VISITOR_TAGS:
                custom_guidelines = {"tagName": result.tag_name, "guidelines": result.guidelines}
            if result.status == "rejected":
                logger.warning("Rejected intent: %r reason: %s", custom_intent, result.reason)

        cache_key = layout_cache_key(
            tag, custom_guidelines["guidelines"] if custom_guidelines else None, visitor_context
        )
        meta = dict(
            visitor_tag=tag,
            categorization=categorization,
            cache_key=cache_key,
            visitor_context=visitor_context,
            ui_hints=ui_hints,
        )

        cached = self.cache.get_json(cache_key)
        if cached:
            return GenerationResult(layout=GeneratedLayout.model_validate(cached), source="cache", **meta)

        if not self.llm.is_configured:
            logger.warning("AI provider not configured, returning default layout")
            return GenerationResult(layout=get_default_layout(tag, portfolio), **meta)

        try:
            layout = await self._generate_with_ai(
                tag, custom_intent, custom_guidelines, portfolio, visitor_context, data_summaries
            )
        except (RuntimeError, ValueError):
            logger.exception("Generation error, returning default layout")
            return GenerationResult(layout=get_default_layout(tag, portfolio), **meta)

        self.cache.put(cache_key, layout.model_dump(mode="json"), ttl=LAYOUT_CACHE_TTL)
        return GenerationResult(layout=layout, source="ai", **meta)
