"""Tests for layout generation."""

import json
from datetime import datetime, timezone
import httpx
import pytest
from conftest import completion
from portfolio_site.models.layout_models import GeneratedLayout
from portfolio_site.services.layout_generator import (
    LAYOUT_CACHE_TTL,
    context_hash,
    get_default_layout,
    layout_cache_key,
)
from portfolio_site.services.link_validator import LinkValidator
from portfolio_site.services.llm_service import AISettings, LLMService
from portfolio_site.services.visitor_context import extract_visitor_context


AI_LAYOUT = {
    "layout": "two-column",
    "theme": {"accent": "purple"},
    "sections": [
        {"type": "Hero", "props": {"title": "Alex", "cta": {"text": "Docs", "href": "https://broken.example/docs"}}},
        {"type": "CardGrid", "props": {"title": "Projects", "columns": 3, "items": ["doc-scout"]}},
    ],
}


def visitor_context(country="CN"):
    clock = lambda: datetime(2026, 10, 19, 3, 0, tzinfo=timezone.utc)
    return extract_visitor_context({"cf-ipcountry": country}, now=clock)


def ai_llm(handler):
    """LLM stub that answers categorization and layout calls through ``handler(schema_name)``."""
    calls = []

    def transport_handler(request):
        body = json.loads(request.content)
        calls.append(body)
        return handler(body["response_format"]["json_schema"]["name"])

    llm = LLMService(AISettings(ai_api_key="test-key"), transport=httpx.MockTransport(transport_handler))
    return llm, calls


def section_types(layout: GeneratedLayout):
    return [section.type for section in layout.sections]


def test_default_layouts(portfolio):
    recruiter = get_default_layout("recruiter", portfolio)
    assert recruiter.layout == "hero-focused"
    assert section_types(recruiter) == ["Hero", "SkillBadges", "Timeline", "CardGrid"]
    assert recruiter.sections[0].props["cta"] == {"text": "View Resume", "href": "/assets/resume.pdf"}
    assert recruiter.sections[3].props["items"] == [p.id for p in portfolio.projects][:4]

    developer = get_default_layout("developer", portfolio)
    assert developer.layout == "two-column"
    assert section_types(developer) == ["Hero", "CardGrid", "SkillBadges", "ContactForm"]

    collaborator = get_default_layout("collaborator", portfolio)
    assert section_types(collaborator) == ["Hero", "TextBlock", "CardGrid", "ContactForm"]

    friend = get_default_layout("investor", portfolio)
    assert friend.layout == "single-column"
    assert section_types(friend) == ["Hero", "TextBlock", "ImageGallery", "ContactForm"]
    assert friend.sections[2].props["images"] == [photo.path for photo in portfolio.photos]
    assert friend.theme.accent == "blue"


def test_cache_key_shape():
    ctx = visitor_context()
    assert layout_cache_key("recruiter", None, ctx) == f"layout:recruiter:default:{context_hash(ctx)}"
    assert layout_cache_key("investor", "Lead with traction.", ctx).split(":")[2] != "default"
    assert context_hash(visitor_context("CN")) != context_hash(visitor_context("US"))
    assert context_hash(visitor_context(None)) == context_hash(visitor_context("XX"))


@pytest.mark.asyncio
async def test_unconfigured_ai_returns_default(make_services, portfolio):
    services = make_services()
    result = await services.layout_generator.generate("developer", portfolio, visitor_context())

    assert result.source == "default"
    assert result.is_fallback
    assert section_types(result.layout) == section_types(get_default_layout("developer", portfolio))

    payload = result.to_payload()
    assert payload["_cacheKey"].startswith("layout:developer:default:")
    assert payload["_visitorContext"]["time"]["timeOfDay"] == "night"
    assert payload["_uiHints"] == {"suggestedTheme": "dark", "preferCompactLayout": False}
    assert "_categorization" not in payload


@pytest.mark.asyncio
async def test_ai_layout_is_cached(make_services, portfolio, cache, clock):
    llm, calls = ai_llm(lambda schema: completion(AI_LAYOUT))
    services = make_services(llm=llm)

    first = await services.layout_generator.generate("developer", portfolio, visitor_context())
    assert first.source == "ai"
    assert first.layout.theme.accent == "purple"
    assert cache.get_json(first.cache_key)["layout"] == "two-column"

    second = await services.layout_generator.generate("developer", portfolio, visitor_context())
    assert second.source == "cache"
    assert second.layout == first.layout
    assert len(calls) == 1
    assert calls[0]["temperature"] == 0.7
    assert "Visitor type: DEVELOPER" in calls[0]["messages"][1]["content"]

    clock.advance(LAYOUT_CACHE_TTL)
    assert cache.get(first.cache_key) is None


@pytest.mark.asyncio
async def test_invalid_ai_layout_falls_back(make_services, portfolio):
    llm, _ = ai_llm(lambda schema: completion({"layout": "two-column", "theme": {"accent": "red"}}))
    services = make_services(llm=llm)

    result = await services.layout_generator.generate("recruiter", portfolio, visitor_context())
    assert result.source == "default"
    assert section_types(result.layout)[0] == "Hero"


@pytest.mark.asyncio
async def test_provider_error_falls_back(make_services, portfolio):
    llm, _ = ai_llm(lambda schema: httpx.Response(502))
    services = make_services(llm=llm)

    result = await services.layout_generator.generate("friend", portfolio, visitor_context())
    assert result.is_fallback
    assert result.cache_key is not None


@pytest.mark.asyncio
async def test_invalid_links_are_removed(make_services, portfolio):
    llm, _ = ai_llm(lambda schema: completion(AI_LAYOUT))
    services = make_services(llm=llm)
    services.layout_generator.link_validator = LinkValidator(
        transport=httpx.MockTransport(lambda request: httpx.Response(404))
    )

    result = await services.layout_generator.generate("developer", portfolio, visitor_context())
    assert "cta" not in result.layout.sections[0].props
    assert result.layout.sections[0].props["title"] == "Alex"


@pytest.mark.asyncio
async def test_custom_intent_uses_new_tag(make_services, portfolio):
    def handler(schema):
        if schema == "categorization_result":
            return completion({"status": "new_tag", "tagName": "investor", "displayName": "Investor",
                               "guidelines": "Lead with traction.", "confidence": 0.7})
        return completion(AI_LAYOUT)

    llm, calls = ai_llm(handler)
    services = make_services(llm=llm)

    result = await services.layout_generator.generate(
        "friend", portfolio, visitor_context(), custom_intent="I invest in seed-stage startups"
    )
    assert result.visitor_tag == "investor"
    assert result.categorization == {
        "status": "new_tag", "tagName": "investor", "displayName": "Investor", "confidence": 0.7,
    }
    assert result.cache_key.startswith("layout:investor:")
    assert not result.cache_key.startswith("layout:investor:default:")

    layout_call = calls[-1]
    assert "- INVESTOR: Lead with traction." in layout_call["messages"][0]["content"]
    assert "Additional context: I invest in seed-stage startups" in layout_call["messages"][1]["content"]


@pytest.mark.asyncio
async def test_rate_limited_generation(make_services, portfolio):
    services = make_services(generate_rate_limit_max=1)
    generator = services.layout_generator

    await generator.generate("recruiter", portfolio, visitor_context(), client_ip="9.9.9.9")
    limited = await generator.generate("recruiter", portfolio, visitor_context(), client_ip="9.9.9.9")

    assert limited.rate_limited
    assert limited.retry_after == 60
    payload = limited.to_payload()
    assert payload["_rateLimited"] is True
    assert payload["_retryAfter"] == 60
    assert "_cacheKey" not in payload
    assert section_types(limited.layout) == section_types(get_default_layout("recruiter", portfolio))
