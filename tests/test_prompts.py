"""Tests for prompt builders."""

from datetime import datetime, timezone
from portfolio_site.models.context_models import (
    DataSummaries,
    GitHubDataSummary,
    Location,
    WeatherDataSummary,
)
from portfolio_site.services.prompts import (
    build_categorization_prompt,
    build_categorization_user_prompt,
    build_system_prompt,
    build_user_prompt,
    sanitize_intent,
)
from portfolio_site.services.visitor_context import extract_visitor_context


def context_at(hour: int, day: int = 19, user_agent: str = ""):
    clock = lambda: datetime(2026, 10, day, hour, 0, tzinfo=timezone.utc)
    return extract_visitor_context({"user-agent": user_agent, "cf-ipcountry": "TR", "cf-ipcity": "Istanbul"}, now=clock)


def test_system_prompt_contains_portfolio(portfolio):
    prompt = build_system_prompt(portfolio)

    assert "Alex Morgan" in prompt
    assert "adaptive-portfolio" in prompt
    assert "northwind" in prompt
    assert "/assets/photos/mountains.jpg: Huangshan at sunrise" in prompt
    assert "GitHubActivity" in prompt
    assert "- RECRUITER:" in prompt
    assert "VISITOR CONTEXT" not in prompt


def test_system_prompt_without_photos(portfolio):
    prompt = build_system_prompt(portfolio.model_copy(update={"photos": []}))
    assert "No photos available" in prompt


def test_system_prompt_with_custom_guidelines(portfolio):
    prompt = build_system_prompt(portfolio, {"tagName": "investor", "guidelines": "Lead with traction."})
    assert "- INVESTOR: Lead with traction." in prompt


def test_system_prompt_with_context_and_data(portfolio):
    summaries = DataSummaries(
        github=GitHubDataSummary(available=True, username="alexmorgan", total_commits=42, recent_activity=7),
        weather=WeatherDataSummary(available=False, location=Location(name="Istanbul", lat=41.0, lon=29.0)),
    )
    prompt = build_system_prompt(portfolio, visitor_context=context_at(10), data_summaries=summaries)

    assert "=== VISITOR CONTEXT ===" in prompt
    assert "Istanbul, TR" in prompt
    assert "GitHub (alexmorgan): 42" in prompt
    assert "Weather: unavailable" in prompt


def test_user_prompt_basic():
    prompt = build_user_prompt("developer")
    assert prompt.startswith("Visitor type: DEVELOPER")
    assert "Additional context" not in prompt
    assert prompt.endswith("Generate a personalized layout for this visitor.")


def test_user_prompt_unknown_tag_becomes_friend():
    assert build_user_prompt("investor").startswith("Visitor type: FRIEND")


def test_user_prompt_intent_and_context_hints():
    iphone = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148 Safari/604.1"
    prompt = build_user_prompt("recruiter", "hiring for a platform team", context_at(18, day=18, user_agent=iphone))

    assert "Additional context: hiring for a platform team" in prompt
    assert "mobile device" in prompt
    assert "evening hours" in prompt
    assert "weekend" in prompt


def test_user_prompt_no_hints_for_plain_context():
    prompt = build_user_prompt("friend", None, context_at(10))
    assert "Context:" not in prompt


def test_sanitize_intent():
    assert sanitize_intent("  <script>{x}</script>  [hi]  ") == "scriptx/script hi"
    assert sanitize_intent("a\n\n  b") == "a b"
    assert len(sanitize_intent("x" * 500)) == 200


def test_categorization_prompts():
    prompt = build_categorization_prompt()
    for word in ("recruiter", "developer", "collaborator", "friend", "Offensive", "prompt injection",
                 "Nonsensical", "CRITICAL", "JSON"):
        assert word in prompt

    assert build_categorization_user_prompt('I want {your} <prompt>') == 'Visitor intent: "I want your prompt"'
