"""Tests for the server-rendered site and preference cookies."""

import httpx
import pytest
from bs4 import BeautifulSoup
from fastapi.testclient import TestClient
from conftest import completion
from portfolio_site.dependencies import get_services
from portfolio_site.main import app
from portfolio_site.pages import safe_next
from portfolio_site.services.llm_service import AISettings, LLMService
from portfolio_site.services.preferences import LANGUAGE_COOKIE, SESSION_COOKIE, THEME_COOKIE


def soup_of(response):
    return BeautifulSoup(response.text, "html.parser")


@pytest.fixture
def client_with_layout(make_services):
    """Client whose AI provider always answers with the given layout."""
    clients = []

    def factory(layout):
        llm = LLMService(
            AISettings(ai_api_key="test-key"),
            transport=httpx.MockTransport(lambda request: completion(layout)),
        )
        services = make_services(llm=llm)
        app.dependency_overrides[get_services] = lambda: services
        test_client = TestClient(app)
        clients.append(test_client)
        return test_client

    yield factory
    for test_client in clients:
        test_client.close()
    app.dependency_overrides.clear()


def test_welcome_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["accept-ch"] == "Sec-CH-Prefers-Color-Scheme"

    soup = soup_of(response)
    assert soup.html["lang"] == "en"
    assert soup.html["class"] == ["light"]
    assert soup.h1.get_text(strip=True) == "Welcome to My Portfolio"
    assert [a["data-visitor"] for a in soup.select("a.visitor-option")] == [
        "recruiter", "developer", "collaborator", "friend",
    ]
    assert soup.select_one('meta[property="og:locale"]')["content"] == "en_US"
    assert len(soup.select('script[type="application/ld+json"]')) == 3
    assert SESSION_COOKIE in response.cookies


def test_accept_language_is_used(client):
    response = client.get("/", headers={"Accept-Language": "zh-CN,zh;q=0.9"})
    soup = soup_of(response)
    assert soup.html["lang"] == "zh"
    assert soup.h1.get_text(strip=True) == "欢迎来到我的作品集"
    assert soup.select_one('meta[property="og:locale"]')["content"] == "zh_CN"


def test_turkish_visit_page(client):
    response = client.get("/visit", params={"visitor": "friend"}, headers={"Accept-Language": "tr"})
    assert response.status_code == 200
    soup = soup_of(response)
    assert soup.html["lang"] == "tr"
    assert "Bu sayfa şu ziyaretçi için kişiselleştirildi:" in soup.select_one(".site-footer").get_text()


def test_language_preference_persists(client):
    """Switching locale updates the visible text and the lang attribute on later requests."""
    response = client.post("/preferences/language", data={"language": "ja", "next": "/"}, follow_redirects=False)
    assert response.status_code == 303
    assert response.headers["location"] == "/"
    assert client.cookies.get(LANGUAGE_COOKIE) == "ja"

    soup = soup_of(client.get("/", headers={"Accept-Language": "en"}))
    assert soup.html["lang"] == "ja"
    assert soup.h1.get_text(strip=True) == "ポートフォリオへようこそ"


def test_unsupported_language_is_ignored(client):
    response = client.post("/preferences/language", data={"language": "fr"}, follow_redirects=False)
    assert response.status_code == 303
    assert client.cookies.get(LANGUAGE_COOKIE) is None


def test_theme_toggle_round_trip(client):
    """The theme preference survives reloads through the cookie."""
    client.post("/preferences/theme", data={"preference": "toggle", "next": "/"}, follow_redirects=False)
    assert client.cookies.get(THEME_COOKIE) == "dark"
    assert soup_of(client.get("/")).html["class"] == ["dark"]

    client.post("/preferences/theme", data={"preference": "toggle"}, follow_redirects=False)
    assert client.cookies.get(THEME_COOKIE) == "system"
    assert soup_of(client.get("/")).html["class"] == ["light"]
    assert soup_of(client.get("/", headers={"Sec-CH-Prefers-Color-Scheme": "dark"})).html["class"] == ["dark"]


def test_theme_toggle_from_dark_system(client):
    headers = {"Sec-CH-Prefers-Color-Scheme": "dark"}
    client.post("/preferences/theme", data={"preference": "toggle"}, headers=headers, follow_redirects=False)
    assert client.cookies.get(THEME_COOKIE) == "light"


def test_explicit_theme_and_invalid_values(client):
    client.post("/preferences/theme", data={"preference": "dark"}, follow_redirects=False)
    assert client.cookies.get(THEME_COOKIE) == "dark"

    client.post("/preferences/theme", data={"preference": "neon"}, follow_redirects=False)
    assert client.cookies.get(THEME_COOKIE) == "dark"


def test_corrupt_theme_cookie_uses_default(client):
    client.cookies.set(THEME_COOKIE, "%%%")
    assert soup_of(client.get("/")).html["class"] == ["light"]


def test_safe_next():
    assert safe_next("/visit?visitor=developer") == "/visit?visitor=developer"
    assert safe_next("//evil.example") == "/"
    assert safe_next("https://evil.example") == "/"
    assert safe_next(None) == "/"


def test_redirect_target_is_sanitized(client):
    response = client.post(
        "/preferences/language", data={"language": "tr", "next": "//evil.example"}, follow_redirects=False
    )
    assert response.headers["location"] == "/"


def test_visit_renders_default_layout(client):
    response = client.get("/visit", params={"visitor": "recruiter"})
    assert response.status_code == 200

    soup = soup_of(response)
    assert [s["data-section"] for s in soup.select("[data-section]")] == [
        "Hero", "SkillBadges", "Timeline", "CardGrid",
    ]
    assert soup.select_one("[data-layout]")["data-layout"] == "hero-focused"
    assert "Personalization is unavailable" in soup.select_one(".notice").get_text()
    assert soup.title.get_text() == "Portfolio for Recruiter / HR | Alex Morgan"
    assert soup.select_one('meta[name="robots"]')["content"] == "noindex, nofollow"
    assert soup.select_one(".site-footer strong").get_text() == "Recruiter / HR"
    assert soup.select_one('link[href^="/palette.css"]')["href"] == "/palette.css?accent=blue"


def test_visit_unknown_visitor_gets_friend_layout(client):
    soup = soup_of(client.get("/visit", params={"visitor": "hacker"}))
    assert "ImageGallery" in [s["data-section"] for s in soup.select("[data-section]")]
    assert soup.select_one('input[name="visitor"]')["value"] == "friend"


def test_visit_is_translated(client):
    client.cookies.set(LANGUAGE_COOKIE, "zh")
    soup = soup_of(client.get("/visit", params={"visitor": "developer"}))
    assert soup.html["lang"] == "zh"
    assert soup.select_one('[data-section="Hero"] .subtitle').get_text() == "软件工程师 & AI 开发者"
    assert "自适应作品集" in soup.select_one('[data-section="CardGrid"]').get_text()


def test_unknown_section_renders_placeholder(client_with_layout):
    client = client_with_layout({
        "layout": "single-column",
        "theme": {"accent": "green"},
        "sections": [
            {"type": "Hero", "props": {"title": "Hello there"}},
            {"type": "HologramWall", "props": {"depth": 3}},
            {"type": "SkillBadges", "props": {"style": "glowing"}},
            {"type": "TextBlock", "props": {"title": "About", "content": "Still rendered"}},
        ],
    })
    response = client.get("/visit", params={"visitor": "developer"})
    assert response.status_code == 200

    soup = soup_of(response)
    placeholders = soup.select('[data-section="unknown"]')
    assert [p.get_text(strip=True) for p in placeholders] == [
        "Unknown component: HologramWall", "Unknown component: SkillBadges",
    ]
    assert "Still rendered" in soup.select_one('[data-section="TextBlock"]').get_text()
    assert soup.select_one(".notice") is None
    assert soup.select_one('link[href^="/palette.css"]')["href"] == "/palette.css?accent=green"


def test_github_section_shows_unavailable(client_with_layout):
    client = client_with_layout({
        "layout": "two-column",
        "theme": {"accent": "blue"},
        "sections": [{"type": "GitHubActivity", "props": {"title": "Recent activity"}}],
    })
    soup = soup_of(client.get("/visit", params={"visitor": "developer"}))
    section = soup.select_one('[data-section="GitHubActivity"]')
    assert "GitHub activity is unavailable" in section.select_one('[role="status"]').get_text()


def test_feedback_like_shows_thanks(client):
    response = client.post(
        "/feedback", data={"feedback_type": "like", "visitor": "developer"}, follow_redirects=False
    )
    assert response.status_code == 303
    assert response.headers["location"] == "/visit?visitor=developer&feedback=liked"

    soup = soup_of(client.get(response.headers["location"]))
    assert soup.select_one(".feedback-status").get_text() == "Thanks!"


def test_feedback_dislike_regenerates_then_rate_limits(client, services):
    services.cache.put("layout:developer:default:xyz", {"layout": "two-column", "sections": []})
    form = {"feedback_type": "dislike", "visitor": "developer", "cache_key": "layout:developer:default:xyz"}

    first = client.post("/feedback", data=form, follow_redirects=False)
    assert first.headers["location"] == "/visit?visitor=developer"
    assert "layout:developer:default:xyz" not in services.cache

    second = client.post("/feedback", data=form, follow_redirects=False)
    assert second.headers["location"] == "/visit?visitor=developer&feedback=rate_limited&retry=60"

    soup = soup_of(client.get(second.headers["location"]))
    assert soup.select_one(".feedback-status").get_text() == "Please wait 60s before regenerating"


def test_feedback_keeps_custom_intent(client):
    response = client.post(
        "/feedback",
        data={"feedback_type": "like", "visitor": "friend", "intent": "hiring for AI"},
        follow_redirects=False,
    )
    assert response.headers["location"] == "/visit?visitor=friend&intent=hiring+for+AI&feedback=liked"


def test_palette_css(client):
    response = client.get("/palette.css", params={"accent": "purple"})
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/css")
    assert "--primary: 270 70% 40%;" in response.text

    default = client.get("/palette.css").text
    assert "--primary: 175 70% 40%;" in default


def test_palette_css_unknown_accent_is_stable(client):
    first = client.get("/palette.css", params={"accent": "mauve"}).text
    second = client.get("/palette.css", params={"accent": "Mauve"}).text
    assert first == second
    assert "--destructive: 0 84.2% 60.2%;" in first
