"""Application-wide service instances."""

from typing import Optional
from portfolio_site.services.cache import KVCache
from portfolio_site.services.categorizer import IntentCategorizer
from portfolio_site.services.component_mapper import ComponentMapper
from portfolio_site.services.feedback_service import FeedbackService
from portfolio_site.services.github_service import GitHubService
from portfolio_site.services.layout_generator import LayoutGenerator
from portfolio_site.services.link_validator import LinkValidator
from portfolio_site.services.llm_service import AISettings, LLMService
from portfolio_site.services.page_renderer import PageRenderer
from portfolio_site.services.portfolio_loader import PortfolioLoader, get_portfolio_loader
from portfolio_site.services.rate_limiter import CooldownRateLimiter, WindowRateLimiter
from portfolio_site.services.translation_service import TranslationService
from portfolio_site.services.weather_service import WeatherService
from portfolio_site.settings import SiteSettings


class Services:
    """Wires the services together around one shared cache."""

    def __init__(
        self,
        settings: Optional[SiteSettings] = None,
        ai_settings: Optional[AISettings] = None,
        cache: Optional[KVCache] = None,
        portfolio_loader: Optional[PortfolioLoader] = None,
        llm: Optional[LLMService] = None,
        github: Optional[GitHubService] = None,
        weather: Optional[WeatherService] = None,
        link_validator: Optional[LinkValidator] = None,
    ):
        self.settings = settings or SiteSettings()
        self.cache = cache or KVCache()
        self.portfolio_loader = portfolio_loader or get_portfolio_loader()
        self.translations = TranslationService()
        self.llm = llm or LLMService(ai_settings)
        self.github = github or GitHubService(self.cache, timeout=self.settings.upstream_timeout)
        self.weather = weather or WeatherService(self.cache, timeout=self.settings.upstream_timeout)

        if link_validator is None and self.settings.enable_link_validation:
            link_validator = LinkValidator(timeout=self.settings.link_validation_timeout)

        self.categorizer = IntentCategorizer(self.llm, self.cache)
        self.layout_generator = LayoutGenerator(
            llm=self.llm,
            cache=self.cache,
            categorizer=self.categorizer,
            rate_limiter=WindowRateLimiter(
                self.cache,
                max_requests=self.settings.generate_rate_limit_max,
                window=self.settings.generate_rate_limit_window,
            ),
            github=self.github,
            weather=self.weather,
            link_validator=link_validator,
            default_github_username=self.settings.default_github_username,
        )
        self.feedback = FeedbackService(
            self.cache, CooldownRateLimiter(self.cache, window=self.settings.dislike_rate_limit_window)
        )
        self.component_mapper = ComponentMapper()
        self.renderer = PageRenderer(site_url=self.settings.site_url)


# Singleton instance
_services: Optional[Services] = None


def get_services() -> Services:
    """
    Get or create the services singleton.

    Returns:
        Services: The shared service container
    """
    global _services
    if _services is None:
        _services = Services()
    return _services
