"""Service for rendering site pages from Jinja2 templates."""

from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional
from jinja2 import Environment, FileSystemLoader, select_autoescape
from markupsafe import Markup
from portfolio_site.models.portfolio_models import PortfolioContent
from portfolio_site.services.component_mapper import MappedSection
from portfolio_site.services.layout_generator import GenerationResult
from portfolio_site.services.preferences import ThemeState
from portfolio_site.services.seo import build_page_meta, build_structured_data
from portfolio_site.services.translation_service import LANGUAGE_NAMES, SUPPORTED_LANGUAGES
from portfolio_site.utils.template_helpers import register_jinja_filters


VISITOR_OPTIONS = ("recruiter", "developer", "collaborator", "friend")


class PageContext:
    """Per-request values every page template needs."""

    def __init__(
        self,
        language: str,
        theme: ThemeState,
        translate: Callable[..., Any],
        path: str = "/",
        session_id: Optional[str] = None,
    ):
        self.language = language
        self.theme = theme
        self.t = translate
        self.path = path
        self.session_id = session_id


class PageRenderer:
    """Renders the welcome, generated and error pages."""

    def __init__(self, site_url: str, template_dir: Optional[Path] = None):
        """
        Initialize the page renderer.

        Args:
            site_url: Public base URL used for canonical links and structured data
            template_dir: Directory containing Jinja2 templates. Defaults to portfolio_site/templates/
        """
        if template_dir is None:
            template_dir = Path(__file__).parent.parent / "templates"

        self.template_dir = template_dir
        self.site_url = site_url
        self.env = Environment(
            loader=FileSystemLoader(str(template_dir)),
            autoescape=select_autoescape(["html", "xml"]),
        )
        register_jinja_filters(self.env)

    def _base_context(self, page: PageContext, portfolio: PortfolioContent, **meta: Any) -> Dict[str, Any]:
        return {
            "t": page.t,
            "language": page.language,
            "languages": [(code, LANGUAGE_NAMES[code]) for code in SUPPORTED_LANGUAGES],
            "theme": page.theme,
            "path": page.path,
            "session_id": page.session_id,
            "portfolio": portfolio,
            "meta": build_page_meta(portfolio, page.language, self.site_url, path=page.path, **meta),
            "structured_data": build_structured_data(portfolio, self.site_url, page.language),
        }

    def render_section(self, section: MappedSection, page: PageContext) -> Markup:
        template = self.env.get_template(section.template)
        return Markup(template.render(t=page.t, language=page.language, **section.context))

    def render_welcome(self, page: PageContext, portfolio: PortfolioContent) -> str:
        context = self._base_context(page, portfolio)
        context["visitor_options"] = VISITOR_OPTIONS
        context["accent"] = None
        return self.env.get_template("welcome.html").render(**context)

    def render_generated(
        self,
        page: PageContext,
        portfolio: PortfolioContent,
        result: GenerationResult,
        sections: List[MappedSection],
        visitor_label: str,
        intent: Optional[str] = None,
        feedback_status: Optional[str] = None,
        feedback_retry_after: Optional[int] = None,
    ) -> str:
        """
        Render a personalized page.

        Args:
            page: Per-request page context
            portfolio: Translated portfolio content
            result: Generation result (layout and metadata)
            sections: Mapped sections in layout order
            visitor_label: Human readable audience name for the footer
            intent: Custom intent the page was generated for, if any
            feedback_status: "liked", "rate_limited" or None
            feedback_retry_after: Seconds to wait when feedback was rate limited
        """
        context = self._base_context(
            page,
            portfolio,
            custom_title=f"{page.t('seo.portfolioFor')} {visitor_label}",
            noindex=True,
        )
        context.update(
            result=result,
            layout=result.layout,
            accent=result.layout.theme.accent,
            rendered_sections=[self.render_section(section, page) for section in sections],
            visitor_label=visitor_label,
            visitor_tag=result.visitor_tag,
            intent=intent,
            feedback_status=feedback_status,
            feedback_retry_after=feedback_retry_after,
            year=date.today().year,
        )
        return self.env.get_template("generated.html").render(**context)

    def render_error(self, page: PageContext, portfolio: PortfolioContent, message: Optional[str] = None) -> str:
        context = self._base_context(page, portfolio, noindex=True)
        context["accent"] = None
        context["message"] = message or page.t("errors.defaultMessage")
        return self.env.get_template("error.html").render(**context)
