"""Maps layout sections onto section templates.

Each section type has a props model, a template and a resolver that turns the
validated props plus the portfolio into the template context. Section types
nobody registered, and props that fail validation, map to an inert
placeholder so one bad section never breaks the page.
"""

import logging
from datetime import date
from typing import Any, Callable, Dict, List, NamedTuple, Optional, Type
from pydantic import ValidationError
from portfolio_site.models import section_models as sm
from portfolio_site.models.layout_models import GeneratedLayout, Section
from portfolio_site.models.portfolio_models import Experience, PortfolioContent, Project
from portfolio_site.models.response_models import GitHubActivityResponse
from portfolio_site.utils.template_helpers import heatmap_weeks, tech_icon_slug


logger = logging.getLogger(__name__)

UNKNOWN_TEMPLATE = "sections/unknown.html"


class SectionData:
    """Data fetched ahead of rendering for data-driven sections."""

    def __init__(
        self,
        github_activity: Optional[Dict[str, Optional[GitHubActivityResponse]]] = None,
        default_github_username: str = "alexmorgan",
        today: Optional[date] = None,
    ):
        # username -> activity, None when the fetch failed
        self.github_activity = github_activity or {}
        self.default_github_username = default_github_username
        self.today = today or date.today()


class MappedSection(NamedTuple):
    type: str
    template: str
    context: Dict[str, Any]

    @property
    def is_placeholder(self) -> bool:
        return self.template == UNKNOWN_TEMPLATE


Resolver = Callable[[Any, PortfolioContent, SectionData], Dict[str, Any]]


class SectionSpec(NamedTuple):
    props_model: Type[sm.SectionProps]
    template: str
    resolver: Resolver


def _resolve_projects(items: List[Any], portfolio: PortfolioContent) -> List[Project]:
    projects = []
    for item in items:
        if isinstance(item, str):
            project = portfolio.find_project(item)
            if project is None:
                logger.debug("Skipping unknown project id %r", item)
                continue
            projects.append(project)
        else:
            try:
                projects.append(Project.model_validate(item))
            except ValidationError:
                logger.debug("Skipping malformed inline project %r", item)
    return projects


def _resolve_experience(items: Optional[List[Any]], portfolio: PortfolioContent) -> List[Experience]:
    if items is None:
        return list(portfolio.experience)
    entries = []
    for item in items:
        if isinstance(item, str):
            entry = portfolio.find_experience(item)
        else:
            try:
                entry = Experience.model_validate(item)
            except ValidationError:
                entry = None
        if entry is not None:
            entries.append(entry)
    return entries


def hero_context(props: sm.HeroProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    return {"props": props}


def card_grid_context(props: sm.CardGridProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    return {"props": props, "projects": _resolve_projects(props.items, portfolio)}


def skill_badges_context(props: sm.SkillBadgesProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    skills = props.skills if props.skills is not None else portfolio.skills
    return {"props": props, "skills": skills}


def timeline_context(props: sm.TimelineProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    return {"props": props, "entries": _resolve_experience(props.items, portfolio)}


def contact_context(props: sm.ContactFormProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    return {"props": props, "contact": portfolio.personal.contact}


def gallery_context(props: sm.ImageGalleryProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    captions = {photo.path: photo.caption for photo in portfolio.photos or []}
    images = [{"src": path, "caption": captions.get(path)} for path in props.images]
    return {"props": props, "images": images}


def tech_logos_context(props: sm.TechLogosProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    names = props.technologies if props.technologies is not None else portfolio.skills
    logos = [{"name": name, "slug": tech_icon_slug(name)} for name in names]
    return {"props": props, "logos": logos}


def github_activity_context(props: sm.GitHubActivityProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    username = props.username or data.default_github_username
    activity = data.github_activity.get(username)
    context: Dict[str, Any] = {"props": props, "username": username, "activity": activity, "weeks": []}
    if activity is not None and activity.contributions:
        context["weeks"] = heatmap_weeks(activity.contributions, data.today)
        context["max_count"] = max(point.count for point in activity.contributions)
    return context


def props_only_context(props: sm.SectionProps, portfolio: PortfolioContent, data: SectionData) -> Dict[str, Any]:
    return {"props": props}


SECTION_REGISTRY: Dict[str, SectionSpec] = {
    "Hero": SectionSpec(sm.HeroProps, "sections/hero.html", hero_context),
    "CardGrid": SectionSpec(sm.CardGridProps, "sections/card_grid.html", card_grid_context),
    "SkillBadges": SectionSpec(sm.SkillBadgesProps, "sections/skill_badges.html", skill_badges_context),
    "Timeline": SectionSpec(sm.TimelineProps, "sections/timeline.html", timeline_context),
    "ContactForm": SectionSpec(sm.ContactFormProps, "sections/contact.html", contact_context),
    "TextBlock": SectionSpec(sm.TextBlockProps, "sections/text_block.html", props_only_context),
    "ImageGallery": SectionSpec(sm.ImageGalleryProps, "sections/image_gallery.html", gallery_context),
    "StatsCounter": SectionSpec(sm.StatsCounterProps, "sections/stats_counter.html", props_only_context),
    "TechLogos": SectionSpec(sm.TechLogosProps, "sections/tech_logos.html", tech_logos_context),
    "GitHubActivity": SectionSpec(sm.GitHubActivityProps, "sections/github_activity.html", github_activity_context),
    "Stats": SectionSpec(sm.StatsProps, "sections/stats.html", props_only_context),
    "Tabs": SectionSpec(sm.TabsProps, "sections/tabs.html", props_only_context),
    "Accordion": SectionSpec(sm.AccordionProps, "sections/accordion.html", props_only_context),
    "Testimonials": SectionSpec(sm.TestimonialsProps, "sections/testimonials.html", props_only_context),
    "FeatureList": SectionSpec(sm.FeatureListProps, "sections/feature_list.html", props_only_context),
    "Alert": SectionSpec(sm.AlertProps, "sections/alert.html", props_only_context),
}


class ComponentMapper:
    """Turns layout sections into (template, context) pairs."""

    def __init__(self, registry: Optional[Dict[str, SectionSpec]] = None):
        self.registry = registry if registry is not None else SECTION_REGISTRY

    def placeholder(self, section_type: str) -> MappedSection:
        return MappedSection(section_type, UNKNOWN_TEMPLATE, {"section_type": section_type})

    def map_section(
        self,
        section: Section,
        portfolio: PortfolioContent,
        data: Optional[SectionData] = None,
    ) -> MappedSection:
        spec = self.registry.get(section.type)
        if spec is None:
            logger.warning("Unknown section type %r", section.type)
            return self.placeholder(section.type)

        try:
            props = spec.props_model.model_validate(section.props)
        except ValidationError as e:
            logger.warning("Invalid props for %s section: %s", section.type, e)
            return self.placeholder(section.type)

        context = spec.resolver(props, portfolio, data or SectionData())
        return MappedSection(section.type, spec.template, context)

    def map_layout(
        self,
        layout: GeneratedLayout,
        portfolio: PortfolioContent,
        data: Optional[SectionData] = None,
    ) -> List[MappedSection]:
        return [self.map_section(section, portfolio, data) for section in layout.sections]

    @staticmethod
    def github_usernames(layout: GeneratedLayout, default: str) -> List[str]:
        """Usernames whose activity the layout's GitHubActivity sections need."""
        names = []
        for section in layout.sections:
            if section.type == "GitHubActivity":
                username = section.props.get("username")
                name = username if isinstance(username, str) and username else default
                if name not in names:
                    names.append(name)
        return names
