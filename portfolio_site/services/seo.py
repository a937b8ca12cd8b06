"""Page metadata: title, Open Graph/Twitter tags and schema.org structured data."""

from datetime import date
from typing import Any, Dict, List, Optional
from pydantic import BaseModel
from portfolio_site.models.portfolio_models import PortfolioContent
from portfolio_site.services.translation_service import OG_LOCALES


DEFAULT_IMAGE = "/og-image.png"
PROFILE_IMAGE = "/assets/profile.png"


class PageMeta(BaseModel):
    """Everything the <head> of a page needs."""

    title: str
    description: str
    canonical_url: str
    image_url: str
    image_alt: str
    site_name: str
    og_type: str = "website"
    og_locale: str = "en_US"
    noindex: bool = False


def _absolute(site_url: str, path: str) -> str:
    return path if path.startswith("http") else f"{site_url.rstrip('/')}{path}"


def page_title(portfolio: PortfolioContent, custom_title: Optional[str] = None) -> str:
    name = portfolio.personal.name
    if custom_title:
        return f"{custom_title} | {name}"
    return f"{name} | {portfolio.personal.title}"


def build_page_meta(
    portfolio: PortfolioContent,
    language: str,
    site_url: str,
    path: str = "/",
    custom_title: Optional[str] = None,
    description: Optional[str] = None,
    image: str = DEFAULT_IMAGE,
    noindex: bool = False,
) -> PageMeta:
    personal = portfolio.personal
    return PageMeta(
        title=page_title(portfolio, custom_title),
        description=description or personal.bio,
        canonical_url=_absolute(site_url, path),
        image_url=_absolute(site_url, image),
        image_alt=f"{personal.name} - {personal.title}",
        site_name=f"{personal.name} Portfolio",
        og_locale=OG_LOCALES.get(language, "en_US"),
        noindex=noindex,
    )


def build_structured_data(
    portfolio: PortfolioContent,
    site_url: str,
    language: str,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Person, WebSite and ProfilePage JSON-LD objects."""
    site = site_url.rstrip("/")
    personal = portfolio.personal
    person_id = f"{site}/#person"

    person: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "Person",
        "@id": person_id,
        "name": personal.name,
        "url": site,
        "image": f"{site}{PROFILE_IMAGE}",
        "jobTitle": personal.title,
        "description": personal.bio,
        "email": f"mailto:{personal.contact.email}",
        "sameAs": [personal.contact.linkedin, personal.contact.github],
        "alumniOf": [
            {"@type": "CollegeOrUniversity", "name": edu.institution} for edu in portfolio.education
        ],
        "knowsAbout": portfolio.skills,
        "inLanguage": language,
    }
    if portfolio.experience:
        person["worksFor"] = {"@type": "Organization", "name": portfolio.experience[0].company}
    if personal.location:
        locality, _, country = personal.location.partition(", ")
        person["address"] = {"@type": "PostalAddress", "addressLocality": locality}
        if country:
            person["address"]["addressCountry"] = country

    website = {
        "@context": "https://schema.org",
        "@type": "WebSite",
        "@id": f"{site}/#website",
        "name": f"{personal.name} Portfolio",
        "url": site,
        "description": personal.bio,
        "author": {"@id": person_id},
        "inLanguage": language,
    }

    profile_page = {
        "@context": "https://schema.org",
        "@type": "ProfilePage",
        "@id": f"{site}/#profilepage",
        "mainEntity": {"@id": person_id},
        "dateModified": (today or date.today()).isoformat(),
        "inLanguage": language,
    }

    return [person, website, profile_page]
