"""Checks links in generated layouts and drops the broken ones."""

import asyncio
import logging
from typing import List, Optional, Set
import httpx
from portfolio_site.models.layout_models import GeneratedLayout


logger = logging.getLogger(__name__)


def extract_links(layout: GeneratedLayout) -> List[str]:
    """Hero call-to-action hrefs in the layout."""
    links = []
    for section in layout.sections:
        cta = section.props.get("cta") if section.type == "Hero" else None
        if isinstance(cta, dict) and isinstance(cta.get("href"), str):
            links.append(cta["href"])
    return links


def sanitize_layout(layout: GeneratedLayout, invalid_links: Set[str]) -> GeneratedLayout:
    """Remove Hero CTAs that point at invalid links."""
    sections = []
    for section in layout.sections:
        cta = section.props.get("cta") if section.type == "Hero" else None
        if isinstance(cta, dict) and cta.get("href") in invalid_links:
            props = {key: value for key, value in section.props.items() if key != "cta"}
            section = section.model_copy(update={"props": props})
        sections.append(section)
    return layout.model_copy(update={"sections": sections})


class LinkValidator:
    """HEAD-checks absolute links; mailto and site-relative links always pass."""

    def __init__(self, timeout: float = 3.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.timeout = timeout
        self.transport = transport

    async def is_valid(self, url: str, client: httpx.AsyncClient) -> bool:
        if url.startswith("mailto:") or url.startswith("/"):
            return True
        try:
            response = await client.head(url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.debug("Link check failed for %s: %s", url, e)
            return False
        return response.is_success

    async def find_invalid(self, links: List[str]) -> Set[str]:
        if not links:
            return set()
        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True, transport=self.transport
        ) as client:
            results = await asyncio.gather(*(self.is_valid(link, client) for link in links))
        return {link for link, ok in zip(links, results) if not ok}

    async def validate_layout(self, layout: GeneratedLayout) -> GeneratedLayout:
        invalid = await self.find_invalid(extract_links(layout))
        if invalid:
            logger.warning("Removed invalid links: %s", sorted(invalid))
            return sanitize_layout(layout, invalid)
        return layout
