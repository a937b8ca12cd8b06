"""Visitor context extraction from request headers.

Location headers follow Cloudflare's naming (``CF-IPCountry`` and the
visitor-location managed transform). Without a CDN in front they are simply
absent and the context falls back to UTC with no location.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Callable, Mapping, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from portfolio_site.models.context_models import (
    DeviceContext,
    GeoContext,
    NetworkContext,
    TimeContext,
    UIHints,
    VisitorContext,
)


logger = logging.getLogger(__name__)

EU_COUNTRIES = frozenset({
    "AT", "BE", "BG", "HR", "CY", "CZ", "DK", "EE", "FI", "FR", "DE", "GR", "HU", "IE",
    "IT", "LV", "LT", "LU", "MT", "NL", "PL", "PT", "RO", "SK", "SI", "ES", "SE",
})

_MOBILE = re.compile(r"mobile|iphone|ipod|android.*mobile|windows phone|blackberry", re.I)
_TABLET = re.compile(r"tablet|ipad|android(?!.*mobile)|kindle|silk", re.I)

# Checked in order, specific engines before generic ones
_BROWSERS = (
    ("Edge", re.compile(r"edg/", re.I)),
    ("Opera", re.compile(r"opera|opr/", re.I)),
    ("Chrome", re.compile(r"chrome|crios", re.I)),
    ("Firefox", re.compile(r"firefox|fxios", re.I)),
    ("Safari", re.compile(r"safari", re.I)),
)

_OPERATING_SYSTEMS = (
    ("iOS", re.compile(r"iphone|ipad|ipod", re.I)),
    ("Android", re.compile(r"android", re.I)),
    ("Windows", re.compile(r"windows", re.I)),
    ("macOS", re.compile(r"macintosh|mac os x", re.I)),
    ("Linux", re.compile(r"linux", re.I)),
)


def parse_user_agent(user_agent: Optional[str]) -> DeviceContext:
    """Detect device type, browser and OS from a User-Agent string."""
    if not user_agent:
        return DeviceContext()

    device_type = "desktop"
    if _MOBILE.search(user_agent):
        device_type = "mobile"
    elif _TABLET.search(user_agent):
        device_type = "tablet"

    browser = next((name for name, pattern in _BROWSERS if pattern.search(user_agent)), None)
    os_name = next((name for name, pattern in _OPERATING_SYSTEMS if pattern.search(user_agent)), None)

    return DeviceContext(type=device_type, browser=browser, os=os_name)


def time_of_day(hour: int) -> str:
    if 5 <= hour < 12:
        return "morning"
    if 12 <= hour < 17:
        return "afternoon"
    if 17 <= hour < 21:
        return "evening"
    return "night"


def get_time_context(
    tz_name: Optional[str] = None,
    now: Optional[Callable[[], datetime]] = None,
) -> TimeContext:
    """
    Local time for a visitor.

    Args:
        tz_name: IANA timezone name; unknown or missing names fall back to UTC
        now: Clock returning an aware UTC datetime (for tests)
    """
    current = now() if now else datetime.now(timezone.utc)

    tz = timezone.utc
    if tz_name:
        try:
            tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError):
            logger.debug("Unknown timezone %r, using UTC", tz_name)

    local = current.astimezone(tz)
    return TimeContext(
        local_hour=local.hour,
        time_of_day=time_of_day(local.hour),
        is_weekend=local.weekday() >= 5,
    )


def extract_visitor_context(
    headers: Mapping[str, str],
    http_version: Optional[str] = None,
    now: Optional[Callable[[], datetime]] = None,
) -> VisitorContext:
    """Build the visitor context from request headers."""
    tz_name = headers.get("cf-timezone") or None
    country = (headers.get("cf-ipcountry") or "").upper() or None
    if country in ("XX", "T1"):
        # unknown country and Tor
        country = None

    ray = headers.get("cf-ray") or ""
    colo = ray.rsplit("-", 1)[1] if "-" in ray else "unknown"

    return VisitorContext(
        geo=GeoContext(
            country=country,
            city=headers.get("cf-ipcity") or None,
            continent=headers.get("cf-ipcontinent") or None,
            timezone=tz_name,
            region=headers.get("cf-region") or None,
            is_eu_country=country in EU_COUNTRIES,
        ),
        device=parse_user_agent(headers.get("user-agent")),
        time=get_time_context(tz_name, now=now),
        network=NetworkContext(
            http_protocol=f"HTTP/{http_version}" if http_version else "HTTP/1.1",
            colo=colo,
        ),
    )


def derive_ui_hints(context: VisitorContext) -> UIHints:
    suggested = "system"
    if context.time.time_of_day in ("evening", "night"):
        suggested = "dark"
    elif context.time.time_of_day == "morning":
        suggested = "light"

    return UIHints(
        suggested_theme=suggested,
        prefer_compact_layout=context.device.type == "mobile",
    )


def get_client_ip(headers: Mapping[str, str], peer: Optional[str] = None) -> str:
    """Client address, preferring proxy headers over the socket peer."""
    connecting_ip = headers.get("cf-connecting-ip")
    if connecting_ip:
        return connecting_ip.strip()

    forwarded = headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first

    return peer or "unknown"
