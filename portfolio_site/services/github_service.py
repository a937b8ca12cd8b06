"""Public GitHub activity for the activity widget and the layout prompt."""

import logging
import math
import re
from collections import defaultdict
from datetime import date, datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional
import httpx
from portfolio_site.models.context_models import ContributionPoint, DateRange, GitHubDataSummary
from portfolio_site.models.portfolio_models import PortfolioContent
from portfolio_site.models.response_models import GitHubActivityResponse
from portfolio_site.services.cache import KVCache


logger = logging.getLogger(__name__)

GITHUB_API_URL = "https://api.github.com"
GITHUB_HEADERS = {
    "User-Agent": "Portfolio-Site",
    "Accept": "application/vnd.github.v3+json",
}
ACTIVITY_CACHE_TTL = 3600
RECENT_DAYS = 30

TRACKED_EVENT_TYPES = frozenset({
    "PushEvent",
    "PullRequestEvent",
    "CreateEvent",
    "IssuesEvent",
    "IssueCommentEvent",
    "PullRequestReviewEvent",
    "PullRequestReviewCommentEvent",
    "CommitCommentEvent",
    "ReleaseEvent",
})

_GITHUB_USER = re.compile(r"github\.com/([^/?#]+)")


def extract_github_username(portfolio: PortfolioContent, default: str) -> str:
    match = _GITHUB_USER.search(portfolio.personal.contact.github or "")
    return match.group(1) if match else default


def activity_count(event: Dict[str, Any]) -> int:
    """Contributions an event represents; push events count their commits."""
    if event.get("type") not in TRACKED_EVENT_TYPES:
        return 0
    if event["type"] == "PushEvent":
        size = (event.get("payload") or {}).get("size")
        if size:
            return int(size)
    return 1


def aggregate_events(events: List[Dict[str, Any]], today: date) -> GitHubActivityResponse:
    """Fold raw events into per-day counts with totals."""
    per_day: Dict[str, int] = defaultdict(int)
    total = 0
    for event in events:
        count = activity_count(event)
        if count and event.get("created_at"):
            per_day[event["created_at"].split("T")[0]] += count
            total += count

    contributions = [ContributionPoint(date=day, count=count) for day, count in sorted(per_day.items())]
    cutoff = (today - timedelta(days=RECENT_DAYS)).isoformat()
    recent = sum(point.count for point in contributions if point.date > cutoff)

    return GitHubActivityResponse(contributions=contributions, total_commits=total, recent_activity=recent)


def summarize_activity(activity: GitHubActivityResponse, username: str) -> GitHubDataSummary:
    """Condense activity for the layout prompt."""
    if not activity.contributions:
        return GitHubDataSummary(available=False, username=username)

    points = sorted(activity.contributions, key=lambda p: p.date)
    weeks = max(1, math.ceil(len(points) / 7))
    return GitHubDataSummary(
        available=True,
        username=username,
        total_commits=activity.total_commits,
        recent_activity=activity.recent_activity,
        date_range=DateRange(start=points[0].date, end=points[-1].date),
        sample_points=points[-5:],
        avg_commits_per_week=round(activity.total_commits / weeks),
    )


class GitHubService:
    """Fetches and caches public event activity."""

    def __init__(
        self,
        cache: KVCache,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        today: Callable[[], date] = lambda: datetime.now(timezone.utc).date(),
    ):
        self.cache = cache
        self.timeout = timeout
        self.transport = transport
        self.today = today

    async def fetch_activity(self, username: str) -> GitHubActivityResponse:
        """
        Daily contribution counts for a user.

        Raises:
            RuntimeError: If GitHub cannot be reached or answers with an error
        """
        cache_key = f"github:activity:{username}"
        cached = self.cache.get_json(cache_key)
        if cached:
            return GitHubActivityResponse.model_validate(cached)

        url = f"{GITHUB_API_URL}/users/{username}/events"
        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.get(url, params={"per_page": 100}, headers=GITHUB_HEADERS)
                response.raise_for_status()
                events = response.json()
            except (httpx.HTTPError, ValueError) as e:
                raise RuntimeError(f"GitHub API request failed: {e}") from e

        activity = aggregate_events(events if isinstance(events, list) else [], self.today())
        logger.info(
            "GitHub activity for %s: %d days, %d total",
            username, len(activity.contributions), activity.total_commits,
        )
        self.cache.put(cache_key, activity.model_dump(by_alias=True), ttl=ACTIVITY_CACHE_TTL)
        return activity

    async def get_activity(self, username: str) -> GitHubActivityResponse:
        """Activity for the endpoint and widget; empty on failure."""
        try:
            return await self.fetch_activity(username)
        except RuntimeError as e:
            logger.warning("GitHub activity unavailable for %s: %s", username, e)
            return GitHubActivityResponse()

    async def get_summary(self, username: str) -> GitHubDataSummary:
        return summarize_activity(await self.get_activity(username), username)
