"""Like/dislike feedback on generated layouts."""

import logging
from collections import Counter
from typing import Optional, Tuple
from portfolio_site.models.response_models import FeedbackResponse
from portfolio_site.services.cache import LAYOUT_KEY_PREFIX, KVCache
from portfolio_site.services.rate_limiter import CooldownRateLimiter


logger = logging.getLogger(__name__)


class FeedbackService:
    """Records feedback and clears disliked layouts so they get regenerated."""

    def __init__(self, cache: KVCache, rate_limiter: CooldownRateLimiter):
        self.cache = cache
        self.rate_limiter = rate_limiter
        # (audience, feedback type) -> count
        self.analytics: Counter = Counter()

    def record(self, audience_type: str, feedback_type: str, session_id: str) -> None:
        self.analytics[(audience_type, feedback_type)] += 1
        logger.info(
            "feedback audience=%s type=%s session=%s",
            audience_type, feedback_type, session_id,
        )

    def submit(
        self,
        feedback_type: Optional[str],
        audience_type: Optional[str],
        session_id: Optional[str],
        cache_key: Optional[str] = None,
    ) -> Tuple[int, FeedbackResponse]:
        """
        Handle one feedback submission.

        Returns:
            (status_code, response)
        """
        if not feedback_type or not audience_type or not session_id:
            return 400, FeedbackResponse(success=False, message="Missing required fields")

        self.record(audience_type, feedback_type, session_id)

        if feedback_type == "like":
            return 200, FeedbackResponse(
                success=True, message="Thank you for your feedback!", regenerate=False
            )

        if feedback_type == "dislike":
            limit = self.rate_limiter.check(session_id)
            if limit.limited:
                return 200, FeedbackResponse(
                    success=False,
                    message="Please wait before requesting another regeneration",
                    rate_limited=True,
                    retry_after=limit.retry_after,
                )

            if cache_key and cache_key.startswith(LAYOUT_KEY_PREFIX):
                self.cache.delete(cache_key)
            elif cache_key:
                logger.warning("Ignoring non-layout cache key in feedback: %s", cache_key)
            self.rate_limiter.hit(session_id)
            return 200, FeedbackResponse(
                success=True, message="Regenerating your personalized layout...", regenerate=True
            )

        return 400, FeedbackResponse(success=False, message="Invalid feedback type")
