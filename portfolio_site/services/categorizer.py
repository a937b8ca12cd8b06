"""Maps free-text visitor intents onto visitor tags."""

import logging
import re
from datetime import datetime, timezone
from typing import Optional
from portfolio_site.models.context_models import CategorizationResult, StoredTag
from portfolio_site.services.cache import KVCache, hash_string
from portfolio_site.services.llm_service import CATEGORIZATION_SCHEMA, LLMService
from portfolio_site.services.prompts import (
    ALLOWED_VISITOR_TAGS,
    TAG_GUIDELINES,
    build_categorization_prompt,
    build_categorization_user_prompt,
)


logger = logging.getLogger(__name__)

INTENT_CACHE_TTL = 86400 * 7
TAG_STORE_TTL = 86400 * 30
MAX_TAG_LENGTH = 20

_INVALID_TAG_CHARS = re.compile(r"[^a-z0-9-]")
_DASH_RUNS = re.compile(r"-+")


def default_categorization() -> CategorizationResult:
    return CategorizationResult(
        status="matched",
        tag_name="friend",
        display_name="Friend",
        guidelines=TAG_GUIDELINES["friend"],
        confidence=1,
        reason="Default fallback",
    )


def sanitize_tag_name(tag_name: str) -> str:
    """Lowercase, hyphenated, at most 20 characters; "friend" when nothing is left."""
    tag = _INVALID_TAG_CHARS.sub("-", tag_name.lower())
    tag = _DASH_RUNS.sub("-", tag).strip("-")[:MAX_TAG_LENGTH]
    return tag or "friend"


def sanitize_categorization(result: CategorizationResult) -> CategorizationResult:
    tag = sanitize_tag_name(result.tag_name)

    if result.status == "matched" and tag in ALLOWED_VISITOR_TAGS:
        return result.model_copy(update={
            "tag_name": tag,
            "guidelines": TAG_GUIDELINES.get(tag) or result.guidelines,
        })

    if result.status == "rejected":
        return result.model_copy(update={
            "tag_name": "friend",
            "guidelines": TAG_GUIDELINES["friend"],
        })

    return result.model_copy(update={
        "tag_name": tag,
        "confidence": min(1.0, max(0.0, result.confidence)),
    })


def intent_cache_key(intent: str) -> str:
    return f"intent:{hash_string(intent.lower().strip()[:50])}"


class IntentCategorizer:
    """Categorizes custom intents with the LLM, caching results and new tags."""

    def __init__(self, llm: LLMService, cache: KVCache):
        self.llm = llm
        self.cache = cache

    def get_stored_tag(self, tag_name: str) -> Optional[StoredTag]:
        data = self.cache.get_json(f"tag:{tag_name}")
        return StoredTag.model_validate(data) if data else None

    def store_new_tag(self, result: CategorizationResult, original_intent: str) -> None:
        """Keep a newly invented tag for reuse; existing tags are never overwritten."""
        key = f"tag:{result.tag_name}"
        if key in self.cache:
            return

        stored = StoredTag(
            tag_name=result.tag_name,
            display_name=result.display_name,
            guidelines=result.guidelines,
            created_at=datetime.now(timezone.utc).isoformat(),
            mapped_from=original_intent,
            is_custom=True,
        )
        self.cache.put(key, stored.model_dump(by_alias=True), ttl=TAG_STORE_TTL)
        logger.info("Stored new visitor tag %s", result.tag_name)

    async def categorize(self, intent: str) -> CategorizationResult:
        """
        Categorize a visitor intent.

        Never raises: provider failures and an unconfigured provider return the
        default "friend" categorization.
        """
        cache_key = intent_cache_key(intent)
        cached = self.cache.get_json(cache_key)
        if cached:
            return CategorizationResult.model_validate(cached)

        if not self.llm.is_configured:
            return default_categorization()

        try:
            data = await self.llm.chat_json(
                messages=[
                    {"role": "system", "content": build_categorization_prompt()},
                    {"role": "user", "content": build_categorization_user_prompt(intent)},
                ],
                schema=CATEGORIZATION_SCHEMA,
                temperature=0.3,
                max_tokens=1000,
            )
            result = sanitize_categorization(CategorizationResult.model_validate(data))
        except Exception:
            logger.exception("Categorization failed")
            return default_categorization()

        self.cache.put(cache_key, result.model_dump(by_alias=True), ttl=INTENT_CACHE_TTL)

        if result.status == "new_tag":
            self.store_new_tag(result, intent)

        return result
