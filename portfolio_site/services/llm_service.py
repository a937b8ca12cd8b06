"""Service for LLM integration through an OpenAI-compatible chat completions API."""

import json
import logging
import os
from typing import Any, Dict, List, Optional
import httpx
from pydantic_settings import BaseSettings


logger = logging.getLogger(__name__)


class AISettings(BaseSettings):
    """AI provider configuration settings."""

    ai_base_url: str = os.getenv("AI_BASE_URL", "https://openrouter.ai/api/v1")
    ai_model: str = os.getenv("AI_MODEL", "qwen/qwen3-coder-flash")
    ai_timeout: int = int(os.getenv("AI_TIMEOUT", "30"))
    ai_api_key: Optional[str] = os.getenv("AI_API_KEY", None)

    class Config:
        env_file = ".env"
        case_sensitive = False
        extra = "ignore"


LAYOUT_SCHEMA: Dict[str, Any] = {
    "name": "generated_layout",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "layout": {
                "type": "string",
                "enum": ["single-column", "two-column", "hero-focused"],
            },
            "theme": {
                "type": "object",
                "properties": {"accent": {"type": "string"}},
                "required": ["accent"],
                "additionalProperties": False,
            },
            "sections": {
                "type": "array",
                "items": {
                    "type": "object",
                    "properties": {
                        "type": {"type": "string"},
                        "props": {"type": "object"},
                    },
                    "required": ["type", "props"],
                    "additionalProperties": False,
                },
            },
        },
        "required": ["layout", "theme", "sections"],
        "additionalProperties": False,
    },
}

CATEGORIZATION_SCHEMA: Dict[str, Any] = {
    "name": "categorization_result",
    "strict": True,
    "schema": {
        "type": "object",
        "properties": {
            "status": {"type": "string", "enum": ["matched", "new_tag", "rejected"]},
            "tagName": {"type": "string"},
            "displayName": {"type": "string"},
            "guidelines": {"type": "string"},
            "confidence": {"type": "number"},
            "reason": {"type": "string"},
        },
        "required": ["status", "tagName", "displayName", "guidelines", "confidence"],
        "additionalProperties": False,
    },
}


class LLMService:
    """Client for the chat completions endpoint."""

    def __init__(
        self,
        settings: Optional[AISettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize LLM service.

        Args:
            settings: AI settings (uses defaults if None)
            transport: Optional httpx transport, used by tests to stub the provider
        """
        self.settings = settings or AISettings()
        self.base_url = self.settings.ai_base_url.rstrip("/")
        self.model = self.settings.ai_model
        self.timeout = self.settings.ai_timeout
        self.api_key = self.settings.ai_api_key
        self.transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def chat_json(
        self,
        messages: List[Dict[str, str]],
        schema: Dict[str, Any],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
    ) -> Dict[str, Any]:
        """
        Run a chat completion constrained to a JSON schema.

        Args:
            messages: Chat messages ({"role", "content"})
            schema: json_schema response format definition
            temperature: Sampling temperature (0.0-1.0)
            max_tokens: Maximum tokens to generate (optional)

        Returns:
            dict: Parsed JSON object from the first choice

        Raises:
            RuntimeError: If the provider is not configured or the request fails
            ValueError: If the completion is empty or not valid JSON
        """
        if not self.is_configured:
            raise RuntimeError("AI provider is not configured")

        url = f"{self.base_url}/chat/completions"

        payload: Dict[str, Any] = {
            "model": self.model,
            "messages": messages,
            "temperature": temperature,
            "response_format": {"type": "json_schema", "json_schema": schema},
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

        async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
            try:
                response = await client.post(url, json=payload, headers=headers)
                response.raise_for_status()
                result = response.json()
            except httpx.TimeoutException as e:
                raise RuntimeError(f"AI request timed out after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                logger.error("AI provider returned %s: %s", e.response.status_code, e.response.text[:500])
                raise RuntimeError(f"AI provider returned {e.response.status_code}") from e
            except httpx.HTTPError as e:
                raise RuntimeError(f"Failed to communicate with AI provider: {str(e)}") from e

        try:
            content = result["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ValueError(f"Unexpected response format: {result}") from e

        if not content:
            raise ValueError("No content in AI response")

        try:
            parsed = json.loads(content)
        except json.JSONDecodeError as e:
            logger.error("Failed to parse AI response: %s", content[:500])
            raise ValueError("Invalid JSON in AI response") from e

        if not isinstance(parsed, dict):
            raise ValueError("AI response is not a JSON object")
        return parsed
