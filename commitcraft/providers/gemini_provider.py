from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..config import DEFAULT_MODELS, ProviderConfig
from ..draft import Draft, draft_schema
from ..exceptions import ProviderResponseError
from .base import build_system_prompt, build_user_prompt
from .extract import draft_from_json_text, draft_from_text, post_json, run_strategies

logger = logging.getLogger(__name__)


def _candidate_parts(response: Any) -> list[Any]:
    if not isinstance(response, dict):
        raise ProviderResponseError("Unexpected Gemini response body")
    candidates = response.get("candidates")
    if not isinstance(candidates, list) or not candidates:
        raise ProviderResponseError("No candidates in Gemini response")
    content = candidates[0].get("content") if isinstance(candidates[0], dict) else None
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list) or not parts:
        raise ProviderResponseError("No text content found in Gemini response")
    return parts


def schema_guided_text(parts: list[Any]) -> Optional[Draft]:
    """First part's text, which schema-guided output makes pure JSON."""
    first = parts[0]
    return draft_from_json_text(first.get("text") if isinstance(first, dict) else None)


def embedded_json(parts: list[Any]) -> Optional[Draft]:
    """Any text part carrying the JSON object among other prose."""
    return draft_from_text(
        part.get("text") for part in parts if isinstance(part, dict)
    )


class GeminiProvider:
    """Google Gemini ``generateContent`` with a JSON response schema."""

    name = "gemini"
    strategies = (schema_guided_text, embedded_json)

    def __init__(
        self,
        config: ProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.model = config.model
        self.endpoint = config.endpoint or DEFAULT_MODELS["gemini"]["endpoint"]
        self._http_client = http_client

    def build_request(self, diff: str) -> dict[str, Any]:
        system_instruction = build_system_prompt(
            "Analyze the git diff carefully and respond with a JSON object "
            "containing the title and description fields. "
            "The title MUST be 50 characters or less."
        )
        return {
            "system_instruction": {"parts": [{"text": system_instruction}]},
            "contents": [{"parts": [{"text": build_user_prompt(diff)}]}],
            "generation_config": {
                "temperature": 0.2,
                "candidate_count": 1,
                "response_mime_type": "application/json",
                "response_schema": draft_schema(strip_metadata=True),
            },
        }

    @property
    def url(self) -> str:
        return f"{self.endpoint.rstrip('/')}/models/{self.model}:generateContent"

    async def generate(self, diff: str) -> Draft:
        logger.debug("gemini: requesting model=%s diff_len=%d", self.model, len(diff))
        body = self.build_request(diff)
        if self._http_client is not None:
            data = await self._post(self._http_client, body)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                data = await self._post(client, body)
        parts = _candidate_parts(data)
        return run_strategies(parts, self.strategies, "Gemini")

    async def _post(self, client: httpx.AsyncClient, body: dict[str, Any]) -> Any:
        return await post_json(
            client,
            self.url,
            provider="Gemini",
            api_key=self.config.api_key,
            params={"key": self.config.api_key},
            json=body,
        )
