from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from ..config import DEFAULT_MODELS, ProviderConfig
from ..draft import Draft, draft_schema
from ..exceptions import ProviderResponseError
from .base import (
    JSON_SHAPE_INSTRUCTION,
    TOOL_DESCRIPTION,
    TOOL_NAME,
    build_system_prompt,
    build_user_prompt,
)
from .extract import draft_from_payload, draft_from_text, post_json, run_strategies

logger = logging.getLogger(__name__)

ANTHROPIC_VERSION = "2023-06-01"


def tool_use_input(blocks: list[Any]) -> Optional[Draft]:
    """``tool_use`` block for our tool, whose input is the payload."""
    for block in blocks:
        if (
            isinstance(block, dict)
            and block.get("type") == "tool_use"
            and block.get("name") == TOOL_NAME
        ):
            draft = draft_from_payload(block.get("input"))
            if draft is not None:
                return draft
    return None


def text_block_json(blocks: list[Any]) -> Optional[Draft]:
    """Text blocks, in case the model answered without calling the tool."""
    return draft_from_text(
        block.get("text")
        for block in blocks
        if isinstance(block, dict) and block.get("type") == "text"
    )


class AnthropicProvider:
    """Anthropic messages API with a forced tool call and text fallback."""

    name = "anthropic"
    strategies = (tool_use_input, text_block_json)

    def __init__(
        self,
        config: ProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.model = config.model
        self.endpoint = config.endpoint or DEFAULT_MODELS["anthropic"]["endpoint"]
        self._http_client = http_client

    def build_request(self, diff: str) -> dict[str, Any]:
        system_prompt = build_system_prompt(
            "Analyze the git diff carefully and generate an appropriate "
            f"conventional commit message using the {TOOL_NAME} tool. "
            "The title MUST be 50 characters or less. "
            + JSON_SHAPE_INSTRUCTION
        )
        return {
            "model": self.model,
            "max_tokens": 1024,
            "temperature": 0.2,
            "system": system_prompt,
            "messages": [{"role": "user", "content": build_user_prompt(diff)}],
            "tools": [
                {
                    "name": TOOL_NAME,
                    "description": TOOL_DESCRIPTION,
                    "input_schema": draft_schema(),
                }
            ],
            "tool_choice": {"type": "tool", "name": TOOL_NAME},
        }

    @property
    def url(self) -> str:
        return self.endpoint.rstrip("/") + "/v1/messages"

    def _headers(self) -> dict[str, str]:
        return {
            "x-api-key": self.config.api_key,
            "anthropic-version": ANTHROPIC_VERSION,
            "content-type": "application/json",
        }

    async def generate(self, diff: str) -> Draft:
        logger.debug(
            "anthropic: requesting model=%s diff_len=%d", self.model, len(diff)
        )
        body = self.build_request(diff)
        if self._http_client is not None:
            data = await self._post(self._http_client, body)
        else:
            async with httpx.AsyncClient(timeout=self.config.timeout) as client:
                data = await self._post(client, body)
        content = data.get("content") if isinstance(data, dict) else None
        if not isinstance(content, list):
            raise ProviderResponseError("Missing content blocks in Anthropic response")
        return run_strategies(content, self.strategies, "Anthropic")

    async def _post(self, client: httpx.AsyncClient, body: dict[str, Any]) -> Any:
        return await post_json(
            client,
            self.url,
            provider="Anthropic",
            api_key=self.config.api_key,
            headers=self._headers(),
            json=body,
        )
