from __future__ import annotations

import logging
from typing import Any, Optional

import httpx
import openai

from ..config import DEFAULT_MODELS, ProviderConfig
from ..draft import Draft, draft_schema
from ..exceptions import (
    ProviderResponseError,
    ProviderTransportError,
)
from .base import (
    JSON_SHAPE_INSTRUCTION,
    TOOL_DESCRIPTION,
    TOOL_NAME,
    build_system_prompt,
    build_user_prompt,
)
from .extract import draft_from_json_text, draft_from_text, redact, run_strategies

logger = logging.getLogger(__name__)


def tool_call_arguments(message: dict[str, Any]) -> Optional[Draft]:
    """``tool_calls[0].function.arguments``, a JSON-encoded string."""
    tool_calls = message.get("tool_calls") or []
    if not tool_calls:
        return None
    function = tool_calls[0].get("function") or {}
    return draft_from_json_text(function.get("arguments"))


def message_content_json(message: dict[str, Any]) -> Optional[Draft]:
    """Plain ``content`` holding the JSON object instead of a tool call."""
    content = message.get("content")
    if isinstance(content, list):  # list-of-fragments shape
        content = "".join(
            str(part.get("text") or "") for part in content if isinstance(part, dict)
        )
    return draft_from_text([content])


class OpenAIProvider:
    """OpenAI chat completions with a forced function tool."""

    name = "openai"
    strategies = (tool_call_arguments, message_content_json)

    def __init__(
        self,
        config: ProviderConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.config = config
        self.model = config.model
        self._client = openai.AsyncOpenAI(
            api_key=config.api_key,
            base_url=config.endpoint or DEFAULT_MODELS["openai"]["endpoint"],
            timeout=config.timeout,
            max_retries=0,
            http_client=http_client,
        )

    def build_request(self, diff: str) -> dict[str, Any]:
        system_prompt = build_system_prompt(
            "Analyze the git diff carefully and generate an appropriate "
            f"conventional commit message by calling the {TOOL_NAME} "
            "function. " + JSON_SHAPE_INSTRUCTION
        )
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": build_user_prompt(diff)},
            ],
            "temperature": 0.2,
            "tools": [
                {
                    "type": "function",
                    "function": {
                        "name": TOOL_NAME,
                        "description": TOOL_DESCRIPTION,
                        "parameters": draft_schema(),
                    },
                }
            ],
            "tool_choice": {"type": "function", "function": {"name": TOOL_NAME}},
        }

    async def generate(self, diff: str) -> Draft:
        logger.debug("openai: requesting model=%s diff_len=%d", self.model, len(diff))
        key = self.config.api_key
        try:
            completion = await self._client.chat.completions.create(
                **self.build_request(diff)
            )
        except openai.APIConnectionError as exc:
            raise ProviderTransportError(
                redact(f"OpenAI API request failed: {exc}", key)
            ) from None
        except openai.APIStatusError as exc:
            raise ProviderResponseError(
                redact(
                    f"OpenAI API returned an error ({exc.status_code}): "
                    f"{exc.response.text}",
                    key,
                )
            ) from None
        except openai.APIError as exc:
            raise ProviderResponseError(
                redact(f"OpenAI API call failed: {exc}", key)
            ) from None

        data = completion.model_dump() if hasattr(completion, "model_dump") else completion
        choices = data.get("choices") if isinstance(data, dict) else None
        if not choices:
            raise ProviderResponseError("No response choice from OpenAI")
        message = choices[0].get("message")
        if not isinstance(message, dict):
            raise ProviderResponseError("Missing message in OpenAI response choice")
        return run_strategies(message, self.strategies, "OpenAI")
