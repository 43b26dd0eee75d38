"""Draft extraction helpers shared by the provider adapters.

Each adapter declares an ordered tuple of strategies. A strategy receives
the decoded response body and returns a ``Draft`` or ``None``; the first
non-``None`` result wins and ``DraftExtractionError`` is raised when every
strategy comes back empty.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Iterable, Optional, Sequence

import httpx

from ..draft import Draft
from ..exceptions import (
    DraftExtractionError,
    ProviderResponseError,
    ProviderTransportError,
)

logger = logging.getLogger(__name__)

Strategy = Callable[[Any], Optional[Draft]]


def run_strategies(
    response: Any, strategies: Sequence[Strategy], provider: str
) -> Draft:
    """Evaluate ``strategies`` in order and return the first draft found."""
    for strategy in strategies:
        draft = strategy(response)
        if draft is not None:
            logger.debug(
                "%s: draft extracted via %s", provider, strategy.__name__
            )
            return draft
        logger.debug("%s: %s found nothing", provider, strategy.__name__)
    raise DraftExtractionError(
        f"No valid tool call or parseable JSON found in {provider} response"
    )


def draft_from_payload(payload: Any) -> Optional[Draft]:
    """Like ``Draft.from_payload`` but ``None`` on a schema mismatch."""
    try:
        return Draft.from_payload(payload)
    except DraftExtractionError as exc:
        logger.debug("payload rejected: %s", exc)
        return None


def draft_from_json_text(text: Any) -> Optional[Draft]:
    """Parse ``text`` strictly as one JSON document."""
    if not isinstance(text, str):
        return None
    try:
        payload = json.loads(text)
    except json.JSONDecodeError:
        return None
    return draft_from_payload(payload)


def scan_json_objects(raw_text: str) -> Iterable[dict[str, Any]]:
    """Yield every JSON object embedded in ``raw_text``.

    Handles prose or markdown fences around the object.
    """
    decoder = json.JSONDecoder()
    idx = raw_text.find("{")
    while idx != -1:
        try:
            parsed, end = decoder.raw_decode(raw_text, idx)
        except json.JSONDecodeError:
            idx = raw_text.find("{", idx + 1)
            continue
        if isinstance(parsed, dict):
            yield parsed
        idx = raw_text.find("{", end)


def draft_from_text(texts: Iterable[Any]) -> Optional[Draft]:
    """Return the first schema-matching JSON object found in ``texts``."""
    for text in texts:
        if not isinstance(text, str) or not text.strip():
            continue
        draft = draft_from_json_text(text.strip())
        if draft is not None:
            return draft
        for candidate in scan_json_objects(text):
            draft = draft_from_payload(candidate)
            if draft is not None:
                return draft
    return None


def redact(text: str, secret: Optional[str]) -> str:
    if secret:
        return text.replace(secret, "***")
    return text


async def post_json(
    client: httpx.AsyncClient,
    url: str,
    *,
    provider: str,
    api_key: str,
    **kwargs: Any,
) -> Any:
    """POST once and return the decoded body, mapping failures to errors.

    Raises:
        ProviderTransportError: on connection or timeout failures.
        ProviderResponseError: on a non-2xx status (upstream body included
            verbatim) or a body that is not JSON.
    """
    try:
        response = await client.post(url, **kwargs)
    except httpx.HTTPError as exc:
        raise ProviderTransportError(
            redact(f"{provider} API request failed: {exc}", api_key)
        ) from None
    if response.is_error:
        raise ProviderResponseError(
            redact(
                f"{provider} API returned an error "
                f"({response.status_code}): {response.text}",
                api_key,
            )
        )
    try:
        return response.json()
    except ValueError as exc:
        raise ProviderResponseError(
            f"Failed to parse {provider} response: {exc}"
        ) from exc
