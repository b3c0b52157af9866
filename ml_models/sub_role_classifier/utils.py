"""Utils for sub-role classification."""

import asyncio
import json
import re
from typing import Dict, List, Optional

from openai import AsyncOpenAI

from settings.config import get_settings
from .exceptions import ClassifierLLMValidationFailedError, ClassifierTimeoutError

_client: Optional[AsyncOpenAI] = None


def get_openai_client() -> AsyncOpenAI:
    global _client
    if _client is None:
        settings = get_settings()
        _client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url or None,
            max_retries=0,
        )
    return _client


async def achat(messages: List[Dict[str, str]], config: Dict, timeout: float) -> str:
    """
    Sends one chat completion request in JSON mode.

    Args:
        messages: Chat messages (system/user).
        config: Model config with ``model``, ``temperature`` and ``max_tokens``.
        timeout: Hard deadline in seconds for the whole call.

    Returns:
        The model's response content.
    """
    client = get_openai_client()
    try:
        response = await asyncio.wait_for(
            client.chat.completions.create(
                model=config["model"],
                messages=messages,
                temperature=config["temperature"],
                max_tokens=config["max_tokens"],
                response_format={"type": "json_object"},
            ),
            timeout=timeout,
        )
    except asyncio.TimeoutError as e:
        raise ClassifierTimeoutError(f"LLM call timed out after {timeout}s") from e

    content = response.choices[0].message.content
    if not content:
        raise ClassifierLLMValidationFailedError("LLM returned an empty response")
    return content


def extract_json_object(text: str) -> Dict:
    """Parse a JSON object from model output, tolerating markdown code fences."""
    cleaned = re.sub(r"^\s*```(?:json)?\s*|\s*```\s*$", "", text.strip())
    try:
        data = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise ClassifierLLMValidationFailedError("LLM response is not valid JSON") from e
    if not isinstance(data, dict):
        raise ClassifierLLMValidationFailedError("LLM response is not a JSON object")
    return data
