from __future__ import annotations

import json
import re
from typing import Any, Optional

import structlog
from openai import AsyncOpenAI, OpenAIError

from quizrush.errors import ParseError, ProviderError
from quizrush.services.logging import log_performance

logger = structlog.get_logger()

# A language tag only counts when it ends the opening fence line
FENCE_RE = re.compile(r"```[\w-]*(?=\s)|```")


def unwrap_response(raw: Optional[str]) -> Any:
    """Strip markdown code fences from a provider reply and parse it as JSON.

    Raises ParseError carrying the original text when the remainder is not JSON.
    """
    text = FENCE_RE.sub("", raw or "").strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("provider_reply_not_json", error=str(e), raw=(raw or "")[:500])
        raise ParseError(raw or "", details=str(e)) from e


def unwrap_json_object(raw: Optional[str]) -> Any:
    """Like unwrap_response, but skips any prose before the first '{'"""
    text = raw or ""
    start = text.find("{")
    if start == -1:
        raise ParseError(text, details="No JSON object found in response")
    return unwrap_response(text[start:])


class LLMClient:
    """Chat-completion handle; the SDK client is created on first use"""

    def __init__(self, api_key: Optional[str] = None, model: str = "gpt-4o-mini", timeout: float = 60.0):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if not self.api_key:
            raise ProviderError("LLM provider is not configured", details="OPENAI_API_KEY not set")
        if self._client is None:
            # No automatic retries: a failed call fails the request
            self._client = AsyncOpenAI(api_key=self.api_key, timeout=self.timeout, max_retries=0)
        return self._client

    @log_performance("llm_complete")
    async def complete(self, prompt: str, *, temperature: float = 0.7, system: Optional[str] = None,
                       model: Optional[str] = None) -> str:
        messages = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        client = self._get_client()
        try:
            rsp = await client.chat.completions.create(
                model=model or self.model,
                messages=messages,
                temperature=temperature,
            )
        except OpenAIError as e:
            logger.error("llm_request_failed", model=model or self.model, error=str(e))
            raise ProviderError("LLM request failed", details=str(e)) from e

        content = rsp.choices[0].message.content if rsp.choices else None
        return (content or "").strip()

    async def complete_json(self, prompt: str, **kwargs) -> Any:
        return unwrap_response(await self.complete(prompt, **kwargs))

    async def close(self) -> None:
        if self._client is not None:
            await self._client.close()
            self._client = None
