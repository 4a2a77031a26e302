"""Claude via the Anthropic Messages API."""

from typing import Optional

import anthropic
from anthropic import AsyncAnthropic

from taskcurator.ai.exceptions import AIError, AIRateLimitError
from taskcurator.ai.providers.base import AIMessage, AIProvider, split_system


class AnthropicProvider(AIProvider):
    provider_name = "anthropic"

    def __init__(self, api_key: str, default_model: str = "claude-sonnet-4-20250514", timeout: float = 30.0):
        # A failed call is answered by the fallback scorer, never retried
        self.client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)
        self._model = default_model

    @property
    def default_model(self) -> str:
        return self._model

    async def _generate(
        self, messages: list[AIMessage], model: str, temperature: float, max_tokens: int
    ) -> str:
        system, turns = split_system(messages)
        params = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": m.role, "content": m.content} for m in turns],
        }
        if system:
            params["system"] = system

        reply = await self.client.messages.create(**params)
        return "".join(block.text for block in reply.content if block.type == "text")

    def _translate_error(self, exc: Exception) -> Optional[AIError]:
        if isinstance(exc, anthropic.RateLimitError):
            return AIRateLimitError(self.provider_name, str(exc))
        if isinstance(exc, anthropic.APIError):
            return self._provider_error(exc, getattr(exc, "status_code", None))
        return None
