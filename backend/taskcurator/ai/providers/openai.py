"""Chat-completions providers: OpenAI itself and Azure OpenAI deployments.

``OpenAIProvider`` also covers any gateway that speaks the same protocol
(Cerebras, local proxies) through ``base_url``.
"""

from typing import Optional

import openai
from openai import AsyncAzureOpenAI, AsyncOpenAI

from taskcurator.ai.exceptions import AIError, AIRateLimitError
from taskcurator.ai.providers.base import AIMessage, AIProvider


class _ChatCompletionsProvider(AIProvider):
    client: AsyncOpenAI

    async def _generate(
        self, messages: list[AIMessage], model: str, temperature: float, max_tokens: int
    ) -> str:
        reply = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": m.role, "content": m.content} for m in messages],
            temperature=temperature,
            max_tokens=max_tokens,
        )
        if not reply.choices:
            return ""
        return reply.choices[0].message.content or ""

    def _translate_error(self, exc: Exception) -> Optional[AIError]:
        if isinstance(exc, openai.RateLimitError):
            return AIRateLimitError(self.provider_name, str(exc))
        if isinstance(exc, openai.APIError):
            return self._provider_error(exc, getattr(exc, "status_code", None))
        return None


class OpenAIProvider(_ChatCompletionsProvider):
    def __init__(
        self,
        api_key: str,
        default_model: str = "gpt-4o-mini",
        base_url: Optional[str] = None,
        timeout: float = 30.0,
        name: str = "openai",
    ):
        self.client = AsyncOpenAI(api_key=api_key, base_url=base_url or None, timeout=timeout, max_retries=0)
        self._model = default_model
        self._name = name

    @property
    def provider_name(self) -> str:
        return self._name

    @property
    def default_model(self) -> str:
        return self._model


class AzureOpenAIProvider(_ChatCompletionsProvider):
    """An Azure deployment; the deployment name doubles as the model id."""

    provider_name = "azure_openai"

    def __init__(
        self,
        endpoint: str,
        api_key: str,
        deployment: str,
        api_version: str = "2024-02-01",
        timeout: float = 30.0,
    ):
        self.client = AsyncAzureOpenAI(
            azure_endpoint=endpoint,
            api_key=api_key,
            api_version=api_version,
            timeout=timeout,
            max_retries=0,
        )
        self.deployment = deployment

    @property
    def default_model(self) -> str:
        return self.deployment
