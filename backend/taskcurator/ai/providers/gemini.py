"""Google Gemini through the google-genai SDK."""

from typing import Optional

from google import genai
from google.genai import errors, types

from taskcurator.ai.exceptions import AIError, AIRateLimitError
from taskcurator.ai.providers.base import AIMessage, AIProvider, split_system


class GeminiProvider(AIProvider):
    provider_name = "gemini"

    def __init__(self, api_key: str, default_model: str = "gemini-2.5-flash", timeout: float = 30.0):
        # HttpOptions takes milliseconds
        self.client = genai.Client(
            api_key=api_key,
            http_options=types.HttpOptions(timeout=int(timeout * 1000)),
        )
        self._model = default_model

    @property
    def default_model(self) -> str:
        return self._model

    async def _generate(
        self, messages: list[AIMessage], model: str, temperature: float, max_tokens: int
    ) -> str:
        system, turns = split_system(messages)
        # Gemini calls the assistant side "model"
        contents = [
            types.Content(
                role="model" if m.role == "assistant" else "user",
                parts=[types.Part(text=m.content)],
            )
            for m in turns
        ]
        config = types.GenerateContentConfig(
            temperature=temperature,
            max_output_tokens=max_tokens,
            system_instruction=system,
            response_mime_type="application/json",
        )

        reply = await self.client.aio.models.generate_content(
            model=model, contents=contents, config=config
        )
        return reply.text or ""

    def _translate_error(self, exc: Exception) -> Optional[AIError]:
        if isinstance(exc, errors.APIError):
            if exc.code == 429:
                return AIRateLimitError(self.provider_name, str(exc))
            return self._provider_error(exc, exc.code)
        return None
