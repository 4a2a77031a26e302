"""Provider interface used by the curation engine.

A curation request is always one system prompt followed by one user prompt,
and the answer is expected to be a JSON document. Providers therefore only
implement a single request/response call; timing and error translation are
shared here.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional, Sequence
from uuid import UUID, uuid4

from taskcurator.ai.exceptions import AIError, AIProviderError

Role = Literal["system", "user", "assistant"]


@dataclass
class AIMessage:
    role: Role
    content: str


@dataclass
class AIResponse:
    """Text returned by a provider plus bookkeeping for the prompt log."""

    content: str
    model: str
    latency_ms: Optional[int] = None
    request_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


def split_system(messages: Sequence[AIMessage]) -> tuple[Optional[str], list[AIMessage]]:
    """Pull the system prompt out for APIs that take it as a separate field."""
    system = None
    turns = []
    for message in messages:
        if message.role == "system":
            system = message.content
        else:
            turns.append(message)
    return system, turns


class AIProvider(ABC):
    """One configured chat backend.

    Subclasses implement ``_generate`` against their SDK and may override
    ``_translate_error`` to map SDK exceptions onto ``AIError`` subclasses.
    Anything that escapes ``complete`` makes the caller fall back to the
    deterministic scorer, so no retries happen at this layer.
    """

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Identifier stored on curation records, e.g. ``"anthropic"``."""

    @property
    @abstractmethod
    def default_model(self) -> str:
        """Model used when the project does not override one."""

    @abstractmethod
    async def _generate(
        self,
        messages: list[AIMessage],
        model: str,
        temperature: float,
        max_tokens: int,
    ) -> str:
        ...

    def _translate_error(self, exc: Exception) -> Optional[AIError]:
        return None

    async def complete(
        self,
        messages: list[AIMessage],
        model: Optional[str] = None,
        temperature: float = 0.7,
        max_tokens: int = 4000,
    ) -> AIResponse:
        """Send ``messages`` and return the generated text.

        Raises:
            ValueError: If the message list is empty or malformed
            AIError: If the provider rejects or fails the request
        """
        self._validate_messages(messages)
        model = model or self.default_model
        started = time.perf_counter()

        try:
            text = await self._generate(messages, model, temperature, max_tokens)
        except AIError:
            raise
        except Exception as e:
            translated = self._translate_error(e)
            if translated is None:
                raise
            raise translated from e

        return AIResponse(
            content=text or "",
            model=model,
            latency_ms=int((time.perf_counter() - started) * 1000),
        )

    def _validate_messages(self, messages: list[AIMessage]) -> None:
        if not messages:
            raise ValueError("At least one message is required")
        for message in messages:
            if message.role not in ("system", "user", "assistant"):
                raise ValueError(f"Invalid message role: {message.role}")
            if not message.content:
                raise ValueError(f"Empty {message.role} message")

    def _provider_error(self, exc: Exception, status_code: Optional[int] = None) -> AIProviderError:
        return AIProviderError(provider=self.provider_name, message=str(exc), status_code=status_code)
