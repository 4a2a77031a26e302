"""Tests for the shared provider request path."""

import pytest

from taskcurator.ai.exceptions import AIProviderError, AIRateLimitError
from taskcurator.ai.providers.base import AIMessage, split_system
from taskcurator.testing.fakes import FailingProvider, StaticResponseProvider


class QuotaError(Exception):
    pass


class TranslatingProvider(StaticResponseProvider):
    def __init__(self, exc: Exception):
        super().__init__(content="", name="translating")
        self.exc = exc

    async def _generate(self, messages, model, temperature, max_tokens) -> str:
        raise self.exc

    def _translate_error(self, exc):
        if isinstance(exc, QuotaError):
            return AIRateLimitError(self.provider_name, str(exc))
        return None


MESSAGES = [
    AIMessage(role="system", content="You curate tasks."),
    AIMessage(role="user", content="Pick today's work."),
]


async def test_complete_returns_text_and_default_model():
    provider = StaticResponseProvider('{"suggestions": []}')

    response = await provider.complete(MESSAGES)

    assert response.content == '{"suggestions": []}'
    assert response.model == "fake-model"
    assert response.latency_ms is not None
    assert provider.calls == [MESSAGES]


async def test_model_override_is_reported():
    response = await StaticResponseProvider("{}").complete(MESSAGES, model="bigger-model")

    assert response.model == "bigger-model"


@pytest.mark.parametrize(
    "messages",
    [
        [],
        [AIMessage(role="user", content="")],
        [AIMessage(role="tool", content="x")],
    ],
)
async def test_malformed_messages_are_rejected_before_sending(messages):
    provider = StaticResponseProvider("{}")

    with pytest.raises(ValueError):
        await provider.complete(messages)

    assert provider.calls == []


async def test_provider_errors_pass_through_unchanged():
    with pytest.raises(AIProviderError) as excinfo:
        await FailingProvider("boom").complete(MESSAGES)

    assert excinfo.value.status_code == 503
    assert excinfo.value.code == "AI_PROVIDER_ERROR"
    assert "[failing] boom" in str(excinfo.value)


async def test_sdk_errors_are_translated():
    with pytest.raises(AIRateLimitError) as excinfo:
        await TranslatingProvider(QuotaError("quota exhausted")).complete(MESSAGES)

    assert isinstance(excinfo.value, AIProviderError)
    assert excinfo.value.status_code == 429
    assert isinstance(excinfo.value.__cause__, QuotaError)


async def test_untranslated_errors_propagate():
    with pytest.raises(KeyError):
        await TranslatingProvider(KeyError("choices")).complete(MESSAGES)


def test_split_system_separates_the_system_prompt():
    system, turns = split_system(MESSAGES)

    assert system == "You curate tasks."
    assert [m.role for m in turns] == ["user"]
