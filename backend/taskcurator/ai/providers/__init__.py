from taskcurator.ai.providers.anthropic import AnthropicProvider
from taskcurator.ai.providers.base import AIMessage, AIProvider, AIResponse
from taskcurator.ai.providers.gemini import GeminiProvider
from taskcurator.ai.providers.openai import AzureOpenAIProvider, OpenAIProvider

__all__ = [
    "AIMessage",
    "AIProvider",
    "AIResponse",
    "AnthropicProvider",
    "AzureOpenAIProvider",
    "GeminiProvider",
    "OpenAIProvider",
]
