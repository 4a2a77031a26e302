"""AI integration for daily curation."""

from taskcurator.ai.exceptions import (
    AIError,
    AINotConfiguredError,
    AIProviderError,
    AIRateLimitError,
    AIResponseParseError,
)
from taskcurator.ai.schemas import CurationResult, CurationSuggestion
from taskcurator.ai.service import AIService, CurationAIConfig, get_ai_service

__all__ = [
    "AIError",
    "AINotConfiguredError",
    "AIProviderError",
    "AIRateLimitError",
    "AIResponseParseError",
    "AIService",
    "CurationAIConfig",
    "CurationResult",
    "CurationSuggestion",
    "get_ai_service",
]
