"""AI provider resolution for curation.

``AIService`` turns application settings plus a project's override columns
into an explicit ``CurationAIConfig``. The curation engine only ever sees
that value, never the settings object.
"""

from dataclasses import dataclass
from typing import Callable, Optional

import structlog
from pydantic import SecretStr

from taskcurator.ai.exceptions import AINotConfiguredError
from taskcurator.ai.providers import (
    AIProvider,
    AnthropicProvider,
    AzureOpenAIProvider,
    GeminiProvider,
    OpenAIProvider,
)
from taskcurator.config import Settings, get_settings
from taskcurator.models.project import Project

logger = structlog.get_logger()


@dataclass(frozen=True)
class CurationAIConfig:
    """Everything the curation engine needs to talk to a provider.

    ``provider`` is None when the project has no usable AI capability, in
    which case the engine goes straight to the fallback scorer.
    """

    provider: Optional[AIProvider] = None
    provider_name: Optional[str] = None
    model: Optional[str] = None
    timeout: float = 30.0
    temperature: float = 0.7
    max_tokens: int = 4000

    @property
    def enabled(self) -> bool:
        return self.provider is not None

    @classmethod
    def disabled(cls) -> "CurationAIConfig":
        return cls()


class AIService:
    """Builds provider clients from settings and reuses them across projects."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self._providers: dict[str, AIProvider] = {}
        self._builders: dict[str, Callable[[], AIProvider]] = {
            "anthropic": self._anthropic,
            "azure_openai": self._azure_openai,
            "openai": self._openai,
            "gemini": self._gemini,
        }

    def _get_provider(self, provider_name: Optional[str] = None) -> AIProvider:
        """Return the cached client for ``provider_name``.

        Raises:
            AINotConfiguredError: If the provider's credentials are missing
            ValueError: If the provider name is unknown
        """
        name = provider_name or self.settings.ai_primary_provider
        if name not in self._providers:
            build = self._builders.get(name)
            if build is None:
                raise ValueError(f"Unknown provider: {name}")
            self._providers[name] = build()
        return self._providers[name]

    def _require(self, name: str, secret: SecretStr) -> str:
        value = secret.get_secret_value()
        if not value:
            raise AINotConfiguredError(name)
        return value

    def _anthropic(self) -> AIProvider:
        s = self.settings
        return AnthropicProvider(
            api_key=self._require("anthropic", s.anthropic_api_key),
            default_model=s.anthropic_model,
            timeout=s.ai_request_timeout,
        )

    def _azure_openai(self) -> AIProvider:
        s = self.settings
        if not s.azure_openai_endpoint:
            raise AINotConfiguredError("azure_openai", "endpoint not configured")
        return AzureOpenAIProvider(
            endpoint=s.azure_openai_endpoint,
            api_key=self._require("azure_openai", s.azure_openai_api_key),
            deployment=s.azure_openai_deployment,
            timeout=s.ai_request_timeout,
        )

    def _openai(self) -> AIProvider:
        s = self.settings
        return OpenAIProvider(
            api_key=self._require("openai", s.openai_api_key),
            default_model=s.openai_model,
            base_url=s.openai_base_url,
            timeout=s.ai_request_timeout,
        )

    def _gemini(self) -> AIProvider:
        s = self.settings
        return GeminiProvider(
            api_key=self._require("gemini", s.gemini_api_key),
            default_model=s.gemini_model,
            timeout=s.ai_request_timeout,
        )

    def curation_config_for(self, project: Project) -> CurationAIConfig:
        """Resolve the AI configuration for one project's curation.

        A project without ``ai_provider`` never uses AI. Missing credentials
        are logged and treated the same way.
        """
        if not self.settings.feature_ai_enabled or not project.ai_provider:
            return CurationAIConfig.disabled()

        try:
            provider = self._get_provider(project.ai_provider)
        except (AINotConfiguredError, ValueError) as e:
            logger.warning(
                "curation_ai_provider_unavailable",
                project_id=str(project.id),
                provider=project.ai_provider,
                error=str(e),
            )
            return CurationAIConfig.disabled()

        return CurationAIConfig(
            provider=provider,
            provider_name=provider.provider_name,
            model=project.ai_model or provider.default_model,
            timeout=self.settings.ai_request_timeout,
            temperature=self.settings.ai_temperature,
            max_tokens=self.settings.ai_max_tokens,
        )


_ai_service: Optional[AIService] = None


def get_ai_service() -> AIService:
    """Get the shared AI service instance."""
    global _ai_service
    if _ai_service is None:
        _ai_service = AIService()
    return _ai_service
