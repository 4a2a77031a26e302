"""Errors raised while asking a provider for a curation.

The curation engine catches all of these and answers with the fallback
scorer instead; ``code`` ends up in the structured log line.
"""

from typing import Optional


class AIError(Exception):
    code = "AI_ERROR"

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class AIProviderError(AIError):
    """The provider answered with an error or could not be reached."""

    code = "AI_PROVIDER_ERROR"

    def __init__(self, provider: str, message: str, status_code: Optional[int] = None):
        self.provider = provider
        self.status_code = status_code
        super().__init__(f"[{provider}] {message}")


class AIRateLimitError(AIProviderError):
    code = "AI_RATE_LIMITED"

    def __init__(self, provider: str, message: str, retry_after: Optional[int] = None):
        self.retry_after = retry_after
        super().__init__(provider, f"rate limited: {message}", status_code=429)


class AINotConfiguredError(AIError):
    """A project names a provider whose credentials are not set."""

    code = "AI_NOT_CONFIGURED"

    def __init__(self, provider: str, detail: str = "credentials not configured"):
        self.provider = provider
        super().__init__(f"AI provider '{provider}' {detail}")


class AIResponseParseError(AIError):
    """The provider's text could not be read as a curation result."""

    code = "AI_RESPONSE_UNPARSABLE"

    def __init__(self, reason: str, content: str = ""):
        self.reason = reason
        self.content = content
        super().__init__(f"Unusable AI response: {reason}")
