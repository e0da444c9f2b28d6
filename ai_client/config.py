"""Configuration for the strategy model client."""
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class AIModel(str, Enum):
    """Supported chat-completion models."""
    R1_PLUS = "DeepSeek-R1-Plus"
    R1 = "DeepSeek-R1"
    CODER = "DeepSeek-Coder"


DEFAULT_API_URL = "https://api.deepseek.com/v1/chat/completions"


@dataclass(frozen=True)
class AIClientConfig:
    """Explicit, immutable settings handed to RecommendationClient."""
    api_key: Optional[str] = None
    model: AIModel = AIModel.R1_PLUS
    api_url: str = DEFAULT_API_URL
    timeout_seconds: float = 30.0
    temperature: float = 0.7
    max_tokens: int = 4000
    # One bounded retry on timeout; never more than this many attempts.
    max_attempts: int = 2
    retry_backoff_seconds: float = 1.0

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_settings(cls, settings, stored=None) -> "AIClientConfig":
        """
        Build from the service-wide APIConfig. A saved key and model
        (StoredAISettings) take precedence over the environment.
        """
        api_key = stored.api_key if stored and stored.api_key else settings.ai_api_key
        model = stored.model if stored else settings.ai_model
        return cls(
            api_key=api_key,
            model=AIModel(model),
            api_url=settings.ai_api_url,
            timeout_seconds=settings.ai_timeout_seconds,
            temperature=settings.ai_temperature,
            max_tokens=settings.ai_max_tokens,
            max_attempts=max(1, min(settings.ai_max_attempts, 2)),
            retry_backoff_seconds=settings.ai_retry_backoff_seconds,
        )
