"""LLM Base Classes and Shared Code"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

from changelog_gen.llm.model_tiers import ModelSelection, ModelTiers, select_model

DEFAULT_MAX_TOKENS = 2000
DEFAULT_TEMPERATURE = 0.3


@dataclass
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0

    @property
    def total_tokens(self) -> int:
        return self.prompt_tokens + self.completion_tokens


@dataclass
class LLMResponse:
    """Structured response from any LLM provider."""
    content: str
    model: str = ""
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def tokens_used(self) -> int:
        return self.usage.total_tokens


class LLMError(Exception):
    """Raised when LLM operations fail."""
    pass


class ProviderUnavailableError(LLMError):
    """Raised when no provider is configured or reachable."""
    pass


@dataclass
class ProviderErrorContext:
    """User-facing classification of a failed provider call."""
    kind: str
    message: str
    suggestions: list[str] = field(default_factory=list)


# (kind, message, suggestions, markers); first match wins
_ERROR_RULES: list[tuple[str, str, list[str], tuple[str, ...]]] = [
    ("connection", "Could not reach the AI provider",
     ["Check your network connection", "For Ollama, make sure 'ollama serve' is running"],
     ("fetch failed", "connection refused", "unreachable", "timed out", "timeout",
      "not running", "connection")),
    ("configuration", "AI provider rejected the API key",
     ["Check ANTHROPIC_API_KEY", "Run with --no-ai to skip AI analysis"],
     ("api key", "401", "unauthorized", "invalid key", "authentication")),
    ("rate_limit", "AI provider rate limit reached",
     ["Wait a moment and retry", "Use a smaller --max-commits batch"],
     ("rate limit", "429", "overloaded")),
]


def describe_provider_error(error: Exception) -> ProviderErrorContext:
    """Classify a provider failure as connection, configuration, rate_limit or generic."""
    text = str(error).lower()
    if "model" in text and any(m in text for m in ("not found", "unavailable", "404")):
        return ProviderErrorContext(
            "configuration", "Configured model is not available",
            ["Check the model name with --display-config", "For Ollama, pull the model first"],
        )
    for kind, message, suggestions, markers in _ERROR_RULES:
        if any(marker in text for marker in markers):
            return ProviderErrorContext(kind, message, list(suggestions))
    return ProviderErrorContext("generic", f"AI analysis failed: {error}", ["Run with --verbose for details"])


class ChatCompletionProvider(ABC):
    """Normalized chat-completion capability implemented by each vendor adapter."""

    MODEL_TIERS: ModelTiers
    model_override: str | None = None

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @abstractmethod
    def is_available(self) -> bool:
        pass

    @abstractmethod
    def generate_completion(
        self,
        messages: list[dict],
        model: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> LLMResponse:
        pass

    def select_optimal_model(self, file_count: int, lines_changed: int) -> ModelSelection:
        return select_model(self.MODEL_TIERS, file_count, lines_changed, override=self.model_override)
