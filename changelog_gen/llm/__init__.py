"""LLM Client Package"""

from changelog_gen.llm.base import (
    ChatCompletionProvider,
    LLMError,
    LLMResponse,
    ProviderErrorContext,
    ProviderUnavailableError,
    TokenUsage,
    describe_provider_error,
)
from changelog_gen.llm.claude import ClaudeClient
from changelog_gen.llm.model_tiers import ModelSelection, ModelTiers, classify_complexity, select_model
from changelog_gen.llm.ollama import OllamaClient

PROVIDERS = {
    "claude": ClaudeClient,
    "ollama": OllamaClient,
}

AUTO_DETECT_ORDER = [OllamaClient, ClaudeClient]


def get_client(provider: str = "auto", model: str | None = None) -> ChatCompletionProvider:
    """Get a provider. Provider can be 'claude', 'ollama', or 'auto'."""
    if provider in PROVIDERS:
        try:
            return PROVIDERS[provider](model=model)
        except LLMError as e:
            raise ProviderUnavailableError(str(e)) from e

    if provider == "auto":
        for client_class in AUTO_DETECT_ORDER:
            try:
                return client_class(model=model)
            except LLMError:
                continue

        raise ProviderUnavailableError(
            "No LLM provider available.\n\n"
            "Option 1 - Use Ollama (free, local):\n"
            "  1. Install: https://ollama.ai\n"
            "  2. Start: ollama serve\n"
            "  3. Pull: ollama pull llama3.1\n\n"
            "Option 2 - Use Claude API:\n"
            "  export ANTHROPIC_API_KEY='your-key-here'"
        )

    raise LLMError(f"Unknown provider: {provider}. Use 'claude', 'ollama', or 'auto'.")


__all__ = [
    "ChatCompletionProvider",
    "LLMError",
    "LLMResponse",
    "ProviderErrorContext",
    "ProviderUnavailableError",
    "TokenUsage",
    "describe_provider_error",
    "ClaudeClient",
    "OllamaClient",
    "ModelSelection",
    "ModelTiers",
    "classify_complexity",
    "select_model",
    "get_client",
    "PROVIDERS",
]
