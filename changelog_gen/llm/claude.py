"""Claude (Anthropic) LLM Client"""

import os

from changelog_gen.llm.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ChatCompletionProvider,
    LLMError,
    LLMResponse,
    TokenUsage,
)
from changelog_gen.llm.model_tiers import ModelTiers


class ClaudeClient(ChatCompletionProvider):
    """Claude API client. Requires ANTHROPIC_API_KEY env var."""

    MODEL_TIERS = ModelTiers(
        small="claude-3-5-haiku-20241022",
        standard="claude-3-7-sonnet-20250219",
        medium="claude-sonnet-4-20250514",
        complex="claude-opus-4-20250514",
    )
    MAX_RETRIES = 2

    def __init__(self, api_key: str | None = None, model: str | None = None):
        self.api_key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        self.model_override = model

        if not self.api_key:
            raise LLMError(
                "No API key found. Set ANTHROPIC_API_KEY environment variable:\n"
                "  export ANTHROPIC_API_KEY='your-key-here'"
            )

        try:
            from anthropic import Anthropic
            self._client = Anthropic(api_key=self.api_key, max_retries=self.MAX_RETRIES)
        except ImportError:
            raise LLMError(
                "Anthropic SDK not installed. Run:\n"
                "  pip install anthropic"
            )

    @property
    def name(self) -> str:
        return f"Claude ({self.model_override or 'auto model'})"

    def is_available(self) -> bool:
        return bool(self.api_key)

    def generate_completion(
        self,
        messages: list[dict],
        model: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> LLMResponse:
        from anthropic import (
            APIConnectionError,
            APIError,
            AuthenticationError,
            NotFoundError,
            RateLimitError,
        )

        model = model or self.model_override or self.MODEL_TIERS.standard
        system = "\n\n".join(m["content"] for m in messages if m["role"] == "system")
        chat = [{"role": m["role"], "content": m["content"]} for m in messages if m["role"] != "system"]

        request = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": chat,
        }
        if system:
            request["system"] = system

        try:
            response = self._client.messages.create(**request)
        except AuthenticationError:
            raise LLMError("Invalid API key (401). Check your ANTHROPIC_API_KEY.")
        except RateLimitError:
            raise LLMError("Claude rate limit exceeded (429). Try again later.")
        except NotFoundError:
            raise LLMError(f"Model '{model}' not found on the Claude API.")
        except APIConnectionError as e:
            raise LLMError(f"Connection to Claude API failed: {e}")
        except APIError as e:
            raise LLMError(f"Claude API error: {e.message}")

        content = "".join(block.text for block in response.content if block.type == "text").strip()
        return LLMResponse(
            content=content,
            model=model,
            usage=TokenUsage(
                prompt_tokens=response.usage.input_tokens,
                completion_tokens=response.usage.output_tokens,
            ),
        )
