"""Ollama LLM Client for Local Models"""

import http.client
import json
import os
import socket
import urllib.error
import urllib.request

from changelog_gen.llm.base import (
    DEFAULT_MAX_TOKENS,
    DEFAULT_TEMPERATURE,
    ChatCompletionProvider,
    LLMError,
    LLMResponse,
    TokenUsage,
)
from changelog_gen.llm.model_tiers import ModelSelection, ModelTiers, select_model


class OllamaClient(ChatCompletionProvider):
    """Ollama client for local models. Requires: ollama serve"""

    MODEL_TIERS = ModelTiers(
        small="llama3.2:3b",
        standard="llama3.1",
        medium="llama3.1:8b",
        complex="llama3.1:70b",
    )
    DEFAULT_HOST = "http://localhost:11434"
    DEFAULT_TIMEOUT = 300  # 5 minutes for CPU inference

    def __init__(self, model: str | None = None, host: str | None = None):
        self.model_override = model
        self.host = host or os.environ.get("OLLAMA_HOST", self.DEFAULT_HOST)
        self.timeout = int(os.environ.get("CLG_TIMEOUT", self.DEFAULT_TIMEOUT))
        self.installed_models: set[str] = set()
        self._verify_connection()

    @property
    def name(self) -> str:
        return f"Ollama ({self.model_override or 'auto model'})"

    def _fetch_tags(self) -> dict:
        req = urllib.request.Request(f"{self.host}/api/tags")
        with urllib.request.urlopen(req, timeout=5) as response:
            return json.loads(response.read().decode('utf-8'))

    def _verify_connection(self) -> None:
        """Check if Ollama is running and remember which models are pulled."""
        try:
            data = self._fetch_tags()
        except (urllib.error.URLError, OSError, json.JSONDecodeError):
            raise LLMError("Ollama not running. Start with: ollama serve")
        self.installed_models = {m.get('name', '') for m in data.get('models', [])}

    def is_available(self) -> bool:
        try:
            self._fetch_tags()
            return True
        except (urllib.error.URLError, OSError, json.JSONDecodeError):
            return False

    def select_optimal_model(self, file_count: int, lines_changed: int) -> ModelSelection:
        return select_model(
            self.MODEL_TIERS, file_count, lines_changed,
            override=self.model_override,
            available=self.installed_models or None,
        )

    def _call_api(self, payload: dict) -> dict:
        data = json.dumps(payload).encode('utf-8')
        req = urllib.request.Request(
            f"{self.host}/api/chat", data=data, headers={"Content-Type": "application/json"}
        )
        with urllib.request.urlopen(req, timeout=self.timeout) as response:
            return json.loads(response.read().decode('utf-8'))

    def generate_completion(
        self,
        messages: list[dict],
        model: str | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
    ) -> LLMResponse:
        model = model or self.model_override or self.MODEL_TIERS.standard
        payload = {
            "model": model,
            "messages": messages,
            "stream": False,
            "keep_alive": "10m",
            "options": {
                "temperature": temperature,
                "num_predict": max_tokens,
            },
        }

        try:
            result = self._call_api(payload)
        except urllib.error.HTTPError as e:
            if e.code == 404:
                raise LLMError(f"Model '{model}' not found. Run: ollama pull {model}")
            raise LLMError(f"Ollama error ({e.code}): {e.reason}")
        except urllib.error.URLError as e:
            if isinstance(e.reason, socket.timeout):
                raise LLMError(f"Request timed out after {self.timeout}s. Increase timeout: set CLG_TIMEOUT=600")
            if "Connection refused" in str(e):
                raise LLMError("Ollama not running. Start with: ollama serve")
            raise LLMError(f"Ollama request failed: {e}")
        except socket.timeout:
            raise LLMError(f"Request timed out after {self.timeout}s. Increase timeout: set CLG_TIMEOUT=600")
        except json.JSONDecodeError:
            raise LLMError("Invalid response from Ollama. Try a different model.")
        except http.client.HTTPException as e:
            raise LLMError(f"Incomplete response from Ollama: {e}. The model may have run out of memory.")
        except OSError as e:
            raise LLMError(f"Connection to Ollama lost: {e}. Check that 'ollama serve' is still running.")

        return LLMResponse(
            content=result.get("message", {}).get("content", "").strip(),
            model=model,
            usage=TokenUsage(
                prompt_tokens=result.get("prompt_eval_count", 0),
                completion_tokens=result.get("eval_count", 0),
            ),
        )
