"""
Unit tests for model tier selection, provider clients and error classification.

Run with:
    pytest tests/test_llm.py -v
"""

import urllib.error

import pytest

from conftest import FakeProvider
from changelog_gen.llm import (
    ClaudeClient,
    LLMError,
    OllamaClient,
    ProviderUnavailableError,
    describe_provider_error,
    get_client,
)
from changelog_gen.llm.model_tiers import ModelTiers, classify_complexity, select_model

TIERS = FakeProvider.MODEL_TIERS


# ---------------------------------------------------------------------------
# Model tiers
# ---------------------------------------------------------------------------

class TestClassifyComplexity:

    @pytest.mark.parametrize("files, lines, expected", [
        (1, 10, "simple"),
        (10, 100, "simple"),
        (1, 101, "standard"),
        (11, 0, "medium"),
        (1, 501, "medium"),
        (20, 500, "medium"),
        (21, 0, "complex"),
        (1, 1001, "complex"),
    ])
    def test_thresholds(self, files, lines, expected):
        assert classify_complexity(files, lines) == expected


class TestSelectModel:

    def test_tier_model(self):
        selection = select_model(TIERS, 25, 0)
        assert selection.model == "fake-complex"
        assert selection.tier == "complex"
        assert "25 files" in selection.reason

    def test_override_wins(self):
        selection = select_model(TIERS, 25, 5000, override="pinned")
        assert selection.model == "pinned"
        assert selection.reason == "explicit model override"

    def test_installed_fallback_prefers_standard(self):
        selection = select_model(TIERS, 25, 0, available={"fake-small", "fake-standard"})
        assert selection.model == "fake-standard"
        assert "fake-complex not installed" in selection.reason

    def test_installed_model_used(self):
        assert select_model(TIERS, 25, 0, available={"fake-complex"}).model == "fake-complex"

    def test_nothing_installed_keeps_tier(self):
        assert select_model(TIERS, 1, 1, available={"other"}).model == "fake-small"

    def test_unknown_tier_is_standard(self):
        assert TIERS.for_tier("enormous") == "fake-standard"

    def test_all_models(self):
        tiers = ModelTiers(small="a", standard="b", medium="c", complex="d")
        assert tiers.all_models() == ["a", "b", "c", "d"]


# ---------------------------------------------------------------------------
# Ollama
# ---------------------------------------------------------------------------

class TestOllamaClient:

    @pytest.fixture
    def client(self, monkeypatch):
        monkeypatch.setattr(OllamaClient, "_fetch_tags", lambda self: {"models": [{"name": "llama3.1"}]})
        return OllamaClient()

    def test_installed_models(self, client):
        assert client.installed_models == {"llama3.1"}
        assert client.is_available()

    def test_not_running(self, monkeypatch):
        def refuse(self):
            raise urllib.error.URLError("Connection refused")

        monkeypatch.setattr(OllamaClient, "_fetch_tags", refuse)
        with pytest.raises(LLMError, match="ollama serve"):
            OllamaClient()

    def test_select_falls_back_to_installed(self, client):
        assert client.select_optimal_model(30, 2000).model == "llama3.1"

    def test_generate_completion(self, client, monkeypatch):
        payloads = []

        def fake_call(self, payload):
            payloads.append(payload)
            return {"message": {"content": " {} "}, "prompt_eval_count": 10, "eval_count": 5}

        monkeypatch.setattr(OllamaClient, "_call_api", fake_call)
        response = client.generate_completion([{"role": "user", "content": "hi"}], max_tokens=1234)

        assert response.content == "{}"
        assert response.model == "llama3.1"
        assert response.tokens_used == 15
        assert payloads[0]["options"]["num_predict"] == 1234
        assert payloads[0]["stream"] is False

    def test_missing_model(self, client, monkeypatch):
        def not_found(self, payload):
            raise urllib.error.HTTPError("http://x/api/chat", 404, "Not Found", None, None)

        monkeypatch.setattr(OllamaClient, "_call_api", not_found)
        with pytest.raises(LLMError, match="ollama pull llama3.1:70b"):
            client.generate_completion([{"role": "user", "content": "hi"}], model="llama3.1:70b")


# ---------------------------------------------------------------------------
# Claude
# ---------------------------------------------------------------------------

class TestClaudeClient:

    def test_requires_api_key(self, monkeypatch):
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        with pytest.raises(LLMError, match="ANTHROPIC_API_KEY"):
            ClaudeClient()

    def test_with_key(self):
        client = ClaudeClient(api_key="test-key")
        assert client.is_available()
        assert client.name == "Claude (auto model)"


# ---------------------------------------------------------------------------
# get_client
# ---------------------------------------------------------------------------

class TestGetClient:

    @pytest.fixture
    def nothing_available(self, monkeypatch):
        def refuse(self):
            raise urllib.error.URLError("Connection refused")

        monkeypatch.setattr(OllamaClient, "_fetch_tags", refuse)
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)

    def test_unknown_provider(self):
        with pytest.raises(LLMError, match="Unknown provider: gpt"):
            get_client("gpt")

    def test_auto_with_nothing_available(self, nothing_available):
        with pytest.raises(ProviderUnavailableError, match="No LLM provider available"):
            get_client("auto")

    def test_named_provider_unavailable(self, nothing_available):
        with pytest.raises(ProviderUnavailableError):
            get_client("claude")

    def test_auto_falls_through_to_claude(self, nothing_available, monkeypatch):
        monkeypatch.setenv("ANTHROPIC_API_KEY", "test-key")
        assert isinstance(get_client("auto", model="pinned"), ClaudeClient)


# ---------------------------------------------------------------------------
# Error classification
# ---------------------------------------------------------------------------

class TestDescribeProviderError:

    @pytest.mark.parametrize("message, kind", [
        ("Ollama not running. Start with: ollama serve", "connection"),
        ("Request timed out after 300s", "connection"),
        ("Invalid API key (401). Check your ANTHROPIC_API_KEY.", "configuration"),
        ("Model 'llama3.1:70b' not found. Run: ollama pull llama3.1:70b", "configuration"),
        ("Claude rate limit exceeded (429). Try again later.", "rate_limit"),
        ("boom", "generic"),
    ])
    def test_kinds(self, message, kind):
        assert describe_provider_error(LLMError(message)).kind == kind

    def test_generic_message(self):
        context = describe_provider_error(RuntimeError("boom"))
        assert context.message == "AI analysis failed: boom"
        assert context.suggestions

    def test_missing_model_message(self):
        context = describe_provider_error(LLMError("Model 'x' not found on the Claude API."))
        assert context.message == "Configured model is not available"
