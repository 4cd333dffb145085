"""
Unit tests for the hosted Gemini summarizer and the provider factory.
"""

import pytest
from unittest.mock import MagicMock

import requests

from llm import create_summarizer
from llm.config import LOCAL, SummarizerConfig
from llm.gemini import GeminiSummarizer
from llm.schema import Summarizer
from src.core.exceptions import ConfigurationError, ModelInferenceError


def _response(status=200, body=None, text=""):
    response = MagicMock()
    response.status_code = status
    response.text = text
    response.json.return_value = body
    return response


def _client(response=None, error=None, **overrides):
    session = MagicMock()
    if error is not None:
        session.post.side_effect = error
    else:
        session.post.return_value = response
    config = SummarizerConfig(api_key="test-key", **overrides)
    return GeminiSummarizer(config=config, session=session), session


def test_returns_first_candidate_text():
    body = {"candidates": [{"content": {"parts": [{"text": "ROOT CAUSE: pool exhausted"}]}}]}
    client, _ = _client(_response(body=body))

    assert client.summarize("prompt") == "ROOT CAUSE: pool exhausted"


def test_request_shape_and_timeout():
    body = {"candidates": [{"content": {"parts": [{"text": "ok"}]}}]}
    client, session = _client(_response(body=body), timeout_seconds=12.5, model="m1")

    client.summarize("the prompt")

    args, kwargs = session.post.call_args
    assert args[0].endswith("/models/m1:generateContent")
    assert kwargs["params"] == {"key": "test-key"}
    assert kwargs["json"] == {"contents": [{"parts": [{"text": "the prompt"}]}]}
    assert kwargs["timeout"] == 12.5


def test_non_200_raises():
    client, _ = _client(_response(status=503, text="unavailable"))

    with pytest.raises(ModelInferenceError, match="API error \\(503\\)"):
        client.summarize("prompt")


def test_transport_error_raises():
    client, _ = _client(error=requests.Timeout("slow"))

    with pytest.raises(ModelInferenceError, match="failed to send request"):
        client.summarize("prompt")


def test_empty_candidates_raise():
    client, _ = _client(_response(body={"candidates": []}))

    with pytest.raises(ModelInferenceError, match="no response"):
        client.summarize("prompt")


def test_undecodable_body_raises():
    response = _response()
    response.json.side_effect = ValueError("bad json")
    client, _ = _client(response)

    with pytest.raises(ModelInferenceError, match="decode"):
        client.summarize("prompt")


def test_satisfies_summarizer_protocol():
    client, _ = _client(_response())

    assert isinstance(client, Summarizer)


class TestFactory:
    def test_gemini_requires_api_key(self):
        with pytest.raises(ConfigurationError):
            create_summarizer(SummarizerConfig())

    def test_gemini_with_key(self):
        assert isinstance(create_summarizer(SummarizerConfig(api_key="k")), GeminiSummarizer)

    def test_local_requires_model_path(self):
        with pytest.raises(ConfigurationError):
            create_summarizer(SummarizerConfig(provider=LOCAL))

    def test_unknown_provider_rejected(self):
        with pytest.raises(ValueError):
            SummarizerConfig(provider="openai")

    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "env-key")
        monkeypatch.setenv("SUMMARIZER_TIMEOUT", "9")
        monkeypatch.delenv("SUMMARIZER_PROVIDER", raising=False)

        config = SummarizerConfig.from_env()

        assert config.api_key == "env-key"
        assert config.timeout_seconds == 9.0
        assert config.provider == "gemini"
