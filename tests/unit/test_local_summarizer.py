"""
Unit tests for the local-model summarizer with a stubbed model and tokenizer.
"""

import pytest

pytest.importorskip("transformers")

from llm.config import LOCAL, SummarizerConfig
from llm.mistral import MistralLocalSummarizer
from src.core.exceptions import ModelInferenceError


class _Ids:
    def __init__(self, length):
        self.shape = (1, length)


class _Tokenizer:
    model_max_length = 1024
    eos_token_id = 0

    def __init__(self, text):
        self.text = text

    def __call__(self, prompt, **kwargs):
        return {"input_ids": _Ids(3)}

    def decode(self, ids, skip_special_tokens=True):
        return self.text if list(ids) else ""


class _ModelConfig:
    n_positions = 2048


class _Model:
    config = _ModelConfig()

    def __init__(self, error=None):
        self.error = error
        self.kwargs = None

    def generate(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.kwargs = kwargs
        return [[1, 2, 3, 4, 5]]


def _summarizer(text="ROOT CAUSE: disk full", error=None):
    config = SummarizerConfig(provider=LOCAL, model_path="/nonexistent/model")
    return MistralLocalSummarizer(config=config, _tokenizer=_Tokenizer(text), _model=_Model(error))


def test_returns_generated_text_without_prompt():
    summarizer = _summarizer()

    assert summarizer.summarize("prompt") == "ROOT CAUSE: disk full"
    assert summarizer._model.kwargs["do_sample"] is False


def test_generation_failure_is_wrapped():
    summarizer = _summarizer(error=RuntimeError("CUDA out of memory"))

    with pytest.raises(ModelInferenceError, match="local generation failed"):
        summarizer.summarize("prompt")


def test_empty_output_raises():
    with pytest.raises(ModelInferenceError, match="no text"):
        _summarizer(text="").summarize("prompt")
