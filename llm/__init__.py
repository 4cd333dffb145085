"""
LLM utilities: summarizer contract, providers and prompt builders.

The local provider is imported lazily so the hosted client works without
the optional "local" extra installed.
"""

from src.core.exceptions import ConfigurationError

from .config import GEMINI, LOCAL, SummarizerConfig
from .gemini import GeminiSummarizer
from .prompt import build_comparison_prompt, build_overview_prompt, build_query_prompt
from .schema import Summarizer


def create_summarizer(config: SummarizerConfig) -> Summarizer:
    """
    Factory for the configured summarizer provider.

    Raises:
        ConfigurationError: If the provider's required setting is missing
    """
    if config.provider == LOCAL:
        if not config.model_path:
            raise ConfigurationError("MODEL_PATH is not set; local summarizer unavailable")
        from .mistral import MistralLocalSummarizer

        return MistralLocalSummarizer(config=config)

    if not config.api_key:
        raise ConfigurationError("GEMINI_API_KEY not set in environment")
    return GeminiSummarizer(config=config)


__all__ = [
    "GEMINI",
    "LOCAL",
    "SummarizerConfig",
    "GeminiSummarizer",
    "Summarizer",
    "create_summarizer",
    "build_comparison_prompt",
    "build_query_prompt",
    "build_overview_prompt",
]
