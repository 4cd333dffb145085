"""
Summarizer contract.

A summarizer turns a fully composed prompt into free text. It owns no
templating: callers build the prompt, the summarizer only transports it.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Summarizer(Protocol):
    """
    Narrative generation collaborator.

    Implementations raise src.core.exceptions.ModelInferenceError on any
    upstream failure.
    """

    def summarize(self, prompt: str) -> str:
        ...
