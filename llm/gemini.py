"""
Hosted Gemini summarizer over the generateContent REST endpoint.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from src.core.exceptions import ModelInferenceError

from .config import SummarizerConfig

logger = logging.getLogger("llm.gemini")


@dataclass
class GeminiSummarizer:
    """
    Gemini API client.

    One requests.Session is reused across calls; every request carries the
    configured timeout so a stalled upstream never blocks a worker forever.
    """

    config: SummarizerConfig
    session: requests.Session = field(default_factory=requests.Session)

    def _endpoint(self) -> str:
        return f"{self.config.base_url.rstrip('/')}/models/{self.config.model}:generateContent"

    def summarize(self, prompt: str) -> str:
        payload = {"contents": [{"parts": [{"text": prompt}]}]}
        try:
            response = self.session.post(
                self._endpoint(),
                params={"key": self.config.api_key},
                json=payload,
                timeout=self.config.timeout_seconds,
            )
        except requests.RequestException as exc:
            logger.error("Gemini request failed: %s", exc.__class__.__name__)
            raise ModelInferenceError(f"failed to send request: {exc.__class__.__name__}") from exc

        if response.status_code != 200:
            logger.error("Gemini API error (%d)", response.status_code)
            raise ModelInferenceError(f"API error ({response.status_code}): {response.text[:200]}")

        try:
            body = response.json()
        except ValueError as exc:
            raise ModelInferenceError("failed to decode response") from exc

        text = self._first_text(body)
        if text is None:
            raise ModelInferenceError("no response from Gemini")
        return text

    @staticmethod
    def _first_text(body: Dict[str, Any]) -> Optional[str]:
        candidates = body.get("candidates") or []
        if not candidates:
            return None
        parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts:
            return None
        return parts[0].get("text")
