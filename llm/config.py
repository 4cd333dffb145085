"""
Configuration for the narrative summarizer.

Two providers are supported: the hosted Gemini API (default) and an offline
local model. Client-side timeouts are always bounded.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field

GEMINI = "gemini"
LOCAL = "local"


class SummarizerConfig(BaseModel):
    """
    Summarizer settings.

    Notes:
    - timeout_seconds bounds every upstream round-trip (no SLA is published).
    - model_path is only used by the local provider.
    - temperature is 0.0 for the local model to reduce variability.
    """

    provider: str = Field(GEMINI, pattern="^(gemini|local)$")
    api_key: Optional[str] = None
    model: str = "gemini-3-flash-preview"
    base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    timeout_seconds: float = Field(30.0, gt=0.0, le=300.0)

    model_path: Optional[str] = Field(None, description="Local filesystem path to the model")
    max_new_tokens: int = Field(512, ge=64, le=2048)
    temperature: float = Field(0.0, ge=0.0, le=1.0)
    top_p: float = Field(0.9, ge=0.0, le=1.0)
    repetition_penalty: float = Field(1.05, ge=1.0, le=2.0)
    local_files_only: bool = False

    def model_post_init(self, __context: object) -> None:
        if self.model_path and Path(self.model_path).exists():
            self.local_files_only = True

    @classmethod
    def from_env(cls) -> "SummarizerConfig":
        """Read settings from the process environment (after load_dotenv)."""
        values = {
            "provider": os.getenv("SUMMARIZER_PROVIDER", GEMINI).strip().lower(),
            "api_key": os.getenv("GEMINI_API_KEY") or None,
            "model_path": os.getenv("MODEL_PATH") or None,
        }
        if os.getenv("GEMINI_MODEL"):
            values["model"] = os.getenv("GEMINI_MODEL")
        if os.getenv("SUMMARIZER_TIMEOUT"):
            values["timeout_seconds"] = float(os.getenv("SUMMARIZER_TIMEOUT"))
        return cls(**values)
