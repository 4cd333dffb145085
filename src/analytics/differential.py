"""
Differential analysis between a healthy and a crash time window.

Flow:
    request -> resolve both instants -> build both windows -> fetch both
    samples -> validate non-empty -> format evidence -> summarize -> respond

The evidence bundle is deterministic for a given store snapshot; the
narrative is produced by the external summarizer and returned verbatim.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from llm.prompt import build_comparison_prompt
from llm.schema import Summarizer
from src.core.config import AnalyticsConfig, config
from src.core.exceptions import (
    MissingParameterError,
    NoDataInRangeError,
    UpstreamAnalysisFailedError,
)
from src.data.schema import LogEvent, TimeWindow, format_instant
from src.data.timewindow import build_window, resolve_time
from src.store.adapter import LogStore

logger = logging.getLogger(__name__)

HEALTHY = "healthy"
CRASH = "crash"


class ComparisonResult(BaseModel):
    """
    Outcome of a differential comparison.

    Fields:
    - analysis: summarizer output, verbatim
    - healthy_count / crash_count: sampled events per window
    - *_start / *_end: resolved window boundaries (UTC)
    - evidence: the exact evidence text sent with the prompt
    """

    analysis: str
    healthy_count: int = Field(ge=0)
    crash_count: int = Field(ge=0)
    healthy_start: datetime
    healthy_end: datetime
    crash_start: datetime
    crash_end: datetime
    evidence: str

    @field_serializer("healthy_start", "healthy_end", "crash_start", "crash_end")
    def _serialize_instant(self, value: datetime) -> str:
        return format_instant(value)


def format_events(events: List[LogEvent]) -> str:
    """One evidence line per event, in the given (newest-first) order."""
    return "".join(f"{event.evidence_line()}\n" for event in events)


def format_period(label: str, window: TimeWindow, events: List[LogEvent]) -> str:
    return (
        f"{label} PERIOD ({window.describe()}):\n"
        f"{len(events)} logs\n"
        f"{format_events(events)}"
    )


def build_evidence(
    healthy_window: TimeWindow,
    healthy_events: List[LogEvent],
    crash_window: TimeWindow,
    crash_events: List[LogEvent],
) -> str:
    """Render both periods as one deterministic text bundle."""
    return (
        format_period("HEALTHY", healthy_window, healthy_events)
        + "\n"
        + format_period("CRASH", crash_window, crash_events)
    )


@dataclass
class DifferentialAnalyzer:
    """
    Compares two windows and delegates the narrative to a summarizer.

    Notes:
    - Windows are never checked for overlap or ordering.
    - Nothing is retried; a summarizer failure fails the request.
    """

    store: LogStore
    summarizer: Summarizer
    settings: AnalyticsConfig = field(default_factory=lambda: config.analytics)

    def compare(
        self,
        healthy: Optional[str],
        crash: Optional[str],
        duration: Optional[timedelta] = None,
    ) -> ComparisonResult:
        """
        Run a differential comparison.

        Args:
            healthy: Raw start time of the healthy window
            crash: Raw start time of the crash window
            duration: Window length override; defaults to the configured one

        Returns:
            ComparisonResult with the verbatim analysis and the evidence

        Raises:
            MissingParameterError: healthy or crash absent
            InvalidTimeFormatError: either time unparseable (names the side)
            NoDataInRangeError: both windows empty; the summarizer is not called
            UpstreamAnalysisFailedError: summarizer failed
        """
        if not healthy:
            raise MissingParameterError(HEALTHY)
        if not crash:
            raise MissingParameterError(CRASH)

        duration = duration or self.settings.window_duration
        healthy_window = build_window(resolve_time(healthy, side=HEALTHY), duration)
        crash_window = build_window(resolve_time(crash, side=CRASH), duration)

        logger.info(
            "Differential request: healthy=%s crash=%s",
            healthy_window.describe(), crash_window.describe(),
        )

        limit = self.settings.compare_sample_limit
        healthy_events = self.store.query_range(healthy_window.start, healthy_window.end, limit)
        crash_events = self.store.query_range(crash_window.start, crash_window.end, limit)

        if not healthy_events and not crash_events:
            logger.warning("No logs found in either comparison window")
            raise NoDataInRangeError("No logs found in time ranges")

        evidence = build_evidence(healthy_window, healthy_events, crash_window, crash_events)
        analysis = self._summarize(build_comparison_prompt(evidence))

        logger.info(
            "Differential analysis complete: healthy=%d crash=%d",
            len(healthy_events), len(crash_events),
        )
        return ComparisonResult(
            analysis=analysis,
            healthy_count=len(healthy_events),
            crash_count=len(crash_events),
            healthy_start=healthy_window.start,
            healthy_end=healthy_window.end,
            crash_start=crash_window.start,
            crash_end=crash_window.end,
            evidence=evidence,
        )

    def _summarize(self, prompt: str) -> str:
        try:
            return self.summarizer.summarize(prompt)
        except Exception as exc:
            logger.error("Summarizer failed during comparison: %s", exc)
            raise UpstreamAnalysisFailedError("AI analysis failed") from exc
