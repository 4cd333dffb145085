"""
Natural-language questions and overview summaries over recent logs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Callable, List, Optional, Tuple

from pydantic import BaseModel, Field

from llm.prompt import build_overview_prompt, build_query_prompt
from llm.schema import Summarizer
from src.core.config import AnalyticsConfig, config
from src.core.exceptions import MissingParameterError, UpstreamAnalysisFailedError
from src.data.normalizers import ERROR, normalize_level
from src.data.schema import LogEvent, format_instant
from src.store.adapter import LogStore

from .metrics import LogStatistics, MetricsReporter

logger = logging.getLogger(__name__)


class AssistantAnswer(BaseModel):
    answer: str
    relevant_logs: List[LogEvent] = Field(default_factory=list)
    log_count: int = Field(ge=0)
    error_count: int = Field(ge=0)
    time_range: str
    services: List[str] = Field(default_factory=list)


class OverviewSummary(LogStatistics):
    summary: str


def question_window(question: str, now: datetime) -> Tuple[datetime, datetime, str]:
    """
    Pick the lookback window a question refers to.

    Returns:
        (from, to, description); the last hour when nothing matches
    """
    lowered = question.lower()
    if "yesterday" in lowered:
        day = (now - timedelta(days=1)).replace(hour=0, minute=0, second=0, microsecond=0)
        return day, day.replace(hour=23, minute=59, second=59, microsecond=999999), "yesterday"
    if "last 24 hour" in lowered or "past 24 hour" in lowered:
        return now - timedelta(hours=24), now, "last 24 hours"
    if "last 12 hour" in lowered:
        return now - timedelta(hours=12), now, "last 12 hours"
    if "last 6 hour" in lowered:
        return now - timedelta(hours=6), now, "last 6 hours"
    if "today" in lowered:
        return now.replace(hour=0, minute=0, second=0, microsecond=0), now, "today"
    return now - timedelta(hours=1), now, "last 1 hour"


def _context_line(event: LogEvent) -> str:
    return (
        f"[{format_instant(event.timestamp)}] Service: {event.service}, "
        f"Level: {event.level}, Message: {event.message}\n"
    )


@dataclass
class LogAssistant:
    store: LogStore
    summarizer: Summarizer
    reporter: Optional[MetricsReporter] = None
    settings: AnalyticsConfig = field(default_factory=lambda: config.analytics)
    clock: Callable[[], datetime] = field(default=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if self.reporter is None:
            self.reporter = MetricsReporter(store=self.store, settings=self.settings)

    def ask(self, question: Optional[str]) -> AssistantAnswer:
        if not question or not question.strip():
            raise MissingParameterError("question")

        start, end, description = question_window(question, self.clock())
        logger.info("AI query over %s: %r", description, question)

        events = self.store.query_range(start, end, self.settings.assistant_sample_limit)
        error_count = sum(1 for event in events if normalize_level(event.level) == ERROR)
        services = sorted({event.service for event in events})
        context = "".join(_context_line(event) for event in events)

        prompt = build_query_prompt(question, description, len(events), error_count, context)
        answer = self._summarize(prompt)

        return AssistantAnswer(
            answer=(
                f"Analyzed: {description}\n\n{answer}\n\n"
                f"SUMMARY: {len(events)} logs | {error_count} errors | {len(services)} services"
            ),
            relevant_logs=events,
            log_count=len(events),
            error_count=error_count,
            time_range=description,
            services=services,
        )

    def overview(self) -> OverviewSummary:
        stats = self.reporter.log_statistics()
        levels = {
            "Errors": stats.error_count,
            "Warnings": stats.warning_count,
            "Info": stats.info_count,
        }
        summary = self._summarize(build_overview_prompt(levels, stats.total_logs, stats.top_services))
        return OverviewSummary(summary=summary, **stats.model_dump())

    def _summarize(self, prompt: str) -> str:
        try:
            return self.summarizer.summarize(prompt)
        except Exception as exc:
            logger.error("Summarizer failed: %s", exc)
            raise UpstreamAnalysisFailedError("Failed to query AI") from exc
