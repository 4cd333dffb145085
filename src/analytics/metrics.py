"""
Metrics and aggregation reporting.

Computes level breakdowns, error rate, service health and extraction
rankings over the whole store or a filtered subset.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.core.config import AnalyticsConfig, config
from src.data.extraction import ExtractionReport, FieldExtractor
from src.data.normalizers import ERROR, INFO, WARNING
from src.data.schema import LogFilters
from src.store.adapter import LogStore

logger = logging.getLogger(__name__)

ONLINE = "Online"
DEGRADED = "Degraded"


class LevelCounts(BaseModel):
    """Per-level counts; levels outside ERROR/INFO/WARNING land in other."""

    ERROR: int = 0
    INFO: int = 0
    WARNING: int = 0
    other: Dict[str, int] = Field(default_factory=dict)
    total: int = 0


class ServiceHealth(BaseModel):
    name: str
    errors: int = Field(ge=0)
    status: str


class SystemMetrics(BaseModel):
    """
    Result of a metrics request.

    Fields:
    - log_counts: synonym-normalized level counts and total
    - error_rate: round(errors * 100 / total), 0 for an empty corpus
    - top_services: services with the most errors, highest first
    - all_services: every distinct service exactly once, by name
    - unique_services: number of distinct services
    """

    log_counts: LevelCounts
    error_rate: int = Field(ge=0, le=100)
    error_count: int = Field(ge=0)
    info_count: int = Field(ge=0)
    warning_count: int = Field(ge=0)
    unique_services: int = Field(ge=0)
    top_services: List[ServiceHealth] = Field(default_factory=list)
    all_services: List[ServiceHealth] = Field(default_factory=list)
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class LogStatistics(BaseModel):
    """Totals used by the overview summary."""

    total_logs: int = Field(ge=0)
    error_count: int = Field(ge=0)
    warning_count: int = Field(ge=0)
    info_count: int = Field(ge=0)
    top_services: Dict[str, int] = Field(default_factory=dict)


def error_rate(error_count: int, total: int) -> int:
    """Percentage of errors, rounded; 0 when there are no logs."""
    if total <= 0:
        return 0
    return round(error_count * 100 / total)


def classify_service(errors: int, threshold: int) -> str:
    return DEGRADED if errors > threshold else ONLINE


def level_counts(raw: Dict[str, int]) -> LevelCounts:
    counts = LevelCounts()
    for level, count in raw.items():
        if level in (ERROR, INFO, WARNING):
            setattr(counts, level, getattr(counts, level) + count)
        else:
            counts.other[level] = counts.other.get(level, 0) + count
        counts.total += count
    return counts


@dataclass
class MetricsReporter:
    """
    Aggregation reports over the log store.

    Notes:
    - Every aggregate goes through the store's synonym-aware queries.
    - Service health uses the error ranking of all services, so a service
      appears in all_services exactly once whatever its error count.
    """

    store: LogStore
    settings: AnalyticsConfig = field(default_factory=lambda: config.analytics)
    extractor: FieldExtractor = field(default_factory=FieldExtractor)

    def system_metrics(self, filters: Optional[LogFilters] = None) -> SystemMetrics:
        counts = level_counts(self.store.aggregate_by_level(filters))
        services = self.store.distinct_services(filters)
        error_ranking = self.store.aggregate_by_service(level=ERROR, filters=filters)

        threshold = self.settings.degraded_error_threshold
        errors_by_service = {row.service: row.count for row in error_ranking}

        top_services = [
            ServiceHealth(name=row.service, errors=row.count, status=classify_service(row.count, threshold))
            for row in error_ranking[: self.settings.top_error_services]
        ]
        all_services = [
            ServiceHealth(
                name=name,
                errors=errors_by_service.get(name, 0),
                status=classify_service(errors_by_service.get(name, 0), threshold),
            )
            for name in services
        ]

        rate = error_rate(counts.ERROR, counts.total)
        logger.debug(
            "Metrics: errors=%d info=%d warnings=%d total=%d error_rate=%d%%",
            counts.ERROR, counts.INFO, counts.WARNING, counts.total, rate,
        )

        return SystemMetrics(
            log_counts=counts,
            error_rate=rate,
            error_count=counts.ERROR,
            info_count=counts.INFO,
            warning_count=counts.WARNING,
            unique_services=len(services),
            top_services=top_services,
            all_services=all_services,
        )

    def advanced_metrics(self, limit: Optional[int] = None) -> ExtractionReport:
        """Run field extraction over the most recent messages."""
        limit = limit or self.settings.extraction_corpus_limit
        messages = self.store.recent_messages(limit)
        report = self.extractor.scan(messages).report(self.settings.top_n)
        logger.info("Advanced metrics scanned %d messages", report.scanned_messages)
        return report

    def log_statistics(self, top_n: int = 5) -> LogStatistics:
        counts = level_counts(self.store.aggregate_by_level())
        volume = self.store.aggregate_by_service(top_n=top_n)
        return LogStatistics(
            total_logs=counts.total,
            error_count=counts.ERROR,
            warning_count=counts.WARNING,
            info_count=counts.INFO,
            top_services={row.service: row.count for row in volume},
        )
