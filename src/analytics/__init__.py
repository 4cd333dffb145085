"""
Analytics module: metrics reporting, differential analysis and the log assistant.
"""

from .assistant import AssistantAnswer, LogAssistant, OverviewSummary, question_window
from .differential import ComparisonResult, DifferentialAnalyzer, build_evidence
from .metrics import (
    DEGRADED,
    ONLINE,
    LevelCounts,
    LogStatistics,
    MetricsReporter,
    ServiceHealth,
    SystemMetrics,
    error_rate,
)

__all__ = [
    "MetricsReporter",
    "SystemMetrics",
    "LevelCounts",
    "LogStatistics",
    "ServiceHealth",
    "ONLINE",
    "DEGRADED",
    "error_rate",
    "DifferentialAnalyzer",
    "ComparisonResult",
    "build_evidence",
    "LogAssistant",
    "AssistantAnswer",
    "OverviewSummary",
    "question_window",
]
