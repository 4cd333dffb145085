"""
Data module: log schema, normalization, time windows and field extraction.

Pipeline for the analytics paths:

    Raw timestamps (healthy / crash / from / to)
        ↓
    Time window resolution (src/data/timewindow.py) → TimeWindow
        ↓
    Store queries (src/store) → LogEvent
        ↓
    Field extraction (src/data/extraction.py) → ExtractionReport
"""

from src.data.extraction import (
    FIELDS,
    ExtractedMetric,
    ExtractionField,
    ExtractionReport,
    ExtractionTally,
    FieldExtractor,
    RankedValue,
    top_n,
)
from src.data.normalizers import (
    ensure_utc,
    level_variants,
    normalize_level,
    normalize_metadata,
    normalize_route,
)
from src.data.schema import (
    LogEvent,
    LogFilters,
    NewLogEvent,
    ServiceCount,
    TimeWindow,
    format_instant,
)
from src.data.timewindow import build_window, parse_offset_time, resolve_time

__all__ = [
    # Schema
    "LogEvent",
    "NewLogEvent",
    "LogFilters",
    "TimeWindow",
    "ServiceCount",
    "format_instant",

    # Normalization
    "normalize_level",
    "level_variants",
    "ensure_utc",
    "normalize_route",
    "normalize_metadata",

    # Time windows
    "resolve_time",
    "parse_offset_time",
    "build_window",

    # Extraction
    "FIELDS",
    "ExtractionField",
    "ExtractedMetric",
    "ExtractionReport",
    "ExtractionTally",
    "FieldExtractor",
    "RankedValue",
    "top_n",
]
