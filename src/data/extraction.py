"""
Field extraction from free-text log messages.

Recovers structured signal from messages without a fixed schema by scanning
for a fixed set of recognized key=value tokens, for example:

    Order processed user_id=u1 product_id=P1 duration=50ms
    Transaction failed reason=TIMEOUT timeout=5000ms attempts=3

Design:
- Patterns are compiled once at import and shared read-only between threads
- Extraction per message is independent and non-exclusive
- The first match of each pattern in a message wins
- Identifier fields are tallied by exact value
- Numeric fields collect samples; duration and timeout share one sample set
- A capture that fails to convert is dropped from its own field only
"""

import logging
import re
import statistics
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

IDENTIFIER = "identifier"
NUMERIC = "numeric"

_IDENTIFIER_VALUE = r"([A-Za-z0-9_-]+)"
_DIGITS = r"([0-9]+)"


@dataclass(frozen=True)
class ExtractionField:
    """
    A recognized token inside message text.

    Attributes:
        name: Token key as written in messages (user_id, timeout, ...)
        kind: IDENTIFIER (frequency counted) or NUMERIC (sampled)
        pattern: Compiled matcher; group 1 captures the value
        bucket: Aggregation bucket; several tokens may share one
    """

    name: str
    kind: str
    pattern: re.Pattern
    bucket: str


def _field(name: str, kind: str, bucket: Optional[str] = None, unit: str = "") -> ExtractionField:
    value = _IDENTIFIER_VALUE if kind == IDENTIFIER else _DIGITS
    pattern = re.compile(rf"\b{re.escape(name)}={value}{unit}")
    return ExtractionField(name=name, kind=kind, pattern=pattern, bucket=bucket or name)


RESPONSE_TIME = "response_time"

FIELDS: Tuple[ExtractionField, ...] = (
    _field("user_id", IDENTIFIER),
    _field("order_id", IDENTIFIER),
    _field("product_id", IDENTIFIER),
    _field("reason", IDENTIFIER),
    _field("duration", NUMERIC, bucket=RESPONSE_TIME, unit="ms"),
    _field("timeout", NUMERIC, bucket=RESPONSE_TIME, unit="ms"),
    _field("attempts", NUMERIC),
    _field("current_stock", NUMERIC),
)


class ExtractedMetric(BaseModel):
    """One (field, value, count) observation derived from a corpus."""

    field_name: str
    value: str
    count: int = Field(ge=1)


class RankedValue(BaseModel):
    """A top-N entry."""

    name: str
    count: int = Field(ge=1)


class ExtractionReport(BaseModel):
    """
    Structured metrics recovered from a message corpus.

    Attributes:
        scanned_messages: Number of messages scanned
        top_users / top_orders / top_products / top_error_reasons:
            Descending-frequency rankings of identifier fields
        avg_response_time: Mean of duration and timeout samples (ms)
        total_timeouts: Number of duration/timeout samples
        avg_retry_attempts: Mean of attempts samples
        avg_stock_level: Mean of current_stock samples
        generated_at: When the report was computed
    """

    scanned_messages: int = Field(ge=0)
    top_users: List[RankedValue] = Field(default_factory=list)
    top_orders: List[RankedValue] = Field(default_factory=list)
    top_products: List[RankedValue] = Field(default_factory=list)
    top_error_reasons: List[RankedValue] = Field(default_factory=list)
    avg_response_time: float = 0.0
    total_timeouts: int = Field(0, ge=0)
    avg_retry_attempts: float = 0.0
    avg_stock_level: float = 0.0
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


def top_n(counts: Dict[str, int], n: int) -> List[RankedValue]:
    """
    Rank keys by descending count and keep the first n.

    Ties keep the mapping's insertion order (first seen in the corpus), so
    the ranking is reproducible for a fixed corpus snapshot.
    """
    if n <= 0:
        return []
    ranked = sorted(counts.items(), key=lambda item: -item[1])
    return [RankedValue(name=name, count=count) for name, count in ranked[:n]]


def mean(samples: List[int]) -> float:
    """Arithmetic mean; 0.0 for an empty sample list."""
    if not samples:
        return 0.0
    return statistics.fmean(samples)


def _to_int(raw: str) -> Optional[int]:
    try:
        return int(raw)
    except ValueError:
        return None


@dataclass
class ExtractionTally:
    """Accumulated counts and samples over a scanned corpus."""

    frequencies: Dict[str, Counter] = field(default_factory=dict)
    samples: Dict[str, List[int]] = field(default_factory=dict)
    scanned: int = 0

    def count_for(self, bucket: str) -> Dict[str, int]:
        return dict(self.frequencies.get(bucket, Counter()))

    def samples_for(self, bucket: str) -> List[int]:
        return list(self.samples.get(bucket, []))

    def metrics(self) -> List[ExtractedMetric]:
        """Every identifier observation as (field, value, count), ranked per field."""
        result: List[ExtractedMetric] = []
        for bucket, counter in self.frequencies.items():
            for ranked in top_n(counter, len(counter)):
                result.append(ExtractedMetric(field_name=bucket, value=ranked.name, count=ranked.count))
        return result

    def report(self, n: int = 10) -> ExtractionReport:
        response_times = self.samples_for(RESPONSE_TIME)
        return ExtractionReport(
            scanned_messages=self.scanned,
            top_users=top_n(self.count_for("user_id"), n),
            top_orders=top_n(self.count_for("order_id"), n),
            top_products=top_n(self.count_for("product_id"), n),
            top_error_reasons=top_n(self.count_for("reason"), n),
            avg_response_time=mean(response_times),
            total_timeouts=len(response_times),
            avg_retry_attempts=mean(self.samples_for("attempts")),
            avg_stock_level=mean(self.samples_for("current_stock")),
        )


class FieldExtractor:
    """
    Scans messages for recognized key=value tokens.

    Stateless apart from its field table, so one instance can be shared by
    concurrent requests.
    """

    def __init__(self, fields: Iterable[ExtractionField] = FIELDS):
        self.fields = tuple(fields)

    def extract(self, message: str) -> Dict[str, str]:
        """
        Extract raw captures from a single message.

        Args:
            message: Free-text log message

        Returns:
            Dict of token name -> first captured value. Tokens absent from the
            message are absent from the dict.
        """
        found: Dict[str, str] = {}
        if not message:
            return found
        for entry in self.fields:
            match = entry.pattern.search(message)
            if match:
                found[entry.name] = match.group(1)
        return found

    def scan(self, messages: Iterable[str]) -> ExtractionTally:
        """
        Tally every message of a corpus.

        Args:
            messages: Message texts, in corpus order (newest first from the store)

        Returns:
            ExtractionTally with identifier frequencies and numeric samples
        """
        tally = ExtractionTally()
        kinds = {entry.name: entry for entry in self.fields}

        for message in messages:
            tally.scanned += 1
            for name, raw in self.extract(message).items():
                entry = kinds[name]
                if entry.kind == IDENTIFIER:
                    tally.frequencies.setdefault(entry.bucket, Counter())[raw] += 1
                    continue
                value = _to_int(raw)
                if value is None:
                    logger.debug("Dropping malformed %s capture: %r", name, raw)
                    continue
                tally.samples.setdefault(entry.bucket, []).append(value)

        logger.debug("Scanned %d messages for extraction fields", tally.scanned)
        return tally
