"""
Canonical log schema for the analytics engine.

This module defines the representation of a stored log event, the ingestion
payload, query filters and the time window used by differential analysis.

Design rationale:
- All timestamps are timezone-aware UTC
- Level is an open set; WARN/WARNING synonyms collapse at aggregation time
- Optional fields (route, metadata) are None when absent, never empty values
- Events are append-only: id and created_at are assigned once by the store
"""

from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from src.data.normalizers import ensure_utc, normalize_metadata, normalize_route


def format_instant(value: datetime) -> str:
    """Render an instant as YYYY-MM-DDTHH:MM:SSZ."""
    return ensure_utc(value).strftime("%Y-%m-%dT%H:%M:%SZ")


class NewLogEvent(BaseModel):
    """
    Ingestion payload for a single log event.

    Attributes:
        service: Name of the emitting component (non-empty)
        level: Severity as written by the emitter (INFO, WARN, ERROR, ...)
        message: Free-text payload, may embed key=value tokens
        timestamp: Event time; None means "now" at insert time
        route: Request route, None when not applicable
        metadata: Opaque structured payload, None when empty
    """

    service: str = Field(..., min_length=1, max_length=128)
    level: str = Field(..., min_length=1, max_length=32)
    message: str = Field(..., description="Log message text")
    timestamp: Optional[datetime] = None
    route: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @field_validator("timestamp")
    @classmethod
    def _utc_timestamp(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    @field_validator("route")
    @classmethod
    def _route(cls, value: Optional[str]) -> Optional[str]:
        return normalize_route(value)

    @field_validator("metadata")
    @classmethod
    def _metadata(cls, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        return normalize_metadata(value)


class LogEvent(BaseModel):
    """
    A stored log event.

    Attributes:
        id: Store-assigned sequence number
        timestamp: UTC event time (may predate created_at arbitrarily)
        service: Emitting component
        level: Severity, verbatim as stored
        message: Free-text payload
        route: Request route or None
        metadata: Structured payload or None
        created_at: Store-assigned ingestion instant

    Notes:
        - Instances are frozen; logs are read-only after creation
        - Timestamps serialize as YYYY-MM-DDTHH:MM:SSZ
    """

    model_config = ConfigDict(frozen=True)

    id: int
    timestamp: datetime
    service: str = Field(..., min_length=1)
    level: str
    message: str
    route: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    created_at: datetime

    @field_validator("timestamp", "created_at")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @field_validator("route")
    @classmethod
    def _route(cls, value: Optional[str]) -> Optional[str]:
        return normalize_route(value)

    @field_validator("metadata")
    @classmethod
    def _metadata(cls, value: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        return normalize_metadata(value)

    @field_serializer("timestamp", "created_at")
    def _serialize_instant(self, value: datetime) -> str:
        return format_instant(value)

    def to_payload(self) -> Dict[str, Any]:
        """JSON-ready dict with absent optional fields omitted."""
        return self.model_dump(exclude_none=True)

    def evidence_line(self) -> str:
        """One line of comparison evidence: [timestamp] service level: message"""
        return f"[{format_instant(self.timestamp)}] {self.service} {self.level}: {self.message}"


class LogFilters(BaseModel):
    """
    Sparse conjunctive predicates for filtered retrieval and aggregates.

    Unset fields are omitted from the query rather than treated as wildcards.
    """

    service: Optional[str] = None
    level: Optional[str] = None
    route: Optional[str] = None
    from_time: Optional[datetime] = None
    to_time: Optional[datetime] = None

    @field_validator("service", "level", "route")
    @classmethod
    def _blank_is_unset(cls, value: Optional[str]) -> Optional[str]:
        if value is None or value == "":
            return None
        return value

    @field_validator("from_time", "to_time")
    @classmethod
    def _utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_utc(value) if value is not None else None

    def is_empty(self) -> bool:
        return all(value is None for value in self.model_dump().values())


class TimeWindow(BaseModel):
    """
    A (start, duration) pair bounding one sample of events.

    Two windows are the unit of differential comparison. They are
    independent and may overlap, be equal, or be disjoint.
    """

    model_config = ConfigDict(frozen=True)

    start: datetime
    duration: timedelta

    @field_validator("start")
    @classmethod
    def _utc(cls, value: datetime) -> datetime:
        return ensure_utc(value)

    @property
    def end(self) -> datetime:
        return self.start + self.duration

    def describe(self) -> str:
        return f"{format_instant(self.start)} -> {format_instant(self.end)}"


class ServiceCount(BaseModel):
    """A (service, count) row from a grouped aggregate."""

    service: str
    count: int = Field(ge=0)
