"""
Event store adapter: parameterized queries against the log table.

Owns no business logic. Every operation builds a SQLAlchemy statement with
bound parameters, executes it in a short-lived session and decodes rows into
LogEvent records. The adapter keeps no state between calls; concurrent reads
are delegated to the engine's connection pool.

Level filters and level aggregates collapse WARN/WARNING into one bucket.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterator, List, Optional

from sqlalchemy import Engine, case, create_engine, func, select, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

from src.core.exceptions import StoreQueryFailedError
from src.data.normalizers import LEVEL_SYNONYMS, level_variants
from src.data.schema import LogEvent, LogFilters, NewLogEvent, ServiceCount

from .models import Base, LogRow, utcnow

logger = logging.getLogger(__name__)


def _normalized_level():
    """SQL expression mapping every synonym to its canonical level."""
    whens = [
        (LogRow.level == variant, canonical)
        for canonical, variants in LEVEL_SYNONYMS.items()
        for variant in variants
        if variant != canonical
    ]
    return case(*whens, else_=LogRow.level)


def _to_event(row: LogRow) -> LogEvent:
    return LogEvent(
        id=row.id,
        timestamp=row.timestamp,
        service=row.service,
        level=row.level,
        message=row.message,
        route=row.route,
        metadata=row.metadata_,
        created_at=row.created_at,
    )


def _apply_filters(stmt, filters: Optional[LogFilters]):
    """AND each set predicate onto a statement; unset predicates are omitted."""
    if filters is None:
        return stmt
    if filters.service is not None:
        stmt = stmt.where(LogRow.service == filters.service)
    if filters.level is not None:
        stmt = stmt.where(LogRow.level.in_(level_variants(filters.level)))
    if filters.route is not None:
        stmt = stmt.where(LogRow.route == filters.route)
    if filters.from_time is not None:
        stmt = stmt.where(LogRow.timestamp >= filters.from_time)
    if filters.to_time is not None:
        stmt = stmt.where(LogRow.timestamp <= filters.to_time)
    return stmt


class LogStore:
    """
    Append-only log table access.

    Args:
        engine: SQLAlchemy engine; its pool provides concurrency
    """

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def _session(self, operation: str) -> Iterator[Session]:
        try:
            with Session(self.engine) as session:
                yield session
        except SQLAlchemyError as exc:
            logger.exception("Store operation %s failed", operation)
            raise StoreQueryFailedError(operation) from exc

    def create_schema(self) -> None:
        """Create the logs table and its indexes if missing."""
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as exc:
            logger.exception("Schema creation failed")
            raise StoreQueryFailedError("create_schema") from exc

    def ping(self) -> bool:
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError as exc:
            logger.warning("Store ping failed: %s", exc.__class__.__name__)
            return False

    def insert(self, event: NewLogEvent) -> LogEvent:
        """
        Append one event.

        id and created_at are assigned here exactly once; a missing timestamp
        defaults to the ingestion instant.
        """
        now = utcnow()
        row = LogRow(
            timestamp=event.timestamp or now,
            service=event.service,
            level=event.level,
            route=event.route,
            message=event.message,
            metadata_=event.metadata,
            created_at=now,
        )
        with self._session("insert") as session:
            session.add(row)
            session.commit()
            session.refresh(row)
            stored = _to_event(row)
        logger.info("Stored log id=%d service=%s level=%s", stored.id, stored.service, stored.level)
        return stored

    def query_range(self, start: datetime, end: datetime, limit: int) -> List[LogEvent]:
        """
        Events with start <= timestamp <= end, newest first, at most limit.

        Returns an empty list when nothing matches.
        """
        stmt = (
            select(LogRow)
            .where(LogRow.timestamp >= start, LogRow.timestamp <= end)
            .order_by(LogRow.timestamp.desc(), LogRow.id.desc())
            .limit(limit)
        )
        with self._session("query_range") as session:
            events = [_to_event(row) for row in session.scalars(stmt)]
        logger.info(
            "Range query %s -> %s returned %d logs",
            start.isoformat(), end.isoformat(), len(events),
        )
        return events

    def query_filtered(self, filters: Optional[LogFilters], limit: int) -> List[LogEvent]:
        """Events matching every set predicate, newest first, at most limit."""
        stmt = _apply_filters(select(LogRow), filters)
        stmt = stmt.order_by(LogRow.timestamp.desc(), LogRow.id.desc()).limit(limit)
        with self._session("query_filtered") as session:
            return [_to_event(row) for row in session.scalars(stmt)]

    def recent_messages(self, limit: int) -> List[str]:
        """Most recently ingested non-null messages (extraction corpus)."""
        stmt = (
            select(LogRow.message)
            .where(LogRow.message.is_not(None))
            .order_by(LogRow.created_at.desc(), LogRow.id.desc())
            .limit(limit)
        )
        with self._session("recent_messages") as session:
            return list(session.scalars(stmt))

    def aggregate_by_level(self, filters: Optional[LogFilters] = None) -> Dict[str, int]:
        """Counts per canonical level (WARN counted as WARNING)."""
        level = _normalized_level().label("normalized_level")
        stmt = _apply_filters(select(level, func.count(LogRow.id)), filters).group_by(level)
        counts: Dict[str, int] = {}
        with self._session("aggregate_by_level") as session:
            for name, count in session.execute(stmt):
                counts[name] = counts.get(name, 0) + count
        return counts

    def aggregate_by_service(
        self,
        level: Optional[str] = None,
        top_n: Optional[int] = None,
        filters: Optional[LogFilters] = None,
    ) -> List[ServiceCount]:
        """
        Event counts per service, highest first, ties by service name.

        Args:
            level: Only count events in this level bucket (synonyms included)
            top_n: Keep at most this many services; None keeps all
            filters: Additional predicates
        """
        count = func.count(LogRow.id).label("event_count")
        stmt = _apply_filters(select(LogRow.service, count), filters)
        if level is not None:
            stmt = stmt.where(LogRow.level.in_(level_variants(level)))
        stmt = stmt.group_by(LogRow.service).order_by(count.desc(), LogRow.service.asc())
        if top_n is not None:
            stmt = stmt.limit(top_n)
        with self._session("aggregate_by_service") as session:
            return [ServiceCount(service=service, count=n) for service, n in session.execute(stmt)]

    def distinct_services(self, filters: Optional[LogFilters] = None) -> List[str]:
        stmt = _apply_filters(select(LogRow.service).distinct(), filters).order_by(LogRow.service.asc())
        with self._session("distinct_services") as session:
            return list(session.scalars(stmt))

    def count_since(self, level: str, lookback: timedelta, now: Optional[datetime] = None) -> int:
        """Events of a level bucket with timestamp within the last lookback."""
        now = now or datetime.now(timezone.utc)
        stmt = (
            select(func.count(LogRow.id))
            .where(LogRow.level.in_(level_variants(level)))
            .where(LogRow.timestamp > now - lookback)
        )
        with self._session("count_since") as session:
            return int(session.scalar(stmt) or 0)


def create_store(database_url: str, create_schema: bool = True, **engine_kwargs) -> LogStore:
    """
    Build a LogStore for a database URL.

    SQLite URLs are opened for use from several threads; in-memory SQLite
    shares one connection so every session sees the same database.
    """
    if database_url.startswith("sqlite"):
        engine_kwargs.setdefault("connect_args", {"check_same_thread": False})
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite+pysqlite://"):
            engine_kwargs.setdefault("poolclass", StaticPool)
    else:
        engine_kwargs.setdefault("pool_size", 25)
        engine_kwargs.setdefault("pool_recycle", 300)
        engine_kwargs.setdefault("pool_pre_ping", True)

    engine = create_engine(database_url, **engine_kwargs)
    store = LogStore(engine)
    if create_schema:
        store.create_schema()
    return store
