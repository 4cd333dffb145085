"""
Pytest configuration and shared fixtures.

Provides an in-memory store, a recording fake summarizer and seeded log
events for unit and integration tests.
"""

import pytest
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from src.core.config import AnalyticsConfig, MonitorConfig
from src.core.exceptions import ModelInferenceError
from src.data.schema import LogEvent, NewLogEvent
from src.store.adapter import LogStore, create_store


BASE_TIME = datetime(2024, 1, 1, 0, 0, 0, tzinfo=timezone.utc)


class FakeSummarizer:
    """Records every prompt and returns a fixed answer (or raises)."""

    def __init__(self, output: str = "ROOT CAUSE (Confidence: 80%)", error: Optional[Exception] = None):
        self.output = output
        self.error = error
        self.prompts: List[str] = []

    def summarize(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if self.error is not None:
            raise self.error
        return self.output

    @property
    def calls(self) -> int:
        return len(self.prompts)


def add_event(
    store: LogStore,
    timestamp: datetime,
    service: str = "api-server",
    level: str = "INFO",
    message: str = "Request processed",
    route: Optional[str] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> LogEvent:
    return store.insert(
        NewLogEvent(
            timestamp=timestamp,
            service=service,
            level=level,
            message=message,
            route=route,
            metadata=metadata,
        )
    )


@pytest.fixture
def add_log():
    """Insert helper: add_log(store, timestamp, service, level, message, ...)."""
    return add_event


@pytest.fixture
def make_summarizer():
    """Factory for FakeSummarizer with a custom output or error."""
    return FakeSummarizer


@pytest.fixture
def store() -> LogStore:
    """Fresh in-memory SQLite store with the logs table created."""
    log_store = create_store("sqlite://")
    yield log_store
    log_store.engine.dispose()


@pytest.fixture
def analytics_settings() -> AnalyticsConfig:
    return AnalyticsConfig()


@pytest.fixture
def monitor_settings() -> MonitorConfig:
    return MonitorConfig(interval_seconds=0.01, lookback_minutes=5, error_threshold=2)


@pytest.fixture
def summarizer() -> FakeSummarizer:
    return FakeSummarizer()


@pytest.fixture
def failing_summarizer() -> FakeSummarizer:
    return FakeSummarizer(error=ModelInferenceError("API error (503): unavailable"))


@pytest.fixture
def seeded_store(store) -> LogStore:
    """
    Two comparable periods one hour apart.

    Healthy (00:00-00:07): three INFO events from checkout and payments.
    Crash (01:00-01:07): two ERROR events and one WARN from payments.
    Outside both windows: one INFO event at 00:30.
    """
    add_event(store, BASE_TIME + timedelta(minutes=1), "checkout", "INFO",
              "Order processed user_id=u1 product_id=P1 duration=50ms", route="/checkout")
    add_event(store, BASE_TIME + timedelta(minutes=2), "payments", "INFO",
              "Payment authorized user_id=u2 order_id=ORD-1 duration=80ms")
    add_event(store, BASE_TIME + timedelta(minutes=3), "checkout", "INFO",
              "Order processed user_id=u1 product_id=P2 duration=60ms")
    add_event(store, BASE_TIME + timedelta(minutes=30), "inventory", "INFO",
              "Stock check product_id=P1 current_stock=12")
    add_event(store, BASE_TIME + timedelta(hours=1, minutes=1), "payments", "WARN",
              "Retrying gateway attempts=2")
    add_event(store, BASE_TIME + timedelta(hours=1, minutes=2), "payments", "ERROR",
              "Transaction failed reason=TIMEOUT timeout=5000ms attempts=3")
    add_event(store, BASE_TIME + timedelta(hours=1, minutes=4), "payments", "ERROR",
              "Transaction failed reason=TIMEOUT timeout=5000ms")
    return store


def pytest_configure(config):
    """
    Pytest hook for custom configuration.

    Registers custom markers used throughout tests.
    """
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running (deferred CI)"
    )
