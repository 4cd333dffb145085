"""
Backend HTTP server for LogFlow Analytics.

Thin transport over the analytics services: parses query strings and JSON
bodies, calls one service operation per route and serializes the typed
result. Error classes map to stable codes and HTTP statuses here only.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Dict, Optional
from urllib.parse import parse_qs, urlsplit

from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError

from backend.monitor import ErrorRateMonitor
from llm import SummarizerConfig, create_summarizer
from llm.schema import Summarizer
from src.analytics import DifferentialAnalyzer, LogAssistant, MetricsReporter
from src.core.config import Config, config
from src.core.exceptions import (
    ConfigurationError,
    DataValidationError,
    InvalidTimeFormatError,
    LogFlowError,
)
from src.core.logging_config import setup_logging
from src.data.schema import LogFilters, NewLogEvent
from src.data.timewindow import parse_offset_time
from src.store.adapter import LogStore, create_store

logger = logging.getLogger("backend")


@dataclass
class AppContext:
    """Services shared by every request thread."""

    store: LogStore
    reporter: MetricsReporter
    analyzer: DifferentialAnalyzer
    assistant: LogAssistant
    settings: Config


def build_context(store: LogStore, summarizer: Summarizer, settings: Optional[Config] = None) -> AppContext:
    settings = settings or config
    reporter = MetricsReporter(store=store, settings=settings.analytics)
    return AppContext(
        store=store,
        reporter=reporter,
        analyzer=DifferentialAnalyzer(store=store, summarizer=summarizer, settings=settings.analytics),
        assistant=LogAssistant(store=store, summarizer=summarizer, reporter=reporter, settings=settings.analytics),
        settings=settings,
    )


def _first(query: Dict[str, list], name: str) -> Optional[str]:
    values = query.get(name)
    if not values:
        return None
    return values[0]


def _parse_limit(raw: Optional[str], default: int) -> int:
    if not raw:
        return default
    try:
        limit = int(raw)
    except ValueError:
        return default
    return limit if limit > 0 else default


def filters_from_query(query: Dict[str, list]) -> LogFilters:
    """
    Build retrieval filters from query parameters.

    from/to accept only the offset form; malformed values are dropped
    rather than rejected.
    """
    return LogFilters(
        service=_first(query, "service"),
        level=_first(query, "level"),
        route=_first(query, "route"),
        from_time=parse_offset_time(_first(query, "from")),
        to_time=parse_offset_time(_first(query, "to")),
    )


def _time_field(payload: Dict[str, Any], side: str) -> Optional[str]:
    """A window start from a JSON body; only strings are accepted."""
    value = payload.get(side)
    if value is None or isinstance(value, str):
        return value
    raise InvalidTimeFormatError(json.dumps(value), side=side)


def new_event_from_payload(payload: Dict[str, Any]) -> NewLogEvent:
    data = dict(payload)
    raw_timestamp = data.pop("timestamp", None)
    timestamp = None
    if raw_timestamp:
        timestamp = parse_offset_time(str(raw_timestamp))
        if timestamp is None:
            raise InvalidTimeFormatError(str(raw_timestamp), side="timestamp")
    try:
        return NewLogEvent(timestamp=timestamp, **data)
    except (ValidationError, TypeError) as exc:
        raise DataValidationError(f"Invalid log event: {exc}") from exc


class BackendHandler(BaseHTTPRequestHandler):
    server_version = "LogFlow/1.0"

    @property
    def context(self) -> AppContext:
        return self.server.context

    def log_message(self, format: str, *args: Any) -> None:
        logger.debug("%s - %s", self.address_string(), format % args)

    def _cors_headers(self) -> None:
        self.send_header("Access-Control-Allow-Origin", "*")
        self.send_header("Access-Control-Allow-Headers", "Content-Type, Authorization")
        self.send_header("Access-Control-Allow-Methods", "GET, POST, OPTIONS")

    def _send_json(self, status: int, payload: Any) -> None:
        if isinstance(payload, BaseModel):
            payload = payload.model_dump(mode="json")
        body = json.dumps(payload).encode("utf-8")
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self._cors_headers()
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _send_error(self, exc: LogFlowError) -> None:
        self._send_json(exc.http_status, {"error": exc.code, "detail": exc.message})

    def _read_json(self) -> Dict[str, Any]:
        try:
            length = int(self.headers.get("Content-Length", "0"))
        except ValueError as exc:
            raise DataValidationError("Invalid Content-Length header") from exc
        if length <= 0:
            return {}
        data = self.rfile.read(length)
        try:
            payload = json.loads(data.decode("utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise DataValidationError("Invalid JSON") from exc
        if not isinstance(payload, dict):
            raise DataValidationError("Expected a JSON object")
        return payload

    def _dispatch(self, routes: Dict[str, Any]) -> None:
        parts = urlsplit(self.path)
        handler = routes.get(parts.path)
        if handler is None:
            self._send_json(404, {"detail": "Not found"})
            return
        try:
            handler(parse_qs(parts.query))
        except LogFlowError as exc:
            self._send_error(exc)
        except Exception:  # pragma: no cover - runtime guard
            logger.exception("Unhandled error serving %s", parts.path)
            self._send_json(500, {"error": "InternalError", "detail": "Internal server error"})

    def do_OPTIONS(self) -> None:
        self.send_response(200)
        self._cors_headers()
        self.send_header("Content-Length", "0")
        self.end_headers()

    def do_GET(self) -> None:
        self._dispatch(
            {
                "/health": self._handle_health,
                "/logs": self._handle_logs,
                "/metrics": self._handle_metrics,
                "/metrics/advanced": self._handle_advanced_metrics,
                "/ai/compare": self._handle_compare,
                "/ai/summary": self._handle_summary,
                "/api/compare": self._handle_compare_redirect,
            }
        )

    def do_POST(self) -> None:
        self._dispatch(
            {
                "/ingest": self._handle_ingest,
                "/ai/compare": self._handle_compare,
                "/ai/query": self._handle_query,
            }
        )

    def _handle_health(self, query: Dict[str, list]) -> None:
        if not self.context.store.ping():
            self._send_json(503, {"status": "unhealthy", "database": "disconnected"})
            return
        self._send_json(200, {"status": "healthy", "database": "connected"})

    def _handle_logs(self, query: Dict[str, list]) -> None:
        limit = _parse_limit(_first(query, "limit"), self.context.settings.analytics.default_query_limit)
        events = self.context.store.query_filtered(filters_from_query(query), limit)
        self._send_json(200, {"count": len(events), "logs": [event.to_payload() for event in events]})

    def _handle_metrics(self, query: Dict[str, list]) -> None:
        filters = filters_from_query(query)
        self._send_json(200, self.context.reporter.system_metrics(None if filters.is_empty() else filters))

    def _handle_advanced_metrics(self, query: Dict[str, list]) -> None:
        self._send_json(200, self.context.reporter.advanced_metrics())

    def _handle_compare(self, query: Dict[str, list]) -> None:
        healthy = _first(query, "healthy")
        crash = _first(query, "crash")
        if self.command == "POST":
            payload = self._read_json()
            healthy = _time_field(payload, "healthy") or healthy
            crash = _time_field(payload, "crash") or crash
        self._send_json(200, self.context.analyzer.compare(healthy, crash))

    def _handle_compare_redirect(self, query: Dict[str, list]) -> None:
        location = "/ai/compare"
        raw_query = urlsplit(self.path).query
        if raw_query:
            location = f"{location}?{raw_query}"
        self.send_response(301)
        self.send_header("Location", location)
        self._cors_headers()
        self.send_header("Content-Length", "0")
        self.end_headers()

    def _handle_query(self, query: Dict[str, list]) -> None:
        question = self._read_json().get("question")
        if question is not None and not isinstance(question, str):
            raise DataValidationError("question must be a string")
        self._send_json(200, self.context.assistant.ask(question))

    def _handle_summary(self, query: Dict[str, list]) -> None:
        self._send_json(200, self.context.assistant.overview())

    def _handle_ingest(self, query: Dict[str, list]) -> None:
        event = new_event_from_payload(self._read_json())
        stored = self.context.store.insert(event)
        self._send_json(201, {"status": "success", "id": stored.id})


def create_server(host: str, port: int, context: AppContext) -> ThreadingHTTPServer:
    server = ThreadingHTTPServer((host, port), BackendHandler)
    server.daemon_threads = True
    server.context = context
    return server


def run(host: str, port: int, monitor_enabled: Optional[bool] = None) -> None:
    for name in ("backend", "src", "llm"):
        setup_logging(name)
    store = create_store(config.database_url)
    try:
        summarizer = create_summarizer(SummarizerConfig.from_env())
    except ConfigurationError as exc:
        logger.error("Summarizer unavailable: %s", exc)
        sys.exit(1)

    context = build_context(store, summarizer)

    if monitor_enabled is None:
        monitor_enabled = config.monitor.enabled
    if monitor_enabled:
        ErrorRateMonitor(store, config.monitor).start()

    server = create_server(host, port, context)
    logger.info("LogFlow server listening on %s:%s", host, port)
    server.serve_forever()


def main() -> None:
    load_dotenv()
    parser = argparse.ArgumentParser(description="LogFlow analytics backend server")
    parser.add_argument("--host", default="0.0.0.0")
    parser.add_argument("--port", type=int, default=8080)
    parser.add_argument("--no-monitor", action="store_true", help="Disable the background error monitor")
    args = parser.parse_args()

    run(args.host, args.port, monitor_enabled=False if args.no_monitor else None)


if __name__ == "__main__":
    main()
