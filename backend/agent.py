"""
Log shipping agent.

Reads a plain-text application log line by line, parses the key=value
tokens of each line and posts it to the backend's /ingest route.

Line format:
    service=checkout level=ERROR route=/pay message="Transaction failed reason=TIMEOUT"

Everything after message= is the message (surrounding quotes removed).
Unknown tokens are ignored; a line that fails to post is logged and skipped.
"""

from __future__ import annotations

import argparse
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, Optional

import requests
from dotenv import load_dotenv

from src.core.logging_config import setup_logging

logger = logging.getLogger("backend.agent")

DEFAULT_SERVER_URL = "http://localhost:8080"
DEFAULT_LOG_FILE = "app.log"
SHIPPED_KEYS = ("service", "level", "route")


def parse_line(line: str) -> Dict[str, str]:
    """
    Parse one log line into an ingestion payload.

    Returns:
        Dict with service, level, message and route keys (empty when absent)
    """
    event = {"service": "", "level": "", "message": "", "route": ""}
    parts = line.rstrip("\n").split(" ")
    for index, part in enumerate(parts):
        if part.startswith("message="):
            value = " ".join(parts[index:])[len("message="):]
            if len(value) >= 2 and value[0] == '"' and value[-1] == '"':
                value = value[1:-1]
            event["message"] = value
            break
        key, sep, value = part.partition("=")
        if sep and key in SHIPPED_KEYS:
            event[key] = value
    return event


@dataclass
class ShipResult:
    sent: int = 0
    failed: int = 0


@dataclass
class LogShipper:
    """Posts parsed lines to a LogFlow server."""

    server_url: str = DEFAULT_SERVER_URL
    timeout_seconds: float = 10.0
    session: requests.Session = field(default_factory=requests.Session)

    @property
    def ingest_url(self) -> str:
        return f"{self.server_url.rstrip('/')}/ingest"

    def ship_line(self, line: str) -> bool:
        event = parse_line(line)
        try:
            response = self.session.post(self.ingest_url, json=event, timeout=self.timeout_seconds)
        except requests.RequestException as exc:
            logger.error("error posting: %s", exc)
            return False
        if response.status_code >= 400:
            logger.error("ingest rejected (%d): %s", response.status_code, response.text[:200])
            return False
        logger.info("SENT: %s", event)
        return True

    def ship_lines(self, lines: Iterable[str]) -> ShipResult:
        result = ShipResult()
        for line in lines:
            if not line.strip():
                continue
            if self.ship_line(line):
                result.sent += 1
            else:
                result.failed += 1
        return result

    def ship_file(self, path: Path) -> ShipResult:
        with open(path, "r", encoding="utf-8") as handle:
            result = self.ship_lines(handle)
        logger.info("Shipped %s: %d sent, %d failed", path, result.sent, result.failed)
        return result


def main(argv: Optional[list] = None) -> int:
    load_dotenv()
    parser = argparse.ArgumentParser(description="Ship a log file to a LogFlow server")
    parser.add_argument("--file", default=DEFAULT_LOG_FILE, help="Log file to read")
    parser.add_argument(
        "--server-url",
        default=os.getenv("SERVER_URL") or DEFAULT_SERVER_URL,
        help="Server base URL (default: $SERVER_URL or http://localhost:8080)",
    )
    args = parser.parse_args(argv)

    setup_logging("backend")
    try:
        LogShipper(server_url=args.server_url).ship_file(Path(args.file))
    except OSError as exc:
        logger.error("error opening file %s: %s", args.file, exc)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
