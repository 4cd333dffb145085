"""
Integration tests for the HTTP backend.

Runs a real ThreadingHTTPServer on an ephemeral port over an in-memory
store and a fake summarizer, and exercises every route with requests.
"""

import http.client
import threading

import pytest
import requests

from backend.main import build_context, create_server


pytestmark = pytest.mark.integration


@pytest.fixture
def server(seeded_store, summarizer):
    httpd = create_server("127.0.0.1", 0, build_context(seeded_store, summarizer))
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    yield httpd
    httpd.shutdown()
    httpd.server_close()


@pytest.fixture
def base_url(server):
    host, port = server.server_address[:2]
    return f"http://{host}:{port}"


class TestIngestAndRetrieve:
    def test_ingest_then_list(self, base_url):
        created = requests.post(
            f"{base_url}/ingest",
            json={"service": "search", "level": "ERROR", "message": "boom", "timestamp": "2024-01-02T00:00:00Z"},
            timeout=5,
        )

        assert created.status_code == 201
        assert created.json()["status"] == "success"

        listed = requests.get(f"{base_url}/logs", params={"service": "search"}, timeout=5).json()
        assert listed["count"] == 1
        assert listed["logs"][0]["timestamp"] == "2024-01-02T00:00:00Z"
        assert listed["logs"][0]["id"] == created.json()["id"]
        assert "route" not in listed["logs"][0]

    def test_ingest_rejects_naive_timestamp(self, base_url):
        response = requests.post(
            f"{base_url}/ingest",
            json={"service": "search", "level": "INFO", "message": "x", "timestamp": "2024-01-02T00:00"},
            timeout=5,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidTimeFormat"

    def test_ingest_rejects_invalid_payload(self, base_url):
        response = requests.post(f"{base_url}/ingest", json={"level": "INFO"}, timeout=5)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidPayload"

    def test_ingest_rejects_malformed_json(self, base_url):
        response = requests.post(
            f"{base_url}/ingest", data="{not json", headers={"Content-Type": "application/json"}, timeout=5
        )

        assert response.status_code == 400

    def test_logs_filters_and_limit(self, base_url):
        body = requests.get(
            f"{base_url}/logs",
            params={"level": "WARNING", "from": "2024-01-01T01:00:00Z"},
            timeout=5,
        ).json()

        assert body["count"] == 1
        assert body["logs"][0]["level"] == "WARN"

        limited = requests.get(f"{base_url}/logs", params={"limit": "2"}, timeout=5).json()
        assert limited["count"] == 2

    def test_malformed_from_is_ignored(self, base_url):
        body = requests.get(f"{base_url}/logs", params={"from": "yesterday"}, timeout=5).json()

        assert body["count"] == 7


class TestMetrics:
    def test_system_metrics(self, base_url):
        body = requests.get(f"{base_url}/metrics", timeout=5).json()

        assert body["log_counts"]["total"] == 7
        assert body["error_count"] == 2
        assert body["warning_count"] == 1
        assert body["unique_services"] == 3

    def test_filtered_metrics(self, base_url):
        body = requests.get(f"{base_url}/metrics", params={"service": "checkout"}, timeout=5).json()

        assert body["log_counts"]["total"] == 2
        assert body["error_rate"] == 0

    def test_advanced_metrics(self, base_url):
        body = requests.get(f"{base_url}/metrics/advanced", timeout=5).json()

        assert body["scanned_messages"] == 7
        assert body["top_users"][0]["name"] == "u1"
        assert body["top_error_reasons"][0] == {"name": "TIMEOUT", "count": 2}


class TestCompare:
    def test_compare_get(self, base_url, summarizer):
        response = requests.get(
            f"{base_url}/ai/compare",
            params={"healthy": "2024-01-01T00:00:00Z", "crash": "2024-01-01T01:00:00Z"},
            timeout=5,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["analysis"] == summarizer.output
        assert body["healthy_count"] == 3
        assert body["crash_count"] == 3
        assert body["crash_start"] == "2024-01-01T01:00:00Z"
        assert body["crash_end"] == "2024-01-01T01:07:00Z"

    def test_compare_post(self, base_url):
        response = requests.post(
            f"{base_url}/ai/compare",
            json={"healthy": "2024-01-01T00:00", "crash": "2024-01-01T01:00"},
            timeout=5,
        )

        assert response.status_code == 200
        assert response.json()["healthy_count"] == 3

    def test_compare_missing_parameter(self, base_url):
        response = requests.get(f"{base_url}/ai/compare", params={"healthy": "2024-01-01T00:00"}, timeout=5)

        assert response.status_code == 400
        assert response.json()["error"] == "MissingParameter"

    def test_compare_invalid_time(self, base_url):
        response = requests.get(
            f"{base_url}/ai/compare", params={"healthy": "soon", "crash": "2024-01-01T01:00"}, timeout=5
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidTimeFormat"

    def test_compare_no_data(self, base_url, summarizer):
        response = requests.get(
            f"{base_url}/ai/compare",
            params={"healthy": "2023-01-01T00:00", "crash": "2023-01-02T00:00"},
            timeout=5,
        )

        assert response.status_code == 404
        assert response.json()["error"] == "NoDataInRange"
        assert summarizer.calls == 0

    def test_legacy_path_redirects(self, base_url):
        response = requests.get(
            f"{base_url}/api/compare?healthy=a&crash=b", allow_redirects=False, timeout=5
        )

        assert response.status_code == 301
        assert response.headers["Location"] == "/ai/compare?healthy=a&crash=b"


def test_upstream_failure_maps_to_502(seeded_store, failing_summarizer):
    httpd = create_server("127.0.0.1", 0, build_context(seeded_store, failing_summarizer))
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        host, port = httpd.server_address[:2]
        response = requests.get(
            f"http://{host}:{port}/ai/compare",
            params={"healthy": "2024-01-01T00:00", "crash": "2024-01-01T01:00"},
            timeout=5,
        )
    finally:
        httpd.shutdown()
        httpd.server_close()

    assert response.status_code == 502
    assert response.json()["error"] == "UpstreamAnalysisFailed"


class TestAssistantRoutes:
    def test_query_requires_question(self, base_url):
        response = requests.post(f"{base_url}/ai/query", json={}, timeout=5)

        assert response.status_code == 400

    def test_query_answers(self, base_url):
        response = requests.post(f"{base_url}/ai/query", json={"question": "what happened?"}, timeout=5)

        assert response.status_code == 200
        assert response.json()["time_range"] == "last 1 hour"

    def test_summary(self, base_url, summarizer):
        body = requests.get(f"{base_url}/ai/summary", timeout=5).json()

        assert body["summary"] == summarizer.output
        assert body["total_logs"] == 7


def test_health_and_unknown_route(base_url):
    assert requests.get(f"{base_url}/health", timeout=5).json() == {"status": "healthy", "database": "connected"}
    assert requests.get(f"{base_url}/nope", timeout=5).status_code == 404


def test_cors_preflight(base_url):
    response = requests.options(f"{base_url}/ingest", timeout=5)

    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"


class TestMalformedBodies:
    def test_non_string_window_start(self, base_url, summarizer):
        response = requests.post(
            f"{base_url}/ai/compare",
            json={"healthy": 20240101, "crash": "2024-01-01T01:00:00Z"},
            timeout=5,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidTimeFormat"
        assert "healthy" in response.json()["detail"]
        assert summarizer.calls == 0

    def test_non_string_crash_start(self, base_url):
        response = requests.post(
            f"{base_url}/ai/compare",
            json={"healthy": "2024-01-01T00:00:00Z", "crash": ["2024-01-01T01:00:00Z"]},
            timeout=5,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidTimeFormat"

    def test_non_string_question(self, base_url, summarizer):
        response = requests.post(f"{base_url}/ai/query", json={"question": 42}, timeout=5)

        assert response.status_code == 400
        assert response.json()["error"] == "InvalidPayload"
        assert summarizer.calls == 0

    def test_non_integer_content_length(self, server):
        host, port = server.server_address[:2]
        conn = http.client.HTTPConnection(host, port, timeout=5)
        try:
            conn.putrequest("POST", "/ingest")
            conn.putheader("Content-Type", "application/json")
            conn.putheader("Content-Length", "abc")
            conn.endheaders()
            response = conn.getresponse()
            status = response.status
            body = response.read()
        finally:
            conn.close()

        assert status == 400
        assert b"InvalidPayload" in body
