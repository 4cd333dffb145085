"""
Custom exceptions for LogFlow Analytics.

Every fault that can reach a caller maps to a stable error code and a
human-readable message. Use the subclasses to distinguish user-correctable
input problems from empty results, upstream failures and store faults.
"""

from typing import Optional


class LogFlowError(Exception):
    """Base exception for analytics failures."""

    code = "InternalError"
    http_status = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidTimeFormatError(LogFlowError):
    """Raised when a timestamp matches none of the accepted formats."""

    code = "InvalidTimeFormat"
    http_status = 400

    def __init__(self, raw: str, side: Optional[str] = None):
        self.raw = raw
        self.side = side
        if side:
            message = f"Invalid {side} time: {raw}"
        else:
            message = f"Unrecognized time format: {raw}"
        super().__init__(message)


class MissingParameterError(LogFlowError):
    """Raised when a required request parameter is absent or empty."""

    code = "MissingParameter"
    http_status = 400

    def __init__(self, parameter: str):
        self.parameter = parameter
        super().__init__(f"Missing required parameter: {parameter}")


class NoDataInRangeError(LogFlowError):
    """Raised when valid time windows contain no events at all."""

    code = "NoDataInRange"
    http_status = 404


class UpstreamAnalysisFailedError(LogFlowError):
    """Raised when the summarizer is unreachable or returns an error."""

    code = "UpstreamAnalysisFailed"
    http_status = 502


class StoreQueryFailedError(LogFlowError):
    """Raised when the event store fails. The message never contains query text."""

    code = "StoreQueryFailed"
    http_status = 500

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Error querying logs ({operation})")


class DataValidationError(LogFlowError):
    """Raised when an ingestion payload fails validation."""

    code = "InvalidPayload"
    http_status = 400


class ModelInferenceError(Exception):
    """Raised when a summarizer call fails (transport, status, empty output)."""
    pass


class ConfigurationError(Exception):
    """Raised when configuration is invalid or missing."""
    pass
