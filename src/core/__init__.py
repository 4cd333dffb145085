"""
Core module: Configuration, logging, and exception handling.
"""

from .config import AnalyticsConfig, Config, MonitorConfig, config
from .exceptions import (
    ConfigurationError,
    DataValidationError,
    InvalidTimeFormatError,
    LogFlowError,
    MissingParameterError,
    ModelInferenceError,
    NoDataInRangeError,
    StoreQueryFailedError,
    UpstreamAnalysisFailedError,
)

__all__ = [
    "AnalyticsConfig",
    "Config",
    "MonitorConfig",
    "config",
    "LogFlowError",
    "InvalidTimeFormatError",
    "MissingParameterError",
    "NoDataInRangeError",
    "UpstreamAnalysisFailedError",
    "StoreQueryFailedError",
    "DataValidationError",
    "ModelInferenceError",
    "ConfigurationError",
]
