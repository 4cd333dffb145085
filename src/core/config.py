"""
Application configuration for LogFlow Analytics.

Provides environment-aware settings with conservative defaults. Window sizes,
sample caps and health thresholds are configurable to avoid hard-coded
"magic numbers" in the analytics code.
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AnalyticsConfig(BaseModel):
	"""
	Settings for the analytics engine.

	Notes:
	- window_minutes applies to both compared periods (no asymmetric windows).
	- compare_sample_limit keeps comparison evidence readable.
	- extraction_corpus_limit gives field extraction statistical breadth.
	"""

	window_minutes: int = Field(7, ge=1, description="Differential window duration")
	compare_sample_limit: int = Field(25, ge=1, description="Events sampled per window")
	extraction_corpus_limit: int = Field(10_000, ge=1, description="Messages scanned for extraction")
	top_n: int = Field(10, ge=1, description="Entries kept per extraction ranking")
	degraded_error_threshold: int = Field(
		5, ge=0, description="Errors above which a service is Degraded"
	)
	top_error_services: int = Field(5, ge=1, description="Services in the error ranking")
	default_query_limit: int = Field(100, ge=1, description="Default /logs page size")
	assistant_sample_limit: int = Field(100, ge=1, description="Events given to the assistant")

	@property
	def window_duration(self) -> timedelta:
		return timedelta(minutes=self.window_minutes)


class MonitorConfig(BaseModel):
	"""
	Background error-rate monitor.

	Rationale:
	- A one minute interval keeps store load negligible.
	- The threshold is absolute (errors per lookback), not a rate.
	"""

	enabled: bool = True
	interval_seconds: float = Field(60.0, gt=0.0)
	lookback_minutes: int = Field(5, ge=1)
	error_threshold: int = Field(10, ge=0)


class Config(BaseSettings):
	"""
	Global configuration with environment overrides.

	Nested values use a double underscore, e.g. LOGFLOW_ANALYTICS__WINDOW_MINUTES=10.
	"""

	model_config = SettingsConfigDict(
		env_prefix="LOGFLOW_",
		env_file=".env",
		env_nested_delimiter="__",
		extra="ignore",
	)

	log_level: str = Field("INFO", description="Default logging level")
	logs_dir: Path = Field(Path("logs"), description="Directory for log files")
	database_url: str = Field("sqlite:///logflow.db", description="SQLAlchemy database URL")
	analytics: AnalyticsConfig = AnalyticsConfig()
	monitor: MonitorConfig = MonitorConfig()

	def model_post_init(self, __context: object) -> None:
		self.logs_dir.mkdir(parents=True, exist_ok=True)


config = Config()
