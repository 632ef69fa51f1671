# SitemapSniffer — Configuration via Pydantic BaseSettings
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

from .core.models import CrawlLimits


class Settings(BaseSettings):
	"""Application settings with sane defaults.

	Environment variables are prefixed with SITEMAPSNIFFER_. CLI flags can override.
	"""

	model_config = SettingsConfigDict(env_prefix="SITEMAPSNIFFER_", env_file=".env", extra="ignore")

	user_agent: str = Field(default="SitemapSniffer/0.1 (+https://example.com)")
	max_depth: int = Field(default=2, ge=0)
	max_sitemaps_fetched: int = Field(default=50, ge=1)
	max_urls_stored: int = Field(default=4000, ge=1)
	max_fetch_bytes: int = Field(default=3_000_000, ge=1024)
	timeout: float = Field(default=15.0, gt=0)
	retries: int = Field(default=2, ge=0)
	backoff: float = Field(default=0.5, ge=0)
	min_delay: float = Field(default=0.0, ge=0)
	cache_ttl_hours: float = Field(default=6.0, ge=0)
	cache_path: str = Field(default="data/sitemaps.json")
	strip_query: bool = Field(default=False)
	same_origin_only: bool = Field(default=False)
	log_level: str = Field(default="INFO")
	log_dir: str = Field(default="logs")

	def limits(self) -> CrawlLimits:
		return CrawlLimits(
			max_depth=self.max_depth,
			max_sitemaps_fetched=self.max_sitemaps_fetched,
			max_urls_stored=self.max_urls_stored,
		)
