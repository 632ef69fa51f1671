# SitemapSniffer — Scan service: freshness check, in-flight claim, crawl, persist
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import logging
import threading
from typing import Any, Dict, Optional, Set, Union

from .crawl import SitemapCrawler
from .models import CrawlState
from .result import assemble_record, now_ms
from .session import make_fetcher
from ..storage.cache import RecordStore
from ..utils.urls import normalize_origin


logger = logging.getLogger(__name__)

SCANNED = "scanned"
CACHED = "cached"
BUSY = "busy"
SKIPPED = "skipped"


class ScanOutcome:
	def __init__(
		self,
		status: str,
		origin: str,
		record: Optional[Dict[str, Any]] = None,
		state: Optional[CrawlState] = None,
	) -> None:
		self.status = status
		self.origin = origin
		self.record = record
		self.state = state

	def __repr__(self) -> str:
		return f"ScanOutcome(status={self.status!r}, origin={self.origin!r})"


def is_fresh(record: Optional[Dict[str, Any]], ttl_seconds: float, now: Optional[int] = None) -> bool:
	"""True if ``record`` was scanned less than ``ttl_seconds`` ago."""
	if not record:
		return False
	scanned_at = record.get("scannedAt")
	if isinstance(scanned_at, bool) or not isinstance(scanned_at, (int, float)):
		return False
	now = now_ms() if now is None else now
	return (now - scanned_at) < ttl_seconds * 1000


class SitemapScanner:
	"""Runs at most one scan per origin at a time and skips origins scanned recently.

	The freshness check and the in-flight claim share one lock, so two callers
	asking for the same origin never both decide to scan it.
	"""

	def __init__(self, store: RecordStore, crawler: SitemapCrawler, ttl_seconds: float = 6 * 60 * 60) -> None:
		self.store = store
		self.crawler = crawler
		self.ttl_seconds = ttl_seconds
		self._lock = threading.Lock()
		self._in_flight: Set[str] = set()

	def scan(self, origin: str, force: bool = False, page_html: Optional[Union[str, bytes]] = None) -> ScanOutcome:
		norm = normalize_origin(origin)
		if norm is None:
			logger.info("Not an http(s) origin, skipping: %r", origin)
			return ScanOutcome(SKIPPED, str(origin))

		with self._lock:
			if norm in self._in_flight:
				logger.info("Scan of %s already in progress", norm)
				return ScanOutcome(BUSY, norm, self.store.get(norm))
			existing = self.store.get(norm)
			if not force and is_fresh(existing, self.ttl_seconds):
				logger.info("Using cached record for %s", norm)
				return ScanOutcome(CACHED, norm, existing)
			self._in_flight.add(norm)

		try:
			state = self.crawler.run(norm, page_html=page_html)
			record = assemble_record(state, self.crawler.limits)
			self.store.set(norm, record)
		finally:
			with self._lock:
				self._in_flight.discard(norm)
		return ScanOutcome(SCANNED, norm, record, state)

	def clear(self, origin: str) -> bool:
		norm = normalize_origin(origin)
		if norm is None:
			return False
		return self.store.delete(norm)


def build_scanner(cfg) -> SitemapScanner:
	"""Wire fetcher, crawler and store from a Settings object."""
	fetcher = make_fetcher(
		user_agent=cfg.user_agent,
		retries=cfg.retries,
		backoff=cfg.backoff,
		timeout=cfg.timeout,
		max_bytes=cfg.max_fetch_bytes,
		min_delay=cfg.min_delay,
	)
	crawler = SitemapCrawler(
		fetcher,
		limits=cfg.limits(),
		max_fetch_bytes=cfg.max_fetch_bytes,
		strip_query=cfg.strip_query,
		same_origin_only=cfg.same_origin_only,
	)
	return SitemapScanner(RecordStore(cfg.cache_path), crawler, ttl_seconds=cfg.cache_ttl_hours * 3600)
