# SitemapSniffer — Recursive sitemap crawler (index/urlset traversal under limits)
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import logging
from typing import Optional, Union

from .candidates import discover_candidates
from .decode import decode_body
from .models import CrawlLimits, CrawlState, SitemapDocument
from .sitemap import parse_sitemap
from ..exceptions import FetchError
from ..utils.urls import canonical_location, normalize_url, strict_url, same_origin


logger = logging.getLogger(__name__)

# sitemaps.org caps an uncompressed sitemap at 50MB
DEFAULT_MAX_DECODED_BYTES = 50 * 1024 * 1024


class SitemapCrawler:
	"""Depth-limited, sequential traversal of a site's sitemap hierarchy.

	All bookkeeping lives on the CrawlState passed through the recursion, so one
	crawler can serve many origins as long as each run gets its own state.
	Every failure below the run becomes a diagnostic and ends only its branch.
	"""

	def __init__(
		self,
		fetcher,
		limits: Optional[CrawlLimits] = None,
		gzip_support=None,
		max_fetch_bytes: int = 3_000_000,
		max_decoded_bytes: int = DEFAULT_MAX_DECODED_BYTES,
		strip_query: bool = False,
		same_origin_only: bool = False,
	) -> None:
		self.fetcher = fetcher
		self.limits = limits or CrawlLimits()
		self.gzip_support = gzip_support
		self.max_fetch_bytes = max_fetch_bytes
		self.max_decoded_bytes = max_decoded_bytes
		self.same_origin_only = same_origin_only
		self._normalize = strict_url if strip_query else normalize_url

	def run(self, origin: str, page_html: Optional[Union[str, bytes]] = None) -> CrawlState:
		"""Crawl every candidate entry point for ``origin`` until a global limit is hit.

		Candidates are not short-circuited: an index found through robots.txt may
		not cover a sitemap that only a later candidate reaches.
		"""
		state = CrawlState(origin)
		try:
			candidates = discover_candidates(self.fetcher, origin, state, page_html, self.gzip_support)
			for i, candidate in enumerate(candidates):
				if self._fetch_limit_reached(state):
					state.add_error(
						f"Sitemap fetch limit ({self.limits.max_sitemaps_fetched}) reached; "
						f"{len(candidates) - i} candidate(s) not tried"
					)
					break
				if self._url_cap_reached(state):
					state.truncated = True
					break
				self.crawl_sitemap(candidate, 0, state)
		except Exception as e:
			# keep whatever was accumulated
			logger.exception("Sitemap crawl of %s failed unexpectedly", origin)
			state.add_error(f"Internal error while crawling {origin}: {e}")
		logger.info(
			"Crawled %s: %d URL(s) from %d sitemap fetch(es), %d diagnostic(s)%s",
			origin,
			len(state.urls),
			state.sitemaps_fetched,
			len(state.errors),
			" (truncated)" if state.truncated else "",
		)
		if state.followed_sitemaps:
			logger.info("Sitemaps followed for %s: %s", origin, ", ".join(state.followed_sitemaps))
		return state

	def crawl_sitemap(self, url: str, depth: int, state: CrawlState) -> None:
		limits = self.limits
		if depth > limits.max_depth:
			state.add_error(f"Max sitemap depth ({limits.max_depth}) exceeded; not following {url}")
			return

		sitemap_url = canonical_location(url, state.origin)
		if sitemap_url is None:
			state.add_error(f"Invalid sitemap URL {url!r}")
			state.add_tried(str(url), 0, "invalid URL")
			return
		if sitemap_url in state.visited_sitemaps:
			return
		if self._fetch_limit_reached(state):
			state.add_error(f"Sitemap fetch limit ({limits.max_sitemaps_fetched}) reached; skipped {sitemap_url}")
			return

		state.visited_sitemaps.add(sitemap_url)
		state.sitemaps_fetched += 1
		try:
			response = self.fetcher.fetch(sitemap_url)
		except FetchError as e:
			state.add_tried(sitemap_url, 0, e.message)
			state.add_error(f"Fetch failed for {sitemap_url}: {e.message}")
			logger.warning("Fetch failed for %s: %s", sitemap_url, e.message)
			return
		state.add_tried(sitemap_url, response.status)

		if not response.ok:
			state.add_error(f"HTTP {response.status} for {sitemap_url}")
			logger.info("HTTP %s for %s", response.status, sitemap_url)
			return
		if response.oversized:
			state.add_error(f"Sitemap larger than {self.max_fetch_bytes} bytes; skipped {sitemap_url}")
			return

		text = decode_body(response, sitemap_url, state, self.gzip_support, max_bytes=self.max_decoded_bytes)
		if text is None:
			return
		doc = parse_sitemap(text, sitemap_url, state)
		if doc is None:
			return
		state.mark_parsed(sitemap_url)

		if doc.is_index:
			self._follow_index(doc, sitemap_url, depth, state)
		else:
			self._collect_urls(doc, sitemap_url, state)

	def _follow_index(self, doc: SitemapDocument, sitemap_url: str, depth: int, state: CrawlState) -> None:
		for i, child in enumerate(doc.locations):
			if self._fetch_limit_reached(state):
				state.add_error(
					f"Sitemap fetch limit ({self.limits.max_sitemaps_fetched}) reached; "
					f"{len(doc.locations) - i} child sitemap(s) of {sitemap_url} not followed"
				)
				return
			if self._url_cap_reached(state):
				state.truncated = True
				logger.info("URL limit reached; not following remaining children of %s", sitemap_url)
				return
			self.crawl_sitemap(child, depth + 1, state)

	def _collect_urls(self, doc: SitemapDocument, sitemap_url: str, state: CrawlState) -> None:
		cap = self.limits.max_urls_stored
		foreign = 0
		for loc in doc.locations:
			url = self._normalize(loc)
			if url is None:
				state.add_error(f"Skipping invalid page URL {loc!r} in {sitemap_url}")
				continue
			if self.same_origin_only and not same_origin(url, state.origin):
				foreign += 1
				continue
			already_truncated = state.truncated
			if not state.add_url(url, cap):
				if not already_truncated:
					state.add_error(f"URL limit ({cap}) reached; truncated at {sitemap_url}")
				break
		if foreign:
			state.add_error(f"Ignored {foreign} URL(s) outside {state.origin} in {sitemap_url}")

	def _fetch_limit_reached(self, state: CrawlState) -> bool:
		return state.sitemaps_fetched >= self.limits.max_sitemaps_fetched

	def _url_cap_reached(self, state: CrawlState) -> bool:
		return len(state.urls) >= self.limits.max_urls_stored
