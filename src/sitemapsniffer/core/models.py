# SitemapSniffer — Crawl limits, crawl state and parsed sitemap documents
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

from typing import Any, Dict, List, Optional, Set


INDEX = "index"
URLSET = "urlset"


class CrawlLimits:
	"""Per-run ceilings. Treated as immutable once a crawl starts."""

	def __init__(self, max_depth: int = 2, max_sitemaps_fetched: int = 50, max_urls_stored: int = 4000) -> None:
		self.max_depth = max(0, int(max_depth))
		self.max_sitemaps_fetched = max(1, int(max_sitemaps_fetched))
		self.max_urls_stored = max(1, int(max_urls_stored))

	def to_dict(self) -> Dict[str, int]:
		return {
			"maxDepth": self.max_depth,
			"maxSitemapsFetched": self.max_sitemaps_fetched,
			"maxUrlsStored": self.max_urls_stored,
		}

	def __repr__(self) -> str:
		return (
			f"CrawlLimits(max_depth={self.max_depth}, max_sitemaps_fetched={self.max_sitemaps_fetched}, "
			f"max_urls_stored={self.max_urls_stored})"
		)


class CrawlState:
	"""Everything one crawl accumulates. Owned by a single run, never shared."""

	def __init__(self, origin: str) -> None:
		self.origin = origin
		# dict keys keep first-seen order
		self.urls: Dict[str, None] = {}
		self.visited_sitemaps: Set[str] = set()
		self.sitemaps_fetched = 0
		self.primary_sitemap_url: Optional[str] = None
		self.followed_sitemaps: List[str] = []
		self.tried: List[Dict[str, Any]] = []
		self.errors: List[str] = []
		self.truncated = False

	def add_error(self, message: str) -> None:
		self.errors.append(message)

	def add_tried(self, url: str, status: int, error: Optional[str] = None) -> None:
		entry: Dict[str, Any] = {"url": url, "status": int(status)}
		if error:
			entry["error"] = error
		self.tried.append(entry)

	def add_url(self, url: str, cap: int) -> bool:
		"""Store ``url``; False once ``cap`` is reached and the URL had to be dropped."""
		if url in self.urls:
			return True
		if len(self.urls) >= cap:
			self.truncated = True
			return False
		self.urls[url] = None
		return True

	def mark_parsed(self, sitemap_url: str) -> None:
		if self.primary_sitemap_url is None:
			self.primary_sitemap_url = sitemap_url
		self.followed_sitemaps.append(sitemap_url)

	@property
	def url_list(self) -> List[str]:
		return list(self.urls)


class SitemapDocument:
	def __init__(self, kind: str, locations: List[str]) -> None:
		self.kind = kind
		self.locations = locations

	@property
	def is_index(self) -> bool:
		return self.kind == INDEX

	def __repr__(self) -> str:
		return f"SitemapDocument(kind={self.kind!r}, locations={len(self.locations)})"
