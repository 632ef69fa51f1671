# SitemapSniffer — Candidate sitemap entry points for an origin
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import logging
from typing import Iterable, List, Optional, Union

from bs4 import BeautifulSoup

from .decode import decode_body
from .models import CrawlState
from .robots import parse_sitemap_directives, robots_url
from ..exceptions import FetchError
from ..utils.urls import canonical_location, resolve_url


logger = logging.getLogger(__name__)

FALLBACK_PATHS = (
	"/sitemap.xml",
	"/sitemap_index.xml",
	"/sitemap-index.xml",
	"/sitemap.xml.gz",
	"/sitemap_index.xml.gz",
	"/sitemap-index.xml.gz",
)

PARSER_CANDIDATES = ["lxml", "html.parser"]


def parse_html(content: Union[str, bytes]) -> BeautifulSoup:
	"""Parse HTML using lxml if available, else builtin parser."""
	for parser in PARSER_CANDIDATES:
		try:
			return BeautifulSoup(content, parser)
		except Exception:
			continue
	return BeautifulSoup(content, "html.parser")


def link_rel_sitemaps(page_html: Optional[Union[str, bytes]]) -> List[str]:
	"""``href`` values of ``<link rel="sitemap">`` elements in a page."""
	if not page_html:
		return []
	soup = parse_html(page_html)
	hrefs = []
	for link in soup.find_all("link", href=True):
		rel = link.get("rel") or []
		if isinstance(rel, str):
			rel = rel.split()
		if any(r.lower() == "sitemap" for r in rel):
			hrefs.append(link["href"].strip())
	return [h for h in hrefs if h]


def fetch_robots_directives(fetcher, origin: str, state: CrawlState, gzip_support=None) -> List[str]:
	"""Fetch robots.txt once and return its Sitemap values. Failures are diagnostics only."""
	url = robots_url(origin)
	try:
		response = fetcher.fetch(url)
	except FetchError as e:
		state.add_tried(url, 0, e.message)
		state.add_error(f"robots.txt fetch failed for {url}: {e.message}")
		logger.info("robots.txt unavailable for %s: %s", origin, e.message)
		return []
	state.add_tried(url, response.status)
	if not response.ok:
		state.add_error(f"robots.txt returned HTTP {response.status}: {url}")
		return []
	text = decode_body(response, url, state, gzip_support)
	if response.oversized:
		state.add_error(f"robots.txt exceeds the fetch size limit; read only complete lines: {url}")
		# the last line may be cut mid-URL
		text = (text or "").rpartition("\n")[0]
	return parse_sitemap_directives(text)


def _dedupe(urls: Iterable[str]) -> List[str]:
	out: List[str] = []
	seen = set()
	for u in urls:
		key = canonical_location(u) or u
		if key in seen:
			continue
		seen.add(key)
		out.append(u)
	return out


def discover_candidates(
	fetcher,
	origin: str,
	state: CrawlState,
	page_html: Optional[Union[str, bytes]] = None,
	gzip_support=None,
) -> List[str]:
	"""Ordered sitemap entry points: robots.txt directives, then page link hints.

	Falls back to the conventional locations when neither yields anything.
	"""
	candidates: List[str] = []
	for value in fetch_robots_directives(fetcher, origin, state, gzip_support):
		u = resolve_url(value, origin)
		if u is None:
			state.add_error(f"Ignoring invalid robots.txt Sitemap value {value!r}")
			continue
		candidates.append(u)
	for href in link_rel_sitemaps(page_html):
		u = resolve_url(href, origin)
		if u is None:
			state.add_error(f"Ignoring invalid <link rel=\"sitemap\"> href {href!r}")
			continue
		candidates.append(u)
	if not candidates:
		logger.info("No declared sitemaps for %s; trying conventional locations", origin)
		candidates = [origin.rstrip("/") + path for path in FALLBACK_PATHS]
	return _dedupe(candidates)
