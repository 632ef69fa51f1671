# SitemapSniffer — URL utilities: resolution, normalization and origin checks
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

from typing import Optional
from urllib.parse import urlparse, urlunparse, urljoin


ALLOWED_SCHEMES = ("http", "https")
DEFAULT_PORTS = {"http": 80, "https": 443}
INDEX_SUFFIX = "/index.html"


def resolve_url(raw: Optional[str], base: Optional[str] = None) -> Optional[str]:
	"""Resolve ``raw`` against ``base`` into an absolute http(s) URL.

	Returns None for anything that does not end up absolute with a host:
	empty strings, other schemes, unparseable ports or brackets.
	"""
	if raw is None:
		return None
	raw = str(raw).strip()
	if not raw:
		return None
	try:
		absolute = urljoin(base, raw) if base else raw
		p = urlparse(absolute)
		p.port  # raises ValueError on a bad port
	except ValueError:
		return None
	if p.scheme.lower() not in ALLOWED_SCHEMES or not p.hostname:
		return None
	return absolute.replace(" ", "%20")


def _netloc(p, scheme: str) -> str:
	host = p.hostname or ""
	if ":" in host:
		host = f"[{host}]"
	port = p.port
	if port is not None and DEFAULT_PORTS.get(scheme) != port:
		host = f"{host}:{port}"
	if "@" in p.netloc:
		host = p.netloc.rpartition("@")[0] + "@" + host
	return host


def _canonical(
	raw: Optional[str], base: Optional[str], keep_query: bool, collapse_index: bool = True
) -> Optional[str]:
	absolute = resolve_url(raw, base)
	if absolute is None:
		return None
	p = urlparse(absolute)
	scheme = p.scheme.lower()
	path = p.path or "/"
	if collapse_index and path.endswith(INDEX_SUFFIX):
		path = path[: -len(INDEX_SUFFIX)] + "/"
	query = p.query if keep_query else ""
	fragment = p.fragment if keep_query else ""
	return urlunparse((scheme, _netloc(p, scheme), path, p.params, query, fragment))


def normalize_url(raw: Optional[str], base: Optional[str] = None) -> Optional[str]:
	"""Canonical form used for crawling and dedup.

	Lowercases scheme and host, drops default ports, maps ``.../index.html``
	to ``.../``. Query and fragment are kept. None when ``raw`` is invalid.
	"""
	return _canonical(raw, base, keep_query=True)


def strict_url(raw: Optional[str], base: Optional[str] = None) -> Optional[str]:
	"""Like normalize_url, but also strips query and fragment."""
	return _canonical(raw, base, keep_query=False)


def canonical_location(raw: Optional[str], base: Optional[str] = None) -> Optional[str]:
	"""Resolve and canonicalize scheme, host and port only; the path is left alone.

	Used for sitemap documents, where ``/index.html`` and ``/`` may differ.
	"""
	return _canonical(raw, base, keep_query=True, collapse_index=False)


def origin_of(url: str) -> Optional[str]:
	try:
		p = urlparse(url)
		scheme = p.scheme.lower()
		if scheme not in ALLOWED_SCHEMES or not p.hostname:
			return None
		return f"{scheme}://{_netloc(p, scheme).rpartition('@')[2]}"
	except ValueError:
		return None


def normalize_origin(raw: Optional[str]) -> Optional[str]:
	"""Turn user input such as ``Shop.Example`` or ``https://shop.example/a`` into an origin."""
	if raw is None:
		return None
	raw = str(raw).strip()
	if not raw:
		return None
	if "://" not in raw:
		raw = "https://" + raw
	absolute = resolve_url(raw)
	if absolute is None:
		return None
	return origin_of(absolute)


def same_origin(url_a: str, url_b: str) -> bool:
	a = origin_of(url_a)
	return a is not None and a == origin_of(url_b)


__all__ = [
	"resolve_url",
	"normalize_url",
	"strict_url",
	"canonical_location",
	"origin_of",
	"normalize_origin",
	"same_origin",
	"urljoin",
]
