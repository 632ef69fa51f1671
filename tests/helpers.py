import gzip


from sitemapsniffer.core.session import FetchResponse
from sitemapsniffer.exceptions import FetchError


class MockFetcher:
	"""Serves canned responses by URL; anything unmapped is a 404."""

	def __init__(self, mapping):
		self.mapping = mapping
		self.calls = []

	def fetch(self, url):
		self.calls.append(url)
		canned = self.mapping.get(url)
		if canned is None:
			return FetchResponse(url, 404)
		if isinstance(canned, Exception):
			raise canned
		if isinstance(canned, FetchResponse):
			return canned
		if isinstance(canned, str):
			return FetchResponse(url, 200, {"Content-Type": "application/xml"}, canned.encode("utf-8"))
		status, body = canned[0], canned[1]
		headers = canned[2] if len(canned) > 2 else {}
		if isinstance(body, str):
			body = body.encode("utf-8")
		return FetchResponse(url, status, headers, body)


def urlset(*locs):
	entries = "".join(f"<url><loc>{u}</loc></url>" for u in locs)
	return f'<?xml version="1.0" encoding="UTF-8"?><urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</urlset>'


def sitemapindex(*locs):
	entries = "".join(f"<sitemap><loc>{u}</loc></sitemap>" for u in locs)
	return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{entries}</sitemapindex>'


def gz(text):
	return gzip.compress(text.encode("utf-8"))


def transport_error(url):
	return FetchError(url, "ConnectionError: connection refused")
