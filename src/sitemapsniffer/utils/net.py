# SitemapSniffer — Networking utilities (requests session with retries)
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

from http.cookiejar import DefaultCookiePolicy

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry


SITEMAP_ACCEPT = "application/xml,text/xml;q=0.9,application/x-gzip;q=0.8,text/plain;q=0.7,*/*;q=0.5"


def build_session(user_agent: str, retries: int = 2, backoff: float = 0.5) -> requests.Session:
	"""Build an anonymous, uncached requests Session with Retry.

	Cookies are refused so no credentials travel with sitemap fetches. Only gzip
	is offered as a content coding since bodies are read raw and gunzipped by
	the transport decoder.
	"""
	s = requests.Session()
	s.headers.update(
		{
			"User-Agent": user_agent,
			"Accept": SITEMAP_ACCEPT,
			"Accept-Encoding": "gzip, identity",
			"Cache-Control": "no-cache",
			"Pragma": "no-cache",
		}
	)
	s.cookies.set_policy(DefaultCookiePolicy(allowed_domains=[]))
	retry = Retry(
		total=retries,
		backoff_factor=backoff,
		status_forcelist=(429, 500, 502, 503, 504),
		allowed_methods=frozenset({"GET", "HEAD"}),
		# hand the last response back instead of raising RetryError
		raise_on_status=False,
	)
	adapter = HTTPAdapter(max_retries=retry)
	s.mount("http://", adapter)
	s.mount("https://", adapter)
	return s
