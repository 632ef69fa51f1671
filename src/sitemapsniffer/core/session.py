# SitemapSniffer — HTTP fetch collaborator and politeness helpers
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import logging
import threading
import time
from typing import Dict, Mapping, Optional
from urllib.parse import urlparse

import requests
from urllib3.exceptions import HTTPError as Urllib3HTTPError
from requests.structures import CaseInsensitiveDict

from ..exceptions import FetchError
from ..utils.net import build_session


logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024


class HostPacer:
	"""Per-host pacing using monotonic timestamps.

	Thread-safe; call before each request.
	"""

	def __init__(self) -> None:
		self._lock = threading.Lock()
		self._last: Dict[str, float] = {}

	def wait(self, host: str, min_delay: float) -> None:
		if min_delay <= 0:
			return
		with self._lock:
			last = self._last.get(host)
			if last is not None:
				remaining = min_delay - (time.monotonic() - last)
				if remaining > 0:
					time.sleep(remaining)
			self._last[host] = time.monotonic()


class FetchResponse:
	"""Status, headers and raw (still encoded) body of one GET."""

	def __init__(
		self,
		url: str,
		status: int,
		headers: Optional[Mapping[str, str]] = None,
		content: bytes = b"",
		oversized: bool = False,
	) -> None:
		self.url = url
		self.status = int(status)
		self.headers = CaseInsensitiveDict(headers or {})
		self.content = content
		self.oversized = oversized

	@property
	def ok(self) -> bool:
		return 200 <= self.status < 300

	def __repr__(self) -> str:
		return f"FetchResponse(url={self.url!r}, status={self.status}, bytes={len(self.content)})"


class Fetcher:
	"""GET with timeout and a byte ceiling; transport failures raise FetchError.

	The body is streamed without urllib3's content decoding, so a gzip
	``Content-Encoding`` is left for the transport decoder to undo.
	"""

	def __init__(
		self,
		session: requests.Session,
		timeout: float = 15.0,
		max_bytes: int = 3_000_000,
		min_delay: float = 0.0,
		pacer: Optional[HostPacer] = None,
	) -> None:
		self.session = session
		self.timeout = timeout
		self.max_bytes = max_bytes
		self.min_delay = min_delay
		self.pacer = pacer or HostPacer()

	def fetch(self, url: str) -> FetchResponse:
		self.pacer.wait(urlparse(url).netloc, self.min_delay)
		logger.debug("GET %s", url)
		try:
			with self.session.get(url, timeout=self.timeout, stream=True, allow_redirects=True) as r:
				content = b""
				oversized = False
				if 200 <= r.status_code < 300:
					content, oversized = self._read_capped(r)
				return FetchResponse(
					url=r.url or url,
					status=r.status_code,
					headers=r.headers,
					content=content,
					oversized=oversized,
				)
		except (requests.RequestException, Urllib3HTTPError) as e:
			raise FetchError(url, f"{type(e).__name__}: {e}") from e

	def _read_capped(self, r: requests.Response):
		chunks = []
		total = 0
		for chunk in r.raw.stream(CHUNK_SIZE, decode_content=False):
			total += len(chunk)
			if total > self.max_bytes:
				logger.warning("Body of %s exceeds %d bytes; abandoning read", r.url, self.max_bytes)
				return b"".join(chunks), True
			chunks.append(chunk)
		return b"".join(chunks), False


def make_fetcher(
	user_agent: str,
	retries: int = 2,
	backoff: float = 0.5,
	timeout: float = 15.0,
	max_bytes: int = 3_000_000,
	min_delay: float = 0.0,
) -> Fetcher:
	session = build_session(user_agent=user_agent, retries=retries, backoff=backoff)
	return Fetcher(session, timeout=timeout, max_bytes=max_bytes, min_delay=min_delay)
