# SitemapSniffer — Transport layer: gzip detection, decompression, charset
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import codecs
import logging
import re
from typing import Optional
from urllib.parse import urlparse

try:
	import zlib  # absent on some stripped-down interpreters
except ImportError:  # pragma: no cover - depends on the build
	zlib = None

from .models import CrawlState
from .session import FetchResponse
from ..exceptions import DecompressedTooLarge


logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"
MAX_GZIP_LAYERS = 3
CHARSET_PARAM = re.compile(r"charset\s*=\s*[\"']?([\w.:-]+)", re.IGNORECASE)
XML_DECL_ENCODING = re.compile(rb"^\s*<\?xml[^>]*?encoding\s*=\s*[\"']([\w.:-]+)[\"']", re.IGNORECASE)


class GzipSupport:
	"""zlib-backed gzip decompression. Handles concatenated gzip members."""

	def available(self) -> bool:
		return zlib is not None

	def decompress(self, data: bytes, max_bytes: Optional[int] = None) -> bytes:
		if zlib is None:
			raise RuntimeError("zlib is not available")
		out = bytearray()
		remaining = data
		while remaining:
			d = zlib.decompressobj(16 + zlib.MAX_WBITS)
			limit = 0 if max_bytes is None else max_bytes - len(out) + 1
			out += d.decompress(remaining, limit)
			if max_bytes is not None and len(out) > max_bytes:
				raise DecompressedTooLarge(max_bytes)
			if not d.eof:
				raise zlib.error("truncated gzip stream")
			remaining = d.unused_data
			if not remaining.startswith(GZIP_MAGIC):
				# trailing padding after the last member
				break
		return bytes(out)


class UnavailableGzip:
	"""Stands in for a runtime without gzip support."""

	def available(self) -> bool:
		return False

	def decompress(self, data: bytes, max_bytes: Optional[int] = None) -> bytes:
		raise RuntimeError("gzip decompression is not supported in this runtime")


DEFAULT_GZIP = GzipSupport()


def is_compressed(response: FetchResponse, url: str) -> bool:
	"""Gzip if the header says so or the URL path ends in .gz; either is enough."""
	encoding = (response.headers.get("Content-Encoding") or "").lower()
	if "gzip" in encoding:
		return True
	try:
		path = urlparse(url).path
	except ValueError:
		path = url
	return path.lower().endswith(".gz")


def _pick_encoding(response: FetchResponse, data: bytes) -> str:
	if data.startswith(codecs.BOM_UTF8):
		return "utf-8-sig"
	if data.startswith((codecs.BOM_UTF16_LE, codecs.BOM_UTF16_BE)):
		return "utf-16"
	candidates = []
	m = CHARSET_PARAM.search(response.headers.get("Content-Type") or "")
	if m:
		candidates.append(m.group(1))
	m = XML_DECL_ENCODING.match(data[:200])
	if m:
		candidates.append(m.group(1).decode("ascii", "ignore"))
	for name in candidates:
		try:
			codecs.lookup(name)
			return name
		except LookupError:
			continue
	return "utf-8"


def bytes_to_text(response: FetchResponse, data: bytes) -> str:
	text = data.decode(_pick_encoding(response, data), errors="replace")
	return text.lstrip("\ufeff")


def decode_body(
	response: FetchResponse,
	url: str,
	state: CrawlState,
	gzip_support=None,
	max_bytes: Optional[int] = None,
) -> Optional[str]:
	"""Turn a fetched body into text, gunzipping when needed.

	Returns None after recording a diagnostic on ``state`` when the body is
	compressed and cannot be decompressed. ``max_bytes`` bounds the
	decompressed size only when the caller sets it.
	"""
	gzip_support = gzip_support or DEFAULT_GZIP
	data = response.content or b""
	if is_compressed(response, url):
		if not data.startswith(GZIP_MAGIC):
			# servers often label already-inflated bodies as gzip
			logger.debug("%s is labelled gzip but has no gzip header; reading as plain text", url)
		elif not gzip_support.available():
			state.add_error(f"Cannot decompress gzip sitemap (no gzip support): {url}")
			logger.warning("No gzip support; skipping %s", url)
			return None
		else:
			try:
				# transport gzip on top of a .gz file arrives as two layers
				layers = 0
				while data.startswith(GZIP_MAGIC) and layers < MAX_GZIP_LAYERS:
					data = gzip_support.decompress(data, max_bytes=max_bytes)
					layers += 1
			except DecompressedTooLarge as e:
				state.add_error(f"Decompressed sitemap too large ({e}): {url}")
				logger.warning("Decompressed body of %s too large: %s", url, e)
				return None
			except Exception as e:
				state.add_error(f"Gzip decompression failed for {url}: {e}")
				logger.warning("Gzip decompression failed for %s: %s", url, e)
				return None
	return bytes_to_text(response, data)
