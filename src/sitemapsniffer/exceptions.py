# SitemapSniffer — Exceptions
# Author: Sachin Chhetri
# Year: 2025
# License: MIT


class SitemapSnifferError(Exception):
	"""Base class for errors raised by sitemapsniffer."""


class FetchError(SitemapSnifferError):
	"""Transport-level failure: DNS, connect, TLS, timeout, broken stream."""

	def __init__(self, url: str, message: str) -> None:
		super().__init__(message)
		self.url = url
		self.message = message


class StoreError(SitemapSnifferError):
	"""Record store could not be written."""


class DecompressedTooLarge(SitemapSnifferError):
	"""Decompressed payload grew past the caller's byte limit."""

	def __init__(self, limit: int) -> None:
		super().__init__(f"decompressed size exceeds {limit} bytes")
		self.limit = limit
