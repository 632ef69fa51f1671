# SitemapSniffer — Persisted record assembly
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import time
from typing import Any, Dict, Optional

from .models import CrawlLimits, CrawlState


RECORD_FIELDS = (
	"origin",
	"found",
	"urlCount",
	"urls",
	"scannedAt",
	"sitemapUrl",
	"tried",
	"errors",
	"truncated",
	"limits",
)


def now_ms() -> int:
	return int(time.time() * 1000)


def assemble_record(state: CrawlState, limits: CrawlLimits, now: Optional[int] = None) -> Dict[str, Any]:
	"""Freeze a crawl into the record stored per origin.

	``scannedAt`` is epoch milliseconds; pass ``now`` for a deterministic stamp.
	"""
	urls = state.url_list[: limits.max_urls_stored]
	return {
		"origin": state.origin,
		"found": len(urls) > 0,
		"urlCount": len(urls),
		"urls": urls,
		"scannedAt": now_ms() if now is None else int(now),
		"sitemapUrl": state.primary_sitemap_url,
		"tried": [dict(t) for t in state.tried],
		"errors": list(state.errors),
		"truncated": bool(state.truncated or len(state.urls) > limits.max_urls_stored),
		"limits": limits.to_dict(),
	}
