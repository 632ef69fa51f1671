# SitemapSniffer — robots.txt Sitemap directive extraction
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import re
from typing import List, Optional


SITEMAP_LINE = re.compile(r"^\s*sitemap\s*:\s*(.*)$", re.IGNORECASE)
INLINE_COMMENT = re.compile(r"\s#")


def robots_url(origin: str) -> str:
	return origin.rstrip("/") + "/robots.txt"


def parse_sitemap_directives(text: Optional[str]) -> List[str]:
	"""Return ``Sitemap:`` values in order of first appearance, without duplicates.

	robots.txt is untrusted third-party text: lines that do not look like a
	Sitemap directive are skipped and nothing here raises.
	"""
	if not text:
		return []
	out: List[str] = []
	seen = set()
	for line in str(text).lstrip("\ufeff").splitlines():
		m = SITEMAP_LINE.match(line)
		if not m:
			continue
		value = INLINE_COMMENT.split(m.group(1), 1)[0].strip()
		if not value or value.startswith("#") or value in seen:
			continue
		seen.add(value)
		out.append(value)
	return out
