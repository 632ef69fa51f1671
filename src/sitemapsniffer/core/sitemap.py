# SitemapSniffer — Sitemap document parsing (urlset / sitemapindex)
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import logging
import re
from typing import List, Optional
import xml.etree.ElementTree as ET

from .models import CrawlState, SitemapDocument, INDEX, URLSET
from ..utils.urls import resolve_url


logger = logging.getLogger(__name__)

ROOT_KINDS = {"sitemapindex": INDEX, "urlset": URLSET}
DOCTYPE = re.compile(r"<!DOCTYPE", re.IGNORECASE)


def local_name(tag) -> str:
	if not isinstance(tag, str):
		return ""
	return tag.rsplit("}", 1)[-1].lower()


def parse_sitemap(text: str, sitemap_url: str, state: CrawlState) -> Optional[SitemapDocument]:
	"""Parse sitemap XML into an index or urlset document.

	Rejected documents (broken XML, DTDs, unknown root element) return None
	with a diagnostic on ``state``. Each ``<loc>`` is resolved against
	``sitemap_url``; entries that do not resolve are skipped one by one.
	"""
	# no DTDs, so no entity expansion
	if DOCTYPE.search(text[:4096]):
		state.add_error(f"XML parse error in {sitemap_url}: DOCTYPE declarations are not accepted")
		return None
	try:
		root = ET.fromstring(text)
	except ET.ParseError as e:
		state.add_error(f"XML parse error in {sitemap_url}: {e}")
		logger.info("Unparseable sitemap %s: %s", sitemap_url, e)
		return None

	kind = ROOT_KINDS.get(local_name(root.tag))
	if kind is None:
		state.add_error(f"Unknown sitemap format <{local_name(root.tag)}> at {sitemap_url}")
		return None

	locations: List[str] = []
	for loc in root.findall(".//{*}loc"):
		raw = (loc.text or "").strip()
		absolute = resolve_url(raw, sitemap_url)
		if absolute is None:
			state.add_error(f"Skipping unresolvable <loc> {raw!r} in {sitemap_url}")
			continue
		locations.append(absolute)
	logger.debug("Parsed %s from %s", kind, sitemap_url)
	return SitemapDocument(kind, locations)
