import gzip
import logging

from sitemapsniffer.core.crawl import SitemapCrawler
from sitemapsniffer.core.decode import UnavailableGzip
from sitemapsniffer.core.models import CrawlLimits, CrawlState
from sitemapsniffer.core.result import assemble_record
from sitemapsniffer.core.session import FetchResponse

from helpers import MockFetcher, gz, sitemapindex, transport_error, urlset


SHOP = "https://shop.example"


def test_shop_scenario_index_with_404_child():
	fetcher = MockFetcher(
		{
			"https://shop.example/robots.txt": (200, "User-agent: *\nSitemap: https://shop.example/sitemap_index.xml\n"),
			"https://shop.example/sitemap_index.xml": sitemapindex(
				"https://shop.example/sitemap_products_1.xml",
				"https://shop.example/sitemap_pages_1.xml",
			),
			"https://shop.example/sitemap_products_1.xml": urlset(
				"https://shop.example/products/a",
				"https://shop.example/products/b",
				"https://shop.example/products/c",
			),
		}
	)
	limits = CrawlLimits()
	state = SitemapCrawler(fetcher, limits).run(SHOP)
	record = assemble_record(state, limits)

	assert record["found"] is True
	assert record["urlCount"] == 3
	assert record["sitemapUrl"] == "https://shop.example/sitemap_index.xml"
	assert record["errors"] == ["HTTP 404 for https://shop.example/sitemap_pages_1.xml"]
	assert [t["url"] for t in record["tried"]] == [
		"https://shop.example/robots.txt",
		"https://shop.example/sitemap_index.xml",
		"https://shop.example/sitemap_products_1.xml",
		"https://shop.example/sitemap_pages_1.xml",
	]
	assert [t["status"] for t in record["tried"]] == [200, 200, 200, 404]
	assert record["truncated"] is False


def test_self_referencing_index_terminates():
	index_url = "https://example.com/sitemap.xml"
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, f"Sitemap: {index_url}"),
			index_url: sitemapindex(index_url, "https://EXAMPLE.com:443/sitemap.xml", "https://example.com/a.xml"),
			"https://example.com/a.xml": urlset("https://example.com/p1"),
		}
	)
	limits = CrawlLimits(max_depth=5, max_sitemaps_fetched=10)
	state = SitemapCrawler(fetcher, limits).run("https://example.com")
	assert fetcher.calls.count(index_url) == 1
	assert state.sitemaps_fetched == 2
	assert list(state.urls) == ["https://example.com/p1"]
	assert state.errors == []


def test_mutual_index_cycle_respects_fetch_ceiling():
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, "Sitemap: https://example.com/a.xml"),
			"https://example.com/a.xml": sitemapindex("https://example.com/b.xml"),
			"https://example.com/b.xml": sitemapindex("https://example.com/a.xml", "https://example.com/c.xml"),
			"https://example.com/c.xml": sitemapindex("https://example.com/d.xml"),
		}
	)
	limits = CrawlLimits(max_depth=10, max_sitemaps_fetched=2)
	state = SitemapCrawler(fetcher, limits).run("https://example.com")
	assert state.sitemaps_fetched == 2
	assert "https://example.com/c.xml" not in fetcher.calls
	assert any("fetch limit (2) reached" in e for e in state.errors)


def test_depth_limit_blocks_nested_sitemap():
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, "Sitemap: https://example.com/root.xml"),
			"https://example.com/root.xml": sitemapindex("https://example.com/mid.xml"),
			"https://example.com/mid.xml": sitemapindex("https://example.com/leaf.xml"),
			"https://example.com/leaf.xml": urlset("https://example.com/deep"),
		}
	)
	state = SitemapCrawler(fetcher, CrawlLimits(max_depth=1)).run("https://example.com")
	assert len(state.urls) == 0
	assert "https://example.com/leaf.xml" not in fetcher.calls
	assert state.errors == ["Max sitemap depth (1) exceeded; not following https://example.com/leaf.xml"]


def test_url_cap_truncates():
	locs = [f"https://example.com/p{i}" for i in range(10)]
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, "Sitemap: https://example.com/sitemap.xml"),
			"https://example.com/sitemap.xml": urlset(*locs),
		}
	)
	limits = CrawlLimits(max_urls_stored=5)
	state = SitemapCrawler(fetcher, limits).run("https://example.com")
	record = assemble_record(state, limits)
	assert record["urls"] == locs[:5]
	assert record["urlCount"] == 5
	assert record["truncated"] is True


def test_duplicates_and_index_html_collapse():
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, "Sitemap: https://example.com/sitemap.xml"),
			"https://example.com/sitemap.xml": urlset(
				"https://example.com/about/index.html",
				"https://example.com/about/",
				"HTTPS://EXAMPLE.COM/about/",
				"/relative",
			),
		}
	)
	state = SitemapCrawler(fetcher).run("https://example.com")
	assert list(state.urls) == ["https://example.com/about/", "https://example.com/relative"]
	assert state.truncated is False


def test_malformed_xml_does_not_stop_other_candidates():
	fetcher = MockFetcher(
		{
			"https://example.com/sitemap.xml": "<urlset><url><loc>not a url",
			"https://example.com/sitemap_index.xml": urlset("https://example.com/ok"),
		}
	)
	state = SitemapCrawler(fetcher).run("https://example.com")
	assert list(state.urls) == ["https://example.com/ok"]
	parse_errors = [e for e in state.errors if e.startswith("XML parse error")]
	assert len(parse_errors) == 1
	assert state.primary_sitemap_url == "https://example.com/sitemap_index.xml"
	# robots + all six conventional locations
	assert len(state.tried) == 7


def test_gz_sitemap_without_content_encoding():
	mapping = {
		"https://example.com/robots.txt": (200, "Sitemap: https://example.com/sitemap.xml.gz"),
		"https://example.com/sitemap.xml.gz": (200, gz(urlset("https://example.com/g1", "https://example.com/g2"))),
	}
	state = SitemapCrawler(MockFetcher(mapping)).run("https://example.com")
	assert list(state.urls) == ["https://example.com/g1", "https://example.com/g2"]

	state = SitemapCrawler(MockFetcher(mapping), gzip_support=UnavailableGzip()).run("https://example.com")
	assert len(state.urls) == 0
	assert state.errors == ["Cannot decompress gzip sitemap (no gzip support): https://example.com/sitemap.xml.gz"]
	assert state.primary_sitemap_url is None


def test_exhaustive_candidates_after_success():
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (
				200,
				"Sitemap: https://example.com/a.xml\nSitemap: https://example.com/b.xml",
			),
			"https://example.com/a.xml": urlset("https://example.com/1"),
			"https://example.com/b.xml": urlset("https://example.com/2"),
		}
	)
	state = SitemapCrawler(fetcher).run("https://example.com")
	assert list(state.urls) == ["https://example.com/1", "https://example.com/2"]
	assert state.primary_sitemap_url == "https://example.com/a.xml"
	assert state.followed_sitemaps == ["https://example.com/a.xml", "https://example.com/b.xml"]


def test_transport_failure_and_oversize_are_diagnostics():
	big = "https://example.com/big.xml"
	down = "https://example.com/down.xml"
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, f"Sitemap: {down}\nSitemap: {big}"),
			down: transport_error(down),
			big: FetchResponse(big, 200, {}, b"<urlset>", oversized=True),
		}
	)
	state = SitemapCrawler(fetcher, max_fetch_bytes=1024).run("https://example.com")
	assert state.tried[1] == {"url": down, "status": 0, "error": "ConnectionError: connection refused"}
	assert state.tried[2] == {"url": big, "status": 200}
	assert state.errors == [
		f"Fetch failed for {down}: ConnectionError: connection refused",
		f"Sitemap larger than 1024 bytes; skipped {big}",
	]


def test_same_origin_only_and_strip_query():
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, "Sitemap: https://example.com/sitemap.xml"),
			"https://example.com/sitemap.xml": urlset(
				"https://example.com/a?ref=1",
				"https://example.com/a?ref=2",
				"https://other.example/b",
			),
		}
	)
	state = SitemapCrawler(fetcher, strip_query=True, same_origin_only=True).run("https://example.com")
	assert list(state.urls) == ["https://example.com/a"]
	assert state.errors == ["Ignored 1 URL(s) outside https://example.com in https://example.com/sitemap.xml"]


def test_internal_defect_keeps_partial_results():
	class ExplodingFetcher(MockFetcher):
		def fetch(self, url):
			if url.endswith("boom.xml"):
				raise RuntimeError("unexpected")
			return super().fetch(url)

	fetcher = ExplodingFetcher(
		{
			"https://example.com/robots.txt": (
				200,
				"Sitemap: https://example.com/a.xml\nSitemap: https://example.com/boom.xml",
			),
			"https://example.com/a.xml": urlset("https://example.com/kept"),
		}
	)
	state = SitemapCrawler(fetcher).run("https://example.com")
	assert list(state.urls) == ["https://example.com/kept"]
	assert state.errors[-1] == "Internal error while crawling https://example.com: unexpected"


def test_invalid_child_location_recorded_with_status_zero():
	state = CrawlState("https://example.com")
	SitemapCrawler(MockFetcher({})).crawl_sitemap("javascript:alert(1)", 0, state)
	assert state.tried == [{"url": "javascript:alert(1)", "status": 0, "error": "invalid URL"}]
	assert state.sitemaps_fetched == 0


def test_double_gzipped_sitemap_yields_urls():
	url = "https://example.com/sitemap.xml.gz"
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, f"Sitemap: {url}"),
			url: (200, gzip.compress(gz(urlset("https://example.com/g1"))), {"Content-Encoding": "gzip"}),
		}
	)
	state = SitemapCrawler(fetcher).run("https://example.com")
	assert list(state.urls) == ["https://example.com/g1"]
	assert state.errors == []


def test_index_html_sitemap_fetched_as_published():
	url = "https://example.com/maps/index.html"
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, f"Sitemap: {url}"),
			url: urlset("https://example.com/p1"),
		}
	)
	state = SitemapCrawler(fetcher).run("https://example.com")
	assert fetcher.calls == ["https://example.com/robots.txt", url]
	assert state.primary_sitemap_url == url
	assert list(state.urls) == ["https://example.com/p1"]


def test_followed_sitemaps_are_logged(caplog):
	fetcher = MockFetcher(
		{
			"https://example.com/robots.txt": (200, "Sitemap: https://example.com/index.xml"),
			"https://example.com/index.xml": sitemapindex("https://example.com/a.xml"),
			"https://example.com/a.xml": urlset("https://example.com/1"),
		}
	)
	with caplog.at_level(logging.INFO, logger="sitemapsniffer.core.crawl"):
		SitemapCrawler(fetcher).run("https://example.com")
	assert "Sitemaps followed for https://example.com: https://example.com/index.xml, https://example.com/a.xml" in caplog.text
