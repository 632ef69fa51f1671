# SitemapSniffer — CLI (Typer)
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

import typer
from rich import print

from .config import Settings
from .core.scan import SKIPPED, build_scanner
from .exceptions import StoreError
from .logging_config import configure_logging
from .storage.cache import RecordStore
from .utils.urls import normalize_origin

app = typer.Typer(add_completion=False, no_args_is_help=True)


def _summary(record: Dict[str, Any]) -> Dict[str, Any]:
	return {
		"found": record.get("found"),
		"urls": record.get("urlCount"),
		"sitemap": record.get("sitemapUrl"),
		"fetches": len(record.get("tried") or []),
		"errors": len(record.get("errors") or []),
		"truncated": record.get("truncated"),
		"scanned": _format_ts(record.get("scannedAt")),
	}


def _format_ts(ms) -> str:
	if not isinstance(ms, (int, float)):
		return "unknown"
	return datetime.fromtimestamp(ms / 1000).isoformat(timespec="seconds")


@app.command()
def scan(
	origin: List[str] = typer.Argument(..., help="Site origin(s), e.g. https://shop.example"),
	force: bool = typer.Option(False, "--force", help="Rescan even if a fresh record is cached"),
	depth: Optional[int] = typer.Option(None, help="Max sitemap index depth (overrides env)"),
	max_sitemaps: Optional[int] = typer.Option(None, help="Max sitemap fetches per scan"),
	max_urls: Optional[int] = typer.Option(None, help="Max page URLs kept per scan"),
	timeout: Optional[float] = typer.Option(None, help="Per-fetch timeout (seconds)"),
	strip_query: Optional[bool] = typer.Option(None, "--strip-query/--keep-query", help="Drop query and fragment from page URLs"),
	same_origin: Optional[bool] = typer.Option(None, "--same-origin/--any-origin", help="Keep only URLs on the scanned origin"),
	user_agent: Optional[str] = typer.Option(None, help="Override User-Agent"),
	cache_path: Optional[str] = typer.Option(None, help="Record store JSON file"),
	as_json: bool = typer.Option(False, "--json", help="Print full records as JSON"),
	log_level: Optional[str] = typer.Option(None, help="Log level"),
):
	"""Harvest page URLs from the sitemaps of each origin and store the result."""
	overrides = {
		"max_depth": depth,
		"max_sitemaps_fetched": max_sitemaps,
		"max_urls_stored": max_urls,
		"timeout": timeout,
		"strip_query": strip_query,
		"same_origin_only": same_origin,
		"user_agent": user_agent,
		"cache_path": cache_path,
		"log_level": log_level,
	}
	cfg = Settings().model_copy(update={k: v for k, v in overrides.items() if v is not None})
	configure_logging(level=cfg.log_level, log_dir=cfg.log_dir)
	scanner = build_scanner(cfg)
	failed = False
	for o in origin:
		try:
			outcome = scanner.scan(o, force=force)
		except StoreError as e:
			print(f"[red]Could not save record for {o}:[/red] {e}")
			failed = True
			continue
		if outcome.status == SKIPPED:
			print(f"[red]Not an http(s) origin:[/red] {o}")
			failed = True
			continue
		if as_json:
			typer.echo(json.dumps(outcome.record, indent=2, ensure_ascii=False))
			continue
		print(f"[bold]{outcome.origin}[/bold] ({outcome.status})")
		if outcome.record:
			print(_summary(outcome.record))
	if failed:
		raise typer.Exit(code=1)


@app.command()
def show(
	origin: str = typer.Argument(..., help="Site origin"),
	limit: int = typer.Option(20, help="Number of URLs to list"),
	cache_path: Optional[str] = typer.Option(None, help="Record store JSON file"),
	as_json: bool = typer.Option(False, "--json", help="Print the full record as JSON"),
):
	"""Print the stored record for an origin."""
	cfg = Settings()
	norm = normalize_origin(origin)
	record = RecordStore(cache_path or cfg.cache_path).get(norm) if norm else None
	if record is None:
		print(f"No record for {origin}. Run a scan first.")
		raise typer.Exit(code=1)
	if as_json:
		typer.echo(json.dumps(record, indent=2, ensure_ascii=False))
		return
	print(f"[bold]{norm}[/bold]")
	print(_summary(record))
	for u in (record.get("urls") or [])[: max(0, limit)]:
		typer.echo(u)
	for e in record.get("errors") or []:
		print(f"[yellow]![/yellow] {e}")


@app.command()
def clear(
	origin: str = typer.Argument(..., help="Site origin"),
	cache_path: Optional[str] = typer.Option(None, help="Record store JSON file"),
):
	"""Remove the stored record so the next scan starts fresh."""
	cfg = Settings()
	norm = normalize_origin(origin)
	removed = RecordStore(cache_path or cfg.cache_path).delete(norm) if norm else False
	print("Cache cleared." if removed else f"No record for {origin}.")


@app.command("print-config")
def print_config():
	"""Print effective configuration from environment."""
	cfg = Settings()
	print(cfg.model_dump())


def main():
	app()


if __name__ == "__main__":
	main()
