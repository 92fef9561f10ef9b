"""Scraper package - company page fetch & content normalisation."""

from contextpack.scraper.fetcher import candidate_urls, scrape_company
from contextpack.scraper.models import CleanPage, ScrapedPage, ScrapeResult
from contextpack.scraper.normalizer import normalize_html, normalize_text

__all__ = [
    "scrape_company",
    "candidate_urls",
    "normalize_html",
    "normalize_text",
    "CleanPage",
    "ScrapedPage",
    "ScrapeResult",
]
