"""
Scrapers package - Google search scraping on top of requests + BeautifulSoup
The engine runs a scrape tree; google_scraper configures it for Google results
"""

from .config import Pagination, ScrapeConfig
from .engine import CollectContent, OpenLinks, Root, Scraper
from .google_scraper import ElementVisitor, GoogleResultCollector, GoogleScraper, scrape_google
from .normalizer import normalize_results

__all__ = [
    'Pagination',
    'ScrapeConfig',
    'CollectContent',
    'OpenLinks',
    'Root',
    'Scraper',
    'ElementVisitor',
    'GoogleResultCollector',
    'GoogleScraper',
    'scrape_google',
    'normalize_results',
]
