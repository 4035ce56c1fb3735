"""
Google search scraper
Builds the scrape configuration and tree for a query, collects result
records through an ElementVisitor, then dedupes and trims them
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List
from urllib.parse import quote

from models import ResultRecord, SearchContext, SearchRequest
from .config import Pagination, ScrapeConfig
from .engine import CollectContent, OpenLinks, Root, Scraper
from .normalizer import normalize_results

logger = logging.getLogger(__name__)

RESULTS_PER_PAGE = 10
DIRECT_SOURCE = "search results page"
URI_SAFE = "!*'()"  # left unescaped in the q parameter


def outbound_link(element) -> bool:
    """Keep absolute links that leave Google"""
    href = element.get('href')
    return bool(href) and 'google.com' not in href and not href.startswith('/')


class ElementVisitor(ABC):
    """Receives the elements the engine discovers, one method per selector context"""

    @abstractmethod
    def visit_search_result(self, context: SearchContext, page_object: Dict[str, List[str]], address: str):
        pass

    @abstractmethod
    def visit_direct_titles(self, context: SearchContext, items: List[str], address: str):
        pass


class GoogleResultCollector(ElementVisitor):
    def visit_search_result(self, context, page_object, address):
        titles = page_object.get('title') or []
        if not titles:
            return

        links = page_object.get('link') or []
        snippets = page_object.get('snippet') or []
        context.add(ResultRecord(
            title=titles[0],
            link=links[0] if links else None,
            snippet=snippets[0] if snippets else None,
            source=address,
        ))

    def visit_direct_titles(self, context, items, address):
        # Heading text only; link and snippet aren't reachable from here
        for title in items:
            if title and not context.has_title(title):
                context.add(ResultRecord(title=title, source=DIRECT_SOURCE))


class GoogleScraper:
    def __init__(self, collector: ElementVisitor = None):
        self.base_url = "https://www.google.com"
        self.site_name = "Google"
        self.collector = collector or GoogleResultCollector()

    def get_search_url(self, query: str, lang: str = 'en') -> str:
        """Generate Google search URL for given query and interface language"""
        return f"{self.base_url}/search?q={quote(query, safe=URI_SAFE)}&hl={lang}"

    def build_headers(self, lang: str = 'en') -> Dict[str, str]:
        """HTTP headers to mimic a desktop Chrome navigation"""
        return {
            'User-Agent': 'Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36',
            'Accept-Language': f'{lang}-US,{lang};q=0.9',
            'Accept': 'text/html,application/xhtml+xml,application/xml;q=0.9,image/webp,*/*;q=0.8',
            'Referer': f'{self.base_url}/',
            'Sec-Fetch-Dest': 'document',
            'Sec-Fetch-Mode': 'navigate',
            'Sec-Fetch-Site': 'same-origin',
        }

    def build_config(self, query: str, pages: int = 1, lang: str = 'en') -> ScrapeConfig:
        return ScrapeConfig(
            base_site_url=self.base_url,
            start_url=self.get_search_url(query, lang),
            headers=self.build_headers(lang),
            pagination=Pagination(
                query_string='start',
                begin=0,
                end=(pages - 1) * RESULTS_PER_PAGE,
                offset=RESULTS_PER_PAGE,
            ),
            concurrency=2,  # conservative to avoid rate limiting
            max_retries=2,
            delay=5000,
            timeout=15000,
            remove_style_and_script_tags=True,
        )

    def build_scrape_tree(self, pagination: Pagination) -> Root:
        """
        root
        ├── searchResult: open each result link (first 9)
        │     ├── title: h1/h2/h3 on the opened page
        │     ├── link: outbound hrefs on the opened page
        │     └── snippet: snippet classes, else main text
        └── directTitle: result headings on the results page itself
        """
        root = Root(pagination=pagination)

        search_results = OpenLinks(
            '.yuRUbf a',
            name='searchResult',
            get_page_object=self.collector.visit_search_result,
            slice=(0, 9),
        )
        search_results.add_operation(CollectContent('h1, h2, h3', name='title'))
        search_results.add_operation(CollectContent(
            'a[href^="http"]',
            name='link',
            attribute='href',
            condition=outbound_link,
        ))
        search_results.add_operation(CollectContent(
            '.VwiC3b, .MUxGbd, .yDYNvb',
            name='snippet',
            fallback='main_text',
        ))
        root.add_operation(search_results)

        root.add_operation(CollectContent(
            '.yuRUbf h3',
            name='directTitle',
            get_all_items=self.collector.visit_direct_titles,
        ))
        return root

    def scrape(self, request: SearchRequest, scraper: Scraper = None) -> List[ResultRecord]:
        """
        Scrape Google for a validated request
        Returns deduplicated records, at most pages * 10 of them
        """
        config = self.build_config(request.query, request.pages, request.lang)
        root = self.build_scrape_tree(config.pagination)

        # Fresh buffer per request
        context = SearchContext(request=request)
        if scraper is None:
            with Scraper(config) as scraper:
                scraper.scrape(root, context)
        else:
            scraper.scrape(root, context)

        logger.info(f"Collected {len(context.results)} raw results for {request.query!r}")
        return normalize_results(context.results, request.pages)


def scrape_google(query: str, pages: int = 1, lang: str = 'en') -> List[Dict[str, Any]]:
    """Main entry point used by the routes: returns result dicts ready for JSON"""
    request = SearchRequest(query=query, pages=pages, lang=lang)
    records = GoogleScraper().scrape(request)
    return [record.to_dict() for record in records]
