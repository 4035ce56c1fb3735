"""
Scrape-tree runner built on requests + BeautifulSoup + Trafilatura
A Root holds operations; OpenLinks fetches linked pages and runs its own
operations on each of them; CollectContent gathers text or attributes.
Callbacks receive the caller's context object as their first argument.
"""
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import urljoin

import requests
import trafilatura
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from errors import ScrapeError
from .config import Pagination, ScrapeConfig

logger = logging.getLogger(__name__)

NOISE_TAGS = ["script", "style", "noscript"]
FALLBACK_SNIPPET_LENGTH = 300


class Operation:
    """Node of the scrape tree"""

    def __init__(self, name: Optional[str] = None):
        self.name = name
        self.operations: List['Operation'] = []

    def add_operation(self, operation: 'Operation') -> 'Operation':
        self.operations.append(operation)
        return operation


class Root(Operation):
    def __init__(self, pagination: Optional[Pagination] = None):
        super().__init__(name='root')
        self.pagination = pagination


class CollectContent(Operation):
    """
    Collect the text (or an attribute) of every element matching selector

    get_all_items(context, items, address) is called once per page with
    everything collected there. fallback="main_text" uses Trafilatura's
    main-content extraction when nothing matched.
    """

    def __init__(self, selector: str, name: str, attribute: Optional[str] = None,
                 condition: Optional[Callable[[Any], bool]] = None,
                 get_all_items: Optional[Callable] = None,
                 fallback: Optional[str] = None):
        super().__init__(name=name)
        self.selector = selector
        self.attribute = attribute
        self.condition = condition
        self.get_all_items = get_all_items
        self.fallback = fallback

    def collect(self, soup: BeautifulSoup, html: str) -> List[str]:
        items = []
        for element in soup.select(self.selector):
            if self.condition and not self.condition(element):
                continue
            if self.attribute:
                value = element.get(self.attribute)
            else:
                value = element.get_text(" ", strip=True)
            if value:
                items.append(value)

        if not items and self.fallback == 'main_text':
            main_text = trafilatura.extract(html)
            if main_text:
                items.append(main_text[:FALLBACK_SNIPPET_LENGTH].strip())

        return items


class OpenLinks(Operation):
    """
    Open every link matching selector and run child operations on each page

    get_page_object(context, page_object, address) is called per opened
    page, in link order, with {child name: collected items}.
    """

    def __init__(self, selector: str, name: str,
                 get_page_object: Optional[Callable] = None,
                 slice: Optional[Tuple[int, int]] = None):
        super().__init__(name=name)
        self.selector = selector
        self.get_page_object = get_page_object
        self.slice = slice

    def find_links(self, soup: BeautifulSoup, address: str) -> List[str]:
        elements = soup.select(self.selector)
        if self.slice:
            elements = elements[self.slice[0]:self.slice[1]]

        links = []
        for element in elements:
            href = element.get('href')
            if href:
                links.append(urljoin(address, href))
        return links


class Throttle:
    """Spaces request starts at least delay seconds apart across threads"""

    def __init__(self, delay: float):
        self.delay = delay
        self._lock = threading.Lock()
        self._next_slot = 0.0

    def wait(self):
        if self.delay <= 0:
            return
        with self._lock:
            now = time.monotonic()
            wait_for = self._next_slot - now
            self._next_slot = max(now, self._next_slot) + self.delay
        if wait_for > 0:
            time.sleep(wait_for)


def build_session(config: ScrapeConfig) -> requests.Session:
    """requests session with the config's headers and bounded retries"""
    session = requests.Session()
    retry = Retry(
        total=config.max_retries,
        backoff_factor=0.5,
        status_forcelist=(429, 500, 502, 503, 504),
        allowed_methods=frozenset(['GET']),
    )
    adapter = HTTPAdapter(max_retries=retry, pool_maxsize=max(config.concurrency, 1))
    session.mount('http://', adapter)
    session.mount('https://', adapter)
    session.headers.update(config.headers)
    return session


class Scraper:
    def __init__(self, config: ScrapeConfig, session: Optional[requests.Session] = None):
        self.config = config
        self._owns_session = session is None
        self.session = session or build_session(config)
        self.throttle = Throttle(config.delay_seconds)

    def close(self):
        """Close the session if this Scraper built it"""
        if self._owns_session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def scrape(self, root: Root, context: Any = None) -> List[Dict[str, Any]]:
        """
        Run the whole tree against every paginated page

        Returns one page object per results page. Raises ScrapeError when a
        results page cannot be fetched; opened sub-pages that fail are logged
        and skipped.
        """
        if root.pagination:
            page_urls = root.pagination.page_urls(self.config.start_url)
        else:
            page_urls = [self.config.start_url]

        page_objects = []
        for page_url in page_urls:
            logger.info(f"Scraping results page {page_url}")
            try:
                html = self.fetch(page_url)
            except requests.RequestException as e:
                raise ScrapeError(f"Failed to fetch {page_url}: {e}") from e

            soup = self.parse(html)
            page_objects.append(self._run_operations(root.operations, soup, html, page_url, context))

        return page_objects

    def fetch(self, url: str) -> str:
        self.throttle.wait()
        logger.debug(f"GET {url}")
        response = self.session.get(url, timeout=self.config.timeout_seconds)
        response.raise_for_status()
        return response.text

    def parse(self, html: str) -> BeautifulSoup:
        soup = BeautifulSoup(html, 'html.parser')
        if self.config.remove_style_and_script_tags:
            for tag in soup(NOISE_TAGS):
                tag.decompose()
        return soup

    def _run_operations(self, operations: List[Operation], soup: BeautifulSoup,
                        html: str, address: str, context: Any) -> Dict[str, Any]:
        page_object: Dict[str, Any] = {}

        for operation in operations:
            if isinstance(operation, CollectContent):
                items = operation.collect(soup, html)
                page_object[operation.name] = items
                if operation.get_all_items:
                    operation.get_all_items(context, items, address)
            elif isinstance(operation, OpenLinks):
                page_object[operation.name] = self._open_links(operation, soup, address, context)

        return page_object

    def _open_links(self, operation: OpenLinks, soup: BeautifulSoup,
                    address: str, context: Any) -> List[Dict[str, Any]]:
        links = operation.find_links(soup, address)
        if not links:
            logger.info(f"No links matched {operation.selector!r} on {address}")
            return []

        with ThreadPoolExecutor(max_workers=max(self.config.concurrency, 1)) as executor:
            pages = list(executor.map(self._fetch_quietly, links))

        # Callbacks run here, on the calling thread, in link order
        page_objects = []
        for link, html in zip(links, pages):
            if html is None:
                continue
            sub_soup = self.parse(html)
            sub_page_object = self._run_operations(operation.operations, sub_soup, html, link, context)
            if operation.get_page_object:
                operation.get_page_object(context, sub_page_object, link)
            page_objects.append(sub_page_object)

        return page_objects

    def _fetch_quietly(self, url: str) -> Optional[str]:
        try:
            return self.fetch(url)
        except requests.RequestException as e:
            logger.warning(f"Skipping {url}: {e}")
            return None
