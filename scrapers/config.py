"""
Scrape configuration consumed by the scraping engine
Holds pagination bounds, outbound headers and fetch limits for one search
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional


@dataclass(frozen=True)
class Pagination:
    """Offset-based pagination rule (Google uses start=0, 10, 20...)"""
    query_string: str = "start"
    begin: int = 0
    end: int = 0
    offset: int = 10

    def offsets(self) -> List[int]:
        """Every offset from begin to end inclusive, stepping by offset"""
        return list(range(self.begin, self.end + 1, self.offset))

    def page_url(self, start_url: str, value: int) -> str:
        """Append the pagination query string to start_url"""
        mark = '&' if '?' in start_url else '?'
        return f"{start_url}{mark}{self.query_string}={value}"

    def page_urls(self, start_url: str) -> List[str]:
        return [self.page_url(start_url, value) for value in self.offsets()]


@dataclass(frozen=True)
class ScrapeConfig:
    """Read-only request profile handed to the Scraper"""
    base_site_url: str
    start_url: str
    headers: Dict[str, str] = field(default_factory=dict)
    pagination: Optional[Pagination] = None
    concurrency: int = 2
    max_retries: int = 2
    delay: int = 5000  # ms between request starts
    timeout: int = 15000  # ms per fetch
    remove_style_and_script_tags: bool = True

    @property
    def timeout_seconds(self) -> float:
        return self.timeout / 1000.0

    @property
    def delay_seconds(self) -> float:
        return self.delay / 1000.0
