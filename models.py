from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class SearchRequest:
    """A validated /search request"""
    query: str
    pages: int = 1
    lang: str = 'en'

    @property
    def max_results(self) -> int:
        return self.pages * 10


@dataclass
class ResultRecord:
    """One search result entry returned to the API caller"""
    title: str
    link: Optional[str] = None
    snippet: Optional[str] = None
    source: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __repr__(self):
        return f'<ResultRecord {self.title!r} from {self.source}>'


@dataclass
class SearchContext:
    """Per-request results buffer threaded through the scraping engine"""
    request: SearchRequest
    results: List[ResultRecord] = field(default_factory=list)

    def add(self, record: ResultRecord):
        self.results.append(record)

    def has_title(self, title: str) -> bool:
        return any(record.title == title for record in self.results)
