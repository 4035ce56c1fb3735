"""
Error types raised by the search API
Each error knows the HTTP status it maps to and how to render itself as JSON
"""
from typing import Any, Dict, List


class SearchAPIError(Exception):
    """Base class for errors that are turned into JSON responses"""
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.message}


class ValidationError(SearchAPIError):
    """Bad or missing request parameters, reported before any network activity"""
    status_code = 400

    def __init__(self, message: str, example: str = "/search?q=nodejs+tutorial&pages=2"):
        super().__init__(message)
        self.example = example

    def to_dict(self) -> Dict[str, Any]:
        return {'error': self.message, 'example': self.example}


class ScrapeError(SearchAPIError):
    """Failure surfaced by the scraping engine (network, timeout, blocked, parse)"""
    status_code = 500
    suggestion = "Try again later or reduce the number of pages"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'success': False,
            'error': 'Failed to scrape Google',
            'message': self.message,
            'suggestion': self.suggestion,
        }


class RouteNotFoundError(SearchAPIError):
    status_code = 404

    def __init__(self, path: str, available_endpoints: List[str]):
        super().__init__(f"No endpoint matches {path}")
        self.path = path
        self.available_endpoints = available_endpoints

    def to_dict(self) -> Dict[str, Any]:
        return {
            'error': 'Endpoint not found',
            'availableEndpoints': self.available_endpoints,
        }
