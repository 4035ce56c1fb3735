import pytest
import requests

from app import app


class FakeResponse:
    def __init__(self, text, status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")


class FakeSession:
    """Serves canned HTML by URL; unknown URLs fail like a dropped connection"""

    def __init__(self, pages=None):
        self.pages = pages or {}
        self.requested = []
        self.closed = False

    def close(self):
        self.closed = True

    def get(self, url, timeout=None):
        self.requested.append(url)
        if url not in self.pages:
            raise requests.ConnectionError(f"connection refused: {url}")
        page = self.pages[url]
        if isinstance(page, FakeResponse):
            return page
        return FakeResponse(page)


@pytest.fixture
def client():
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


@pytest.fixture
def fake_session():
    return FakeSession()
