import pytest
from bs4 import BeautifulSoup

from conftest import FakeResponse, FakeSession
from errors import ScrapeError
from scrapers import engine
from scrapers.config import Pagination, ScrapeConfig
from scrapers.engine import CollectContent, OpenLinks, Root, Scraper, Throttle, build_session

START_URL = 'https://search.example/search?q=test'


def make_config(**overrides):
    options = dict(
        base_site_url='https://search.example',
        start_url=START_URL,
        headers={'User-Agent': 'test-agent'},
        delay=0,
    )
    options.update(overrides)
    return ScrapeConfig(**options)


def test_pagination_offsets():
    assert Pagination(end=20).offsets() == [0, 10, 20]
    assert Pagination(end=0).offsets() == [0]


def test_pagination_page_url_picks_separator():
    pagination = Pagination()

    assert pagination.page_url(START_URL, 10) == START_URL + '&start=10'
    assert pagination.page_url('https://search.example/list', 0) == 'https://search.example/list?start=0'


def test_scrape_visits_every_paginated_page():
    session = FakeSession({f'{START_URL}&start={offset}': '<p>page</p>' for offset in (0, 10, 20)})
    root = Root(pagination=Pagination(end=20))

    pages = Scraper(make_config(), session=session).scrape(root)

    assert len(pages) == 3
    assert session.requested == [f'{START_URL}&start={offset}' for offset in (0, 10, 20)]


def test_scrape_without_pagination_uses_start_url():
    session = FakeSession({START_URL: '<p>only page</p>'})

    Scraper(make_config(), session=session).scrape(Root())

    assert session.requested == [START_URL]


def test_results_page_failure_raises_scrape_error():
    session = FakeSession({START_URL: FakeResponse('blocked', status_code=429)})

    with pytest.raises(ScrapeError) as excinfo:
        Scraper(make_config(), session=session).scrape(Root())

    assert START_URL in excinfo.value.message
    assert '429' in excinfo.value.message


def test_collect_content_calls_get_all_items_with_context():
    session = FakeSession({START_URL: '<h3>One</h3><h3> </h3><h3>Two <b>bold</b></h3>'})
    seen = []
    root = Root()
    root.add_operation(CollectContent(
        'h3',
        name='heading',
        get_all_items=lambda context, items, address: seen.append((context, items, address)),
    ))
    context = object()

    pages = Scraper(make_config(), session=session).scrape(root, context)

    assert pages == [{'heading': ['One', 'Two bold']}]
    assert seen == [(context, ['One', 'Two bold'], START_URL)]


def test_collect_content_attribute_and_condition():
    soup = BeautifulSoup(
        '<a href="https://keep.example">k</a><a href="/relative">r</a><a>none</a>',
        'html.parser',
    )
    operation = CollectContent(
        'a',
        name='link',
        attribute='href',
        condition=lambda element: not (element.get('href') or '/').startswith('/'),
    )

    assert operation.collect(soup, '') == ['https://keep.example']


def test_collect_content_main_text_fallback(monkeypatch):
    monkeypatch.setattr(engine.trafilatura, 'extract', lambda html: '  ' + 'word ' * 100)
    soup = BeautifulSoup('<p>nothing matches</p>', 'html.parser')

    items = CollectContent('.missing', name='snippet', fallback='main_text').collect(soup, '<p>x</p>')

    assert len(items) == 1
    assert items[0].startswith('word')
    assert len(items[0]) <= engine.FALLBACK_SNIPPET_LENGTH


def test_collect_content_without_fallback_stays_empty(monkeypatch):
    monkeypatch.setattr(engine.trafilatura, 'extract', lambda html: 'should not be used')
    soup = BeautifulSoup('<p>nothing matches</p>', 'html.parser')

    assert CollectContent('.missing', name='snippet').collect(soup, '<p>x</p>') == []


def test_parse_strips_scripts_and_styles():
    scraper = Scraper(make_config(), session=FakeSession())

    soup = scraper.parse('<script>var t = "<h1>no</h1>";</script><style>h1{}</style><h1>yes</h1>')

    assert [h.get_text() for h in soup.select('h1')] == ['yes']
    assert soup.find('script') is None


def test_open_links_runs_children_in_link_order_and_skips_failures():
    results_page = (
        '<a class="r" href="https://one.example/">1</a>'
        '<a class="r" href="https://down.example/">2</a>'
        '<a class="r" href="/local">3</a>'
        '<a class="r" href="https://extra.example/">4</a>'
    )
    session = FakeSession({
        START_URL: results_page,
        'https://one.example/': '<h1>First</h1>',
        'https://search.example/local': '<h1>Local</h1>',
        'https://extra.example/': '<h1>Extra</h1>',
    })
    visited = []
    opener = OpenLinks(
        'a.r',
        name='result',
        get_page_object=lambda context, page_object, address: visited.append((address, page_object)),
        slice=(0, 3),
    )
    opener.add_operation(CollectContent('h1', name='title'))
    root = Root()
    root.add_operation(opener)

    Scraper(make_config(concurrency=2), session=session).scrape(root)

    assert visited == [
        ('https://one.example/', {'title': ['First']}),
        ('https://search.example/local', {'title': ['Local']}),
    ]
    assert 'https://extra.example/' not in session.requested


def test_root_operations_run_in_declaration_order():
    session = FakeSession({
        START_URL: '<a class="r" href="https://one.example/">1</a><h3>Heading</h3>',
        'https://one.example/': '<h1>First</h1>',
    })
    order = []
    opener = OpenLinks('a.r', name='result',
                       get_page_object=lambda context, page_object, address: order.append('open'))
    root = Root()
    root.add_operation(opener)
    root.add_operation(CollectContent('h3', name='heading',
                                      get_all_items=lambda context, items, address: order.append('collect')))

    Scraper(make_config(), session=session).scrape(root)

    assert order == ['open', 'collect']


def test_build_session_mounts_retries_and_headers():
    session = build_session(make_config(max_retries=2))

    adapter = session.get_adapter('https://search.example/')
    assert adapter.max_retries.total == 2
    assert 429 in adapter.max_retries.status_forcelist
    assert session.headers['User-Agent'] == 'test-agent'


def test_throttle_spaces_requests(monkeypatch):
    clock = {'now': 100.0}
    sleeps = []
    monkeypatch.setattr(engine.time, 'monotonic', lambda: clock['now'])
    monkeypatch.setattr(engine.time, 'sleep', lambda seconds: sleeps.append(seconds))

    throttle = Throttle(5.0)
    throttle.wait()
    throttle.wait()
    clock['now'] = 103.0
    throttle.wait()

    assert sleeps == [5.0, 7.0]


def test_throttle_without_delay_never_sleeps(monkeypatch):
    monkeypatch.setattr(engine.time, 'sleep', lambda seconds: pytest.fail('slept'))

    Throttle(0).wait()


def test_scraper_closes_session_it_built(monkeypatch):
    session = FakeSession({START_URL: '<p>page</p>'})
    monkeypatch.setattr(engine, 'build_session', lambda config: session)

    with Scraper(make_config()) as scraper:
        scraper.scrape(Root())

    assert session.closed is True


def test_scraper_leaves_caller_session_open():
    session = FakeSession({START_URL: '<p>page</p>'})

    with Scraper(make_config(), session=session) as scraper:
        scraper.scrape(Root())

    assert session.closed is False
