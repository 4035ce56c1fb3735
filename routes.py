import logging
import re
from datetime import datetime, timezone

from flask import request, jsonify
from werkzeug.exceptions import HTTPException

from app import app
from errors import RouteNotFoundError, ScrapeError, ValidationError
from models import SearchRequest
from scrapers.google_scraper import scrape_google

logger = logging.getLogger(__name__)

SERVICE_NAME = "Google Scraper API"
AVAILABLE_ENDPOINTS = [
    "GET /",
    "GET /search?q=your-query",
    "GET /search?q=your-query&pages=2",
    "GET /health",
]
LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def utc_timestamp():
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2024-01-01T12:00:00.000Z"""
    return datetime.now(timezone.utc).isoformat(timespec='milliseconds').replace('+00:00', 'Z')


def validate_query(query):
    """Return the query unchanged, or raise ValidationError if it is blank"""
    if query is None or not query.strip():
        raise ValidationError("Query parameter (q) is required")
    return query


def parse_pages(raw):
    """Leading integer of raw ("2.0" -> 2, "3abc" -> 3); missing or non-numeric -> 1"""
    match = LEADING_INT.match(raw or '')
    return int(match.group(1)) if match else 1


def parse_search_request(args):
    """Build a SearchRequest from query-string args"""
    query = validate_query(args.get('q'))

    pages = parse_pages(args.get('pages'))
    if pages < 1:
        raise ValidationError("Query parameter (pages) must be at least 1")

    lang = args.get('lang', '').strip() or 'en'
    return SearchRequest(query=query, pages=pages, lang=lang)


@app.after_request
def allow_any_origin(response):
    response.headers['Access-Control-Allow-Origin'] = '*'
    return response


@app.route('/')
def index():
    """Describe how to use the API"""
    return jsonify({
        'message': SERVICE_NAME,
        'endpoints': {
            'search': 'GET /search?q=your-query&pages=1',
            'example': 'GET /search?q=nodejs+tutorial&pages=1',
        },
        'note': 'Use responsibly and comply with Google Terms of Service',
    })


@app.route('/search')
def search():
    """Scrape Google for ?q= and return deduplicated results"""
    try:
        search_request = parse_search_request(request.args)
    except ValidationError as e:
        logger.info(f"Rejected search: {e.message}")
        return jsonify(e.to_dict()), e.status_code

    try:
        logger.info(f"Starting search for query: {search_request.query} "
                    f"(pages={search_request.pages}, lang={search_request.lang})")
        results = scrape_google(search_request.query, search_request.pages, search_request.lang)
    except Exception as e:
        logger.error(f"Scraping error: {str(e)}")
        error = e if isinstance(e, ScrapeError) else ScrapeError(str(e))
        return jsonify(error.to_dict()), error.status_code

    logger.info(f"Returning {len(results)} results for query: {search_request.query}")
    return jsonify({
        'success': True,
        'query': search_request.query,
        'pages': search_request.pages,
        'totalResults': len(results),
        'timestamp': utc_timestamp(),
        'results': results,
    })


@app.route('/health')
def health():
    return jsonify({
        'status': 'healthy',
        'timestamp': utc_timestamp(),
        'service': SERVICE_NAME,
    })


@app.errorhandler(404)
def not_found_error(error):
    not_found = RouteNotFoundError(request.path, AVAILABLE_ENDPOINTS)
    return jsonify(not_found.to_dict()), not_found.status_code


@app.errorhandler(HTTPException)
def handle_http_exception(e):
    return jsonify({'error': e.name, 'message': e.description}), e.code


@app.errorhandler(Exception)
def handle_exception(e):
    logger.exception(f"Unhandled exception: {str(e)}")
    body = {'error': 'Internal server error'}
    if app.config["APP_ENV"] == "development":
        body['message'] = str(e)
    return jsonify(body), 500
