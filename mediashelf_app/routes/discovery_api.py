"""
================================================================================
MediaShelf v1.0 - Discovery API Routes
================================================================================
Flask blueprint exposing the discovery engine to the front end.

ENDPOINTS:
  GET  /api/discovery/search           - Multi-provider search
  POST /api/discovery/details          - Enrich one search result
  POST /api/discovery/recommendations  - Hydrated recommendations for a library
  GET  /api/discovery/providers        - Registered providers

The engine never raises; these routes only reject malformed input (400).
================================================================================
"""

from flask import Blueprint, current_app, jsonify, request
import asyncio
import threading
import logging

from ..discovery import CanonicalResult, DiscoveryEngine, get_discovery_engine, parse_kind_filter
from ..rate_limit import limit_heavy, limit_light

logger = logging.getLogger(__name__)

discovery_bp = Blueprint('discovery_api', __name__, url_prefix='/api/discovery')

_loop = None
_loop_lock = threading.Lock()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def _background_loop() -> asyncio.AbstractEventLoop:
    """Start (once) the event loop shared by every request thread."""
    global _loop
    with _loop_lock:
        if _loop is None or _loop.is_closed():
            _loop = asyncio.new_event_loop()
            threading.Thread(
                target=_loop.run_forever,
                name='discovery-event-loop',
                daemon=True,
            ).start()
        return _loop


def run_async(coro):
    """
    Run async coroutine in sync Flask context.

    Flask routes are sync, but the discovery engine is async. Every request
    thread submits to one long-lived loop, so provider clients and their
    connection pools are created once and reused.
    """
    return asyncio.run_coroutine_threadsafe(coro, _background_loop()).result()


def _engine() -> DiscoveryEngine:
    return current_app.extensions.get('discovery_engine') or get_discovery_engine()


def _error(message: str, code: str = 'invalid_request', status: int = 400):
    return jsonify({'error': message, 'code': code}), status


def _parse_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or '').lower() in ('true', '1', 'yes', 'on')


# =============================================================================
# DISCOVERY ROUTES
# =============================================================================

@discovery_bp.route('/search', methods=['GET'])
@limit_heavy
def search():
    """
    Search every provider implied by the type filter.

    Query string:
        q       Search text (required)
        type    ALL | ANIME | MANGA | MANHWA | BOOK (default ALL)
        page    1-based page (default 1)
        mature  true to include adult entries

    Returns:
        {"results": [...], "count": 12, "page": 1}
    """
    query_text = (request.args.get('q') or '').strip()
    if not query_text:
        return _error("Query parameter 'q' is required")

    try:
        kind_filter = parse_kind_filter(request.args.get('type'))
    except ValueError as e:
        return _error(str(e))

    try:
        page = int(request.args.get('page', 1))
    except (TypeError, ValueError):
        return _error("Parameter 'page' must be an integer")
    if page < 1:
        return _error("Parameter 'page' must be >= 1")

    include_mature = _parse_bool(request.args.get('mature'))

    results = run_async(_engine().search_all(query_text, kind_filter, include_mature, page))

    return jsonify({
        'results': [r.to_dict() for r in results],
        'count': len(results),
        'page': page,
    })


@discovery_bp.route('/details', methods=['POST'])
@limit_light
def details():
    """
    Enrich one result.

    Request:
        A result as returned by /search (id, title, media_kind, ...)

    Returns:
        {"details": {... plus relations, trailer_url, characters}}
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _error("Expected a JSON object")

    try:
        result = CanonicalResult.from_dict(data)
    except (ValueError, TypeError) as e:
        return _error(f"Invalid result: {e}")

    record = run_async(_engine().enrich(result))
    return jsonify({'details': record.to_dict()})


@discovery_bp.route('/recommendations', methods=['POST'])
@limit_heavy
def recommendations():
    """
    Recommend titles similar to the user's library.

    Request:
        {"titles": ["Berserk", "Vinland Saga", ...]}

    Returns:
        {"results": [...], "count": 5}
    """
    data = request.get_json(silent=True) or {}
    titles = data.get('titles') if isinstance(data, dict) else None
    if not isinstance(titles, list) or not all(isinstance(t, str) for t in titles):
        return _error("'titles' must be a list of strings")

    results = run_async(_engine().hydrate(titles))
    return jsonify({
        'results': [r.to_dict() for r in results],
        'count': len(results),
    })


@discovery_bp.route('/providers', methods=['GET'])
@limit_light
def providers():
    """List registered providers and whether recommendations are enabled."""
    engine = _engine()
    return jsonify({
        'providers': engine.describe_providers(),
        'recommendations_enabled': engine.generator.is_configured,
    })
