"""
Rate limiting configuration for the MediaShelf API.

Uses Flask-Limiter to protect API endpoints from abuse. Every discovery
request turns into several upstream calls, so the limits also keep us inside
the providers' own quotas.

Rate Limit Tiers:
- Heavy: /api/discovery/search, /api/discovery/recommendations (fan-out)
- Light: /api/discovery/details, /api/discovery/providers
"""

import os
from flask import jsonify
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Initialize limiter (will be attached to app in create_app)
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "200 per hour"],
    storage_uri=os.environ.get("RATELIMIT_STORAGE_URI", "memory://"),
    strategy="fixed-window",
    headers_enabled=True,  # Add X-RateLimit-* headers to responses
)


# ==============================================================================
# RATE LIMIT TIERS
# ==============================================================================

# Heavy operations - up to 3 provider calls per search, 5 searches per recommendation run
HEAVY_LIMIT = "20 per minute"

# Light operations - a single upstream request or none at all
LIGHT_LIMIT = "120 per minute"


def limit_heavy(f):
    """Apply heavy rate limit to fan-out operations like search."""
    return limiter.limit(HEAVY_LIMIT)(f)


def limit_light(f):
    """Apply light rate limit to cheap operations."""
    return limiter.limit(LIGHT_LIMIT)(f)


# ==============================================================================
# ERROR HANDLER
# ==============================================================================

def rate_limit_exceeded_handler(e):
    """Return a JSON 429 with the retry delay."""
    retry_after = e.retry_after if hasattr(e, 'retry_after') else 60
    response = jsonify({
        "error": "Rate limit exceeded",
        "code": "rate_limited",
        "message": str(e.description),
        "retry_after": retry_after
    })
    response.status_code = 429
    response.headers['Retry-After'] = str(retry_after)
    return response


# ==============================================================================
# INITIALIZATION
# ==============================================================================

def init_rate_limiting(app):
    """
    Initialize rate limiting for a Flask app.

    Call this in create_app() after app configuration. Set
    RATELIMIT_ENABLED=False in the app config to turn limits off.
    """
    limiter.init_app(app)

    # Register custom error handler
    app.errorhandler(429)(rate_limit_exceeded_handler)

    return limiter
