# Load environment variables FIRST before any other imports
from dotenv import load_dotenv
load_dotenv()

import os
import time
import uuid
from flask import Flask, jsonify, request
from flask import g

from .config import env_flag


def create_app(discovery_engine=None, config=None):
    """Create and configure an instance of the Flask application.

    Args:
        discovery_engine: Engine to serve (defaults to the process-wide one)
        config: Extra Flask config values, applied last
    """
    app = Flask(__name__, instance_relative_config=True)

    # =============================================================================
    # CONFIGURATION
    # =============================================================================
    app.config.from_mapping(
        JSON_SORT_KEYS=False,
        RATELIMIT_ENABLED=env_flag('RATELIMIT_ENABLED', 'true'),
    )
    if config:
        app.config.update(config)

    # =============================================================================
    # LOGGING, RATE LIMITING
    # =============================================================================
    from .log import log, debug_log_event
    from .rate_limit import init_rate_limiting

    init_rate_limiting(app)

    @app.before_request
    def assign_request_id():
        g.request_id = uuid.uuid4().hex[:12]
        g.request_start = time.time()

    @app.after_request
    def debug_request_log(response):
        try:
            duration_ms = None
            start_time = getattr(g, 'request_start', None)
            if start_time:
                duration_ms = int((time.time() - start_time) * 1000)
            debug_log_event({
                'event': 'request',
                'request_id': getattr(g, 'request_id', None),
                'method': request.method,
                'path': request.path,
                'query': request.query_string.decode('utf-8', errors='ignore'),
                'status': response.status_code,
                'duration_ms': duration_ms,
            })
        except Exception as exc:
            log(f"Debug log error: {exc}")
        return response

    @app.teardown_request
    def debug_exception_log(error=None):
        if not error:
            return
        debug_log_event({
            'event': 'exception',
            'request_id': getattr(g, 'request_id', None),
            'path': request.path if request else None,
            'error_type': error.__class__.__name__,
            'error': str(error)
        })

    @app.route('/api/health')
    def health():
        return jsonify({'status': 'ok'})

    # =============================================================================
    # DISCOVERY ENGINE & BLUEPRINTS
    # =============================================================================
    if discovery_engine is not None:
        app.extensions['discovery_engine'] = discovery_engine

    from .routes.discovery_api import discovery_bp
    app.register_blueprint(discovery_bp)

    # Set config for app.run()
    app.config['HOST'] = os.environ.get('FLASK_HOST', '127.0.0.1')
    app.config['PORT'] = int(os.environ.get('FLASK_PORT', '5000'))
    app.config['DEBUG'] = env_flag('FLASK_DEBUG')

    log(f"MediaShelf API ready on http://{app.config['HOST']}:{app.config['PORT']}")
    return app

# App instance should be created by the caller (run.py or WSGI entrypoint)
