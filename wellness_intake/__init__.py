"""
Wellness Questionnaire Site

A multi-language intake-form web site whose questionnaires are validated,
formatted and relayed to the consultant's Telegram chat.

Enhanced with:
- CSRF protection
- Rate limiting
- Security headers
- Server-side drafts with a 24-hour freshness window
"""

import os
from datetime import datetime
from flask import Flask, request, g, jsonify, render_template
from flask_sqlalchemy import SQLAlchemy

# Initialize extensions
db = SQLAlchemy()


def create_app(test_config=None):
    """Application factory pattern."""
    app = Flask(__name__, instance_relative_config=True)

    # Default configuration
    app.config.from_mapping(
        SECRET_KEY=os.environ.get('SECRET_KEY', 'dev-secret-key-change-in-production'),
        SQLALCHEMY_DATABASE_URI=os.environ.get('DATABASE_URL', 'sqlite:///wellness_intake.db'),
        SQLALCHEMY_TRACK_MODIFICATIONS=False,

        # Site settings
        DEFAULT_LANGUAGE=os.environ.get('DEFAULT_LANGUAGE', 'ru'),
        REPORT_TIMEZONE=os.environ.get('REPORT_TIMEZONE') or None,
        CHANNEL_URL=os.environ.get('CHANNEL_URL', 'https://t.me/beautifulyuo'),

        # Uploads (attachment sent with the questionnaire)
        MAX_CONTENT_LENGTH=int(os.environ.get('MAX_UPLOAD_MB', 20)) * 1024 * 1024,

        # CSRF settings
        WTF_CSRF_ENABLED=True,
        WTF_CSRF_SSL_STRICT=False,  # Disabled for development
        SESSION_COOKIE_SECURE=os.environ.get('SESSION_COOKIE_SECURE', 'false').lower() == 'true',

        # Rate limiting settings
        RATELIMIT_STORAGE_URI=os.environ.get('REDIS_URL', 'memory://'),
        RATELIMIT_STRATEGY='fixed-window',
        RATELIMIT_HEADERS_ENABLED=True,
    )

    if test_config is None:
        # Load instance config if it exists
        app.config.from_pyfile('config.py', silent=True)
    else:
        # Load test config
        app.config.from_mapping(test_config)

    # Ensure instance folder exists
    try:
        os.makedirs(app.instance_path)
    except OSError:
        pass

    # Initialize extensions with app
    db.init_app(app)

    # Import and initialize security (after db init to avoid circular imports)
    from wellness_intake.security import add_security_headers, init_security
    init_security(app)

    # Register blueprints
    from wellness_intake.routes import main_bp, api_bp
    app.register_blueprint(main_bp)
    app.register_blueprint(api_bp)

    # Add security headers to all responses
    @app.after_request
    def after_request(response):
        """Add security headers to all responses."""
        return add_security_headers(response)

    # Request logging
    @app.before_request
    def before_request():
        """Log request start."""
        g.request_start_time = datetime.utcnow()

    @app.after_request
    def log_request(response):
        """Log request completion."""
        if hasattr(g, 'request_start_time'):
            duration = (datetime.utcnow() - g.request_start_time).total_seconds()
            app.logger.info(
                f'{request.method} {request.path} - {response.status_code} - {duration:.3f}s'
            )
        return response

    # Create database tables and drop drafts that can no longer be loaded
    with app.app_context():
        from wellness_intake import models  # noqa: F401 - registers tables
        from wellness_intake.retention_policy import purge_stale_snapshots
        db.create_all()
        purge_stale_snapshots()

    # Template globals
    @app.context_processor
    def inject_globals():
        from wellness_intake.routes import get_language
        from wellness_intake.translations import get_translations
        language = get_language()
        return {
            'current_year': datetime.utcnow().year,
            'language': language,
            't': get_translations(language),
            'channel_url': app.config['CHANNEL_URL'],
        }

    # Error handlers
    @app.errorhandler(404)
    def not_found(error):
        """JSON for API paths, the 404 page otherwise."""
        if request.path.startswith('/api/'):
            return jsonify({'ok': False, 'error': 'Not found'}), 404
        return render_template('404.html'), 404

    @app.errorhandler(413)
    def too_large(error):
        return jsonify({'ok': False, 'error': 'Attachment is too large'}), 413

    @app.errorhandler(429)
    def rate_limited(error):
        return jsonify({'ok': False, 'error': 'Too many requests, please try again later'}), 429

    @app.errorhandler(500)
    def internal_error(error):
        """Handle internal errors."""
        db.session.rollback()
        app.logger.error(f'Internal error: {str(error)}')
        return jsonify({'ok': False, 'error': 'Internal server error'}), 500

    return app
