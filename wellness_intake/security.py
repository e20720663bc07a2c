"""
Security hardening module.

Provides CSRF protection, rate limiting, security headers and the
anonymous browser id used to scope drafts.
"""

import secrets
from datetime import timedelta
from typing import Any, Dict

from flask import request, session
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_wtf.csrf import CSRFProtect


# Initialize extensions at module level
csrf = CSRFProtect()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["500 per day", "100 per hour"]
)


# Security configuration defaults
DEFAULT_CONFIG = {
    'SESSION_COOKIE_SECURE': True,
    'SESSION_COOKIE_HTTPONLY': True,
    'SESSION_COOKIE_SAMESITE': 'Lax',
    'PERMANENT_SESSION_LIFETIME': timedelta(days=7),
    'WTF_CSRF_TIME_LIMIT': None,  # tied to the session instead
    'WTF_CSRF_SSL_STRICT': True,
}


def add_security_headers(response):
    """
    Add security headers to response.
    This is a standalone function that can be used as an after_request handler.
    """
    response.headers['Content-Security-Policy'] = (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline'; "
        "style-src 'self' 'unsafe-inline' https://fonts.googleapis.com; "
        "font-src 'self' https://fonts.gstatic.com; "
        "img-src 'self' data:; "
        "connect-src 'self';"
    )
    response.headers['X-Content-Type-Options'] = 'nosniff'
    response.headers['X-Frame-Options'] = 'DENY'
    response.headers['Referrer-Policy'] = 'strict-origin-when-cross-origin'
    return response


def init_security(app):
    """Initialize security extensions with the app."""
    for key, value in DEFAULT_CONFIG.items():
        if key not in app.config:
            app.config[key] = value

    csrf.init_app(app)
    limiter.init_app(app)


# Rate limit configurations
RATE_LIMITS = {
    'draft': "120 per minute",
    'validate': "60 per minute",
    'submit': "5 per minute",
}


def get_client_id() -> str:
    """
    Get the anonymous id of the current browser, creating one on first use.

    Drafts are stored per browser under this id; it carries no personal data.
    """
    client_id = session.get('client_id')
    if not client_id:
        client_id = secrets.token_urlsafe(24)
        session['client_id'] = client_id
        session.permanent = True
    return client_id


def get_client_ip() -> str:
    """Get the client IP address, handling proxies."""
    forwarded_for = request.headers.get('X-Forwarded-For')
    if forwarded_for:
        return forwarded_for.split(',')[0].strip()

    real_ip = request.headers.get('X-Real-Ip')
    if real_ip:
        return real_ip

    return request.remote_addr or 'unknown'


def as_dict(value: Any) -> Dict[str, Any]:
    """Coerce a payload member to a dict (empty if it is not one)."""
    return value if isinstance(value, dict) else {}
